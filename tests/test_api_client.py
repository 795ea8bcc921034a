"""
test_api_client.py — Remote contacts/settings client over httpx.MockTransport.

Covers:
    • Endpoint paths, methods and payloads
    • Cookie credential passed through
    • Error mapping (transport, 5xx, 404, 4xx, malformed body)
    • GET retry vs. no retry for writes
    • ContactStore + client: 11th add never reaches the wire
"""

from __future__ import annotations

import json

import httpx
import pytest

from rakshasos.api.client import RakshaApiClient
from rakshasos.contacts.store import ContactStore
from rakshasos.core.config import Settings
from rakshasos.core.errors import (
    CapacityExceededError,
    NotFoundError,
    RemoteServiceError,
    TransientNetworkError,
)
from rakshasos.models import ContactDraft, ContactPatch

BASE_URL = "http://contacts.test"


def _contact_json(i: int) -> dict:
    return {
        "id": f"c{i}",
        "userId": "u1",
        "name": f"Contact {i}",
        "phone": f"+91990000{i:04d}",
        "relationship": None,
        "createdAt": "2025-01-01T10:00:00.000Z",
    }


class Recorder:
    """MockTransport handler that records requests and replays responses."""

    def __init__(self, *responses) -> None:
        self.responses = list(responses)
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        return response


def _client(handler, retries: int = 2) -> RakshaApiClient:
    config = Settings(API_BASE_URL=BASE_URL, API_MAX_RETRIES=retries)
    return RakshaApiClient(
        cookies={"connect.sid": "s3cret"},
        config=config,
        transport=httpx.MockTransport(handler),
        retry_backoff=0,
    )


class TestContactsEndpoints:

    @pytest.mark.asyncio
    async def test_list(self):
        recorder = Recorder(httpx.Response(200, json=[_contact_json(1), _contact_json(2)]))
        async with _client(recorder) as client:
            contacts = await client.list_contacts()

        assert [c.id for c in contacts] == ["c1", "c2"]
        assert contacts[0].owner_id == "u1"
        request = recorder.requests[0]
        assert request.method == "GET"
        assert request.url.path == "/api/contacts"
        assert "connect.sid=s3cret" in request.headers.get("cookie", "")

    @pytest.mark.asyncio
    async def test_create(self):
        recorder = Recorder(httpx.Response(201, json=_contact_json(7)))
        async with _client(recorder) as client:
            created = await client.create_contact(ContactDraft(name="Asha", phone="+911234"))

        assert created.id == "c7"
        request = recorder.requests[0]
        assert request.method == "POST"
        assert json.loads(request.content) == {"name": "Asha", "phone": "+911234"}

    @pytest.mark.asyncio
    async def test_update(self):
        recorder = Recorder(httpx.Response(200, json={**_contact_json(3), "name": "Ravi"}))
        async with _client(recorder) as client:
            updated = await client.update_contact("c3", ContactPatch(name="Ravi"))

        assert updated.name == "Ravi"
        request = recorder.requests[0]
        assert request.method == "PATCH"
        assert request.url.path == "/api/contacts/c3"
        assert json.loads(request.content) == {"name": "Ravi"}

    @pytest.mark.asyncio
    async def test_delete(self):
        recorder = Recorder(httpx.Response(204))
        async with _client(recorder) as client:
            assert await client.delete_contact("c3") is None

        assert recorder.requests[0].method == "DELETE"
        assert recorder.requests[0].url.path == "/api/contacts/c3"

    @pytest.mark.asyncio
    async def test_patch_settings(self):
        recorder = Recorder(httpx.Response(200, json={"ok": True}))
        async with _client(recorder) as client:
            await client.patch_settings({"silentSOS": True})

        request = recorder.requests[0]
        assert request.method == "PATCH"
        assert request.url.path == "/api/user/settings"
        assert json.loads(request.content) == {"silentSOS": True}


class TestErrorMapping:

    @pytest.mark.asyncio
    async def test_transport_error_retried_for_get(self):
        recorder = Recorder(
            httpx.ConnectError("refused"),
            httpx.ConnectError("refused"),
            httpx.Response(200, json=[]),
        )
        async with _client(recorder, retries=2) as client:
            assert await client.list_contacts() == []
        assert len(recorder.requests) == 3

    @pytest.mark.asyncio
    async def test_transport_error_exhausted(self):
        recorder = Recorder(httpx.ConnectError("refused"))
        async with _client(recorder, retries=1) as client:
            with pytest.raises(TransientNetworkError):
                await client.list_contacts()
        assert len(recorder.requests) == 2

    @pytest.mark.asyncio
    async def test_write_not_retried(self):
        recorder = Recorder(httpx.Response(503))
        async with _client(recorder, retries=3) as client:
            with pytest.raises(TransientNetworkError):
                await client.create_contact(ContactDraft(name="A", phone="+91"))
        assert len(recorder.requests) == 1

    @pytest.mark.asyncio
    async def test_404_is_not_found(self):
        recorder = Recorder(httpx.Response(404, json={"error": "not found"}))
        async with _client(recorder) as client:
            with pytest.raises(NotFoundError) as exc_info:
                await client.update_contact("nope", ContactPatch(name="x"))
        assert exc_info.value.details["id"] == "nope"

    @pytest.mark.asyncio
    async def test_4xx_is_remote_service_error(self):
        recorder = Recorder(httpx.Response(400, json={"error": "bad phone"}))
        async with _client(recorder) as client:
            with pytest.raises(RemoteServiceError) as exc_info:
                await client.create_contact(ContactDraft(name="A", phone="+91"))
        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    async def test_malformed_list_body(self):
        recorder = Recorder(httpx.Response(200, json={"contacts": []}))
        async with _client(recorder, retries=0) as client:
            with pytest.raises(TransientNetworkError):
                await client.list_contacts()

    @pytest.mark.asyncio
    async def test_malformed_contact(self):
        bad = {**_contact_json(1), "phone": ""}
        recorder = Recorder(httpx.Response(200, json=[bad]))
        async with _client(recorder, retries=0) as client:
            with pytest.raises(TransientNetworkError):
                await client.list_contacts()


class TestStoreOverHttp:

    @pytest.mark.asyncio
    async def test_eleventh_add_never_hits_the_wire(self):
        recorder = Recorder(httpx.Response(200, json=[_contact_json(i) for i in range(10)]))
        async with _client(recorder) as client:
            store = ContactStore(client, max_contacts=10)
            await store.list()

            with pytest.raises(CapacityExceededError):
                await store.add(ContactDraft(name="Eleven", phone="+9111"))

        assert [r.method for r in recorder.requests] == ["GET"]
        assert len(store) == 10

    @pytest.mark.asyncio
    async def test_list_failure_keeps_cache(self):
        recorder = Recorder(
            httpx.Response(200, json=[_contact_json(1)]),
            httpx.Response(500),
        )
        async with _client(recorder, retries=0) as client:
            store = ContactStore(client, max_contacts=10)
            await store.list()
            with pytest.raises(TransientNetworkError):
                await store.list()

        assert [c.id for c in store.contacts] == ["c1"]
