"""
client.py — Async HTTP client for the remote contacts/settings service.

Endpoints:
    GET    /api/contacts
    POST   /api/contacts
    PATCH  /api/contacts/{id}
    DELETE /api/contacts/{id}
    PATCH  /api/user/settings

The session credential is a cookie issued by the auth collaborator; this
client only carries it, it never inspects it.

Error Handling Strategy
========================
    Level 1 — Network errors (timeout, DNS, connection refused)
        → GET: retry up to API_MAX_RETRIES times with exponential backoff
        → writes: fail immediately (a retried POST could create duplicates)
        → surfaced as TransientNetworkError

    Level 2 — HTTP errors
        → 5xx: TransientNetworkError (GET retried as above)
        → 404: NotFoundError
        → other 4xx: RemoteServiceError (never retried)

    Level 3 — Malformed bodies
        → TransientNetworkError; the caller's cache stays untouched
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Mapping, Optional

import httpx
from pydantic import ValidationError

from rakshasos.core.config import Settings, get_settings
from rakshasos.core.errors import (
    NotFoundError,
    RemoteServiceError,
    TransientNetworkError,
)
from rakshasos.models import Contact, ContactDraft, ContactPatch

logger = logging.getLogger(__name__)

RETRY_BACKOFF_BASE = 0.5  # seconds; actual wait = base * 2^attempt


class RakshaApiClient:
    """Thin typed wrapper over httpx.AsyncClient."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        cookies: Optional[Mapping[str, str]] = None,
        config: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        retry_backoff: float = RETRY_BACKOFF_BASE,
    ) -> None:
        self._config = config or get_settings()
        self._base_url = base_url or self._config.API_BASE_URL
        self._cookies = dict(cookies or {})
        self._transport = transport
        self._retry_backoff = retry_backoff
        self._http_client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None or self._http_client.is_closed:
            self._http_client = httpx.AsyncClient(
                base_url=self._base_url,
                cookies=self._cookies,
                timeout=self._config.API_TIMEOUT_SECONDS,
                transport=self._transport,
            )
        return self._http_client

    async def close(self) -> None:
        """Close HTTP client."""
        if self._http_client and not self._http_client.is_closed:
            await self._http_client.aclose()

    async def __aenter__(self) -> "RakshaApiClient":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    # ── Request core ──

    async def _request(
        self,
        method: str,
        path: str,
        operation: str,
        *,
        json: Any = None,
    ) -> Any:
        method = method.upper()
        attempts = 1 + (self._config.API_MAX_RETRIES if method == "GET" else 0)
        client = await self._get_client()

        for attempt in range(attempts):
            last_attempt = attempt == attempts - 1
            try:
                response = await client.request(method, path, json=json)
            except httpx.TransportError as e:
                if not last_attempt:
                    await self._backoff(operation, attempt, e)
                    continue
                logger.warning("%s failed after %d attempt(s): %s", operation, attempt + 1, e)
                raise TransientNetworkError(operation, str(e) or type(e).__name__) from e

            if response.status_code >= 500:
                if not last_attempt:
                    await self._backoff(operation, attempt, response.status_code)
                    continue
                raise TransientNetworkError(
                    operation, f"HTTP {response.status_code}",
                    status_code=response.status_code,
                )
            if response.status_code == 404:
                raise NotFoundError("Resource", path=path)
            if response.status_code >= 400:
                raise RemoteServiceError(
                    operation, response.status_code, response.text[:200],
                )

            if response.status_code == 204 or not response.content:
                return None
            try:
                return response.json()
            except ValueError as e:
                raise TransientNetworkError(operation, "invalid JSON body") from e

        return None

    async def _backoff(self, operation: str, attempt: int, reason: Any) -> None:
        delay = self._retry_backoff * (2 ** attempt)
        logger.info("Retrying %s in %.1fs (attempt %d): %s", operation, delay, attempt + 1, reason)
        await asyncio.sleep(delay)

    # ── Contacts ──

    async def list_contacts(self) -> List[Contact]:
        data = await self._request("GET", "/api/contacts", "list_contacts")
        if not isinstance(data, list):
            raise TransientNetworkError("list_contacts", "expected a JSON array")
        try:
            return [Contact.model_validate(item) for item in data]
        except ValidationError as e:
            raise TransientNetworkError("list_contacts", f"malformed contact: {e}") from e

    async def create_contact(self, draft: ContactDraft) -> Contact:
        data = await self._request(
            "POST", "/api/contacts", "create_contact", json=draft.to_wire(),
        )
        return self._parse_contact("create_contact", data)

    async def update_contact(self, contact_id: str, patch: ContactPatch) -> Contact:
        try:
            data = await self._request(
                "PATCH", f"/api/contacts/{contact_id}", "update_contact",
                json=patch.to_wire(),
            )
        except NotFoundError:
            raise NotFoundError("Contact", id=contact_id) from None
        return self._parse_contact("update_contact", data)

    async def delete_contact(self, contact_id: str) -> None:
        try:
            await self._request(
                "DELETE", f"/api/contacts/{contact_id}", "delete_contact", json={},
            )
        except NotFoundError:
            raise NotFoundError("Contact", id=contact_id) from None

    @staticmethod
    def _parse_contact(operation: str, data: Any) -> Contact:
        try:
            return Contact.model_validate(data)
        except ValidationError as e:
            raise TransientNetworkError(operation, f"malformed contact: {e}") from e

    # ── Settings ──

    async def patch_settings(self, changes: Dict[str, Any]) -> Any:
        return await self._request(
            "PATCH", "/api/user/settings", "patch_settings", json=changes,
        )
