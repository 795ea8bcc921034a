"""
Shared fakes for the engine collaborators.

    MemoryStore        — KeyValueStore held in a dict
    FakeLocationProvider — scripted permission + fix results
    FakeChannel        — DeliveryChannel that records every send
    RecordingCues      — CueSink that records emitted cues
    FakeContactsApi    — in-memory remote service with call counters
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence

import pytest

from rakshasos.alerts.cues import Cue
from rakshasos.core.errors import NotFoundError, TransientNetworkError
from rakshasos.models import (
    Contact,
    ContactDraft,
    ContactPatch,
    LocationAccuracy,
    LocationSample,
)

# Pune (18.5204°N, 73.8567°E)
PUNE_LAT = 18.5204
PUNE_LON = 73.8567
STORAGE_KEY = "test:last_location"


def make_sample(
    lat: float = PUNE_LAT,
    lon: float = PUNE_LON,
    ts: int = 1_700_000_000_000,
    accuracy: Optional[float] = 12.5,
) -> LocationSample:
    return LocationSample(latitude=lat, longitude=lon, captured_at_ms=ts, accuracy_m=accuracy)


def make_contact(i: int, phone: Optional[str] = None) -> Contact:
    return Contact(
        id=f"c{i}",
        userId="u1",
        name=f"Contact {i}",
        phone=phone or f"+9198765432{i:02d}",
        relationship=None,
        createdAt=datetime(2025, 1, 1, tzinfo=timezone.utc),
    )


class MemoryStore:
    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self.data: Dict[str, str] = dict(initial or {})
        self.writes = 0

    async def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    async def set(self, key: str, value: str) -> bool:
        self.writes += 1
        self.data[key] = value
        return True

    async def delete(self, key: str) -> bool:
        self.data.pop(key, None)
        return True

    @classmethod
    def with_sample(cls, sample: LocationSample) -> "MemoryStore":
        return cls({STORAGE_KEY: json.dumps(sample.to_dict())})


class FakeLocationProvider:
    def __init__(self, fix=None, granted: bool = True) -> None:
        self.fix = fix
        self.granted = granted
        self.fix_calls = 0
        self.accuracies: List[LocationAccuracy] = []
        self.gate = None

    async def request_permission(self) -> bool:
        if isinstance(self.granted, Exception):
            raise self.granted
        return self.granted

    async def get_current_position(self, accuracy: LocationAccuracy) -> LocationSample:
        self.fix_calls += 1
        self.accuracies.append(accuracy)
        if self.gate is not None:
            await self.gate.wait()
        if isinstance(self.fix, Exception):
            raise self.fix
        if self.fix is None:
            raise TimeoutError("no fix")
        return self.fix


class FakeChannel:
    name = "fake-sms"

    def __init__(self, available: bool = True, error: Optional[Exception] = None) -> None:
        self.available = available
        self.error = error
        self.availability_checks = 0
        self.sends: List[tuple] = []
        self.gate = None

    async def is_available(self) -> bool:
        self.availability_checks += 1
        return self.available

    async def send(self, numbers: Sequence[str], message: str) -> None:
        if self.gate is not None:
            await self.gate.wait()
        self.sends.append((list(numbers), message))
        if self.error is not None:
            raise self.error


class RecordingCues:
    def __init__(self) -> None:
        self.cues: List[Cue] = []

    async def emit(self, cue: Cue) -> None:
        self.cues.append(cue)


class FakeContactsApi:
    """Remote contacts service double with per-operation call counters."""

    def __init__(self, contacts: Optional[List[Contact]] = None) -> None:
        self.remote: List[Contact] = list(contacts or [])
        self.calls: Dict[str, int] = {"list": 0, "create": 0, "update": 0, "delete": 0}
        self.fail_next: Optional[Exception] = None
        self._next_id = 100

    def _maybe_fail(self) -> None:
        if self.fail_next is not None:
            error, self.fail_next = self.fail_next, None
            raise error

    async def list_contacts(self) -> List[Contact]:
        self.calls["list"] += 1
        self._maybe_fail()
        return list(self.remote)

    async def create_contact(self, draft: ContactDraft) -> Contact:
        self.calls["create"] += 1
        self._maybe_fail()
        self._next_id += 1
        contact = Contact(
            id=f"c{self._next_id}",
            userId="u1",
            name=draft.name,
            phone=draft.phone,
            relationship=draft.relationship,
            createdAt=datetime.now(timezone.utc),
        )
        self.remote.append(contact)
        return contact

    async def update_contact(self, contact_id: str, patch: ContactPatch) -> Contact:
        self.calls["update"] += 1
        self._maybe_fail()
        for i, c in enumerate(self.remote):
            if c.id == contact_id:
                updated = c.model_copy(update=patch.to_wire())
                self.remote[i] = updated
                return updated
        raise NotFoundError("Contact", id=contact_id)

    async def delete_contact(self, contact_id: str) -> None:
        self.calls["delete"] += 1
        self._maybe_fail()
        self.remote = [c for c in self.remote if c.id != contact_id]


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def transient_error() -> TransientNetworkError:
    return TransientNetworkError("test", "connection reset")
