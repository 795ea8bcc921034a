"""
store.py — Bounded, ordered cache of trusted contacts.

The remote service is the source of truth. The local cache only changes
after the remote call for an operation has succeeded:

    list()    GET     → replace cache wholesale
    add()     POST    → append server entity (cap checked first, no call if full)
    edit()    PATCH   → replace entry with matching id
    remove()  DELETE  → drop entry with matching id (never optimistic)

Failures propagate as typed errors (rakshasos.core.errors) so the UI can
distinguish "nothing changed" from "capacity exceeded".
"""

from __future__ import annotations

import logging
from typing import List, Optional, Protocol, Tuple

from rakshasos.core.config import get_settings
from rakshasos.core.errors import CapacityExceededError, RakshaError
from rakshasos.models import Contact, ContactDraft, ContactPatch

logger = logging.getLogger(__name__)


class ContactsBackend(Protocol):
    """Remote contact operations (implemented by RakshaApiClient)."""

    async def list_contacts(self) -> List[Contact]:
        ...

    async def create_contact(self, draft: ContactDraft) -> Contact:
        ...

    async def update_contact(self, contact_id: str, patch: ContactPatch) -> Contact:
        ...

    async def delete_contact(self, contact_id: str) -> None:
        ...


class ContactStore:
    def __init__(self, backend: ContactsBackend, max_contacts: Optional[int] = None) -> None:
        self._backend = backend
        self._max = max_contacts if max_contacts is not None else get_settings().MAX_CONTACTS
        self._contacts: List[Contact] = []

    @property
    def max_contacts(self) -> int:
        return self._max

    @property
    def contacts(self) -> Tuple[Contact, ...]:
        return tuple(self._contacts)

    @property
    def is_full(self) -> bool:
        return len(self._contacts) >= self._max

    def __len__(self) -> int:
        return len(self._contacts)

    def phone_numbers(self) -> List[str]:
        return [c.phone for c in self._contacts]

    async def list(self) -> Tuple[Contact, ...]:
        """Fetch the full collection. On failure the cache is left as it was."""
        fetched = await self._backend.list_contacts()
        if len(fetched) > self._max:
            logger.warning(
                "Remote returned %d contacts, keeping the first %d",
                len(fetched), self._max,
            )
            fetched = fetched[: self._max]
        self._contacts = list(fetched)
        logger.debug("Loaded %d contacts", len(self._contacts))
        return self.contacts

    async def add(self, draft: ContactDraft) -> Contact:
        if self.is_full:
            raise CapacityExceededError(self._max)
        created = await self._backend.create_contact(draft)
        # Another add may have filled the list while this one was in flight.
        if self.is_full:
            logger.warning("Contact %s created remotely after cap was reached", created.id)
            try:
                await self._backend.delete_contact(created.id)
            except RakshaError as e:
                logger.error(
                    "Could not delete over-cap contact %s; next list() truncates it: %s",
                    created.id, e,
                )
            raise CapacityExceededError(self._max)
        self._contacts.append(created)
        logger.info("Contact %s added (%d/%d)", created.id, len(self._contacts), self._max)
        return created

    async def edit(self, contact_id: str, patch: ContactPatch) -> Contact:
        updated = await self._backend.update_contact(contact_id, patch)
        self._contacts = [updated if c.id == contact_id else c for c in self._contacts]
        return updated

    async def remove(self, contact_id: str) -> None:
        await self._backend.delete_contact(contact_id)
        self._contacts = [c for c in self._contacts if c.id != contact_id]
        logger.info("Contact %s removed", contact_id)
