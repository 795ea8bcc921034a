"""
settings_manager.py — Optimistic, partial settings updates.

update(**changes):
    1. validate the change set (unknown field → ValueError, nothing changes)
    2. apply it locally at once (the UI sees the new value immediately)
    3. PATCH /api/user/settings with only the changed fields

A failed PATCH is logged and NOT rolled back, so local and remote settings
can diverge until the next successful update. sync_state records which side
of that line the session is on.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Dict, Optional, Protocol

from pydantic import ValidationError

from rakshasos.core.errors import RakshaError
from rakshasos.models import UserSettings

logger = logging.getLogger(__name__)


class SettingsBackend(Protocol):
    async def patch_settings(self, changes: Dict[str, Any]) -> Any:
        ...


class SyncState(str, Enum):
    CONFIRMED = "confirmed"   # local matches last successful remote write
    PENDING   = "pending"     # remote write in flight
    FAILED    = "failed"      # last remote write failed; local is ahead


class SettingsManager:
    def __init__(
        self,
        backend: SettingsBackend,
        initial: Optional[UserSettings] = None,
    ) -> None:
        self._backend = backend
        self._settings = initial or UserSettings()
        self._sync_state = SyncState.CONFIRMED
        self._last_error: Optional[Exception] = None

    @property
    def current(self) -> UserSettings:
        return self._settings

    @property
    def sync_state(self) -> SyncState:
        return self._sync_state

    @property
    def last_error(self) -> Optional[Exception]:
        return self._last_error

    def replace(self, settings: UserSettings) -> None:
        """Adopt settings loaded from the remote profile (already confirmed)."""
        self._settings = settings
        self._sync_state = SyncState.CONFIRMED
        self._last_error = None

    async def update(self, **changes: Any) -> UserSettings:
        unknown = set(changes) - set(UserSettings.model_fields)
        if unknown:
            raise ValueError(f"Unknown settings: {', '.join(sorted(unknown))}")
        if not changes:
            return self._settings

        merged = {**self._settings.model_dump(), **changes}
        try:
            updated = UserSettings.model_validate(merged)
        except ValidationError as e:
            raise ValueError(f"Invalid settings update: {e}") from e

        self._settings = updated
        self._sync_state = SyncState.PENDING
        payload = updated.to_wire(set(changes))
        try:
            await self._backend.patch_settings(payload)
        except (RakshaError, OSError) as e:
            logger.error("Error updating settings: %s", e)
            self._sync_state = SyncState.FAILED
            self._last_error = e
            return self._settings

        # A newer update may have been applied while this one was in flight.
        if self._settings is updated:
            self._sync_state = SyncState.CONFIRMED
            self._last_error = None
        return self._settings
