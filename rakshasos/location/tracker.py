"""
tracker.py — Last-known-position acquisition and caching.

The tracker owns the LocationStatus state machine and is the only writer of
the persisted sample. It never raises outward: every failure degrades to a
status the UI can render.

═══════════════════════════════════════════════════════════════════════════
LIFECYCLE
═══════════════════════════════════════════════════════════════════════════

    start()
      ├── load_last()            persisted sample? → USING_LAST
      └── request_permission()
            ├── granted → refresh()
            └── denied  → UNAVAILABLE

    refresh()
      LOADING → live fix (BALANCED)
        ok     → READY, persist sample (overwrite)
        failed → persisted sample? USING_LAST : UNAVAILABLE

Nothing is retried automatically; callers invoke refresh() (pull-to-refresh,
periodic UI affordance).

A refresh() issued while another is running joins the running one, so two
overlapping fixes can never race to overwrite each other.

When the status is UNAVAILABLE, last_error holds a PermissionDeniedError or
LocationUnreachableError describing why.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, List, Optional, Protocol, Tuple

from rakshasos.core.config import get_settings
from rakshasos.core.errors import (
    LocationUnreachableError,
    PermissionDeniedError,
    RakshaError,
)
from rakshasos.core.storage import KeyValueStore, load_json, save_json
from rakshasos.models import LocationAccuracy, LocationSample, LocationStatus

logger = logging.getLogger(__name__)

LocationListener = Callable[[LocationStatus, Optional[LocationSample]], None]


class LocationProvider(Protocol):
    """OS location capability."""

    async def request_permission(self) -> bool:
        ...

    async def get_current_position(self, accuracy: LocationAccuracy) -> LocationSample:
        ...


class LocationTracker:
    """Owns the current LocationSample and LocationStatus."""

    def __init__(
        self,
        provider: LocationProvider,
        storage: KeyValueStore,
        *,
        storage_key: Optional[str] = None,
        accuracy: LocationAccuracy = LocationAccuracy.BALANCED,
    ) -> None:
        self._provider = provider
        self._storage = storage
        self._storage_key = storage_key or get_settings().LOCATION_STORAGE_KEY
        self._accuracy = accuracy
        self._status = LocationStatus.LOADING
        self._sample: Optional[LocationSample] = None
        self._is_loading = True
        self._inflight: Optional[asyncio.Task] = None
        self._listeners: List[LocationListener] = []
        # Why the tracker is UNAVAILABLE; None otherwise.
        self.last_error: Optional[RakshaError] = None

    # ── Observable state ──

    @property
    def status(self) -> LocationStatus:
        return self._status

    @property
    def sample(self) -> Optional[LocationSample]:
        return self._sample

    @property
    def is_loading(self) -> bool:
        """True until the persisted sample has been looked up at start."""
        return self._is_loading

    def snapshot(self) -> Tuple[LocationStatus, Optional[LocationSample]]:
        return self._status, self._sample

    def subscribe(self, listener: LocationListener) -> Callable[[], None]:
        """Register a listener for every transition; returns an unsubscriber."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _transition(self, status: LocationStatus, sample: Optional[LocationSample]) -> None:
        if status in (LocationStatus.READY, LocationStatus.USING_LAST) and sample is None:
            raise ValueError(f"{status.value} requires a location sample")
        self._status = status
        self._sample = sample
        logger.debug("Location status → %s", status.value, extra={"status": status.value})
        for listener in list(self._listeners):
            try:
                listener(status, sample)
            except Exception as e:
                logger.error("Location listener failed: %s", e)

    # ── Persistence ──

    async def _read_persisted(self) -> Optional[LocationSample]:
        try:
            data = await load_json(self._storage, self._storage_key)
        except Exception as e:
            logger.warning("Error reading persisted location: %s", e)
            return None
        if data is None:
            return None
        try:
            return LocationSample.from_dict(data)
        except ValueError as e:
            logger.warning("Ignoring persisted location: %s", e)
            return None

    async def load_last(self) -> Optional[LocationSample]:
        """Eagerly restore the persisted sample so nothing waits on a live fix."""
        try:
            last = await self._read_persisted()
            # A live fix may have landed while storage was being read.
            if last is not None and self._status not in (
                LocationStatus.READY, LocationStatus.USING_LAST,
            ):
                self._transition(LocationStatus.USING_LAST, last)
            return last
        finally:
            self._is_loading = False

    # ── Operations ──

    async def start(self) -> LocationStatus:
        """Process-start sequence: restore the cached sample, then try live."""
        await self.load_last()
        await self.request_permission()
        return self._status

    async def request_permission(self) -> bool:
        try:
            granted = await self._provider.request_permission()
        except Exception as e:
            logger.error("Error requesting location permission: %s", e)
            granted = False

        if granted:
            await self.refresh()
        else:
            logger.info("Location permission denied")
            self.last_error = PermissionDeniedError()
            self._transition(LocationStatus.UNAVAILABLE, self._sample)
        return granted

    async def refresh(self) -> LocationStatus:
        """Try a live fix; joins an in-flight refresh instead of racing it."""
        if self._inflight is not None and not self._inflight.done():
            return await asyncio.shield(self._inflight)

        self._inflight = asyncio.ensure_future(self._refresh_once())
        try:
            return await asyncio.shield(self._inflight)
        finally:
            if self._inflight is not None and self._inflight.done():
                self._inflight = None

    async def _refresh_once(self) -> LocationStatus:
        self._transition(LocationStatus.LOADING, self._sample)
        try:
            sample = await self._provider.get_current_position(self._accuracy)
        except Exception as e:
            logger.warning("Live location fix failed: %s", e)
            last = await self._read_persisted()
            if last is not None:
                self.last_error = None
                self._transition(LocationStatus.USING_LAST, last)
            else:
                self.last_error = (
                    PermissionDeniedError("Location permission revoked")
                    if isinstance(e, PermissionError)
                    else LocationUnreachableError()
                )
                self._transition(LocationStatus.UNAVAILABLE, None)
            return self._status

        self.last_error = None
        self._transition(LocationStatus.READY, sample)
        logger.info(
            "Location fix acquired",
            extra={"lat": sample.latitude, "lon": sample.longitude},
        )
        try:
            saved = await save_json(self._storage, self._storage_key, sample.to_dict())
        except Exception as e:
            logger.warning("Error persisting location fix: %s", e)
            saved = False
        if not saved:
            logger.warning("Could not persist location fix")
        return self._status
