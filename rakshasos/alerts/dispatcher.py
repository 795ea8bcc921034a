"""
dispatcher.py — One distress-alert attempt, start to finish.

═══════════════════════════════════════════════════════════════════════════
ORCHESTRATION FLOW
═══════════════════════════════════════════════════════════════════════════

    ┌─────────────────────┐
    │  1. Warning cue     │  unless silent mode
    └─────────┬───────────┘
              ▼
    ┌─────────────────────┐
    │  2. Contacts?       │  none → {False, 0, NO_CONTACTS}, channel untouched
    └─────────┬───────────┘
              ▼
    ┌─────────────────────┐
    │  3. Compose         │  selected category + current sample + language
    └─────────┬───────────┘
              ▼
    ┌─────────────────────┐
    │  4. Channel         │  unavailable → {False, 0, DELIVERY_UNAVAILABLE}
    │     available?      │
    └─────────┬───────────┘
              ▼
    ┌─────────────────────┐
    │  5. Batched send    │  one call, all numbers
    └─────────┬───────────┘
              ▼
    ┌─────────────────────┐
    │  6. Outcome         │  ok    → {True, N} + success cue
    │                     │  raise → {False, 0, DELIVERY_FAILED} + error cue
    └─────────────────────┘

No partial success is modelled: the channel's batch is all-or-nothing.
Network classification is informational and never consulted here; SMS can
succeed while the data path is down.

send_alert() never raises. A call made while another is in flight joins it
and gets the same outcome, so a double tap sends one SMS batch.
"""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from typing import Optional, Protocol

from rakshasos.alerts.channels.sms_gateway import DeliveryChannel
from rakshasos.alerts.cues import Cue, CueSink, NullCueSink
from rakshasos.contacts.store import ContactStore
from rakshasos.core.logging_config import clear_alert_context, set_alert_context
from rakshasos.messaging.composer import compose
from rakshasos.models import AlertFailure, AlertOutcome, LocationSample, UserSettings

logger = logging.getLogger(__name__)


class SettingsSource(Protocol):
    @property
    def current(self) -> UserSettings:
        ...


class LocationSource(Protocol):
    @property
    def sample(self) -> Optional[LocationSample]:
        ...


def _generate_alert_id() -> str:
    return f"SOS-{uuid.uuid4().hex[:12].upper()}"


class AlertDispatcher:
    def __init__(
        self,
        settings: SettingsSource,
        contacts: ContactStore,
        location: LocationSource,
        channel: DeliveryChannel,
        cues: Optional[CueSink] = None,
    ) -> None:
        self._settings = settings
        self._contacts = contacts
        self._location = location
        self._channel = channel
        self._cues = cues or NullCueSink()
        self._inflight: Optional[asyncio.Task] = None
        self.last_outcome: Optional[AlertOutcome] = None

    @property
    def in_flight(self) -> bool:
        return self._inflight is not None and not self._inflight.done()

    async def send_alert(self) -> AlertOutcome:
        if self.in_flight:
            logger.info("Alert already in flight, joining it")
            return await asyncio.shield(self._inflight)

        self._inflight = asyncio.ensure_future(self._dispatch())
        try:
            return await asyncio.shield(self._inflight)
        finally:
            if self._inflight is not None and self._inflight.done():
                self._inflight = None

    async def _cue(self, cue: Cue, silent: bool) -> None:
        if silent:
            return
        try:
            await self._cues.emit(cue)
        except Exception as e:
            logger.warning("Cue %s failed: %s", cue.value, e)

    async def _dispatch(self) -> AlertOutcome:
        alert_id = _generate_alert_id()
        set_alert_context(alert_id=alert_id)
        started = time.monotonic()
        try:
            outcome = await self._run()
        finally:
            clear_alert_context()
        self.last_outcome = outcome
        logger.info(
            "Alert %s finished: delivered=%s recipients=%d",
            alert_id, outcome.delivered, outcome.recipient_count,
            extra={
                "alert_id": alert_id,
                "recipient_count": outcome.recipient_count,
                "duration_ms": round((time.monotonic() - started) * 1000, 1),
            },
        )
        return outcome

    async def _run(self) -> AlertOutcome:
        settings = self._settings.current
        silent = settings.silent_mode

        await self._cue(Cue.WARNING, silent)

        numbers = self._contacts.phone_numbers()
        if not numbers:
            logger.warning("No trusted contacts — nothing to send")
            return AlertOutcome.failed(AlertFailure.NO_CONTACTS)

        message = compose(
            settings.selected_category,
            self._location.sample,
            settings.language,
        )

        try:
            available = await self._channel.is_available()
        except Exception as e:
            logger.error("Availability check on %s failed: %s", self._channel.name, e)
            available = False
        if not available:
            logger.warning("Delivery channel %s unavailable", self._channel.name)
            return AlertOutcome.failed(AlertFailure.DELIVERY_UNAVAILABLE)

        try:
            await self._channel.send(numbers, message)
        except Exception as e:
            logger.error("Error sending SOS via %s: %s", self._channel.name, e)
            await self._cue(Cue.ERROR, silent)
            return AlertOutcome.failed(AlertFailure.DELIVERY_FAILED)

        await self._cue(Cue.SUCCESS, silent)
        return AlertOutcome.success(len(numbers))
