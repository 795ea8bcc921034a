"""
session.py — Explicit per-user engine context.

Everything the presentation layer needs is reachable from one
EmergencySession, built by constructor injection. No module-level state.

    session = EmergencySession.create(
        provider=os_location,
        storage=RedisKeyValueStore(),
        channel=SmsGatewayChannel(),
        cookies={"connect.sid": "..."},
        profile=user_profile,
    )
    await session.start()
    outcome = await session.send_alert()
    await session.close()
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Mapping, Optional

from rakshasos.alerts.channels.sms_gateway import DeliveryChannel
from rakshasos.alerts.cues import CueSink
from rakshasos.alerts.dispatcher import AlertDispatcher
from rakshasos.api.client import RakshaApiClient
from rakshasos.contacts.store import ContactStore
from rakshasos.core.config import Settings, get_settings
from rakshasos.core.errors import RakshaError
from rakshasos.core.health import HealthReport, build_status_report
from rakshasos.core.storage import KeyValueStore
from rakshasos.location.tracker import LocationProvider, LocationTracker
from rakshasos.models import AlertOutcome, UserSettings
from rakshasos.network.classifier import NetworkMonitor
from rakshasos.settings_manager import SettingsManager

logger = logging.getLogger(__name__)


class EmergencySession:
    def __init__(
        self,
        *,
        settings: SettingsManager,
        contacts: ContactStore,
        location: LocationTracker,
        network: NetworkMonitor,
        dispatcher: AlertDispatcher,
        api: Optional[RakshaApiClient] = None,
    ) -> None:
        self.settings = settings
        self.contacts = contacts
        self.location = location
        self.network = network
        self.dispatcher = dispatcher
        self._api = api

    @classmethod
    def create(
        cls,
        *,
        provider: LocationProvider,
        storage: KeyValueStore,
        channel: DeliveryChannel,
        cookies: Optional[Mapping[str, str]] = None,
        profile: Optional[Mapping[str, Any]] = None,
        cues: Optional[CueSink] = None,
        config: Optional[Settings] = None,
        api: Optional[RakshaApiClient] = None,
    ) -> "EmergencySession":
        config = config or get_settings()
        api = api or RakshaApiClient(cookies=cookies, config=config)
        settings = SettingsManager(
            api, UserSettings.from_profile(profile, config.DEFAULT_LANGUAGE),
        )
        contacts = ContactStore(api, max_contacts=config.MAX_CONTACTS)
        location = LocationTracker(
            provider, storage, storage_key=config.LOCATION_STORAGE_KEY,
        )
        dispatcher = AlertDispatcher(settings, contacts, location, channel, cues)
        return cls(
            settings=settings,
            contacts=contacts,
            location=location,
            network=NetworkMonitor(),
            dispatcher=dispatcher,
            api=api,
        )

    async def start(self) -> None:
        """
        Restore cached location and try a live fix while contacts load.

        The two run side by side, so an alert sent during a slow fix still
        reaches the contacts.
        """
        await asyncio.gather(self.location.start(), self._load_contacts())

    async def _load_contacts(self) -> None:
        try:
            await self.contacts.list()
        except RakshaError as e:
            logger.error("Error loading contacts: %s", e)

    async def send_alert(self) -> AlertOutcome:
        return await self.dispatcher.send_alert()

    def status_report(self) -> HealthReport:
        return build_status_report(self)

    async def close(self) -> None:
        if self._api is not None:
            await self._api.close()
