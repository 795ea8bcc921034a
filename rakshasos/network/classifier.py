"""
classifier.py — Map raw connectivity signals to a reachability state.

    is_connected   is_internet_reachable   →  NetworkStatus
    ────────────   ─────────────────────      ─────────────
    True           True                       ONLINE
    True           False / unknown (None)     SMS_ONLY
    False / None   anything                   OFFLINE

The status is informational only. Dispatch is never gated on it: SMS can
still go out when the data path is down.
"""

from __future__ import annotations

import logging
from typing import Callable, List, Optional

from rakshasos.models import NetworkStatus

logger = logging.getLogger(__name__)

NetworkListener = Callable[[NetworkStatus], None]


def classify(
    is_connected: Optional[bool],
    is_internet_reachable: Optional[bool],
) -> NetworkStatus:
    """Pure classification of one connectivity signal."""
    if not is_connected:
        return NetworkStatus.OFFLINE
    if is_internet_reachable is True:
        return NetworkStatus.ONLINE
    return NetworkStatus.SMS_ONLY


class NetworkMonitor:
    """Holds the latest classified status and fans out changes."""

    def __init__(self, initial: NetworkStatus = NetworkStatus.ONLINE) -> None:
        self._status = initial
        self._listeners: List[NetworkListener] = []

    @property
    def status(self) -> NetworkStatus:
        return self._status

    def subscribe(self, listener: NetworkListener) -> Callable[[], None]:
        """Register a listener; returns a callable that removes it."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def on_signal(
        self,
        is_connected: Optional[bool],
        is_internet_reachable: Optional[bool],
    ) -> NetworkStatus:
        """Recompute from a platform signal. No debouncing."""
        status = classify(is_connected, is_internet_reachable)
        if status != self._status:
            logger.info(
                "Network status %s → %s",
                self._status.value, status.value,
                extra={"network_status": status.value},
            )
            self._status = status
            for listener in list(self._listeners):
                try:
                    listener(status)
                except Exception as e:
                    logger.error("Network listener failed: %s", e)
        return status
