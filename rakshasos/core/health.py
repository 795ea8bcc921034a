"""
Status aggregation — one snapshot of every engine component for the UI.

Checks:
    • Location (fresh fix / stale fallback / nothing)
    • Network reachability (informational)
    • Trusted contacts (none / some / full)
    • Settings sync with the remote service

Overall status is the worst component status.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List

from rakshasos.models import LocationStatus, NetworkStatus
from rakshasos.settings_manager import SyncState


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    DEGRADED = "degraded"  # partial functionality
    UNHEALTHY = "unhealthy"


_SEVERITY = {HealthStatus.HEALTHY: 0, HealthStatus.DEGRADED: 1, HealthStatus.UNHEALTHY: 2}


@dataclass
class ComponentHealth:
    name: str
    status: HealthStatus = HealthStatus.HEALTHY
    message: str = ""
    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "name": self.name,
            "status": self.status.value,
        }
        if self.message:
            d["message"] = self.message
        if self.details:
            d["details"] = self.details
        return d


@dataclass
class HealthReport:
    status: HealthStatus = HealthStatus.HEALTHY
    timestamp: str = ""
    components: List[ComponentHealth] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "timestamp": self.timestamp or datetime.now(timezone.utc).isoformat(),
            "components": [c.to_dict() for c in self.components],
        }


def _check_location(tracker) -> ComponentHealth:
    status = tracker.status
    sample = tracker.sample
    details: Dict[str, Any] = {"location_status": status.value}
    if sample is not None:
        details["captured_at_ms"] = sample.captured_at_ms

    if status == LocationStatus.READY:
        return ComponentHealth("location", HealthStatus.HEALTHY, details=details)
    if status in (LocationStatus.USING_LAST, LocationStatus.LOADING):
        return ComponentHealth(
            "location", HealthStatus.DEGRADED,
            message="Using last known location" if sample else "Acquiring location",
            details=details,
        )
    error = tracker.last_error
    reason = "Location unavailable"
    if error is not None:
        reason = error.message
        details["error_code"] = error.error_code
    return ComponentHealth(
        "location", HealthStatus.DEGRADED,
        message=f"{reason} — alerts will be sent without coordinates",
        details=details,
    )


def _check_network(monitor) -> ComponentHealth:
    status = monitor.status
    if status == NetworkStatus.ONLINE:
        return ComponentHealth("network", HealthStatus.HEALTHY, details={"network_status": status.value})
    # Offline data does not block SMS, so never worse than degraded.
    return ComponentHealth(
        "network", HealthStatus.DEGRADED,
        message="SMS only" if status == NetworkStatus.SMS_ONLY else "Offline",
        details={"network_status": status.value},
    )


def _check_contacts(store) -> ComponentHealth:
    count = len(store)
    details = {"count": count, "max": store.max_contacts}
    if count == 0:
        return ComponentHealth(
            "contacts", HealthStatus.UNHEALTHY,
            message="No trusted contacts — alerts cannot be delivered",
            details=details,
        )
    return ComponentHealth("contacts", HealthStatus.HEALTHY, details=details)


def _check_settings(manager) -> ComponentHealth:
    state = manager.sync_state
    if state == SyncState.FAILED:
        return ComponentHealth(
            "settings", HealthStatus.DEGRADED,
            message=f"Settings not saved remotely: {manager.last_error}",
            details={"sync_state": state.value},
        )
    return ComponentHealth("settings", HealthStatus.HEALTHY, details={"sync_state": state.value})


def build_status_report(session) -> HealthReport:
    """Aggregate component health for an EmergencySession."""
    components = [
        _check_location(session.location),
        _check_network(session.network),
        _check_contacts(session.contacts),
        _check_settings(session.settings),
    ]
    worst = max(components, key=lambda c: _SEVERITY[c.status]).status
    return HealthReport(
        status=worst,
        timestamp=datetime.now(timezone.utc).isoformat(),
        components=components,
    )
