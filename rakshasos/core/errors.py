"""
Centralised error handling — exception hierarchy for the alert engine.

Provides:
    • Domain-specific exception classes
    • Consistent dict error format the UI can render directly

Propagation policy:
    • LocationTracker and AlertDispatcher never raise outward; they encode
      failure into LocationStatus / AlertOutcome.
    • ContactStore raises these typed errors so callers can tell
      "nothing changed" from "capacity exceeded".

Usage:
    from rakshasos.core.errors import CapacityExceededError

    raise CapacityExceededError(limit=10)
"""

from __future__ import annotations

from typing import Any, Dict, Optional


# ═══════════════════════════════════════════════════════════════════════════
# Exception Hierarchy
# ═══════════════════════════════════════════════════════════════════════════

class RakshaError(Exception):
    """Base exception for all engine errors."""

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        *,
        error_code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "code": self.error_code,
            "message": self.message,
        }
        if self.details:
            body["details"] = self.details
        return {"error": body}


class PermissionDeniedError(RakshaError):
    """Location permission was not granted."""

    def __init__(self, message: str = "Location permission denied"):
        super().__init__(message, error_code="PERMISSION_DENIED")


class LocationUnreachableError(RakshaError):
    """No live fix could be obtained and no cached sample exists."""

    def __init__(self, message: str = "Location unavailable"):
        super().__init__(message, error_code="LOCATION_UNREACHABLE")


class CapacityExceededError(RakshaError):
    """Contact list already holds the maximum number of entries."""

    def __init__(self, limit: int):
        super().__init__(
            message=f"Maximum {limit} contacts allowed",
            error_code="CAPACITY_EXCEEDED",
            details={"limit": limit},
        )
        self.limit = limit


class TransientNetworkError(RakshaError):
    """Remote call failed in a way that may succeed later; cache preserved."""

    def __init__(self, operation: str, message: str = "", **details: Any):
        super().__init__(
            message=f"Remote call '{operation}' failed: {message}",
            error_code="TRANSIENT_NETWORK_ERROR",
            details={"operation": operation, **details},
        )
        self.operation = operation


class NotFoundError(RakshaError):
    """Resource not found on the remote service."""

    def __init__(self, resource: str, **identifiers: Any):
        super().__init__(
            message=f"{resource} not found",
            error_code="NOT_FOUND",
            details={"resource": resource, **identifiers},
        )


class RemoteServiceError(RakshaError):
    """Remote service rejected the request (4xx other than 404)."""

    def __init__(self, operation: str, status_code: int, message: str = ""):
        super().__init__(
            message=f"Remote call '{operation}' rejected ({status_code}): {message}",
            error_code="REMOTE_SERVICE_ERROR",
            details={"operation": operation, "status_code": status_code},
        )
        self.status_code = status_code


class DeliveryUnavailableError(RakshaError):
    """Delivery channel is not present on this device."""

    def __init__(self, channel: str):
        super().__init__(
            message=f"Delivery channel '{channel}' unavailable",
            error_code="DELIVERY_UNAVAILABLE",
            details={"channel": channel},
        )


class DeliveryFailedError(RakshaError):
    """Delivery channel call raised or was rejected."""

    def __init__(self, channel: str, message: str = ""):
        super().__init__(
            message=f"Delivery via '{channel}' failed: {message}",
            error_code="DELIVERY_FAILED",
            details={"channel": channel},
        )
