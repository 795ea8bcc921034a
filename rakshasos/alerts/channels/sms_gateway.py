"""
sms_gateway.py — SMS delivery channel.

Delivery mechanism:
    • is_available() capability check before any send
    • ONE batched send per alert: every recipient number and the message
      go out in a single call, never one call per contact
    • Errors surface as exceptions; the dispatcher turns them into a
      negative AlertOutcome

═══════════════════════════════════════════════════════════════════════════
PROVIDERS
═══════════════════════════════════════════════════════════════════════════

    simulation  Logs the message and reports success (development default).
    http        POST {SMS_GATEWAY_URL}
                {"to": ["+91...", ...], "body": "SOS ALERT! ..."}
                Authorization: Bearer {SMS_API_KEY} (when set)
                Any non-2xx response raises DeliveryFailedError.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Protocol, Sequence

import httpx

from rakshasos.core.config import Settings, get_settings
from rakshasos.core.errors import DeliveryFailedError, DeliveryUnavailableError

logger = logging.getLogger(__name__)

SMS_MAX_GSM7 = 160      # GSM 7-bit single segment
SMS_MAX_UCS2 = 70       # Unicode (UCS-2) single segment


class DeliveryChannel(Protocol):
    """Capability-queried, batch-sending delivery channel."""

    name: str

    async def is_available(self) -> bool:
        ...

    async def send(self, numbers: Sequence[str], message: str) -> None:
        ...


def count_segments(message: str) -> int:
    """Number of SMS segments a message occupies (no concatenation headers)."""
    limit = SMS_MAX_GSM7 if message.isascii() else SMS_MAX_UCS2
    return max(1, 1 + (len(message) - 1) // limit)


class SmsGatewayChannel:
    """DeliveryChannel backed by a configurable SMS provider."""

    name = "sms"

    def __init__(
        self,
        *,
        provider: Optional[str] = None,
        gateway_url: Optional[str] = None,
        api_key: Optional[str] = None,
        config: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        config = config or get_settings()
        self.provider = provider or config.SMS_PROVIDER
        self._gateway_url = gateway_url or config.SMS_GATEWAY_URL
        self._api_key = api_key if api_key is not None else config.SMS_API_KEY
        self._timeout = config.API_TIMEOUT_SECONDS
        self._transport = transport
        self.sent: List[dict] = []

    async def is_available(self) -> bool:
        if self.provider == "simulation":
            return True
        if self.provider == "http":
            return bool(self._gateway_url)
        return False

    async def send(self, numbers: Sequence[str], message: str) -> None:
        if not await self.is_available():
            raise DeliveryUnavailableError(self.name)

        segments = count_segments(message)
        if self.provider == "simulation":
            logger.info(
                "[SMS] %d recipient(s), %d chars, %d segment(s) → '%s'",
                len(numbers), len(message), segments,
                message[:80] + ("..." if len(message) > 80 else ""),
                extra={"recipient_count": len(numbers), "channel": self.name},
            )
            self.sent.append({"to": list(numbers), "body": message})
            return

        headers = {}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport,
            ) as client:
                response = await client.post(
                    self._gateway_url,
                    json={"to": list(numbers), "body": message},
                    headers=headers,
                )
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise DeliveryFailedError(self.name, f"HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise DeliveryFailedError(self.name, str(e) or type(e).__name__) from e

        logger.info(
            "[SMS/http] Sent to %d recipient(s) in %d segment(s)",
            len(numbers), segments,
            extra={"recipient_count": len(numbers), "channel": self.name},
        )
