"""
Structured logging configuration.

Provides:
    • JSON lines in production, one short line per record otherwise
    • Alert-scoped context: while a dispatch runs, every record carries
      its alert_id

The engine only logs through ``logging.getLogger(__name__)``; the host
process calls ``setup_logging()`` once at startup.
"""

from __future__ import annotations

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from rakshasos.core.config import Settings, get_settings

_alert_context: ContextVar[Dict[str, Any]] = ContextVar("alert_context", default={})

# ``extra=`` keys the engine attaches to its records
EXTRA_FIELDS = (
    "lat", "lon", "alert_id", "recipient_count",
    "channel", "status", "network_status", "duration_ms",
)


def set_alert_context(**kwargs: Any) -> None:
    _alert_context.set(kwargs)


def clear_alert_context() -> None:
    _alert_context.set({})


def get_alert_context() -> Dict[str, Any]:
    return _alert_context.get()


class JSONFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        ctx = get_alert_context()
        if ctx:
            entry["context"] = ctx
        entry.update(
            (key, getattr(record, key)) for key in EXTRA_FIELDS if hasattr(record, key)
        )
        if record.exc_info and record.exc_info[1]:
            entry["exception"] = repr(record.exc_info[1])
        return json.dumps(entry, default=str, ensure_ascii=False)


class PrettyFormatter(logging.Formatter):
    """``12:00:01 WARNING  [SOS-1A2B3C4D5E6F] rakshasos.alerts: ...``"""

    def __init__(self) -> None:
        super().__init__(
            "%(asctime)s %(levelname)-8s%(alert_tag)s %(name)s: %(message)s",
            datefmt="%H:%M:%S",
        )

    def format(self, record: logging.LogRecord) -> str:
        alert_id = get_alert_context().get("alert_id")
        record.alert_tag = f" [{alert_id}]" if alert_id else ""
        return super().format(record)


def setup_logging(config: Optional[Settings] = None) -> None:
    """Install a stdout handler on the root logger (replaces existing ones)."""
    config = config or get_settings()
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter() if config.is_production else PrettyFormatter())

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(getattr(logging, config.LOG_LEVEL.upper(), logging.INFO))

    for noisy in ("httpx", "httpcore"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
