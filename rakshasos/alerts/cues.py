"""
cues.py — Haptic / audible feedback hooks around a dispatch.

The UI collaborator implements CueSink; the engine only says which cue to
play. Cues are side effects and never part of the AlertOutcome.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Protocol

logger = logging.getLogger(__name__)


class Cue(str, Enum):
    WARNING = "warning"   # before dispatch
    SUCCESS = "success"   # delivered
    ERROR   = "error"     # delivery threw


class CueSink(Protocol):
    async def emit(self, cue: Cue) -> None:
        ...


class NullCueSink:
    """Headless default: records nothing, plays nothing."""

    async def emit(self, cue: Cue) -> None:
        logger.debug("Cue %s (no sink attached)", cue.value)
