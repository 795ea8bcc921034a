"""
Durable key-value storage — async Redis client behind a small protocol.

Provides:
    • KeyValueStore protocol the engine depends on
    • Redis-backed implementation with a lazily created client
    • JSON helpers used to persist the last known location

Storage errors never escape: reads degrade to a miss and writes report
False, so a broken store can only make the engine forget, never crash.

Usage:
    from rakshasos.core.storage import RedisKeyValueStore, load_json, save_json

    store = RedisKeyValueStore()
    await save_json(store, "rakshasos:last_location", {"latitude": 18.52})
    cached = await load_json(store, "rakshasos:last_location")
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional, Protocol

from rakshasos.core.config import get_settings

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    """String key → string value store with async access."""

    async def get(self, key: str) -> Optional[str]:
        ...

    async def set(self, key: str, value: str) -> bool:
        ...

    async def delete(self, key: str) -> bool:
        ...


class RedisKeyValueStore:
    """KeyValueStore backed by redis.asyncio. Values never expire."""

    def __init__(self, url: Optional[str] = None, client: Any = None) -> None:
        self._url = url or get_settings().REDIS_URL
        self._client = client

    async def _get_client(self):
        """Get or create async Redis client."""
        if self._client is None:
            try:
                import redis.asyncio as aioredis
                self._client = aioredis.from_url(
                    self._url,
                    encoding="utf-8",
                    decode_responses=True,
                )
                logger.info("Redis connected: %s", self._url)
            except Exception as e:
                logger.warning("Redis unavailable: %s — durable storage disabled", e)
                return None
        return self._client

    async def get(self, key: str) -> Optional[str]:
        """Get a stored value. Returns None on miss or error."""
        client = await self._get_client()
        if not client:
            return None
        try:
            return await client.get(key)
        except Exception as e:
            logger.warning("Storage GET error for %s: %s", key, e)
            return None

    async def set(self, key: str, value: str) -> bool:
        """Overwrite a stored value."""
        client = await self._get_client()
        if not client:
            return False
        try:
            await client.set(key, value)
            return True
        except Exception as e:
            logger.warning("Storage SET error for %s: %s", key, e)
            return False

    async def delete(self, key: str) -> bool:
        client = await self._get_client()
        if not client:
            return False
        try:
            await client.delete(key)
            return True
        except Exception as e:
            logger.warning("Storage DELETE error for %s: %s", key, e)
            return False

    async def close(self) -> None:
        """Close Redis connection."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            logger.info("Redis connection closed")


async def load_json(store: KeyValueStore, key: str) -> Optional[Any]:
    """Read and decode a JSON value. Corrupt values count as a miss."""
    raw = await store.get(key)
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except (TypeError, ValueError) as e:
        logger.warning("Discarding corrupt value under %s: %s", key, e)
        return None


async def save_json(store: KeyValueStore, key: str, value: Any) -> bool:
    """Encode and store a JSON value, overwriting any prior value."""
    return await store.set(key, json.dumps(value, default=str))
