# src/arche_cache/infrastructure/caching/redis_store.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Redis-backed key-value store.

Synopsis:
    Thin adapter implementing the application ``KeyValueStore`` port on top of
    an explicitly injected async Redis client. Expiry is delegated to Redis:
    every write is ``SET key value PX <ttl_ms>``.

Design:
    * One Redis command per call; no retries.
    * ``redis.exceptions.RedisError`` and ``OSError`` are translated to
      ``StoreUnavailable``.
    * Values are raw bytes; the client must not decode responses.

Layer:
    infrastructure/caching

See Also:
    - arche_cache.infrastructure.caching.redis_client
    - arche_cache.application.interfaces.key_value_store.KeyValueStore
"""

from __future__ import annotations

import math
from datetime import timedelta

from redis.exceptions import RedisError

from arche_cache.domain.exceptions import StoreUnavailable
from arche_cache.infrastructure.caching.redis_client import RedisClient

__all__ = ["RedisKeyValueStore"]


def _ttl_ms(ttl: timedelta) -> int:
    """Return the TTL in whole milliseconds, never below 1."""
    return max(1, math.ceil(ttl.total_seconds() * 1000))


class RedisKeyValueStore:
    """Redis implementation of the ``KeyValueStore`` port."""

    def __init__(self, client: RedisClient) -> None:
        """Initialize the store.

        Args:
            client: Shared async Redis client (bytes responses).
        """
        self._client = client

    async def get(self, key: str) -> bytes | None:
        try:
            raw = await self._client.get(key)
        except (RedisError, OSError) as exc:
            raise StoreUnavailable(
                f"Redis GET failed: {exc}", details={"key": key, "command": "GET"}
            ) from exc
        if raw is None:
            return None
        # Tolerate clients configured with decode_responses=True.
        return raw.encode("utf-8") if isinstance(raw, str) else bytes(raw)

    async def set(self, key: str, data: bytes, ttl: timedelta) -> None:
        try:
            await self._client.set(key, data, px=_ttl_ms(ttl))
        except (RedisError, OSError) as exc:
            raise StoreUnavailable(
                f"Redis SET failed: {exc}", details={"key": key, "command": "SET"}
            ) from exc

    async def delete(self, key: str) -> None:
        try:
            await self._client.delete(key)
        except (RedisError, OSError) as exc:
            raise StoreUnavailable(
                f"Redis DEL failed: {exc}", details={"key": key, "command": "DEL"}
            ) from exc
