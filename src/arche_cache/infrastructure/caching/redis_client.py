# src/arche_cache/infrastructure/caching/redis_client.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Async Redis client factory.

The client is created from Settings and handed explicitly to the stores that
use it; there is no module-level singleton.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager, suppress
from datetime import timedelta
from typing import TYPE_CHECKING, Any, Protocol, TypeAlias, cast, runtime_checkable

import redis.asyncio as aioredis

# -----------------------------------------------------------------------------
# Typed alias for the concrete Redis client.
# Some redis stubs make Redis generic (e.g., Redis[bytes]).
# -----------------------------------------------------------------------------
if TYPE_CHECKING:
    from redis.asyncio.client import Redis as _RedisGeneric

    AioredisRedis: TypeAlias = _RedisGeneric[bytes]
else:
    from redis.asyncio.client import Redis as AioredisRedis  # type: ignore[assignment]

from arche_cache.config.settings import Settings

__all__ = [
    "RedisClient",
    "create_redis_client",
    "close_redis_client",
    "redis_client_lifespan",
]


@runtime_checkable
class RedisClient(Protocol):
    """Minimal async Redis protocol used by the cache store."""

    async def ping(self) -> Any: ...
    async def aclose(self) -> None: ...

    async def get(self, key: str) -> Any: ...
    async def set(
        self,
        key: str,
        value: Any,
        *,
        ex: int | timedelta | None = None,
        px: int | timedelta | None = None,
        nx: bool = False,
        xx: bool = False,
    ) -> Any: ...
    async def delete(self, *keys: str) -> Any: ...


def _create_aioredis_client(url: str, settings: Settings) -> AioredisRedis:
    """Build the concrete asyncio Redis client from URL."""
    # Untyped shim so mypy won't care whether redis stubs type `from_url`.
    _from_url: Any = aioredis.from_url
    client = _from_url(
        url=url,
        decode_responses=False,
        health_check_interval=settings.redis_health_check_interval_s,
        socket_timeout=settings.redis_socket_timeout_s,
        socket_connect_timeout=settings.redis_socket_connect_timeout_s,
    )
    return cast(AioredisRedis, client)


def create_redis_client(settings: Settings) -> RedisClient:
    """Create an async Redis client returning raw ``bytes`` responses.

    Args:
        settings: Resolved settings carrying URL and timeouts.

    Returns:
        A new client. The caller owns it and must close it.
    """
    return cast(RedisClient, _create_aioredis_client(settings.redis_url, settings))


async def close_redis_client(client: RedisClient) -> None:
    """Close a client created by :func:`create_redis_client`."""
    with suppress(RuntimeError):
        await client.aclose()


@asynccontextmanager
async def redis_client_lifespan(settings: Settings) -> AsyncGenerator[RedisClient, None]:
    """Yield a Redis client and close it on exit."""
    client = create_redis_client(settings)
    try:
        yield client
    finally:
        await close_redis_client(client)
