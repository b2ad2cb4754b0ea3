# src/arche_cache/dependencies/core/bootstrap.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Core bootstrap for cache infrastructure (settings, logging, Redis).

This module owns the lifecycle of the shared Redis client used by cache
stores. Configuration is read from Settings; all heavy lifting is delegated
to the infrastructure modules.

The single public surface is :func:`bootstrap`, an async context manager that
yields a simple state object with the resolved Settings and the Redis client.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from dataclasses import dataclass

from arche_cache.config.settings import Settings, get_settings
from arche_cache.infrastructure.caching import redis_client
from arche_cache.infrastructure.logging.logger import configure_root_logging, get_json_logger

logger = get_json_logger(__name__)


@dataclass
class BootstrapState:
    """State yielded by the bootstrap context manager."""

    settings: Settings
    redis: redis_client.RedisClient


@asynccontextmanager
async def bootstrap(settings: Settings | None = None) -> AsyncGenerator[BootstrapState, None]:
    """Initialize and teardown shared cache infrastructure.

    Responsibilities:
        * Resolve settings (explicit argument wins over the cached singleton).
        * Configure root JSON logging.
        * Create the Redis client and close it on exit, even on error.

    Args:
        settings: Optional pre-built settings.

    Yields:
        BootstrapState: Resolved settings and Redis client.
    """
    resolved = settings or get_settings()
    configure_root_logging(resolved.log_level)
    logger.info("bootstrap.start", extra={"extra": {"environment": resolved.environment.value}})

    client = redis_client.create_redis_client(resolved)
    state = BootstrapState(settings=resolved, redis=client)

    try:
        yield state
    finally:
        try:
            await redis_client.close_redis_client(client)
        except Exception:
            logger.exception("bootstrap.redis_close_failed")
        logger.info("bootstrap.stop")
