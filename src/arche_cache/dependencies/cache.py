# src/arche_cache/dependencies/cache.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Read-through cache wiring.

Builds :class:`ReadThroughCache` instances from Settings, choosing the
default observer (JSON logging, plus Prometheus when enabled) and the Redis
store from a bootstrap state. Explicit keyword arguments always win over
settings.
"""

from __future__ import annotations

from datetime import timedelta
from typing import TypeVar

from arche_cache.application.interfaces.cache_observer import (
    CacheObserver,
    CompositeCacheObserver,
)
from arche_cache.application.interfaces.codec import Codec
from arche_cache.application.interfaces.data_provider import DataProvider
from arche_cache.application.interfaces.key_value_store import KeyValueStore
from arche_cache.application.services.read_through_cache import ReadThroughCache
from arche_cache.config.settings import Settings, get_settings
from arche_cache.dependencies.core.bootstrap import BootstrapState
from arche_cache.infrastructure.caching.redis_store import RedisKeyValueStore
from arche_cache.infrastructure.observability.cache_observers import (
    LoggingCacheObserver,
    PrometheusCacheObserver,
)

__all__ = ["default_observer", "build_read_through_cache", "build_redis_cache"]

T = TypeVar("T")


def default_observer(settings: Settings, *, namespace: str | None = None) -> CacheObserver:
    """Return the logging (+ metrics) observer configured by ``settings``."""
    ns = settings.cache_namespace if namespace is None else namespace
    observers: list[CacheObserver] = [LoggingCacheObserver(namespace=ns)]
    if settings.cache_metrics_enabled:
        observers.append(PrometheusCacheObserver(namespace=ns))
    return CompositeCacheObserver(*observers)


def build_read_through_cache(
    provider: DataProvider[T],
    codec: Codec[T],
    *,
    store: KeyValueStore,
    settings: Settings | None = None,
    ttl: timedelta | float | None = None,
    namespace: str | None = None,
    observer: CacheObserver | None = None,
    default_timeout: float | None = None,
) -> ReadThroughCache[T]:
    """Build a read-through cache.

    Args:
        provider: Authoritative data source for misses.
        codec: Value serializer.
        store: Backing key-value store.
        settings: Settings; defaults to :func:`get_settings`.
        ttl: Overrides ``settings.ttl``.
        namespace: Overrides ``settings.cache_namespace``.
        observer: Overrides the default logging/metrics observer.
        default_timeout: Overrides ``settings.cache_get_timeout_s``.

    Returns:
        Configured cache.

    Raises:
        CacheConfigError: If the resulting configuration is invalid.
    """
    s = settings or get_settings()
    ns = s.cache_namespace if namespace is None else namespace
    return ReadThroughCache(
        store=store,
        codec=codec,
        provider=provider,
        ttl=s.ttl if ttl is None else ttl,
        namespace=ns,
        observer=observer or default_observer(s, namespace=ns),
        default_timeout=s.cache_get_timeout_s if default_timeout is None else default_timeout,
    )


def build_redis_cache(
    state: BootstrapState,
    provider: DataProvider[T],
    codec: Codec[T],
    *,
    ttl: timedelta | float | None = None,
    namespace: str | None = None,
    observer: CacheObserver | None = None,
    default_timeout: float | None = None,
) -> ReadThroughCache[T]:
    """Build a read-through cache over the bootstrap's Redis client."""
    return build_read_through_cache(
        provider,
        codec,
        store=RedisKeyValueStore(state.redis),
        settings=state.settings,
        ttl=ttl,
        namespace=namespace,
        observer=observer,
        default_timeout=default_timeout,
    )
