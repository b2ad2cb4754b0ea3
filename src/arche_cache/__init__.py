"""Arche read-through cache.

Typical usage:
    async with bootstrap() as state:
        cache = build_redis_cache(state, provider, PydanticCodec(UserProfile))
        profile = await cache.get("user:42")
"""

from __future__ import annotations

from arche_cache.application.interfaces.cache_observer import (
    CacheObserver,
    CompositeCacheObserver,
    NullCacheObserver,
)
from arche_cache.application.interfaces.codec import Codec
from arche_cache.application.interfaces.data_provider import CallableDataProvider, DataProvider
from arche_cache.application.interfaces.key_value_store import KeyValueStore
from arche_cache.application.services.read_through_cache import ReadThroughCache
from arche_cache.dependencies.cache import build_read_through_cache, build_redis_cache
from arche_cache.dependencies.core.bootstrap import BootstrapState, bootstrap
from arche_cache.domain.exceptions import (
    CacheConfigError,
    CacheError,
    DecodeFailed,
    EncodeFailed,
    InvalidCacheKey,
    ProviderFailed,
    StoreUnavailable,
    ValueNotFound,
)
from arche_cache.infrastructure.caching.codecs import JsonCodec, PydanticCodec
from arche_cache.infrastructure.caching.memory_store import InMemoryKeyValueStore
from arche_cache.infrastructure.caching.redis_store import RedisKeyValueStore

__all__ = [
    "BootstrapState",
    "CacheConfigError",
    "CacheError",
    "CacheObserver",
    "CallableDataProvider",
    "Codec",
    "CompositeCacheObserver",
    "DataProvider",
    "DecodeFailed",
    "EncodeFailed",
    "InMemoryKeyValueStore",
    "InvalidCacheKey",
    "JsonCodec",
    "KeyValueStore",
    "NullCacheObserver",
    "ProviderFailed",
    "PydanticCodec",
    "ReadThroughCache",
    "RedisKeyValueStore",
    "StoreUnavailable",
    "ValueNotFound",
    "bootstrap",
    "build_read_through_cache",
    "build_redis_cache",
]
