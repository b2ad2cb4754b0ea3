# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Application Interface: Cache Observer.

Synopsis:
    Observability hooks invoked by the read-through cache. Logging and metrics
    implementations live in infrastructure; the cache itself only emits
    events. Hooks are synchronous and must not raise.

Layer:
    application/interfaces
"""

from __future__ import annotations

from typing import Protocol

from arche_cache.domain.exceptions import CacheError, DecodeFailed

__all__ = ["CacheObserver", "NullCacheObserver", "CompositeCacheObserver"]


class CacheObserver(Protocol):
    """Receives cache events.

    ``key`` is always the unqualified key passed by the caller.
    """

    def on_hit(self, key: str, *, duration_s: float) -> None: ...
    def on_miss(self, key: str, *, duration_s: float) -> None: ...
    def on_coalesced(self, key: str) -> None: ...
    def on_corrupt_entry(self, key: str, error: DecodeFailed) -> None: ...
    def on_load(self, key: str, *, outcome: str, duration_s: float) -> None: ...
    def on_put(self, key: str, *, ttl_s: float, duration_s: float) -> None: ...
    def on_evict(self, key: str, *, duration_s: float) -> None: ...
    def on_error(self, key: str, *, operation: str, error: CacheError) -> None: ...


class NullCacheObserver:
    """Observer that ignores every event."""

    def on_hit(self, key: str, *, duration_s: float) -> None:
        return None

    def on_miss(self, key: str, *, duration_s: float) -> None:
        return None

    def on_coalesced(self, key: str) -> None:
        return None

    def on_corrupt_entry(self, key: str, error: DecodeFailed) -> None:
        return None

    def on_load(self, key: str, *, outcome: str, duration_s: float) -> None:
        return None

    def on_put(self, key: str, *, ttl_s: float, duration_s: float) -> None:
        return None

    def on_evict(self, key: str, *, duration_s: float) -> None:
        return None

    def on_error(self, key: str, *, operation: str, error: CacheError) -> None:
        return None


class CompositeCacheObserver:
    """Fans each event out to several observers, in order."""

    def __init__(self, *observers: CacheObserver) -> None:
        self._observers: tuple[CacheObserver, ...] = observers

    @property
    def observers(self) -> tuple[CacheObserver, ...]:
        return self._observers

    def on_hit(self, key: str, *, duration_s: float) -> None:
        for obs in self._observers:
            obs.on_hit(key, duration_s=duration_s)

    def on_miss(self, key: str, *, duration_s: float) -> None:
        for obs in self._observers:
            obs.on_miss(key, duration_s=duration_s)

    def on_coalesced(self, key: str) -> None:
        for obs in self._observers:
            obs.on_coalesced(key)

    def on_corrupt_entry(self, key: str, error: DecodeFailed) -> None:
        for obs in self._observers:
            obs.on_corrupt_entry(key, error)

    def on_load(self, key: str, *, outcome: str, duration_s: float) -> None:
        for obs in self._observers:
            obs.on_load(key, outcome=outcome, duration_s=duration_s)

    def on_put(self, key: str, *, ttl_s: float, duration_s: float) -> None:
        for obs in self._observers:
            obs.on_put(key, ttl_s=ttl_s, duration_s=duration_s)

    def on_evict(self, key: str, *, duration_s: float) -> None:
        for obs in self._observers:
            obs.on_evict(key, duration_s=duration_s)

    def on_error(self, key: str, *, operation: str, error: CacheError) -> None:
        for obs in self._observers:
            obs.on_error(key, operation=operation, error=error)
