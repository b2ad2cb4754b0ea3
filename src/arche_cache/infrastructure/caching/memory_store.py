# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""In-memory key-value store with TTL.

Synopsis:
    Dict-backed implementation of the ``KeyValueStore`` port for tests and
    single-process use. Every entry carries a deadline computed from an
    injectable monotonic clock; expired entries read as absent.

Design:
    * Expiry on read: an expired entry is dropped when its key is read.
    * Periodic sweep: every ``sweep_every`` writes, all expired entries are
      dropped, so keys that are never read again do not accumulate.

Layer:
    infrastructure/caching
"""

from __future__ import annotations

import time
from collections.abc import Callable
from datetime import timedelta

__all__ = ["InMemoryKeyValueStore"]

_DEFAULT_SWEEP_EVERY = 256


class InMemoryKeyValueStore:
    """Bytes store with per-entry deadlines.

    Not shared across processes. Safe for concurrent use from a single event
    loop: no method awaits while mutating state.
    """

    def __init__(
        self,
        *,
        clock: Callable[[], float] = time.monotonic,
        sweep_every: int = _DEFAULT_SWEEP_EVERY,
    ) -> None:
        """Initialize the store.

        Args:
            clock: Zero-arg callable returning seconds; tests pass a manual clock.
            sweep_every: Number of writes between sweeps of expired entries.

        Raises:
            ValueError: If ``sweep_every`` is not positive.
        """
        if sweep_every < 1:
            raise ValueError("sweep_every must be >= 1")
        self._clock = clock
        self._sweep_every = sweep_every
        self._writes = 0
        self._data: dict[str, tuple[bytes, float]] = {}

    def __len__(self) -> int:
        self._purge_expired()
        return len(self._data)

    async def get(self, key: str) -> bytes | None:
        entry = self._data.get(key)
        if entry is None:
            return None
        data, deadline = entry
        if self._clock() >= deadline:
            del self._data[key]
            return None
        return data

    async def set(self, key: str, data: bytes, ttl: timedelta) -> None:
        self._data[key] = (bytes(data), self._clock() + ttl.total_seconds())
        self._writes += 1
        if self._writes >= self._sweep_every:
            self._writes = 0
            self._purge_expired()

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def ttl_remaining(self, key: str) -> float | None:
        """Return seconds until ``key`` expires, or ``None`` if absent/expired."""
        entry = self._data.get(key)
        if entry is None:
            return None
        remaining = entry[1] - self._clock()
        return remaining if remaining > 0 else None

    def _purge_expired(self) -> None:
        now = self._clock()
        for key in [k for k, (_, deadline) in self._data.items() if now >= deadline]:
            del self._data[key]
