# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Application Interface: Key-Value Store Port.

Synopsis:
    Minimal byte-oriented store used by the read-through cache. The store owns
    entry lifecycle: an entry written with a TTL must read back as absent once
    the TTL has elapsed. Enables swapping Redis, in-memory, or other stores.

Layer:
    application/interfaces
"""

from __future__ import annotations

from datetime import timedelta
from typing import Protocol

__all__ = ["KeyValueStore"]


class KeyValueStore(Protocol):
    """Byte store with per-entry TTL.

    Implementations must provide read-your-writes visibility for a single
    cache instance and raise
    :class:`~arche_cache.domain.exceptions.StoreUnavailable` when the
    underlying transport fails.
    """

    async def get(self, key: str) -> bytes | None:
        """Return the stored bytes for ``key``.

        Args:
            key: Fully-qualified store key.

        Returns:
            Stored bytes, or ``None`` if absent or expired.
        """

    async def set(self, key: str, data: bytes, ttl: timedelta) -> None:
        """Store ``data`` under ``key``, replacing any entry and its deadline.

        Args:
            key: Fully-qualified store key.
            data: Encoded payload.
            ttl: Time-to-live; strictly positive.
        """

    async def delete(self, key: str) -> None:
        """Remove ``key``. Removing an absent key is a no-op.

        Args:
            key: Fully-qualified store key.
        """
