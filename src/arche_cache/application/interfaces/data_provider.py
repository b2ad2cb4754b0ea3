# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Application Interface: Data Provider.

Synopsis:
    Authoritative source consulted by the read-through cache on a miss
    (database lookup, upstream API call, ...). Supplied by the embedding
    application.

Layer:
    application/interfaces
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Protocol, TypeVar

__all__ = ["DataProvider", "CallableDataProvider"]

T = TypeVar("T")
T_co = TypeVar("T_co", covariant=True)


class DataProvider(Protocol[T_co]):
    """Loads the authoritative value for a key.

    Implementations report "no such value" either by returning ``None`` or by
    raising :class:`~arche_cache.domain.exceptions.ValueNotFound`. Any other
    exception is treated as a provider failure.
    """

    async def load(self, key: str) -> T_co | None:
        """Load the value for ``key``.

        Args:
            key: Unqualified cache key (no namespace prefix).

        Returns:
            The value, or ``None`` when no value exists for the key.
        """


class CallableDataProvider:
    """Adapts a plain async callable ``key -> value`` to :class:`DataProvider`."""

    def __init__(self, fn: Callable[[str], Awaitable[T | None]]) -> None:
        self._fn = fn

    async def load(self, key: str) -> T | None:
        return await self._fn(key)
