# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Single-flight coalescing for async loads.

Synopsis:
    Ensures that at most one load per key is in flight at a time. Concurrent
    callers for the same key share the outcome (value or exception) of the
    single running load.

Design:
    * One ``asyncio.Task`` per key, stored in a plain dict. Lookup and insert
      happen without an intervening ``await`` so they are atomic on the event
      loop; no lock is needed and different keys never contend.
    * The task removes itself from the table before it completes, so callers
      arriving after a failure start a fresh load.
    * Waiters await ``asyncio.shield(task)``: a cancelled or timed-out waiter
      stops waiting without cancelling the load for the others.

Layer:
    application/services
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from contextlib import suppress
from typing import Generic, TypeVar

__all__ = ["SingleFlight"]

T = TypeVar("T")


def _retrieve_exception(task: asyncio.Task[object]) -> None:
    """Mark a finished task's exception as retrieved.

    All waiters may have abandoned the task; without this asyncio would log
    "Task exception was never retrieved".
    """
    if not task.cancelled():
        with suppress(BaseException):
            task.exception()


class SingleFlight(Generic[T]):
    """Per-key coalescing of concurrent async calls."""

    def __init__(self) -> None:
        self._calls: dict[str, asyncio.Task[T]] = {}

    def __len__(self) -> int:
        return len(self._calls)

    def in_flight(self, key: str) -> bool:
        """Return True while a load for ``key`` is running."""
        task = self._calls.get(key)
        return task is not None and not task.done()

    async def do(self, key: str, fn: Callable[[], Awaitable[T]]) -> tuple[T, bool]:
        """Run ``fn`` for ``key`` unless a call is already in flight.

        Args:
            key: Coalescing key.
            fn: Zero-arg async callable producing the value.

        Returns:
            Tuple of (value, shared) where ``shared`` is True when this caller
            joined a load started by another caller.

        Raises:
            Whatever ``fn`` raised, identically for every waiter.
        """
        task = self._calls.get(key)
        shared = task is not None and not task.done()
        if not shared:
            task = asyncio.ensure_future(self._run(key, fn))
            task.add_done_callback(_retrieve_exception)
            self._calls[key] = task
        assert task is not None
        value = await asyncio.shield(task)
        return value, shared

    async def _run(self, key: str, fn: Callable[[], Awaitable[T]]) -> T:
        try:
            return await fn()
        finally:
            if self._calls.get(key) is asyncio.current_task():
                del self._calls[key]
