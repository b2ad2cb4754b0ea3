# tests/conftest.py
from __future__ import annotations

import asyncio
from collections.abc import Callable, Generator
from typing import Any

import pytest

from arche_cache.application.services.read_through_cache import ReadThroughCache
from arche_cache.config.settings import get_settings
from arche_cache.domain.exceptions import CacheError, DecodeFailed
from arche_cache.infrastructure.caching.codecs import JsonCodec
from arche_cache.infrastructure.caching.memory_store import InMemoryKeyValueStore


class ManualClock:
    """Monotonic clock the test advances by hand."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingProvider:
    """Data provider stub backed by a dict.

    Missing keys load as ``None`` (not found). ``gate`` lets a test hold every
    load until it sets the event; ``error`` makes every load raise.
    """

    def __init__(self, values: dict[str, Any] | None = None) -> None:
        self.values: dict[str, Any] = dict(values or {})
        self.calls: list[str] = []
        self.gate: asyncio.Event | None = None
        self.error: BaseException | None = None

    async def load(self, key: str) -> Any:
        self.calls.append(key)
        if self.gate is not None:
            await self.gate.wait()
        else:
            await asyncio.sleep(0)
        if self.error is not None:
            raise self.error
        return self.values.get(key)

    def calls_for(self, key: str) -> int:
        return self.calls.count(key)


class RecordingObserver:
    """Observer that records ``(event, key, fields)`` tuples."""

    def __init__(self) -> None:
        self.events: list[tuple[str, str, dict[str, Any]]] = []

    def names(self) -> list[str]:
        return [name for name, _, _ in self.events]

    def on_hit(self, key: str, *, duration_s: float) -> None:
        self.events.append(("hit", key, {}))

    def on_miss(self, key: str, *, duration_s: float) -> None:
        self.events.append(("miss", key, {}))

    def on_coalesced(self, key: str) -> None:
        self.events.append(("coalesced", key, {}))

    def on_corrupt_entry(self, key: str, error: DecodeFailed) -> None:
        self.events.append(("corrupt_entry", key, {"error": error}))

    def on_load(self, key: str, *, outcome: str, duration_s: float) -> None:
        self.events.append(("load", key, {"outcome": outcome}))

    def on_put(self, key: str, *, ttl_s: float, duration_s: float) -> None:
        self.events.append(("put", key, {"ttl_s": ttl_s}))

    def on_evict(self, key: str, *, duration_s: float) -> None:
        self.events.append(("evict", key, {}))

    def on_error(self, key: str, *, operation: str, error: CacheError) -> None:
        self.events.append(("error", key, {"operation": operation, "error": error}))


@pytest.fixture(autouse=True)
def _reset_settings_cache() -> Generator[None, None, None]:
    """Drop the cached Settings singleton around every test."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def store(clock: ManualClock) -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore(clock=clock)


@pytest.fixture
def provider() -> RecordingProvider:
    return RecordingProvider()


@pytest.fixture
def observer() -> RecordingObserver:
    return RecordingObserver()


@pytest.fixture
def make_cache(
    store: InMemoryKeyValueStore,
    provider: RecordingProvider,
    observer: RecordingObserver,
) -> Callable[..., ReadThroughCache[Any]]:
    """Factory building a JSON cache over the in-memory store (TTL 60s)."""

    def _make(**overrides: Any) -> ReadThroughCache[Any]:
        kwargs: dict[str, Any] = {
            "store": store,
            "codec": JsonCodec(),
            "provider": provider,
            "ttl": 60,
            "observer": observer,
        }
        kwargs.update(overrides)
        return ReadThroughCache(**kwargs)

    return _make
