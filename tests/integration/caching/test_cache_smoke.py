# tests/integration/caching/test_cache_smoke.py
from __future__ import annotations

import asyncio

import fakeredis
import fakeredis.aioredis
import prometheus_client as prom
import pytest
from pydantic import BaseModel

from arche_cache import (
    CallableDataProvider,
    PydanticCodec,
    RedisKeyValueStore,
    ValueNotFound,
    build_read_through_cache,
)
from arche_cache.config.settings import Settings

pytestmark = pytest.mark.integration


class UserProfile(BaseModel):
    id: int
    name: str


@pytest.mark.asyncio
async def test_read_through_over_redis_records_metrics(monkeypatch: pytest.MonkeyPatch):
    registry = prom.CollectorRegistry()
    monkeypatch.setattr(prom, "REGISTRY", registry)

    fake = fakeredis.aioredis.FakeRedis(server=fakeredis.FakeServer())
    loads: list[str] = []
    users = {"user:42": UserProfile(id=42, name="Ana")}

    async def load(key: str) -> UserProfile | None:
        loads.append(key)
        await asyncio.sleep(0.05)
        return users.get(key)

    cache = build_read_through_cache(
        CallableDataProvider(load),
        PydanticCodec(UserProfile),
        store=RedisKeyValueStore(fake),
        settings=Settings(cache_namespace="test:v1", cache_ttl_s=60),
    )

    results = await asyncio.gather(*(cache.get("user:42") for _ in range(5)))
    assert results == [UserProfile(id=42, name="Ana")] * 5
    assert loads == ["user:42"]

    # Raw entry lives under the namespace with the configured TTL.
    assert await fake.get("test:v1:user:42") == b'{"id":42,"name":"Ana"}'
    assert 0 < await fake.ttl("test:v1:user:42") <= 60

    # A corrupt entry is reloaded, not surfaced.
    await fake.set("test:v1:user:42", b"not-json", px=60_000)
    assert await cache.get("user:42") == UserProfile(id=42, name="Ana")
    assert loads == ["user:42", "user:42"]

    assert await cache.get("user:42") == UserProfile(id=42, name="Ana")

    await cache.evict("user:42")
    assert await fake.exists("test:v1:user:42") == 0

    with pytest.raises(ValueNotFound):
        await cache.get("user:404")

    def value(name: str, **labels: str) -> float | None:
        return registry.get_sample_value(name, labels)

    assert value("cache_operations_total", operation="get", namespace="test:v1", hit="false") == 7
    assert value("cache_operations_total", operation="get", namespace="test:v1", hit="true") == 1
    assert value("cache_coalesced_waits_total", namespace="test:v1") == 4
    assert value("cache_corrupt_entries_total", namespace="test:v1") == 1
    assert value("cache_loads_total", namespace="test:v1", outcome="success") == 2
    assert value("cache_loads_total", namespace="test:v1", outcome="not_found") == 1
    assert value("cache_operations_total", operation="evict", namespace="test:v1", hit="n/a") == 1
