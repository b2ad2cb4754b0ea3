# tests/unit/dependencies/test_cache_wiring.py
from __future__ import annotations

from datetime import timedelta

import fakeredis
import fakeredis.aioredis
import pytest

from arche_cache.application.interfaces.cache_observer import CompositeCacheObserver
from arche_cache.config.settings import Settings
from arche_cache.dependencies import cache as cache_deps
from arche_cache.dependencies.core import bootstrap as bootstrap_module
from arche_cache.domain.exceptions import CacheConfigError
from arche_cache.infrastructure.caching.codecs import JsonCodec
from arche_cache.infrastructure.observability.cache_observers import (
    LoggingCacheObserver,
    PrometheusCacheObserver,
)


def _patch_redis(monkeypatch: pytest.MonkeyPatch, client: object) -> list[object]:
    closed: list[object] = []

    async def fake_close(c: object) -> None:
        closed.append(c)

    monkeypatch.setattr(bootstrap_module.redis_client, "create_redis_client", lambda s: client)
    monkeypatch.setattr(bootstrap_module.redis_client, "close_redis_client", fake_close)
    monkeypatch.setattr(bootstrap_module, "configure_root_logging", lambda level=None: None)
    return closed


def test_default_observer_respects_metrics_toggle() -> None:
    with_metrics = cache_deps.default_observer(Settings(cache_metrics_enabled=True))
    without_metrics = cache_deps.default_observer(Settings(cache_metrics_enabled=False))

    assert isinstance(with_metrics, CompositeCacheObserver)
    assert [type(o) for o in with_metrics.observers] == [
        LoggingCacheObserver,
        PrometheusCacheObserver,
    ]
    assert [type(o) for o in without_metrics.observers] == [LoggingCacheObserver]


def test_build_read_through_cache_uses_settings(store, provider) -> None:
    settings = Settings(cache_ttl_s=42, cache_namespace="svc:v1", cache_get_timeout_s=2.0)

    cache = cache_deps.build_read_through_cache(
        provider, JsonCodec(), store=store, settings=settings
    )

    assert cache.ttl == timedelta(seconds=42)
    assert cache.namespace == "svc:v1"
    assert cache._default_timeout == 2.0


def test_build_read_through_cache_overrides_win(store, provider, observer) -> None:
    cache = cache_deps.build_read_through_cache(
        provider,
        JsonCodec(),
        store=store,
        settings=Settings(),
        ttl=timedelta(seconds=5),
        namespace="",
        observer=observer,
    )

    assert cache.ttl == timedelta(seconds=5)
    assert cache.namespace == ""
    assert cache._observer is observer


def test_invalid_ttl_override_fails_at_construction(store, provider) -> None:
    with pytest.raises(CacheConfigError):
        cache_deps.build_read_through_cache(
            provider, JsonCodec(), store=store, settings=Settings(), ttl=0
        )


@pytest.mark.asyncio
async def test_bootstrap_creates_and_closes_redis(monkeypatch: pytest.MonkeyPatch, provider) -> None:
    fake = fakeredis.aioredis.FakeRedis(server=fakeredis.FakeServer())
    closed = _patch_redis(monkeypatch, fake)
    settings = Settings(cache_namespace="boot:v1", cache_metrics_enabled=False)
    provider.values["k"] = {"v": 1}

    async with bootstrap_module.bootstrap(settings) as state:
        assert state.settings is settings
        assert state.redis is fake

        cache = cache_deps.build_redis_cache(state, provider, JsonCodec())
        assert await cache.get("k") == {"v": 1}
        assert await fake.get("boot:v1:k") == b'{"v":1}'

    assert closed == [fake]


@pytest.mark.asyncio
async def test_bootstrap_closes_redis_on_error(monkeypatch: pytest.MonkeyPatch) -> None:
    sentinel = object()
    closed = _patch_redis(monkeypatch, sentinel)

    with pytest.raises(RuntimeError, match="boom"):
        async with bootstrap_module.bootstrap(Settings()):
            raise RuntimeError("boom")

    assert closed == [sentinel]


@pytest.mark.asyncio
async def test_bootstrap_swallows_close_failure(monkeypatch: pytest.MonkeyPatch) -> None:
    _patch_redis(monkeypatch, object())

    async def failing_close(c: object) -> None:
        raise ConnectionError("gone")

    monkeypatch.setattr(bootstrap_module.redis_client, "close_redis_client", failing_close)

    async with bootstrap_module.bootstrap(Settings()) as state:
        assert state.redis is not None
