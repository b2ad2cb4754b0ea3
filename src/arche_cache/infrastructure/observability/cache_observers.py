# src/arche_cache/infrastructure/observability/cache_observers.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Cache observers backed by JSON logging and Prometheus.

Synopsis:
    Infrastructure implementations of the application ``CacheObserver`` port.
    ``LoggingCacheObserver`` emits structured log events; the
    ``PrometheusCacheObserver`` records the collectors from
    :mod:`arche_cache.infrastructure.observability.metrics`.

Design:
    * Event names are stable: ``cache.hit``, ``cache.miss``, ``cache.coalesced``,
      ``cache.corrupt_entry``, ``cache.load``, ``cache.put``, ``cache.evict``,
      ``cache.error``.
    * Metric recording never raises into the cache call path.

Layer:
    infrastructure/observability
"""

from __future__ import annotations

import logging
from contextlib import suppress
from typing import Any

from arche_cache.domain.exceptions import CacheError, DecodeFailed
from arche_cache.infrastructure.logging.logger import get_json_logger
from arche_cache.infrastructure.observability.metrics import (
    get_cache_coalesced_waits_total,
    get_cache_corrupt_entries_total,
    get_cache_errors_total,
    get_cache_load_duration_seconds,
    get_cache_loads_total,
    get_cache_operation_duration_seconds,
    get_cache_operations_total,
)

__all__ = ["LoggingCacheObserver", "PrometheusCacheObserver"]


class LoggingCacheObserver:
    """Writes cache events to a JSON logger."""

    def __init__(self, *, namespace: str = "", logger: logging.Logger | None = None) -> None:
        self._ns = namespace
        self._log = logger or get_json_logger("arche_cache.cache")

    def _fields(self, key: str, **fields: Any) -> dict[str, Any]:
        return {"extra": {"key": key, "namespace": self._ns, **fields}}

    def on_hit(self, key: str, *, duration_s: float) -> None:
        self._log.debug("cache.hit", extra=self._fields(key, duration_s=duration_s))

    def on_miss(self, key: str, *, duration_s: float) -> None:
        self._log.debug("cache.miss", extra=self._fields(key, duration_s=duration_s))

    def on_coalesced(self, key: str) -> None:
        self._log.debug("cache.coalesced", extra=self._fields(key))

    def on_corrupt_entry(self, key: str, error: DecodeFailed) -> None:
        self._log.warning(
            "cache.corrupt_entry",
            exc_info=error,
            extra=self._fields(key, code=error.code),
        )

    def on_load(self, key: str, *, outcome: str, duration_s: float) -> None:
        self._log.info(
            "cache.load", extra=self._fields(key, outcome=outcome, duration_s=duration_s)
        )

    def on_put(self, key: str, *, ttl_s: float, duration_s: float) -> None:
        self._log.info("cache.put", extra=self._fields(key, ttl_s=ttl_s, duration_s=duration_s))

    def on_evict(self, key: str, *, duration_s: float) -> None:
        self._log.info("cache.evict", extra=self._fields(key, duration_s=duration_s))

    def on_error(self, key: str, *, operation: str, error: CacheError) -> None:
        self._log.error(
            "cache.error",
            exc_info=error,
            extra=self._fields(key, operation=operation, code=error.code),
        )


class PrometheusCacheObserver:
    """Records cache events as Prometheus metrics, labelled by namespace."""

    def __init__(self, *, namespace: str = "") -> None:
        self._ns = namespace

    def _operation(self, operation: str, hit: str, duration_s: float) -> None:
        with suppress(Exception):
            get_cache_operation_duration_seconds().labels(
                operation=operation, namespace=self._ns, hit=hit
            ).observe(duration_s)
            get_cache_operations_total().labels(
                operation=operation, namespace=self._ns, hit=hit
            ).inc()

    def on_hit(self, key: str, *, duration_s: float) -> None:
        self._operation("get", "true", duration_s)

    def on_miss(self, key: str, *, duration_s: float) -> None:
        self._operation("get", "false", duration_s)

    def on_coalesced(self, key: str) -> None:
        with suppress(Exception):
            get_cache_coalesced_waits_total().labels(namespace=self._ns).inc()

    def on_corrupt_entry(self, key: str, error: DecodeFailed) -> None:
        with suppress(Exception):
            get_cache_corrupt_entries_total().labels(namespace=self._ns).inc()

    def on_load(self, key: str, *, outcome: str, duration_s: float) -> None:
        with suppress(Exception):
            get_cache_load_duration_seconds().labels(
                namespace=self._ns, outcome=outcome
            ).observe(duration_s)
            get_cache_loads_total().labels(namespace=self._ns, outcome=outcome).inc()

    def on_put(self, key: str, *, ttl_s: float, duration_s: float) -> None:
        self._operation("put", "n/a", duration_s)

    def on_evict(self, key: str, *, duration_s: float) -> None:
        self._operation("evict", "n/a", duration_s)

    def on_error(self, key: str, *, operation: str, error: CacheError) -> None:
        with suppress(Exception):
            get_cache_errors_total().labels(
                namespace=self._ns, operation=operation, reason=error.code
            ).inc()
