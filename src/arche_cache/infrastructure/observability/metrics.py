# src/arche_cache/infrastructure/observability/metrics.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Prometheus cache metrics (registry-aware, hot-reload safe).

Accessors like :func:`get_cache_operations_total` return a *singleton*
collector bound to the **current** ``prometheus_client.REGISTRY``:
   - Safe under hot reload and tests that swap the default registry.
   - No duplicate-registration errors.
   - Module cache automatically resets when the active registry changes.

All histograms use explicit buckets so ``_bucket/_count/_sum`` series appear
after the first ``observe(...)`` call.

Example:
    ops = get_cache_operations_total()
    ops.labels(operation="get", namespace="arche:cache:v1", hit="true").inc()
"""

from __future__ import annotations

import logging
import threading
from contextlib import suppress
from typing import Final

import prometheus_client as prom
from prometheus_client import Counter, Histogram

_log = logging.getLogger(__name__)

__all__ = [
    "get_cache_operation_duration_seconds",
    "get_cache_operations_total",
    "get_cache_loads_total",
    "get_cache_load_duration_seconds",
    "get_cache_corrupt_entries_total",
    "get_cache_coalesced_waits_total",
    "get_cache_errors_total",
]

# ---------------------------------------------------------------------------
# Common histogram buckets (seconds)
_BUCKETS: Final[tuple[float, ...]] = (
    0.0005,
    0.001,
    0.0025,
    0.005,
    0.010,
    0.025,
    0.050,
    0.100,
    0.250,
    0.500,
    1.000,
    2.500,
    5.000,
    10.000,
)

# Cache keyed by metric name within the currently-active registry.
_registry_id: int | None = None
_hist_cache: dict[str, Histogram] = {}
_counter_cache: dict[str, Counter] = {}
_lock = threading.RLock()


# ---------------------------------------------------------------------------
# Registry-handling primitives


def _active_registry_id() -> int:
    """Return an identifier for the current default registry."""
    return id(prom.REGISTRY)


def _ensure_registry() -> None:
    """Reset caches if the active registry changed.

    Must be called before any metric lookup/creation to avoid mixing
    collectors across registries (common in tests).
    """
    global _registry_id
    with _lock:
        rid = _active_registry_id()
        if _registry_id is None or _registry_id != rid:
            _hist_cache.clear()
            _counter_cache.clear()
            _registry_id = rid


def _lookup_existing_hist(name: str) -> Histogram | None:
    """Return a previously-registered ``Histogram`` from the active registry.

    Args:
        name: Collector name.

    Returns:
        Histogram | None: Existing collector if present and of the correct type.
    """
    with _lock, suppress(Exception):
        mapping = getattr(prom.REGISTRY, "_names_to_collectors", None)
        if isinstance(mapping, dict):
            col = mapping.get(name)
            if isinstance(col, Histogram):
                return col
    return None


def _lookup_existing_counter(name: str) -> Counter | None:
    """Return a previously-registered ``Counter`` from the active registry.

    Args:
        name: Collector name.

    Returns:
        Counter | None: Existing collector if present and of the correct type.
    """
    with _lock, suppress(Exception):
        mapping = getattr(prom.REGISTRY, "_names_to_collectors", None)
        if isinstance(mapping, dict):
            col = mapping.get(name)
            if isinstance(col, Counter):
                return col
    return None


# ---------------------------------------------------------------------------
# Get-or-create helpers


def _get_or_create_hist(
    name: str,
    help_text: str,
    *,
    buckets: tuple[float, ...] = _BUCKETS,
    labelnames: tuple[str, ...] = (),
) -> Histogram:
    """Get or create a registry-bound ``Histogram`` with stable identity.

    Strategy:
    1. Return from module cache if present for the active registry.
    2. If registry already has a collector by this name, reuse it.
    3. Otherwise, register a new collector on the active registry.
    4. If concurrent registration triggers a duplication error, retry step 2.

    Args:
        name: Metric name (snake_case).
        help_text: Human-readable description.
        buckets: Histogram buckets in seconds.
        labelnames: Optional label names tuple.

    Returns:
        Histogram: Bound to ``prom.REGISTRY``.
    """
    _ensure_registry()
    with _lock:
        cached = _hist_cache.get(name)
        if isinstance(cached, Histogram):
            return cached

        existing = _lookup_existing_hist(name)
        if existing is not None:
            _hist_cache[name] = existing
            return existing

        try:
            h = Histogram(name, help_text, labelnames, buckets=buckets, registry=prom.REGISTRY)
            _hist_cache[name] = h
            return h
        except ValueError as exc:
            # Duplicated timeseries: another thread registered it first.
            if "Duplicated timeseries" in str(exc):
                again = _lookup_existing_hist(name)
                if again is not None:
                    _hist_cache[name] = again
                    return again
            _log.exception("Failed to register Prometheus histogram %s", name)
            raise


def _get_or_create_counter(
    name: str,
    help_text: str,
    *,
    labelnames: tuple[str, ...] = (),
) -> Counter:
    """Get or create a registry-bound ``Counter`` with stable identity.

    Args:
        name: Metric name (snake_case).
        help_text: Human-readable description.
        labelnames: Optional label names tuple.

    Returns:
        Counter: Bound to ``prom.REGISTRY``.
    """
    _ensure_registry()
    with _lock:
        cached = _counter_cache.get(name)
        if isinstance(cached, Counter):
            return cached

        existing = _lookup_existing_counter(name)
        if existing is not None:
            _counter_cache[name] = existing
            return existing

        try:
            c = Counter(name, help_text, labelnames, registry=prom.REGISTRY)
            _counter_cache[name] = c
            return c
        except ValueError as exc:
            if "Duplicated timeseries" in str(exc):
                again = _lookup_existing_counter(name)
                if again is not None:
                    _counter_cache[name] = again
                    return again
            _log.exception("Failed to register Prometheus counter %s", name)
            raise


# ---------------------------------------------------------------------------
# Cache metrics


def get_cache_operation_duration_seconds() -> Histogram:
    """Return histogram for cache operation latency.

    Labels:
        operation: ``get`` / ``put`` / ``evict``.
        namespace: Cache namespace/prefix.
        hit: ``true``/``false``/``n/a``.
    """
    return _get_or_create_hist(
        name="cache_operation_duration_seconds",
        help_text="Latency (seconds) of cache operations.",
        labelnames=("operation", "namespace", "hit"),
    )


def get_cache_operations_total() -> Counter:
    """Return counter for cache operations.

    Labels:
        operation: Cache operation name.
        namespace: Cache namespace/prefix.
        hit: ``true``/``false``/``n/a``.
    """
    return _get_or_create_counter(
        name="cache_operations_total",
        help_text="Total cache operations by type/namespace.",
        labelnames=("operation", "namespace", "hit"),
    )


def get_cache_loads_total() -> Counter:
    """Return counter for data provider loads triggered by misses.

    Labels:
        namespace: Cache namespace/prefix.
        outcome: One of ``success|not_found|error``.
    """
    return _get_or_create_counter(
        name="cache_loads_total",
        help_text="Data provider loads triggered by cache misses.",
        labelnames=("namespace", "outcome"),
    )


def get_cache_load_duration_seconds() -> Histogram:
    """Return histogram for data provider load latency.

    Labels:
        namespace: Cache namespace/prefix.
        outcome: One of ``success|not_found|error``.
    """
    return _get_or_create_hist(
        name="cache_load_duration_seconds",
        help_text="Latency (seconds) of data provider loads.",
        labelnames=("namespace", "outcome"),
    )


def get_cache_corrupt_entries_total() -> Counter:
    """Return counter for undecodable entries treated as misses.

    Labels:
        namespace: Cache namespace/prefix.
    """
    return _get_or_create_counter(
        name="cache_corrupt_entries_total",
        help_text="Undecodable cache entries recovered as misses.",
        labelnames=("namespace",),
    )


def get_cache_coalesced_waits_total() -> Counter:
    """Return counter for misses that joined an in-flight load.

    Labels:
        namespace: Cache namespace/prefix.
    """
    return _get_or_create_counter(
        name="cache_coalesced_waits_total",
        help_text="Cache misses served by an already in-flight load.",
        labelnames=("namespace",),
    )


def get_cache_errors_total() -> Counter:
    """Return counter for errors surfaced by cache operations.

    Labels:
        namespace: Cache namespace/prefix.
        operation: ``get`` / ``put`` / ``evict`` / ``load``.
        reason: Error code (e.g. ``CACHE_STORE_UNAVAILABLE``).
    """
    return _get_or_create_counter(
        name="cache_errors_total",
        help_text="Errors surfaced by cache operations.",
        labelnames=("namespace", "operation", "reason"),
    )
