# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Read-through cache with single-flight population.

Synopsis:
    Mediates between callers, a byte-oriented key-value store, a codec and an
    authoritative data provider. A value loaded once is served from the store
    until it expires or is evicted; a miss triggers exactly one provider load
    among concurrent callers for the same key.

Design:
    * Store, codec and provider are passed explicitly; nothing is looked up
      globally.
    * TTL is fixed per instance and applied to every put. Expiry is owned by
      the store: the cache never inspects deadlines.
    * The flight re-reads the store before calling the provider, so a caller
      whose miss raced an earlier flight's put is served that entry.
    * Undecodable entries are reported to the observer and treated as a miss.
      Every other failure is surfaced as a typed
      :class:`~arche_cache.domain.exceptions.CacheError` and never retried.
    * Observability goes through :class:`CacheObserver`; the default observer
      does nothing.
    * ``evict`` does not cancel an in-flight load: the load's put re-populates
      the entry.

Layer:
    application/services

See Also:
    - arche_cache.application.services.single_flight.SingleFlight
    - arche_cache.application.interfaces.key_value_store.KeyValueStore
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from datetime import timedelta
from functools import partial
from typing import Any, Generic, TypeVar

from arche_cache.application.interfaces.cache_observer import CacheObserver, NullCacheObserver
from arche_cache.application.interfaces.codec import Codec
from arche_cache.application.interfaces.data_provider import DataProvider
from arche_cache.application.interfaces.key_value_store import KeyValueStore
from arche_cache.application.services.single_flight import SingleFlight
from arche_cache.domain.exceptions import (
    CacheConfigError,
    CacheError,
    DecodeFailed,
    EncodeFailed,
    InvalidCacheKey,
    ProviderFailed,
    StoreUnavailable,
    ValueNotFound,
)

__all__ = ["ReadThroughCache", "coerce_ttl"]

T = TypeVar("T")
R = TypeVar("R")

_MISSING: Any = object()


def coerce_ttl(ttl: timedelta | float | int) -> timedelta:
    """Normalize a TTL to a strictly positive ``timedelta``.

    Args:
        ttl: ``timedelta`` or number of seconds.

    Returns:
        The TTL as ``timedelta``.

    Raises:
        CacheConfigError: If the TTL is not positive or of an unsupported type.
    """
    if isinstance(ttl, bool) or not isinstance(ttl, (timedelta, int, float)):
        raise CacheConfigError(
            f"TTL must be a timedelta or number of seconds, got {type(ttl).__name__}",
            details={"ttl": repr(ttl)},
        )
    resolved = ttl if isinstance(ttl, timedelta) else timedelta(seconds=ttl)
    if resolved <= timedelta(0):
        raise CacheConfigError("TTL must be positive", details={"ttl_s": resolved.total_seconds()})
    return resolved


def _validate_key(key: object) -> None:
    if not isinstance(key, str) or not key:
        raise InvalidCacheKey("Cache key must be a non-empty string", details={"key": repr(key)})


class ReadThroughCache(Generic[T]):
    """Read-through cache over a :class:`KeyValueStore`.

    Keys passed to the public methods are unqualified; when a namespace is
    configured the store sees ``"{namespace}:{key}"``.
    """

    def __init__(
        self,
        *,
        store: KeyValueStore,
        codec: Codec[T],
        provider: DataProvider[T],
        ttl: timedelta | float | int,
        namespace: str = "",
        observer: CacheObserver | None = None,
        default_timeout: float | None = None,
    ) -> None:
        """Initialize the cache.

        Args:
            store: Backing key-value store, shared by all callers.
            codec: Value serializer.
            provider: Authoritative source used on a miss.
            ttl: Time-to-live applied to every put.
            namespace: Optional prefix applied to all store keys.
            observer: Event sink for logging/metrics. Defaults to a no-op.
            default_timeout: Seconds bounding each ``get`` when the caller
                passes no timeout. ``None`` means unbounded.

        Raises:
            CacheConfigError: On a missing collaborator, non-positive TTL or
                non-positive default timeout.
        """
        missing = [
            name
            for name, dep in (("store", store), ("codec", codec), ("provider", provider))
            if dep is None
        ]
        if missing:
            raise CacheConfigError(
                f"Missing cache dependencies: {', '.join(missing)}",
                details={"missing": missing},
            )
        if default_timeout is not None and default_timeout <= 0:
            raise CacheConfigError(
                "default_timeout must be positive",
                details={"default_timeout": default_timeout},
            )

        self._store = store
        self._codec = codec
        self._provider = provider
        self._ttl = coerce_ttl(ttl)
        self._ns = (namespace or "").strip(":")
        self._observer: CacheObserver = observer or NullCacheObserver()
        self._default_timeout = default_timeout
        self._flights: SingleFlight[T] = SingleFlight()

    # ------------------------------------------------------------------ #
    # Properties / key helpers
    # ------------------------------------------------------------------ #
    @property
    def ttl(self) -> timedelta:
        return self._ttl

    @property
    def namespace(self) -> str:
        return self._ns

    @property
    def pending_loads(self) -> int:
        """Number of provider loads currently in flight."""
        return len(self._flights)

    def in_flight(self, key: str) -> bool:
        """Return True while a provider load for ``key`` is running."""
        return self._flights.in_flight(key)

    def _k(self, key: str) -> str:
        """Build the store key for an unqualified key."""
        if not self._ns:
            return key
        return f"{self._ns}:{key}"

    def make_key(self, *segments: object) -> str:
        """Build an unqualified key from simple segments.

        This does **not** apply the namespace.

        Args:
            *segments: Key segments to join with ":". Empty segments are skipped.

        Returns:
            Key suitable to pass to ``get``/``put``/``evict``.
        """
        return ":".join(str(seg).strip(":") for seg in segments if seg != "")

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #
    async def get(self, key: str, *, timeout: float | None = None) -> T:
        """Return the value for ``key``, loading and caching it on a miss.

        Args:
            key: Unqualified, non-empty key.
            timeout: Seconds bounding this call. Falls back to the instance
                default. Expiry abandons the wait only; an in-flight load
                continues for other callers.

        Returns:
            The cached or freshly loaded value.

        Raises:
            InvalidCacheKey: If ``key`` is empty or not a string.
            StoreUnavailable: If the store lookup or the populate write fails.
            ValueNotFound: If the provider reports no value for ``key``.
            ProviderFailed: If the provider raised.
            EncodeFailed: If the loaded value cannot be encoded for storage.
            TimeoutError: If ``timeout`` elapsed first.
        """
        _validate_key(key)
        effective = timeout if timeout is not None else self._default_timeout
        if effective is None:
            return await self._get(key)
        async with asyncio.timeout(effective):
            return await self._get(key)

    async def put(self, key: str, value: T) -> None:
        """Encode and store ``value`` with the configured TTL.

        Overwrites any existing entry and resets its deadline, even when the
        stored value is unchanged.

        Raises:
            InvalidCacheKey: If ``key`` is empty or not a string.
            EncodeFailed: If the codec rejects the value; the store is untouched.
            StoreUnavailable: If the store write fails.
        """
        _validate_key(key)
        start = time.perf_counter()
        data = self._encode(key, value)
        await self._store_call(
            "put", key, partial(self._store.set, self._k(key), data, self._ttl)
        )
        self._observer.on_put(
            key,
            ttl_s=self._ttl.total_seconds(),
            duration_s=time.perf_counter() - start,
        )

    async def evict(self, key: str) -> None:
        """Delete ``key`` from the store; absent keys are a no-op.

        An in-flight load for the key is not cancelled and will re-populate
        the entry when it completes.

        Raises:
            InvalidCacheKey: If ``key`` is empty or not a string.
            StoreUnavailable: If the store delete fails.
        """
        _validate_key(key)
        start = time.perf_counter()
        await self._store_call("evict", key, partial(self._store.delete, self._k(key)))
        self._observer.on_evict(key, duration_s=time.perf_counter() - start)

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #
    async def _get(self, key: str) -> T:
        start = time.perf_counter()
        raw = await self._store_call("get", key, partial(self._store.get, self._k(key)))
        if raw is not None:
            value = self._decode(key, raw)
            if value is not _MISSING:
                self._observer.on_hit(key, duration_s=time.perf_counter() - start)
                return value

        self._observer.on_miss(key, duration_s=time.perf_counter() - start)
        if self._flights.in_flight(key):
            self._observer.on_coalesced(key)
        value, _shared = await self._flights.do(key, partial(self._load_and_populate, key))
        return value

    async def _load_and_populate(self, key: str) -> T:
        # Re-check the store: a caller whose read raced a previous flight's
        # put can get here after that flight has already left the table.
        cached = await self._recheck(key)
        if cached is not _MISSING:
            return cached

        start = time.perf_counter()
        try:
            value = await self._provider.load(key)
        except ValueNotFound:
            self._observer.on_load(
                key, outcome="not_found", duration_s=time.perf_counter() - start
            )
            raise
        except Exception as exc:
            self._observer.on_load(key, outcome="error", duration_s=time.perf_counter() - start)
            err = ProviderFailed(
                f"Data provider failed for key {key!r}: {exc}",
                cause=exc,
                details={"key": key, "cause_type": type(exc).__name__},
            )
            self._observer.on_error(key, operation="load", error=err)
            raise err from exc

        if value is None:
            self._observer.on_load(
                key, outcome="not_found", duration_s=time.perf_counter() - start
            )
            raise ValueNotFound(f"No value exists for key {key!r}", details={"key": key})

        self._observer.on_load(key, outcome="success", duration_s=time.perf_counter() - start)
        await self.put(key, value)
        return value

    async def _recheck(self, key: str) -> T:
        """Re-read ``key`` inside the flight, returning ``_MISSING`` unless decodable."""
        raw = await self._store_call("get", key, partial(self._store.get, self._k(key)))
        if raw is None:
            return _MISSING
        try:
            return self._codec.decode(raw)
        except Exception:
            # Corruption was reported by the read that missed; the load overwrites it.
            return _MISSING

    def _decode(self, key: str, raw: bytes) -> T:
        """Decode a stored entry, returning ``_MISSING`` when it is corrupt."""
        try:
            return self._codec.decode(raw)
        except DecodeFailed as exc:
            self._observer.on_corrupt_entry(key, exc)
        except Exception as exc:
            err = DecodeFailed(
                f"Undecodable cache entry for key {key!r}: {exc}",
                details={"key": key, "cause_type": type(exc).__name__},
            )
            err.__cause__ = exc
            self._observer.on_corrupt_entry(key, err)
        return _MISSING

    def _encode(self, key: str, value: T) -> bytes:
        try:
            return self._codec.encode(value)
        except EncodeFailed as exc:
            self._observer.on_error(key, operation="put", error=exc)
            raise
        except Exception as exc:
            err = EncodeFailed(
                f"Could not encode value for key {key!r}: {exc}",
                details={"key": key, "cause_type": type(exc).__name__},
            )
            self._observer.on_error(key, operation="put", error=err)
            raise err from exc

    async def _store_call(
        self, operation: str, key: str, call: Callable[[], Awaitable[R]]
    ) -> R:
        """Run one store command, translating transport failures to ``StoreUnavailable``.

        Only ``OSError`` (connection refused/reset, socket timeouts) is
        translated; any other exception from the store is a wiring bug and
        propagates unchanged.
        """
        try:
            return await call()
        except CacheError as exc:
            self._observer.on_error(key, operation=operation, error=exc)
            raise
        except OSError as exc:
            err = StoreUnavailable(
                f"Store {operation} failed for key {key!r}: {exc}",
                details={"key": key, "operation": operation, "cause_type": type(exc).__name__},
            )
            self._observer.on_error(key, operation=operation, error=err)
            raise err from exc
