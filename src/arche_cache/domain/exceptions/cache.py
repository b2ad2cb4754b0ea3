# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""
Cache Domain Exceptions

Purpose:
    Error taxonomy of the read-through cache. Decode failures are recovered
    inside the cache (treated as a miss); every other class is surfaced to the
    caller unchanged.

Layer: domain/exceptions
"""
from __future__ import annotations

from typing import Any

from .base import DomainError

__all__ = [
    "CacheError",
    "CacheConfigError",
    "InvalidCacheKey",
    "StoreUnavailable",
    "EncodeFailed",
    "DecodeFailed",
    "ProviderFailed",
    "ValueNotFound",
]


class CacheError(DomainError):
    """Base class for read-through cache failures."""

    code = "CACHE_ERROR"


class CacheConfigError(CacheError):
    """Invalid TTL, missing collaborator or unparsable settings at construction."""

    code = "CACHE_CONFIG_ERROR"


class InvalidCacheKey(CacheError):
    """Key is empty or not a string."""

    code = "INVALID_CACHE_KEY"


class StoreUnavailable(CacheError):
    """Backing key-value store could not be reached or rejected the command."""

    code = "CACHE_STORE_UNAVAILABLE"


class EncodeFailed(CacheError):
    """Value could not be serialized by the configured codec."""

    code = "CACHE_ENCODE_FAILED"


class DecodeFailed(CacheError):
    """Stored bytes could not be deserialized by the configured codec."""

    code = "CACHE_DECODE_FAILED"


class ProviderFailed(CacheError):
    """The data provider raised while loading a key.

    The original exception is available as :attr:`cause` and is also chained
    as ``__cause__``.
    """

    code = "CACHE_PROVIDER_FAILED"

    def __init__(
        self,
        message: str = "",
        *,
        cause: BaseException | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details=details)
        self.cause = cause


class ValueNotFound(CacheError):
    """The data provider reports that no value exists for the key."""

    code = "CACHE_VALUE_NOT_FOUND"
