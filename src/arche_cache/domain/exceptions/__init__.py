"""Domain exceptions export."""

from __future__ import annotations

from .base import DomainError
from .cache import (
    CacheConfigError,
    CacheError,
    DecodeFailed,
    EncodeFailed,
    InvalidCacheKey,
    ProviderFailed,
    StoreUnavailable,
    ValueNotFound,
)

__all__ = [
    "DomainError",
    "CacheError",
    "CacheConfigError",
    "InvalidCacheKey",
    "StoreUnavailable",
    "EncodeFailed",
    "DecodeFailed",
    "ProviderFailed",
    "ValueNotFound",
]
