# src/arche_cache/config/settings.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Arche Cache Configuration (Pydantic Settings, v2)

Summary:
    Typed, validated configuration for the read-through cache and its Redis
    backing store. Only the wiring layer (``arche_cache.dependencies``) reads
    it; the cache itself receives plain constructor arguments.

Design:
    - Pydantic v2 BaseSettings with `extra='forbid'` to catch unknown keys.
    - Explicit field declarations with constrained types and ranges.
    - Environment enumeration for behavior toggles (includes TEST).
    - Singleton accessor `get_settings()` with LRU cache.
    - Safe, structured logging (no secrets).
"""

from __future__ import annotations

import logging
from datetime import timedelta
from enum import Enum
from functools import lru_cache

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from arche_cache.domain.exceptions import CacheConfigError

logger = logging.getLogger(__name__)


class Environment(str, Enum):
    """Logical deployment environment."""

    DEVELOPMENT = "development"
    TEST = "test"
    CI = "ci"
    STAGING = "staging"
    PRODUCTION = "production"


class Settings(BaseSettings):
    """Typed configuration for the cache runtime."""

    # ---------------------------
    # Core environment
    # ---------------------------
    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Logical deployment environment.",
        validation_alias="ENVIRONMENT",
    )

    # ---------------------------
    # Redis
    # ---------------------------
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL of the backing store.",
        validation_alias="REDIS_URL",
    )
    redis_health_check_interval_s: int = Field(
        default=15,
        ge=1,
        le=3600,
        description="Health check interval for Redis clients in seconds.",
        validation_alias="REDIS_HEALTH_CHECK_INTERVAL_S",
    )
    redis_socket_timeout_s: float = Field(
        default=3.0,
        ge=0.1,
        le=60.0,
        description="Socket timeout in seconds for Redis commands.",
        validation_alias="REDIS_SOCKET_TIMEOUT_S",
    )
    redis_socket_connect_timeout_s: float = Field(
        default=3.0,
        ge=0.1,
        le=60.0,
        description="Socket connect timeout in seconds for Redis.",
        validation_alias="REDIS_SOCKET_CONNECT_TIMEOUT_S",
    )

    # ---------------------------
    # Cache policy
    # ---------------------------
    cache_namespace: str = Field(
        default="arche:cache:v1",
        description="Prefix applied to every store key. Empty disables prefixing.",
        validation_alias="CACHE_NAMESPACE",
    )
    cache_ttl_s: float = Field(
        default=300.0,
        gt=0,
        description="Time-to-live in seconds applied to every cache put.",
        validation_alias="CACHE_TTL_S",
    )
    cache_get_timeout_s: float | None = Field(
        default=None,
        gt=0,
        description="Default bound in seconds for a cache get. Unset means unbounded.",
        validation_alias="CACHE_GET_TIMEOUT_S",
    )
    cache_metrics_enabled: bool = Field(
        default=True,
        description="Record Prometheus cache metrics.",
        validation_alias="CACHE_METRICS_ENABLED",
    )

    # ---------------------------
    # Logging
    # ---------------------------
    log_level: str | None = Field(
        default=None,
        description="Override log level (e.g., 'DEBUG', 'INFO'). If not set, defaults are used.",
        validation_alias="LOG_LEVEL",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="forbid",
        case_sensitive=False,
        populate_by_name=True,
    )

    @property
    def ttl(self) -> timedelta:
        """Cache TTL as a ``timedelta``."""
        return timedelta(seconds=self.cache_ttl_s)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached singleton `Settings` instance.

    Returns:
        Settings: Validated settings.

    Raises:
        CacheConfigError: If configuration is invalid.
    """
    try:
        settings = Settings()
    except ValidationError as exc:
        logger.exception("Invalid cache configuration")
        raise CacheConfigError(
            f"Invalid configuration: {exc}",
            details={"errors": exc.errors(include_url=False)},
        ) from exc

    logger.info(
        "Settings initialized",
        extra={
            "extra": {
                "environment": settings.environment.value,
                "redis_url_set": bool(settings.redis_url),
                "cache_namespace": settings.cache_namespace,
                "cache_ttl_s": settings.cache_ttl_s,
                "cache_get_timeout_s": settings.cache_get_timeout_s,
                "cache_metrics_enabled": settings.cache_metrics_enabled,
            }
        },
    )
    return settings
