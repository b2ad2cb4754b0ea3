# src/arche_cache/infrastructure/logging/logger.py
# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""JSON logging for cache events.

Every record becomes one JSON object with ``ts``, ``level``, ``logger`` and
``message``. Cache observers pass their event fields as
``extra={"extra": {...}}``; those are merged into the top level. When the
record carries a cache error, its ``code`` is lifted next to ``exc_type``.

Typical usage:
    configure_root_logging("INFO")
    log = get_json_logger(__name__)
    log.info("cache.put", extra={"extra": {"key": "user:42", "ttl_s": 300}})
"""

from __future__ import annotations

import json
import logging
import os
from datetime import UTC, datetime
from typing import Any

__all__ = ["configure_root_logging", "get_json_logger"]


class _JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        exc = record.exc_info[1] if record.exc_info else None
        if exc is not None:
            payload["exc_type"] = type(exc).__name__
            payload["exc_message"] = str(exc)
            code = getattr(exc, "code", None)
            if isinstance(code, str):
                payload["code"] = code

        fields = getattr(record, "extra", None)
        if isinstance(fields, dict):
            payload.update(fields)

        return json.dumps(payload, separators=(",", ":"), ensure_ascii=False, default=str)


def _resolve_level(level: str | int | None) -> str | int:
    if level is None:
        level = os.getenv("LOG_LEVEL") or "INFO"
    return level.upper() if isinstance(level, str) else level


def configure_root_logging(level: str | int | None = None) -> None:
    """Install the JSON handler on the root logger and set its level.

    Repeated calls only change the level. ``None`` falls back to the
    ``LOG_LEVEL`` environment variable, then ``INFO``.
    """
    root = logging.getLogger()
    root.setLevel(_resolve_level(level))
    if root.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(_JsonFormatter())
    root.addHandler(handler)


def get_json_logger(name: str) -> logging.Logger:
    """Return a propagating logger; formatting is owned by the root handler."""
    logger = logging.getLogger(name)
    logger.propagate = True
    return logger
