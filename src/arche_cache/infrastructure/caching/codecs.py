# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Cache codecs (JSON, Pydantic).

Synopsis:
    Implementations of the application ``Codec`` port.

Design:
    * Pure JSON (utf-8) serialization; no pickle.
    * ``JsonCodec`` handles plain JSON data (mappings, lists, scalars).
    * ``PydanticCodec`` binds a cache to one value type through a
      ``pydantic.TypeAdapter`` so decoded entries come back typed and
      validated.
    * Vendor errors are translated to ``EncodeFailed`` / ``DecodeFailed``.

Layer:
    infrastructure/caching
"""

from __future__ import annotations

import json
from typing import Any, Generic, TypeVar

from pydantic import TypeAdapter, ValidationError

from arche_cache.domain.exceptions import DecodeFailed, EncodeFailed

__all__ = ["JsonCodec", "PydanticCodec"]

T = TypeVar("T")


class JsonCodec:
    """UTF-8 JSON codec with compact separators."""

    def encode(self, value: Any) -> bytes:
        try:
            return json.dumps(value, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
        except (TypeError, ValueError) as exc:
            raise EncodeFailed(
                f"Value is not JSON-serializable: {exc}",
                details={"value_type": type(value).__name__},
            ) from exc

    def decode(self, data: bytes) -> Any:
        try:
            return json.loads(data)
        except (UnicodeDecodeError, ValueError, TypeError) as exc:
            raise DecodeFailed(f"Invalid JSON cache entry: {exc}") from exc


class PydanticCodec(Generic[T]):
    """JSON codec validated against a single type.

    Example:
        codec = PydanticCodec(UserProfile)
        codec.decode(codec.encode(profile)) == profile
    """

    def __init__(self, type_: type[T] | Any) -> None:
        """Initialize the codec.

        Args:
            type_: Pydantic model, dataclass, TypedDict or any type a
                ``TypeAdapter`` accepts.
        """
        self._type = type_
        self._adapter: TypeAdapter[T] = TypeAdapter(type_)

    @property
    def type_(self) -> Any:
        return self._type

    def encode(self, value: T) -> bytes:
        try:
            return self._adapter.dump_json(value)
        except (ValidationError, TypeError, ValueError) as exc:
            raise EncodeFailed(
                f"Could not serialize {type(value).__name__} as {self._type_name}: {exc}",
                details={"value_type": type(value).__name__, "target": self._type_name},
            ) from exc

    def decode(self, data: bytes) -> T:
        try:
            return self._adapter.validate_json(data)
        except (ValidationError, ValueError, TypeError) as exc:
            raise DecodeFailed(
                f"Cache entry is not a valid {self._type_name}: {exc}",
                details={"target": self._type_name},
            ) from exc

    @property
    def _type_name(self) -> str:
        return getattr(self._type, "__name__", repr(self._type))
