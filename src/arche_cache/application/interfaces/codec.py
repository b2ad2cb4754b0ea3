# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Application Interface: Codec Port.

Synopsis:
    Symmetric value <-> bytes conversion used by the read-through cache.
    ``decode(encode(v)) == v`` must hold for every valid value.

Layer:
    application/interfaces
"""

from __future__ import annotations

from typing import Protocol, TypeVar

__all__ = ["Codec"]

T = TypeVar("T")


class Codec(Protocol[T]):
    """Serializer for a single value type."""

    def encode(self, value: T) -> bytes:
        """Encode a value.

        Raises:
            EncodeFailed: If the value cannot be serialized.
        """

    def decode(self, data: bytes) -> T:
        """Decode stored bytes.

        Raises:
            DecodeFailed: If the bytes are not a valid encoding.
        """
