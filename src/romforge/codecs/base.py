"""
Representation Codec Interface
==============================

A representation codec converts between the raw bytes of a ByteObject
and a structured, editable value (a string, a list of colours, a stats
record). The ByteObject only ever talks to this interface.

Contract
--------
- ``decode(data)`` builds a representation from bytes
- ``encode(value)`` produces bytes from a representation
- If a codec is built for a fixed output length, padding or truncating to
  that length is the codec's job. The only exception is the ByteObject's
  terminated-string mode, where the core pads and terminates itself.
"""

from abc import ABC, abstractmethod
from typing import Any


class RepresentationCodec(ABC):
    """Abstract base for bytes <-> representation converters."""

    #: Short name used in messages and CLI output
    name: str = "codec"

    @abstractmethod
    def decode(self, data: bytes) -> Any:
        """Build a representation from raw bytes."""

    @abstractmethod
    def encode(self, value: Any) -> bytes:
        """Produce raw bytes from a representation."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class RawCodec(RepresentationCodec):
    """Identity codec: the representation is a mutable copy of the bytes."""

    name = "raw"

    def decode(self, data: bytes) -> bytearray:
        return bytearray(data)

    def encode(self, value: Any) -> bytes:
        return bytes(value)
