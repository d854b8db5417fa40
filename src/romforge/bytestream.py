"""
Byte Objects
============

A ByteObject ties one logical unit of game data (a sprite, a palette, a
name, a stats record) to its location in a ROM image, and converts
between the raw bytes stored there and an editable representation.

Responsibilities
----------------
- **Addressing**: the data is found through an Address (explicit offset,
  inline table entry, or pointer table entry) resolved against a Rom.
- **Loading**: bytes are read lazily on first use; LZ77-compressed data is
  decompressed, terminated strings are read up to their 0xFF.
- **Representation**: an attached RepresentationCodec decodes the bytes
  into an editable value and encodes it back.
- **Writing**: direct addresses are overwritten in place; pointer
  addresses are repointed to free space so that data that has grown
  never overwrites its neighbours.

Caches
------
A ByteObject keeps the raw bytes (always plaintext), the compressed
stream, the compressed-length estimate and the representation. Once a
representation is loaded it is authoritative: to_bytes() re-encodes it on
every call, so edits made to it in place are never hidden by stale bytes.

    Unpopulated --to_bytes()--> BytesLoaded --representation--> RepresentationLoaded
         ^                                                           |
         +------------------------- reload() ------------------------+

write() is the only operation that touches the ROM. Afterwards the raw
byte cache is dropped and the representation is kept.

Usage
-----
    >>> rom = Rom.open("firered.gba")
    >>> palette = ByteObject.from_table_as_pointer(
    ...     rom, "palette_table", 1, compressed=True, codec=PaletteCodec())
    >>> palette.representation[0] = (248, 0, 0)
    >>> for line in palette.write():
    ...     print(line)
"""

from typing import Any, Optional
import logging

from romforge.address import Address, ExplicitAddress, PointerAddress, TableAddress
from romforge.codecs.base import RawCodec, RepresentationCodec
from romforge.codecs.gba_string import GBAStringCodec
from romforge.errors import AddressError, CodecError, SizeError
from romforge.lz77 import compress
from romforge.offsets import (
    OffsetLike,
    format_offset,
    offset_to_pointer,
    parse_hex_bytes,
    parse_offset,
    to_hex,
)
from romforge.rom import STRING_TERMINATOR, Rom

# Logger for this module
logger = logging.getLogger(__name__)

# Largest payload write() accepts
MAX_WRITE_LENGTH = 10_000

# Filler for short terminated strings
STRING_FILLER = b"\x00"


class ByteObject:
    """
    A unit of ROM data with lazy loading, optional compression and a
    structured representation.

    Args:
        address: Where the data lives (None for a pure in-memory object)
        rom: ROM to read from and write to (not owned)
        codec: Representation codec (default: RawCodec)
        representation: Initial representation; marks the object as edited
        data: Initial raw bytes
        length: Bytes to read for fixed-length data, or the padded length
            of a terminated string
        compressed: Read and write the data as LZ77
        terminated_string: Read up to and including 0xFF; pad and terminate
            encoded output
        force_overwrite: Always write in place, even for pointer addresses
    """

    parse_offset = staticmethod(parse_offset)

    def __init__(
        self,
        address: Optional[Address] = None,
        rom: Optional[Rom] = None,
        *,
        codec: Optional[RepresentationCodec] = None,
        representation: Any = None,
        data: Optional[bytes] = None,
        length: Optional[int] = None,
        compressed: bool = False,
        terminated_string: bool = False,
        force_overwrite: bool = False,
    ):
        self._address = address
        self._rom = rom
        self.codec = codec or RawCodec()
        self.length_hint = length
        self.compressed = compressed
        self.terminated_string = terminated_string
        self.force_overwrite = force_overwrite

        self._representation: Any = representation
        self._bytes_cache: Optional[bytes] = bytes(data) if data is not None else None
        self._lz77_cache: Optional[bytes] = None
        self._length_cache: Optional[int] = None

        self.last_write: list[str] = []

    # =========================================================================
    # Factories
    # =========================================================================

    @classmethod
    def from_bytes(cls, data: bytes, **options) -> "ByteObject":
        """
        Create an object holding ``data``.

        Pass ``rom`` and an ``address`` in options to allow writing.
        """
        obj = cls(data=data, **options)
        obj._representation = obj.codec.decode(obj._bytes_cache)
        return obj

    @classmethod
    def from_hex(cls, text: str, **options) -> "ByteObject":
        """Same as from_bytes(), taking a hex literal such as "0x10FF00"."""
        return cls.from_bytes(parse_hex_bytes(text), **options)

    @classmethod
    def from_rom(cls, rom: Rom, offset: OffsetLike, length: Optional[int] = None,
                 **options) -> "ByteObject":
        """Read ``length`` bytes at an explicit offset."""
        return cls(ExplicitAddress(parse_offset(offset)), rom, length=length, **options)

    @classmethod
    def from_rom_as_lz77(cls, rom: Rom, offset: OffsetLike, **options) -> "ByteObject":
        """Read an LZ77 stream at an explicit offset."""
        options["compressed"] = True
        return cls(ExplicitAddress(parse_offset(offset)), rom, **options)

    @classmethod
    def from_table(cls, rom: Rom, table: str, index: int,
                   entry_length: Optional[int] = None,
                   length: Optional[int] = None, **options) -> "ByteObject":
        """
        Read entry ``index`` of a fixed-stride table.

        Args:
            entry_length: Table stride (default: the table's ``*_length``)
            length: Bytes to read (default: entry_length)
        """
        if length is None and not options.get("terminated_string"):
            length = entry_length if entry_length is not None else rom.entry_length(table)
        address = TableAddress(table, index, entry_length)
        return cls(address, rom, length=length, **options)

    @classmethod
    def from_table_as_pointer(cls, rom: Rom, table: str, index: int,
                              **options) -> "ByteObject":
        """Read the data a pointer table entry points at."""
        return cls(PointerAddress(table, index), rom, **options)

    @classmethod
    def from_string(cls, text: str, length: Optional[int] = None,
                    break_range: Optional[tuple[int, int]] = None,
                    **options) -> "ByteObject":
        """
        Create a GBA string from text.

        Args:
            text: The string; a trailing "$" marks it as already terminated
            length: Padded length including the terminator (default: just
                long enough for the text and its terminator)
        """
        if length is None:
            length = len(text) if text.endswith("$") else len(text) + 1
        return cls(
            codec=GBAStringCodec(break_range),
            representation=text,
            length=length,
            terminated_string=True,
            **options,
        )

    # =========================================================================
    # Addressing
    # =========================================================================

    @property
    def address(self) -> Optional[Address]:
        return self._address

    @address.setter
    def address(self, address: Optional[Address]) -> None:
        if address != self._address:
            self._address = address
            self.clear_cache()

    @property
    def rom(self) -> Optional[Rom]:
        return self._rom

    @rom.setter
    def rom(self, rom: Optional[Rom]) -> None:
        self._rom = rom
        self.clear_cache()

    @property
    def pointer_mode(self) -> bool:
        """True when the data is reached through a pointer table."""
        return isinstance(self._address, PointerAddress)

    @property
    def offset(self) -> Optional[int]:
        """
        The resolved file offset, or None if it cannot be resolved.
        """
        if self._address is None:
            return None
        if isinstance(self._address, ExplicitAddress):
            return self._address.offset
        if self._rom is None:
            return None
        return self._address.resolve(self._rom)

    @offset.setter
    def offset(self, value: OffsetLike) -> None:
        self.address = ExplicitAddress(parse_offset(value))

    @property
    def table(self) -> Optional[str]:
        return getattr(self._address, "table", None)

    @property
    def index(self) -> Optional[int]:
        return getattr(self._address, "index", None)

    @index.setter
    def index(self, index: int) -> None:
        if self.table is None:
            raise AddressError(f"Cannot set index {index} without a table.")
        self.set_table(self.table, index)

    def set_table(self, table: str, index: Optional[int] = None) -> None:
        """
        Point the object at a table entry, keeping the address kind.

        A pointer address stays a pointer address; anything else becomes an
        inline table entry with the previous stride.
        """
        if index is None:
            index = self.index
        if index is None:
            raise AddressError(f"An index is required to address table '{table}'.")

        if isinstance(self._address, PointerAddress):
            self.address = PointerAddress(table, index)
        else:
            entry_length = getattr(self._address, "entry_length", None)
            self.address = TableAddress(table, index, entry_length)

    @property
    def pointer(self) -> bytes:
        """The resolved offset in 3-byte pointer form."""
        offset = self.offset
        if offset is None:
            raise AddressError("Cannot build a pointer for an unresolved address.")
        return offset_to_pointer(offset)

    def describe_address(self) -> str:
        if self._address is None:
            return "<no address>"
        return self._address.describe()

    # =========================================================================
    # Bytes and Representation
    # =========================================================================

    def _finish_string(self, data: bytes) -> bytes:
        if self.length_hint:
            data = data[:self.length_hint].ljust(self.length_hint, STRING_FILLER)
            return data[:-1] + STRING_TERMINATOR
        if not data.endswith(STRING_TERMINATOR):
            data += STRING_TERMINATOR
        return data

    def _encode(self, value: Any) -> bytes:
        data = bytes(self.codec.encode(value))
        if self.terminated_string:
            data = self._finish_string(data)
        return data

    def _load_from_rom(self) -> Optional[bytes]:
        if self._rom is None:
            return None
        offset = self.offset
        if offset is None:
            return None

        if self.compressed:
            result = self._rom.read_compressed(offset)
            self._length_cache = result.original_length
            self._lz77_cache = result.original_stream
            logger.debug(
                f"Loaded {len(result.plaintext)} bytes of lz77 data from "
                f"{self.describe_address()} at {format_offset(offset)}"
            )
            return result.plaintext

        if self.terminated_string:
            return self._rom.read_string(offset)

        if self.length_hint is not None:
            return self._rom.read(offset, self.length_hint)

        logger.debug(f"No length set for {self.describe_address()}, nothing read")
        return None

    def to_bytes(self) -> bytes:
        """
        The raw (uncompressed) bytes.

        Encoded from the representation when one is loaded; otherwise
        taken from the cache or read from the ROM. Returns b"" when there
        is nothing to read.
        """
        if self._representation is not None:
            data = self._encode(self._representation)
            if data != self._bytes_cache:
                self._bytes_cache = data
                self._lz77_cache = None
            return data

        if self._bytes_cache is not None:
            return self._bytes_cache

        data = self._load_from_rom()
        if data is None:
            return b""
        self._bytes_cache = data
        return data

    @property
    def representation(self) -> Any:
        """
        The decoded, editable value; decoded from to_bytes() on first use.
        """
        if self._representation is None:
            self._representation = self.codec.decode(self.to_bytes())
        return self._representation

    @representation.setter
    def representation(self, value: Any) -> None:
        self.set_representation(value)

    def set_representation(self, value: Any) -> None:
        """Replace the representation; raw caches are re-derived from it."""
        self._representation = value
        self._bytes_cache = None
        self._lz77_cache = None

    def to_lz77(self) -> bytes:
        """
        The data as an LZ77 stream.

        Raises:
            CodecError: If there is no data to compress
        """
        data = self.to_bytes()
        if self._lz77_cache is None:
            if not data:
                raise CodecError(
                    f"Cannot compress empty data for {self.describe_address()}."
                )
            self._lz77_cache = compress(data)
        return self._lz77_cache

    def length(self) -> int:
        """
        Estimated on-ROM length for compressed data, else the payload length.

        The compressed estimate is rounded up to a multiple of 4 and may
        exceed the real stream; never use it to size a wipe. Without a ROM
        to read from, a compressed object reports its fresh stream length.
        """
        if not self.compressed:
            return len(self.to_bytes())

        if self._length_cache is None and self._rom is not None:
            offset = self.offset
            if offset is not None:
                self._length_cache = self._rom.read_compressed(offset).original_length
        if self._length_cache is not None:
            return self._length_cache
        return len(self.to_lz77()) if self.to_bytes() else 0

    def clear_cache(self, compressed: bool = True) -> "ByteObject":
        """
        Drop the raw byte caches so data is re-derived or re-read.

        Args:
            compressed: Also drop the compressed stream and length estimate
        """
        self._bytes_cache = None
        if compressed:
            self._lz77_cache = None
            self._length_cache = None
        return self

    def reload(self) -> "ByteObject":
        """
        Discard the representation and all caches, then decode afresh from
        the ROM. Unwritten edits are lost.
        """
        self._representation = None
        self.clear_cache()
        _ = self.representation
        return self

    # =========================================================================
    # Writing
    # =========================================================================

    def write(self) -> list[str]:
        """
        Write the data back to the ROM.

        Explicit offsets and inline table entries are overwritten in place.
        Pointer table entries are moved to the first suitable free space and
        the pointer is rewritten; the old bytes are left untouched, since
        their true extent cannot be known reliably.

        Returns:
            The audit trail of this write (also kept in last_write)

        Raises:
            AddressError: If the ROM or address is not set
            SizeError: If the payload is empty or over MAX_WRITE_LENGTH
            AllocationError: If no free space is large enough
        """
        if self._rom is None or self._address is None:
            raise AddressError(
                "Rom and offset or table/index must be set before writing."
            )

        payload = self.to_lz77() if self.compressed else self.to_bytes()

        if not payload:
            raise SizeError(
                f"Byte string for {self.describe_address()} is empty. Aborting."
            )
        if len(payload) > MAX_WRITE_LENGTH:
            raise SizeError(
                f"Byte string too long ({len(payload)} bytes, limit "
                f"{MAX_WRITE_LENGTH}). Aborting."
            )

        rom = self._rom
        old_offset = self._address.resolve(rom)
        audit: list[str] = []

        if not self.pointer_mode or self.force_overwrite:
            audit.append(
                f"ByteObject#write: Overwriting in place. ({format_offset(old_offset)})"
            )
            audit.append(rom.write(old_offset, payload))
        else:
            new_offset = rom.find_free(len(payload))
            # Raises before anything is written if the pointer cannot hold it
            offset_to_pointer(new_offset)
            known = (
                f"{self._length_cache} bytes" if self._length_cache is not None
                else "old data"
            )
            audit.append(
                f"ByteObject#repoint: Wiping disabled. Leaving {known} at "
                f"{format_offset(old_offset)} in {rom} intact."
            )
            audit.append(f"ByteObject#repoint: Repointed to {format_offset(new_offset)}.")
            # Data first, so a failed write never leaves the pointer dangling
            audit.append(rom.write(new_offset, payload))
            audit.append(rom.write_pointer(self.table, self.index, new_offset))

        self.last_write = audit
        self._bytes_cache = None
        self._length_cache = None
        return list(audit)

    # =========================================================================
    # Output
    # =========================================================================

    def to_hex(self, pretty: bool = False) -> str:
        """The raw bytes as hex, optionally grouped in quartets."""
        return to_hex(self.to_bytes(), pretty)

    def to_hex_reverse(self) -> str:
        """Hex of the raw bytes in reverse order."""
        return to_hex(self.to_bytes()[::-1])

    def to_int(self) -> int:
        """The raw bytes read as one big-endian integer."""
        return int.from_bytes(self.to_bytes(), "big")

    def __str__(self) -> str:
        return self.to_hex(pretty=True)

    def __repr__(self) -> str:
        flags = [
            name for name, on in (
                ("lz77", self.compressed),
                ("string", self.terminated_string),
                ("force", self.force_overwrite),
            ) if on
        ]
        return (
            f"{type(self).__name__}({self.describe_address()}, "
            f"codec={self.codec.name}, flags={flags})"
        )
