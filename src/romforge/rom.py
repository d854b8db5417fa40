"""
ROM Image Access
================

The Rom class owns an open ROM image file and provides every low-level
operation the rest of the package builds on:

- Raw seek/read/write at file offsets
- Named table lookups driven by the ROM variant configuration
- 3-byte pointer table reads and writes
- LZ77 stream reads
- Free-space search for relocating data
- Reference-aware wiping of old data

ROM Identification
------------------
Every image carries a 4-character game code at offset 172 (0xAC), for
example ``BPRE`` for FireRed (E). The code selects the parameter set from
the RomConfig; unknown codes are rejected when the ROM is opened.

Pointer Tables
--------------
Sprite and palette tables hold one 8-byte entry per monster: a 4-byte GBA
pointer followed by 4 bytes of metadata. Only the low three bytes of the
pointer are read or written; the 0x08 bank byte is never touched.

Free Space
----------
Runs of 0xFF bytes are treated as unused. find_free() returns the first
word-aligned run of the requested length at or after the configured
``free_space_start``. The image is never grown.

Usage
-----
    >>> with Rom.open("firered.gba") as rom:
    ...     print(rom)                        # FireRed (E) [BPRE]
    ...     offset = rom.read_pointer("front_table", 1)
    ...     sprite = rom.read_compressed(offset).plaintext
"""

from pathlib import Path
from typing import BinaryIO, Final, Optional, Union
import logging
import warnings

from romforge.config import RomConfig, RomVariant
from romforge.errors import AllocationError, ConsistencyWarning, SizeError
from romforge.lz77 import DecompressResult, decompress_file
from romforge.offsets import (
    MAX_POINTER_OFFSET,
    POINTER_SIZE,
    format_offset,
    offset_to_pointer,
    pointer_to_offset,
)

# Logger for this module
logger = logging.getLogger(__name__)


# =============================================================================
# Layout Constants
# =============================================================================

# Position and size of the 4-character game code
ID_OFFSET: Final[int] = 172
ID_LENGTH: Final[int] = 4

# Stride of pointer table entries (4-byte pointer + 4 bytes metadata)
POINTER_ENTRY_LENGTH: Final[int] = 8

# Value of unused bytes
FREE_BYTE: Final[int] = 0xFF

# Terminator of GBA strings
STRING_TERMINATOR: Final[bytes] = b"\xff"


class Rom:
    """
    An open ROM image and its variant parameters.

    The Rom exclusively owns its file handle; ByteObjects only hold a
    reference to it. Use it as a context manager, or call close() when done.

    Attributes:
        path: Full path of the image file
        filename: File name without directory or extension
        id: The 4-character game code
        variant: Parameter set for this game code
    """

    def __init__(self, path: Union[str, Path], config: Optional[RomConfig] = None):
        """
        Open a ROM image for reading and writing.

        Args:
            path: Path to the ROM image
            config: Parameter tables to use (default: RomConfig.default())

        Raises:
            FileNotFoundError: If the file does not exist
            OSError: If the file cannot be opened read-write
            UnsupportedRomError: If the game code has no parameter set
        """
        self.path = Path(path)
        self.filename = self.path.stem
        self._file: BinaryIO = open(self.path, "r+b")

        try:
            self.id = self._load_id()
            self.variant: RomVariant = (config or RomConfig.default()).variant(self.id)
        except BaseException:
            self._file.close()
            raise

        logger.debug(f"Opened {self.path} as {self}")

    @classmethod
    def open(cls, path: Union[str, Path], config: Optional[RomConfig] = None) -> "Rom":
        """Open a ROM image. Same as Rom(path, config)."""
        return cls(path, config)

    def _load_id(self) -> str:
        raw = self.read(ID_OFFSET, ID_LENGTH)
        return raw.decode("ascii", errors="replace")

    # =========================================================================
    # Lifecycle
    # =========================================================================

    @property
    def closed(self) -> bool:
        return self._file.closed

    def close(self) -> None:
        """Close the ROM file."""
        if not self._file.closed:
            self._file.close()
            logger.debug(f"Closed {self.path}")

    def __enter__(self) -> "Rom":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __str__(self) -> str:
        """Blurb of the ROM title and id, e.g. 'FireRed (E) [BPRE]'."""
        return f"{self.variant.title} [{self.id}]"

    def __repr__(self) -> str:
        return f"Rom(path={str(self.path)!r}, id={self.id!r})"

    @property
    def file(self) -> BinaryIO:
        """The underlying file object."""
        return self._file

    @property
    def size(self) -> int:
        """Size of the image in bytes."""
        self._file.seek(0, 2)
        return self._file.tell()

    # =========================================================================
    # Parameters
    # =========================================================================

    def param(self, name: str):
        """
        Fetch a parameter for this ROM variant.

        Raises:
            MissingParameterError: If the variant has no such parameter
        """
        return self.variant[name]

    def table_base(self, table: str) -> int:
        """Base offset of a named table."""
        return self.variant.table_base(table)

    def entry_length(self, table: str) -> int:
        """Configured entry size of a named table."""
        return self.variant.entry_length(table)

    @property
    def free_space_start(self) -> int:
        return self.variant.free_space_start

    def table_offset(self, table: str, index: int, entry_length: Optional[int] = None) -> int:
        """
        Offset of entry ``index`` in a fixed-stride table.

        Args:
            table: Table name, e.g. "stats_table"
            index: Entry index
            entry_length: Stride in bytes (default: the ``*_length`` parameter)
        """
        if entry_length is None:
            entry_length = self.entry_length(table)
        return self.table_base(table) + index * entry_length

    # =========================================================================
    # Reading
    # =========================================================================

    def read(self, offset: int, length: Optional[int] = None) -> bytes:
        """
        Read ``length`` bytes at ``offset``, or everything to end of file.
        """
        self._file.seek(offset)
        if length is None:
            return self._file.read()
        return self._file.read(length)

    def read_until(self, offset: int, terminator: bytes = STRING_TERMINATOR) -> bytes:
        """
        Read from ``offset`` up to and including ``terminator``.

        Reads one byte at a time and stops at end of file if the terminator
        never appears.

        Args:
            offset: Start position
            terminator: Byte sequence ending the data (b"\\xff" for strings,
                b"\\xff\\xff" for level-up move lists)
        """
        if isinstance(terminator, int):
            terminator = bytes([terminator])

        self._file.seek(offset)
        out = bytearray()
        while True:
            b = self._file.read(1)
            if not b:
                break
            out += b
            if out.endswith(terminator):
                break
        return bytes(out)

    def read_string(self, offset: int) -> bytes:
        """Read a 0xFF-terminated GBA string, terminator included."""
        return self.read_until(offset, STRING_TERMINATOR)

    def read_table(
        self,
        table: str,
        index: int,
        entry_length: Optional[int] = None,
        length: Optional[int] = None,
    ) -> bytes:
        """
        Read ``length`` bytes (default: one entry) from a table entry.
        """
        if entry_length is None:
            entry_length = self.entry_length(table)
        if length is None:
            length = entry_length
        return self.read(self.table_offset(table, index, entry_length), length)

    def read_compressed(self, offset: int) -> DecompressResult:
        """
        Read the LZ77 stream at ``offset``.

        Returns:
            DecompressResult with plaintext, approximate original length and
            the raw compressed bytes

        Raises:
            CodecError: If the data at offset is not a valid stream
        """
        return decompress_file(self._file, offset, self.filename)

    def monster_name(self, index: int) -> str:
        """Decode the name table entry for a monster's real index."""
        from romforge.codecs.gba_string import GBAStringCodec

        offset = self.table_offset("name_table", index)
        return GBAStringCodec().decode(self.read_string(offset)).rstrip("$")

    # =========================================================================
    # Pointers
    # =========================================================================

    def pointer_entry_offset(self, table: str, index: int) -> int:
        """Offset of the pointer stored for entry ``index`` of a pointer table."""
        return self.table_base(table) + index * POINTER_ENTRY_LENGTH

    def read_pointer(self, table: str, index: int) -> int:
        """
        Read the file offset held in a pointer table entry.
        """
        entry = self.pointer_entry_offset(table, index)
        return pointer_to_offset(self.read(entry, POINTER_SIZE))

    def write_pointer(self, table: str, index: int, offset: int) -> str:
        """
        Point a pointer table entry at ``offset``.

        Returns:
            Audit message from write()
        """
        entry = self.pointer_entry_offset(table, index)
        logger.info(
            f"Repointing {table}[{index}] at {format_offset(entry)} "
            f"to {format_offset(offset)}"
        )
        return self.write(entry, offset_to_pointer(offset))

    def count_references(self, offset: int) -> int:
        """Number of occurrences of the 3-byte pointer to ``offset`` in the image."""
        return self.read(0).count(offset_to_pointer(offset))

    # =========================================================================
    # Free Space
    # =========================================================================

    def find_free(self, length: int, start: Optional[int] = None) -> int:
        """
        Find the first word-aligned run of ``length`` 0xFF bytes.

        Args:
            length: Run length in bytes
            start: Search start (default: the ``free_space_start`` parameter)

        Returns:
            Offset of the run; always a multiple of 4

        Raises:
            AllocationError: If no aligned run exists before end of file
                or before the last offset a pointer can address
            SizeError: If length is not positive
        """
        if length <= 0:
            raise SizeError(f"Cannot search for {length} bytes of free space.")
        if start is None:
            start = self.free_space_start

        query = bytes([FREE_BYTE]) * length
        data = self.read(start)

        cursor = 0
        while True:
            found = data.find(query, cursor)
            if found < 0:
                raise AllocationError(length, start, source=str(self))

            match = start + found
            if match > MAX_POINTER_OFFSET:
                # Runs past 16 MiB cannot be referenced by a table pointer
                raise AllocationError(length, start, source=str(self))
            if match % 4 == 0:
                logger.debug(
                    f"Found {length} free bytes at {format_offset(match)}"
                )
                return match

            # Compressed data and code must start on a word boundary
            cursor = found + 1

    # =========================================================================
    # Writing
    # =========================================================================

    def write(self, offset: int, data: bytes) -> str:
        """
        Overwrite bytes at ``offset``. The file is never extended.

        Returns:
            Audit message naming the byte count and offset

        Raises:
            SizeError: If the data would run past the end of the image
        """
        end = offset + len(data)
        size = self.size
        if end > size:
            raise SizeError(
                f"Writing {len(data)} bytes at {format_offset(offset)} would "
                f"extend {self} past its size of {size} bytes."
            )

        self._file.seek(offset)
        self._file.write(bytes(data))
        self._file.flush()

        message = f"Rom#write: Wrote {len(data)} bytes at {format_offset(offset)}."
        logger.info(message)
        return message

    def wipe(self, offset: int, length: int, force: bool = False) -> str:
        """
        Overwrite ``length`` bytes at ``offset`` with 0xFF.

        Unless forced, the wipe is refused when more than one pointer to
        ``offset`` exists in the image, since the data is still in use
        elsewhere. A refusal is reported with a ConsistencyWarning and the
        returned message; nothing is written.

        Returns:
            Audit message describing what happened
        """
        if not force:
            hits = self.count_references(offset)
            if hits > 1:
                message = (
                    f"Rom#wipe: Offset {format_offset(offset)} appears to be "
                    f"referenced by multiple pointers ({hits}), not wiping. "
                    f"Use wipe(offset, length, force=True) to override."
                )
                logger.warning(message)
                warnings.warn(message, ConsistencyWarning, stacklevel=2)
                return message

        self.write(offset, bytes([FREE_BYTE]) * length)
        return f"Rom#wipe: Wiped {length} bytes at {format_offset(offset)}."
