"""
GBA LZ77 Compression Codec
==========================

This module implements the LZ77 variant understood by the GBA BIOS
(``LZ77UnCompWram`` / ``LZ77UnCompVram``, compression type 0x10). Most
sprite and palette data in the supported ROMs is stored this way.

Stream Layout
-------------
    +------+---------------------------+
    | 0x10 | decompressed length (LE)  |   4-byte header
    +------+---------------------------+
    | flag | unit | unit | ... (x8)    |   repeated blocks
    +------+---------------------------+

Each flag byte describes the next eight units, most significant bit
first:

- bit 0: the unit is one literal byte
- bit 1: the unit is a two-byte back-reference::

      byte0 = (length - 3) << 4 | (distance - 1) >> 8
      byte1 = (distance - 1) & 0xFF

  giving copy lengths of 3..18 and distances of 1..4096.

Back-references are copied one byte at a time, so a copy may read bytes
that it has itself just produced; this is how runs longer than the
distance are expressed.

Original Length
---------------
``decompress`` also reports how many bytes of input it consumed, rounded
up to a multiple of 4. This is an estimate only: a compressor may pad a
stream arbitrarily, and the figure must not be used to decide how many
bytes are safe to wipe.

Usage
-----
    >>> from romforge.lz77 import compress, decompress
    >>> packed = compress(b"A" * 19)
    >>> decompress(packed).plaintext == b"A" * 19
    True

Credits
-------
Format notes follow GBATEK and the Gen III Hacking Suite tools.
"""

from dataclasses import dataclass, field
from io import BytesIO
from typing import BinaryIO, Final
import logging

from romforge.errors import CodecError, SizeError

# Logger for this module
logger = logging.getLogger(__name__)


# =============================================================================
# Format Constants
# =============================================================================

# First byte of every stream (compression type 1, reserved nibble 0)
LZ77_MAGIC: Final[int] = 0x10

# Header = magic + 3-byte little-endian decompressed length
HEADER_SIZE: Final[int] = 4

# Back-reference limits
MIN_MATCH: Final[int] = 3
MAX_MATCH: Final[int] = 18

# Bytes of already-emitted data searched for matches
WINDOW_SIZE: Final[int] = 0xFFF

# Units described by one flag byte
UNITS_PER_FLAG: Final[int] = 8

# Decompressed length is a 24-bit field
MAX_PLAINTEXT: Final[int] = 0xFFFFFF

# Compressed streams are padded to this alignment
STREAM_ALIGNMENT: Final[int] = 4


@dataclass(frozen=True)
class DecompressResult:
    """
    Result of decompressing one LZ77 stream.

    Attributes:
        plaintext: The decompressed data
        original_length: Bytes of input consumed, rounded up to a multiple
            of 4. Approximate; never use it to size a wipe.
        original_stream: The raw compressed bytes spanning original_length
    """
    plaintext: bytes
    original_length: int
    original_stream: bytes = field(repr=False)


def _align(value: int) -> int:
    """Round value up to the next multiple of STREAM_ALIGNMENT."""
    remainder = value % STREAM_ALIGNMENT
    return value if remainder == 0 else value + STREAM_ALIGNMENT - remainder


# =============================================================================
# Decompression
# =============================================================================

def decompress_file(f: BinaryIO, offset: int, source: str = "<file>") -> DecompressResult:
    """
    Decompress the LZ77 stream starting at ``offset`` in a seekable file.

    Only the bytes belonging to the stream are read.

    Args:
        f: Binary file object opened for reading
        offset: Position of the 0x10 magic byte
        source: Name used in error messages (usually the ROM filename)

    Returns:
        DecompressResult with plaintext and the approximate original span

    Raises:
        CodecError: If the magic byte is wrong, the stream is truncated or
            a back-reference points before the start of the output
    """
    f.seek(offset)
    header = f.read(HEADER_SIZE)

    if len(header) < 1 or header[0] != LZ77_MAGIC:
        found = f"{header[0]:02X}" if header else "EOF"
        raise CodecError(
            f"Offset {offset} in {source} does not appear to be lz77 data. "
            f"(Found {found})",
            offset=offset,
        )
    if len(header) < HEADER_SIZE:
        raise CodecError(
            f"Truncated lz77 header at offset {offset} in {source}.",
            offset=offset,
        )

    target_length = int.from_bytes(header[1:4], "little")
    logger.debug(
        f"Decompressing lz77 at 0x{offset:06X} in {source}: "
        f"{target_length} bytes expected"
    )

    def next_byte() -> int:
        b = f.read(1)
        if not b:
            raise CodecError(
                f"Decompression failed at offset {offset} in {source}: "
                f"stream ended after {len(out)} of {target_length} bytes.",
                offset=offset,
            )
        return b[0]

    out = bytearray()

    while len(out) < target_length:
        flags = next_byte()

        for bit in range(UNITS_PER_FLAG - 1, -1, -1):
            if len(out) >= target_length:
                break

            if not (flags >> bit) & 1:
                out.append(next_byte())
                continue

            b0 = next_byte()
            b1 = next_byte()
            length = (b0 >> 4) + MIN_MATCH
            distance = (((b0 & 0x0F) << 8) | b1) + 1

            source_pos = len(out) - distance
            if source_pos < 0:
                raise CodecError(
                    f"Decompression failed at offset {offset} in {source}. "
                    f"Possible corrupted file or unknown compression method. "
                    f"(back-reference distance {distance} at output "
                    f"position {len(out)})",
                    offset=offset,
                )

            for i in range(length):
                out.append(out[source_pos + i])

    consumed = _align(f.tell() - offset)
    f.seek(offset)
    original = f.read(consumed)

    return DecompressResult(
        plaintext=bytes(out[:target_length]),
        original_length=consumed,
        original_stream=original,
    )


def decompress(data: bytes, offset: int = 0, source: str = "<bytes>") -> DecompressResult:
    """
    Decompress the LZ77 stream starting at ``offset`` in a byte buffer.

    See decompress_file() for details.
    """
    return decompress_file(BytesIO(data), offset, source)


# =============================================================================
# Compression
# =============================================================================

def _longest_match(data: bytes, pos: int) -> tuple[int, int]:
    """
    Find the longest earlier occurrence of the data at ``pos``.

    The whole match must lie inside the window (before ``pos``), which keeps
    every distance at least MIN_MATCH and the output safe for the BIOS
    VRAM decompressor.

    Returns:
        (length, distance) with length 0 when no match of MIN_MATCH exists.
    """
    window_start = max(0, pos - WINDOW_SIZE)
    best_length = 0
    best_pos = -1

    length = MIN_MATCH
    while length <= MAX_MATCH and pos + length <= len(data):
        found = data.find(data[pos:pos + length], window_start, pos)
        if found < 0:
            break
        best_length, best_pos = length, found
        length += 1

    if best_length == 0:
        return 0, 0
    return best_length, pos - best_pos


def compress(data: bytes) -> bytes:
    """
    Compress data into a GBA-compatible LZ77 stream.

    Greedy: each unit is the longest window match of 3..18 bytes, or a
    literal when none exists. A final partial block has its unused unit
    slots filled with zero bytes, and the stream is padded to a multiple of
    four bytes.

    Args:
        data: Plaintext, 1 byte to 16 MiB - 1

    Returns:
        The compressed stream, header included

    Raises:
        CodecError: If data is empty
        SizeError: If data does not fit the 24-bit length field
    """
    if not data:
        raise CodecError("Cannot compress empty data.")
    if len(data) > MAX_PLAINTEXT:
        raise SizeError(
            f"Cannot compress {len(data)} bytes; lz77 streams hold at most "
            f"{MAX_PLAINTEXT} bytes."
        )

    data = bytes(data)
    out = bytearray([LZ77_MAGIC])
    out += len(data).to_bytes(3, "little")

    pos = 0
    while pos < len(data):
        flags = 0
        chunk = bytearray()

        for slot in range(UNITS_PER_FLAG):
            bit = UNITS_PER_FLAG - 1 - slot
            if pos >= len(data):
                chunk.append(0x00)
                continue

            length, distance = _longest_match(data, pos)
            if length:
                flags |= 1 << bit
                encoded = ((length - MIN_MATCH) << 12) | (distance - 1)
                chunk += encoded.to_bytes(2, "big")
                pos += length
            else:
                chunk.append(data[pos])
                pos += 1

        out.append(flags)
        out += chunk

    out += bytes(_align(len(out)) - len(out))

    logger.debug(f"Compressed {len(data)} bytes to {len(out)} bytes")
    return bytes(out)
