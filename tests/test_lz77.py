"""
LZ77 Codec Tests
================

Tests for the GBA BIOS LZ77 (type 0x10) compressor and decompressor.

Test Categories
---------------
1. Decompression: hand-built streams, overlapping copies, error cases
2. Compression: header, alignment, back-reference constraints
3. Round-trip: compress then decompress for varied inputs
"""

import random
from io import BytesIO

import pytest

from romforge.errors import CodecError, SizeError
from romforge.lz77 import (
    HEADER_SIZE,
    LZ77_MAGIC,
    MAX_PLAINTEXT,
    MIN_MATCH,
    compress,
    decompress,
    decompress_file,
)


def back_references(stream: bytes) -> list[tuple[int, int]]:
    """Walk a stream and list every (length, distance) back-reference."""
    target = int.from_bytes(stream[1:4], "little")
    pos = HEADER_SIZE
    produced = 0
    refs = []
    while produced < target:
        flags = stream[pos]
        pos += 1
        for bit in range(7, -1, -1):
            if produced >= target:
                break
            if (flags >> bit) & 1:
                b0, b1 = stream[pos], stream[pos + 1]
                pos += 2
                length = (b0 >> 4) + 3
                distance = (((b0 & 0x0F) << 8) | b1) + 1
                refs.append((length, distance))
                produced += length
            else:
                pos += 1
                produced += 1
    return refs


# =============================================================================
# Decompression Tests
# =============================================================================

class TestDecompress:
    """Tests for decompress() on hand-built streams."""

    def test_literals_only(self):
        """A stream of literal units yields those bytes."""
        result = decompress(bytes.fromhex("10030000" "00" "414243"))
        assert result.plaintext == b"ABC"

    def test_overlapping_copy(self):
        """A back-reference longer than its distance repeats the run."""
        # One literal 'A', then copy 18 bytes from distance 1
        stream = bytes.fromhex("10130000" "40" "41" "f000")
        assert decompress(stream).plaintext == b"A" * 19

    def test_original_length_is_aligned(self):
        """The consumed span is rounded up to a multiple of four."""
        stream = bytes.fromhex("10030000" "00" "414243")
        result = decompress(stream + b"\xee" * 8)
        assert result.original_length == 8
        assert result.original_stream == stream

    def test_original_length_rounds_up(self):
        stream = bytes.fromhex("10020000" "00" "4142")
        result = decompress(stream + b"\xee" * 8)
        assert result.original_length == 8

    def test_offset_into_buffer(self):
        """Streams can start anywhere in the buffer."""
        packed = compress(b"hello hello hello")
        result = decompress(b"\xff" * 12 + packed, offset=12)
        assert result.plaintext == b"hello hello hello"

    def test_decompress_file(self):
        """decompress_file reads from a seekable file object."""
        packed = compress(b"sprite data")
        f = BytesIO(b"\x00" * 4 + packed)
        assert decompress_file(f, 4, "test").plaintext == b"sprite data"

    def test_zero_length_stream(self):
        assert decompress(bytes.fromhex("10000000")).plaintext == b""


class TestDecompressErrors:
    """Tests for malformed streams."""

    def test_bad_magic(self):
        """Data not starting with 0x10 is rejected with the byte found."""
        with pytest.raises(CodecError, match=r"does not appear to be lz77 data\. \(Found 11\)"):
            decompress(bytes.fromhex("11000000"))

    def test_bad_magic_reports_offset(self):
        with pytest.raises(CodecError) as exc_info:
            decompress(b"\x00" * 8, offset=4, source="test.gba")
        assert exc_info.value.offset == 4
        assert "Offset 4 in test.gba" in str(exc_info.value)

    def test_underflow(self):
        """A back-reference before the start of the output fails."""
        stream = bytes.fromhex("10040000" "80" "0000")
        with pytest.raises(CodecError, match="Decompression failed"):
            decompress(stream)

    def test_truncated_data(self):
        """A stream that ends early fails instead of returning short data."""
        stream = bytes.fromhex("10080000" "00" "41")
        with pytest.raises(CodecError, match="stream ended"):
            decompress(stream)

    def test_truncated_header(self):
        with pytest.raises(CodecError, match="Truncated"):
            decompress(b"\x10\x01")

    def test_empty_input(self):
        with pytest.raises(CodecError, match="Found EOF"):
            decompress(b"")


# =============================================================================
# Compression Tests
# =============================================================================

class TestCompress:
    """Tests for compress()."""

    def test_header(self):
        """The stream starts with 0x10 and the 24-bit plaintext length."""
        packed = compress(b"x" * 300)
        assert packed[0] == LZ77_MAGIC
        assert int.from_bytes(packed[1:4], "little") == 300

    def test_stream_is_word_aligned(self):
        for size in (1, 2, 3, 7, 19, 100):
            assert len(compress(bytes(range(size)))) % 4 == 0

    def test_repetition_benefits(self):
        """Nineteen identical bytes compress below their literal size."""
        packed = compress(b"A" * 19)
        assert len(packed) < 19 + HEADER_SIZE
        assert decompress(packed).plaintext == b"A" * 19

    def test_distances_are_vram_safe(self):
        """Every back-reference reaches at least three bytes back."""
        data = b"\x00" * 64 + b"ab" * 40 + bytes(range(50)) * 3
        packed = compress(data)
        refs = back_references(packed)
        assert refs
        for length, distance in refs:
            assert MIN_MATCH <= length <= 18
            assert distance >= 3

    def test_empty_input(self):
        with pytest.raises(CodecError):
            compress(b"")

    def test_too_large(self):
        with pytest.raises(SizeError):
            compress(bytes(MAX_PLAINTEXT + 1))


class TestRoundTrip:
    """Compress then decompress."""

    @pytest.mark.parametrize("data", [
        b"A",
        b"AB",
        b"ABCABCABCABCABCABCABC",
        bytes(range(256)) * 4,
        b"\xff" * 5000,
    ])
    def test_round_trip(self, data):
        assert decompress(compress(data)).plaintext == data

    def test_random_data(self):
        """Incompressible data survives as literals."""
        data = random.Random(1234).randbytes(2000)
        assert decompress(compress(data)).plaintext == data

    def test_long_window(self):
        """Matches are found across most of the 4 KiB window."""
        rng = random.Random(99)
        block = rng.randbytes(64)
        data = block + rng.randbytes(4000) + block
        packed = compress(data)
        assert decompress(packed).plaintext == data
        assert any(distance > 3000 for _, distance in back_references(packed))
