"""
GBA String Codec
================

Gen III games store text in a proprietary single-byte encoding. Strings
end with 0xFF and may contain 0xFE line breaks. This codec covers the
characters used in monster, item, ability and type names.

Representation
--------------
A Python str. The terminator is shown as ``$`` so that a decoded string
round-trips exactly; ByteObject string mode appends or normalises the
terminator itself, so callers can work with plain text:

    >>> codec = GBAStringCodec()
    >>> codec.encode("BULBASAUR$").hex()
    'bccfc6bcbbcdbbcfccff'
    >>> codec.decode(bytes.fromhex("bccfc6bcbbcdbbcfccff"))
    'BULBASAUR$'

Bytes without a mapping decode to ``?``; characters without a mapping
encode to 0x00 (blank).
"""

from typing import Final, Optional

from romforge.codecs.base import RepresentationCodec

# Byte treated as a blank when breaking lines
BLANK: Final[int] = 0x00

# Line break byte
NEWLINE: Final[int] = 0xFE

# End of string byte
TERMINATOR: Final[int] = 0xFF

# Character shown for the terminator
TERMINATOR_CHR: Final[str] = "$"

# Fallbacks for unmapped values
MISSING_CHR: Final[str] = "?"
MISSING_BYTE: Final[int] = BLANK


def _build_charmap() -> dict[int, str]:
    charmap = {
        0x00: " ",
        0x1B: "é",
        0x2D: "&",
        0x2E: "+",
        0x36: ";",
        0x5B: "%",
        0x5C: "(",
        0x5D: ")",
        0x85: "<",
        0x86: ">",
        0xAB: "!",
        0xAC: "?",
        0xAD: ".",
        0xAE: "-",
        0xAF: "·",
        0xB1: "«",
        0xB2: "»",
        0xB4: "'",
        0xB5: "♂",
        0xB6: "♀",
        0xB8: ",",
        0xB9: "×",
        0xBA: "/",
        0xF0: ":",
        NEWLINE: "\n",
        TERMINATOR: TERMINATOR_CHR,
    }
    for i in range(10):
        charmap[0xA1 + i] = str(i)
    for i in range(26):
        charmap[0xBB + i] = chr(ord("A") + i)
        charmap[0xD5 + i] = chr(ord("a") + i)
    return charmap


#: Byte value -> character
CHARMAP_OUT: Final[dict[int, str]] = _build_charmap()

#: Character -> byte value
CHARMAP_IN: Final[dict[str, int]] = {char: code for code, char in CHARMAP_OUT.items()}


class GBAStringCodec(RepresentationCodec):
    """
    Codec between GBA-encoded bytes and Python strings.

    Args:
        break_range: Optional (start, stop) byte positions; when given, the
            last blank inside the range is replaced with a line break, or
            position start + 3 if the range has no blank.
    """

    name = "string"

    def __init__(self, break_range: Optional[tuple[int, int]] = None):
        self.break_range = break_range

    def decode(self, data: bytes) -> str:
        return "".join(CHARMAP_OUT.get(b, MISSING_CHR) for b in data)

    def encode(self, value: str) -> bytes:
        out = bytearray(CHARMAP_IN.get(ch, MISSING_BYTE) for ch in value)

        if self.break_range is not None:
            start, stop = self.break_range
            window = out[start:stop]
            blank = window.rfind(BLANK)
            position = start + (blank if blank >= 0 else 3)
            if position < len(out):
                out[position] = NEWLINE

        return bytes(out)
