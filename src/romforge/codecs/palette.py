"""
Palette Codec
=============

GBA palettes are arrays of little-endian 16-bit RGB555 words:

    bit  15   14-10  9-5    4-0
         -    blue   green  red

Each 5-bit component maps to an 8-bit value by shifting left by 3, so
decoded colours are always multiples of 8. A palette must hold exactly 16
colours to work in game; use Palette.pad() to fill the remaining slots.

Usage
-----
    >>> codec = PaletteCodec()
    >>> codec.decode(bytes([0x1F, 0x00, 0xE0, 0x03]))
    [(248, 0, 0), (0, 248, 0)]
"""

from typing import Final, Iterable, Optional

from romforge.codecs.base import RepresentationCodec
from romforge.errors import SizeError

# Colours per palette
MAX_COLORS: Final[int] = 16

# Default colour used to pad short palettes
PAD_COLOR: Final[tuple[int, int, int]] = (16, 16, 16)

RED_MASK: Final[int] = 0x001F
GREEN_MASK: Final[int] = 0x03E0
BLUE_MASK: Final[int] = 0x7C00

Color = tuple[int, int, int]


def _check_color(color: Iterable[int]) -> Color:
    components = tuple(color)
    if len(components) != 3:
        raise SizeError(f"Color must be (R, G, B). ({components})")
    for c in components:
        if not 0 <= c <= 255:
            raise SizeError(f"Color component out of bounds. ({components})")
    return components


class Palette(list):
    """
    A list of (R, G, B) colours limited to 16 entries.
    """

    def index_of(self, color: Iterable[int]) -> Optional[int]:
        """Position of a colour, or None if absent."""
        color = tuple(color)
        return self.index(color) if color in self else None

    def add_color(self, color: Iterable[int], force: bool = False) -> "Palette":
        """
        Append a colour unless already present (or ``force`` is set).

        Raises:
            SizeError: If the colour is malformed or the palette would
                exceed 16 colours
        """
        color = _check_color(color)
        if color in self and not force:
            return self
        if len(self) >= MAX_COLORS:
            raise SizeError(
                f"Palette must be no larger than {MAX_COLORS}. "
                f"({len(self) + 1}, {color})"
            )
        self.append(color)
        return self

    def pad(self, length: int = MAX_COLORS, color: Color = PAD_COLOR) -> "Palette":
        """Fill with ``color`` until the palette holds ``length`` colours."""
        while len(self) < length:
            self.add_color(color, force=True)
        return self


class PaletteCodec(RepresentationCodec):
    """Codec between RGB555 words and a Palette of 8-bit colours."""

    name = "palette"

    def decode(self, data: bytes) -> Palette:
        palette = Palette()
        for i in range(0, len(data) - 1, 2):
            word = int.from_bytes(data[i:i + 2], "little")
            palette.append((
                (word & RED_MASK) << 3,
                (word & GREEN_MASK) >> 5 << 3,
                (word & BLUE_MASK) >> 10 << 3,
            ))
        return palette

    def encode(self, value: Iterable[Iterable[int]]) -> bytes:
        colors = [_check_color(c) for c in value]
        if len(colors) > MAX_COLORS:
            raise SizeError(
                f"Palette must be no larger than {MAX_COLORS}. ({len(colors)})"
            )

        out = bytearray()
        for red, green, blue in colors:
            word = (red >> 3) | (green >> 3 << 5) | (blue >> 3 << 10)
            out += word.to_bytes(2, "little")
        return bytes(out)
