"""
Sprite Codec
============

Monster sprites are 4bpp tiled images. Each byte holds two palette
indices, low nibble first, and every 32 bytes form one 8x8 tile. Tiles
are laid out left to right, then top to bottom:

    bytes 0x00-0x03  tile 0, row 0   -> image row 0, pixels 0-7
    bytes 0x04-0x07  tile 0, row 1   -> image row 1, pixels 0-7
    bytes 0x20-0x23  tile 1, row 0   -> image row 0, pixels 8-15

The decoded representation is a flat, row-major list of palette indices
(0-15) together with the image width. Image file import and export are
left to the caller.

A sprite sheet holds one square frame per animation step, stacked
vertically. The number of frames per monster comes from the ``frames``
parameter ([front, other]) and per-index overrides in ``special_frames``.

Usage
-----
    >>> codec = SpriteCodec(width=8)
    >>> sprite = codec.decode(bytes([0x10]) * 32)
    >>> sprite.rows()[0]
    [0, 1, 0, 1, 0, 1, 0, 1]
"""

from typing import Any, Final, Iterable, Mapping

from romforge.codecs.base import RepresentationCodec
from romforge.errors import SizeError

# Tile edge in pixels
TILE_SIZE: Final[int] = 8

# Pixels per 8x8 tile
TILE_PIXELS: Final[int] = TILE_SIZE * TILE_SIZE

# Width of every monster battle sprite
DEFAULT_WIDTH: Final[int] = 64

# Highest 4bpp palette index
MAX_PIXEL: Final[int] = 15


def _check_width(width: int) -> int:
    if width <= 0 or width % TILE_SIZE:
        raise SizeError(
            f"Sprite width must be a positive multiple of {TILE_SIZE}. ({width})"
        )
    return width


class Sprite(list):
    """
    Row-major list of palette indices for an image ``width`` pixels wide.
    """

    def __init__(self, pixels: Iterable[int] = (), width: int = DEFAULT_WIDTH):
        super().__init__(pixels)
        self.width = _check_width(width)

    @property
    def height(self) -> int:
        return len(self) // self.width

    @property
    def frame_pixels(self) -> int:
        """Pixels in one square frame."""
        return self.width * self.width

    def rows(self) -> list[list[int]]:
        """The pixels split into rows."""
        return [self[i:i + self.width] for i in range(0, len(self), self.width)]

    def justify(self, frame_count: int) -> "Sprite":
        """
        Crop or repeat the sheet so it holds exactly ``frame_count`` frames.

        A single-frame image given to a monster with an animated sheet is
        repeated; extra frames are dropped.
        """
        if frame_count <= 0:
            raise SizeError(f"Frame count must be positive. ({frame_count})")
        if not self:
            raise SizeError("Cannot justify an empty sprite.")

        target = frame_count * self.frame_pixels
        source = list(self)
        while len(source) < target:
            source.extend(self)
        self[:] = source[:target]
        return self


class SpriteCodec(RepresentationCodec):
    """Codec between 4bpp tile data and a Sprite."""

    name = "sprite"

    def __init__(self, width: int = DEFAULT_WIDTH):
        self.width = _check_width(width)

    def __repr__(self) -> str:
        return f"SpriteCodec(width={self.width})"

    def decode(self, data: bytes) -> Sprite:
        tile_pixels = []
        for byte in data:
            tile_pixels += [byte & 0x0F, byte >> 4]

        tiles = [
            tile_pixels[i:i + TILE_PIXELS]
            for i in range(0, len(tile_pixels), TILE_PIXELS)
        ]
        columns = self.width // TILE_SIZE

        pixels = []
        for band in range(0, len(tiles), columns):
            band_tiles = tiles[band:band + columns]
            for y in range(TILE_SIZE):
                for tile in band_tiles:
                    pixels += tile[y * TILE_SIZE:(y + 1) * TILE_SIZE]
        return Sprite(pixels, width=self.width)

    def encode(self, value: Iterable[int]) -> bytes:
        pixels = list(value)
        width = getattr(value, "width", self.width)
        band_pixels = width * TILE_SIZE

        if not pixels or len(pixels) % band_pixels:
            raise SizeError(
                f"Sprite dimensions must be multiples of {TILE_SIZE}. "
                f"({len(pixels)} pixels, width {width})"
            )
        for pixel in pixels:
            if not 0 <= pixel <= MAX_PIXEL:
                raise SizeError(f"Pixel value out of bounds. ({pixel})")

        out = bytearray()
        for band in range(0, len(pixels), band_pixels):
            for column in range(width // TILE_SIZE):
                for y in range(TILE_SIZE):
                    start = band + y * width + column * TILE_SIZE
                    row = pixels[start:start + TILE_SIZE]
                    for x in range(0, TILE_SIZE, 2):
                        out.append(row[x] | row[x + 1] << 4)
        return bytes(out)


def frame_count(params: Mapping[str, Any], table: str, index: int) -> int:
    """
    Number of frames in the sprite sheet of entry ``index`` of ``table``.

    ``front_table`` uses the first value of ``frames`` (or of the
    ``special_frames`` entry for this index); every other sprite table
    uses the second. Keys of ``special_frames`` may be ints or strings,
    as JSON files only allow the latter.

    Args:
        params: A RomVariant or any mapping of parameters
        table: Sprite table name
        index: Real monster index
    """
    frames = params.get("frames", [1, 1])
    special = params.get("special_frames", {}) or {}
    for key in (index, str(index)):
        if key in special:
            frames = special[key]
            break

    return int(frames[0] if table == "front_table" else frames[1])
