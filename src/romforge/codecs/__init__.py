"""
Representation Codecs
=====================

Converters between the raw bytes of a ByteObject and an editable value:

- **RawCodec**: bytes <-> bytearray
- **GBAStringCodec**: GBA-encoded text <-> str
- **PaletteCodec**: RGB555 words <-> Palette of (R, G, B) tuples
- **StatsCodec**: 28-byte base stats records <-> BaseStats
- **SpriteCodec**: 4bpp 8x8 tile data <-> Sprite of palette indices
- **BattlerCodec**: battler table entries <-> BattlerEntry

Write a new codec by subclassing RepresentationCodec and implementing
decode() and encode().
"""

from romforge.codecs.base import RepresentationCodec, RawCodec
from romforge.codecs.gba_string import GBAStringCodec, CHARMAP_IN, CHARMAP_OUT
from romforge.codecs.palette import Palette, PaletteCodec, MAX_COLORS
from romforge.codecs.stats import BaseStats, StatsCodec, STATS_LENGTH
from romforge.codecs.sprite import Sprite, SpriteCodec, frame_count
from romforge.codecs.battler import Battler, BattlerCodec, BattlerEntry, BATTLER_FIELDS

__all__ = [
    "RepresentationCodec",
    "RawCodec",
    "GBAStringCodec",
    "CHARMAP_IN",
    "CHARMAP_OUT",
    "Palette",
    "PaletteCodec",
    "MAX_COLORS",
    "BaseStats",
    "StatsCodec",
    "STATS_LENGTH",
    "Sprite",
    "SpriteCodec",
    "frame_count",
    "Battler",
    "BattlerCodec",
    "BattlerEntry",
    "BATTLER_FIELDS",
]
