"""
Monsters
========

A Monster bundles every piece of ROM data belonging to one species under
a single real index, so that it can be read, edited, moved to another
index or copied to another ROM as a unit.

Dex Numbers and Real Indices
----------------------------
Gen III tables are ordered by an internal index, not by national dex
number. A run of ``dex_blank_length`` unused slots starts at
``dex_blank_start``, so dex numbers at or past that point are shifted:

    >>> parse_index(25, rom)        # below the blank run
    25
    >>> parse_index(252, rom)       # 252 + 25
    277
    >>> parse_index("!300", rom)    # "!" gives the real index directly
    300

Parts
-----
    name        name_table entry (GBA string)
    stats       stats_table entry (BaseStats)
    front       front sprite, LZ77 behind front_table
    back        back sprite, LZ77 behind back_table
    palette     normal palette, LZ77 behind palette_table
    shinypal    shiny palette, LZ77 behind shinypal_table
    enemy_y     \\
    player_y     > battler entries, only when the tables are configured
    enemy_alt   /
"""

import logging
import re
from typing import Optional, Union

from romforge.bytestream import ByteObject
from romforge.codecs.battler import BATTLER_FIELDS, Battler, BattlerCodec
from romforge.codecs.gba_string import GBAStringCodec
from romforge.codecs.palette import PaletteCodec
from romforge.codecs.sprite import SpriteCodec, frame_count
from romforge.codecs.stats import StatsCodec
from romforge.errors import AddressError
from romforge.group import ByteObjectGroup
from romforge.rom import Rom

# Logger for this module
logger = logging.getLogger(__name__)

IndexLike = Union[int, str]

_INDEX_LITERAL = re.compile(r"[0-9!]+")

SPRITE_PARTS = ("front", "back")
PALETTE_PARTS = ("palette", "shinypal")


def parse_index(index: IndexLike, rom: Rom) -> int:
    """
    Convert a dex number, or a "!"-prefixed real index, to a real index.

    Args:
        index: A dex number (int or digits), or a string containing "!"
            followed by the real index
        rom: ROM whose ``dex_*`` parameters define the mapping

    Returns:
        The real table index

    Raises:
        AddressError: If the index is malformed or past ``dex_length``
    """
    text = str(index).strip()
    if isinstance(index, bool) or not _INDEX_LITERAL.fullmatch(text):
        raise AddressError(f"'{index}' does not look like a valid index.")

    if "!" in text:
        digits = text.rpartition("!")[2]
        if not digits:
            raise AddressError(f"'{index}' does not look like a valid index.")
        real = int(digits)
    else:
        number = int(text)
        if number < int(rom.param("dex_blank_start")):
            real = number
        else:
            real = number + int(rom.param("dex_blank_length"))

    dex_length = int(rom.param("dex_length"))
    if real >= dex_length:
        raise AddressError(
            f"Real index {real} out of bounds; {rom.id} has {dex_length} monsters."
        )

    logger.debug(f"Index {index!r} is real index {real} in {rom}")
    return real


class Monster(ByteObjectGroup):
    """
    All data of one monster, addressed by its real index.

    Example:
        >>> mon = Monster(rom, 1)
        >>> mon.name
        'BULBASAUR'
        >>> mon.part("stats").representation.hp = 50
        >>> mon.index = 4          # every part now addresses entry 4
        >>> mon.rom = other_rom    # every part now reads from other_rom
        >>> mon.write()
    """

    def __init__(self, rom: Rom, index: IndexLike):
        real = parse_index(index, rom)
        self.parts: dict[str, ByteObject] = {}
        super().__init__(rom=rom, index=real)

        self._add_part("name", ByteObject.from_table(
            rom, "name_table", real, codec=GBAStringCodec(), terminated_string=True,
        ))
        self._add_part("stats", ByteObject.from_table(
            rom, "stats_table", real, codec=StatsCodec(),
        ))
        for part in SPRITE_PARTS:
            self._add_part(part, ByteObject.from_table_as_pointer(
                rom, f"{part}_table", real, compressed=True, codec=SpriteCodec(),
            ))
        for part in PALETTE_PARTS:
            self._add_part(part, ByteObject.from_table_as_pointer(
                rom, f"{part}_table", real, compressed=True, codec=PaletteCodec(),
            ))

        if all(f"{part}_table" in rom.variant for part in BATTLER_FIELDS):
            for part in BATTLER_FIELDS:
                table = f"{part}_table"
                self._add_part(part, ByteObject.from_table(
                    rom, table, real, codec=BattlerCodec(rom.entry_length(table)),
                ))

    def _add_part(self, name: str, child: ByteObject) -> None:
        self.parts[name] = self.add(child)

    def part(self, name: str) -> ByteObject:
        """The ByteObject holding one named part."""
        try:
            return self.parts[name]
        except KeyError:
            raise AddressError(
                f"Monster {self.index} has no part '{name}'. "
                f"Known parts: {', '.join(self.parts)}"
            ) from None

    @property
    def name(self) -> str:
        return self.part("name").representation.rstrip("$")

    @property
    def has_battler(self) -> bool:
        return all(part in self.parts for part in BATTLER_FIELDS)

    @property
    def battler(self) -> Optional[Battler]:
        """Battle placement, or None if the variant has no battler tables."""
        if not self.has_battler:
            return None
        return Battler(**{
            part: self.parts[part].representation.value for part in BATTLER_FIELDS
        })

    @battler.setter
    def battler(self, battler: Battler) -> None:
        for part in BATTLER_FIELDS:
            self.part(part).representation.value = getattr(battler, part)

    def justify_sprites(self) -> None:
        """Crop or repeat both sprite sheets to the frame counts of this index."""
        for part in SPRITE_PARTS:
            table = f"{part}_table"
            frames = frame_count(self.rom.variant, table, self.index)
            self.part(part).representation.justify(frames)

    def to_dict(self) -> dict[int, dict]:
        """Name and battler placement keyed by real index."""
        data: dict = {"name": self.name}
        if self.has_battler:
            data["battler"] = self.battler.to_dict()
        return {self.index: data}

    def __str__(self) -> str:
        return f"{self.index}. {self.name}"
