"""
Battler Position Codec
======================

Where a monster stands in battle is spread over three per-index tables:

    Table              Value
    -----------------  -----------------------------------------------
    enemy_y_table      vertical offset of the front sprite (foe side)
    player_y_table     vertical offset of the back sprite (player side)
    enemy_alt_table    elevation of the foe sprite; 0 means on the ground
                       with a shadow drawn below it

Each table's stride comes from its ``*_length`` parameter. Coordinate
entries hold a size byte followed by the value (byte 1); single-byte
entries hold the value alone. The other bytes of an entry are carried
through unchanged on write.
"""

from dataclasses import dataclass, field
from typing import Final, Optional

from romforge.codecs.base import RepresentationCodec
from romforge.errors import SizeError

# Tables making up a battler, in the order they are reported
BATTLER_FIELDS: Final[tuple[str, ...]] = ("enemy_y", "player_y", "enemy_alt")

# Position of the value inside entries longer than one byte
VALUE_POSITION: Final[int] = 1


def value_position(entry_length: int) -> int:
    """Byte of an entry that holds the battler value."""
    return VALUE_POSITION if entry_length > VALUE_POSITION else 0


@dataclass
class BattlerEntry:
    """One entry of a battler table."""
    value: int = 0
    raw: bytes = field(default=b"", repr=False)


@dataclass
class Battler:
    """Battle placement of one monster."""
    enemy_y: int = 0
    player_y: int = 0
    enemy_alt: int = 0

    @property
    def has_shadow(self) -> bool:
        """Grounded foes get a shadow; elevated ones do not."""
        return self.enemy_alt == 0

    def to_dict(self) -> dict[str, int]:
        return {name: getattr(self, name) for name in BATTLER_FIELDS}


class BattlerCodec(RepresentationCodec):
    """
    Codec between one battler table entry and a BattlerEntry.

    Args:
        length: Entry size used when encoding an entry that was never
            read from a ROM
    """

    name = "battler"

    def __init__(self, length: Optional[int] = None):
        self.length = length

    def __repr__(self) -> str:
        return f"BattlerCodec(length={self.length})"

    def decode(self, data: bytes) -> BattlerEntry:
        if not data:
            return BattlerEntry(raw=b"")
        return BattlerEntry(value=data[value_position(len(data))], raw=bytes(data))

    def encode(self, value: BattlerEntry) -> bytes:
        if not 0 <= value.value <= 0xFF:
            raise SizeError(f"Battler value must fit in a byte. ({value.value})")

        entry = bytearray(value.raw or bytes(self.length or VALUE_POSITION + 1))
        entry[value_position(len(entry))] = value.value
        return bytes(entry)
