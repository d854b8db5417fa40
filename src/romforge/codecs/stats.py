"""
Base Stats Codec
================

Each monster has a 28-byte base stats record in ``stats_table``:

    Offset  Size  Field
    ------  ----  -----------------------------------------
    0x00    6     hp, attack, defense, speed, sp_atk, sp_def
    0x06    2     type_1, type_2
    0x08    1     catch_rate
    0x09    1     exp_yield
    0x0A    2     ev_yield (2 bits per stat, hp first, LSB first)
    0x0C    2     item_1 (u16 LE)
    0x0E    2     item_2 (u16 LE)
    0x10    1     gender (0 male .. 254 female, 255 genderless)
    0x11    1     egg_cycles
    0x12    1     friendship
    0x13    1     level_curve
    0x14    2     egg_group_1, egg_group_2
    0x16    2     ability_1, ability_2
    0x18    1     safari_rate
    0x19    1     dex colour (bits 0-6), flip flag (bit 7)
    0x1A    2     padding
"""

from dataclasses import dataclass, field, fields
from typing import Final

from romforge.codecs.base import RepresentationCodec
from romforge.errors import SizeError

# Size of one base stats record
STATS_LENGTH: Final[int] = 28

# Order of the six battle stats (also the EV yield order)
BATTLE_STATS: Final[tuple[str, ...]] = (
    "hp", "attack", "defense", "speed", "sp_atk", "sp_def",
)

LEVEL_CURVES: Final[tuple[str, ...]] = (
    "Medium-Fast", "Erratic", "Fluctuating", "Medium-Slow", "Fast", "Slow",
)

EGG_GROUPS: Final[tuple[str, ...]] = (
    "None", "Monster", "Water 1", "Bug", "Flying", "Field", "Fairy",
    "Grass", "Human-Like", "Water 3", "Mineral", "Amorphous", "Water 2",
    "Ditto", "Dragon", "Undiscovered",
)


@dataclass
class BaseStats:
    """Decoded base stats record."""
    hp: int = 0
    attack: int = 0
    defense: int = 0
    speed: int = 0
    sp_atk: int = 0
    sp_def: int = 0
    type_1: int = 0
    type_2: int = 0
    catch_rate: int = 0
    exp_yield: int = 0
    ev_yield: dict[str, int] = field(default_factory=dict)
    item_1: int = 0
    item_2: int = 0
    gender: int = 0
    egg_cycles: int = 0
    friendship: int = 0
    level_curve: int = 0
    egg_group_1: int = 0
    egg_group_2: int = 0
    ability_1: int = 0
    ability_2: int = 0
    safari_rate: int = 0
    color: int = 0
    flip: bool = False

    @property
    def total(self) -> int:
        """Base stat total."""
        return sum(getattr(self, name) for name in BATTLE_STATS)

    @property
    def gender_info(self) -> str:
        """Readable gender distribution."""
        if self.gender > 254:
            return "Genderless"
        if self.gender == 254:
            return "Always Female"
        if self.gender == 0:
            return "Always Male"
        return f"{round(100.0 * self.gender / 255)}% Female"

    @property
    def level_curve_name(self) -> str:
        if self.level_curve < len(LEVEL_CURVES):
            return LEVEL_CURVES[self.level_curve]
        return f"Unknown ({self.level_curve})"

    def to_dict(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    def __str__(self) -> str:
        return f"<Stats ({self.total})>"


class StatsCodec(RepresentationCodec):
    """Codec between 28-byte stats records and BaseStats."""

    name = "stats"

    def decode(self, data: bytes) -> BaseStats:
        if len(data) < STATS_LENGTH - 2:
            raise SizeError(
                f"Stats record must be {STATS_LENGTH} bytes, got {len(data)}."
            )

        ev_word = int.from_bytes(data[10:12], "little")
        ev_yield = {}
        for i, stat in enumerate(BATTLE_STATS):
            ev = (ev_word >> (2 * i)) & 0x3
            if ev:
                ev_yield[stat] = ev

        return BaseStats(
            *data[0:10],
            ev_yield=ev_yield,
            item_1=int.from_bytes(data[12:14], "little"),
            item_2=int.from_bytes(data[14:16], "little"),
            gender=data[16],
            egg_cycles=data[17],
            friendship=data[18],
            level_curve=data[19],
            egg_group_1=data[20],
            egg_group_2=data[21],
            ability_1=data[22],
            ability_2=data[23],
            safari_rate=data[24],
            color=data[25] & 0x7F,
            flip=bool(data[25] & 0x80),
        )

    def encode(self, value: BaseStats) -> bytes:
        out = bytearray()
        for name in (
            "hp", "attack", "defense", "speed", "sp_atk", "sp_def",
            "type_1", "type_2", "catch_rate", "exp_yield",
        ):
            out.append(getattr(value, name) & 0xFF)

        ev_word = 0
        for i, stat in enumerate(BATTLE_STATS):
            ev_word |= (value.ev_yield.get(stat, 0) & 0x3) << (2 * i)
        out += ev_word.to_bytes(2, "little")

        out += (value.item_1 & 0xFFFF).to_bytes(2, "little")
        out += (value.item_2 & 0xFFFF).to_bytes(2, "little")

        for name in (
            "gender", "egg_cycles", "friendship", "level_curve",
            "egg_group_1", "egg_group_2", "ability_1", "ability_2",
            "safari_rate",
        ):
            out.append(getattr(value, name) & 0xFF)

        out.append((0x80 if value.flip else 0) | (value.color & 0x7F))

        return bytes(out.ljust(STATS_LENGTH, b"\x00"))
