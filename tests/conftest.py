"""
Shared Test Fixtures
====================

Every test works on a small synthetic ROM image written to ``tmp_path``.
The image carries the game code ``TEST`` and a handful of tables:

    Offset   Contents
    ------   --------------------------------------------------
    0x00AC   "TEST" game code
    0x0200   name_table      (11-byte GBA strings)
    0x0300   stats_table     (28-byte base stats records)
    0x0400   front_table     (8-byte pointer entries)
    0x0440   palette_table   (8-byte pointer entries)
    0x0460   back_table      (8-byte pointer entries)
    0x0480   shinypal_table  (8-byte pointer entries)
    0x04A0   enemy_y_table   (4-byte coordinate entries)
    0x04B0   player_y_table  (4-byte coordinate entries)
    0x04C0   enemy_alt_table (1-byte entries)
    0x0800   compressed sprite      <- front_table[1]
    0x0900   compressed palette     <- palette_table[1]
    0x0A00   compressed shared data <- front_table[2] and front_table[3]
    0x0B00   compressed back sprite <- back_table[1]
    0x0B80   compressed shiny palette <- shinypal_table[1]
    0x0C01   eight unaligned 0xFF bytes
    0x1000   free space (0xFF) up to the end of the image

The ``large_rom`` fixture grows the same image past 16 MiB, with its only
free space starting at 0x1000000.
"""

import json
from pathlib import Path

import pytest

from romforge.codecs.gba_string import GBAStringCodec
from romforge.config import RomConfig
from romforge.lz77 import compress
from romforge.rom import Rom


# =============================================================================
# Image Layout
# =============================================================================

ROM_ID = "TEST"
ROM_SIZE = 0x4000

NAME_TABLE = 0x200
STATS_TABLE = 0x300
FRONT_TABLE = 0x400
PALETTE_TABLE = 0x440
BACK_TABLE = 0x460
SHINYPAL_TABLE = 0x480
ENEMY_Y_TABLE = 0x4A0
PLAYER_Y_TABLE = 0x4B0
ENEMY_ALT_TABLE = 0x4C0

SPRITE_OFFSET = 0x800
PALETTE_OFFSET = 0x900
SHARED_OFFSET = 0xA00
BACK_OFFSET = 0xB00
SHINY_OFFSET = 0xB80
UNALIGNED_FREE = 0xC01
FREE_SPACE_START = 0x1000

# Free space of the oversized image built by the large_rom fixture
LARGE_FREE_START = 0x1000000

NAMES = ["?????", "BULBASAUR", "IVYSAUR", "VENUSAUR"]

SPRITE = bytes([0x11] * 32 + [0x22] * 32)
SHARED = b"ABCD" * 8
BACK_SPRITE = bytes([0x33] * 64)

# Black, white, red, green
PALETTE = bytes.fromhex("0000ff7f1f00e003")

# Black, white, blue, red
SHINY_PALETTE = bytes.fromhex("0000ff7f007c1f00")

# (enemy_y, player_y, enemy_alt) of entries 1 and 2
BATTLERS = {1: (13, 16, 0), 2: (9, 12, 6)}

BULBASAUR_STATS = bytes([
    45, 49, 49, 45, 65, 65,     # hp, atk, def, spe, spa, spd
    12, 3,                      # grass, poison
    45, 64,                     # catch rate, exp yield
    0x00, 0x01,                 # 1 sp_atk EV
    0, 0, 0, 0,                 # no held items
    31, 20, 70, 3,              # gender, egg cycles, friendship, curve
    1, 7,                       # monster, grass
    65, 0,                      # overgrow
    0, 5,                       # safari rate, green
    0, 0,                       # padding
])

TEST_PARAMS = {
    "title": "Test ROM",
    "free_space_start": "0x1000",
    "name_table": "0x200",
    "stats_table": "0x300",
    "front_table": "0x400",
    "palette_table": "0x440",
    "back_table": "0x460",
    "shinypal_table": "0x480",
    "enemy_y_table": "0x4A0",
    "player_y_table": "0x4B0",
    "enemy_alt_table": "0x4C0",
}


def gba_pointer(offset: int) -> bytes:
    """A full 4-byte GBA pointer followed by 4 bytes of metadata."""
    return (0x08000000 + offset).to_bytes(4, "little") + bytes(4)


def build_rom_image(stats: bytes = BULBASAUR_STATS, rom_id: str = ROM_ID) -> bytes:
    """Build the synthetic image described in the module docstring."""
    image = bytearray(ROM_SIZE)
    image[0xAC:0xB0] = rom_id.encode("ascii")

    codec = GBAStringCodec()
    for i, name in enumerate(NAMES):
        entry = codec.encode(name) + b"\xff"
        start = NAME_TABLE + i * 11
        image[start:start + len(entry)] = entry

    for i in range(8):
        start = STATS_TABLE + i * 28
        image[start:start + 28] = stats if i == 1 else bytes(28)

    image[FRONT_TABLE + 8:FRONT_TABLE + 16] = gba_pointer(SPRITE_OFFSET)
    image[FRONT_TABLE + 16:FRONT_TABLE + 24] = gba_pointer(SHARED_OFFSET)
    image[FRONT_TABLE + 24:FRONT_TABLE + 32] = gba_pointer(SHARED_OFFSET)
    image[PALETTE_TABLE + 8:PALETTE_TABLE + 16] = gba_pointer(PALETTE_OFFSET)
    image[BACK_TABLE + 8:BACK_TABLE + 16] = gba_pointer(BACK_OFFSET)
    image[SHINYPAL_TABLE + 8:SHINYPAL_TABLE + 16] = gba_pointer(SHINY_OFFSET)

    for i, (enemy_y, player_y, enemy_alt) in BATTLERS.items():
        # Size byte 0x88 (8x8 tiles), then the offset
        image[ENEMY_Y_TABLE + i * 4:ENEMY_Y_TABLE + i * 4 + 2] = bytes([0x88, enemy_y])
        image[PLAYER_Y_TABLE + i * 4:PLAYER_Y_TABLE + i * 4 + 2] = bytes([0x88, player_y])
        image[ENEMY_ALT_TABLE + i] = enemy_alt

    for offset, data in (
        (SPRITE_OFFSET, SPRITE),
        (PALETTE_OFFSET, PALETTE),
        (SHARED_OFFSET, SHARED),
        (BACK_OFFSET, BACK_SPRITE),
        (SHINY_OFFSET, SHINY_PALETTE),
    ):
        packed = compress(data)
        image[offset:offset + len(packed)] = packed

    image[UNALIGNED_FREE:UNALIGNED_FREE + 8] = b"\xff" * 8
    image[FREE_SPACE_START:] = b"\xff" * (ROM_SIZE - FREE_SPACE_START)
    return bytes(image)


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def rom_config() -> RomConfig:
    """Built-in configuration plus the TEST variant."""
    config = RomConfig.default()
    config.load({"rom_data": {ROM_ID: TEST_PARAMS}})
    return config


@pytest.fixture
def rom_path(tmp_path: Path) -> Path:
    """Path of a fresh synthetic ROM image."""
    path = tmp_path / "test.gba"
    path.write_bytes(build_rom_image())
    return path


@pytest.fixture
def rom(rom_path: Path, rom_config: RomConfig):
    """The synthetic ROM, opened read-write."""
    with Rom.open(rom_path, rom_config) as r:
        yield r


@pytest.fixture
def other_rom(tmp_path: Path, rom_config: RomConfig):
    """A second synthetic ROM whose stats_table[1] is all zeros."""
    path = tmp_path / "other.gba"
    path.write_bytes(build_rom_image(stats=bytes(28)))
    with Rom.open(path, rom_config) as r:
        yield r


@pytest.fixture
def config_dir(tmp_path: Path) -> Path:
    """Directory holding a JSON file that defines the TEST variant."""
    directory = tmp_path / "config"
    directory.mkdir()
    (directory / "test.json").write_text(
        json.dumps({"rom_data": {ROM_ID: TEST_PARAMS}}), encoding="utf-8"
    )
    return directory


@pytest.fixture
def large_rom(tmp_path: Path, rom_config: RomConfig):
    """
    A 16 MiB + 4 KiB image whose only free space lies past the last offset
    a 3-byte pointer can reach.
    """
    image = bytearray(build_rom_image())
    image[FREE_SPACE_START:] = bytes(ROM_SIZE - FREE_SPACE_START)
    image.extend(bytes(LARGE_FREE_START - ROM_SIZE))
    image.extend(b"\xff" * 0x1000)

    path = tmp_path / "large.gba"
    path.write_bytes(bytes(image))
    rom_config.load({
        "rom_data": {ROM_ID: {"free_space_start": hex(LARGE_FREE_START)}},
    })
    with Rom.open(path, rom_config) as r:
        yield r
