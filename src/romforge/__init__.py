"""
romforge - Binary Data Engine for GBA Monster RPG ROMs
=======================================================

This package locates, decodes, edits and safely re-writes game data
stored inside Game Boy Advance cartridge images of the Gen III monster
collection RPGs (FireRed, Emerald, Ruby and compatible rombases).

Main Components
---------------
- **rom**: ROM image access (Rom)
    Raw reads and writes, named tables, pointer tables, free space search

- **lz77**: GBA BIOS LZ77 codec
    Compression and decompression of type 0x10 streams

- **bytestream**: Byte objects (ByteObject)
    Lazily loaded, cached, optionally compressed units of ROM data that
    repoint themselves into free space when written

- **codecs**: Representation codecs
    Strings, palettes, base stats records, sprites and battler positions

- **monster**: Monsters (Monster)
    Every part of one species under its real index; dex number mapping

- **config**: ROM variant parameters (RomConfig)

Quick Start
-----------
Read and edit a palette:
    >>> from romforge import Rom, ByteObject, PaletteCodec
    >>> with Rom.open("firered.gba") as rom:
    ...     pal = ByteObject.from_table_as_pointer(
    ...         rom, "palette_table", 1, compressed=True, codec=PaletteCodec())
    ...     pal.representation[1] = (248, 248, 248)
    ...     pal.write()

Or use the command-line tool:
    $ rfrom info firered.gba
    $ rfrom table firered.gba palette_table 1 --pointer --lz77
"""

__version__ = "1.0.0"

# =============================================================================
# Public API Exports
# =============================================================================

from romforge.errors import (
    RomForgeError,
    ConfigError,
    UnsupportedRomError,
    MissingParameterError,
    AddressError,
    CodecError,
    AllocationError,
    SizeError,
    ConsistencyWarning,
)
from romforge.offsets import (
    parse_offset,
    parse_hex_bytes,
    offset_to_pointer,
    pointer_to_offset,
)
from romforge.lz77 import compress, decompress, DecompressResult
from romforge.config import RomConfig, RomVariant
from romforge.rom import Rom
from romforge.address import Address, ExplicitAddress, TableAddress, PointerAddress
from romforge.bytestream import ByteObject, MAX_WRITE_LENGTH
from romforge.group import ByteObjectGroup
from romforge.codecs import (
    RepresentationCodec,
    RawCodec,
    GBAStringCodec,
    Palette,
    PaletteCodec,
    BaseStats,
    StatsCodec,
    Sprite,
    SpriteCodec,
    Battler,
    BattlerCodec,
)
from romforge.monster import Monster, parse_index

__all__ = [
    "__version__",
    # Errors
    "RomForgeError",
    "ConfigError",
    "UnsupportedRomError",
    "MissingParameterError",
    "AddressError",
    "CodecError",
    "AllocationError",
    "SizeError",
    "ConsistencyWarning",
    # Offsets
    "parse_offset",
    "parse_hex_bytes",
    "offset_to_pointer",
    "pointer_to_offset",
    # Compression
    "compress",
    "decompress",
    "DecompressResult",
    # ROM
    "RomConfig",
    "RomVariant",
    "Rom",
    # Byte objects
    "Address",
    "ExplicitAddress",
    "TableAddress",
    "PointerAddress",
    "ByteObject",
    "ByteObjectGroup",
    "MAX_WRITE_LENGTH",
    # Codecs
    "RepresentationCodec",
    "RawCodec",
    "GBAStringCodec",
    "Palette",
    "PaletteCodec",
    "BaseStats",
    "StatsCodec",
    "Sprite",
    "SpriteCodec",
    "Battler",
    "BattlerCodec",
    # Monsters
    "Monster",
    "parse_index",
]
