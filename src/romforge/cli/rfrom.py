"""
rfrom - ROM Data Command-Line Interface
=======================================

This module implements the command-line interface for inspecting and
editing data inside GBA monster RPG ROM images.

Commands
--------
- **info**: Show ROM id, title and configured tables
- **read**: Dump bytes (optionally LZ77-decompressed) at an offset
- **table**: Dump a table entry, inline or through its pointer
- **monster**: Show a monster's real index, name and sprite frames
- **compress**: LZ77-compress a file
- **decompress**: Extract an LZ77 stream from any file
- **find-free**: Locate word-aligned free space
- **write**: Overwrite bytes in place at an offset
- **insert**: Write data for a pointer table entry, repointing it
- **wipe**: Mark bytes as free space

Usage Examples
--------------
Show ROM information:
    $ rfrom info firered.gba

Dump a stats record:
    $ rfrom table firered.gba stats_table 1

Extract a compressed front sprite:
    $ rfrom table firered.gba front_table 1 --pointer --lz77 -o sprite.bin

Insert a new palette:
    $ rfrom insert firered.gba palette_table 1 palette.bin --lz77
"""

from pathlib import Path
from typing import Optional
import logging

import click

from romforge import __version__
from romforge.address import ExplicitAddress
from romforge.bytestream import ByteObject
from romforge.codecs.sprite import frame_count
from romforge.config import RomConfig
from romforge.errors import AddressError
from romforge.lz77 import compress, decompress_file
from romforge.monster import Monster
from romforge.offsets import format_offset, parse_offset, to_hex
from romforge.rom import Rom
from romforge.cli.errors import handle_cli_exception

logger = logging.getLogger(__name__)


# =============================================================================
# CLI Context and Parameter Types
# =============================================================================

class Context:
    """
    Shared context for CLI commands.

    Stores the verbosity and the extra configuration directory.
    """

    def __init__(self) -> None:
        self.verbose: bool = False
        self.config_dir: Optional[Path] = None

    def setup_logging(self) -> None:
        """Configure logging based on verbosity."""
        level = logging.DEBUG if self.verbose else logging.WARNING
        logging.basicConfig(
            level=level,
            format="%(levelname)s: %(message)s" if self.verbose else "%(message)s",
        )

    def load_config(self) -> RomConfig:
        """Built-in parameters, $ROMFORGE_CONFIG_DIR and --config-dir."""
        config = RomConfig.from_env()
        if self.config_dir is not None:
            count = config.load_directory(self.config_dir)
            logger.debug(f"Loaded {count} configuration file(s) from {self.config_dir}")
        return config

    def open_rom(self, path: Path) -> Rom:
        return Rom.open(path, self.load_config())


pass_context = click.make_pass_decorator(Context, ensure=True)


class OffsetType(click.ParamType):
    """
    Click parameter type for file offsets.

    Accepts decimal integers or hex optionally prefixed with 0x or x.
    """
    name = "offset"

    def convert(self, value, param: Optional[click.Parameter],
                ctx: Optional[click.Context]) -> int:
        if isinstance(value, int):
            return value
        try:
            return parse_offset(value)
        except AddressError as e:
            self.fail(str(e), param, ctx)


OFFSET = OffsetType()


def emit(data: bytes, output: Optional[Path], pretty: bool = True) -> None:
    """Write data to a file, or print it as hex."""
    if output is not None:
        output.write_bytes(data)
        click.echo(f"Wrote {len(data)} bytes to {output}")
    else:
        click.echo(to_hex(data, pretty=pretty))


# =============================================================================
# Main CLI Group
# =============================================================================

@click.group()
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Enable verbose output",
)
@click.option(
    "-c", "--config-dir",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Directory of extra JSON ROM configuration files",
)
@click.version_option(version=__version__, prog_name="rfrom")
@pass_context
def main(ctx: Context, verbose: bool, config_dir: Optional[Path]) -> None:
    """
    Inspect and edit data inside GBA monster RPG ROM images.

    \b
    Offsets may be decimal or hex (0x1F716C, x1F716C or 1F716C).

    \b
    Examples:
      rfrom info firered.gba
      rfrom read firered.gba 0x2350AC -n 16
      rfrom table firered.gba front_table 1 --pointer --lz77
    """
    ctx.verbose = verbose
    ctx.config_dir = config_dir
    ctx.setup_logging()


# =============================================================================
# Inspection Commands
# =============================================================================

@main.command("info")
@click.argument("rom_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@pass_context
def cmd_info(ctx: Context, rom_file: Path) -> None:
    """
    Show the ROM id, title and configured tables.
    """
    try:
        with ctx.open_rom(rom_file) as rom:
            click.echo(f"ROM Information: {rom_file}")
            click.echo("=" * 40)
            click.echo(f"Title:       {rom.variant.title}")
            click.echo(f"ID:          {rom.id}")
            click.echo(f"Size:        {rom.size} bytes")
            click.echo(f"Free space:  from {format_offset(rom.free_space_start)}")
            click.echo()
            click.echo("Tables:")
            for name in sorted(rom.variant.params):
                if name.endswith("_table"):
                    click.echo(f"  {name:<16} {format_offset(rom.table_base(name))}")
    except Exception as e:
        handle_cli_exception(e, verbose=ctx.verbose)


@main.command("read")
@click.argument("rom_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("offset", type=OFFSET)
@click.option("-n", "--length", type=int, default=16, help="Bytes to read (default: 16)")
@click.option("--lz77", is_flag=True, help="Decompress an LZ77 stream at OFFSET")
@click.option("--string", "as_string", is_flag=True, help="Read a 0xFF-terminated string")
@click.option(
    "-o", "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write bytes to a file instead of printing hex",
)
@pass_context
def cmd_read(ctx: Context, rom_file: Path, offset: int, length: int, lz77: bool,
             as_string: bool, output: Optional[Path]) -> None:
    """
    Dump data at OFFSET.
    """
    try:
        with ctx.open_rom(rom_file) as rom:
            obj = ByteObject.from_rom(
                rom, offset, length,
                compressed=lz77, terminated_string=as_string,
            )
            emit(obj.to_bytes(), output)
    except Exception as e:
        handle_cli_exception(e, verbose=ctx.verbose, error_type="Read")


@main.command("table")
@click.argument("rom_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("table")
@click.argument("index", type=int)
@click.option("--pointer", is_flag=True, help="Entries are pointers to the data")
@click.option("--lz77", is_flag=True, help="Data is LZ77-compressed")
@click.option(
    "-o", "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write bytes to a file instead of printing hex",
)
@pass_context
def cmd_table(ctx: Context, rom_file: Path, table: str, index: int, pointer: bool,
              lz77: bool, output: Optional[Path]) -> None:
    """
    Dump entry INDEX of TABLE.
    """
    try:
        with ctx.open_rom(rom_file) as rom:
            if pointer:
                obj = ByteObject.from_table_as_pointer(rom, table, index, compressed=lz77)
            else:
                obj = ByteObject.from_table(rom, table, index, compressed=lz77)
            click.echo(f"{obj.describe_address()} at {format_offset(obj.offset)}", err=True)
            emit(obj.to_bytes(), output)
    except Exception as e:
        handle_cli_exception(e, verbose=ctx.verbose, error_type="Read")


@main.command("monster")
@click.argument("rom_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("index")
@pass_context
def cmd_monster(ctx: Context, rom_file: Path, index: str) -> None:
    """
    Show the real index, name and sprite frames of a monster.

    INDEX is a dex number, or "!" followed by a real index.
    """
    try:
        with ctx.open_rom(rom_file) as rom:
            mon = Monster(rom, index)
            click.echo(f"Real index:  {mon.index}")
            click.echo(f"Name:        {mon.name}")
            click.echo(
                f"Frames:      front {frame_count(rom.variant, 'front_table', mon.index)}, "
                f"back {frame_count(rom.variant, 'back_table', mon.index)}"
            )
            battler = mon.battler
            if battler is not None:
                click.echo(
                    f"Battler:     enemy_y {battler.enemy_y}, player_y {battler.player_y}, "
                    f"enemy_alt {battler.enemy_alt}"
                )
    except Exception as e:
        handle_cli_exception(e, verbose=ctx.verbose, error_type="Read")


@main.command("find-free")
@click.argument("rom_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("length", type=int)
@click.option("-s", "--start", type=OFFSET, default=None,
              help="Search start (default: the ROM's free_space_start)")
@pass_context
def cmd_find_free(ctx: Context, rom_file: Path, length: int, start: Optional[int]) -> None:
    """
    Find LENGTH bytes of word-aligned free space.
    """
    try:
        with ctx.open_rom(rom_file) as rom:
            found = rom.find_free(length, start)
            click.echo(f"Free space: {format_offset(found)}")
    except Exception as e:
        handle_cli_exception(e, verbose=ctx.verbose)


# =============================================================================
# Codec Commands
# =============================================================================

@main.command("compress")
@click.argument("input_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("-o", "--output", type=click.Path(dir_okay=False, path_type=Path),
              required=True, help="Output file (required)")
@pass_context
def cmd_compress(ctx: Context, input_file: Path, output: Path) -> None:
    """
    LZ77-compress INPUT_FILE.
    """
    try:
        data = input_file.read_bytes()
        packed = compress(data)
        output.write_bytes(packed)
        click.echo(f"Compressed {len(data)} bytes to {len(packed)} bytes: {output}")
    except Exception as e:
        handle_cli_exception(e, verbose=ctx.verbose, error_type="Compression")


@main.command("decompress")
@click.argument("input_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("offset", type=OFFSET, default=0)
@click.option("-o", "--output", type=click.Path(dir_okay=False, path_type=Path),
              required=True, help="Output file (required)")
@pass_context
def cmd_decompress(ctx: Context, input_file: Path, offset: int, output: Path) -> None:
    """
    Extract the LZ77 stream at OFFSET of any file.
    """
    try:
        with open(input_file, "rb") as f:
            result = decompress_file(f, offset, input_file.name)
        output.write_bytes(result.plaintext)
        click.echo(
            f"Decompressed {len(result.plaintext)} bytes "
            f"(~{result.original_length} bytes compressed): {output}"
        )
    except Exception as e:
        handle_cli_exception(e, verbose=ctx.verbose, error_type="Decompression")


# =============================================================================
# Writing Commands
# =============================================================================

@main.command("write")
@click.argument("rom_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("offset", type=OFFSET)
@click.argument("input_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--lz77", is_flag=True, help="Compress the data before writing")
@pass_context
def cmd_write(ctx: Context, rom_file: Path, offset: int, input_file: Path, lz77: bool) -> None:
    """
    Overwrite the ROM at OFFSET with INPUT_FILE.
    """
    try:
        with ctx.open_rom(rom_file) as rom:
            obj = ByteObject.from_bytes(
                input_file.read_bytes(), rom=rom,
                address=ExplicitAddress(offset), compressed=lz77,
            )
            for line in obj.write():
                click.echo(line)
    except Exception as e:
        handle_cli_exception(e, verbose=ctx.verbose, error_type="Write")


@main.command("insert")
@click.argument("rom_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("table")
@click.argument("index", type=int)
@click.argument("input_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--lz77", is_flag=True, help="Compress the data before writing")
@pass_context
def cmd_insert(ctx: Context, rom_file: Path, table: str, index: int, input_file: Path,
               lz77: bool) -> None:
    """
    Write INPUT_FILE as entry INDEX of pointer TABLE, repointing it to
    free space.
    """
    try:
        with ctx.open_rom(rom_file) as rom:
            obj = ByteObject.from_table_as_pointer(rom, table, index, compressed=lz77)
            obj.representation = bytearray(input_file.read_bytes())
            for line in obj.write():
                click.echo(line)
    except Exception as e:
        handle_cli_exception(e, verbose=ctx.verbose, error_type="Write")


@main.command("wipe")
@click.argument("rom_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("offset", type=OFFSET)
@click.argument("length", type=int)
@click.option("-f", "--force", is_flag=True,
              help="Wipe even if several pointers reference OFFSET")
@pass_context
def cmd_wipe(ctx: Context, rom_file: Path, offset: int, length: int, force: bool) -> None:
    """
    Overwrite LENGTH bytes at OFFSET with 0xFF free space.
    """
    try:
        with ctx.open_rom(rom_file) as rom:
            click.echo(rom.wipe(offset, length, force=force))
    except Exception as e:
        handle_cli_exception(e, verbose=ctx.verbose, error_type="Wipe")


# =============================================================================
# Entry Point
# =============================================================================

if __name__ == "__main__":
    main()
