"""
rfrom CLI Tests
===============

Tests for the rfrom command-line tool using click's CliRunner.
"""

import pytest
from click.testing import CliRunner

from romforge import __version__
from romforge.cli.errors import ExitCode, exit_code_for
from romforge.cli.rfrom import main
from romforge.config import CONFIG_DIR_ENV
from romforge.errors import (
    AddressError,
    AllocationError,
    CodecError,
    MissingParameterError,
    SizeError,
    UnsupportedRomError,
)
from romforge.lz77 import compress, decompress
from romforge.rom import Rom

from conftest import FREE_SPACE_START, SHARED_OFFSET, SPRITE


@pytest.fixture
def runner(monkeypatch) -> CliRunner:
    monkeypatch.delenv(CONFIG_DIR_ENV, raising=False)
    return CliRunner()


@pytest.fixture
def invoke(runner, config_dir):
    """Run rfrom with the TEST variant configured."""
    def _invoke(*args):
        return runner.invoke(main, ["--config-dir", str(config_dir), *map(str, args)])
    return _invoke


class TestGeneral:
    """Tests for options shared by all commands."""

    def test_help(self, runner):
        result = runner.invoke(main, ["--help"])
        assert result.exit_code == 0
        assert "find-free" in result.output
        assert "insert" in result.output

    def test_version(self, runner):
        result = runner.invoke(main, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_unsupported_rom(self, runner, rom_path):
        """Without the TEST variant the ROM is rejected with a configuration error."""
        result = runner.invoke(main, ["info", str(rom_path)])
        assert result.exit_code == ExitCode.CONFIG_ERROR
        assert "Unsupported ROM type: 'TEST'" in result.output

    def test_config_from_environment(self, runner, monkeypatch, config_dir, rom_path):
        monkeypatch.setenv(CONFIG_DIR_ENV, str(config_dir))
        result = runner.invoke(main, ["info", str(rom_path)])
        assert result.exit_code == 0

    def test_bad_offset(self, invoke, rom_path):
        result = invoke("read", rom_path, "0xZZ")
        assert result.exit_code == 2
        assert "does not look like a valid offset" in result.output


class TestInspection:
    """Tests for info, read, table and find-free."""

    def test_info(self, invoke, rom_path):
        result = invoke("info", rom_path)
        assert result.exit_code == 0
        assert "Test ROM" in result.output
        assert "stats_table" in result.output
        assert "768 (000300)" in result.output

    def test_read(self, invoke, rom_path):
        result = invoke("read", rom_path, "0x31C", "-n", "4")
        assert result.exit_code == 0
        assert "2d:31:31:2d" in result.output

    def test_read_lz77_to_file(self, invoke, rom_path, tmp_path):
        out = tmp_path / "sprite.bin"
        result = invoke("read", rom_path, "0x800", "--lz77", "-o", out)
        assert result.exit_code == 0
        assert out.read_bytes() == SPRITE

    def test_read_bad_lz77(self, invoke, rom_path):
        result = invoke("read", rom_path, "0x300", "--lz77")
        assert result.exit_code == ExitCode.DATA_ERROR
        assert "does not appear to be lz77 data" in result.output

    def test_table_inline(self, invoke, rom_path):
        result = invoke("table", rom_path, "stats_table", 1)
        assert result.exit_code == 0
        assert "2d:31:31:2d 41:41:0c:03" in result.output

    def test_table_pointer(self, invoke, rom_path, tmp_path):
        out = tmp_path / "front.bin"
        result = invoke("table", rom_path, "front_table", 1, "--pointer", "--lz77", "-o", out)
        assert result.exit_code == 0
        assert out.read_bytes() == SPRITE

    def test_table_missing(self, invoke, rom_path):
        result = invoke("table", rom_path, "moves_table", 1)
        assert result.exit_code == ExitCode.CONFIG_ERROR
        assert "No parameter 'moves_length'" in result.output

    def test_find_free(self, invoke, rom_path):
        result = invoke("find-free", rom_path, 16)
        assert result.exit_code == 0
        assert "4096 (001000)" in result.output

    def test_find_free_from(self, invoke, rom_path):
        result = invoke("find-free", rom_path, 4, "--start", "0xC00")
        assert "3076 (000C04)" in result.output

    def test_find_free_exhausted(self, invoke, rom_path):
        """Running out of free space has its own exit code and a hint."""
        result = invoke("find-free", rom_path, 20000)
        assert result.exit_code == ExitCode.NO_FREE_SPACE
        assert "Could not find 20000 bytes" in result.output
        assert "Hint: Lower free_space_start" in result.output


class TestMonsterCommand:
    """Tests for monster."""

    def test_monster(self, invoke, rom_path):
        result = invoke("monster", rom_path, 1)
        assert result.exit_code == 0
        assert "Real index:  1" in result.output
        assert "Name:        BULBASAUR" in result.output
        assert "Frames:      front 1, back 1" in result.output
        assert "enemy_y 13, player_y 16, enemy_alt 0" in result.output

    def test_monster_real_index(self, invoke, rom_path):
        result = invoke("monster", rom_path, "!2")
        assert result.exit_code == 0
        assert "IVYSAUR" in result.output

    def test_monster_out_of_bounds(self, invoke, rom_path):
        result = invoke("monster", rom_path, 415)
        assert result.exit_code == ExitCode.DATA_ERROR
        assert "Real index 440 out of bounds" in result.output


class TestCodecCommands:
    """Tests for compress and decompress."""

    def test_compress(self, runner, tmp_path):
        src = tmp_path / "plain.bin"
        src.write_bytes(b"A" * 100)
        out = tmp_path / "packed.lz"
        result = runner.invoke(main, ["compress", str(src), "-o", str(out)])
        assert result.exit_code == 0
        assert decompress(out.read_bytes()).plaintext == b"A" * 100

    def test_decompress_any_file(self, runner, tmp_path):
        """Streams can be extracted from files that are not ROMs."""
        src = tmp_path / "blob.bin"
        src.write_bytes(b"\x00" * 8 + compress(b"xyzxyzxyz"))
        out = tmp_path / "plain.bin"
        result = runner.invoke(main, ["decompress", str(src), "8", "-o", str(out)])
        assert result.exit_code == 0
        assert out.read_bytes() == b"xyzxyzxyz"

    def test_compress_empty(self, runner, tmp_path):
        src = tmp_path / "empty.bin"
        src.write_bytes(b"")
        result = runner.invoke(main, ["compress", str(src), "-o", str(tmp_path / "x")])
        assert result.exit_code == ExitCode.DATA_ERROR
        assert "Compression error" in result.output


class TestWriting:
    """Tests for write, insert and wipe."""

    def test_write(self, invoke, rom_path, rom_config, tmp_path):
        src = tmp_path / "patch.bin"
        src.write_bytes(b"\x01\x02\x03")
        result = invoke("write", rom_path, "0xC00", src)
        assert result.exit_code == 0
        assert "Overwriting in place" in result.output
        with Rom.open(rom_path, rom_config) as rom:
            assert rom.read(0xC00, 3) == b"\x01\x02\x03"

    def test_write_past_end(self, invoke, rom_path, tmp_path):
        src = tmp_path / "patch.bin"
        src.write_bytes(b"\x00" * 8)
        result = invoke("write", rom_path, "0x3FFC", src)
        assert result.exit_code == ExitCode.DATA_ERROR
        assert "would extend" in result.output

    def test_insert(self, invoke, rom_path, rom_config, tmp_path):
        src = tmp_path / "palette.bin"
        src.write_bytes(b"\x1f\x00" * 16)
        result = invoke("insert", rom_path, "palette_table", 1, src, "--lz77")
        assert result.exit_code == 0
        assert "Repointed to" in result.output
        with Rom.open(rom_path, rom_config) as rom:
            assert rom.read_pointer("palette_table", 1) == FREE_SPACE_START
            assert rom.read_compressed(FREE_SPACE_START).plaintext == b"\x1f\x00" * 16

    def test_wipe_refused(self, invoke, rom_path):
        result = invoke("wipe", rom_path, hex(SHARED_OFFSET), 16)
        assert result.exit_code == 0
        assert "not wiping" in result.output

    def test_wipe_force(self, invoke, rom_path, rom_config):
        result = invoke("wipe", rom_path, hex(SHARED_OFFSET), 16, "--force")
        assert result.exit_code == 0
        assert "Wiped 16 bytes" in result.output
        with Rom.open(rom_path, rom_config) as rom:
            assert rom.read(SHARED_OFFSET, 16) == b"\xff" * 16


class TestExitCodes:
    """Tests for the mapping from exceptions to exit codes."""

    @pytest.mark.parametrize("error, code", [
        (AllocationError(16, 0x1000), ExitCode.NO_FREE_SPACE),
        (UnsupportedRomError("ZZZZ"), ExitCode.CONFIG_ERROR),
        (MissingParameterError("moves_table", "TEST"), ExitCode.CONFIG_ERROR),
        (CodecError("bad stream"), ExitCode.DATA_ERROR),
        (AddressError("bad offset"), ExitCode.DATA_ERROR),
        (SizeError("too long"), ExitCode.DATA_ERROR),
        (FileNotFoundError("missing.gba"), ExitCode.INVALID_ARGS),
        (RuntimeError("boom"), ExitCode.INTERNAL_ERROR),
    ])
    def test_exit_code_for(self, error, code):
        assert exit_code_for(error) == code

    def test_codes_are_distinct(self):
        assert len({code.value for code in ExitCode}) == len(ExitCode)
