"""
ROM Configuration Tests
=======================

Tests for built-in parameters, runtime merging and JSON loading.
"""

import json

import pytest

from romforge.config import (
    CONFIG_DIR_ENV,
    SAMPLE_CONFIG_NAME,
    RomConfig,
    RomVariant,
    deep_merge,
)
from romforge.errors import ConfigError, MissingParameterError, UnsupportedRomError


class TestBuiltinParameters:
    """Tests for RomConfig.default()."""

    def test_firered(self):
        variant = RomConfig.default().variant("BPRE")
        assert variant.title == "FireRed (E)"
        assert variant.table_base("stats_table") == 0x254784
        assert variant.free_space_start == 0x740000

    def test_ruby_overrides(self):
        """Variant values replace the defaults."""
        variant = RomConfig.default().variant("AXVE")
        assert variant.table_base("name_table") == 0x1F716C

    def test_rombase_inherits_defaults(self):
        """Keys a variant does not set come from the defaults."""
        variant = RomConfig.default().variant("MrDS")
        assert variant.table_base("ability_table") == 0x950000
        assert variant.table_base("stats_table") == 0x254784

    def test_entry_length(self):
        """'stats_table' entries are sized by 'stats_length'."""
        variant = RomConfig.default().variant("BPRE")
        assert variant.entry_length("stats_table") == 28
        assert variant.entry_length("name_table") == 11

    def test_battler_entry_lengths(self):
        """Coordinate entries are 4 bytes, elevation entries 1 byte."""
        variant = RomConfig.default().variant("BPRE")
        assert variant.entry_length("enemy_y_table") == 4
        assert variant.entry_length("enemy_alt_table") == 1
        assert "enemy_y_table" not in variant

    def test_dex_layout(self):
        variant = RomConfig.default().variant("AXVE")
        assert (variant["dex_blank_start"], variant["dex_blank_length"],
                variant["dex_length"]) == (252, 25, 440)

    def test_known_ids(self):
        assert RomConfig.default().rom_ids == ["AXVE", "BPEE", "BPRE", "MrDS"]


class TestLookupErrors:
    """Tests for unknown ids and parameters."""

    def test_unsupported_rom(self):
        with pytest.raises(UnsupportedRomError, match="Unsupported ROM type: 'ZZZZ'") as exc_info:
            RomConfig.default().variant("ZZZZ")
        assert exc_info.value.rom_id == "ZZZZ"

    def test_missing_parameter(self):
        variant = RomConfig.default().variant("BPRE")
        with pytest.raises(MissingParameterError, match="No parameter 'moves_table'"):
            variant["moves_table"]

    def test_missing_parameter_is_config_error(self):
        variant = RomConfig.default().variant("BPRE")
        with pytest.raises(ConfigError):
            variant.entry_length("moves_table")

    def test_variant_is_read_only(self):
        variant = RomConfig.default().variant("BPRE")
        with pytest.raises(TypeError):
            variant.params["title"] = "Hacked"

    def test_get_with_default(self):
        variant = RomVariant("TEST", {"title": "Test"})
        assert variant.get("missing", 7) == 7
        assert "title" in variant


class TestMerging:
    """Tests for deep_merge() and RomConfig.load()."""

    def test_deep_merge(self):
        base = {"a": 1, "nested": {"x": 1, "y": 2}}
        merged = deep_merge(base, {"nested": {"y": 3}, "b": 4})
        assert merged == {"a": 1, "nested": {"x": 1, "y": 3}, "b": 4}
        assert base["nested"]["y"] == 2

    def test_load_new_variant(self):
        config = RomConfig.default()
        config.load({"rom_data": {"TEST": {"title": "Test ROM"}}})
        variant = config.variant("TEST")
        assert variant.title == "Test ROM"
        assert variant.entry_length("stats_table") == 28

    def test_load_defaults(self):
        """Changing a default affects every variant that does not override it."""
        config = RomConfig.default()
        config.load({"rom_defaults": {"free_space_start": "0x800000"}})
        assert config.variant("BPRE").free_space_start == 0x800000

    def test_load_partial_variant(self):
        config = RomConfig.default()
        config.load({"rom_data": {"BPRE": {"stats_table": "0x100"}}})
        variant = config.variant("BPRE")
        assert variant.table_base("stats_table") == 0x100
        assert variant.title == "FireRed (E)"

    def test_configs_are_independent(self):
        """Loading into one config does not affect another."""
        first = RomConfig.default()
        first.load({"rom_data": {"TEST": {}}})
        with pytest.raises(UnsupportedRomError):
            RomConfig.default().variant("TEST")


class TestFiles:
    """Tests for JSON loading."""

    def test_load_file(self, tmp_path):
        path = tmp_path / "hack.json"
        path.write_text(json.dumps({"rom_data": {"HACK": {"title": "Hack"}}}))
        config = RomConfig.default()
        config.load_file(path)
        assert config.variant("HACK").title == "Hack"

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json")
        with pytest.raises(ConfigError, match="Invalid configuration file"):
            RomConfig.default().load_file(path)

    def test_not_an_object(self, tmp_path):
        path = tmp_path / "list.json"
        path.write_text("[1, 2]")
        with pytest.raises(ConfigError, match="must contain a JSON object"):
            RomConfig.default().load_file(path)

    def test_directory_skips_sample(self, tmp_path):
        """The sample file is written for reference and never loaded."""
        config = RomConfig.default()
        config.write_sample(tmp_path)
        (tmp_path / "hack.json").write_text(json.dumps({"rom_data": {"HACK": {}}}))
        assert config.load_directory(tmp_path) == 1
        assert "HACK" in config.rom_ids

    def test_write_sample(self, tmp_path):
        path = RomConfig.default().write_sample(tmp_path / "cfg")
        assert path.name == SAMPLE_CONFIG_NAME
        data = json.loads(path.read_text())
        assert "BPRE" in data["rom_data"]
        assert data["rom_defaults"]["stats_length"] == 28

    def test_missing_directory(self, tmp_path):
        assert RomConfig.default().load_directory(tmp_path / "nope") == 0

    def test_from_env(self, monkeypatch, config_dir):
        monkeypatch.setenv(CONFIG_DIR_ENV, str(config_dir))
        assert RomConfig.from_env().variant("TEST").title == "Test ROM"

    def test_from_env_unset(self, monkeypatch):
        monkeypatch.delenv(CONFIG_DIR_ENV, raising=False)
        assert RomConfig.from_env().rom_ids == RomConfig.default().rom_ids
