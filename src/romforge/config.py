"""
ROM Variant Configuration
=========================

Per-ROM parameter tables. Each supported cartridge is identified by the
4-character game code stored at offset 172 of the image, and each code maps
to a set of parameters:

- ``<name>_table``: base offset of a named table (e.g. ``stats_table``)
- ``<name>_length``: size of one entry of that table (e.g. ``stats_length``)
- scalar settings such as ``free_space_start`` and ``title``
- ``dex_blank_start``, ``dex_blank_length`` and ``dex_length``: the mapping from
  dex numbers to real indices (see romforge.monster.parse_index)
- ``frames`` and ``special_frames``: sprite sheet frame counts

Offsets may be given as integers or as strings optionally prefixed with
``0x`` or ``x``; they are parsed on use with parse_offset().

Configuration is an explicit object passed to Rom.open(); nothing here is
global. Values come from:
- Built-in defaults (RomConfig.default())
- Mappings merged at runtime (RomConfig.load())
- JSON files (RomConfig.load_file(), RomConfig.load_directory())
- The directory named by $ROMFORGE_CONFIG_DIR (RomConfig.from_env())

JSON files use the same layout as the built-in data and may contain only
some of the keys, as long as the hierarchy is preserved:

    {
        "rom_defaults": {"free_space_start": "0x740000"},
        "rom_data": {
            "BPRE": {"title": "FireRed (E)", "stats_table": "0x254784"}
        }
    }
"""

from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping, Optional, Union
import copy
import json
import logging
import os

from romforge.errors import ConfigError, MissingParameterError, UnsupportedRomError
from romforge.offsets import parse_offset

# Logger for this module
logger = logging.getLogger(__name__)

# Environment variable naming an extra configuration directory
CONFIG_DIR_ENV = "ROMFORGE_CONFIG_DIR"

# Sample file written for users; never loaded
SAMPLE_CONFIG_NAME = "sample.json"


# =============================================================================
# Built-in Parameters
# =============================================================================

DEFAULT_ROM_DEFAULTS: dict[str, Any] = {
    "title": "Default ROM",

    "dex_blank_start": 252,
    "dex_blank_length": 25,
    "dex_length": 440,

    "name_length": 11,
    "stats_length": 28,
    "item_length": 44,
    "ability_length": 13,
    "type_length": 7,
    "enemy_y_length": 4,
    "player_y_length": 4,
    "enemy_alt_length": 1,

    # Sprite sheet frames as [front, other], with per-index overrides
    "frames": [1, 1],
    "special_frames": {"385": [4, 4], "410": [2, 2]},

    "free_space_start": "0x740000",

    "name_table": "0x245EE0",

    "front_table": "0x2350AC",
    "back_table": "0x23654C",
    "palette_table": "0x23730C",
    "shinypal_table": "0x2380CC",

    "stats_table": "0x254784",
    "item_table": "0x3DB028",
    "ability_table": "0x24FC40",
    "type_table": "0x24F1A0",
}

DEFAULT_ROM_DATA: dict[str, dict[str, Any]] = {
    "BPRE": {
        "title": "FireRed (E)",
    },
    "BPEE": {
        "title": "Emerald (E)",
        "frames": [2, 1],
        "name_table": "0x3185C8",
        "front_table": "0x30A18C",
        "back_table": "0x3028B8",
        "palette_table": "0x303678",
        "shinypal_table": "0x304438",
        "stats_table": "0x3203CC",
        "item_table": "0x5839A0",
        "ability_table": "0x31B6DB",
        "type_table": "0x31AE38",
    },
    "AXVE": {
        "title": "Ruby (E)",
        "name_table": "0x1F716C",
        "front_table": "0x1E8354",
        "back_table": "0x1E97F4",
        "palette_table": "0x1EA5B4",
        "shinypal_table": "0x1EB374",
        "stats_table": "0x1FEC18",
        "item_table": "0x3C5564",
        "ability_table": "0x1FA248",
        "type_table": "0x1F9870",
    },
    "MrDS": {
        "title": "MrDollSteak's Decap and Attack Rombase",
        "ability_table": "0x950000",
        "type_table": "0x961B50",
    },
}


def deep_merge(base: Mapping[str, Any], update: Mapping[str, Any]) -> dict[str, Any]:
    """
    Recursively merge two mappings, returning a new dict.

    Nested mappings are merged key by key; any other value in ``update``
    replaces the one in ``base``.
    """
    merged = dict(base)
    for key, value in update.items():
        if isinstance(merged.get(key), Mapping) and isinstance(value, Mapping):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


# =============================================================================
# Variant Parameters
# =============================================================================

@dataclass(frozen=True)
class RomVariant:
    """
    Read-only parameter set for one ROM variant.

    Attributes:
        rom_id: The 4-character game code
        params: Effective parameters (defaults merged with overrides)
    """
    rom_id: str
    params: Mapping[str, Any] = field(repr=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "params", MappingProxyType(dict(self.params)))

    def __getitem__(self, name: str) -> Any:
        try:
            return self.params[name]
        except KeyError:
            raise MissingParameterError(name, self.rom_id) from None

    def __contains__(self, name: str) -> bool:
        return name in self.params

    def get(self, name: str, default: Any = None) -> Any:
        return self.params.get(name, default)

    @property
    def title(self) -> str:
        return str(self.get("title", self.rom_id))

    @property
    def free_space_start(self) -> int:
        return parse_offset(self["free_space_start"])

    def table_base(self, table: str) -> int:
        """Base offset of a ``*_table`` parameter."""
        return parse_offset(self[table])

    def entry_length(self, table: str) -> int:
        """
        Entry size for a table, from the matching ``*_length`` parameter.

        ``stats_table`` looks up ``stats_length``.
        """
        name = table[:-len("_table")] if table.endswith("_table") else table
        return int(self[f"{name}_length"])


# =============================================================================
# Configuration Object
# =============================================================================

class RomConfig:
    """
    Collection of ROM variant parameters.

    Example:
        >>> config = RomConfig.default()
        >>> config.variant("AXVE").table_base("name_table")
        2061164
        >>> config.load({"rom_data": {"TEST": {"title": "Test ROM"}}})
        >>> config.variant("TEST").title
        'Test ROM'
    """

    def __init__(
        self,
        defaults: Optional[Mapping[str, Any]] = None,
        variants: Optional[Mapping[str, Mapping[str, Any]]] = None,
    ):
        self._defaults: dict[str, Any] = copy.deepcopy(dict(defaults or {}))
        self._variants: dict[str, dict[str, Any]] = {
            key: copy.deepcopy(dict(value)) for key, value in (variants or {}).items()
        }

    # -------------------------------------------------------------------------
    # Factories
    # -------------------------------------------------------------------------

    @classmethod
    def default(cls) -> "RomConfig":
        """Configuration holding the built-in parameter tables."""
        return cls(DEFAULT_ROM_DEFAULTS, DEFAULT_ROM_DATA)

    @classmethod
    def from_env(cls) -> "RomConfig":
        """
        Built-in configuration plus any JSON files in $ROMFORGE_CONFIG_DIR.
        """
        config = cls.default()
        if config_dir := os.environ.get(CONFIG_DIR_ENV):
            config.load_directory(config_dir)
        return config

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    def load(self, data: Mapping[str, Any]) -> None:
        """
        Merge a mapping with ``rom_defaults`` and/or ``rom_data`` keys.
        """
        unknown = set(data) - {"rom_defaults", "rom_data"}
        if unknown:
            logger.debug(f"Ignoring unknown config keys: {sorted(unknown)}")

        if "rom_defaults" in data:
            self._defaults = deep_merge(self._defaults, data["rom_defaults"])

        for rom_id, params in data.get("rom_data", {}).items():
            self._variants[rom_id] = deep_merge(self._variants.get(rom_id, {}), params)

    def load_file(self, path: Union[str, Path]) -> None:
        """
        Merge a JSON configuration file.

        Raises:
            ConfigError: If the file is not valid JSON or not an object
        """
        path = Path(path)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid configuration file {path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"Configuration file {path} must contain a JSON object")

        logger.debug(f"Loading configuration from {path}")
        self.load(data)

    def load_directory(self, directory: Union[str, Path]) -> int:
        """
        Merge every ``*.json`` file in a directory, except the sample file.

        Returns:
            Number of files loaded
        """
        directory = Path(directory)
        if not directory.is_dir():
            logger.warning(f"Configuration directory {directory} does not exist")
            return 0

        count = 0
        for path in sorted(directory.glob("*.json")):
            if path.name == SAMPLE_CONFIG_NAME:
                continue
            self.load_file(path)
            count += 1
        return count

    def write_sample(self, directory: Union[str, Path]) -> Path:
        """Write the current configuration as ``sample.json`` for reference."""
        directory = Path(directory)
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / SAMPLE_CONFIG_NAME
        path.write_text(json.dumps(self.to_dict(), indent=2), encoding="utf-8")
        return path

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    @property
    def rom_ids(self) -> list[str]:
        return sorted(self._variants)

    def variant(self, rom_id: str) -> RomVariant:
        """
        Effective parameters for a ROM id.

        Raises:
            UnsupportedRomError: If the id has no parameter set
        """
        if rom_id not in self._variants:
            raise UnsupportedRomError(rom_id)
        return RomVariant(rom_id, deep_merge(self._defaults, self._variants[rom_id]))

    def to_dict(self) -> dict[str, Any]:
        return {
            "rom_defaults": copy.deepcopy(self._defaults),
            "rom_data": copy.deepcopy(self._variants),
        }
