"""
Data Addresses
==============

A ByteObject finds its data through one of three address kinds:

- **ExplicitAddress**: a fixed file offset
- **TableAddress**: entry ``index`` of a fixed-stride table whose entries
  hold the data itself (e.g. the 28-byte base stats records)
- **PointerAddress**: entry ``index`` of a pointer table whose entries hold
  a 3-byte pointer to the real data (e.g. compressed sprites)

Addresses are immutable values; they are resolved to a numeric offset on
demand through a Rom, so a ByteObject moved to another ROM, or a pointer
rewritten by a repoint, is always resolved afresh.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional, Union

from romforge.offsets import parse_offset

if TYPE_CHECKING:
    from romforge.rom import Rom


@dataclass(frozen=True)
class ExplicitAddress:
    """Data at a fixed file offset."""
    offset: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "offset", parse_offset(self.offset))

    is_pointer = False
    is_table = False

    def resolve(self, rom: Optional["Rom"] = None) -> int:
        return self.offset

    def describe(self) -> str:
        return f"offset 0x{self.offset:06X}"


@dataclass(frozen=True)
class TableAddress:
    """
    Data stored inline in a fixed-stride table.

    Attributes:
        table: Table name as configured, e.g. "stats_table"
        index: Entry index
        entry_length: Stride in bytes (default: the table's ``*_length``)
    """
    table: str
    index: int
    entry_length: Optional[int] = None

    is_pointer = False
    is_table = True

    def resolve(self, rom: "Rom") -> int:
        return rom.table_offset(self.table, self.index, self.entry_length)

    def describe(self) -> str:
        return f"{self.table}[{self.index}]"


@dataclass(frozen=True)
class PointerAddress:
    """
    Data reached through a pointer table entry.

    Attributes:
        table: Pointer table name, e.g. "front_table"
        index: Entry index
    """
    table: str
    index: int

    is_pointer = True
    is_table = True

    def resolve(self, rom: "Rom") -> int:
        return rom.read_pointer(self.table, self.index)

    def describe(self) -> str:
        return f"*{self.table}[{self.index}]"


Address = Union[ExplicitAddress, TableAddress, PointerAddress]
