"""
ByteObject Groups
=================

A monster is made of several pieces of data that share a ROM and an
index: front and back sprites, normal and shiny palettes, name, stats.
ByteObjectGroup keeps such pieces together so that moving the group to
another ROM or another index moves every member.

    >>> group = ByteObjectGroup([
    ...     ByteObject.from_table_as_pointer(rom, "front_table", 1, compressed=True),
    ...     ByteObject.from_table_as_pointer(rom, "palette_table", 1, compressed=True),
    ... ])
    >>> group.index = 4        # every member now addresses entry 4
    >>> group.rom = other_rom  # every member now reads from other_rom
"""

from typing import Iterable, Iterator, Optional

from romforge.bytestream import ByteObject
from romforge.rom import Rom


class ByteObjectGroup:
    """
    Ordered collection of ByteObjects sharing a ROM and a table index.
    """

    def __init__(self, children: Iterable[ByteObject] = (),
                 rom: Optional[Rom] = None, index: Optional[int] = None):
        self.children: list[ByteObject] = list(children)
        self._rom = rom
        self._index = index

        if rom is not None:
            self.rom = rom
        if index is not None:
            self.index = index

    def add(self, child: ByteObject) -> ByteObject:
        """Append a child, bringing it onto the group's ROM and index."""
        if self._rom is not None:
            child.rom = self._rom
        if self._index is not None and child.table is not None:
            child.index = self._index
        self.children.append(child)
        return child

    @property
    def rom(self) -> Optional[Rom]:
        return self._rom

    @rom.setter
    def rom(self, rom: Optional[Rom]) -> None:
        for child in self.children:
            child.rom = rom
        self._rom = rom

    @property
    def index(self) -> Optional[int]:
        return self._index

    @index.setter
    def index(self, index: int) -> None:
        """Set the table index of every table-addressed child."""
        for child in self.children:
            if child.table is not None:
                child.index = index
        self._index = index

    def reload(self) -> "ByteObjectGroup":
        """Reload every child from the ROM, discarding edits."""
        for child in self.children:
            child.reload()
        return self

    def write(self) -> list[str]:
        """Write every child; returns the combined audit trail."""
        audit: list[str] = []
        for child in self.children:
            audit.extend(child.write())
        return audit

    def __iter__(self) -> Iterator[ByteObject]:
        return iter(self.children)

    def __len__(self) -> int:
        return len(self.children)

    def __getitem__(self, i: int) -> ByteObject:
        return self.children[i]
