"""
Offset and Pointer Utilities
============================

Helpers shared by every layer that has to turn user or configuration
input into a file offset, or a file offset into the 3-byte pointer form
stored inside ROM tables.

Offset Literals
---------------
Offsets are accepted either as integers or as strings. A string that
carries a leading ``0x`` or ``x`` prefix, or contains a hex letter, is read
as hexadecimal; a purely numeric string is read as decimal. An ``x``
anywhere but the front is rejected:

    >>> parse_offset(0x1F716C)
    2061164
    >>> parse_offset("0x1F716C")
    2061164
    >>> parse_offset("1F716C")
    2061164
    >>> parse_offset("4096")
    4096

Pointers
--------
GBA code references ROM data through 32-bit addresses in the 0x08000000
bank. Tables only need the low three bytes, stored little-endian; the bank
byte is constant and is never persisted, so a pointer converts directly to
a file offset.
"""

import re
from typing import Final, Union

from romforge.errors import AddressError

# Number of bytes in a table pointer (bank byte excluded)
POINTER_SIZE: Final[int] = 3

# Largest offset a 3-byte pointer can address
MAX_POINTER_OFFSET: Final[int] = 0xFFFFFF

_OFFSET_LITERAL = re.compile(r"(0?x)?([0-9a-f]+)")
_HEX_LITERAL = re.compile(r"(?:0?x)?([0-9a-f]*)")
_HEX_SEPARATORS = re.compile(r"[\s:]")


OffsetLike = Union[int, str]


def parse_offset(value: OffsetLike) -> int:
    """
    Convert an integer or an offset literal to a numeric file offset.

    Args:
        value: An int, or a string holding a decimal number or a hex
            number optionally prefixed with "0x" or "x".

    Returns:
        The offset as a non-negative integer.

    Raises:
        AddressError: If the value is not a valid offset literal.
    """
    if isinstance(value, bool):
        raise AddressError(f"'{value}' does not look like a valid offset.")

    if isinstance(value, int):
        if value < 0:
            raise AddressError(f"Offset {value} is negative.")
        return value

    text = str(value).strip().lower()
    match = _OFFSET_LITERAL.fullmatch(text)
    if match is None:
        raise AddressError(
            f"'{value}' does not look like a valid offset. Supply an "
            f"integer, or a hex optionally prefixed with '0x' or 'x'."
        )

    prefix, digits = match.groups()
    if prefix or not digits.isdigit():
        return int(digits, 16)
    return int(digits, 10)


def offset_to_pointer(offset: int) -> bytes:
    """
    Encode a file offset as a 3-byte little-endian table pointer.

    Raises:
        AddressError: If the offset does not fit in three bytes.
    """
    if offset < 0 or offset > MAX_POINTER_OFFSET:
        raise AddressError(
            f"Offset {offset} cannot be stored in a {POINTER_SIZE}-byte pointer."
        )
    return offset.to_bytes(POINTER_SIZE, "little")


def pointer_to_offset(pointer: bytes) -> int:
    """Decode a 3-byte little-endian table pointer to a file offset."""
    if len(pointer) != POINTER_SIZE:
        raise AddressError(
            f"Pointer must be {POINTER_SIZE} bytes, got {len(pointer)} "
            f"({pointer.hex()})."
        )
    return int.from_bytes(pointer, "little")


def parse_hex_bytes(text: str) -> bytes:
    """
    Convert a hex literal such as "0x10FF00" or "10:ff 00" to bytes.

    Raises:
        AddressError: If the text contains non-hex characters or an odd
            number of digits.
    """
    cleaned = _HEX_SEPARATORS.sub("", text).lower()
    match = _HEX_LITERAL.fullmatch(cleaned)
    if match is None:
        raise AddressError(f"'{text}' does not look like a hex string.")

    digits = match.group(1)
    if len(digits) % 2:
        raise AddressError(f"'{text}' has an odd number of hex digits.")
    return bytes.fromhex(digits)


def format_offset(offset: int) -> str:
    """Format an offset as "<decimal> (XXXXXX)" for messages."""
    return f"{offset} ({offset:06X})"


def to_hex(data: bytes, pretty: bool = False) -> str:
    """
    Render bytes as lowercase hex.

    With ``pretty`` the output is split into groups of four bytes, each
    shown as colon-separated pairs:

        >>> to_hex(bytes(range(6)), pretty=True)
        '00:01:02:03 04:05'
    """
    if not pretty:
        return data.hex()

    groups = []
    for start in range(0, len(data), 4):
        chunk = data[start:start + 4]
        groups.append(":".join(f"{b:02x}" for b in chunk))
    return " ".join(groups)
