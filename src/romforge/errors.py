"""
romforge Error Hierarchy
========================

This module defines the exception hierarchy for the entire package.
All exceptions inherit from RomForgeError, allowing callers to catch all
ROM-editing errors with a single except clause if desired.

Exception Hierarchy
-------------------
RomForgeError (base)
├── ConfigError - unknown ROM id or missing table parameter
├── AddressError - malformed offset literal, unresolved address
├── CodecError - LZ77 stream errors (bad magic, underflow, empty input)
├── AllocationError - no free space run found
└── SizeError - payload over the write bound, representation limits

ConsistencyWarning (UserWarning)
    Emitted instead of raised when a wipe is refused because the target
    offset is referenced by more than one pointer.

File I/O failures are not wrapped: they propagate as the built-in
OSError family so that callers see the operating system's own message.

Design Philosophy
-----------------
Every message names the offending value (offset, ROM id, length) so that
a failure can be diagnosed from the message alone. Offsets are shown both
in decimal and as six hex digits, the way ROM hacking tools list them.
"""

from typing import Optional


# =============================================================================
# Base Exception Class
# =============================================================================

class RomForgeError(Exception):
    """
    Base exception for all romforge errors.

    All exceptions in the package inherit from this class, allowing callers
    to catch all ROM-editing errors with a single except clause:

        try:
            stream.write()
        except RomForgeError as e:
            print(f"Error: {e}")
    """
    pass


# =============================================================================
# Configuration Exceptions
# =============================================================================

class ConfigError(RomForgeError):
    """
    Missing or unsupported configuration.

    Raised when:
    - A ROM's 4-character id has no parameter set
    - A table or scalar parameter is absent for the current ROM variant
    - A configuration file cannot be parsed
    """

    def __init__(self, message: str, rom_id: Optional[str] = None):
        self.rom_id = rom_id
        super().__init__(message)


class UnsupportedRomError(ConfigError):
    """
    The ROM id read from the image has no configured parameter set.
    """

    def __init__(self, rom_id: str):
        super().__init__(f"Unsupported ROM type: '{rom_id}'", rom_id=rom_id)


class MissingParameterError(ConfigError):
    """
    A named parameter does not exist for the given ROM variant.
    """

    def __init__(self, name: str, rom_id: str):
        self.name = name
        super().__init__(
            f"No parameter '{name}' for ROM type '{rom_id}'", rom_id=rom_id
        )


# =============================================================================
# Addressing Exceptions
# =============================================================================

class AddressError(RomForgeError):
    """
    Invalid or unresolvable address.

    Raised when:
    - An offset literal is not an integer or a (0x/x-prefixed) hex string
    - An offset does not fit in a 3-byte GBA pointer
    - A write is attempted before a ROM and an address are set
    - A monster index is malformed or past dex_length
    """
    pass


# =============================================================================
# Compression Exceptions
# =============================================================================

class CodecError(RomForgeError):
    """
    LZ77 compression or decompression failure.

    Raised when:
    - The stream does not start with the 0x10 magic byte
    - A back-reference points before the start of the output
    - The stream ends before the declared length is produced
    - Compression is requested for empty input
    """

    def __init__(self, message: str, offset: Optional[int] = None):
        self.offset = offset
        super().__init__(message)


# =============================================================================
# Allocation and Size Exceptions
# =============================================================================

class AllocationError(RomForgeError):
    """
    No run of free (0xFF) bytes large enough was found.

    The ROM image is never grown, so the only remedy is a cleaner
    base ROM or a lower search start.
    """

    def __init__(self, length: int, start: int, source: str = "ROM"):
        self.length = length
        self.start = start
        super().__init__(
            f"Could not find {length} bytes of free space in {source} "
            f"searching from {start} (0x{start:06X}). Consider using a "
            f"clean rombase."
        )


class SizeError(RomForgeError):
    """
    A payload or representation exceeds a hard limit.

    Examples:
    - Write payload larger than the 10,000-byte sanity bound
    - Empty write payload
    - Palette with more than 16 colours
    - Write that would run past the end of the image
    """
    pass


# =============================================================================
# Warnings
# =============================================================================

class ConsistencyWarning(UserWarning):
    """
    A destructive operation was refused to keep the ROM consistent.

    Issued by Rom.wipe when the offset to be wiped appears to be referenced
    by more than one pointer. The operation returns the same message
    instead of failing; pass force=True to override.
    """
    pass
