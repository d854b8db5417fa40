"""
rfrom Error Reporting
=====================

Maps romforge exceptions to exit codes and one-line messages.

Exit Codes
----------
    0  success
    1  data error: bad address, codec failure or size limit
    2  invalid arguments or unreadable input files
    3  unexpected internal error
    4  configuration error: unknown ROM id or missing parameter
    5  no free space left for a repoint or search

Scripts patching many entries can tell a ROM that needs more room
(code 5) apart from one romforge does not know how to read (code 4).
"""

import sys
import traceback
from enum import IntEnum
from typing import NoReturn

import click

from romforge.config import CONFIG_DIR_ENV
from romforge.errors import AllocationError, ConfigError, RomForgeError


class ExitCode(IntEnum):
    """Exit codes used by rfrom."""
    SUCCESS = 0
    DATA_ERROR = 1
    INVALID_ARGS = 2
    INTERNAL_ERROR = 3
    CONFIG_ERROR = 4
    NO_FREE_SPACE = 5


# Most specific class first
_ROMFORGE_EXIT_CODES: tuple[tuple[type[RomForgeError], ExitCode, str], ...] = (
    (
        AllocationError, ExitCode.NO_FREE_SPACE,
        "Lower free_space_start for this ROM, or wipe unused data first.",
    ),
    (
        ConfigError, ExitCode.CONFIG_ERROR,
        f"Add the ROM id or parameter to a JSON file in ${CONFIG_DIR_ENV} "
        f"or pass --config-dir.",
    ),
    (RomForgeError, ExitCode.DATA_ERROR, ""),
)


def exit_code_for(error: Exception) -> ExitCode:
    """Return the exit code rfrom uses for ``error``."""
    if isinstance(error, RomForgeError):
        for error_class, code, _hint in _ROMFORGE_EXIT_CODES:
            if isinstance(error, error_class):
                return code
    if isinstance(error, (click.BadParameter, FileNotFoundError, PermissionError)):
        return ExitCode.INVALID_ARGS
    return ExitCode.INTERNAL_ERROR


def _hint_for(error: RomForgeError) -> str:
    for error_class, _code, hint in _ROMFORGE_EXIT_CODES:
        if isinstance(error, error_class):
            return hint
    return ""


def handle_cli_exception(
    error: Exception,
    verbose: bool = False,
    error_type: str | None = None
) -> NoReturn:
    """
    Report ``error`` on stderr and exit with its code.

    romforge errors are prefixed with the failing operation (``error_type``)
    and followed by a hint where one helps. Anything that is not a
    romforge, argument or file error is reported as internal, with a
    traceback under ``--verbose``.

    Raises:
        SystemExit: Always
    """
    code = exit_code_for(error)

    if isinstance(error, RomForgeError):
        prefix = f"{error_type} error: " if error_type else "Error: "
        click.echo(f"{prefix}{error}", err=True)
        hint = _hint_for(error)
        if hint:
            click.echo(f"Hint: {hint}", err=True)
    elif code == ExitCode.INVALID_ARGS:
        click.echo(f"Error: {error}", err=True)
    else:
        click.echo(f"Internal error: {error}", err=True)
        if verbose:
            traceback.print_exc()

    sys.exit(code)
