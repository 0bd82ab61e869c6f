"""Shared CLI utilities for commands.

This module provides common utilities used across CLI command implementations:
- Standardized exit codes
- Console utilities for error handling
"""

from enum import IntEnum
from typing import TYPE_CHECKING, Never

if TYPE_CHECKING:
    from rich.console import Console

__all__ = [
    "ExitCode",
    "exit_with_error",
    "exit_with_success",
    "get_error_console",
]


class ExitCode(IntEnum):
    """Standard exit codes for hcserver CLI commands.

    Code 1 is left to configuration loading, which exits before a command runs.
    """

    SUCCESS = 0
    NOT_FOUND = 3
    IO_ERROR = 4
    INTERNAL_ERROR = 5
    INTERRUPTED = 130


def get_error_console() -> "Console":
    """Get a Rich console configured for error output to stderr.

    Returns:
        Console instance writing to stderr.
    """
    from rich.console import Console

    return Console(stderr=True)


def exit_with_error(
    message: str,
    code: ExitCode = ExitCode.INTERNAL_ERROR,
    *,
    console: "Console | None" = None,
) -> Never:
    """Print an error message and exit with the specified code.

    Args:
        message: The error message to display.
        code: The exit code to use (defaults to INTERNAL_ERROR).
        console: Optional Rich console for output. If not provided,
            a new stderr console will be created.

    Raises:
        SystemExit: Always raised with the specified exit code.
    """
    if console is None:
        console = get_error_console()

    console.print(f"[red]Error:[/red] {message}")
    raise SystemExit(code)


def exit_with_success(
    message: str | None = None,
    *,
    console: "Console | None" = None,
) -> Never:
    """Print an optional success message and exit with SUCCESS code.

    Args:
        message: Optional success message to display.
        console: Optional Rich console for output.

    Raises:
        SystemExit: Always raised with ExitCode.SUCCESS (0).
    """
    if message is not None:
        if console is None:
            console = get_error_console()
        console.print(message)
    raise SystemExit(ExitCode.SUCCESS)
