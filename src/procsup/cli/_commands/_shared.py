"""Shared CLI utilities for commands.

This module provides common utilities used across CLI command implementations:
- Standardized exit codes
- Console utilities for error handling
- PID file resolution
"""

from enum import IntEnum
from pathlib import Path
from typing import TYPE_CHECKING, Never

from procsup.utils import PidFile

if TYPE_CHECKING:
    from rich.console import Console

__all__ = [
    "ExitCode",
    "exit_with_error",
    "exit_with_success",
    "get_console",
    "get_error_console",
    "resolve_pid_file",
]


class ExitCode(IntEnum):
    """Standard exit codes for procsup CLI commands."""

    SUCCESS = 0
    LOAD_ERROR = 1
    VALIDATION_ERROR = 2
    NOT_RUNNING = 3
    IO_ERROR = 4
    ALREADY_RUNNING = 5


def get_console() -> "Console":  # noqa: UP037
    """Get a Rich console writing to stdout."""
    from rich.console import Console

    return Console()


def get_error_console() -> "Console":  # noqa: UP037
    """Get a Rich console configured for error output to stderr.

    Returns:
        Console instance writing to stderr.
    """
    from rich.console import Console

    return Console(stderr=True)


def resolve_pid_file(path: Path) -> PidFile:
    """Build a PidFile with an absolute path.

    The daemon may run from a different working directory than the
    command that controls it, so relative paths are pinned here.
    """
    return PidFile(path.expanduser().resolve())


def exit_with_error(
    message: str,
    code: ExitCode = ExitCode.IO_ERROR,
    *,
    console: "Console | None" = None,  # noqa: UP037
) -> Never:
    """Print an error message and exit with the specified code.

    Args:
        message: The error message to display.
        code: The exit code to use (defaults to IO_ERROR).
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
    console: "Console | None" = None,  # noqa: UP037
) -> Never:
    """Print an optional success message and exit with SUCCESS code.

    Args:
        message: Optional success message to display.
        console: Optional Rich console for output. If not provided and a message
            is given, a new stdout console will be created.

    Raises:
        SystemExit: Always raised with ExitCode.SUCCESS (0).
    """
    if message is not None:
        if console is None:
            console = get_console()
        console.print(message)
    raise SystemExit(ExitCode.SUCCESS)
