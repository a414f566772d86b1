"""procsup CLI commands."""
# pyright: reportUnusedCallResult=false

from typing import TYPE_CHECKING

from ._control import restart, status, stop
from ._run import run, start
from ._shared import (
    ExitCode,
    exit_with_error,
    exit_with_success,
    get_console,
    get_error_console,
    resolve_pid_file,
)

if TYPE_CHECKING:
    from cyclopts import App

__all__ = [
    "ExitCode",
    "exit_with_error",
    "exit_with_success",
    "get_console",
    "get_error_console",
    "register_commands",
    "resolve_pid_file",
    "restart",
    "run",
    "start",
    "status",
    "stop",
]


def register_commands(app: "App") -> None:  # noqa: UP037
    app.command(run)
    app.command(start)
    app.command(stop)
    app.command(restart)
    app.command(status)
