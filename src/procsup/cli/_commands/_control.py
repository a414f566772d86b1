# ruff: noqa: TC003  # Path needed at runtime for cyclopts parameter parsing
"""Commands that signal or inspect a running supervisor daemon."""

import os
import signal
from pathlib import Path
from typing import Annotated

import pendulum
from cyclopts import Parameter

from procsup.utils import DEFAULT_PID_FILE, PidFile

from ._shared import (
    ExitCode,
    exit_with_error,
    exit_with_success,
    get_console,
    resolve_pid_file,
)

PidFileOption = Annotated[
    Path, Parameter(name="--pid-file", help="PID file written by the supervisor.")
]


def _require_running(pids: PidFile) -> int:
    pid = pids.live_pid()
    if pid is None:
        exit_with_error(
            f"procsup is not running (no live pid in {pids.path})",
            ExitCode.NOT_RUNNING,
        )
    return pid


def _send(pid: int, sig: signal.Signals) -> None:
    try:
        os.kill(pid, sig)
    except OSError as e:
        exit_with_error(f"Failed to send {sig.name} to pid {pid}: {e}")


def stop(
    *,
    pid_file: PidFileOption = DEFAULT_PID_FILE,
    force: Annotated[
        bool,
        Parameter(help="Kill workers immediately instead of waiting for them."),
    ] = False,
) -> None:
    """Ask the supervisor to stop its workers and exit.

    Sends SIGTERM. With --force it is sent twice, which makes the
    supervisor kill its workers without the grace period.
    """
    pids = resolve_pid_file(pid_file)
    pid = _require_running(pids)

    _send(pid, signal.SIGTERM)
    if force:
        _send(pid, signal.SIGTERM)

    mode = "force stop" if force else "stop"
    exit_with_success(f"Sent {mode} to procsup (pid {pid})")


def restart(*, pid_file: PidFileOption = DEFAULT_PID_FILE) -> None:
    """Ask the supervisor to stop all workers and start them again (SIGHUP)."""
    pids = resolve_pid_file(pid_file)
    pid = _require_running(pids)

    _send(pid, signal.SIGHUP)
    exit_with_success(f"Sent restart to procsup (pid {pid})")


def status(*, pid_file: PidFileOption = DEFAULT_PID_FILE) -> None:
    """Report whether the supervisor is running."""
    console = get_console()
    pids = resolve_pid_file(pid_file)

    pid = pids.read()
    if pid is None:
        console.print("procsup is [yellow]not running[/yellow]")
        raise SystemExit(ExitCode.NOT_RUNNING)

    pid_alive = pids.live_pid() is not None
    if not pid_alive:
        console.print(
            f"procsup is [yellow]not running[/yellow] (stale PID file {pids.path}, "
            + f"pid {pid})"
        )
        raise SystemExit(ExitCode.NOT_RUNNING)

    modified = pids.modified_at()
    since = ""
    if modified is not None:
        since = f", started {pendulum.from_timestamp(modified).diff_for_humans()}"
    console.print(f"procsup is [green]running[/green] (pid {pid}{since})")
