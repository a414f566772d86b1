# ruff: noqa: TC003  # Path needed at runtime for cyclopts parameter parsing
"""Commands that launch the supervisor: run (foreground) and start (daemon)."""

import subprocess
import sys
import time
from pathlib import Path
from typing import Annotated

import anyio
from cyclopts import Parameter

from procsup.config import ConfigLoadError, ConfigValidationError, load_config
from procsup.exceptions import DuplicateJobError, PidFileError
from procsup.utils import DEFAULT_PID_FILE

from ._shared import ExitCode, exit_with_error, get_console, resolve_pid_file

DEFAULT_CONFIG_FILE = Path("procsup.toml")

# How long `start` waits for the daemon to record its pid
_STARTUP_POLL_INTERVAL = 0.1
_STARTUP_POLL_ATTEMPTS = 50


def run(
    *,
    config: Annotated[
        Path, Parameter(name=["--config", "-c"], help="Path to the jobs file.")
    ] = DEFAULT_CONFIG_FILE,
    pid_file: Annotated[
        Path, Parameter(name="--pid-file", help="Where to record the supervisor pid.")
    ] = DEFAULT_PID_FILE,
) -> None:
    """Run the supervisor in the foreground until it is terminated.

    Forks the configured workers, revives the ones that fail, restarts
    them all on SIGHUP and stops them on SIGTERM or SIGINT. A second
    SIGTERM force kills workers that are slow to stop.
    """
    from procsup.supervisor import Supervisor

    try:
        loaded = load_config(config)
    except FileNotFoundError:
        exit_with_error(f"Config file not found: {config}", ExitCode.LOAD_ERROR)
    except ConfigLoadError as e:
        exit_with_error(str(e), ExitCode.LOAD_ERROR)
    except ConfigValidationError as e:
        exit_with_error(str(e), ExitCode.VALIDATION_ERROR)

    pids = resolve_pid_file(pid_file)
    running = pids.live_pid()
    if running is not None:
        exit_with_error(
            f"procsup is already running (pid {running})", ExitCode.ALREADY_RUNNING
        )

    try:
        pids.write()
    except PidFileError as e:
        exit_with_error(str(e), ExitCode.IO_ERROR)

    try:
        supervisor = Supervisor.from_config(loaded, on_exit=pids.remove)
        status = anyio.run(supervisor.run)
    except DuplicateJobError as e:
        exit_with_error(str(e), ExitCode.VALIDATION_ERROR)
    finally:
        pids.remove()

    raise SystemExit(status)


def start(
    *,
    config: Annotated[
        Path, Parameter(name=["--config", "-c"], help="Path to the jobs file.")
    ] = DEFAULT_CONFIG_FILE,
    pid_file: Annotated[
        Path, Parameter(name="--pid-file", help="Where to record the supervisor pid.")
    ] = DEFAULT_PID_FILE,
    log_file: Annotated[
        Path, Parameter(name="--log-file", help="File receiving the daemon's stdout.")
    ] = Path("procsup.log"),
    error_file: Annotated[
        Path | None,
        Parameter(
            name="--error-file",
            help="File receiving the daemon's stderr. Defaults to the log file.",
        ),
    ] = None,
) -> None:
    """Start the supervisor as a background daemon.

    The daemon runs in its own session with its output appended to the
    log files. Refuses to start while the PID file names a live process.
    """
    console = get_console()
    pids = resolve_pid_file(pid_file)

    running = pids.live_pid()
    if running is not None:
        exit_with_error(
            f"procsup is already running (pid {running})", ExitCode.ALREADY_RUNNING
        )
    pids.remove()

    config_path = config.expanduser().resolve()
    if not config_path.is_file():
        exit_with_error(f"Config file not found: {config_path}", ExitCode.LOAD_ERROR)

    command = [
        sys.executable,
        "-m",
        "procsup",
        "run",
        "--config",
        str(config_path),
        "--pid-file",
        str(pids.path),
    ]

    stdout_path = log_file.expanduser().resolve()
    stderr_path = (error_file or log_file).expanduser().resolve()

    try:
        stdout_path.parent.mkdir(parents=True, exist_ok=True)
        stderr_path.parent.mkdir(parents=True, exist_ok=True)
        with (
            stdout_path.open("ab") as stdout,
            stderr_path.open("ab") as stderr,
        ):
            process = subprocess.Popen(  # noqa: S603
                command,
                stdin=subprocess.DEVNULL,
                stdout=stdout,
                stderr=stderr,
                start_new_session=True,
            )
    except OSError as e:
        exit_with_error(f"Failed to launch daemon: {e}", ExitCode.IO_ERROR)

    for _ in range(_STARTUP_POLL_ATTEMPTS):
        returncode = process.poll()
        if returncode is not None:
            exit_with_error(
                f"Daemon exited during startup with status {returncode}; "
                + f"see {stderr_path}",
                ExitCode(returncode) if returncode in set(ExitCode) else ExitCode.IO_ERROR,
            )
        if pids.read() == process.pid:
            break
        time.sleep(_STARTUP_POLL_INTERVAL)

    console.print(f"[green]Started[/green] procsup (pid {process.pid})")
    console.print(f"  Logs: {stdout_path}")
