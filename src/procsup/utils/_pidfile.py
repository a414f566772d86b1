"""PID file handling for the daemonized supervisor."""

import contextlib
import os
from dataclasses import dataclass
from pathlib import Path

from procsup.exceptions import PidFileError

DEFAULT_PID_FILE = Path("procsup.pid")


def is_process_alive(pid: int) -> bool:
    """Check whether a process with the given id exists.

    Args:
        pid: Process id to probe.

    Returns:
        True if the process exists, even when owned by another user.
    """
    if pid <= 0:
        return False
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        return True
    return True


@dataclass(frozen=True, slots=True)
class PidFile:
    """A file holding the supervisor's process id on a single line.

    Attributes:
        path: Location of the PID file.
    """

    path: Path = DEFAULT_PID_FILE

    def read(self) -> int | None:
        """Return the recorded pid, or None if missing or unreadable."""
        try:
            content = self.path.read_text(encoding="utf-8").strip()
        except OSError:
            return None

        try:
            pid = int(content)
        except ValueError:
            return None

        return pid if pid > 0 else None

    def write(self, pid: int | None = None) -> None:
        """Record a pid, defaulting to the current process.

        Raises:
            PidFileError: If the file cannot be written.
        """
        value = os.getpid() if pid is None else pid
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            _ = self.path.write_text(f"{value}\n", encoding="utf-8")
        except OSError as e:
            msg = f"Failed to write PID file {self.path}: {e}"
            raise PidFileError(msg, path=self.path, cause=e) from e

    def remove(self) -> None:
        """Delete the PID file if it exists."""
        with contextlib.suppress(FileNotFoundError):
            self.path.unlink()

    def live_pid(self) -> int | None:
        """Return the recorded pid only if that process is still running."""
        pid = self.read()
        if pid is None or not is_process_alive(pid):
            return None
        return pid

    def modified_at(self) -> float | None:
        """Return the PID file's modification time, or None if missing."""
        try:
            return self.path.stat().st_mtime
        except OSError:
            return None
