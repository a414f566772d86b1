"""Protocol definitions for the supervisor system.

This module defines the interfaces that decouple the supervisor core from
the operating system and from command execution:
- CommandExecutor: Runs a job command and reports its outcome
- ProcessOps: Fork, signal, reap and exit primitives
"""

from collections.abc import Callable
from typing import NoReturn, Protocol, runtime_checkable

from ._models import CommandOutcome, ReapedChild


@runtime_checkable
class CommandExecutor(Protocol):
    """Protocol for running a job's shell command.

    Implementations run synchronously inside a worker process and must
    not raise for a failing command; failure is reported via exit status.
    """

    def run(self, command: str) -> CommandOutcome:
        """Run a command to completion.

        Args:
            command: The shell command string.

        Returns:
            The captured output and exit status.
        """
        ...


@runtime_checkable
class ProcessOps(Protocol):
    """Protocol for the OS process primitives the supervisor relies on."""

    def fork(self) -> int:
        """Fork the current process.

        Returns:
            0 in the child, the child's pid in the parent.

        Raises:
            OSError: If the fork fails.
        """
        ...

    def kill(self, pid: int, sig: int) -> None:
        """Deliver a signal to a process.

        Raises:
            OSError: If the signal could not be delivered.
        """
        ...

    def reap(self) -> ReapedChild | None:
        """Collect one exited child without blocking.

        Returns:
            The exited child, or None if no child is waiting.

        Raises:
            OSError: If the wait itself fails (e.g. no children at all).
        """
        ...

    def exit(self, status: int) -> NoReturn:
        """Terminate the current process immediately."""
        ...

    def install_worker_signals(self, on_terminate: Callable[[], None]) -> None:
        """Replace the supervisor's signal handling inside a fresh worker.

        Args:
            on_terminate: Called for every terminate signal the worker receives.
        """
        ...
