"""Fake process primitives for testing.

This module provides FakeProcessOps and FakeCommandExecutor, which
implement the supervisor protocols without forking, signaling or running
real commands. Tests script child exits and command outcomes up front and
inspect what the supervisor did afterwards.
"""

from collections import deque
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import NoReturn

from ._models import CommandOutcome, ReapedChild


class FakeExit(SystemExit):  # noqa: N818
    """Raised by FakeProcessOps.exit in place of terminating the process.

    Derives from SystemExit so that code catching Exception lets it through.

    Attributes:
        status: The exit status that was requested.
    """

    def __init__(self, status: int) -> None:
        super().__init__(status)
        self.status: int = status


@dataclass(slots=True)
class FakeProcessOps:
    """In-memory stand-in for OSProcessOps.

    fork() always acts as the parent and hands out increasing fake pids.

    Example:
        >>> ops = FakeProcessOps()
        >>> pid = ops.fork()
        >>> ops.child_exits(pid, 7)
        >>> ops.reap()
        ReapedChild(pid=1000, exit_status=7)
    """

    next_pid: int = 1000
    forked: list[int] = field(default_factory=list)
    sent: list[tuple[int, int]] = field(default_factory=list)
    exits: list[int] = field(default_factory=list)
    fork_error: OSError | None = None
    reap_error: OSError | None = None
    kill_failures: dict[int, int] = field(default_factory=dict)
    kill_calls: int = 0
    terminate_handler: Callable[[], None] | None = None
    _waiting: deque[ReapedChild] = field(default_factory=deque)

    def fork(self) -> int:
        if self.fork_error is not None:
            raise self.fork_error
        pid = self.next_pid
        self.next_pid += 1
        self.forked.append(pid)
        return pid

    def kill(self, pid: int, sig: int) -> None:
        self.kill_calls += 1
        remaining = self.kill_failures.get(pid, 0)
        if remaining != 0:
            # Negative counts fail forever
            if remaining > 0:
                self.kill_failures[pid] = remaining - 1
            msg = f"cannot signal {pid}"
            raise PermissionError(msg)
        self.sent.append((pid, sig))

    def reap(self) -> ReapedChild | None:
        if self.reap_error is not None:
            raise self.reap_error
        if not self._waiting:
            return None
        return self._waiting.popleft()

    def exit(self, status: int) -> NoReturn:
        self.exits.append(status)
        raise FakeExit(status)

    def install_worker_signals(self, on_terminate: Callable[[], None]) -> None:
        self.terminate_handler = on_terminate

    # =========================================================================
    # Test Helpers
    # =========================================================================

    def child_exits(self, pid: int, status: int) -> None:
        """Queue an exited child for the next reap()."""
        self._waiting.append(ReapedChild(pid=pid, exit_status=status))

    def signals_for(self, pid: int) -> list[int]:
        """Return the signals delivered to a pid, in order."""
        return [sig for target, sig in self.sent if target == pid]

    def deliver_terminate(self) -> None:
        """Invoke the worker's terminate handler as a signal would."""
        if self.terminate_handler is None:
            msg = "install_worker_signals() was never called"
            raise RuntimeError(msg)
        self.terminate_handler()


@dataclass(slots=True)
class FakeCommandExecutor:
    """Scripted stand-in for ShellCommandExecutor.

    Returns queued statuses in order, then `default_status` once the queue
    is empty. `on_run` is called after each command with the number of
    commands run so far, which lets tests deliver signals mid-loop.
    """

    statuses: deque[int] = field(default_factory=deque)
    default_status: int = 0
    output: str = ""
    commands: list[str] = field(default_factory=list)
    on_run: Callable[[int], None] | None = None

    def run(self, command: str) -> CommandOutcome:
        self.commands.append(command)
        status = self.statuses.popleft() if self.statuses else self.default_status
        if self.on_run is not None:
            self.on_run(len(self.commands))
        return CommandOutcome(output=self.output, exit_status=status)
