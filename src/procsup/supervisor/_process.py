"""Operating system implementations of the supervisor protocols."""

import os
import signal
import sys
from collections.abc import Callable
from types import FrameType
from typing import NoReturn, final

from procsup.utils import DEFAULT_SHELL, ScriptConfig, run_script

from ._models import NO_COMMAND_STATUS, CommandOutcome, ReapedChild

# Shells report death by signal N as 128 + N
SIGNAL_EXIT_OFFSET: int = 128

# Held back across fork until the worker has replaced the supervisor's handlers
WORKER_DEFERRED_SIGNALS: frozenset[int] = frozenset(
    {signal.SIGCHLD, signal.SIGHUP, signal.SIGINT, signal.SIGTERM}
)


@final
class ShellCommandExecutor:
    """Runs job commands through a shell, capturing combined output."""

    __slots__ = ("_shell", "_timeout_ms")

    def __init__(
        self,
        *,
        shell: str = DEFAULT_SHELL,
        timeout_ms: int | None = None,
    ) -> None:
        """Initialize the executor.

        Args:
            shell: Shell used to interpret commands.
            timeout_ms: Per-command timeout in milliseconds, or None for none.
        """
        self._shell = shell
        self._timeout_ms = timeout_ms

    def run(self, command: str) -> CommandOutcome:
        """Run a command and translate the result into an exit status."""
        result = run_script(
            ScriptConfig(command=command, shell=self._shell, timeout_ms=self._timeout_ms)
        )

        if result.exit_code is None:
            return CommandOutcome(
                output=result.error or "",
                exit_status=NO_COMMAND_STATUS,
            )

        status = result.exit_code
        if status < 0:
            status = SIGNAL_EXIT_OFFSET - status

        return CommandOutcome(output=result.output, exit_status=status)


@final
class OSProcessOps:
    """Process primitives backed by os.fork, os.kill and os.waitpid."""

    __slots__ = ()

    def fork(self) -> int:
        # Until install_worker_signals, the child shares the supervisor's wakeup fd
        previous = signal.pthread_sigmask(signal.SIG_BLOCK, WORKER_DEFERRED_SIGNALS)
        pid = -1
        try:
            pid = os.fork()
        finally:
            if pid != 0:
                _ = signal.pthread_sigmask(signal.SIG_SETMASK, previous)
        return pid

    def kill(self, pid: int, sig: int) -> None:
        os.kill(pid, sig)

    def reap(self) -> ReapedChild | None:
        pid, wait_status = os.waitpid(-1, os.WNOHANG)
        if pid == 0:
            return None
        return ReapedChild(pid=pid, exit_status=os.waitstatus_to_exitcode(wait_status))

    def exit(self, status: int) -> NoReturn:
        # os._exit skips buffered output and the inherited event loop
        sys.stdout.flush()
        sys.stderr.flush()
        os._exit(status)

    def install_worker_signals(self, on_terminate: Callable[[], None]) -> None:
        def _handle_terminate(_signum: int, _frame: FrameType | None) -> None:
            on_terminate()

        def _ignore(_signum: int, _frame: FrameType | None) -> None:
            pass

        # Inherited from the supervisor's event loop; the worker has none
        _ = signal.set_wakeup_fd(-1)

        _ = signal.signal(signal.SIGCHLD, signal.SIG_DFL)
        _ = signal.signal(signal.SIGHUP, signal.SIG_DFL)
        # A handler rather than SIG_IGN, so job commands still get default SIGINT
        _ = signal.signal(signal.SIGINT, _ignore)
        _ = signal.signal(signal.SIGTERM, _handle_terminate)
        _ = signal.pthread_sigmask(signal.SIG_UNBLOCK, WORKER_DEFERRED_SIGNALS)
