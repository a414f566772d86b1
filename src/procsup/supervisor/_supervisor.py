"""Main supervisor coordinating replicated worker processes.

This module provides the Supervisor class: it forks workers for every
configured job, revives workers that fail, and implements the
graceful-then-forced stop protocol. All notifications (restart, child
exited, terminate, stop timeout) arrive as events on a single anyio
memory stream and are handled strictly one at a time.
"""

import math
import signal
from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING, NoReturn, Self, final

import anyio
import anyio.abc
import pendulum
from anyio.streams.memory import MemoryObjectSendStream

from procsup.config import SupervisorConfig
from procsup.utils import create_supervisor_logger

from ._backoff import ExponentialBackoff
from ._models import (
    JobSpec,
    ReapedChild,
    SupervisorEvent,
    SupervisorEventType,
    SupervisorPhase,
    WorkerHandle,
)
from ._process import OSProcessOps, ShellCommandExecutor
from ._protocol import CommandExecutor, ProcessOps
from ._registry import JobRegistry, ProcessTable
from ._signals import SignalDispatcher
from ._worker import WorkerRunner

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger


def _get_timestamp() -> str:
    """Get current timestamp in ISO 8601 format."""
    return pendulum.now("UTC").to_iso8601_string()


@final
class Supervisor:
    """Launches, monitors, restarts and stops worker processes.

    Lifecycle: IDLE -> RUNNING -> STOPPING -> STOPPED, where STOPPING may
    escalate to FORCE_STOPPING and STOPPED may go back to RUNNING.

    The handlers (on_restart, on_child_exited, on_terminate,
    on_stop_timeout) never raise; failures are logged and absorbed. The
    only ways out are the two exit points: every worker exited after a
    terminate request, or the stop that a terminate request started has
    completed. Both invoke `on_exit` once and end run().
    """

    __slots__ = (
        "_armed_generation",
        "_backoff_base",
        "_events",
        "_executor",
        "_exit_status",
        "_force_killed",
        "_force_stop_active",
        "_graceful_stop_timeout",
        "_kill_attempts",
        "_logger",
        "_on_exit",
        "_ops",
        "_repeat_command",
        "_restart_pending",
        "_revive_on_failure",
        "_signals",
        "_started",
        "_stop_callback",
        "_stopped",
        "_task_group",
        "_terminate_requested",
        "_timer_generation",
        "_timer_scope",
        "jobs",
        "workers",
    )

    def __init__(  # noqa: PLR0913
        self,
        jobs: Iterable[JobSpec] = (),
        *,
        kill_attempts: int = 5,
        revive_on_failure: bool = True,
        repeat_command: bool = True,
        failure_backoff_base: float = 60.0,
        graceful_stop_timeout: float = 10.0,
        on_exit: Callable[[], None] | None = None,
        ops: ProcessOps | None = None,
        executor: CommandExecutor | None = None,
        logger: "FilteringBoundLogger | None" = None,  # noqa: UP037
    ) -> None:
        """Initialize the supervisor.

        Args:
            jobs: Job definitions. Names must be unique.
            kill_attempts: Retries when delivering a stop signal fails.
            revive_on_failure: Respawn workers that exit with a non-zero status.
            repeat_command: Workers loop their command until terminated.
            failure_backoff_base: Seconds a worker sleeps after its first failure.
            graceful_stop_timeout: Seconds to wait before force killing on stop.
            on_exit: Called right before the supervisor exits.
            ops: Process primitives. Uses the real OS if None.
            executor: Runs job commands in workers. Uses a shell if None.
            logger: Log sink. Logs text to stdout if None.

        Raises:
            DuplicateJobError: If two jobs share a name.
        """
        self.jobs = JobRegistry(jobs)
        self.workers = ProcessTable()

        self._kill_attempts = kill_attempts
        self._revive_on_failure = revive_on_failure
        self._repeat_command = repeat_command
        self._backoff_base = failure_backoff_base
        self._graceful_stop_timeout = graceful_stop_timeout
        self._on_exit = on_exit

        self._ops: ProcessOps = ops or OSProcessOps()
        self._executor: CommandExecutor = executor or ShellCommandExecutor()
        self._logger: FilteringBoundLogger = logger or create_supervisor_logger()
        self._signals = SignalDispatcher(self._logger)

        self._started = False
        self._stopped = False
        self._terminate_requested = False
        self._restart_pending = False
        self._force_stop_active = False
        self._force_killed: set[int] = set()
        self._exit_status: int | None = None

        # Graceful stop timer state
        self._timer_generation = 0
        self._armed_generation: int | None = None
        self._timer_scope: anyio.CancelScope | None = None
        self._stop_callback: Callable[[], None] | None = None

        self._events: MemoryObjectSendStream[SupervisorEvent] | None = None
        self._task_group: anyio.abc.TaskGroup | None = None

    @classmethod
    def from_config(
        cls,
        config: SupervisorConfig,
        *,
        on_exit: Callable[[], None] | None = None,
        ops: ProcessOps | None = None,
        executor: CommandExecutor | None = None,
        logger: "FilteringBoundLogger | None" = None,  # noqa: UP037
    ) -> Self:
        """Create a supervisor from a validated configuration.

        The logger defaults to one built from the configuration's
        logging section.
        """
        if logger is None:
            logger = create_supervisor_logger(
                level=config.logging.level.value,
                log_format=config.logging.format.value,  # type: ignore[arg-type]
                log_file=config.logging.file,
            )

        return cls(
            [JobSpec.from_config(job) for job in config.jobs],
            kill_attempts=config.kill_attempts,
            revive_on_failure=config.revive_on_failure,
            repeat_command=config.repeat_command,
            failure_backoff_base=config.failure_backoff_base,
            graceful_stop_timeout=config.graceful_stop_timeout,
            on_exit=on_exit,
            ops=ops,
            executor=executor,
            logger=logger,
        )

    # =========================================================================
    # Observable State
    # =========================================================================

    @property
    def started(self) -> bool:
        """Return True while a start cycle is active."""
        return self._started

    @property
    def stopped(self) -> bool:
        """Return True once a stop cycle has begun."""
        return self._stopped

    @property
    def is_worker(self) -> bool:
        """Return False; workers run as WorkerRunner, never as Supervisor."""
        return False

    @property
    def miss_count(self) -> int:
        """Return 0; consecutive failures are only counted inside workers."""
        return 0

    @property
    def force_stop_active(self) -> bool:
        """Return True during the forced-kill part of a stop."""
        return self._force_stop_active

    @property
    def terminate_requested(self) -> bool:
        """Return True once a terminate notification has arrived."""
        return self._terminate_requested

    @property
    def exit_status(self) -> int | None:
        """Return the status the supervisor exits with, once decided."""
        return self._exit_status

    @property
    def stop_timer_armed(self) -> bool:
        """Return True while a graceful stop is waiting on its timer."""
        return self._armed_generation is not None

    @property
    def timer_generation(self) -> int:
        """Return the generation of the most recently armed stop timer."""
        return self._timer_generation

    @property
    def phase(self) -> SupervisorPhase:
        """Return the current lifecycle phase."""
        if self._force_stop_active:
            return SupervisorPhase.FORCE_STOPPING
        if self._started:
            return SupervisorPhase.STOPPING if self._stopped else SupervisorPhase.RUNNING
        return SupervisorPhase.STOPPED if self._stopped else SupervisorPhase.IDLE

    # =========================================================================
    # Start / Stop
    # =========================================================================

    def start(self, force: bool = False) -> bool:  # noqa: FBT001, FBT002
        """Spawn the configured number of workers for every job.

        Args:
            force: Start another full set of workers even if already running.

        Returns:
            True if workers were started, False if already running.
        """
        if self._started:
            if not force:
                self._logger.warning("already_started_will_not_start_without_force")
                return False
            self._logger.info("forcing_start")

        self._stopped = False
        self._started = True

        self._logger.info("starting", jobs=len(self.jobs))

        for job in self.jobs:
            if not job.command:
                self._logger.warning("job_has_no_command_skipping", job=job.name)
                continue

            for _ in range(job.replicas):
                _ = self._spawn(job)

        return True

    def stop(
        self,
        force: bool = False,  # noqa: FBT001, FBT002
        on_complete: Callable[[], None] | None = None,
    ) -> bool:
        """Stop all workers.

        A graceful stop sends SIGTERM and arms a timer; if workers remain
        when it fires they are killed and `on_complete` runs then. A forced
        stop sends SIGKILL and runs `on_complete` immediately, without
        waiting for the killed workers to be reaped.

        Args:
            force: Kill workers immediately instead of asking them to exit.
            on_complete: Called once the stop has completed.

        Returns:
            True if the stop was initiated, False if it was refused.
        """
        if not self._started:
            self._logger.warning("not_started_will_not_stop")
            return False

        if force:
            self._logger.warning("forcing_stop")
            self._force_stop_active = True

        if self._stopped and not force:
            self._logger.warning("already_stopped_will_not_stop_without_force")
            return False

        self._logger.info(
            "stopping", workers=len(self.workers), worker_pids=self.workers.pids()
        )
        self._stopped = True

        sig = signal.SIGKILL if force else signal.SIGTERM
        for handle in list(self.workers):
            if force:
                self._logger.warning(
                    "force_killing_worker", job=handle.job_name, worker_pid=handle.pid
                )
            if self._signal_worker(handle, sig) and force:
                self._force_killed.add(handle.pid)

        if force:
            self._disarm_stop_timer()
            self._stop_callback = None
            if on_complete is not None:
                on_complete()
            self._force_stop_active = False
            self._started = False
            return True

        self._logger.info(
            "waiting_for_workers_to_finish", seconds=self._graceful_stop_timeout
        )
        self._arm_stop_timer(on_complete)
        return True

    def _signal_worker(self, handle: WorkerHandle, sig: int) -> bool:
        """Deliver a signal, retrying up to kill_attempts times on failure.

        Returns:
            True if the signal was delivered.
        """
        attempts = 0
        while True:
            try:
                self._ops.kill(handle.pid, sig)
            except OSError as e:
                attempts += 1
                if attempts > self._kill_attempts:
                    self._logger.error(
                        "kill_failed_giving_up",
                        worker_pid=handle.pid,
                        attempts=attempts,
                        error=str(e),
                        note="worker may still be running",
                    )
                    return False
                self._logger.debug(
                    "kill_failed_retrying", worker_pid=handle.pid, attempts=attempts
                )
            else:
                return True

    def _spawn(self, job: JobSpec) -> bool:
        """Fork one worker for a job.

        Returns:
            True in the parent if the fork succeeded. The child never returns.
        """
        try:
            pid = self._ops.fork()
        except OSError as e:
            self._logger.error("fork_failed", job=job.name, error=str(e))
            return False

        if pid == 0:
            self._become_worker(job)

        self.workers.add(
            WorkerHandle(pid=pid, job_name=job.name, started_at=_get_timestamp())
        )
        self._logger.info("worker_forked", job=job.name, worker_pid=pid)
        return True

    def _become_worker(self, job: JobSpec) -> NoReturn:
        """Hand the forked child over to a WorkerRunner."""
        runner = WorkerRunner(
            job,
            executor=self._executor,
            ops=self._ops,
            logger=self._logger,
            repeat=self._repeat_command,
            backoff=ExponentialBackoff(base=self._backoff_base),
        )
        runner.serve()

    # =========================================================================
    # Graceful Stop Timer
    # =========================================================================

    def _arm_stop_timer(self, on_complete: Callable[[], None] | None) -> None:
        self._disarm_stop_timer()
        self._timer_generation += 1
        self._armed_generation = self._timer_generation
        self._stop_callback = on_complete

        if self._task_group is not None:
            scope = anyio.CancelScope()
            self._timer_scope = scope
            self._task_group.start_soon(
                self._run_stop_timer,
                scope,
                self._timer_generation,
                self._graceful_stop_timeout,
            )

    def _disarm_stop_timer(self) -> None:
        if self._timer_scope is not None:
            self._timer_scope.cancel()
            self._timer_scope = None
        self._armed_generation = None

    async def _run_stop_timer(
        self,
        scope: anyio.CancelScope,
        generation: int,
        delay: float,
    ) -> None:
        with scope:
            await anyio.sleep(delay)
            await self.post(
                SupervisorEvent(SupervisorEventType.STOP_TIMEOUT, generation=generation)
            )

    def _finish_graceful_stop(self) -> None:
        callback = self._stop_callback
        self._stop_callback = None
        self._disarm_stop_timer()
        self._started = False
        if callback is not None:
            callback()

    # =========================================================================
    # Notification Handlers
    # =========================================================================

    def on_restart(self) -> None:
        """Stop gracefully, then start again once the stop completes."""
        self._logger.info("restart_requested")

        if not (self._started and not self._stopped):
            self._logger.info("nothing_to_restart")
            return

        self._logger.info("restarting")

        def _start_again() -> None:
            self._restart_pending = False
            if self._terminate_requested:
                self._logger.info("terminate_pending_not_restarting")
                self._exit(0)
                return
            self._logger.info("all_workers_stopped_starting_again")
            if not self.start():
                self._logger.error("restart_failed")

        self._restart_pending = True
        if not self.stop(False, _start_again):  # noqa: FBT003
            self._restart_pending = False
            self._logger.error("stop_failed_will_not_restart")

    def on_child_exited(self) -> None:
        """Reap every waiting child and revive failed workers."""
        self._logger.debug("child_exit_notification")

        first_poll = True
        while self._exit_status is None:
            try:
                reaped = self._ops.reap()
            except OSError as e:
                self._logger.warning("reap_failed", error=str(e))
                return

            if reaped is None:
                if first_poll:
                    self._logger.info("no_child_available")
                return

            first_poll = False
            self._handle_reaped(reaped)

    def _handle_reaped(self, reaped: ReapedChild) -> None:
        handle = self.workers.remove(reaped.pid)
        if handle is None:
            self._logger.warning(
                "untracked_child_reaped",
                worker_pid=reaped.pid,
                status=reaped.exit_status,
            )
            return

        self._logger.info(
            "worker_exited",
            job=handle.job_name,
            worker_pid=reaped.pid,
            status=reaped.exit_status,
            started_at=handle.started_at,
        )

        force_killed = reaped.pid in self._force_killed
        self._force_killed.discard(reaped.pid)
        if self._force_stop_active or force_killed:
            self._logger.debug("force_killed_worker_not_reviving", worker_pid=reaped.pid)
        elif self._revive_on_failure and not self._terminate_requested:
            self._maybe_revive(handle, reaped.exit_status)
        elif not self._revive_on_failure:
            self._logger.info("revival_disabled_not_reviving", job=handle.job_name)

        if len(self.workers) == 0:
            if self._terminate_requested:
                self._logger.info("all_workers_exited_naturally_exiting")
                self._exit(0)
            elif self.stop_timer_armed:
                self._logger.info("all_workers_stopped_before_timeout")
                self._finish_graceful_stop()

    def _maybe_revive(self, handle: WorkerHandle, exit_status: int) -> None:
        if self._restart_pending:
            self._logger.info("restarting_not_reviving", job=handle.job_name)
            return

        if not self._started:
            self._logger.info("supervisor_stopped_not_reviving", job=handle.job_name)
            return

        if exit_status == 0:
            self._logger.info("clean_exit_not_reviving", job=handle.job_name)
            return

        job = self.jobs.get(handle.job_name)
        if job is None:
            self._logger.error("job_not_found_cannot_revive", job=handle.job_name)
            return

        self._logger.info(
            "reviving_worker",
            job=job.name,
            status=exit_status,
            running=self.workers.count(job.name),
        )
        _ = self._spawn(job)

    def on_terminate(self) -> None:
        """Begin a graceful stop; a repeated request forces it."""
        self._logger.info("terminate_requested")

        force = self._terminate_requested
        self._terminate_requested = True

        _ = self.stop(force, self._exit_after_stop)

        if self._exit_status is None and len(self.workers) == 0:
            self._logger.info("no_workers_running_exiting")
            self._exit(0)

    def _exit_after_stop(self) -> None:
        self._logger.info("stop_completed_exiting", remaining=len(self.workers))
        self._exit(0)

    def on_stop_timeout(self, generation: int | None) -> None:
        """Escalate a graceful stop whose grace period has elapsed.

        Args:
            generation: The generation the timer was armed with. Timers
                disarmed or superseded since then are ignored.
        """
        if generation is None or generation != self._armed_generation:
            self._logger.debug("stale_stop_timer_ignored", generation=generation)
            return

        if len(self.workers):
            self._logger.warning(
                "workers_still_running_forcing_stop", remaining=len(self.workers)
            )
            callback = self._stop_callback
            _ = self.stop(True)  # noqa: FBT003
            self._stop_callback = callback

        self._finish_graceful_stop()

    def handle_event(self, event: SupervisorEvent) -> None:
        """Dispatch one event to its handler."""
        if event.event_type is SupervisorEventType.RESTART:
            self.on_restart()
        elif event.event_type is SupervisorEventType.CHILD_EXITED:
            self.on_child_exited()
        elif event.event_type is SupervisorEventType.TERMINATE:
            self.on_terminate()
        elif event.event_type is SupervisorEventType.STOP_TIMEOUT:
            self.on_stop_timeout(event.generation)

    def _exit(self, status: int) -> None:
        """Decide the exit status and run the exit callback, once."""
        if self._exit_status is not None:
            return

        self._exit_status = status
        self._disarm_stop_timer()

        if self._on_exit is not None:
            try:
                self._on_exit()
            except Exception:
                self._logger.exception("exit_callback_failed")

        self._logger.info("exiting", status=status)

    # =========================================================================
    # Event Loop
    # =========================================================================

    async def post(self, event: SupervisorEvent) -> None:
        """Queue an event for the running supervisor.

        Raises:
            RuntimeError: If run() is not active.
        """
        if self._events is None:
            msg = "Supervisor is not running"
            raise RuntimeError(msg)
        await self._events.send(event)

    async def run(self) -> int:
        """Start the workers and handle events until the supervisor exits.

        Returns:
            The exit status (0 after a completed terminate).
        """
        send_stream, receive_stream = anyio.create_memory_object_stream[
            SupervisorEvent
        ](max_buffer_size=math.inf)

        async with anyio.create_task_group() as tg:
            self._task_group = tg
            self._events = send_stream

            await tg.start(self._signals.run, send_stream.clone())

            if not self._started:
                _ = self.start()

            async with receive_stream:
                async for event in receive_stream:
                    self.handle_event(event)
                    if self._exit_status is not None:
                        break

            tg.cancel_scope.cancel()

        self._task_group = None
        self._events = None
        send_stream.close()

        return self._exit_status if self._exit_status is not None else 0
