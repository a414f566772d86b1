"""Worker-side execution loop.

A WorkerRunner only ever exists inside a forked worker process. It runs
its job's command once or in a loop, sleeps with exponential backoff
between consecutive failures, and reacts to terminate signals: the first
one ends the loop at the next iteration boundary, the second one exits
immediately.
"""

import time
from collections.abc import Callable
from typing import TYPE_CHECKING, NoReturn, final

from ._backoff import ExponentialBackoff
from ._models import NO_COMMAND_STATUS, JobSpec
from ._protocol import CommandExecutor, ProcessOps

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger


@final
class WorkerRunner:
    """Runs one job inside a worker process.

    Attributes:
        job: The job this worker runs.
        miss_count: Consecutive non-zero command exits.
        terminate_requested: Set by the first terminate signal.
    """

    __slots__ = (
        "_backoff",
        "_executor",
        "_logger",
        "_ops",
        "_repeat",
        "_sleep",
        "job",
        "miss_count",
        "terminate_requested",
    )

    def __init__(  # noqa: PLR0913
        self,
        job: JobSpec,
        *,
        executor: CommandExecutor,
        ops: ProcessOps,
        logger: "FilteringBoundLogger",  # noqa: UP037
        repeat: bool = True,
        backoff: ExponentialBackoff | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Initialize the runner.

        Args:
            job: The job to run.
            executor: Runs the job command.
            ops: Process primitives, used for signals and exit.
            logger: Log sink.
            repeat: Loop the command until terminated instead of running it once.
            backoff: Delay policy between consecutive failures.
            sleep: Blocking sleep function.
        """
        self.job = job
        self.miss_count = 0
        self.terminate_requested = False
        self._executor = executor
        self._ops = ops
        self._logger = logger.bind(job=job.name)
        self._repeat = repeat
        self._backoff = backoff or ExponentialBackoff()
        self._sleep = sleep

    @property
    def is_worker(self) -> bool:
        """Return True; a runner only exists in a worker process."""
        return True

    def request_terminate(self) -> None:
        """Handle a terminate signal.

        The first request is recorded and honored at the next loop
        boundary. A second request exits the process right away.
        """
        self._logger.info("terminate_received")

        if self.terminate_requested:
            self._logger.warning("second_terminate_forcing_exit")
            self._ops.exit(0)

        self.terminate_requested = True
        self._logger.info("waiting_for_job_to_finish")

    def run_job(self) -> int:
        """Run the job command once and update the failure count.

        Returns:
            The command's exit status.
        """
        if not self.job.command:
            self._logger.error("job_has_no_command", status=NO_COMMAND_STATUS)
            return NO_COMMAND_STATUS

        outcome = self._executor.run(self.job.command)

        if outcome.output.strip():
            self._logger.info("job_output", output=outcome.output.rstrip())

        self._logger.info("job_completed", status=outcome.exit_status)

        if outcome.exit_status:
            self.miss_count += 1
        else:
            self.miss_count = 0

        return outcome.exit_status

    def run(self) -> int:
        """Run the work cycle.

        Returns:
            The status the worker process should exit with: the command's
            status when running once, 0 after a terminate when repeating.
        """
        if not self._repeat:
            return self.run_job()

        status = 0
        while not self.terminate_requested:
            if status:
                delay = self._backoff.delay(self.miss_count)
                self._logger.info(
                    "job_failed_backing_off",
                    seconds=delay,
                    failures=self.miss_count,
                )
                self._sleep(delay)
                if self.terminate_requested:
                    break

            status = self.run_job()

        self._logger.info("terminate_observed_leaving_loop")
        return 0

    def serve(self) -> NoReturn:
        """Take over the freshly forked process and never return."""
        try:
            self._ops.install_worker_signals(self.request_terminate)
            self._logger.info("worker_started", command=self.job.command)
            status = self.run()
            self._logger.info("worker_exiting", status=status)
        except Exception:
            self._logger.exception("worker_crashed")
            status = NO_COMMAND_STATUS
        self._ops.exit(status)
