"""Job registry and process table bookkeeping."""

from collections.abc import Iterable, Iterator
from typing import final

from procsup.exceptions import DuplicateJobError

from ._models import JobSpec, WorkerHandle


@final
class JobRegistry:
    """Read-only collection of job definitions, looked up by name.

    Raises:
        DuplicateJobError: On construction, if two jobs share a name.
    """

    __slots__ = ("_jobs",)

    def __init__(self, jobs: Iterable[JobSpec] = ()) -> None:
        self._jobs: tuple[JobSpec, ...] = tuple(jobs)

        seen: set[str] = set()
        for job in self._jobs:
            if job.name in seen:
                msg = f"Job name '{job.name}' is used more than once"
                raise DuplicateJobError(msg, job_name=job.name)
            seen.add(job.name)

    def __iter__(self) -> Iterator[JobSpec]:
        return iter(self._jobs)

    def __len__(self) -> int:
        return len(self._jobs)

    def get(self, name: str) -> JobSpec | None:
        """Return the job with the given name, or None."""
        for job in self._jobs:
            if job.name == name:
                return job
        return None


@final
class ProcessTable:
    """Live workers tracked by the supervisor.

    A handle is present exactly while the supervisor believes the worker
    is alive; an empty table means every worker has been reaped.
    """

    __slots__ = ("_handles",)

    def __init__(self) -> None:
        self._handles: list[WorkerHandle] = []

    def __iter__(self) -> Iterator[WorkerHandle]:
        return iter(self._handles)

    def __len__(self) -> int:
        return len(self._handles)

    def __contains__(self, pid: object) -> bool:
        return any(handle.pid == pid for handle in self._handles)

    def add(self, handle: WorkerHandle) -> None:
        """Track a newly spawned worker."""
        self._handles.append(handle)

    def remove(self, pid: int) -> WorkerHandle | None:
        """Stop tracking a worker.

        Args:
            pid: Process id of the reaped worker.

        Returns:
            The removed handle, or None if the pid was not tracked.
        """
        for index, handle in enumerate(self._handles):
            if handle.pid == pid:
                return self._handles.pop(index)
        return None

    def pids(self) -> list[int]:
        """Return the tracked process ids in spawn order."""
        return [handle.pid for handle in self._handles]

    def count(self, job_name: str) -> int:
        """Return how many tracked workers run the given job."""
        return sum(1 for handle in self._handles if handle.job_name == job_name)
