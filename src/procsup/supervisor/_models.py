"""Data models for the supervisor system.

This module defines the core data types for job supervision:
- SupervisorPhase: Lifecycle phases of the supervisor
- SupervisorEventType: Notifications the supervisor reacts to
- SupervisorEvent: Immutable event records queued for handling
- JobSpec: Immutable job definition
- WorkerHandle: Supervisor-side record of one live worker
- ReapedChild: Result of reaping an exited worker
- CommandOutcome: Result of running a job command
"""

from dataclasses import dataclass
from enum import StrEnum
from typing import Self

from procsup.config import JobConfig

# Status reported when a job command cannot be run at all
NO_COMMAND_STATUS: int = 199

DEFAULT_JOB_NAME: str = "job"


class SupervisorPhase(StrEnum):
    """Supervisor lifecycle phases.

    - IDLE: Constructed, never started
    - RUNNING: Workers have been spawned
    - STOPPING: A graceful stop is waiting for workers to exit
    - FORCE_STOPPING: Workers are being killed immediately
    - STOPPED: A stop cycle has completed
    """

    IDLE = "idle"
    RUNNING = "running"
    STOPPING = "stopping"
    FORCE_STOPPING = "force_stopping"
    STOPPED = "stopped"


class SupervisorEventType(StrEnum):
    """Types of supervisor notifications.

    - RESTART: Stop all workers gracefully, then start again
    - CHILD_EXITED: One or more workers have exited and can be reaped
    - TERMINATE: Stop all workers and exit; a second one forces the stop
    - STOP_TIMEOUT: The graceful stop grace period has elapsed
    """

    RESTART = "restart"
    CHILD_EXITED = "child_exited"
    TERMINATE = "terminate"
    STOP_TIMEOUT = "stop_timeout"


@dataclass(frozen=True, slots=True)
class SupervisorEvent:
    """Immutable notification queued for the supervisor.

    Attributes:
        event_type: Kind of notification.
        signum: Signal number that produced the event, if any.
        generation: Timer generation for STOP_TIMEOUT events.
    """

    event_type: SupervisorEventType
    signum: int | None = None
    generation: int | None = None


@dataclass(frozen=True, slots=True)
class JobSpec:
    """Immutable job definition.

    Attributes:
        name: Unique job name.
        command: Shell command run by each worker; empty means the job is skipped.
        replicas: Number of concurrent workers.
    """

    name: str = DEFAULT_JOB_NAME
    command: str = ""
    replicas: int = 1

    @classmethod
    def from_config(cls, config: JobConfig) -> Self:
        """Build a job spec from its configuration section."""
        return cls(name=config.name, command=config.command, replicas=config.replicas)


@dataclass(frozen=True, slots=True)
class WorkerHandle:
    """Supervisor-side record of a live worker process.

    Attributes:
        pid: OS process id of the worker.
        job_name: Name of the job the worker runs.
        started_at: ISO 8601 timestamp of the fork.
    """

    pid: int
    job_name: str
    started_at: str


@dataclass(frozen=True, slots=True)
class ReapedChild:
    """An exited child collected by a non-blocking wait.

    Attributes:
        pid: Process id of the exited child.
        exit_status: Exit code, or -N if the child was killed by signal N.
    """

    pid: int
    exit_status: int


@dataclass(frozen=True, slots=True)
class CommandOutcome:
    """Result of running one job command.

    Attributes:
        output: Captured stdout and stderr.
        exit_status: Command exit status (0 means success).
    """

    output: str
    exit_status: int
