"""Supervisor package for managing replicated worker processes.

This package forks workers for each configured job, revives them when
they fail, and stops them gracefully (or forcibly) on request. Signals
are translated into events and handled one at a time on an anyio loop.

Key Components:
    - JobSpec: A named shell command and its replica count
    - WorkerHandle: A live worker tracked by the supervisor
    - JobRegistry / ProcessTable: Job lookup and worker bookkeeping
    - ExponentialBackoff: Delay between consecutive job failures
    - WorkerRunner: The loop that runs inside each worker process
    - SignalDispatcher: OS signal to SupervisorEvent translation
    - Supervisor: The lifecycle state machine

Example:
    >>> from procsup.supervisor import JobSpec, Supervisor
    >>> supervisor = Supervisor([JobSpec(name="web", command="./serve", replicas=2)])
    >>> status = await supervisor.run()  # Blocks until terminated
"""

from ._backoff import ExponentialBackoff
from ._fake import FakeCommandExecutor, FakeExit, FakeProcessOps
from ._models import (
    DEFAULT_JOB_NAME,
    NO_COMMAND_STATUS,
    CommandOutcome,
    JobSpec,
    ReapedChild,
    SupervisorEvent,
    SupervisorEventType,
    SupervisorPhase,
    WorkerHandle,
)
from ._process import (
    SIGNAL_EXIT_OFFSET,
    WORKER_DEFERRED_SIGNALS,
    OSProcessOps,
    ShellCommandExecutor,
)
from ._protocol import CommandExecutor, ProcessOps
from ._registry import JobRegistry, ProcessTable
from ._signals import DEFAULT_SIGNAL_EVENTS, SignalDispatcher
from ._supervisor import Supervisor
from ._worker import WorkerRunner

__all__ = [
    "DEFAULT_JOB_NAME",
    "DEFAULT_SIGNAL_EVENTS",
    "NO_COMMAND_STATUS",
    "SIGNAL_EXIT_OFFSET",
    "WORKER_DEFERRED_SIGNALS",
    "CommandExecutor",
    "CommandOutcome",
    "ExponentialBackoff",
    "FakeCommandExecutor",
    "FakeExit",
    "FakeProcessOps",
    "JobRegistry",
    "JobSpec",
    "OSProcessOps",
    "ProcessOps",
    "ProcessTable",
    "ReapedChild",
    "ShellCommandExecutor",
    "SignalDispatcher",
    "Supervisor",
    "SupervisorEvent",
    "SupervisorEventType",
    "SupervisorPhase",
    "WorkerHandle",
    "WorkerRunner",
]
