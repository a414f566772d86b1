"""Configuration models for the supervisor.

This module defines the pydantic models that describe a supervisor
configuration file:
- LogLevel / LogFormat: Logging enumerations
- LoggingConfig: Log sink settings
- JobConfig: One job definition
- SupervisorConfig: The full configuration document
"""

from enum import StrEnum
from typing import ClassVar, Self

from pydantic import BaseModel, ConfigDict, Field, model_validator


class LogLevel(StrEnum):
    """Log level threshold values.

    Values are ordered from most verbose (debug) to least verbose (error).
    """

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class LogFormat(StrEnum):
    """Log output format values."""

    JSON = "json"
    TEXT = "text"


class LoggingConfig(BaseModel):
    """Logging configuration section.

    Attributes:
        level: Log level threshold.
        format: Log output format.
        file: Path to log file (empty writes to stdout).
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    level: LogLevel = LogLevel.INFO
    format: LogFormat = LogFormat.TEXT
    file: str = ""


class JobConfig(BaseModel):
    """A single job definition.

    Attributes:
        name: Unique job name, used to find the job again on revival.
        command: Shell command run by each worker. Jobs without one are skipped.
        replicas: Number of concurrent workers to run for this job.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    name: str = Field(default="job", min_length=1)
    command: str = ""
    replicas: int = Field(default=1, ge=0)


class SupervisorConfig(BaseModel):
    """Top-level supervisor configuration.

    Attributes:
        jobs: Job definitions, in start order.
        kill_attempts: Retries when delivering a stop signal fails. Zero means
            a single attempt with no retry, not the default.
        revive_on_failure: Respawn workers that exit with a non-zero status.
        repeat_command: Run each job command in a loop instead of once.
        failure_backoff_base: Seconds slept after the first consecutive failure;
            doubles with every further failure.
        graceful_stop_timeout: Seconds to wait for workers before force killing.
        logging: Log sink settings.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    jobs: tuple[JobConfig, ...] = ()
    kill_attempts: int = Field(default=5, ge=0)
    revive_on_failure: bool = True
    repeat_command: bool = True
    failure_backoff_base: float = Field(default=60.0, gt=0)
    graceful_stop_timeout: float = Field(default=10.0, gt=0)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @model_validator(mode="after")
    def _check_unique_job_names(self) -> Self:
        seen: set[str] = set()
        for job in self.jobs:
            if job.name in seen:
                msg = f"duplicate job name '{job.name}'; every job needs its own name"
                raise ValueError(msg)
            seen.add(job.name)
        return self
