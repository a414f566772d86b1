"""Tests for procsup.config._models module."""

import pytest
from pydantic import ValidationError

from procsup.config import (
    JobConfig,
    LogFormat,
    LoggingConfig,
    LogLevel,
    SupervisorConfig,
)


class TestJobConfig:
    def test_defaults(self) -> None:
        job = JobConfig()
        assert job.name == "job"
        assert job.command == ""
        assert job.replicas == 1

    def test_rejects_empty_name(self) -> None:
        with pytest.raises(ValidationError):
            _ = JobConfig(name="")

    def test_rejects_negative_replicas(self) -> None:
        with pytest.raises(ValidationError):
            _ = JobConfig(replicas=-1)

    def test_allows_zero_replicas(self) -> None:
        assert JobConfig(replicas=0).replicas == 0

    def test_frozen(self) -> None:
        job = JobConfig(name="web")
        with pytest.raises(ValidationError):
            job.name = "api"  # pyright: ignore[reportAttributeAccessIssue]


class TestSupervisorConfig:
    def test_defaults(self) -> None:
        config = SupervisorConfig()
        assert config.jobs == ()
        assert config.kill_attempts == 5
        assert config.revive_on_failure is True
        assert config.repeat_command is True
        assert config.failure_backoff_base == 60.0
        assert config.graceful_stop_timeout == 10.0
        assert config.logging == LoggingConfig()

    def test_logging_defaults(self) -> None:
        logging = LoggingConfig()
        assert logging.level is LogLevel.INFO
        assert logging.format is LogFormat.TEXT
        assert logging.file == ""

    def test_ignores_unknown_keys(self) -> None:
        config = SupervisorConfig.model_validate({"pid_file": "x.pid"})
        assert config.kill_attempts == 5

    def test_rejects_duplicate_job_names(self) -> None:
        with pytest.raises(ValidationError, match="duplicate job name 'web'"):
            _ = SupervisorConfig(
                jobs=(JobConfig(name="web"), JobConfig(name="web", command="x"))
            )

    def test_rejects_two_unnamed_jobs(self) -> None:
        with pytest.raises(ValidationError, match="duplicate job name 'job'"):
            _ = SupervisorConfig(jobs=(JobConfig(command="a"), JobConfig(command="b")))

    @pytest.mark.parametrize(
        "field",
        ["failure_backoff_base", "graceful_stop_timeout"],
    )
    def test_rejects_non_positive_durations(self, field: str) -> None:
        with pytest.raises(ValidationError):
            _ = SupervisorConfig.model_validate({field: 0})

    def test_rejects_negative_kill_attempts(self) -> None:
        with pytest.raises(ValidationError):
            _ = SupervisorConfig(kill_attempts=-1)

    def test_zero_kill_attempts_is_kept(self) -> None:
        assert SupervisorConfig(kill_attempts=0).kill_attempts == 0
