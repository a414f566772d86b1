"""Tests for procsup.config._loader module."""

from pathlib import Path

import pytest
from pyfakefs.fake_filesystem import FakeFilesystem

from procsup.config import (
    ConfigLoadError,
    ConfigValidationError,
    LogFormat,
    LogLevel,
    config_from_dict,
    load_config,
    parse_env_overrides,
    read_toml_file,
)

JOBS_TOML = """
kill_attempts = 3
graceful_stop_timeout = 2.5

[logging]
level = "warning"
format = "json"

[[jobs]]
name = "web"
command = "./serve --port 8080"
replicas = 4

[[jobs]]
name = "cron"
command = "./tick"
"""


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("PROCSUP_DEBUG", raising=False)
    monkeypatch.delenv("PROCSUP_LOG_LEVEL", raising=False)


class TestReadTomlFile:
    def test_reads_file(self, fs: FakeFilesystem) -> None:
        path = Path("/etc/procsup/jobs.toml")
        _ = fs.create_file(path, contents=JOBS_TOML)

        data = read_toml_file(path)

        assert data["kill_attempts"] == 3
        assert len(data["jobs"]) == 2

    def test_missing_file(self, fs: FakeFilesystem) -> None:
        with pytest.raises(FileNotFoundError):
            _ = read_toml_file(Path("/etc/procsup/missing.toml"))

    def test_parse_error_carries_location(self, fs: FakeFilesystem) -> None:
        path = Path("/etc/procsup/broken.toml")
        _ = fs.create_file(path, contents='kill_attempts = 3\n[jobs\nname = "x"\n')

        with pytest.raises(ConfigLoadError) as exc_info:
            _ = read_toml_file(path)

        assert exc_info.value.path == path
        assert "line 2" in str(exc_info.value)


class TestParseEnvOverrides:
    def test_empty(self) -> None:
        assert parse_env_overrides({}) == {}

    def test_log_level(self) -> None:
        assert parse_env_overrides({"PROCSUP_LOG_LEVEL": " WARNING "}) == {
            "logging": {"level": "warning"}
        }

    def test_debug_wins(self) -> None:
        overrides = parse_env_overrides(
            {"PROCSUP_DEBUG": "1", "PROCSUP_LOG_LEVEL": "error"}
        )
        assert overrides == {"logging": {"level": "debug"}}


class TestConfigFromDict:
    def test_valid(self) -> None:
        config = config_from_dict({"jobs": [{"name": "a", "command": "true"}]})
        assert config.jobs[0].command == "true"

    def test_validation_error_names_key(self) -> None:
        with pytest.raises(ConfigValidationError) as exc_info:
            _ = config_from_dict(
                {"jobs": [{"name": "a", "replicas": -2}]}, source="jobs.toml"
            )

        error = exc_info.value
        assert error.key == "jobs.0.replicas"
        assert error.value == -2
        assert error.source == "jobs.toml"

    def test_duplicate_names_are_a_validation_error(self) -> None:
        with pytest.raises(ConfigValidationError, match="duplicate job name"):
            _ = config_from_dict({"jobs": [{"command": "a"}, {"command": "b"}]})


class TestLoadConfig:
    def test_loads_file(self, fs: FakeFilesystem) -> None:
        path = Path("/etc/procsup/jobs.toml")
        _ = fs.create_file(path, contents=JOBS_TOML)

        config = load_config(path)

        assert config.kill_attempts == 3
        assert config.graceful_stop_timeout == 2.5
        assert [job.name for job in config.jobs] == ["web", "cron"]
        assert config.jobs[0].replicas == 4
        assert config.jobs[1].replicas == 1
        assert config.logging.level is LogLevel.WARNING
        assert config.logging.format is LogFormat.JSON

    def test_env_overrides_level(
        self, fs: FakeFilesystem, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        path = Path("/etc/procsup/jobs.toml")
        _ = fs.create_file(path, contents=JOBS_TOML)
        monkeypatch.setenv("PROCSUP_LOG_LEVEL", "error")

        config = load_config(path)

        assert config.logging.level is LogLevel.ERROR
        assert config.logging.format is LogFormat.JSON

    def test_env_ignored_when_disabled(
        self, fs: FakeFilesystem, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        path = Path("/etc/procsup/jobs.toml")
        _ = fs.create_file(path, contents=JOBS_TOML)
        monkeypatch.setenv("PROCSUP_DEBUG", "1")

        config = load_config(path, include_env=False)

        assert config.logging.level is LogLevel.WARNING

    def test_invalid_env_level(
        self, fs: FakeFilesystem, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        path = Path("/etc/procsup/jobs.toml")
        _ = fs.create_file(path, contents=JOBS_TOML)
        monkeypatch.setenv("PROCSUP_LOG_LEVEL", "chatty")

        with pytest.raises(ConfigValidationError) as exc_info:
            _ = load_config(path)

        assert exc_info.value.key == "logging.level"
