import json
import os
import signal
import subprocess
import sys
import time
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from pathlib import Path

import pytest


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        if Path(item.path).is_relative_to(Path(__file__).parent):
            item.add_marker(pytest.mark.integration)


@dataclass(frozen=True, slots=True)
class DaemonEnv:
    """Paths for one supervisor under test."""

    root: Path
    config: Path
    pid_file: Path
    log_file: Path

    def write_config(self, body: str) -> None:
        """Write a jobs file that logs JSON to log_file."""
        _ = self.config.write_text(
            f'{body}\n\n[logging]\nformat = "json"\nfile = "{self.log_file}"\n'
        )

    def events(self) -> list[dict[str, object]]:
        """Parse the JSON log lines written so far."""
        if not self.log_file.exists():
            return []
        entries: list[dict[str, object]] = []
        for line in self.log_file.read_text().splitlines():
            try:
                entries.append(json.loads(line))
            except json.JSONDecodeError:
                continue
        return entries

    def count(self, event: str) -> int:
        return sum(1 for entry in self.events() if entry.get("event") == event)


def wait_for(
    predicate: Callable[[], bool], timeout: float = 10.0, interval: float = 0.05
) -> bool:
    """Poll until the predicate holds or the timeout elapses."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


@pytest.fixture
def daemon_env(tmp_path: Path) -> DaemonEnv:
    return DaemonEnv(
        root=tmp_path,
        config=tmp_path / "jobs.toml",
        pid_file=tmp_path / "procsup.pid",
        log_file=tmp_path / "procsup.log",
    )


def procsup_command(*args: str) -> list[str]:
    return [sys.executable, "-m", "procsup", *args]


def run_cli(env: DaemonEnv, *args: str) -> subprocess.CompletedProcess[str]:
    """Run a procsup CLI command to completion."""
    return subprocess.run(  # noqa: S603 - Safe: running our own CLI tool
        procsup_command(*args, "--pid-file", str(env.pid_file)),
        capture_output=True,
        text=True,
        check=False,
        cwd=str(env.root),
        timeout=30,
    )


@pytest.fixture
def foreground(daemon_env: DaemonEnv) -> Iterator[Callable[[], subprocess.Popen[bytes]]]:
    """Start `procsup run` in the foreground; killed at teardown if still alive."""
    started: list[subprocess.Popen[bytes]] = []

    def _start() -> subprocess.Popen[bytes]:
        process = subprocess.Popen(  # noqa: S603
            procsup_command(
                "run",
                "--config",
                str(daemon_env.config),
                "--pid-file",
                str(daemon_env.pid_file),
            ),
            cwd=str(daemon_env.root),
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            start_new_session=True,
        )
        started.append(process)
        assert wait_for(daemon_env.pid_file.exists), "supervisor never wrote its pid"
        return process

    yield _start

    for process in started:
        if process.poll() is None:
            # Kill the whole session so no worker outlives the test
            os.killpg(process.pid, signal.SIGKILL)
            _ = process.wait()
