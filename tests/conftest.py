"""Shared test fixtures for procsup tests."""

import io
import json
from dataclasses import dataclass, field

import pytest
from rich.console import Console
from structlog.typing import FilteringBoundLogger

from procsup.utils import create_supervisor_logger


@dataclass(slots=True)
class LogCapture:
    """In-memory JSON log sink for asserting on logged events."""

    stream: io.StringIO = field(default_factory=io.StringIO)

    @property
    def entries(self) -> list[dict[str, object]]:
        return [
            json.loads(line)
            for line in self.stream.getvalue().splitlines()
            if line.strip()
        ]

    @property
    def events(self) -> list[str]:
        return [str(entry["event"]) for entry in self.entries]

    def find(self, event: str) -> list[dict[str, object]]:
        """Return every entry logged under the given event name."""
        return [entry for entry in self.entries if entry["event"] == event]


@pytest.fixture
def log_capture() -> LogCapture:
    return LogCapture()


@pytest.fixture
def logger(log_capture: LogCapture) -> FilteringBoundLogger:
    """Debug-level JSON logger writing into log_capture."""
    return create_supervisor_logger(
        level="debug", log_format="json", stream=log_capture.stream
    )


@pytest.fixture
def console() -> Console:
    return Console(
        width=70,
        force_terminal=True,
        highlight=False,
        color_system=None,
        legacy_windows=False,
    )
