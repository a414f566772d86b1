"""procsup exceptions."""

from pathlib import Path
from typing import Any


class ProcsupError(Exception):
    """Base exception for procsup errors."""


class ConfigError(ProcsupError):
    """Base exception for configuration errors."""


class ConfigLoadError(ConfigError):
    """Raised when configuration cannot be loaded or parsed."""

    def __init__(
        self,
        message: str,
        *,
        path: Path | None = None,
        line: int | None = None,
        column: int | None = None,
    ) -> None:
        """Initialize with error message and optional location context."""
        super().__init__(message)
        self.path: Path | None = path
        self.line: int | None = line
        self.column: int | None = column


class ConfigValidationError(ConfigError):
    """Raised when configuration fails validation."""

    def __init__(
        self,
        message: str,
        *,
        key: str,
        value: Any,  # pyright: ignore[reportAny,reportExplicitAny]
        expected: str,
        source: str | None = None,
    ) -> None:
        """Initialize with error message and validation context."""
        super().__init__(message)
        self.key: str = key
        self.value: Any = value  # pyright: ignore[reportExplicitAny]
        self.expected: str = expected
        self.source: str | None = source


class DuplicateJobError(ConfigError, ValueError):
    """Raised when two jobs share a name.

    Revival looks jobs up by name, so names must be unique.

    Attributes:
        job_name: The name that appears more than once.
    """

    def __init__(self, message: str, *, job_name: str) -> None:
        """Initialize with error message and the duplicated name.

        Args:
            message: Human-readable error message.
            job_name: The name that appears more than once.
        """
        super().__init__(message)
        self.job_name: str = job_name


class PidFileError(ProcsupError):
    """Raised when a PID file cannot be written or removed.

    Attributes:
        path: The PID file path.
        cause: The underlying OS error, if any.
    """

    def __init__(
        self,
        message: str,
        *,
        path: Path,
        cause: Exception | None = None,
    ) -> None:
        """Initialize with error message and file context."""
        super().__init__(message)
        self.path: Path = path
        self.cause: Exception | None = cause
