"""procsup configuration.

This module provides the public API for loading and validating supervisor
configuration files.

Example:
    >>> from pathlib import Path
    >>> from procsup.config import load_config
    >>> config = load_config(Path("jobs.toml"))
    >>> config.graceful_stop_timeout
    10.0
"""

from procsup.exceptions import (
    ConfigError,
    ConfigLoadError,
    ConfigValidationError,
)

from ._loader import (
    config_from_dict,
    load_config,
    parse_env_overrides,
    read_toml_file,
)
from ._models import (
    JobConfig,
    LogFormat,
    LoggingConfig,
    LogLevel,
    SupervisorConfig,
)

__all__ = [
    "ConfigError",
    "ConfigLoadError",
    "ConfigValidationError",
    "JobConfig",
    "LogFormat",
    "LogLevel",
    "LoggingConfig",
    "SupervisorConfig",
    "config_from_dict",
    "load_config",
    "parse_env_overrides",
    "read_toml_file",
]
