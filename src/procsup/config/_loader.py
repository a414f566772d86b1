# pyright: reportAny=false, reportUnknownVariableType=false, reportUnknownArgumentType=false
"""TOML configuration file loading."""

import os
import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from procsup.exceptions import ConfigLoadError, ConfigValidationError

from ._models import LogLevel, SupervisorConfig

ENV_PREFIX = "PROCSUP_"


def read_toml_file(path: Path) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
    """Read and parse a TOML file.

    Args:
        path: Path to the TOML file.

    Returns:
        Parsed TOML content as dictionary.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigLoadError: If the file cannot be parsed.
    """
    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        msg = f"Failed to parse TOML file: {e}"
        # lineno and colno are only set on Python 3.14+
        raise ConfigLoadError(
            msg,
            path=path,
            line=getattr(e, "lineno", None),
            column=getattr(e, "colno", None),
        ) from e


def parse_env_overrides(
    environ: Mapping[str, str] | None = None,
) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
    """Collect configuration overrides from environment variables.

    PROCSUP_DEBUG (any non-empty value) wins over PROCSUP_LOG_LEVEL.

    Args:
        environ: Environment mapping. Uses os.environ if None.

    Returns:
        A partial configuration dictionary, empty if nothing is set.
    """
    env = os.environ if environ is None else environ

    if env.get(f"{ENV_PREFIX}DEBUG"):
        return {"logging": {"level": LogLevel.DEBUG.value}}

    level = env.get(f"{ENV_PREFIX}LOG_LEVEL", "").strip().lower()
    if level:
        return {"logging": {"level": level}}

    return {}


def config_from_dict(
    data: Mapping[str, Any],  # pyright: ignore[reportExplicitAny]
    *,
    source: str | None = None,
) -> SupervisorConfig:
    """Validate a configuration dictionary.

    Args:
        data: Raw configuration values.
        source: Where the values came from, for error messages.

    Returns:
        The validated configuration.

    Raises:
        ConfigValidationError: If any value fails validation.
    """
    try:
        return SupervisorConfig.model_validate(dict(data))
    except ValidationError as e:
        first = e.errors()[0]
        key = ".".join(str(part) for part in first["loc"]) or "<root>"
        msg = f"Invalid configuration at '{key}': {first['msg']}"
        raise ConfigValidationError(
            msg,
            key=key,
            value=first.get("input"),
            expected=first["type"],
            source=source,
        ) from e


def load_config(path: Path, *, include_env: bool = True) -> SupervisorConfig:
    """Load and validate a supervisor configuration file.

    Args:
        path: Path to the TOML configuration file.
        include_env: Apply PROCSUP_* environment overrides.

    Returns:
        The validated configuration.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigLoadError: If the file cannot be parsed.
        ConfigValidationError: If any value fails validation.
    """
    data = read_toml_file(path)

    if include_env:
        overrides = parse_env_overrides()
        if "logging" in overrides:
            logging_section = data.get("logging", {})
            if not isinstance(logging_section, dict):
                logging_section = {}
            data["logging"] = {**logging_section, **overrides["logging"]}

    return config_from_dict(data, source=str(path))
