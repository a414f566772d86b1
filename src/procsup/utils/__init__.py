"""Shared utilities for procsup."""

from ._exec import (
    DEFAULT_SHELL,
    MAX_OUTPUT_BYTES,
    ScriptConfig,
    ScriptResult,
    build_command,
    run_script,
    truncate_output,
)
from ._logging import add_process_id, create_supervisor_logger
from ._pidfile import DEFAULT_PID_FILE, PidFile, is_process_alive

__all__ = [
    "DEFAULT_PID_FILE",
    "DEFAULT_SHELL",
    "MAX_OUTPUT_BYTES",
    "PidFile",
    "ScriptConfig",
    "ScriptResult",
    "add_process_id",
    "build_command",
    "create_supervisor_logger",
    "is_process_alive",
    "run_script",
    "truncate_output",
]
