"""Execution utilities for shell commands.

This module provides the reusable shell runner used by workers: it executes
a command string through a shell with optional timeout handling, combined
output capture, and error reporting that never raises.
"""

import os
import subprocess
from dataclasses import dataclass, field
from pathlib import Path

# Shell used for command strings
DEFAULT_SHELL: str = "/bin/sh"

# Maximum output size in bytes
MAX_OUTPUT_BYTES: int = 102400  # 100KB


@dataclass(frozen=True, slots=True)
class ScriptConfig:
    """Configuration for command execution.

    Attributes:
        command: Command string, interpreted by the shell.
        shell: Shell used to interpret the command.
        cwd: Working directory for execution.
        env: Additional environment variables to set.
        timeout_ms: Execution timeout in milliseconds, or None to wait forever.
    """

    command: str | None = None
    shell: str = DEFAULT_SHELL
    cwd: str | Path | None = None
    env: dict[str, str] = field(default_factory=dict)
    timeout_ms: int | None = None


@dataclass(frozen=True, slots=True)
class ScriptResult:
    """Result from command execution.

    Attributes:
        success: Whether the command could be executed (not whether it passed).
        exit_code: Process exit code, or None if execution failed.
        output: Combined stdout and stderr.
        error: Error message if execution failed (timeout, not found, etc.).
        timed_out: Whether the command timed out.
        command_not_found: Whether the shell could not be found.
    """

    success: bool
    exit_code: int | None = None
    output: str = ""
    error: str | None = None
    timed_out: bool = False
    command_not_found: bool = False


def truncate_output(output: str, max_bytes: int = MAX_OUTPUT_BYTES) -> str:
    """Truncate output to max bytes, preserving valid UTF-8.

    Args:
        output: The string to truncate.
        max_bytes: Maximum size in bytes.

    Returns:
        Truncated string with indicator if truncated.
    """
    if not output:
        return output

    encoded = output.encode("utf-8")
    if len(encoded) <= max_bytes:
        return output

    # Drop any partial multi-byte sequence left at the cut
    truncated = encoded[:max_bytes].decode("utf-8", errors="ignore")

    return truncated + "\n... [output truncated]"


def build_command(config: ScriptConfig) -> list[str]:
    """Build the argv used to run a command string.

    Args:
        config: Script configuration.

    Returns:
        The argv list, empty if no command is set.
    """
    if not config.command:
        return []
    return [config.shell, "-c", config.command]


def run_script(config: ScriptConfig) -> ScriptResult:
    """Execute a shell command and capture its combined output.

    Args:
        config: Script configuration specifying command, env, cwd, timeout, etc.

    Returns:
        ScriptResult with execution outcome.
    """
    cmd = build_command(config)
    if not cmd:
        return ScriptResult(
            success=False,
            error="No command specified",
        )

    env = {**os.environ, **config.env}
    cwd = str(config.cwd) if config.cwd else None
    timeout_seconds = config.timeout_ms / 1000.0 if config.timeout_ms else None

    try:
        result = subprocess.run(  # noqa: S603
            cmd,
            env=env,
            cwd=cwd,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            timeout=timeout_seconds,
            check=False,
        )
    except subprocess.TimeoutExpired:
        return ScriptResult(
            success=False,
            error=f"Command timed out after {timeout_seconds}s",
            timed_out=True,
        )
    except FileNotFoundError as e:
        return ScriptResult(
            success=False,
            error=str(e),
            command_not_found=True,
        )
    except OSError as e:
        return ScriptResult(
            success=False,
            error=str(e),
        )

    return ScriptResult(
        success=True,
        exit_code=result.returncode,
        output=truncate_output(result.stdout.decode("utf-8", errors="replace")),
    )
