"""Git command execution.

This module provides the leaf executor every repository component uses to
run git subcommands: it launches the configured git binary in a working
directory, captures stdout/stderr as text, and maps non-zero exits to
CommandFailureError carrying the captured error stream.
"""

from __future__ import annotations

import os
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from repolens.exceptions import CommandFailureError

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from structlog.typing import FilteringBoundLogger

DEFAULT_GIT_BINARY: str = "git"

# "surrogateescape" keeps undecodable bytes recoverable via the same handler
DEFAULT_DECODE_ERRORS: str = "replace"

# Options prepended to every invocation so output is stable to parse
_STABLE_OUTPUT_OPTIONS: tuple[str, ...] = (
    "-c",
    "core.quotepath=false",
    "-c",
    "color.ui=never",
)


@dataclass(frozen=True, slots=True)
class GitCommand:
    """A git invocation to run.

    Attributes:
        args: Subcommand and arguments, without the git binary.
        cwd: Working directory for the command.
        git_binary: Executable to launch.
        env: Extra environment variables layered over the process environment.
        stdin: Optional text piped to the command.
        decode_errors: Codec error handler for decoding the captured streams.
    """

    args: tuple[str, ...]
    cwd: Path
    git_binary: str = DEFAULT_GIT_BINARY
    env: dict[str, str] = field(default_factory=dict)
    stdin: str | None = None
    decode_errors: str = DEFAULT_DECODE_ERRORS

    def argv(self) -> list[str]:
        """Build the full argument vector.

        Returns:
            The command line as a list, binary first.
        """
        return [self.git_binary, *_STABLE_OUTPUT_OPTIONS, *self.args]


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Captured outcome of a git invocation.

    Attributes:
        args: Subcommand and arguments that were run.
        returncode: Process exit code.
        stdout: Standard output, decoded as UTF-8.
        stderr: Standard error, decoded as UTF-8.
    """

    args: tuple[str, ...]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        """Whether the command exited with status zero."""
        return self.returncode == 0


def execute(
    command: GitCommand,
    *,
    logger: FilteringBoundLogger | None = None,
) -> CommandResult:
    """Run a git command and capture its output.

    Non-zero exit codes are reported in the result, not raised. A binary that
    cannot be launched at all raises, since there is no result to report.

    Args:
        command: The invocation to run.
        logger: Optional logger for a debug record of the command.

    Returns:
        CommandResult with the exit code and captured streams.

    Raises:
        CommandFailureError: If the git binary cannot be started.
    """
    env = {**os.environ, **command.env}
    try:
        completed = subprocess.run(  # noqa: S603
            command.argv(),
            cwd=str(command.cwd),
            env=env,
            input=command.stdin.encode("utf-8") if command.stdin is not None else None,
            capture_output=True,
            check=False,
        )
    except OSError as e:
        msg = f"Failed to run {command.git_binary}: {e}"
        raise CommandFailureError(msg, args=command.args) from e

    result = CommandResult(
        args=command.args,
        returncode=completed.returncode,
        stdout=completed.stdout.decode("utf-8", errors=command.decode_errors),
        stderr=completed.stderr.decode("utf-8", errors=command.decode_errors),
    )
    if logger is not None:
        logger.debug(
            "git_command",
            args=list(command.args),
            cwd=str(command.cwd),
            returncode=result.returncode,
        )
    return result


def run_git(
    args: Sequence[str],
    cwd: Path | str,
    *,
    git_binary: str = DEFAULT_GIT_BINARY,
    env: Mapping[str, str] | None = None,
    stdin: str | None = None,
    check: bool = True,
    decode_errors: str = DEFAULT_DECODE_ERRORS,
    logger: FilteringBoundLogger | None = None,
) -> CommandResult:
    """Run a git subcommand in a working directory.

    Stdout is returned unmodified; porcelain formats depend on leading
    whitespace, so callers strip only where the format allows it.

    Args:
        args: Subcommand and arguments, without the git binary.
        cwd: Working directory for the command.
        git_binary: Executable to launch.
        env: Extra environment variables.
        stdin: Optional text piped to the command.
        check: Raise on non-zero exit instead of returning the result.
        decode_errors: Codec error handler for decoding output. Pass
            "surrogateescape" when the output must be written back verbatim.
        logger: Optional logger for a debug record of the command.

    Returns:
        CommandResult with the exit code and captured streams.

    Raises:
        CommandFailureError: If the command exits non-zero (when check is
            True) or the binary cannot be started.
    """
    command = GitCommand(
        args=tuple(args),
        cwd=Path(cwd),
        git_binary=git_binary,
        env=dict(env or {}),
        stdin=stdin,
        decode_errors=decode_errors,
    )
    result = execute(command, logger=logger)
    if check and not result.ok:
        message = result.stderr.strip() or (
            f"git {' '.join(command.args)} exited with status {result.returncode}"
        )
        raise CommandFailureError(
            message,
            args=command.args,
            returncode=result.returncode,
            stderr=result.stderr,
        )
    return result
