"""Repolens exceptions."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path


class RepolensError(Exception):
    """Base exception for repolens errors."""


# =============================================================================
# Repository Exceptions
# =============================================================================


class RepositoryError(RepolensError):
    """Base exception for repository access errors."""


class RepositoryNotFoundError(RepositoryError):
    """Raised when a resolved repository path is missing or not a repository.

    Attributes:
        path: The filesystem path that could not be opened.
    """

    def __init__(self, message: str, *, path: Path | None = None) -> None:
        """Initialize with error message and path context.

        Args:
            message: Human-readable error message.
            path: The filesystem path that could not be opened.
        """
        super().__init__(message)
        self.path: Path | None = path


class PathViolationError(RepositoryError, ValueError):
    """Raised when a path escapes the directory it must stay within.

    Attributes:
        path: The offending path as given by the caller.
        root: The directory the path was required to stay within.
    """

    def __init__(
        self,
        message: str,
        *,
        path: str | Path,
        root: Path | None = None,
    ) -> None:
        """Initialize with error message and path context."""
        super().__init__(message)
        self.path: str | Path = path
        self.root: Path | None = root


class CommandFailureError(RepositoryError):
    """Raised when a git command exits non-zero or cannot be started.

    The message is the captured error stream of the command, so it can be
    shown to a user as-is.

    Attributes:
        command_args: The git arguments that were run (without the binary).
        returncode: Process exit code, or None if the process never started.
        stderr: Captured standard error.
    """

    def __init__(
        self,
        message: str,
        *,
        args: Sequence[str] = (),
        returncode: int | None = None,
        stderr: str = "",
    ) -> None:
        """Initialize with error message and command context."""
        super().__init__(message)
        self.command_args: tuple[str, ...] = tuple(args)
        self.returncode: int | None = returncode
        self.stderr: str = stderr


class RevisionNotFoundError(RepositoryError, LookupError):
    """Raised when a revision expression is missing, unborn, or ambiguous.

    Attributes:
        revision: The revision expression that failed to resolve.
    """

    def __init__(self, message: str, *, revision: str) -> None:
        """Initialize with error message and revision context."""
        super().__init__(message)
        self.revision: str = revision


class AuthenticationUnavailableError(RepositoryError):
    """Raised when a remote rejects or cannot obtain credentials.

    Attributes:
        remote: Name of the remote whose fetch failed.
    """

    def __init__(self, message: str, *, remote: str) -> None:
        """Initialize with error message and remote context."""
        super().__init__(message)
        self.remote: str = remote


class DirtyWorkingTreeError(RepositoryError):
    """Raised when an operation requires a clean working tree."""


# =============================================================================
# Parsing Exceptions
# =============================================================================


class ParseError(RepolensError, ValueError):
    """Base exception for malformed git output.

    Attributes:
        line: The raw line that could not be parsed.
    """

    def __init__(self, message: str, *, line: str) -> None:
        """Initialize with error message and the offending line."""
        super().__init__(message)
        self.line: str = line


class MalformedStatusLineError(ParseError):
    """Raised when a porcelain status line does not match `XY path`."""


class MalformedHunkHeaderError(ParseError):
    """Raised when an `@@` line does not match the unified hunk header format."""


# =============================================================================
# Mutation Exceptions
# =============================================================================


class InvalidResolutionError(RepolensError, ValueError):
    """Raised when a conflict resolution request is incomplete.

    Attributes:
        path: The path given in the request (may be empty).
    """

    def __init__(self, message: str, *, path: str) -> None:
        """Initialize with error message and path context."""
        super().__init__(message)
        self.path: str = path


class InvalidRebasePlanError(RepolensError, ValueError):
    """Raised when a rebase plan is missing its target or its items."""


# =============================================================================
# Configuration Exceptions
# =============================================================================


class ConfigError(RepolensError):
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
