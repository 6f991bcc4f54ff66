"""Repository handle shared by every component.

This module provides GitRepository, which owns the two sources of truth the
engine reconciles: a GitPython object-graph handle for structured reads
(commits, trees, blobs, the index) and the command executor for textual git
output. Components receive an open handle and never open repositories
themselves.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Final

from git import Repo
from git.exc import BadName, BadObject, InvalidGitRepositoryError, NoSuchPathError

from repolens.exceptions import PathViolationError, RepositoryNotFoundError
from repolens.utils._exec import DEFAULT_DECODE_ERRORS, run_git
from repolens.utils._logging import create_engine_logger

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence
    from types import TracebackType
    from typing import Self

    from git import Commit
    from structlog.typing import FilteringBoundLogger

    from repolens.config import EngineConfig
    from repolens.utils._exec import CommandResult

HEAD: Final = "HEAD"


class GitRepository:
    """An open git working copy.

    The handle implements the context manager protocol; leaving the context
    closes the GitPython repository, which terminates its persistent
    `cat-file` helper processes.

    Attributes:
        root: Resolved working tree directory.
        control_dir: Resolved git control directory (`.git`).
        config: Engine configuration the handle was opened with.
        logger: Logger for command and degradation records.
    """

    __slots__: Final = ("_config", "_logger", "_repo", "_root")

    def __init__(
        self,
        path: Path,
        config: EngineConfig,
        *,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        """Open the repository at a working tree directory.

        Args:
            path: Working tree directory (not a subdirectory of one).
            config: Engine configuration.
            logger: Logger to use. Created from `config.logging` if None.

        Raises:
            RepositoryNotFoundError: If the path does not exist, is not a git
                working tree, or is a bare repository.
        """
        try:
            repo = Repo(str(path))
        except (InvalidGitRepositoryError, NoSuchPathError) as e:
            msg = f"Not a git repository: {path}"
            raise RepositoryNotFoundError(msg, path=path) from e
        if repo.working_tree_dir is None:
            repo.close()
            msg = f"Repository has no working tree: {path}"
            raise RepositoryNotFoundError(msg, path=path)

        self._repo: Repo = repo
        self._root: Path = Path(repo.working_tree_dir).resolve()
        self._config: EngineConfig = config
        if logger is None:
            logger = create_engine_logger(config.logging)
        self._logger: FilteringBoundLogger = logger.bind(repository=str(self._root))

    # =========================================================================
    # Context Manager Protocol
    # =========================================================================

    def __enter__(self) -> Self:
        """Enter the context manager.

        Returns:
            The repository instance.
        """
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Exit the context manager and close the repository."""
        self.close()

    def close(self) -> None:
        """Release the GitPython repository and its helper processes."""
        self._repo.close()

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def root(self) -> Path:
        """The resolved working tree directory."""
        return self._root

    @property
    def control_dir(self) -> Path:
        """The resolved git control directory."""
        return Path(self._repo.git_dir).resolve()

    @property
    def repo(self) -> Repo:
        """The underlying GitPython repository."""
        return self._repo

    @property
    def config(self) -> EngineConfig:
        """The engine configuration."""
        return self._config

    @property
    def logger(self) -> FilteringBoundLogger:
        """Logger bound to this repository."""
        return self._logger

    # =========================================================================
    # Command Execution
    # =========================================================================

    def run_git(
        self,
        args: Sequence[str],
        *,
        check: bool = True,
        env: Mapping[str, str] | None = None,
        stdin: str | None = None,
        decode_errors: str = DEFAULT_DECODE_ERRORS,
    ) -> CommandResult:
        """Run a git subcommand in the working tree.

        Args:
            args: Subcommand and arguments, without the git binary.
            check: Raise CommandFailureError on a non-zero exit.
            env: Extra environment variables.
            stdin: Optional text piped to the command.
            decode_errors: Codec error handler for the captured streams.

        Returns:
            The captured command result.

        Raises:
            CommandFailureError: If the command fails and check is True.
        """
        return run_git(
            args,
            self._root,
            git_binary=self._config.git_binary,
            env=env,
            stdin=stdin,
            check=check,
            decode_errors=decode_errors,
            logger=self._logger,
        )

    # =========================================================================
    # Revisions
    # =========================================================================

    def resolve_commit(self, revision: str) -> Commit | None:
        """Resolve a revision expression to a commit.

        Args:
            revision: Any revision git understands ("HEAD", "main~2", a sha).

        Returns:
            The commit, or None when the revision is missing, unborn, or
            does not peel to a commit.
        """
        try:
            return self._repo.commit(revision)
        except (BadName, BadObject, ValueError):
            return None

    def head_commit(self) -> Commit | None:
        """Resolve HEAD, or None on an unborn HEAD."""
        return self.resolve_commit(HEAD)

    @property
    def is_unborn(self) -> bool:
        """Whether HEAD points at a branch with no commits yet."""
        return self.head_commit() is None

    # =========================================================================
    # Blob Access
    # =========================================================================

    def read_tree_blob(self, commit: Commit | None, path: str) -> bytes | None:
        """Read a file from a commit's tree.

        Args:
            commit: Commit whose tree to read, or None for an empty tree.
            path: Repository-relative path with forward slashes.

        Returns:
            The blob content, or None if the path is absent or not a file.
        """
        if commit is None:
            return None
        try:
            item = commit.tree / path
        except KeyError:
            return None
        if item.type != "blob":
            return None
        return item.data_stream.read()

    def read_index_blob(self, path: str, stage: int = 0) -> bytes | None:
        """Read a file from the index.

        Args:
            path: Repository-relative path with forward slashes.
            stage: Merge stage (0 for a normal entry, 1-3 for conflicts).

        Returns:
            The blob content, or None if the index has no such entry.
        """
        entry = self._repo.index.entries.get((path, stage))
        if entry is None:
            return None
        return entry.to_blob(self._repo).data_stream.read()

    def read_worktree(self, path: str) -> bytes | None:
        """Read a file from the working tree.

        Args:
            path: Repository-relative path.

        Returns:
            The file content, or None if it is missing or not a file.

        Raises:
            PathViolationError: If the path escapes the working tree.
        """
        target = self.worktree_path(path)
        if not target.is_file():
            return None
        return target.read_bytes()

    # =========================================================================
    # Path Validation
    # =========================================================================

    def validate_path(self, path: Path) -> bool:
        """Check that a path stays within the working tree and out of `.git`.

        Args:
            path: Absolute or root-relative path.

        Returns:
            True if the resolved path is inside the working tree and not
            inside the control directory.
        """
        resolved = (self._root / path).resolve()
        if not resolved.is_relative_to(self._root):
            return False
        return not resolved.is_relative_to(self.control_dir)

    def worktree_path(self, path: str) -> Path:
        """Map a repository-relative path to its working tree location.

        Args:
            path: Repository-relative path.

        Returns:
            The absolute working tree path.

        Raises:
            PathViolationError: If the path escapes the working tree or
                points into the control directory.
        """
        if Path(path).is_absolute() or not self.validate_path(Path(path)):
            msg = f"Path is outside the working tree: {path}"
            raise PathViolationError(msg, path=path, root=self._root)
        return self._root / path
