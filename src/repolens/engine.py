"""Engine facade.

Engine is the single entry point a transport layer calls. Every operation
takes a repository identifier, resolves it under the configured repositories
root, opens the repository for the duration of the call and closes it again.
No repository state survives between calls; clients poll and compare the
branch fingerprint to detect changes.

Example:
    >>> from repolens.config import EngineConfig
    >>> from repolens.engine import Engine
    >>> engine = Engine(EngineConfig.load())
    >>> info = engine.branch_info("my-project")
    >>> info.current
    'main'
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Final

from repolens.config import resolve_repository_path
from repolens.repository import _inspect, _rebase, _remotes, _staging, _status
from repolens.repository._base import GitRepository
from repolens.repository._branches import BranchMetadataBuilder
from repolens.repository._conflicts import ConflictResolver
from repolens.repository._diff import DiffEngine
from repolens.repository._history import HistoryWalker
from repolens.utils._logging import create_engine_logger

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Sequence
    from datetime import datetime

    from structlog.typing import FilteringBoundLogger

    from repolens.config import EngineConfig
    from repolens.repository._models import (
        BranchInfo,
        ChangedFile,
        Commit,
        CommitStats,
        ConflictContent,
        ConflictReport,
        FetchResult,
        FileDiff,
        RebasePlanItem,
        RebasePreview,
        StashEntry,
        StatusListing,
        UpstreamStatus,
    )


class Engine:
    """Repository introspection and diff engine.

    Attributes:
        config: The immutable engine configuration.
        logger: Logger shared by every repository the engine opens.
    """

    __slots__: Final = ("_clock", "_config", "_logger")

    def __init__(
        self,
        config: EngineConfig,
        *,
        logger: FilteringBoundLogger | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """Initialize the engine.

        Args:
            config: Engine configuration.
            logger: Logger to use. Created from `config.logging` if None.
            clock: Current-time source for branch staleness; defaults to the
                system clock in UTC.
        """
        self._config: EngineConfig = config
        self._logger: FilteringBoundLogger = (
            logger if logger is not None else create_engine_logger(config.logging)
        )
        self._clock: Callable[[], datetime] | None = clock

    @property
    def config(self) -> EngineConfig:
        """The engine configuration."""
        return self._config

    @property
    def logger(self) -> FilteringBoundLogger:
        """The engine logger."""
        return self._logger

    def open(self, repository_id: str) -> GitRepository:
        """Open a repository by identifier.

        The caller owns the handle and must close it, preferably with a
        `with` block.

        Args:
            repository_id: Identifier relative to the repositories root.

        Returns:
            The open repository.

        Raises:
            PathViolationError: If the identifier escapes the root.
            RepositoryNotFoundError: If the directory is missing or is not a
                git working tree.
        """
        path = resolve_repository_path(repository_id, self._config)
        return GitRepository(path, self._config, logger=self._logger)

    # =========================================================================
    # Branches and History
    # =========================================================================

    def branch_info(self, repository_id: str) -> BranchInfo:
        """Branch listing with metadata and the refs fingerprint."""
        with self.open(repository_id) as repo:
            builder = BranchMetadataBuilder(
                repo, stale_after_days=self._config.stale_after_days, clock=self._clock
            )
            return builder.build()

    def history(
        self,
        repository_id: str,
        revision: str = "",
        limit: int | None = None,
        *,
        local: bool = False,
    ) -> list[Commit]:
        """Commits reachable from a revision, newest first.

        Args:
            repository_id: Repository identifier.
            revision: Start revision; empty means HEAD.
            limit: Maximum commits; defaults to `config.history_limit`.
            local: Decorate commits with the revision instead of branch tips.

        Returns:
            The commits, empty for an unborn or missing revision.
        """
        with self.open(repository_id) as repo:
            return HistoryWalker(repo).walk(
                revision,
                limit if limit is not None else self._config.history_limit,
                local=local,
            )

    # =========================================================================
    # Diffs
    # =========================================================================

    def commit_file_diff(self, repository_id: str, commit: str, path: str) -> FileDiff:
        """Structured diff of a path between a commit and its first parent."""
        with self.open(repository_id) as repo:
            return DiffEngine(repo).commit_file_diff(commit, path)

    def working_file_diff(
        self,
        repository_id: str,
        path: str,
        *,
        staged: bool = False,
    ) -> FileDiff:
        """Structured diff of a path in the index or working tree."""
        with self.open(repository_id) as repo:
            return DiffEngine(repo).working_file_diff(path, staged=staged)

    def text_diff(
        self,
        repository_id: str,
        path: str,
        ref: str | None = None,
        *,
        staged: bool = False,
    ) -> FileDiff:
        """Diff of a path parsed from `git diff` output."""
        with self.open(repository_id) as repo:
            return DiffEngine(repo).text_diff(path, ref, staged=staged)

    # =========================================================================
    # Status, Conflicts and Staging
    # =========================================================================

    def status(self, repository_id: str) -> StatusListing:
        """Porcelain status of the working tree."""
        with self.open(repository_id) as repo:
            return _status.read_status(repo)

    def has_uncommitted_changes(self, repository_id: str) -> bool:
        """Whether the working tree or index has any change."""
        with self.open(repository_id) as repo:
            return _status.has_uncommitted_changes(repo)

    def conflicts(self, repository_id: str) -> ConflictReport:
        """Conflicted paths in the working tree."""
        with self.open(repository_id) as repo:
            return ConflictResolver(repo).list_conflicts()

    def conflict_content(self, repository_id: str, path: str) -> ConflictContent:
        """Base, mine, theirs and current content of a conflicted path."""
        with self.open(repository_id) as repo:
            return ConflictResolver(repo).conflict_content(path)

    def resolve_conflict(self, repository_id: str, path: str, content: str) -> None:
        """Write resolved content for a path and stage it."""
        with self.open(repository_id) as repo:
            ConflictResolver(repo).resolve(path, content)

    def stage(
        self,
        repository_id: str,
        path: str,
        hunks: Iterable[int] | None = None,
    ) -> None:
        """Stage a file, or only the given hunk indices of its diff."""
        with self.open(repository_id) as repo:
            _staging.stage(repo, path, hunks)

    def unstage(self, repository_id: str, path: str) -> None:
        """Remove a path's staged changes from the index."""
        with self.open(repository_id) as repo:
            _staging.unstage(repo, path)

    # =========================================================================
    # Remotes and Stashes
    # =========================================================================

    def fetch_all(self, repository_id: str) -> FetchResult:
        """Fetch every remote, skipping those that need credentials."""
        with self.open(repository_id) as repo:
            return _remotes.fetch_all(repo)

    def stash_list(self, repository_id: str) -> list[StashEntry]:
        """Stashes, newest first."""
        with self.open(repository_id) as repo:
            return _remotes.stash_list(repo)

    def upstream_status(self, repository_id: str) -> UpstreamStatus:
        """Ahead/behind counts of the current branch against its upstream."""
        with self.open(repository_id) as repo:
            return _remotes.upstream_status(repo)

    # =========================================================================
    # Commit Inspection and Rebase
    # =========================================================================

    def changed_files(self, repository_id: str, sha: str) -> list[ChangedFile]:
        """Files a commit changed relative to its first parent."""
        with self.open(repository_id) as repo:
            return _inspect.changed_files(repo, sha)

    def commit_stats(self, repository_id: str, sha: str) -> CommitStats:
        """Files touched and lines changed by a commit."""
        with self.open(repository_id) as repo:
            return _inspect.commit_stats(repo, sha)

    def count_all_commits(self, repository_id: str) -> int:
        """Number of commits reachable from any ref."""
        with self.open(repository_id) as repo:
            return _inspect.count_all_commits(repo)

    def rebase_preview(
        self,
        repository_id: str,
        onto: str = _rebase.DEFAULT_ONTO,
        from_ref: str = _rebase.DEFAULT_FROM,
    ) -> RebasePreview:
        """Commits a rebase of `from_ref` onto `onto` would replay."""
        with self.open(repository_id) as repo:
            return _rebase.preview(repo, onto, from_ref)

    def rebase_plan(
        self,
        repository_id: str,
        onto: str,
        items: Sequence[RebasePlanItem],
    ) -> list[RebasePlanItem]:
        """Validate and normalize a rebase plan without executing it."""
        with self.open(repository_id) as repo:
            return _rebase.plan(repo, onto, items)
