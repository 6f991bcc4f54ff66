"""Commit history walking."""

from __future__ import annotations

from collections import defaultdict
from typing import TYPE_CHECKING, Final

from git import Head, RemoteReference
from git.exc import BadName, BadObject, GitCommandError

from repolens.repository._models import Commit
from repolens.utils._git import decode_bytes, format_timestamp

if TYPE_CHECKING:
    from git import Commit as GitCommit

    from repolens.repository._base import GitRepository

DEFAULT_REVISION: Final = "HEAD"


def to_commit(commit: GitCommit, branches: tuple[str, ...] = ()) -> Commit:
    """Project a GitPython commit into a Commit record.

    Args:
        commit: The GitPython commit.
        branches: Branch names decorating the commit.

    Returns:
        The projected commit with an RFC 3339 UTC authored date.
    """
    parents = tuple(parent.hexsha for parent in commit.parents)
    return Commit(
        sha=commit.hexsha,
        author=commit.author.name or "",
        email=commit.author.email or "",
        date=format_timestamp(commit.authored_date),
        message=decode_bytes(commit.message),
        parents=parents,
        is_merge=len(parents) > 1,
        branches=branches,
    )


class HistoryWalker:
    """Walk commit history from a revision.

    Commits come out in topological order with ties broken by commit time,
    newest first.
    """

    __slots__: Final = ("_repo",)

    def __init__(self, repo: GitRepository) -> None:
        self._repo: GitRepository = repo

    def walk(self, revision: str, limit: int, *, local: bool = False) -> list[Commit]:
        """Return up to `limit` commits reachable from a revision.

        Args:
            revision: Start revision; empty means HEAD.
            limit: Maximum number of commits to return.
            local: Decorate every commit with the start revision instead of
                the branches whose tips point at it.

        Returns:
            Commits newest first, or an empty list if the revision is unborn
            or does not exist.
        """
        spec = revision or DEFAULT_REVISION
        if limit <= 0:
            return []
        start = self._repo.resolve_commit(spec)
        if start is None:
            self._repo.logger.debug("history_revision_unresolved", revision=spec)
            return []

        tips: dict[str, list[str]] = {} if local else self._branch_tips()
        commits: list[Commit] = []
        try:
            for commit in self._repo.repo.iter_commits(
                start.hexsha, max_count=limit, date_order=True
            ):
                decoration = (spec,) if local else tuple(tips.get(commit.hexsha, ()))
                commits.append(to_commit(commit, decoration))
        except GitCommandError as e:
            self._repo.logger.warning(
                "history_walk_failed", revision=spec, error=str(e.stderr).strip()
            )
            return []
        return commits

    def _branch_tips(self) -> dict[str, list[str]]:
        tips: defaultdict[str, list[str]] = defaultdict(list)
        for ref in self._repo.repo.references:
            if not isinstance(ref, (Head, RemoteReference)):
                continue
            if ref.name.endswith("/HEAD"):
                continue
            try:
                sha = ref.commit.hexsha
            except (BadName, BadObject, ValueError):
                continue
            tips[sha].append(ref.name)
        return dict(tips)
