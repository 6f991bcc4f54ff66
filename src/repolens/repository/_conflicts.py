"""Merge conflict classification and resolution.

A path is conflicted when its porcelain status code names an unmerged
state. Three-way content is read from the index's merge stages (1 base,
2 ours, 3 theirs) with per-stage fallbacks, and a resolution writes the
chosen content and stages it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Final

from repolens.exceptions import InvalidResolutionError
from repolens.repository._models import (
    ConflictCause,
    ConflictContent,
    ConflictFile,
    ConflictReport,
    StageContent,
)
from repolens.repository._status import read_status
from repolens.utils._git import decode_bytes

if TYPE_CHECKING:
    from repolens.repository._base import GitRepository
    from repolens.repository._models import StageSource

_PAIR_CAUSES: Final[dict[str, ConflictCause]] = {
    "AA": ConflictCause.BOTH_ADDED,
    "DD": ConflictCause.BOTH_DELETED,
    "AU": ConflictCause.ADDED_BY_US,
    "UA": ConflictCause.ADDED_BY_THEM,
    "DU": ConflictCause.DELETED_BY_US,
    "UD": ConflictCause.DELETED_BY_THEM,
}

BASE_STAGE: Final = 1
OURS_STAGE: Final = 2
THEIRS_STAGE: Final = 3


def classify_conflict(x: str, y: str) -> ConflictCause | None:
    """Classify a porcelain status pair as a conflict cause.

    Args:
        x: Index status character.
        y: Working tree status character.

    Returns:
        The conflict cause, or None if the pair is not a conflict.

    Example:
        >>> classify_conflict("U", "U")
        <ConflictCause.BOTH_MODIFIED: 'both-modified'>
        >>> classify_conflict("M", " ") is None
        True
    """
    cause = _PAIR_CAUSES.get(x + y)
    if cause is not None:
        return cause
    if "U" in (x, y):
        return ConflictCause.BOTH_MODIFIED
    return None


def _stage(content: bytes | None, source: StageSource) -> StageContent:
    if content is None:
        return StageContent()
    return StageContent(content=decode_bytes(content), source=source)


class ConflictResolver:
    """List, read and resolve conflicted paths."""

    __slots__: Final = ("_repo",)

    def __init__(self, repo: GitRepository) -> None:
        self._repo: GitRepository = repo

    def list_conflicts(self) -> ConflictReport:
        """List conflicted paths in status order.

        Returns:
            The conflict report; renamed entries report their new path.
        """
        files: list[ConflictFile] = []
        for entry in read_status(self._repo).files:
            cause = classify_conflict(entry.status[0], entry.status[1])
            if cause is not None:
                files.append(ConflictFile(path=entry.path, cause=cause))
        return ConflictReport(files=tuple(files))

    def conflict_content(self, path: str) -> ConflictContent:
        """Read the three sides of a conflicted path.

        Each side is read independently and comes back empty when its stage
        is absent (for example, no base when both sides added the file). A
        missing "mine" stage falls back to the working tree file.

        Args:
            path: Repository-relative path.

        Returns:
            Base, mine and theirs content plus the working tree result.

        Raises:
            PathViolationError: If the path escapes the working tree.
        """
        stages: dict[int, bytes] = {}
        for stage, blob in self._repo.repo.index.unmerged_blobs().get(path, []):
            stages[stage] = blob.data_stream.read()

        worktree = self._repo.read_worktree(path)
        mine = _stage(stages.get(OURS_STAGE), "index")
        if mine.source == "absent":
            mine = _stage(worktree, "worktree")

        content = ConflictContent(
            file_path=path,
            base=_stage(stages.get(BASE_STAGE), "index"),
            mine=mine,
            theirs=_stage(stages.get(THEIRS_STAGE), "index"),
            result=decode_bytes(worktree) if worktree is not None else "",
        )
        if content.degraded:
            self._repo.logger.debug(
                "conflict_stages_missing",
                path=path,
                base=content.base.source,
                mine=content.mine.source,
                theirs=content.theirs.source,
            )
        return content

    def resolve(self, path: str, content: str) -> None:
        """Write resolved content for a path and stage it.

        Writing and staging are two steps; if staging fails the file keeps
        its new content and calling again completes the resolution.

        Args:
            path: Repository-relative path.
            content: Resolved file content.

        Raises:
            InvalidResolutionError: If path or content is empty, or the path
                names a directory.
            PathViolationError: If the path escapes the working tree.
            CommandFailureError: If staging fails.
        """
        if not path or not content:
            msg = "path and content required"
            raise InvalidResolutionError(msg, path=path)
        target = self._repo.worktree_path(path)
        if target.is_dir():
            msg = f"Path is a directory: {path}"
            raise InvalidResolutionError(msg, path=path)
        target.parent.mkdir(parents=True, exist_ok=True)
        _ = target.write_text(content, encoding="utf-8")
        _ = self._repo.run_git(["add", "--", path])
        self._repo.logger.info("conflict_resolved", path=path)
