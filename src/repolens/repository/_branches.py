"""Ref and branch metadata.

Builds the branch listing a client shows in its sidebar: local and
remote-tracking branches in a stable order, per-branch merged/stale state,
and a fingerprint of every branch tip the client can compare between polls.
"""

from __future__ import annotations

import hashlib
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Final

from git import Head, RemoteReference
from git.exc import BadName, BadObject, GitCommandError

from repolens.repository._models import BranchInfo, BranchMetadata
from repolens.utils._git import format_timestamp, strip_refs_heads, to_datetime

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from git import Reference

    from repolens.repository._base import GitRepository

BRANCH_RANK: Final[dict[str, int]] = {"main": 0, "master": 1, "develop": 2}
DEFAULT_RANK: Final = 10
MAIN_LINE_CANDIDATES: Final = ("main", "master")
DEFAULT_MAIN_LINE: Final = "main"
DETACHED_HEAD: Final = "HEAD"


def branch_sort_key(name: str) -> tuple[int, str]:
    """Sort key placing well-known branches first, then by name."""
    return (BRANCH_RANK.get(name, DEFAULT_RANK), name)


def sort_branches(names: Iterable[str]) -> list[str]:
    """Deduplicate branch names and sort them by rank then name.

    Example:
        >>> sort_branches(["zeta", "main", "apple", "master"])
        ['main', 'master', 'apple', 'zeta']
    """
    return sorted(set(names), key=branch_sort_key)


def refs_fingerprint(pairs: Iterable[tuple[str, str | None]]) -> str:
    """Fingerprint a set of branch tips.

    The digest depends only on the multiset of pairs, not their order; an
    unresolvable tip still contributes its name.

    Args:
        pairs: (branch name, tip sha or None) pairs.

    Returns:
        SHA-256 hex digest.
    """
    records = sorted(f"{name}\0{sha or ''}" for name, sha in pairs)
    digest = hashlib.sha256()
    for record in records:
        digest.update(record.encode("utf-8"))
        digest.update(b"\n")
    return digest.hexdigest()


def _utc_now() -> datetime:
    return datetime.now(UTC)


class BranchMetadataBuilder:
    """Derive a BranchInfo from an open repository in one pass.

    Each branch tip is resolved exactly once and the result is reused for
    the merged check, the staleness check and the fingerprint.
    """

    __slots__: Final = ("_clock", "_repo", "_stale_after_days")

    def __init__(
        self,
        repo: GitRepository,
        *,
        stale_after_days: int = 90,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """Initialize the builder.

        Args:
            repo: Open repository.
            stale_after_days: Tip age in days beyond which a branch is stale.
            clock: Returns the current aware time. Defaults to the system
                clock in UTC.
        """
        self._repo: GitRepository = repo
        self._stale_after_days: int = stale_after_days
        self._clock: Callable[[], datetime] = clock if clock is not None else _utc_now

    def build(self) -> BranchInfo:
        """Build the branch listing.

        Returns:
            Branches, metadata, current branch, HEAD sha and fingerprint.
        """
        refs = self._branch_refs()
        names = sort_branches(refs)
        tips = {name: self._resolve_tip(refs[name]) for name in names}

        main_line = next(
            (name for name in MAIN_LINE_CANDIDATES if name in tips),
            DEFAULT_MAIN_LINE,
        )
        main_tip = tips.get(main_line)
        main_sha = main_tip[0] if main_tip is not None else None

        now = self._clock()
        metadata: dict[str, BranchMetadata] = {}
        for name in names:
            tip = tips[name]
            if tip is None:
                metadata[name] = BranchMetadata(is_unborn=True)
                continue
            sha, committed = tip
            metadata[name] = BranchMetadata(
                is_merged=self._is_merged(name, sha, main_sha),
                is_stale=(now - to_datetime(committed)).days > self._stale_after_days,
                is_unborn=False,
                last_commit_date=format_timestamp(committed),
            )

        head = self._repo.head_commit()
        return BranchInfo(
            current=self._current_branch(),
            branches=tuple(names),
            metadata=metadata,
            head=head.hexsha if head is not None else None,
            refs_hash=refs_fingerprint(
                (name, tip[0] if tip is not None else None) for name, tip in tips.items()
            ),
        )

    def _branch_refs(self) -> dict[str, Reference]:
        refs: dict[str, Reference] = {}
        for ref in self._repo.repo.references:
            if not isinstance(ref, (Head, RemoteReference)):
                continue
            # Symbolic <remote>/HEAD pointers are not branches
            if isinstance(ref, RemoteReference) and ref.name.endswith("/HEAD"):
                continue
            refs.setdefault(ref.name, ref)
        return refs

    def _resolve_tip(self, ref: Reference) -> tuple[str, int] | None:
        try:
            commit = ref.commit
        except (BadName, BadObject, ValueError):
            self._repo.logger.debug("branch_tip_unresolved", branch=ref.name)
            return None
        return commit.hexsha, commit.committed_date

    def _is_merged(self, name: str, sha: str, main_sha: str | None) -> bool:
        if main_sha is None or sha == main_sha:
            return False
        try:
            return self._repo.repo.is_ancestor(sha, main_sha)
        except GitCommandError as e:
            self._repo.logger.warning(
                "ancestry_check_failed", branch=name, error=str(e.stderr).strip()
            )
            return False

    def _current_branch(self) -> str:
        head = self._repo.repo.head
        try:
            if head.is_detached:
                return DETACHED_HEAD
            # Works on an unborn HEAD too: the symbolic target is read as-is
            return strip_refs_heads(head.reference.path) or DEFAULT_MAIN_LINE
        except (TypeError, ValueError):
            return DEFAULT_MAIN_LINE

