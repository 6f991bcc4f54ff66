"""Repository models.

This module defines the read-derived records the engine returns. Every
record is recomputed from the repository on each call and never cached.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Literal

# =============================================================================
# Commits and Branches
# =============================================================================


@dataclass(frozen=True, slots=True)
class Commit:
    """A commit projected from history.

    Attributes:
        sha: Full 40-character commit SHA hex string.
        author: Author name.
        email: Author email.
        date: Authored time as an RFC 3339 UTC string.
        message: Complete commit message (subject + body).
        parents: Parent SHAs in order; the first parent is the mainline.
        is_merge: True when the commit has more than one parent.
        branches: Branch names decorating this commit.
    """

    sha: str
    author: str
    email: str
    date: str
    message: str
    parents: tuple[str, ...] = ()
    is_merge: bool = False
    branches: tuple[str, ...] = ()

    @property
    def subject(self) -> str:
        """First line of the commit message."""
        return self.message.split("\n", 1)[0]


@dataclass(frozen=True, slots=True)
class BranchMetadata:
    """Derived state of a single branch.

    Attributes:
        is_merged: Tip is a strict ancestor of the main-line tip.
        is_stale: Tip commit is older than the stale threshold.
        is_unborn: Tip could not be resolved to a commit.
        last_commit_date: Tip commit time as RFC 3339, None when unborn.
    """

    is_merged: bool = False
    is_stale: bool = False
    is_unborn: bool = False
    last_commit_date: str | None = None


@dataclass(frozen=True, slots=True)
class BranchInfo:
    """Branch listing with per-branch metadata and a cache fingerprint.

    Attributes:
        current: Current branch name ("HEAD" when detached).
        branches: Branch names, deduplicated and sorted by rank then name.
        metadata: Per-branch metadata keyed by branch name.
        head: SHA that HEAD resolves to, None on an unborn HEAD.
        refs_hash: Fingerprint of every (branch, tip) pair.
    """

    current: str
    branches: tuple[str, ...]
    metadata: dict[str, BranchMetadata] = field(default_factory=dict)
    head: str | None = None
    refs_hash: str | None = None


# =============================================================================
# Diffs
# =============================================================================


@dataclass(frozen=True, slots=True)
class DiffHunk:
    """A contiguous block of a unified diff.

    Attributes:
        old_start: First line of the hunk in the old file.
        old_count: Number of old-file lines the hunk spans.
        new_start: First line of the hunk in the new file.
        new_count: Number of new-file lines the hunk spans.
        lines: The header line followed by the body lines, verbatim.
        line_start: Line offset of the header within the source diff text.
    """

    old_start: int
    old_count: int
    new_start: int
    new_count: int
    lines: tuple[str, ...] = ()
    line_start: int = 0

    @property
    def header(self) -> str:
        """The hunk header line."""
        return self.lines[0] if self.lines else ""

    @property
    def body(self) -> tuple[str, ...]:
        """Lines after the header."""
        return self.lines[1:]

    @property
    def counted_old(self) -> int:
        """Old-side line count re-derived from context and `-` lines."""
        return sum(1 for line in self.body if line[:1] in (" ", "-"))

    @property
    def counted_new(self) -> int:
        """New-side line count re-derived from context and `+` lines."""
        return sum(1 for line in self.body if line[:1] in (" ", "+"))

    @property
    def is_consistent(self) -> bool:
        """Whether the body line counts match the header's declared counts."""
        return self.counted_old == self.old_count and self.counted_new == self.new_count


@dataclass(frozen=True, slots=True)
class FileDiff:
    """Unified diff text and parsed hunks for a single path.

    Attributes:
        diff: Unified diff text.
        hunks: Hunks in position order.
        file_path: Repository-relative path the diff is for.
        degraded: True when the result is best-effort (hunk-less fallback
            or skipped malformed hunk headers).
    """

    diff: str
    hunks: tuple[DiffHunk, ...]
    file_path: str
    degraded: bool = False

    @property
    def is_empty(self) -> bool:
        """Whether there is no diff text at all."""
        return not self.diff


# =============================================================================
# Status and Conflicts
# =============================================================================

StatusType = Literal["added", "deleted", "modified", "renamed", "untracked"]


@dataclass(frozen=True, slots=True)
class StatusFile:
    """A path reported by porcelain status.

    Attributes:
        path: Repository-relative path (the new path for renames).
        old_path: Rename source, if any.
        status: The two-character porcelain code.
        staged: Index side (X) carries a change.
        unstaged: Working-tree side (Y) carries a change.
        type: Coarse classification of the change.
    """

    path: str
    status: str
    staged: bool
    unstaged: bool
    type: StatusType
    old_path: str | None = None


@dataclass(frozen=True, slots=True)
class StatusListing:
    """Parsed porcelain status output.

    Attributes:
        files: Successfully parsed entries, in output order.
        malformed: Raw lines that were skipped.
    """

    files: tuple[StatusFile, ...] = ()
    malformed: tuple[str, ...] = ()

    @property
    def degraded(self) -> bool:
        """Whether any line had to be skipped."""
        return bool(self.malformed)


class ConflictCause(StrEnum):
    """Underlying three-way conflict cause from a porcelain code."""

    BOTH_MODIFIED = "both-modified"
    BOTH_ADDED = "both-added"
    BOTH_DELETED = "both-deleted"
    ADDED_BY_US = "added-by-us"
    ADDED_BY_THEM = "added-by-them"
    DELETED_BY_US = "deleted-by-us"
    DELETED_BY_THEM = "deleted-by-them"


@dataclass(frozen=True, slots=True)
class ConflictFile:
    """A conflicted path.

    Attributes:
        path: Repository-relative path.
        cause: Fine-grained conflict cause.
        kind: Coarse label kept stable for clients; always "both-modified".
    """

    path: str
    cause: ConflictCause = ConflictCause.BOTH_MODIFIED
    kind: str = "both-modified"


@dataclass(frozen=True, slots=True)
class ConflictReport:
    """Conflicted paths in the working tree.

    Attributes:
        files: Conflicted paths in status order.
    """

    files: tuple[ConflictFile, ...] = ()

    @property
    def has_conflicts(self) -> bool:
        """Whether any path is conflicted."""
        return bool(self.files)


StageSource = Literal["index", "worktree", "absent"]


@dataclass(frozen=True, slots=True)
class StageContent:
    """Content of one side of a three-way conflict.

    Attributes:
        content: Text of the side; empty when absent.
        source: Where the content came from.
    """

    content: str = ""
    source: StageSource = "absent"


@dataclass(frozen=True, slots=True)
class ConflictContent:
    """Three-way content for a conflicted path.

    Attributes:
        file_path: Repository-relative path.
        base: Common ancestor (index stage 1).
        mine: Current side (index stage 2, else the working tree file).
        theirs: Incoming side (index stage 3).
        result: Current working tree content including conflict markers.
    """

    file_path: str
    base: StageContent
    mine: StageContent
    theirs: StageContent
    result: str = ""

    @property
    def degraded(self) -> bool:
        """Whether any side was not read from the index."""
        return any(side.source != "index" for side in (self.base, self.mine, self.theirs))


# =============================================================================
# Remotes, Stashes and Rebase
# =============================================================================


@dataclass(frozen=True, slots=True)
class StashEntry:
    """A stash listed by git.

    Attributes:
        index: Stash reference such as "stash@{0}".
        message: Stash description.
        date: Creation time as printed by git.
    """

    index: str
    message: str
    date: str


@dataclass(frozen=True, slots=True)
class SkippedRemote:
    """A remote that was not fetched.

    Attributes:
        name: Remote name.
        reason: Error text reported for the remote.
    """

    name: str
    reason: str


@dataclass(frozen=True, slots=True)
class FetchResult:
    """Outcome of fetching every remote.

    Attributes:
        fetched: Remotes fetched successfully.
        skipped: Remotes skipped because authentication was unavailable.
    """

    fetched: tuple[str, ...] = ()
    skipped: tuple[SkippedRemote, ...] = ()

    @property
    def degraded(self) -> bool:
        """Whether any remote had to be skipped."""
        return bool(self.skipped)


@dataclass(frozen=True, slots=True)
class UpstreamStatus:
    """Divergence of the current branch from its upstream.

    Attributes:
        branch: Current branch name, None when detached or unborn.
        upstream: Tracking branch such as "origin/main", None if unset.
        ahead: Commits on the branch missing from the upstream.
        behind: Commits on the upstream missing from the branch.
    """

    branch: str | None = None
    upstream: str | None = None
    ahead: int = 0
    behind: int = 0


@dataclass(frozen=True, slots=True)
class RebasePreview:
    """Commits a rebase of `from_ref` onto `onto` would replay.

    Attributes:
        onto: Target revision.
        from_ref: Revision being rebased.
        merge_base: Full SHA of the common ancestor.
        commits: Commits in `merge_base..from_ref`, newest first.
    """

    onto: str
    from_ref: str
    merge_base: str
    commits: tuple[Commit, ...] = ()


@dataclass(frozen=True, slots=True)
class RebasePlanItem:
    """One step of an interactive rebase plan.

    Attributes:
        sha: Commit to act on.
        action: Rebase action ("pick", "squash", ...).
        message: Optional replacement message.
    """

    sha: str
    action: str = "pick"
    message: str | None = None


# =============================================================================
# Commit Inspection
# =============================================================================

ChangeStatus = Literal["added", "removed", "modified"]


@dataclass(frozen=True, slots=True)
class ChangedFile:
    """A path changed by a commit relative to its first parent.

    Attributes:
        path: Repository-relative path (the new path for renames).
        status: Coarse change classification.
    """

    path: str
    status: ChangeStatus


@dataclass(frozen=True, slots=True)
class CommitStats:
    """Size of a commit relative to its first parent.

    Attributes:
        files_changed: Number of files touched.
        lines_changed: Inserted plus deleted lines (binary files count 0).
    """

    files_changed: int = 0
    lines_changed: int = 0
