"""Repolens repository introspection.

This package turns a git working copy into structured, read-derived records
and performs the few mutations a client needs (staging, unstaging, conflict
resolution).

Classes:
    GitRepository: Open handle over the object graph and the git CLI.
    BranchMetadataBuilder: Branch listing with merged/stale state.
    HistoryWalker: Topologically ordered commit history.
    DiffEngine: Structured and textual file diffs.
    ConflictResolver: Conflict listing, three-way content and resolution.
    StructuredHunkBuilder / TextHunkBuilder: HunkBuilder implementations.

Example:
    >>> from pathlib import Path
    >>> from repolens.config import EngineConfig
    >>> from repolens.repository import DiffEngine, GitRepository
    >>> with GitRepository(Path("."), EngineConfig()) as repo:
    ...     diff = DiffEngine(repo).working_file_diff("README.md")
"""

from repolens.repository._base import GitRepository
from repolens.repository._branches import (
    BranchMetadataBuilder,
    refs_fingerprint,
    sort_branches,
)
from repolens.repository._conflicts import ConflictResolver, classify_conflict
from repolens.repository._diff import DiffEngine
from repolens.repository._history import HistoryWalker
from repolens.repository._hunks import (
    DiffEvent,
    HunkRange,
    StructuredHunkBuilder,
    TextHunkBuilder,
    parse_hunk_header,
    parse_hunks,
    structured_events,
)
from repolens.repository._inspect import changed_files, commit_stats, count_all_commits
from repolens.repository._models import (
    BranchInfo,
    BranchMetadata,
    ChangedFile,
    Commit,
    CommitStats,
    ConflictCause,
    ConflictContent,
    ConflictFile,
    ConflictReport,
    DiffHunk,
    FetchResult,
    FileDiff,
    RebasePlanItem,
    RebasePreview,
    SkippedRemote,
    StageContent,
    StashEntry,
    StatusFile,
    StatusListing,
    UpstreamStatus,
)
from repolens.repository._protocol import HunkBuilder
from repolens.repository._rebase import plan as plan_rebase, preview as preview_rebase
from repolens.repository._remotes import fetch_all, stash_list, upstream_status
from repolens.repository._staging import stage, unstage
from repolens.repository._status import has_uncommitted_changes, parse_status, read_status

__all__ = [
    "BranchInfo",
    "BranchMetadata",
    "BranchMetadataBuilder",
    "ChangedFile",
    "Commit",
    "CommitStats",
    "ConflictCause",
    "ConflictContent",
    "ConflictFile",
    "ConflictReport",
    "ConflictResolver",
    "DiffEngine",
    "DiffEvent",
    "DiffHunk",
    "FetchResult",
    "FileDiff",
    "GitRepository",
    "HistoryWalker",
    "HunkBuilder",
    "HunkRange",
    "RebasePlanItem",
    "RebasePreview",
    "SkippedRemote",
    "StageContent",
    "StashEntry",
    "StatusFile",
    "StatusListing",
    "StructuredHunkBuilder",
    "TextHunkBuilder",
    "UpstreamStatus",
    "changed_files",
    "classify_conflict",
    "commit_stats",
    "count_all_commits",
    "fetch_all",
    "has_uncommitted_changes",
    "parse_hunk_header",
    "parse_hunks",
    "parse_status",
    "plan_rebase",
    "preview_rebase",
    "read_status",
    "refs_fingerprint",
    "sort_branches",
    "stage",
    "stash_list",
    "structured_events",
    "unstage",
    "upstream_status",
]
