"""Rebase preview and plan validation.

Nothing here rewrites history: a preview lists the commits a rebase would
replay and a plan is normalized as a dry run.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Final

from repolens.exceptions import (
    CommandFailureError,
    DirtyWorkingTreeError,
    InvalidRebasePlanError,
    RevisionNotFoundError,
)
from repolens.repository._models import Commit, RebasePlanItem, RebasePreview
from repolens.repository._status import has_uncommitted_changes
from repolens.utils._git import normalize_sha

if TYPE_CHECKING:
    from collections.abc import Sequence

    from repolens.repository._base import GitRepository

DEFAULT_ONTO: Final = "main"
DEFAULT_FROM: Final = "HEAD"
DEFAULT_ACTION: Final = "pick"
LOG_FORMAT: Final = "--format=%H%x1f%an%x1f%ad%x1f%s%x1e"
RECORD_SEPARATOR: Final = "\x1e"
FIELD_SEPARATOR: Final = "\x1f"


def _utc_date(value: str) -> str:
    try:
        return datetime.fromisoformat(value).astimezone(UTC).isoformat()
    except ValueError:
        return value


def parse_log_records(output: str) -> list[Commit]:
    """Parse record-separated `git log` output.

    Each record holds sha, author name, strict ISO date and subject.
    Incomplete records are skipped.

    Args:
        output: Output of `git log` with LOG_FORMAT.

    Returns:
        Commits in log order.
    """
    commits: list[Commit] = []
    for chunk in output.split(RECORD_SEPARATOR):
        record = chunk.strip()
        if not record:
            continue
        parts = record.split(FIELD_SEPARATOR)
        if len(parts) < 4:
            continue
        commits.append(
            Commit(
                sha=normalize_sha(parts[0]),
                author=parts[1].strip(),
                email="",
                date=_utc_date(parts[2].strip()),
                message=parts[3].strip(),
            )
        )
    return commits


def _require_clean(repo: GitRepository, message: str) -> None:
    if has_uncommitted_changes(repo):
        raise DirtyWorkingTreeError(message)


def preview(
    repo: GitRepository,
    onto: str = DEFAULT_ONTO,
    from_ref: str = DEFAULT_FROM,
) -> RebasePreview:
    """List the commits a rebase of `from_ref` onto `onto` would replay.

    Args:
        repo: Open repository.
        onto: Target revision.
        from_ref: Revision being rebased.

    Returns:
        The merge base and the commits after it, newest first.

    Raises:
        DirtyWorkingTreeError: If the working tree has uncommitted changes.
        RevisionNotFoundError: If the two revisions share no ancestor.
        CommandFailureError: If the log cannot be read.
    """
    onto = onto or DEFAULT_ONTO
    from_ref = from_ref or DEFAULT_FROM
    _require_clean(
        repo, "Cannot rebase with uncommitted changes. Please commit or stash first."
    )

    try:
        base_result = repo.run_git(["merge-base", from_ref, onto])
    except CommandFailureError as e:
        msg = "Cannot find common ancestor"
        raise RevisionNotFoundError(msg, revision=f"{from_ref}...{onto}") from e
    merge_base = normalize_sha(base_result.stdout)

    log = repo.run_git(
        ["log", f"{merge_base}..{from_ref}", LOG_FORMAT, "--date=iso-strict"]
    )
    return RebasePreview(
        onto=onto,
        from_ref=from_ref,
        merge_base=merge_base,
        commits=tuple(parse_log_records(log.stdout)),
    )


def plan(
    repo: GitRepository,
    onto: str,
    items: Sequence[RebasePlanItem],
) -> list[RebasePlanItem]:
    """Validate and normalize an interactive rebase plan without running it.

    Args:
        repo: Open repository.
        onto: Target revision.
        items: Plan steps in replay order.

    Returns:
        The steps with empty actions normalized to "pick".

    Raises:
        InvalidRebasePlanError: If `onto` or `items` is empty.
        DirtyWorkingTreeError: If the working tree has uncommitted changes.
    """
    if not onto or not items:
        msg = "onto and plan (array) required"
        raise InvalidRebasePlanError(msg)
    _require_clean(repo, "Cannot rebase with uncommitted changes")
    return [
        item if item.action else replace(item, action=DEFAULT_ACTION) for item in items
    ]
