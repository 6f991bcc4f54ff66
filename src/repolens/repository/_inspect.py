"""Commit inspection.

Per-commit change lists and size statistics, computed against the first
parent (or the empty tree for a root commit) with `git diff-tree`.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Final

from repolens.repository._models import ChangedFile, CommitStats

if TYPE_CHECKING:
    from repolens.repository._base import GitRepository
    from repolens.repository._models import ChangeStatus

_STATUS_MAP: Final[dict[str, ChangeStatus]] = {"A": "added", "D": "removed"}
# Rename and copy records carry a source and a destination path
_TWO_PATH_CODES: Final = frozenset("RC")


def _diff_tree_args(repo: GitRepository, sha: str, *options: str) -> list[str] | None:
    commit = repo.resolve_commit(sha)
    if commit is None:
        repo.logger.debug("inspect_commit_unresolved", revision=sha)
        return None
    args = ["diff-tree", "--no-commit-id", "-r", "-M", *options]
    if commit.parents:
        return [*args, commit.parents[0].hexsha, commit.hexsha]
    return [*args, "--root", commit.hexsha]


def parse_name_status(output: str) -> list[ChangedFile]:
    """Parse NUL-separated `--name-status -z` output.

    Args:
        output: Raw diff-tree output.

    Returns:
        Changed files in output order; renames and copies report the
        destination path.
    """
    tokens = output.split("\0")
    files: list[ChangedFile] = []
    index = 0
    while index < len(tokens):
        code = tokens[index]
        if not code:
            index += 1
            continue
        letter = code[0]
        if letter in _TWO_PATH_CODES:
            if index + 2 >= len(tokens):
                break
            path = tokens[index + 2]
            index += 3
        else:
            if index + 1 >= len(tokens):
                break
            path = tokens[index + 1]
            index += 2
        files.append(ChangedFile(path=path, status=_STATUS_MAP.get(letter, "modified")))
    return files


def parse_numstat(output: str) -> CommitStats:
    """Parse `--numstat` output into commit statistics.

    Binary files print "-" for both counts and contribute no lines.

    Args:
        output: Raw diff-tree output.

    Returns:
        Files touched and lines inserted plus deleted.
    """
    files = 0
    lines = 0
    for line in output.splitlines():
        fields = line.split("\t", 2)
        if len(fields) < 3:
            continue
        files += 1
        lines += sum(int(count) for count in fields[:2] if count.isdigit())
    return CommitStats(files_changed=files, lines_changed=lines)


def changed_files(repo: GitRepository, sha: str) -> list[ChangedFile]:
    """List the files a commit changed.

    Args:
        repo: Open repository.
        sha: Commit revision.

    Returns:
        Changed files, or an empty list if the commit cannot be resolved.
    """
    args = _diff_tree_args(repo, sha, "--name-status", "-z")
    if args is None:
        return []
    return parse_name_status(repo.run_git(args).stdout)


def commit_stats(repo: GitRepository, sha: str) -> CommitStats:
    """Measure the size of a commit.

    Args:
        repo: Open repository.
        sha: Commit revision.

    Returns:
        The statistics, zero if the commit cannot be resolved.
    """
    args = _diff_tree_args(repo, sha, "--numstat")
    if args is None:
        return CommitStats()
    return parse_numstat(repo.run_git(args).stdout)


def count_all_commits(repo: GitRepository) -> int:
    """Count commits reachable from any ref.

    Returns:
        The count; zero for an empty repository or unparsable output.
    """
    result = repo.run_git(["rev-list", "--all", "--count"], check=False)
    text = result.stdout.strip()
    if not result.ok or not text.isdigit():
        return 0
    return int(text)
