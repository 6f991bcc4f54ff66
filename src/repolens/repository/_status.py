"""Porcelain status parsing.

Parses `git status --porcelain` (v1) output. Each line is two status
characters (X for the index, Y for the working tree), a space, and a path;
renames join the old and new path with " -> ".
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Final

from repolens.exceptions import MalformedStatusLineError
from repolens.repository._models import StatusFile, StatusListing
from repolens.utils._git import unquote_path

if TYPE_CHECKING:
    from repolens.repository._base import GitRepository
    from repolens.repository._models import StatusType

RENAME_SEPARATOR: Final = " -> "
_MIN_LINE_LENGTH: Final = 4
_UNCHANGED: Final = " ?"


def _classify(code: str) -> StatusType:
    if "A" in code:
        return "added"
    if "D" in code:
        return "deleted"
    if "?" in code:
        return "untracked"
    return "modified"


def parse_status_line(line: str) -> StatusFile:
    """Parse one porcelain status line.

    Args:
        line: A line with trailing whitespace already removed.

    Returns:
        The parsed entry.

    Raises:
        MalformedStatusLineError: If the line is too short to hold a code
            and a path.
    """
    if len(line) < _MIN_LINE_LENGTH:
        msg = f"Malformed status line: {line!r}"
        raise MalformedStatusLineError(msg, line=line)

    code = line[:2]
    x, y = code[0], code[1]
    path_field = line[3:]
    old_path: str | None = None
    if RENAME_SEPARATOR in path_field:
        old_field, path_field = path_field.split(RENAME_SEPARATOR, 1)
        old_path = unquote_path(old_field)
        status_type: StatusType = "renamed"
    else:
        status_type = _classify(code)

    return StatusFile(
        path=unquote_path(path_field),
        status=code,
        staged=x not in _UNCHANGED,
        unstaged=y not in _UNCHANGED,
        type=status_type,
        old_path=old_path,
    )


def parse_status(output: str) -> StatusListing:
    """Parse porcelain status output.

    Leading spaces are significant (a space in X means "unchanged in the
    index"), so only trailing whitespace is stripped. Malformed lines are
    skipped and recorded instead of aborting the listing.

    Args:
        output: Raw `git status --porcelain` output.

    Returns:
        Parsed entries in output order plus any skipped lines.

    Example:
        >>> listing = parse_status("R  old.txt -> new.txt\\n")
        >>> listing.files[0].path, listing.files[0].old_path
        ('new.txt', 'old.txt')
    """
    files: list[StatusFile] = []
    malformed: list[str] = []
    for raw in output.split("\n"):
        line = raw.rstrip()
        if not line:
            continue
        try:
            files.append(parse_status_line(line))
        except MalformedStatusLineError:
            malformed.append(line)
    return StatusListing(files=tuple(files), malformed=tuple(malformed))


def read_status(repo: GitRepository) -> StatusListing:
    """Read and parse the working tree status.

    Args:
        repo: Open repository.

    Returns:
        The parsed status listing.
    """
    listing = parse_status(repo.run_git(["status", "--porcelain"]).stdout)
    if listing.degraded:
        repo.logger.warning("status_lines_skipped", lines=list(listing.malformed))
    return listing


def has_uncommitted_changes(repo: GitRepository) -> bool:
    """Check whether the working tree or index differs from HEAD.

    Untracked files count as changes.

    Args:
        repo: Open repository.

    Returns:
        True if porcelain status prints anything.
    """
    return bool(repo.run_git(["status", "--porcelain"]).stdout.strip())
