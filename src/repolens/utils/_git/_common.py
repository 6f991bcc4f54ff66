"""Common git utility functions.

This module provides shared helper functions used by the repository
components: byte/string conversion, revision and ref normalization,
porcelain path unquoting, and timestamp rendering.
"""

from __future__ import annotations

import codecs
from datetime import UTC, datetime

_REFS_HEADS = "refs/heads/"
_EPOCH = datetime.fromtimestamp(0, tz=UTC)


def decode_bytes(value: bytes | str) -> str:
    """Decode bytes to str if needed.

    Invalid UTF-8 sequences are replaced rather than raised, since file
    content and commit metadata are not guaranteed to be valid UTF-8.

    Args:
        value: A bytes or str value.

    Returns:
        The value as a string.
    """
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return value


def normalize_sha(value: str) -> str:
    """Normalize a revision id received from a tool before echoing it back.

    Strips surrounding whitespace, a leading boundary marker (`^`, as printed
    by `git log --boundary` or `rev-parse` ranges) and lowercases hex ids.

    Args:
        value: Raw id text.

    Returns:
        The normalized id.

    Example:
        >>> normalize_sha("  ^ABCDEF0123\\n")
        'abcdef0123'
    """
    cleaned = value.strip().lstrip("^")
    if cleaned and all(c in "0123456789abcdefABCDEF" for c in cleaned):
        return cleaned.lower()
    return cleaned


def strip_refs_heads(branch: bytes | str | None) -> str | None:
    """Strip refs/heads/ prefix from a branch reference.

    Args:
        branch: Branch reference (bytes or str), possibly with refs/heads/ prefix.

    Returns:
        Branch name without prefix, or None if input is None.
    """
    if branch is None:
        return None
    branch_str = decode_bytes(branch)
    if branch_str.startswith(_REFS_HEADS):
        return branch_str[len(_REFS_HEADS) :]
    return branch_str


def unquote_path(path: str) -> str:
    """Undo git's C-style quoting of a path in porcelain output.

    Git wraps paths containing spaces, quotes, backslashes or control
    characters in double quotes and escapes them like a C string literal.

    Args:
        path: A path field as printed by git.

    Returns:
        The literal path.
    """
    if len(path) >= 2 and path.startswith('"') and path.endswith('"'):
        raw = path[1:-1].encode("utf-8")
        unescaped: bytes = codecs.escape_decode(raw)[0]  # pyright: ignore[reportAttributeAccessIssue]
        return unescaped.decode("utf-8", errors="replace")
    return path


def format_timestamp(epoch_seconds: int | float) -> str:
    """Render a Unix timestamp as an RFC 3339 string in UTC.

    Out-of-range timestamps collapse to the Unix epoch instead of raising,
    so one corrupt commit cannot fail a whole listing.

    Args:
        epoch_seconds: Seconds since the Unix epoch.

    Returns:
        An RFC 3339 timestamp such as "2024-05-01T12:00:00+00:00".
    """
    return to_datetime(epoch_seconds).isoformat()


def to_datetime(epoch_seconds: int | float) -> datetime:
    """Convert a Unix timestamp to an aware UTC datetime.

    Args:
        epoch_seconds: Seconds since the Unix epoch.

    Returns:
        The UTC datetime, or the epoch for out-of-range input.
    """
    try:
        return datetime.fromtimestamp(int(epoch_seconds), tz=UTC)
    except (OverflowError, OSError, ValueError):
        return _EPOCH
