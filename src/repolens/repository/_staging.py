"""Hunk-granular staging.

Partial staging rebuilds a patch from the selected hunks of the working
tree diff and applies it to the index with `git apply --cached`.
"""

from __future__ import annotations

import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Final

from repolens.repository._hunks import TextHunkBuilder, with_new_start

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Sequence

    from repolens.repository._base import GitRepository
    from repolens.repository._models import DiffHunk

SCRATCH_PREFIX: Final = "repolens-patch-"
PATCH_ERRORS: Final = "surrogateescape"


@contextmanager
def scratch_patch(
    directory: Path, text: str, *, errors: str = "strict"
) -> Iterator[Path]:
    """Write patch text to a scratch file that is removed on exit.

    Args:
        directory: Directory to create the file in.
        text: Patch content.
        errors: Codec error handler for encoding the text as UTF-8.

    Yields:
        Path of the scratch file.
    """
    with tempfile.NamedTemporaryFile(
        mode="w",
        encoding="utf-8",
        errors=errors,
        dir=directory,
        prefix=SCRATCH_PREFIX,
        suffix=".patch",
        delete=False,
    ) as handle:
        path = Path(handle.name)
        _ = handle.write(text)
    try:
        yield path
    finally:
        path.unlink(missing_ok=True)


def select_hunks(hunks: Sequence[DiffHunk], indices: Iterable[int]) -> list[DiffHunk]:
    """Keep hunks by encounter index and renumber their new-side starts.

    Skipped hunks do not reach the index, so each kept hunk's new start is
    its old start shifted only by the line delta of the kept hunks before it.

    Args:
        hunks: All hunks of the diff, in encounter order.
        indices: Zero-based indices to keep; out-of-range indices are ignored.

    Returns:
        The kept hunks with consistent headers.
    """
    wanted = set(indices)
    offset = 0
    selected: list[DiffHunk] = []
    for index, hunk in enumerate(hunks):
        if index not in wanted:
            continue
        new_start = hunk.old_start + offset
        if hunk.old_count == 0 and hunk.new_count > 0:
            new_start += 1
        elif hunk.new_count == 0 and hunk.old_count > 0:
            new_start -= 1
        selected.append(with_new_start(hunk, new_start))
        offset += hunk.new_count - hunk.old_count
    return selected


def build_patch(header_lines: Sequence[str], hunks: Sequence[DiffHunk]) -> str:
    """Assemble a standalone patch from file header lines and hunks.

    Returns:
        The patch text, or an empty string when there are no hunks.
    """
    if not hunks or not header_lines:
        return ""
    lines = [*header_lines]
    for hunk in hunks:
        lines.extend(hunk.lines)
    return "\n".join(lines) + "\n"


def stage(repo: GitRepository, path: str, hunks: Iterable[int] | None = None) -> None:
    """Stage a whole file or selected hunks of it.

    Args:
        repo: Open repository.
        path: Repository-relative path.
        hunks: Zero-based hunk indices of the unstaged diff, or None to
            stage the whole file. An empty selection stages nothing.

    Raises:
        CommandFailureError: If git rejects the add or the patch.
    """
    if hunks is None:
        _ = repo.run_git(["add", "--", path])
        repo.logger.info("file_staged", path=path)
        return

    indices = sorted(set(hunks))
    if not indices:
        return

    # Bytes that are not UTF-8 survive as surrogates and are restored on write
    diff = repo.run_git(
        ["diff", "--no-color", "--no-ext-diff", "--", path],
        decode_errors=PATCH_ERRORS,
    ).stdout
    builder = TextHunkBuilder(path)
    builder.feed(diff)
    parsed = builder.result()
    patch = build_patch(builder.header_lines, select_hunks(parsed.hunks, indices))
    if not patch:
        repo.logger.debug("stage_hunks_empty_patch", path=path, hunks=indices)
        return

    with scratch_patch(repo.control_dir, patch, errors=PATCH_ERRORS) as patch_file:
        _ = repo.run_git(["apply", "--cached", str(patch_file)])
    repo.logger.info("hunks_staged", path=path, hunks=indices)


def unstage(repo: GitRepository, path: str) -> None:
    """Remove a path's staged changes from the index.

    On an unborn HEAD there is nothing to reset to, so the entry is removed
    from the index instead.

    Args:
        repo: Open repository.
        path: Repository-relative path.

    Raises:
        CommandFailureError: If git fails.
    """
    if repo.is_unborn:
        _ = repo.run_git(["rm", "--cached", "-q", "--", path])
    else:
        _ = repo.run_git(["reset", "-q", "HEAD", "--", path])
    repo.logger.info("file_unstaged", path=path)
