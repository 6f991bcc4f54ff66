"""Hunk builder protocol.

This module defines the runtime-checkable Protocol shared by the two diff
sources: the structured builder fed from blobs resolved through the object
graph, and the textual builder fed from `git diff` output. Consumers only
depend on this protocol, so the rest of the engine is agnostic of which
source produced a diff.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from repolens.repository._models import DiffHunk, FileDiff


@runtime_checkable
class HunkBuilder(Protocol):
    """Protocol for turning a diff source into a FileDiff.

    Both implementations seal a hunk exactly when the next hunk header (or
    the end of input) is reached, populate the four range fields from the
    header, and keep the header as the first line of the hunk.

    Example:
        >>> def hunk_count(builder: HunkBuilder) -> int:
        ...     return len(builder.result().hunks)
    """

    @property
    def file_path(self) -> str:
        """Repository-relative path the diff describes."""
        ...

    @property
    def hunks(self) -> tuple[DiffHunk, ...]:
        """Hunks sealed so far, in encounter order."""
        ...

    def result(self) -> FileDiff:
        """Seal any open hunk and return the normalized diff.

        Returns:
            The diff text and its hunks.
        """
        ...
