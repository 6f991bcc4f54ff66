"""Hunk construction from structured and textual diff sources.

Two builders satisfy the HunkBuilder protocol:

- StructuredHunkBuilder consumes callback-style events, one per output line,
  each tagged with an origin marker (`F` file header, `H` hunk header,
  `+`/`-`/` ` body lines, `\\` end-of-file marker). Events are produced from
  two in-memory texts by `structured_events`, or synthesized for pure
  additions and deletions.
- TextHunkBuilder scans the text printed by `git diff`.

Both produce DiffHunk records whose first line is the header.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from difflib import SequenceMatcher
from typing import TYPE_CHECKING, Final, NamedTuple

from repolens.exceptions import MalformedHunkHeaderError
from repolens.repository._models import DiffHunk, FileDiff

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

HUNK_HEADER_RE: Final = re.compile(r"^@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@")
DEV_NULL: Final = "/dev/null"
NO_NEWLINE_MARKER: Final = "\\ No newline at end of file"
DEFAULT_CONTEXT_LINES: Final = 3


class HunkRange(NamedTuple):
    """Line ranges of a hunk on both sides."""

    old_start: int
    old_count: int
    new_start: int
    new_count: int

    def header(self) -> str:
        """Format the range as a unified hunk header with explicit counts."""
        return (
            f"@@ -{self.old_start},{self.old_count} "
            f"+{self.new_start},{self.new_count} @@"
        )


def parse_hunk_header(line: str) -> HunkRange:
    """Parse a unified hunk header.

    Omitted counts default to 1 (the single-line hunk convention).

    Args:
        line: A line starting with "@@".

    Returns:
        The parsed ranges.

    Raises:
        MalformedHunkHeaderError: If the line does not match the header format.
    """
    match = HUNK_HEADER_RE.match(line)
    if match is None:
        msg = f"Malformed hunk header: {line!r}"
        raise MalformedHunkHeaderError(msg, line=line)
    old_start, old_count, new_start, new_count = match.groups()
    return HunkRange(
        old_start=int(old_start),
        old_count=int(old_count) if old_count is not None else 1,
        new_start=int(new_start),
        new_count=int(new_count) if new_count is not None else 1,
    )


def with_new_start(hunk: DiffHunk, new_start: int) -> DiffHunk:
    """Return a copy of a hunk moved to a different new-side start line.

    The header line is rewritten with explicit counts; any section heading
    git printed after the closing "@@" is preserved.

    Args:
        hunk: The hunk to move.
        new_start: New-side start line.

    Returns:
        The rewritten hunk.
    """
    if new_start == hunk.new_start:
        return hunk
    rng = HunkRange(hunk.old_start, hunk.old_count, new_start, hunk.new_count)
    match = HUNK_HEADER_RE.match(hunk.header)
    section = hunk.header[match.end() :] if match is not None else ""
    return DiffHunk(
        old_start=hunk.old_start,
        old_count=hunk.old_count,
        new_start=new_start,
        new_count=hunk.new_count,
        lines=(rng.header() + section, *hunk.body),
        line_start=hunk.line_start,
    )


def split_lines(text: str, *, keepends: bool = False) -> list[str]:
    """Split text on newlines only, without a phantom trailing line.

    Unlike str.splitlines, form feeds and other Unicode separators stay
    inside their line, matching how git counts lines.

    Args:
        text: Text to split.
        keepends: Keep the trailing "\\n" on each line that has one.

    Returns:
        The lines of the text.
    """
    if not text:
        return []
    parts = text.split("\n")
    trailing_newline = parts[-1] == ""
    if trailing_newline:
        parts.pop()
    if not keepends:
        return parts
    lines = [part + "\n" for part in parts]
    if not trailing_newline:
        lines[-1] = lines[-1][:-1]
    return lines


class _HunkAccumulator:
    """Shared hunk sealing logic for both builders."""

    __slots__: tuple[str, ...] = (
        "_current",
        "_degraded",
        "_file_path",
        "_hunks",
        "_line_start",
        "_lines",
    )

    def __init__(self, file_path: str) -> None:
        self._file_path: str = file_path
        self._hunks: list[DiffHunk] = []
        self._current: HunkRange | None = None
        self._lines: list[str] = []
        self._line_start: int = 0
        self._degraded: bool = False

    @property
    def file_path(self) -> str:
        """Repository-relative path the diff describes."""
        return self._file_path

    @property
    def hunks(self) -> tuple[DiffHunk, ...]:
        """Hunks scanned so far, in encounter order, including an open one."""
        if self._current is None:
            return tuple(self._hunks)
        return (*self._hunks, self._build(self._current))

    def _open(self, rng: HunkRange, header: str, line_start: int) -> None:
        self._seal()
        self._current = rng
        self._lines = [header]
        self._line_start = line_start

    def _append(self, line: str) -> bool:
        if self._current is None:
            return False
        self._lines.append(line)
        return True

    def _build(self, rng: HunkRange) -> DiffHunk:
        return DiffHunk(
            old_start=rng.old_start,
            old_count=rng.old_count,
            new_start=rng.new_start,
            new_count=rng.new_count,
            lines=tuple(self._lines),
            line_start=self._line_start,
        )

    def _seal(self) -> None:
        if self._current is None:
            return
        self._hunks.append(self._build(self._current))
        self._current = None
        self._lines = []


# =============================================================================
# Structured source
# =============================================================================


@dataclass(frozen=True, slots=True)
class DiffEvent:
    """One callback from a structured diff.

    Attributes:
        origin: "F" file header, "H" hunk header, "+", "-", " " body lines,
            or "\\" for the end-of-file newline marker.
        content: Line content without origin marker or trailing newline. For
            "F" events this is the full two-line file header.
        hunk: Ranges of the hunk, set on "H" events only.
    """

    origin: str
    content: str = ""
    hunk: HunkRange | None = None


class StructuredHunkBuilder(_HunkAccumulator):
    """Build a FileDiff from structured diff callbacks.

    Example:
        >>> builder = StructuredHunkBuilder("notes.txt")
        >>> builder.consume(synthesize_addition("notes.txt", "a\\nb\\n"))
        >>> builder.result().hunks[0].new_count
        2
    """

    __slots__: tuple[str, ...] = ("_text",)

    def __init__(self, file_path: str) -> None:
        super().__init__(file_path)
        self._text: list[str] = []

    def emit(self, event: DiffEvent) -> None:
        """Handle one structured diff callback.

        Args:
            event: The callback payload.
        """
        origin = event.origin
        if origin in ("+", "-", " "):
            line = origin + event.content
            self._text.append(line)
            _ = self._append(line)
        elif origin == "H":
            if event.hunk is None:
                # A header without ranges cannot open a hunk
                self._degraded = True
                return
            header = event.hunk.header()
            self._open(event.hunk, header, len(self._text))
            self._text.append(header)
        elif origin == "F":
            self._seal()
            self._text.extend(split_lines(event.content))
        elif origin == "\\":
            self._text.append(NO_NEWLINE_MARKER)
            _ = self._append(NO_NEWLINE_MARKER)

    def consume(self, events: Iterable[DiffEvent]) -> None:
        """Handle a stream of callbacks in order.

        Args:
            events: Structured diff callbacks.
        """
        for event in events:
            self.emit(event)

    def result(self) -> FileDiff:
        """Seal any open hunk and return the normalized diff.

        Returns:
            The diff text and its hunks.
        """
        self._seal()
        text = "\n".join(self._text) + "\n" if self._text else ""
        return FileDiff(
            diff=text,
            hunks=tuple(self._hunks),
            file_path=self._file_path,
            degraded=self._degraded,
        )


def file_header(old_label: str, new_label: str) -> DiffEvent:
    """Build a file header event.

    Args:
        old_label: "a/<path>" or "/dev/null".
        new_label: "b/<path>" or "/dev/null".

    Returns:
        The "F" event.
    """
    return DiffEvent("F", f"--- {old_label}\n+++ {new_label}")


def synthesize_addition(path: str, content: str) -> Iterator[DiffEvent]:
    """Produce events for a file that only exists on the new side.

    Args:
        path: Repository-relative path.
        content: Full content of the new file.

    Yields:
        A file header, one hunk header `@@ -0,0 +1,<n> @@`, and one "+" event
        per line.
    """
    lines = split_lines(content)
    yield file_header(DEV_NULL, f"b/{path}")
    yield DiffEvent("H", hunk=HunkRange(0, 0, 1, len(lines)))
    for line in lines:
        yield DiffEvent("+", line)


def synthesize_deletion(path: str, content: str) -> Iterator[DiffEvent]:
    """Produce events for a file that only exists on the old side.

    Args:
        path: Repository-relative path.
        content: Full content of the deleted file.

    Yields:
        A file header, one hunk header `@@ -1,<n> +0,0 @@`, and one "-" event
        per line.
    """
    lines = split_lines(content)
    yield file_header(f"a/{path}", DEV_NULL)
    yield DiffEvent("H", hunk=HunkRange(1, len(lines), 0, 0))
    for line in lines:
        yield DiffEvent("-", line)


def _line_events(origin: str, lines: list[str]) -> Iterator[DiffEvent]:
    for line in lines:
        if line.endswith("\n"):
            yield DiffEvent(origin, line[:-1])
        else:
            yield DiffEvent(origin, line)
            yield DiffEvent("\\")


def structured_events(
    path: str,
    old: str,
    new: str,
    *,
    context: int = DEFAULT_CONTEXT_LINES,
) -> Iterator[DiffEvent]:
    """Produce events for a file present on both sides.

    Hunks are grouped with `context` lines of surrounding context. A side
    with zero lines in a hunk reports the line before the hunk as its start,
    following the unified diff convention.

    Args:
        path: Repository-relative path.
        old: Old content.
        new: New content.
        context: Number of context lines around each change.

    Yields:
        A file header followed by hunk headers and body lines. Nothing is
        yielded when the contents are equal.
    """
    if old == new:
        return
    old_lines = split_lines(old, keepends=True)
    new_lines = split_lines(new, keepends=True)
    matcher = SequenceMatcher(None, old_lines, new_lines, autojunk=False)

    header_sent = False
    for group in matcher.get_grouped_opcodes(context):
        if not header_sent:
            yield file_header(f"a/{path}", f"b/{path}")
            header_sent = True
        i1, i2 = group[0][1], group[-1][2]
        j1, j2 = group[0][3], group[-1][4]
        old_count = i2 - i1
        new_count = j2 - j1
        yield DiffEvent(
            "H",
            hunk=HunkRange(
                old_start=i1 + 1 if old_count else i1,
                old_count=old_count,
                new_start=j1 + 1 if new_count else j1,
                new_count=new_count,
            ),
        )
        for tag, a1, a2, b1, b2 in group:
            if tag == "equal":
                yield from _line_events(" ", old_lines[a1:a2])
                continue
            if tag in ("replace", "delete"):
                yield from _line_events("-", old_lines[a1:a2])
            if tag in ("replace", "insert"):
                yield from _line_events("+", new_lines[b1:b2])


# =============================================================================
# Textual source
# =============================================================================


class TextHunkBuilder(_HunkAccumulator):
    """Build a FileDiff by scanning `git diff` output.

    Lines before the first hunk header are kept as header lines (the
    `diff --git`, `index`, `---` and `+++` lines) so that selected hunks can
    be reassembled into a standalone patch. A malformed `@@` line seals the
    open hunk and is skipped together with its body.
    """

    __slots__: tuple[str, ...] = ("_header_lines", "_malformed", "_seen_hunk", "_source")

    def __init__(self, file_path: str) -> None:
        super().__init__(file_path)
        self._source: list[str] = []
        self._header_lines: list[str] = []
        self._malformed: list[str] = []
        self._seen_hunk: bool = False

    @property
    def header_lines(self) -> tuple[str, ...]:
        """Lines preceding the first hunk header."""
        return tuple(self._header_lines)

    @property
    def malformed(self) -> tuple[str, ...]:
        """Hunk header lines that could not be parsed."""
        return tuple(self._malformed)

    def feed(self, text: str) -> None:
        """Scan a block of diff output.

        Args:
            text: Diff text; may be called repeatedly with consecutive blocks.
        """
        offset = len(self._source)
        lines = split_lines(text)
        self._source.extend(lines)
        for index, line in enumerate(lines, start=offset):
            if line.startswith("@@"):
                self._seen_hunk = True
                try:
                    rng = parse_hunk_header(line)
                except MalformedHunkHeaderError:
                    self._seal()
                    self._malformed.append(line)
                    self._degraded = True
                    continue
                self._open(rng, line, index)
            elif line.startswith("diff --git"):
                self._seal()
                if not self._seen_hunk:
                    self._header_lines.append(line)
            elif not self._append(line) and not self._seen_hunk:
                self._header_lines.append(line)

    def result(self) -> FileDiff:
        """Seal any open hunk and return the normalized diff.

        Returns:
            The scanned text and its hunks.
        """
        self._seal()
        text = "\n".join(self._source) + "\n" if self._source else ""
        return FileDiff(
            diff=text,
            hunks=tuple(self._hunks),
            file_path=self._file_path,
            degraded=self._degraded,
        )


def parse_hunks(diff_text: str, file_path: str = "") -> tuple[DiffHunk, ...]:
    """Parse the hunks of a textual diff.

    Args:
        diff_text: Output of `git diff`.
        file_path: Path the diff describes.

    Returns:
        Hunks in encounter order.
    """
    builder = TextHunkBuilder(file_path)
    builder.feed(diff_text)
    return builder.result().hunks
