"""Unit tests for hunk parsing and construction."""

import pytest

from repolens.exceptions import MalformedHunkHeaderError
from repolens.repository import (
    DiffEvent,
    HunkBuilder,
    HunkRange,
    StructuredHunkBuilder,
    TextHunkBuilder,
    parse_hunk_header,
    parse_hunks,
    structured_events,
)
from repolens.repository._hunks import (
    NO_NEWLINE_MARKER,
    split_lines,
    synthesize_addition,
    synthesize_deletion,
    with_new_start,
)

SAMPLE_DIFF = """\
diff --git a/f.txt b/f.txt
index 1111111..2222222 100644
--- a/f.txt
+++ b/f.txt
@@ -1,3 +1,3 @@
 a
-b
+B
 c
@@ -10,2 +10,3 @@ section
 x
+y
 z
"""


class TestParseHunkHeader:
    def test_parses_explicit_counts(self) -> None:
        assert parse_hunk_header("@@ -1,3 +1,4 @@ def foo") == HunkRange(1, 3, 1, 4)

    def test_omitted_counts_default_to_one(self) -> None:
        assert parse_hunk_header("@@ -5 +6 @@") == HunkRange(5, 1, 6, 1)

    def test_zero_counts(self) -> None:
        assert parse_hunk_header("@@ -0,0 +1,3 @@") == HunkRange(0, 0, 1, 3)

    @pytest.mark.parametrize("line", ["@@ bad @@", "@@ -a,1 +1 @@", "@ -1 +1 @", ""])
    def test_malformed_header_raises(self, line: str) -> None:
        with pytest.raises(MalformedHunkHeaderError) as exc_info:
            _ = parse_hunk_header(line)
        assert exc_info.value.line == line

    def test_range_header_always_has_counts(self) -> None:
        assert HunkRange(5, 1, 6, 1).header() == "@@ -5,1 +6,1 @@"


class TestSplitLines:
    def test_no_phantom_trailing_line(self) -> None:
        assert split_lines("a\nb\n") == ["a", "b"]

    def test_missing_final_newline(self) -> None:
        assert split_lines("a\nb") == ["a", "b"]

    def test_empty_text(self) -> None:
        assert split_lines("") == []

    def test_keepends_preserves_missing_final_newline(self) -> None:
        assert split_lines("a\nb", keepends=True) == ["a\n", "b"]

    def test_form_feed_stays_inside_line(self) -> None:
        assert split_lines("a\x0cb\n") == ["a\x0cb"]


class TestTextHunkBuilder:
    def test_splits_hunks_at_headers(self) -> None:
        hunks = parse_hunks(SAMPLE_DIFF, "f.txt")

        assert len(hunks) == 2
        assert hunks[0].lines == ("@@ -1,3 +1,3 @@", " a", "-b", "+B", " c")
        assert hunks[1].header == "@@ -10,2 +10,3 @@ section"
        assert (hunks[1].old_start, hunks[1].old_count) == (10, 2)
        assert (hunks[1].new_start, hunks[1].new_count) == (10, 3)

    def test_line_start_is_header_offset(self) -> None:
        hunks = parse_hunks(SAMPLE_DIFF)

        assert [hunk.line_start for hunk in hunks] == [4, 9]

    def test_header_lines_precede_first_hunk(self) -> None:
        builder = TextHunkBuilder("f.txt")
        builder.feed(SAMPLE_DIFF)

        assert builder.header_lines == (
            "diff --git a/f.txt b/f.txt",
            "index 1111111..2222222 100644",
            "--- a/f.txt",
            "+++ b/f.txt",
        )

    def test_result_keeps_original_text(self) -> None:
        builder = TextHunkBuilder("f.txt")
        builder.feed(SAMPLE_DIFF)
        result = builder.result()

        assert result.diff == SAMPLE_DIFF
        assert result.file_path == "f.txt"
        assert not result.degraded

    def test_hunks_are_consistent(self) -> None:
        assert all(hunk.is_consistent for hunk in parse_hunks(SAMPLE_DIFF))

    def test_malformed_header_is_skipped_and_recorded(self) -> None:
        text = SAMPLE_DIFF.replace("@@ -10,2 +10,3 @@ section", "@@ -x +y @@")
        builder = TextHunkBuilder("f.txt")
        builder.feed(text)
        result = builder.result()

        assert len(result.hunks) == 1
        assert result.hunks[0].lines[-1] == " c"
        assert builder.malformed == ("@@ -x +y @@",)
        assert result.degraded

    def test_diff_git_line_seals_hunk(self) -> None:
        text = SAMPLE_DIFF + "diff --git a/g.txt b/g.txt\n--- a/g.txt\n"
        hunks = parse_hunks(text)

        assert hunks[-1].lines[-1] == " z"

    def test_hunks_include_open_final_hunk(self) -> None:
        builder = TextHunkBuilder("f.txt")
        builder.feed(SAMPLE_DIFF)

        before = builder.hunks

        assert len(before) == 2
        assert before[-1].lines[-1] == " z"
        assert builder.result().hunks == before

    def test_empty_input(self) -> None:
        builder = TextHunkBuilder("f.txt")
        builder.feed("")

        assert builder.result().is_empty
        assert builder.hunks == ()


class TestStructuredHunkBuilder:
    def test_pure_addition(self) -> None:
        builder = StructuredHunkBuilder("new.txt")
        builder.consume(synthesize_addition("new.txt", "one\ntwo\nthree\n"))
        result = builder.result()

        assert result.diff == (
            "--- /dev/null\n+++ b/new.txt\n@@ -0,0 +1,3 @@\n+one\n+two\n+three\n"
        )
        assert len(result.hunks) == 1
        hunk = result.hunks[0]
        assert (hunk.old_start, hunk.old_count, hunk.new_start, hunk.new_count) == (
            0,
            0,
            1,
            3,
        )
        assert hunk.line_start == 2

    def test_pure_deletion(self) -> None:
        builder = StructuredHunkBuilder("old.txt")
        builder.consume(synthesize_deletion("old.txt", "one\ntwo"))
        result = builder.result()

        assert result.diff.startswith("--- a/old.txt\n+++ /dev/null\n@@ -1,2 +0,0 @@\n")
        assert result.hunks[0].body == ("-one", "-two")
        assert result.hunks[0].is_consistent

    def test_modification_with_context(self) -> None:
        builder = StructuredHunkBuilder("f.txt")
        builder.consume(structured_events("f.txt", "a\nb\nc\n", "a\nB\nc\n"))
        result = builder.result()

        assert result.diff == "--- a/f.txt\n+++ b/f.txt\n@@ -1,3 +1,3 @@\n a\n-b\n+B\n c\n"
        assert result.hunks[0].is_consistent

    def test_identical_content_yields_empty_diff(self) -> None:
        builder = StructuredHunkBuilder("f.txt")
        builder.consume(structured_events("f.txt", "same\n", "same\n"))

        result = builder.result()
        assert result.is_empty
        assert result.hunks == ()

    def test_missing_final_newline_marker(self) -> None:
        builder = StructuredHunkBuilder("f.txt")
        builder.consume(structured_events("f.txt", "a\n", "a\nb"))
        hunk = builder.result().hunks[0]

        assert hunk.lines == ("@@ -1,1 +1,2 @@", " a", "+b", NO_NEWLINE_MARKER)
        assert hunk.is_consistent

    def test_insertion_without_context_uses_line_before(self) -> None:
        builder = StructuredHunkBuilder("f.txt")
        builder.consume(structured_events("f.txt", "a\nc\n", "a\nb\nc\n", context=0))

        assert builder.result().hunks[0].header == "@@ -1,0 +2,1 @@"

    def test_distant_changes_produce_separate_hunks(self) -> None:
        old = "".join(f"line {i}\n" for i in range(1, 31))
        new = old.replace("line 2\n", "line two\n").replace("line 28\n", "line 28!\n")
        builder = StructuredHunkBuilder("f.txt")
        builder.consume(structured_events("f.txt", old, new))
        hunks = builder.result().hunks

        assert len(hunks) == 2
        assert hunks[0].header == "@@ -1,5 +1,5 @@"
        assert hunks[1].header == "@@ -25,6 +25,6 @@"

    def test_hunk_header_without_range_degrades(self) -> None:
        builder = StructuredHunkBuilder("f.txt")
        builder.emit(DiffEvent("H"))

        assert builder.result().degraded


class TestWithNewStart:
    def test_rewrites_header_and_keeps_section(self) -> None:
        hunk = parse_hunks(SAMPLE_DIFF)[1]
        moved = with_new_start(hunk, 7)

        assert moved.header == "@@ -10,2 +7,3 @@ section"
        assert moved.new_start == 7
        assert moved.body == hunk.body

    def test_same_start_returns_hunk_unchanged(self) -> None:
        hunk = parse_hunks(SAMPLE_DIFF)[0]

        assert with_new_start(hunk, hunk.new_start) is hunk


class TestHunkBuilderProtocol:
    def test_both_builders_satisfy_protocol(self) -> None:
        assert isinstance(StructuredHunkBuilder("f.txt"), HunkBuilder)
        assert isinstance(TextHunkBuilder("f.txt"), HunkBuilder)
