"""Unit tests for porcelain status parsing."""

import pytest

from repolens.exceptions import MalformedStatusLineError
from repolens.repository import parse_status
from repolens.repository._status import parse_status_line


class TestParseStatusLine:
    def test_staged_modification(self) -> None:
        entry = parse_status_line("M  clean.txt")

        assert entry.path == "clean.txt"
        assert entry.status == "M "
        assert entry.staged
        assert not entry.unstaged
        assert entry.type == "modified"

    def test_unstaged_modification_keeps_leading_space(self) -> None:
        entry = parse_status_line(" M src/app.py")

        assert entry.path == "src/app.py"
        assert not entry.staged
        assert entry.unstaged

    def test_untracked(self) -> None:
        entry = parse_status_line("?? notes.md")

        assert entry.type == "untracked"
        assert not entry.staged
        assert not entry.unstaged

    @pytest.mark.parametrize(
        ("line", "expected"),
        [
            ("A  new.txt", "added"),
            ("AM new.txt", "added"),
            (" D gone.txt", "deleted"),
            ("D  gone.txt", "deleted"),
            ("UU conflicted.txt", "modified"),
            ("MM both.txt", "modified"),
        ],
    )
    def test_type_classification(self, line: str, expected: str) -> None:
        assert parse_status_line(line).type == expected

    def test_rename(self) -> None:
        entry = parse_status_line("R  old.txt -> new.txt")

        assert entry.path == "new.txt"
        assert entry.old_path == "old.txt"
        assert entry.type == "renamed"

    def test_quoted_path_is_unquoted(self) -> None:
        entry = parse_status_line('?? "with space.txt"')

        assert entry.path == "with space.txt"

    def test_short_line_raises(self) -> None:
        with pytest.raises(MalformedStatusLineError) as exc_info:
            _ = parse_status_line("M ")
        assert exc_info.value.line == "M "


class TestParseStatus:
    def test_parses_lines_in_order(self) -> None:
        listing = parse_status("M  a.txt\n M b.txt\n?? c.txt\n")

        assert [entry.path for entry in listing.files] == ["a.txt", "b.txt", "c.txt"]
        assert not listing.degraded

    def test_malformed_lines_are_recorded(self) -> None:
        listing = parse_status("M  a.txt\nXY\n?? c.txt\n")

        assert [entry.path for entry in listing.files] == ["a.txt", "c.txt"]
        assert listing.malformed == ("XY",)
        assert listing.degraded

    def test_trailing_whitespace_is_stripped(self) -> None:
        listing = parse_status("M  a.txt   \r\n")

        assert listing.files[0].path == "a.txt"

    def test_empty_output(self) -> None:
        listing = parse_status("")

        assert listing.files == ()
        assert listing.malformed == ()
