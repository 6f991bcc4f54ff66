"""Unit tests for stash parsing and fetch failure detection."""

from __future__ import annotations

from typing import TYPE_CHECKING
from unittest.mock import MagicMock

import pytest

from repolens.exceptions import AuthenticationUnavailableError, CommandFailureError
from repolens.repository import fetch_all
from repolens.repository._remotes import (
    NON_INTERACTIVE_ENV,
    fetch_remote,
    is_authentication_failure,
    parse_stash_list,
)
from repolens.utils._exec import CommandResult

if TYPE_CHECKING:
    from pytest_mock import MockerFixture


def _result(returncode: int, stderr: str = "") -> CommandResult:
    return CommandResult(args=("fetch",), returncode=returncode, stderr=stderr)


@pytest.fixture
def mock_repo(mocker: MockerFixture) -> MagicMock:
    """A GitRepository stand-in with two remotes."""
    repo = mocker.MagicMock()
    origin = mocker.Mock()
    origin.name = "origin"
    private = mocker.Mock()
    private.name = "private"
    repo.repo.remotes = [origin, private]
    return repo


class TestParseStashList:
    def test_parses_unit_separated_fields(self) -> None:
        output = (
            "stash@{0}\x1fWIP on main: abc123 msg\x1f2024-05-01 12:00:00 +0200\n"
            "stash@{1}\x1fOn dev: saved\x1f2024-04-30 08:00:00 +0000\n"
        )
        entries = parse_stash_list(output)

        assert [entry.index for entry in entries] == ["stash@{0}", "stash@{1}"]
        assert entries[0].message == "WIP on main: abc123 msg"
        assert entries[1].date == "2024-04-30 08:00:00 +0000"

    def test_incomplete_lines_are_skipped(self) -> None:
        assert parse_stash_list("stash@{0}\x1fonly two\n\n") == []


class TestAuthenticationFailure:
    @pytest.mark.parametrize(
        "stderr",
        [
            "fatal: Authentication failed for 'https://example.com/repo.git/'",
            "fatal: could not read Username for 'https://github.com': "
            "terminal prompts disabled",
            "git@github.com: Permission denied (publickey).",
            "Host key verification failed.",
        ],
    )
    def test_detects_credential_errors(self, stderr: str) -> None:
        assert is_authentication_failure(stderr)

    def test_other_errors_are_not_auth(self) -> None:
        stderr = "fatal: 'origin' does not appear to be a git repository"

        assert not is_authentication_failure(stderr)


class TestFetchRemote:
    def test_runs_without_prompts(self, mock_repo: MagicMock) -> None:
        mock_repo.run_git.return_value = _result(0)

        fetch_remote(mock_repo, "origin")

        mock_repo.run_git.assert_called_once_with(
            ["fetch", "--quiet", "origin"], check=False, env=NON_INTERACTIVE_ENV
        )

    def test_auth_failure_raises_with_remote(self, mock_repo: MagicMock) -> None:
        mock_repo.run_git.return_value = _result(128, "fatal: Authentication failed")

        with pytest.raises(AuthenticationUnavailableError) as exc_info:
            fetch_remote(mock_repo, "private")
        assert exc_info.value.remote == "private"

    def test_other_failure_raises_command_failure(self, mock_repo: MagicMock) -> None:
        mock_repo.run_git.return_value = _result(1, "fatal: unable to access\n")

        with pytest.raises(CommandFailureError, match="unable to access") as exc_info:
            fetch_remote(mock_repo, "origin")
        assert exc_info.value.returncode == 1


class TestFetchAll:
    def test_skips_remotes_without_credentials(self, mock_repo: MagicMock) -> None:
        mock_repo.run_git.side_effect = [
            _result(0),
            _result(128, "fatal: could not read Password"),
        ]

        result = fetch_all(mock_repo)

        assert result.fetched == ("origin",)
        assert [remote.name for remote in result.skipped] == ["private"]
        assert result.degraded
        mock_repo.logger.warning.assert_called_once()

    def test_all_fetched(self, mock_repo: MagicMock) -> None:
        mock_repo.run_git.return_value = _result(0)

        result = fetch_all(mock_repo)

        assert result.fetched == ("origin", "private")
        assert not result.degraded
