"""Tests for repolens.utils._exec module."""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from repolens.exceptions import CommandFailureError
from repolens.utils._exec import CommandResult, GitCommand, execute, run_git

if TYPE_CHECKING:
    from pytest_mock import MockerFixture


def _completed(
    returncode: int = 0, stdout: bytes = b"", stderr: bytes = b""
) -> subprocess.CompletedProcess[bytes]:
    return subprocess.CompletedProcess(
        args=["git"], returncode=returncode, stdout=stdout, stderr=stderr
    )


class TestGitCommand:
    def test_argv_prepends_stable_output_options(self, tmp_path: Path) -> None:
        command = GitCommand(args=("status", "--porcelain"), cwd=tmp_path)

        assert command.argv() == [
            "git",
            "-c",
            "core.quotepath=false",
            "-c",
            "color.ui=never",
            "status",
            "--porcelain",
        ]

    def test_custom_binary(self, tmp_path: Path) -> None:
        command = GitCommand(args=("log",), cwd=tmp_path, git_binary="/opt/git")

        assert command.argv()[0] == "/opt/git"

    def test_frozen(self, tmp_path: Path) -> None:
        command = GitCommand(args=(), cwd=tmp_path)

        with pytest.raises(AttributeError):
            command.args = ("x",)  # pyright: ignore[reportAttributeAccessIssue]


class TestExecute:
    def test_captures_and_decodes_output(
        self, mocker: MockerFixture, tmp_path: Path
    ) -> None:
        run = mocker.patch(
            "repolens.utils._exec.subprocess.run",
            return_value=_completed(0, b"caf\xc3\xa9\n", b"\xff"),
        )

        result = execute(GitCommand(args=("log",), cwd=tmp_path, stdin="input"))

        assert result == CommandResult(
            args=("log",), returncode=0, stdout="café\n", stderr="�"
        )
        kwargs = run.call_args.kwargs
        assert kwargs["cwd"] == str(tmp_path)
        assert kwargs["capture_output"] is True
        assert kwargs["check"] is False
        assert kwargs["input"] == b"input"

    def test_extra_env_is_layered(self, mocker: MockerFixture, tmp_path: Path) -> None:
        run = mocker.patch("repolens.utils._exec.subprocess.run", return_value=_completed())
        mocker.patch.dict("os.environ", {"HOME": "/home/test"}, clear=True)

        _ = execute(GitCommand(args=(), cwd=tmp_path, env={"LC_ALL": "C"}))

        assert run.call_args.kwargs["env"] == {"HOME": "/home/test", "LC_ALL": "C"}

    def test_missing_binary_raises(self, mocker: MockerFixture, tmp_path: Path) -> None:
        mocker.patch(
            "repolens.utils._exec.subprocess.run",
            side_effect=FileNotFoundError("no such file"),
        )

        with pytest.raises(CommandFailureError) as exc_info:
            _ = execute(GitCommand(args=("status",), cwd=tmp_path))

        assert exc_info.value.command_args == ("status",)
        assert exc_info.value.returncode is None

    def test_logs_command(self, mocker: MockerFixture, tmp_path: Path) -> None:
        mocker.patch("repolens.utils._exec.subprocess.run", return_value=_completed(3))
        logger = mocker.Mock()

        _ = execute(GitCommand(args=("status",), cwd=tmp_path), logger=logger)

        logger.debug.assert_called_once_with(
            "git_command", args=["status"], cwd=str(tmp_path), returncode=3
        )


class TestRunGit:
    def test_success_returns_result(self, mocker: MockerFixture, tmp_path: Path) -> None:
        mocker.patch(
            "repolens.utils._exec.subprocess.run", return_value=_completed(0, b"ok\n")
        )

        result = run_git(["rev-parse", "HEAD"], tmp_path)

        assert result.ok
        assert result.stdout == "ok\n"

    def test_surrogateescape_keeps_raw_bytes(
        self, mocker: MockerFixture, tmp_path: Path
    ) -> None:
        mocker.patch(
            "repolens.utils._exec.subprocess.run",
            return_value=_completed(0, b"caf\xe9\n"),
        )

        result = run_git(["diff"], tmp_path, decode_errors="surrogateescape")

        assert result.stdout.encode("utf-8", "surrogateescape") == b"caf\xe9\n"

    def test_failure_raises_with_stderr(
        self, mocker: MockerFixture, tmp_path: Path
    ) -> None:
        mocker.patch(
            "repolens.utils._exec.subprocess.run",
            return_value=_completed(128, b"", b"fatal: bad revision 'nope'\n"),
        )

        with pytest.raises(CommandFailureError) as exc_info:
            _ = run_git(["log", "nope"], tmp_path)

        error = exc_info.value
        assert str(error) == "fatal: bad revision 'nope'"
        assert error.returncode == 128
        assert error.command_args == ("log", "nope")
        assert error.stderr == "fatal: bad revision 'nope'\n"

    def test_failure_without_stderr_has_status_message(
        self, mocker: MockerFixture, tmp_path: Path
    ) -> None:
        mocker.patch("repolens.utils._exec.subprocess.run", return_value=_completed(1))

        with pytest.raises(CommandFailureError, match="exited with status 1"):
            _ = run_git(["diff", "--quiet"], tmp_path)

    def test_unchecked_failure_returns_result(
        self, mocker: MockerFixture, tmp_path: Path
    ) -> None:
        mocker.patch("repolens.utils._exec.subprocess.run", return_value=_completed(1))

        result = run_git(["cat-file", "-e", "x"], tmp_path, check=False)

        assert not result.ok
        assert result.returncode == 1
