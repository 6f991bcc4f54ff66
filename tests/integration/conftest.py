import functools
import os
import subprocess
from collections.abc import Callable, Iterator
from pathlib import Path

import pytest
from structlog.typing import FilteringBoundLogger

from repolens.config import EngineConfig
from repolens.repository import GitRepository


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        if Path(item.path).is_relative_to(Path(__file__).parent):
            item.add_marker(pytest.mark.integration)


def run_git(
    cwd: Path,
    *args: str,
    env: dict[str, str] | None = None,
    check: bool = True,
) -> str:
    """Run a git command in the given directory and return its stdout."""
    result = subprocess.run(  # noqa: S603 - Safe: running git with controlled args
        ["git", *args],
        cwd=str(cwd),
        capture_output=True,
        text=True,
        check=False,
        env={**os.environ, **(env or {})},
    )
    if check and result.returncode != 0:
        msg = f"git {' '.join(args)} failed: {result.stderr}"
        raise RuntimeError(msg)
    return result.stdout


def configure_identity(path: Path) -> None:
    """Set a committer identity and disable signing and line ending rewrites."""
    run_git(path, "config", "user.email", "test@example.com")
    run_git(path, "config", "user.name", "Test User")
    run_git(path, "config", "commit.gpgsign", "false")
    run_git(path, "config", "core.autocrlf", "false")


def init_git_repo(path: Path) -> None:
    """Initialize a minimal git repository on a `main` branch."""
    path.mkdir(parents=True, exist_ok=True)
    run_git(path, "init", "-q")
    run_git(path, "symbolic-ref", "HEAD", "refs/heads/main")
    configure_identity(path)


def commit_file(
    repo_root: Path,
    path: str,
    content: str | bytes,
    message: str,
    *,
    date: str | None = None,
) -> str:
    """Write a file, commit it, and return the new commit sha.

    Args:
        repo_root: Working tree directory.
        path: Repository-relative path to write.
        content: File content.
        message: Commit message.
        date: Optional author and committer date (e.g. "2020-01-01T00:00:00Z").
    """
    target = repo_root / path
    target.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(content, bytes):
        _ = target.write_bytes(content)
    else:
        _ = target.write_text(content)
    run_git(repo_root, "add", "--", path)
    env = {"GIT_AUTHOR_DATE": date, "GIT_COMMITTER_DATE": date} if date else None
    run_git(repo_root, "commit", "-q", "-m", message, env=env)
    return run_git(repo_root, "rev-parse", "HEAD").strip()


@pytest.fixture
def repo_root(repos_root: Path) -> Path:
    """An initialized, empty repository named `project` under `repos_root`."""
    root = repos_root / "project"
    init_git_repo(root)
    return root


@pytest.fixture
def git(repo_root: Path) -> Callable[..., str]:
    """Run git in `repo_root`."""
    return functools.partial(run_git, repo_root)


@pytest.fixture
def commit(repo_root: Path) -> Callable[..., str]:
    """Write and commit a file in `repo_root`, returning the commit sha."""
    return functools.partial(commit_file, repo_root)


@pytest.fixture
def repo(
    repo_root: Path,
    engine_config: EngineConfig,
    logger: FilteringBoundLogger,
) -> Iterator[GitRepository]:
    """Open handle on `repo_root`, closed after the test."""
    with GitRepository(repo_root, engine_config, logger=logger) as handle:
        yield handle


@pytest.fixture
def git_at() -> Callable[..., str]:
    """Run git in an arbitrary directory."""
    return run_git


@pytest.fixture
def commit_at() -> Callable[..., str]:
    """Write and commit a file in an arbitrary working tree."""
    return commit_file


@pytest.fixture
def upstream_root(repo_root: Path, commit: Callable[..., str]) -> Path:
    """`repo_root` with one commit, used as a clone source."""
    _ = commit("f.txt", "a\n", "initial")
    return repo_root


@pytest.fixture
def clone_root(repos_root: Path, upstream_root: Path) -> Path:
    """A clone of `upstream_root` named `clone`, tracking `origin/main`."""
    root = repos_root / "clone"
    _ = run_git(repos_root, "clone", "-q", str(upstream_root), str(root))
    configure_identity(root)
    return root
