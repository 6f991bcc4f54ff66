"""Remote and stash queries.

Fetching runs with terminal prompts and interactive SSH disabled, so a
remote that needs credentials fails fast instead of hanging. Such remotes
are skipped and reported; the engine keeps working with local refs.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Final

from repolens.exceptions import AuthenticationUnavailableError, CommandFailureError
from repolens.repository._models import (
    FetchResult,
    SkippedRemote,
    StashEntry,
    UpstreamStatus,
)

if TYPE_CHECKING:
    from repolens.repository._base import GitRepository

FIELD_SEPARATOR: Final = "\x1f"
STASH_FORMAT: Final = "--format=%gd%x1f%s%x1f%ai"

NON_INTERACTIVE_ENV: Final[dict[str, str]] = {
    "GIT_TERMINAL_PROMPT": "0",
    "GIT_ASKPASS": "",
    "SSH_ASKPASS": "",
    "GIT_SSH_COMMAND": "ssh -o BatchMode=yes",
    "LC_ALL": "C",
}

_AUTH_FAILURE_RE: Final = re.compile(
    r"authentication failed"
    r"|could not read (username|password)"
    r"|terminal prompts disabled"
    r"|permission denied \(publickey"
    r"|host key verification failed"
    r"|invalid username or password",
    re.IGNORECASE,
)


def is_authentication_failure(stderr: str) -> bool:
    """Check whether fetch error output reports missing credentials."""
    return _AUTH_FAILURE_RE.search(stderr) is not None


def parse_stash_list(output: str) -> list[StashEntry]:
    """Parse `git stash list` output in the unit-separated format.

    Lines without all three fields are skipped.

    Args:
        output: Output of `git stash list --format=%gd%x1f%s%x1f%ai`.

    Returns:
        Stash entries, newest first.
    """
    entries: list[StashEntry] = []
    for line in output.splitlines():
        parts = line.split(FIELD_SEPARATOR)
        if len(parts) < 3:
            continue
        entries.append(StashEntry(index=parts[0], message=parts[1], date=parts[2]))
    return entries


def fetch_remote(repo: GitRepository, remote: str) -> None:
    """Fetch a single remote without prompting.

    Args:
        repo: Open repository.
        remote: Remote name.

    Raises:
        AuthenticationUnavailableError: If the remote needs credentials that
            are not available.
        CommandFailureError: If the fetch fails for any other reason.
    """
    result = repo.run_git(
        ["fetch", "--quiet", remote], check=False, env=NON_INTERACTIVE_ENV
    )
    if result.ok:
        return
    if is_authentication_failure(result.stderr):
        raise AuthenticationUnavailableError(result.stderr.strip(), remote=remote)
    msg = result.stderr.strip() or (
        f"Fetching {remote} failed with status {result.returncode}"
    )
    raise CommandFailureError(
        msg, args=result.args, returncode=result.returncode, stderr=result.stderr
    )


def fetch_all(repo: GitRepository) -> FetchResult:
    """Fetch every configured remote.

    Remotes rejected for missing credentials are logged and skipped.

    Args:
        repo: Open repository.

    Returns:
        The fetched and skipped remotes.

    Raises:
        CommandFailureError: If a fetch fails for a reason other than
            authentication.
    """
    fetched: list[str] = []
    skipped: list[SkippedRemote] = []
    for remote in repo.repo.remotes:
        try:
            fetch_remote(repo, remote.name)
        except AuthenticationUnavailableError as e:
            repo.logger.warning("fetch_authentication_unavailable", remote=e.remote)
            skipped.append(SkippedRemote(name=e.remote, reason=str(e)))
            continue
        fetched.append(remote.name)
    return FetchResult(fetched=tuple(fetched), skipped=tuple(skipped))


def stash_list(repo: GitRepository) -> list[StashEntry]:
    """List stashes, newest first.

    Args:
        repo: Open repository.

    Returns:
        Stash entries; empty when there are none.
    """
    return parse_stash_list(repo.run_git(["stash", "list", STASH_FORMAT]).stdout)


def upstream_status(repo: GitRepository) -> UpstreamStatus:
    """Compare the current branch with its tracking branch.

    Args:
        repo: Open repository.

    Returns:
        Divergence counts. Without an upstream, or on a detached or unborn
        HEAD, the counts are zero.
    """
    head = repo.repo.head
    if head.is_detached:
        return UpstreamStatus()
    branch = head.reference.name

    upstream = repo.run_git(
        ["rev-parse", "--abbrev-ref", "--symbolic-full-name", "@{u}"], check=False
    )
    if not upstream.ok or repo.is_unborn:
        return UpstreamStatus(branch=branch)

    counts = repo.run_git(["rev-list", "--left-right", "--count", "HEAD...@{u}"])
    fields = counts.stdout.split()
    ahead, behind = (int(fields[0]), int(fields[1])) if len(fields) == 2 else (0, 0)
    return UpstreamStatus(
        branch=branch,
        upstream=upstream.stdout.strip(),
        ahead=ahead,
        behind=behind,
    )
