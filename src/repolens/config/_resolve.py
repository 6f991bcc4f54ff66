"""Repository identifier resolution.

Maps an opaque repository identifier to a directory under the configured
`repos_root`.
"""

from __future__ import annotations

from pathlib import Path, PurePath
from typing import TYPE_CHECKING

from repolens.exceptions import PathViolationError, RepositoryNotFoundError

if TYPE_CHECKING:
    from repolens.config._models import EngineConfig


def resolve_repository_path(repository_id: str, config: EngineConfig) -> Path:
    """Resolve a repository identifier to its directory.

    Args:
        repository_id: Identifier relative to `config.repos_root`, such as
            "my-project" or "team/service".
        config: Engine configuration holding the repositories root.

    Returns:
        The resolved absolute path of the repository directory.

    Raises:
        PathViolationError: If the identifier is empty, absolute, or escapes
            the repositories root.
        RepositoryNotFoundError: If the resolved path is missing or is not a
            directory.
    """
    root = config.repos_root.expanduser().resolve()
    if not repository_id.strip():
        msg = "Repository identifier must not be empty"
        raise PathViolationError(msg, path=repository_id, root=root)
    if PurePath(repository_id).is_absolute():
        msg = f"Repository identifier must be relative: {repository_id}"
        raise PathViolationError(msg, path=repository_id, root=root)

    candidate = (root / repository_id).resolve()
    if not candidate.is_relative_to(root):
        msg = f"Repository identifier escapes the repositories root: {repository_id}"
        raise PathViolationError(msg, path=repository_id, root=root)

    if not candidate.is_dir():
        msg = f"Repository not found: {repository_id}"
        raise RepositoryNotFoundError(msg, path=candidate)
    return candidate
