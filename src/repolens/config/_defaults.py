"""Default configuration values.

`repos_root` has no entry here; it defaults to the working directory at the
moment a configuration is built.
"""

from typing import Any

DEFAULT_CONFIG: dict[str, Any] = {  # pyright: ignore[reportExplicitAny]
    "git_binary": "git",
    "context_lines": 3,
    "stale_after_days": 90,
    "history_limit": 500,
    "logging": {
        "level": "info",
        "format": "json",
        "file": "",
    },
}
