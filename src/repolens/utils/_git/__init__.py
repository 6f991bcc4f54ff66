"""Git utilities for repolens.

This package provides small helpers shared by the repository components
for decoding, normalizing and formatting values read from git.
"""

from repolens.utils._git._common import (
    decode_bytes,
    format_timestamp,
    normalize_sha,
    strip_refs_heads,
    to_datetime,
    unquote_path,
)

__all__ = [
    "decode_bytes",
    "format_timestamp",
    "normalize_sha",
    "strip_refs_heads",
    "to_datetime",
    "unquote_path",
]
