"""Shared test fixtures for repolens tests."""

import io
import logging
from pathlib import Path

import pytest
from structlog.typing import FilteringBoundLogger

from repolens.config import EngineConfig
from repolens.utils._logging import create_logger


@pytest.fixture
def log_stream() -> io.StringIO:
    """In-memory stream receiving JSON log records."""
    return io.StringIO()


@pytest.fixture
def logger(log_stream: io.StringIO) -> FilteringBoundLogger:
    """Debug-level JSON logger writing to `log_stream`."""
    return create_logger(log_level=logging.DEBUG, stream=log_stream)


@pytest.fixture
def repos_root(tmp_path: Path) -> Path:
    """Directory under which test repositories are created."""
    root = tmp_path / "repos"
    root.mkdir()
    return root


@pytest.fixture
def engine_config(repos_root: Path) -> EngineConfig:
    """Engine configuration rooted at `repos_root`."""
    return EngineConfig(repos_root=repos_root)
