"""Shared fixtures for prqueue tests."""

from pathlib import Path

import pytest
import structlog

from prqueue.storage import FileStorage


@pytest.fixture(autouse=True)
def quiet_logging() -> None:
    """Keep structlog output out of captured stdout."""
    structlog.configure(wrapper_class=structlog.make_filtering_bound_logger(min_level="critical"))


@pytest.fixture
def storage(tmp_path: Path) -> FileStorage:
    return FileStorage(tmp_path / "state")
