"""Shared pytest fixtures."""
from pathlib import Path

import pytest


@pytest.fixture
def source_dir(tmp_path: Path) -> Path:
    """Empty source folder."""
    path = tmp_path / "source"
    path.mkdir()
    return path


@pytest.fixture
def dest_dir(tmp_path: Path) -> Path:
    """Empty destination root."""
    path = tmp_path / "dest"
    path.mkdir()
    return path
