# tests/conftest.py

"""Shared pytest fixtures for the protein_match test suite."""

from collections.abc import Generator
from pathlib import Path
from unittest.mock import patch

import pytest

from src.config.settings import Settings


@pytest.fixture(autouse=True)
def mock_sleep() -> Generator[None, None, None]:
    """Patch time.sleep globally so retry loops run instantly."""
    with patch("time.sleep"):
        yield


@pytest.fixture(autouse=True)
def isolated_cache_dir(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch,
) -> Path:
    """Point the file cache at a per-test directory."""
    cache_dir = tmp_path / "cache"
    monkeypatch.setattr(Settings, "CACHE_DIR", cache_dir)
    return cache_dir
