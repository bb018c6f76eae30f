"""
Pytest configuration and fixtures for satselect tests.
"""

from __future__ import annotations

import random
from collections.abc import Generator
from pathlib import Path

import pytest

from satselect.settings import reset_settings


@pytest.fixture(autouse=True)
def isolated_settings(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> Generator[None, None, None]:
    """Point settings at an empty data dir and reset the cache around each test."""
    monkeypatch.setenv("SATSELECT_DATA_DIR", str(tmp_path / ".satselect"))
    monkeypatch.delenv("SATSELECT_CONFIG_FILE", raising=False)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def rng() -> random.Random:
    """Seeded random source for reproducible STONEWALL runs."""
    return random.Random(42)
