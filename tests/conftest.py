"""Pytest configuration and fixtures."""

from datetime import date
from typing import List, Optional

import pytest

from training_load_engine.config import get_settings


@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch):
    """Rebuild settings for every test so env overrides never leak."""
    for name in ("LAB_MAX_AGE_DAYS", "CP_MAX_AGE_DAYS", "CP_RESIDUAL_TOLERANCE", "DURATION_BUCKETS"):
        monkeypatch.delenv(f"TRAINING_ENGINE_{name}", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def reference_date() -> date:
    """Fixed "today" for windowed calculations."""
    return date(2024, 6, 30)


@pytest.fixture
def make_series():
    """Factory for constant 1 Hz (second, value) series."""
    def _make(value: Optional[float], seconds: int, start: int = 0) -> List[tuple]:
        return [(start + i, value) for i in range(seconds)]
    return _make


@pytest.fixture
def make_blocks():
    """Factory concatenating (value, seconds) blocks into one 1 Hz series."""
    def _make(*blocks: tuple) -> List[tuple]:
        series = []
        second = 0
        for value, seconds in blocks:
            for _ in range(seconds):
                series.append((second, value))
                second += 1
        return series
    return _make
