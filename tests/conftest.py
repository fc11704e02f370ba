"""Core test fixtures for dice and history tests."""

import pytest

from polydice.config import get_settings
from polydice.dice.types import DieType
from polydice.dice.conditions import skill
from polydice.history.cache import HistoryCache
from polydice.history.store import RecordStore


@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch):
    """Isolate tests from POLYDICE_* variables and the settings cache."""
    monkeypatch.delenv("POLYDICE_MAX_RECORDS", raising=False)
    monkeypatch.delenv("POLYDICE_MAX_KEYS", raising=False)
    monkeypatch.delenv("POLYDICE_MAX_RECORDS_PER_KEY", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def d6_skill():
    """Skill test on a d6: target 4, critical success 6, critical failure 1."""
    return skill(DieType.D6, target=4, critical_success=6, critical_failure=1)


@pytest.fixture
def store() -> RecordStore:
    """A small RecordStore with capacity 3."""
    return RecordStore(max_records=3)


@pytest.fixture
def cache() -> HistoryCache:
    """A HistoryCache holding at most 2 keys of 3 records each."""
    return HistoryCache(max_records_per_key=3, max_keys=2)
