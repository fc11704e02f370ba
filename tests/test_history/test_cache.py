"""Tests for the keyed HistoryCache."""

import logging

import pytest

from polydice.exceptions import InvalidArgumentError, InvalidStateError
from polydice.history.cache import HistoryCache
from tests.factories import create_plain_record, create_records


class TestHistoryCacheKeys:
    """Tests for key activation and eviction."""

    def test_no_active_key_initially(self, cache):
        assert cache.active_key is None
        assert cache.active_store is None
        assert cache.get_all() == []

    def test_set_active_key_creates_store(self, cache):
        cache.set_active_key("K1")
        assert cache.active_key == "K1"
        assert "K1" in cache
        assert len(cache.active_store) == 0

    def test_evicts_oldest_key(self, cache):
        """With max_keys=2, K1 K2 K3 leaves K2 and K3."""
        for key in ("K1", "K2", "K3"):
            cache.set_active_key(key)
        assert cache.keys() == ["K2", "K3"]
        assert "K1" not in cache

    def test_reactivation_does_not_refresh(self, cache):
        """Eviction is by creation order, not by last use."""
        cache.set_active_key("K1")
        cache.set_active_key("K2")
        cache.set_active_key("K1")
        cache.set_active_key("K3")
        assert cache.keys() == ["K2", "K3"]

    def test_evicting_active_key(self):
        cache = HistoryCache(max_records_per_key=2, max_keys=1)
        cache.set_active_key("K1")
        cache.add(create_plain_record(1))
        cache.set_active_key("K2")
        assert cache.keys() == ["K2"]
        assert cache.get_all() == []

    def test_invalid_key(self, cache):
        cache.set_active_key("K1")
        with pytest.raises(InvalidArgumentError):
            cache.set_active_key(7)
        assert cache.active_key == "K1"
        assert cache.keys() == ["K1"]

    @pytest.mark.parametrize(
        "kwargs",
        [{"max_keys": 0}, {"max_records_per_key": -1}, {"max_keys": "2"}],
    )
    def test_invalid_bounds(self, kwargs):
        with pytest.raises(InvalidArgumentError):
            HistoryCache(**kwargs)

    def test_default_bounds(self):
        cache = HistoryCache()
        assert cache.max_keys == 10
        assert cache.max_records_per_key == 100

    def test_key_eviction_is_logged(self, cache, caplog):
        with caplog.at_level(logging.DEBUG, logger="polydice.history.cache"):
            for key in ("K1", "K2", "K3"):
                cache.set_active_key(key)
        assert "Evicted history 'K1'" in caplog.text


class TestHistoryCacheRecords:
    """Tests for adding and reading records."""

    def test_add_without_active_key(self, cache):
        with pytest.raises(InvalidStateError, match="No active history key"):
            cache.add(create_plain_record())

    def test_add_to_active(self, cache):
        cache.set_active_key("K1")
        cache.add(create_plain_record(4))
        assert cache.get_all() == [{"roll": 4}]

    def test_keys_are_independent(self, cache):
        cache.set_active_key("K1")
        cache.add(create_plain_record(1))
        cache.set_active_key("K2")
        cache.add(create_plain_record(2))
        assert cache.get_all() == [{"roll": 2}]
        cache.set_active_key("K1")
        assert cache.get_all() == [{"roll": 1}]

    def test_per_key_capacity(self, cache):
        cache.set_active_key("K1")
        for record in create_records(1, 2, 3, 4):
            cache.add(record)
        assert cache.get_all() == [{"roll": 2}, {"roll": 3}, {"roll": 4}]

    def test_get_all_verbose_returns_records(self, cache):
        record = create_plain_record(5)
        cache.set_active_key("K1")
        cache.add(record)
        assert cache.get_all(verbose=True) == [record]

    def test_get_does_not_activate(self, cache):
        cache.set_active_key("K1")
        cache.set_active_key("K2")
        assert cache.get("K1") is not None
        assert cache.active_key == "K2"
        assert cache.get("missing") is None


class TestHistoryCacheClearing:
    """Tests for clear_active and clear_all."""

    def test_clear_active(self, cache):
        cache.set_active_key("K1")
        cache.add(create_plain_record(1))
        cache.set_active_key("K2")
        cache.add(create_plain_record(2))
        cache.clear_active()
        assert cache.get_all() == []
        assert cache.keys() == ["K1", "K2"]
        assert cache.get("K1").all == [{"roll": 1}]

    def test_clear_active_without_key(self, cache):
        cache.clear_active()
        assert len(cache) == 0

    def test_clear_all(self, cache):
        cache.set_active_key("K1")
        cache.add(create_plain_record(1))
        cache.clear_all()
        assert len(cache) == 0
        assert cache.active_key is None
        with pytest.raises(InvalidStateError):
            cache.add(create_plain_record(2))


class TestHistoryCacheReport:
    """Tests for report and JSON output."""

    def test_report_all_keys(self, cache):
        cache.set_active_key("K1")
        cache.add(create_plain_record(1))
        cache.set_active_key("K2")
        assert cache.report() == {"K1": [{"roll": 1}], "K2": []}

    def test_report_limit(self, cache):
        cache.set_active_key("K1")
        for record in create_records(1, 2, 3):
            cache.add(record)
        assert cache.report(limit=1) == {"K1": [{"roll": 3}]}

    def test_to_json_is_verbose(self, cache):
        cache.set_active_key("K1")
        cache.add(create_plain_record(1))
        assert "timestamp" in cache.to_json()["K1"][0]

    def test_str(self, cache):
        assert "active: none" in str(cache)
        cache.set_active_key("K1")
        assert "active: K1" in str(cache)
