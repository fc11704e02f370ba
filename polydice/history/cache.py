"""Keyed roll histories.

A HistoryCache holds several independently capped RecordStores, one per
context key (for example one per modifier or per set of test conditions),
with an "active" key that receives new records.

The number of keys is bounded too. Keys are evicted in the order they were
first created. Reading, writing or re-activating a key does not refresh its
position, so despite the name this is FIFO eviction, not LRU.
"""

import logging
from collections import OrderedDict
from collections.abc import Mapping
from typing import Any

from polydice.config import get_settings
from polydice.exceptions import InvalidArgumentError, InvalidStateError
from polydice.history.records import RollRecord
from polydice.history.store import RecordStore, validate_capacity

logger = logging.getLogger(__name__)


class HistoryCache:
    """Collection of RecordStores addressed by string keys.

    Not safe for concurrent writers; one logical session owns a cache.
    """

    def __init__(
        self,
        max_records_per_key: int | None = None,
        max_keys: int | None = None,
    ):
        """Initialize the cache.

        Args:
            max_records_per_key: Capacity of each key's store.
            max_keys: Maximum number of keys held at once.

        Both default to the configured settings.

        Raises:
            InvalidArgumentError: If either bound is not a positive integer.
        """
        settings = get_settings()
        if max_records_per_key is None:
            max_records_per_key = settings.max_records_per_key
        if max_keys is None:
            max_keys = settings.max_keys
        self.max_records_per_key = validate_capacity(
            max_records_per_key, "max_records_per_key"
        )
        self.max_keys = validate_capacity(max_keys, "max_keys")
        # Insertion order is the eviction order; never reordered
        self._stores: OrderedDict[str, RecordStore] = OrderedDict()
        self._active_key: str | None = None

    @property
    def active_key(self) -> str | None:
        """The key receiving new records, or None before activation."""
        return self._active_key

    @property
    def active_store(self) -> RecordStore | None:
        """The active key's store, or None before activation."""
        if self._active_key is None:
            return None
        return self._stores.get(self._active_key)

    def set_active_key(self, key: str) -> None:
        """Activate key, creating its store if it is new.

        Creating a key when max_keys are already held first evicts the
        oldest-created key and its records.

        Raises:
            InvalidArgumentError: If key is not a string. The cache is left
                unchanged.
        """
        if not isinstance(key, str):
            raise InvalidArgumentError(f"History key must be a string, got {key!r}")

        if key not in self._stores:
            store = RecordStore(self.max_records_per_key)
            while len(self._stores) >= self.max_keys:
                oldest_key = next(iter(self._stores))
                self._evict_key(oldest_key)
            self._stores[key] = store
            logger.debug(
                f"Created history for {key!r}, keys={len(self._stores)}/{self.max_keys}"
            )

        self._active_key = key

    def add(self, record: RollRecord | Mapping[str, Any]) -> None:
        """Add a record to the active key's store.

        Raises:
            InvalidStateError: If no key has been activated.
            InvalidArgumentError: If record is not a valid roll record.
        """
        store = self.active_store
        if store is None:
            raise InvalidStateError(
                "No active history key set. Call set_active_key() first."
            )
        store.add(record)

    def get_all(self, verbose: bool = False) -> list[RollRecord] | list[dict[str, Any]]:
        """Records for the active key.

        Args:
            verbose: Return full records with timestamps instead of
                timestamp-free JSON.

        Returns:
            Records oldest first, or an empty list when no key is active.
        """
        store = self.active_store
        if store is None:
            return []
        return store.full if verbose else store.all

    def clear_active(self) -> None:
        """Clear the active key's records; the key stays registered."""
        store = self.active_store
        if store is not None:
            store.clear()

    def clear_all(self) -> None:
        """Drop every key and unset the active key."""
        count = len(self._stores)
        self._stores.clear()
        self._active_key = None
        logger.debug(f"History cache cleared, removed {count} keys")

    def report(
        self,
        limit: int | None = None,
        verbose: bool = False,
    ) -> dict[str, list[dict[str, Any]]]:
        """Report every held key, independent of the active key.

        Args:
            limit: Maximum records per key; None for all.
            verbose: Include ISO-8601 timestamps.

        Returns:
            Mapping of key to that key's store report, oldest key first.
        """
        return {
            key: store.report(limit=limit, verbose=verbose)
            for key, store in self._stores.items()
        }

    def keys(self) -> list[str]:
        """Held keys in eviction order (oldest first)."""
        return list(self._stores.keys())

    def get(self, key: str) -> RecordStore | None:
        """The store for key without activating it."""
        return self._stores.get(key)

    def __contains__(self, key: object) -> bool:
        return key in self._stores

    def __len__(self) -> int:
        return len(self._stores)

    def to_json(self) -> dict[str, list[dict[str, Any]]]:
        """Every key's full history in verbose JSON form."""
        return {key: store.to_json() for key, store in self._stores.items()}

    def __str__(self) -> str:
        return (
            f"HistoryCache: {len(self._stores)} keys "
            f"(active: {self._active_key if self._active_key is not None else 'none'})"
        )

    def _evict_key(self, key: str) -> None:
        """Drop a key and its store (internal).

        Args:
            key: Key to evict
        """
        store = self._stores.pop(key, None)
        if store is None:
            return
        if key == self._active_key:
            self._active_key = None
        logger.debug(f"Evicted history {key!r} with {len(store)} records")
