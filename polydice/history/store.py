"""Bounded roll history.

A RecordStore keeps the most recent roll records up to a fixed capacity.
Adding past capacity evicts the single oldest record.
"""

import logging
from collections import deque
from collections.abc import Mapping
from typing import Any

from polydice.config import get_settings
from polydice.exceptions import InvalidArgumentError
from polydice.history.records import (
    RollRecord,
    is_roll_record,
    record_from_dict,
    strip_timestamp,
)

logger = logging.getLogger(__name__)


def validate_capacity(value: Any, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise InvalidArgumentError(f"{name} must be a positive integer, got {value!r}")
    return value


class RecordStore:
    """Insertion-ordered, capacity-bounded log of RollRecords (FIFO eviction).

    Not safe for concurrent writers; each die or session owns its store.
    """

    def __init__(self, max_records: int | None = None):
        """Initialize the store.

        Args:
            max_records: Capacity; defaults to the configured max_records.

        Raises:
            InvalidArgumentError: If max_records is not a positive integer.
        """
        if max_records is None:
            max_records = get_settings().max_records
        self._max_records = validate_capacity(max_records, "max_records")
        self._records: deque[RollRecord] = deque(maxlen=self._max_records)

    @property
    def capacity(self) -> int:
        """Configured maximum number of records."""
        return self._max_records

    def __len__(self) -> int:
        return len(self._records)

    @property
    def size(self) -> int:
        return len(self._records)

    @property
    def full(self) -> list[RollRecord]:
        """Copy of all records, oldest first, timestamps intact."""
        return list(self._records)

    @property
    def all(self) -> list[dict[str, Any]]:
        """All records in JSON form with timestamps stripped."""
        return [strip_timestamp(record) for record in self._records]

    def add(self, record: RollRecord | Mapping[str, Any]) -> None:
        """Append a record, evicting the oldest if capacity is exceeded.

        Args:
            record: A RollRecord, or a mapping in record JSON form.

        Raises:
            InvalidArgumentError: If record is not a valid roll record. The
                store is left unchanged.
        """
        if isinstance(record, Mapping):
            record = record_from_dict(record)
        elif not isinstance(record, RollRecord) or not is_roll_record(record):
            raise InvalidArgumentError(
                f"Record must be a valid roll record, got {type(record).__name__}"
            )

        if len(self._records) == self._max_records:
            evicted = self._records[0]
            logger.debug(
                f"Evicting oldest record roll={evicted.roll}, "
                f"capacity={self._max_records}"
            )
        # deque(maxlen) drops the head on overflow
        self._records.append(record)

    def last(self, n: int = 1) -> list[RollRecord]:
        """Return the most recent n records, oldest of those first.

        Raises:
            InvalidArgumentError: If n is not a positive integer.
        """
        if isinstance(n, bool) or not isinstance(n, int) or n < 1:
            raise InvalidArgumentError(f"Parameter n must be a positive integer, got {n!r}")
        count = min(n, len(self._records))
        return list(self._records)[len(self._records) - count :]

    def clear(self) -> None:
        """Remove all records; capacity is retained."""
        count = len(self._records)
        self._records.clear()
        logger.debug(f"Cleared {count} records")

    def report(self, limit: int | None = None, verbose: bool = False) -> list[dict[str, Any]]:
        """Return recent records in JSON form.

        Args:
            limit: Maximum number of most recent records; None for all.
                A limit of 0 or less returns an empty list.
            verbose: Include ISO-8601 timestamps.

        Returns:
            Records oldest first.
        """
        if limit is not None and (isinstance(limit, bool) or not isinstance(limit, int)):
            raise InvalidArgumentError(f"limit must be an integer, got {limit!r}")
        if not self._records:
            return []
        if limit is None:
            n = len(self._records)
        elif limit <= 0:
            return []
        else:
            n = limit
        return [record.to_dict(verbose=verbose) for record in self.last(n)]

    def to_json(self) -> list[dict[str, Any]]:
        """Full history in verbose JSON form."""
        return [record.to_dict(verbose=True) for record in self._records]

    def __iter__(self):
        return iter(list(self._records))

    def __str__(self) -> str:
        if not self._records:
            return f"RecordStore: empty (max_records={self._max_records})"
        latest = self._records[-1]
        return (
            f"RecordStore: {len(self._records)}/{self._max_records} rolls "
            f"(last: {latest.roll} @ {latest.timestamp.isoformat()})"
        )
