"""Bounded roll history.

RecordStore is a single capped log; HistoryCache keeps one RecordStore per
context key with its own cap on keys.
"""

from polydice.history.records import (
    ModifiedRecord,
    ModifiedTestedRecord,
    PlainRecord,
    RecordKind,
    RollRecord,
    TestedRecord,
    create_record,
    is_modified,
    is_modified_tested,
    is_plain,
    is_roll_record,
    is_tested,
    record_from_dict,
    record_from_roll,
    record_kind,
    record_to_dict,
    strip_timestamp,
)
from polydice.history.store import RecordStore
from polydice.history.cache import HistoryCache

__all__ = [
    # Records
    "ModifiedRecord",
    "ModifiedTestedRecord",
    "PlainRecord",
    "RecordKind",
    "RollRecord",
    "TestedRecord",
    "create_record",
    "is_modified",
    "is_modified_tested",
    "is_plain",
    "is_roll_record",
    "is_tested",
    "record_from_dict",
    "record_from_roll",
    "record_kind",
    "record_to_dict",
    "strip_timestamp",
    # Storage
    "RecordStore",
    "HistoryCache",
]
