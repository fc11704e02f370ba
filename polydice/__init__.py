"""Polyhedral dice with bounded roll history.

Usage:
    >>> from polydice import roll_many, DieType
    >>> result = roll_many(DieType.D6, count=3)
    >>> result.to_dict()  # {"values": [...], "sum": ...}
"""

from polydice.dice import (
    DieType,
    Outcome,
    RollMode,
    roll,
    roll_many,
    roll_many_modified_tested,
    roll_many_tested,
    roll_modified,
    roll_modified_tested,
    roll_tested,
)
from polydice.exceptions import (
    ConfigurationError,
    DiceError,
    ErrorKind,
    InvalidArgumentError,
    InvalidStateError,
)
from polydice.history import HistoryCache, RecordStore

__all__ = [
    "DieType",
    "Outcome",
    "RollMode",
    "roll",
    "roll_many",
    "roll_many_modified_tested",
    "roll_many_tested",
    "roll_modified",
    "roll_modified_tested",
    "roll_tested",
    "ConfigurationError",
    "DiceError",
    "ErrorKind",
    "InvalidArgumentError",
    "InvalidStateError",
    "HistoryCache",
    "RecordStore",
]
