"""Roll record variants.

Four immutable record types share a RecordKind discriminant. Their JSON form
carries no discriminant: the variant is implied by which of "modified" and
"outcome" are present, matching the wire format consumers already read.

Usage:
    >>> record = create_record(roll=14, outcome=Outcome.SUCCESS)
    >>> record.kind
    <RecordKind.TESTED: 'tested'>
    >>> strip_timestamp(record)
    {'roll': 14, 'outcome': 'success'}
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, ClassVar

from polydice.dice.modifiers import is_finite_number
from polydice.dice.types import (
    ModeRoll,
    ModifiedRoll,
    ModifiedTestedRoll,
    Outcome,
    TestedRoll,
)
from polydice.exceptions import InvalidArgumentError


class RecordKind(str, Enum):
    """Discriminant for RollRecord variants."""

    PLAIN = "plain"
    MODIFIED = "modified"
    TESTED = "tested"
    MODIFIED_TESTED = "modified_tested"


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class RollRecord:
    """Base for all roll records.

    Attributes:
        roll: The natural face.
        timestamp: Capture time, set once at creation.
    """

    kind: ClassVar[RecordKind]

    roll: int
    timestamp: datetime = field(default_factory=_now, kw_only=True)

    def to_dict(self, verbose: bool = True) -> dict[str, Any]:
        """JSON form; the ISO-8601 timestamp is included only when verbose."""
        data: dict[str, Any] = {"roll": self.roll}
        modified = getattr(self, "modified", None)
        if modified is not None:
            data["modified"] = modified
        outcome = getattr(self, "outcome", None)
        if outcome is not None:
            data["outcome"] = outcome.value
        if verbose:
            data["timestamp"] = self.timestamp.isoformat()
        return data


@dataclass(frozen=True)
class PlainRecord(RollRecord):
    """An unmodified, untested roll."""

    kind: ClassVar[RecordKind] = RecordKind.PLAIN


@dataclass(frozen=True)
class ModifiedRecord(RollRecord):
    """A roll with its modified value."""

    kind: ClassVar[RecordKind] = RecordKind.MODIFIED

    modified: int | float


@dataclass(frozen=True)
class TestedRecord(RollRecord):
    """A roll with its outcome."""

    __test__ = False
    kind: ClassVar[RecordKind] = RecordKind.TESTED

    outcome: Outcome


@dataclass(frozen=True)
class ModifiedTestedRecord(RollRecord):
    """A roll with its modified value and the outcome of that value."""

    kind: ClassVar[RecordKind] = RecordKind.MODIFIED_TESTED

    modified: int | float
    outcome: Outcome


# --- Validators -------------------------------------------------------------
# Pure predicates. Each accepts a record object or its JSON mapping.


def _is_face(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 1


def _is_outcome(value: Any) -> bool:
    if isinstance(value, Outcome):
        return True
    return isinstance(value, str) and value in {o.value for o in Outcome}


def _is_timestamp(value: Any, required: bool) -> bool:
    if value is None:
        return not required
    if isinstance(value, datetime):
        return True
    if isinstance(value, str):
        try:
            datetime.fromisoformat(value)
        except ValueError:
            return False
        return True
    return False


def _fields(record: Any) -> dict[str, Any] | None:
    if isinstance(record, RollRecord):
        data = {"roll": record.roll, "timestamp": record.timestamp}
        for name in ("modified", "outcome"):
            if hasattr(record, name):
                data[name] = getattr(record, name)
        return data
    if isinstance(record, Mapping):
        return dict(record)
    return None


def _matches(record: Any, modified: bool, outcome: bool) -> bool:
    data = _fields(record)
    if data is None:
        return False
    # Objects must carry a timestamp; mappings may be in non-verbose form
    if not _is_face(data.get("roll")):
        return False
    if not _is_timestamp(data.get("timestamp"), required=isinstance(record, RollRecord)):
        return False
    if ("modified" in data) != modified or ("outcome" in data) != outcome:
        return False
    if modified and not is_finite_number(data["modified"]):
        return False
    if outcome and not _is_outcome(data["outcome"]):
        return False
    unknown = set(data) - {"roll", "modified", "outcome", "timestamp"}
    return not unknown


def is_plain(record: Any) -> bool:
    return _matches(record, modified=False, outcome=False)


def is_modified(record: Any) -> bool:
    return _matches(record, modified=True, outcome=False)


def is_tested(record: Any) -> bool:
    return _matches(record, modified=False, outcome=True)


def is_modified_tested(record: Any) -> bool:
    return _matches(record, modified=True, outcome=True)


def record_kind(record: Any) -> RecordKind | None:
    """Return the variant a record or mapping matches, or None."""
    if is_plain(record):
        return RecordKind.PLAIN
    if is_modified(record):
        return RecordKind.MODIFIED
    if is_tested(record):
        return RecordKind.TESTED
    if is_modified_tested(record):
        return RecordKind.MODIFIED_TESTED
    return None


def is_roll_record(record: Any) -> bool:
    """Check whether a record or mapping matches any known variant."""
    return record_kind(record) is not None


# --- Construction -------------------------------------------------------------


def create_record(
    roll: int,
    modified: int | float | None = None,
    outcome: Outcome | str | None = None,
    timestamp: datetime | None = None,
) -> RollRecord:
    """Create the record variant implied by the supplied values.

    Args:
        roll: The natural face.
        modified: Modified value, if a modifier was applied.
        outcome: Outcome, if the roll was tested.
        timestamp: Capture time; defaults to now (UTC).

    Raises:
        InvalidArgumentError: If any value is malformed.
    """
    if outcome is not None:
        if not _is_outcome(outcome):
            raise InvalidArgumentError(f"Invalid outcome: {outcome!r}")
        outcome = Outcome(outcome)
    stamp = {"timestamp": timestamp or _now()}

    if modified is None and outcome is None:
        record: RollRecord = PlainRecord(roll, **stamp)
    elif outcome is None:
        record = ModifiedRecord(roll, modified=modified, **stamp)
    elif modified is None:
        record = TestedRecord(roll, outcome=outcome, **stamp)
    else:
        record = ModifiedTestedRecord(roll, modified=modified, outcome=outcome, **stamp)

    if not is_roll_record(record):
        raise InvalidArgumentError(f"Malformed roll record: {record!r}")
    return record


def record_from_roll(
    result: int | ModeRoll | ModifiedRoll | TestedRoll | ModifiedTestedRoll,
) -> RollRecord:
    """Create the record for an evaluation result."""
    if isinstance(result, ModeRoll):
        return create_record(result.kept)
    if isinstance(result, ModifiedTestedRoll):
        return create_record(result.base, modified=result.modified, outcome=result.outcome)
    if isinstance(result, ModifiedRoll):
        return create_record(result.base, modified=result.modified)
    if isinstance(result, TestedRoll):
        return create_record(result.base, outcome=result.outcome)
    return create_record(result)


def record_from_dict(data: Mapping[str, Any]) -> RollRecord:
    """Rebuild a record from its JSON form.

    A missing timestamp (non-verbose form) is stamped with the current time.

    Raises:
        InvalidArgumentError: If data does not match a known variant.
    """
    if not isinstance(data, Mapping) or not is_roll_record(data):
        raise InvalidArgumentError(f"Malformed roll record: {data!r}")
    timestamp = data.get("timestamp")
    if isinstance(timestamp, str):
        timestamp = datetime.fromisoformat(timestamp)
    return create_record(
        data["roll"],
        modified=data.get("modified"),
        outcome=data.get("outcome"),
        timestamp=timestamp,
    )


def record_to_dict(record: RollRecord, verbose: bool = True) -> dict[str, Any]:
    return record.to_dict(verbose=verbose)


def strip_timestamp(record: RollRecord | Mapping[str, Any]) -> dict[str, Any]:
    """Project a record to its JSON form without the timestamp.

    All other fields are preserved unchanged.
    """
    if isinstance(record, RollRecord):
        return record.to_dict(verbose=False)
    if isinstance(record, Mapping):
        return {k: v for k, v in record.items() if k != "timestamp"}
    raise InvalidArgumentError(f"Cannot strip timestamp from {record!r}")
