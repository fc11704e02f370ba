"""Stateful dice that remember their rolls.

- Die keeps one RecordStore of plain rolls.
- ModifiedDie keeps a separate history per modifier in a HistoryCache, so
  swapping the modifier parks the old history instead of mixing results.
- TestDie does the same per set of test conditions (and modifier).

Usage:
    >>> die = ModifiedDie("d20", RollModifier(lambda n: n + 3, name="+3"))
    >>> value = die.roll()
    >>> die.report()["times_rolled"]
    1
"""

from typing import Any

from polydice.dice import checks
from polydice.dice.conditions import (
    ConditionsLike,
    TestConditions,
    normalise_test_conditions,
)
from polydice.dice.modifiers import RollModifier, normalise_roll_modifier
from polydice.dice.roller import roll
from polydice.dice.types import DieType, Outcome, RollMode, TestAnalysis
from polydice.exceptions import InvalidArgumentError
from polydice.history.cache import HistoryCache
from polydice.history.records import RollRecord, record_from_roll
from polydice.history.store import RecordStore


class Die:
    """A single die with a bounded roll history."""

    def __init__(self, die_type: DieType | str, max_records: int | None = None):
        self.die_type = DieType.from_value(die_type)
        self._result: int | None = None
        self._rolls = RecordStore(max_records)

    @property
    def type(self) -> str:
        return self.die_type.value

    @property
    def face_count(self) -> int:
        return self.die_type.sides

    @property
    def result(self) -> int | None:
        """The most recent face, or None before the first roll."""
        return self._result

    @property
    def _store(self) -> RecordStore | None:
        return self._rolls

    def _record(self, record: RollRecord) -> None:
        self._rolls.add(record)

    def roll(self, mode: RollMode | str | None = None) -> int:
        """Roll the die and record the face."""
        self._result = roll(self.die_type, mode)
        self._record(record_from_roll(self._result))
        return self._result

    @property
    def times_rolled(self) -> int:
        store = self._store
        return len(store) if store is not None else 0

    @property
    def history(self) -> list[dict[str, Any]]:
        """Recorded rolls without timestamps, oldest first."""
        store = self._store
        return store.all if store is not None else []

    @property
    def history_full(self) -> list[RollRecord]:
        """Recorded rolls with timestamps, oldest first."""
        store = self._store
        return store.full if store is not None else []

    def history_detailed(
        self, limit: int | None = None, verbose: bool = False
    ) -> list[dict[str, Any]]:
        store = self._store
        return store.report(limit=limit, verbose=verbose) if store is not None else []

    def clear_history(self) -> None:
        """Forget the current history and the last result."""
        self._result = None
        store = self._store
        if store is not None:
            store.clear()

    def report(
        self,
        limit: int | None = None,
        verbose: bool = False,
        include_history: bool = False,
    ) -> dict[str, Any]:
        """Summary of this die: type, roll count and latest record."""
        latest = self.history_detailed(limit=1, verbose=verbose)
        report: dict[str, Any] = {
            "type": self.type,
            "times_rolled": self.times_rolled,
            "latest_record": latest[0] if latest else None,
        }
        if include_history:
            report["history"] = self.history_detailed(limit=limit, verbose=verbose)
        return report

    def to_json(self) -> dict[str, Any]:
        return self.report(verbose=True, include_history=True)

    def __str__(self) -> str:
        latest = self.history_detailed(limit=1, verbose=True)
        if not latest:
            return f"Die({self.type}): not rolled yet"
        return f"Die({self.type}): latest={latest[0]}, total rolls={self.times_rolled}"


class ModifiedDie(Die):
    """A die whose rolls pass through a modifier.

    Each modifier gets its own history; assigning a new modifier switches to
    (or creates) that modifier's history.
    """

    def __init__(
        self,
        die_type: DieType | str,
        modifier: RollModifier | Any,
        max_records_per_key: int | None = None,
        max_keys: int | None = None,
    ):
        # History lives in the cache, not in Die's single store
        self.die_type = DieType.from_value(die_type)
        self._result: int | None = None
        self._histories = HistoryCache(
            max_records_per_key=max_records_per_key, max_keys=max_keys
        )
        self._modified_result: int | float | None = None
        self.modifier = modifier

    @property
    def modifier(self) -> RollModifier:
        return self._modifier

    @modifier.setter
    def modifier(self, value: RollModifier | Any) -> None:
        if value is None:
            raise InvalidArgumentError("ModifiedDie requires a modifier")
        self._modifier = normalise_roll_modifier(value)
        self._result = None
        self._modified_result = None
        self._histories.set_active_key(self._history_key)

    @property
    def _history_key(self) -> str:
        return self._modifier.key

    @property
    def type(self) -> str:
        return f"Modified_{self.die_type.value}"

    @property
    def _store(self) -> RecordStore | None:
        return self._histories.active_store

    def _record(self, record: RollRecord) -> None:
        self._histories.add(record)

    @property
    def modified_result(self) -> int | float | None:
        return self._modified_result

    def roll(self, mode: RollMode | str | None = None) -> int | float:
        """Roll, apply the modifier, record both values and return the modified one."""
        result = checks.roll_modified(self.die_type, self._modifier, mode)
        self._result = result.base
        self._modified_result = result.modified
        self._record(record_from_roll(result))
        return result.modified

    def report(
        self,
        limit: int | None = None,
        verbose: bool = False,
        include_history: bool = False,
    ) -> dict[str, Any]:
        report = super().report(limit=limit, verbose=verbose, include_history=include_history)
        report["modifier"] = self._modifier.name
        return report

    def report_all(
        self, limit: int | None = None, verbose: bool = False
    ) -> dict[str, list[dict[str, Any]]]:
        """Histories for every modifier this die still remembers."""
        return self._histories.report(limit=limit, verbose=verbose)

    def clear_all_histories(self) -> None:
        """Drop every modifier's history and re-open the current one."""
        self._histories.clear_all()
        self._result = None
        self._modified_result = None
        self._histories.set_active_key(self._history_key)

    def to_json(self) -> dict[str, Any]:
        data = super().to_json()
        data["rolls"] = self._histories.to_json()
        return data

    def __str__(self) -> str:
        latest = self.history_detailed(limit=1, verbose=False)
        if not latest:
            return f"{self.type}: not rolled yet (modifier={self._modifier.name})"
        return (
            f"{self.type}: latest={latest[0]}, total rolls={self.times_rolled}, "
            f"modifier={self._modifier.name}"
        )


class TestDie(ModifiedDie):
    """A die that classifies each roll against test conditions.

    The modifier is optional. Histories are kept per conditions/modifier
    pair; assigning new conditions or a new modifier switches history.
    """

    __test__ = False

    def __init__(
        self,
        die_type: DieType | str,
        conditions: ConditionsLike,
        modifier: RollModifier | Any = None,
        use_natural_crits: bool = False,
        max_records_per_key: int | None = None,
        max_keys: int | None = None,
    ):
        self._conditions = normalise_test_conditions(conditions, die_type)
        self.use_natural_crits = use_natural_crits
        self._outcome: Outcome | None = None
        super().__init__(
            die_type,
            normalise_roll_modifier(modifier),
            max_records_per_key=max_records_per_key,
            max_keys=max_keys,
        )

    @property
    def conditions(self) -> TestConditions:
        return self._conditions

    @conditions.setter
    def conditions(self, value: ConditionsLike) -> None:
        self._conditions = normalise_test_conditions(value, self.die_type)
        self._result = None
        self._modified_result = None
        self._outcome = None
        self._histories.set_active_key(self._history_key)

    @ModifiedDie.modifier.setter
    def modifier(self, value: RollModifier | Any) -> None:
        # The modifier is optional here; None means no modifier
        ModifiedDie.modifier.fset(self, normalise_roll_modifier(value))
        self._outcome = None

    @property
    def _history_key(self) -> str:
        if self._modifier.is_identity:
            return self._conditions.key
        return f"{self._conditions.key}|{self._modifier.key}"

    @property
    def type(self) -> str:
        if self._modifier.is_identity:
            return f"Test_{self.die_type.value}"
        return f"Test_Modified_{self.die_type.value}"

    @property
    def outcome(self) -> Outcome | None:
        """Outcome of the most recent roll."""
        return self._outcome

    def roll(self, mode: RollMode | str | None = None) -> Outcome:
        """Roll, classify, record, and return the outcome."""
        if self._modifier.is_identity:
            result = checks.roll_tested(
                self.die_type, self._conditions, mode, self.use_natural_crits
            )
            self._modified_result = None
        else:
            result = checks.roll_modified_tested(
                self.die_type, self._modifier, self._conditions, mode, self.use_natural_crits
            )
            self._modified_result = result.modified
        self._result = result.base
        self._outcome = result.outcome
        self._record(record_from_roll(result))
        return result.outcome

    def analyse(self) -> TestAnalysis:
        """Outcome breakdown for the current conditions and modifier."""
        return checks.analyse_test(
            self.die_type, self._conditions, self._modifier, self.use_natural_crits
        )

    def report(
        self,
        limit: int | None = None,
        verbose: bool = False,
        include_history: bool = False,
    ) -> dict[str, Any]:
        report = super().report(limit=limit, verbose=verbose, include_history=include_history)
        report["conditions"] = self._conditions.to_dict()
        return report

    def clear_history(self) -> None:
        super().clear_history()
        self._modified_result = None
        self._outcome = None

    def __str__(self) -> str:
        latest = self.history_detailed(limit=1, verbose=False)
        if not latest:
            return f"{self.type}: not rolled yet ({self._conditions.key})"
        return f"{self.type}: latest={latest[0]}, total rolls={self.times_rolled}"
