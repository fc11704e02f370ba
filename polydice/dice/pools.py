"""Dice pool tests.

Rolls several dice of one type and checks every die against an ordered list
of test conditions, then applies count rules to the pool as a whole:

- value_count: how many dice show a given face ("at least two sixes")
- condition_count: how many dice pass condition #k ("at most one failure")

Each rule compares its count against exactly one of exact, at_least or
at_most (checked in that order). A rule with no threshold needs a count of
at least one. The pool passes when every rule passes; a pool with no rules
always passes.

Usage:
    >>> from polydice.dice.conditions import at_least
    >>> pool = DiceTestConditions(
    ...     count=4,
    ...     conditions=[at_least("d6", 5)],
    ...     rules=[{"type": "condition_count", "condition_index": 0, "at_least": 2}],
    ...     die_type="d6",
    ... )
    >>> pool.evaluate([6, 5, 1, 2]).passed
    True
"""

from collections import Counter
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from polydice.dice.checks import evaluate, roll_many_modified
from polydice.dice.conditions import (
    ConditionsLike,
    TestConditions,
    is_valid_face_value,
    normalise_test_conditions,
)
from polydice.dice.modifiers import (
    RollModifier,
    normalise_dice_modifier,
    normalise_roll_modifier,
)
from polydice.dice.roller import roll_many
from polydice.dice.types import DiceRoll, DieType, ModifiedDiceRoll, Outcome
from polydice.exceptions import InvalidArgumentError


class RuleType(str, Enum):
    """What a pool rule counts."""

    VALUE_COUNT = "value_count"  # Dice showing a face
    CONDITION_COUNT = "condition_count"  # Dice passing one condition


_THRESHOLDS = ("exact", "at_least", "at_most")

# Accepted spellings for rule fields in mappings
_RULE_ALIASES = {
    "conditionIndex": "condition_index",
    "atLeast": "at_least",
    "atMost": "at_most",
}


def _is_count(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


@dataclass(frozen=True)
class CountRule:
    """A requirement on how many dice in a pool match something.

    Attributes:
        type: What is counted.
        value: Face to count (value_count only).
        condition_index: Condition to count passes of (condition_count only).
        exact: Count must equal this.
        at_least: Count must be at least this.
        at_most: Count must be at most this.
    """

    type: RuleType
    value: int | None = None
    condition_index: int | None = None
    exact: int | None = None
    at_least: int | None = None
    at_most: int | None = None

    def __post_init__(self) -> None:
        try:
            object.__setattr__(self, "type", RuleType(self.type))
        except ValueError:
            raise InvalidArgumentError(f"Unsupported rule type: {self.type!r}") from None

        if self.type == RuleType.VALUE_COUNT:
            if self.value is None or self.condition_index is not None:
                raise InvalidArgumentError("value_count rules take a 'value' only")
            if isinstance(self.value, bool) or not isinstance(self.value, int):
                raise InvalidArgumentError(f"Rule value must be an integer, got {self.value!r}")
        else:
            if self.condition_index is None or self.value is not None:
                raise InvalidArgumentError(
                    "condition_count rules take a 'condition_index' only"
                )
            if not _is_count(self.condition_index):
                raise InvalidArgumentError(
                    f"condition_index must be a non-negative integer, "
                    f"got {self.condition_index!r}"
                )

        for name in _THRESHOLDS:
            threshold = getattr(self, name)
            if threshold is not None and not _is_count(threshold):
                raise InvalidArgumentError(
                    f"Rule {name} must be a non-negative integer, got {threshold!r}"
                )

    def is_met(self, count: int) -> bool:
        """Check a count against this rule's threshold."""
        if self.exact is not None:
            return count == self.exact
        if self.at_least is not None:
            return count >= self.at_least
        if self.at_most is not None:
            return count <= self.at_most
        return count >= 1

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"type": self.type.value}
        for name in ("value", "condition_index", *_THRESHOLDS):
            if getattr(self, name) is not None:
                data[name] = getattr(self, name)
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CountRule":
        """Build a rule from a mapping; camelCase field names are accepted.

        Raises:
            InvalidArgumentError: If fields are unknown or malformed.
        """
        if not isinstance(data, Mapping):
            raise InvalidArgumentError(f"Rule must be a mapping, got {data!r}")
        fields = {_RULE_ALIASES.get(k, k): v for k, v in data.items()}
        unknown = set(fields) - {"type", "value", "condition_index", *_THRESHOLDS}
        if unknown:
            raise InvalidArgumentError(f"Unknown rule fields: {', '.join(sorted(unknown))}")
        if "type" not in fields:
            raise InvalidArgumentError("Rule requires a 'type'")
        return cls(**fields)


@dataclass(frozen=True)
class RuleResult:
    """Outcome of one count rule against a pool."""

    id: int
    rule: CountRule
    count: int
    passed: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "rule": self.rule.to_dict(),
            "count": self.count,
            "passed": self.passed,
        }


@dataclass(frozen=True)
class DiceTestResult:
    """Evaluation of a pool of dice against conditions and rules.

    Attributes:
        matrix: For each die, its outcome against each condition in order.
        condition_counts: Per condition index, how many dice passed it.
        value_counts: Per face, how many dice showed it.
        rule_results: Result of each rule in order.
        passed: Whether every rule passed.
    """

    matrix: tuple[tuple[Outcome, ...], ...]
    condition_counts: dict[int, int]
    value_counts: dict[int, int]
    rule_results: tuple[RuleResult, ...]
    passed: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "matrix": [[o.value for o in row] for row in self.matrix],
            "condition_counts": dict(self.condition_counts),
            "value_counts": dict(self.value_counts),
            "rule_results": [r.to_dict() for r in self.rule_results],
            "passed": self.passed,
        }


@dataclass(frozen=True)
class DiceTestRoll:
    """A rolled pool and its evaluation."""

    base: DiceRoll
    result: DiceTestResult

    def to_dict(self) -> dict[str, Any]:
        return {"base": self.base.to_dict(), "result": self.result.to_dict()}


@dataclass(frozen=True)
class ModifiedDiceTestRoll:
    """A modified pool and its evaluation.

    Only the per-die ("each") modifier affects the evaluation; the net
    modifier only changes the reported total.
    """

    roll: ModifiedDiceRoll
    result: DiceTestResult

    def to_dict(self) -> dict[str, Any]:
        data = self.roll.to_dict()
        data["result"] = self.result.to_dict()
        return data


@dataclass(frozen=True)
class DiceTestConditions:
    """Conditions and count rules for a pool of ``count`` dice.

    Every condition is validated against die_type. Rules that refer to a
    condition index or a face outside the pool's range are rejected here
    rather than at evaluation time.
    """

    count: int
    conditions: tuple[TestConditions, ...]
    rules: tuple[CountRule, ...] = ()
    die_type: DieType = field(default=DieType.D6)

    def __post_init__(self) -> None:
        if isinstance(self.count, bool) or not isinstance(self.count, int) or self.count < 1:
            raise InvalidArgumentError(
                f"Invalid count: {self.count!r}. Count must be a positive integer."
            )
        die_type = DieType.from_value(self.die_type)
        object.__setattr__(self, "die_type", die_type)

        if isinstance(self.conditions, (str, bytes, Mapping, TestConditions)) or not isinstance(
            self.conditions, Iterable
        ):
            raise InvalidArgumentError(
                "conditions must be a sequence of test conditions"
            )
        object.__setattr__(
            self,
            "conditions",
            tuple(normalise_test_conditions(c, die_type) for c in self.conditions),
        )

        if isinstance(self.rules, (str, bytes, Mapping)) or not isinstance(self.rules, Iterable):
            raise InvalidArgumentError("rules must be a sequence of count rules")
        rules = tuple(
            r if isinstance(r, CountRule) else CountRule.from_dict(r) for r in self.rules
        )
        for idx, rule in enumerate(rules):
            if rule.type == RuleType.CONDITION_COUNT and rule.condition_index >= len(
                self.conditions
            ):
                raise InvalidArgumentError(
                    f"Rule {idx} refers to condition {rule.condition_index}, "
                    f"but only {len(self.conditions)} conditions are defined"
                )
            if rule.type == RuleType.VALUE_COUNT and not is_valid_face_value(
                rule.value, die_type.sides
            ):
                raise InvalidArgumentError(
                    f"Rule {idx} counts face {rule.value}, which a {die_type.value} cannot show"
                )
        object.__setattr__(self, "rules", rules)

    def evaluate(
        self,
        rolls: Sequence[int],
        modifier: RollModifier | Any = None,
        use_natural_crits: bool = False,
    ) -> DiceTestResult:
        """Evaluate rolled faces against the conditions and rules.

        Args:
            rolls: One natural face per die, exactly ``count`` of them.
            modifier: Per-die modifier applied before each condition check.
            use_natural_crits: Let natural faces override outcomes.

        Returns:
            DiceTestResult for the pool.

        Raises:
            InvalidArgumentError: If the number of rolls does not match count.
        """
        rolls = tuple(rolls)
        if len(rolls) != self.count:
            raise InvalidArgumentError(
                f"Expected {self.count} rolls, got {len(rolls)}"
            )
        modifier = normalise_roll_modifier(modifier)

        matrix = tuple(
            tuple(
                evaluate(face, conditions, modifier, use_natural_crits)[1]
                for conditions in self.conditions
            )
            for face in rolls
        )

        condition_counts = {
            idx: sum(1 for row in matrix if row[idx].is_success)
            for idx in range(len(self.conditions))
        }
        value_counts = dict(Counter(rolls))

        rule_results = []
        for idx, rule in enumerate(self.rules):
            if rule.type == RuleType.VALUE_COUNT:
                count = value_counts.get(rule.value, 0)
            else:
                count = condition_counts[rule.condition_index]
            rule_results.append(
                RuleResult(id=idx, rule=rule, count=count, passed=rule.is_met(count))
            )

        return DiceTestResult(
            matrix=matrix,
            condition_counts=condition_counts,
            value_counts=value_counts,
            rule_results=tuple(rule_results),
            passed=all(r.passed for r in rule_results),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "count": self.count,
            "die_type": self.die_type.value,
            "conditions": [c.to_dict() for c in self.conditions],
            "rules": [r.to_dict() for r in self.rules],
        }


PoolConditionsLike = DiceTestConditions | Sequence[ConditionsLike]


def _pool_conditions(
    die_type: DieType,
    conditions: PoolConditionsLike,
    count: int | None,
    rules: Sequence[CountRule | Mapping[str, Any]] | None,
) -> DiceTestConditions:
    if isinstance(conditions, DiceTestConditions):
        if conditions.die_type != die_type:
            raise InvalidArgumentError(
                f"Pool conditions were built for {conditions.die_type.value}, "
                f"not {die_type.value}"
            )
        if count is not None and count != conditions.count:
            raise InvalidArgumentError(
                f"Pool conditions expect {conditions.count} dice, not {count}"
            )
        if rules:
            raise InvalidArgumentError(
                "rules cannot be given alongside DiceTestConditions"
            )
        return conditions
    return DiceTestConditions(
        count=1 if count is None else count,
        conditions=conditions,
        rules=rules or (),
        die_type=die_type,
    )


def roll_many_tested(
    die_type: DieType | str,
    conditions: PoolConditionsLike,
    count: int | None = None,
    rules: Sequence[CountRule | Mapping[str, Any]] | None = None,
    use_natural_crits: bool = False,
) -> DiceTestRoll:
    """Roll a pool of dice and evaluate it against conditions and rules.

    Args:
        die_type: The die to roll.
        conditions: A DiceTestConditions, or a sequence of test conditions
            (each validated against die_type).
        count: Number of dice; defaults to the DiceTestConditions count, or 1.
        rules: Count rules, when conditions is a plain sequence.
        use_natural_crits: Let natural faces override outcomes.

    Raises:
        InvalidArgumentError: If the pool definition is invalid or does not
            match die_type and count.

    Examples:
        >>> from polydice.dice.conditions import exact
        >>> result = roll_many_tested(
        ...     "d6", [exact("d6", 6)], count=3,
        ...     rules=[{"type": "value_count", "value": 6, "at_least": 1}],
        ... )
        >>> len(result.result.matrix)
        3
    """
    die_type = DieType.from_value(die_type)
    pool = _pool_conditions(die_type, conditions, count, rules)
    base = roll_many(die_type, count=pool.count)
    return DiceTestRoll(base=base, result=pool.evaluate(base.values, None, use_natural_crits))


def roll_many_modified_tested(
    die_type: DieType | str,
    modifier: Any,
    conditions: PoolConditionsLike,
    count: int | None = None,
    rules: Sequence[CountRule | Mapping[str, Any]] | None = None,
    use_natural_crits: bool = False,
) -> ModifiedDiceTestRoll:
    """Roll a modified pool and evaluate it against conditions and rules.

    The modifier follows roll_many_modified: a bare function or RollModifier
    is the net modifier, and a mapping may give "each" and "net". Conditions
    see each die's "each"-modified value; value_count rules see natural faces.

    Raises:
        InvalidArgumentError: If modifier is None or invalid, or the pool
            definition is invalid.
    """
    if modifier is None:
        raise InvalidArgumentError("roll_many_modified_tested requires a modifier")
    die_type = DieType.from_value(die_type)
    dice_modifier = normalise_dice_modifier(modifier)
    pool = _pool_conditions(die_type, conditions, count, rules)
    rolled = roll_many_modified(die_type, dice_modifier, count=pool.count)
    return ModifiedDiceTestRoll(
        roll=rolled,
        result=pool.evaluate(rolled.base.values, dice_modifier.each, use_natural_crits),
    )
