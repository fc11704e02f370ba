"""Dice system type definitions.

Closed enumerations for die types, roll modes, test types and outcomes, plus
immutable dataclasses for roll results.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from polydice.exceptions import InvalidArgumentError


class DieType(str, Enum):
    """Supported polyhedral dice.

    The face count is derived from the value, so ``DieType.D20.sides == 20``
    and no other table of face counts exists.
    """

    D4 = "d4"
    D6 = "d6"
    D8 = "d8"
    D10 = "d10"
    D12 = "d12"
    D20 = "d20"

    @property
    def sides(self) -> int:
        """Number of faces on this die."""
        return int(self.value[1:])

    @property
    def faces(self) -> range:
        """All face values, 1 through sides."""
        return range(1, self.sides + 1)

    @classmethod
    def from_value(cls, value: "DieType | str") -> "DieType":
        """Coerce a DieType or its string value ("d6") into a DieType.

        Raises:
            InvalidArgumentError: If the value is not a supported die type.
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise InvalidArgumentError(f"Invalid die type: {value!r}") from None


class RollMode(str, Enum):
    """How many faces are generated and which one is kept."""

    NORMAL = "normal"
    ADVANTAGE = "advantage"  # Two draws, keep higher
    DISADVANTAGE = "disadvantage"  # Two draws, keep lower

    @classmethod
    def from_value(cls, value: "RollMode | str | None") -> "RollMode":
        """Coerce a RollMode, its string value or None (normal)."""
        if value is None:
            return cls.NORMAL
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise InvalidArgumentError(f"Invalid roll mode: {value!r}") from None


class TestType(str, Enum):
    """Evaluation policy for a test."""

    __test__ = False  # not a pytest class

    EXACT = "exact"  # Must roll exactly the target
    AT_LEAST = "at_least"  # Roll >= target
    AT_MOST = "at_most"  # Roll <= target
    WITHIN = "within"  # min <= roll <= max
    IN_LIST = "in_list"  # Roll is one of the listed values
    PARITY = "parity"  # Roll is odd or even
    SKILL = "skill"  # Roll >= target, with optional critical thresholds


class Parity(str, Enum):
    """Parity required by a parity test."""

    ODD = "odd"
    EVEN = "even"


class Outcome(str, Enum):
    """Classification of a roll against test conditions."""

    SUCCESS = "success"
    FAILURE = "failure"
    CRITICAL_SUCCESS = "critical_success"
    CRITICAL_FAILURE = "critical_failure"

    @property
    def is_success(self) -> bool:
        """True for success and critical success."""
        return self in (Outcome.SUCCESS, Outcome.CRITICAL_SUCCESS)


@dataclass(frozen=True)
class ModeRoll:
    """A single-die roll with its advantage/disadvantage detail.

    Attributes:
        die_type: The die that was rolled.
        mode: The roll mode used.
        kept: The face that counts.
        discarded: The face dropped by advantage/disadvantage, if any.
    """

    die_type: DieType
    mode: RollMode
    kept: int
    discarded: tuple[int, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class DiceRoll:
    """Result of rolling several dice of one type."""

    values: tuple[int, ...]
    sum: int

    def to_dict(self) -> dict[str, Any]:
        return {"values": list(self.values), "sum": self.sum}


@dataclass(frozen=True)
class ModifiedRoll:
    """A base face and the value after applying a modifier."""

    base: int
    modified: int | float

    def to_dict(self) -> dict[str, Any]:
        return {"base": self.base, "modified": self.modified}


@dataclass(frozen=True)
class TestedRoll:
    """A base face and its outcome against test conditions."""

    __test__ = False

    base: int
    outcome: Outcome

    def to_dict(self) -> dict[str, Any]:
        return {"base": self.base, "outcome": self.outcome.value}


@dataclass(frozen=True)
class ModifiedTestedRoll:
    """A base face, its modified value, and the outcome of the modified value."""

    base: int
    modified: int | float
    outcome: Outcome

    def to_dict(self) -> dict[str, Any]:
        return {
            "base": self.base,
            "modified": self.modified,
            "outcome": self.outcome.value,
        }


@dataclass(frozen=True)
class ModifiedDiceRoll:
    """Result of rolling several dice with per-die and net modifiers.

    Attributes:
        base: The unmodified dice.
        each: Each die after the per-die modifier.
        each_sum: Sum of the per-die modified values.
        net: The per-die sum after the net modifier.
    """

    base: DiceRoll
    each: tuple[int | float, ...]
    each_sum: int | float
    net: int | float

    def to_dict(self) -> dict[str, Any]:
        return {
            "base": self.base.to_dict(),
            "modified": {
                "each": {"values": list(self.each), "sum": self.each_sum},
                "net": {"value": self.net},
            },
        }


@dataclass(frozen=True)
class TestAnalysis:
    """Exhaustive outcome breakdown of a test over every face of a die.

    Attributes:
        die_type: The die analysed.
        outcomes_by_roll: Outcome for each base face.
        outcome_counts: Number of faces producing each outcome.
        outcome_probabilities: Probability of each outcome on a fair die.
        rolls_by_outcome: Faces grouped by the outcome they produce.
    """

    __test__ = False

    die_type: DieType
    outcomes_by_roll: dict[int, Outcome]
    outcome_counts: dict[Outcome, int]
    outcome_probabilities: dict[Outcome, float]
    rolls_by_outcome: dict[Outcome, tuple[int, ...]]

    @property
    def total_possibilities(self) -> int:
        return self.die_type.sides

    def probability(self, outcome: Outcome) -> float:
        """Probability of a single outcome (0.0 if it cannot occur)."""
        return self.outcome_probabilities.get(outcome, 0.0)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_possibilities": self.total_possibilities,
            "outcome_counts": {o.value: c for o, c in self.outcome_counts.items()},
            "outcome_probabilities": {
                o.value: p for o, p in self.outcome_probabilities.items()
            },
            "outcomes_by_roll": {r: o.value for r, o in self.outcomes_by_roll.items()},
            "rolls": list(self.die_type.faces),
            "rolls_by_outcome": {
                o.value: list(rolls) for o, rolls in self.rolls_by_outcome.items()
            },
        }
