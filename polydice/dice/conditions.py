"""Test conditions.

A TestConditions value pairs a TestType with the parameters that policy
needs, validated against the face range of a specific die at construction.
Invalid conditions never exist: out-of-range faces raise
InvalidArgumentError and badly ordered thresholds raise ConfigurationError.

Usage:
    >>> check = skill(DieType.D20, target=12, critical_success=20, critical_failure=1)
    >>> check.key
    'd20:skill(target=12,critical_success=20,critical_failure=1)'
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from polydice.dice.types import DieType, Parity, TestType
from polydice.exceptions import ConfigurationError, InvalidArgumentError


# Fields each test type accepts; the first group is required
_FIELDS: dict[TestType, tuple[tuple[str, ...], tuple[str, ...]]] = {
    TestType.EXACT: (("target",), ()),
    TestType.AT_LEAST: (("target",), ()),
    TestType.AT_MOST: (("target",), ()),
    TestType.WITHIN: (("min", "max"), ()),
    TestType.IN_LIST: (("values",), ()),
    TestType.PARITY: (("parity",), ()),
    TestType.SKILL: (("target",), ("critical_success", "critical_failure")),
}

_PARAMETER_FIELDS = (
    "target",
    "min",
    "max",
    "values",
    "parity",
    "critical_success",
    "critical_failure",
)


def is_valid_face_value(value: Any, sides: int) -> bool:
    """Check that value is an integer face of a die with the given sides."""
    return (
        isinstance(value, int)
        and not isinstance(value, bool)
        and 1 <= value <= sides
    )


@dataclass(frozen=True)
class TestConditions:
    """Conditions a roll is classified against.

    Attributes:
        test_type: The evaluation policy.
        die_type: Die whose faces bound every numeric parameter.
        target: Threshold for exact/at_least/at_most/skill.
        min: Lower bound for within.
        max: Upper bound for within.
        values: Accepted faces for in_list.
        parity: Required parity for parity tests.
        critical_success: Skill only; value at or above is a critical success.
        critical_failure: Skill only; value at or below is a critical failure.
    """

    __test__ = False

    test_type: TestType
    die_type: DieType
    target: int | None = None
    min: int | None = None
    max: int | None = None
    values: tuple[int, ...] | None = None
    parity: Parity | None = None
    critical_success: int | None = None
    critical_failure: int | None = None

    def __post_init__(self) -> None:
        try:
            test_type = TestType(self.test_type)
        except ValueError:
            raise InvalidArgumentError(f"Invalid test type: {self.test_type!r}") from None
        object.__setattr__(self, "test_type", test_type)
        object.__setattr__(self, "die_type", DieType.from_value(self.die_type))

        if self.values is not None:
            if isinstance(self.values, (str, bytes)) or not isinstance(self.values, Iterable):
                raise InvalidArgumentError("in_list values must be a sequence of faces")
            object.__setattr__(self, "values", tuple(self.values))
        if self.parity is not None:
            try:
                object.__setattr__(self, "parity", Parity(self.parity))
            except ValueError:
                raise InvalidArgumentError(
                    f"Invalid parity: {self.parity!r}, expected 'odd' or 'even'"
                ) from None

        self._validate_shape()
        self._validate_faces()
        self._validate_order()

    def _validate_shape(self) -> None:
        required, optional = _FIELDS[self.test_type]
        for name in required:
            if getattr(self, name) is None:
                raise InvalidArgumentError(
                    f"'{self.test_type.value}' condition requires '{name}'"
                )
        allowed = set(required) | set(optional)
        extra = [
            name
            for name in _PARAMETER_FIELDS
            if name not in allowed and getattr(self, name) is not None
        ]
        if extra:
            raise InvalidArgumentError(
                f"'{self.test_type.value}' condition does not accept: {', '.join(extra)}"
            )

    def _validate_faces(self) -> None:
        sides = self.die_type.sides
        for name in ("target", "min", "max", "critical_success", "critical_failure"):
            value = getattr(self, name)
            if value is not None and not is_valid_face_value(value, sides):
                raise InvalidArgumentError(
                    f"Invalid {self.test_type.value} condition for {self.die_type.value}: "
                    f"{name}={value!r} must be an integer face between 1 and {sides}"
                )
        if self.values is not None:
            if not self.values:
                raise InvalidArgumentError("in_list values must not be empty")
            bad = [v for v in self.values if not is_valid_face_value(v, sides)]
            if bad:
                raise InvalidArgumentError(
                    f"Invalid in_list condition for {self.die_type.value}: "
                    f"{bad!r} are not faces between 1 and {sides}"
                )
            if len(set(self.values)) != len(self.values):
                raise InvalidArgumentError("in_list values must be distinct")

    def _validate_order(self) -> None:
        if self.test_type == TestType.WITHIN and self.min > self.max:
            raise ConfigurationError(
                f"within condition requires min <= max, got min={self.min}, max={self.max}",
                field="min",
            )
        if self.test_type != TestType.SKILL:
            return
        if self.critical_failure is not None and self.critical_failure >= self.target:
            raise ConfigurationError(
                f"critical_failure ({self.critical_failure}) must be below "
                f"target ({self.target})",
                field="critical_failure",
            )
        if self.critical_success is not None and self.critical_success < self.target:
            raise ConfigurationError(
                f"critical_success ({self.critical_success}) must be at or above "
                f"target ({self.target})",
                field="critical_success",
            )

    @property
    def key(self) -> str:
        """Readable identity used to separate histories per condition set."""
        params = ",".join(
            f"{name}={self._wire_value(name)}"
            for name in _PARAMETER_FIELDS
            if getattr(self, name) is not None
        )
        return f"{self.die_type.value}:{self.test_type.value}({params})"

    def _wire_value(self, name: str) -> Any:
        value = getattr(self, name)
        if name == "values":
            return list(value)
        if name == "parity":
            return value.value
        return value

    def to_dict(self) -> dict[str, Any]:
        """JSON form: test type, die type and the parameters that are set."""
        data: dict[str, Any] = {
            "test_type": self.test_type.value,
            "die_type": self.die_type.value,
        }
        for name in _PARAMETER_FIELDS:
            if getattr(self, name) is not None:
                data[name] = self._wire_value(name)
        return data

    @classmethod
    def from_dict(
        cls,
        data: Mapping[str, Any],
        die_type: DieType | str | None = None,
    ) -> "TestConditions":
        """Build validated conditions from their JSON form.

        Args:
            data: Mapping with "test_type" (or "testType") and parameters.
            die_type: Die to validate against; overrides data["die_type"].

        Raises:
            InvalidArgumentError: If fields are missing, unknown or out of range.
            ConfigurationError: If thresholds are badly ordered.
        """
        if not isinstance(data, Mapping):
            raise InvalidArgumentError("conditions must be a mapping")
        fields = dict(data)
        test_type = fields.pop("test_type", None) or fields.pop("testType", None)
        fields.pop("testType", None)
        data_die = fields.pop("die_type", None) or fields.pop("dieType", None)
        fields.pop("dieType", None)
        die_type = die_type or data_die
        if test_type is None:
            raise InvalidArgumentError("conditions must include a 'test_type' field")
        if die_type is None:
            raise InvalidArgumentError("die_type is required to validate conditions")
        unknown = set(fields) - set(_PARAMETER_FIELDS)
        if unknown:
            raise InvalidArgumentError(
                f"Unknown condition fields: {', '.join(sorted(unknown))}"
            )
        return cls(test_type=test_type, die_type=die_type, **fields)


ConditionsLike = TestConditions | Mapping[str, Any]


def normalise_test_conditions(
    conditions: ConditionsLike,
    die_type: DieType | str,
) -> TestConditions:
    """Return conditions validated for die_type.

    Raises:
        InvalidArgumentError: If conditions were built for a different die or
            cannot be interpreted.
    """
    die_type = DieType.from_value(die_type)
    if isinstance(conditions, TestConditions):
        if conditions.die_type != die_type:
            raise InvalidArgumentError(
                f"Conditions were built for {conditions.die_type.value}, "
                f"not {die_type.value}"
            )
        return conditions
    if isinstance(conditions, Mapping):
        return TestConditions.from_dict(conditions, die_type)
    raise InvalidArgumentError(f"Invalid test conditions: {conditions!r}")


def at_least(die_type: DieType | str, target: int) -> TestConditions:
    """Success when the roll is at least target."""
    return TestConditions(TestType.AT_LEAST, die_type, target=target)


def at_most(die_type: DieType | str, target: int) -> TestConditions:
    """Success when the roll is at most target."""
    return TestConditions(TestType.AT_MOST, die_type, target=target)


def exact(die_type: DieType | str, target: int) -> TestConditions:
    """Success only on target."""
    return TestConditions(TestType.EXACT, die_type, target=target)


def within(die_type: DieType | str, min: int, max: int) -> TestConditions:
    """Success when min <= roll <= max."""
    return TestConditions(TestType.WITHIN, die_type, min=min, max=max)


def in_list(die_type: DieType | str, values: Iterable[int]) -> TestConditions:
    """Success when the roll is one of values."""
    return TestConditions(TestType.IN_LIST, die_type, values=tuple(values))


def parity(die_type: DieType | str, which: Parity | str) -> TestConditions:
    """Success when the roll is odd or even."""
    return TestConditions(TestType.PARITY, die_type, parity=which)


def skill(
    die_type: DieType | str,
    target: int,
    critical_success: int | None = None,
    critical_failure: int | None = None,
) -> TestConditions:
    """Classic threshold test with optional critical thresholds.

    Requires critical_failure < target <= critical_success when present.
    """
    return TestConditions(
        TestType.SKILL,
        die_type,
        target=target,
        critical_success=critical_success,
        critical_failure=critical_failure,
    )
