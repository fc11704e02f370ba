"""Roll evaluation: modifiers, test classification and outcome analysis.

Classification follows a strict priority so critical thresholds always
pre-empt the plain target comparison:

1. An explicit value list decides by membership alone.
2. critical_success, when present and reached, is a critical success.
3. critical_failure, when present and reached, is a critical failure.
4. Otherwise the policy's own comparison decides success or failure.

Natural criticals are opt-in. When enabled, the unmodified face can override
the outcome for skill, at_least and at_most tests.
"""

from collections.abc import Callable, Iterable, Mapping
from typing import Any

from polydice.dice.conditions import (
    ConditionsLike,
    TestConditions,
    normalise_test_conditions,
)
from polydice.dice.modifiers import (
    RollModifier,
    is_finite_number,
    normalise_dice_modifier,
    normalise_roll_modifier,
)
from polydice.dice.roller import roll, roll_many
from polydice.dice.types import (
    DieType,
    ModifiedDiceRoll,
    ModifiedRoll,
    ModifiedTestedRoll,
    Outcome,
    Parity,
    RollMode,
    TestAnalysis,
    TestedRoll,
    TestType,
)
from polydice.exceptions import InvalidArgumentError, InvalidStateError


def _passes(passed: bool) -> Outcome:
    return Outcome.SUCCESS if passed else Outcome.FAILURE


def _is_parity(value: int | float, fields: Mapping[str, Any]) -> bool:
    try:
        wanted = Parity(fields["parity"])
    except ValueError:
        raise InvalidArgumentError(
            f"Invalid parity: {fields['parity']!r}, expected 'odd' or 'even'"
        ) from None
    if value != int(value):
        return False
    return (int(value) % 2 == 0) == (wanted == Parity.EVEN)


# Plain comparison for each policy once list and critical checks have passed
_COMPARATORS: dict[TestType, Callable[[int | float, Mapping[str, Any]], bool]] = {
    TestType.AT_LEAST: lambda v, f: v >= f["target"],
    TestType.SKILL: lambda v, f: v >= f["target"],
    TestType.AT_MOST: lambda v, f: v <= f["target"],
    TestType.EXACT: lambda v, f: v == f["target"],
    TestType.WITHIN: lambda v, f: f["min"] <= v <= f["max"],
    TestType.PARITY: _is_parity,
}


def _condition_fields(conditions: ConditionsLike) -> dict[str, Any]:
    if isinstance(conditions, TestConditions):
        return conditions.to_dict()
    if isinstance(conditions, Mapping):
        fields = {k: v for k, v in conditions.items() if v is not None}
        if "testType" in fields and "test_type" not in fields:
            fields["test_type"] = fields.pop("testType")
        return fields
    raise InvalidArgumentError(f"Invalid test conditions: {conditions!r}")


def _threshold(fields: Mapping[str, Any], name: str) -> int | float | None:
    value = fields.get(name)
    if value is not None and not is_finite_number(value):
        raise InvalidArgumentError(f"{name} must be a finite number, got {value!r}")
    return value


def _infer_test_type(fields: Mapping[str, Any]) -> TestType | None:
    if "test_type" in fields:
        try:
            return TestType(fields["test_type"])
        except ValueError:
            raise InvalidArgumentError(
                f"Invalid test type: {fields['test_type']!r}"
            ) from None
    # Field presence decides for untyped mappings
    if "target" in fields:
        return TestType.SKILL
    if "min" in fields and "max" in fields:
        return TestType.WITHIN
    if "parity" in fields:
        return TestType.PARITY
    return None


def classify(value: int | float, conditions: ConditionsLike) -> Outcome:
    """Classify a (possibly modified) value against test conditions.

    Args:
        value: The value to classify.
        conditions: TestConditions, or a mapping in their JSON form.

    Returns:
        The outcome.

    Raises:
        InvalidArgumentError: If value is not a finite number, or a
            condition field has the wrong type.
        InvalidStateError: If conditions carry no usable field for the value.

    Examples:
        >>> from polydice.dice.conditions import skill
        >>> check = skill(DieType.D6, target=4, critical_success=6, critical_failure=1)
        >>> classify(6, check)
        <Outcome.CRITICAL_SUCCESS: 'critical_success'>
        >>> classify(2, check)
        <Outcome.FAILURE: 'failure'>
    """
    if not is_finite_number(value):
        raise InvalidArgumentError(f"value must be a finite number, got {value!r}")

    fields = _condition_fields(conditions)

    values = fields.get("values")
    if values is not None:
        if isinstance(values, (str, bytes)) or not isinstance(values, Iterable):
            raise InvalidArgumentError(f"values must be a sequence of faces, got {values!r}")
        return _passes(value in tuple(values))

    critical_success = _threshold(fields, "critical_success")
    if critical_success is not None and value >= critical_success:
        return Outcome.CRITICAL_SUCCESS

    critical_failure = _threshold(fields, "critical_failure")
    if critical_failure is not None and value <= critical_failure:
        return Outcome.CRITICAL_FAILURE

    test_type = _infer_test_type(fields)
    comparator = _COMPARATORS.get(test_type) if test_type else None
    if comparator is None:
        raise InvalidStateError("Test conditions have no usable condition field")
    try:
        return _passes(comparator(value, fields))
    except KeyError as e:
        raise InvalidStateError(
            f"'{test_type.value}' conditions are missing {e.args[0]!r}"
        ) from None
    except InvalidArgumentError:
        raise
    except (TypeError, ValueError):
        raise InvalidArgumentError(
            f"'{test_type.value}' conditions have non-numeric thresholds: {fields!r}"
        ) from None


def apply_natural_crits(
    outcome: Outcome,
    base: int,
    die_type: DieType,
    test_type: TestType,
) -> Outcome:
    """Override an outcome from the natural (unmodified) face.

    - skill: max face is a critical success, 1 a critical failure
    - at_least: max face succeeds, 1 fails
    - at_most: max face fails, 1 succeeds
    - other policies are unaffected
    """
    is_natural_max = base == die_type.sides
    is_natural_min = base == 1

    if test_type == TestType.SKILL:
        if is_natural_max:
            return Outcome.CRITICAL_SUCCESS
        if is_natural_min:
            return Outcome.CRITICAL_FAILURE
    elif test_type == TestType.AT_LEAST:
        if is_natural_max:
            return Outcome.SUCCESS
        if is_natural_min:
            return Outcome.FAILURE
    elif test_type == TestType.AT_MOST:
        if is_natural_max:
            return Outcome.FAILURE
        if is_natural_min:
            return Outcome.SUCCESS
    return outcome


def evaluate(
    base: int,
    conditions: TestConditions,
    modifier: RollModifier,
    use_natural_crits: bool = False,
) -> tuple[int | float, Outcome]:
    """Apply modifier to a base face and classify the result.

    Returns:
        Tuple of (modified value, outcome).
    """
    modified = modifier.apply(base)
    outcome = classify(modified, conditions)
    if use_natural_crits:
        outcome = apply_natural_crits(
            outcome, base, conditions.die_type, conditions.test_type
        )
    return modified, outcome


def roll_modified(
    die_type: DieType | str,
    modifier: RollModifier | Callable[[int], int | float],
    mode: RollMode | str | None = None,
) -> ModifiedRoll:
    """Roll a die and apply a modifier to the face.

    Raises:
        InvalidArgumentError: If the modifier is not a valid unary numeric
            function.

    Examples:
        >>> result = roll_modified("d20", lambda n: n + 5)
        >>> result.modified == result.base + 5
        True
    """
    modifier = normalise_roll_modifier(modifier)
    base = roll(die_type, mode)
    return ModifiedRoll(base=base, modified=modifier.apply(base))


def roll_many_modified(
    die_type: DieType | str,
    modifier: Any = None,
    count: int = 1,
) -> ModifiedDiceRoll:
    """Roll several dice with per-die ("each") and total ("net") modifiers.

    A bare function or RollModifier is treated as the net modifier.

    Examples:
        >>> result = roll_many_modified("d6", {"each": lambda n: n + 1}, count=3)
        >>> result.each_sum == result.base.sum + 3
        True
    """
    dice_modifier = normalise_dice_modifier(modifier)
    base = roll_many(die_type, count=count)
    each = tuple(dice_modifier.each.apply(n) for n in base.values)
    each_sum = sum(each)
    return ModifiedDiceRoll(
        base=base,
        each=each,
        each_sum=each_sum,
        net=dice_modifier.net.apply(each_sum),
    )


def roll_tested(
    die_type: DieType | str,
    conditions: ConditionsLike,
    mode: RollMode | str | None = None,
    use_natural_crits: bool = False,
) -> TestedRoll:
    """Roll a die and classify the face against test conditions.

    Conditions given as a mapping are validated against die_type first.

    Examples:
        >>> from polydice.dice.conditions import at_least
        >>> result = roll_tested("d20", at_least("d20", 10))
        >>> result.outcome in (Outcome.SUCCESS, Outcome.FAILURE)
        True
    """
    conditions = normalise_test_conditions(conditions, die_type)
    base = roll(conditions.die_type, mode)
    _, outcome = evaluate(base, conditions, normalise_roll_modifier(None), use_natural_crits)
    return TestedRoll(base=base, outcome=outcome)


def roll_modified_tested(
    die_type: DieType | str,
    modifier: RollModifier | Callable[[int], int | float],
    conditions: ConditionsLike,
    mode: RollMode | str | None = None,
    use_natural_crits: bool = False,
) -> ModifiedTestedRoll:
    """Roll a die, apply a modifier, and classify the modified value."""
    modifier = normalise_roll_modifier(modifier)
    conditions = normalise_test_conditions(conditions, die_type)
    base = roll(conditions.die_type, mode)
    modified, outcome = evaluate(base, conditions, modifier, use_natural_crits)
    return ModifiedTestedRoll(base=base, modified=modified, outcome=outcome)


def analyse_test(
    die_type: DieType | str,
    conditions: ConditionsLike,
    modifier: RollModifier | Callable[[int], int | float] | None = None,
    use_natural_crits: bool = False,
) -> TestAnalysis:
    """Evaluate a test against every face of a fair die.

    Returns:
        TestAnalysis with per-face outcomes, counts and probabilities.

    Examples:
        >>> from polydice.dice.conditions import at_least
        >>> analysis = analyse_test("d6", at_least("d6", 5))
        >>> analysis.probability(Outcome.SUCCESS)
        0.3333333333333333
    """
    conditions = normalise_test_conditions(conditions, die_type)
    modifier = normalise_roll_modifier(modifier)
    die_type = conditions.die_type

    outcomes_by_roll: dict[int, Outcome] = {}
    rolls_by_outcome: dict[Outcome, list[int]] = {}
    for face in die_type.faces:
        _, outcome = evaluate(face, conditions, modifier, use_natural_crits)
        outcomes_by_roll[face] = outcome
        rolls_by_outcome.setdefault(outcome, []).append(face)

    outcome_counts = {o: len(faces) for o, faces in rolls_by_outcome.items()}
    return TestAnalysis(
        die_type=die_type,
        outcomes_by_roll=outcomes_by_roll,
        outcome_counts=outcome_counts,
        outcome_probabilities={
            o: count / die_type.sides for o, count in outcome_counts.items()
        },
        rolls_by_outcome={o: tuple(faces) for o, faces in rolls_by_outcome.items()},
    )
