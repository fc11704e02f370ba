"""Tests for roll classification, modified rolls and outcome analysis."""

import math
from unittest.mock import patch

import pytest

from polydice.dice.checks import (
    analyse_test,
    apply_natural_crits,
    classify,
    roll_many_modified,
    roll_modified,
    roll_modified_tested,
    roll_tested,
)
from polydice.dice.conditions import (
    at_least,
    at_most,
    exact,
    in_list,
    parity,
    skill,
    within,
)
from polydice.dice.modifiers import RollModifier
from polydice.dice.types import DieType, Outcome, RollMode, TestType
from polydice.exceptions import (
    DiceError,
    ErrorKind,
    InvalidArgumentError,
    InvalidStateError,
)


class TestClassifyCriticalPrecedence:
    """Critical thresholds pre-empt the plain comparison."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            (1, Outcome.CRITICAL_FAILURE),
            (2, Outcome.FAILURE),
            (3, Outcome.FAILURE),
            (4, Outcome.SUCCESS),
            (5, Outcome.SUCCESS),
            (6, Outcome.CRITICAL_SUCCESS),
        ],
    )
    def test_d6_skill(self, d6_skill, value, expected):
        """Skill target 4 with crits on 6 and 1."""
        assert classify(value, d6_skill) == expected

    def test_modified_value_above_critical(self, d6_skill):
        """Modified values past the die range still classify."""
        assert classify(9, d6_skill) == Outcome.CRITICAL_SUCCESS
        assert classify(-2, d6_skill) == Outcome.CRITICAL_FAILURE

    def test_skill_without_crits(self):
        check = skill(DieType.D20, 12)
        assert classify(20, check) == Outcome.SUCCESS
        assert classify(1, check) == Outcome.FAILURE

    def test_value_list_overrides_crits(self):
        """Membership alone decides when values are present."""
        conditions = {"values": [2, 3], "critical_success": 3, "critical_failure": 2}
        assert classify(2, conditions) == Outcome.SUCCESS
        assert classify(6, conditions) == Outcome.FAILURE


class TestClassifyPolicies:
    """Tests for each test type's comparison."""

    def test_at_least(self):
        check = at_least(DieType.D20, 10)
        assert classify(10, check) == Outcome.SUCCESS
        assert classify(9, check) == Outcome.FAILURE

    def test_at_most(self):
        check = at_most(DieType.D20, 10)
        assert classify(10, check) == Outcome.SUCCESS
        assert classify(11, check) == Outcome.FAILURE

    def test_exact(self):
        check = exact(DieType.D8, 8)
        assert classify(8, check) == Outcome.SUCCESS
        assert classify(7, check) == Outcome.FAILURE

    def test_within_inclusive(self):
        check = within(DieType.D12, 4, 6)
        assert [classify(v, check) for v in (3, 4, 6, 7)] == [
            Outcome.FAILURE,
            Outcome.SUCCESS,
            Outcome.SUCCESS,
            Outcome.FAILURE,
        ]

    def test_in_list(self):
        check = in_list(DieType.D6, [1, 6])
        assert classify(6, check) == Outcome.SUCCESS
        assert classify(3, check) == Outcome.FAILURE

    def test_parity(self):
        even = parity(DieType.D10, "even")
        odd = parity(DieType.D10, "odd")
        assert classify(4, even) == Outcome.SUCCESS
        assert classify(4, odd) == Outcome.FAILURE
        assert classify(-3, odd) == Outcome.SUCCESS

    def test_parity_of_fraction_fails(self):
        """Non-integer modified values are neither odd nor even."""
        assert classify(2.5, parity(DieType.D6, "even")) == Outcome.FAILURE
        assert classify(2.5, parity(DieType.D6, "odd")) == Outcome.FAILURE


class TestClassifyMappings:
    """Tests for untyped and malformed condition mappings."""

    def test_target_only_is_skill(self):
        assert classify(5, {"target": 5}) == Outcome.SUCCESS
        assert classify(4, {"target": 5}) == Outcome.FAILURE

    def test_min_max_is_within(self):
        assert classify(3, {"min": 2, "max": 4}) == Outcome.SUCCESS

    def test_camel_case_type(self):
        assert classify(3, {"testType": "at_most", "target": 3}) == Outcome.SUCCESS

    def test_empty_conditions(self):
        """No usable field is an invalid state."""
        with pytest.raises(InvalidStateError):
            classify(3, {})

    def test_typed_without_field(self):
        with pytest.raises(InvalidStateError, match="missing 'target'"):
            classify(3, {"test_type": "exact"})

    def test_unknown_type(self):
        with pytest.raises(InvalidArgumentError):
            classify(3, {"test_type": "lucky", "target": 3})

    def test_invalid_parity_value(self):
        """An unknown parity is an invalid argument, not a bare ValueError."""
        with pytest.raises(InvalidArgumentError, match="Invalid parity"):
            classify(3, {"parity": "weird"})

    @pytest.mark.parametrize(
        "conditions",
        [
            {"target": "5"},
            {"min": "1", "max": 4},
            {"test_type": "at_most", "target": [3]},
        ],
    )
    def test_non_numeric_threshold(self, conditions):
        """Thresholds of the wrong type raise InvalidArgumentError."""
        with pytest.raises(InvalidArgumentError, match="non-numeric"):
            classify(3, conditions)

    def test_non_numeric_target_has_kind(self):
        with pytest.raises(DiceError) as exc_info:
            classify(3, {"target": "5"})
        assert exc_info.value.kind == ErrorKind.INVALID_ARGUMENT

    def test_non_numeric_critical(self):
        with pytest.raises(InvalidArgumentError, match="critical_success"):
            classify(3, {"target": 2, "critical_success": "6"})

    def test_values_not_a_sequence(self):
        with pytest.raises(InvalidArgumentError, match="sequence"):
            classify(3, {"values": 3})

    @pytest.mark.parametrize("value", [math.nan, math.inf, "4", None, True])
    def test_non_finite_value(self, d6_skill, value):
        with pytest.raises(InvalidArgumentError):
            classify(value, d6_skill)


class TestNaturalCrits:
    """Tests for natural critical overrides."""

    def test_skill(self):
        assert (
            apply_natural_crits(Outcome.FAILURE, 20, DieType.D20, TestType.SKILL)
            == Outcome.CRITICAL_SUCCESS
        )
        assert (
            apply_natural_crits(Outcome.SUCCESS, 1, DieType.D20, TestType.SKILL)
            == Outcome.CRITICAL_FAILURE
        )

    def test_at_most_inverts(self):
        assert (
            apply_natural_crits(Outcome.SUCCESS, 6, DieType.D6, TestType.AT_MOST)
            == Outcome.FAILURE
        )
        assert (
            apply_natural_crits(Outcome.FAILURE, 1, DieType.D6, TestType.AT_MOST)
            == Outcome.SUCCESS
        )

    def test_other_policies_unchanged(self):
        assert (
            apply_natural_crits(Outcome.FAILURE, 6, DieType.D6, TestType.EXACT)
            == Outcome.FAILURE
        )

    def test_middle_face_unchanged(self):
        assert (
            apply_natural_crits(Outcome.SUCCESS, 10, DieType.D20, TestType.SKILL)
            == Outcome.SUCCESS
        )

    @patch("polydice.dice.roller.random.randint")
    def test_opt_in(self, mock_randint):
        """A natural 20 only overrides a penalised roll when enabled."""
        mock_randint.return_value = 20
        check = skill(DieType.D20, 18)
        penalty = RollModifier(lambda n: n - 5, name="-5")

        plain = roll_modified_tested(DieType.D20, penalty, check)
        assert plain.outcome == Outcome.FAILURE

        natural = roll_modified_tested(DieType.D20, penalty, check, use_natural_crits=True)
        assert natural.outcome == Outcome.CRITICAL_SUCCESS


class TestRollModified:
    """Tests for roll_modified and roll_many_modified."""

    @patch("polydice.dice.roller.random.randint")
    def test_roll_modified(self, mock_randint):
        mock_randint.return_value = 7
        result = roll_modified(DieType.D20, lambda n: n + 5)
        assert result.base == 7
        assert result.modified == 12

    @patch("polydice.dice.roller.random.randint")
    def test_roll_modified_with_mode(self, mock_randint):
        mock_randint.side_effect = [3, 15]
        result = roll_modified(DieType.D20, lambda n: n * 2, RollMode.DISADVANTAGE)
        assert result.base == 3
        assert result.modified == 6

    def test_roll_modified_invalid(self):
        with pytest.raises(InvalidArgumentError):
            roll_modified(DieType.D6, lambda a, b: a)

    @patch("polydice.dice.roller.random.randint")
    def test_each_and_net(self, mock_randint):
        mock_randint.side_effect = [1, 2, 3]
        result = roll_many_modified(
            DieType.D6, {"each": lambda n: n + 1, "net": lambda n: n * 10}, count=3
        )
        assert result.base.values == (1, 2, 3)
        assert result.base.sum == 6
        assert result.each == (2, 3, 4)
        assert result.each_sum == 9
        assert result.net == 90

    @patch("polydice.dice.roller.random.randint")
    def test_bare_function_is_net(self, mock_randint):
        mock_randint.side_effect = [4, 4]
        result = roll_many_modified(DieType.D4, lambda n: n - 1, count=2)
        assert result.each == (4, 4)
        assert result.net == 7

    @patch("polydice.dice.roller.random.randint")
    def test_no_modifier(self, mock_randint):
        mock_randint.side_effect = [2, 5]
        result = roll_many_modified(DieType.D6, count=2)
        assert result.net == result.base.sum == 7


class TestRollTested:
    """Tests for tested rolls."""

    @patch("polydice.dice.roller.random.randint")
    def test_roll_tested(self, mock_randint, d6_skill):
        mock_randint.return_value = 6
        result = roll_tested(DieType.D6, d6_skill)
        assert result.base == 6
        assert result.outcome == Outcome.CRITICAL_SUCCESS

    @patch("polydice.dice.roller.random.randint")
    def test_roll_tested_mapping(self, mock_randint):
        mock_randint.return_value = 3
        result = roll_tested("d8", {"test_type": "at_most", "target": 3})
        assert result.outcome == Outcome.SUCCESS

    def test_roll_tested_validates_conditions(self):
        with pytest.raises(InvalidArgumentError):
            roll_tested("d6", {"test_type": "at_least", "target": 9})

    @patch("polydice.dice.roller.random.randint")
    def test_roll_tested_advantage(self, mock_randint, d6_skill):
        mock_randint.side_effect = [1, 5]
        result = roll_tested(DieType.D6, d6_skill, RollMode.ADVANTAGE)
        assert result.base == 5
        assert result.outcome == Outcome.SUCCESS

    @patch("polydice.dice.roller.random.randint")
    def test_roll_modified_tested(self, mock_randint, d6_skill):
        mock_randint.return_value = 3
        result = roll_modified_tested(DieType.D6, lambda n: n + 1, d6_skill)
        assert result.base == 3
        assert result.modified == 4
        assert result.outcome == Outcome.SUCCESS


class TestAnalyseTest:
    """Tests for exhaustive outcome analysis."""

    def test_d6_skill(self, d6_skill):
        analysis = analyse_test(DieType.D6, d6_skill)
        assert analysis.total_possibilities == 6
        assert analysis.outcome_counts == {
            Outcome.CRITICAL_FAILURE: 1,
            Outcome.FAILURE: 2,
            Outcome.SUCCESS: 2,
            Outcome.CRITICAL_SUCCESS: 1,
        }
        assert analysis.rolls_by_outcome[Outcome.FAILURE] == (2, 3)
        assert analysis.outcomes_by_roll[6] == Outcome.CRITICAL_SUCCESS

    def test_probabilities_sum_to_one(self):
        analysis = analyse_test(DieType.D20, within(DieType.D20, 5, 15))
        assert sum(analysis.outcome_probabilities.values()) == pytest.approx(1.0)
        assert analysis.probability(Outcome.SUCCESS) == pytest.approx(11 / 20)

    def test_impossible_outcome(self):
        analysis = analyse_test(DieType.D4, at_least(DieType.D4, 1))
        assert analysis.probability(Outcome.FAILURE) == 0.0

    def test_with_modifier(self):
        analysis = analyse_test(DieType.D6, at_least(DieType.D6, 6), lambda n: n + 2)
        assert analysis.rolls_by_outcome[Outcome.SUCCESS] == (4, 5, 6)

    def test_to_dict(self, d6_skill):
        data = analyse_test(DieType.D6, d6_skill).to_dict()
        assert data["total_possibilities"] == 6
        assert data["rolls"] == [1, 2, 3, 4, 5, 6]
        assert data["outcomes_by_roll"][1] == "critical_failure"
        assert data["outcome_counts"]["success"] == 2
