"""Dice rolling and evaluation.

Provides face generation, advantage/disadvantage, modifiers, test
classification, dice that remember their rolls and
pool tests with count rules.

Usage:
    >>> from polydice.dice import roll, roll_tested, skill, DieType
    >>> face = roll(DieType.D20, "advantage")
    >>> check = skill(DieType.D20, target=12, critical_success=20, critical_failure=1)
    >>> result = roll_tested(DieType.D20, check)
"""

# Types
from polydice.dice.types import (
    DiceRoll,
    DieType,
    ModeRoll,
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

# Parser
from polydice.dice.parser import DiceParseError, parse_die_type

# Roller
from polydice.dice.roller import generate, roll, roll_many, roll_with_mode

# Modifiers
from polydice.dice.modifiers import (
    IDENTITY,
    DiceModifier,
    RollModifier,
    is_roll_modifier,
    normalise_dice_modifier,
    normalise_roll_modifier,
)

# Test Conditions
from polydice.dice.conditions import (
    TestConditions,
    at_least,
    at_most,
    exact,
    in_list,
    normalise_test_conditions,
    parity,
    skill,
    within,
)

# Evaluation
from polydice.dice.checks import (
    analyse_test,
    apply_natural_crits,
    classify,
    roll_many_modified,
    roll_modified,
    roll_modified_tested,
    roll_tested,
)

# Stateful Dice
from polydice.dice.die import Die, ModifiedDie, TestDie

# Dice Pools
from polydice.dice.pools import (
    CountRule,
    DiceTestConditions,
    DiceTestResult,
    DiceTestRoll,
    ModifiedDiceTestRoll,
    RuleResult,
    RuleType,
    roll_many_modified_tested,
    roll_many_tested,
)

__all__ = [
    # Types
    "DiceRoll",
    "DieType",
    "ModeRoll",
    "ModifiedDiceRoll",
    "ModifiedRoll",
    "ModifiedTestedRoll",
    "Outcome",
    "Parity",
    "RollMode",
    "TestAnalysis",
    "TestedRoll",
    "TestType",
    # Parser
    "DiceParseError",
    "parse_die_type",
    # Roller
    "generate",
    "roll",
    "roll_many",
    "roll_with_mode",
    # Modifiers
    "IDENTITY",
    "DiceModifier",
    "RollModifier",
    "is_roll_modifier",
    "normalise_dice_modifier",
    "normalise_roll_modifier",
    # Test Conditions
    "TestConditions",
    "at_least",
    "at_most",
    "exact",
    "in_list",
    "normalise_test_conditions",
    "parity",
    "skill",
    "within",
    # Evaluation
    "analyse_test",
    "apply_natural_crits",
    "classify",
    "roll_many_modified",
    "roll_modified",
    "roll_modified_tested",
    "roll_tested",
    # Stateful Dice
    "Die",
    "ModifiedDie",
    "TestDie",
    # Dice Pools
    "CountRule",
    "DiceTestConditions",
    "DiceTestResult",
    "DiceTestRoll",
    "ModifiedDiceTestRoll",
    "RuleResult",
    "RuleType",
    "roll_many_modified_tested",
    "roll_many_tested",
]
