"""Core dice rolling engine.

Generates faces from the process-wide ``random`` source and resolves
advantage/disadvantage. Not suitable where cryptographic randomness is needed.
"""

import random

from polydice.dice.types import DiceRoll, DieType, ModeRoll, RollMode
from polydice.exceptions import InvalidArgumentError


def generate(sides: int) -> int:
    """Generate one face uniformly from 1 to sides.

    Args:
        sides: Number of faces, at least 1.

    Returns:
        An integer in [1, sides].

    Raises:
        InvalidArgumentError: If sides is not a positive integer.
    """
    if isinstance(sides, bool) or not isinstance(sides, int) or sides < 1:
        raise InvalidArgumentError(f"Die must have at least 1 side, got {sides!r}")
    return random.randint(1, sides)


def roll_with_mode(
    die_type: DieType | str,
    mode: RollMode | str | None = None,
) -> ModeRoll:
    """Roll a single die, keeping the better or worse of two draws.

    For advantage: rolls twice, keeps higher.
    For disadvantage: rolls twice, keeps lower.
    For normal: rolls once.

    Args:
        die_type: The die to roll.
        mode: Roll mode; None means normal.

    Returns:
        ModeRoll with the kept face and any discarded face.

    Raises:
        InvalidArgumentError: If die_type or mode is invalid.

    Examples:
        >>> result = roll_with_mode(DieType.D20, RollMode.ADVANTAGE)
        >>> len(result.discarded)
        1
    """
    die_type = DieType.from_value(die_type)
    mode = RollMode.from_value(mode)

    if mode == RollMode.NORMAL:
        return ModeRoll(die_type=die_type, mode=mode, kept=generate(die_type.sides))

    # Both draws always happen, only one is kept
    roll1 = generate(die_type.sides)
    roll2 = generate(die_type.sides)

    if mode == RollMode.ADVANTAGE:
        kept, discarded = max(roll1, roll2), min(roll1, roll2)
    else:  # DISADVANTAGE
        kept, discarded = min(roll1, roll2), max(roll1, roll2)

    return ModeRoll(die_type=die_type, mode=mode, kept=kept, discarded=(discarded,))


def roll(die_type: DieType | str, mode: RollMode | str | None = None) -> int:
    """Roll a single die and return the face.

    Examples:
        >>> 1 <= roll("d6") <= 6
        True
    """
    return roll_with_mode(die_type, mode).kept


def roll_many(
    die_type: DieType | str,
    count: int = 1,
    mode: RollMode | str | None = None,
) -> DiceRoll:
    """Roll several dice of one type.

    The roll mode applies to each die individually.

    Args:
        die_type: The die to roll.
        count: Number of dice, a positive integer.
        mode: Roll mode applied per die.

    Returns:
        DiceRoll with each face and their sum.

    Raises:
        InvalidArgumentError: If count is not a positive integer.
    """
    die_type = DieType.from_value(die_type)
    mode = RollMode.from_value(mode)
    if isinstance(count, bool) or not isinstance(count, int) or count < 1:
        raise InvalidArgumentError(
            f"Invalid count: {count!r}. Count must be a positive integer."
        )

    values = tuple(roll(die_type, mode) for _ in range(count))
    return DiceRoll(values=values, sum=sum(values))
