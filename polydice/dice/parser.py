"""Die type notation parser.

Parses single-die notation like d20, D6, 1d8 into a DieType.
"""

import re

from polydice.dice.types import DieType
from polydice.exceptions import InvalidArgumentError


class DiceParseError(InvalidArgumentError):
    """Error parsing die notation."""

    pass


# Pattern: optional count, 'd', die size
# Examples: d20, 1d6, D12, " d8 "
DIE_PATTERN = re.compile(r"^\s*(\d*)d(\d+)\s*$", re.IGNORECASE)


def parse_die_type(notation: str) -> DieType:
    """Parse die notation into a DieType.

    Args:
        notation: Die notation string (e.g., "d20", "1d6", "D8").

    Returns:
        The matching DieType.

    Raises:
        DiceParseError: If notation is empty, malformed, names more than one
            die, or uses an unsupported face count.

    Examples:
        >>> parse_die_type("d20")
        <DieType.D20: 'd20'>
        >>> parse_die_type("1D6")
        <DieType.D6: 'd6'>
    """
    if not notation or not notation.strip():
        raise DiceParseError("Die notation cannot be empty")

    match = DIE_PATTERN.match(notation)
    if not match:
        raise DiceParseError(f"Invalid die notation: '{notation}'")

    count_str, sides_str = match.groups()

    # "d20" means "1d20"
    count = int(count_str) if count_str else 1
    if count != 1:
        raise DiceParseError(f"Expected a single die, got {count} in '{notation}'")

    try:
        return DieType(f"d{int(sides_str)}")
    except ValueError:
        supported = ", ".join(d.value for d in DieType)
        raise DiceParseError(
            f"Unsupported die size d{sides_str}, expected one of: {supported}"
        ) from None
