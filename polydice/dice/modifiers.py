"""Roll modifiers.

A RollModifier wraps a pure one-argument callable that maps a base roll to a
modified value. Missing modifiers are normalised to IDENTITY so evaluation
never branches on None.

Usage:
    >>> bonus = RollModifier(lambda n: n + 2, name="+2")
    >>> bonus.apply(10)
    12
"""

import inspect
import itertools
import math
import weakref
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from numbers import Real
from typing import Any

from polydice.exceptions import InvalidArgumentError


ModifierFunction = Callable[[int], int | float]

# Value passed to a modifier when probing it during validation
SAMPLE_VALUE = 1

_POSITIONAL_KINDS = (
    inspect.Parameter.POSITIONAL_ONLY,
    inspect.Parameter.POSITIONAL_OR_KEYWORD,
)


def is_finite_number(value: Any) -> bool:
    """Check that value is a real, finite number and not a bool."""
    return (
        isinstance(value, Real)
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


def is_roll_modifier(fn: Any) -> bool:
    """Check whether fn is usable as a roll modifier.

    A valid modifier is callable, declares exactly one positional parameter,
    and returns a finite number when called with SAMPLE_VALUE.

    Examples:
        >>> is_roll_modifier(lambda n: n + 1)
        True
        >>> is_roll_modifier(lambda a, b: a + b)
        False
    """
    if isinstance(fn, RollModifier):
        return True
    if not callable(fn):
        return False

    try:
        params = list(inspect.signature(fn).parameters.values())
    except (TypeError, ValueError):
        # No introspectable signature (some builtins)
        return False
    if len(params) != 1 or params[0].kind not in _POSITIONAL_KINDS:
        return False

    try:
        sample = fn(SAMPLE_VALUE)
    except Exception:
        return False
    return is_finite_number(sample)


# Numbers are never reused within a process, unlike id()
_anonymous_ids = itertools.count(1)
_anonymous_names: "weakref.WeakKeyDictionary[Callable[..., Any], str]" = (
    weakref.WeakKeyDictionary()
)


def _default_name(fn: Callable[..., Any]) -> str:
    name = getattr(fn, "__qualname__", None) or type(fn).__name__
    if "<lambda>" not in name:
        return name
    if fn not in _anonymous_names:
        _anonymous_names[fn] = f"{name}#{next(_anonymous_ids)}"
    return _anonymous_names[fn]


class RollModifier:
    """A numeric transform applied to a base roll.

    Attributes:
        fn: The wrapped callable.
        name: Label used in reports and as a history key. Lambdas get a
            numbered default that is unique within the process; pass name
            for keys that must be stable across processes.
    """

    def __init__(self, fn: ModifierFunction, name: str | None = None) -> None:
        if isinstance(fn, RollModifier):
            fn = fn.fn
        if not is_roll_modifier(fn):
            raise InvalidArgumentError(
                "Invalid roll modifier: must be a function accepting one "
                "numeric argument and returning a finite number."
            )
        self.fn = fn
        self.name = name or _default_name(fn)

    @property
    def key(self) -> str:
        """Stable key for this modifier within a process."""
        return self.name

    @property
    def is_identity(self) -> bool:
        return self is IDENTITY

    def apply(self, value: int | float) -> int | float:
        """Apply this modifier to a value.

        Raises:
            InvalidArgumentError: If the modifier returns a non-finite or
                non-numeric value for this input.
        """
        result = self.fn(value)
        if not is_finite_number(result):
            raise InvalidArgumentError(
                f"Modifier {self.name!r} returned {result!r} for {value!r}, "
                "expected a finite number"
            )
        return result

    def __call__(self, value: int | float) -> int | float:
        return self.apply(value)

    def __repr__(self) -> str:
        return f"RollModifier({self.name!r})"


IDENTITY = RollModifier(lambda n: n, name="identity")


def normalise_roll_modifier(modifier: "RollModifier | ModifierFunction | None") -> RollModifier:
    """Coerce a modifier-like value into a RollModifier.

    - None -> IDENTITY
    - RollModifier -> returned as-is
    - callable -> wrapped in a new RollModifier

    Raises:
        InvalidArgumentError: If modifier is anything else or fails validation.
    """
    if modifier is None:
        return IDENTITY
    if isinstance(modifier, RollModifier):
        return modifier
    if callable(modifier):
        return RollModifier(modifier)
    raise InvalidArgumentError(f"Invalid roll modifier: {modifier!r}")


@dataclass(frozen=True)
class DiceModifier:
    """Composite modifier for multi-die rolls.

    Attributes:
        each: Applied to every individual die.
        net: Applied to the sum of the per-die modified values.
    """

    each: RollModifier = field(default=IDENTITY)
    net: RollModifier = field(default=IDENTITY)

    def __post_init__(self) -> None:
        object.__setattr__(self, "each", normalise_roll_modifier(self.each))
        object.__setattr__(self, "net", normalise_roll_modifier(self.net))


def normalise_dice_modifier(modifier: Any) -> DiceModifier:
    """Coerce a modifier-like value into a DiceModifier.

    A single function or RollModifier is treated as the net modifier. A
    mapping may provide "each" and/or "net".

    Raises:
        InvalidArgumentError: If the value cannot be interpreted.
    """
    if modifier is None:
        return DiceModifier()
    if isinstance(modifier, DiceModifier):
        return modifier
    if isinstance(modifier, RollModifier) or callable(modifier):
        return DiceModifier(net=normalise_roll_modifier(modifier))
    if isinstance(modifier, Mapping):
        unknown = set(modifier) - {"each", "net"}
        if unknown:
            raise InvalidArgumentError(
                f"Unknown dice modifier keys: {', '.join(sorted(unknown))}"
            )
        return DiceModifier(each=modifier.get("each"), net=modifier.get("net"))
    raise InvalidArgumentError(
        f"Invalid modifier: {modifier!r}. Must be a function, RollModifier, or mapping."
    )
