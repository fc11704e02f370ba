"""Dice exception definitions.

Custom exception hierarchy for rolling, classification and history storage.
Each exception carries an ErrorKind so callers can branch on the failure
category without matching on concrete classes.
"""

from enum import Enum


class ErrorKind(str, Enum):
    """Category of a dice failure."""

    INVALID_ARGUMENT = "invalid_argument"
    INVALID_STATE = "invalid_state"
    CONFIGURATION = "configuration"


class DiceError(Exception):
    """Base exception for dice operations.

    Attributes:
        kind: The failure category.
    """

    kind: ErrorKind = ErrorKind.INVALID_ARGUMENT


class InvalidArgumentError(DiceError, ValueError):
    """A caller supplied a bad die type, roll mode, count, modifier or record."""

    kind = ErrorKind.INVALID_ARGUMENT


class InvalidStateError(DiceError, RuntimeError):
    """Operation is not possible in the current state.

    Raised when classifying against conditions with no usable fields, or when
    a history cache is used before any key has been activated.
    """

    kind = ErrorKind.INVALID_STATE


class ConfigurationError(DiceError, ValueError):
    """Test condition thresholds are not logically ordered.

    Attributes:
        field: Name of the offending threshold, if known.
    """

    kind = ErrorKind.CONFIGURATION

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field
