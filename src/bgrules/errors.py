"""Rule violation taxonomy.

Every illegal action raises a subclass of :class:`RulesError`. Each carries a
:class:`Reason` so callers can match on the kind of violation without
inspecting exception types, and all of them are ``ValueError`` subclasses so
existing ``except ValueError`` handlers keep working.
"""

from enum import Enum


class Reason(Enum):
    """Why an action was rejected."""
    INVALID_MOVE = "invalidMove"
    MUST_REENTER_FROM_BAR = "mustReenterFromBar"
    MUST_USE_HIGHER_DIE_FIRST = "mustUseHigherDieFirst"
    CANNOT_BEAR_OFF = "cannotBearOff"
    CANNOT_DOUBLE = "cannotDouble"
    NO_LEGAL_MOVE = "noLegalMove"
    ILLEGAL_ACTION = "illegalAction"
    CORRUPT_STATE = "corruptState"

    def __str__(self) -> str:
        return self.value


class RulesError(ValueError):
    """Base class for all rule violations."""

    reason: Reason = Reason.INVALID_MOVE

    def __init__(self, message: str = ""):
        super().__init__(message or str(self.reason))
        self.message = message or str(self.reason)


class InvalidMoveError(RulesError):
    """Destination unreachable, blocked, or source empty."""
    reason = Reason.INVALID_MOVE


class MustReenterFromBarError(RulesError):
    """A piece on the bar must re-enter before any other move."""
    reason = Reason.MUST_REENTER_FROM_BAR


class MustUseHigherDieFirstError(RulesError):
    """Only one die is playable and it has to be the higher one."""
    reason = Reason.MUST_USE_HIGHER_DIE_FIRST


class CannotBearOffError(RulesError):
    """Bear-off attempted with pieces outside the home board, or wrong die."""
    reason = Reason.CANNOT_BEAR_OFF


class CannotDoubleError(RulesError):
    reason = Reason.CANNOT_DOUBLE


class NoLegalMoveError(RulesError):
    reason = Reason.NO_LEGAL_MOVE


class IllegalActionError(RulesError):
    """Action attempted in the wrong phase (e.g. moving before rolling)."""
    reason = Reason.ILLEGAL_ACTION


class CorruptStateError(RulesError):
    """A persisted snapshot failed validation on load."""
    reason = Reason.CORRUPT_STATE


_ERRORS_BY_REASON = {
    cls.reason: cls
    for cls in (
        InvalidMoveError,
        MustReenterFromBarError,
        MustUseHigherDieFirstError,
        CannotBearOffError,
        CannotDoubleError,
        NoLegalMoveError,
        IllegalActionError,
        CorruptStateError,
    )
}


def error_for(reason: Reason, message: str = "") -> RulesError:
    """Build the exception matching a reason.

    Args:
        reason: Rejection reason
        message: Optional human-readable detail

    Returns:
        An (unraised) RulesError subclass instance
    """
    return _ERRORS_BY_REASON[reason](message)
