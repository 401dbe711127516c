"""Exception taxonomy for the savings account pool."""
from __future__ import annotations


class SavingsAccountError(Exception):
    """Base class for all pool errors."""


# ---------------------------------------------------------------------------
# Validation — rejected before any state change
# ---------------------------------------------------------------------------


class ValidationError(SavingsAccountError, ValueError):
    """Bad token, amount or argument."""


class InvalidToken(ValidationError):
    pass


class InvalidAmount(ValidationError):
    pass


class InsufficientBalance(ValidationError):
    pass


class InsufficientLiquidity(ValidationError):
    pass


class InsufficientReserves(ValidationError):
    pass


class InsufficientRepayment(ValidationError):
    pass


class NoRewardsToClaim(ValidationError):
    pass


class PositionNotFound(ValidationError, KeyError):
    pass


class PriceUnavailable(SavingsAccountError):
    """The price oracle has no round for the requested pair."""


# ---------------------------------------------------------------------------
# Epoch ordering
# ---------------------------------------------------------------------------


class EpochOrderingError(SavingsAccountError):
    """An epoch-scoped operation was called out of order."""


class AlreadyClaimedThisEpoch(EpochOrderingError):
    pass


class AlreadyConvertedThisEpoch(EpochOrderingError):
    pass


class AlreadyCalculatedThisEpoch(EpochOrderingError):
    pass


class MustClaimFirst(EpochOrderingError):
    pass


class MustConvertFirst(EpochOrderingError):
    pass


# ---------------------------------------------------------------------------
# Workflow state
# ---------------------------------------------------------------------------


class NoPositionsAvailable(SavingsAccountError):
    pass


class HarvestInProgress(SavingsAccountError):
    """A claim or convert is already awaiting its remote reply."""


class UnauthorizedCaller(SavingsAccountError, PermissionError):
    pass


class RemoteCallError(SavingsAccountError, RuntimeError):
    """An outbound call to a remote service failed."""


class ClaimReplyMismatch(RemoteCallError):
    """The delegation reply does not line up with the positions sent."""


class StateFileLocked(SavingsAccountError, RuntimeError):
    """Another process holds the state file's lock."""
