class ScorchError(Exception):
    """Base exception for SCORCH token economics errors."""
    pass


class Unauthorized(ScorchError):
    """Caller lacks the role the operation requires."""
    pass


class InvalidState(ScorchError):
    """Operation attempted in the wrong state or with invalid arguments."""
    pass


class InsufficientResource(ScorchError):
    """Balance, allowance, supply headroom or phase capacity exhausted."""
    pass


class ArithmeticFault(ScorchError):
    """A quantity would overflow or underflow its unsigned range."""
    pass


# InsufficientResource
class SupplyCapExceeded(InsufficientResource):
    pass


class InsufficientBalance(InsufficientResource):
    pass


class InsufficientAllowance(InsufficientResource):
    pass


class PhaseExhausted(InsufficientResource):
    pass


# InvalidState
class NotActive(InvalidState):
    pass


class AlreadyStarted(InvalidState):
    pass


class InvalidAmount(InvalidState):
    pass


class NothingToClaim(InvalidState):
    pass


class LastPhase(InvalidState):
    pass


class InvalidAddress(InvalidState):
    pass


class LengthMismatch(InvalidState):
    pass


class AlreadyAirdropped(InvalidState):
    pass


class TierExists(InvalidState):
    pass


class UnknownTier(InvalidState):
    pass


class TierInactive(InvalidState):
    pass


class UnknownContributor(InvalidState):
    pass


class ContributorInactive(InvalidState):
    pass


class PaymentIntervalNotReached(InvalidState):
    pass


class ProtectedAsset(InvalidState):
    pass


class ReentrantCall(InvalidState):
    """A collaborator called back into a component mid-operation."""
    pass
