"""StableSwap engine error classes.

Errors are grouped by failure category so callers can react to a whole class
of problems (e.g. any slippage violation) without enumerating leaf types:

- ValidationError: malformed input, rejected before any state mutation
- SlippageError: a caller-supplied guarantee was not met
- InvariantHealthError: the invariant drifted beyond tolerated bounds
- AuthorizationError: the caller lacks the required capability
- ConvergenceError: the invariant solver did not converge
- GovernanceBoundError: a parameter change violates a safety rail
- PoolStateError: the pool cannot settle right now (paused, re-entered)
- RateSourceError: an exchange-rate source is stale or failing

Every settlement failure is atomic: when one of these is raised, no balance,
share or supply field has changed.
"""


class StableSwapError(Exception):
    """Base error for StableSwap engine operations."""

    pass


# =============================================================================
# Input validation
# =============================================================================


class ValidationError(StableSwapError):
    """Input rejected before any state mutation."""

    pass


class InvalidAmount(ValidationError):
    """Amount is zero, negative or otherwise unusable."""

    pass


class LengthMismatch(ValidationError):
    """Array argument length does not match the number of pool tokens."""

    pass


class InvalidTokenIndex(ValidationError):
    """Token index is out of range for the pool."""

    pass


class SameTokenInTokenOut(ValidationError):
    """Swap input and output token are the same."""

    def __init__(self, index: int) -> None:
        super().__init__(f"Cannot swap token {index} with itself")
        self.index = index


class InvalidTokens(ValidationError):
    """Token list is too short, contains duplicates or empty identifiers."""

    pass


class InvalidFee(ValidationError):
    """Fee must be in range [0, FEE_DENOMINATOR)."""

    pass


class InvalidParameter(ValidationError):
    """Governance parameter value is out of its valid domain."""

    pass


class InvalidFutureA(ValidationError):
    """Target amplification coefficient must be in (0, MAX_A]."""

    pass


class ZeroBalanceError(ValidationError):
    """A token balance is zero while others are not (degenerate invariant)."""

    pass


class InvalidAccount(ValidationError):
    """Account identifier is not usable for this operation."""

    pass


class InsufficientBalance(ValidationError):
    """Account does not hold enough tokens or shares."""

    pass


class InsufficientAllowance(ValidationError):
    """Spender allowance is lower than the requested amount."""

    pass


class InsufficientBuffer(ValidationError):
    """Buffer cannot cover the requested draw."""

    pass


class NoLosses(ValidationError):
    """distribute_loss was called but the pool has no loss to distribute."""

    pass


# =============================================================================
# Slippage / caller bounds
# =============================================================================


class SlippageError(StableSwapError):
    """A caller-supplied guarantee was not met."""

    def __init__(self, actual: int, limit: int) -> None:
        super().__init__(f"{type(self).__name__}: actual={actual}, limit={limit}")
        self.actual = actual
        self.limit = limit


class InsufficientMintAmount(SlippageError):
    """Minted amount is below min_mint_amount."""

    pass


class InsufficientSwapOutAmount(SlippageError):
    """Swap output is below min_dy."""

    pass


class InsufficientRedeemAmount(SlippageError):
    """Redeemed amount for an asset is below its minimum."""

    def __init__(self, actual: int, limit: int, index: int | None = None) -> None:
        super().__init__(actual, limit)
        self.index = index


class MaxRedeemAmount(SlippageError):
    """Claim tokens required exceed max_redeem_amount."""

    pass


class InsufficientDonationAmount(SlippageError):
    """Donated invariant increase is below the requested minimum."""

    pass


# =============================================================================
# Invariant health
# =============================================================================


class InvariantHealthError(StableSwapError):
    """The invariant moved outside tolerated bounds."""

    pass


class ImbalancedPool(InvariantHealthError):
    """Recomputed D deviates from its expected value beyond tolerance."""

    def __init__(self, expected_d: int, actual_d: int) -> None:
        super().__init__(f"Imbalanced pool: expected D={expected_d}, actual D={actual_d}")
        self.expected_d = expected_d
        self.actual_d = actual_d


# =============================================================================
# Authorization
# =============================================================================


class AuthorizationError(StableSwapError):
    """Caller lacks the required capability."""

    pass


class NoPool(AuthorizationError):
    """Caller is not a registered pool of the share ledger."""

    pass


class NotAdmin(AuthorizationError):
    """Caller is neither the governor nor an admin."""

    pass


class NotGovernor(AuthorizationError):
    """Caller is not the governor/owner."""

    pass


class Unauthorized(AuthorizationError):
    """Caller does not hold the required keeper role."""

    pass


# =============================================================================
# Numeric convergence
# =============================================================================


class ConvergenceError(StableSwapError):
    """Newton iteration did not converge."""

    pass


class InvariantDidNotConverge(ConvergenceError):
    """Iteration for the invariant D did not converge."""

    pass


class BalanceDidNotConverge(ConvergenceError):
    """Iteration for a single balance y did not converge."""

    pass


# =============================================================================
# Governance safety rails
# =============================================================================


class GovernanceBoundError(StableSwapError):
    """Requested parameter change violates a safety rail."""

    pass


class FeeDeltaTooBig(GovernanceBoundError):
    """Relative change exceeds the configured per-action bound."""

    pass


class FeeOutOfBounds(GovernanceBoundError):
    """New value exceeds the configured absolute maximum."""

    pass


class ExcessiveAChange(GovernanceBoundError):
    """Target A is too far from the current interpolated A."""

    pass


class InsufficientRampTime(GovernanceBoundError):
    """Ramp ends sooner than the minimum ramp time."""

    pass


class RampAlreadyInProgress(GovernanceBoundError):
    """A previous ramp has not reached its end time."""

    pass


# =============================================================================
# Pool state
# =============================================================================


class PoolStateError(StableSwapError):
    """The pool cannot settle in its current state."""

    pass


class PoolPaused(PoolStateError):
    """Settlement attempted while the pool is paused."""

    pass


class PoolNotPaused(PoolStateError):
    """Operation requires the pool to be paused."""

    pass


class ReentrantCall(PoolStateError):
    """Settlement operation entered while another one is in flight."""

    pass


class ClockWentBackwards(StableSwapError):
    """Time source moved backwards."""

    pass


# =============================================================================
# Exchange-rate sources
# =============================================================================


class RateSourceError(StableSwapError):
    """Exchange-rate source failed or returned an unusable value."""

    pass


class StalePrice(RateSourceError):
    """Exchange-rate answer is older than the allowed staleness window."""

    def __init__(self, updated_at: int, now: int, max_stale_period: int) -> None:
        super().__init__(
            f"Stale price: updated_at={updated_at}, now={now}, max_stale_period={max_stale_period}"
        )
        self.updated_at = updated_at
        self.now = now
        self.max_stale_period = max_stale_period


class InvalidRate(RateSourceError):
    """Exchange-rate source returned a non-positive rate."""

    pass
