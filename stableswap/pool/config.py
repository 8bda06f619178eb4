"""Pool configuration."""

from dataclasses import dataclass

from stableswap.constants import (
    DEFAULT_FEE_ERROR_MARGIN,
    DEFAULT_MAX_DELTA_D,
    DEFAULT_YIELD_ERROR_MARGIN,
    FEE_DENOMINATOR,
)
from stableswap.errors import InvalidFee, InvalidParameter


@dataclass(frozen=True)
class PoolConfig:
    """Initial tunables of a pool.

    Fee rates are in parts per FEE_DENOMINATOR (1e10). Margins and
    max_delta_d are in normalized 18-decimal units.

    Attributes:
        mint_fee: Fee charged on minted claim token
        swap_fee: Base fee charged on swap output
        redeem_fee: Fee charged on redeemed claim token
        off_peg_fee_multiplier: Dynamic swap fee multiplier; values at or
            below FEE_DENOMINATOR disable the off-peg scaling
        fee_error_margin: Post-settlement invariant gains at or below this
            are treated as rounding noise and not credited as fees
        yield_error_margin: Yield gains or losses at or below this are
            treated as rounding noise and ignored
        max_delta_d: Largest tolerated gap between the recomputed invariant
            and its expected value after a settlement
    """

    mint_fee: int = 0
    swap_fee: int = 0
    redeem_fee: int = 0
    off_peg_fee_multiplier: int = FEE_DENOMINATOR

    fee_error_margin: int = DEFAULT_FEE_ERROR_MARGIN
    yield_error_margin: int = DEFAULT_YIELD_ERROR_MARGIN
    max_delta_d: int = DEFAULT_MAX_DELTA_D

    def __post_init__(self) -> None:
        for name in ("mint_fee", "swap_fee", "redeem_fee"):
            validate_fee(name, getattr(self, name))
        for name in ("off_peg_fee_multiplier", "fee_error_margin", "yield_error_margin", "max_delta_d"):
            if getattr(self, name) < 0:
                raise InvalidParameter(f"{name} must be non-negative, got {getattr(self, name)}")


def validate_fee(name: str, fee: int) -> None:
    """Raise InvalidFee unless fee is in [0, FEE_DENOMINATOR)."""
    if fee < 0 or fee >= FEE_DENOMINATOR:
        raise InvalidFee(f"{name} must be in range [0, {FEE_DENOMINATOR}), got {fee}")


# Default configuration instance (zero fees, default margins)
DEFAULT_POOL_CONFIG = PoolConfig()
