"""Exchange-rate source interface.

A pool asset that accrues yield (a staked or wrapped token) is worth a
growing amount of the reference unit. Providers report that worth as a
fixed-point rate with its own decimal precision.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from stableswap.errors import InvalidRate
from stableswap.safe_int import S, mul_div_up


@dataclass(frozen=True)
class RateQuote:
    """Rate of one token in reference units.

    Attributes:
        value: Fixed-point rate (value / 10**decimals reference units per token)
        decimals: Decimal precision of value
    """

    value: int
    decimals: int

    def __post_init__(self) -> None:
        if self.value <= 0:
            raise InvalidRate(f"Exchange rate must be positive, got {self.value}")
        if self.decimals < 0:
            raise InvalidRate(f"Exchange rate decimals must be non-negative, got {self.decimals}")

    def normalize(self, raw_amount: int, precision: int) -> int:
        """Convert a raw token amount into normalized reference units (round down)."""
        return (S(raw_amount) * self.value * precision // 10**self.decimals).value

    def normalize_up(self, raw_amount: int, precision: int) -> int:
        """Convert a raw token amount into normalized reference units (round up)."""
        return mul_div_up(raw_amount * precision, self.value, 10**self.decimals)

    def denormalize(self, normalized_amount: int, precision: int) -> int:
        """Convert normalized reference units back into raw token units (round down)."""
        return (S(normalized_amount) * 10**self.decimals // (S(self.value) * precision)).value


@runtime_checkable
class ExchangeRateProvider(Protocol):
    """Read-only source of a token's exchange rate.

    Implementations must raise (e.g. StalePrice) rather than return a value
    they cannot vouch for.
    """

    def rate(self) -> RateQuote: ...
