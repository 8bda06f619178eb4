"""Identity exchange rate for assets that do not accrue yield."""

from stableswap.constants import ONE, PRECISION_DECIMALS
from stableswap.rates.base import RateQuote

IDENTITY_RATE = RateQuote(value=ONE, decimals=PRECISION_DECIMALS)


class ConstantExchangeRateProvider:
    """Provider returning a fixed rate (1.0 by default)."""

    def __init__(self, quote: RateQuote = IDENTITY_RATE) -> None:
        self._quote = quote

    def rate(self) -> RateQuote:
        return self._quote


# Shared instance for non-yield-bearing assets
CONSTANT_RATE_PROVIDER = ConstantExchangeRateProvider()
