"""Exchange-rate sources for yield-bearing pool assets."""

from stableswap.rates.base import ExchangeRateProvider, RateQuote
from stableswap.rates.constant import (
    CONSTANT_RATE_PROVIDER,
    IDENTITY_RATE,
    ConstantExchangeRateProvider,
)
from stableswap.rates.oracle import (
    OracleExchangeRateProvider,
    TokenizedVault,
    VaultExchangeRateProvider,
)

__all__ = [
    "ExchangeRateProvider",
    "RateQuote",
    "ConstantExchangeRateProvider",
    "CONSTANT_RATE_PROVIDER",
    "IDENTITY_RATE",
    "OracleExchangeRateProvider",
    "TokenizedVault",
    "VaultExchangeRateProvider",
]
