"""Exchange rates backed by external feeds.

Two adapters are provided:
- OracleExchangeRateProvider: a price feed reporting (answer, updated_at),
  checked for freshness against the clock
- VaultExchangeRateProvider: a tokenized vault whose share price is read
  through convert_to_assets
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Protocol

import structlog

from stableswap.clock import Clock
from stableswap.constants import DEFAULT_MAX_STALE_PERIOD
from stableswap.errors import InvalidParameter, InvalidRate, StalePrice
from stableswap.rates.base import RateQuote

logger = structlog.get_logger()

# Feed callable: returns (answer, updated_at_timestamp)
FeedReader = Callable[[], tuple[int, int]]


class OracleExchangeRateProvider:
    """Exchange rate read from a push-style price feed.

    The feed's answer is only trusted while it is younger than
    max_stale_period seconds. An older answer raises StalePrice; the provider
    never falls back to a cached value.
    """

    def __init__(
        self,
        feed: FeedReader,
        decimals: int,
        clock: Clock,
        max_stale_period: int = DEFAULT_MAX_STALE_PERIOD,
    ) -> None:
        if max_stale_period <= 0:
            raise InvalidParameter(f"max_stale_period must be positive, got {max_stale_period}")
        self._feed = feed
        self._decimals = decimals
        self._clock = clock
        self.max_stale_period = max_stale_period

    def rate(self) -> RateQuote:
        answer, updated_at = self._feed()
        now = self._clock.now()
        if updated_at > now or now - updated_at > self.max_stale_period:
            logger.warning(
                "stale_exchange_rate",
                updated_at=updated_at,
                now=now,
                max_stale_period=self.max_stale_period,
            )
            raise StalePrice(updated_at, now, self.max_stale_period)
        if answer <= 0:
            raise InvalidRate(f"Feed returned non-positive answer {answer}")
        return RateQuote(value=answer, decimals=self._decimals)


class TokenizedVault(Protocol):
    """Minimal view of a yield-bearing vault share."""

    def convert_to_assets(self, shares: int) -> int: ...


class VaultExchangeRateProvider:
    """Exchange rate equal to the assets one whole vault share redeems for."""

    def __init__(self, vault: TokenizedVault, decimals: int = 18) -> None:
        self._vault = vault
        self._decimals = decimals

    def rate(self) -> RateQuote:
        assets = self._vault.convert_to_assets(10**self._decimals)
        if assets <= 0:
            raise InvalidRate(f"Vault reported non-positive share price {assets}")
        return RateQuote(value=assets, decimals=self._decimals)
