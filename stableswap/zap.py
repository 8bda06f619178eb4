"""Zap: single-call entry and exit through a pool and its wrapped token.

The zap holds no funds between calls. It acts on the caller's behalf and
lets every pool or ledger error propagate unchanged.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

import structlog

from stableswap.errors import InsufficientRedeemAmount, PoolPaused
from stableswap.ledger.wrapped import WrappedShareToken
from stableswap.pool.pool import StableSwapPool
from stableswap.pool.results import MintResult, RedeemResult, SwapResult

logger = structlog.get_logger()


@dataclass(frozen=True)
class ZapInResult:
    """Mint outcome plus the wrapped units credited (0 when not wrapping)."""

    mint: MintResult
    wrapped: int


class Zap:
    """Router over one pool and its wrapped claim token."""

    def __init__(self, pool: StableSwapPool, wrapped_token: WrappedShareToken) -> None:
        self.pool = pool
        self.wrapped_token = wrapped_token

    @property
    def pool_token(self) -> str:
        """Address of the pool's claim-token ledger."""
        return self.pool.ledger.address

    def get_tokens(self) -> tuple[str, ...]:
        return self.pool.get_tokens()

    def zap_in(
        self, caller: str, amounts: Sequence[int], min_mint_amount: int, wrap: bool = False
    ) -> ZapInResult:
        """Mint claim token and optionally wrap exactly the shares minted."""
        shares_before = self.pool.ledger.shares_of(caller)
        result = self.pool.mint(caller, amounts, min_mint_amount)
        wrapped = 0
        if wrap:
            wrapped = self.pool.ledger.shares_of(caller) - shares_before
            self.wrapped_token.wrap_shares(caller, wrapped)
        logger.info("zap_in", account=caller, mint_amount=result.mint_amount, wrapped=wrapped)
        return ZapInResult(mint=result, wrapped=wrapped)

    def zap_out(self, caller: str, wrapped: int, min_amounts: Sequence[int]) -> RedeemResult:
        """Unwrap wrapped units and redeem the released claim token proportionally.

        The redemption is quoted before unwrapping so that a slippage failure
        leaves the caller's wrapped balance in place.
        """
        if self.pool.paused:
            raise PoolPaused(f"Pool {self.pool.address} is paused")
        quoted, _ = self.pool.get_redeem_proportion_amount(self.wrapped_token.convert_to_assets(wrapped))
        for index, (paid, minimum) in enumerate(zip(quoted, min_amounts, strict=True)):
            if paid < minimum:
                raise InsufficientRedeemAmount(paid, minimum, index=index)

        amount = self.wrapped_token.unwrap(caller, wrapped)
        result = self.pool.redeem_proportion(caller, amount, min_amounts)
        logger.info("zap_out", account=caller, wrapped=wrapped, amount=amount)
        return result

    def swap(self, caller: str, i: int, j: int, dx: int, min_dy: int) -> SwapResult:
        return self.pool.swap(caller, i, j, dx, min_dy)

    def redeem_single(self, caller: str, amount: int, i: int, min_redeem_amount: int) -> RedeemResult:
        return self.pool.redeem_single(caller, amount, i, min_redeem_amount)

    def redeem_multi(
        self, caller: str, amounts: Sequence[int], max_redeem_amount: int
    ) -> RedeemResult:
        return self.pool.redeem_multi(caller, amounts, max_redeem_amount)
