"""Quote endpoints over a directory of pools.

Every endpoint is read-only: it calls a pool view and never settles.
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, HTTPException

from stableswap.api.models import (
    MintQuoteRequest,
    MintQuoteResponse,
    PoolInfo,
    RedeemMultiQuoteRequest,
    RedeemMultiQuoteResponse,
    RedeemProportionQuoteRequest,
    RedeemProportionQuoteResponse,
    RedeemSingleQuoteRequest,
    RedeemSingleQuoteResponse,
    SwapQuoteRequest,
    SwapQuoteResponse,
)
from stableswap.pool.pool import StableSwapPool

logger = structlog.get_logger()

router = APIRouter()


class PoolDirectory:
    """Pools served by the API, keyed by pool id."""

    def __init__(self, pools: dict[str, StableSwapPool] | None = None) -> None:
        self._pools: dict[str, StableSwapPool] = dict(pools or {})

    def register(self, pool_id: str, pool: StableSwapPool) -> None:
        self._pools[pool_id] = pool

    def get(self, pool_id: str) -> StableSwapPool | None:
        return self._pools.get(pool_id)

    def __len__(self) -> int:
        return len(self._pools)


_default_directory = PoolDirectory()


def get_pool_directory() -> PoolDirectory:
    """Dependency provider for the pool directory.

    Override this in tests to serve prepared pools:
        app.dependency_overrides[get_pool_directory] = lambda: directory
    """
    return _default_directory


def _lookup(directory: PoolDirectory, pool_id: str) -> StableSwapPool:
    pool = directory.get(pool_id)
    if pool is None:
        raise HTTPException(status_code=404, detail=f"Unknown pool: {pool_id}")
    return pool


@router.get("/pools/{pool_id}")
def get_pool(pool_id: str, directory: PoolDirectory = Depends(get_pool_directory)) -> PoolInfo:
    pool = _lookup(directory, pool_id)
    return PoolInfo(
        address=pool.address,
        tokens=list(pool.tokens),
        precisions=[str(p) for p in pool.precisions],
        balances=[str(b) for b in pool.balances],
        total_supply=str(pool.total_supply),
        a=str(pool.get_a()),
        mint_fee=str(pool.mint_fee),
        swap_fee=str(pool.swap_fee),
        redeem_fee=str(pool.redeem_fee),
        off_peg_fee_multiplier=str(pool.off_peg_fee_multiplier),
        paused=pool.paused,
    )


@router.post("/pools/{pool_id}/quote/mint")
def quote_mint(
    pool_id: str,
    request: MintQuoteRequest,
    directory: PoolDirectory = Depends(get_pool_directory),
) -> MintQuoteResponse:
    pool = _lookup(directory, pool_id)
    mint_amount, fee = pool.get_mint_amount([int(a) for a in request.amounts])
    logger.info("quote_mint", pool_id=pool_id, mint_amount=mint_amount, fee=fee)
    return MintQuoteResponse(mint_amount=str(mint_amount), fee=str(fee))


@router.post("/pools/{pool_id}/quote/swap")
def quote_swap(
    pool_id: str,
    request: SwapQuoteRequest,
    directory: PoolDirectory = Depends(get_pool_directory),
) -> SwapQuoteResponse:
    pool = _lookup(directory, pool_id)
    amount_out, fee = pool.get_swap_amount(request.token_in, request.token_out, int(request.amount_in))
    logger.info(
        "quote_swap",
        pool_id=pool_id,
        token_in=request.token_in,
        token_out=request.token_out,
        amount_out=amount_out,
        fee=fee,
    )
    return SwapQuoteResponse(amount_out=str(amount_out), fee=str(fee))


@router.post("/pools/{pool_id}/quote/redeem-proportion")
def quote_redeem_proportion(
    pool_id: str,
    request: RedeemProportionQuoteRequest,
    directory: PoolDirectory = Depends(get_pool_directory),
) -> RedeemProportionQuoteResponse:
    pool = _lookup(directory, pool_id)
    amounts, fee = pool.get_redeem_proportion_amount(int(request.amount))
    logger.info("quote_redeem_proportion", pool_id=pool_id, amounts=amounts, fee=fee)
    return RedeemProportionQuoteResponse(amounts=[str(a) for a in amounts], fee=str(fee))


@router.post("/pools/{pool_id}/quote/redeem-single")
def quote_redeem_single(
    pool_id: str,
    request: RedeemSingleQuoteRequest,
    directory: PoolDirectory = Depends(get_pool_directory),
) -> RedeemSingleQuoteResponse:
    pool = _lookup(directory, pool_id)
    amount_out, fee = pool.get_redeem_single_amount(int(request.amount), request.token_out)
    logger.info("quote_redeem_single", pool_id=pool_id, amount_out=amount_out, fee=fee)
    return RedeemSingleQuoteResponse(amount_out=str(amount_out), fee=str(fee))


@router.post("/pools/{pool_id}/quote/redeem-multi")
def quote_redeem_multi(
    pool_id: str,
    request: RedeemMultiQuoteRequest,
    directory: PoolDirectory = Depends(get_pool_directory),
) -> RedeemMultiQuoteResponse:
    pool = _lookup(directory, pool_id)
    redeem_amount, fee = pool.get_redeem_multi_amount([int(a) for a in request.amounts])
    logger.info("quote_redeem_multi", pool_id=pool_id, redeem_amount=redeem_amount, fee=fee)
    return RedeemMultiQuoteResponse(redeem_amount=str(redeem_amount), fee=str(fee))
