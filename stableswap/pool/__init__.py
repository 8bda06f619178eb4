"""Pool settlement: the StableSwap pool, its asset custody and result records.

Usage:
    from stableswap.pool import StableSwapPool, InMemoryAssetBank

    result = pool.mint(caller, [1000 * 10**18, 1000 * 10**18], min_mint_amount=0)
    out, fee = pool.get_swap_amount(0, 1, 10**18)
"""

from stableswap.pool.assets import AssetBank, InMemoryAssetBank
from stableswap.pool.config import DEFAULT_POOL_CONFIG, PoolConfig, validate_fee
from stableswap.pool.pool import StableSwapPool
from stableswap.pool.results import DonateResult, LossResult, MintResult, RedeemResult, SwapResult

__all__ = [
    "DEFAULT_POOL_CONFIG",
    "AssetBank",
    "DonateResult",
    "InMemoryAssetBank",
    "LossResult",
    "MintResult",
    "PoolConfig",
    "RedeemResult",
    "StableSwapPool",
    "SwapResult",
    "validate_fee",
]
