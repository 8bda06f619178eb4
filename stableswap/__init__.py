"""StableSwap engine: invariant-priced multi-asset pools with a rebasing claim token."""

from stableswap.factory import CreatePoolArgs, PoolDeployment, PoolFactory
from stableswap.ledger import ShareLedger, WrappedShareToken
from stableswap.pool import StableSwapPool

__version__ = "0.1.0"
__all__ = [
    "CreatePoolArgs",
    "PoolDeployment",
    "PoolFactory",
    "ShareLedger",
    "StableSwapPool",
    "WrappedShareToken",
    "__version__",
]
