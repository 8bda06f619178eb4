"""Claim-token accounting: the rebasing share ledger and its wrapper."""

from stableswap.ledger.share_ledger import ShareLedger
from stableswap.ledger.wrapped import WrappedShareToken

__all__ = ["ShareLedger", "WrappedShareToken"]
