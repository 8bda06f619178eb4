"""Shared account and token constants for tests.

All addresses are lowercase for consistency with normalize_address().

Usage:
    from tests.helpers import ALICE, TOKEN_A
    # or
    from tests.helpers.constants import ALICE, TOKEN_A
"""

from stableswap.constants import ONE

# =============================================================================
# Pool assets
# =============================================================================

TOKEN_A = "0x1111111111111111111111111111111111111111"  # 18 decimals
TOKEN_B = "0x2222222222222222222222222222222222222222"  # 18 decimals
TOKEN_C = "0x3333333333333333333333333333333333333333"  # 6 decimals in mixed pools

TOKENS = [TOKEN_A, TOKEN_B, TOKEN_C]

# =============================================================================
# Accounts
# =============================================================================

GOVERNOR = "0x00000000000000000000000000000000000000a0"
ADMIN = "0x00000000000000000000000000000000000000a1"
CURATOR = "0x00000000000000000000000000000000000000a2"
GUARDIAN = "0x00000000000000000000000000000000000000a3"
ALICE = "0x00000000000000000000000000000000000000b1"
BOB = "0x00000000000000000000000000000000000000b2"
CAROL = "0x00000000000000000000000000000000000000b3"

POOL = "0x00000000000000000000000000000000000000c1"
LEDGER = "0x00000000000000000000000000000000000000c2"
WRAPPER = "0x00000000000000000000000000000000000000c3"

# =============================================================================
# Common amounts
# =============================================================================

INITIAL_FUNDS = 1_000_000 * ONE
