"""Test helpers module for shared test utilities.

- constants: Token and account addresses, common amounts
- factories: Pool, ledger and rate provider factories
"""

from tests.helpers.constants import (
    ADMIN,
    ALICE,
    BOB,
    CAROL,
    CURATOR,
    GOVERNOR,
    GUARDIAN,
    INITIAL_FUNDS,
    LEDGER,
    POOL,
    TOKEN_A,
    TOKEN_B,
    TOKEN_C,
    TOKENS,
    WRAPPER,
)
from tests.helpers.factories import MutableRateProvider, fund, make_ledger, make_pool

__all__ = [
    # Constants
    "ADMIN",
    "ALICE",
    "BOB",
    "CAROL",
    "CURATOR",
    "GOVERNOR",
    "GUARDIAN",
    "INITIAL_FUNDS",
    "LEDGER",
    "POOL",
    "TOKEN_A",
    "TOKEN_B",
    "TOKEN_C",
    "TOKENS",
    "WRAPPER",
    # Factories
    "MutableRateProvider",
    "fund",
    "make_ledger",
    "make_pool",
]
