"""Pytest configuration and fixtures."""

import pytest

from stableswap.clock import ManualClock
from stableswap.constants import ONE
from stableswap.pool.assets import InMemoryAssetBank
from stableswap.pool.pool import StableSwapPool
from tests.helpers import ALICE, make_pool


@pytest.fixture
def clock() -> ManualClock:
    """Manually driven clock starting at a fixed timestamp."""
    return ManualClock()


@pytest.fixture
def bank() -> InMemoryAssetBank:
    """Empty in-memory asset bank."""
    return InMemoryAssetBank()


@pytest.fixture
def pool(clock: ManualClock, bank: InMemoryAssetBank) -> StableSwapPool:
    """Empty two-asset pool, A = 100, zero fees, ALICE and BOB funded."""
    return make_pool(clock, bank)


@pytest.fixture
def seeded_pool(pool: StableSwapPool) -> StableSwapPool:
    """Two-asset pool after ALICE deposited 1000 of each asset."""
    pool.mint(ALICE, [1000 * ONE, 1000 * ONE], 0)
    return pool
