"""Tests for the three redemption paths."""

import pytest

from stableswap.constants import FEE_DENOMINATOR, NUMBER_OF_DEAD_SHARES, ONE
from stableswap.errors import (
    InsufficientBalance,
    InsufficientRedeemAmount,
    InvalidAmount,
    LengthMismatch,
    MaxRedeemAmount,
)
from stableswap.math import compute_d
from stableswap.pool import PoolConfig
from tests.helpers import ALICE, BOB, INITIAL_FUNDS, POOL, TOKEN_A, TOKEN_B, MutableRateProvider, make_pool


@pytest.fixture
def fee_pool(clock):
    """Seeded pool charging a 1% redeem fee."""
    pool = make_pool(clock, config=PoolConfig(redeem_fee=FEE_DENOMINATOR // 100))
    pool.mint(ALICE, [1000 * ONE, 1000 * ONE], 0)
    return pool


class TestRedeemProportion:
    """Tests for proportional redemption."""

    def test_pays_pro_rata(self, seeded_pool):
        """Each asset is paid in proportion to the claim burned."""
        result = seeded_pool.redeem_proportion(ALICE, 200 * ONE, [0, 0])

        assert result.amounts == (100 * ONE, 100 * ONE)
        assert result.fee == 0
        assert seeded_pool.total_supply == 1800 * ONE
        assert seeded_pool.balances == [900 * ONE, 900 * ONE]
        assert seeded_pool.ledger.balance_of(ALICE) == 1800 * ONE - NUMBER_OF_DEAD_SHARES
        assert seeded_pool.bank.balance_of(TOKEN_A, ALICE) == INITIAL_FUNDS - 900 * ONE

    def test_fee_stays_with_holders(self, fee_pool):
        """The redeem fee is withheld from the payout and credited back to supply."""
        result = fee_pool.redeem_proportion(ALICE, 200 * ONE, [0, 0])

        assert result.fee == 2 * ONE
        assert result.amounts == (99 * ONE, 99 * ONE)
        assert fee_pool.total_supply == 1802 * ONE
        assert fee_pool.ledger.total_supply == 1802 * ONE

    def test_quote_matches_settlement(self, fee_pool):
        """get_redeem_proportion_amount predicts the payout."""
        quoted, quoted_fee = fee_pool.get_redeem_proportion_amount(123 * ONE)
        result = fee_pool.redeem_proportion(ALICE, 123 * ONE, quoted)

        assert list(result.amounts) == quoted
        assert result.fee == quoted_fee

    def test_min_amounts_enforced(self, seeded_pool):
        """The failing asset index is reported."""
        with pytest.raises(InsufficientRedeemAmount) as exc_info:
            seeded_pool.redeem_proportion(ALICE, 200 * ONE, [0, 100 * ONE + 1])

        assert exc_info.value.index == 1
        assert seeded_pool.total_supply == 2000 * ONE

    def test_min_amounts_length(self, seeded_pool):
        """min_amounts must have one entry per asset."""
        with pytest.raises(LengthMismatch):
            seeded_pool.redeem_proportion(ALICE, ONE, [0])

    def test_redeem_above_claim_balance(self, seeded_pool):
        """Callers cannot burn claim token they do not hold."""
        with pytest.raises(InsufficientBalance):
            seeded_pool.redeem_proportion(BOB, ONE, [0, 0])
        assert seeded_pool.bank.balance_of(TOKEN_A, BOB) == INITIAL_FUNDS

    def test_invalid_amounts(self, seeded_pool):
        """Zero and above-supply amounts are rejected."""
        with pytest.raises(InvalidAmount):
            seeded_pool.redeem_proportion(ALICE, 0, [0, 0])
        with pytest.raises(InvalidAmount):
            seeded_pool.redeem_proportion(ALICE, 2000 * ONE + 1, [0, 0])


class TestRedeemSingle:
    """Tests for single-asset redemption."""

    def test_pays_one_asset(self, seeded_pool):
        """Only the requested asset is paid; D drops by the amount burned."""
        result = seeded_pool.redeem_single(ALICE, 100 * ONE, 0, 0)

        assert 99 * ONE < result.amounts[0] < 100 * ONE
        assert result.amounts[1] == 0
        assert seeded_pool.total_supply == 1900 * ONE
        assert seeded_pool.bank.balance_of(TOKEN_B, ALICE) == INITIAL_FUNDS - 1000 * ONE

    def test_quote_matches_settlement(self, fee_pool):
        """get_redeem_single_amount predicts the payout."""
        quoted, quoted_fee = fee_pool.get_redeem_single_amount(50 * ONE, 1)
        result = fee_pool.redeem_single(ALICE, 50 * ONE, 1, quoted)

        assert result.amounts[1] == quoted
        assert result.fee == quoted_fee == ONE // 2

    def test_min_redeem_amount_enforced(self, seeded_pool):
        """InsufficientRedeemAmount reports the asset index."""
        with pytest.raises(InsufficientRedeemAmount) as exc_info:
            seeded_pool.redeem_single(ALICE, 100 * ONE, 1, 100 * ONE)
        assert exc_info.value.index == 1

    def test_cannot_drain_whole_pool(self, seeded_pool):
        """Redeeming all of D into one asset has no solution."""
        with pytest.raises(InvalidAmount):
            seeded_pool.get_redeem_single_amount(2000 * ONE, 0)


class TestRedeemMulti:
    """Tests for exact-output redemption."""

    def test_burns_invariant_decrease(self, seeded_pool):
        """The claim burned equals the drop in D for exact outputs."""
        result = seeded_pool.redeem_multi(ALICE, [100 * ONE, 50 * ONE], 151 * ONE)

        assert result.amounts == (100 * ONE, 50 * ONE)
        assert 150 * ONE < result.amount < 151 * ONE
        assert seeded_pool.total_supply == 2000 * ONE - result.amount
        assert seeded_pool.total_supply == compute_d(seeded_pool.balances, 100)

    def test_fee_grossed_up(self, fee_pool):
        """The fee is charged on top of the invariant decrease."""
        quoted, quoted_fee = fee_pool.get_redeem_multi_amount([100 * ONE, 100 * ONE])
        redeem = quoted - quoted_fee

        assert redeem == 200 * ONE
        assert quoted_fee == redeem * (FEE_DENOMINATOR // 100) // (FEE_DENOMINATOR - FEE_DENOMINATOR // 100)

        fee_pool.redeem_multi(ALICE, [100 * ONE, 100 * ONE], quoted)
        assert fee_pool.total_supply == 1800 * ONE
        assert fee_pool.ledger.total_supply == 1800 * ONE

    def test_max_redeem_amount_enforced(self, seeded_pool):
        """MaxRedeemAmount reports the claim that would have been burned."""
        with pytest.raises(MaxRedeemAmount) as exc_info:
            seeded_pool.redeem_multi(ALICE, [100 * ONE, 50 * ONE], 150 * ONE)

        assert exc_info.value.actual > 150 * ONE
        assert exc_info.value.limit == 150 * ONE
        assert seeded_pool.balances == [1000 * ONE, 1000 * ONE]

    def test_more_than_pool_holds(self, seeded_pool):
        """Requesting more than the pool's balance is rejected."""
        with pytest.raises(InvalidAmount):
            seeded_pool.get_redeem_multi_amount([1001 * ONE, 0])

    def test_all_zero_amounts(self, seeded_pool):
        """At least one output must be requested."""
        with pytest.raises(InvalidAmount):
            seeded_pool.get_redeem_multi_amount([0, 0])

    def test_withdrawals_round_against_caller(self, clock, bank):
        """Exact outputs at a non-unit rate never leave holdings below tracked balances."""
        rate = MutableRateProvider(ONE + 123_000_000)
        pool = make_pool(clock, bank, providers=[rate, None])
        pool.mint(ALICE, [1000 * ONE, 1000 * ONE], 0)

        first = pool.redeem_multi(ALICE, [3, 0], ONE)
        assert first.normalized_amounts == (4, 0)

        for _ in range(300):
            pool.redeem_multi(ALICE, [3, 0], ONE)

        holdings = [rate.rate().normalize(bank.balance_of(TOKEN_A, POOL), 1), bank.balance_of(TOKEN_B, POOL)]
        assert holdings[0] >= pool.balances[0]
        assert compute_d(holdings, 100) >= pool.total_supply
        assert pool.get_pending_yield() == 0
