"""Tests for the rebasing share ledger."""

import pytest

from stableswap.constants import (
    BUFFER_DENOMINATOR,
    DEAD_ACCOUNT,
    NUMBER_OF_DEAD_SHARES,
    ZERO_ACCOUNT,
)
from stableswap.errors import (
    InsufficientAllowance,
    InsufficientBalance,
    InsufficientBuffer,
    InvalidAccount,
    InvalidAmount,
    InvalidParameter,
    NoPool,
    NotGovernor,
)
from stableswap.ledger import ShareLedger
from stableswap.safe_int import UINT256_MAX
from tests.helpers import ALICE, BOB, CAROL, GOVERNOR, LEDGER, POOL, make_ledger


@pytest.fixture
def ledger() -> ShareLedger:
    """Ledger after a first mint of 10_000 to ALICE (9_000 after dead shares)."""
    ledger = make_ledger()
    ledger.mint_shares(POOL, ALICE, 10_000)
    return ledger


class TestMinting:
    """Tests for pool-side minting."""

    def test_first_mint_reserves_dead_shares(self):
        """The first mint assigns NUMBER_OF_DEAD_SHARES to the dead account."""
        ledger = make_ledger()
        shares = ledger.mint_shares(POOL, ALICE, 10_000)

        assert shares == 10_000 - NUMBER_OF_DEAD_SHARES
        assert ledger.shares_of(DEAD_ACCOUNT) == NUMBER_OF_DEAD_SHARES
        assert ledger.total_shares == 10_000
        assert ledger.total_supply == 10_000
        assert ledger.balance_of(ALICE) == 9_000

    def test_first_mint_must_exceed_dead_shares(self):
        """A first mint no larger than the dead shares is rejected."""
        ledger = make_ledger()
        with pytest.raises(InvalidAmount):
            ledger.mint_shares(POOL, ALICE, NUMBER_OF_DEAD_SHARES)
        assert ledger.total_shares == 0

    def test_later_mint_uses_current_price(self, ledger):
        """After a rebase, new shares are priced at total_supply / total_shares."""
        ledger.add_total_supply(POOL, 10_000)  # price 2.0
        shares = ledger.mint_shares(POOL, BOB, 2_000)

        assert shares == 1_000
        assert ledger.balance_of(BOB) == 2_000

    def test_only_pools_can_mint(self, ledger):
        """Non-pool callers get NoPool."""
        with pytest.raises(NoPool):
            ledger.mint_shares(ALICE, ALICE, 1_000)

    def test_cannot_mint_to_reserved_accounts(self, ledger):
        """Zero and dead accounts cannot receive claim tokens."""
        for account in (ZERO_ACCOUNT, DEAD_ACCOUNT):
            with pytest.raises(InvalidAccount):
                ledger.mint_shares(POOL, account, 1_000)


class TestBurning:
    """Tests for pool-side and holder-side burning."""

    def test_burn_full_balance_burns_all_shares(self, ledger):
        """Burning exactly the balance removes every share of the holder."""
        shares = ledger.burn_shares_from(POOL, ALICE, 9_000)

        assert shares == 9_000
        assert ledger.shares_of(ALICE) == 0
        assert ledger.total_shares == NUMBER_OF_DEAD_SHARES
        assert ledger.total_supply == 1_000

    def test_partial_burn_rounds_shares_up(self, ledger):
        """Partial burns never leave the holder better off."""
        ledger.add_total_supply(POOL, 5_000)  # price 1.5, ALICE worth 13_500
        shares = ledger.burn_shares_from(POOL, ALICE, 1_000)

        assert shares == 667
        assert ledger.total_supply == 14_000
        assert ledger.balance_of(ALICE) <= 12_500

    def test_burn_more_than_balance_raises(self, ledger):
        """Burning above the balance is rejected without changes."""
        with pytest.raises(InsufficientBalance):
            ledger.burn_shares_from(POOL, ALICE, 9_001)
        assert ledger.total_supply == 10_000

    def test_holder_burn_redistributes_value(self, ledger):
        """A holder burning its own shares leaves total_supply to the others."""
        ledger.transfer(ALICE, BOB, 3_000)
        ledger.burn_shares(BOB, 3_000)

        assert ledger.total_supply == 10_000
        assert ledger.total_shares == 7_000
        assert ledger.balance_of(ALICE) == 6_000 * 10_000 // 7_000

    def test_holder_burn_above_shares_raises(self, ledger):
        """Holders cannot burn shares they do not own."""
        with pytest.raises(InsufficientBalance):
            ledger.burn_shares(BOB, 1)


class TestRebase:
    """Tests for positive and negative rebases, buffer and bad debt."""

    @pytest.fixture
    def buffered(self) -> ShareLedger:
        """Ledger keeping 10% of each positive rebase in the buffer."""
        ledger = make_ledger(buffer_percent=BUFFER_DENOMINATOR // 10)
        ledger.mint_shares(POOL, ALICE, 10_000)
        return ledger

    def test_add_total_supply_grows_balances(self, ledger):
        """Positive rebase raises every holder's balance pro rata."""
        ledger.add_total_supply(POOL, 10_000)

        assert ledger.balance_of(ALICE) == 18_000
        assert ledger.total_rewards == 10_000

    def test_buffer_takes_its_share(self, buffered):
        """buffer_percent of a positive rebase goes to the buffer."""
        buffered.add_total_supply(POOL, 1_000)

        assert buffered.buffer_amount == 100
        assert buffered.total_supply == 10_900
        assert buffered.total_rewards == 900

    def test_loss_beyond_buffer_becomes_bad_debt(self, buffered):
        """with_debt records the uncovered loss instead of cutting holders."""
        buffered.add_total_supply(POOL, 1_000)
        buffered.remove_total_supply(POOL, 300, is_buffer=True, with_debt=True)

        assert buffered.buffer_amount == 0
        assert buffered.buffer_bad_debt == 200
        assert buffered.total_supply == 10_900

    def test_bad_debt_repaid_first(self, buffered):
        """Later positive rebases repay bad debt before anything else."""
        buffered.add_total_supply(POOL, 1_000)
        buffered.remove_total_supply(POOL, 300, is_buffer=True, with_debt=True)

        expected_growth = buffered.preview_holder_growth(500)
        buffered.add_total_supply(POOL, 500)

        assert expected_growth == 270
        assert buffered.buffer_bad_debt == 0
        assert buffered.buffer_amount == 30
        assert buffered.total_supply == 10_900 + 270

    def test_add_buffer_repays_bad_debt(self, buffered):
        """Donations to the buffer also repay bad debt first."""
        buffered.remove_total_supply(POOL, 200, is_buffer=True, with_debt=True)
        buffered.add_buffer(POOL, 50)

        assert buffered.buffer_bad_debt == 150
        assert buffered.buffer_amount == 0

    def test_buffer_draw_without_debt_raises(self, buffered):
        """Drawing more than the buffer without with_debt is rejected."""
        with pytest.raises(InsufficientBuffer):
            buffered.remove_total_supply(POOL, 1, is_buffer=True)

    def test_holder_loss(self, ledger):
        """A non-buffer loss cuts total_supply and every balance."""
        ledger.remove_total_supply(POOL, 5_000, is_buffer=False)

        assert ledger.total_supply == 5_000
        assert ledger.balance_of(ALICE) == 4_500

    def test_holder_loss_above_supply_raises(self, ledger):
        """A loss larger than total_supply is rejected."""
        with pytest.raises(InsufficientBalance):
            ledger.remove_total_supply(POOL, 10_001, is_buffer=False)


class TestTransfers:
    """Tests for holder transfers and allowances."""

    def test_transfer_partial_amount(self, ledger):
        """Partial transfers move shares at the current price."""
        shares = ledger.transfer(ALICE, BOB, 3_000)

        assert shares == 3_000
        assert ledger.balance_of(BOB) == 3_000
        assert ledger.balance_of(ALICE) == 6_000

    def test_transfer_full_balance_moves_all_shares(self, ledger):
        """Transferring the full balance leaves no share dust behind."""
        ledger.add_total_supply(POOL, 1)
        ledger.transfer(ALICE, BOB, ledger.balance_of(ALICE))

        assert ledger.shares_of(ALICE) == 0
        assert ledger.shares_of(BOB) == 9_000

    def test_transfer_shares_returns_value(self, ledger):
        """transfer_shares reports the claim-token value moved."""
        ledger.add_total_supply(POOL, 10_000)
        assert ledger.transfer_shares(ALICE, BOB, 1_000) == 2_000

    def test_reserved_recipients_rejected(self, ledger):
        """Zero, dead and ledger accounts cannot receive transfers."""
        for recipient in (ZERO_ACCOUNT, DEAD_ACCOUNT, LEDGER):
            with pytest.raises(InvalidAccount):
                ledger.transfer(ALICE, recipient, 1_000)

    def test_transfer_above_balance_raises(self, ledger):
        """Sending more than the balance is rejected."""
        with pytest.raises(InsufficientBalance):
            ledger.transfer(BOB, ALICE, 1)

    def test_transfer_from_spends_allowance(self, ledger):
        """transfer_from consumes the allowance in claim-token terms."""
        ledger.approve(ALICE, BOB, 5_000)
        ledger.transfer_from(BOB, ALICE, CAROL, 2_000)

        assert ledger.allowance(ALICE, BOB) == 3_000
        assert ledger.balance_of(CAROL) == 2_000

    def test_infinite_allowance_not_spent(self, ledger):
        """An allowance of UINT256_MAX never decreases."""
        ledger.approve(ALICE, BOB, UINT256_MAX)
        ledger.transfer_shares_from(BOB, ALICE, CAROL, 1_000)

        assert ledger.allowance(ALICE, BOB) == UINT256_MAX

    def test_transfer_from_without_allowance_raises(self, ledger):
        """Missing allowance is rejected without moving shares."""
        with pytest.raises(InsufficientAllowance):
            ledger.transfer_from(BOB, ALICE, CAROL, 1)
        assert ledger.shares_of(ALICE) == 9_000

    def test_allowance_adjustments(self, ledger):
        """increase/decrease_allowance adjust and bound the allowance."""
        ledger.increase_allowance(ALICE, BOB, 100)
        ledger.increase_allowance(ALICE, BOB, 50)
        assert ledger.decrease_allowance(ALICE, BOB, 120) == 30
        with pytest.raises(InsufficientAllowance):
            ledger.decrease_allowance(ALICE, BOB, 31)


class TestGovernance:
    """Tests for governor-only ledger operations."""

    def test_add_pool_requires_governor(self, ledger):
        """Only the governor can register pools."""
        with pytest.raises(NotGovernor):
            ledger.add_pool(ALICE, BOB)
        ledger.add_pool(GOVERNOR, BOB)
        assert ledger.is_pool(BOB)

    def test_remove_unknown_pool_raises(self, ledger):
        """Removing a pool that was never added is rejected."""
        with pytest.raises(NoPool):
            ledger.remove_pool(GOVERNOR, BOB)
        ledger.remove_pool(GOVERNOR, POOL)
        assert ledger.pools == frozenset()

    def test_buffer_percent_bounds(self, ledger):
        """buffer_percent must stay within [0, BUFFER_DENOMINATOR]."""
        with pytest.raises(InvalidParameter):
            ledger.set_buffer_percent(GOVERNOR, BUFFER_DENOMINATOR + 1)
        ledger.set_buffer_percent(GOVERNOR, BUFFER_DENOMINATOR)
        assert ledger.buffer_percent == BUFFER_DENOMINATOR

    def test_withdraw_buffer_mints_at_current_price(self):
        """Buffer withdrawals mint new shares to the recipient."""
        ledger = make_ledger(buffer_percent=BUFFER_DENOMINATOR // 10)
        ledger.mint_shares(POOL, ALICE, 10_000)
        ledger.add_total_supply(POOL, 1_000)

        shares = ledger.withdraw_buffer(GOVERNOR, CAROL, 100)

        assert shares == 100 * 10_000 // 10_900
        assert ledger.buffer_amount == 0
        assert ledger.total_supply == 11_000

    def test_withdraw_more_than_buffer_raises(self, ledger):
        """Withdrawals cannot exceed the buffer."""
        with pytest.raises(InsufficientBuffer):
            ledger.withdraw_buffer(GOVERNOR, CAROL, 1)


class TestAccounting:
    """Tests for share/value consistency."""

    def test_balances_sum_to_total_supply(self, ledger):
        """Sum of balances equals total_supply up to per-account truncation."""
        ledger.transfer(ALICE, BOB, 2_500)
        ledger.transfer(ALICE, CAROL, 1_234)
        ledger.add_total_supply(POOL, 7_777)

        accounts = (ALICE, BOB, CAROL, DEAD_ACCOUNT)
        total = sum(ledger.balance_of(a) for a in accounts)
        assert ledger.total_supply - len(accounts) <= total <= ledger.total_supply

    def test_empty_ledger_conversions(self):
        """Conversions on an empty ledger return zero instead of dividing by zero."""
        ledger = ShareLedger("Pool Token", "PT", GOVERNOR, LEDGER)
        assert ledger.get_shares_by_pegged_token(100) == 0
        assert ledger.get_pegged_token_by_shares(100) == 0

    @pytest.mark.parametrize("amount", [1, 7, 999, 10**6 + 3, 123_456_789_012_345_678, 500 * 10**18])
    def test_value_share_round_trip(self, amount):
        """Converting value to shares and back loses at most one unit per share price step."""
        ledger = make_ledger()
        ledger.mint_shares(POOL, ALICE, 1_000 * 10**18)
        ledger.add_total_supply(POOL, 37 * 10**18 + 12_345)

        shares = ledger.get_shares_by_pegged_token(amount)
        round_trip = ledger.get_pegged_token_by_shares(shares)

        # both conversions round down, so the loss stays below supply/shares + 1
        max_loss = -(-ledger.total_supply // ledger.total_shares)
        assert round_trip <= amount
        assert amount - round_trip <= max_loss

    @pytest.mark.parametrize("shares", [1, 13, 10**9 + 1, 750 * 10**18])
    def test_share_value_round_trip_keeps_shares(self, shares):
        """Shares priced into value and back never come out ahead."""
        ledger = make_ledger()
        ledger.mint_shares(POOL, ALICE, 1_000 * 10**18)
        ledger.add_total_supply(POOL, 37 * 10**18 + 12_345)

        value = ledger.get_pegged_token_by_shares(shares)
        assert shares - 1 <= ledger.get_shares_by_pegged_token(value) <= shares
