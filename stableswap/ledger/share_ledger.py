"""Rebasing share ledger for the pool claim token.

Holders own shares; their claim-token balance is their pro-rata slice of the
ledger's total supply:

    balance_of(account) = shares[account] * total_supply // total_shares

Pools rebase the token by adjusting total_supply (fees, yield, losses)
without touching anyone's shares. A buffer carved out of positive rebases
absorbs later losses before they reach holders; a loss larger than the
buffer can be carried as bad debt that future rebases repay first.
"""

from __future__ import annotations

import structlog

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
)
from stableswap.governance.access import Ownership
from stableswap.models.types import normalize_address
from stableswap.safe_int import UINT256_MAX, mul_div, mul_div_up

logger = structlog.get_logger()


class ShareLedger:
    """Share ledger backing one or more pools' claim token.

    Attributes:
        total_shares: Sum of all shares, including the dead shares
        total_supply: Claim-token value owned by holders
        total_rewards: Cumulative rewards ever distributed to holders
        buffer_amount: Value reserved to absorb future losses
        buffer_percent: Share of each positive rebase kept in the buffer
            (parts per BUFFER_DENOMINATOR)
        buffer_bad_debt: Loss not covered by the buffer, repaid by future rebases
    """

    decimals = 18

    def __init__(
        self,
        name: str,
        symbol: str,
        governor: str,
        address: str,
        buffer_percent: int = 0,
    ) -> None:
        _validate_buffer_percent(buffer_percent)
        self.name = name
        self.symbol = symbol
        self.address = normalize_address(address)
        self.ownership = Ownership(governor)
        self.total_shares = 0
        self.total_supply = 0
        self.total_rewards = 0
        self.buffer_amount = 0
        self.buffer_percent = buffer_percent
        self.buffer_bad_debt = 0
        self._shares: dict[str, int] = {}
        self._allowances: dict[tuple[str, str], int] = {}
        self._pools: set[str] = set()

    # -------------------------------------------------------------------------
    # Views
    # -------------------------------------------------------------------------

    def shares_of(self, account: str) -> int:
        return self._shares.get(normalize_address(account), 0)

    def balance_of(self, account: str) -> int:
        return self.get_pegged_token_by_shares(self.shares_of(account))

    def get_shares_by_pegged_token(self, amount: int) -> int:
        """Shares worth amount of claim token (rounded down)."""
        if self.total_supply == 0:
            return 0
        return mul_div(amount, self.total_shares, self.total_supply)

    def get_pegged_token_by_shares(self, shares: int) -> int:
        """Claim-token value of shares (rounded down)."""
        if self.total_shares == 0:
            return 0
        return mul_div(shares, self.total_supply, self.total_shares)

    def allowance(self, owner: str, spender: str) -> int:
        return self._allowances.get((normalize_address(owner), normalize_address(spender)), 0)

    def preview_holder_growth(self, amount: int) -> int:
        """Increase of total_supply that add_total_supply(amount) would cause."""
        remaining = amount - min(self.buffer_bad_debt, amount)
        return self._split_rebase(remaining)[1]

    def preview_mint_shares(self, amount: int, pending_rebase: int = 0) -> int:
        """Shares a mint of amount would create once pending_rebase has been distributed.

        Raises:
            InvalidAmount: If the mint would be rejected for its size
        """
        if amount <= 0:
            raise InvalidAmount(f"Mint amount must be positive, got {amount}")
        if self.total_shares == 0:
            if amount <= NUMBER_OF_DEAD_SHARES:
                raise InvalidAmount(f"First mint must exceed {NUMBER_OF_DEAD_SHARES}, got {amount}")
            return amount - NUMBER_OF_DEAD_SHARES
        supply = self.total_supply + self.preview_holder_growth(pending_rebase)
        if supply == 0:
            return amount
        shares = mul_div(amount, self.total_shares, supply)
        if shares == 0:
            raise InvalidAmount(f"Mint amount {amount} is worth zero shares")
        return shares

    def require_holder(self, account: str) -> str:
        """Normalized account, or InvalidAccount if it may not hold claim token."""
        return _require_account(account)

    def is_pool(self, account: str) -> bool:
        return normalize_address(account) in self._pools

    @property
    def pools(self) -> frozenset[str]:
        return frozenset(self._pools)

    # -------------------------------------------------------------------------
    # Holder operations
    # -------------------------------------------------------------------------

    def transfer(self, caller: str, recipient: str, amount: int) -> int:
        """Move amount of claim token; returns the shares moved."""
        shares = self._shares_for_amount(caller, amount)
        self._transfer_shares(caller, recipient, shares)
        return shares

    def transfer_shares(self, caller: str, recipient: str, shares: int) -> int:
        """Move shares; returns their claim-token value."""
        self._transfer_shares(caller, recipient, shares)
        return self.get_pegged_token_by_shares(shares)

    def transfer_from(self, caller: str, owner: str, recipient: str, amount: int) -> int:
        shares = self._shares_for_amount(owner, amount)
        self._check_allowance(owner, caller, amount)
        self._check_transfer(owner, recipient, shares)
        self._spend_allowance(owner, caller, amount)
        self._transfer_shares(owner, recipient, shares)
        return shares

    def transfer_shares_from(self, caller: str, owner: str, recipient: str, shares: int) -> int:
        amount = self.get_pegged_token_by_shares(shares)
        self._check_allowance(owner, caller, amount)
        self._check_transfer(owner, recipient, shares)
        self._spend_allowance(owner, caller, amount)
        self._transfer_shares(owner, recipient, shares)
        return amount

    def approve(self, caller: str, spender: str, amount: int) -> None:
        if amount < 0:
            raise InvalidAmount(f"Allowance cannot be negative: {amount}")
        self._allowances[(normalize_address(caller), _require_account(spender))] = amount

    def increase_allowance(self, caller: str, spender: str, added: int) -> int:
        new_allowance = self.allowance(caller, spender) + added
        self.approve(caller, spender, new_allowance)
        return new_allowance

    def decrease_allowance(self, caller: str, spender: str, subtracted: int) -> int:
        current = self.allowance(caller, spender)
        if subtracted > current:
            raise InsufficientAllowance(f"Allowance {current} below decrease {subtracted}")
        self.approve(caller, spender, current - subtracted)
        return current - subtracted

    def burn_shares(self, caller: str, shares: int) -> None:
        """Destroy the caller's own shares; their value accrues to all other holders."""
        account = normalize_address(caller)
        if shares <= 0:
            raise InvalidAmount(f"Shares to burn must be positive, got {shares}")
        held = self.shares_of(account)
        if shares > held:
            raise InsufficientBalance(f"{account} holds {held} shares, cannot burn {shares}")
        self._shares[account] = held - shares
        self.total_shares -= shares
        logger.info("shares_burned", account=account, shares=shares)

    # -------------------------------------------------------------------------
    # Pool operations
    # -------------------------------------------------------------------------

    def mint_shares(self, caller: str, account: str, amount: int) -> int:
        """Mint amount of claim token to account; returns the shares minted to it.

        The first mint ever assigns NUMBER_OF_DEAD_SHARES of the amount to
        the null account so the share price cannot be skewed while supply is tiny.
        """
        self._require_pool(caller)
        return self._mint(account, amount)

    def burn_shares_from(self, caller: str, account: str, amount: int) -> int:
        """Burn amount of claim token held by account; returns shares burned."""
        self._require_pool(caller)
        if amount <= 0:
            raise InvalidAmount(f"Amount to burn must be positive, got {amount}")
        account = normalize_address(account)
        held = self.shares_of(account)
        balance = self.balance_of(account)
        if amount > balance:
            raise InsufficientBalance(f"{account} holds {balance}, cannot burn {amount}")
        if amount == balance:
            shares = held
        else:
            shares = mul_div_up(amount, self.total_shares, self.total_supply)

        self._shares[account] = held - shares
        self.total_shares -= shares
        self.total_supply -= amount
        return shares

    def add_total_supply(self, caller: str, amount: int) -> None:
        """Distribute a positive rebase.

        Outstanding bad debt is repaid first. The remainder is split into the
        buffer (buffer_percent) and holder growth.
        """
        self._require_pool(caller)
        if amount < 0:
            raise InvalidAmount(f"Rebase amount cannot be negative: {amount}")
        remaining = self._repay_bad_debt(amount)
        if remaining == 0:
            return

        to_buffer, to_holders = self._split_rebase(remaining)
        self.buffer_amount += to_buffer
        self.total_supply += to_holders
        self.total_rewards += to_holders
        logger.info(
            "rewards_distributed",
            amount=amount,
            to_holders=to_holders,
            to_buffer=to_buffer,
            total_supply=self.total_supply,
        )

    def remove_total_supply(
        self,
        caller: str,
        amount: int,
        is_buffer: bool = True,
        with_debt: bool = False,
    ) -> None:
        """Apply a negative rebase, from the buffer or directly from holders.

        Raises:
            InsufficientBuffer: If a buffer draw exceeds the buffer and with_debt is False
            InsufficientBalance: If a holder draw exceeds total_supply
        """
        self._require_pool(caller)
        if amount < 0:
            raise InvalidAmount(f"Rebase amount cannot be negative: {amount}")
        if amount == 0:
            return

        if is_buffer:
            if amount <= self.buffer_amount:
                self.buffer_amount -= amount
            elif with_debt:
                self.buffer_bad_debt += amount - self.buffer_amount
                self.buffer_amount = 0
            else:
                raise InsufficientBuffer(f"Buffer {self.buffer_amount} cannot cover {amount}")
        else:
            if amount > self.total_supply:
                raise InsufficientBalance(f"Total supply {self.total_supply} below {amount}")
            self.total_supply -= amount

        logger.warning(
            "supply_removed",
            amount=amount,
            is_buffer=is_buffer,
            buffer_amount=self.buffer_amount,
            buffer_bad_debt=self.buffer_bad_debt,
            total_supply=self.total_supply,
        )

    def add_buffer(self, caller: str, amount: int) -> None:
        self._require_pool(caller)
        if amount < 0:
            raise InvalidAmount(f"Buffer amount cannot be negative: {amount}")
        remaining = self._repay_bad_debt(amount)
        self.buffer_amount += remaining
        logger.info("buffer_added", amount=amount, buffer_amount=self.buffer_amount)

    # -------------------------------------------------------------------------
    # Governance
    # -------------------------------------------------------------------------

    @property
    def governor(self) -> str:
        return self.ownership.owner

    def propose_governor(self, caller: str, new_governor: str) -> None:
        """Nominate new_governor; the change takes effect on accept_governor."""
        self.ownership.propose(caller, new_governor)

    def accept_governor(self, caller: str) -> None:
        self.ownership.accept(caller)

    def add_pool(self, caller: str, pool: str) -> None:
        self.ownership.require_owner(caller)
        self._pools.add(_require_account(pool))
        logger.info("pool_added", pool=normalize_address(pool))

    def remove_pool(self, caller: str, pool: str) -> None:
        self.ownership.require_owner(caller)
        pool = normalize_address(pool)
        if pool not in self._pools:
            raise NoPool(f"{pool} is not a registered pool")
        self._pools.discard(pool)
        logger.info("pool_removed", pool=pool)

    def set_buffer_percent(self, caller: str, buffer_percent: int) -> None:
        self.ownership.require_owner(caller)
        _validate_buffer_percent(buffer_percent)
        self.buffer_percent = buffer_percent
        logger.info("buffer_percent_updated", buffer_percent=buffer_percent)

    def withdraw_buffer(self, caller: str, recipient: str, amount: int) -> int:
        """Pay buffer value out as newly minted claim token; returns shares minted."""
        self.ownership.require_owner(caller)
        if amount <= 0:
            raise InvalidAmount(f"Withdrawal must be positive, got {amount}")
        if amount > self.buffer_amount:
            raise InsufficientBuffer(f"Buffer {self.buffer_amount} below withdrawal {amount}")
        shares = self._mint(recipient, amount)
        self.buffer_amount -= amount
        logger.info("buffer_withdrawn", recipient=normalize_address(recipient), amount=amount)
        return shares

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _require_pool(self, caller: str) -> None:
        if normalize_address(caller) not in self._pools:
            raise NoPool(f"{caller} is not a registered pool")

    def _mint(self, account: str, amount: int) -> int:
        account = _require_account(account)
        shares = self.preview_mint_shares(amount)
        if self.total_shares == 0:
            self._shares[DEAD_ACCOUNT] = NUMBER_OF_DEAD_SHARES
            self.total_shares = NUMBER_OF_DEAD_SHARES

        self._shares[account] = self._shares.get(account, 0) + shares
        self.total_shares += shares
        self.total_supply += amount
        return shares

    def _split_rebase(self, amount: int) -> tuple[int, int]:
        to_buffer = mul_div(amount, self.buffer_percent, BUFFER_DENOMINATOR)
        return to_buffer, amount - to_buffer

    def _repay_bad_debt(self, amount: int) -> int:
        if self.buffer_bad_debt == 0:
            return amount
        repaid = min(self.buffer_bad_debt, amount)
        self.buffer_bad_debt -= repaid
        logger.info("bad_debt_repaid", repaid=repaid, buffer_bad_debt=self.buffer_bad_debt)
        return amount - repaid

    def _shares_for_amount(self, owner: str, amount: int) -> int:
        if amount <= 0:
            raise InvalidAmount(f"Transfer amount must be positive, got {amount}")
        if amount == self.balance_of(owner):
            return self.shares_of(owner)
        return self.get_shares_by_pegged_token(amount)

    def _check_transfer(self, sender: str, recipient: str, shares: int) -> None:
        recipient = _require_account(recipient)
        if recipient == self.address:
            raise InvalidAccount("Cannot transfer to the ledger itself")
        if shares <= 0:
            raise InvalidAmount(f"Shares to transfer must be positive, got {shares}")
        held = self.shares_of(sender)
        if shares > held:
            raise InsufficientBalance(f"{sender} holds {held} shares, cannot move {shares}")

    def _transfer_shares(self, sender: str, recipient: str, shares: int) -> None:
        self._check_transfer(sender, recipient, shares)
        sender = normalize_address(sender)
        recipient = normalize_address(recipient)
        self._shares[sender] -= shares
        self._shares[recipient] = self._shares.get(recipient, 0) + shares
        logger.debug("shares_transferred", sender=sender, recipient=recipient, shares=shares)

    def _check_allowance(self, owner: str, spender: str, amount: int) -> None:
        current = self.allowance(owner, spender)
        if current < amount:
            raise InsufficientAllowance(f"Allowance {current} below {amount}")

    def _spend_allowance(self, owner: str, spender: str, amount: int) -> None:
        current = self.allowance(owner, spender)
        if current != UINT256_MAX:
            self._allowances[(normalize_address(owner), normalize_address(spender))] = (
                current - amount
            )


def _require_account(account: str) -> str:
    account = normalize_address(account)
    if account in (ZERO_ACCOUNT, DEAD_ACCOUNT):
        raise InvalidAccount(f"{account} cannot hold claim tokens")
    return account


def _validate_buffer_percent(buffer_percent: int) -> None:
    if not 0 <= buffer_percent <= BUFFER_DENOMINATOR:
        raise InvalidParameter(
            f"buffer_percent must be in [0, {BUFFER_DENOMINATOR}], got {buffer_percent}"
        )
