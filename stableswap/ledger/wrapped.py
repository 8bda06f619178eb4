"""Non-rebasing wrapper around ledger shares.

One wrapped unit is one ledger share held in custody by the wrapper, so a
wrapped balance never changes on rebase; its claim-token value does.
"""

from __future__ import annotations

import structlog

from stableswap.errors import InsufficientBalance, InvalidAmount
from stableswap.ledger.share_ledger import ShareLedger
from stableswap.models.types import normalize_address

logger = structlog.get_logger()


class WrappedShareToken:
    """Wrapped claim token (one unit per custodied share)."""

    def __init__(self, ledger: ShareLedger, address: str) -> None:
        self.ledger = ledger
        self.address = normalize_address(address)
        self.total_supply = 0
        self._balances: dict[str, int] = {}

    def balance_of(self, account: str) -> int:
        return self._balances.get(normalize_address(account), 0)

    def convert_to_assets(self, wrapped: int) -> int:
        return self.ledger.get_pegged_token_by_shares(wrapped)

    def convert_to_shares(self, amount: int) -> int:
        return self.ledger.get_shares_by_pegged_token(amount)

    def wrap(self, caller: str, amount: int) -> int:
        """Deposit amount of claim token; returns wrapped units minted."""
        caller = normalize_address(caller)
        shares = self.ledger.transfer(caller, self.address, amount)
        self._credit(caller, shares)
        logger.info("claim_wrapped", account=caller, amount=amount, wrapped=shares)
        return shares

    def wrap_shares(self, caller: str, shares: int) -> int:
        """Deposit an exact number of ledger shares; returns their claim-token value."""
        caller = normalize_address(caller)
        amount = self.ledger.transfer_shares(caller, self.address, shares)
        self._credit(caller, shares)
        logger.info("claim_wrapped", account=caller, amount=amount, wrapped=shares)
        return amount

    def unwrap(self, caller: str, wrapped: int) -> int:
        """Burn wrapped units; returns the claim-token amount released."""
        caller = normalize_address(caller)
        if wrapped <= 0:
            raise InvalidAmount(f"Wrapped amount must be positive, got {wrapped}")
        held = self.balance_of(caller)
        if wrapped > held:
            raise InsufficientBalance(f"{caller} holds {held} wrapped, cannot unwrap {wrapped}")
        amount = self.ledger.transfer_shares(self.address, caller, wrapped)
        self._balances[caller] = held - wrapped
        self.total_supply -= wrapped
        logger.info("claim_unwrapped", account=caller, amount=amount, wrapped=wrapped)
        return amount

    def transfer(self, caller: str, recipient: str, wrapped: int) -> None:
        caller = normalize_address(caller)
        recipient = normalize_address(recipient)
        if wrapped <= 0:
            raise InvalidAmount(f"Wrapped amount must be positive, got {wrapped}")
        held = self.balance_of(caller)
        if wrapped > held:
            raise InsufficientBalance(f"{caller} holds {held} wrapped, cannot move {wrapped}")
        self._balances[caller] = held - wrapped
        self._balances[recipient] = self.balance_of(recipient) + wrapped
        logger.debug("wrapped_transferred", sender=caller, recipient=recipient, wrapped=wrapped)

    def _credit(self, account: str, wrapped: int) -> None:
        self._balances[account] = self.balance_of(account) + wrapped
        self.total_supply += wrapped
