"""Custody of underlying pool assets.

The pool never stores raw token balances itself; it reads and moves them
through an AssetBank. InMemoryAssetBank backs tests and simulations.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from stableswap.errors import InsufficientBalance, InvalidAmount
from stableswap.models.types import normalize_address


@runtime_checkable
class AssetBank(Protocol):
    """Raw token balances keyed by (token, account)."""

    def balance_of(self, token: str, account: str) -> int: ...

    def transfer(self, token: str, sender: str, recipient: str, amount: int) -> None: ...


class InMemoryAssetBank:
    """Dictionary-backed AssetBank."""

    def __init__(self) -> None:
        self._balances: dict[tuple[str, str], int] = {}

    def balance_of(self, token: str, account: str) -> int:
        return self._balances.get((normalize_address(token), normalize_address(account)), 0)

    def credit(self, token: str, account: str, amount: int) -> None:
        """Create amount of token out of thin air for account."""
        if amount < 0:
            raise InvalidAmount(f"Credit must be non-negative, got {amount}")
        key = (normalize_address(token), normalize_address(account))
        self._balances[key] = self._balances.get(key, 0) + amount

    def transfer(self, token: str, sender: str, recipient: str, amount: int) -> None:
        if amount < 0:
            raise InvalidAmount(f"Transfer must be non-negative, got {amount}")
        held = self.balance_of(token, sender)
        if amount > held:
            raise InsufficientBalance(f"{sender} holds {held} of {token}, cannot send {amount}")
        token = normalize_address(token)
        self._balances[(token, normalize_address(sender))] = held - amount
        key = (token, normalize_address(recipient))
        self._balances[key] = self._balances.get(key, 0) + amount
