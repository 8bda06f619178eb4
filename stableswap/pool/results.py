"""Settlement results.

Each settlement operation returns one of these records. They carry the
normalized amounts and the fee actually charged, which is everything an
auditor needs to replay the balance change.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class MintResult:
    """Claim token minted for a deposit.

    Attributes:
        amounts: Raw amounts deposited per asset
        normalized_amounts: Deposited amounts in 18-decimal reference units
        mint_amount: Claim token credited to the depositor
        fee: Claim token charged as mint fee (redistributed to holders)
        total_supply: Pool total supply after the mint
    """

    amounts: tuple[int, ...]
    normalized_amounts: tuple[int, ...]
    mint_amount: int
    fee: int
    total_supply: int


@dataclass(frozen=True)
class SwapResult:
    """Exchange of one pool asset for another.

    Attributes:
        token_in: Index of the asset paid in
        token_out: Index of the asset paid out
        amount_in: Raw amount paid in
        amount_out: Raw amount paid out
        normalized_in: amount_in in reference units
        normalized_out: amount_out before denormalization, in reference units
        fee: Swap fee retained by the pool, in reference units
    """

    token_in: int
    token_out: int
    amount_in: int
    amount_out: int
    normalized_in: int
    normalized_out: int
    fee: int


@dataclass(frozen=True)
class RedeemResult:
    """Claim token burned for underlying assets.

    Attributes:
        amount: Claim token burned from the redeemer
        amounts: Raw amounts paid out per asset
        normalized_amounts: Paid amounts in reference units
        fee: Claim token charged as redeem fee (redistributed to holders)
        total_supply: Pool total supply after the redemption
    """

    amount: int
    amounts: tuple[int, ...]
    normalized_amounts: tuple[int, ...]
    fee: int
    total_supply: int


@dataclass(frozen=True)
class DonateResult:
    """Deposit that grows the ledger buffer instead of minting claim token."""

    amounts: tuple[int, ...]
    normalized_amounts: tuple[int, ...]
    donation: int
    total_supply: int


@dataclass(frozen=True)
class LossResult:
    """Loss written down by distribute_loss."""

    loss: int
    from_buffer: int
    from_holders: int
    to_bad_debt: int
    total_supply: int
