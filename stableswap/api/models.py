"""Request and response models for the quote service.

Amounts travel as decimal strings (Uint256) so that 256-bit values survive
JSON round-trips unchanged.
"""

from pydantic import BaseModel, Field

from stableswap.models.types import Address, Uint256


class PoolInfo(BaseModel):
    """Snapshot of a pool's public state."""

    address: Address
    tokens: list[Address]
    precisions: list[Uint256]
    balances: list[Uint256]
    total_supply: Uint256
    a: Uint256
    mint_fee: Uint256
    swap_fee: Uint256
    redeem_fee: Uint256
    off_peg_fee_multiplier: Uint256
    paused: bool


class MintQuoteRequest(BaseModel):
    amounts: list[Uint256] = Field(min_length=1)


class MintQuoteResponse(BaseModel):
    mint_amount: Uint256
    fee: Uint256


class SwapQuoteRequest(BaseModel):
    token_in: int = Field(ge=0)
    token_out: int = Field(ge=0)
    amount_in: Uint256


class SwapQuoteResponse(BaseModel):
    amount_out: Uint256
    fee: Uint256


class RedeemProportionQuoteRequest(BaseModel):
    amount: Uint256


class RedeemProportionQuoteResponse(BaseModel):
    amounts: list[Uint256]
    fee: Uint256


class RedeemSingleQuoteRequest(BaseModel):
    amount: Uint256
    token_out: int = Field(ge=0)


class RedeemSingleQuoteResponse(BaseModel):
    amount_out: Uint256
    fee: Uint256


class RedeemMultiQuoteRequest(BaseModel):
    amounts: list[Uint256] = Field(min_length=1)


class RedeemMultiQuoteResponse(BaseModel):
    redeem_amount: Uint256
    fee: Uint256
