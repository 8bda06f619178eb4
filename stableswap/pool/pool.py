"""StableSwap pool: invariant-priced mint, swap and redeem settlement.

The pool tracks one normalized balance per asset (raw amount scaled by its
precision and exchange rate) and an accounted total_supply equal to the
invariant D at the last settlement. Claim tokens live in a ShareLedger:

- mint: deposit assets, receive the invariant increase as claim token
- swap: trade one asset for another at constant D
- redeem_*: burn claim token, receive assets
- donate: grow the ledger buffer without minting
- rebase: recognize yield from rising exchange rates or direct transfers

Every settlement first plans the full state change on local copies, raising
on any violated constraint, and only then commits. A failed call therefore
leaves pool, ledger and bank untouched.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass, field

import structlog

from stableswap.constants import FEE_DENOMINATOR, NUMBER_OF_DEAD_SHARES
from stableswap.errors import (
    ImbalancedPool,
    InsufficientBalance,
    InsufficientDonationAmount,
    InsufficientMintAmount,
    InsufficientRedeemAmount,
    InsufficientSwapOutAmount,
    InvalidAmount,
    InvalidParameter,
    InvalidTokenIndex,
    InvalidTokens,
    LengthMismatch,
    MaxRedeemAmount,
    NoLosses,
    NoPool,
    NotAdmin,
    PoolNotPaused,
    PoolPaused,
    ReentrantCall,
    SameTokenInTokenOut,
)
from stableswap.governance.access import Ownership
from stableswap.governance.ramp import AmplificationRamp
from stableswap.ledger.share_ledger import ShareLedger
from stableswap.math.invariant import compute_d, compute_y, dynamic_fee
from stableswap.models.types import normalize_address
from stableswap.pool.assets import AssetBank
from stableswap.pool.config import DEFAULT_POOL_CONFIG, PoolConfig, validate_fee
from stableswap.pool.results import (
    DonateResult,
    LossResult,
    MintResult,
    RedeemResult,
    SwapResult,
)
from stableswap.rates.base import ExchangeRateProvider, RateQuote
from stableswap.rates.constant import CONSTANT_RATE_PROVIDER
from stableswap.safe_int import S, mul_div

logger = structlog.get_logger()


@dataclass
class _Plan:
    """Fully computed state change of one settlement, not yet applied."""

    balances: list[int]
    total_supply: int
    yield_gain: int = 0
    fee_gain: int = 0
    pull: list[int] = field(default_factory=list)
    pay: list[int] = field(default_factory=list)


@dataclass(frozen=True)
class _Basis:
    """Pool state after recognizing pending yield, used as the settlement starting point."""

    rates: list[RateQuote]
    balances: list[int]
    total_supply: int
    yield_gain: int
    amp: int


class StableSwapPool:
    """Multi-asset StableSwap pool.

    Attributes:
        address: Pool account in the asset bank and ledger
        tokens: Asset identifiers, fixed at construction
        precisions: Scale factor lifting each asset to 18 decimals
        balances: Normalized tracked balances
        total_supply: Claim-token value attributable to this pool (its D)
        paused: Settlement disabled while True
    """

    def __init__(
        self,
        address: str,
        tokens: Sequence[str],
        precisions: Sequence[int],
        ledger: ShareLedger,
        ramp: AmplificationRamp,
        bank: AssetBank,
        governor: str,
        config: PoolConfig = DEFAULT_POOL_CONFIG,
        exchange_rate_providers: Sequence[ExchangeRateProvider | None] | None = None,
        paused: bool = False,
    ) -> None:
        normalized_tokens = tuple(normalize_address(t) for t in tokens if t)
        if len(normalized_tokens) != len(tokens) or len(normalized_tokens) < 2:
            raise InvalidTokens(f"Pool needs at least 2 non-empty tokens, got {list(tokens)}")
        if len(set(normalized_tokens)) != len(normalized_tokens):
            raise InvalidTokens(f"Duplicate tokens: {list(tokens)}")
        if len(precisions) != len(tokens):
            raise LengthMismatch(f"Expected {len(tokens)} precisions, got {len(precisions)}")
        if any(p <= 0 for p in precisions):
            raise InvalidParameter(f"Precisions must be positive, got {list(precisions)}")
        providers = list(exchange_rate_providers or [None] * len(tokens))
        if len(providers) != len(tokens):
            raise LengthMismatch(f"Expected {len(tokens)} rate providers, got {len(providers)}")

        self.address = normalize_address(address)
        self.tokens = normalized_tokens
        self.precisions = tuple(precisions)
        self.exchange_rate_providers: list[ExchangeRateProvider] = [
            p if p is not None else CONSTANT_RATE_PROVIDER for p in providers
        ]
        self.ledger = ledger
        self.ramp = ramp
        self.bank = bank
        self.ownership = Ownership(governor)
        self.admins: set[str] = set()

        self.balances = [0] * len(tokens)
        self.total_supply = 0
        self.paused = paused

        self.mint_fee = config.mint_fee
        self.swap_fee = config.swap_fee
        self.redeem_fee = config.redeem_fee
        self.off_peg_fee_multiplier = config.off_peg_fee_multiplier
        self.fee_error_margin = config.fee_error_margin
        self.yield_error_margin = config.yield_error_margin
        self.max_delta_d = config.max_delta_d

        self._entered = False

    @property
    def n_tokens(self) -> int:
        return len(self.tokens)

    def get_tokens(self) -> tuple[str, ...]:
        return self.tokens

    def get_a(self) -> int:
        return self.ramp.get_a()

    # =========================================================================
    # Read-only quotes
    # =========================================================================

    def get_mint_amount(self, amounts: Sequence[int]) -> tuple[int, int]:
        """Return (claim token credited, mint fee) for depositing amounts."""
        plan, result = self._plan_mint(list(amounts))
        return result.mint_amount, result.fee

    def get_swap_amount(self, i: int, j: int, dx: int) -> tuple[int, int]:
        """Return (raw output, normalized fee) for swapping dx of asset i into j."""
        plan, result = self._plan_swap(i, j, dx)
        return result.amount_out, result.fee

    def get_redeem_proportion_amount(self, amount: int) -> tuple[list[int], int]:
        """Return (raw outputs, fee) for a proportional redemption of amount."""
        plan, result = self._plan_redeem_proportion(amount)
        return list(result.amounts), result.fee

    def get_redeem_single_amount(self, amount: int, i: int) -> tuple[int, int]:
        """Return (raw output of asset i, fee) for redeeming amount into a single asset."""
        plan, result = self._plan_redeem_single(amount, i)
        return result.amounts[i], result.fee

    def get_redeem_multi_amount(self, amounts: Sequence[int]) -> tuple[int, int]:
        """Return (claim token burned, fee) for withdrawing exact amounts."""
        plan, result = self._plan_redeem_multi(list(amounts))
        return result.amount, result.fee

    def get_pending_yield(self) -> int:
        """Yield a rebase would recognize right now (0 within the error margin)."""
        return self._basis().yield_gain

    # =========================================================================
    # Settlement
    # =========================================================================

    def mint(self, caller: str, amounts: Sequence[int], min_mint_amount: int) -> MintResult:
        """Deposit assets and receive claim token.

        Raises:
            PoolPaused: If the pool is paused
            InsufficientMintAmount: If the credited amount is below min_mint_amount
        """
        with self._settlement():
            plan, result = self._plan_mint(list(amounts))
            if result.mint_amount < min_mint_amount:
                raise InsufficientMintAmount(result.mint_amount, min_mint_amount)
            self.ledger.require_holder(caller)
            self._commit(
                caller,
                plan,
                lambda: self.ledger.mint_shares(self.address, caller, result.mint_amount + self._dead_offset()),
            )

        logger.info(
            "pool_minted",
            pool=self.address,
            account=normalize_address(caller),
            normalized_amounts=list(result.normalized_amounts),
            mint_amount=result.mint_amount,
            fee=result.fee,
            total_supply=result.total_supply,
        )
        return result

    def swap(self, caller: str, i: int, j: int, dx: int, min_dy: int) -> SwapResult:
        """Exchange dx of asset i for asset j.

        Raises:
            SameTokenInTokenOut: If i == j
            InsufficientSwapOutAmount: If the output is below min_dy
        """
        with self._settlement():
            plan, result = self._plan_swap(i, j, dx)
            if result.amount_out < min_dy:
                raise InsufficientSwapOutAmount(result.amount_out, min_dy)
            self._commit(caller, plan)

        logger.info(
            "pool_swapped",
            pool=self.address,
            account=normalize_address(caller),
            token_in=i,
            token_out=j,
            normalized_in=result.normalized_in,
            normalized_out=result.normalized_out,
            fee=result.fee,
        )
        return result

    def redeem_proportion(
        self, caller: str, amount: int, min_amounts: Sequence[int]
    ) -> RedeemResult:
        """Burn amount of claim token for a proportional share of every asset.

        Raises:
            InsufficientRedeemAmount: If any asset's output is below its minimum
        """
        self._check_length(min_amounts)
        with self._settlement():
            plan, result = self._plan_redeem_proportion(amount)
            for index, (paid, minimum) in enumerate(zip(result.amounts, min_amounts, strict=True)):
                if paid < minimum:
                    raise InsufficientRedeemAmount(paid, minimum, index=index)
            self._require_claim_balance(caller, amount, plan)
            self._commit(caller, plan, lambda: self.ledger.burn_shares_from(self.address, caller, amount))

        self._log_redeem("pool_redeemed_proportion", caller, result)
        return result

    def redeem_single(
        self, caller: str, amount: int, i: int, min_redeem_amount: int
    ) -> RedeemResult:
        """Burn amount of claim token for asset i only.

        Raises:
            InsufficientRedeemAmount: If the output is below min_redeem_amount
        """
        with self._settlement():
            plan, result = self._plan_redeem_single(amount, i)
            if result.amounts[i] < min_redeem_amount:
                raise InsufficientRedeemAmount(result.amounts[i], min_redeem_amount, index=i)
            self._require_claim_balance(caller, amount, plan)
            self._commit(caller, plan, lambda: self.ledger.burn_shares_from(self.address, caller, amount))

        self._log_redeem("pool_redeemed_single", caller, result)
        return result

    def redeem_multi(
        self, caller: str, amounts: Sequence[int], max_redeem_amount: int
    ) -> RedeemResult:
        """Withdraw exact asset amounts, burning the claim token they cost.

        Raises:
            MaxRedeemAmount: If the claim token required exceeds max_redeem_amount
        """
        with self._settlement():
            plan, result = self._plan_redeem_multi(list(amounts))
            if result.amount > max_redeem_amount:
                raise MaxRedeemAmount(result.amount, max_redeem_amount)
            self._require_claim_balance(caller, result.amount, plan)
            self._commit(
                caller, plan, lambda: self.ledger.burn_shares_from(self.address, caller, result.amount)
            )

        self._log_redeem("pool_redeemed_multi", caller, result)
        return result

    def donate(
        self, caller: str, amounts: Sequence[int], min_donation_amount: int
    ) -> DonateResult:
        """Deposit assets into the ledger buffer without minting claim token."""
        with self._settlement():
            basis = self._basis()
            if basis.total_supply == 0:
                raise InvalidAmount("Cannot donate to an empty pool")
            normalized, new_balances, new_d = self._deposit(basis, list(amounts))
            donation = new_d - basis.total_supply
            if donation < min_donation_amount:
                raise InsufficientDonationAmount(donation, min_donation_amount)
            plan = _Plan(
                balances=new_balances,
                total_supply=new_d,
                yield_gain=basis.yield_gain,
                pull=list(amounts),
            )
            self._commit(caller, plan, lambda: self.ledger.add_buffer(self.address, donation))

        result = DonateResult(
            amounts=tuple(amounts),
            normalized_amounts=tuple(normalized),
            donation=donation,
            total_supply=new_d,
        )
        logger.info(
            "pool_donated",
            pool=self.address,
            account=normalize_address(caller),
            normalized_amounts=normalized,
            donation=donation,
        )
        return result

    def rebase(self, caller: str | None = None) -> int:
        """Recognize pending yield; returns the amount added to total supply.

        Raises:
            ImbalancedPool: If holdings are worth less than total_supply beyond
                the yield error margin (resolve with distribute_loss)
        """
        amount = self.collect_fee_or_yield(is_fee=False)
        if amount:
            logger.info(
                "pool_rebased",
                pool=self.address,
                caller=normalize_address(caller) if caller else None,
                amount=amount,
                total_supply=self.total_supply,
            )
        return amount

    def collect_fee_or_yield(self, is_fee: bool) -> int:
        """Recognize holdings growth over total_supply; returns the amount added.

        The fee path ignores gains within fee_error_margin, the yield path
        gains within yield_error_margin. Either path raises ImbalancedPool on
        a loss beyond its margin.
        """
        margin = self.fee_error_margin if is_fee else self.yield_error_margin
        with self._settlement():
            basis = self._basis(margin)
            gain = basis.yield_gain
            if gain == 0:
                return 0
            plan = _Plan(balances=basis.balances, total_supply=basis.total_supply)
            if is_fee:
                plan.fee_gain = gain
            else:
                plan.yield_gain = gain
            self._commit(self.address, plan)
        return gain

    def distribute_loss(self, caller: str, with_debt: bool = False) -> LossResult:
        """Write a loss down against the buffer, then bad debt or holders.

        Only the governor may call this, and only while the pool is paused.

        Raises:
            PoolNotPaused: If the pool is not paused
            NoLosses: If holdings cover total_supply
        """
        self.ownership.require_owner(caller)
        if not self.paused:
            raise PoolNotPaused("distribute_loss requires a paused pool")

        with self._settlement(allow_paused=True):
            rates = self._rates()
            balances = self._holdings(rates)
            new_d = compute_d(balances, self.get_a())
            if new_d >= self.total_supply:
                raise NoLosses(f"Holdings D={new_d} cover total supply {self.total_supply}")
            loss = self.total_supply - new_d
            from_buffer = min(loss, self.ledger.buffer_amount)
            excess = loss - from_buffer

            if with_debt:
                self.ledger.remove_total_supply(self.address, loss, is_buffer=True, with_debt=True)
                from_holders, to_bad_debt = 0, excess
            else:
                if excess > self.ledger.total_supply:
                    raise InsufficientBalance(
                        f"Loss excess {excess} exceeds ledger supply {self.ledger.total_supply}"
                    )
                self.ledger.remove_total_supply(self.address, from_buffer, is_buffer=True)
                self.ledger.remove_total_supply(self.address, excess, is_buffer=False)
                from_holders, to_bad_debt = excess, 0

            self.balances = balances
            self.total_supply = new_d

        logger.warning(
            "pool_loss_distributed",
            pool=self.address,
            loss=loss,
            from_buffer=from_buffer,
            from_holders=from_holders,
            to_bad_debt=to_bad_debt,
        )
        return LossResult(
            loss=loss,
            from_buffer=from_buffer,
            from_holders=from_holders,
            to_bad_debt=to_bad_debt,
            total_supply=new_d,
        )

    # =========================================================================
    # Governance
    # =========================================================================

    @property
    def governor(self) -> str:
        return self.ownership.owner

    def propose_governor(self, caller: str, new_governor: str) -> None:
        """Nominate new_governor; the change takes effect on accept_governor."""
        self.ownership.propose(caller, new_governor)

    def accept_governor(self, caller: str) -> None:
        self.ownership.accept(caller)

    def pause(self, caller: str) -> None:
        self._require_admin(caller)
        self.paused = True
        logger.info("pool_paused", pool=self.address, caller=normalize_address(caller))

    def unpause(self, caller: str) -> None:
        self._require_admin(caller)
        self.paused = False
        logger.info("pool_unpaused", pool=self.address, caller=normalize_address(caller))

    def set_admin(self, caller: str, account: str, allowed: bool) -> None:
        self.ownership.require_owner(caller)
        account = normalize_address(account)
        if allowed:
            self.admins.add(account)
        else:
            self.admins.discard(account)
        logger.info("pool_admin_updated", pool=self.address, account=account, allowed=allowed)

    def set_mint_fee(self, caller: str, fee: int) -> None:
        self._set_fee(caller, "mint_fee", fee)

    def set_swap_fee(self, caller: str, fee: int) -> None:
        self._set_fee(caller, "swap_fee", fee)

    def set_redeem_fee(self, caller: str, fee: int) -> None:
        self._set_fee(caller, "redeem_fee", fee)

    def set_off_peg_fee_multiplier(self, caller: str, multiplier: int) -> None:
        self._set_parameter(caller, "off_peg_fee_multiplier", multiplier)

    def set_fee_error_margin(self, caller: str, margin: int) -> None:
        self._set_parameter(caller, "fee_error_margin", margin)

    def set_yield_error_margin(self, caller: str, margin: int) -> None:
        self._set_parameter(caller, "yield_error_margin", margin)

    def set_max_delta_d(self, caller: str, max_delta_d: int) -> None:
        self._set_parameter(caller, "max_delta_d", max_delta_d)

    def _set_fee(self, caller: str, name: str, fee: int) -> None:
        self.ownership.require_owner(caller)
        validate_fee(name, fee)
        setattr(self, name, fee)
        logger.info("pool_parameter_updated", pool=self.address, name=name, value=fee)

    def _set_parameter(self, caller: str, name: str, value: int) -> None:
        self.ownership.require_owner(caller)
        if value < 0:
            raise InvalidParameter(f"{name} must be non-negative, got {value}")
        setattr(self, name, value)
        logger.info("pool_parameter_updated", pool=self.address, name=name, value=value)

    def _require_admin(self, caller: str) -> None:
        if not (self.ownership.is_owner(caller) or normalize_address(caller) in self.admins):
            raise NotAdmin(f"{caller} is not an admin of pool {self.address}")

    # =========================================================================
    # Planning (pure)
    # =========================================================================

    def _plan_mint(self, amounts: list[int]) -> tuple[_Plan, MintResult]:
        basis = self._basis()
        first_mint = basis.total_supply == 0
        if first_mint and any(a == 0 for a in amounts):
            raise InvalidAmount("First mint requires a non-zero amount of every asset")

        normalized, new_balances, new_d = self._deposit(basis, amounts)
        mint_amount = new_d - basis.total_supply
        fee = 0 if first_mint else mul_div(mint_amount, self.mint_fee, FEE_DENOMINATOR)
        net = mint_amount - fee
        dead = self._dead_offset()
        if net <= dead:
            raise InvalidAmount(f"Mint amount {net} does not exceed {dead} dead shares")
        self.ledger.preview_mint_shares(net, basis.yield_gain)

        plan = _Plan(
            balances=new_balances,
            total_supply=new_d,
            yield_gain=basis.yield_gain,
            fee_gain=fee,
            pull=list(amounts),
        )
        result = MintResult(
            amounts=tuple(amounts),
            normalized_amounts=tuple(normalized),
            mint_amount=net - dead,
            fee=fee,
            total_supply=new_d,
        )
        return plan, result

    def _plan_swap(self, i: int, j: int, dx: int) -> tuple[_Plan, SwapResult]:
        if i == j:
            raise SameTokenInTokenOut(i)
        self._check_index(i)
        self._check_index(j)
        if dx <= 0:
            raise InvalidAmount(f"Swap input must be positive, got {dx}")

        basis = self._require_liquidity(self._basis())
        d = basis.total_supply
        balances = basis.balances
        dx_normalized = basis.rates[i].normalize(dx, self.precisions[i])

        new_balances = list(balances)
        new_balances[i] = balances[i] + dx_normalized
        y = compute_y(new_balances, j, d, basis.amp)
        if y + 1 >= balances[j]:
            raise InvalidAmount(f"Swap of {dx} yields no output")
        dy = balances[j] - y - 1

        fee_rate = dynamic_fee(
            (balances[i] + new_balances[i]) // 2,
            (balances[j] + y) // 2,
            self.swap_fee,
            self.off_peg_fee_multiplier,
        )
        fee = mul_div(dy, fee_rate, FEE_DENOMINATOR)
        out_normalized = dy - fee
        amount_out = basis.rates[j].denormalize(out_normalized, self.precisions[j])

        new_balances[j] = y
        self._check_delta_d(d, compute_d(new_balances, basis.amp))
        new_balances[j] = y + fee
        fee_gain = self._fee_gain(compute_d(new_balances, basis.amp), d)

        pull = [0] * self.n_tokens
        pull[i] = dx
        pay = [0] * self.n_tokens
        pay[j] = amount_out
        plan = _Plan(
            balances=new_balances,
            total_supply=d + fee_gain,
            yield_gain=basis.yield_gain,
            fee_gain=fee_gain,
            pull=pull,
            pay=pay,
        )
        result = SwapResult(
            token_in=i,
            token_out=j,
            amount_in=dx,
            amount_out=amount_out,
            normalized_in=dx_normalized,
            normalized_out=out_normalized,
            fee=fee,
        )
        return plan, result

    def _plan_redeem_proportion(self, amount: int) -> tuple[_Plan, RedeemResult]:
        basis = self._require_liquidity(self._basis())
        d = basis.total_supply
        self._check_redeem_amount(amount, d)

        fee = mul_div(amount, self.redeem_fee, FEE_DENOMINATOR)
        redeem_amount = amount - fee
        paid = [mul_div(b, redeem_amount, d) for b in basis.balances]
        new_balances = [b - p for b, p in zip(basis.balances, paid, strict=True)]

        # D is homogeneous of degree one, so a proportional withdrawal scales it linearly
        expected_d = (S(compute_d(basis.balances, basis.amp)) * (d - redeem_amount) // d).value
        new_d = compute_d(new_balances, basis.amp)
        self._check_delta_d(expected_d, new_d)

        remaining = d - amount
        fee_gain = self._fee_gain(new_d, remaining)
        plan = _Plan(
            balances=new_balances,
            total_supply=remaining + fee_gain,
            yield_gain=basis.yield_gain,
            fee_gain=fee_gain,
            pay=[rate.denormalize(p, prec) for rate, p, prec in zip(basis.rates, paid, self.precisions, strict=True)],
        )
        return plan, self._redeem_result(amount, plan, paid, fee)

    def _plan_redeem_single(self, amount: int, i: int) -> tuple[_Plan, RedeemResult]:
        self._check_index(i)
        basis = self._require_liquidity(self._basis())
        d = basis.total_supply
        self._check_redeem_amount(amount, d)

        fee = mul_div(amount, self.redeem_fee, FEE_DENOMINATOR)
        redeem_amount = amount - fee
        if redeem_amount >= d:
            raise InvalidAmount("Cannot redeem the entire pool into a single asset")
        target_d = d - redeem_amount
        y = compute_y(basis.balances, i, target_d, basis.amp)
        if y + 1 >= basis.balances[i]:
            raise InvalidAmount(f"Redeeming {amount} yields no output")
        dy = basis.balances[i] - y - 1

        new_balances = list(basis.balances)
        new_balances[i] = y
        new_d = compute_d(new_balances, basis.amp)
        self._check_delta_d(target_d, new_d)

        remaining = d - amount
        fee_gain = self._fee_gain(new_d, remaining)
        paid = [0] * self.n_tokens
        paid[i] = dy
        pay = [0] * self.n_tokens
        pay[i] = basis.rates[i].denormalize(dy, self.precisions[i])
        plan = _Plan(
            balances=new_balances,
            total_supply=remaining + fee_gain,
            yield_gain=basis.yield_gain,
            fee_gain=fee_gain,
            pay=pay,
        )
        return plan, self._redeem_result(amount, plan, paid, fee)

    def _plan_redeem_multi(self, amounts: list[int]) -> tuple[_Plan, RedeemResult]:
        self._check_amounts(amounts)
        basis = self._require_liquidity(self._basis())
        d = basis.total_supply

        # withdrawals round up against the caller so tracked balances never exceed holdings
        paid = [
            rate.normalize_up(a, prec) for rate, a, prec in zip(basis.rates, amounts, self.precisions, strict=True)
        ]
        for index, (owned, requested) in enumerate(zip(basis.balances, paid, strict=True)):
            if requested > owned:
                raise InvalidAmount(f"Requested {requested} of asset {index}, pool holds {owned}")
        new_balances = [b - p for b, p in zip(basis.balances, paid, strict=True)]
        new_d = compute_d(new_balances, basis.amp)
        if new_d >= d:
            raise InvalidAmount("Requested amounts do not reduce the invariant")

        redeem_amount = d - new_d
        fee = (S(redeem_amount) * self.redeem_fee // (FEE_DENOMINATOR - self.redeem_fee)).value
        amount = redeem_amount + fee
        if amount > d:
            raise InvalidAmount(f"Redemption of {amount} exceeds total supply {d}")

        remaining = d - amount
        fee_gain = self._fee_gain(new_d, remaining)
        plan = _Plan(
            balances=new_balances,
            total_supply=remaining + fee_gain,
            yield_gain=basis.yield_gain,
            fee_gain=fee_gain,
            pay=list(amounts),
        )
        return plan, self._redeem_result(amount, plan, paid, fee)

    def _redeem_result(self, amount: int, plan: _Plan, paid: list[int], fee: int) -> RedeemResult:
        return RedeemResult(
            amount=amount,
            amounts=tuple(plan.pay),
            normalized_amounts=tuple(paid),
            fee=fee,
            total_supply=plan.total_supply,
        )

    def _deposit(self, basis: _Basis, amounts: list[int]) -> tuple[list[int], list[int], int]:
        """Normalize a deposit; return (normalized, new balances, new D)."""
        self._check_amounts(amounts)
        normalized = [
            rate.normalize(a, prec) for rate, a, prec in zip(basis.rates, amounts, self.precisions, strict=True)
        ]
        new_balances = [b + n for b, n in zip(basis.balances, normalized, strict=True)]
        new_d = compute_d(new_balances, basis.amp)
        if new_d <= basis.total_supply:
            raise InvalidAmount("Deposit does not increase the invariant")
        return normalized, new_balances, new_d

    def _basis(self, margin: int | None = None) -> _Basis:
        """Current balances with pending yield recognized (pure).

        Gains and losses within margin (default yield_error_margin) leave the
        tracked balances as they are; a larger loss raises ImbalancedPool.
        """
        if margin is None:
            margin = self.yield_error_margin
        rates = self._rates()
        amp = self.get_a()
        if self.total_supply == 0:
            return _Basis(rates, list(self.balances), 0, 0, amp)

        holdings = self._holdings(rates)
        holdings_d = compute_d(holdings, amp)
        if holdings_d > self.total_supply + margin:
            gain = holdings_d - self.total_supply
            return _Basis(rates, holdings, holdings_d, gain, amp)
        if holdings_d + margin < self.total_supply:
            logger.warning(
                "rebase_loss_detected",
                pool=self.address,
                total_supply=self.total_supply,
                holdings_d=holdings_d,
            )
            raise ImbalancedPool(self.total_supply, holdings_d)
        return _Basis(rates, list(self.balances), self.total_supply, 0, amp)

    def _rates(self) -> list[RateQuote]:
        return [provider.rate() for provider in self.exchange_rate_providers]

    def _holdings(self, rates: list[RateQuote]) -> list[int]:
        """Normalized value of the raw assets the bank holds for the pool."""
        return [
            rate.normalize(self.bank.balance_of(token, self.address), prec)
            for token, rate, prec in zip(self.tokens, rates, self.precisions, strict=True)
        ]

    def _fee_gain(self, new_d: int, accounted: int) -> int:
        """Invariant growth over accounted supply, or 0 within fee_error_margin."""
        if new_d <= accounted + self.fee_error_margin:
            return 0
        return new_d - accounted

    def _check_delta_d(self, expected_d: int, actual_d: int) -> None:
        if S(actual_d).abs_diff(expected_d) > self.max_delta_d:
            raise ImbalancedPool(expected_d, actual_d)

    def _dead_offset(self) -> int:
        return NUMBER_OF_DEAD_SHARES if self.ledger.total_shares == 0 else 0

    def _check_index(self, index: int) -> None:
        if not 0 <= index < self.n_tokens:
            raise InvalidTokenIndex(f"Token index {index} out of range for {self.n_tokens} tokens")

    def _check_length(self, values: Sequence[int]) -> None:
        if len(values) != self.n_tokens:
            raise LengthMismatch(f"Expected {self.n_tokens} values, got {len(values)}")

    def _check_amounts(self, amounts: Sequence[int]) -> None:
        self._check_length(amounts)
        if any(a < 0 for a in amounts):
            raise InvalidAmount(f"Amounts must be non-negative, got {list(amounts)}")
        if not any(amounts):
            raise InvalidAmount("At least one amount must be positive")

    @staticmethod
    def _check_redeem_amount(amount: int, total_supply: int) -> None:
        if amount <= 0:
            raise InvalidAmount(f"Redeem amount must be positive, got {amount}")
        if amount > total_supply:
            raise InvalidAmount(f"Redeem amount {amount} exceeds pool supply {total_supply}")

    @staticmethod
    def _require_liquidity(basis: _Basis) -> _Basis:
        if basis.total_supply == 0:
            raise InvalidAmount("Pool has no liquidity")
        return basis

    # =========================================================================
    # Commit
    # =========================================================================

    @contextmanager
    def _settlement(self, allow_paused: bool = False) -> Iterator[None]:
        """Hold the reentrancy flag for the duration of one settlement."""
        if self._entered:
            raise ReentrantCall(f"Pool {self.address} is already settling")
        if self.paused and not allow_paused:
            raise PoolPaused(f"Pool {self.address} is paused")
        self._entered = True
        try:
            yield
        finally:
            self._entered = False

    def _require_funds(self, caller: str, amounts: list[int]) -> None:
        for token, amount in zip(self.tokens, amounts, strict=False):
            held = self.bank.balance_of(token, caller)
            if amount > held:
                raise InsufficientBalance(f"{caller} holds {held} of {token}, needs {amount}")

    def _require_claim_balance(self, caller: str, amount: int, plan: _Plan) -> None:
        """Check caller can burn amount once pending yield has been distributed."""
        ledger = self.ledger
        if ledger.total_shares == 0:
            raise InsufficientBalance(f"{caller} holds no claim token")
        supply = ledger.total_supply + ledger.preview_holder_growth(plan.yield_gain)
        balance = S(ledger.shares_of(caller)) * supply // ledger.total_shares
        if amount > balance:
            raise InsufficientBalance(f"{caller} holds {balance.value} claim token, needs {amount}")

    def _commit(self, caller: str, plan: _Plan, ledger_action: Callable[[], object] | None = None) -> None:
        """Apply a validated plan. Nothing below may fail for a validated plan."""
        if not self.ledger.is_pool(self.address):
            raise NoPool(f"Pool {self.address} is not registered with ledger {self.ledger.address}")
        self._require_funds(caller, plan.pull)
        for token, amount in zip(self.tokens, plan.pull, strict=False):
            if amount:
                self.bank.transfer(token, caller, self.address, amount)

        if plan.yield_gain:
            self.ledger.add_total_supply(self.address, plan.yield_gain)
            logger.info("yield_collected", pool=self.address, amount=plan.yield_gain)
        if ledger_action is not None:
            ledger_action()

        for token, amount in zip(self.tokens, plan.pay, strict=False):
            if amount:
                self.bank.transfer(token, self.address, caller, amount)

        self.balances = plan.balances
        self.total_supply = plan.total_supply
        if plan.fee_gain:
            self.ledger.add_total_supply(self.address, plan.fee_gain)
            logger.debug("fee_collected", pool=self.address, amount=plan.fee_gain)

    def _log_redeem(self, event: str, caller: str, result: RedeemResult) -> None:
        logger.info(
            event,
            pool=self.address,
            account=normalize_address(caller),
            amount=result.amount,
            normalized_amounts=list(result.normalized_amounts),
            fee=result.fee,
            total_supply=result.total_supply,
        )
