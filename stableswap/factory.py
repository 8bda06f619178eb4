"""One-shot deployment of a pool with its ledger, ramp, registry and keeper.

Every component is wired so that the keeper is the only governance entry
point: it owns the pool, the ramp and the ledger, and the registry it
consults is pre-loaded with the factory's default bounds.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass

import structlog
from pydantic import BaseModel, Field, field_validator, model_validator

from stableswap.clock import Clock
from stableswap.constants import DEFAULT_MIN_RAMP_TIME, FEE_DENOMINATOR, MAX_A
from stableswap.governance.keeper import Keeper
from stableswap.governance.ramp import AmplificationRamp
from stableswap.governance.registry import Bounds, ParameterRegistry, ParamKey
from stableswap.ledger.share_ledger import ShareLedger
from stableswap.models.types import Address, normalize_address
from stableswap.pool.assets import AssetBank
from stableswap.pool.config import PoolConfig
from stableswap.pool.pool import StableSwapPool
from stableswap.rates.base import ExchangeRateProvider

logger = structlog.get_logger()

# Bounds installed on every new registry (ppm of the current value)
DEFAULT_BOUNDS: dict[ParamKey, Bounds] = {
    ParamKey.A: Bounds(max=MAX_A, max_decrease_pct=500_000, max_increase_pct=1_000_000),
    ParamKey.SWAP_FEE: Bounds(max=FEE_DENOMINATOR // 100, max_decrease_pct=500_000, max_increase_pct=1_000_000),
    ParamKey.MINT_FEE: Bounds(max=FEE_DENOMINATOR // 100, max_decrease_pct=500_000, max_increase_pct=1_000_000),
    ParamKey.REDEEM_FEE: Bounds(max=FEE_DENOMINATOR // 100, max_decrease_pct=500_000, max_increase_pct=1_000_000),
    ParamKey.OFF_PEG_MULTIPLIER: Bounds(
        max=20 * FEE_DENOMINATOR, max_decrease_pct=500_000, max_increase_pct=1_000_000
    ),
    ParamKey.BUFFER_PERCENT: Bounds(max=FEE_DENOMINATOR // 10, max_decrease_pct=500_000, max_increase_pct=1_000_000),
}


class CreatePoolArgs(BaseModel):
    """Validated arguments for PoolFactory.create_pool."""

    tokens: list[Address] = Field(min_length=2)
    precisions: list[int]
    name: str = "StableSwap Pool Token"
    symbol: str = "SPT"
    a: int = Field(gt=0, le=MAX_A)
    mint_fee: int = Field(default=0, ge=0, lt=FEE_DENOMINATOR)
    swap_fee: int = Field(default=0, ge=0, lt=FEE_DENOMINATOR)
    redeem_fee: int = Field(default=0, ge=0, lt=FEE_DENOMINATOR)
    off_peg_fee_multiplier: int = Field(default=FEE_DENOMINATOR, ge=0)
    buffer_percent: int = Field(default=0, ge=0, le=FEE_DENOMINATOR)
    min_ramp_time: int = Field(default=DEFAULT_MIN_RAMP_TIME, ge=0)
    curators: list[Address] = Field(default_factory=list)
    guardians: list[Address] = Field(default_factory=list)
    paused: bool = False

    @field_validator("tokens")
    @classmethod
    def tokens_distinct(cls, tokens: list[str]) -> list[str]:
        normalized = [normalize_address(t) for t in tokens]
        if len(set(normalized)) != len(normalized):
            raise ValueError(f"tokens must be distinct, got {tokens}")
        return normalized

    @field_validator("precisions")
    @classmethod
    def precisions_positive(cls, precisions: list[int]) -> list[int]:
        if any(p <= 0 for p in precisions):
            raise ValueError(f"precisions must be positive, got {precisions}")
        return precisions

    @model_validator(mode="after")
    def precisions_match_tokens(self) -> CreatePoolArgs:
        if len(self.precisions) != len(self.tokens):
            raise ValueError(
                f"expected {len(self.tokens)} precisions, got {len(self.precisions)}"
            )
        return self


@dataclass(frozen=True)
class PoolDeployment:
    """Components created by one create_pool call."""

    pool: StableSwapPool
    ledger: ShareLedger
    ramp: AmplificationRamp
    registry: ParameterRegistry
    keeper: Keeper


class PoolFactory:
    """Creates fully wired pools sharing one asset bank and clock."""

    def __init__(self, bank: AssetBank, clock: Clock, governor: str) -> None:
        self.bank = bank
        self.clock = clock
        self.governor = normalize_address(governor)
        self.deployments: list[PoolDeployment] = []

    def create_pool(
        self,
        args: CreatePoolArgs,
        exchange_rate_providers: list[ExchangeRateProvider | None] | None = None,
    ) -> PoolDeployment:
        index = len(self.deployments)
        pool_address = self._derive_address("pool", index)
        ledger_address = self._derive_address("ledger", index)
        keeper_address = self._derive_address("keeper", index)

        ledger = ShareLedger(
            args.name,
            args.symbol,
            governor=keeper_address,
            address=ledger_address,
            buffer_percent=args.buffer_percent,
        )
        ramp = AmplificationRamp(args.a, keeper_address, self.clock, min_ramp_time=args.min_ramp_time)
        config = PoolConfig(
            mint_fee=args.mint_fee,
            swap_fee=args.swap_fee,
            redeem_fee=args.redeem_fee,
            off_peg_fee_multiplier=args.off_peg_fee_multiplier,
        )
        pool = StableSwapPool(
            pool_address,
            args.tokens,
            args.precisions,
            ledger,
            ramp,
            self.bank,
            governor=keeper_address,
            config=config,
            exchange_rate_providers=exchange_rate_providers,
            paused=args.paused,
        )
        # The keeper identity registers its own pool before governance is handed over
        ledger.add_pool(keeper_address, pool_address)

        registry = ParameterRegistry(self.governor, bounds=DEFAULT_BOUNDS)
        keeper = Keeper(
            keeper_address,
            self.governor,
            pool,
            ramp,
            registry,
            ledger,
            curators=args.curators,
            guardians=args.guardians,
        )

        deployment = PoolDeployment(pool=pool, ledger=ledger, ramp=ramp, registry=registry, keeper=keeper)
        self.deployments.append(deployment)
        logger.info(
            "pool_created",
            pool=pool_address,
            ledger=ledger_address,
            keeper=keeper_address,
            tokens=list(args.tokens),
            a=args.a,
        )
        return deployment

    def _derive_address(self, kind: str, index: int) -> str:
        digest = hashlib.sha256(f"{self.governor}:{kind}:{index}".encode()).hexdigest()
        return "0x" + digest[:40]
