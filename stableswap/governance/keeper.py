"""Keeper: bounded governance gate in front of a pool.

The keeper owns the pool's governance surface, its amplification ramp and its
share ledger. Callers reach them only through the keeper, which checks roles:

- governor: any change, subject only to the registry's absolute caps
- curator: parameter changes within the registry's relative bounds
- guardian: emergency pause and ramp cancellation
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

import structlog

from stableswap.governance.access import Role, RoleBook
from stableswap.governance.ramp import AmplificationRamp
from stableswap.governance.registry import ParameterRegistry, ParamKey
from stableswap.models.types import normalize_address

if TYPE_CHECKING:
    from stableswap.ledger.share_ledger import ShareLedger
    from stableswap.pool.pool import StableSwapPool
    from stableswap.pool.results import LossResult

logger = structlog.get_logger()


class Keeper:
    """Role-gated proxy for pool, ramp and ledger governance.

    Attributes:
        address: Identity the keeper presents to the components it owns
        roles: Role membership
        registry: Bounds consulted on curator changes
    """

    def __init__(
        self,
        address: str,
        governor: str,
        pool: StableSwapPool,
        ramp: AmplificationRamp,
        registry: ParameterRegistry,
        ledger: ShareLedger,
        curators: Iterable[str] = (),
        guardians: Iterable[str] = (),
    ) -> None:
        self.address = normalize_address(address)
        self.roles = RoleBook(governor)
        self.pool = pool
        self.ramp = ramp
        self.registry = registry
        self.ledger = ledger
        for account in curators:
            self.roles.grant_role(governor, Role.CURATOR, account)
        for account in guardians:
            self.roles.grant_role(governor, Role.GUARDIAN, account)

    # -------------------------------------------------------------------------
    # Bounded parameter changes (governor or curator)
    # -------------------------------------------------------------------------

    def ramp_a(self, caller: str, future_a: int, future_time: int) -> None:
        self._check_change(caller, ParamKey.A, self.ramp.get_a(), future_a)
        self.ramp.ramp_a(self.address, future_a, future_time)

    def set_swap_fee(self, caller: str, fee: int) -> None:
        self._check_change(caller, ParamKey.SWAP_FEE, self.pool.swap_fee, fee)
        self.pool.set_swap_fee(self.address, fee)

    def set_mint_fee(self, caller: str, fee: int) -> None:
        self._check_change(caller, ParamKey.MINT_FEE, self.pool.mint_fee, fee)
        self.pool.set_mint_fee(self.address, fee)

    def set_redeem_fee(self, caller: str, fee: int) -> None:
        self._check_change(caller, ParamKey.REDEEM_FEE, self.pool.redeem_fee, fee)
        self.pool.set_redeem_fee(self.address, fee)

    def set_off_peg_fee_multiplier(self, caller: str, multiplier: int) -> None:
        self._check_change(
            caller, ParamKey.OFF_PEG_MULTIPLIER, self.pool.off_peg_fee_multiplier, multiplier
        )
        self.pool.set_off_peg_fee_multiplier(self.address, multiplier)

    def set_buffer_percent(self, caller: str, buffer_percent: int) -> None:
        self._check_change(caller, ParamKey.BUFFER_PERCENT, self.ledger.buffer_percent, buffer_percent)
        self.ledger.set_buffer_percent(self.address, buffer_percent)

    # -------------------------------------------------------------------------
    # Emergency (guardian or governor)
    # -------------------------------------------------------------------------

    def cancel_ramp(self, caller: str) -> int:
        """Freeze A at its current value; returns that value."""
        self.roles.require_any(caller, Role.GUARDIAN, Role.GOVERNOR)
        return self.ramp.stop_ramp(self.address)

    def pause(self, caller: str) -> None:
        self.roles.require_any(caller, Role.GUARDIAN, Role.GOVERNOR)
        self.pool.pause(self.address)

    def unpause(self, caller: str) -> None:
        self.roles.require_any(caller, Role.GOVERNOR)
        self.pool.unpause(self.address)

    # -------------------------------------------------------------------------
    # Governor only
    # -------------------------------------------------------------------------

    def grant_role(self, caller: str, role: Role, account: str) -> None:
        self.roles.grant_role(caller, role, account)

    def revoke_role(self, caller: str, role: Role, account: str) -> None:
        self.roles.revoke_role(caller, role, account)

    def set_min_ramp_time(self, caller: str, min_ramp_time: int) -> None:
        self.roles.require_any(caller, Role.GOVERNOR)
        self.ramp.set_min_ramp_time(self.address, min_ramp_time)

    def set_admin(self, caller: str, account: str, allowed: bool) -> None:
        self.roles.require_any(caller, Role.GOVERNOR)
        self.pool.set_admin(self.address, account, allowed)

    def set_fee_error_margin(self, caller: str, margin: int) -> None:
        self.roles.require_any(caller, Role.GOVERNOR)
        self.pool.set_fee_error_margin(self.address, margin)

    def set_yield_error_margin(self, caller: str, margin: int) -> None:
        self.roles.require_any(caller, Role.GOVERNOR)
        self.pool.set_yield_error_margin(self.address, margin)

    def set_max_delta_d(self, caller: str, max_delta_d: int) -> None:
        self.roles.require_any(caller, Role.GOVERNOR)
        self.pool.set_max_delta_d(self.address, max_delta_d)

    def distribute_loss(self, caller: str, with_debt: bool = False) -> LossResult:
        self.roles.require_any(caller, Role.GOVERNOR)
        return self.pool.distribute_loss(self.address, with_debt=with_debt)

    def withdraw_buffer(self, caller: str, recipient: str, amount: int) -> int:
        self.roles.require_any(caller, Role.GOVERNOR)
        return self.ledger.withdraw_buffer(self.address, recipient, amount)

    def propose_governor(self, caller: str, new_governor: str) -> None:
        """Hand the pool, ramp and ledger over to new_governor.

        new_governor takes control of each component by calling its
        accept_governor. Until then the keeper stays in charge.
        """
        self.roles.require_any(caller, Role.GOVERNOR)
        for component in (self.pool, self.ramp, self.ledger):
            component.propose_governor(self.address, new_governor)
        logger.info("keeper_handover_proposed", keeper=self.address, new_governor=normalize_address(new_governor))

    def _check_change(self, caller: str, key: ParamKey, current: int, new: int) -> None:
        role = self.roles.require_any(caller, Role.GOVERNOR, Role.CURATOR)
        if role is Role.GOVERNOR:
            self.registry.check_cap(key, new)
        else:
            self.registry.check(key, current, new)
        logger.info(
            "keeper_parameter_change",
            key=key.value,
            role=role.value,
            caller=normalize_address(caller),
            current=current,
            new=new,
        )
