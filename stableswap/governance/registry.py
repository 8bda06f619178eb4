"""Parameter registry: absolute caps and per-action relative bounds.

Bounds are expressed in parts per million. A curator change from value c to
value v is accepted when the relative move |v - c| / c stays within the bound
for its direction and v does not exceed the absolute cap.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

import structlog

from stableswap.constants import PPM_DENOMINATOR
from stableswap.errors import FeeDeltaTooBig, FeeOutOfBounds, InvalidParameter
from stableswap.governance.access import Ownership

logger = structlog.get_logger()


class ParamKey(str, Enum):
    """Parameters a curator may adjust within bounds."""

    A = "a"
    SWAP_FEE = "swap_fee"
    MINT_FEE = "mint_fee"
    REDEEM_FEE = "redeem_fee"
    OFF_PEG_MULTIPLIER = "off_peg_multiplier"
    BUFFER_PERCENT = "buffer_percent"


@dataclass(frozen=True)
class Bounds:
    """Safety rails for one parameter.

    Attributes:
        max: Absolute maximum value (0 means uncapped)
        max_decrease_pct: Largest relative decrease per change, in ppm
        max_increase_pct: Largest relative increase per change, in ppm
    """

    max: int = 0
    max_decrease_pct: int = 0
    max_increase_pct: int = 0

    def __post_init__(self) -> None:
        if self.max < 0 or self.max_increase_pct < 0:
            raise InvalidParameter("Bounds must be non-negative")
        if not 0 <= self.max_decrease_pct <= PPM_DENOMINATOR:
            raise InvalidParameter(
                f"max_decrease_pct must be in [0, {PPM_DENOMINATOR}], got {self.max_decrease_pct}"
            )


# An unconfigured parameter cannot be moved by a curator at all
NO_CHANGE = Bounds()


class ParameterRegistry:
    """Governor-managed bounds consulted on every curator change."""

    def __init__(self, governor: str, bounds: dict[ParamKey, Bounds] | None = None) -> None:
        self.ownership = Ownership(governor)
        self._bounds: dict[ParamKey, Bounds] = dict(bounds or {})

    @property
    def governor(self) -> str:
        return self.ownership.owner

    def propose_governor(self, caller: str, new_governor: str) -> None:
        self.ownership.propose(caller, new_governor)

    def accept_governor(self, caller: str) -> None:
        self.ownership.accept(caller)

    def get_bounds(self, key: ParamKey) -> Bounds:
        return self._bounds.get(key, NO_CHANGE)

    def set_bounds(self, caller: str, key: ParamKey, bounds: Bounds) -> None:
        self.ownership.require_owner(caller)
        self._bounds[key] = bounds
        logger.info(
            "bounds_updated",
            key=key.value,
            max=bounds.max,
            max_decrease_pct=bounds.max_decrease_pct,
            max_increase_pct=bounds.max_increase_pct,
        )

    def check(self, key: ParamKey, current: int, new: int) -> None:
        """Validate a bounded change from current to new.

        Raises:
            FeeDeltaTooBig: If the relative change exceeds the bound in its direction
            FeeOutOfBounds: If new exceeds the absolute cap
        """
        bounds = self.get_bounds(key)

        if new > current:
            if current == 0:
                # Relative change from zero is undefined; any allowance at all opens it
                if bounds.max_increase_pct == 0:
                    raise FeeDeltaTooBig(f"{key.value}: increase from zero not allowed")
            else:
                increase = (new - current) * PPM_DENOMINATOR // current
                if increase > bounds.max_increase_pct:
                    raise FeeDeltaTooBig(
                        f"{key.value}: increase {increase}ppm exceeds {bounds.max_increase_pct}ppm"
                    )
        elif new < current:
            decrease = (current - new) * PPM_DENOMINATOR // current
            if decrease > bounds.max_decrease_pct:
                raise FeeDeltaTooBig(
                    f"{key.value}: decrease {decrease}ppm exceeds {bounds.max_decrease_pct}ppm"
                )

        self.check_cap(key, new)

    def check_cap(self, key: ParamKey, new: int) -> None:
        """Raise FeeOutOfBounds if new exceeds the absolute cap for key."""
        bounds = self.get_bounds(key)
        if bounds.max and new > bounds.max:
            raise FeeOutOfBounds(f"{key.value}: {new} exceeds max {bounds.max}")
