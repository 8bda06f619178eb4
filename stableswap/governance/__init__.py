"""Governance: ownership and roles, the A ramp, parameter bounds and the keeper."""

from stableswap.governance.access import Ownership, Role, RoleBook
from stableswap.governance.keeper import Keeper
from stableswap.governance.ramp import AmplificationRamp
from stableswap.governance.registry import NO_CHANGE, Bounds, ParameterRegistry, ParamKey

__all__ = [
    "NO_CHANGE",
    "AmplificationRamp",
    "Bounds",
    "Keeper",
    "Ownership",
    "ParamKey",
    "ParameterRegistry",
    "Role",
    "RoleBook",
]
