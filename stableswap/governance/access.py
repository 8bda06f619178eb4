"""Ownership and role checks.

Components do not inherit access control; each holds an Ownership (single
governor) or a RoleBook (keeper roles) and calls its require_* method with
the caller identity at the top of every gated operation.
"""

from __future__ import annotations

from enum import Enum

import structlog

from stableswap.errors import InvalidAccount, NotGovernor, Unauthorized
from stableswap.models.types import normalize_address

logger = structlog.get_logger()


class Ownership:
    """Single-owner capability with two-step transfer."""

    def __init__(self, owner: str) -> None:
        if not owner:
            raise InvalidAccount("Owner must be a non-empty account")
        self.owner = normalize_address(owner)
        self.pending_owner: str | None = None

    def is_owner(self, caller: str) -> bool:
        return normalize_address(caller) == self.owner

    def require_owner(self, caller: str) -> None:
        if not self.is_owner(caller):
            raise NotGovernor(f"{caller} is not the governor")

    def propose(self, caller: str, new_owner: str) -> None:
        """Nominate a new owner; takes effect once they accept."""
        self.require_owner(caller)
        self.pending_owner = normalize_address(new_owner)
        logger.info("governance_proposed", current=self.owner, pending=self.pending_owner)

    def accept(self, caller: str) -> None:
        caller = normalize_address(caller)
        if self.pending_owner is None or caller != self.pending_owner:
            raise NotGovernor(f"{caller} is not the pending governor")
        logger.info("governance_transferred", previous=self.owner, new=caller)
        self.owner = caller
        self.pending_owner = None


class Role(str, Enum):
    """Keeper roles, from most to least trusted."""

    GOVERNOR = "governor"
    CURATOR = "curator"
    GUARDIAN = "guardian"


class RoleBook:
    """Role membership for the keeper; governors manage all roles."""

    def __init__(self, governor: str) -> None:
        self._members: dict[Role, set[str]] = {role: set() for role in Role}
        self._members[Role.GOVERNOR].add(normalize_address(governor))

    def has_role(self, role: Role, account: str) -> bool:
        return normalize_address(account) in self._members[role]

    def require_any(self, caller: str, *roles: Role) -> Role:
        """Return the first of roles the caller holds, or raise Unauthorized."""
        for role in roles:
            if self.has_role(role, caller):
                return role
        names = ", ".join(role.value for role in roles)
        raise Unauthorized(f"{caller} lacks any of the roles: {names}")

    def grant_role(self, caller: str, role: Role, account: str) -> None:
        self.require_any(caller, Role.GOVERNOR)
        self._members[role].add(normalize_address(account))
        logger.info("role_granted", role=role.value, account=normalize_address(account))

    def revoke_role(self, caller: str, role: Role, account: str) -> None:
        self.require_any(caller, Role.GOVERNOR)
        account = normalize_address(account)
        if role is Role.GOVERNOR and self._members[role] == {account}:
            raise InvalidAccount("Cannot revoke the last governor")
        self._members[role].discard(account)
        logger.info("role_revoked", role=role.value, account=account)
