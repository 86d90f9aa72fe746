"""Explicit capability checks called at the top of every guarded operation."""
from __future__ import annotations

from .errors import AuthorizationError
from .models import ROLE_RANK, RoleEnum
from .principal import Principal
from .roles import RoleStore


class AuthorizationGate:
    def __init__(self, roles: RoleStore) -> None:
        self.roles = roles

    def role_of(self, principal: Principal) -> RoleEnum:
        return self.roles.role_of(principal)

    def allows(self, principal: Principal, minimum_role: RoleEnum) -> bool:
        return ROLE_RANK[self.role_of(principal)] >= ROLE_RANK[minimum_role]

    def require(self, principal: Principal, minimum_role: RoleEnum = RoleEnum.USER) -> RoleEnum:
        """Return the principal's role, or raise if it is below ``minimum_role``."""
        role = self.role_of(principal)
        if ROLE_RANK[role] < ROLE_RANK[minimum_role]:
            raise AuthorizationError(
                f"{minimum_role.value.capitalize()} access required",
                required_role=minimum_role.value,
            )
        return role

    def require_owner_or_admin(self, principal: Principal, owner_id: int) -> RoleEnum:
        role = self.role_of(principal)
        if principal.user_id != owner_id and role is not RoleEnum.ADMIN:
            raise AuthorizationError("Only the owner or an admin may do this")
        return role
