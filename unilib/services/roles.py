"""Effective-role resolution for the authenticated principal."""

import logging
from dataclasses import dataclass
from typing import Iterable

from unilib.domain.records import Role, UserRole, parse_rows
from unilib.ports.store import Order, StorePort, eq

logger = logging.getLogger(__name__)

# highest first; anything else resolves to Role.USER
ROLE_PRIORITY = (Role.ADMIN, Role.STAFF)


@dataclass(frozen=True)
class RoleInfo:
    role: Role | None

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN

    @property
    def is_staff(self) -> bool:
        return self.role in (Role.ADMIN, Role.STAFF)

    @property
    def is_user(self) -> bool:
        return self.role is not None


def effective_role(roles: Iterable[Role | str]) -> Role:
    """Reduce a principal's role rows to one role by fixed priority."""
    present = {Role(r) for r in roles}
    for candidate in ROLE_PRIORITY:
        if candidate in present:
            return candidate
    return Role.USER


async def resolve_role(store: StorePort, user_id: str | None) -> Role | None:
    """
    Fetch the principal's role rows and reduce them to the effective role.

    An absent principal has no role. A principal without role rows is a
    plain user. Fetch errors fail open to Role.USER rather than denying
    access.
    """
    if not user_id:
        return None
    try:
        rows = await store.select(
            "user_roles", [eq("user_id", user_id)], columns=["role"], order=[Order("role")]
        )
        roles = [r.role for r in parse_rows(UserRole, rows)]
    except Exception:
        logger.warning("Error fetching roles for %s; defaulting to user", user_id, exc_info=True)
        return Role.USER
    return effective_role(roles)


async def resolve_role_info(store: StorePort, user_id: str | None) -> RoleInfo:
    return RoleInfo(await resolve_role(store, user_id))
