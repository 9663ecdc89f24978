"""Member listing and staff role management (admin only)."""

import logging

from fastapi import HTTPException, status

from unilib.domain.records import Profile, Role, StaffEntry, UserRole, parse_row, parse_rows
from unilib.ports.store import Order, StorePort, eq, in_

logger = logging.getLogger(__name__)


class AdminService:
    def __init__(self, store: StorePort) -> None:
        self._store = store

    async def list_members(self) -> list[Profile]:
        rows = await self._store.select(
            "profiles", order=[Order("member_since", ascending=False)]
        )
        return parse_rows(Profile, rows)

    async def list_staff(self) -> list[StaffEntry]:
        rows = await self._store.select(
            "user_roles",
            [in_("role", [Role.ADMIN.value, Role.STAFF.value])],
            order=[Order("created_at", ascending=False)],
        )
        roles = parse_rows(UserRole, rows)
        user_ids = list(dict.fromkeys(r.user_id for r in roles if r.user_id))
        profiles: dict[str, Profile] = {}
        if user_ids:
            profile_rows = await self._store.select("profiles", [in_("id", user_ids)])
            profiles = {p.id: p for p in parse_rows(Profile, profile_rows)}
        return [StaffEntry(role=r, profile=profiles.get(r.user_id or "")) for r in roles]

    async def assign_role(self, user_id: str, role: Role) -> UserRole:
        existing = await self._store.select(
            "user_roles", [eq("user_id", user_id), eq("role", role.value)], limit=1
        )
        if existing:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"User already has the {role.value} role",
            )
        row = await self._store.insert("user_roles", {"user_id": user_id, "role": role.value})
        logger.info("Assigned %s role to %s", role.value, user_id)
        return parse_row(UserRole, row)

    async def remove_role(self, role_id: str) -> None:
        rows = await self._store.delete("user_roles", [eq("id", role_id)])
        if not rows:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Role not found")
        logger.info("Removed role row %s", role_id)
