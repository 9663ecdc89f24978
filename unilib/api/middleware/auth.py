"""Request-scoped session context: principal, scoped store and effective role."""

import logging

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from unilib.api.deps import get_auth, get_base_store
from unilib.errors import AuthError
from unilib.ports.auth import AuthPort, Principal
from unilib.ports.store import StorePort
from unilib.services.roles import RoleInfo, resolve_role_info

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


async def get_optional_principal(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    auth: AuthPort = Depends(get_auth),
) -> Principal | None:
    """Resolve the bearer token once per request; None when absent or not valid."""
    if credentials is None:
        return None
    try:
        return await auth.get_user(credentials.credentials)
    except AuthError as exc:
        logger.warning("Could not resolve bearer token: %s", exc)
        return None


async def get_principal(
    principal: Principal | None = Depends(get_optional_principal),
) -> Principal:
    if principal is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Sign in required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return principal


def get_store(
    principal: Principal | None = Depends(get_optional_principal),
    store: StorePort = Depends(get_base_store),
) -> StorePort:
    return store.for_principal(principal)


async def get_role_info(
    principal: Principal = Depends(get_principal),
    store: StorePort = Depends(get_store),
) -> RoleInfo:
    return await resolve_role_info(store, principal.id)


async def require_staff(
    principal: Principal = Depends(get_principal),
    role: RoleInfo = Depends(get_role_info),
) -> Principal:
    if not role.is_staff:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Staff access required")
    return principal


async def require_admin(
    principal: Principal = Depends(get_principal),
    role: RoleInfo = Depends(get_role_info),
) -> Principal:
    if not role.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return principal
