"""Sign-up, sign-in, sign-out and profile routes (delegated to the auth provider)."""

from fastapi import APIRouter, Depends, HTTPException, status

from unilib.api.deps import get_auth
from unilib.api.middleware.auth import get_principal, get_role_info, get_store
from unilib.api.schemas import (
    LoginRequest,
    OAuthUrlResponse,
    ProfileResponse,
    SignupRequest,
    SignupResponse,
    TokenResponse,
)
from unilib.domain.records import Profile, parse_row
from unilib.errors import AuthError
from unilib.ports.auth import AuthPort, Principal
from unilib.ports.store import StorePort, eq
from unilib.services.roles import RoleInfo

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post("/signup", response_model=SignupResponse, status_code=status.HTTP_201_CREATED)
async def signup(data: SignupRequest, auth: AuthPort = Depends(get_auth)) -> SignupResponse:
    """Create an account; the store creates the matching profile row."""
    try:
        principal = await auth.sign_up(data.email, data.password, data.full_name)
    except AuthError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    return SignupResponse(id=principal.id, email=principal.email)


@router.post("/login", response_model=TokenResponse)
async def login(data: LoginRequest, auth: AuthPort = Depends(get_auth)) -> TokenResponse:
    try:
        session = await auth.sign_in_password(data.email, data.password)
    except AuthError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    return TokenResponse(
        access_token=session.access_token,
        refresh_token=session.refresh_token,
        user_id=session.principal.id,
    )


@router.post("/signout", status_code=status.HTTP_204_NO_CONTENT)
async def signout(
    principal: Principal = Depends(get_principal),
    auth: AuthPort = Depends(get_auth),
) -> None:
    if principal.access_token:
        await auth.sign_out(principal.access_token)


@router.get("/oauth/{provider}", response_model=OAuthUrlResponse)
async def oauth(
    provider: str,
    redirect_to: str | None = None,
    auth: AuthPort = Depends(get_auth),
) -> OAuthUrlResponse:
    """URL to send the browser to for an OAuth sign-in."""
    return OAuthUrlResponse(url=auth.oauth_url(provider, redirect_to))


@router.get("/profile", response_model=ProfileResponse)
async def profile(
    principal: Principal = Depends(get_principal),
    role: RoleInfo = Depends(get_role_info),
    store: StorePort = Depends(get_store),
) -> ProfileResponse:
    rows = await store.select("profiles", [eq("id", principal.id)], limit=1)
    return ProfileResponse(
        id=principal.id,
        email=principal.email,
        profile=parse_row(Profile, rows[0]) if rows else None,
        role=role.role,
        is_admin=role.is_admin,
        is_staff=role.is_staff,
        is_user=role.is_user,
    )
