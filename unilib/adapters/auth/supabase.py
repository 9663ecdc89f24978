"""Supabase auth adapter: GoTrue endpoints over HTTP."""

import logging
from typing import Any
from urllib.parse import urlencode

import httpx

from unilib.errors import AuthError
from unilib.ports.auth import AuthPort, AuthSession, Principal

logger = logging.getLogger(__name__)


def _error_message(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text or f"HTTP {resp.status_code}"
    if isinstance(body, dict):
        for key in ("error_description", "msg", "message", "error"):
            if body.get(key):
                return str(body[key])
    return resp.text


def _principal(user: dict[str, Any], access_token: str | None = None) -> Principal:
    return Principal(id=user["id"], email=user.get("email"), access_token=access_token)


class SupabaseAuthAdapter(AuthPort):
    """Email/password and OAuth sign-in against a Supabase project."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._transport = transport

    async def _post(self, path: str, json: Any = None, token: str | None = None, **params: str) -> httpx.Response:
        headers = {"apikey": self._api_key}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        async with httpx.AsyncClient(transport=self._transport) as client:
            try:
                return await client.post(
                    f"{self._base_url}/auth/v1/{path}", json=json, params=params, headers=headers
                )
            except httpx.HTTPError as exc:
                logger.error("Auth request %s failed: %s", path, exc)
                raise AuthError(str(exc)) from exc

    async def get_user(self, access_token: str) -> Principal | None:
        headers = {"apikey": self._api_key, "Authorization": f"Bearer {access_token}"}
        async with httpx.AsyncClient(transport=self._transport) as client:
            try:
                resp = await client.get(f"{self._base_url}/auth/v1/user", headers=headers)
            except httpx.HTTPError as exc:
                logger.error("Auth user lookup failed: %s", exc)
                raise AuthError(str(exc)) from exc
        if resp.status_code in (401, 403):
            return None
        if resp.is_error:
            raise AuthError(_error_message(resp))
        return _principal(resp.json(), access_token)

    async def sign_in_password(self, email: str, password: str) -> AuthSession:
        resp = await self._post(
            "token", json={"email": email, "password": password}, grant_type="password"
        )
        if resp.is_error:
            logger.info("Password sign-in rejected for %s", email)
            raise AuthError(_error_message(resp))
        data = resp.json()
        token = data["access_token"]
        return AuthSession(
            access_token=token,
            refresh_token=data.get("refresh_token"),
            principal=_principal(data["user"], token),
        )

    async def sign_up(self, email: str, password: str, full_name: str | None = None) -> Principal:
        payload: dict[str, Any] = {"email": email, "password": password}
        if full_name:
            payload["data"] = {"full_name": full_name}
        resp = await self._post("signup", json=payload)
        if resp.is_error:
            raise AuthError(_error_message(resp))
        data = resp.json()
        # with email confirmation enabled GoTrue answers with the bare user
        user = data.get("user") or data
        logger.info("Signed up %s", email)
        return _principal(user, data.get("access_token"))

    async def sign_out(self, access_token: str) -> None:
        resp = await self._post("logout", token=access_token)
        if resp.is_error and resp.status_code not in (401, 403):
            raise AuthError(_error_message(resp))

    def oauth_url(self, provider: str, redirect_to: str | None = None) -> str:
        params = {"provider": provider}
        if redirect_to:
            params["redirect_to"] = redirect_to
        return f"{self._base_url}/auth/v1/authorize?{urlencode(params)}"
