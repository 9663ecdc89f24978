"""Auth port: the hosted identity provider."""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class Principal:
    """The authenticated user making a request."""

    id: str
    email: str | None = None
    access_token: str | None = None


@dataclass(frozen=True)
class AuthSession:
    access_token: str
    refresh_token: str | None
    principal: Principal


class AuthPort(ABC):
    """Session lookup, sign-in, sign-up, sign-out and OAuth redirects."""

    @abstractmethod
    async def get_user(self, access_token: str) -> Principal | None:
        """Resolve a bearer token to its principal, or None when it is not valid."""
        ...

    @abstractmethod
    async def sign_in_password(self, email: str, password: str) -> AuthSession:
        ...

    @abstractmethod
    async def sign_up(self, email: str, password: str, full_name: str | None = None) -> Principal:
        ...

    @abstractmethod
    async def sign_out(self, access_token: str) -> None:
        ...

    @abstractmethod
    def oauth_url(self, provider: str, redirect_to: str | None = None) -> str:
        """Build the URL a browser is sent to for an OAuth sign-in."""
        ...
