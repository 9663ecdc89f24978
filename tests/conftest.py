from collections.abc import AsyncGenerator
from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from unilib.adapters.llm.mock import MockLLMAdapter
from unilib.adapters.realtime.memory import InProcessChangeFeed
from unilib.adapters.store.sql import SqlStoreAdapter
from unilib.api.deps import get_auth, get_base_store, get_book_search, get_llm, get_realtime_hub
from unilib.domain.models import Base
from unilib.errors import AuthError, StoreError
from unilib.main import app
from unilib.ports.auth import AuthPort, AuthSession, Principal
from unilib.ports.book_search import BookSearchPort, VolumeSummary
from unilib.ports.store import StorePort
from unilib.services.realtime import RealtimeHub

# In-memory SQLite shared across sessions through a single pooled connection
TEST_DATABASE_URL = "sqlite+aiosqlite://"
BASE = "http://test"


class FakeAuth(AuthPort):
    """Auth provider double: the token for user ``u1`` is ``token-u1``."""

    def __init__(self) -> None:
        self.accounts: dict[str, tuple[str, str]] = {}
        self.signed_out: list[str] = []

    async def get_user(self, access_token: str) -> Principal | None:
        if not access_token.startswith("token-"):
            return None
        return Principal(id=access_token.removeprefix("token-"), access_token=access_token)

    async def sign_in_password(self, email: str, password: str) -> AuthSession:
        account = self.accounts.get(email)
        if account is None or account[0] != password:
            raise AuthError("Invalid login credentials")
        user_id = account[1]
        return AuthSession(
            access_token=f"token-{user_id}",
            refresh_token="refresh",
            principal=Principal(id=user_id, email=email, access_token=f"token-{user_id}"),
        )

    async def sign_up(self, email: str, password: str, full_name: str | None = None) -> Principal:
        if email in self.accounts:
            raise AuthError("User already registered")
        user_id = f"user-{len(self.accounts) + 1}"
        self.accounts[email] = (password, user_id)
        return Principal(id=user_id, email=email)

    async def sign_out(self, access_token: str) -> None:
        self.signed_out.append(access_token)

    def oauth_url(self, provider: str, redirect_to: str | None = None) -> str:
        return f"https://auth.test/authorize?provider={provider}"


class FakeBookSearch(BookSearchPort):
    def __init__(self) -> None:
        self.queries: list[str] = []

    async def search(self, query: str, max_results: int = 40) -> list[VolumeSummary]:
        self.queries.append(query)
        return [VolumeSummary(id="vol-1", title="Dune", authors=["Frank Herbert"])][:max_results]

    async def get_volume(self, volume_id: str) -> VolumeSummary | None:
        if volume_id != "vol-1":
            return None
        return VolumeSummary(id="vol-1", title="Dune", authors=["Frank Herbert"])


class BrokenStore(StorePort):
    """Store whose every call fails like an unreachable backend."""

    async def select(self, table, filters=(), *, columns=None, order=(), limit=None):
        raise StoreError("connection refused")

    async def insert(self, table, row):
        raise StoreError("connection refused")

    async def update(self, table, values, filters):
        raise StoreError("connection refused")

    async def delete(self, table, filters):
        raise StoreError("connection refused")

    async def upsert(self, table, row, on_conflict=("id",)):
        raise StoreError("connection refused")


def bearer(user_id: str) -> dict[str, str]:
    return {"Authorization": f"Bearer token-{user_id}"}


@pytest.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Fresh in-memory database per test."""
    eng = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
def feed() -> InProcessChangeFeed:
    return InProcessChangeFeed()


@pytest.fixture
def hub(feed: InProcessChangeFeed) -> RealtimeHub:
    return RealtimeHub(feed)


@pytest.fixture
def store(engine: AsyncEngine, feed: InProcessChangeFeed) -> SqlStoreAdapter:
    return SqlStoreAdapter(async_sessionmaker(engine, expire_on_commit=False), feed=feed)


@pytest.fixture
def llm() -> MockLLMAdapter:
    return MockLLMAdapter()


@pytest.fixture
def auth() -> FakeAuth:
    return FakeAuth()


@pytest.fixture
def book_search() -> FakeBookSearch:
    return FakeBookSearch()


@pytest.fixture
async def client(store, llm, auth, book_search, hub) -> AsyncGenerator[AsyncClient, None]:
    app.dependency_overrides[get_base_store] = lambda: store
    app.dependency_overrides[get_llm] = lambda: llm
    app.dependency_overrides[get_auth] = lambda: auth
    app.dependency_overrides[get_book_search] = lambda: book_search
    app.dependency_overrides[get_realtime_hub] = lambda: hub
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url=BASE) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def make_book(store):
    """Insert a book row; returns the stored row."""
    counter = {"n": 0}

    async def _make(**fields: Any) -> dict[str, Any]:
        counter["n"] += 1
        row = {
            "title": f"Book {counter['n']}",
            "author": "Some Author",
            "genre": "General",
            "total_copies": 3,
            "available_copies": 3,
            **fields,
        }
        return await store.insert("books", row)

    return _make


@pytest.fixture
def grant(store):
    """Give ``user_id`` a role row."""

    async def _grant(user_id: str, role: str) -> dict[str, Any]:
        return await store.insert("user_roles", {"user_id": user_id, "role": role})

    return _grant
