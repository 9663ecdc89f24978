"""Async engine and session factory for the SQL store backend."""

from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine

from unilib.config import settings
from unilib.domain.models import Base

engine: AsyncEngine = create_async_engine(settings.database_url, echo=False)
async_session_factory = async_sessionmaker(engine, expire_on_commit=False)


async def create_tables(bind: AsyncEngine = engine) -> None:
    """Create any missing tables (local development only; use Alembic otherwise)."""
    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
