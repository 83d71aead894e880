
from typing import AsyncGenerator

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from recipe_auth.db.base import Base


def build_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """
    Create the async database engine.

    In-memory SQLite databases get a StaticPool so every session shares
    the same connection (and therefore the same tables).

    Args:
        database_url: SQLAlchemy async database URL.
        echo: Log emitted SQL.

    Returns:
        AsyncEngine: Engine bound to the database.
    """
    kwargs = {"echo": echo}
    if database_url.startswith("sqlite") and ":memory:" in database_url:
        kwargs["connect_args"] = {"check_same_thread": False}
        kwargs["poolclass"] = StaticPool
    return create_async_engine(database_url, **kwargs)


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    """Async session factory bound to the engine."""
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency to get async database session.

    Yields an async database session from the application's session
    factory and ensures it's closed after use.

    Yields:
        AsyncSession: Database session for the request lifespan.
    """
    session_factory = request.app.state.session_factory
    async with session_factory() as session:
        try:
            yield session
        finally:
            await session.close()


async def init_db(engine: AsyncEngine):
    """
    Initialize database and create all tables.

    Creates all tables defined in the models if they don't exist.
    Should be called during application startup.
    """
    # Register models on Base.metadata
    from recipe_auth.models import preferences, user  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
