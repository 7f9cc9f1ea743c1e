"""Database engine and session management."""

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base

from app.core.config import settings

database_url = settings.DATABASE_URL.replace("postgresql://", "postgresql+asyncpg://")

# SQLite (local dev / tests) does not accept pool sizing arguments
_engine_kwargs = {} if database_url.startswith("sqlite") else {
    "pool_pre_ping": True,
    "pool_size": 20,
    "max_overflow": 10,
}

engine = create_async_engine(
    database_url,
    echo=settings.LOG_LEVEL == "DEBUG",
    **_engine_kwargs,
)

async_session = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

Base = declarative_base()


async def get_db():
    """Dependency to get a request-scoped database session."""
    async with async_session() as session:
        yield session


def get_session_factory() -> async_sessionmaker:
    """Dependency returning the session factory.

    Used by work that outlives the request session (background tracking)
    or needs several sessions at once (dashboard fan-out).
    """
    return async_session
