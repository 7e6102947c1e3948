# userhub/app/db/session.py
"""
Async database session management for SQLAlchemy.

- aiosqlite for SQLite (local development, tests)
- asyncpg for PostgreSQL (production)
- Pool settings differ for SQLite (no pooling) vs PostgreSQL
"""
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool, AsyncAdaptedQueuePool

from userhub.app.core.config import Settings, settings


def create_engine_for(config: Settings) -> AsyncEngine:
    """
    Create and configure an async SQLAlchemy engine.

    SQLite:
    - NullPool, one connection per session
    - check_same_thread=False for async compatibility

    PostgreSQL:
    - AsyncAdaptedQueuePool with 5 baseline / 10 overflow connections
    - pool_pre_ping so stale connections are replaced before checkout
    - pool_recycle=300 for hosts that close idle connections
    """
    if config.is_sqlite:
        return create_async_engine(
            config.DATABASE_URL,
            echo=config.DATABASE_ECHO,
            poolclass=NullPool,
            connect_args={"check_same_thread": False},
        )

    return create_async_engine(
        config.DATABASE_URL,
        echo=config.DATABASE_ECHO,
        poolclass=AsyncAdaptedQueuePool,
        pool_size=5,
        max_overflow=10,
        pool_pre_ping=True,
        pool_recycle=300,
    )


def create_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # expire_on_commit=False: attributes stay readable after commit
    # autoflush=False: writes only happen on explicit flush/commit
    return async_sessionmaker(
        bind=bind,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


# ─────────────────────────────────────────────────────────────────────────────
# Global async engine and session factory, created once at module load
# ─────────────────────────────────────────────────────────────────────────────
engine: AsyncEngine = create_engine_for(settings)

AsyncSessionLocal: async_sessionmaker[AsyncSession] = create_session_factory(engine)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency generator for database sessions.

    One session per request, closed after the response even if the endpoint
    raises. Nothing is committed automatically; services commit explicitly.
    """
    async with AsyncSessionLocal() as session:
        yield session
