"""Async database engine and session configuration."""

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from chat_sync.core.settings import DatabaseConfig


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""


def create_engine(config: DatabaseConfig, echo: bool = False) -> AsyncEngine:
    """Create the async engine; SQLite keeps its own pooling."""
    if config.is_sqlite:
        return create_async_engine(config.async_url, echo=echo)
    return create_async_engine(
        config.async_url,
        pool_size=10,
        max_overflow=20,
        pool_recycle=3600,
        pool_pre_ping=True,
        echo=echo,
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Build the session factory used by repositories."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def init_database(engine: AsyncEngine) -> None:
    """Create all tables that do not exist yet."""
    # Register ORM tables on Base.metadata.
    from chat_sync.models import chat, message  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
