"""
Database configuration.

Async SQLAlchemy engine and session factory.
"""

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from placement_rewards.config.settings import settings


def create_engine(pooled: bool = True):
    """
    Create async engine.

    Args:
        pooled: Use a connection pool. Workers that spin up a fresh event
            loop per message pass False (NullPool).

    Returns:
        AsyncEngine bound to settings.database_url
    """
    if pooled:
        return create_async_engine(
            settings.database_url,
            echo=settings.database_echo,
            pool_pre_ping=True,
        )
    return create_async_engine(
        settings.database_url,
        echo=settings.database_echo,
        poolclass=NullPool,
    )


def create_session_maker(engine) -> async_sessionmaker[AsyncSession]:
    """Create session maker for the given engine."""
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


async_engine = create_engine()
async_session_maker = create_session_maker(async_engine)
