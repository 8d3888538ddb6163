"""
Async SQLAlchemy engine, declarative base and the request session dependency.
"""
import re
from collections.abc import AsyncGenerator
from datetime import datetime, timezone
from typing import Annotated

from fastapi import Depends
from sqlalchemy import JSON
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from heartcart.core.config import settings
from heartcart.core.logging import get_logger

logger = get_logger(__name__)

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")


class Base(DeclarativeBase):
    pass


def utcnow() -> datetime:
    """Timezone-aware now, for Python-side column defaults."""
    return datetime.now(timezone.utc)


def normalize_database_url(url: str) -> str:
    """Point plain PostgreSQL URLs at the asyncpg driver."""
    for prefix in ("postgresql://", "postgres://"):
        if url.startswith(prefix):
            return "postgresql+asyncpg://" + url[len(prefix):]
    return url


def create_engine(url: str | None = None) -> AsyncEngine:
    database_url = normalize_database_url(url or settings.database_url)
    logger.info("Configuring database engine", url=re.sub(r":([^:@/]+)@", ":***@", database_url))

    if database_url.startswith("sqlite"):
        # SQLite pools do not take size arguments
        return create_async_engine(database_url, echo=settings.database_echo)
    return create_async_engine(
        database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
        echo=settings.database_echo,
        pool_pre_ping=True,
    )


engine = create_engine()
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    One session per request.

    Commits when the handler returns normally and rolls back when it raises.
    Services that manage their own transaction (publication) may commit
    earlier; the final commit is then a no-op.
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


DbSession = Annotated[AsyncSession, Depends(get_db_session)]


async def init_db() -> None:
    """
    Verify the database is reachable; outside production also create
    missing tables so a fresh development database works without Alembic.
    """
    async with engine.begin() as conn:
        if settings.is_production:
            await conn.exec_driver_sql("SELECT 1")
        else:
            await conn.run_sync(Base.metadata.create_all)
    logger.info("Database ready", environment=settings.environment)


async def close_db() -> None:
    await engine.dispose()
    logger.info("Database connections closed")
