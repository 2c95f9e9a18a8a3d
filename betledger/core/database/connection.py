"""
Async Database Connection Configuration.

Provides the SQLAlchemy async engine, session factory and the ``get_db``
request dependency. PostgreSQL gets a sized connection pool; SQLite gets
foreign-key enforcement so bookie deletes cascade to their transactions.
"""

import logging
from typing import AsyncGenerator, Optional

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    create_async_engine,
    AsyncEngine,
    AsyncSession,
    async_sessionmaker
)

from betledger.core.config import settings, to_async_url
from betledger.database.models import Base

logger = logging.getLogger(__name__)

# ============================================================================
# Engine Configuration
# ============================================================================

def is_sqlite(url: str) -> bool:
    return make_url(url).get_backend_name() == "sqlite"


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_engine(url: Optional[str] = None) -> AsyncEngine:
    """
    Create Async SQLAlchemy engine.

    The engine is lazy: no connection is opened until the first query.

    Args:
        url: Database URL; defaults to ``settings.ASYNC_DATABASE_URL``.
            Driver-less URLs are rewritten to their async driver.
    """
    url = to_async_url(url or settings.ASYNC_DATABASE_URL)
    location = make_url(url).render_as_string(hide_password=True)

    if is_sqlite(url):
        logger.info(f"Configuring SQLite engine at {location}")
        engine = create_async_engine(
            url,
            echo=settings.DEBUG,
            connect_args={"check_same_thread": False},
        )
        event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
        return engine

    logger.info(
        f"Configuring database engine at {location} with pool_size={settings.DB_POOL_SIZE}, "
        f"max_overflow={settings.DB_MAX_OVERFLOW}"
    )
    return create_async_engine(
        url,
        echo=settings.DEBUG,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_recycle=settings.DB_POOL_RECYCLE,
        pool_pre_ping=True,
        connect_args={"server_settings": {"application_name": "betledger_api"}},
    )


async def create_schema(bind: Optional[AsyncEngine] = None) -> None:
    """Create any missing ledger tables."""
    bind = bind or engine
    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info(f"Schema ready ({len(Base.metadata.tables)} tables)")


engine = create_engine()


# ============================================================================
# Session Factory
# ============================================================================

async_session_factory = async_sessionmaker(
    bind=engine,
    autoflush=False,
    expire_on_commit=False,
    class_=AsyncSession
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency for FastAPI to get DB session.

    Commits when the request handler returns and rolls back on any error.

    Yields:
        AsyncSession: Database session
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception as e:
            await session.rollback()
            logger.error(f"Database session rollback: {e}")
            raise
        finally:
            await session.close()
