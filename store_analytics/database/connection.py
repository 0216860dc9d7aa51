"""
Database Connection Management

Async SQLAlchemy engines for the storefront backend. Engines are kept in a
registry keyed by URL so the primary and any read replicas can be used side
by side; the data source picks one through its ConnectivityMonitor.
"""

import asyncio
import time
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Dict, Optional

import structlog
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool
from sqlalchemy import text

from store_analytics.config import get_settings
from .models import Base

logger = structlog.get_logger(__name__)

_engines: Dict[str, AsyncEngine] = {}
_session_factories: Dict[str, async_sessionmaker[AsyncSession]] = {}


def get_engine(url: Optional[str] = None) -> AsyncEngine:
    """
    Get (or lazily create) the engine for ``url``.

    Args:
        url: Async database URL; defaults to the configured primary

    Returns:
        AsyncEngine: Engine bound to that URL
    """
    settings = get_settings()
    url = url or settings.database.async_url

    engine = _engines.get(url)
    if engine is None:
        # asyncpg and aiosqlite manage their own connections
        engine = create_async_engine(
            url,
            echo=settings.database.echo,
            pool_pre_ping=True,
            poolclass=NullPool,
        )
        _engines[url] = engine
        _session_factories[url] = async_sessionmaker(
            bind=engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
    return engine


async def init_database(url: Optional[str] = None, create_tables: bool = False) -> AsyncEngine:
    """
    Initialize and verify the database connection.

    Args:
        url: Async database URL; defaults to the configured primary
        create_tables: Create the storefront tables if missing (demo/test setups)

    Returns:
        AsyncEngine: The initialized database engine
    """
    engine = get_engine(url)

    try:
        async with engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
            if create_tables:
                await conn.run_sync(Base.metadata.create_all)
        logger.info("Database connection established", url=engine.url.render_as_string(hide_password=True))
    except Exception as e:
        logger.error("Failed to connect to database", error=str(e))
        raise

    return engine


async def close_database() -> None:
    """Dispose every engine in the registry."""
    for engine in list(_engines.values()):
        await engine.dispose()
    _engines.clear()
    _session_factories.clear()
    logger.info("Database connection pools closed")


@asynccontextmanager
async def get_db(url: Optional[str] = None) -> AsyncGenerator[AsyncSession, None]:
    """
    Get a database session.

    Context manager that provides a database session and handles
    commit/rollback/close automatically.

    Example:
        async with get_db() as db:
            result = await db.execute(query)
    """
    get_engine(url)
    session = _session_factories[url or get_settings().database.async_url]()
    try:
        yield session
        await session.commit()
    except Exception as e:
        logger.error("Database session error, rolling back", error=str(e), error_type=type(e).__name__)
        await session.rollback()
        raise
    finally:
        await session.close()


async def probe_endpoint(url: str, timeout: float = 5.0) -> bool:
    """True when ``SELECT 1`` succeeds on ``url`` within ``timeout`` seconds."""
    try:
        engine = get_engine(url)

        async def ping() -> None:
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))

        await asyncio.wait_for(ping(), timeout=timeout)
        return True
    except Exception as e:
        logger.debug("Database probe failed", error=str(e), error_type=type(e).__name__)
        return False


async def check_database_health(url: Optional[str] = None) -> dict:
    """
    Check database health status.

    Returns:
        dict: Health status with latency information
    """
    try:
        start = time.perf_counter()
        async with get_db(url) as db:
            await db.execute(text("SELECT 1"))
        latency_ms = (time.perf_counter() - start) * 1000

        return {
            "status": "healthy",
            "latency_ms": round(latency_ms, 2),
        }
    except Exception as e:
        return {
            "status": "unhealthy",
            "error": str(e),
        }
