"""
Database handle and session management.
Uses PostgreSQL via asyncpg with SQLAlchemy 2 async engine.

The engine is not created at import time. A single ``Database`` handle is built
at startup (see main.lifespan), stored on ``app.state`` and injected into every
request through ``get_database``. The handle connects lazily on first use and
keeps retrying until a connection succeeds; only success is memoized.
"""

import logging
import ssl
from typing import Optional

from fastapi import Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


def connect_args_for(url: str) -> dict:
    """Driver connect args. Postgres gets a timeout, and SSL behind hosted proxies."""
    if not url.startswith("postgresql"):
        return {}
    connect_args = {"timeout": 30}  # Fail fast if DB unreachable
    if "rlwy.net" in url:
        # Hosted proxy requires SSL; use context that accepts self-signed certs
        ctx = ssl.create_default_context()
        ctx.check_hostname = False
        ctx.verify_mode = ssl.CERT_NONE
        connect_args["ssl"] = ctx
    return connect_args


def _engine_options(url: str) -> dict:
    if not url.startswith("postgresql"):
        return {}
    return {
        "pool_size": 5,
        "max_overflow": 10,
        "pool_pre_ping": True,
        "connect_args": connect_args_for(url),
    }


class Database:
    """Lazily connected store handle. ``acquire()`` returns None while unavailable."""

    def __init__(self, url: Optional[str], echo: bool = False):
        self.url = url or ""
        self.echo = echo
        self._engine: Optional[AsyncEngine] = None
        self._sessionmaker: Optional[async_sessionmaker[AsyncSession]] = None

    @property
    def is_connected(self) -> bool:
        return self._sessionmaker is not None

    async def acquire(self) -> Optional[async_sessionmaker[AsyncSession]]:
        if self._sessionmaker is not None:
            return self._sessionmaker
        if not self.url:
            return None

        engine = None
        try:
            engine = create_async_engine(self.url, echo=self.echo, **_engine_options(self.url))
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except Exception as e:
            logger.warning(f"[Database] Failed to connect: {e}")
            if engine is not None:
                await engine.dispose()
            return None

        # A concurrent acquire may have won while we were probing
        if self._sessionmaker is not None:
            await engine.dispose()
            return self._sessionmaker

        self._engine = engine
        self._sessionmaker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
        logger.info("[Database] Connected.")
        return self._sessionmaker

    async def create_all(self) -> bool:
        """
        Create all tables defined in models.
        Uses create_all which is safe — it only creates tables that don't exist yet.
        """
        # Import models to ensure they are registered with Base.metadata
        import dashboard.models  # noqa: F401

        if await self.acquire() is None:
            return False
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info(f"Database initialized with {len(Base.metadata.tables)} tables: "
                    f"{', '.join(Base.metadata.tables.keys())}")
        return True

    async def check_connection(self) -> bool:
        """Test database connectivity."""
        if await self.acquire() is None:
            return False
        try:
            async with self._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error(f"Database connection failed: {e}")
            return False

    async def dispose(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
        self._engine = None
        self._sessionmaker = None


def get_database(request: Request) -> Database:
    """Dependency that provides the process-wide store handle."""
    return request.app.state.database
