"""
Database connection pool management
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from enum import Enum
from typing import AsyncIterator, Callable, Optional, Union

from sqlalchemy.engine import URL, make_url
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine

from utils.config import Settings

logger = logging.getLogger(__name__)


def build_database_url(settings: Settings) -> Union[str, URL]:
    """SQL Server URL for the aioodbc driver, unless DATABASE_URL overrides it."""
    if settings.database_url:
        return make_url(settings.database_url)

    query = {
        "driver": settings.db_driver,
        "Encrypt": "yes" if settings.db_encrypt else "no",
        "TrustServerCertificate": "yes" if settings.db_trust_server_certificate else "no",
    }
    if not settings.db_user:
        # Windows integrated authentication (SQL Server Express setups)
        query["Trusted_Connection"] = "yes"

    return URL.create(
        "mssql+aioodbc",
        username=settings.db_user,
        password=settings.db_password if settings.db_user else None,
        host=settings.db_server,
        database=settings.db_name,
        query=query,
    )


class PoolState(str, Enum):
    UNCONNECTED = "unconnected"
    CONNECTED = "connected"
    FAILED = "failed"


class ConnectionPool:
    """
    Owns one lazily created async engine.

    Any error raised while a connection is checked out disposes the engine and
    marks the pool FAILED; the next acquire() builds a fresh engine.
    """

    def __init__(
        self,
        url: Union[str, URL],
        *,
        pool_size: int = 10,
        pool_timeout: int = 30,
        pool_recycle: int = 1800,
        echo: bool = False,
        engine_factory: Callable[..., AsyncEngine] = create_async_engine,
    ):
        self.url = url
        self.pool_size = pool_size
        self.pool_timeout = pool_timeout
        self.pool_recycle = pool_recycle
        self.echo = echo
        self._engine_factory = engine_factory
        self._engine: Optional[AsyncEngine] = None
        self._lock = asyncio.Lock()
        self.state = PoolState.UNCONNECTED
        self.last_error: Optional[BaseException] = None

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs) -> "ConnectionPool":
        return cls(
            build_database_url(settings),
            pool_size=settings.db_pool_size,
            pool_timeout=settings.db_pool_timeout,
            pool_recycle=settings.db_pool_recycle,
            echo=settings.is_development and settings.log_level.upper() == "DEBUG",
            **kwargs,
        )

    async def get_engine(self) -> AsyncEngine:
        async with self._lock:
            if self._engine is None:
                logger.info("Creating SQL Server connection pool")
                self._engine = self._engine_factory(
                    self.url,
                    echo=self.echo,
                    pool_size=self.pool_size,
                    pool_timeout=self.pool_timeout,
                    pool_recycle=self.pool_recycle,
                    pool_pre_ping=True,
                )
                self.state = PoolState.CONNECTED
            return self._engine

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[AsyncConnection]:
        """
        Check out a connection inside a transaction.

        Commits when the block exits cleanly, rolls back otherwise, and always
        returns the connection to the pool.
        """
        engine = await self.get_engine()
        try:
            async with engine.begin() as conn:
                yield conn
        except Exception as exc:
            await self.reset(exc)
            raise

    async def reset(self, error: Optional[BaseException] = None) -> None:
        async with self._lock:
            engine, self._engine = self._engine, None
            self.state = PoolState.FAILED
            self.last_error = error
        if error is not None:
            logger.warning("Resetting connection pool after error: %s", error)
        if engine is not None:
            try:
                await engine.dispose()
            except Exception as exc:
                logger.error("Error closing pool: %s", exc)

    async def dispose(self) -> None:
        async with self._lock:
            engine, self._engine = self._engine, None
            self.state = PoolState.UNCONNECTED
        if engine is not None:
            await engine.dispose()
            logger.info("SQL Server connection pool closed")
