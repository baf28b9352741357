"""
Storefront API: Connection Provider
=====================================

What:  Async SQLAlchemy engine wrapped in a provider that hands out one
       connection per request.
How:   The engine owns a bounded queue pool. `acquire()` checks out a
       connection, yields it, and always returns it to the pool. Pool
       timeouts become PoolExhausted; connect failures become StoreUnavailable.
Who:   Built once by the server entry point (or by tests) and passed into
       create_app(); used by the product listing handler.
When:  Engine created at startup; connections checked out per request.

Connection Pooling Strategy:
    pool_size:       Persistent connections for normal load
    max_overflow:    Temporary connections for traffic spikes
    pool_timeout:    Upper bound on the wait for a free connection
    pool_pre_ping:   Validates connections before use
    pool_recycle=3600: Recycles connections every hour
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from storefront.config import Settings
from storefront.exceptions import PoolExhausted, StartupError, StoreUnavailable

logger = logging.getLogger(__name__)


# ── Base Model ────────────────────────────────────────────────────────────
class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Holds the shared metadata describing the tables this service reads.
    The tables themselves are created and migrated outside this service.
    """
    pass


class ConnectionProvider:
    """
    Supplies per-request connections from a process-wide pool.

    Lifecycle:
        1. Constructed once at startup (from_settings or directly)
        2. acquire() is called by each request that needs the store
        3. dispose() closes every pooled connection at shutdown

    Thread Safety:
        The underlying pool is safe for concurrent checkout and return.
        The provider holds no other mutable state.
    """

    def __init__(
        self,
        database_url: str,
        pool_size: int = 10,
        max_overflow: int = 5,
        pool_timeout: float = 5.0,
        pool_pre_ping: bool = True,
        echo: bool = False,
    ):
        self.pool_timeout = pool_timeout
        try:
            self.engine: AsyncEngine = create_async_engine(
                database_url,
                pool_size=pool_size,
                max_overflow=max_overflow,
                pool_timeout=pool_timeout,
                pool_pre_ping=pool_pre_ping,
                pool_recycle=3600,
                echo=echo,
            )
        except (SQLAlchemyError, ImportError, TypeError, ValueError) as e:
            # Bad URL, unknown dialect, missing driver, or pool arguments the
            # dialect's pool class does not accept
            raise StartupError(
                message="Could not build the database connection pool",
                context={"error_type": type(e).__name__, "error": str(e)},
            ) from e

    @classmethod
    def from_settings(cls, settings: Settings) -> "ConnectionProvider":
        """Build a provider from application settings."""
        return cls(
            settings.database_url,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_timeout=settings.db_pool_timeout,
            pool_pre_ping=settings.db_pool_pre_ping,
            echo=settings.log_level == "DEBUG",
        )

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[AsyncConnection]:
        """
        Check out a connection for the duration of one request.

        How it works:
            1. Waits at most pool_timeout seconds for a pooled connection
            2. Yields it to the caller
            3. Always closes it (returns it to the pool), on success or error

        Example:
            async with provider.acquire() as conn:
                result = await conn.execute(select(products_table))

        Raises:
            PoolExhausted:    No connection became free within pool_timeout
            StoreUnavailable: The store could not be reached
        """
        try:
            conn = await self.engine.connect()
        except PoolTimeoutError as e:
            logger.warning("Connection pool exhausted after %.1fs", self.pool_timeout)
            raise PoolExhausted(timeout=self.pool_timeout) from e
        except (SQLAlchemyError, OSError) as e:
            logger.warning("Could not connect to the product store: %s", type(e).__name__)
            raise StoreUnavailable(context={"error_type": type(e).__name__}) from e

        try:
            yield conn
        finally:
            await conn.close()

    async def dispose(self) -> None:
        """Close all pooled connections. Called during application shutdown."""
        await self.engine.dispose()
