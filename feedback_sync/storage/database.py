"""
asyncpg pool shared by the feedback repository and the CLI.

The pool is created lazily by connect() and torn down by close(); every
query helper borrows a connection for the duration of a single statement.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from types import TracebackType
from typing import Any

import asyncpg

from feedback_sync.config.settings import get_settings

logger = logging.getLogger(__name__)


class Database:
    """
    Owner of the PostgreSQL connection pool.

    Pool bounds and the per-statement timeout default to the values in
    Settings (DB_POOL_MIN_SIZE, DB_POOL_MAX_SIZE, DB_COMMAND_TIMEOUT).

        async with Database() as db:
            rows = await db.fetch("SELECT * FROM feedbacks")
    """

    def __init__(
        self,
        database_url: str | None = None,
        min_size: int | None = None,
        max_size: int | None = None,
        command_timeout: float | None = None,
    ):
        settings = get_settings()

        self._dsn = database_url or str(settings.database_url)
        self._pool_bounds = (
            min_size or settings.db_pool_min_size,
            max_size or settings.db_pool_max_size,
        )
        self._command_timeout = command_timeout or settings.db_command_timeout
        self._pool: asyncpg.Pool | None = None

    @property
    def is_connected(self) -> bool:
        return self._pool is not None

    async def connect(self) -> None:
        """Open the pool. Connection errors are logged and re-raised."""
        min_size, max_size = self._pool_bounds
        try:
            self._pool = await asyncpg.create_pool(
                self._dsn,
                min_size=min_size,
                max_size=max_size,
                command_timeout=self._command_timeout,
            )
        except Exception as e:
            logger.error(f"PostgreSQL pool creation failed: {e}")
            raise

        logger.info(f"PostgreSQL pool ready ({min_size}..{max_size} connections)")

    async def close(self) -> None:
        if self._pool is None:
            return
        await self._pool.close()
        self._pool = None
        logger.info("PostgreSQL pool closed")

    async def __aenter__(self) -> "Database":
        await self.connect()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()

    @property
    def pool(self) -> asyncpg.Pool:
        if self._pool is None:
            raise RuntimeError("Database not connected; call connect() before querying")
        return self._pool

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[asyncpg.Connection]:
        """Borrow one pooled connection."""
        async with self.pool.acquire() as conn:
            yield conn

    async def execute(self, query: str, *args: Any) -> str:
        """Run a statement; returns the command tag, e.g. ``INSERT 0 1``."""
        async with self.acquire() as conn:
            return await conn.execute(query, *args)

    async def fetch(self, query: str, *args: Any) -> list[asyncpg.Record]:
        async with self.acquire() as conn:
            return await conn.fetch(query, *args)

    async def fetchval(self, query: str, *args: Any) -> Any:
        async with self.acquire() as conn:
            return await conn.fetchval(query, *args)

    async def health_check(self) -> bool:
        """True when a trivial round-trip succeeds."""
        if self._pool is None:
            return False
        try:
            return await self.fetchval("SELECT 1") == 1
        except Exception as e:
            logger.warning(f"PostgreSQL health check failed: {e}")
            return False
