"""
Async SQLite connection pool with aiosqlite.

Connections run in autocommit mode; write transactions are opened explicitly
with ``BEGIN IMMEDIATE`` so concurrent writers serialize on the database lock
instead of failing on upgrade. The connection of the active transaction is
held in a context variable, and any store that acquires a connection inside
it joins the same transaction.
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from contextvars import ContextVar
from pathlib import Path

import aiosqlite

from lounge_pos.config import get_logger, get_settings

logger = get_logger(__name__)

_active_transaction: ContextVar[aiosqlite.Connection | None] = ContextVar(
    "lounge_pos_active_transaction", default=None
)


class ConnectionPool:
    """
    Async SQLite connection pool.

    Manages a pool of connections with configurable size.
    """

    def __init__(
        self,
        db_path: Path,
        pool_size: int = 5,
        busy_timeout: int = 30000,
    ):
        self.db_path = db_path
        self.pool_size = pool_size
        self.busy_timeout = busy_timeout

        self._pool: asyncio.Queue[aiosqlite.Connection] = asyncio.Queue(maxsize=pool_size)
        self._connections: list[aiosqlite.Connection] = []
        self._initialized = False
        self._lock = asyncio.Lock()
        self._releasing: set[asyncio.Task] = set()

    async def initialize(self) -> None:
        """Initialize the connection pool."""
        async with self._lock:
            if self._initialized:
                return

            self.db_path.parent.mkdir(parents=True, exist_ok=True)

            for _ in range(self.pool_size):
                conn = await self._create_connection()
                self._connections.append(conn)
                await self._pool.put(conn)

            self._initialized = True
            logger.info(
                "connection_pool_initialized",
                db_path=str(self.db_path),
                pool_size=self.pool_size,
            )

    async def _create_connection(self) -> aiosqlite.Connection:
        """Create a new autocommit connection."""
        conn = await aiosqlite.connect(self.db_path, isolation_level=None)

        await conn.execute("PRAGMA journal_mode=WAL")
        await conn.execute("PRAGMA synchronous=NORMAL")
        await conn.execute(f"PRAGMA busy_timeout={self.busy_timeout}")
        await conn.execute("PRAGMA foreign_keys=ON")

        conn.row_factory = aiosqlite.Row

        return conn

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[aiosqlite.Connection]:
        """
        Acquire a connection from the pool.

        Inside an open transaction the transaction's connection is returned.

        Usage:
            async with pool.acquire() as conn:
                await conn.execute(...)
        """
        active = _active_transaction.get()
        if active is not None:
            yield active
            return

        if not self._initialized:
            await self.initialize()

        conn = await self._pool.get()
        try:
            yield conn
        except asyncio.CancelledError:
            # the cancelled statement may still be running on the connection thread
            self._release_later(conn)
            raise
        except BaseException:
            await self._release(conn)
            raise
        else:
            await self._release(conn)

    async def _release(self, conn: aiosqlite.Connection, drain: bool = False) -> None:
        """Return a connection to the pool with no transaction left open."""
        try:
            if drain:
                await conn.execute("SELECT 1")
            if conn.in_transaction:
                await conn.execute("ROLLBACK")
                logger.warning("connection_released_in_transaction", db_path=str(self.db_path))
        except aiosqlite.Error as e:
            logger.warning("connection_reset_failed", db_path=str(self.db_path), error=str(e))
        finally:
            if conn in self._connections:
                self._pool.put_nowait(conn)

    def _release_later(self, conn: aiosqlite.Connection) -> None:
        task = asyncio.get_running_loop().create_task(self._release(conn, drain=True))
        self._releasing.add(task)
        task.add_done_callback(self._releasing.discard)

    async def wait_released(self) -> None:
        """Wait until connections handed back by cancelled callers are reset."""
        if self._releasing:
            await asyncio.gather(*list(self._releasing), return_exceptions=True)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[aiosqlite.Connection]:
        """
        Acquire a connection with transaction context.

        Commits on success and rolls back on any exception, cancellation
        included. A nested call joins the outer transaction; only the
        outermost block commits.
        """
        active = _active_transaction.get()
        if active is not None:
            yield active
            return

        async with self.acquire() as conn:
            token = _active_transaction.set(conn)
            try:
                await conn.execute("BEGIN IMMEDIATE")
                yield conn
            except BaseException:
                if conn.in_transaction:
                    await conn.execute("ROLLBACK")
                logger.debug("transaction_rolled_back", db_path=str(self.db_path))
                raise
            else:
                try:
                    await conn.execute("COMMIT")
                except BaseException:
                    if conn.in_transaction:
                        await conn.execute("ROLLBACK")
                    raise
            finally:
                _active_transaction.reset(token)

    async def close(self) -> None:
        """Close all connections in the pool."""
        await self.wait_released()
        async with self._lock:
            for conn in self._connections:
                await conn.close()
            self._connections.clear()
            self._pool = asyncio.Queue(maxsize=self.pool_size)
            self._initialized = False
            logger.info("connection_pool_closed")


def in_transaction() -> bool:
    """True when the current context holds an open transaction."""
    return _active_transaction.get() is not None


# Global connection pool
_pool: ConnectionPool | None = None


async def get_pool() -> ConnectionPool:
    """Get or create the global connection pool."""
    global _pool
    if _pool is None:
        settings = get_settings()
        _pool = ConnectionPool(
            db_path=settings.storage.db_path,
            pool_size=settings.storage.pool_size,
            busy_timeout=settings.storage.busy_timeout,
        )
        await _pool.initialize()
    return _pool


async def close_pool() -> None:
    """Close the global connection pool."""
    global _pool
    if _pool is not None:
        await _pool.close()
        _pool = None


@asynccontextmanager
async def get_connection() -> AsyncIterator[aiosqlite.Connection]:
    """Get a connection from the global pool."""
    pool = await get_pool()
    async with pool.acquire() as conn:
        yield conn


@asynccontextmanager
async def get_transaction() -> AsyncIterator[aiosqlite.Connection]:
    """Get a connection inside a (possibly joined) transaction."""
    pool = await get_pool()
    async with pool.transaction() as conn:
        yield conn
