"""Async SQLite connection wrapper with WAL mode and schema initialization."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import aiosqlite

from treestore.db.schema import SCHEMA_SQL


class Database:
    """Thin async wrapper around aiosqlite with WAL mode and auto-schema.

    The connection runs in autocommit mode; multi-statement units of work
    go through ``transaction()``, which issues an explicit ``BEGIN IMMEDIATE``.
    """

    def __init__(self, connection: aiosqlite.Connection) -> None:
        self._conn = connection
        self._in_transaction = False

    @classmethod
    async def connect(cls, path: str = "treestore.db") -> "Database":
        """Create a connection with WAL mode, busy timeout, and schema init."""
        conn = await aiosqlite.connect(path, isolation_level=None)
        conn.row_factory = aiosqlite.Row
        await conn.execute("PRAGMA journal_mode=WAL")
        await conn.execute("PRAGMA busy_timeout=5000")
        db = cls(conn)
        await db._ensure_schema()
        return db

    async def _ensure_schema(self) -> None:
        """Create tables if they don't exist. Idempotent."""
        await self._conn.executescript(SCHEMA_SQL)

    @property
    def in_transaction(self) -> bool:
        return self._in_transaction

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator["Database"]:
        """Run the enclosed statements as one atomic unit.

        Commits on normal exit, rolls back on any exception and re-raises it.
        """
        if self._in_transaction:
            raise RuntimeError("Nested transactions are not supported")
        await self._conn.execute("BEGIN IMMEDIATE")
        self._in_transaction = True
        try:
            yield self
        except BaseException:
            await self._conn.rollback()
            raise
        else:
            await self._conn.commit()
        finally:
            self._in_transaction = False

    async def execute(self, sql: str, params: tuple | None = None) -> aiosqlite.Cursor:
        """Execute a single SQL statement."""
        return await self._conn.execute(sql, params or ())

    async def fetchone(self, sql: str, params: tuple | None = None) -> aiosqlite.Row | None:
        """Execute and return a single row."""
        cursor = await self._conn.execute(sql, params or ())
        return await cursor.fetchone()

    async def fetchall(self, sql: str, params: tuple | None = None) -> list[aiosqlite.Row]:
        """Execute and return all rows."""
        cursor = await self._conn.execute(sql, params or ())
        return list(await cursor.fetchall())

    async def close(self) -> None:
        """Close the database connection."""
        await self._conn.close()
