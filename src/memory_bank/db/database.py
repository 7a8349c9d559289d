"""SQLite storage backing the vector index and the summary store."""

import asyncio
import json
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import aiosqlite
import sqlite_vec

logger = logging.getLogger(__name__)

# (version, statements) applied in order inside one transaction each
MIGRATIONS: list[tuple[int, list[str]]] = [
    (
        1,
        [
            """
            CREATE TABLE items (
                project_name TEXT NOT NULL,
                name TEXT NOT NULL,
                text TEXT NOT NULL,
                tags TEXT NOT NULL DEFAULT '[]',
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL,
                last_accessed_at TEXT,
                salience REAL NOT NULL DEFAULT 0.5,
                frequency INTEGER NOT NULL DEFAULT 0,
                PRIMARY KEY (project_name, name)
            )
            """,
            # float32 blobs written with vec_f32() and compared with vec_distance_cosine()
            """
            CREATE TABLE item_vectors (
                project_name TEXT NOT NULL,
                name TEXT NOT NULL,
                embedding BLOB NOT NULL,
                PRIMARY KEY (project_name, name),
                FOREIGN KEY (project_name, name)
                    REFERENCES items (project_name, name) ON DELETE CASCADE
            )
            """,
            """
            CREATE TABLE summaries (
                id TEXT PRIMARY KEY,
                project_name TEXT NOT NULL,
                level TEXT NOT NULL CHECK (level IN ('node', 'section', 'project')),
                summary_type TEXT NOT NULL,
                text TEXT NOT NULL,
                source_item_ids TEXT NOT NULL DEFAULT '[]',
                child_summary_ids TEXT NOT NULL DEFAULT '[]',
                token_count INTEGER NOT NULL DEFAULT 0,
                compression_ratio REAL NOT NULL DEFAULT 1.0,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL,
                embedding TEXT,
                degraded INTEGER NOT NULL DEFAULT 0
            )
            """,
            "CREATE INDEX idx_items_project_updated ON items (project_name, updated_at)",
            "CREATE INDEX idx_summaries_project_level ON summaries (project_name, level)",
        ],
    ),
]

SCHEMA_VERSION = MIGRATIONS[-1][0]


class Database:
    """One aiosqlite connection with sqlite-vec loaded.

    Writes go through `transaction()`, which serializes writers on an
    asyncio lock; reads run directly.
    """

    def __init__(self, database_path: str, embedding_dimensions: int = 384) -> None:
        """Initialize database.

        Args:
            database_path: SQLite file path, or ":memory:"
            embedding_dimensions: Vector size stored in item_vectors
        """
        self.database_path = database_path
        self.embedding_dimensions = embedding_dimensions
        self._conn: aiosqlite.Connection | None = None
        self._write_lock = asyncio.Lock()
        self._in_transaction = False

    @property
    def connection(self) -> aiosqlite.Connection:
        """The open connection.

        Raises:
            RuntimeError: If `connect()` has not been called
        """
        if self._conn is None:
            raise RuntimeError("Database not connected")
        return self._conn

    async def connect(self) -> None:
        """Open the connection, load sqlite-vec and enable foreign keys."""
        if self.database_path != ":memory:":
            Path(self.database_path).parent.mkdir(parents=True, exist_ok=True)

        conn = await aiosqlite.connect(self.database_path)
        conn.row_factory = aiosqlite.Row

        # Must run on aiosqlite's worker thread, which owns the connection
        await conn.enable_load_extension(True)
        await conn.load_extension(sqlite_vec.loadable_path())
        await conn.enable_load_extension(False)
        await conn.execute("PRAGMA foreign_keys = ON")

        self._conn = conn
        logger.debug("Opened %s", self.database_path)

    async def close(self) -> None:
        if self._conn is not None:
            await self._conn.close()
            self._conn = None

    async def execute(
        self, sql: str, parameters: tuple[Any, ...] | dict[str, Any] = ()
    ) -> aiosqlite.Cursor:
        return await self.connection.execute(sql, parameters)

    async def fetchone(
        self, sql: str, parameters: tuple[Any, ...] = ()
    ) -> aiosqlite.Row | None:
        cursor = await self.execute(sql, parameters)
        return await cursor.fetchone()

    async def fetchall(self, sql: str, parameters: tuple[Any, ...] = ()) -> list[aiosqlite.Row]:
        cursor = await self.execute(sql, parameters)
        return list(await cursor.fetchall())

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        """Run the enclosed statements atomically.

        A transaction opened inside another joins the outer one.

        Example:
            async with db.transaction():
                await db.execute(...)
        """
        conn = self.connection

        if self._in_transaction:
            yield
            return

        async with self._write_lock:
            self._in_transaction = True
            await conn.execute("BEGIN")
            try:
                yield
                await conn.commit()
            except Exception:
                await conn.rollback()
                raise
            finally:
                self._in_transaction = False

    async def schema_version(self) -> int:
        """Highest applied migration, 0 for a fresh database."""
        await self.execute(
            """
            CREATE TABLE IF NOT EXISTS schema_version (
                version INTEGER PRIMARY KEY,
                applied_at TEXT NOT NULL
            )
            """
        )
        row = await self.fetchone("SELECT MAX(version) AS version FROM schema_version")
        return (row["version"] or 0) if row else 0

    async def migrate(self) -> None:
        """Apply pending migrations."""
        current = await self.schema_version()

        for version, statements in MIGRATIONS:
            if version <= current:
                continue
            async with self.transaction():
                for statement in statements:
                    await self.execute(statement)
                await self.execute(
                    "INSERT INTO schema_version (version, applied_at) VALUES (?, ?)",
                    (version, datetime.now(timezone.utc).isoformat()),
                )
            logger.info("Applied schema migration %d", version)

    @staticmethod
    def serialize_json(data: Any) -> str:
        return json.dumps(data, ensure_ascii=False)

    @staticmethod
    def deserialize_json(data: str | None, default: Any = None) -> Any:
        """Parse a JSON column, returning `default` for NULL or empty values."""
        return json.loads(data) if data else default
