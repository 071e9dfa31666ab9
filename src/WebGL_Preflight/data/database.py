"""SQLite connection lifecycle and migration runner.

One aiosqlite connection per Database, in WAL mode with foreign keys on.
Schema and reference data live in numbered SQL files under migrations/,
applied in order and recorded in ``schema_version``.
"""

import datetime
import logging
from pathlib import Path
from types import TracebackType

import aiosqlite

logger = logging.getLogger(__name__)

_MIGRATIONS_DIR = Path(__file__).parent / "migrations"

IN_MEMORY_PATH = ":memory:"


class Database:
    """Async SQLite database with connection lifecycle and migration support.

    Usage::

        async with Database("data/preflight.db") as db:
            repo = Repository(db)
            ...
    """

    def __init__(self, db_path: str = "data/preflight.db") -> None:
        self._db_path = db_path
        self._connection: aiosqlite.Connection | None = None

    @property
    def path(self) -> str:
        return self._db_path

    @property
    def connection(self) -> aiosqlite.Connection:
        """Return the active connection or raise if not connected."""
        if self._connection is None:
            msg = "Database is not connected. Call connect() or use 'async with'."
            raise RuntimeError(msg)
        return self._connection

    async def connect(self) -> None:
        """Open the connection, enable WAL + foreign keys, apply migrations.

        The parent directory of a file-backed database is created if missing.
        """
        if self._db_path != IN_MEMORY_PATH:
            Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)
        self._connection = await aiosqlite.connect(self._db_path)
        await self._connection.execute("PRAGMA journal_mode=WAL")
        await self._connection.execute("PRAGMA foreign_keys=ON")
        await self._run_migrations()
        logger.info("Database connected: %s", self._db_path)

    async def close(self) -> None:
        """Close the database connection."""
        if self._connection is not None:
            await self._connection.close()
            self._connection = None
            logger.info("Database closed: %s", self._db_path)

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

    async def applied_versions(self) -> list[int]:
        """Migration versions recorded in ``schema_version``, ascending."""
        cursor = await self.connection.execute("SELECT version FROM schema_version ORDER BY version")
        rows = await cursor.fetchall()
        return [row[0] for row in rows]

    async def _run_migrations(self) -> None:
        """Apply pending NNN_description.sql files in version order.

        Already-applied versions are skipped, so reconnecting is safe.
        """
        conn = self.connection
        await conn.execute(
            "CREATE TABLE IF NOT EXISTS schema_version "
            "(version INTEGER PRIMARY KEY, applied_at TEXT NOT NULL)"
        )
        await conn.commit()

        applied = set(await self.applied_versions())

        for migration_file in sorted(_MIGRATIONS_DIR.glob("*.sql")):
            version = int(migration_file.name.split("_", 1)[0])
            if version in applied:
                logger.debug("Migration %03d already applied, skipping.", version)
                continue

            logger.info("Applying migration %03d: %s", version, migration_file.name)
            # executescript() commits per statement; a failed file is not
            # recorded and is retried on the next connect.
            await conn.executescript(migration_file.read_text(encoding="utf-8"))
            await conn.execute(
                "INSERT INTO schema_version (version, applied_at) VALUES (?, ?)",
                (version, datetime.datetime.now(datetime.UTC).isoformat()),
            )
            await conn.commit()
            logger.info("Migration %03d applied successfully.", version)
