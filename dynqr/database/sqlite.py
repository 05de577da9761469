"""SQLite implementation of the record store."""

import asyncio
import json
import logging
import sqlite3
import threading
from datetime import datetime
from typing import List, Optional

from ..errors import DuplicateShortIdError, StoreError
from .base import RecordStoreBase
from .models import Record, RecordKind, Payload, record_from_row


class SQLiteRecordStore(RecordStoreBase):
    """Embedded record store.

    sqlite3 calls are blocking, so each operation runs in a worker thread via
    ``asyncio.to_thread``. A thread lock serialises use of the single
    connection; it is only ever held inside the worker, never across an await.
    """

    CREATE_TABLES_SQL = """
    CREATE TABLE IF NOT EXISTS qr_records (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        short_id TEXT NOT NULL UNIQUE,
        kind TEXT NOT NULL,
        payload TEXT NOT NULL,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    );
    CREATE TABLE IF NOT EXISTS issued_short_ids (
        short_id TEXT PRIMARY KEY,
        issued_at TEXT NOT NULL
    );
    """

    SELECT_COLUMNS = "id, short_id, kind, payload, created_at, updated_at"

    def __init__(
        self,
        db_config: str,
        create_tables: bool = True,
        timeout_seconds: float = 30.0,
        logger: Optional[logging.Logger] = None,
    ):
        """Initialize SQLite store.

        Args:
            db_config: ``sqlite:///relative.db``, ``sqlite:////abs/path.db`` or a plain path
            create_tables: Create tables on first use
            timeout_seconds: Lock wait timeout for sqlite
            logger: Optional logger instance
        """
        super().__init__(db_config)
        self.logger = logger or logging.getLogger(__name__)
        self.path = self._parse_path(db_config)
        self.timeout_seconds = timeout_seconds
        self._should_create_tables = create_tables
        self._tables_ready = False
        self._conn: Optional[sqlite3.Connection] = None
        self._lock = threading.Lock()

    @staticmethod
    def _parse_path(db_config: str) -> str:
        if db_config.startswith("sqlite:///"):
            return db_config[len("sqlite:///"):] or ":memory:"
        if db_config.startswith("sqlite://"):
            return db_config[len("sqlite://"):] or ":memory:"
        return db_config

    def _connection(self) -> sqlite3.Connection:
        """Open the connection lazily. Caller holds the lock."""
        if self._conn is None:
            self.logger.debug(f"Opening SQLite database at {self.path}")
            conn = sqlite3.connect(self.path, timeout=self.timeout_seconds, check_same_thread=False)
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA journal_mode=WAL;")
            conn.execute("PRAGMA synchronous=NORMAL;")
            conn.execute("PRAGMA foreign_keys=ON;")
            self._conn = conn
        if self._should_create_tables and not self._tables_ready:
            self._conn.executescript(self.CREATE_TABLES_SQL)
            self._tables_ready = True
        return self._conn

    async def _run(self, operation: str, func, *args):
        """Run a blocking function in a worker thread under the connection lock."""
        def call():
            with self._lock:
                return func(self._connection(), *args)

        try:
            return await asyncio.to_thread(call)
        except DuplicateShortIdError:
            raise
        except (sqlite3.Error, OverflowError) as e:
            # OverflowError: parameter outside SQLite's 64-bit integer range
            self.logger.error(f"Error during {operation}: {e}")
            raise StoreError(f"SQLite {operation} failed") from e

    async def ensure_tables(self) -> None:
        """Create tables if they don't exist."""
        self._should_create_tables = True
        await self._run("create tables", lambda conn: None)

    async def create(
        self,
        short_id: str,
        kind: RecordKind,
        payload: Payload,
        created_at: datetime,
    ) -> Record:
        def insert(conn: sqlite3.Connection) -> Record:
            timestamp = created_at.isoformat()
            try:
                with conn:
                    conn.execute(
                        "INSERT INTO issued_short_ids (short_id, issued_at) VALUES (?, ?)",
                        (short_id, timestamp),
                    )
                    cursor = conn.execute(
                        "INSERT INTO qr_records (short_id, kind, payload, created_at, updated_at) "
                        "VALUES (?, ?, ?, ?, ?)",
                        (short_id, kind.value, json.dumps(payload.to_dict()), timestamp, timestamp),
                    )
            except sqlite3.IntegrityError:
                raise DuplicateShortIdError(short_id)
            return Record(
                id=cursor.lastrowid,
                short_id=short_id,
                kind=kind,
                payload=payload,
                created_at=created_at,
                updated_at=created_at,
            )

        return await self._run("create", insert)

    async def get(self, record_id: int) -> Optional[Record]:
        def select(conn: sqlite3.Connection) -> Optional[Record]:
            row = conn.execute(
                f"SELECT {self.SELECT_COLUMNS} FROM qr_records WHERE id = ?", (record_id,)
            ).fetchone()
            return record_from_row(row) if row else None

        return await self._run("get", select)

    async def get_by_short_id(self, short_id: str) -> Optional[Record]:
        def select(conn: sqlite3.Connection) -> Optional[Record]:
            row = conn.execute(
                f"SELECT {self.SELECT_COLUMNS} FROM qr_records WHERE short_id = ?", (short_id,)
            ).fetchone()
            return record_from_row(row) if row else None

        return await self._run("get_by_short_id", select)

    async def update(
        self,
        record_id: int,
        kind: RecordKind,
        payload: Payload,
        updated_at: datetime,
    ) -> Optional[Record]:
        def apply(conn: sqlite3.Connection) -> Optional[Record]:
            with conn:
                cursor = conn.execute(
                    "UPDATE qr_records SET kind = ?, payload = ?, updated_at = ? WHERE id = ?",
                    (kind.value, json.dumps(payload.to_dict()), updated_at.isoformat(), record_id),
                )
                if cursor.rowcount == 0:
                    return None
                row = conn.execute(
                    f"SELECT {self.SELECT_COLUMNS} FROM qr_records WHERE id = ?", (record_id,)
                ).fetchone()
            return record_from_row(row)

        return await self._run("update", apply)

    async def delete(self, record_id: int) -> bool:
        def remove(conn: sqlite3.Connection) -> bool:
            with conn:
                cursor = conn.execute("DELETE FROM qr_records WHERE id = ?", (record_id,))
            return cursor.rowcount > 0

        return await self._run("delete", remove)

    async def list_records(self) -> List[Record]:
        def select(conn: sqlite3.Connection) -> List[Record]:
            rows = conn.execute(
                f"SELECT {self.SELECT_COLUMNS} FROM qr_records ORDER BY id"
            ).fetchall()
            return [record_from_row(row) for row in rows]

        return await self._run("list", select)

    async def clear_all(self) -> int:
        def remove(conn: sqlite3.Connection) -> int:
            with conn:
                cursor = conn.execute("DELETE FROM qr_records")
            return cursor.rowcount

        return await self._run("clear_all", remove)

    async def close(self) -> None:
        """Close the database connection."""
        def close_conn():
            with self._lock:
                if self._conn is not None:
                    self._conn.close()
                    self._conn = None

        await asyncio.to_thread(close_conn)
        self.logger.debug("SQLite store closed")
