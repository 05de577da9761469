"""Database layer for the QR code manager."""

import logging
from typing import Optional

from .base import RecordStoreBase
from .memory import MemoryRecordStore
from .sqlite import SQLiteRecordStore
from .postgres import PostgresRecordStore
from .models import (
    Record,
    RecordKind,
    LinkPayload,
    ContactCardPayload,
    Payload,
)


def create_store(
    database_url: str,
    create_tables: bool = True,
    logger: Optional[logging.Logger] = None,
) -> RecordStoreBase:
    """Select a record store from a database URL.

    Args:
        database_url: ``memory://``, ``sqlite:///path.db`` or ``postgresql://...``
        create_tables: Create tables on first use (SQL stores)
        logger: Optional logger instance

    Returns:
        Record store instance

    Raises:
        ValueError: If the URL scheme is not supported
    """
    scheme = database_url.split(":", 1)[0].lower()

    if scheme == "memory":
        return MemoryRecordStore(database_url, logger=logger)
    if scheme == "sqlite":
        return SQLiteRecordStore(database_url, create_tables=create_tables, logger=logger)
    if scheme in ("postgres", "postgresql"):
        return PostgresRecordStore(database_url, create_tables=create_tables, logger=logger)

    raise ValueError(f"Unsupported database URL scheme: {scheme}")


__all__ = [
    "RecordStoreBase",
    "MemoryRecordStore",
    "SQLiteRecordStore",
    "PostgresRecordStore",
    "Record",
    "RecordKind",
    "LinkPayload",
    "ContactCardPayload",
    "Payload",
    "create_store",
]
