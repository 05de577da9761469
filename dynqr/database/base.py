"""Abstract base class for QR record store implementations."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional, List

from .models import Record, RecordKind, Payload

# Ids are signed 64-bit integers in every SQL backend.
MAX_RECORD_ID = 2**63 - 1


class RecordStoreBase(ABC):
    """Abstract base class for record store operations.

    Stores own the uniqueness of short ids. A short id that was ever issued
    stays reserved after its record is deleted, so ``create`` must reject it.
    """

    def __init__(self, db_config: str):
        """Initialize store.

        Args:
            db_config: Database connection string
        """
        self.db_config = db_config

    @abstractmethod
    async def create(
        self,
        short_id: str,
        kind: RecordKind,
        payload: Payload,
        created_at: datetime,
    ) -> Record:
        """Persist a new record.

        Args:
            short_id: Freshly generated short id
            kind: Record kind
            payload: Validated payload matching ``kind``
            created_at: Creation timestamp (also the initial updated_at)

        Returns:
            The stored record with its store-assigned id

        Raises:
            DuplicateShortIdError: If ``short_id`` was issued before
            StoreError: On backend failure
        """
        pass

    @abstractmethod
    async def get(self, record_id: int) -> Optional[Record]:
        """Get a record by internal id.

        Returns:
            The record if found, None otherwise
        """
        pass

    @abstractmethod
    async def get_by_short_id(self, short_id: str) -> Optional[Record]:
        """Get a record by short id.

        Returns:
            The record if found, None otherwise
        """
        pass

    @abstractmethod
    async def update(
        self,
        record_id: int,
        kind: RecordKind,
        payload: Payload,
        updated_at: datetime,
    ) -> Optional[Record]:
        """Replace kind and payload of a record atomically.

        short_id, id and created_at are preserved.

        Returns:
            The updated record, or None if no record has ``record_id``
        """
        pass

    @abstractmethod
    async def delete(self, record_id: int) -> bool:
        """Delete one record.

        Returns:
            True if deleted, False if not found
        """
        pass

    @abstractmethod
    async def list_records(self) -> List[Record]:
        """List all records, oldest first."""
        pass

    @abstractmethod
    async def clear_all(self) -> int:
        """Delete every record.

        Returns:
            Number of records deleted
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close database connections."""
        pass
