"""In-process record store."""

import dataclasses
import logging
from datetime import datetime
from typing import Dict, List, Optional, Set

from ..errors import DuplicateShortIdError
from .base import RecordStoreBase
from .models import Record, RecordKind, Payload


class MemoryRecordStore(RecordStoreBase):
    """Record store backed by dictionaries.

    Every method body runs without awaiting, so each mutation is atomic with
    respect to other coroutines on the same event loop.
    """

    def __init__(self, db_config: str = "memory://", logger: Optional[logging.Logger] = None):
        super().__init__(db_config)
        self.logger = logger or logging.getLogger(__name__)
        self._records: Dict[int, Record] = {}
        self._by_short_id: Dict[str, int] = {}
        self._issued_short_ids: Set[str] = set()
        self._next_id = 1

    async def create(
        self,
        short_id: str,
        kind: RecordKind,
        payload: Payload,
        created_at: datetime,
    ) -> Record:
        if short_id in self._issued_short_ids:
            raise DuplicateShortIdError(short_id)

        record = Record(
            id=self._next_id,
            short_id=short_id,
            kind=kind,
            payload=payload,
            created_at=created_at,
            updated_at=created_at,
        )
        self._next_id += 1
        self._issued_short_ids.add(short_id)
        self._records[record.id] = record
        self._by_short_id[short_id] = record.id
        return record

    async def get(self, record_id: int) -> Optional[Record]:
        return self._records.get(record_id)

    async def get_by_short_id(self, short_id: str) -> Optional[Record]:
        record_id = self._by_short_id.get(short_id)
        if record_id is None:
            return None
        return self._records.get(record_id)

    async def update(
        self,
        record_id: int,
        kind: RecordKind,
        payload: Payload,
        updated_at: datetime,
    ) -> Optional[Record]:
        current = self._records.get(record_id)
        if current is None:
            return None
        updated = dataclasses.replace(current, kind=kind, payload=payload, updated_at=updated_at)
        self._records[record_id] = updated
        return updated

    async def delete(self, record_id: int) -> bool:
        record = self._records.pop(record_id, None)
        if record is None:
            return False
        self._by_short_id.pop(record.short_id, None)
        return True

    async def list_records(self) -> List[Record]:
        return sorted(self._records.values(), key=lambda r: r.id)

    async def clear_all(self) -> int:
        count = len(self._records)
        self._records.clear()
        self._by_short_id.clear()
        return count

    async def close(self) -> None:
        self.logger.debug("Memory store closed")
