"""Test helpers."""

from typing import Iterable, List, Optional

from dynqr.database.memory import MemoryRecordStore
from dynqr.errors import StoreError
from dynqr.shortid import ShortIdGenerator


class SequenceGenerator(ShortIdGenerator):
    """Low-entropy generator replaying a fixed sequence of ids.

    Once the sequence is exhausted the last id repeats forever.
    """

    def __init__(self, ids: Iterable[str]):
        super().__init__()
        self.ids: List[str] = list(ids)
        self.calls = 0

    def generate(self, length: Optional[int] = None) -> str:
        short_id = self.ids[min(self.calls, len(self.ids) - 1)]
        self.calls += 1
        return short_id


class FailingStore(MemoryRecordStore):
    """Store whose every operation fails like a broken backend."""

    async def create(self, *args, **kwargs):
        raise StoreError("connection refused")

    async def get(self, record_id):
        raise StoreError("connection refused")

    async def get_by_short_id(self, short_id):
        raise StoreError("connection refused")

    async def update(self, *args, **kwargs):
        raise StoreError("connection refused")

    async def delete(self, record_id):
        raise StoreError("connection refused")

    async def list_records(self):
        raise StoreError("connection refused")

    async def clear_all(self):
        raise StoreError("connection refused")
