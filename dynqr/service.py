"""Business logic service for managing dynamic QR codes."""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, List, Optional

from .common.url_builder import build_resolution_url
from .common.validators import parse_kind, validate_payload
from .database.base import MAX_RECORD_ID, RecordStoreBase
from .database.cache import RedisCache
from .database.models import Record
from .encoder import render_qr_png, to_data_url
from .errors import ConflictError, DuplicateShortIdError, InternalError, NotFoundError, StoreError
from .resolver import Resolver
from .shortid import ShortIdGenerator


@dataclass(frozen=True)
class RecordView:
    """A record together with its resolvable URL and rendered preview."""

    record: Record
    qr_url: str
    qr_image: str

    def to_dict(self) -> dict:
        return {**self.record.to_dict(), "qrUrl": self.qr_url, "qrImage": self.qr_image}


class QRCodeService:
    """Service layer composing validation, id generation, storage and encoding."""

    def __init__(
        self,
        store: RecordStoreBase,
        cache: Optional[RedisCache] = None,
        short_id_generator: Optional[ShortIdGenerator] = None,
        logger: Optional[logging.Logger] = None,
        production: bool = False,
        custom_short_domain: Optional[str] = None,
        max_collision_retries: int = 5,
    ):
        """Initialize QR code service.

        Args:
            store: Record store
            cache: Optional resolution cache
            short_id_generator: Optional short id generator
            logger: Optional logger
            production: Reject links to local/private hosts
            custom_short_domain: Encode ``<domain>/<shortId>`` instead of ``<base>/q/<shortId>``
            max_collision_retries: Retries after a short id collision before giving up
        """
        self.store = store
        self.cache = cache
        self.generator = short_id_generator or ShortIdGenerator()
        self.logger = logger or logging.getLogger(__name__)
        self.production = production
        self.custom_short_domain = custom_short_domain
        self.max_collision_retries = max_collision_retries
        self.resolver = Resolver(store=store, cache=cache, logger=self.logger)

    def _now(self) -> datetime:
        return datetime.now(timezone.utc)

    @staticmethod
    def _check_record_id(record_id: int) -> None:
        """Ids outside the range a store can hold belong to no record."""
        if not 1 <= record_id <= MAX_RECORD_ID:
            raise NotFoundError()

    async def create(self, kind: Any, raw_payload: Any) -> Record:
        """Create a new record.

        Args:
            kind: "link" or "vcard"
            raw_payload: Untrusted payload object

        Returns:
            The stored record

        Raises:
            InvalidInputError: If validation fails (nothing is written)
            ConflictError: If no unused short id was found within the retry bound
            InternalError: If the store fails
        """
        record_kind = parse_kind(kind)
        payload = validate_payload(record_kind, raw_payload, production=self.production)

        attempts = self.max_collision_retries + 1
        for attempt in range(1, attempts + 1):
            short_id = self.generator.generate()
            try:
                record = await self.store.create(short_id, record_kind, payload, self._now())
            except DuplicateShortIdError:
                self.logger.warning(f"Short id collision on attempt {attempt}/{attempts}")
                continue
            except StoreError as e:
                self.logger.error(f"Failed to create record: {e}")
                raise InternalError("Failed to create QR code")

            self.logger.info(f"Created {record.kind.value} QR code {record.id} ({record.short_id})")
            return record

        raise ConflictError("Unable to generate a unique short id")

    async def update(self, record_id: int, kind: Any, raw_payload: Any) -> Record:
        """Replace kind and payload of a record; short id is preserved.

        Raises:
            InvalidInputError: If validation fails (nothing is written)
            NotFoundError: If the record does not exist
            InternalError: If the store fails
        """
        record_kind = parse_kind(kind)
        payload = validate_payload(record_kind, raw_payload, production=self.production)
        self._check_record_id(record_id)

        try:
            record = await self.store.update(record_id, record_kind, payload, self._now())
        except StoreError as e:
            self.logger.error(f"Failed to update record {record_id}: {e}")
            raise InternalError("Failed to update QR code")

        if record is None:
            raise NotFoundError()

        if self.cache:
            await self.cache.invalidate(record.short_id)

        self.logger.info(f"Updated QR code {record.id} ({record.short_id}) to {record.kind.value}")
        return record

    async def delete(self, record_id: int) -> None:
        """Delete one record.

        Raises:
            NotFoundError: If the record does not exist
            InternalError: If the store fails
        """
        self._check_record_id(record_id)

        try:
            record = await self.store.get(record_id)
            deleted = record is not None and await self.store.delete(record_id)
        except StoreError as e:
            self.logger.error(f"Failed to delete record {record_id}: {e}")
            raise InternalError("Failed to delete QR code")

        if not deleted:
            raise NotFoundError()

        if self.cache:
            await self.cache.invalidate(record.short_id)

        self.logger.info(f"Deleted QR code {record_id} ({record.short_id})")

    async def clear_all(self) -> int:
        """Delete every record.

        Returns:
            Number of records deleted
        """
        try:
            count = await self.store.clear_all()
        except StoreError as e:
            self.logger.error(f"Failed to clear records: {e}")
            raise InternalError("Failed to clear QR codes")

        if self.cache:
            await self.cache.invalidate_all()

        self.logger.info(f"Cleared {count} QR codes")
        return count

    async def get_record(self, record_id: int) -> Record:
        """Get a record by internal id.

        Raises:
            NotFoundError: If the record does not exist
        """
        self._check_record_id(record_id)

        try:
            record = await self.store.get(record_id)
        except StoreError as e:
            self.logger.error(f"Failed to load record {record_id}: {e}")
            raise InternalError("Failed to fetch QR code")

        if record is None:
            raise NotFoundError()
        return record

    async def list_all(self) -> List[Record]:
        try:
            return await self.store.list_records()
        except StoreError as e:
            self.logger.error(f"Failed to list records: {e}")
            raise InternalError("Failed to fetch QR codes")

    def resolution_url(self, record: Record, base_url: str) -> str:
        """URL encoded in the record's QR code."""
        return build_resolution_url(
            record.short_id,
            base_url=base_url,
            custom_short_domain=self.custom_short_domain,
        )

    async def render_image(self, url: str) -> bytes:
        """Render the PNG for a resolution URL off the event loop."""
        try:
            return await asyncio.to_thread(render_qr_png, url)
        except (ValueError, OSError) as e:
            self.logger.error(f"Failed to render QR image: {e}")
            raise InternalError("Failed to generate QR image")

    async def view(self, record: Record, base_url: str) -> RecordView:
        """Enrich a record with its resolvable URL and preview image."""
        qr_url = self.resolution_url(record, base_url)
        png = await self.render_image(qr_url)
        return RecordView(record=record, qr_url=qr_url, qr_image=to_data_url(png))

    async def get(self, record_id: int, base_url: str) -> RecordView:
        return await self.view(await self.get_record(record_id), base_url)

    async def list_records(self, base_url: str) -> List[RecordView]:
        records = await self.list_all()
        return list(await asyncio.gather(*(self.view(r, base_url) for r in records)))

    async def image_for(self, record_id: int, base_url: str) -> tuple:
        """Return ``(record, png_bytes)`` for the image download endpoint."""
        record = await self.get_record(record_id)
        png = await self.render_image(self.resolution_url(record, base_url))
        return record, png

    async def close(self) -> None:
        """Close service connections."""
        await self.store.close()
        if self.cache:
            await self.cache.close()
