"""Public resolution of short ids."""

import logging
import re
from dataclasses import dataclass
from typing import Optional, Union

from .database.base import RecordStoreBase
from .database.cache import RedisCache
from .database.models import ContactCardPayload, Record, RecordKind
from .encoder import VCARD_CONTENT_TYPE, render_vcard_bytes
from .errors import NotFoundError, StoreError
from .shortid import ShortIdGenerator

_UNSAFE_FILENAME_RE = re.compile(r"[^A-Za-z0-9._-]+")


@dataclass(frozen=True)
class RedirectTo:
    """Send the scanner to ``url``."""

    url: str


@dataclass(frozen=True)
class Downloadable:
    """Hand the scanner a file."""

    content: bytes
    filename: str
    content_type: str


Resolution = Union[RedirectTo, Downloadable]


def vcard_filename(card: ContactCardPayload) -> str:
    """Build ``First_Last.vcf`` restricted to header-safe characters."""
    stem = _UNSAFE_FILENAME_RE.sub("_", f"{card.first_name}_{card.last_name}").strip("._")
    return f"{stem or 'contact'}.vcf"


def contact_download(card: ContactCardPayload) -> Downloadable:
    return Downloadable(
        content=render_vcard_bytes(card),
        filename=vcard_filename(card),
        content_type=VCARD_CONTENT_TYPE,
    )


class Resolver:
    """Turns a short id into a redirect or a download.

    Read-only: never writes to the store. Every failure, including malformed
    ids and store errors, surfaces as the same NotFoundError.
    """

    def __init__(
        self,
        store: RecordStoreBase,
        cache: Optional[RedisCache] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.store = store
        self.cache = cache
        self.logger = logger or logging.getLogger(__name__)

    async def _load(self, short_id: str) -> Record:
        try:
            record = await self.store.get_by_short_id(short_id)
        except StoreError as e:
            self.logger.error(f"Lookup failed for short id {short_id}: {e}")
            raise NotFoundError()

        if record is None:
            self.logger.info(f"Short id not found: {short_id}")
            raise NotFoundError()
        return record

    async def lookup(self, short_id: str) -> Record:
        """Load the record for a short id.

        Raises:
            NotFoundError: If absent, malformed, or the store failed
        """
        if not ShortIdGenerator.is_valid_format(short_id):
            raise NotFoundError()

        if self.cache:
            return await self.cache.get_or_load(short_id, self._load)
        return await self._load(short_id)

    async def resolve(self, short_id: str) -> Resolution:
        """Resolve a scanned short id.

        Links redirect to the stored URL exactly as validated at write time.
        Contact cards become a vCard attachment.
        """
        record = await self.lookup(short_id)

        if record.kind is RecordKind.LINK:
            return RedirectTo(url=record.payload.url)
        return contact_download(record.payload)

    async def download(self, short_id: str) -> Downloadable:
        """Return the contact card file; links have nothing to download."""
        record = await self.lookup(short_id)
        if record.kind is not RecordKind.CONTACT_CARD:
            raise NotFoundError()
        return contact_download(record.payload)
