"""Redis cache layer for record resolution."""

import json
import logging
from typing import Awaitable, Callable, Optional

import redis.asyncio as redis

from .models import Record

RecordLoader = Callable[[str], Awaitable[Record]]


class RedisCache:
    """Redis cache for resolved records.

    Entries are keyed by a global generation and a per-short-id version.
    Invalidation bumps a counter instead of deleting the entry, so a lookup
    that read the store before a mutation committed can only fill a key that
    no later lookup reads.

    Cache failures are logged and treated as misses; the store stays the
    source of truth.
    """

    KEY_PREFIX = "dynqr:record:"
    VERSION_PREFIX = "dynqr:version:"
    GENERATION_KEY = "dynqr:generation"

    def __init__(
        self,
        redis_url: Optional[str] = None,
        ttl_seconds: int = 60,
        logger: Optional[logging.Logger] = None,
    ):
        """Initialize Redis cache.

        Args:
            redis_url: Redis connection URL (e.g., redis://localhost:6379/0)
            ttl_seconds: Default TTL for cached items
            logger: Optional logger instance
        """
        self.redis_url = redis_url
        self.ttl_seconds = ttl_seconds
        self.logger = logger or logging.getLogger(__name__)
        self.enabled = redis_url is not None
        self.client: Optional[redis.Redis] = None

        if redis_url:
            self.logger.info(f"Redis cache enabled with TTL={ttl_seconds}s")

    async def connect(self) -> None:
        """Connect to Redis."""
        if not self.enabled:
            return

        try:
            self.client = redis.from_url(
                self.redis_url,
                encoding="utf-8",
                decode_responses=True,
            )
            await self.client.ping()
            self.logger.info("Connected to Redis")
        except redis.RedisError as e:
            self.logger.error(f"Failed to connect to Redis: {e}")
            self.enabled = False

    def get_version_key(self, short_id: str) -> str:
        return f"{self.VERSION_PREFIX}{short_id}"

    def get_cache_key(self, short_id: str, version: str) -> str:
        """Generate cache key for a short id at a version token."""
        return f"{self.KEY_PREFIX}{version}:{short_id}"

    async def current_version(self, short_id: str) -> str:
        """Return the ``generation.version`` token entries are stored under.

        Raises:
            redis.RedisError: If Redis is unreachable
        """
        generation, version = await self.client.mget(
            [self.GENERATION_KEY, self.get_version_key(short_id)]
        )
        return f"{generation or 0}.{version or 0}"

    async def _read(self, key: str) -> Optional[Record]:
        raw = await self.client.get(key)
        if raw is None:
            return None
        try:
            return Record.from_dict(json.loads(raw))
        except (ValueError, KeyError, TypeError) as e:
            self.logger.warning(f"Discarding unreadable cache entry {key}: {e}")
            await self.client.delete(key)
            return None

    async def get_record(self, short_id: str) -> Optional[Record]:
        """Get the record cached at the current version.

        Returns:
            Cached record or None
        """
        if not self.enabled or not self.client:
            return None

        try:
            return await self._read(self.get_cache_key(short_id, await self.current_version(short_id)))
        except redis.RedisError as e:
            self.logger.error(f"Cache get error: {e}")
            return None

    async def get_or_load(self, short_id: str, loader: RecordLoader) -> Record:
        """Return the cached record, or load it and cache the result.

        The version is read before ``loader`` runs, so a record loaded before
        a concurrent invalidation is stored under the superseded version.
        Exceptions from ``loader`` propagate and nothing is cached.
        """
        if not self.enabled or not self.client:
            return await loader(short_id)

        try:
            key = self.get_cache_key(short_id, await self.current_version(short_id))
            cached = await self._read(key)
        except redis.RedisError as e:
            self.logger.error(f"Cache get error: {e}")
            return await loader(short_id)

        if cached is not None:
            self.logger.debug(f"Cache hit for {short_id}")
            return cached

        record = await loader(short_id)
        try:
            await self.client.setex(key, self.ttl_seconds, json.dumps(record.to_dict()))
        except redis.RedisError as e:
            self.logger.error(f"Cache set error: {e}")
        return record

    async def invalidate(self, short_id: str) -> bool:
        """Retire every cached entry for one short id.

        Returns:
            True if the version was bumped
        """
        if not self.enabled or not self.client:
            return False

        try:
            await self.client.incr(self.get_version_key(short_id))
            return True
        except redis.RedisError as e:
            self.logger.error(f"Cache invalidate error: {e}")
            return False

    async def invalidate_all(self) -> int:
        """Retire every cached record and sweep the old keys.

        Returns:
            Number of record entries deleted
        """
        if not self.enabled or not self.client:
            return 0

        deleted = 0
        try:
            await self.client.incr(self.GENERATION_KEY)
            # Nothing reads old-generation keys after the bump
            async for key in self.client.scan_iter(match=f"{self.KEY_PREFIX}*"):
                deleted += await self.client.delete(key)
            async for key in self.client.scan_iter(match=f"{self.VERSION_PREFIX}*"):
                await self.client.delete(key)
        except redis.RedisError as e:
            self.logger.error(f"Cache flush error: {e}")
        return deleted

    async def close(self) -> None:
        """Close Redis connection."""
        if self.client:
            await self.client.aclose()
            self.logger.info("Redis connection closed")
