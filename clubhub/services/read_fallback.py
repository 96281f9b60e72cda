"""
Two-tier read source: the database first, a Redis snapshot second.

Staleness contract:
- every successful primary read of a list refreshes its snapshot
- a snapshot lives READ_FALLBACK_TTL_SECONDS and is then gone
- a snapshot is only served when the primary read fails (or the store
  capability reports not ready), and is always returned with stale=True
  and the time it was taken
- with no snapshot the original retryable BackingStoreError propagates
- writes never touch the fallback tier
"""

import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Awaitable, Callable, List, Optional, Sequence, Type

import redis.asyncio as redis
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from clubhub.core.config import settings
from clubhub.core.exceptions import BackingStoreError
from clubhub.core.logging_config import logger
from clubhub.services.store_capability import StoreCapability


@dataclass
class ReadResult:
    items: List[Any] = field(default_factory=list)
    stale: bool = False
    cached_at: Optional[datetime] = None


class RedisReadCache:
    """Snapshot store for list reads. Redis errors are treated as a cache miss."""

    PREFIX = "clubhub:read:"

    def __init__(self, url: str, ttl_seconds: int):
        self.url = url
        self.ttl_seconds = ttl_seconds
        self._redis: Optional[redis.Redis] = None

    def _client(self) -> redis.Redis:
        if self._redis is None:
            self._redis = redis.from_url(self.url, encoding="utf-8", decode_responses=True)
        return self._redis

    async def get(self, key: str) -> Optional[str]:
        try:
            return await self._client().get(self.PREFIX + key)
        except redis.RedisError as e:
            logger.warning(f"[ReadCache] GET {key} failed: {e}")
            return None

    async def set(self, key: str, value: str) -> None:
        try:
            await self._client().setex(self.PREFIX + key, self.ttl_seconds, value)
        except redis.RedisError as e:
            logger.warning(f"[ReadCache] SET {key} failed: {e}")

    async def close(self) -> None:
        if self._redis is not None:
            await self._redis.close()
            self._redis = None


def create_read_cache() -> Optional[RedisReadCache]:
    """Build the fallback tier from settings; None when REDIS_URL is unset"""
    if not settings.REDIS_URL:
        return None
    return RedisReadCache(settings.REDIS_URL, settings.READ_FALLBACK_TTL_SECONDS)


class FallbackReader:
    """Serves list reads from the primary store, or a flagged stale snapshot"""

    def __init__(self, capability: StoreCapability, cache: Optional[Any] = None):
        self.capability = capability
        self.cache = cache

    async def read_list(
        self,
        db: AsyncSession,
        key: str,
        loader: Callable[[], Awaitable[Sequence[Any]]],
        schema: Type[BaseModel],
    ) -> ReadResult:
        """
        Load rows via `loader` and convert them to `schema`.

        `key` must identify the caller-visible result (include the caller id
        for per-user reads) so a snapshot is never served to someone else.
        """
        try:
            if not await self.capability.check(db):
                raise BackingStoreError("read:" + key, "Data store is not ready")
            rows = await loader()
        except BackingStoreError as e:
            # Re-probe on the next request instead of trusting a stale "ready"
            self.capability.reset()
            snapshot = await self._load_snapshot(key, schema)
            if snapshot is None:
                raise
            logger.warning(
                f"[FallbackReader] Serving stale snapshot for {key}",
                extra={"event_type": "stale_read", "cache_key": key, "error_code": e.code},
            )
            return snapshot

        items = [schema.model_validate(row) for row in rows]
        await self._store_snapshot(key, items)
        return ReadResult(items=items, stale=False, cached_at=None)

    async def _store_snapshot(self, key: str, items: List[BaseModel]) -> None:
        if self.cache is None:
            return
        payload = {
            "cached_at": datetime.utcnow().isoformat(),
            "items": [item.model_dump(mode="json") for item in items],
        }
        await self.cache.set(key, json.dumps(payload))

    async def _load_snapshot(self, key: str, schema: Type[BaseModel]) -> Optional[ReadResult]:
        if self.cache is None:
            return None
        raw = await self.cache.get(key)
        if not raw:
            return None
        data = json.loads(raw)
        return ReadResult(
            items=[schema.model_validate(item) for item in data["items"]],
            stale=True,
            cached_at=datetime.fromisoformat(data["cached_at"]),
        )
