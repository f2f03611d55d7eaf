"""Short-lived per-user state: pending confirmations, dedup markers, rate counters.

Expiry is enforced by the store itself. Callers never compare timestamps.
"""

import time
from typing import Callable, Protocol

from loguru import logger
from redis.asyncio import Redis
from redis.exceptions import RedisError
from tinydb import Query, TinyDB

from dompet.errors import KeyValueError


class KeyValueStore(Protocol):
    async def get(self, key: str) -> str | None: ...

    async def put(
        self, key: str, value: str, *, ttl: int | None = None, expires_at: int | None = None
    ) -> None: ...

    async def delete(self, key: str) -> None: ...


def _expiry(now: float, ttl: int | None, expires_at: int | None) -> float | None:
    if expires_at is not None:
        return float(expires_at)
    if ttl is not None:
        return now + ttl
    return None


class TinyDBKeyValueStore:
    """Local key-value store on TinyDB; expired keys read as missing."""

    def __init__(self, db: TinyDB, clock: Callable[[], float] = time.time):
        self.table = db.table("kv")
        self.clock = clock

    async def get(self, key: str) -> str | None:
        K = Query()
        try:
            doc = self.table.get(K.key == key)
            if doc is None:
                return None
            expires_at = doc.get("expires_at")
            if expires_at is not None and self.clock() >= expires_at:
                self.table.remove(doc_ids=[doc.doc_id])
                return None
            return doc["value"]
        except (OSError, ValueError) as e:
            raise KeyValueError(f"get {key} failed: {e}") from e

    async def put(
        self, key: str, value: str, *, ttl: int | None = None, expires_at: int | None = None
    ) -> None:
        K = Query()
        now = self.clock()
        try:
            # One-shot keys (dedup markers, past days' AI counters) are never read again
            self.table.remove(K.expires_at.test(lambda v: v is not None and v <= now))
            self.table.upsert(
                {"key": key, "value": value, "expires_at": _expiry(now, ttl, expires_at)},
                K.key == key,
            )
        except (OSError, ValueError) as e:
            raise KeyValueError(f"put {key} failed: {e}") from e

    async def delete(self, key: str) -> None:
        K = Query()
        try:
            self.table.remove(K.key == key)
        except (OSError, ValueError) as e:
            raise KeyValueError(f"delete {key} failed: {e}") from e


class RedisKeyValueStore:
    """Redis-backed store for multi-instance deployments."""

    def __init__(self, url: str):
        self.client = Redis.from_url(url, decode_responses=True, retry_on_timeout=True)
        logger.info("Key-value store: Redis at {}", url)

    async def get(self, key: str) -> str | None:
        try:
            return await self.client.get(key)
        except RedisError as e:
            raise KeyValueError(f"get {key} failed: {e}") from e

    async def put(
        self, key: str, value: str, *, ttl: int | None = None, expires_at: int | None = None
    ) -> None:
        try:
            if expires_at is not None:
                await self.client.set(key, value, exat=expires_at)
            else:
                await self.client.set(key, value, ex=ttl)
        except RedisError as e:
            raise KeyValueError(f"put {key} failed: {e}") from e

    async def delete(self, key: str) -> None:
        try:
            await self.client.delete(key)
        except RedisError as e:
            raise KeyValueError(f"delete {key} failed: {e}") from e

    async def close(self) -> None:
        await self.client.aclose()
