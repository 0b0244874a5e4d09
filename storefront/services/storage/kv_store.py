"""String-keyed stores backing persisted shopper state."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Annotated

import redis.asyncio as redis
from fastapi import Depends
from redis.exceptions import WatchError

from storefront.config import settings

logger = logging.getLogger(__name__)

_redis_client: redis.Redis | None = None


def get_redis_client() -> redis.Redis:
    """Return a singleton Redis client for the current process."""

    global _redis_client
    if _redis_client is None:
        _redis_client = redis.from_url(
            settings.REDIS_URL,
            encoding="utf-8",
            decode_responses=True,
        )
    return _redis_client


def _decode(raw: str | bytes | None) -> str | None:
    if isinstance(raw, bytes):
        return raw.decode("utf-8")
    return raw


class KeyValueStore(ABC):
    """Abstract string-to-string store."""

    @abstractmethod
    async def load(self, key: str) -> str | None:
        """Return the stored value, or None when the key is absent."""

    @abstractmethod
    async def save(self, key: str, value: str) -> None:
        """Store the value under the key, replacing any previous value."""

    @abstractmethod
    async def update(self, key: str, mutate: Callable[[str | None], str]) -> str:
        """Replace the value with mutate(current) atomically and return it."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove the key if present."""


class InMemoryKeyValueStore(KeyValueStore):
    """Dictionary-backed store for tests and single-process demos."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    async def load(self, key: str) -> str | None:
        return self._data.get(key)

    async def save(self, key: str, value: str) -> None:
        self._data[key] = value

    async def update(self, key: str, mutate: Callable[[str | None], str]) -> str:
        value = mutate(self._data.get(key))
        self._data[key] = value
        return value

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)


class RedisKeyValueStore(KeyValueStore):
    """Wrapper persisting values in Redis under a shared prefix."""

    def __init__(
        self,
        client: redis.Redis,
        prefix: str | None = None,
        ttl: int | None = None,
        max_update_attempts: int = 5,
    ) -> None:
        self._client = client
        self._prefix = settings.PREFERENCES_KEY_PREFIX if prefix is None else prefix
        self._ttl = settings.PREFERENCES_TTL_SECONDS if ttl is None else ttl
        self._max_update_attempts = max_update_attempts

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    async def load(self, key: str) -> str | None:
        return _decode(await self._client.get(self._key(key)))

    async def save(self, key: str, value: str) -> None:
        await self._client.set(self._key(key), value, ex=self._ttl or None)

    async def update(self, key: str, mutate: Callable[[str | None], str]) -> str:
        """Optimistic read-modify-write: WATCH the key and retry if it changes."""
        full_key = self._key(key)
        async with self._client.pipeline(transaction=True) as pipe:
            for attempt in range(1, self._max_update_attempts + 1):
                try:
                    await pipe.watch(full_key)
                    value = mutate(_decode(await pipe.get(full_key)))
                    pipe.multi()
                    pipe.set(full_key, value, ex=self._ttl or None)
                    await pipe.execute()
                    return value
                except WatchError:
                    logger.debug("Concurrent write on %s, attempt %d", full_key, attempt)
        raise WatchError(f"Gave up updating {full_key} after concurrent writes")

    async def delete(self, key: str) -> None:
        await self._client.delete(self._key(key))


def get_kv_store(
    client: Annotated[redis.Redis, Depends(get_redis_client)],
) -> KeyValueStore:
    """FastAPI dependency returning the Redis-backed store."""

    return RedisKeyValueStore(client)


KeyValueStoreDependency = Annotated[KeyValueStore, Depends(get_kv_store)]
