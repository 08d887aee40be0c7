"""Valkey-backed key-value store.

Valkey speaks the Redis protocol, so the store uses the ``redis`` client's
asyncio API. ``set_if_absent`` maps onto ``SET key value NX EX ttl``, which
gives the sync tracker its atomic check-and-set across API processes.

Usage
-----
Build a store from a URL and close it on shutdown::

    store = ValkeyStore.from_url("redis://valkey:6379/0")
    try:
        await store.set("alice-42", "running", ttl_s=600)
    finally:
        await store.aclose()

"""

from __future__ import annotations

import typing as typ

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from depwatch.logging import get_logger, log_warning

if typ.TYPE_CHECKING:
    from redis.asyncio import Redis

__all__ = ["ValkeyStore"]

logger = get_logger(__name__)


class ValkeyStore:
    """:class:`~depwatch.cache.protocol.KeyValueStore` over ``redis.asyncio``.

    Parameters
    ----------
    client
        Connected client created with ``decode_responses=True``.
    namespace
        Prefix applied to every key so several services can share a database.

    """

    def __init__(self, client: Redis, *, namespace: str = "depwatch") -> None:
        """Wrap *client*, prefixing keys with *namespace*."""
        self._client = client
        self._namespace = namespace

    @classmethod
    def from_url(cls, url: str, *, namespace: str = "depwatch") -> ValkeyStore:
        """Create a store with a client connected to *url*."""
        client = aioredis.from_url(url, decode_responses=True)
        return cls(client, namespace=namespace)

    def _key(self, key: str) -> str:
        return f"{self._namespace}:{key}"

    async def get(self, key: str) -> str | None:
        """Return the value stored under *key*."""
        return await self._client.get(self._key(key))

    async def set(self, key: str, value: str, *, ttl_s: int | None = None) -> None:
        """Store *value* under *key*."""
        await self._client.set(self._key(key), value, ex=ttl_s)

    async def set_if_absent(
        self, key: str, value: str, *, ttl_s: int | None = None
    ) -> bool:
        """Store *value* with ``SET NX``; return whether this call won."""
        created = await self._client.set(self._key(key), value, nx=True, ex=ttl_s)
        return bool(created)

    async def increment(self, key: str, *, ttl_s: int) -> int:
        """Increment a counter and start its expiry when it is first created."""
        namespaced = self._key(key)
        async with self._client.pipeline(transaction=True) as pipe:
            pipe.incr(namespaced)
            pipe.expire(namespaced, ttl_s, nx=True)
            count, _ = await pipe.execute()
        return int(count)

    async def delete(self, key: str) -> None:
        """Remove *key*."""
        await self._client.delete(self._key(key))

    async def ping(self) -> bool:
        """Return whether the server answers ``PING``."""
        try:
            return bool(await self._client.ping())
        except RedisError as exc:
            log_warning(logger, "Valkey ping failed: %s", exc)
            return False

    async def aclose(self) -> None:
        """Close the underlying connection pool."""
        await self._client.aclose()
