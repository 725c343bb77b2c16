"""
Redis store client.

Wraps a single ``redis.asyncio.Redis`` connection in the
:class:`~redmap.stores.StoreClient` interface. Responses are decoded to
``str`` so hashes come back as ``dict[str, str]`` and list ranges as
``list[str]``. Every ``redis.exceptions.RedisError`` is converted into a
:class:`~redmap.errors.StoreError` carrying the command, the key, and the
original exception as cause.

Example::

    store = RedisStore.from_settings(StoreSettings(db=1))
    await store.connect()
    await store.hash_set("db_profile#01H...", {"title": "Alex"})
    await store.close()

Tags:
    redis, store, async, redmap

Doc-Types:
    api-reference
"""

from __future__ import annotations

from collections.abc import Awaitable, Mapping
from typing import Any, TypeVar

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from redmap.errors import ConnectionFailedError, StoreError
from redmap.logging import get_logger
from redmap.settings import StoreSettings

logger = get_logger(__name__)

T = TypeVar("T")

__all__ = ["RedisStore"]


class RedisStore:
    """Redis-backed :class:`~redmap.stores.StoreClient`.

    The connection is established once by :meth:`connect` and reused for
    every command. There is no reconnect or retry logic here; timeouts and
    socket options are whatever the redis client was configured with.
    """

    def __init__(
        self,
        *,
        host: str = "localhost",
        port: int = 6379,
        password: str | None = None,
        db: int = 0,
        socket_keepalive: bool = True,
        client: Any = None,
    ) -> None:
        self._host = host
        self._port = port
        self._password = password
        self._db = db
        self._socket_keepalive = socket_keepalive
        self._client: Any = client

    @classmethod
    def from_settings(cls, settings: StoreSettings) -> RedisStore:
        password = settings.password.get_secret_value() if settings.password else None
        return cls(
            host=settings.host,
            port=settings.port,
            password=password,
            db=settings.db,
            socket_keepalive=settings.socket_keepalive,
        )

    @property
    def connected(self) -> bool:
        return self._client is not None

    async def connect(self) -> RedisStore:
        """Open the connection and verify it with PING."""
        if self._client is None:
            self._client = aioredis.Redis(
                host=self._host,
                port=self._port,
                password=self._password,
                db=self._db,
                socket_keepalive=self._socket_keepalive,
                decode_responses=True,
            )
        try:
            await self._client.ping()
        except RedisError as exc:
            client, self._client = self._client, None
            await client.aclose()
            raise ConnectionFailedError(
                f"could not connect to redis://{self._host}:{self._port}/{self._db}",
                cause=exc,
            ) from exc

        logger.debug("store_connected", host=self._host, port=self._port, db=self._db)
        return self

    async def _run(self, command: str, key: str | None, call: Awaitable[T]) -> T:
        try:
            return await call
        except RedisError as exc:
            raise StoreError(f"{command} failed: {exc}", cause=exc).with_context(
                key=key, command=command
            ) from exc

    def _require_client(self) -> Any:
        if self._client is None:
            raise StoreError("RedisStore not connected. Call connect() first.", retryable=False)
        return self._client

    # -- primitives ----------------------------------------------------

    async def hash_set(self, key: str, mapping: Mapping[str, str]) -> int:
        client = self._require_client()
        return await self._run("HSET", key, client.hset(key, mapping=dict(mapping)))

    async def hash_get_all(self, key: str) -> dict[str, str]:
        client = self._require_client()
        return await self._run("HGETALL", key, client.hgetall(key))

    async def list_push(self, key: str, value: str) -> int:
        client = self._require_client()
        return await self._run("LPUSH", key, client.lpush(key, value))

    async def list_length(self, key: str) -> int:
        client = self._require_client()
        return await self._run("LLEN", key, client.llen(key))

    async def list_range(self, key: str, start: int, stop: int) -> list[str]:
        client = self._require_client()
        return await self._run("LRANGE", key, client.lrange(key, start, stop))

    async def list_remove(self, key: str, count: int, value: str) -> int:
        client = self._require_client()
        return await self._run("LREM", key, client.lrem(key, count, value))

    async def delete(self, key: str) -> int:
        client = self._require_client()
        return await self._run("DEL", key, client.delete(key))

    async def ping(self) -> bool:
        client = self._require_client()
        return await self._run("PING", None, client.ping())

    async def close(self) -> None:
        """Close the connection (idempotent)."""
        if self._client is None:
            return
        client, self._client = self._client, None
        await client.aclose()
        logger.debug("store_closed", host=self._host, port=self._port)
