"""
Store client adapters.

The mapping engine talks to the key-value store only through the
``StoreClient`` protocol: seven data primitives (hash set, hash get-all,
list push, list length, inclusive list range, list remove, delete) plus
connection housekeeping. Each primitive is atomic on its own key; nothing
here spans keys.

Architecture:
    ::

        StoreClient (Protocol)
        ├── InMemoryStore  — single-process dict, Redis semantics (dev/tests)
        └── RedisStore     — redis.asyncio client (redmap.stores.redis)

Guardrails:
    ❌ DON'T: Share an InMemoryStore between processes (nothing is shared)
    ✅ DO: Use RedisStore for anything that outlives the process

Tags:
    store, redis, protocol, in-memory, redmap

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Protocol, runtime_checkable

from redmap.errors import StoreError


@runtime_checkable
class StoreClient(Protocol):
    """Asynchronous capability set consumed by the engine.

    Implementations raise :class:`~redmap.errors.StoreError` for every
    transport or command failure.
    """

    async def hash_set(self, key: str, mapping: Mapping[str, str]) -> int:
        """Set every field of ``mapping`` on the hash at ``key``."""
        ...

    async def hash_get_all(self, key: str) -> dict[str, str]:
        """Return all fields of the hash (empty dict if the key is absent)."""
        ...

    async def list_push(self, key: str, value: str) -> int:
        """Push ``value`` onto the head of the list; return the new length."""
        ...

    async def list_length(self, key: str) -> int:
        ...

    async def list_range(self, key: str, start: int, stop: int) -> list[str]:
        """Return elements ``start..stop``, both bounds inclusive."""
        ...

    async def list_remove(self, key: str, count: int, value: str) -> int:
        """Remove up to ``count`` occurrences of ``value``; return how many."""
        ...

    async def delete(self, key: str) -> int:
        """Delete ``key``; return 1 if it existed, else 0."""
        ...

    async def connect(self) -> StoreClient:
        """Open the connection (verifying it) and return the client."""
        ...

    async def ping(self) -> bool:
        ...

    async def close(self) -> None:
        ...


# ------------------------------------------------------------------ #
# In-Memory Store
# ------------------------------------------------------------------ #


class InMemoryStore:
    """Dict-backed store with Redis semantics for the engine's primitives.

    Hashes and lists live in one keyspace, so using a hash key as a list
    (or vice versa) fails with a WRONGTYPE ``StoreError`` just as Redis
    would.

    Example:
        store = InMemoryStore()
        await store.list_push("db_profile", "01H...")
        await store.list_range("db_profile", 0, -1)
    """

    def __init__(self) -> None:
        self._data: dict[str, dict[str, str] | list[str]] = {}
        self._closed = False

    # -- helpers -------------------------------------------------------

    def _check_open(self) -> None:
        if self._closed:
            raise StoreError("store is closed")

    def _hash(self, key: str, create: bool = False) -> dict[str, str] | None:
        value = self._data.get(key)
        if value is None:
            if not create:
                return None
            value = self._data[key] = {}
        if not isinstance(value, dict):
            raise StoreError(
                "WRONGTYPE Operation against a key holding the wrong kind of value"
            ).with_context(key=key)
        return value

    def _list(self, key: str, create: bool = False) -> list[str] | None:
        value = self._data.get(key)
        if value is None:
            if not create:
                return None
            value = self._data[key] = []
        if not isinstance(value, list):
            raise StoreError(
                "WRONGTYPE Operation against a key holding the wrong kind of value"
            ).with_context(key=key)
        return value

    # -- primitives ----------------------------------------------------

    async def hash_set(self, key: str, mapping: Mapping[str, str]) -> int:
        self._check_open()
        if not mapping:
            raise StoreError("hash_set requires at least one field").with_context(key=key)
        target = self._hash(key, create=True)
        added = sum(1 for field in mapping if field not in target)
        target.update({str(k): str(v) for k, v in mapping.items()})
        return added

    async def hash_get_all(self, key: str) -> dict[str, str]:
        self._check_open()
        target = self._hash(key)
        return dict(target) if target else {}

    async def list_push(self, key: str, value: str) -> int:
        self._check_open()
        target = self._list(key, create=True)
        target.insert(0, str(value))
        return len(target)

    async def list_length(self, key: str) -> int:
        self._check_open()
        target = self._list(key)
        return len(target) if target else 0

    async def list_range(self, key: str, start: int, stop: int) -> list[str]:
        self._check_open()
        target = self._list(key)
        if not target:
            return []
        size = len(target)
        if start < 0:
            start = max(size + start, 0)
        if stop < 0:
            stop = size + stop
        if start > stop or start >= size:
            return []
        return target[start : min(stop, size - 1) + 1]

    async def list_remove(self, key: str, count: int, value: str) -> int:
        self._check_open()
        target = self._list(key)
        if not target:
            return 0
        limit = abs(count) if count else len(target)
        indexes = range(len(target)) if count >= 0 else range(len(target) - 1, -1, -1)
        doomed = [i for i in indexes if target[i] == value][:limit]
        for index in sorted(doomed, reverse=True):
            del target[index]
        if not target:
            del self._data[key]
        return len(doomed)

    async def delete(self, key: str) -> int:
        self._check_open()
        return 1 if self._data.pop(key, None) is not None else 0

    async def connect(self) -> InMemoryStore:
        self._check_open()
        return self

    async def ping(self) -> bool:
        self._check_open()
        return True

    async def close(self) -> None:
        self._closed = True

    # -- inspection ----------------------------------------------------

    def keys(self) -> list[str]:
        """Return every key currently held (for tests and debugging)."""
        return sorted(self._data)


__all__ = [
    "StoreClient",
    "InMemoryStore",
]
