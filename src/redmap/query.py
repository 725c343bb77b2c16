"""
Query handles over a model's collection list.

``Engine.find`` returns a :class:`QueryHandle`: a view over the model's id
list whose ``count`` is read once, when the handle is created. Every fetch
method resolves ids to records one at a time, in list order, through the
engine's ``get_by_id``.

Ranges follow the store's inclusive-range semantics literally. A page covers
ids ``(page - 1) * limit`` through ``(page - 1) * limit + limit`` *inclusive*,
so consecutive pages share their boundary id::

    25 ids, limit=10
    page 1 → ids[0..10]   (11 records)
    page 2 → ids[10..20]  (11 records)
    page 3 → ids[20..24]  (5 records)

Filters are accepted and merged into ``QueryHandle.filters`` but never
applied; a handle always covers every record of the model.

Tags:
    query, pagination, async-iterator, redmap

Doc-Types:
    - API Reference
"""

from __future__ import annotations

import math
from collections import deque
from collections.abc import Awaitable, Callable, Mapping, Sequence
from typing import Any

from redmap.stores import StoreClient

Filters = Mapping[str, Any] | Sequence[Mapping[str, Any]] | None
Resolver = Callable[[str], Awaitable[Any]]


def combine_filters(filters: Filters = None) -> dict[str, Any]:
    """Merge a filter mapping, or a sequence of them, into one dict."""
    if filters is None:
        return {}
    if isinstance(filters, Mapping):
        return dict(filters)
    combined: dict[str, Any] = {}
    for item in filters:
        combined.update(item)
    return combined


class QueryHandle:
    """Snapshot view of all records of one model.

    Attributes:
        key: Collection list key the handle reads
        count: List length at creation time (not refreshed)
        filters: Combined filters (informational only)
    """

    def __init__(
        self,
        store: StoreClient,
        key: str,
        count: int,
        resolve: Resolver,
        filters: dict[str, Any] | None = None,
    ) -> None:
        self._store = store
        self._resolve = resolve
        self.key = key
        self.count = count
        self.filters = filters or {}

    async def _resolve_range(self, start: int, stop: int) -> list[Any]:
        ids = await self._store.list_range(self.key, start, stop)
        records = []
        for record_id in ids:
            records.append(await self._resolve(record_id))
        return records

    async def get_all(self) -> list[Any]:
        """Fetch every record in the list (range ``0..count`` inclusive)."""
        return await self._resolve_range(0, self.count)

    async def get_page(self, page: int, limit: int = 10) -> list[Any]:
        """Fetch one 1-indexed page; see the module docstring for bounds."""
        if page < 1:
            raise ValueError(f"page must be >= 1, got {page}")
        if limit < 1:
            raise ValueError(f"limit must be >= 1, got {limit}")
        start = (page - 1) * limit
        return await self._resolve_range(start, start + limit)

    def each(self, limit: int = 10) -> RecordStream:
        """Stream every record lazily, ``limit`` ids per store read."""
        return RecordStream(self, limit)

    def __repr__(self) -> str:
        return f"QueryHandle(key={self.key!r}, count={self.count})"


class RecordStream:
    """Finite, restartable async iterator over a :class:`QueryHandle`.

    Pages ``1..ceil(count / limit)`` are fetched on demand through
    ``get_page`` and their records yielded one at a time. Because ``count``
    is the handle's snapshot, the number of pages never changes while
    streaming.

    Starting a new ``async for`` over the same stream restarts it from page
    one, as does :meth:`reset`. :meth:`next` returns ``None`` once the
    stream is exhausted.

    Example:
        stream = handle.each(limit=50)
        async for record in stream:
            ...
        first = await stream.next()  # None: exhausted until reset()
    """

    def __init__(self, handle: QueryHandle, limit: int = 10) -> None:
        if limit < 1:
            raise ValueError(f"limit must be >= 1, got {limit}")
        self._handle = handle
        self.limit = limit
        self._page = 0
        self._buffer: deque[Any] = deque()

    @property
    def pages(self) -> int:
        return math.ceil(self._handle.count / self.limit)

    def reset(self) -> None:
        self._page = 0
        self._buffer.clear()

    def __aiter__(self) -> RecordStream:
        self.reset()
        return self

    async def __anext__(self) -> Any:
        while not self._buffer:
            if self._page >= self.pages:
                raise StopAsyncIteration
            self._page += 1
            self._buffer.extend(await self._handle.get_page(self._page, self.limit))
        return self._buffer.popleft()

    async def next(self) -> Any | None:
        """Return the next record, or ``None`` when the stream is exhausted."""
        try:
            return await self.__anext__()
        except StopAsyncIteration:
            return None

    async def collect(self) -> list[Any]:
        """Drain the stream from the start into a list."""
        return [record async for record in self]


__all__ = [
    "Filters",
    "QueryHandle",
    "RecordStream",
    "combine_filters",
]
