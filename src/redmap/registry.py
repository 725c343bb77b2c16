"""Bound model operations.

``Engine.register`` returns a :class:`BoundModel` instead of patching
methods onto the caller's class: the registry maps model names to these
bundles, and the record types themselves stay plain.

Type-level operations take ids and filters (``get``, ``find``, ``clear``);
instance-level operations take the record (``save``, ``remove``).
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from redmap.mapper import ModelSpec

if TYPE_CHECKING:
    from redmap.engine import Engine
    from redmap.query import Filters, QueryHandle


class BoundModel:
    """Operations of one registered model, bound to an engine."""

    def __init__(self, engine: Engine, spec: ModelSpec) -> None:
        self.engine = engine
        self.spec = spec

    @property
    def name(self) -> str:
        return self.spec.name

    # -- type level ----------------------------------------------------

    async def get(self, record_id: str, *, strict: bool = False) -> Any:
        return await self.engine.get_by_id(self.spec, record_id, strict=strict)

    async def find(self, filters: Filters = None) -> QueryHandle:
        return await self.engine.find(self.spec, filters)

    async def clear(self, filters: Filters = None) -> bool:
        """Remove all records; ``True`` if the model had any."""
        result = await self.engine.clear(self.spec, filters)
        return result.deleted_count > 0

    # -- instance level ------------------------------------------------

    async def save(self, record: Any) -> Any:
        return await self.engine.save(self.spec, record)

    async def remove(self, record: Any) -> bool:
        """Remove ``record``; ``True`` if its hash was deleted."""
        result = await self.engine.remove(self.spec, self.spec.get_id(record))
        return result.deleted_count == 1

    def create(self, **fields: Any) -> Any:
        """Build an unsaved instance through the model factory."""
        return self.spec.factory(dict(fields))

    def __repr__(self) -> str:
        return f"BoundModel({self.spec.name!r})"


__all__ = ["BoundModel"]
