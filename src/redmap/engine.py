"""
The mapping engine: CRUD and queries over hashes and lists.

Each model owns two structures in the store::

    {prefix}_{model}           list of record ids, newest first
    {prefix}_{model}#{id}      hash of one record's fields

``Engine`` is the only component that touches either structure. It composes
:class:`~redmap.keys.KeyScheme` → :class:`~redmap.stores.StoreClient` →
:mod:`~redmap.mapper` for every operation and awaits each store command
before issuing the next, so a dependent step (list push after hash write,
hash delete after list remove) only runs once the previous one succeeded.

Manifesto:
    - **One connection:** Established by ``Engine.init`` and reused
    - **No hidden retries:** Every failure reaches the caller
    - **Per-key atomicity only:** Insert and remove are two commands each

Consistency:
    Insert is HSET then LPUSH; remove is LREM then DEL. Neither pair is
    atomic. If LPUSH fails the engine removes the half-written record and
    raises ``CreateFailedError`` whose ``cleanup`` says whether that removal
    worked. A crash between the two commands of either pair leaves an
    orphaned hash or a dangling id; nothing here repairs that.

Examples:
    >>> engine = await Engine.init(StoreSettings(), [Profile])
    >>> profiles = engine.model(Profile)
    >>> p = await profiles.save(Profile(title="Alex"))
    >>> (await profiles.find()).count
    1

Tags:
    engine, crud, redis, orm, redmap

Doc-Types:
    - API Reference
    - Technical Design
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any

from redmap.errors import (
    CleanupStatus,
    CreateFailedError,
    GetFailedError,
    ModelNotRegisteredError,
    RecordNotFoundError,
    StoreError,
)
from redmap.ids import new_id
from redmap.keys import KeyScheme
from redmap.logging import bind_context, get_logger, unbind_context
from redmap.mapper import ModelSpec, from_fields, to_fields
from redmap.query import Filters, QueryHandle, combine_filters
from redmap.registry import BoundModel
from redmap.settings import StoreSettings, get_settings
from redmap.stores import StoreClient

logger = get_logger(__name__)

ModelRef = ModelSpec | BoundModel | type | str


class SaveStatus(str, Enum):
    CREATED = "created"
    UPDATED = "updated"


@dataclass(frozen=True)
class SaveResult:
    """Outcome of :meth:`Engine.save_outcome`."""

    record: Any
    status: SaveStatus

    @property
    def created(self) -> bool:
        return self.status is SaveStatus.CREATED


@dataclass(frozen=True)
class DeleteResult:
    """Outcome of :meth:`Engine.remove` and :meth:`Engine.clear`."""

    deleted_count: int = 0


class Engine:
    """Object mapper bound to one store connection.

    Parameters:
        store: Connected :class:`~redmap.stores.StoreClient`
        settings: Key prefix and default identifier field
    """

    def __init__(self, store: StoreClient, settings: StoreSettings | None = None) -> None:
        self.settings = settings or get_settings()
        self.store = store
        self.keys = KeyScheme(self.settings.prefix)
        self._models: dict[str, BoundModel] = {}
        self._types: dict[type, BoundModel] = {}

    @classmethod
    async def init(
        cls,
        settings: StoreSettings | None = None,
        models: Iterable[type] = (),
        *,
        store: StoreClient | None = None,
    ) -> Engine:
        """Connect to the store and register ``models``.

        Without an explicit ``store`` a :class:`~redmap.stores.redis.RedisStore`
        is built from ``settings``.
        """
        settings = settings or get_settings()
        if store is None:
            from redmap.stores.redis import RedisStore

            store = RedisStore.from_settings(settings)
        await store.connect()

        engine = cls(store, settings)
        for model_type in models:
            engine.register(model_type)
        return engine

    async def close(self) -> None:
        await self.store.close()

    async def __aenter__(self) -> Engine:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    # -- registry ------------------------------------------------------

    def register(
        self,
        model_type: type,
        *,
        id_field: str | None = None,
        name: str | None = None,
    ) -> BoundModel:
        """Bind CRUD and query operations for ``model_type``.

        Registering the same name again replaces the previous binding.
        """
        spec = ModelSpec.from_type(
            model_type, id_field=id_field or self.settings.id_field, name=name
        )
        bound = BoundModel(self, spec)
        if spec.name in self._models:
            logger.debug("model_rebound", model=spec.name)
        self._models[spec.name] = bound
        self._types[model_type] = bound
        return bound

    @property
    def models(self) -> Mapping[str, BoundModel]:
        return MappingProxyType(self._models)

    def model(self, ref: type | str) -> BoundModel:
        """Look up a registered model by type or name.

        A type resolves to the binding it was registered with, whatever name
        that binding was given.
        """
        if isinstance(ref, str):
            bound = self._models.get(ref.lower())
        else:
            bound = self._types.get(ref)
        if bound is None:
            name = ref.lower() if isinstance(ref, str) else ref.__name__.lower()
            raise ModelNotRegisteredError(name)
        return bound

    def _spec(self, model: ModelRef) -> ModelSpec:
        if isinstance(model, ModelSpec):
            return model
        if isinstance(model, BoundModel):
            return model.spec
        if isinstance(model, str):
            return self.model(model).spec
        bound = self._types.get(model)
        if bound is not None:
            return bound.spec
        return ModelSpec.from_type(model, id_field=self.settings.id_field)

    # -- CRUD ----------------------------------------------------------

    async def save(self, model: ModelRef, record: Any) -> Any:
        """Insert or update ``record`` and return it with its id set."""
        return (await self.save_outcome(model, record)).record

    async def save_outcome(self, model: ModelRef, record: Any) -> SaveResult:
        spec = self._spec(model)
        record_id = spec.get_id(record)

        if not record_id:
            await self._insert(spec, record)
            return SaveResult(record, SaveStatus.CREATED)

        key = self.keys.record_key(spec.name, record_id)
        await self.store.hash_set(key, to_fields(record))
        logger.debug("record_updated", model=spec.name, record_id=record_id)
        return SaveResult(record, SaveStatus.UPDATED)

    async def _insert(self, spec: ModelSpec, record: Any) -> None:
        fields = to_fields(record)
        record_id = new_id()
        fields[spec.id_field] = record_id
        key = self.keys.record_key(spec.name, record_id)

        try:
            await self.store.hash_set(key, fields)
        except StoreError as exc:
            raise CreateFailedError(cause=exc).with_context(
                model=spec.name, key=key, record_id=record_id
            ) from exc

        try:
            await self.store.list_push(self.keys.collection_key(spec.name), record_id)
        except StoreError as exc:
            cleanup, cleanup_error = await self._cleanup_insert(spec, record_id)
            raise CreateFailedError(
                cause=exc, cleanup=cleanup, cleanup_error=cleanup_error
            ).with_context(model=spec.name, key=key, record_id=record_id) from exc

        spec.set_id(record, record_id)
        logger.debug("record_created", model=spec.name, record_id=record_id)

    async def _cleanup_insert(
        self, spec: ModelSpec, record_id: str
    ) -> tuple[CleanupStatus, StoreError | None]:
        try:
            await self.remove(spec, record_id)
        except StoreError as exc:
            logger.warning(
                "create_cleanup_failed",
                model=spec.name,
                record_id=record_id,
                error=str(exc),
            )
            return CleanupStatus.CLEANUP_FAILED, exc
        return CleanupStatus.CLEANED_UP, None

    async def remove(self, model: ModelRef, record_id: str | None) -> DeleteResult:
        """Delete one record's list entry and hash.

        An empty id is a no-op returning ``deleted_count=0``; the store is not
        contacted.
        """
        if not record_id:
            return DeleteResult(deleted_count=0)

        spec = self._spec(model)
        await self.store.list_remove(self.keys.collection_key(spec.name), 1, record_id)
        deleted = await self.store.delete(self.keys.record_key(spec.name, record_id))
        logger.debug("record_removed", model=spec.name, record_id=record_id, deleted=deleted)
        return DeleteResult(deleted_count=deleted)

    async def get_by_id(
        self, model: ModelRef, record_id: str, *, strict: bool = False
    ) -> Any:
        """Fetch one record.

        A missing hash maps to a record built from an empty mapping (model
        defaults, identifier ``None``). Pass ``strict=True`` to get a
        :class:`~redmap.errors.RecordNotFoundError` instead.

        Raises:
            GetFailedError: The store could not be read.
            InvalidKeyError: ``record_id`` is empty.
        """
        spec = self._spec(model)
        key = self.keys.record_key(spec.name, record_id)

        try:
            mapping = await self.store.hash_get_all(key)
        except StoreError as exc:
            raise GetFailedError(cause=exc).with_context(
                model=spec.name, key=key, record_id=record_id
            ) from exc

        if not mapping:
            if strict:
                raise RecordNotFoundError(
                    f"{spec.name} {record_id} not found"
                ).with_context(model=spec.name, key=key, record_id=record_id)
            logger.debug("record_missing", model=spec.name, record_id=record_id)

        return from_fields(spec, mapping)

    # -- queries -------------------------------------------------------

    async def find(self, model: ModelRef, filters: Filters = None) -> QueryHandle:
        """Open a query handle over every record of ``model``.

        ``filters`` are combined and kept on the handle but not applied.
        """
        spec = self._spec(model)
        key = self.keys.collection_key(spec.name)
        count = await self.store.list_length(key)

        async def resolve(record_id: str) -> Any:
            return await self.get_by_id(spec, record_id)

        return QueryHandle(
            self.store, key, count, resolve, filters=combine_filters(filters)
        )

    async def clear(self, model: ModelRef, filters: Filters = None) -> DeleteResult:
        """Remove every record of ``model``.

        ``deleted_count`` is the list length snapshotted when the query was
        opened, not the number of deletions that succeeded. The stream is
        drained before the first removal so that shrinking the list cannot
        shift pages still to be read.
        """
        spec = self._spec(model)
        bind_context(model=spec.name)
        try:
            query = await self.find(spec, filters)
            records = await query.each().collect()

            seen: set[str] = set()
            for record in records:
                record_id = spec.get_id(record)
                if record_id in seen:
                    continue
                if record_id:
                    seen.add(record_id)
                logger.debug("clear_remove", record_id=record_id)
                await self.remove(spec, record_id)

            logger.debug("clear_done", deleted_count=query.count)
            return DeleteResult(deleted_count=query.count)
        finally:
            unbind_context("model")

    def __repr__(self) -> str:
        return f"Engine(store={type(self.store).__name__}, prefix={self.keys.prefix!r})"


__all__ = [
    "DeleteResult",
    "Engine",
    "SaveResult",
    "SaveStatus",
]
