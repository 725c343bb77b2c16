"""
redmap - object mapping over Redis hashes and lists.

Define plain record types (dataclasses work out of the box), register them
with an :class:`~redmap.engine.Engine`, and save, fetch, enumerate,
paginate and delete instances without building keys or payloads by hand.

Example::

    from dataclasses import dataclass
    from redmap import Engine, StoreSettings

    @dataclass
    class Profile:
        title: str = ""
        email: str = ""
        _id: str | None = None

    engine = await Engine.init(StoreSettings(), [Profile])
    profiles = engine.model(Profile)
    await profiles.save(Profile(title="Alex"))
"""

__version__ = "0.1.0"

from redmap.engine import DeleteResult, Engine, SaveResult, SaveStatus
from redmap.errors import (
    CleanupStatus,
    ConnectionFailedError,
    CreateFailedError,
    GetFailedError,
    InvalidKeyError,
    ModelNotRegisteredError,
    RecordNotFoundError,
    RedmapError,
    StoreError,
    UnsupportedFieldError,
)
from redmap.ids import new_id
from redmap.keys import KeyScheme
from redmap.mapper import ModelSpec
from redmap.query import QueryHandle, RecordStream
from redmap.registry import BoundModel
from redmap.settings import StoreSettings, get_settings
from redmap.stores import InMemoryStore, StoreClient

__all__ = [
    "BoundModel",
    "CleanupStatus",
    "ConnectionFailedError",
    "CreateFailedError",
    "DeleteResult",
    "Engine",
    "GetFailedError",
    "InMemoryStore",
    "InvalidKeyError",
    "KeyScheme",
    "ModelNotRegisteredError",
    "ModelSpec",
    "QueryHandle",
    "RecordNotFoundError",
    "RecordStream",
    "RedmapError",
    "SaveResult",
    "SaveStatus",
    "StoreClient",
    "StoreError",
    "StoreSettings",
    "UnsupportedFieldError",
    "get_settings",
    "new_id",
]
