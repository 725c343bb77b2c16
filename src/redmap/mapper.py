"""
Record mapping between Python objects and flat string hashes.

A record hash can only hold ``str -> str`` pairs, so the mapper defines one
explicit conversion per supported value type and rejects everything else:

    ==========  =====================  =========================
    Python      stored as              read back as
    ==========  =====================  =========================
    str         unchanged              str
    bool        ``"true"``/``"false"`` str
    int/float   ``str(value)``         str
    None        field omitted          absent (model default)
    other       UnsupportedFieldError  -
    ==========  =====================  =========================

Values are never parsed back into numbers or booleans; a model that wants
typed fields converts in its own factory (see ``from_fields`` below).

Models are described by :class:`ModelSpec`: the lower-cased type name, the
factory building an instance from a field mapping, and the identifier
attribute. The default factory understands dataclasses, classes exposing a
``from_fields`` classmethod, and plain classes taking keyword arguments.

Tags:
    mapper, serialization, dataclasses, redmap

Doc-Types:
    - API Reference
"""

from __future__ import annotations

import dataclasses
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from redmap.errors import UnsupportedFieldError

RecordFactory = Callable[[Mapping[str, str]], Any]

_SCALARS = (int, float)


def serialize_value(name: str, value: Any) -> str | None:
    """Return the stored string form of ``value`` (``None`` means omit)."""
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, _SCALARS):
        return str(value)
    raise UnsupportedFieldError(
        f"field {name!r} has unsupported type {type(value).__name__}",
        field=name,
        value=value,
    )


def _field_names(record: Any) -> list[str]:
    """Dataclass fields in declaration order, then any extra attributes."""
    names: list[str] = []
    if dataclasses.is_dataclass(record):
        names.extend(f.name for f in dataclasses.fields(record))
    for name in getattr(record, "__dict__", {}):
        if name not in names:
            names.append(name)
    return names


def to_fields(record: Any) -> dict[str, str]:
    """Shallow-copy a record's attributes into a flat string mapping."""
    fields: dict[str, str] = {}
    for name in _field_names(record):
        value = serialize_value(name, getattr(record, name))
        if value is not None:
            fields[name] = value
    return fields


def default_factory(cls: type, id_field: str) -> RecordFactory:
    """Build the factory used to turn a stored mapping back into ``cls``."""
    custom = getattr(cls, "from_fields", None)
    if callable(custom):
        return custom

    if dataclasses.is_dataclass(cls):
        init_fields = [f for f in dataclasses.fields(cls) if f.init]
        init_names = {f.name for f in init_fields}
        # Required fields absent from the hash are passed as None.
        required = [
            f.name
            for f in init_fields
            if f.default is dataclasses.MISSING
            and f.default_factory is dataclasses.MISSING
        ]

        def build_dataclass(mapping: Mapping[str, str]) -> Any:
            known: dict[str, Any] = dict.fromkeys(required)
            known.update((k, v) for k, v in mapping.items() if k in init_names)
            instance = cls(**known)
            for name, value in mapping.items():
                if name not in init_names:
                    setattr(instance, name, value)
            if not hasattr(instance, id_field):
                setattr(instance, id_field, None)
            return instance

        return build_dataclass

    def build_plain(mapping: Mapping[str, str]) -> Any:
        instance = cls(**mapping)
        if not hasattr(instance, id_field):
            setattr(instance, id_field, None)
        return instance

    return build_plain


@dataclass(frozen=True)
class ModelSpec:
    """A registered record type.

    Attributes:
        name: Storage name of the model (type name, lower-cased)
        cls: The record type itself
        factory: Builds an instance from a stored field mapping
        id_field: Attribute holding the record identifier
    """

    name: str
    cls: type
    factory: RecordFactory
    id_field: str = "_id"

    @classmethod
    def from_type(
        cls,
        model_type: type,
        *,
        id_field: str = "_id",
        name: str | None = None,
        factory: RecordFactory | None = None,
    ) -> ModelSpec:
        return cls(
            name=(name or model_type.__name__).lower(),
            cls=model_type,
            factory=factory or default_factory(model_type, id_field),
            id_field=id_field,
        )

    def get_id(self, record: Any) -> str | None:
        return getattr(record, self.id_field, None) or None

    def set_id(self, record: Any, record_id: str) -> None:
        setattr(record, self.id_field, record_id)


def from_fields(model: ModelSpec, mapping: Mapping[str, str]) -> Any:
    """Build a record of ``model`` from a stored mapping.

    Unknown fields are kept as attributes; a missing identifier leaves the
    identifier attribute at ``None``.
    """
    record = model.factory(dict(mapping))
    if not hasattr(record, model.id_field):
        setattr(record, model.id_field, None)
    return record


__all__ = [
    "ModelSpec",
    "RecordFactory",
    "default_factory",
    "from_fields",
    "serialize_value",
    "to_fields",
]
