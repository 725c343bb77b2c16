"""Storage key derivation.

Two key shapes exist per model::

    {prefix}_{model}         collection list of record ids
    {prefix}_{model}#{id}    hash holding one record's fields

Keys are pure functions of (prefix, model name, id). Distinct model names
under one prefix never collide because ``#`` separates the record id.
"""

from __future__ import annotations

from redmap.errors import InvalidKeyError


class KeyScheme:
    """Builds collection and record keys under a fixed prefix."""

    def __init__(self, prefix: str = "db") -> None:
        self.prefix = prefix

    def collection_key(self, model: str) -> str:
        return f"{self.prefix}_{model}"

    def record_key(self, model: str, record_id: str | None) -> str:
        """Key of a single record hash.

        Raises:
            InvalidKeyError: If ``record_id`` is empty or ``None``.
        """
        if not record_id:
            raise InvalidKeyError(
                "record key requires a record id", field="record_id", value=record_id
            ).with_context(model=model)
        return f"{self.prefix}_{model}#{record_id}"

    def __repr__(self) -> str:
        return f"KeyScheme(prefix={self.prefix!r})"


__all__ = ["KeyScheme"]
