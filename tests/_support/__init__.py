"""
Test support utilities for redmap tests.

Record types shared across test modules live here so that tests can
construct instances directly instead of going through fixtures.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class Profile:
    """The record type used throughout the engine tests."""

    title: str = ""
    email: str = ""
    password: str = ""
    _id: str | None = None


@dataclass
class Counter:
    """Record with non-string fields (stored via their string form)."""

    label: str = ""
    hits: int = 0
    ratio: float = 0.0
    active: bool = False
    _id: str | None = None


class Note:
    """Plain (non-dataclass) record taking keyword arguments."""

    def __init__(self, body: str = "", _id: str | None = None, **extra: str):
        self.body = body
        self._id = _id
        for name, value in extra.items():
            setattr(self, name, value)


@dataclass
class Person:
    """Record with a required field (no default)."""

    name: str
    _id: str | None = None
