"""
Fault injection for store commands.

``FaultyStore`` wraps any store client and raises a ``StoreError`` the
next time a named primitive is called, so tests can fail an insert between
its hash write and its list push, or fail the cleanup that follows.

Usage in test code::

    from tests._support.fault_injection import FaultyStore

    store = FaultyStore(InMemoryStore())
    store.install_fault("list_push")
    with pytest.raises(CreateFailedError):
        await engine.save(Profile, Profile(title="x"))
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from redmap.errors import StoreError


@dataclass
class FaultSpec:
    """A fault to inject into a specific store command."""

    command: str
    message: str = "Injected test fault"
    times: int = 1


class FaultyStore:
    """Delegating store client that fails installed commands."""

    def __init__(self, inner: Any) -> None:
        self.inner = inner
        self.calls: list[str] = []
        self._faults: dict[str, FaultSpec] = {}

    def install_fault(
        self, command: str, *, message: str = "Injected test fault", times: int = 1
    ) -> None:
        self._faults[command] = FaultSpec(command=command, message=message, times=times)

    def clear_faults(self) -> None:
        self._faults.clear()

    def _apply_fault(self, command: str) -> None:
        self.calls.append(command)
        spec = self._faults.get(command)
        if spec is None:
            return
        spec.times -= 1
        if spec.times <= 0:
            del self._faults[command]
        raise StoreError(f"[FAULT] {command}: {spec.message}")

    def __getattr__(self, name: str) -> Any:
        target = getattr(self.inner, name)
        if not callable(target):
            return target

        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            self._apply_fault(name)
            return await target(*args, **kwargs)

        return wrapper
