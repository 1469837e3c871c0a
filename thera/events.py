"""A registerable, invokable callback list."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable


@dataclass(eq=False, frozen=True)
class _Handle:
    """Opaque token identifying one registration."""

    callback: Callable[..., Any] = field(repr=False)


class Event:
    """Holds callbacks and calls them all, in registration order, on invoke."""

    def __init__(self) -> None:
        self._registrees: list[_Handle] = []

    def register(self, callback: Callable[..., Any]) -> _Handle:
        """Register a callback and return a handle that can deregister it."""
        if not callable(callback):
            raise TypeError("callback must be callable")
        handle = _Handle(callback)
        self._registrees.append(handle)
        return handle

    def deregister(self, handle: _Handle) -> bool:
        """Remove a registration; return whether it was present."""
        for index, registree in enumerate(self._registrees):
            if registree is handle:
                del self._registrees[index]
                return True
        return False

    def invoke(self, *args: Any) -> None:
        """Call every registered callback with the given arguments."""
        for registree in list(self._registrees):
            registree.callback(*args)

    def __len__(self) -> int:
        return len(self._registrees)