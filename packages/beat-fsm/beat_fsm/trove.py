"""Trove - ordered bag of resources released together."""
from __future__ import annotations

from typing import Any, Callable, TypeVar

from beat_signal import Connection, Signal

from beat_fsm.scheduler import Task

_T = TypeVar("_T")


class Trove:
    """Collects tasks, connections, signals, callables, and objects with a
    cleanup method, and releases them in insertion order.

    ``clean()`` empties the trove and leaves it usable. ``destroy()`` cleans
    it for good: anything added afterwards is released immediately. Tasks
    that finished on their own are dropped whenever another task is added.
    """

    def __init__(self) -> None:
        self._items: list[tuple[Any, str | None]] = []
        self._destroyed = False

    def add(self, obj: _T, method: str | None = None) -> _T:
        """Track ``obj``. With ``method``, release calls ``obj.<method>()``."""
        if method is None and not isinstance(obj, (Task, Connection, Signal)) and not callable(obj):
            raise TypeError(f"Trove cannot release {obj!r} without a cleanup method")
        if method is not None and not callable(getattr(obj, method, None)):
            raise TypeError(f"{obj!r} has no callable {method!r}")
        if self._destroyed:
            _release(obj, method)
            return obj
        if isinstance(obj, Task):
            self._prune()
        self._items.append((obj, method))
        return obj

    def connect(self, signal: Signal, handler: Callable[..., None]) -> Connection:
        """Connect ``handler`` to ``signal`` and track the connection."""
        return self.add(signal.connect(handler))

    def _prune(self) -> None:
        # finished tasks have nothing left to cancel
        self._items = [
            (obj, method) for obj, method in self._items
            if method is not None or not isinstance(obj, Task) or not obj.done
        ]

    def clean(self) -> None:
        items, self._items = self._items, []
        for obj, method in items:
            _release(obj, method)

    def destroy(self) -> None:
        self._destroyed = True
        self.clean()

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    def __len__(self) -> int:
        return len(self._items)


def _release(obj: Any, method: str | None) -> None:
    if method is not None:
        getattr(obj, method)()
    elif isinstance(obj, Task):
        obj.cancel()
    elif isinstance(obj, Connection):
        obj.disconnect()
    elif isinstance(obj, Signal):
        obj.disconnect_all()
    else:
        obj()
