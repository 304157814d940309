"""In-process signal with connection handles and synchronous dispatch."""
from __future__ import annotations

from typing import Any, Callable

_Handler = Callable[..., None]


class Connection:
    """Handle returned by :meth:`Signal.connect`. Disconnecting twice is a no-op."""

    __slots__ = ("_signal", "_handler", "_once", "connected")

    def __init__(self, signal: Signal, handler: _Handler, once: bool = False) -> None:
        self._signal = signal
        self._handler = handler
        self._once = once
        self.connected = True

    @property
    def handler(self) -> _Handler:
        return self._handler

    def disconnect(self) -> None:
        if not self.connected:
            return
        self._signal.disconnect(self)

    def __repr__(self) -> str:
        return f"Connection(handler={self._handler!r}, connected={self.connected})"


class Signal:
    """Ordered list of handlers fired with positional arguments.

    Handlers connected or disconnected while the signal is firing take
    effect on the next ``fire``; a handler disconnected mid-fire is not
    called if its turn has not come yet.
    """

    def __init__(self) -> None:
        self._connections: list[Connection] = []

    def connect(self, handler: _Handler) -> Connection:
        conn = Connection(self, handler)
        self._connections.append(conn)
        return conn

    def once(self, handler: _Handler) -> Connection:
        """Connect a handler that disconnects itself after its first call."""
        conn = Connection(self, handler, once=True)
        self._connections.append(conn)
        return conn

    def disconnect(self, conn: Connection) -> None:
        conn.connected = False
        try:
            self._connections.remove(conn)
        except ValueError:
            pass

    def disconnect_all(self) -> None:
        for conn in self._connections:
            conn.connected = False
        self._connections = []

    def fire(self, *args: Any) -> None:
        snapshot = list(self._connections)
        for conn in snapshot:
            if not conn.connected:
                continue
            if conn._once:
                self.disconnect(conn)
            conn._handler(*args)

    @property
    def connection_count(self) -> int:
        return len(self._connections)
