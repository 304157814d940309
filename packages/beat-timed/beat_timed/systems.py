"""Listener factory for driving a TimedStateMachine from a heartbeat."""
from __future__ import annotations

from typing import Callable

from beat_timed.machine import TimedStateMachine


def make_timed_listener(
    machine: TimedStateMachine,
    on_update: Callable[[TimedStateMachine], None] | None = None,
) -> Callable[[float], None]:
    """Return a heartbeat listener that updates ``machine`` every frame.

    ``on_update`` runs after each update, e.g. to report the current state.
    """

    def timed_listener(dt: float) -> None:
        machine.update()
        if on_update is not None:
            on_update(machine)

    return timed_listener
