"""Core data types for duration-driven state machines."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable


@dataclass
class TimedState:
    """Definition of a timed state. Not serialized.

    ``enter(old_state)`` may veto the change by returning False.
    ``completed()`` names the state to go to once ``duration`` has elapsed;
    without it the state restarts itself.
    """

    name: str
    duration: float = 0.0  # seconds, 0 = never expires
    enter: Callable[[str], bool] | None = None
    started: Callable[[], None] | None = None
    completed: Callable[[], str] | None = None
