"""beat-timed - Duration-driven state machines."""
from __future__ import annotations

from beat_timed.machine import TimedStateMachine
from beat_timed.systems import make_timed_listener
from beat_timed.types import TimedState

__all__ = ["TimedState", "TimedStateMachine", "make_timed_listener"]
