"""beat - A fixed-timestep heartbeat for driving per-frame updates."""

from beat.clock import Clock
from beat.heartbeat import Heartbeat

__all__ = [
    "Heartbeat",
    "Clock",
]
