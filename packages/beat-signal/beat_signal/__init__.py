"""beat-signal - Connectable signals for the beat engine."""
from __future__ import annotations

from beat_signal.signals import Connection, Signal

__all__ = ["Signal", "Connection"]
