"""beat-fsm - Finite state machines with scheduled lifecycle hooks for the beat engine."""
from __future__ import annotations

from beat_fsm.config import MachineConfig
from beat_fsm.errors import BeatFSMError, ConstructionError, StateNotFoundError
from beat_fsm.loader import DefinitionCache, DefinitionLoader
from beat_fsm.machine import StateMachine
from beat_fsm.registry import StateRegistry
from beat_fsm.scheduler import Task, TaskScheduler, TaskStatus
from beat_fsm.state import State
from beat_fsm.transition import Transition
from beat_fsm.trove import Trove

__all__ = [
    "StateMachine",
    "State",
    "Transition",
    "MachineConfig",
    "StateRegistry",
    "TaskScheduler",
    "Task",
    "TaskStatus",
    "Trove",
    "DefinitionLoader",
    "DefinitionCache",
    "BeatFSMError",
    "ConstructionError",
    "StateNotFoundError",
]
