"""Exception types raised by the state machine."""
from __future__ import annotations


class BeatFSMError(Exception):
    """Base class for state machine errors."""


class ConstructionError(BeatFSMError, ValueError):
    """Raised when a state machine is built from an invalid configuration."""


class StateNotFoundError(BeatFSMError, LookupError):
    """Raised when changing to a state that is not registered."""

    def __init__(self, state_name: str, message: str) -> None:
        self.state_name = state_name
        super().__init__(message)
