"""State machine configuration dataclass."""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class MachineConfig:
    """Immutable configuration for a StateMachine.

    Attributes:
        skip_first_heartbeat: Do not run ``on_heartbeat`` on the first tick
            after a state change.
        max_flush_passes: Upper bound on deferred-task passes per step when
            the machine owns its scheduler. Work deferred beyond that runs at
            the next step.
    """

    skip_first_heartbeat: bool = True
    max_flush_passes: int = 100

    def __post_init__(self) -> None:
        if self.max_flush_passes < 1:
            raise ValueError(f"max_flush_passes must be >= 1, got {self.max_flush_passes}")
