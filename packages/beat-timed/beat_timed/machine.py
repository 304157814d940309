"""TimedStateMachine - states that expire after a fixed duration."""
from __future__ import annotations

import logging
import time
from typing import Callable, Sequence

from beat_timed.types import TimedState

logger = logging.getLogger(__name__)


class TimedStateMachine:
    """Minimal state machine where each state lasts ``duration`` seconds.

    Call ``update()`` every frame. Problems (no states, unknown names) are
    logged as warnings rather than raised.
    """

    def __init__(self, time_fn: Callable[[], float] = time.monotonic) -> None:
        self._time_fn = time_fn
        self._states: dict[str, TimedState] = {}
        self._current: str | None = None
        self._start_time = 0.0

    @property
    def current_state(self) -> str | None:
        return self._current

    @property
    def states(self) -> dict[str, TimedState]:
        return dict(self._states)

    def time_in_state(self) -> float:
        """Seconds since the current state was entered (or defined)."""
        return self._time_fn() - self._start_time

    def define_states(self, states: Sequence[TimedState]) -> None:
        """Register states and start in the first one. Needs at least two."""
        if len(states) < 2:
            logger.warning("You must define at least two states.")
            return

        for state in states:
            self._states[state.name] = state

        self._current = states[0].name
        self._start_time = self._time_fn()

    def go_to(self, name: str) -> bool:
        """Switch to ``name``. Returns True if the change happened.

        Going to the current state is allowed and restarts its timer.
        """
        if self._current is None:
            logger.warning("No states have been defined yet.")
            return False

        next_state = self._states.get(name)
        if next_state is None:
            logger.warning("The state %r does not exist.", name)
            return False

        if next_state.enter is not None and not next_state.enter(self._current):
            return False

        self._current = name
        self._start_time = self._time_fn()

        if next_state.started is not None:
            next_state.started()
        return True

    def update(self) -> None:
        """Move on from the current state once its duration has elapsed."""
        if self._current is None:
            return

        current = self._states[self._current]
        if current.duration == 0:
            return
        if self.time_in_state() < current.duration:
            return

        if current.completed is None:
            self.go_to(self._current)
            return

        next_name = current.completed()
        if next_name not in self._states:
            logger.warning("The state %r does not exist.", next_name)
            self.go_to(self._current)
            return

        self.go_to(next_name)
