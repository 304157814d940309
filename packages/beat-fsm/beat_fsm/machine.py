"""StateMachine - owns states, shared data, and the per-tick transition loop."""
from __future__ import annotations

import logging
import uuid
from collections.abc import MutableMapping
from functools import partial
from typing import TYPE_CHECKING, Any, Iterable

from beat_signal import Signal

from beat_fsm.config import MachineConfig
from beat_fsm.errors import ConstructionError
from beat_fsm.registry import STATE_NOT_FOUND, StateRegistry
from beat_fsm.scheduler import Task, TaskScheduler
from beat_fsm.state import State
from beat_fsm.transition import Transition
from beat_fsm.trove import Trove

if TYPE_CHECKING:
    from beat import Heartbeat

logger = logging.getLogger(__name__)

DATA_WARNING = (
    "The data of this state machine is not a mapping (got %s). "
    "It will be reset to an empty dict. Do not replace data with a non-mapping object"
)
WRONG_STATE = "Attempt to add a state that is not a State: {obj!r}"
WRONG_TRANSITION = "Attempt to add a transition that is not a Transition: {obj!r}"
DUPLICATE_TRANSITION = "State {state!r} has more than 1 transition named {name!r}"


class StateMachine:
    """Finite state machine driven by ``tick(dt)``.

    Every state and transition template passed in is copied and bound to
    this machine, so the same templates can back any number of machines.
    All of them see the same shared ``data`` dict.

    ```python
    machine = StateMachine("Idle", [idle, active], {"count": 0})
    machine.state_changed.connect(lambda new, old: print(old, "->", new))
    machine.change_data("count", 3)
    machine.tick(1 / 60)
    ```

    Hooks run as tasks on the machine's TaskScheduler. Leave hooks of the
    outgoing state always run before enter hooks of the incoming one; the
    incoming state's transition ``on_enter`` hooks are deferred until the
    current step has finished. Changing state cancels whatever the outgoing
    state still had pending; ``destroy()`` cancels everything.

    Signals:
        state_changed(new_state, previous_state)
        data_changed(data, key, new_value, old_value) - only for ``change_data``
    """

    def __init__(
        self,
        initial_state: str,
        states: Iterable[State],
        initial_data: MutableMapping[str, Any] | None = None,
        *,
        heartbeat: Heartbeat | None = None,
        scheduler: TaskScheduler | None = None,
        config: MachineConfig | None = None,
    ) -> None:
        self.config: MachineConfig = config if config is not None else MachineConfig()
        self._owns_scheduler = scheduler is None
        self._scheduler = (
            scheduler if scheduler is not None
            else TaskScheduler(max_flush_passes=self.config.max_flush_passes)
        )
        self._registry = StateRegistry()
        self._trove = Trove()
        self._state_trove = Trove()

        self._current = ""
        self._previous = ""
        self._destroyed = False
        self._leaving = False
        self._generation = 0
        self._last_ticked: State | None = None
        self._data: Any = initial_data if initial_data is not None else {}

        self.state_changed = Signal()
        self.data_changed = Signal()

        # Validate everything before any hook runs
        for state in states:
            self._registry.register(self._instantiate_state(state))
        self._registry.freeze()
        if initial_state not in self._registry:
            raise ConstructionError(
                STATE_NOT_FOUND.format(action="create a state machine", name=initial_state)
            )

        with self._scheduler.step():
            data = self.get_data()
            for state in self._registry:
                for transition in state._transitions:
                    self._track(self._trove, self._scheduler.spawn(transition.on_init, data))
                    self._trove.add(partial(self._scheduler.spawn, transition.on_destroy))
                self._track(self._trove, self._scheduler.spawn(state.on_init, data))
                self._trove.add(partial(self._scheduler.spawn, state.on_destroy))

            self._trove.add(self.state_changed)
            self._trove.add(self.data_changed)
            if heartbeat is not None:
                self._trove.add(heartbeat.connect(self.tick))

            self._change_state(initial_state)

    # --- Queries ---

    def get_current_state(self) -> str:
        return self._current

    def get_previous_state(self) -> str:
        """Name of the state before the last change. Empty before the first change."""
        return self._previous

    @property
    def current_state(self) -> str:
        return self._current

    @property
    def previous_state(self) -> str:
        return self._previous

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    @property
    def states(self) -> list[str]:
        """Registered state names in declaration order."""
        return self._registry.names()

    @property
    def scheduler(self) -> TaskScheduler:
        return self._scheduler

    def get_state_object(self, name: str) -> State | None:
        """This machine's bound copy of a state, or None."""
        return self._registry.get(name)

    # --- Shared data ---

    def get_data(self) -> MutableMapping[str, Any]:
        """Return the shared data itself, not a copy.

        Writing to it directly does not fire ``data_changed``; use
        ``change_data`` for that.
        """
        if not isinstance(self._data, MutableMapping):
            logger.warning(DATA_WARNING, type(self._data).__name__)
            self._data = {}
        return self._data

    @property
    def data(self) -> MutableMapping[str, Any]:
        return self.get_data()

    @data.setter
    def data(self, value: Any) -> None:
        self._data = value

    def change_data(self, key: str, value: Any) -> None:
        """Write ``value`` under ``key`` and notify the current state and listeners.

        No-op if destroyed or if ``key`` already holds an equal value.
        """
        if self._destroyed:
            return
        data = self.get_data()
        if key in data and data[key] == value:
            return

        old_value = data.get(key)
        with self._scheduler.step():
            data[key] = value
            state = self._current_state_object()
            if state is not None:
                self._call_method(state, False, "on_data_changed", data, key, value, old_value)
            self.data_changed.fire(data, key, value, old_value)

    # --- State changes ---

    def change_state(self, new_state: str) -> None:
        """Change to ``new_state`` if the current state's ``can_change_state`` allows it.

        Raises StateNotFoundError if ``new_state`` is not registered.
        Changing to the current state is a no-op.
        """
        if self._destroyed:
            return
        current = self._current_state_object()
        if current is not None and not current.can_change_state(new_state):
            return
        with self._scheduler.step():
            self._change_state(new_state)

    def _change_state(self, new_state: str) -> None:
        if self._destroyed:
            return
        state = self._registry.require(new_state, f"change to {new_state!r}")

        if self._leaving:
            # requested from a leave hook; run once the current change is done
            self._track(self._trove, self._scheduler.defer(self._change_state, new_state))
            return

        if self._current == new_state:
            return

        previous = self._current_state_object()
        data = self.get_data()

        if previous is not None:
            self._leaving = True
            try:
                self._track(self._trove, self._scheduler.spawn(previous.on_leave, data))
                self._call_transitions(previous, "on_leave", data, tracker=self._trove)
            finally:
                self._leaving = False
            if self._destroyed:
                return
        self._state_trove.clean()

        self._state_trove.add(
            self._scheduler.defer(self._call_transitions, state, "on_enter", data)
        )

        self._current = new_state
        self._generation += 1
        generation = self._generation

        if previous is not None:
            self._previous = previous.name
            self.state_changed.fire(new_state, previous.name)

        # a listener may already have moved on to another state
        if self._destroyed or self._generation != generation:
            return
        self._call_method(state, False, "on_enter", data)

    # --- Tick ---

    def tick(self, dt: float) -> None:
        """Advance one frame: resume waiting hooks, check transitions, run the heartbeat."""
        if self._destroyed:
            return
        with self._scheduler.step():
            if self._owns_scheduler:
                self._scheduler.advance(dt)
            if self._destroyed:
                return

            self._check_transitions()

            state = self._current_state_object()
            first_frame = state is not self._last_ticked
            self._last_ticked = state
            if first_frame and self.config.skip_first_heartbeat:
                return
            if state is None or not state.has_custom_heartbeat:
                return
            self._call_method(state, False, "on_heartbeat", self.get_data(), dt)

    def _check_transitions(self) -> None:
        """Change state on the first transition, in declared order, whose conditions hold."""
        state = self._current_state_object()
        if state is None:
            return
        data = self.get_data()
        for transition in state._transitions:
            if transition.can_change_state(data) and transition.on_data_changed(data):
                self.change_state(transition.target_state)
                break

    # --- Teardown ---

    def destroy(self) -> None:
        """Release the machine. Idempotent; every later call is a no-op."""
        if self._destroyed:
            return
        self._destroyed = True

        state = self._current_state_object()
        if state is not None:
            self._scheduler.spawn(state.on_leave, self.get_data())

        self._trove.destroy()
        self._state_trove.destroy()
        if self._owns_scheduler:
            self._scheduler.cancel_all()

    def __enter__(self) -> StateMachine:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.destroy()

    def __repr__(self) -> str:
        return (
            f"StateMachine(current={self._current!r}, previous={self._previous!r}, "
            f"destroyed={self._destroyed})"
        )

    # --- Internal helpers ---

    def _current_state_object(self) -> State | None:
        return self._registry.get(self._current)

    def _instantiate_state(self, state: Any) -> State:
        if not isinstance(state, State):
            raise ConstructionError(WRONG_STATE.format(obj=state))
        clone = state._instantiate(self)
        seen: set[str] = set()
        for transition in state.transitions:
            if not isinstance(transition, Transition):
                raise ConstructionError(WRONG_TRANSITION.format(obj=transition))
            bound = transition._instantiate(self)
            if not bound.name:
                bound.name = uuid.uuid4().hex
            elif bound.name in seen:
                raise ConstructionError(DUPLICATE_TRANSITION.format(state=state.name, name=bound.name))
            seen.add(bound.name)
            clone._transitions.append(bound)
        return clone

    def _call_method(self, state: State, should_defer: bool, method: str, *args: Any) -> None:
        """Dispatch a state hook as a task tied to the current state's activation."""
        fn = getattr(state, method)
        if should_defer:
            self._state_trove.add(self._scheduler.defer(fn, *args))
        else:
            self._track(self._state_trove, self._scheduler.spawn(fn, *args))

    def _call_transitions(
        self, state: State, method: str, *args: Any, tracker: Trove | None = None
    ) -> None:
        """Spawn ``method`` on each of the state's transitions in declared order."""
        trove = tracker if tracker is not None else self._state_trove
        for transition in state._transitions:
            self._track(trove, self._scheduler.spawn(getattr(transition, method), *args))

    @staticmethod
    def _track(trove: Trove, task: Task) -> None:
        # finished tasks have nothing left to cancel
        if not task.done:
            trove.add(task)
