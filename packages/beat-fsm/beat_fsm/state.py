"""State definition."""
from __future__ import annotations

from typing import Any, ClassVar, Iterable

from beat_fsm.definition import Definition
from beat_fsm.transition import Transition


class State(Definition):
    """A named mode of a StateMachine: lifecycle hooks plus an ordered list
    of transitions.

    ```python
    class Blue(State):
        def on_enter(self, data):
            data["part"].color = "blue"

    blue = Blue("Blue", [GoToRed("Red")])
    ```

    ``has_custom_heartbeat`` is fixed when the class is created. The machine
    only schedules ``on_heartbeat`` for states whose class (or an extended
    copy) defines one.
    """

    TYPE = "State"
    has_custom_heartbeat: ClassVar[bool] = False

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        below_state = cls.__mro__[: cls.__mro__.index(State)]
        cls.has_custom_heartbeat = any("on_heartbeat" in vars(k) for k in below_state)

    def __init__(self, name: str = "", transitions: Iterable[Transition] | None = None) -> None:
        super().__init__(name)
        self.transitions: list[Transition] = list(transitions) if transitions is not None else []
        # bound copies, filled in by the owning machine in declared order
        self._transitions: list[Transition] = []

    def extend(self, name: str | None = None, **overrides: Any) -> State:
        """Derive a state that inherits this one's fields, hooks, and transitions.

        Functions in ``overrides`` replace hooks (or add helpers); other
        values replace fields. ``transitions`` may be overridden too. A hook
        must be replaced by a plain function taking ``self``; a partial or
        other callable object raises TypeError.
        """
        derived = self._derive(overrides)
        if "transitions" not in overrides:
            derived.transitions = list(self.transitions)
        derived._transitions = []
        if name is not None:
            derived.name = name
        return derived

    def _instantiate(self, machine: Any) -> State:
        clone = super()._instantiate(machine)
        clone._transitions = []
        return clone

    @property
    def bound_transitions(self) -> list[Transition]:
        """This machine's copies of the transitions, in declared order."""
        return list(self._transitions)

    # --- Virtual methods ---

    def on_init(self, data: dict[str, Any]) -> None:
        """Called once when a machine is created with this state."""

    def on_enter(self, data: dict[str, Any]) -> None:
        """Called when the machine enters this state."""

    def on_leave(self, data: dict[str, Any]) -> None:
        """Called when the machine leaves this state, or is destroyed in it."""

    def on_heartbeat(self, data: dict[str, Any], dt: float) -> None:
        """Called every tick while current, except the first tick after entering."""

    def on_data_changed(self, data: dict[str, Any], key: str, new_value: Any, old_value: Any) -> None:
        """Called when ``change_data`` writes a new value while this state is current."""

    def can_change_state(self, target_state: str) -> bool:
        """Return False to block leaving this state for ``target_state``."""
        return True

    def on_destroy(self) -> None:
        """Called when the owning machine is destroyed."""
