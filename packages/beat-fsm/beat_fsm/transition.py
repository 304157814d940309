"""Transition definition."""
from __future__ import annotations

from typing import Any

from beat_fsm.definition import Definition


class Transition(Definition):
    """Decides when the owning state should move to ``target_state``.

    Transitions are reusable: the same template can sit in several states
    and several machines. Override ``on_data_changed`` to return True when
    the move should happen; the evaluator checks transitions in declared
    order every tick and the first one that passes wins.

    ```python
    class GoToBlue(Transition):
        def on_data_changed(self, data):
            return data["elapsed"] > 10

    go_to_blue = GoToBlue("Blue")
    ```

    A name is optional. Unnamed transitions get a generated one when a
    machine instantiates them.
    """

    TYPE = "Transition"

    def __init__(self, target_state: str = "", name: str = "") -> None:
        super().__init__(name)
        self.target_state = target_state

    def extend(self, target_state: str | None = None, **overrides: Any) -> Transition:
        """Derive a transition that inherits this one's fields and hooks.

        ```python
        base = Transition("Blue").extend(on_data_changed=lambda self, data: data["go"])
        to_red = base.extend("Red")
        ```
        """
        derived = self._derive(overrides)
        if target_state is not None:
            derived.target_state = target_state
        return derived

    # --- Virtual methods ---

    def on_init(self, data: dict[str, Any]) -> None:
        """Called once when a machine is created with this transition."""

    def on_enter(self, data: dict[str, Any]) -> None:
        """Called after the owning state is entered and its ``on_enter`` has run."""

    def on_leave(self, data: dict[str, Any]) -> None:
        """Called when the owning state is left."""

    def on_destroy(self) -> None:
        """Called when the owning machine is destroyed."""

    def can_change_state(self, data: dict[str, Any]) -> bool:
        """Gate in front of ``on_data_changed``. Defaults to True.

        Deprecated: put the condition in ``on_data_changed`` instead. Still
        enforced by the evaluator.
        """
        return True

    def on_data_changed(self, data: dict[str, Any]) -> bool:
        """Return True to move to ``target_state``. Defaults to False."""
        return False

    def __repr__(self) -> str:
        return f"Transition(name={self.name!r}, target_state={self.target_state!r})"
