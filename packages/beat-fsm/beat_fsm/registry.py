"""StateRegistry - the states owned by one machine."""
from __future__ import annotations

from typing import Iterator

from beat_fsm.errors import ConstructionError, StateNotFoundError
from beat_fsm.state import State

DUPLICATE_ERROR = "There cannot be more than 1 state by the same name"
STATE_NOT_FOUND = "Attempt to {action}, but there is no state by the name of {name!r}"


class StateRegistry:
    """Maps state names to bound State copies. Declaration order preserved.

    Membership is fixed once ``freeze()`` is called.
    """

    def __init__(self) -> None:
        self._states: dict[str, State] = {}
        self._frozen = False

    def register(self, state: State) -> None:
        """Add a state. Raises ConstructionError on a duplicate name."""
        if self._frozen:
            raise RuntimeError("Cannot register states after the registry is frozen")
        if state.name in self._states:
            raise ConstructionError(f"{DUPLICATE_ERROR} {state.name!r}")
        self._states[state.name] = state

    def freeze(self) -> None:
        self._frozen = True

    def get(self, name: str) -> State | None:
        return self._states.get(name)

    def require(self, name: str, action: str) -> State:
        """Look up a state. Raises StateNotFoundError if not registered."""
        state = self._states.get(name)
        if state is None:
            raise StateNotFoundError(name, STATE_NOT_FOUND.format(action=action, name=name))
        return state

    def names(self) -> list[str]:
        """List registered state names in declaration order."""
        return list(self._states)

    def __contains__(self, name: object) -> bool:
        return name in self._states

    def __iter__(self) -> Iterator[State]:
        return iter(list(self._states.values()))

    def __len__(self) -> int:
        return len(self._states)
