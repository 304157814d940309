"""Shared base for State and Transition definitions."""
from __future__ import annotations

import copy
import inspect
from typing import TYPE_CHECKING, Any, ClassVar, TypeVar

if TYPE_CHECKING:
    from beat_fsm.machine import StateMachine

_D = TypeVar("_D", bound="Definition")


class Definition:
    """A named template of hooks.

    Templates are never run directly. A StateMachine stamps out its own copy
    of each template and binds it, after which the accessors below delegate
    to that machine. Before binding they do nothing.
    """

    TYPE: ClassVar[str] = ""

    def __init__(self, name: str = "") -> None:
        self.name = name
        self._machine: StateMachine | None = None

    # --- Composition ---

    def _derive(self: _D, overrides: dict[str, Any]) -> _D:
        """Copy this definition, layering ``overrides`` on top.

        Plain functions become methods of a one-off subclass, so they receive
        ``self``; every other value is set as an attribute. Hooks can only be
        replaced by plain functions: any other callable given for an existing
        method raises TypeError.
        """
        methods = {k: v for k, v in overrides.items() if inspect.isfunction(v)}
        fields = {k: v for k, v in overrides.items() if k not in methods}
        cls = type(self)
        for key in fields:
            if callable(getattr(cls, key, None)):
                raise TypeError(
                    f"{key!r} must be overridden with a function taking self, "
                    f"got {fields[key]!r}"
                )
        if methods:
            methods["__module__"] = cls.__module__
            methods["__qualname__"] = cls.__qualname__
            cls = type(cls.__name__, (cls,), methods)
        derived = copy.copy(self)
        derived.__class__ = cls
        derived._machine = None
        for key, value in fields.items():
            setattr(derived, key, value)
        return derived

    def _instantiate(self: _D, machine: StateMachine) -> _D:
        """Deep copy this definition and bind the copy to ``machine``.

        Each machine owns every attribute of its copy. An already bound
        definition keeps pointing at its machine instead of copying it.
        """
        memo: dict[int, Any] = {}
        if self._machine is not None:
            memo[id(self._machine)] = self._machine
        clone = copy.deepcopy(self, memo)
        clone._machine = machine
        return clone

    # --- Bound accessors ---

    @property
    def bound(self) -> bool:
        """True once a StateMachine owns this copy."""
        return self._machine is not None

    @property
    def data(self) -> dict[str, Any]:
        """The owning machine's shared data; an empty dict when unbound."""
        if self._machine is None:
            return {}
        return self._machine.get_data()

    def change_state(self, new_state: str) -> None:
        if self._machine is None:
            return
        self._machine.change_state(new_state)

    def change_data(self, key: str, value: Any) -> None:
        """Write shared data and fire ``data_changed``.

        Writing through ``data`` directly also works but is silent.
        """
        if self._machine is None:
            return
        self._machine.change_data(key, value)

    def get_state(self) -> str:
        if self._machine is None:
            return ""
        return self._machine.get_current_state()

    def get_previous_state(self) -> str:
        if self._machine is None:
            return ""
        return self._machine.get_previous_state()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"
