"""Integration tests for driving a TimedStateMachine from a Heartbeat."""
from __future__ import annotations

from beat import Heartbeat
from beat_timed import TimedState, TimedStateMachine, make_timed_listener


def test_tool_cooldown_cycle():
    """Activating the tool enters Cooldown, which returns to Idle after 3s of frames."""
    heartbeat = Heartbeat(tps=10)
    machine = TimedStateMachine(time_fn=lambda: heartbeat.clock.elapsed)
    colors: list[int] = []
    machine.define_states([
        TimedState(name="Idle"),
        TimedState(
            name="Cooldown",
            duration=3,
            enter=lambda old: old == "Idle",
            started=lambda: colors.append(len(colors)),
            completed=lambda: "Idle",
        ),
    ])

    seen: list[str | None] = []
    heartbeat.connect(make_timed_listener(machine, on_update=lambda m: seen.append(m.current_state)))

    machine.go_to("Cooldown")  # tool activated
    heartbeat.run(29)
    assert machine.current_state == "Cooldown"

    heartbeat.run(1)
    assert machine.current_state == "Idle"
    assert colors == [0]
    assert seen.count("Cooldown") == 29
    assert seen[-1] == "Idle"


def test_listener_without_callback():
    heartbeat = Heartbeat(tps=10)
    machine = TimedStateMachine(time_fn=lambda: heartbeat.clock.elapsed)
    machine.define_states([TimedState(name="A", duration=0.5, completed=lambda: "B"), TimedState(name="B")])

    heartbeat.connect(make_timed_listener(machine))
    heartbeat.run(5)

    assert machine.current_state == "B"
