"""Tests for Trove."""
from __future__ import annotations

import pytest

from beat_fsm import TaskScheduler, Trove
from beat_signal import Signal


class Resource:
    def __init__(self) -> None:
        self.released = 0

    def close(self) -> None:
        self.released += 1


def test_clean_releases_in_insertion_order():
    trove = Trove()
    order = []
    trove.add(lambda: order.append(1))
    trove.add(lambda: order.append(2))
    trove.add(lambda: order.append(3))

    trove.clean()

    assert order == [1, 2, 3]
    assert len(trove) == 0


def test_clean_keeps_trove_usable():
    trove = Trove()
    calls = []
    trove.add(lambda: calls.append("first"))
    trove.clean()
    trove.add(lambda: calls.append("second"))
    trove.clean()
    assert calls == ["first", "second"]


def test_add_with_method_name():
    trove = Trove()
    res = trove.add(Resource(), "close")
    trove.clean()
    assert res.released == 1


def test_add_returns_object():
    trove = Trove()
    res = Resource()
    assert trove.add(res, "close") is res


def test_releases_tasks_connections_and_signals():
    scheduler = TaskScheduler()
    sig = Signal()
    other = Signal()
    other.connect(lambda: None)
    trove = Trove()

    task = trove.add(scheduler.defer(lambda: None))
    conn = trove.connect(sig, lambda: None)
    trove.add(other)

    trove.clean()

    assert task.cancelled
    assert not conn.connected
    assert sig.connection_count == 0
    assert other.connection_count == 0


def test_destroy_releases_later_additions_immediately():
    trove = Trove()
    res = Resource()
    trove.destroy()
    trove.add(res, "close")

    assert trove.destroyed
    assert res.released == 1
    assert len(trove) == 0


def test_rejects_unreleasable_objects():
    trove = Trove()
    with pytest.raises(TypeError):
        trove.add(object())
    with pytest.raises(TypeError):
        trove.add(Resource(), "missing")


def test_finished_tasks_dropped_on_next_task():
    scheduler = TaskScheduler()
    trove = Trove()

    def wait_a_frame():
        yield

    for _ in range(50):
        trove.add(scheduler.spawn(wait_a_frame))
        scheduler.advance(0.1)

    assert len(trove) == 1


def test_unfinished_tasks_and_other_items_kept():
    scheduler = TaskScheduler()
    trove = Trove()
    res = trove.add(Resource(), "close")
    pending = trove.add(scheduler.defer(lambda: None))
    trove.add(scheduler.defer(lambda: None))

    assert len(trove) == 3
    trove.clean()
    assert pending.cancelled
    assert res.released == 1
