"""Tests for TaskScheduler and Task."""
from __future__ import annotations

import logging

import pytest

from beat_fsm import Task, TaskScheduler, TaskStatus


@pytest.fixture
def scheduler() -> TaskScheduler:
    return TaskScheduler()


class TestSpawn:
    def test_spawn_runs_immediately(self, scheduler: TaskScheduler) -> None:
        calls = []
        task = scheduler.spawn(calls.append, "x")
        assert calls == ["x"]
        assert task.status is TaskStatus.DONE
        assert task.done

    def test_spawn_keeps_result(self, scheduler: TaskScheduler) -> None:
        task = scheduler.spawn(lambda a, b: a + b, 2, 3)
        assert task.result == 5

    def test_spawn_error_is_contained(
        self, scheduler: TaskScheduler, caplog: pytest.LogCaptureFixture
    ) -> None:
        def boom() -> None:
            raise RuntimeError("hook failed")

        with caplog.at_level(logging.ERROR):
            task = scheduler.spawn(boom)

        assert task.status is TaskStatus.FAILED
        assert isinstance(task.error, RuntimeError)
        assert "hook failed" in caplog.text

    def test_custom_error_handler(self) -> None:
        seen: list[tuple[Task, BaseException]] = []
        scheduler = TaskScheduler(error_handler=lambda t, e: seen.append((t, e)))

        def boom() -> None:
            raise ValueError("bad")

        task = scheduler.spawn(boom)
        assert len(seen) == 1
        assert seen[0][0] is task
        assert isinstance(seen[0][1], ValueError)


class TestDefer:
    def test_defer_waits_for_step_end(self, scheduler: TaskScheduler) -> None:
        order = []
        with scheduler.step():
            scheduler.defer(order.append, "deferred")
            order.append("sync")
            assert scheduler.pending_count == 1
        assert order == ["sync", "deferred"]
        assert scheduler.pending_count == 0

    def test_nested_steps_flush_at_outermost(self, scheduler: TaskScheduler) -> None:
        order = []
        with scheduler.step():
            with scheduler.step():
                scheduler.defer(order.append, "deferred")
            order.append("inner done")
        assert order == ["inner done", "deferred"]

    def test_defer_outside_step_needs_flush(self, scheduler: TaskScheduler) -> None:
        calls = []
        task = scheduler.defer(calls.append, 1)
        assert calls == []
        assert task.status is TaskStatus.PENDING
        scheduler.flush()
        assert calls == [1]
        assert task.done

    def test_deferred_run_in_fifo_order(self, scheduler: TaskScheduler) -> None:
        order = []
        with scheduler.step():
            scheduler.defer(order.append, 1)
            scheduler.defer(order.append, 2)
            scheduler.defer(order.append, 3)
        assert order == [1, 2, 3]

    def test_defer_chain_drains_in_same_flush(self, scheduler: TaskScheduler) -> None:
        order = []

        def first() -> None:
            order.append("first")
            scheduler.defer(order.append, "second")

        with scheduler.step():
            scheduler.defer(first)
        assert order == ["first", "second"]

    def test_flush_passes_are_bounded(self) -> None:
        scheduler = TaskScheduler(max_flush_passes=2)
        runs = []

        def again() -> None:
            runs.append(1)
            scheduler.defer(again)

        with scheduler.step():
            scheduler.defer(again)
        assert len(runs) == 2
        assert scheduler.pending_count == 1

        scheduler.flush()
        assert len(runs) == 4

    def test_cancelled_deferred_never_runs(self, scheduler: TaskScheduler) -> None:
        calls = []
        with scheduler.step():
            task = scheduler.defer(calls.append, 1)
            task.cancel()
        assert calls == []
        assert task.cancelled


class TestSuspend:
    def test_generator_runs_to_first_yield(self, scheduler: TaskScheduler) -> None:
        log = []

        def hook():
            log.append("start")
            yield
            log.append("resumed")

        task = scheduler.spawn(hook)
        assert log == ["start"]
        assert task.status is TaskStatus.SUSPENDED
        assert scheduler.suspended_count == 1

        scheduler.advance(1 / 60)
        assert log == ["start", "resumed"]
        assert task.status is TaskStatus.DONE

    def test_yield_delay_in_seconds(self, scheduler: TaskScheduler) -> None:
        log = []

        def hook():
            yield 0.5
            log.append("waited")

        scheduler.spawn(hook)
        scheduler.advance(0.25)
        assert log == []
        scheduler.advance(0.25)
        assert log == ["waited"]

    def test_generator_return_value(self, scheduler: TaskScheduler) -> None:
        def hook():
            yield
            return "finished"

        task = scheduler.spawn(hook)
        scheduler.advance(0.1)
        assert task.result == "finished"

    def test_cancel_suspended_closes_generator(self, scheduler: TaskScheduler) -> None:
        log = []

        def hook():
            try:
                yield
                log.append("resumed")
            finally:
                log.append("closed")

        task = scheduler.spawn(hook)
        task.cancel()
        scheduler.advance(1.0)

        assert log == ["closed"]
        assert task.cancelled
        assert scheduler.suspended_count == 0

    def test_error_after_resume_is_contained(
        self, scheduler: TaskScheduler, caplog: pytest.LogCaptureFixture
    ) -> None:
        def hook():
            yield
            raise KeyError("late")

        task = scheduler.spawn(hook)
        with caplog.at_level(logging.ERROR):
            scheduler.advance(0.1)
        assert task.status is TaskStatus.FAILED
        assert isinstance(task.error, KeyError)

    def test_task_cancelled_while_running_is_not_resumed(self, scheduler: TaskScheduler) -> None:
        log = []
        tasks: list[Task] = []

        def hook():
            log.append("ran")
            tasks[0].cancel()
            yield
            log.append("resumed")

        # deferred so the task handle exists before its body runs
        tasks.append(scheduler.defer(hook))
        scheduler.flush()
        scheduler.advance(0.1)

        assert log == ["ran"]
        assert tasks[0].cancelled
        assert scheduler.suspended_count == 0

    def test_cancel_all(self, scheduler: TaskScheduler) -> None:
        log = []

        def hook():
            yield
            log.append("resumed")

        suspended = scheduler.spawn(hook)
        deferred = scheduler.defer(log.append, "deferred")
        scheduler.cancel_all()
        scheduler.flush()
        scheduler.advance(1.0)

        assert log == []
        assert suspended.cancelled
        assert deferred.cancelled


def test_task_repr_names_callable() -> None:
    def on_enter() -> None:
        pass

    task = TaskScheduler().spawn(on_enter)
    assert "on_enter" in repr(task)
    assert "done" in repr(task)
