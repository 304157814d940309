"""TaskScheduler - fire-and-forget dispatch of hook callbacks.

``spawn`` runs a callback right away. ``defer`` queues it until the
outermost ``step()`` block exits, i.e. after the synchronous work that
triggered it and before the next tick.

A callback that returns a generator becomes a suspendable task: it runs up
to its first ``yield`` and is resumed by ``advance(dt)`` once the yielded
delay in seconds has elapsed (``yield`` / ``yield None`` waits one frame).

Cancellation is cooperative. A cancelled task that has not started never
runs and a suspended one is never resumed; code that is already running is
not interrupted. Exceptions raised by a task stop at the task boundary: they
are stored on ``Task.error`` and reported through the error handler.
"""
from __future__ import annotations

import inspect
import logging
from contextlib import contextmanager
from enum import Enum
from typing import Any, Callable, Generator, Iterator

logger = logging.getLogger(__name__)

ErrorHandler = Callable[["Task", BaseException], None]


class TaskStatus(Enum):
    """Lifecycle of a scheduled task."""

    PENDING = "pending"
    RUNNING = "running"
    SUSPENDED = "suspended"
    DONE = "done"
    FAILED = "failed"
    CANCELLED = "cancelled"


_FINISHED = frozenset({TaskStatus.DONE, TaskStatus.FAILED, TaskStatus.CANCELLED})


class Task:
    """One scheduled invocation of a callback."""

    __slots__ = ("fn", "args", "status", "result", "error", "_gen", "_wait")

    def __init__(self, fn: Callable[..., Any], args: tuple[Any, ...]) -> None:
        self.fn = fn
        self.args = args
        self.status = TaskStatus.PENDING
        self.result: Any = None
        self.error: BaseException | None = None
        self._gen: Generator[Any, Any, Any] | None = None
        self._wait = 0.0

    @property
    def done(self) -> bool:
        """True once the task finished, failed, or was cancelled."""
        return self.status in _FINISHED

    @property
    def cancelled(self) -> bool:
        return self.status is TaskStatus.CANCELLED

    def cancel(self) -> None:
        """Stop the task from starting or resuming. No-op once finished.

        A running task finishes its current run but is not resumed again.
        """
        if self.status in (TaskStatus.PENDING, TaskStatus.RUNNING):
            self.status = TaskStatus.CANCELLED
        elif self.status is TaskStatus.SUSPENDED:
            self.status = TaskStatus.CANCELLED
            gen, self._gen = self._gen, None
            if gen is not None:
                gen.close()

    def __repr__(self) -> str:
        name = getattr(self.fn, "__qualname__", repr(self.fn))
        return f"Task({name}, status={self.status.value})"


class TaskScheduler:
    """Runs, defers, suspends, and cancels tasks for one owner."""

    def __init__(
        self,
        max_flush_passes: int = 100,
        error_handler: ErrorHandler | None = None,
    ) -> None:
        self._max_flush_passes = max_flush_passes
        self._error_handler = error_handler
        self._deferred: list[Task] = []
        self._suspended: list[Task] = []
        self._depth = 0
        self._flushing = False

    # --- Dispatch ---

    def spawn(self, fn: Callable[..., Any], *args: Any) -> Task:
        """Run ``fn(*args)`` now and return its task."""
        task = Task(fn, args)
        self._start(task)
        return task

    def defer(self, fn: Callable[..., Any], *args: Any) -> Task:
        """Queue ``fn(*args)`` to run when the current step completes."""
        task = Task(fn, args)
        self._deferred.append(task)
        return task

    @contextmanager
    def step(self) -> Iterator[None]:
        """Mark a synchronous step. Deferred tasks run when the outermost step exits."""
        self._depth += 1
        try:
            yield
        finally:
            self._depth -= 1
            if self._depth == 0:
                self.flush()

    def flush(self) -> None:
        """Run queued deferred tasks, including ones they defer, in FIFO order."""
        if self._flushing:
            return
        self._flushing = True
        try:
            passes = 0
            while self._deferred and passes < self._max_flush_passes:
                batch, self._deferred = self._deferred, []
                for task in batch:
                    if task.status is TaskStatus.PENDING:
                        self._start(task)
                passes += 1
        finally:
            self._flushing = False

    def advance(self, dt: float) -> None:
        """Resume suspended tasks whose wait has elapsed by ``dt`` seconds."""
        ready: list[Task] = []
        waiting: list[Task] = []
        for task in self._suspended:
            if task.status is not TaskStatus.SUSPENDED:
                continue
            task._wait -= dt
            if task._wait <= 0:
                ready.append(task)
            else:
                waiting.append(task)
        self._suspended = waiting
        for task in ready:
            if task.status is TaskStatus.SUSPENDED:
                self._resume(task, dt)

    def cancel_all(self) -> None:
        """Cancel every deferred and suspended task."""
        pending = self._deferred + self._suspended
        self._deferred = []
        self._suspended = []
        for task in pending:
            task.cancel()

    # --- Queries ---

    @property
    def pending_count(self) -> int:
        """Number of deferred tasks that have not started yet."""
        return sum(1 for t in self._deferred if t.status is TaskStatus.PENDING)

    @property
    def suspended_count(self) -> int:
        return sum(1 for t in self._suspended if t.status is TaskStatus.SUSPENDED)

    # --- Internal ---

    def _start(self, task: Task) -> None:
        task.status = TaskStatus.RUNNING
        try:
            result = task.fn(*task.args)
        except Exception as exc:
            self._fail(task, exc)
            return
        if inspect.isgenerator(result):
            if task.status is TaskStatus.CANCELLED:
                result.close()
                return
            task._gen = result
            self._resume(task, None)
            return
        task.result = result
        if task.status is TaskStatus.RUNNING:
            task.status = TaskStatus.DONE

    def _resume(self, task: Task, value: Any) -> None:
        gen = task._gen
        assert gen is not None
        task.status = TaskStatus.RUNNING
        try:
            delay = gen.send(value)
        except StopIteration as stop:
            task._gen = None
            task.result = stop.value
            if task.status is TaskStatus.RUNNING:
                task.status = TaskStatus.DONE
            return
        except Exception as exc:
            task._gen = None
            self._fail(task, exc)
            return
        if task.status is TaskStatus.CANCELLED:
            # cancelled from inside its own body
            task._gen = None
            gen.close()
            return
        task._wait = float(delay) if delay is not None else 0.0
        task.status = TaskStatus.SUSPENDED
        self._suspended.append(task)

    def _fail(self, task: Task, exc: Exception) -> None:
        task.status = TaskStatus.FAILED
        task.error = exc
        if self._error_handler is not None:
            self._error_handler(task, exc)
        else:
            logger.error("Unhandled error in %r", task, exc_info=exc)
