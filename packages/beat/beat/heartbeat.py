"""Heartbeat - per-frame signal, pacing, and lifecycle hooks."""

import time
from contextlib import contextmanager
from typing import Callable, Iterator

from beat_signal import Connection, Signal

from beat.clock import Clock


class Heartbeat:
    """Host clock that fires ``stepped(dt)`` once per frame.

    Anything with a ``tick(dt)`` entry point (a state machine, say) can be
    driven by connecting it to ``stepped``.
    """

    def __init__(self, tps: int = 60) -> None:
        self._clock = Clock(tps)
        self.stepped = Signal()
        self._start_hooks: list[Callable[[], None]] = []
        self._stop_hooks: list[Callable[[], None]] = []
        self._stop_requested: bool = False

    @property
    def clock(self) -> Clock:
        return self._clock

    @property
    def dt(self) -> float:
        return self._clock.dt

    def connect(self, listener: Callable[[float], None]) -> Connection:
        return self.stepped.connect(listener)

    def on_start(self, hook: Callable[[], None]) -> None:
        self._start_hooks.append(hook)

    def on_stop(self, hook: Callable[[], None]) -> None:
        self._stop_hooks.append(hook)

    def stop(self) -> None:
        self._stop_requested = True

    def _beat(self) -> None:
        self._clock.advance()
        self.stepped.fire(self._clock.dt)

    def step(self) -> None:
        self._stop_requested = False
        self._beat()

    @contextmanager
    def _running(self) -> Iterator[None]:
        """Start hooks on entry, stop hooks on exit, even if a listener raises."""
        self._stop_requested = False
        for hook in self._start_hooks:
            hook()
        try:
            yield
        finally:
            for hook in self._stop_hooks:
                hook()

    def run(self, n: int) -> None:
        """Fire ``n`` frames back to back, or fewer if ``stop()`` is called."""
        with self._running():
            for _ in range(n):
                self._beat()
                if self._stop_requested:
                    return

    def run_forever(self) -> None:
        """Fire frames in real time, one every ``dt`` seconds, until ``stop()``."""
        with self._running():
            next_frame = time.monotonic()
            while not self._stop_requested:
                self._beat()
                if self._stop_requested:
                    return
                next_frame += self.dt
                delay = next_frame - time.monotonic()
                if delay > 0:
                    time.sleep(delay)
                else:
                    # fell behind; do not try to catch up with a burst of frames
                    next_frame = time.monotonic()
