"""Fixed-timestep clock."""


class Clock:
    """Counts frames at a fixed rate of ``tps`` frames per second.

    Time is derived from the frame count, so ``elapsed`` never drifts the way
    summed float deltas do.
    """

    def __init__(self, tps: int) -> None:
        if tps <= 0:
            raise ValueError(f"tps must be positive, got {tps}")
        self._tps = tps
        self._dt = 1.0 / tps
        self._frame = 0

    @property
    def tps(self) -> int:
        return self._tps

    @property
    def dt(self) -> float:
        """Seconds per frame."""
        return self._dt

    @property
    def tick_number(self) -> int:
        return self._frame

    @property
    def elapsed(self) -> float:
        """Seconds since frame 0."""
        return self._frame * self._dt

    def advance(self, frames: int = 1) -> int:
        """Move forward ``frames`` frames and return the new tick number."""
        if frames < 0:
            raise ValueError(f"cannot advance by {frames} frames")
        self._frame += frames
        return self._frame

    def reset(self, tick_number: int = 0) -> None:
        self._frame = tick_number

    def __repr__(self) -> str:
        return f"Clock(tps={self._tps}, tick_number={self._frame})"
