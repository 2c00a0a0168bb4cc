"""Synthetic heart-rate source for offline and test runs.

Produces a bounded random walk once per tick and feeds the same accumulator
path as relayed hardware samples.
"""

import random
from collections.abc import Callable

from timerlink.runtime.scheduler import Handle, Scheduler

MIN_BPM = 75
MAX_BPM = 145
START_BPM = 95
DRIFT_RANGE = (-2, 4)


class RandomWalkHeartRate:
    """Bounded random walk: drift in DRIFT_RANGE times the current direction,
    reflecting at MIN_BPM and MAX_BPM."""

    def __init__(self, rng: random.Random | None = None, start: int = START_BPM) -> None:
        self._rng = rng or random.Random()
        self.bpm = start
        self.direction = 1

    def next(self) -> int:
        drift = self._rng.randint(*DRIFT_RANGE)
        self.bpm += drift * self.direction
        if self.bpm > MAX_BPM:
            self.bpm = MAX_BPM
            self.direction = -1
        elif self.bpm < MIN_BPM:
            self.bpm = MIN_BPM
            self.direction = 1
        return self.bpm


class SyntheticHeartRateGenerator:
    """Drives a RandomWalkHeartRate on the scheduler, one sample per interval."""

    def __init__(
        self,
        scheduler: Scheduler,
        sink: Callable[[float, float], None],
        interval: float = 1.0,
        walk: RandomWalkHeartRate | None = None,
    ) -> None:
        self._scheduler = scheduler
        self._sink = sink
        self._interval = interval
        self._walk = walk or RandomWalkHeartRate()
        self._handle: Handle | None = None

    @property
    def is_running(self) -> bool:
        return self._handle is not None

    def start(self) -> None:
        self.stop()
        self._handle = self._scheduler.call_later(self._interval, self._tick)

    def stop(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _tick(self) -> None:
        if self._handle is None:
            return
        self._handle = self._scheduler.call_later(self._interval, self._tick)
        self._sink(self._scheduler.now(), float(self._walk.next()))
