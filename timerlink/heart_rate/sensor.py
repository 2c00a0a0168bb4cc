"""Sensor-collection session interface.

The physiological sensor session is an external collaborator: the core only
starts and stops it and consumes the (timestamp, bpm) samples it yields.
"""

from collections.abc import Callable
from typing import Protocol

from timerlink.heart_rate.synthetic import RandomWalkHeartRate, SyntheticHeartRateGenerator
from timerlink.runtime.scheduler import Scheduler

SampleSink = Callable[[float, float], None]


class SensorSession(Protocol):
    @property
    def is_running(self) -> bool: ...

    def start(self, sink: SampleSink) -> None: ...

    def stop(self) -> None: ...


class SyntheticSensorSession:
    """Sensor session backed by the random-walk generator."""

    def __init__(self, scheduler: Scheduler, interval: float = 1.0, walk: RandomWalkHeartRate | None = None) -> None:
        self._scheduler = scheduler
        self._interval = interval
        self._walk = walk
        self._generator: SyntheticHeartRateGenerator | None = None

    @property
    def is_running(self) -> bool:
        return self._generator is not None and self._generator.is_running

    def start(self, sink: SampleSink) -> None:
        if self.is_running:
            return
        self._generator = SyntheticHeartRateGenerator(self._scheduler, sink, self._interval, self._walk)
        self._generator.start()

    def stop(self) -> None:
        if self._generator is not None:
            self._generator.stop()
            self._generator = None
