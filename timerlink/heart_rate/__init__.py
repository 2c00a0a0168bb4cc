"""Heart-rate relay, monitor and session accumulator."""

from timerlink.heart_rate.accumulator import HeartRateAccumulator, round_half_up
from timerlink.heart_rate.monitor import HeartRateMonitor
from timerlink.heart_rate.relay import HeartRateRelay
from timerlink.heart_rate.sensor import SensorSession, SyntheticSensorSession
from timerlink.heart_rate.synthetic import RandomWalkHeartRate, SyntheticHeartRateGenerator

__all__ = [
    "HeartRateAccumulator",
    "HeartRateMonitor",
    "HeartRateRelay",
    "RandomWalkHeartRate",
    "SensorSession",
    "SyntheticHeartRateGenerator",
    "SyntheticSensorSession",
    "round_half_up",
]
