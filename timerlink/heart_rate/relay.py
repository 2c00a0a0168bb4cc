"""Companion-side heart-rate relay.

Wraps the local sensor session: every sample updates the companion's own
accumulator and is pushed to the primary with send_or_fallback (queued, so
no sample is dropped while the primary is unreachable).
"""

from loguru import logger

from timerlink.heart_rate.accumulator import HeartRateAccumulator
from timerlink.heart_rate.sensor import SensorSession
from timerlink.link.session import LinkSession
from timerlink.protocol.messages import HeartRateMessage


class HeartRateRelay:
    """Local workout session on the companion.

    start() and stop() are idempotent; calling stop() when nothing is running
    is a no-op.
    """

    def __init__(self, link: LinkSession, sensor: SensorSession) -> None:
        self._link = link
        self._sensor = sensor
        self.accumulator = HeartRateAccumulator()

    @property
    def is_running(self) -> bool:
        return self._sensor.is_running

    def start(self) -> None:
        if self._sensor.is_running:
            return
        self.accumulator.reset()
        self._sensor.start(self._on_sample)
        logger.info(f"[{self._link.name}] Sensor session started")

    def stop(self) -> None:
        if not self._sensor.is_running:
            return
        self._sensor.stop()
        logger.info(f"[{self._link.name}] Sensor session stopped")

    def _on_sample(self, at: float, bpm: float) -> None:
        self.accumulator.add_sample(bpm, at)
        channel = self._link.send_or_fallback(HeartRateMessage(heart_rate=bpm).to_payload())
        if channel is None:
            logger.bind(bpm=bpm).debug(f"[{self._link.name}] Sample not relayed: link not activated")
