"""Primary-side heart-rate monitor.

Consumes samples relayed by the companion (or produced by the synthetic
generator) into a session-scoped accumulator, and asks the companion to
start/stop its sensor session.
"""

from loguru import logger

from timerlink.heart_rate.accumulator import HeartRateAccumulator
from timerlink.heart_rate.synthetic import RandomWalkHeartRate, SyntheticHeartRateGenerator
from timerlink.link.session import LinkSession
from timerlink.link.types import LinkStatus
from timerlink.protocol.messages import CommandMessage, HeartRateMessage


class HeartRateMonitor:
    """Heart-rate consumer on the primary.

    Attributes:
        accumulator: Metrics of the current session
        is_collecting: Samples are accepted only while True
    """

    def __init__(
        self,
        link: LinkSession,
        synthetic: bool = False,
        auto_connect: bool = False,
        interval: float = 1.0,
        walk: RandomWalkHeartRate | None = None,
    ) -> None:
        self._link = link
        self._synthetic = synthetic
        self._auto_connect = auto_connect
        self._generator = SyntheticHeartRateGenerator(link.scheduler, self._accept, interval, walk)
        self.accumulator = HeartRateAccumulator()
        self.is_collecting = False
        link.subscribe(self._on_link_status)

    @property
    def synthetic(self) -> bool:
        return self._synthetic

    def start(self) -> None:
        """Begin a session: reset metrics, then start the synthetic source or
        ask the companion to start its sensor session."""
        self.accumulator.reset()
        self.is_collecting = True
        if self._synthetic:
            self._generator.start()
            return
        self._link.send_or_fallback(CommandMessage(command="start").to_payload())

    def stop(self) -> None:
        self.is_collecting = False
        self._generator.stop()
        if self._synthetic:
            return
        self._link.send_or_fallback(CommandMessage(command="stop").to_payload())

    def reset(self) -> None:
        self.is_collecting = False
        self._generator.stop()
        self.accumulator.reset()

    def set_synthetic(self, enabled: bool) -> None:
        """Switch the sample source, restarting collection on the new source."""
        if enabled == self._synthetic:
            return
        self._synthetic = enabled
        self._generator.stop()
        logger.info(f"Synthetic heart rate {'enabled' if enabled else 'disabled'}")
        if not self.is_collecting:
            return
        if enabled:
            self._generator.start()
        else:
            self.start()

    def handle_heart_rate(self, message: HeartRateMessage) -> None:
        if self._synthetic:
            return
        self._accept(self._link.scheduler.now(), message.heart_rate)

    def _accept(self, at: float, bpm: float) -> None:
        if not self.is_collecting:
            return
        self.accumulator.add_sample(bpm, at)

    def _on_link_status(self, status: LinkStatus, previous: LinkStatus) -> None:
        if not self._auto_connect or self.is_collecting:
            return
        if status.is_ready_for_companion and status.is_activated:
            logger.info("Companion ready; starting heart-rate collection")
            self.start()
