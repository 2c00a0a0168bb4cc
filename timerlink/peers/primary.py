"""Primary (phone) peer.

Owns the link session and every primary-side component, and routes incoming
payloads: pongs to the liveness prober, heart-rate samples to the monitor.
Anything else is logged and dropped.
"""

from loguru import logger

from timerlink.config.settings import Settings
from timerlink.config.settings import settings as default_settings
from timerlink.heart_rate.monitor import HeartRateMonitor
from timerlink.heart_rate.synthetic import RandomWalkHeartRate
from timerlink.link.session import LinkSession
from timerlink.link.transport import Payload, ReplyHandler, Transport
from timerlink.link.types import Channel
from timerlink.liveness.prober import LivenessProber
from timerlink.protocol.messages import HeartRateMessage, PongMessage, TimerMode, parse_message
from timerlink.runtime.scheduler import Scheduler
from timerlink.sync.broadcaster import StateBroadcaster
from timerlink.timer.workout import WorkoutTimer


class PrimaryPeer:
    def __init__(
        self,
        transport: Transport | None,
        scheduler: Scheduler,
        settings: Settings | None = None,
        name: str = "primary",
        walk: RandomWalkHeartRate | None = None,
    ) -> None:
        self.settings = settings or default_settings
        self.link = LinkSession(transport, scheduler, name=name)
        self.broadcaster = StateBroadcaster(self.link, dedupe_exercise=self.settings.dedupe_exercise)
        self.prober = LivenessProber(self.link, timeout=self.settings.ping_timeout_seconds)
        self.heart_rate = HeartRateMonitor(
            self.link,
            synthetic=self.settings.synthetic_heart_rate,
            auto_connect=self.settings.auto_connect,
            interval=self.settings.tick_interval_seconds,
            walk=walk,
        )
        self.link.set_message_handler(self._on_message)

    @property
    def scheduler(self) -> Scheduler:
        return self.link.scheduler

    def start(self) -> None:
        self.link.activate()

    def ping(self) -> str | None:
        return self.prober.probe()

    def create_timer(
        self,
        mode: TimerMode,
        total_minutes: int,
        interval_minutes: int = 1,
        exercises: list[str] | None = None,
    ) -> WorkoutTimer:
        """Build a workout timer wired to this peer's broadcaster and monitor."""
        return WorkoutTimer(
            self.broadcaster,
            self.scheduler,
            mode,
            total_minutes,
            interval_minutes=interval_minutes,
            exercises=exercises,
            heart_rate=self.heart_rate,
            countdown_seconds=self.settings.countdown_seconds,
            tick_interval=self.settings.tick_interval_seconds,
        )

    def _on_message(self, payload: Payload, channel: Channel, reply: ReplyHandler | None) -> None:
        message = parse_message(payload)
        if message is None:
            return
        if isinstance(message, PongMessage):
            self.prober.handle_pong(message)
        elif isinstance(message, HeartRateMessage):
            self.heart_rate.handle_heart_rate(message)
        else:
            logger.debug(f"[{self.link.name}] Ignoring {type(message).__name__} via {channel}")
