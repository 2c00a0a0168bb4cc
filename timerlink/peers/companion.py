"""Companion (wearable) peer.

Owns the link session, the local heart-rate relay, the state receiver and
the pong responder. Routes timer state to the receiver, pings to the
responder and start/stop commands to the local session.
"""

from loguru import logger

from timerlink.heart_rate.relay import HeartRateRelay
from timerlink.heart_rate.sensor import SensorSession, SyntheticSensorSession
from timerlink.link.session import LinkSession
from timerlink.link.transport import Payload, ReplyHandler, Transport
from timerlink.link.types import Channel
from timerlink.liveness.responder import PongResponder
from timerlink.protocol.messages import CommandMessage, PingMessage, TimerWireMessage, parse_message
from timerlink.runtime.scheduler import Scheduler
from timerlink.sync.receiver import StateReceiver


class CompanionPeer:
    def __init__(
        self,
        transport: Transport | None,
        scheduler: Scheduler,
        sensor: SensorSession | None = None,
        name: str = "companion",
        sample_interval: float = 1.0,
    ) -> None:
        self.link = LinkSession(transport, scheduler, name=name)
        self.relay = HeartRateRelay(self.link, sensor or SyntheticSensorSession(scheduler, sample_interval))
        self.receiver = StateReceiver(self.relay, scheduler)
        self.responder = PongResponder(self.link)
        self.link.set_message_handler(self._on_message)

    def start(self) -> None:
        self.link.activate()

    def _on_message(self, payload: Payload, channel: Channel, reply: ReplyHandler | None) -> None:
        message = parse_message(payload)
        if message is None:
            return
        if isinstance(message, TimerWireMessage):
            self.receiver.handle(message)
        elif isinstance(message, PingMessage):
            self.responder.handle_ping(message, channel, reply)
        elif isinstance(message, CommandMessage):
            self.receiver.handle_command(message)
        else:
            logger.debug(f"[{self.link.name}] Ignoring {type(message).__name__} via {channel}")
