"""Companion-side pong responder.

Answers every ping immediately on the channel it arrived on. No dedup and
no staleness checks: judging staleness is the prober's job.
"""

from loguru import logger

from timerlink.link.session import LinkSession
from timerlink.link.transport import ReplyHandler
from timerlink.link.types import Channel
from timerlink.protocol.messages import PingMessage, PongMessage


class PongResponder:
    """Answers pings from the primary.

    Attributes:
        responses: Number of pongs sent
        muted: When set, pings are dropped unanswered (a hung companion)
    """

    def __init__(self, link: LinkSession) -> None:
        self._link = link
        self.responses = 0
        self.muted = False

    def handle_ping(self, message: PingMessage, channel: Channel, reply: ReplyHandler | None = None) -> None:
        if self.muted:
            logger.debug(f"[{self._link.name}] Muted; not answering ping {message.ping_id}")
            return
        pong = PongMessage(ping_id=message.ping_id).to_payload()
        self.responses += 1
        logger.debug(f"[{self._link.name}] Pong {message.ping_id} via {channel}")
        if reply is not None:
            reply(pong)
        elif channel is Channel.DIRECT:
            self._link.send_or_fallback(pong)
        else:
            self._link.send_durable(pong)
