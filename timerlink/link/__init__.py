"""Link layer: status, transport interface and the link session."""

from timerlink.link.errors import PeerUnreachableError, TransportError
from timerlink.link.memory import InMemoryLink, InMemoryTransport
from timerlink.link.session import LinkSession
from timerlink.link.transport import Payload, Transport
from timerlink.link.types import ActivationState, Channel, LinkStatus

__all__ = [
    "ActivationState",
    "Channel",
    "InMemoryLink",
    "InMemoryTransport",
    "LinkSession",
    "LinkStatus",
    "Payload",
    "PeerUnreachableError",
    "Transport",
    "TransportError",
]
