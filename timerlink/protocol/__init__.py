from timerlink.protocol.errors import MessageDecodeError
from timerlink.protocol.messages import (
    CommandMessage,
    HeartRateMessage,
    PingMessage,
    PongMessage,
    TimerMode,
    TimerPhase,
    TimerWireMessage,
    WireMessage,
    decode_message,
    parse_message,
)

__all__ = [
    "CommandMessage",
    "HeartRateMessage",
    "MessageDecodeError",
    "PingMessage",
    "PongMessage",
    "TimerMode",
    "TimerPhase",
    "TimerWireMessage",
    "WireMessage",
    "decode_message",
    "parse_message",
]
