"""Ping/pong liveness checking."""

from timerlink.liveness.prober import (
    DEFAULT_PING_TIMEOUT_SECONDS,
    LivenessProber,
    LivenessReport,
    PingProbe,
    ProbeFailure,
    ProbeState,
)
from timerlink.liveness.responder import PongResponder

__all__ = [
    "DEFAULT_PING_TIMEOUT_SECONDS",
    "LivenessProber",
    "LivenessReport",
    "PingProbe",
    "PongResponder",
    "ProbeFailure",
    "ProbeState",
]
