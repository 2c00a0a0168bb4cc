"""Timer state synchronization: primary broadcaster, companion receiver."""

from timerlink.sync.broadcaster import StateBroadcaster
from timerlink.sync.receiver import LocalSession, RemoteTimerState, StateReceiver

__all__ = [
    "LocalSession",
    "RemoteTimerState",
    "StateBroadcaster",
    "StateReceiver",
]
