"""Link status types.

LinkStatus is owned by the LinkSession and replaced wholesale on every
transport event; every other component only reads it.
"""

from dataclasses import dataclass, replace
from enum import StrEnum


class ActivationState(StrEnum):
    """Activation state of the platform transport."""

    UNACTIVATED = "unactivated"
    ACTIVATING = "activating"
    ACTIVATED = "activated"


class Channel(StrEnum):
    """Channel an incoming payload arrived on."""

    DIRECT = "direct"
    QUEUE = "queue"
    CONTEXT = "context"


@dataclass(frozen=True)
class LinkStatus:
    """Snapshot of the link to the peer.

    Attributes:
        supported: Transport exists on this device
        paired: A companion device is paired
        companion_app_installed: The peer app is installed on the companion
        reachable: Peer can receive direct messages right now
        activation: Activation state of the transport
    """

    supported: bool = False
    paired: bool = False
    companion_app_installed: bool = False
    reachable: bool = False
    activation: ActivationState = ActivationState.UNACTIVATED

    def __post_init__(self) -> None:
        # reachable implies activated
        if self.reachable and self.activation is not ActivationState.ACTIVATED:
            object.__setattr__(self, "reachable", False)

    @property
    def is_activated(self) -> bool:
        return self.activation is ActivationState.ACTIVATED

    @property
    def is_ready_for_companion(self) -> bool:
        """True when the companion is paired and has the app installed."""
        return self.supported and self.paired and self.companion_app_installed

    def with_changes(self, **changes: object) -> "LinkStatus":
        return replace(self, **changes)
