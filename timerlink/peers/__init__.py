"""Peer assemblies: one link session plus its components per device."""

from timerlink.peers.companion import CompanionPeer
from timerlink.peers.primary import PrimaryPeer

__all__ = ["CompanionPeer", "PrimaryPeer"]
