"""Timer-Link: cross-device timer state sync, liveness probing and heart-rate relay."""

__version__ = "0.1.0"
