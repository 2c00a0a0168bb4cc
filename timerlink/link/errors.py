"""Error types for the link layer.

These are handed to error callbacks by transports. They are never raised out
of LinkSession send calls: every send failure degrades to a no-op or a
durable fallback.
"""


class TransportError(RuntimeError):
    """Raised by a transport when a direct message cannot be delivered."""


class PeerUnreachableError(TransportError):
    """Direct message attempted while the peer is not reachable."""
