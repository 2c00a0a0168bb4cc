"""Error types for wire message decoding."""


class MessageDecodeError(ValueError):
    """Raised when an incoming payload is not a recognizable wire message.

    Only raised by the strict decode_message(); receivers use parse_message(),
    which logs and drops instead.
    """
