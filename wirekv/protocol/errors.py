"""Exceptions raised while reading or interpreting request frames."""


class ProtocolError(Exception):
    pass


class InvalidCommand(ProtocolError, ValueError):
    """The command tag is not one of SET, GET or DEL."""


class ConnectionClosed(ProtocolError, ConnectionError):
    """The peer closed the stream."""


class Truncated(ConnectionClosed):
    """The stream ended before a declared number of bytes arrived."""

    def __init__(self, expected: int, partial: bytes = b""):
        self.expected = expected
        self.partial = partial
        super().__init__(
            f"stream closed after {len(partial)} of {expected} expected bytes"
        )


class FieldTooLarge(ProtocolError):
    """A declared key or value length is above the configured bound."""

    def __init__(self, field: str, size: int, limit: int):
        self.field = field
        self.size = size
        self.limit = limit
        super().__init__(f"{field} size {size} exceeds limit of {limit} bytes")
