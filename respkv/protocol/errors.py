"""Protocol error types."""


class ProtocolError(Exception):
    """Base class for request handling failures."""


class MalformedFrame(ProtocolError):
    """The bytes received do not form an array-of-bulk-strings frame."""


class IncompleteFrame(MalformedFrame):
    """The frame ended before all declared elements were read."""


class InvalidCommand(ProtocolError):
    """Unknown verb, or too few arguments for a known verb."""
