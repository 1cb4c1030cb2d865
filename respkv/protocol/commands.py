"""
Protocol Command and Reply Definitions

This module defines the data structures for decoded commands and the
replies produced for them.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import List, Optional


class CommandType(Enum):
    """Enumeration of supported command types."""
    PING = auto()
    ECHO = auto()
    SET = auto()
    GET = auto()
    UNKNOWN = auto()


# Minimum number of arguments, verb included
MIN_ARITY = {
    CommandType.PING: 1,
    CommandType.ECHO: 2,
    CommandType.SET: 3,
    CommandType.GET: 2,
}


class ReplyKind(Enum):
    """Enumeration of reply shapes."""
    STATUS = "status"
    BULK = "bulk"
    NULL = "null"
    ERROR = "error"


@dataclass
class Command:
    """
    Represents a decoded request.

    Attributes:
        type: The resolved command type (UNKNOWN for unrecognized verbs)
        args: All arguments as received, verb first
    """
    type: CommandType
    args: List[str] = field(default_factory=list)

    @property
    def verb(self) -> str:
        """The first argument, as sent by the client."""
        return self.args[0] if self.args else ""

    @property
    def is_valid(self) -> bool:
        """Check if the verb is known and enough arguments were sent."""
        if self.type == CommandType.UNKNOWN:
            return False
        return len(self.args) >= MIN_ARITY[self.type]


@dataclass
class Reply:
    """
    Represents a protocol reply.

    Attributes:
        kind: STATUS, BULK, NULL or ERROR
        data: Status text, bulk payload or error message (None for NULL)
    """
    kind: ReplyKind
    data: Optional[str] = None

    @classmethod
    def status(cls, text: str) -> "Reply":
        """Create a simple status reply."""
        return cls(kind=ReplyKind.STATUS, data=text)

    @classmethod
    def bulk(cls, payload: str) -> "Reply":
        """Create a bulk string reply."""
        return cls(kind=ReplyKind.BULK, data=payload)

    @classmethod
    def null(cls) -> "Reply":
        """Create a null bulk reply."""
        return cls(kind=ReplyKind.NULL)

    @classmethod
    def error(cls, message: str) -> "Reply":
        """Create an error reply."""
        return cls(kind=ReplyKind.ERROR, data=message)

    @classmethod
    def pong(cls) -> "Reply":
        """Create the PING reply."""
        return cls.status("PONG")

    @classmethod
    def ok(cls) -> "Reply":
        """Create the SET reply."""
        return cls.status("OK")
