"""Protocol module for RESP-KV."""

from .commands import Command, CommandType, Reply, ReplyKind
from .dispatcher import dispatch, resolve_command
from .errors import IncompleteFrame, InvalidCommand, MalformedFrame, ProtocolError
from .parser import FrameDecoder, decode, encode_command, encode_reply, parse_frame

__all__ = [
    "Command",
    "CommandType",
    "Reply",
    "ReplyKind",
    "dispatch",
    "resolve_command",
    "ProtocolError",
    "MalformedFrame",
    "IncompleteFrame",
    "InvalidCommand",
    "FrameDecoder",
    "decode",
    "parse_frame",
    "encode_reply",
    "encode_command",
]
