"""
Connection Session

A Session turns the bytes received on one connection into the bytes to
send back. It owns the connection's FrameDecoder and runs every decoded
command through the store handle shared by all connections. The server
substrates (asyncio, threads) only move bytes in and out of it.
"""

import logging
from typing import Optional

from ..cache.access import StoreHandle
from ..config.settings import settings
from ..protocol.commands import Reply
from ..protocol.errors import InvalidCommand, MalformedFrame
from ..protocol.parser import FrameDecoder, encode_reply

logger = logging.getLogger(__name__)


class Session:
    """
    Request processing state for a single client connection.

    Error policy:
        - MalformedFrame: logged, offending bytes dropped, no reply; the
          connection stays open and later frames are still answered
        - InvalidCommand: logged; no reply, or "-ERR ..." when
          strict_errors is enabled. The store is not modified.

    Attributes:
        handle: Exclusive-access handle to the shared store
        peer: Client address, used in log messages
        strict_errors: Reply with an error to invalid commands
    """

    def __init__(self, handle: StoreHandle, peer=None, strict_errors: bool = None):
        self.handle = handle
        self.peer = peer
        self.strict_errors = (
            strict_errors if strict_errors is not None else settings.STRICT_ERRORS
        )
        self.decoder = FrameDecoder()
        self.requests = 0

    def process(self, data: bytes) -> bytes:
        """
        Handle one chunk of received bytes.

        Args:
            data: Bytes returned by a single socket read

        Returns:
            Encoded replies for every complete command in the chunk,
            concatenated in request order (may be empty)
        """
        self.decoder.feed(data)
        out = []

        try:
            for args in self.decoder.frames():
                reply = self._execute(args)
                if reply is not None:
                    out.append(encode_reply(reply))
        except MalformedFrame as exc:
            logger.warning(f"Malformed frame from {self.peer}: {exc}")

        return b"".join(out)

    def _execute(self, args) -> Optional[Reply]:
        """Dispatch one decoded command, applying the error policy."""
        self.requests += 1
        try:
            return self.handle.execute(args)
        except InvalidCommand as exc:
            logger.warning(f"Invalid command from {self.peer}: {exc}")
            if self.strict_errors:
                return Reply.error(str(exc))
            return None
