"""
Protocol Parser Module

This module handles decoding of request frames and encoding of replies.

Request Format (RESP array of bulk strings):
    *<N>\\r\\n
    $<L>\\r\\n<argument>\\r\\n      (repeated N times)

Reply Format:
    status  -> +<text>\\r\\n
    bulk    -> $<byte length>\\r\\n<payload>\\r\\n
    null    -> $-1\\r\\n
    error   -> -ERR <message>\\r\\n

Element boundaries are taken from the \\r\\n terminators. A bulk header
only has to start with "$"; its declared length is not used to delimit
the content, so an argument cannot contain \\r\\n.
"""

from typing import Iterator, List, Optional, Sequence, Tuple

from ..config.settings import settings
from .commands import Reply, ReplyKind
from .errors import IncompleteFrame, MalformedFrame

CRLF = b"\r\n"


def _read_line(buffer: bytes, start: int) -> Optional[Tuple[bytes, int]]:
    """Return the line at start and the offset after its terminator."""
    end = buffer.find(CRLF, start)
    if end == -1:
        return None
    return buffer[start:end], end + len(CRLF)


def _parse_count(line: bytes) -> int:
    """Parse a '*N' header line into its non-negative element count."""
    if not line.startswith(b"*"):
        raise MalformedFrame(f"expected '*', got {line[:16]!r}")

    digits = line[1:]
    if not digits.isdigit():
        raise MalformedFrame(f"invalid element count in {line[:16]!r}")
    return int(digits)


def parse_frame(buffer: bytes, start: int = 0) -> Optional[Tuple[List[str], int]]:
    """
    Parse one frame starting at a given offset.

    Args:
        buffer: Raw bytes received so far
        start: Offset of the first byte of the frame

    Returns:
        (arguments, offset just past the frame), or None if the buffer
        ends before the frame is complete.

    Raises:
        MalformedFrame: The bytes cannot be the start of a valid frame

    Examples:
        >>> parse_frame(b"*1\\r\\n$4\\r\\nPING\\r\\n")
        (['PING'], 14)
    """
    line = _read_line(buffer, start)
    if line is None:
        # Not even a complete header yet, but a wrong first byte is final
        if buffer[start:start + 1] not in (b"", b"*"):
            raise MalformedFrame(f"expected '*', got {buffer[start:start + 16]!r}")
        return None

    header, pos = line
    count = _parse_count(header)

    args = []
    for _ in range(count):
        line = _read_line(buffer, pos)
        if line is None:
            return None
        length_line, pos = line
        if not length_line.startswith(b"$"):
            raise MalformedFrame(f"expected '$', got {length_line[:16]!r}")

        line = _read_line(buffer, pos)
        if line is None:
            return None
        content, pos = line
        args.append(content.decode("utf-8", errors="replace"))

    return args, pos


def decode(data: bytes) -> List[str]:
    """
    Decode a single frame from a chunk of bytes.

    The chunk is read as its \\r\\n-separated fragments, the last one
    included: b"*1\\r\\n$4\\r\\nPING" decodes like its terminated form and
    b"*2\\r\\n$4\\r\\nECHO\\r\\n$3\\r\\n" ends with an empty argument. Bytes
    after the first frame are ignored.

    Args:
        data: Raw request bytes

    Returns:
        The argument list, verb first ([] for "*0")

    Raises:
        MalformedFrame: Framing error
        IncompleteFrame: The chunk ran out of lines before all elements
    """
    result = parse_frame(data + CRLF)
    if result is None:
        raise IncompleteFrame("frame ended before all elements were read")
    return result[0]


class FrameDecoder:
    """
    Streaming frame decoder for one connection.

    TCP delivers a byte stream, so one read may carry several frames or
    only part of one. Bytes are buffered with feed() and complete frames
    are drained with frames(); an unfinished tail waits for the next read.

    A tail that never completes (e.g. "*3" followed by only two elements)
    must not swallow the next command. When the held-over tail turns out
    to be malformed once new bytes arrive, only the held-over bytes are
    dropped and parsing restarts at the beginning of the latest read.

    Usage:
        decoder = FrameDecoder()
        decoder.feed(data)
        for args in decoder.frames():
            ...
    """

    def __init__(self, max_buffer_size: int = None):
        """
        Initialize the decoder.

        Args:
            max_buffer_size: Limit for buffered bytes of an unfinished
                frame (default from settings.MAX_BUFFER_SIZE)
        """
        self.max_buffer_size = (
            max_buffer_size if max_buffer_size is not None else settings.MAX_BUFFER_SIZE
        )
        self._buffer = b""
        # Offset in _buffer where the most recent read begins
        self._latest = 0

    def feed(self, data: bytes) -> None:
        """Append received bytes to the buffer."""
        self._latest = len(self._buffer)
        self._buffer += data

    def frames(self) -> Iterator[List[str]]:
        """
        Yield every complete frame in the buffer, in arrival order.

        Raises:
            MalformedFrame: The buffer holds bytes that cannot be a frame,
                or an unfinished frame exceeded max_buffer_size. The
                offending bytes are discarded before raising. If only a
                held-over tail was bad, the frames of the latest read are
                yielded first and the error is raised afterwards.
        """
        dropped = None

        while self._buffer:
            try:
                result = parse_frame(self._buffer)
            except MalformedFrame as exc:
                if 0 < self._latest < len(self._buffer):
                    self._buffer = self._buffer[self._latest:]
                    self._latest = 0
                    dropped = exc
                    continue
                self.reset()
                raise

            if result is None:
                if len(self._buffer) > self.max_buffer_size:
                    size = len(self._buffer)
                    self.reset()
                    raise MalformedFrame(f"unfinished frame exceeds {size} bytes")
                break

            args, end = result
            self._buffer = self._buffer[end:]
            self._latest = max(self._latest - end, 0)
            yield args

        if dropped is not None:
            raise dropped

    @property
    def pending(self) -> int:
        """Number of buffered bytes not yet decoded."""
        return len(self._buffer)

    def reset(self) -> None:
        """Drop any buffered bytes."""
        self._buffer = b""
        self._latest = 0


def encode_reply(reply: Reply) -> bytes:
    """
    Encode a Reply into wire bytes.

    Examples:
        >>> encode_reply(Reply.pong())
        b'+PONG\\r\\n'
        >>> encode_reply(Reply.bulk("foo"))
        b'$3\\r\\nfoo\\r\\n'
        >>> encode_reply(Reply.null())
        b'$-1\\r\\n'
    """
    if reply.kind == ReplyKind.STATUS:
        return b"+" + reply.data.encode() + CRLF
    if reply.kind == ReplyKind.BULK:
        payload = reply.data.encode()
        return b"$" + str(len(payload)).encode() + CRLF + payload + CRLF
    if reply.kind == ReplyKind.ERROR:
        return b"-ERR " + reply.data.encode() + CRLF
    return b"$-1" + CRLF


def encode_command(args: Sequence[str]) -> bytes:
    """
    Encode an argument list as a request frame.

    Examples:
        >>> encode_command(["ECHO", "foo"])
        b'*2\\r\\n$4\\r\\nECHO\\r\\n$3\\r\\nfoo\\r\\n'
    """
    parts = [b"*" + str(len(args)).encode() + CRLF]
    for arg in args:
        payload = str(arg).encode()
        parts.append(b"$" + str(len(payload)).encode() + CRLF + payload + CRLF)
    return b"".join(parts)
