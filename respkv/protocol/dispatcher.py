"""
Command Dispatcher

Maps a decoded argument list to one of the supported operations and
produces the Reply. The dispatcher keeps no state of its own: its only
side effects are on the store it is given.

Commands:
    PING                      -> +PONG
    ECHO <message>            -> bulk <message>
    SET <key> <value> [PX ms] -> +OK
    GET <key>                 -> bulk <value> | null
"""

from typing import TYPE_CHECKING, Optional, Sequence

from .commands import Command, CommandType, Reply
from .errors import InvalidCommand

if TYPE_CHECKING:
    from ..cache.store import KVStore

# Largest PX accepted; anything bigger is treated as a malformed option
MAX_PX_MILLISECONDS = 2 ** 64 - 1


def resolve_command(args: Sequence[str]) -> Command:
    """
    Resolve the verb of a decoded argument list.

    Args:
        args: Decoded arguments, verb first

    Returns:
        Command with type=UNKNOWN when the verb is not supported

    Examples:
        >>> resolve_command(["get", "a"]).type == CommandType.GET
        True
    """
    args = list(args)
    if not args:
        return Command(type=CommandType.UNKNOWN, args=args)

    try:
        command_type = CommandType[args[0].upper()]
    except KeyError:
        command_type = CommandType.UNKNOWN
    return Command(type=command_type, args=args)


def parse_px(args: Sequence[str]) -> Optional[int]:
    """
    Extract the PX option of a SET command.

    Returns the expiry in milliseconds, or None when the option is
    absent or malformed (missing value, not a non-negative integer,
    too large). A malformed option means "no expiry", never an error.
    """
    if len(args) < 5 or args[3].upper() != "PX":
        return None

    raw = args[4]
    if not (raw.isascii() and raw.isdigit()):
        return None

    milliseconds = int(raw)
    if milliseconds > MAX_PX_MILLISECONDS:
        return None
    return milliseconds


def dispatch(args: Sequence[str], store: "KVStore", now: float) -> Optional[Reply]:
    """
    Execute one command against the store.

    Args:
        args: Decoded arguments, verb first (verb is case-insensitive)
        store: The store to read or mutate
        now: Current monotonic instant in seconds

    Returns:
        The Reply to send, or None for an empty command (no-op)

    Raises:
        InvalidCommand: Unknown verb or too few arguments. The store is
            not touched in that case.
    """
    if not args:
        return None

    command = resolve_command(args)
    if command.type == CommandType.UNKNOWN:
        raise InvalidCommand(f"unknown command '{command.verb}'")
    if not command.is_valid:
        raise InvalidCommand(
            f"wrong number of arguments for '{command.verb.lower()}' command"
        )

    if command.type == CommandType.PING:
        return Reply.pong()

    if command.type == CommandType.ECHO:
        return Reply.bulk(command.args[1])

    if command.type == CommandType.SET:
        key, value = command.args[1], command.args[2]
        milliseconds = parse_px(command.args)
        if milliseconds is None:
            expires_at = None
        else:
            expires_at = now + milliseconds / 1000
        store.put(key, value, expires_at)
        return Reply.ok()

    # GET
    value = store.get_and_expire(command.args[1], now)
    return Reply.bulk(value) if value is not None else Reply.null()
