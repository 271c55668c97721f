"""Playback service protocol encoding and parsing utilities.

The service speaks a small text protocol over a persistent stream socket:
- A request is an integer opcode, optionally followed by arguments,
  each argument prefixed by a single reserved delimiter byte
- A response is a single command-specific payload (an integer, a float,
  or a delimiter-separated list of integers)
- Each frame is terminated by a newline on the wire (added by the transport)

The codec never interprets responses; each request handler knows the shape
it expects and uses the parse helpers below.
"""

from enum import IntEnum

# Version both sides must agree on (checked once at connect time)
PROTOCOL_VERSION = 1

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 3333

# Reserved field separator, never allowed inside an argument
DELIMITER = "\x1f"
# Frame terminator on the wire (owned by the transport)
TERMINATOR = "\n"


class Command(IntEnum):
    """Request opcodes, in wire order."""

    VERSION = 0
    RESET = 1
    RESUME = 2
    PAUSE = 3
    PREVIOUS = 4
    NEXT = 5
    GET_VOLUME = 6
    SET_VOLUME = 7
    GET_QUEUE_INDEX = 8
    SET_QUEUE_INDEX = 9
    GET_QUEUE = 10
    SET_QUEUE = 11
    REMOVE_FROM_QUEUE = 12
    GET_SUB_QUEUE = 13
    SET_SUB_QUEUE = 14
    ADD_TO_SUB_QUEUE = 15
    REMOVE_FROM_SUB_QUEUE = 16
    SKIP_SUB_QUEUE_SONGS = 17
    GET_REPEAT = 18
    SET_REPEAT = 19
    GET_SHUFFLE = 20
    SET_SHUFFLE = 21
    GET_SONG = 22
    GET_POSITION = 23
    SET_POSITION = 24
    GET_STATUS = 25
    GET_QUEUE_SIZE = 26
    GET_SUB_QUEUE_SIZE = 27


class ProtocolError(Exception):
    """Malformed frame or response payload."""


class FrameError(ProtocolError):
    """Argument cannot be encoded into a frame."""


def encode_frame(command: Command, *args: str) -> str:
    """Encode a command and its arguments into a single frame.

    Args:
        command: The request opcode.
        *args: String arguments, in order.

    Returns:
        Frame string (without terminator).

    Raises:
        FrameError: If an argument contains the delimiter or terminator.
    """
    for arg in args:
        if DELIMITER in arg or TERMINATOR in arg:
            raise FrameError(f"Argument {arg!r} contains a reserved character")
    return DELIMITER.join([str(int(command)), *args])


def decode_frame(frame: str) -> tuple[Command, list[str]]:
    """Split a request frame back into its opcode and arguments.

    Args:
        frame: Frame string (without terminator).

    Returns:
        Tuple of (command, arguments).

    Raises:
        ProtocolError: If the opcode is missing or unknown.
    """
    head, *args = frame.split(DELIMITER)
    try:
        command = Command(int(head))
    except ValueError as e:
        raise ProtocolError(f"Invalid opcode in frame {frame!r}") from e
    return command, args


def format_int(value: int) -> str:
    """Format an integer argument."""
    return str(int(value))


def format_float(value: float) -> str:
    """Format a fractional argument in fixed six-decimal notation."""
    return f"{float(value):f}"


def parse_int(payload: str) -> int:
    """Parse an integer response payload.

    Raises:
        ProtocolError: If the payload is not a decimal integer.
    """
    try:
        return int(payload.strip())
    except ValueError as e:
        raise ProtocolError(f"Expected integer, got {payload!r}") from e


def parse_float(payload: str) -> float:
    """Parse a fractional response payload.

    Raises:
        ProtocolError: If the payload is not a decimal number.
    """
    try:
        return float(payload.strip())
    except ValueError as e:
        raise ProtocolError(f"Expected number, got {payload!r}") from e


def parse_id_list(payload: str) -> list[int]:
    """Parse a delimiter-separated list of song IDs.

    An empty payload yields an empty list. Empty tokens (leading, trailing
    or doubled delimiters) are skipped.

    Args:
        payload: Raw response payload.

    Returns:
        List of song IDs, in order.

    Raises:
        ProtocolError: If a token is not a decimal integer.
    """
    return [parse_int(token) for token in payload.split(DELIMITER) if token.strip()]
