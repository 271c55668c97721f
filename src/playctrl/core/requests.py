"""Outbound request types.

Each queued request carries a tag naming how its response is applied,
instead of a closure. The client owns one apply method per tag.
"""

from __future__ import annotations

from concurrent.futures import Future, InvalidStateError
from contextlib import suppress
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any

from playctrl.api.protocol import Command, encode_frame


class RequestKind(Enum):
    """How a response is applied to the cached state."""

    RESET = auto()
    RESUME = auto()
    PAUSE = auto()
    PREVIOUS = auto()
    NEXT = auto()
    GET_VOLUME = auto()
    SET_VOLUME = auto()
    GET_QUEUE_INDEX = auto()
    SET_QUEUE_INDEX = auto()
    WAIT_QUEUE_INDEX = auto()
    GET_QUEUE = auto()
    SET_QUEUE = auto()
    REMOVE_FROM_QUEUE = auto()
    GET_SUB_QUEUE = auto()
    SET_SUB_QUEUE = auto()
    ADD_TO_SUB_QUEUE = auto()
    REMOVE_FROM_SUB_QUEUE = auto()
    SKIP_SUB_QUEUE_SONGS = auto()
    GET_REPEAT = auto()
    SET_REPEAT = auto()
    GET_SHUFFLE = auto()
    SET_SHUFFLE = auto()
    GET_SONG = auto()
    GET_POSITION = auto()
    SET_POSITION = auto()
    GET_STATUS = auto()
    GET_QUEUE_SIZE = auto()
    GET_SUB_QUEUE_SIZE = auto()

    @property
    def command(self) -> Command:
        """Return the opcode sent for this kind."""
        return _KIND_COMMANDS[self]


_KIND_COMMANDS: dict[RequestKind, Command] = {
    kind: Command[kind.name] for kind in RequestKind if kind is not RequestKind.WAIT_QUEUE_INDEX
}
_KIND_COMMANDS[RequestKind.WAIT_QUEUE_INDEX] = Command.GET_QUEUE_INDEX

# State polls issued once per refresh interval, in this order
REFRESH_BATTERY: tuple[RequestKind, ...] = (
    RequestKind.GET_POSITION,
    RequestKind.GET_QUEUE_SIZE,
    RequestKind.GET_REPEAT,
    RequestKind.GET_SHUFFLE,
    RequestKind.GET_SONG,
    RequestKind.GET_QUEUE_INDEX,
    RequestKind.GET_SUB_QUEUE_SIZE,
    RequestKind.GET_STATUS,
    RequestKind.GET_VOLUME,
)


@dataclass(frozen=True)
class PendingRequest:
    """An encoded request waiting in the outbound queue.

    Attributes:
        kind: How the response is applied.
        frame: Encoded request frame (without terminator).
        expected: Value the request asked for, checked against the echo.
        completion: Future resolved once the response is applied, or
            failed if the request is discarded. None for fire-and-forget.
    """

    kind: RequestKind
    frame: str
    expected: Any = None
    completion: Future[Any] | None = None

    @classmethod
    def build(
        cls,
        kind: RequestKind,
        *args: str,
        expected: Any = None,
        completion: Future[Any] | None = None,
    ) -> PendingRequest:
        """Encode a request of the given kind.

        Raises:
            FrameError: If an argument cannot be encoded.
        """
        return cls(kind, encode_frame(kind.command, *args), expected, completion)

    def resolve(self, value: Any = None) -> None:
        """Complete the waiter, if any."""
        if self.completion is None:
            return
        # A concurrent discard may have failed it already
        with suppress(InvalidStateError):
            self.completion.set_result(value)

    def fail(self, error: BaseException) -> None:
        """Fail the waiter, if any."""
        if self.completion is None:
            return
        with suppress(InvalidStateError):
            self.completion.set_exception(error)
