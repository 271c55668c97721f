"""Test fixtures for playctrl tests."""

from __future__ import annotations

import os
from collections.abc import Callable, Generator
from typing import Any

import pytest
from PySide6.QtCore import QCoreApplication

from playctrl.api.protocol import DELIMITER, PROTOCOL_VERSION, Command, decode_frame
from playctrl.api.transport import Transport, TransportError
from playctrl.core.client import PlaybackClient

# qapp builds a QApplication; run it without a display
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")


def _id_list(songs: list[int]) -> str:
    # An empty reply means "no response", so an empty list is a lone delimiter
    return DELIMITER.join(str(song) for song in songs) if songs else DELIMITER


class FakeService:
    """In-memory playback service answering protocol frames.

    Every received frame is recorded in ``frames``. Replies can be
    overridden per command with ``script()``; an empty scripted reply
    behaves like a timed-out read.
    """

    def __init__(self) -> None:
        self.version = PROTOCOL_VERSION
        self.frames: list[str] = []
        self.refuse_connect = False
        self.fail_writes = False
        self._scripted: dict[Command, list[str]] = {}

        self.song = 7
        self.status = 3
        self.volume = 100.0
        self.position = 0.0
        self.repeat = 0
        self.shuffle = 0
        self.queue_index = 0
        self.queue: list[int] = [5, 9, 12]
        self.sub_queue: list[int] = []

    def script(self, command: Command, *replies: str) -> None:
        """Queue one-shot replies for a command."""
        self._scripted.setdefault(command, []).extend(replies)

    @property
    def commands(self) -> list[Command]:
        """Return the opcode of every received frame."""
        return [decode_frame(frame)[0] for frame in self.frames]

    def handle(self, frame: str) -> str:  # noqa: PLR0911, PLR0912
        """Answer one request frame."""
        self.frames.append(frame)
        command, args = decode_frame(frame)
        if self._scripted.get(command):
            return self._scripted[command].pop(0)

        if command == Command.VERSION:
            return str(self.version)
        if command == Command.RESET:
            return "0"
        if command in (Command.RESUME, Command.PAUSE):
            self.status = 1 if command == Command.RESUME else 2
            return str(self.song)
        if command in (Command.NEXT, Command.PREVIOUS):
            self.song += 1 if command == Command.NEXT else -1
            return str(self.song)
        if command == Command.SET_VOLUME:
            self.volume = float(args[0])
        if command in (Command.GET_VOLUME, Command.SET_VOLUME):
            return f"{self.volume:f}"
        if command == Command.SET_POSITION:
            self.position = float(args[0])
        if command in (Command.GET_POSITION, Command.SET_POSITION):
            return f"{self.position:f}"
        if command == Command.SET_QUEUE_INDEX:
            self.queue_index = int(args[0])
        if command in (Command.GET_QUEUE_INDEX, Command.SET_QUEUE_INDEX):
            return str(self.queue_index)
        if command == Command.GET_QUEUE:
            return _id_list(self.queue[int(args[0]) : int(args[1])])
        if command == Command.GET_SUB_QUEUE:
            return _id_list(self.sub_queue[int(args[0]) : int(args[1])])
        if command == Command.SET_QUEUE:
            self.queue = [int(arg) for arg in args]
            return str(len(self.queue))
        if command == Command.SET_SUB_QUEUE:
            self.sub_queue = [int(arg) for arg in args]
            return str(len(self.sub_queue))
        if command == Command.REMOVE_FROM_QUEUE:
            del self.queue[int(args[0])]
            return args[0]
        if command == Command.ADD_TO_SUB_QUEUE:
            self.sub_queue.append(int(args[0]))
            return args[0]
        if command == Command.REMOVE_FROM_SUB_QUEUE:
            del self.sub_queue[int(args[0])]
            return args[0]
        if command == Command.SKIP_SUB_QUEUE_SONGS:
            del self.sub_queue[: int(args[0])]
            return args[0]
        if command == Command.SET_REPEAT:
            self.repeat = int(args[0])
        if command in (Command.GET_REPEAT, Command.SET_REPEAT):
            return str(self.repeat)
        if command == Command.SET_SHUFFLE:
            self.shuffle = int(args[0])
            self.queue.reverse()
        if command in (Command.GET_SHUFFLE, Command.SET_SHUFFLE):
            return str(self.shuffle)
        if command == Command.GET_SONG:
            return str(self.song)
        if command == Command.GET_STATUS:
            return str(self.status)
        if command == Command.GET_QUEUE_SIZE:
            return str(len(self.queue))
        if command == Command.GET_SUB_QUEUE_SIZE:
            return str(len(self.sub_queue))
        return ""


class FakeTransport(Transport):
    """Transport delivering frames straight to a FakeService."""

    def __init__(self, service: FakeService) -> None:
        self._service = service
        self._open = False
        self._reply: str | None = None
        self.close_count = 0

    @property
    def is_open(self) -> bool:
        return self._open

    def open(self) -> None:
        if self._service.refuse_connect:
            raise TransportError("Connection refused")
        self._open = True

    def close(self) -> None:
        self.close_count += 1
        self._open = False

    def write(self, frame: str) -> bool:
        if not self._open or self._service.fail_writes:
            return False
        self._reply = self._service.handle(frame)
        return True

    def read(self) -> str:
        reply, self._reply = self._reply, None
        return reply or ""


@pytest.fixture
def service() -> FakeService:
    """Return a fresh in-memory playback service."""
    return FakeService()


@pytest.fixture
def transports() -> list[FakeTransport]:
    """Return the list every transport created by make_client is appended to."""
    return []


@pytest.fixture
def make_client(
    service: FakeService,
    transports: list[FakeTransport],
    qapp: QCoreApplication,
) -> Generator[Callable[..., PlaybackClient], None, None]:
    """Return a factory for clients wired to the fake service.

    Clients are created with a long refresh interval so tests control
    exactly which requests are queued, and are closed on teardown.
    """
    clients: list[PlaybackClient] = []

    def _transport() -> FakeTransport:
        transports.append(FakeTransport(service))
        return transports[-1]

    def _make(**kwargs: Any) -> PlaybackClient:
        kwargs.setdefault("refresh_interval", 3600.0)
        client = PlaybackClient(transport_factory=_transport, **kwargs)
        clients.append(client)
        return client

    yield _make

    for client in clients:
        client.close()


def _drain(client: PlaybackClient, max_iterations: int = 50) -> None:
    for _ in range(max_iterations):
        if client.pending_count == 0 or client.has_error:
            return
        client.process_once()


@pytest.fixture
def drain() -> Callable[[PlaybackClient], None]:
    """Return a helper running loop iterations until the queue is empty or in error."""
    return _drain
