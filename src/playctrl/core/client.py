"""Stateful client for the playback service.

Consumer threads call the request methods below; each one encodes a
frame and appends it to a single outbound FIFO. One background thread
(the processing loop) owns the socket: it drains the FIFO strictly in
order, one request/response at a time, applies each response to the
PlaybackCache, and enqueues a battery of state polls every refresh
interval so reads stay cheap and never touch the network.

Failure model:
- Any transport failure (failed write, empty/timed-out read, malformed
  response) latches the error flag and discards every queued request.
- While the flag is set nothing is sent and new requests are dropped.
- Only ``reconnect()`` clears the flag; the client never retries by itself.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import deque
from collections.abc import Callable, Sequence
from concurrent.futures import Future
from enum import IntEnum
from typing import Any, TypeVar

from PySide6.QtCore import QObject, Signal

from playctrl.api.protocol import (
    DEFAULT_HOST,
    DEFAULT_PORT,
    PROTOCOL_VERSION,
    Command,
    ProtocolError,
    encode_frame,
    format_float,
    format_int,
    parse_float,
    parse_id_list,
    parse_int,
)
from playctrl.api.transport import DEFAULT_TIMEOUT, SocketTransport, Transport, TransportError
from playctrl.core.requests import REFRESH_BATTERY, PendingRequest, RequestKind
from playctrl.core.state import PlaybackCache
from playctrl.models.endpoint import ServiceEndpoint
from playctrl.models.playback import PlaybackStatus, RepeatMode, ShuffleMode

logger = logging.getLogger(__name__)

REFRESH_INTERVAL = 0.1  # seconds between state poll batteries
IDLE_SLEEP = 0.005  # seconds, when there was nothing to do
ERROR_SLEEP = 0.05  # seconds, while the error flag is set

# Upper bounds for ranged queue fetches
QUEUE_FETCH_LIMIT = 25000
SUB_QUEUE_FETCH_LIMIT = 5000

_E = TypeVar("_E", bound=IntEnum)

TransportFactory = Callable[[], Transport]
_Handler = Callable[[PendingRequest, str], Any]


def _parse_enum(enum_type: type[_E], payload: str, fallback: _E) -> _E:
    """Parse an integer payload into a wire enum.

    Values outside the enum map to ``fallback``; only a non-integer
    payload is malformed.
    """
    value = parse_int(payload)
    try:
        return enum_type(value)
    except ValueError:
        logger.warning("Unknown %s value %d, using %s", enum_type.__name__, value, fallback.name)
        return fallback


def _parse_shuffle(payload: str) -> ShuffleMode:
    """Parse a shuffle payload (any non-zero value means on)."""
    return ShuffleMode.ON if parse_int(payload) != ShuffleMode.OFF else ShuffleMode.OFF


class PlaybackClient(QObject):
    """Thread-safe client for the playback service.

    Request methods never block on I/O; they return False if the request
    was dropped because the connection is in error. Cached values are read
    through ``state`` and may lag the service by one refresh interval.

    Example:
        client = PlaybackClient("127.0.0.1", 3333)
        client.connected.connect(lambda: print("Connected!"))
        client.start()
        client.set_volume(50)
        print(client.state.volume)
        client.close()
    """

    # Handshake succeeded
    connected = Signal()
    # Handshake failed (reason)
    connection_failed = Signal(str)
    # Transport failed mid-drain (reason)
    connection_lost = Signal(str)
    # Client closed
    disconnected = Signal()

    def __init__(  # noqa: PLR0913
        self,
        host: str = DEFAULT_HOST,
        port: int = DEFAULT_PORT,
        timeout: float = DEFAULT_TIMEOUT,
        refresh_interval: float = REFRESH_INTERVAL,
        transport_factory: TransportFactory | None = None,
        auto_connect: bool = True,
        parent: QObject | None = None,
    ) -> None:
        """Initialize the client and, by default, connect.

        Args:
            host: Service hostname or IP.
            port: Service TCP port.
            timeout: Per-operation socket timeout in seconds.
            refresh_interval: Seconds between state poll batteries.
            transport_factory: Creates a fresh transport on each (re)connect.
                Defaults to a SocketTransport for host/port.
            auto_connect: Connect and fetch both queues immediately. Pass
                False to wire up signals first, then call ``reconnect()``.
            parent: Optional parent QObject.
        """
        super().__init__(parent)
        self._host = host
        self._port = port
        self._timeout = timeout
        self._refresh_interval = refresh_interval
        self._transport_factory = transport_factory or (
            lambda: SocketTransport(host, port, timeout)
        )
        self._transport: Transport | None = None

        self._state = PlaybackCache()
        self._pending: deque[PendingRequest] = deque()
        self._queue_lock = threading.Lock()  # outbound FIFO only, never held for I/O
        self._io_lock = threading.Lock()  # transport ownership (loop vs reconnect/close)

        self._error = True
        self._exit = False
        self._thread: threading.Thread | None = None
        self._last_refresh = time.monotonic()

        self._handlers: dict[RequestKind, _Handler] = {
            RequestKind.RESET: self._apply_reset,
            RequestKind.RESUME: self._apply_song,
            RequestKind.PAUSE: self._apply_song,
            RequestKind.PREVIOUS: self._apply_song,
            RequestKind.NEXT: self._apply_song,
            RequestKind.GET_SONG: self._apply_song,
            RequestKind.GET_VOLUME: self._apply_volume,
            RequestKind.SET_VOLUME: self._apply_volume,
            RequestKind.GET_QUEUE_INDEX: self._apply_queue_index,
            RequestKind.SET_QUEUE_INDEX: self._apply_set_queue_index,
            RequestKind.WAIT_QUEUE_INDEX: self._apply_wait_queue_index,
            RequestKind.GET_QUEUE: self._apply_queue,
            RequestKind.GET_SUB_QUEUE: self._apply_sub_queue,
            RequestKind.SET_QUEUE: self._apply_echo,
            RequestKind.SET_SUB_QUEUE: self._apply_echo,
            RequestKind.REMOVE_FROM_QUEUE: self._apply_echo,
            RequestKind.ADD_TO_SUB_QUEUE: self._apply_echo,
            RequestKind.REMOVE_FROM_SUB_QUEUE: self._apply_echo,
            RequestKind.SKIP_SUB_QUEUE_SONGS: self._apply_echo,
            RequestKind.GET_REPEAT: self._apply_repeat,
            RequestKind.SET_REPEAT: self._apply_set_repeat,
            RequestKind.GET_SHUFFLE: self._apply_shuffle,
            RequestKind.SET_SHUFFLE: self._apply_set_shuffle,
            RequestKind.GET_POSITION: self._apply_position,
            RequestKind.SET_POSITION: self._apply_position,
            RequestKind.GET_STATUS: self._apply_status,
            RequestKind.GET_QUEUE_SIZE: self._apply_queue_size,
            RequestKind.GET_SUB_QUEUE_SIZE: self._apply_sub_queue_size,
        }

        if auto_connect:
            self.reconnect()

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def endpoint(self) -> ServiceEndpoint:
        """Return the configured service endpoint."""
        return ServiceEndpoint(self._host, self._port)

    @property
    def state(self) -> PlaybackCache:
        """Return the cached playback state."""
        return self._state

    @property
    def has_error(self) -> bool:
        """Return True if the connection is unusable (cached state may be stale)."""
        return self._error

    @property
    def is_running(self) -> bool:
        """Return True if the processing loop thread is alive."""
        return self._thread is not None and self._thread.is_alive()

    @property
    def pending_count(self) -> int:
        """Return the number of queued requests."""
        with self._queue_lock:
            return len(self._pending)

    # -------------------------------------------------------------------------
    # Connection lifecycle
    # -------------------------------------------------------------------------

    def reconnect(self) -> bool:
        """(Re)open the transport and check the protocol version.

        On success the error flag is cleared and both queues are fetched.
        On failure the error flag stays set and any queued requests are
        discarded. Safe to call while the processing loop is running.

        Returns:
            True if the handshake succeeded.
        """
        with self._io_lock:
            self._error = True
            if self._transport is not None:
                self._transport.close()
            self._transport = self._transport_factory()
            reason = self._handshake(self._transport)
            if reason is None:
                self._error = False
            else:
                self._transport.close()

        if reason is not None:
            logger.error("Playback service handshake failed: %s", reason)
            self._discard_pending(TransportError(reason))
            self.connection_failed.emit(reason)
            return False

        logger.info(
            "Connected to playback service at %s (protocol %d)",
            self.endpoint.address,
            PROTOCOL_VERSION,
        )
        self.connected.emit()
        self.request_queue()
        self.request_sub_queue()
        return True

    def _handshake(self, transport: Transport) -> str | None:
        """Open the transport and verify the protocol version.

        Returns:
            None on success, otherwise the failure reason.
        """
        try:
            transport.open()
        except TransportError as e:
            return str(e)

        if not transport.write(encode_frame(Command.VERSION)):
            return "Failed to send version query"
        reply = transport.read()
        if not reply:
            return "No reply to version query"
        try:
            version = parse_int(reply)
        except ProtocolError:
            return f"Invalid version reply {reply!r}"
        if version != PROTOCOL_VERSION:
            return f"Protocol versions do not match (service {version}, client {PROTOCOL_VERSION})"
        return None

    def start(self) -> None:
        """Start the processing loop thread."""
        if self.is_running:
            return
        self._exit = False
        self._thread = threading.Thread(target=self._run, name="playctrl-client", daemon=True)
        self._thread.start()
        logger.info("PlaybackClient loop started for %s", self.endpoint.address)

    def stop(self, timeout: float = 5.0) -> None:
        """Signal the loop to exit after its current iteration and wait for it.

        Args:
            timeout: Seconds to wait for the thread to finish.
        """
        self._exit = True
        thread, self._thread = self._thread, None
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=timeout)
            logger.info("PlaybackClient loop stopped")

    def close(self) -> None:
        """Stop the loop, fail queued requests and close the transport.

        Calling close() more than once is harmless.
        """
        self.stop()
        with self._io_lock:
            self._error = True
            transport, self._transport = self._transport, None
            if transport is not None:
                transport.close()
        self._discard_pending(TransportError("Client closed"))
        if transport is not None:
            logger.info("Disconnected from playback service at %s", self.endpoint.address)
            self.disconnected.emit()

    # -------------------------------------------------------------------------
    # Processing loop
    # -------------------------------------------------------------------------

    def _run(self) -> None:
        """Background thread: iterate until exit is signalled."""
        while not self._exit:
            self.process_once()

    def process_once(self) -> bool:
        """Run one loop iteration.

        Drains the outbound queue, then enqueues the refresh battery if
        it is due, or sleeps briefly if there was nothing to do.

        Returns:
            True if at least one request was serviced.
        """
        if self._error:
            time.sleep(ERROR_SLEEP)
            return False

        started = time.monotonic()
        drained = self._drain()
        now = time.monotonic()
        if drained:
            logger.debug("Drain took %.4f seconds", now - started)

        if now - self._last_refresh >= self._refresh_interval:
            self.refresh()
            self._last_refresh = now
        elif not drained:
            time.sleep(IDLE_SLEEP)
        return drained

    def _drain(self) -> bool:
        """Service queued requests in FIFO order until empty or failed."""
        drained = False
        while True:
            with self._queue_lock:
                if not self._pending:
                    break
                request = self._pending[0]

            with self._io_lock:
                if self._error or self._transport is None:
                    break
                transport = self._transport
                if not transport.write(request.frame):
                    payload = None
                    reason = "Failed to send request"
                else:
                    payload = transport.read()
                    reason = "No response from service"

            if not payload:
                self._fail(f"{reason} (frame {request.frame!r})")
                break

            try:
                result = self._handlers[request.kind](request, payload)
            except ProtocolError as e:
                self._fail(f"Malformed response to {request.kind.name}: {e}")
                break

            with self._queue_lock:
                if self._pending and self._pending[0] is request:
                    self._pending.popleft()
            request.resolve(result)
            drained = True
        return drained

    def _fail(self, reason: str) -> None:
        """Latch the error flag and discard the outbound queue."""
        self._error = True
        dropped = self._discard_pending(TransportError(reason))
        logger.error("%s - cleared %d queued request(s)", reason, dropped)
        self.connection_lost.emit(reason)

    def _discard_pending(self, error: BaseException) -> int:
        """Remove every queued request, failing any waiters."""
        with self._queue_lock:
            dropped = list(self._pending)
            self._pending.clear()
        for request in dropped:
            request.fail(error)
        return len(dropped)

    # -------------------------------------------------------------------------
    # Submission
    # -------------------------------------------------------------------------

    def enqueue(self, request: PendingRequest) -> bool:
        """Append a request to the outbound queue.

        Returns:
            False if the request was dropped because of the error flag.
        """
        with self._queue_lock:
            if self._error:
                return False
            self._pending.append(request)
            return True

    def _submit(
        self,
        kind: RequestKind,
        *args: str,
        expected: Any = None,
        completion: Future[Any] | None = None,
    ) -> bool:
        return self.enqueue(
            PendingRequest.build(kind, *args, expected=expected, completion=completion)
        )

    def refresh(self) -> None:
        """Enqueue the full battery of state polls."""
        for kind in REFRESH_BATTERY:
            self._submit(kind)

    def _wait(self, kind: RequestKind, timeout: float | None) -> tuple[bool, Any]:
        if self._thread is not None and self._thread is threading.current_thread():
            raise RuntimeError("Blocking requests cannot be made from the processing loop")
        completion: Future[Any] = Future()
        if not self._submit(kind, completion=completion):
            return False, None
        try:
            return True, completion.result(timeout)
        except (ConnectionError, TimeoutError):
            return False, None

    def wait_reset(self, timeout: float | None = None) -> bool:
        """Reset the service and block until it confirms.

        Args:
            timeout: Seconds to wait, or None to wait until the request
                completes or is discarded.

        Returns:
            True if the reset completed, False on error or timeout.
        """
        ok, _ = self._wait(RequestKind.RESET, timeout)
        return ok

    def wait_queue_index(self, timeout: float | None = None) -> int | None:
        """Fetch the current queue index and block until it arrives.

        Since requests are serviced in order, this also waits for every
        request queued before it.

        Args:
            timeout: Seconds to wait, or None to wait until the request
                completes or is discarded.

        Returns:
            The fresh queue index, or None on error or timeout.
        """
        ok, index = self._wait(RequestKind.WAIT_QUEUE_INDEX, timeout)
        return index if ok else None

    # -- Transport controls ----------------------------------------------------

    def resume(self) -> bool:
        """Resume playback."""
        return self._submit(RequestKind.RESUME)

    def pause(self) -> bool:
        """Pause playback."""
        return self._submit(RequestKind.PAUSE)

    def previous(self) -> bool:
        """Skip to the previous song."""
        return self._submit(RequestKind.PREVIOUS)

    def next(self) -> bool:
        """Skip to the next song."""
        return self._submit(RequestKind.NEXT)

    # -- Volume / position -----------------------------------------------------

    def request_volume(self) -> bool:
        """Poll the volume."""
        return self._submit(RequestKind.GET_VOLUME)

    def set_volume(self, volume: float) -> bool:
        """Set the volume.

        Args:
            volume: Volume level (clamped to 0-100).
        """
        volume = max(0.0, min(100.0, float(volume)))
        return self._submit(RequestKind.SET_VOLUME, format_float(volume), expected=volume)

    def request_position(self) -> bool:
        """Poll the playback position."""
        return self._submit(RequestKind.GET_POSITION)

    def set_position(self, position: float) -> bool:
        """Seek within the current song.

        Args:
            position: Position in seconds (negative values seek to 0).
        """
        position = max(0.0, float(position))
        return self._submit(RequestKind.SET_POSITION, format_float(position), expected=position)

    def request_song(self) -> bool:
        """Poll the current song ID."""
        return self._submit(RequestKind.GET_SONG)

    def request_status(self) -> bool:
        """Poll the playback status."""
        return self._submit(RequestKind.GET_STATUS)

    # -- Main queue ------------------------------------------------------------

    def request_queue_index(self) -> bool:
        """Poll the current queue index."""
        return self._submit(RequestKind.GET_QUEUE_INDEX)

    def set_queue_index(self, index: int) -> bool:
        """Jump to a position in the main queue."""
        return self._submit(RequestKind.SET_QUEUE_INDEX, format_int(index), expected=index)

    def request_queue_size(self) -> bool:
        """Poll the main queue size."""
        return self._submit(RequestKind.GET_QUEUE_SIZE)

    def request_queue(self, start: int = 0, end: int = QUEUE_FETCH_LIMIT) -> bool:
        """Fetch the main queue (songs in [start, end))."""
        return self._submit(RequestKind.GET_QUEUE, format_int(start), format_int(end))

    def set_queue(self, songs: Sequence[int]) -> bool:
        """Replace the main queue on the service."""
        args = [format_int(song) for song in songs]
        return self._submit(RequestKind.SET_QUEUE, *args, expected=len(args))

    def remove_from_queue(self, pos: int) -> bool:
        """Remove the song at a main queue position."""
        return self._submit(RequestKind.REMOVE_FROM_QUEUE, format_int(pos), expected=pos)

    # -- Play-next queue -------------------------------------------------------

    def request_sub_queue_size(self) -> bool:
        """Poll the play-next queue size."""
        return self._submit(RequestKind.GET_SUB_QUEUE_SIZE)

    def request_sub_queue(self, start: int = 0, end: int = SUB_QUEUE_FETCH_LIMIT) -> bool:
        """Fetch the play-next queue (songs in [start, end))."""
        return self._submit(RequestKind.GET_SUB_QUEUE, format_int(start), format_int(end))

    def set_sub_queue(self, songs: Sequence[int]) -> bool:
        """Replace the play-next queue on the service."""
        args = [format_int(song) for song in songs]
        return self._submit(RequestKind.SET_SUB_QUEUE, *args, expected=len(args))

    def add_to_sub_queue(self, song: int) -> bool:
        """Append a song to the play-next queue."""
        return self._submit(RequestKind.ADD_TO_SUB_QUEUE, format_int(song), expected=song)

    def remove_from_sub_queue(self, pos: int) -> bool:
        """Remove the song at a play-next queue position."""
        return self._submit(RequestKind.REMOVE_FROM_SUB_QUEUE, format_int(pos), expected=pos)

    def skip_sub_queue_songs(self, count: int) -> bool:
        """Drop the first ``count`` songs of the play-next queue."""
        return self._submit(RequestKind.SKIP_SUB_QUEUE_SONGS, format_int(count), expected=count)

    # -- Modes -----------------------------------------------------------------

    def request_repeat(self) -> bool:
        """Poll the repeat mode."""
        return self._submit(RequestKind.GET_REPEAT)

    def set_repeat(self, mode: RepeatMode) -> bool:
        """Set the repeat mode."""
        return self._submit(RequestKind.SET_REPEAT, format_int(mode), expected=mode)

    def request_shuffle(self) -> bool:
        """Poll the shuffle mode."""
        return self._submit(RequestKind.GET_SHUFFLE)

    def set_shuffle(self, mode: ShuffleMode) -> bool:
        """Set the shuffle mode (the main queue is re-fetched afterwards)."""
        return self._submit(RequestKind.SET_SHUFFLE, format_int(mode), expected=mode)

    # -------------------------------------------------------------------------
    # Response handlers (processing loop only)
    # -------------------------------------------------------------------------

    def _warn_mismatch(self, request: PendingRequest, reported: object) -> None:
        logger.warning(
            "Service disagreed on %s: requested %s, got %s",
            request.kind.name,
            request.expected,
            reported,
        )

    def _apply_reset(self, request: PendingRequest, payload: str) -> None:
        logger.info("Playback service reset")

    def _apply_song(self, request: PendingRequest, payload: str) -> None:
        self._state.set_song(parse_int(payload))

    def _apply_volume(self, request: PendingRequest, payload: str) -> None:
        self._state.set_volume(parse_float(payload))

    def _apply_position(self, request: PendingRequest, payload: str) -> None:
        self._state.set_position(parse_float(payload))

    def _apply_status(self, request: PendingRequest, payload: str) -> None:
        self._state.set_status(_parse_enum(PlaybackStatus, payload, PlaybackStatus.ERROR))

    def _apply_queue_index(self, request: PendingRequest, payload: str) -> None:
        index = parse_int(payload)
        if index != self._state.queue_index:
            self.request_queue()
            self.request_sub_queue()
        self._state.set_queue_index(index)

    def _apply_set_queue_index(self, request: PendingRequest, payload: str) -> None:
        index = parse_int(payload)
        if index != request.expected:
            self._warn_mismatch(request, index)
        self._apply_queue_index(request, payload)

    def _apply_wait_queue_index(self, request: PendingRequest, payload: str) -> int:
        index = parse_int(payload)
        self._apply_queue_index(request, payload)
        return index

    def _apply_queue_size(self, request: PendingRequest, payload: str) -> None:
        size = parse_int(payload)
        if size != self._state.queue_size:
            self.request_queue()
        self._state.set_queue_size(size)

    def _apply_sub_queue_size(self, request: PendingRequest, payload: str) -> None:
        size = parse_int(payload)
        if size != self._state.sub_queue_size:
            self.request_sub_queue()
        self._state.set_sub_queue_size(size)

    def _apply_queue(self, request: PendingRequest, payload: str) -> None:
        self._state.replace_queue(parse_id_list(payload))

    def _apply_sub_queue(self, request: PendingRequest, payload: str) -> None:
        self._state.replace_sub_queue(parse_id_list(payload))

    def _apply_echo(self, request: PendingRequest, payload: str) -> None:
        value = parse_int(payload)
        if value != request.expected:
            self._warn_mismatch(request, value)

    def _apply_repeat(self, request: PendingRequest, payload: str) -> None:
        self._state.set_repeat(_parse_enum(RepeatMode, payload, RepeatMode.OFF))

    def _apply_set_repeat(self, request: PendingRequest, payload: str) -> None:
        value = parse_int(payload)
        if value != request.expected:
            self._warn_mismatch(request, value)
            return
        self._state.set_repeat(RepeatMode(value))

    def _apply_shuffle(self, request: PendingRequest, payload: str) -> None:
        self._state.set_shuffle(_parse_shuffle(payload))

    def _apply_set_shuffle(self, request: PendingRequest, payload: str) -> None:
        mode = _parse_shuffle(payload)
        if mode != request.expected:
            self._warn_mismatch(request, mode.name)
        self.request_queue()
        self._state.set_shuffle(mode)
