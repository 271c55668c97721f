"""Blocking socket transport for the playback service protocol.

The transport owns exactly one stream socket. Frames are written with a
trailing newline and read back line by line. Every failure (timeout,
closed connection, socket error) is reported as a failed write or an
empty read so the caller can treat them uniformly.
"""

from __future__ import annotations

import logging
import socket
import time
from abc import ABC, abstractmethod

from playctrl.api.protocol import DEFAULT_HOST, DEFAULT_PORT, TERMINATOR

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 1.0
_READ_CHUNK_SIZE = 4096
# Longest frame accepted (a full queue fetch is a few hundred KiB)
_MAX_FRAME_SIZE = 4 * 1024 * 1024


class TransportError(ConnectionError):
    """Failed to open a connection to the playback service."""


class Transport(ABC):
    """Abstract frame transport.

    Implementations must make ``close()`` idempotent, and must report
    failures through ``write()`` returning False or ``read()`` returning
    an empty string rather than raising.
    """

    @property
    @abstractmethod
    def is_open(self) -> bool:
        """Return True if the underlying channel is open."""

    @abstractmethod
    def open(self) -> None:
        """Open the channel.

        Raises:
            TransportError: If the channel cannot be opened.
        """

    @abstractmethod
    def close(self) -> None:
        """Close the channel (safe to call more than once)."""

    @abstractmethod
    def write(self, frame: str) -> bool:
        """Send one frame. Returns False on failure."""

    @abstractmethod
    def read(self) -> str:
        """Receive one frame. Returns an empty string on failure."""


class SocketTransport(Transport):
    """TCP transport with a bounded per-operation timeout.

    Example:
        transport = SocketTransport("127.0.0.1", 3333, timeout=1.0)
        transport.open()
        if transport.write("0"):
            version = transport.read()
        transport.close()
    """

    def __init__(
        self,
        host: str = DEFAULT_HOST,
        port: int = DEFAULT_PORT,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        """Initialize the transport.

        Args:
            host: Service hostname or IP.
            port: Service TCP port.
            timeout: Connect/read/write timeout in seconds.
        """
        self.host = host
        self.port = port
        self.timeout = timeout
        self._sock: socket.socket | None = None
        self._buffer = b""

    @property
    def is_open(self) -> bool:
        """Return True if the socket is open."""
        return self._sock is not None

    def open(self) -> None:
        """Connect to the service, replacing any existing socket.

        Raises:
            TransportError: If the connection fails or times out.
        """
        self.close()
        try:
            sock = socket.create_connection((self.host, self.port), timeout=self.timeout)
        except OSError as e:
            raise TransportError(f"Failed to connect to {self.host}:{self.port}: {e}") from e
        sock.settimeout(self.timeout)
        self._sock = sock
        self._buffer = b""
        logger.debug("Socket opened to %s:%d", self.host, self.port)

    def close(self) -> None:
        """Close the socket if open."""
        sock, self._sock = self._sock, None
        self._buffer = b""
        if sock is None:
            return
        try:
            sock.close()
        except OSError as e:
            logger.debug("Expected error during socket close: %s", e)
        else:
            logger.debug("Socket closed")

    def write(self, frame: str) -> bool:
        """Send one newline-terminated frame.

        Args:
            frame: Frame string without terminator.

        Returns:
            True if the whole frame was sent.
        """
        if self._sock is None:
            return False
        try:
            self._sock.sendall(f"{frame}{TERMINATOR}".encode())
        except OSError as e:  # includes socket timeouts
            logger.debug("Write to %s:%d failed: %s", self.host, self.port, e)
            return False
        return True

    def read(self) -> str:
        """Read one newline-terminated frame.

        The timeout bounds the whole frame, not each chunk.

        Returns:
            Frame without terminator, or an empty string on timeout,
            closed connection, oversized frame or socket error.
        """
        if self._sock is None:
            return ""
        terminator = TERMINATOR.encode()
        deadline = time.monotonic() + self.timeout
        try:
            while terminator not in self._buffer:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    logger.debug("Read from %s:%d timed out", self.host, self.port)
                    return ""
                if len(self._buffer) > _MAX_FRAME_SIZE:
                    logger.warning(
                        "Frame from %s:%d exceeds %d bytes", self.host, self.port, _MAX_FRAME_SIZE
                    )
                    self._buffer = b""
                    return ""
                self._sock.settimeout(remaining)
                try:
                    chunk = self._sock.recv(_READ_CHUNK_SIZE)
                except OSError as e:
                    logger.debug("Read from %s:%d failed: %s", self.host, self.port, e)
                    return ""
                if not chunk:
                    logger.debug("Connection to %s:%d closed by peer", self.host, self.port)
                    return ""
                self._buffer += chunk
        finally:
            if self._sock is not None:
                self._sock.settimeout(self.timeout)
        line, self._buffer = self._buffer.split(terminator, 1)
        return line.decode("utf-8", errors="replace").rstrip("\r")
