"""Playback service endpoint model."""

from dataclasses import dataclass

from playctrl.api.protocol import DEFAULT_HOST, DEFAULT_PORT


@dataclass(frozen=True, slots=True)
class ServiceEndpoint:
    """Where the playback service listens.

    Attributes:
        host: Service hostname or IP address.
        port: TCP port (default 3333).
    """

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT

    @property
    def address(self) -> str:
        """Return the endpoint address (host:port)."""
        return f"{self.host}:{self.port}"
