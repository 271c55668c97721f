"""Protocol codec and transport for the playback service."""

from playctrl.api.protocol import (
    DELIMITER,
    PROTOCOL_VERSION,
    Command,
    FrameError,
    ProtocolError,
    decode_frame,
    encode_frame,
    parse_id_list,
)
from playctrl.api.transport import SocketTransport, Transport, TransportError

__all__ = [
    "DELIMITER",
    "PROTOCOL_VERSION",
    "Command",
    "FrameError",
    "ProtocolError",
    "SocketTransport",
    "Transport",
    "TransportError",
    "decode_frame",
    "encode_frame",
    "parse_id_list",
]
