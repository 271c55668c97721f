"""Core client layer.

This module contains the stateful playback service client and the
pieces it is built from.

Classes:
    PlaybackClient: Serialized request queue and background processing loop.
    PlaybackCache: Cached playback state with Qt signals.
    PendingRequest: One encoded request waiting in the outbound queue.
    ConfigManager: QSettings wrapper for configuration.
"""

from playctrl.core.client import PlaybackClient
from playctrl.core.config import ConfigManager
from playctrl.core.requests import PendingRequest, RequestKind
from playctrl.core.state import PlaybackCache

__all__ = ["ConfigManager", "PendingRequest", "PlaybackCache", "PlaybackClient", "RequestKind"]
