"""Data models for the playback service endpoint and cached state."""

from playctrl.models.endpoint import ServiceEndpoint
from playctrl.models.playback import (
    NO_SONG,
    PlaybackSnapshot,
    PlaybackStatus,
    RepeatMode,
    ShuffleMode,
)

__all__ = [
    "NO_SONG",
    "PlaybackSnapshot",
    "PlaybackStatus",
    "RepeatMode",
    "ServiceEndpoint",
    "ShuffleMode",
]
