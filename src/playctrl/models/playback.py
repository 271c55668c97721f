"""Playback state types.

Enum values are the values used on the wire, so a parsed integer
converts directly with ``RepeatMode(value)`` and friends.
"""

from dataclasses import dataclass
from enum import IntEnum

# Song ID reported when nothing is loaded
NO_SONG = -1


class PlaybackStatus(IntEnum):
    """Status of the playback service."""

    ERROR = 0
    PLAYING = 1
    PAUSED = 2
    STOPPED = 3


class RepeatMode(IntEnum):
    """Repeat mode."""

    OFF = 0
    ONE = 1
    ALL = 2


class ShuffleMode(IntEnum):
    """Shuffle mode."""

    OFF = 0
    ON = 1


@dataclass(frozen=True)
class PlaybackSnapshot:
    """Point-in-time copy of the cached playback state.

    Values may lag the service by up to one refresh interval.

    Attributes:
        song: Current song ID, or -1 if none.
        position: Playback position in seconds.
        volume: Volume level (0-100).
        status: Play/pause/stop status.
        repeat: Repeat mode.
        shuffle: Shuffle mode.
        queue_index: Index of the current song in the main queue.
        queue_size: Number of songs in the main queue.
        sub_queue_size: Number of songs in the play-next queue.
        queue: Main queue song IDs.
        sub_queue: Play-next queue song IDs.
    """

    song: int = NO_SONG
    position: float = 0.0
    volume: float = 100.0
    status: PlaybackStatus = PlaybackStatus.STOPPED
    repeat: RepeatMode = RepeatMode.OFF
    shuffle: ShuffleMode = ShuffleMode.OFF
    queue_index: int = 0
    queue_size: int = 0
    sub_queue_size: int = 0
    queue: tuple[int, ...] = ()
    sub_queue: tuple[int, ...] = ()

    @property
    def is_playing(self) -> bool:
        """Return True if currently playing."""
        return self.status == PlaybackStatus.PLAYING

    @property
    def is_paused(self) -> bool:
        """Return True if paused."""
        return self.status == PlaybackStatus.PAUSED

    @property
    def is_stopped(self) -> bool:
        """Return True if stopped."""
        return self.status == PlaybackStatus.STOPPED

    @property
    def has_song(self) -> bool:
        """Return True if a song is loaded."""
        return self.song != NO_SONG
