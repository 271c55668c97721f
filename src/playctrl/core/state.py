"""Cached playback state with Qt signals for reactive UI updates.

The PlaybackCache holds the last values reported by the playback service.
Only the client's processing loop writes to it; any thread may read.

Scalar fields are stored as plain attributes: each update is a single
assignment and readers tolerate values up to one refresh interval old.
The two song sequences and their "changed" flags share a lock so a
reader never sees a half-replaced queue.
"""

import logging
import threading
from collections.abc import Sequence

from PySide6.QtCore import QObject, Signal

from playctrl.models.playback import (
    NO_SONG,
    PlaybackSnapshot,
    PlaybackStatus,
    RepeatMode,
    ShuffleMode,
)

logger = logging.getLogger(__name__)


class PlaybackCache(QObject):
    """Local copy of the playback service state.

    Signals are emitted from the processing-loop thread, and only when a
    value actually changes (queues are re-announced on every fetch).

    Example:
        cache = PlaybackCache()
        cache.song_changed.connect(lambda song_id: print(f"Now playing {song_id}"))
        cache.set_song(42)
    """

    song_changed = Signal(int)
    status_changed = Signal(object)  # PlaybackStatus
    volume_changed = Signal(float)
    position_changed = Signal(float)
    repeat_changed = Signal(object)  # RepeatMode
    shuffle_changed = Signal(object)  # ShuffleMode
    queue_updated = Signal(object)  # list[int]
    sub_queue_updated = Signal(object)  # list[int]

    def __init__(self) -> None:
        """Initialize the cache with the service's power-on defaults."""
        super().__init__()
        self._song = NO_SONG
        self._position = 0.0
        self._volume = 100.0
        self._status = PlaybackStatus.STOPPED
        self._repeat = RepeatMode.OFF
        self._shuffle = ShuffleMode.OFF
        self._queue_index = 0
        self._queue_size = 0
        self._sub_queue_size = 0

        self._queue_lock = threading.Lock()
        self._queue: list[int] = []
        self._sub_queue: list[int] = []
        self._queue_changed = False
        self._sub_queue_changed = False

    # -------------------------------------------------------------------------
    # Readers
    # -------------------------------------------------------------------------

    @property
    def song(self) -> int:
        """Return the current song ID, or -1 if none."""
        return self._song

    @property
    def position(self) -> float:
        """Return the playback position in seconds."""
        return self._position

    @property
    def volume(self) -> float:
        """Return the volume (0-100)."""
        return self._volume

    @property
    def status(self) -> PlaybackStatus:
        """Return the playback status."""
        return self._status

    @property
    def repeat(self) -> RepeatMode:
        """Return the repeat mode."""
        return self._repeat

    @property
    def shuffle(self) -> ShuffleMode:
        """Return the shuffle mode."""
        return self._shuffle

    @property
    def queue_index(self) -> int:
        """Return the index of the current song in the main queue."""
        return self._queue_index

    @property
    def queue_size(self) -> int:
        """Return the main queue size last reported by the service."""
        return self._queue_size

    @property
    def sub_queue_size(self) -> int:
        """Return the play-next queue size last reported by the service."""
        return self._sub_queue_size

    @property
    def queue(self) -> list[int]:
        """Return a copy of the main queue."""
        with self._queue_lock:
            return list(self._queue)

    @property
    def sub_queue(self) -> list[int]:
        """Return a copy of the play-next queue."""
        with self._queue_lock:
            return list(self._sub_queue)

    def queue_changed(self) -> bool:
        """Return True once after each main queue fetch."""
        with self._queue_lock:
            changed, self._queue_changed = self._queue_changed, False
            return changed

    def sub_queue_changed(self) -> bool:
        """Return True once after each play-next queue fetch."""
        with self._queue_lock:
            changed, self._sub_queue_changed = self._sub_queue_changed, False
            return changed

    def snapshot(self) -> PlaybackSnapshot:
        """Return a frozen copy of every cached value."""
        with self._queue_lock:
            queue = tuple(self._queue)
            sub_queue = tuple(self._sub_queue)
        return PlaybackSnapshot(
            song=self._song,
            position=self._position,
            volume=self._volume,
            status=self._status,
            repeat=self._repeat,
            shuffle=self._shuffle,
            queue_index=self._queue_index,
            queue_size=self._queue_size,
            sub_queue_size=self._sub_queue_size,
            queue=queue,
            sub_queue=sub_queue,
        )

    # -------------------------------------------------------------------------
    # Writers (processing loop only)
    # -------------------------------------------------------------------------

    def set_song(self, song: int) -> None:
        """Store the current song ID."""
        if song != self._song:
            self._song = song
            self.song_changed.emit(song)

    def set_position(self, position: float) -> None:
        """Store the playback position."""
        if position != self._position:
            self._position = position
            self.position_changed.emit(position)

    def set_volume(self, volume: float) -> None:
        """Store the volume."""
        if volume != self._volume:
            self._volume = volume
            self.volume_changed.emit(volume)

    def set_status(self, status: PlaybackStatus) -> None:
        """Store the playback status."""
        if status != self._status:
            self._status = status
            self.status_changed.emit(status)

    def set_repeat(self, repeat: RepeatMode) -> None:
        """Store the repeat mode."""
        if repeat != self._repeat:
            self._repeat = repeat
            self.repeat_changed.emit(repeat)

    def set_shuffle(self, shuffle: ShuffleMode) -> None:
        """Store the shuffle mode."""
        if shuffle != self._shuffle:
            self._shuffle = shuffle
            self.shuffle_changed.emit(shuffle)

    def set_queue_index(self, index: int) -> None:
        """Store the current queue index."""
        self._queue_index = index

    def set_queue_size(self, size: int) -> None:
        """Store the main queue size."""
        self._queue_size = size

    def set_sub_queue_size(self, size: int) -> None:
        """Store the play-next queue size."""
        self._sub_queue_size = size

    def replace_queue(self, songs: Sequence[int]) -> None:
        """Replace the main queue and flag it as changed."""
        with self._queue_lock:
            self._queue = list(songs)
            self._queue_changed = True
        logger.debug("Main queue replaced (%d songs)", len(songs))
        self.queue_updated.emit(list(songs))

    def replace_sub_queue(self, songs: Sequence[int]) -> None:
        """Replace the play-next queue and flag it as changed."""
        with self._queue_lock:
            self._sub_queue = list(songs)
            self._sub_queue_changed = True
        logger.debug("Play-next queue replaced (%d songs)", len(songs))
        self.sub_queue_updated.emit(list(songs))
