"""Tests for playback models."""

import pytest

from playctrl.models import (
    NO_SONG,
    PlaybackSnapshot,
    PlaybackStatus,
    RepeatMode,
    ServiceEndpoint,
    ShuffleMode,
)


class TestServiceEndpoint:
    """Test ServiceEndpoint."""

    def test_defaults(self) -> None:
        """Test the default endpoint."""
        endpoint = ServiceEndpoint()
        assert endpoint.host == "127.0.0.1"
        assert endpoint.port == 3333
        assert endpoint.address == "127.0.0.1:3333"

    def test_frozen(self) -> None:
        """Test endpoints are immutable."""
        endpoint = ServiceEndpoint("10.0.0.1", 4000)
        with pytest.raises(AttributeError):
            endpoint.port = 1  # type: ignore[misc]


class TestWireEnums:
    """Test enum values match the wire encoding."""

    def test_status_values(self) -> None:
        """Test playback status values."""
        assert PlaybackStatus(0) is PlaybackStatus.ERROR
        assert PlaybackStatus(1) is PlaybackStatus.PLAYING
        assert PlaybackStatus(2) is PlaybackStatus.PAUSED
        assert PlaybackStatus(3) is PlaybackStatus.STOPPED

    def test_repeat_values(self) -> None:
        """Test repeat mode values."""
        assert [int(mode) for mode in RepeatMode] == [0, 1, 2]

    def test_shuffle_values(self) -> None:
        """Test shuffle mode values."""
        assert ShuffleMode(1) is ShuffleMode.ON

    def test_unknown_value(self) -> None:
        """Test an out-of-range value is rejected."""
        with pytest.raises(ValueError):
            RepeatMode(3)


class TestPlaybackSnapshot:
    """Test PlaybackSnapshot."""

    def test_defaults(self) -> None:
        """Test a default snapshot matches a fresh service."""
        snapshot = PlaybackSnapshot()
        assert snapshot.song == NO_SONG
        assert snapshot.volume == 100.0
        assert snapshot.is_stopped
        assert not snapshot.has_song
        assert snapshot.queue == ()

    def test_status_properties(self) -> None:
        """Test the status convenience properties."""
        playing = PlaybackSnapshot(status=PlaybackStatus.PLAYING)
        paused = PlaybackSnapshot(status=PlaybackStatus.PAUSED)
        assert playing.is_playing and not playing.is_paused
        assert paused.is_paused and not paused.is_stopped

    def test_has_song(self) -> None:
        """Test song ID 0 counts as a loaded song."""
        assert PlaybackSnapshot(song=0).has_song
