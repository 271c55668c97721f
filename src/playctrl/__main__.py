"""Command line entry point for playctrl."""

from __future__ import annotations

import argparse
import logging
import signal
import sys
from collections.abc import Callable, Sequence

from PySide6.QtCore import QCoreApplication, QTimer

from playctrl.core.client import PlaybackClient
from playctrl.core.config import ConfigManager
from playctrl.models.playback import PlaybackSnapshot, RepeatMode, ShuffleMode

logger = logging.getLogger(__name__)

# Seconds to wait for one-shot commands to be serviced
_COMMAND_TIMEOUT = 5.0
# Milliseconds between reconnect attempts in monitor mode
_RECONNECT_INTERVAL_MS = 2000


def format_snapshot(snapshot: PlaybackSnapshot) -> str:
    """Format a snapshot as a single status line."""
    song = str(snapshot.song) if snapshot.has_song else "-"
    return (
        f"{snapshot.status.name.lower()} song={song} pos={snapshot.position:.1f}s "
        f"vol={snapshot.volume:.0f} repeat={snapshot.repeat.name.lower()} "
        f"shuffle={snapshot.shuffle.name.lower()} "
        f"queue={snapshot.queue_index}/{snapshot.queue_size} next={snapshot.sub_queue_size}"
    )


def build_parser(config: ConfigManager) -> argparse.ArgumentParser:
    """Build the argument parser with defaults taken from config."""
    parser = argparse.ArgumentParser(
        prog="playctrl",
        description="playctrl - playback service controller",
    )
    parser.add_argument("--host", default=config.get_host(), help="service hostname or IP")
    parser.add_argument("--port", type=int, default=config.get_port(), help="service TCP port")
    parser.add_argument(
        "--timeout", type=float, default=config.get_timeout(), help="socket timeout in seconds",
    )
    parser.add_argument(
        "--interval",
        type=int,
        default=config.get_refresh_interval(),
        help="state refresh interval in milliseconds",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="enable debug logging")

    commands = parser.add_subparsers(dest="command")
    commands.add_parser("monitor", help="log state changes until interrupted (default)")
    commands.add_parser("status", help="print the current state")
    commands.add_parser("queue", help="print the main and play-next queues")
    commands.add_parser("play", help="resume playback")
    commands.add_parser("pause", help="pause playback")
    commands.add_parser("next", help="skip to the next song")
    commands.add_parser("previous", help="skip to the previous song")
    commands.add_parser("reset", help="reset the service")
    volume = commands.add_parser("volume", help="set the volume")
    volume.add_argument("level", type=float, help="volume level (0-100)")
    seek = commands.add_parser("seek", help="seek within the current song")
    seek.add_argument("seconds", type=float, help="position in seconds")
    repeat = commands.add_parser("repeat", help="set the repeat mode")
    repeat.add_argument("mode", choices=[m.name.lower() for m in RepeatMode])
    shuffle = commands.add_parser("shuffle", help="set the shuffle mode")
    shuffle.add_argument("mode", choices=[m.name.lower() for m in ShuffleMode])
    return parser


def _command_action(client: PlaybackClient, args: argparse.Namespace) -> Callable[[], bool] | None:
    """Return the request to send for a one-shot command, if any."""
    actions: dict[str, Callable[[], bool]] = {
        "play": client.resume,
        "pause": client.pause,
        "next": client.next,
        "previous": client.previous,
    }
    if args.command in actions:
        return actions[args.command]
    if args.command == "volume":
        return lambda: client.set_volume(args.level)
    if args.command == "seek":
        return lambda: client.set_position(args.seconds)
    if args.command == "repeat":
        return lambda: client.set_repeat(RepeatMode[args.mode.upper()])
    if args.command == "shuffle":
        return lambda: client.set_shuffle(ShuffleMode[args.mode.upper()])
    return None


def run_command(client: PlaybackClient, args: argparse.Namespace) -> int:
    """Run a one-shot command against a connected client.

    Returns:
        Exit code (0 for success).
    """
    client.start()
    try:
        if args.command == "reset":
            if not client.wait_reset(timeout=_COMMAND_TIMEOUT):
                logger.error("Reset failed")
                return 1
            return 0

        action = _command_action(client, args)
        if action is not None and not action():
            logger.error("Request dropped: connection is in error")
            return 1

        # Requests are serviced in order, so this waits for everything above
        client.refresh()
        if client.wait_queue_index(timeout=_COMMAND_TIMEOUT) is None:
            logger.error("Playback service did not respond")
            return 1
        # One more barrier so the refresh battery and any re-fetches land
        client.wait_queue_index(timeout=_COMMAND_TIMEOUT)

        snapshot = client.state.snapshot()
        if args.command == "queue":
            print("queue:", " ".join(str(song) for song in snapshot.queue))
            print("next:", " ".join(str(song) for song in snapshot.sub_queue))
        else:
            print(format_snapshot(snapshot))
        return 0
    finally:
        client.close()


def run_monitor(client: PlaybackClient, app: QCoreApplication, auto_reconnect: bool) -> int:
    """Log cached state changes until interrupted.

    Returns:
        Exit code (0 for success).
    """
    state = client.state
    state.song_changed.connect(lambda song: logger.info("Song: %d", song))
    state.status_changed.connect(lambda status: logger.info("Status: %s", status.name))
    state.volume_changed.connect(lambda volume: logger.info("Volume: %.1f", volume))
    state.repeat_changed.connect(lambda mode: logger.info("Repeat: %s", mode.name))
    state.shuffle_changed.connect(lambda mode: logger.info("Shuffle: %s", mode.name))
    state.queue_updated.connect(lambda songs: logger.info("Queue: %d songs", len(songs)))
    state.sub_queue_updated.connect(lambda songs: logger.info("Play next: %d songs", len(songs)))
    client.connection_lost.connect(lambda reason: logger.warning("Connection lost: %s", reason))

    def try_reconnect() -> None:
        if client.has_error:
            logger.info("Reconnecting to %s...", client.endpoint.address)
            client.reconnect()

    reconnect_timer = QTimer()
    reconnect_timer.setInterval(_RECONNECT_INTERVAL_MS)
    reconnect_timer.timeout.connect(try_reconnect)
    if auto_reconnect:
        reconnect_timer.start()

    # Let Ctrl+C reach Python while the Qt event loop runs
    signal.signal(signal.SIGINT, lambda *_: app.quit())
    wakeup_timer = QTimer()
    wakeup_timer.start(200)
    wakeup_timer.timeout.connect(lambda: None)

    client.start()
    try:
        return app.exec()
    finally:
        reconnect_timer.stop()
        client.close()


def main(argv: Sequence[str] | None = None) -> int:
    """Run the playctrl command line tool.

    Returns:
        Exit code (0 for success).
    """
    QCoreApplication.setApplicationName("PlayCtrl")
    QCoreApplication.setOrganizationName("PlayCtrl")

    config = ConfigManager()
    args = build_parser(config).parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    command = args.command or "monitor"
    app = QCoreApplication.instance() or QCoreApplication(sys.argv[:1])

    client = PlaybackClient(
        args.host,
        args.port,
        timeout=args.timeout,
        refresh_interval=args.interval / 1000,
    )
    if command == "monitor":
        return run_monitor(client, app, config.get_auto_reconnect())

    if client.has_error:
        logger.error("Could not connect to playback service at %s", client.endpoint.address)
        client.close()
        return 1
    args.command = command
    return run_command(client, args)


if __name__ == "__main__":
    sys.exit(main())
