"""Configuration manager using QSettings for persistent storage."""

import logging

from PySide6.QtCore import QSettings

from playctrl.api.protocol import DEFAULT_HOST, DEFAULT_PORT
from playctrl.api.transport import DEFAULT_TIMEOUT
from playctrl.models.endpoint import ServiceEndpoint

logger = logging.getLogger(__name__)

# Settings keys
_KEY_HOST = "service/host"
_KEY_PORT = "service/port"
_KEY_TIMEOUT = "service/timeout"
_KEY_REFRESH_INTERVAL = "service/refresh_interval"
_KEY_AUTO_RECONNECT = "service/auto_reconnect"

_DEFAULT_REFRESH_INTERVAL_MS = 100


class ConfigManager:
    """Wrapper around QSettings for type-safe config access.

    QSettings stores config in platform-specific locations:
    - Windows: HKEY_CURRENT_USER\\Software\\PlayCtrl\\PlayCtrl
    - macOS: ~/Library/Preferences/com.PlayCtrl.PlayCtrl.plist
    - Linux: ~/.config/PlayCtrl/PlayCtrl.conf

    Example:
        config = ConfigManager()
        endpoint = config.endpoint()
        config.set_port(3334)
    """

    def __init__(self, organization: str = "PlayCtrl", application: str = "PlayCtrl") -> None:
        """Initialize the config manager.

        Args:
            organization: Organization name for QSettings.
            application: Application name for QSettings.
        """
        self._settings = QSettings(organization, application)

    @property
    def settings(self) -> QSettings:
        """Return the underlying QSettings instance."""
        return self._settings

    # -- Service endpoint ------------------------------------------------------

    def get_host(self) -> str:
        """Return the service host.

        Returns:
            Host string (default 127.0.0.1).
        """
        value = self._settings.value(_KEY_HOST, DEFAULT_HOST, str)
        return str(value) if value else DEFAULT_HOST

    def set_host(self, host: str) -> None:
        """Set the service host.

        Args:
            host: Hostname or IP.
        """
        self._settings.setValue(_KEY_HOST, host)

    def get_port(self) -> int:
        """Return the service port.

        Returns:
            Port number (default 3333).
        """
        value = self._settings.value(_KEY_PORT, DEFAULT_PORT, int)
        return max(1, min(65535, int(value)))  # type: ignore[arg-type]

    def set_port(self, port: int) -> None:
        """Set the service port.

        Args:
            port: Port number (1-65535).
        """
        self._settings.setValue(_KEY_PORT, max(1, min(65535, port)))

    def endpoint(self) -> ServiceEndpoint:
        """Return the configured endpoint."""
        return ServiceEndpoint(self.get_host(), self.get_port())

    # -- Timing ----------------------------------------------------------------

    def get_timeout(self) -> float:
        """Return the per-operation socket timeout in seconds.

        Returns:
            Timeout in seconds (default 1.0).
        """
        value = self._settings.value(_KEY_TIMEOUT, DEFAULT_TIMEOUT, float)
        try:
            timeout = float(value)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            logger.warning("Ignoring invalid timeout setting: %r", value)
            return DEFAULT_TIMEOUT
        return max(0.1, min(30.0, timeout))

    def set_timeout(self, seconds: float) -> None:
        """Set the socket timeout.

        Args:
            seconds: Timeout in seconds (0.1-30).
        """
        self._settings.setValue(_KEY_TIMEOUT, max(0.1, min(30.0, seconds)))

    def get_refresh_interval(self) -> int:
        """Return the state refresh interval in milliseconds.

        Returns:
            Interval in milliseconds (default 100).
        """
        value = self._settings.value(_KEY_REFRESH_INTERVAL, _DEFAULT_REFRESH_INTERVAL_MS, int)
        return max(50, min(5000, int(value)))  # type: ignore[arg-type]

    def set_refresh_interval(self, milliseconds: int) -> None:
        """Set the state refresh interval.

        Args:
            milliseconds: Interval in milliseconds (50-5000).
        """
        self._settings.setValue(_KEY_REFRESH_INTERVAL, max(50, min(5000, milliseconds)))

    def get_auto_reconnect(self) -> bool:
        """Return whether the monitor should retry a failed connection.

        Returns:
            True if auto-reconnect is enabled (default True).
        """
        return bool(self._settings.value(_KEY_AUTO_RECONNECT, True, bool))

    def set_auto_reconnect(self, enabled: bool) -> None:
        """Enable or disable auto-reconnect.

        Args:
            enabled: Whether to retry failed connections.
        """
        self._settings.setValue(_KEY_AUTO_RECONNECT, enabled)

    # -- General settings ------------------------------------------------------

    def clear(self) -> None:
        """Clear all settings (useful for testing or reset)."""
        self._settings.clear()

    def sync(self) -> None:
        """Force settings to be written to disk."""
        self._settings.sync()
