"""Persistent settings for the Zombies overlay.

Settings are stored in ~/.zombiesoverlay/settings.json and persist between
sessions. HYPIXEL_API_KEY and MINECRAFT_LOG_PATH override the stored values.
"""

import json
import logging
import os
import sys
from pathlib import Path
from typing import Any, Optional

logger = logging.getLogger(__name__)

# Settings file location
SETTINGS_DIR = Path.home() / ".zombiesoverlay"
SETTINGS_FILENAME = "settings.json"

# Environment variables that take precedence over the settings file
ENV_OVERRIDES = {
    "api_key": "HYPIXEL_API_KEY",
    "log_path": "MINECRAFT_LOG_PATH",
}

# Default settings
DEFAULTS = {
    "api_key": "",
    "log_path": "",  # Empty = platform default latest.log
    "poll_interval": 0.25,
    "watch_backend": "auto",
    "lookup_workers": 4,
}


def default_log_path() -> Path:
    """Default Minecraft latest.log location for this platform."""
    if sys.platform == "win32":
        return Path(os.environ.get("APPDATA", "")) / ".minecraft" / "logs" / "latest.log"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "minecraft" / "logs" / "latest.log"
    return Path.home() / ".minecraft" / "logs" / "latest.log"


class Settings:
    """Persistent settings manager.

    Example:
        settings = Settings()
        key = settings.get("api_key")
        settings.set("log_path", "/home/me/.minecraft/logs/latest.log")
    """

    def __init__(self, settings_dir: Optional[Path] = None) -> None:
        """Initialize settings, loading from disk if available.

        Args:
            settings_dir: Directory holding settings.json. Defaults to
                ~/.zombiesoverlay.
        """
        self.settings_dir = settings_dir or SETTINGS_DIR
        self.settings_file = self.settings_dir / SETTINGS_FILENAME
        self._data: dict[str, Any] = DEFAULTS.copy()
        self._load()

    def _load(self) -> None:
        """Load settings from disk."""
        if not self.settings_file.exists():
            return

        try:
            with open(self.settings_file, "r", encoding="utf-8") as f:
                loaded = json.load(f)
            # Merge with defaults (new settings get defaults)
            for key, value in loaded.items():
                self._data[key] = value
            logger.debug(f"Loaded settings from {self.settings_file}")
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to load settings: {e}")

    def save(self) -> None:
        """Save settings to disk."""
        try:
            self.settings_dir.mkdir(parents=True, exist_ok=True)
            with open(self.settings_file, "w", encoding="utf-8") as f:
                json.dump(self._data, f, indent=2)
            logger.debug(f"Saved settings to {self.settings_file}")
        except OSError as e:
            logger.warning(f"Failed to save settings: {e}")

    def get(self, key: str, default: Any = None) -> Any:
        """Get a setting value.

        Environment overrides win over the stored value.

        Args:
            key: Setting key
            default: Default value if key not found

        Returns:
            Setting value or default
        """
        env_name = ENV_OVERRIDES.get(key)
        if env_name and os.environ.get(env_name):
            return os.environ[env_name].strip()
        return self._data.get(key, default if default is not None else DEFAULTS.get(key))

    def set(self, key: str, value: Any, save: bool = True) -> None:
        """Set a setting value.

        Args:
            key: Setting key
            value: Value to set
            save: If True (default), immediately save to disk
        """
        self._data[key] = value
        if save:
            self.save()

    def reset(self) -> None:
        """Reset all settings to defaults."""
        self._data = DEFAULTS.copy()
        self.save()

    @property
    def log_path(self) -> Path:
        """Configured log path, or the platform default."""
        value = self.get("log_path")
        return Path(value).expanduser() if value else default_log_path()

    @property
    def api_key(self) -> Optional[str]:
        value = (self.get("api_key") or "").strip()
        return value or None


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
