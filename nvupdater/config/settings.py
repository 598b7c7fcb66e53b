"""Application settings, persisted as JSON."""

import json
import logging
import os
import sys
from dataclasses import dataclass, asdict

logger = logging.getLogger(__name__)

SETTINGS_FILE = 'settings.json'


def default_data_dir() -> str:
    """Directory next to the executable when frozen, else the working directory."""
    if getattr(sys, 'frozen', False):
        return os.path.dirname(sys.executable)
    return os.getcwd()


@dataclass
class AppSettings:
    """Persistent application settings, passed to every component."""
    # Paths
    data_dir: str = ""                  # Markers, installers, logs

    # Checking
    check_interval_hours: int = 5
    request_timeout: int = 30           # seconds
    language_id: int = 1                # NVIDIA lid, 1 = English (US)
    language_code: str = "en-us"

    # Appearance
    start_minimized: bool = False

    # Diagnostics
    verbose_logging: bool = False

    def __post_init__(self):
        if not self.data_dir:
            self.data_dir = default_data_dir()

    @property
    def check_interval_ms(self) -> int:
        return max(self.check_interval_hours, 1) * 60 * 60 * 1000

    @property
    def log_dir(self) -> str:
        return os.path.join(self.data_dir, 'logs')

    @staticmethod
    def load(path: str | None = None) -> 'AppSettings':
        """Load settings from JSON. Returns defaults if file doesn't exist."""
        if path is None:
            path = os.path.join(default_data_dir(), SETTINGS_FILE)

        if not os.path.isfile(path):
            logger.info("No settings file, using defaults")
            return AppSettings()

        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
            settings = AppSettings(**{k: v for k, v in data.items()
                                      if k in AppSettings.__dataclass_fields__})
            logger.info("Loaded settings from %s", path)
            return settings
        except (OSError, ValueError, TypeError) as e:
            logger.warning("Failed to load settings: %s", e)
            return AppSettings()

    @staticmethod
    def load_or_create(path: str | None = None) -> 'AppSettings':
        """Load settings, writing the defaults out on first run."""
        if path is None:
            path = os.path.join(default_data_dir(), SETTINGS_FILE)

        settings = AppSettings.load(path)
        if not os.path.isfile(path):
            settings.save(path)
        return settings

    def save(self, path: str | None = None):
        """Save settings to JSON."""
        if path is None:
            path = os.path.join(self.data_dir, SETTINGS_FILE)

        os.makedirs(os.path.dirname(path), exist_ok=True)
        try:
            with open(path, 'w', encoding='utf-8') as f:
                json.dump(asdict(self), f, indent=2)
            logger.info("Saved settings to %s", path)
        except OSError as e:
            logger.warning("Failed to save settings: %s", e)

    def ensure_dirs(self):
        """Create data directories if they don't exist."""
        os.makedirs(self.data_dir, exist_ok=True)
        os.makedirs(self.log_dir, exist_ok=True)
