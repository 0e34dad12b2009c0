"""
Settings store for Smart Checker.

Stores per-user checker settings in JSON files based on Unix username.
Implements the settings collaborator contract used by the orchestrator.
"""

import getpass
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from ..models.settings import CheckerSettings

logger = logging.getLogger(__name__)


class JsonSettingsStore:
    """
    Manages per-user settings storage.

    Settings are stored in: {settings_dir}/{username}.json
    """

    def __init__(self, settings_dir: Optional[str] = None, username: Optional[str] = None):
        """Initialize the store with an optional custom directory and user."""
        if settings_dir is None:
            from ..config import config
            settings_dir = config.get_settings_dir()

        self.settings_dir = Path(settings_dir).expanduser()
        self.settings_dir.mkdir(parents=True, exist_ok=True)
        self._username = username

        logger.info(f"JsonSettingsStore initialized: {self.settings_dir}")

    def _get_username(self) -> str:
        """Get current Unix username."""
        if self._username:
            return self._username
        try:
            return getpass.getuser()
        except Exception:
            return os.environ.get('USER') or os.environ.get('USERNAME') or 'default'

    @property
    def settings_path(self) -> Path:
        """Path to the current user's settings file."""
        return self.settings_dir / f"{self._get_username()}.json"

    def get_settings(self) -> CheckerSettings:
        """
        Load settings from file.

        Returns default settings if the file doesn't exist or can't be read.
        """
        settings_path = self.settings_path

        if settings_path.exists():
            try:
                with open(settings_path, 'r') as f:
                    data = json.load(f)
                    settings = CheckerSettings(**data)
                    logger.debug(f"Loaded settings for user: {self._get_username()}")
                    return settings
            except Exception as e:
                logger.error(f"Failed to load checker settings: {e}")
                return CheckerSettings()
        else:
            logger.debug(f"No settings file found, returning defaults for: {self._get_username()}")
            return CheckerSettings()

    def save_settings(self, settings: CheckerSettings) -> None:
        """Save settings to file."""
        try:
            with open(self.settings_path, 'w') as f:
                json.dump(settings.model_dump(mode="json"), f, indent=2)
            logger.info(f"Saved settings for user: {self._get_username()}")
        except Exception as e:
            logger.error(f"Failed to save checker settings: {e}")
            raise

    def update_settings(self, updates: Dict[str, Any]) -> CheckerSettings:
        """
        Partially update settings.

        Merges updates with existing settings; the result is validated before
        anything is written.
        """
        current = self.get_settings()
        current_dict = current.model_dump(mode="json")

        # Deep merge updates
        self._deep_merge(current_dict, updates)

        # Validate and save
        updated = CheckerSettings(**current_dict)
        self.save_settings(updated)

        return updated

    def reset_settings(self) -> CheckerSettings:
        """Restore defaults."""
        settings = CheckerSettings()
        self.save_settings(settings)
        return settings

    def _deep_merge(self, base: Dict, updates: Dict) -> None:
        """Deep merge updates into base dict."""
        for key, value in updates.items():
            if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                self._deep_merge(base[key], value)
            else:
                base[key] = value


# Global store instance
_settings_store: Optional[JsonSettingsStore] = None


def get_settings_store() -> JsonSettingsStore:
    """Get or create the global JsonSettingsStore instance."""
    global _settings_store
    if _settings_store is None:
        _settings_store = JsonSettingsStore()
    return _settings_store
