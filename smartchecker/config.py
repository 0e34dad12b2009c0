"""
Configuration management for Smart Checker.

Handles loading project-level configuration: remote service endpoints,
strictness per language, and where user settings are stored.

Configuration priority (highest to lowest):
1. Environment variables (for container deployments)
2. smartchecker.json file (for local development)
3. Built-in defaults
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

from .models.linting import FileType
from .services.remote_checkers import CHECKER_TYPES, RemoteEndpoint

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "smartchecker.json"
DEFAULT_SETTINGS_DIR = "~/.smartchecker"
DEFAULT_PROBE_TIMEOUT_MS = 3000
DEFAULT_STRICT_LANGUAGES = ["typescript"]

DEFAULT_REMOTE_ENDPOINTS: Dict[str, Dict[str, str]] = {
    "python": {
        "check_url": "https://pyright-checker.vercel.app/api/check",
        "status_url": "https://pyright-checker.vercel.app/api/status",
    },
    "typescript": {
        "check_url": "https://typescript-compiler.vercel.app/api/check",
        "status_url": "https://typescript-compiler.vercel.app/api/status",
    },
    "javascript": {
        "check_url": "https://eslint.org/api/playground/validate",
        "status_url": "https://eslint.org/api/playground/validate",
    },
}


def get_config_file() -> Path:
    """Config file path (SMARTCHECKER_CONFIG > ./smartchecker.json)."""
    return Path(os.getenv("SMARTCHECKER_CONFIG") or DEFAULT_CONFIG_FILE)


class Config:
    """
    Project-level configuration manager.

    Priority: ENV > smartchecker.json > defaults

    Environment variables:
      - SMARTCHECKER_CONFIG: Path to the config file
      - SMARTCHECKER_SETTINGS_DIR: Directory for per-user settings files
      - SMARTCHECKER_<LANG>_CHECK_URL / SMARTCHECKER_<LANG>_STATUS_URL:
        Remote endpoints (LANG is PYTHON, TYPESCRIPT or JAVASCRIPT)
      - SMARTCHECKER_STRICT_LANGUAGES: Comma list of languages whose remote
        failures trigger local fallback
      - SMARTCHECKER_PROBE_TIMEOUT_MS: Availability probe timeout
    """

    def __init__(self, config_file: Optional[Path] = None):
        self.config_file = config_file or get_config_file()
        self.data = self.load()

    def load(self) -> Dict[str, Any]:
        """Load configuration from file."""
        if self.config_file.exists():
            try:
                with open(self.config_file, 'r') as f:
                    data = json.load(f)
                if not isinstance(data, dict):
                    raise ValueError("top-level value must be an object")
                return data
            except Exception as e:
                logger.error(f"Failed to load config: {e}")
                return self._default_config()
        else:
            return self._default_config()

    def save(self) -> None:
        """Save configuration to file."""
        try:
            with open(self.config_file, 'w') as f:
                json.dump(self.data, f, indent=2)
            logger.info(f"Configuration saved to {self.config_file}")
        except Exception as e:
            logger.error(f"Failed to save config: {e}")

    def _default_config(self) -> Dict[str, Any]:
        """Return default configuration."""
        return {
            "remote": {
                "strict_languages": list(DEFAULT_STRICT_LANGUAGES),
                "probe_timeout_ms": DEFAULT_PROBE_TIMEOUT_MS,
            }
        }

    def _remote_section(self) -> Dict[str, Any]:
        section = self.data.get("remote", {})
        return section if isinstance(section, dict) else {}

    def get_settings_dir(self) -> str:
        """Get user settings directory (ENV > smartchecker.json > default)."""
        # Environment variable takes precedence
        env_path = os.getenv('SMARTCHECKER_SETTINGS_DIR')
        if env_path:
            return env_path

        # Config file second
        paths = self.data.get('paths', {})
        config_path = paths.get('settings_dir') if isinstance(paths, dict) else None
        if isinstance(config_path, str) and config_path:
            return config_path

        # Default last
        return DEFAULT_SETTINGS_DIR

    def get_remote_endpoint(self, file_type: FileType) -> Optional[RemoteEndpoint]:
        """
        Endpoint URLs for one language.

        Each URL resolves independently: SMARTCHECKER_<LANG>_<KIND>_URL env var >
        remote.<lang>.<kind>_url > built-in default.
        """
        defaults = DEFAULT_REMOTE_ENDPOINTS.get(file_type.value)
        section = self._remote_section().get(file_type.value, {})
        if not isinstance(section, dict):
            section = {}

        urls = {}
        for kind in ("check_url", "status_url"):
            env_name = f"SMARTCHECKER_{file_type.value.upper()}_{kind.upper()}"
            urls[kind] = os.getenv(env_name) or section.get(kind) or (defaults or {}).get(kind)

        if not urls["check_url"]:
            return None
        return RemoteEndpoint(
            check_url=urls["check_url"],
            status_url=urls["status_url"] or urls["check_url"],
        )

    def get_remote_endpoints(self) -> Dict[FileType, RemoteEndpoint]:
        """Endpoints for every language that has a remote capability."""
        endpoints = {}
        for file_type in CHECKER_TYPES:
            endpoint = self.get_remote_endpoint(file_type)
            if endpoint is not None:
                endpoints[file_type] = endpoint
        return endpoints

    def get_strict_languages(self) -> List[str]:
        """Languages whose remote failures raise (ENV > smartchecker.json > default)."""
        env_value = os.getenv('SMARTCHECKER_STRICT_LANGUAGES')
        if env_value is not None:
            return [name.strip().lower() for name in env_value.split(",") if name.strip()]

        configured = self._remote_section().get("strict_languages")
        if isinstance(configured, list):
            return [str(name).lower() for name in configured]

        return list(DEFAULT_STRICT_LANGUAGES)

    def get_strict_file_types(self) -> List[FileType]:
        file_types = []
        for name in self.get_strict_languages():
            try:
                file_types.append(FileType(name))
            except ValueError:
                logger.warning(f"Ignoring unknown strict language: {name}")
        return file_types

    def get_probe_timeout_ms(self) -> int:
        """Probe timeout (ENV > smartchecker.json > default)."""
        env_value = os.getenv('SMARTCHECKER_PROBE_TIMEOUT_MS')
        if env_value:
            try:
                return max(int(env_value), 1)
            except ValueError:
                logger.warning(f"Invalid SMARTCHECKER_PROBE_TIMEOUT_MS: {env_value}")

        configured = self._remote_section().get("probe_timeout_ms")
        if isinstance(configured, int) and configured > 0:
            return configured

        return DEFAULT_PROBE_TIMEOUT_MS

    def set_remote_endpoint(self, language: str, check_url: str, status_url: Optional[str] = None) -> None:
        """Set endpoint URLs for a language in smartchecker.json."""
        remote = self.data.setdefault("remote", {})
        entry = remote.setdefault(language, {})
        entry["check_url"] = check_url
        if status_url:
            entry["status_url"] = status_url
        self.save()


# Global config instance
config = Config()
