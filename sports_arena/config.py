"""
Desk configuration: a JSON file merged over built-in defaults, with
environment variables taking precedence over both.
"""

import copy
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Tuple

logger = logging.getLogger(__name__)

# Environment variable -> configuration path
ENV_OVERRIDES: Dict[str, Tuple[str, ...]] = {
    "APP_NAME": ("app_name",),
    "BACKEND_URL": ("backend", "url"),
    "REQUEST_TIMEOUT": ("backend", "request_timeout"),
    "POLL_INTERVAL": ("polling", "arena_interval"),
    "LIVE_POLL_INTERVAL": ("polling", "live_interval"),
    "REALTIME_ENABLED": ("features", "realtime_enabled"),
    "REGISTRATION_ENABLED": ("features", "registration_enabled"),
    "TOURNAMENTS_ENABLED": ("features", "tournaments_enabled"),
    "SESSION_DB": ("session", "db_path"),
    "SESSION_TTL_HOURS": ("session", "session_ttl_hours"),
    "SESSION_VERIFY_INTERVAL": ("session", "verify_interval"),
    "THEME": ("ui", "theme"),
    "HISTORY_PAGE_SIZE": ("ui", "history_page_size"),
}

THEMES = ("arena", "classic", "minimal")

# Settings that must be positive numbers, with their fallback
POSITIVE_SETTINGS = (
    (("backend", "request_timeout"), 10),
    (("polling", "arena_interval"), 2),
    (("polling", "live_interval"), 1),
    (("session", "session_ttl_hours"), 168),
    (("session", "verify_interval"), 300),
    (("ui", "history_page_size"), 50),
)


def merge_into(target: Dict[str, Any], overrides: Dict[str, Any]) -> None:
    """
    Merge ``overrides`` into ``target`` in place, descending into nested sections.

    @param target: Dictionary receiving the values
    @param overrides: Dictionary whose values win
    """
    for key, value in overrides.items():
        current = target.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merge_into(current, value)
        else:
            target[key] = value


def coerce_env_value(value: str) -> Any:
    """
    Turn an environment string into a bool or int where it looks like one.

    @param value: Raw environment value
    @return: True/False, an int, or the original string
    """
    lowered = value.strip().lower()
    if lowered in ("true", "yes", "on"):
        return True
    if lowered in ("false", "no", "off"):
        return False
    try:
        return int(lowered)
    except ValueError:
        return value


class ArenaConfig:
    """Configuration for the scorekeeping desk."""

    DEFAULT_CONFIG = {
        "app_name": "Sports Arena",
        "backend": {
            "url": "http://localhost:5000",
            "request_timeout": 10,  # seconds
        },
        "polling": {
            "arena_interval": 2,  # seconds between match-by-id polls
            "live_interval": 1,  # seconds between live board refreshes
        },
        "features": {
            "realtime_enabled": True,
            "registration_enabled": True,
            "tournaments_enabled": True,
        },
        "session": {
            "db_path": "sessions.db",
            "cookie_name": "arena_session",
            "session_ttl_hours": 168,
            "verify_interval": 300,  # seconds between profile re-checks
        },
        "ui": {
            "theme": "arena",
            "history_page_size": 50,
        },
    }

    def __init__(self, config_path: str = "arena_config.json") -> None:
        self.config_path = Path(config_path)
        self.config = copy.deepcopy(self.DEFAULT_CONFIG)

        file_values = self._read_file()
        if file_values is None:
            self._write(self.DEFAULT_CONFIG)
        else:
            merge_into(self.config, file_values)

        for env_var, path in ENV_OVERRIDES.items():
            raw = os.getenv(env_var)
            if raw is not None:
                self._set(path, coerce_env_value(raw))

        self._validate()

    def _read_file(self) -> Any:
        """
        Read the JSON file.

        @return: Parsed object, {} when unreadable, None when the file is missing
        """
        if not self.config_path.exists():
            return None
        try:
            with open(self.config_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            logger.error("Error loading config from %s, using defaults: %s", self.config_path, e)
            return {}
        if not isinstance(data, dict):
            logger.error("Config file %s is not a JSON object, using defaults", self.config_path)
            return {}
        return data

    def _write(self, data: Dict[str, Any]) -> bool:
        try:
            with open(self.config_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
        except IOError as e:
            logger.warning("Could not write config file %s: %s", self.config_path, e)
            return False
        return True

    def _set(self, path: Tuple[str, ...], value: Any) -> None:
        section = self.config
        for key in path[:-1]:
            section = section.setdefault(key, {})
        section[path[-1]] = value

    def _validate(self) -> None:
        """Replace invalid values with their defaults, logging each one."""
        url = self.get("backend", "url")
        if isinstance(url, str) and url.startswith(("http://", "https://")):
            self._set(("backend", "url"), url.rstrip("/"))
        else:
            logger.warning("Invalid backend url %r, using http://localhost:5000", url)
            self._set(("backend", "url"), "http://localhost:5000")

        for path, fallback in POSITIVE_SETTINGS:
            value = self.get(*path)
            if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
                logger.warning("Invalid %s %r, using %s", ".".join(path), value, fallback)
                self._set(path, fallback)

        if self.get("ui", "theme") not in THEMES:
            logger.warning("Invalid theme, using 'arena'")
            self._set(("ui", "theme"), "arena")

    def get(self, *keys: str) -> Any:
        """
        Look up a nested value.

        @param keys: Section and key names, outermost first
        @return: The value, or None when any key is missing
        """
        value: Any = self.config
        for key in keys:
            if not isinstance(value, dict):
                return None
            value = value.get(key)
        return value

    def is_feature_enabled(self, feature_name: str) -> bool:
        return self.get("features", feature_name) is True

    @property
    def backend_url(self) -> str:
        return self.get("backend", "url")

    def save_config(self) -> bool:
        """Write the current configuration back to the file."""
        return self._write(self.config)
