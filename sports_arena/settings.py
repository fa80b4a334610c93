"""
Per-sport match settings with defaults and allowed ranges.
"""

from typing import Any, Dict, Mapping, Optional, Tuple

from .errors import SettingsError
from .sports import get_sport

# sport -> key -> (default, minimum, maximum, label)
SETTINGS_SCHEMA: Dict[str, Dict[str, Tuple[int, int, int, str]]] = {
    "football": {
        "halfDuration": (45, 1, 90, "Half Duration (minutes)"),
        "totalHalves": (2, 1, 4, "Total Halves"),
    },
    "basketball": {
        "quarterDuration": (12, 1, 20, "Quarter Duration (minutes)"),
        "totalQuarters": (4, 1, 8, "Total Quarters"),
    },
    "cricket": {
        "totalOvers": (20, 1, 50, "Total Overs"),
    },
    "volleyball": {
        "totalSets": (5, 1, 7, "Total Sets (Best of)"),
        "pointsPerSet": (25, 15, 30, "Points per Set"),
    },
    "badminton": {
        "totalGames": (3, 1, 5, "Total Games (Best of)"),
        "pointsPerGame": (21, 11, 30, "Points per Game"),
    },
    "table-tennis": {
        "totalGames": (5, 1, 7, "Total Games (Best of)"),
        "pointsPerGame": (11, 11, 21, "Points per Game"),
    },
    "chess": {
        "timeControl": (30, 1, 180, "Time Control (minutes per player)"),
        "increment": (0, 0, 60, "Increment (seconds per move)"),
    },
}


def default_settings(sport: str) -> Dict[str, int]:
    """
    Default settings for a sport.

    @param sport: Sport slug
    @return: Dictionary of setting name to default value
    """
    get_sport(sport)
    return {key: entry[0] for key, entry in SETTINGS_SCHEMA[sport].items()}


def settings_fields(sport: str) -> list:
    """Form field descriptions for the settings dialog."""
    get_sport(sport)
    return [
        {"key": key, "default": default, "min": low, "max": high, "label": label}
        for key, (default, low, high, label) in SETTINGS_SCHEMA[sport].items()
    ]


def parse_settings(
    sport: str,
    raw: Optional[Mapping[str, Any]] = None,
) -> Dict[str, int]:
    """
    Merge raw values over the sport defaults and validate them.

    Empty strings keep the default so a partially filled form is accepted.

    @param sport: Sport slug
    @param raw: Mapping of setting name to value (form strings or ints)
    @return: Validated settings
    """
    settings = default_settings(sport)
    schema = SETTINGS_SCHEMA[sport]

    for key, value in (raw or {}).items():
        if key not in schema:
            raise SettingsError(f"Unknown {sport} setting: {key}")
        if value is None or (isinstance(value, str) and not value.strip()):
            continue
        if isinstance(value, bool):
            raise SettingsError(f"{schema[key][3]} must be a whole number")
        try:
            number = int(value)
        except (TypeError, ValueError):
            raise SettingsError(f"{schema[key][3]} must be a whole number") from None

        _, low, high, label = schema[key]
        if not low <= number <= high:
            raise SettingsError(f"{label} must be between {low} and {high}")
        settings[key] = number

    return settings
