"""
Exception hierarchy for the scorekeeping desk.
"""

from typing import Optional


class ArenaError(Exception):
    """Base class for all desk errors."""


class ApiError(ArenaError):
    """Backend request failed (non-2xx, ``success: false`` or transport)."""

    def __init__(self, status: Optional[int], message: str) -> None:
        super().__init__(message)
        self.status = status
        self.message = message

    def __str__(self) -> str:
        if self.status is None:
            return self.message
        return f"{self.message} (HTTP {self.status})"


class ScoringError(ArenaError):
    """Scoring action rejected by a sport engine."""


class SettingsError(ArenaError):
    """Match settings failed validation."""


class UnknownSportError(ArenaError):
    """Sport slug is not one of the supported arenas."""


class NamesRequiredError(ArenaError):
    """Both team or player names must be given before a match starts."""


class ValidationError(ArenaError):
    """Form input failed validation."""
