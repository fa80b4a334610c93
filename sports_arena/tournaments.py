"""
Tournament listing and creation.
"""

import logging
from datetime import date
from typing import Any, Dict, List, Mapping, Optional

from .api_client import BackendClient
from .errors import ValidationError
from .sports import SPORTS

logger = logging.getLogger(__name__)

FORMATS = ("knockout", "league", "round-robin")
REQUIRED_FIELDS = ("name", "sport", "format", "startDate", "endDate")


def _parse_date(value: str, label: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise ValidationError(f"{label} must be a date (YYYY-MM-DD)") from None


def validate_tournament(form: Mapping[str, Any]) -> Dict[str, str]:
    """
    Check a tournament form and build the create payload.

    @param form: Raw form values
    @return: Payload for the backend
    """
    data = {key: str(form.get(key) or "").strip() for key in REQUIRED_FIELDS + ("venue", "description")}

    missing = [key for key in REQUIRED_FIELDS if not data[key]]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")
    if data["sport"] not in SPORTS:
        raise ValidationError(f"Unknown sport: {data['sport']}")
    if data["format"] not in FORMATS:
        raise ValidationError(f"Format must be one of: {', '.join(FORMATS)}")

    start = _parse_date(data["startDate"], "Start date")
    end = _parse_date(data["endDate"], "End date")
    if end < start:
        raise ValidationError("End date cannot be before the start date")

    return {key: value for key, value in data.items() if value}


class TournamentManager:
    def __init__(self, client: BackendClient) -> None:
        self.client = client

    async def list(self, token: Optional[str] = None) -> List[Dict[str, Any]]:
        tournaments = await self.client.list_tournaments(token)
        return [t for t in tournaments if isinstance(t, dict)]

    async def create(self, form: Mapping[str, Any], token: Optional[str] = None) -> Dict[str, Any]:
        """
        Validate and create a tournament.

        @param form: Raw form values
        @param token: Admin bearer token
        @return: Created tournament record
        """
        payload = validate_tournament(form)
        tournament = await self.client.create_tournament(payload, token)
        logger.info("Tournament created: %s", payload["name"])
        return tournament
