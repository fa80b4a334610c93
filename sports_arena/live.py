"""
Live scoreboard: every match currently in progress, kept fresh by polling
and by push events.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional

from .api_client import BackendClient
from .sports import SPORTS, sport_icon, sport_name

logger = logging.getLogger(__name__)


def match_score(match: Mapping[str, Any]) -> Dict[str, Any]:
    """Score block of a match: ``score`` on live records, else the sport's own field."""
    score = match.get("score")
    if isinstance(score, dict):
        return score
    sport = SPORTS.get(match.get("sport", ""))
    if sport:
        score = match.get(sport.score_field)
        if isinstance(score, dict):
            return score
    return {}


def _side_value(score: Mapping[str, Any], side: str, key: str) -> Any:
    entry = score.get(side) or {}
    return entry.get(key) or 0


def format_score(match: Mapping[str, Any]) -> str:
    """
    One-line score for the live board.

    @param match: Live match record
    @return: Display string such as "120/3" or "2 - 1"
    """
    score = match_score(match)
    sport = match.get("sport")

    if sport == "cricket":
        return f"{score.get('runs') or 0}/{score.get('wickets') or 0}"
    if sport == "football":
        return f"{_side_value(score, 'teamA', 'goals')} - {_side_value(score, 'teamB', 'goals')}"
    if sport in ("basketball", "volleyball"):
        return f"{_side_value(score, 'teamA', 'points')} - {_side_value(score, 'teamB', 'points')}"
    if sport in ("badminton", "table-tennis"):
        return f"{_side_value(score, 'playerA', 'points')} - {_side_value(score, 'playerB', 'points')}"
    if sport == "chess":
        return score.get("result") or "Ongoing"
    return "0 - 0"


def side_names(match: Mapping[str, Any]) -> List[str]:
    """Names of both sides, falling back to "Team A" / "Player A" style labels."""
    sport = SPORTS.get(match.get("sport", ""))
    keys = sport.side_keys if sport else ("teamA", "teamB")
    noun = "Player" if keys[0] == "playerA" else "Team"
    names = []
    for key, letter in zip(keys, "AB"):
        entry = match.get(key) or {}
        names.append(entry.get("name") or f"{noun} {letter}")
    return names


class LiveBoard:
    """In-memory list of live matches."""

    def __init__(self, client: BackendClient) -> None:
        self.client = client
        self.matches: List[Dict[str, Any]] = []

    async def refresh(self, token: Optional[str] = None) -> List[Dict[str, Any]]:
        """
        Replace the board with the backend's live matches.

        @param token: Bearer token
        @return: Current live matches
        """
        matches = await self.client.live_matches(token)
        self.matches = [dict(match) for match in matches if isinstance(match, dict)]
        logger.debug("Live board refreshed: %d matches", len(self.matches))
        return self.matches

    def _index(self, match_id: Any) -> Optional[int]:
        for index, match in enumerate(self.matches):
            if match.get("_id") == match_id:
                return index
        return None

    def apply_event(self, event: str, data: Any) -> None:
        """
        Merge a push event into the board.

        @param event: live-score-update, match-started or match-ended
        @param data: Event payload carrying ``matchId``
        """
        if not isinstance(data, dict):
            return
        match_id = data.get("matchId")
        index = self._index(match_id)

        if event == "live-score-update":
            if index is None:
                self.matches.append({"_id": match_id, **data})
            else:
                self.matches[index] = {**self.matches[index], **data}
        elif event == "match-started":
            if index is None:
                self.matches.append({"_id": match_id, **data})
            else:
                self.matches[index]["status"] = "live"
        elif event == "match-ended":
            self.matches = [m for m in self.matches if m.get("_id") != match_id]

    def rows(self) -> List[Dict[str, Any]]:
        """Rows for the live page and the JSON endpoint."""
        rows = []
        for match in self.matches:
            sport = match.get("sport", "")
            first, second = side_names(match)
            rows.append(
                {
                    "id": match.get("_id"),
                    "sport": sport,
                    "sportName": sport_name(sport),
                    "icon": sport_icon(sport),
                    "sideA": first,
                    "sideB": second,
                    "score": format_score(match),
                    "status": match.get("status", "live"),
                    "startTime": match.get("startTime"),
                }
            )
        return rows
