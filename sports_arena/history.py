"""
Completed match history.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional

from .api_client import BackendClient
from .live import side_names
from .sports import SPORTS, sport_icon, sport_name

logger = logging.getLogger(__name__)

ALL = "all"


def _clock(seconds: Any) -> str:
    try:
        seconds = max(0, int(seconds or 0))
    except (TypeError, ValueError):
        seconds = 0
    return f"{seconds // 60}:{seconds % 60:02d}"


def _breakdown(entries: Any, label: str, keys) -> str:
    parts = []
    for number, entry in enumerate(entries or [], start=1):
        entry = entry or {}
        parts.append(f"{label} {number}: {entry.get(keys[0], 0)}-{entry.get(keys[1], 0)}")
    return ", ".join(parts)


def final_score(match: Mapping[str, Any]) -> Dict[str, str]:
    """
    Final score of a completed match, one display string per side.

    Rally sports add a ``details`` breakdown of every set or game; chess
    reports the result and both clocks.

    @param match: Completed match record
    @return: Dictionary with ``a`` and ``b`` and optionally ``details``
    """
    sport = match.get("sport")
    info = SPORTS.get(sport or "")
    score = (match.get(info.score_field) if info else None) or {}

    def side(key: str, field: str) -> Any:
        return (score.get(key) or {}).get(field) or 0

    if sport == "cricket":
        line = f"{score.get('runs') or 0}/{score.get('wickets') or 0}"
        first = score.get("firstInnings") or {}
        if first:
            return {
                "a": f"{first.get('runs') or 0}/{first.get('wickets') or 0}",
                "b": line,
            }
        return {"a": line, "b": line}
    if sport == "football":
        return {"a": str(side("teamA", "goals")), "b": str(side("teamB", "goals"))}
    if sport == "basketball":
        return {"a": str(side("teamA", "points")), "b": str(side("teamB", "points"))}
    if sport == "volleyball":
        return {
            "a": f"{side('teamA', 'sets')} sets",
            "b": f"{side('teamB', 'sets')} sets",
            "details": _breakdown(score.get("setScores"), "Set", ("teamA", "teamB"))
            or "No set scores available",
        }
    if sport in ("badminton", "table-tennis"):
        return {
            "a": f"{side('playerA', 'games')} games",
            "b": f"{side('playerB', 'games')} games",
            "details": _breakdown(score.get("gameScores"), "Game", ("playerA", "playerB"))
            or "No game scores available",
        }
    if sport == "chess":
        return {
            "a": score.get("result") or "Draw",
            "b": f"White: {_clock(score.get('whiteTime'))} | Black: {_clock(score.get('blackTime'))}",
        }
    return {"a": "N/A", "b": "N/A"}


def winner_label(match: Mapping[str, Any]) -> Optional[str]:
    winner = match.get("winner")
    if not winner:
        return None
    if winner == "draw":
        return "Draw"
    first, second = side_names(match)
    if winner in ("teamA", "playerA"):
        return first
    if winner in ("teamB", "playerB"):
        return second
    return str(winner)


class MatchHistory:
    """Completed matches fetched from the backend."""

    def __init__(self, client: BackendClient) -> None:
        self.client = client
        self.matches: List[Dict[str, Any]] = []

    async def refresh(self, token: Optional[str] = None) -> List[Dict[str, Any]]:
        matches = await self.client.list_matches(token)
        self.matches = [
            m for m in matches if isinstance(m, dict) and m.get("status") == "completed"
        ]
        logger.debug("History refreshed: %d completed matches", len(self.matches))
        return self.matches

    def filtered(self, sport: str = ALL) -> List[Dict[str, Any]]:
        if not sport or sport == ALL:
            return list(self.matches)
        return [m for m in self.matches if m.get("sport") == sport]

    async def delete(self, match_id: str, token: Optional[str] = None) -> None:
        """
        Delete a match on the backend, then drop it from the list.

        A failed delete raises and leaves the list untouched.
        """
        await self.client.delete_match(match_id, token)
        self.matches = [m for m in self.matches if m.get("_id") != match_id]
        logger.info("Match %s deleted", match_id)

    def rows(self, sport: str = ALL) -> List[Dict[str, Any]]:
        rows = []
        for match in self.filtered(sport):
            slug = match.get("sport", "")
            first, second = side_names(match)
            rows.append(
                {
                    "id": match.get("_id"),
                    "sport": slug,
                    "sportName": sport_name(slug),
                    "icon": sport_icon(slug),
                    "sideA": first,
                    "sideB": second,
                    "score": final_score(match),
                    "winner": winner_label(match),
                    "winningReason": match.get("winningReason"),
                    "endTime": match.get("endTime") or match.get("updatedAt"),
                }
            )
        return rows
