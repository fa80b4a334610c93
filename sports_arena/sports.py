"""
Registry of the sports that have an arena.
"""

from dataclasses import dataclass
from typing import Dict, List, Tuple

from .errors import UnknownSportError


@dataclass(frozen=True)
class Sport:
    """Static description of one arena."""

    slug: str
    name: str
    icon: str
    description: str
    participants: str  # "teams" or "players"
    score_field: str
    venue: str
    # Keys naming the two sides in match records and score snapshots.
    side_keys: Tuple[str, str] = ("teamA", "teamB")


SPORTS: Dict[str, Sport] = {
    sport.slug: sport
    for sport in (
        Sport(
            "cricket", "Cricket", "\U0001F3CF",
            "Runs, wickets, overs and extras, ball by ball.",
            "teams", "cricketScore", "Cricket Ground",
        ),
        Sport(
            "football", "Football", "⚽",
            "Goals and cards across timed halves.",
            "teams", "footballScore", "Football Stadium",
        ),
        Sport(
            "basketball", "Basketball", "\U0001F3C0",
            "One, two and three pointers, fouls and quarters.",
            "teams", "basketballScore", "Basketball Court",
        ),
        Sport(
            "volleyball", "Volleyball", "\U0001F3D0",
            "Rally scoring to 25 with a deciding set to 15.",
            "teams", "volleyballScore", "Volleyball Court",
        ),
        Sport(
            "table-tennis", "Table Tennis", "\U0001F3D3",
            "Games to 11, service changing every two points.",
            "players", "tableTennisScore", "Table Tennis Hall",
            ("playerA", "playerB"),
        ),
        Sport(
            "chess", "Chess", "♟️",
            "Result and a two-sided clock with increment.",
            "players", "chessScore", "Chess Board",
        ),
        Sport(
            "badminton", "Badminton", "\U0001F3F8",
            "Games to 21, capped at 30.",
            "players", "badmintonScore", "Badminton Court",
            ("playerA", "playerB"),
        ),
    )
}

DEFAULT_ICON = "\U0001F3C6"


def get_sport(slug: str) -> Sport:
    """
    Look up a sport by slug.

    @param slug: Sport slug such as "table-tennis"
    @return: Sport description
    """
    try:
        return SPORTS[slug]
    except KeyError:
        raise UnknownSportError(f"Unknown sport: {slug}") from None


def all_sports() -> List[Sport]:
    return list(SPORTS.values())


def sport_name(slug: str) -> str:
    sport = SPORTS.get(slug)
    return sport.name if sport else slug


def sport_icon(slug: str) -> str:
    sport = SPORTS.get(slug)
    return sport.icon if sport else DEFAULT_ICON
