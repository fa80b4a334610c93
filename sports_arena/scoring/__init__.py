"""
Per-sport scoring engines.
"""

from typing import Any, Mapping, Optional

from ..sports import get_sport
from .base import DRAW, MANUAL_END_REASON, MatchStatus, ScoringEngine, Side
from .chess import ChessEngine
from .cricket import CricketEngine
from .rally import BadmintonEngine, RallyEngine, TableTennisEngine, VolleyballEngine
from .timed import BasketballEngine, FootballEngine, TimedEngine

ENGINES = {
    engine.sport: engine
    for engine in (
        CricketEngine,
        FootballEngine,
        BasketballEngine,
        ChessEngine,
        VolleyballEngine,
        BadmintonEngine,
        TableTennisEngine,
    )
}


def create_engine(
    sport: str,
    settings: Optional[Mapping[str, Any]] = None,
) -> ScoringEngine:
    """
    Build the scoring engine for a sport.

    @param sport: Sport slug
    @param settings: Raw match settings, validated by the engine
    @return: Fresh engine
    """
    get_sport(sport)
    return ENGINES[sport](settings)


__all__ = [
    "DRAW",
    "MANUAL_END_REASON",
    "MatchStatus",
    "ScoringEngine",
    "Side",
    "RallyEngine",
    "TimedEngine",
    "CricketEngine",
    "FootballEngine",
    "BasketballEngine",
    "ChessEngine",
    "VolleyballEngine",
    "BadmintonEngine",
    "TableTennisEngine",
    "create_engine",
]
