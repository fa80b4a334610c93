"""
Rally scoring for volleyball, badminton and table tennis.
"""

from typing import Any, Dict, Mapping, Optional

from ..errors import ScoringError
from .base import ScoringEngine, Side, _int, _section


class RallyEngine(ScoringEngine):
    """
    Point-per-rally engine shared by the net and table sports.

    A set (or game) goes to the first side reaching the target with a two
    point lead, optionally ended early at ``cap`` points. The match goes to
    the first side winning a majority of the best-of count.
    """

    ACTIONS = {"point": "_point"}
    reconciles = False

    unit = "set"  # "set" or "game"
    best_of_key = ""
    points_key = ""
    side_keys = ("teamA", "teamB")

    def reset(self) -> None:
        self.points = {Side.TEAM_A: 0, Side.TEAM_B: 0}
        self.won = {Side.TEAM_A: 0, Side.TEAM_B: 0}
        self.unit_scores = []
        self.current = 1
        self.serving = Side.TEAM_A

    # -- rules ----------------------------------------------------------

    @property
    def best_of(self) -> int:
        return self.settings[self.best_of_key]

    @property
    def needed(self) -> int:
        """Sets or games needed to take the match."""
        return self.best_of // 2 + 1

    def target(self) -> int:
        return self.settings[self.points_key]

    def cap(self) -> Optional[int]:
        return None

    def unit_won_by(self, side: Side) -> bool:
        mine = self.points[side]
        theirs = self.points[side.other]
        cap = self.cap()
        if cap is not None and mine >= cap:
            return True
        return mine >= self.target() and mine - theirs >= 2

    def first_server(self, unit_number: int) -> Side:
        """Side serving first in the given set/game; alternates from side A."""
        return Side.TEAM_A if unit_number % 2 == 1 else Side.TEAM_B

    def next_server(self, scorer: Side) -> Side:
        """Server after ``scorer`` won a rally that did not end the set."""
        return scorer

    # -- actions --------------------------------------------------------

    def _point(self, side: Any = None, **_: Any) -> Dict[str, Any]:
        if side is None:
            raise ScoringError("A point must be credited to a side")
        side = Side.parse(side)
        self.points[side] += 1

        if self.unit_won_by(side):
            self.unit_scores.append(
                {
                    self.side_keys[0]: self.points[Side.TEAM_A],
                    self.side_keys[1]: self.points[Side.TEAM_B],
                }
            )
            self.won[side] += 1
            self.points = {Side.TEAM_A: 0, Side.TEAM_B: 0}

            if self.won[side] >= self.needed:
                self.complete(
                    side.value,
                    f"Won {self.won[side]}-{self.won[side.other]} in {self.unit}s",
                )
            else:
                self.current += 1
                self.serving = self.unit_start_server(side)
        else:
            self.serving = self.next_server(side)

        return self.snapshot()

    def unit_start_server(self, last_winner: Side) -> Side:
        return self.first_server(self.current)

    def leader(self) -> Optional[Side]:
        a, b = self.won[Side.TEAM_A], self.won[Side.TEAM_B]
        if a == b:
            return None
        return Side.TEAM_A if a > b else Side.TEAM_B

    # -- wire form ------------------------------------------------------

    @property
    def won_key(self) -> str:
        return f"{self.unit}s"

    @property
    def scores_key(self) -> str:
        return f"{self.unit}Scores"

    @property
    def current_key(self) -> str:
        return f"current{self.unit.capitalize()}"

    def _side_key(self, side: Side) -> str:
        return self.side_keys[0] if side is Side.TEAM_A else self.side_keys[1]

    def snapshot(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        for side in Side:
            data[self._side_key(side)] = {
                "points": self.points[side],
                self.won_key: self.won[side],
            }
        data[self.scores_key] = [dict(entry) for entry in self.unit_scores]
        data[self.current_key] = self.current
        data["serving"] = self._side_key(self.serving)
        return data

    def load(self, data: Optional[Mapping[str, Any]]) -> None:
        self.reset()
        if not data:
            return
        for side in Side:
            entry = _section(data, self._side_key(side))
            self.points[side] = _int(entry.get("points"))
            self.won[side] = _int(entry.get(self.won_key))
        entries = data.get(self.scores_key)
        self.unit_scores = [
            {
                self.side_keys[0]: _int(entry.get(self.side_keys[0])),
                self.side_keys[1]: _int(entry.get(self.side_keys[1])),
            }
            for entry in (entries if isinstance(entries, list) else [])
            if isinstance(entry, dict)
        ]
        self.current = _int(
            data.get(self.current_key),
            self.won[Side.TEAM_A] + self.won[Side.TEAM_B] + 1,
        )
        self.serving = self.first_server(self.current)
        if data.get("serving"):
            try:
                self.serving = Side.parse(data["serving"])
            except ScoringError:
                pass


class VolleyballEngine(RallyEngine):
    """Sets to ``pointsPerSet``; the deciding set is played to 15."""

    sport = "volleyball"
    unit = "set"
    best_of_key = "totalSets"
    points_key = "pointsPerSet"
    DECIDING_SET_POINTS = 15

    def target(self) -> int:
        if self.best_of > 1 and self.current == self.best_of:
            return self.DECIDING_SET_POINTS
        return self.settings[self.points_key]


class BadmintonEngine(RallyEngine):
    """Games to ``pointsPerGame``, ending at a cap nine points above it."""

    sport = "badminton"
    unit = "game"
    best_of_key = "totalGames"
    points_key = "pointsPerGame"
    side_keys = ("playerA", "playerB")

    def cap(self) -> Optional[int]:
        return self.settings[self.points_key] + 9

    def unit_start_server(self, last_winner: Side) -> Side:
        return last_winner


class TableTennisEngine(RallyEngine):
    """
    Games to ``pointsPerGame``. Service changes every two points, and
    every point once both players reach deuce.
    """

    sport = "table-tennis"
    unit = "game"
    best_of_key = "totalGames"
    points_key = "pointsPerGame"
    side_keys = ("playerA", "playerB")

    def _server_for_points(self) -> Side:
        first = self.first_server(self.current)
        total = self.points[Side.TEAM_A] + self.points[Side.TEAM_B]
        deuce = self.target() - 1
        if self.points[Side.TEAM_A] >= deuce and self.points[Side.TEAM_B] >= deuce:
            index = total % 2
        else:
            index = (total // 2) % 2
        return first if index == 0 else first.other

    def next_server(self, scorer: Side) -> Side:
        return self._server_for_points()
