"""
Clock-driven scoring for football and basketball.
"""

from typing import Any, Dict, Mapping, Optional

from ..errors import ScoringError
from .base import ScoringEngine, Side, _int, _section


def ordinal(number: int) -> str:
    if 10 <= number % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(number % 10, "th")
    return f"{number}{suffix}"


class TimedEngine(ScoringEngine):
    """
    Match split into equal timed periods.

    The running clock reports elapsed seconds through ``set_time``; when a
    period runs out ``complete_period`` moves to the next one or, after the
    last, completes the match for the side ahead.
    """

    timed = True

    duration_key = ""
    count_key = ""
    full_time_reason = "Full time"

    def reset(self) -> None:
        self.period = 1
        self.time = 0
        self._reset_sides()

    def _reset_sides(self) -> None:
        raise NotImplementedError

    @property
    def period_seconds(self) -> int:
        return self.settings[self.duration_key] * 60

    @property
    def total_periods(self) -> int:
        return self.settings[self.count_key]

    def period_label(self, number: Optional[int] = None) -> str:
        raise NotImplementedError

    def time_payload(self) -> Dict[str, Any]:
        raise NotImplementedError

    def set_time(self, seconds: int) -> Dict[str, Any]:
        """
        Record elapsed seconds of the current period.

        @param seconds: Elapsed seconds reported by the clock
        @return: Details payload for the ``time`` update
        """
        if self.finished:
            raise ScoringError("Match is already completed")
        self.time = max(0, min(int(seconds), self.period_seconds))
        return self.time_payload()

    def complete_period(self) -> bool:
        """
        Close the current period.

        @return: True when that was the last period and the match is over
        """
        if self.finished:
            return True
        if self.period < self.total_periods:
            self.period += 1
            self.time = 0
            return False
        self.time = self.period_seconds
        self.complete(self.leader_name(), self.full_time_reason)
        return True


class FootballEngine(TimedEngine):
    sport = "football"
    ACTIONS = {"goal": "_goal", "card": "_card"}
    duration_key = "halfDuration"
    count_key = "totalHalves"
    full_time_reason = "Full time"

    def _reset_sides(self) -> None:
        self.goals = {Side.TEAM_A: 0, Side.TEAM_B: 0}
        self.cards = {
            Side.TEAM_A: {"yellow": 0, "red": 0},
            Side.TEAM_B: {"yellow": 0, "red": 0},
        }

    def period_label(self, number: Optional[int] = None) -> str:
        return f"{ordinal(number or self.period)} Half"

    def _goal(self, side: Any = None, **_: Any) -> Dict[str, Any]:
        side = Side.parse(side)
        self.goals[side] += 1
        return {"goals": self.goals[side]}

    def _card(self, side: Any = None, color: str = "yellow", **_: Any) -> Dict[str, Any]:
        side = Side.parse(side)
        if color not in ("yellow", "red"):
            raise ScoringError("Card must be yellow or red")
        self.cards[side][color] += 1
        return {"card": color, "cards": dict(self.cards[side])}

    def leader(self) -> Optional[Side]:
        a, b = self.goals[Side.TEAM_A], self.goals[Side.TEAM_B]
        if a == b:
            return None
        return Side.TEAM_A if a > b else Side.TEAM_B

    def time_payload(self) -> Dict[str, Any]:
        return {"time": self.time, "period": self.period_label()}

    def snapshot(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            side.value: {"goals": self.goals[side], "cards": dict(self.cards[side])}
            for side in Side
        }
        data["half"] = self.period
        data["period"] = self.period_label()
        data["time"] = self.time
        return data

    def load(self, data: Optional[Mapping[str, Any]]) -> None:
        self.reset()
        if not data:
            return
        for side in Side:
            entry = _section(data, side.value)
            self.goals[side] = _int(entry.get("goals"))
            cards = _section(entry, "cards")
            self.cards[side] = {
                "yellow": _int(cards.get("yellow")),
                "red": _int(cards.get("red")),
            }
        self.period = max(1, _int(data.get("half"), 1))
        self.time = _int(data.get("time"))


class BasketballEngine(TimedEngine):
    sport = "basketball"
    ACTIONS = {"points": "_points", "foul": "_foul"}
    duration_key = "quarterDuration"
    count_key = "totalQuarters"
    full_time_reason = "Game completed"

    def _reset_sides(self) -> None:
        self.points = {Side.TEAM_A: 0, Side.TEAM_B: 0}
        self.fouls = {Side.TEAM_A: 0, Side.TEAM_B: 0}

    def period_label(self, number: Optional[int] = None) -> str:
        return f"Q{number or self.period}"

    def _points(self, side: Any = None, points: Any = 2, **_: Any) -> Dict[str, Any]:
        side = Side.parse(side)
        points = _int(points, -1)
        if points not in (1, 2, 3):
            raise ScoringError("A basket is worth 1, 2 or 3 points")
        self.points[side] += points
        return {"points": points}

    def _foul(self, side: Any = None, **_: Any) -> Dict[str, Any]:
        side = Side.parse(side)
        self.fouls[side] += 1
        return {"fouls": self.fouls[side]}

    def leader(self) -> Optional[Side]:
        a, b = self.points[Side.TEAM_A], self.points[Side.TEAM_B]
        if a == b:
            return None
        return Side.TEAM_A if a > b else Side.TEAM_B

    def time_payload(self) -> Dict[str, Any]:
        return {"time": self.time, "quarter": self.period}

    def snapshot(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            side.value: {"points": self.points[side], "fouls": self.fouls[side]}
            for side in Side
        }
        data["quarter"] = self.period
        data["time"] = self.time
        return data

    def load(self, data: Optional[Mapping[str, Any]]) -> None:
        self.reset()
        if not data:
            return
        for side in Side:
            entry = _section(data, side.value)
            self.points[side] = _int(entry.get("points"))
            self.fouls[side] = _int(entry.get("fouls"))
        self.period = max(1, _int(data.get("quarter"), 1))
        self.time = _int(data.get("time"))
