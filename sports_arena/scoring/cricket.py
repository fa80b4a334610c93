"""
Ball-by-ball cricket scoring over two limited-overs innings.
"""

from typing import Any, Dict, Mapping, Optional

from ..errors import ScoringError
from .base import DRAW, ScoringEngine, Side, _int, _section

BALLS_PER_OVER = 6
ALL_OUT = 10


class CricketEngine(ScoringEngine):
    """
    Team A bats first. The innings closes when ten wickets fall or the
    overs run out; team B then chases ``target``.
    """

    sport = "cricket"
    ACTIONS = {
        "runs": "_runs",
        "boundary": "_boundary",
        "wicket": "_wicket",
        "wide": "_wide",
        "noBall": "_no_ball",
        "bye": "_bye",
        "legBye": "_leg_bye",
    }

    def reset(self) -> None:
        self.innings = 1
        self.target: Optional[int] = None
        self.first_innings: Optional[Dict[str, int]] = None
        self._reset_innings()

    def _reset_innings(self) -> None:
        self.runs = 0
        self.wickets = 0
        self.overs = 0
        self.balls = 0
        self.extras = {"wides": 0, "noBalls": 0, "byes": 0, "legByes": 0}

    @property
    def total_overs(self) -> int:
        return self.settings["totalOvers"]

    @property
    def batting(self) -> Side:
        return Side.TEAM_A if self.innings == 1 else Side.TEAM_B

    # -- actions --------------------------------------------------------

    def _runs(self, side: Any = None, runs: Any = 0, **_: Any) -> Dict[str, Any]:
        runs = self._count(runs, 0, 6, "Runs")
        self.runs += runs
        self._legal_ball()
        return {"runs": runs}

    def _boundary(self, side: Any = None, runs: Any = 4, **_: Any) -> Dict[str, Any]:
        runs = _int(runs, -1)
        if runs not in (4, 6):
            raise ScoringError("A boundary is worth 4 or 6 runs")
        self.runs += runs
        self._legal_ball()
        return {"runs": runs}

    def _wicket(self, side: Any = None, **_: Any) -> Dict[str, Any]:
        self.wickets += 1
        self._legal_ball()
        return {}

    def _wide(self, side: Any = None, runs: Any = 0, **_: Any) -> Dict[str, Any]:
        runs = self._count(runs, 0, 6, "Runs")
        self.extras["wides"] += 1 + runs
        self.runs += 1 + runs
        self._check_innings()
        return {"runs": runs} if runs else {}

    def _no_ball(self, side: Any = None, runs: Any = 0, **_: Any) -> Dict[str, Any]:
        runs = self._count(runs, 0, 6, "Runs")
        self.extras["noBalls"] += 1
        self.runs += 1 + runs
        self._check_innings()
        return {"runs": runs} if runs else {}

    def _bye(self, side: Any = None, runs: Any = 1, **_: Any) -> Dict[str, Any]:
        runs = self._count(runs, 1, 4, "Byes")
        self.extras["byes"] += runs
        self.runs += runs
        self._legal_ball()
        return {"runs": runs}

    def _leg_bye(self, side: Any = None, runs: Any = 1, **_: Any) -> Dict[str, Any]:
        runs = self._count(runs, 1, 4, "Leg byes")
        self.extras["legByes"] += runs
        self.runs += runs
        self._legal_ball()
        return {"runs": runs}

    @staticmethod
    def _count(value: Any, low: int, high: int, label: str) -> int:
        number = _int(value, -1)
        if not low <= number <= high:
            raise ScoringError(f"{label} must be between {low} and {high}")
        return number

    # -- innings flow ---------------------------------------------------

    def _legal_ball(self) -> None:
        self.balls += 1
        if self.balls == BALLS_PER_OVER:
            self.overs += 1
            self.balls = 0
        self._check_innings()

    def _innings_over(self) -> bool:
        return self.wickets >= ALL_OUT or self.overs >= self.total_overs

    def _check_innings(self) -> None:
        if self.innings == 2:
            if self.runs >= self.target:
                self.complete(
                    Side.TEAM_B.value,
                    f"Won by {ALL_OUT - self.wickets} wickets",
                )
            elif self._innings_over():
                margin = self.target - 1 - self.runs
                if margin == 0:
                    self.complete(DRAW, "Match tied")
                else:
                    self.complete(Side.TEAM_A.value, f"Won by {margin} runs")
            return

        if self._innings_over():
            self.first_innings = {
                "runs": self.runs,
                "wickets": self.wickets,
                "overs": self.overs,
                "balls": self.balls,
            }
            self.target = self.runs + 1
            self.innings = 2
            self._reset_innings()

    def leader(self) -> Optional[Side]:
        if self.innings == 1:
            return Side.TEAM_B if self.wickets >= ALL_OUT else Side.TEAM_A
        first = self.target - 1
        if self.runs == first:
            return None
        return Side.TEAM_B if self.runs > first else Side.TEAM_A

    # -- wire form ------------------------------------------------------

    def snapshot(self) -> Dict[str, Any]:
        return {
            "runs": self.runs,
            "wickets": self.wickets,
            "overs": self.overs,
            "balls": self.balls,
            "extras": dict(self.extras),
            "innings": self.innings,
            "battingTeam": self.batting.value,
            "target": self.target,
            "firstInnings": dict(self.first_innings) if self.first_innings else None,
        }

    def load(self, data: Optional[Mapping[str, Any]]) -> None:
        self.reset()
        if not data:
            return
        self.runs = _int(data.get("runs"))
        self.wickets = _int(data.get("wickets"))
        self.overs = _int(data.get("overs"))
        self.balls = _int(data.get("balls"))
        extras = _section(data, "extras")
        for key in self.extras:
            self.extras[key] = _int(extras.get(key))
        self.innings = 2 if _int(data.get("innings"), 1) == 2 else 1
        first = _section(data, "firstInnings")
        if first:
            self.first_innings = {
                key: _int(first.get(key)) for key in ("runs", "wickets", "overs", "balls")
            }
        if self.innings == 2:
            target = data.get("target")
            if target is None and self.first_innings:
                target = self.first_innings["runs"] + 1
            self.target = _int(target, 1)

    def reconcile(self, remote: Mapping[str, Any]) -> None:
        """
        Merge a backend score, rebasing whole-match totals onto the chase.

        A backend that does not track innings reports one running total
        for the match; during the second innings the first innings is
        subtracted from it. Totals behind the innings break are ignored.
        """
        if self.innings == 2 and _int(remote.get("innings"), 1) != 2:
            chase = self._chase_from_totals(remote)
            if chase is None:
                return
            remote = chase
        super().reconcile(remote)

    def _chase_from_totals(self, remote: Mapping[str, Any]) -> Optional[Dict[str, int]]:
        first = self.first_innings or {}
        runs = _int(remote.get("runs")) - first.get("runs", 0)
        wickets = _int(remote.get("wickets")) - first.get("wickets", 0)
        balls = (
            _int(remote.get("overs")) * BALLS_PER_OVER + _int(remote.get("balls"))
            - first.get("overs", 0) * BALLS_PER_OVER - first.get("balls", 0)
        )
        if runs < 0 or wickets < 0 or balls < 0:
            return None
        overs, balls = divmod(balls, BALLS_PER_OVER)
        return {"runs": runs, "wickets": wickets, "overs": overs, "balls": balls}

    def overs_display(self) -> str:
        return f"{self.overs}.{self.balls}"
