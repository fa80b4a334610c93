"""
Chess result recording and a two-sided game clock.
"""

from typing import Any, Dict, Mapping, Optional

from ..errors import ScoringError
from .base import DRAW, ScoringEngine, Side, _int

WHITE = "white"
BLACK = "black"

# White plays as side A, black as side B.
COLOR_SIDE = {WHITE: Side.TEAM_A, BLACK: Side.TEAM_B}


class ChessEngine(ScoringEngine):
    """Only the side to move loses time; a flag fall ends the game."""

    sport = "chess"
    ACTIONS = {"move": "_move", "result": "_result"}
    reconciles = False
    timed = True

    def reset(self) -> None:
        start = self.settings["timeControl"] * 60
        self.result: Optional[str] = None
        self.white_time = start
        self.black_time = start
        self.current_player = WHITE

    @property
    def increment(self) -> int:
        return self.settings["increment"]

    def tick(self, seconds: int = 1) -> bool:
        """
        Run the clock of the side to move.

        @param seconds: Seconds elapsed
        @return: True when a flag fell and the game is over
        """
        if self.finished:
            return True
        if self.current_player == WHITE:
            self.white_time = max(0, self.white_time - seconds)
        else:
            self.black_time = max(0, self.black_time - seconds)

        if self.white_time <= 0:
            self.result = "Black wins by time"
            self.complete(Side.TEAM_B.value, "White ran out of time")
            return True
        if self.black_time <= 0:
            self.result = "White wins by time"
            self.complete(Side.TEAM_A.value, "Black ran out of time")
            return True
        return False

    def _move(self, side: Any = None, **_: Any) -> Dict[str, Any]:
        if self.current_player == WHITE:
            self.white_time += self.increment
            self.current_player = BLACK
        else:
            self.black_time += self.increment
            self.current_player = WHITE
        return {
            "currentPlayer": self.current_player,
            "whiteTime": self.white_time,
            "blackTime": self.black_time,
        }

    def _result(self, side: Any = None, result: str = "", reason: str = "", **_: Any) -> Dict[str, Any]:
        result = str(result).strip().lower()
        if result == DRAW:
            self.result = DRAW
            self.complete(DRAW, reason or "Draw agreed")
        elif result in COLOR_SIDE:
            self.result = result
            self.complete(COLOR_SIDE[result].value, reason or f"{result.capitalize()} wins")
        else:
            raise ScoringError("Result must be white, black or draw")
        return {"result": self.result}

    def leader(self) -> Optional[Side]:
        if self.result in COLOR_SIDE:
            return COLOR_SIDE[self.result]
        return None

    def snapshot(self) -> Dict[str, Any]:
        return {
            "result": self.result,
            "whiteTime": self.white_time,
            "blackTime": self.black_time,
            "currentPlayer": self.current_player,
        }

    def load(self, data: Optional[Mapping[str, Any]]) -> None:
        self.reset()
        if not data:
            return
        self.result = data.get("result")
        # A snapshot with both clocks at zero was never initialised.
        white = _int(data.get("whiteTime"), self.white_time)
        black = _int(data.get("blackTime"), self.black_time)
        if white or black:
            self.white_time, self.black_time = white, black
        if data.get("currentPlayer") in (WHITE, BLACK):
            self.current_player = data["currentPlayer"]
