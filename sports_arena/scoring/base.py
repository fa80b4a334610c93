"""
Shared scoring engine contract.

Every arena keeps its score in an engine. Engines apply scoring actions,
report the match winner once a win condition is met, serialize to the
backend wire form and can be reloaded from a backend snapshot.
"""

import copy
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from ..errors import ScoringError
from ..settings import parse_settings

DRAW = "draw"
MANUAL_END_REASON = "Match ended manually"


class Side(str, Enum):
    """One of the two sides of a match, named as the backend names them."""

    TEAM_A = "teamA"
    TEAM_B = "teamB"

    @property
    def other(self) -> "Side":
        return Side.TEAM_B if self is Side.TEAM_A else Side.TEAM_A

    @classmethod
    def parse(cls, value: Any) -> "Side":
        """
        Accept a side in any of the spellings the pages and backend use.

        @param value: Side, "teamA"/"teamB", "playerA"/"playerB" or "a"/"b"
        @return: Parsed side
        """
        if isinstance(value, Side):
            return value
        text = str(value or "").strip()
        aliases = {
            "teamA": cls.TEAM_A, "playerA": cls.TEAM_A, "a": cls.TEAM_A, "A": cls.TEAM_A,
            "teamB": cls.TEAM_B, "playerB": cls.TEAM_B, "b": cls.TEAM_B, "B": cls.TEAM_B,
        }
        if text not in aliases:
            raise ScoringError(f"Unknown side: {value!r}")
        return aliases[text]


class MatchStatus(str, Enum):
    SCHEDULED = "scheduled"
    LIVE = "live"
    COMPLETED = "completed"


class ScoringEngine:
    """
    Base class for the per-sport state machines.

    Subclasses declare ``sport``, map action names to handler methods in
    ``ACTIONS`` and implement ``reset``, ``snapshot`` and ``load``.
    Handlers return the ``details`` payload sent to the backend.
    """

    sport: str = ""
    ACTIONS: Dict[str, str] = {}
    # Adopt backend score snapshots while polling.
    reconciles: bool = True
    # Driven by a running game clock.
    timed: bool = False

    def __init__(self, settings: Optional[Mapping[str, Any]] = None) -> None:
        self.settings = parse_settings(self.sport, settings)
        self.winner: Optional[str] = None
        self.reason: Optional[str] = None
        self._history: List[Tuple[Dict[str, Any], Optional[str], Optional[str]]] = []
        self.reset()

    @property
    def finished(self) -> bool:
        return self.winner is not None

    def reset(self) -> None:
        raise NotImplementedError

    def snapshot(self) -> Dict[str, Any]:
        raise NotImplementedError

    def load(self, data: Optional[Mapping[str, Any]]) -> None:
        raise NotImplementedError

    def leader(self) -> Optional[Side]:
        """Side currently ahead, None when level."""
        raise NotImplementedError

    def apply(
        self,
        action: str,
        side: Any = None,
        **details: Any,
    ) -> Dict[str, Any]:
        """
        Apply a scoring action.

        @param action: Action name, one of ``ACTIONS``
        @param side: Side the action is credited to, when the action needs one
        @param details: Action arguments such as ``runs`` or ``points``
        @return: Details payload for the backend score update
        """
        if self.finished:
            raise ScoringError("Match is already completed")
        if action not in self.ACTIONS:
            raise ScoringError(f"Unknown {self.sport} action: {action}")

        handler: Callable[..., Dict[str, Any]] = getattr(self, self.ACTIONS[action])
        saved = (copy.deepcopy(self.snapshot()), self.winner, self.reason)
        try:
            payload = handler(side, **details)
        except TypeError as e:
            self._restore(saved)
            raise ScoringError(f"Bad arguments for {action}: {e}") from None
        except ScoringError:
            self._restore(saved)
            raise

        self._history.append(saved)
        return payload

    def undo(self) -> Dict[str, Any]:
        """
        Revert the most recent action.

        @return: Snapshot after the revert
        """
        if not self._history:
            raise ScoringError("Nothing to undo")
        self._restore(self._history.pop())
        return self.snapshot()

    @property
    def can_undo(self) -> bool:
        return bool(self._history)

    def _restore(self, saved) -> None:
        data, winner, reason = saved
        self.load(data)
        self.winner = winner
        self.reason = reason

    def complete(self, winner: Optional[str], reason: str) -> None:
        self.winner = winner if winner is not None else DRAW
        self.reason = reason

    def leader_name(self) -> str:
        leader = self.leader()
        return leader.value if leader is not None else DRAW

    def result_for_manual_end(self) -> Tuple[str, str]:
        """
        Winner to report when the scorer ends the match by hand.

        @return: Tuple of winner ("teamA", "teamB" or "draw") and reason
        """
        if self.finished:
            return self.winner, self.reason
        return self.leader_name(), MANUAL_END_REASON

    def adopt(self, data: Optional[Mapping[str, Any]]) -> None:
        """Replace local state with a backend snapshot and drop the undo history."""
        self.load(data)
        self._history.clear()

    def reconcile(self, remote: Mapping[str, Any]) -> None:
        """Merge a backend score over local state, keeping fields it does not track."""
        merged = dict(self.snapshot())
        merged.update(remote)
        self.load(merged)


def _int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _section(data: Any, key: str) -> Dict[str, Any]:
    """Nested mapping from a backend snapshot, {} when missing or malformed."""
    value = data.get(key) if isinstance(data, Mapping) else None
    return value if isinstance(value, dict) else {}
