"""
Per-sport arena controllers.

A controller owns the scoring engine, the game clock and the lifecycle of
the one match its arena is scoring, and mirrors every change to the backend.
"""

import asyncio
import logging
from typing import Any, Dict, Mapping, Optional

from .api_client import BackendClient
from .clock import GameClock
from .errors import ApiError, NamesRequiredError, ScoringError, SettingsError
from .realtime import RealtimeChannel
from .scoring import DRAW, MatchStatus, ScoringEngine, Side, TimedEngine, create_engine
from .settings import default_settings, parse_settings
from .sports import SPORTS, get_sport

logger = logging.getLogger(__name__)


class ArenaController:
    """Scoring desk for one sport."""

    def __init__(
        self,
        sport: str,
        client: BackendClient,
        realtime: Optional[RealtimeChannel] = None,
    ) -> None:
        self.sport = get_sport(sport)
        self.client = client
        self.realtime = realtime
        self.lock = asyncio.Lock()
        # Token of the scorer driving the arena, reused by background ticks.
        self.token: Optional[str] = None
        self._reset(default_settings(sport))

    def _reset(self, settings: Dict[str, int]) -> None:
        self.settings = settings
        self.engine: ScoringEngine = create_engine(self.sport.slug, settings)
        self.match: Optional[Dict[str, Any]] = None
        self.status = MatchStatus.SCHEDULED
        self._period_done = False
        self.clock = self._new_clock()

    def _new_clock(self) -> GameClock:
        if isinstance(self.engine, TimedEngine):
            return GameClock(
                initial_time=0,
                period_duration=self.engine.period_seconds,
                on_update=self._on_clock_update,
                on_period_complete=self._on_period_complete,
            )
        return GameClock()

    def _on_clock_update(self, seconds: int) -> None:
        if not self.engine.finished:
            self.engine.set_time(seconds)

    def _on_period_complete(self) -> None:
        self._period_done = True

    # -- properties -----------------------------------------------------

    @property
    def match_id(self) -> Optional[str]:
        if not self.match:
            return None
        return self.match.get("_id") or self.match.get("id")

    @property
    def is_live(self) -> bool:
        return self.status is MatchStatus.LIVE

    @property
    def is_completed(self) -> bool:
        return self.status is MatchStatus.COMPLETED

    def side_name(self, side: Side) -> str:
        key = self.sport.side_keys[0] if side is Side.TEAM_A else self.sport.side_keys[1]
        entry = (self.match or {}).get(key) or {}
        if entry.get("name"):
            return entry["name"]
        if self.sport.slug == "chess":
            return "White Player" if side is Side.TEAM_A else "Black Player"
        noun = "Player" if self.sport.participants == "players" else "Team"
        return f"{noun} {'A' if side is Side.TEAM_A else 'B'}"

    def winner_name(self) -> Optional[str]:
        winner = self.engine.winner
        if winner is None:
            return None
        if winner == DRAW:
            return "Draw"
        try:
            return self.side_name(Side.parse(winner))
        except ScoringError:
            return "Unknown"

    def _require_live(self) -> None:
        if not self.match_id or not self.is_live:
            raise ScoringError("No live match in this arena")

    # -- lifecycle ------------------------------------------------------

    def configure(self, raw_settings: Optional[Mapping[str, Any]]) -> Dict[str, int]:
        """
        Change match settings before a match starts.

        @param raw_settings: Raw form values
        @return: Validated settings now in effect
        """
        if self.is_live:
            raise SettingsError("Settings cannot change while a match is live")
        self._reset(parse_settings(self.sport.slug, raw_settings))
        return self.settings

    def _adopt(self, match: Dict[str, Any]) -> None:
        """Take over a match record fetched from the backend."""
        try:
            settings = parse_settings(self.sport.slug, match.get("matchSettings"))
        except SettingsError as e:
            logger.warning("Ignoring stored %s settings: %s", self.sport.slug, e)
            settings = default_settings(self.sport.slug)

        self._reset(settings)
        self.match = match
        self.engine.adopt(match.get(self.sport.score_field))
        try:
            self.status = MatchStatus(match.get("status") or MatchStatus.LIVE.value)
        except ValueError:
            self.status = MatchStatus.LIVE
        if self.status is MatchStatus.COMPLETED and not self.engine.finished:
            self.engine.complete(match.get("winner"), match.get("winningReason") or "")
        if isinstance(self.engine, TimedEngine):
            self.clock.time = self.engine.time

    async def load_existing(self, token: Optional[str] = None) -> bool:
        """
        Resume the first live match of this sport, if the backend has one.

        @param token: Bearer token
        @return: True when a match was loaded
        """
        async with self.lock:
            if self.is_live:
                return True
            self.token = token or self.token
            matches = await self.client.live_matches(token)
            for match in matches:
                if match.get("sport") == self.sport.slug:
                    logger.info("Loading existing %s match: %s", self.sport.slug, match.get("_id"))
                    self._adopt(match)
                    if self.realtime and self.match_id:
                        await self.realtime.join_match(self.match_id)
                    return True
            logger.debug("No existing %s match found", self.sport.slug)
            return False

    def _create_payload(self, first: str, second: str) -> Dict[str, Any]:
        key_a, key_b = self.sport.side_keys
        if self.sport.slug == "chess":
            first, second = f"{first} (White)", f"{second} (Black)"
        return {
            "sport": self.sport.slug,
            key_a: {"name": first},
            key_b: {"name": second},
            "status": MatchStatus.SCHEDULED.value,
            "venue": self.sport.venue,
            "matchSettings": dict(self.settings),
        }

    async def start_match(
        self,
        names: Mapping[str, Any],
        raw_settings: Optional[Mapping[str, Any]] = None,
        token: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Create the match on the backend and start it.

        @param names: Both side names keyed like the sport's side keys
        @param raw_settings: Optional raw settings overriding the current ones
        @param token: Bearer token
        @return: Backend match record
        """
        async with self.lock:
            if self.is_live:
                raise ScoringError("A match is already live in this arena")

            key_a, key_b = self.sport.side_keys
            first = str(names.get(key_a) or "").strip()
            second = str(names.get(key_b) or "").strip()
            if not first or not second:
                raise NamesRequiredError(
                    f"Enter both {self.sport.participants[:-1]} names to start"
                )

            settings = parse_settings(self.sport.slug, raw_settings) if raw_settings else self.settings
            self.token = token or self.token
            self._reset(settings)

            match = await self.client.create_match(self._create_payload(first, second), token)
            if not isinstance(match, dict) or not match.get("_id"):
                raise ApiError(None, "Backend did not return the created match")
            logger.info("%s match created: %s", self.sport.name, match["_id"])
            self.match = match

            await self.client.start_match(match["_id"], token)
            self.status = MatchStatus.LIVE
            self.match["status"] = MatchStatus.LIVE.value
            logger.info("%s match started: %s", self.sport.name, match["_id"])

            if self.sport.slug == "chess":
                self.clock.start()
            if self.realtime:
                await self.realtime.join_match(match["_id"])
            return self.match

    def _reconcile(self, record: Any) -> None:
        """Adopt the backend's score when this sport trusts it."""
        if not self.engine.reconciles or self.engine.finished:
            return
        if not isinstance(record, dict):
            return
        remote = record.get(self.sport.score_field)
        if not isinstance(remote, dict):
            return
        self.engine.reconcile(remote)
        if isinstance(self.engine, TimedEngine):
            self.clock.time = self.engine.time

    async def record(
        self,
        action: str,
        side: Any = None,
        token: Optional[str] = None,
        **details: Any,
    ) -> Dict[str, Any]:
        """
        Apply a scoring action locally and send it to the backend.

        @param action: Engine action name
        @param side: Side credited with the action
        @param token: Bearer token
        @param details: Action arguments
        @return: Score snapshot after the action
        """
        async with self.lock:
            self._require_live()
            team = Side.parse(side).value if side else Side.TEAM_A.value
            payload = self.engine.apply(action, side, **details)

            try:
                response = await self.client.update_score(
                    self.match_id, self.sport.slug, action, team, payload, token
                )
            except ApiError:
                # The backend never saw the action.
                self.engine.undo()
                raise
            self._reconcile(response)

            if self.engine.finished:
                await self._finish(token)
            return self.engine.snapshot()

    async def undo(self, token: Optional[str] = None) -> Dict[str, Any]:
        """Revert the last action locally and on the backend."""
        async with self.lock:
            self._require_live()
            if not self.engine.can_undo:
                raise ScoringError("Nothing to undo")
            response = await self.client.undo(self.match_id, token)
            self.engine.undo()
            self._reconcile(response)
            logger.info("Last %s action undone", self.sport.slug)
            return self.engine.snapshot()

    def clock_command(self, command: str) -> str:
        """
        Start, pause, resume or reset the arena clock.

        @param command: One of start, pause, resume, reset
        @return: Clock status after the command
        """
        self._require_live()
        if command == "start":
            self.clock.start()
        elif command == "pause":
            self.clock.pause()
        elif command == "resume":
            self.clock.resume()
        elif command == "reset":
            self.clock.reset()
        else:
            raise ScoringError(f"Unknown clock command: {command}")
        return self.clock.status

    async def tick(self, seconds: int = 1, token: Optional[str] = None) -> None:
        """
        Advance a running clock and push the time to the backend.

        Completing the last period, or a chess flag fall, ends the match.
        """
        async with self.lock:
            if not self.is_live or self.clock.status != "RUNNING":
                return
            token = token or self.token

            if not self.engine.timed:
                return

            if not isinstance(self.engine, TimedEngine):
                self.clock.tick(seconds)
                if self.engine.tick(seconds):
                    await self._finish_quietly(token)
                return

            self.clock.tick(seconds)
            try:
                await self.client.update_score(
                    self.match_id, self.sport.slug, "time", Side.TEAM_A.value,
                    self.engine.time_payload(), token,
                )
            except ApiError as e:
                logger.error("Error updating %s timer: %s", self.sport.slug, e)

            if self._period_done:
                self._period_done = False
                if self.engine.complete_period():
                    logger.info("All periods completed, %s match finished", self.sport.slug)
                    await self._finish_quietly(token)
                else:
                    logger.info("Starting %s", self.engine.period_label())
                    self.clock.reset(0)

    async def poll(self, token: Optional[str] = None) -> None:
        """Fetch the match by id and reconcile with it."""
        async with self.lock:
            if not self.is_live or not self.match_id:
                return
            token = token or self.token
            record = await self.client.get_match(self.match_id, token)
            if not isinstance(record, dict):
                return
            self._reconcile(record)
            if record.get("status") == MatchStatus.COMPLETED.value:
                self._mark_completed(record.get("winner"), record.get("winningReason") or "")

    async def end_match(
        self,
        token: Optional[str] = None,
        reason: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        End the live match by hand with the computed winner.

        @param token: Bearer token
        @param reason: Winning reason overriding the default one
        @return: Winner and reason sent to the backend
        """
        async with self.lock:
            self._require_live()
            winner, default_reason = self.engine.result_for_manual_end()
            reason = reason or default_reason
            await self.client.end_match(self.match_id, winner, reason, token)
            self._mark_completed(winner, reason)
            if self.realtime:
                await self.realtime.leave_match(self.match_id)
            logger.info("%s match %s ended: %s (%s)", self.sport.name, self.match_id, winner, reason)
            return {"winner": winner, "winningReason": reason}

    async def _finish(self, token: Optional[str]) -> None:
        winner, reason = self.engine.winner, self.engine.reason
        await self.client.end_match(self.match_id, winner, reason, token)
        self._mark_completed(winner, reason)
        if self.realtime:
            await self.realtime.leave_match(self.match_id)
        logger.info("%s match %s completed: %s (%s)", self.sport.name, self.match_id, winner, reason)

    async def _finish_quietly(self, token: Optional[str]) -> None:
        try:
            await self._finish(token)
        except ApiError as e:
            logger.error("Error ending %s match: %s", self.sport.slug, e)
            self._mark_completed(self.engine.winner, self.engine.reason or "")

    def _mark_completed(self, winner: Optional[str], reason: str) -> None:
        self.status = MatchStatus.COMPLETED
        if self.match is not None:
            self.match["status"] = MatchStatus.COMPLETED.value
        if not self.engine.finished:
            self.engine.complete(winner, reason)
        self.clock.stop()

    def on_match_ended(self, event: Mapping[str, Any]) -> None:
        """Handle a ``match-ended`` push; events for other matches are ignored."""
        if not self.match_id or event.get("matchId") != self.match_id:
            return
        logger.info("Match ended: %s", event)
        self._mark_completed(event.get("winner"), event.get("reason") or "")

    def new_match(self) -> None:
        """Clear a completed match so the arena can start another."""
        if self.is_live:
            raise ScoringError("Cannot clear a live match")
        self._reset(self.settings)

    # -- view -----------------------------------------------------------

    def state(self) -> Dict[str, Any]:
        """Everything the arena page and JSON endpoint render."""
        data: Dict[str, Any] = {
            "sport": self.sport.slug,
            "sportName": self.sport.name,
            "matchId": self.match_id,
            "status": self.status.value,
            "names": {
                Side.TEAM_A.value: self.side_name(Side.TEAM_A),
                Side.TEAM_B.value: self.side_name(Side.TEAM_B),
            },
            "settings": dict(self.settings),
            "score": self.engine.snapshot(),
            "winner": self.engine.winner,
            "winnerName": self.winner_name(),
            "winningReason": self.engine.reason,
            "canUndo": self.engine.can_undo,
            "clock": {"time": self.clock.time, "display": self.clock.display, "status": self.clock.status},
        }
        if isinstance(self.engine, TimedEngine):
            data["period"] = self.engine.period_label()
        return data


class ArenaRegistry:
    """One controller per sport."""

    def __init__(
        self,
        client: BackendClient,
        realtime: Optional[RealtimeChannel] = None,
    ) -> None:
        self.arenas: Dict[str, ArenaController] = {
            slug: ArenaController(slug, client, realtime) for slug in SPORTS
        }

    def get(self, sport: str) -> ArenaController:
        get_sport(sport)
        return self.arenas[sport]

    def live(self) -> list:
        return [arena for arena in self.arenas.values() if arena.is_live]

    def on_match_ended(self, event: Mapping[str, Any]) -> None:
        for arena in self.arenas.values():
            arena.on_match_ended(event or {})
