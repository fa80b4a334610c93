"""
Push channel: a Socket.IO client for the backend and a WebSocket fan-out to browsers.
"""

import asyncio
import logging
from collections import defaultdict
from typing import Any, Callable, Dict, List, Optional, Set

import socketio
from socketio.exceptions import ConnectionError as PushConnectionError
from aiohttp import web

logger = logging.getLogger(__name__)

PUSH_EVENTS = ("live-score-update", "match-started", "match-ended", "score-update")

Handler = Callable[[Any], Any]


class RealtimeChannel:
    """One Socket.IO connection to the backend, shared by the whole desk."""

    def __init__(
        self,
        url: str,
        client: Optional[socketio.AsyncClient] = None,
    ) -> None:
        self.url = url
        self.sio = client or socketio.AsyncClient(reconnection=True)
        self.is_connected = False
        self._subscribers: Dict[str, List[Handler]] = defaultdict(list)

        self.sio.on("connect", self._on_connect)
        self.sio.on("disconnect", self._on_disconnect)
        self.sio.on("connect_error", self._on_connect_error)
        for event in PUSH_EVENTS:
            self.sio.on(event, self._dispatcher(event))

    def _dispatcher(self, event: str):
        async def handle(data: Any = None) -> None:
            await self.dispatch(event, data)

        return handle

    async def _on_connect(self) -> None:
        self.is_connected = True
        logger.info("Connected to push server with ID: %s", self.sio.sid)

    async def _on_disconnect(self, *args: Any) -> None:
        self.is_connected = False
        logger.info("Disconnected from push server")

    async def _on_connect_error(self, error: Any = None) -> None:
        self.is_connected = False
        logger.error("Push connection error: %s", error)

    async def connect(self) -> bool:
        """
        Open the connection, preferring WebSocket over long-polling.

        @return: True when connected
        """
        try:
            await self.sio.connect(self.url, transports=["websocket", "polling"])
        except PushConnectionError as e:
            logger.error("Could not connect to push server at %s: %s", self.url, e)
            self.is_connected = False
            return False
        self.is_connected = True
        return True

    async def close(self) -> None:
        if self.sio.connected:
            await self.sio.disconnect()
        self.is_connected = False

    async def _emit(self, event: str, data: Any = None) -> None:
        if not self.is_connected:
            logger.debug("Not connected, dropping %s", event)
            return
        if data is None:
            await self.sio.emit(event)
        else:
            await self.sio.emit(event, data)

    async def join_match(self, match_id: str) -> None:
        logger.info("Joining match room: %s", match_id)
        await self._emit("join-match", match_id)

    async def leave_match(self, match_id: str) -> None:
        await self._emit("leave-match", match_id)

    async def join_live_scoreboard(self) -> None:
        await self._emit("join-live-scoreboard")

    async def leave_live_scoreboard(self) -> None:
        await self._emit("leave-live-scoreboard")

    def subscribe(self, event: str, handler: Handler) -> None:
        """
        Register a handler for a push event; coroutine handlers are awaited.

        @param event: Event name, one of PUSH_EVENTS
        @param handler: Callable receiving the event payload
        """
        if event not in PUSH_EVENTS:
            raise ValueError(f"Unknown push event: {event}")
        self._subscribers[event].append(handler)

    def unsubscribe(self, event: str, handler: Handler) -> None:
        try:
            self._subscribers[event].remove(handler)
        except ValueError:
            pass

    async def dispatch(self, event: str, data: Any) -> None:
        """Deliver an event to its subscribers; a failing handler is logged and skipped."""
        for handler in list(self._subscribers.get(event, ())):
            try:
                result = handler(data)
                if asyncio.iscoroutine(result):
                    await result
            except Exception:
                logger.exception("Handler for %s failed", event)


class BrowserHub:
    """Connected browser WebSockets that receive push events."""

    def __init__(self) -> None:
        self.sockets: Set[web.WebSocketResponse] = set()

    def add(self, ws: web.WebSocketResponse) -> None:
        self.sockets.add(ws)

    def discard(self, ws: web.WebSocketResponse) -> None:
        self.sockets.discard(ws)

    async def broadcast(self, event: str, data: Any) -> None:
        message = {"event": event, "data": data}
        for ws in list(self.sockets):
            if ws.closed:
                self.sockets.discard(ws)
                continue
            try:
                await ws.send_json(message)
            except (ConnectionError, RuntimeError) as e:
                logger.debug("Dropping browser socket: %s", e)
                self.sockets.discard(ws)

    async def close_all(self) -> None:
        for ws in list(self.sockets):
            await ws.close()
        self.sockets.clear()
