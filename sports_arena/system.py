"""
Main ArenaSystem class that orchestrates all components.
"""

import asyncio
import logging
from pathlib import Path
from typing import List, Optional

import aiohttp_cors
from aiohttp import web, web_runner

from .api_client import BackendClient
from .arenas import ArenaRegistry
from .auth import AuthManager
from .config import ArenaConfig
from .database import SessionStore
from .errors import ApiError
from .history import MatchHistory
from .live import LiveBoard
from .realtime import PUSH_EVENTS, BrowserHub, RealtimeChannel
from .tournaments import TournamentManager
from .web_handlers import WebHandlers, auth_middleware

logger = logging.getLogger(__name__)

STATIC_PATH = Path(__file__).parent / "static"


class ArenaSystem:
    """Scorekeeping web desk in front of the Sports Arena backend."""

    def __init__(
        self,
        host: str = "0.0.0.0",
        port: int = 8080,
        config_path: str = "arena_config.json",
        backend_url: Optional[str] = None,
        session_db: Optional[str] = None,
        client: Optional[BackendClient] = None,
        realtime: Optional[RealtimeChannel] = None,
    ) -> None:
        self.host = host
        self.port = port
        self.running = False
        self._tasks: List[asyncio.Task] = []

        # Load configuration
        self.config = ArenaConfig(config_path)
        if backend_url:
            self.config.config["backend"]["url"] = backend_url
        if session_db:
            self.config.config["session"]["db_path"] = session_db

        # Initialize components
        self.store = SessionStore(
            self.config.get("session", "db_path"),
            self.config.get("session", "session_ttl_hours"),
        )
        self.client = client or BackendClient(
            self.config.backend_url,
            self.config.get("backend", "request_timeout"),
        )
        if realtime is None and self.config.is_feature_enabled("realtime_enabled"):
            realtime = RealtimeChannel(self.config.backend_url)
        self.realtime = realtime

        self.hub = BrowserHub()
        self.arenas = ArenaRegistry(self.client, self.realtime)
        self.live = LiveBoard(self.client)
        self.history = MatchHistory(self.client)
        self.tournaments = TournamentManager(self.client)
        self.auth = AuthManager(
            self.store,
            self.client,
            self.config.get("session", "verify_interval"),
        )
        self.web_handlers = WebHandlers(
            self.config,
            self.auth,
            self.arenas,
            self.live,
            self.history,
            self.tournaments,
            self.hub,
        )

        if self.realtime:
            for event in PUSH_EVENTS:
                self.realtime.subscribe(event, self._push_handler(event))

    def _push_handler(self, event: str):
        async def handle(data) -> None:
            self.live.apply_event(event, data)
            if event == "match-ended" and isinstance(data, dict):
                self.arenas.on_match_ended(data)
            await self.hub.broadcast(event, data)

        return handle

    async def init_db(self) -> None:
        """
        Initialize the session database.

        Creates the tables and drops sessions that expired while offline.
        """
        await self.store.init_db()
        await self.store.purge_expired()

    def build_app(self) -> web.Application:
        """
        Build the aiohttp application with middleware, CORS and routes.

        @return: Configured application
        """
        app = web.Application(
            middlewares=[
                auth_middleware(self.auth, self.config.get("session", "cookie_name")),
            ]
        )

        # Setup CORS
        cors = aiohttp_cors.setup(
            app,
            defaults={
                "*": aiohttp_cors.ResourceOptions(
                    allow_credentials=True,
                    expose_headers="*",
                    allow_headers="*",
                    allow_methods="*",
                )
            },
        )

        handlers = self.web_handlers

        # Static files route
        app.router.add_static("/static/", path=str(STATIC_PATH), name="static")

        # Pages
        app.router.add_get("/", handlers.web_index)
        app.router.add_get("/login", handlers.web_login)
        app.router.add_post("/login", handlers.web_login_submit)
        app.router.add_get("/logout", handlers.web_logout)
        app.router.add_get("/sports", handlers.web_sports)
        app.router.add_get("/live-scores", handlers.web_live_scores)
        app.router.add_get("/history", handlers.web_history)
        app.router.add_post("/history/{match_id}/delete", handlers.web_history_delete)

        # Conditionally add optional routes
        if self.config.is_feature_enabled("registration_enabled"):
            app.router.add_get("/register", handlers.web_register)
            app.router.add_post("/register", handlers.web_register_submit)
        if self.config.is_feature_enabled("tournaments_enabled"):
            app.router.add_get("/tournament", handlers.web_tournament)
            app.router.add_post("/tournament", handlers.web_tournament_create)

        # Arenas
        app.router.add_get("/arena/{sport}", handlers.web_arena)
        app.router.add_post("/arena/{sport}/start", handlers.web_arena_start)
        app.router.add_post("/arena/{sport}/action", handlers.web_arena_action)
        app.router.add_post("/arena/{sport}/clock", handlers.web_arena_clock)
        app.router.add_post("/arena/{sport}/undo", handlers.web_arena_undo)
        app.router.add_post("/arena/{sport}/end", handlers.web_arena_end)
        app.router.add_post("/arena/{sport}/settings", handlers.web_arena_settings)
        app.router.add_post("/arena/{sport}/new", handlers.web_arena_new)

        # API routes
        app.router.add_get("/api/arena/{sport}", handlers.web_api_arena)
        app.router.add_get("/api/live", handlers.web_api_live)
        app.router.add_get("/ws", handlers.web_socket)

        # Add CORS to all routes except the WebSocket
        for route in list(app.router.routes()):
            if route.resource is not None and route.resource.canonical == "/ws":
                continue
            cors.add(route)

        return app

    # -- background work ------------------------------------------------

    async def _poll_live(self) -> None:
        interval = self.config.get("polling", "live_interval")
        while self.running:
            try:
                await self.live.refresh()
            except ApiError as e:
                logger.warning("Live board refresh failed: %s", e)
            except Exception:
                logger.exception("Live board refresh crashed")
            await asyncio.sleep(interval)

    async def _poll_arenas(self) -> None:
        interval = self.config.get("polling", "arena_interval")
        while self.running:
            for arena in self.arenas.live():
                try:
                    await arena.poll()
                except ApiError as e:
                    logger.warning("Polling %s match failed: %s", arena.sport.slug, e)
                except Exception:
                    logger.exception("Polling %s match crashed", arena.sport.slug)
            await asyncio.sleep(interval)

    async def _run_clocks(self) -> None:
        while self.running:
            await asyncio.sleep(1)
            for arena in self.arenas.live():
                try:
                    await arena.tick(1)
                except Exception:
                    logger.exception("%s clock tick crashed", arena.sport.slug)

    def start_background_tasks(self) -> None:
        self.running = True
        self._tasks = [
            asyncio.create_task(self._poll_live()),
            asyncio.create_task(self._poll_arenas()),
            asyncio.create_task(self._run_clocks()),
        ]

    async def stop_background_tasks(self) -> None:
        self.running = False
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []

    # -- lifecycle ------------------------------------------------------

    async def start_web_server(
        self,
        host: Optional[str] = None,
        port: Optional[int] = None,
    ) -> web_runner.AppRunner:
        """
        Start the web server.

        @param host: Host address to bind the server to (default uses configured host)
        @param port: Port number to use (default uses configured port)
        @return: AppRunner instance for the web server
        """
        if host is None:
            host = self.host
        if port is None:
            port = self.port

        app_runner = web_runner.AppRunner(self.build_app())
        await app_runner.setup()

        site = web_runner.TCPSite(app_runner, host, port)
        await site.start()

        logger.info("Web server running on http://%s:%s", host, port)
        return app_runner

    async def run(self) -> None:
        """
        Run the desk until interrupted.

        Connects the push channel, starts the web server and the pollers,
        then waits; everything is torn down on exit.
        """
        await self.init_db()

        if self.realtime and await self.realtime.connect():
            await self.realtime.join_live_scoreboard()

        web_server_runner = await self.start_web_server()
        self.start_background_tasks()

        print(f"\n{self.config.get('app_name')} desk running!")
        print(f"Web Interface: http://{self.host}:{self.port}")
        print(f"Backend: {self.config.backend_url}")
        print("\nPress Ctrl+C to stop...\n")

        try:
            await asyncio.Event().wait()
        finally:
            await self.stop_background_tasks()
            await self.hub.close_all()
            if self.realtime:
                await self.realtime.leave_live_scoreboard()
                await self.realtime.close()
            await self.client.close()
            await web_server_runner.cleanup()
