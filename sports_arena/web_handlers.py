"""
Web route handlers for the scorekeeping desk.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional
from urllib.parse import quote, unquote

from aiohttp import WSMsgType, web
from jinja2 import Environment, FileSystemLoader, select_autoescape

from .arenas import ArenaController, ArenaRegistry
from .auth import AuthManager, AuthSession, require_admin, require_scoring, session_cookie
from .clock import format_clock
from .config import ArenaConfig
from .errors import ApiError, ArenaError, NamesRequiredError, UnknownSportError, ValidationError
from .history import ALL, MatchHistory
from .live import LiveBoard
from .realtime import BrowserHub
from .settings import settings_fields
from .sports import all_sports
from .tournaments import FORMATS, TournamentManager

logger = logging.getLogger(__name__)

TEMPLATES_PATH = Path(__file__).parent / "templates"
FLASH_COOKIE = "arena_flash"

# Form fields that are not action details.
ACTION_FIELDS = ("action", "side")


def auth_middleware(auth: AuthManager, cookie_name: str):
    """Attach the restored session, if any, to every request as ``request["auth"]``."""

    @web.middleware
    async def middleware(request: web.Request, handler):
        request["auth"] = await auth.restore(request.cookies.get(cookie_name))
        return await handler(request)

    return middleware


def _wants_json(request: web.Request) -> bool:
    return "application/json" in request.headers.get("Accept", "")


def _token(request: web.Request) -> Optional[str]:
    auth: Optional[AuthSession] = request.get("auth")
    return auth.token if auth else None


def _redirect(location: str, message: Optional[str] = None, category: str = "error") -> web.HTTPFound:
    """
    Redirect carrying a one-shot flash message.

    @param location: Target path
    @param message: Message shown on the next rendered page
    @param category: "error" or "success"
    @return: Response exception to raise
    """
    response = web.HTTPFound(location)
    if message:
        response.set_cookie(FLASH_COOKIE, quote(f"{category}|{message}"), max_age=60, httponly=True)
    return response


class WebHandlers:
    """Handles web routes and responses."""

    def __init__(
        self,
        config: ArenaConfig,
        auth: AuthManager,
        arenas: ArenaRegistry,
        live: LiveBoard,
        history: MatchHistory,
        tournaments: TournamentManager,
        hub: BrowserHub,
        templates_path: Path = TEMPLATES_PATH,
    ) -> None:
        self.config = config
        self.auth = auth
        self.arenas = arenas
        self.live = live
        self.history = history
        self.tournaments = tournaments
        self.hub = hub

        self.jinja_env = Environment(
            loader=FileSystemLoader(str(templates_path)),
            autoescape=select_autoescape(["html"]),
            auto_reload=False,
            cache_size=50,
        )
        self.jinja_env.filters["clock"] = format_clock

    # -- rendering ------------------------------------------------------

    def render(
        self,
        request: web.Request,
        template_name: str,
        status: int = 200,
        **context: Any,
    ) -> web.Response:
        """
        Render a page with the shared layout context.

        @param request: Current request
        @param template_name: Template file under the templates directory
        @param status: HTTP status
        @param context: Page variables
        @return: HTML response
        """
        flash = None
        raw = request.cookies.get(FLASH_COOKIE)
        if raw:
            category, _, message = unquote(raw).partition("|")
            flash = {"category": category, "message": message}

        template = self.jinja_env.get_template(template_name)
        html = template.render(
            config=self.config,
            auth=request.get("auth"),
            flash=flash,
            path=request.path,
            **context,
        )
        response = web.Response(text=html, content_type="text/html", status=status)
        if raw:
            response.del_cookie(FLASH_COOKIE)
        return response

    # -- pages ----------------------------------------------------------

    async def web_index(self, request: web.Request) -> web.Response:
        return self.render(
            request,
            "index.html",
            title="Home",
            sports=all_sports(),
            live_count=len(self.live.matches),
        )

    async def web_sports(self, request: web.Request) -> web.Response:
        return self.render(request, "sports.html", title="Sports", sports=all_sports())

    async def web_login(self, request: web.Request) -> web.Response:
        if request.get("auth"):
            raise web.HTTPFound("/sports")
        return self.render(request, "login.html", title="Login")

    async def web_login_submit(self, request: web.Request) -> web.Response:
        """
        Log in against the backend and set the session cookie.

        @param request: Form POST with email and password
        @return: Redirect to the sports page, or back to the login form
        """
        form = await request.post()
        email = str(form.get("email", "")).strip()
        password = str(form.get("password", ""))
        if not email or not password:
            raise _redirect("/login", "Email and password are required")

        try:
            session = await self.auth.login(email, password)
        except ApiError as e:
            logger.error("Login failed for %s: %s", email, e)
            raise _redirect("/login", e.message or "Login failed")

        logger.info("User %s logged in as %s", session.user.username, session.user.role)
        response = _redirect("/sports", f"Welcome back, {session.user.username}!", "success")
        value, options = session_cookie(session, self.config.get("session", "session_ttl_hours"))
        response.set_cookie(self.config.get("session", "cookie_name"), value, **options)
        raise response

    async def web_register(self, request: web.Request) -> web.Response:
        if not self.config.is_feature_enabled("registration_enabled"):
            raise web.HTTPNotFound(text="Registration is disabled")
        return self.render(request, "register.html", title="Register")

    async def web_register_submit(self, request: web.Request) -> web.Response:
        if not self.config.is_feature_enabled("registration_enabled"):
            raise web.HTTPNotFound(text="Registration is disabled")

        form = await request.post()
        username = str(form.get("username", "")).strip()
        email = str(form.get("email", "")).strip()
        password = str(form.get("password", ""))
        confirm = str(form.get("confirmPassword", ""))

        try:
            if not username or not email or not password:
                raise ValidationError("All fields are required")
            if password != confirm:
                raise ValidationError("Passwords do not match")
            if len(password) < 6:
                raise ValidationError("Password must be at least 6 characters")
            await self.auth.client.register(username, email, password)
        except ArenaError as e:
            logger.error("Registration failed for %s: %s", email, e)
            raise _redirect("/register", getattr(e, "message", None) or str(e))

        logger.info("User %s registered", username)
        raise _redirect("/login", "Registration successful. Please log in.", "success")

    async def web_logout(self, request: web.Request) -> web.Response:
        auth: Optional[AuthSession] = request.get("auth")
        if auth:
            await self.auth.logout(auth.session_id)
            logger.info("User %s logged out", auth.user.username)
        response = _redirect("/", "You have been logged out.", "success")
        response.del_cookie(self.config.get("session", "cookie_name"))
        raise response

    async def web_live_scores(self, request: web.Request) -> web.Response:
        return self.render(
            request,
            "live_scores.html",
            title="Live Scores",
            matches=self.live.rows(),
            poll_interval=self.config.get("polling", "live_interval"),
        )

    async def web_history(self, request: web.Request) -> web.Response:
        sport = request.query.get("sport", ALL)
        try:
            await self.history.refresh(_token(request))
        except ApiError as e:
            logger.error("Error fetching matches: %s", e)
            return self.render(
                request, "history.html", title="Match History", matches=[],
                sports=all_sports(), filter=sport, error=str(e),
            )

        limit = self.config.get("ui", "history_page_size")
        return self.render(
            request,
            "history.html",
            title="Match History",
            matches=self.history.rows(sport)[:limit],
            sports=all_sports(),
            filter=sport,
        )

    @require_scoring
    async def web_history_delete(self, request: web.Request) -> web.Response:
        match_id = request.match_info["match_id"]
        try:
            await self.history.delete(match_id, _token(request))
        except ApiError as e:
            logger.error("Error deleting match %s: %s", match_id, e)
            raise _redirect("/history", f"Failed to delete match: {e.message}")
        raise _redirect("/history", "Match deleted successfully", "success")

    @require_admin
    async def web_tournament(self, request: web.Request) -> web.Response:
        if not self.config.is_feature_enabled("tournaments_enabled"):
            raise web.HTTPNotFound(text="Tournaments are disabled")
        try:
            tournaments = await self.tournaments.list(_token(request))
        except ApiError as e:
            logger.error("Error fetching tournaments: %s", e)
            tournaments = []
        return self.render(
            request,
            "tournament.html",
            title="Tournaments",
            tournaments=tournaments,
            sports=all_sports(),
            formats=FORMATS,
        )

    @require_admin
    async def web_tournament_create(self, request: web.Request) -> web.Response:
        if not self.config.is_feature_enabled("tournaments_enabled"):
            raise web.HTTPNotFound(text="Tournaments are disabled")
        form = await request.post()
        try:
            await self.tournaments.create(dict(form), _token(request))
        except ArenaError as e:
            logger.error("Error creating tournament: %s", e)
            raise _redirect("/tournament", getattr(e, "message", None) or str(e))
        raise _redirect("/tournament", "Tournament created successfully!", "success")

    # -- arenas ---------------------------------------------------------

    def _arena(self, request: web.Request) -> ArenaController:
        try:
            return self.arenas.get(request.match_info["sport"])
        except UnknownSportError:
            raise web.HTTPNotFound(text="Unknown sport")

    def _arena_done(
        self,
        request: web.Request,
        arena: ArenaController,
        message: Optional[str] = None,
        query: str = "",
    ) -> web.Response:
        """Reply to an arena POST: JSON state for scripts, a redirect for forms."""
        if _wants_json(request):
            return web.json_response({"success": True, "data": arena.state()})
        raise _redirect(f"/arena/{arena.sport.slug}{query}", message, "success")

    def _arena_failed(
        self,
        request: web.Request,
        arena: ArenaController,
        error: ArenaError,
        query: str = "",
    ) -> web.Response:
        message = getattr(error, "message", None) or str(error)
        logger.error("%s arena: %s", arena.sport.name, error)
        if _wants_json(request):
            status = 502 if isinstance(error, ApiError) else 400
            return web.json_response({"success": False, "error": message}, status=status)
        raise _redirect(f"/arena/{arena.sport.slug}{query}", message)

    @require_scoring
    async def web_arena(self, request: web.Request) -> web.Response:
        """
        Arena scoring page.

        Resumes the sport's live match from the backend when the arena is idle.

        @param request: HTTP request with the sport slug
        @return: Rendered arena page
        """
        arena = self._arena(request)
        error = None
        if not arena.is_live and not arena.is_completed:
            try:
                await arena.load_existing(_token(request))
            except ApiError as e:
                logger.error("Error loading existing %s match: %s", arena.sport.slug, e)
                error = str(e)

        return self.render(
            request,
            "arena.html",
            title=f"{arena.sport.name} Arena",
            sport=arena.sport,
            arena=arena.state(),
            fields=settings_fields(arena.sport.slug),
            show_names=request.query.get("names") == "1",
            poll_interval=self.config.get("polling", "arena_interval"),
            error=error,
        )

    @require_scoring
    async def web_arena_start(self, request: web.Request) -> web.Response:
        arena = self._arena(request)
        form = await request.post()
        names = {key: form.get(key, "") for key in arena.sport.side_keys}
        raw_settings = {f["key"]: form.get(f["key"], "") for f in settings_fields(arena.sport.slug)}

        try:
            await arena.start_match(names, raw_settings, _token(request))
        except NamesRequiredError as e:
            return self._arena_failed(request, arena, e, "?names=1")
        except ArenaError as e:
            return self._arena_failed(request, arena, e)
        return self._arena_done(request, arena, f"{arena.sport.name} match started!")

    @require_scoring
    async def web_arena_action(self, request: web.Request) -> web.Response:
        arena = self._arena(request)
        form = await request.post()
        action = str(form.get("action", ""))
        side = form.get("side") or None
        details: Dict[str, Any] = {k: v for k, v in form.items() if k not in ACTION_FIELDS}

        try:
            await arena.record(action, side, _token(request), **details)
        except ArenaError as e:
            return self._arena_failed(request, arena, e)
        return self._arena_done(request, arena)

    @require_scoring
    async def web_arena_clock(self, request: web.Request) -> web.Response:
        arena = self._arena(request)
        form = await request.post()
        try:
            arena.clock_command(str(form.get("command", "")))
        except ArenaError as e:
            return self._arena_failed(request, arena, e)
        return self._arena_done(request, arena)

    @require_scoring
    async def web_arena_undo(self, request: web.Request) -> web.Response:
        arena = self._arena(request)
        try:
            await arena.undo(_token(request))
        except ArenaError as e:
            return self._arena_failed(request, arena, e)
        return self._arena_done(request, arena, "Last action undone")

    @require_scoring
    async def web_arena_end(self, request: web.Request) -> web.Response:
        arena = self._arena(request)
        form = await request.post()
        try:
            await arena.end_match(_token(request), str(form.get("reason", "")).strip() or None)
        except ArenaError as e:
            return self._arena_failed(request, arena, e)
        return self._arena_done(request, arena, "Match ended")

    @require_scoring
    async def web_arena_settings(self, request: web.Request) -> web.Response:
        arena = self._arena(request)
        form = await request.post()
        try:
            arena.configure(dict(form))
        except ArenaError as e:
            return self._arena_failed(request, arena, e)
        return self._arena_done(request, arena, "Match settings saved")

    @require_scoring
    async def web_arena_new(self, request: web.Request) -> web.Response:
        arena = self._arena(request)
        try:
            arena.new_match()
        except ArenaError as e:
            return self._arena_failed(request, arena, e)
        return self._arena_done(request, arena)

    # -- JSON and push --------------------------------------------------

    @require_scoring
    async def web_api_arena(self, request: web.Request) -> web.Response:
        arena = self._arena(request)
        return web.json_response({"success": True, "data": arena.state()})

    async def web_api_live(self, _: web.Request) -> web.Response:
        return web.json_response({"success": True, "data": self.live.rows()})

    async def web_socket(self, request: web.Request) -> web.WebSocketResponse:
        """
        Browser push socket; receives every backend push event as JSON.

        @param request: WebSocket upgrade request
        @return: WebSocket response once the browser disconnects
        """
        ws = web.WebSocketResponse(heartbeat=30)
        await ws.prepare(request)
        self.hub.add(ws)
        logger.debug("Browser socket connected (%d open)", len(self.hub.sockets))

        try:
            async for msg in ws:
                if msg.type == WSMsgType.ERROR:
                    logger.warning("Browser socket error: %s", ws.exception())
        finally:
            self.hub.discard(ws)
        return ws
