"""
Shared fixtures: an in-memory Sports Arena backend served by aiohttp.
"""

import copy
import itertools
from typing import Any, Dict, List, Optional

import pytest
from aiohttp import web

from sports_arena.api_client import BackendClient
from sports_arena.sports import SPORTS

USERS = {
    "admin@example.com": {
        "password": "adminpass",
        "token": "tok-admin",
        "user": {"_id": "u1", "username": "admin", "email": "admin@example.com", "role": "admin"},
    },
    "scorer@example.com": {
        "password": "scorerpass",
        "token": "tok-scorer",
        "user": {"_id": "u2", "username": "scorer", "email": "scorer@example.com", "role": "scorer"},
    },
    "fan@example.com": {
        "password": "fanpass",
        "token": "tok-fan",
        "user": {"_id": "u3", "username": "fan", "email": "fan@example.com", "role": "user"},
    },
}


def ok(data: Any = None, status: int = 200) -> web.Response:
    return web.json_response({"success": True, "data": data}, status=status)


def fail(message: str, status: int) -> web.Response:
    return web.json_response({"success": False, "error": message}, status=status)


class FakeBackend:
    """Minimal stand-in for the REST API, recording every score update."""

    def __init__(self) -> None:
        self.users = copy.deepcopy(USERS)
        self.matches: Dict[str, Dict[str, Any]] = {}
        self.tournaments: List[Dict[str, Any]] = []
        self.updates: List[Dict[str, Any]] = []
        self.ended: List[Dict[str, Any]] = []
        self.undos: List[str] = []
        # Score block returned by the score endpoint, keyed by match id.
        self.score_replies: Dict[str, Dict[str, Any]] = {}
        # When set, every request fails with this status.
        self.fail_status: Optional[int] = None
        self._ids = itertools.count(1)

        self.app = web.Application(middlewares=[self._failure_middleware])
        self.app.router.add_post("/api/users/register", self.register)
        self.app.router.add_post("/api/users/login", self.login)
        self.app.router.add_get("/api/users/profile", self.profile)
        self.app.router.add_get("/api/matches", self.list_matches)
        self.app.router.add_get("/api/matches/live", self.live_matches)
        self.app.router.add_post("/api/matches", self.create_match)
        self.app.router.add_get("/api/matches/{id}", self.get_match)
        self.app.router.add_delete("/api/matches/{id}", self.delete_match)
        self.app.router.add_put("/api/matches/{id}/start", self.start_match)
        self.app.router.add_put("/api/matches/{id}/score", self.update_score)
        self.app.router.add_put("/api/matches/{id}/end", self.end_match)
        self.app.router.add_post("/api/matches/{id}/undo", self.undo)
        self.app.router.add_get("/api/tournaments", self.list_tournaments)
        self.app.router.add_post("/api/tournaments", self.create_tournament)

    @web.middleware
    async def _failure_middleware(self, request, handler):
        if self.fail_status is not None:
            return fail("Backend unavailable", self.fail_status)
        return await handler(request)

    def _user_for(self, request: web.Request) -> Optional[Dict[str, Any]]:
        header = request.headers.get("Authorization", "")
        token = header[len("Bearer "):] if header.startswith("Bearer ") else None
        for entry in self.users.values():
            if token and entry["token"] == token:
                return entry["user"]
        return None

    def _match(self, request: web.Request) -> Dict[str, Any]:
        match = self.matches.get(request.match_info["id"])
        if match is None:
            raise web.HTTPNotFound(
                text='{"success": false, "error": "Match not found"}',
                content_type="application/json",
            )
        return match

    def add_match(self, sport: str, status: str = "live", **fields: Any) -> Dict[str, Any]:
        match_id = f"m{next(self._ids)}"
        match = {"_id": match_id, "sport": sport, "status": status, **fields}
        self.matches[match_id] = match
        return match

    # -- users ----------------------------------------------------------

    async def register(self, request):
        body = await request.json()
        if body["email"] in self.users:
            return fail("User already exists", 400)
        user = {"_id": f"u{next(self._ids)}", "username": body["username"], "email": body["email"], "role": "user"}
        self.users[body["email"]] = {"password": body["password"], "token": f"tok-{body['username']}", "user": user}
        return ok({"user": user}, status=201)

    async def login(self, request):
        body = await request.json()
        entry = self.users.get(body.get("email"))
        if entry is None or entry["password"] != body.get("password"):
            return fail("Invalid credentials", 401)
        return ok({"user": entry["user"], "token": entry["token"]})

    async def profile(self, request):
        user = self._user_for(request)
        if user is None:
            return fail("Not authorized", 401)
        return ok(user)

    # -- matches --------------------------------------------------------

    async def list_matches(self, request):
        return ok(list(self.matches.values()))

    async def live_matches(self, request):
        live = []
        for match in self.matches.values():
            if match["status"] == "live":
                field = SPORTS[match["sport"]].score_field
                live.append({**match, "score": match.get(field) or {}})
        return ok(live)

    async def create_match(self, request):
        if self._user_for(request) is None:
            return fail("Not authorized", 401)
        body = await request.json()
        match = self.add_match(body.pop("sport"), body.pop("status", "scheduled"), **body)
        return ok(match, status=201)

    async def get_match(self, request):
        return ok(self._match(request))

    async def delete_match(self, request):
        match = self._match(request)
        del self.matches[match["_id"]]
        return ok()

    async def start_match(self, request):
        match = self._match(request)
        match["status"] = "live"
        return ok(match)

    async def update_score(self, request):
        if self._user_for(request) is None:
            return fail("Not authorized", 401)
        match = self._match(request)
        body = await request.json()
        self.updates.append({"matchId": match["_id"], **body})
        reply = self.score_replies.get(match["_id"])
        if reply is not None:
            match[SPORTS[match["sport"]].score_field] = reply
        return ok(match)

    async def end_match(self, request):
        match = self._match(request)
        body = await request.json()
        match["status"] = "completed"
        match["winner"] = body.get("winner")
        match["winningReason"] = body.get("winningReason")
        self.ended.append({"matchId": match["_id"], **body})
        return ok(match)

    async def undo(self, request):
        match = self._match(request)
        self.undos.append(match["_id"])
        return ok(match)

    # -- tournaments ----------------------------------------------------

    async def list_tournaments(self, request):
        return ok(self.tournaments)

    async def create_tournament(self, request):
        user = self._user_for(request)
        if user is None or user["role"] != "admin":
            return fail("Admin access required", 403)
        body = await request.json()
        tournament = {"_id": f"t{next(self._ids)}", **body}
        self.tournaments.append(tournament)
        return ok(tournament, status=201)


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
async def backend_server(aiohttp_server, backend):
    return await aiohttp_server(backend.app)


@pytest.fixture
async def api(backend_server):
    client = BackendClient(str(backend_server.make_url("")))
    yield client
    await client.close()


class FakeSocket:
    """Records emits in place of a python-socketio AsyncClient."""

    def __init__(self) -> None:
        self.handlers: Dict[str, Any] = {}
        self.emitted: List[tuple] = []
        self.connected = False
        self.sid = "fake-sid"

    def on(self, event, handler=None):
        self.handlers[event] = handler

    async def connect(self, url, transports=None):
        self.connected = True

    async def disconnect(self):
        self.connected = False

    async def emit(self, event, data=None):
        self.emitted.append((event, data))


@pytest.fixture
def fake_socket():
    return FakeSocket()
