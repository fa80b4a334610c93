import time

import pytest
from aiohttp import web

from sports_arena.auth import AuthManager, AuthSession, User, require_scoring, session_cookie
from sports_arena.database import SessionStore
from sports_arena.errors import ApiError


@pytest.fixture
async def store(tmp_path):
    store = SessionStore(str(tmp_path / "sessions.db"), ttl_hours=1)
    await store.init_db()
    return store


async def test_session_round_trip(store):
    session_id = await store.create({"username": "scorer"}, "tok-scorer")
    record = await store.get(session_id)
    assert record["user"] == {"username": "scorer"}
    assert record["token"] == "tok-scorer"

    await store.delete(session_id)
    assert await store.get(session_id) is None


async def test_expired_sessions_are_dropped(store):
    session_id = await store.create({"username": "old"}, "tok")
    store.ttl_seconds = 0
    store._forget()
    assert await store.get(session_id) is None
    assert await store.purge_expired() == 0


async def test_purge_expired(store):
    await store.create({"username": "a"}, "tok-a")
    await store.create({"username": "b"}, "tok-b")
    store.ttl_seconds = -1
    assert await store.purge_expired() == 2


def test_user_from_record_defaults_role():
    user = User.from_record({"_id": "u9", "username": "x", "email": "x@y", "role": "superuser"})
    assert user.role == "user"
    assert user.id == "u9"


def test_role_predicates():
    scorer = AuthSession(User("1", "s", "s@x", "scorer"), "tok")
    admin = AuthSession(User("2", "a", "a@x", "admin"), "tok")
    fan = AuthSession(User("3", "f", "f@x", "user"), "tok")
    assert scorer.can_score() and not scorer.can_admin()
    assert admin.can_score() and admin.can_admin()
    assert not fan.can_score()
    assert fan.has_role("user")


def test_session_cookie_options():
    value, options = session_cookie(AuthSession(User("1", "s", "s@x"), "tok", "sid"), 2)
    assert value == "sid"
    assert options["max_age"] == 7200
    assert options["httponly"] is True


async def test_login_and_restore(store, api):
    auth = AuthManager(store, api, verify_interval=300)
    session = await auth.login("admin@example.com", "adminpass")
    assert session.user.role == "admin"

    restored = await auth.restore(session.session_id)
    assert restored.user.username == "admin"
    assert restored.token == "tok-admin"

    await auth.logout(session.session_id)
    assert await auth.restore(session.session_id) is None
    assert await auth.restore(None) is None


async def test_login_failure_creates_no_session(store, api):
    auth = AuthManager(store, api)
    with pytest.raises(ApiError):
        await auth.login("admin@example.com", "nope")


async def test_stale_session_is_reverified(store, api, backend):
    auth = AuthManager(store, api, verify_interval=0)
    session = await auth.login("scorer@example.com", "scorerpass")

    backend.users["scorer@example.com"]["user"]["role"] = "admin"
    restored = await auth.restore(session.session_id)
    assert restored.user.role == "admin"
    assert restored.verified_at <= time.time()


async def test_rejected_token_clears_session(store, api, backend):
    auth = AuthManager(store, api, verify_interval=0)
    session = await auth.login("scorer@example.com", "scorerpass")

    backend.users["scorer@example.com"]["token"] = "rotated"
    assert await auth.restore(session.session_id) is None
    assert await store.get(session.session_id) is None


async def test_unreachable_backend_keeps_session(store, unused_tcp_port):
    from sports_arena.api_client import BackendClient

    session_id = await store.create({"username": "scorer", "role": "scorer"}, "tok-scorer")
    client = BackendClient(f"http://127.0.0.1:{unused_tcp_port}", timeout=2)
    try:
        auth = AuthManager(store, client, verify_interval=0)
        restored = await auth.restore(session_id)
    finally:
        await client.close()
    assert restored is not None
    assert restored.user.role == "scorer"


class Guarded:
    @require_scoring
    async def handler(self, request):
        return web.Response(text="ok")


class FakeRequest(dict):
    pass


async def test_guard_redirects():
    guarded = Guarded()

    with pytest.raises(web.HTTPFound) as excinfo:
        await guarded.handler(FakeRequest())
    assert excinfo.value.location == "/login"

    fan = FakeRequest(auth=AuthSession(User("3", "f", "f@x", "user"), "tok"))
    with pytest.raises(web.HTTPFound) as excinfo:
        await guarded.handler(fan)
    assert excinfo.value.location == "/"

    scorer = FakeRequest(auth=AuthSession(User("1", "s", "s@x", "scorer"), "tok"))
    response = await guarded.handler(scorer)
    assert response.text == "ok"
