"""
Authentication state and role-based route guards.
"""

import logging
import time
from dataclasses import dataclass, field
from functools import wraps
from typing import Any, Dict, Optional, Tuple

from aiohttp import web

from .api_client import BackendClient
from .database import SessionStore
from .errors import ApiError

logger = logging.getLogger(__name__)

ROLES = ("admin", "scorer", "user")


@dataclass
class User:
    id: str
    username: str
    email: str
    role: str = "user"
    is_active: bool = True
    last_login: Optional[str] = None
    created_at: Optional[str] = None

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "User":
        """Build a user from the backend's user record."""
        role = record.get("role") if record.get("role") in ROLES else "user"
        return cls(
            id=str(record.get("_id") or record.get("id") or ""),
            username=record.get("username") or "",
            email=record.get("email") or "",
            role=role,
            is_active=bool(record.get("isActive", True)),
            last_login=record.get("lastLogin"),
            created_at=record.get("createdAt"),
        )


@dataclass
class AuthSession:
    """The logged-in user, their backend token and role predicates."""

    user: User
    token: str
    session_id: str = ""
    verified_at: float = field(default_factory=time.time)

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    def has_role(self, role: str) -> bool:
        return self.user.role == role

    def can_score(self) -> bool:
        return self.user.role in ("admin", "scorer")

    def can_admin(self) -> bool:
        return self.user.role == "admin"


class AuthManager:
    """Logs users in against the backend and restores their sessions."""

    def __init__(
        self,
        store: SessionStore,
        client: BackendClient,
        verify_interval: int = 300,
    ) -> None:
        self.store = store
        self.client = client
        self.verify_interval = verify_interval

    async def login(self, email: str, password: str) -> AuthSession:
        """
        Authenticate against the backend and persist the session.

        @param email: Account email
        @param password: Account password
        @return: New session
        """
        data = await self.client.login(email, password)
        session_id = await self.store.create(data["user"], data["token"])
        return AuthSession(
            user=User.from_record(data["user"]),
            token=data["token"],
            session_id=session_id,
        )

    async def logout(self, session_id: str) -> None:
        await self.store.delete(session_id)

    async def restore(self, session_id: Optional[str]) -> Optional[AuthSession]:
        """
        Load a stored session, re-verifying its token when stale.

        A token the backend no longer accepts clears the session.

        @param session_id: Session id from the cookie
        @return: Session, or None when absent, expired or rejected
        """
        if not session_id:
            return None
        record = await self.store.get(session_id)
        if record is None:
            return None

        user = record["user"]
        verified_at = record["verified_at"]

        if time.time() - verified_at >= self.verify_interval:
            try:
                user = await self.client.profile(record["token"])
            except ApiError as e:
                if e.status is None:
                    # Backend unreachable, keep the session until it answers.
                    logger.warning("Token verification skipped: %s", e)
                else:
                    logger.error("Token verification failed: %s", e)
                    await self.store.delete(session_id)
                    return None
            else:
                await self.store.mark_verified(session_id, user)
                verified_at = time.time()

        return AuthSession(
            user=User.from_record(user),
            token=record["token"],
            session_id=session_id,
            verified_at=verified_at,
        )


def _guard(
    role: Optional[str] = None,
    scoring: bool = False,
    admin: bool = False,
):
    def decorator(handler):
        @wraps(handler)
        async def wrapper(self, request: web.Request) -> web.StreamResponse:
            auth: Optional[AuthSession] = request.get("auth")

            if auth is None or not auth.is_authenticated:
                logger.debug("Not authenticated, redirecting to login")
                raise web.HTTPFound("/login")
            if role and not auth.has_role(role):
                raise web.HTTPFound("/")
            if scoring and not auth.can_score():
                raise web.HTTPFound("/")
            if admin and not auth.can_admin():
                raise web.HTTPFound("/")

            return await handler(self, request)

        return wrapper

    return decorator


def require_login(handler):
    """Redirect anonymous visitors to the login page."""
    return _guard()(handler)


def require_role(role: str):
    return _guard(role=role)


def require_scoring(handler):
    """Only admins and scorers may open arenas."""
    return _guard(scoring=True)(handler)


def require_admin(handler):
    return _guard(admin=True)(handler)


def session_cookie(auth: AuthSession, ttl_hours: int) -> Tuple[str, Dict[str, Any]]:
    """Cookie value and attributes for a session."""
    return auth.session_id, {
        "max_age": ttl_hours * 3600,
        "httponly": True,
        "samesite": "Lax",
    }
