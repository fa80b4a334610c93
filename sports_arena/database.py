"""
Session persistence for the scorekeeping desk.
"""

import json
import logging
import secrets
import time
from typing import Dict, Any, Optional, Tuple

import aiosqlite

logger = logging.getLogger(__name__)


class SessionStore:
    """Stores logged-in sessions in SQLite with a small read cache."""

    def __init__(
        self,
        db_path: str,
        ttl_hours: int = 168,
    ) -> None:
        self.db_path = db_path
        self.ttl_seconds = ttl_hours * 3600
        # Sessions read in the last few seconds skip the database
        self._cache: Dict[str, Tuple[Any, float]] = {}
        self._cache_ttl = 30

    def _cached(self, session_id: str) -> Optional[Any]:
        entry = self._cache.get(session_id)
        if entry is None:
            return None
        session, stored_at = entry
        if time.time() - stored_at >= self._cache_ttl:
            self._cache.pop(session_id, None)
            return None
        return session

    def _remember(self, session_id: str, session: Any) -> None:
        self._cache[session_id] = (session, time.time())

    def _forget(self, session_id: Optional[str] = None) -> None:
        """
        Drop one cached session, or every cached session.

        @param session_id: Session to drop, None clears the whole cache
        """
        if session_id is None:
            self._cache.clear()
        else:
            self._cache.pop(session_id, None)

    async def init_db(self) -> None:
        """
        Initialize the SQLite database schema.

        Creates the sessions table and its index if they do not exist.
        """
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute("PRAGMA journal_mode=WAL")
            await db.execute("PRAGMA synchronous=NORMAL")

            await db.execute("""
                CREATE TABLE IF NOT EXISTS sessions (
                    id TEXT PRIMARY KEY,
                    user_json TEXT NOT NULL,
                    token TEXT NOT NULL,
                    created_at REAL NOT NULL,
                    verified_at REAL NOT NULL
                )
            """)
            await db.execute("""
                CREATE INDEX IF NOT EXISTS idx_sessions_created
                ON sessions(created_at)
            """)

            await db.commit()

    async def create(
        self,
        user: Dict[str, Any],
        token: str,
    ) -> str:
        """
        Store a new session.

        @param user: Backend user record
        @param token: Backend bearer token
        @return: Opaque session id for the cookie
        """
        session_id = secrets.token_urlsafe(32)
        now = time.time()

        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                "INSERT INTO sessions (id, user_json, token, created_at, verified_at) "
                "VALUES (?, ?, ?, ?, ?)",
                (session_id, json.dumps(user), token, now, now),
            )
            await db.commit()

        logger.info("Session created for %s", user.get("username") or user.get("email"))
        return session_id

    async def get(
        self,
        session_id: str,
    ) -> Optional[Dict[str, Any]]:
        """
        Load a session, dropping it when expired.

        @param session_id: Session id from the cookie
        @return: Dictionary with user, token, created_at and verified_at, or None
        """
        cached = self._cached(session_id)
        if cached is not None:
            if time.time() - cached["created_at"] < self.ttl_seconds:
                return cached
            self._forget(session_id)

        async with aiosqlite.connect(self.db_path) as db:
            cursor = await db.execute(
                "SELECT user_json, token, created_at, verified_at FROM sessions WHERE id = ?",
                (session_id,),
            )
            row = await cursor.fetchone()

        if row is None:
            return None

        user_json, token, created_at, verified_at = row
        if time.time() - created_at >= self.ttl_seconds:
            await self.delete(session_id)
            return None

        try:
            user = json.loads(user_json)
        except ValueError:
            logger.error("Corrupt session record %s, removing", session_id[:8])
            await self.delete(session_id)
            return None

        session = {
            "user": user,
            "token": token,
            "created_at": created_at,
            "verified_at": verified_at,
        }
        self._remember(session_id, session)
        return session

    async def mark_verified(
        self,
        session_id: str,
        user: Dict[str, Any],
    ) -> None:
        """
        Record a successful token re-check and the refreshed user record.

        @param session_id: Session id
        @param user: User record returned by the profile endpoint
        """
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                "UPDATE sessions SET user_json = ?, verified_at = ? WHERE id = ?",
                (json.dumps(user), time.time(), session_id),
            )
            await db.commit()
        self._forget(session_id)

    async def delete(
        self,
        session_id: str,
    ) -> None:
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute("DELETE FROM sessions WHERE id = ?", (session_id,))
            await db.commit()
        self._forget(session_id)

    async def purge_expired(self) -> int:
        """
        Remove expired sessions.

        @return: Number of sessions removed
        """
        cutoff = time.time() - self.ttl_seconds
        async with aiosqlite.connect(self.db_path) as db:
            cursor = await db.execute("DELETE FROM sessions WHERE created_at < ?", (cutoff,))
            await db.commit()
            removed = cursor.rowcount

        self._forget()
        if removed:
            logger.info("Purged %d expired sessions", removed)
        return removed
