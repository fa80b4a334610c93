"""
HTTP client for the Sports Arena backend REST API.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

import aiohttp

from .errors import ApiError

logger = logging.getLogger(__name__)


class BackendClient:
    """Thin async wrapper over the backend endpoints and their response envelope."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 10,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self._session = session
        self._owns_session = session is None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        """Close the underlying HTTP session if this client created it."""
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()

    async def _request(
        self,
        method: str,
        path: str,
        token: Optional[str] = None,
        payload: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """
        Send a request and unwrap the ``{success, data, error}`` envelope.

        @param method: HTTP method
        @param path: Path below the backend base URL
        @param token: Bearer token, sent when given
        @param payload: JSON body
        @return: The envelope's ``data`` member
        """
        url = f"{self.base_url}{path}"
        headers = {"Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"

        session = await self._get_session()
        try:
            async with session.request(method, url, json=payload, headers=headers) as resp:
                try:
                    body = await resp.json(content_type=None)
                except ValueError:
                    body = None

                if not isinstance(body, dict):
                    if resp.status >= 400:
                        raise ApiError(resp.status, resp.reason or "Request failed")
                    raise ApiError(resp.status, "Malformed response from server")

                if resp.status >= 400 or body.get("success") is False:
                    message = body.get("error") or body.get("message") or resp.reason or "Request failed"
                    raise ApiError(resp.status, str(message))

                return body.get("data")

        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error("%s %s failed: %s", method, url, e)
            raise ApiError(None, "Network error. Please try again.") from e

    # -- users ----------------------------------------------------------

    async def register(self, username: str, email: str, password: str) -> Dict[str, Any]:
        return await self._request(
            "POST",
            "/api/users/register",
            payload={"username": username, "email": email, "password": password},
        )

    async def login(self, email: str, password: str) -> Dict[str, Any]:
        """
        Log in and return ``{"user": {...}, "token": "..."}``.

        @param email: Account email
        @param password: Account password
        @return: User record and bearer token
        """
        data = await self._request(
            "POST",
            "/api/users/login",
            payload={"email": email, "password": password},
        )
        if not isinstance(data, dict) or "token" not in data or "user" not in data:
            raise ApiError(None, "Malformed login response")
        return data

    async def profile(self, token: str) -> Dict[str, Any]:
        return await self._request("GET", "/api/users/profile", token=token)

    # -- matches --------------------------------------------------------

    async def list_matches(self, token: Optional[str] = None) -> List[Dict[str, Any]]:
        return await self._request("GET", "/api/matches", token=token) or []

    async def live_matches(self, token: Optional[str] = None) -> List[Dict[str, Any]]:
        return await self._request("GET", "/api/matches/live", token=token) or []

    async def get_match(self, match_id: str, token: Optional[str] = None) -> Dict[str, Any]:
        return await self._request("GET", f"/api/matches/{match_id}", token=token)

    async def create_match(self, payload: Dict[str, Any], token: Optional[str] = None) -> Dict[str, Any]:
        return await self._request("POST", "/api/matches", token=token, payload=payload)

    async def start_match(self, match_id: str, token: Optional[str] = None) -> Dict[str, Any]:
        return await self._request("PUT", f"/api/matches/{match_id}/start", token=token)

    async def update_score(
        self,
        match_id: str,
        sport: str,
        action: str,
        team: str,
        details: Dict[str, Any],
        token: Optional[str] = None,
    ) -> Optional[Dict[str, Any]]:
        return await self._request(
            "PUT",
            f"/api/matches/{match_id}/score",
            token=token,
            payload={"sport": sport, "action": action, "team": team, "details": details},
        )

    async def end_match(
        self,
        match_id: str,
        winner: str,
        reason: str,
        token: Optional[str] = None,
    ) -> Optional[Dict[str, Any]]:
        return await self._request(
            "PUT",
            f"/api/matches/{match_id}/end",
            token=token,
            payload={"winner": winner, "winningReason": reason},
        )

    async def undo(self, match_id: str, token: Optional[str] = None) -> Optional[Dict[str, Any]]:
        return await self._request("POST", f"/api/matches/{match_id}/undo", token=token)

    async def delete_match(self, match_id: str, token: Optional[str] = None) -> None:
        await self._request("DELETE", f"/api/matches/{match_id}", token=token)

    # -- tournaments ----------------------------------------------------

    async def list_tournaments(self, token: Optional[str] = None) -> List[Dict[str, Any]]:
        return await self._request("GET", "/api/tournaments", token=token) or []

    async def create_tournament(self, payload: Dict[str, Any], token: Optional[str] = None) -> Dict[str, Any]:
        return await self._request("POST", "/api/tournaments", token=token, payload=payload)
