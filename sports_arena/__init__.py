"""
Sports Arena scorekeeping desk.

This package provides:
- Scoring arenas for cricket, football, basketball, chess, volleyball,
  badminton and table tennis
- A client for the Sports Arena REST backend and its push channel
- Live scoreboard, match history and tournament pages
- Role-based login sessions stored in SQLite
"""

from .config import ArenaConfig
from .database import SessionStore
from .api_client import BackendClient
from .realtime import RealtimeChannel, BrowserHub
from .arenas import ArenaController, ArenaRegistry
from .web_handlers import WebHandlers
from .system import ArenaSystem

__version__ = "1.0.0"
__author__ = "Sports Arena Contributors"

__all__ = [
    "ArenaConfig",
    "SessionStore",
    "BackendClient",
    "RealtimeChannel",
    "BrowserHub",
    "ArenaController",
    "ArenaRegistry",
    "WebHandlers",
    "ArenaSystem",
]
