"""Service layer modules for Makelaarwatch."""

from .history import SyncHistoryService  # noqa: F401
from .leaderboard import LeaderboardService  # noqa: F401
from .sync import *  # noqa: F401,F403
from .sync_service import SyncService  # noqa: F401

__all__ = ["LeaderboardService", "SyncHistoryService", "SyncService"] + [
    name
    for name in dir()
    if not name.startswith("_") and name not in {"LeaderboardService", "SyncHistoryService", "SyncService"}
]
