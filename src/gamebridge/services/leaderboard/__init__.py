"""Leaderboard aggregation service."""

from gamebridge.services.leaderboard.schemas import LeaderboardEntry, LeaderboardItem
from gamebridge.services.leaderboard.store import LeaderboardStore

__all__ = [
    "LeaderboardEntry",
    "LeaderboardItem",
    "LeaderboardStore",
]
