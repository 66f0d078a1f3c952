"""Leaderboard API endpoint."""

from fastapi import APIRouter, Query

from gamebridge.services.dependencies import Services
from gamebridge.services.leaderboard import LeaderboardItem

router = APIRouter(prefix="/leaderboard", tags=["Leaderboard"])


@router.get("", response_model=list[LeaderboardItem])
async def get_leaderboard(
    services: Services,
    limit: int | None = Query(None, ge=1, description="Maximum entries"),
) -> list[LeaderboardItem]:
    """Get top winners by total payout.

    Capped at ``leaderboard_limit`` entries regardless of ``limit``.
    """
    cap = services.settings.leaderboard_limit
    n = min(limit, cap) if limit else cap
    return [LeaderboardItem.from_entry(entry) for entry in services.store.top_n(n)]
