"""Leaderboard schemas."""

from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field


@dataclass
class LeaderboardEntry:
    """Aggregated settlement results for one address."""

    address: str
    wins: int = 0
    total_won: int = 0
    matches_played: int = 0


class LeaderboardItem(BaseModel):
    """Leaderboard row in API responses."""

    model_config = ConfigDict(populate_by_name=True)

    address: str = Field(..., description="Player address")
    total_won: str = Field(
        ..., alias="totalWon", description="Cumulative payout in base units (decimal string)"
    )
    wins: int = Field(..., ge=0, description="Settled matches won")
    matches_played: int = Field(
        ..., alias="matchesPlayed", ge=0, description="Settled matches counted"
    )

    @classmethod
    def from_entry(cls, entry: LeaderboardEntry) -> "LeaderboardItem":
        return cls(
            address=entry.address,
            total_won=str(entry.total_won),
            wins=entry.wins,
            matches_played=entry.matches_played,
        )
