"""Leaderboard response schemas."""

from uuid import UUID

from pydantic import BaseModel, Field


class LeaderboardEntry(BaseModel):
    """Aggregated leaderboard entry."""

    user_id: UUID
    user_code: str
    full_name: str
    points: int
    badge_count: int = Field(..., ge=0)
