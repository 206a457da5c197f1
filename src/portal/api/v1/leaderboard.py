"""Leaderboard endpoint."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...schemas import LeaderboardEntry
from ...services import leaderboard_service

router = APIRouter(prefix="/leaderboard", tags=["leaderboard"])


@router.get(
    "",
    response_model=List[LeaderboardEntry],
    summary="Top students by points",
    responses={
        200: {
            "description": "Leaderboard entries ordered by balance",
            "content": {
                "application/json": {
                    "example": [
                        {
                            "user_id": "bbbbbbbb-bbbb-bbbb-bbbb-bbbbbbbbbbbb",
                            "user_code": "S1002",
                            "full_name": "ليان أحمد",
                            "points": 185,
                            "badge_count": 3
                        }
                    ]
                }
            },
        }
    },
)
def get_leaderboard(
    limit: int = Query(10, ge=1, le=100, description="Number of top students to return"),
    db: Session = Depends(get_db),
) -> List[LeaderboardEntry]:
    """Return ranked list of students based on their balance."""

    entries = leaderboard_service.top_students(db, limit=limit)
    response: List[LeaderboardEntry] = []
    for user, points, badge_count in entries:
        response.append(
            LeaderboardEntry(
                user_id=user.id,
                user_code=user.user_code,
                full_name=user.full_name,
                points=int(points or 0),
                badge_count=int(badge_count or 0),
            )
        )
    return response
