"""Leaderboard aggregation services."""

from __future__ import annotations

from typing import Optional, Sequence

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..core.constants import Role
from ..models import StudentPoints, User, UserBadge


def top_students(session: Session, *, limit: int = 10, role_id: Optional[int] = Role.STUDENT) -> Sequence[tuple]:
    """Return leaderboard rows ``(user, points, badge_count)`` ordered by balance and user id."""

    limit = max(1, min(limit, 100))

    badge_counts = (
        select(UserBadge.user_id, func.count(UserBadge.id).label("badge_count"))
        .group_by(UserBadge.user_id)
        .subquery()
    )
    points = func.coalesce(StudentPoints.points, 0).label("points")
    badges = func.coalesce(badge_counts.c.badge_count, 0).label("badge_count")

    stmt = (
        select(User, points, badges)
        .outerjoin(StudentPoints, StudentPoints.student_id == User.id)
        .outerjoin(badge_counts, badge_counts.c.user_id == User.id)
        .order_by(points.desc(), User.id.asc())
        .limit(limit)
    )
    if role_id is not None:
        stmt = stmt.where(User.role_id == role_id)

    return session.execute(stmt).all()
