"""Badge catalogue and threshold-based awarding."""

from __future__ import annotations

import logging
from typing import Optional, Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session, joinedload

from ..core.constants import Role
from ..core.errors import RuleViolation
from ..models import Badge, UserBadge
from . import ledger_service, notification_service, user_service

logger = logging.getLogger(__name__)


class BadgeRuleViolation(RuleViolation):
    """Raised when badge rules are violated."""


def create_badge(
    session: Session,
    *,
    actor_id: UUID,
    name: str,
    min_points: int,
    description: Optional[str] = None,
    image_url: Optional[str] = None,
) -> Badge:
    user_service.require_role(session, actor_id, [Role.ADMIN], "ليس لديك صلاحية لإدارة الشارات")
    if min_points < 0:
        raise BadgeRuleViolation("الحد الأدنى للنقاط يجب ألا يكون سالباً")
    if session.execute(select(Badge.id).where(Badge.name == name)).first() is not None:
        raise BadgeRuleViolation("يوجد شارة بنفس الاسم", status_code=409)

    badge = Badge(name=name, min_points=min_points, description=description, image_url=image_url)
    session.add(badge)
    session.flush()
    return badge


def list_badges(session: Session) -> Sequence[Badge]:
    stmt = select(Badge).order_by(Badge.min_points.asc(), Badge.id.asc())
    return session.execute(stmt).scalars().all()


def list_user_badges(session: Session, user_id: UUID) -> Sequence[UserBadge]:
    stmt = (
        select(UserBadge)
        .options(joinedload(UserBadge.badge))
        .where(UserBadge.user_id == user_id)
        .order_by(UserBadge.awarded_at.desc(), UserBadge.id.desc())
    )
    return session.execute(stmt).scalars().all()


def _award_new_badges(session: Session, user_id: UUID) -> list[Badge]:
    balance = ledger_service.get_balance(session, user_id)

    owned = select(UserBadge.badge_id).where(UserBadge.user_id == user_id)
    stmt = (
        select(Badge)
        .where(Badge.min_points <= balance, Badge.id.not_in(owned))
        .order_by(Badge.min_points.asc(), Badge.id.asc())
    )
    new_badges = list(session.execute(stmt).scalars().all())

    for badge in new_badges:
        session.add(UserBadge(user_id=user_id, badge_id=badge.id))
        notification_service.notify(
            session,
            user_id,
            "تم الحصول على شارة جديدة",
            f"مبروك! لقد حصلت على شارة جديدة: {badge.name}",
            type="badge",
        )
    session.flush()
    return new_badges


def check_and_award_badges(session: Session, user_id: UUID) -> list[Badge]:
    """Award every badge the user's balance qualifies for and they do not hold.

    Failures are logged and rolled back to a savepoint; the caller's work stands.
    """

    try:
        with session.begin_nested():
            awarded = _award_new_badges(session, user_id)
    except Exception:
        logger.exception("badge check failed for %s", user_id)
        return []

    if awarded:
        logger.info("awarded %d badge(s) to %s", len(awarded), user_id)
    return awarded
