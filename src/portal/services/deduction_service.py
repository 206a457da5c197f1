"""Deduction card tiers and the activation state machine.

A user accumulates negative points over a trailing window. Crossing a tier's
threshold activates that tier's card for a fixed duration, during which
positive awards are reduced by the card's percentage. A user holds at most one
active card: an unexpired card can only step up to the next tier, an expired
card is dropped and the tier is chosen again from scratch.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional, Sequence
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session, joinedload

from ..core.config import get_settings
from ..core.constants import Role
from ..core.errors import RuleViolation
from ..models import DeductionCard, PointsTransaction, UserDeductionCard
from ..utils.datetime import as_naive_utc, card_expiry, window_start
from . import notification_service, user_service

logger = logging.getLogger(__name__)


class DeductionRuleViolation(RuleViolation):
    """Raised when deduction card management rules are violated."""


def list_tiers(session: Session, *, include_inactive: bool = False) -> Sequence[DeductionCard]:
    """Return tiers ordered by ascending threshold."""

    stmt = select(DeductionCard).order_by(DeductionCard.negative_points_threshold.asc(), DeductionCard.id.asc())
    if not include_inactive:
        stmt = stmt.where(DeductionCard.is_active.is_(True))
    return session.execute(stmt).scalars().all()


def _validate_tier(threshold: int, percentage: int, days: int, hours: int) -> None:
    if threshold <= 0:
        raise DeductionRuleViolation("يجب أن يكون حد النقاط السلبية أكبر من صفر")
    if not 0 <= percentage <= 100:
        raise DeductionRuleViolation("يجب أن تكون نسبة الحسم بين 0 و 100")
    if days < 0 or hours < 0 or days + hours == 0:
        raise DeductionRuleViolation("مدة تفعيل الكرت غير صالحة")


def create_tier(
    session: Session,
    *,
    actor_id: UUID,
    name: str,
    negative_points_threshold: int,
    deduction_percentage: int,
    active_duration_days: int = 0,
    active_duration_hours: int = 0,
    color: str = "#ef4444",
    description: Optional[str] = None,
    is_active: bool = True,
) -> DeductionCard:
    user_service.require_role(session, actor_id, [Role.ADMIN], "ليس لديك صلاحية لإدارة كروت الحسم")
    _validate_tier(negative_points_threshold, deduction_percentage, active_duration_days, active_duration_hours)

    tier = DeductionCard(
        name=name,
        color=color,
        description=description,
        negative_points_threshold=negative_points_threshold,
        deduction_percentage=deduction_percentage,
        active_duration_days=active_duration_days,
        active_duration_hours=active_duration_hours,
        is_active=is_active,
    )
    session.add(tier)
    session.flush()
    return tier


def update_tier(session: Session, *, actor_id: UUID, tier_id: int, **changes) -> DeductionCard:
    """Apply partial changes to a tier. ``None`` values are ignored."""

    user_service.require_role(session, actor_id, [Role.ADMIN], "ليس لديك صلاحية لإدارة كروت الحسم")
    tier = session.get(DeductionCard, tier_id)
    if tier is None:
        raise DeductionRuleViolation("لم يتم العثور على كرت الحسم", status_code=404)

    for field, value in changes.items():
        if value is not None:
            setattr(tier, field, value)
    _validate_tier(
        tier.negative_points_threshold,
        tier.deduction_percentage,
        tier.active_duration_days,
        tier.active_duration_hours,
    )
    session.flush()
    return tier


def get_active_card(session: Session, user_id: UUID) -> Optional[UserDeductionCard]:
    stmt = (
        select(UserDeductionCard)
        .options(joinedload(UserDeductionCard.deduction_card))
        .where(UserDeductionCard.user_id == user_id, UserDeductionCard.is_active.is_(True))
    )
    return session.execute(stmt).scalar_one_or_none()


def list_user_cards(session: Session, user_id: UUID) -> Sequence[UserDeductionCard]:
    """Return the user's activation history, newest first."""

    stmt = (
        select(UserDeductionCard)
        .options(joinedload(UserDeductionCard.deduction_card))
        .where(UserDeductionCard.user_id == user_id)
        .order_by(UserDeductionCard.activated_at.desc(), UserDeductionCard.id.desc())
    )
    return session.execute(stmt).scalars().all()


def negative_points_total(session: Session, user_id: UUID, since: datetime) -> int:
    """Sum of negative ledger entries posted at or after ``since``."""

    stmt = select(func.coalesce(func.sum(PointsTransaction.points), 0)).where(
        PointsTransaction.user_id == user_id,
        PointsTransaction.is_positive.is_(False),
        PointsTransaction.created_at >= since,
    )
    return int(session.execute(stmt).scalar_one())


def _highest_crossed(tiers: Sequence[DeductionCard], total: int) -> Optional[DeductionCard]:
    for tier in reversed(tiers):
        if total >= tier.negative_points_threshold:
            return tier
    return None


def _next_tier(tiers: Sequence[DeductionCard], current: DeductionCard) -> Optional[DeductionCard]:
    for tier in tiers:
        if tier.negative_points_threshold > current.negative_points_threshold:
            return tier
    return None


def _activate(
    session: Session,
    user_id: UUID,
    tier: DeductionCard,
    total: int,
    now: datetime,
) -> UserDeductionCard:
    session.execute(
        update(UserDeductionCard)
        .where(UserDeductionCard.user_id == user_id, UserDeductionCard.is_active.is_(True))
        .values(is_active=False)
    )
    activation = UserDeductionCard(
        user_id=user_id,
        deduction_card=tier,
        negative_points_count=total,
        activated_at=now,
        expires_at=card_expiry(now, tier.active_duration_days, tier.active_duration_hours),
        is_active=True,
    )
    session.add(activation)
    notification_service.notify(
        session,
        user_id,
        "تفعيل كرت حسم",
        f"تم تفعيل كرت الحسم ({tier.name}) بنسبة حسم {tier.deduction_percentage}% "
        f"لمدة {tier.active_duration_days} يوم و {tier.active_duration_hours} ساعة.",
        type="deduction_card",
    )
    session.flush()
    logger.info("activated deduction card %s for %s (negative total %s)", tier.id, user_id, total)
    return activation


def _evaluate(session: Session, user_id: UUID, new_points: int, now: datetime) -> Optional[UserDeductionCard]:
    tiers = list_tiers(session)
    if not tiers:
        return None

    since = window_start(now, get_settings().negative_points_window_days)
    total = negative_points_total(session, user_id, since) + new_points

    active = get_active_card(session, user_id)
    if active is not None:
        if active.expires_at > now:
            next_tier = _next_tier(tiers, active.deduction_card)
            if next_tier is not None and total >= next_tier.negative_points_threshold:
                return _activate(session, user_id, next_tier, total, now)
            return None
        active.is_active = False
        session.flush()

    tier = _highest_crossed(tiers, total)
    if tier is None:
        return None
    return _activate(session, user_id, tier, total, now)


def process_negative_points(
    session: Session,
    user_id: UUID,
    new_points: int,
    *,
    now: Optional[datetime] = None,
) -> Optional[UserDeductionCard]:
    """Re-evaluate the user's deduction card for a negative entry about to be posted.

    ``new_points`` is the magnitude of that entry; it must not be in the ledger
    yet. Runs in a savepoint: any failure is logged and rolled back
    without affecting the caller's transaction. Returns the new activation, if any.
    """

    now = as_naive_utc(now)
    try:
        with session.begin_nested():
            return _evaluate(session, user_id, abs(new_points), now)
    except Exception:
        logger.exception("deduction card processing failed for %s", user_id)
        return None


def apply_deduction(
    session: Session,
    user_id: UUID,
    value: int,
    *,
    now: Optional[datetime] = None,
) -> int:
    """Reduce a positive value by the user's active card percentage, rounding half up."""

    if value <= 0:
        return value

    active = get_active_card(session, user_id)
    if active is None:
        return value

    if active.expires_at <= as_naive_utc(now):
        active.is_active = False
        session.flush()
        return value

    percentage = active.deduction_card.deduction_percentage
    return (value * (100 - percentage) + 50) // 100


def expire_cards(session: Session, *, now: Optional[datetime] = None) -> int:
    """Deactivate every active card past its expiry; return how many were closed."""

    result = session.execute(
        update(UserDeductionCard)
        .where(
            UserDeductionCard.is_active.is_(True),
            UserDeductionCard.expires_at <= as_naive_utc(now),
        )
        .values(is_active=False)
    )
    return result.rowcount
