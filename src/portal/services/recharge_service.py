"""Recharge card generation and single-use redemption."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Optional, Sequence
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from ..core.config import get_settings
from ..core.constants import CARD_CODE_LENGTH, RECHARGE_CARD_DESCRIPTION, WEEKLY_LIMIT_WINDOW_DAYS, Role
from ..core.errors import RuleViolation
from ..models import CardCategory, CardStatus, CardUsageLimit, RechargeCard
from ..utils.codes import normalize_code, random_code
from ..utils.datetime import as_naive_utc, utcnow
from . import badge_service, ledger_service, notification_service, user_service

logger = logging.getLogger(__name__)


class RechargeRuleViolation(RuleViolation):
    """Raised when recharge card rules are violated."""


def _require_admin(session: Session, actor_id: UUID, detail: str = "ليس لديك صلاحية لإدارة كروت الشحن"):
    return user_service.require_role(session, actor_id, [Role.ADMIN], detail)


def _unique_codes(session: Session, count: int) -> list[str]:
    codes: set[str] = set()
    while len(codes) < count:
        while len(codes) < count:
            codes.add(random_code(CARD_CODE_LENGTH))
        taken_stmt = select(RechargeCard.code).where(RechargeCard.code.in_(codes))
        codes.difference_update(session.execute(taken_stmt).scalars().all())
    return sorted(codes)


def generate_cards(
    session: Session,
    *,
    actor_id: UUID,
    count: int,
    points: int,
    category_id: Optional[int] = None,
    valid_from: Optional[datetime] = None,
    valid_until: Optional[datetime] = None,
    status: CardStatus = CardStatus.ACTIVE,
    assigned_to: Optional[UUID] = None,
) -> list[RechargeCard]:
    """Create ``count`` unused cards worth ``points`` each."""

    actor = _require_admin(session, actor_id, "ليس لديك صلاحية لإنشاء كروت شحن")

    max_cards = get_settings().max_cards_per_batch
    if count <= 0:
        raise RechargeRuleViolation("يجب أن يكون عدد الكروت رقمًا موجبًا")
    if count > max_cards:
        raise RechargeRuleViolation(
            f"لا يمكن إنشاء أكثر من {max_cards} كرت في المرة الواحدة. يرجى تقليل عدد الكروت."
        )
    if points <= 0:
        raise RechargeRuleViolation("يجب أن تكون النقاط رقمًا موجبًا")

    valid_from = as_naive_utc(valid_from)
    if valid_until is not None:
        valid_until = as_naive_utc(valid_until)
        if valid_from >= valid_until:
            raise RechargeRuleViolation("يجب أن يكون تاريخ الانتهاء بعد تاريخ البدء")

    if category_id is not None and session.get(CardCategory, category_id) is None:
        raise RechargeRuleViolation("لم يتم العثور على فئة الكروت", status_code=404)
    if assigned_to is not None:
        user_service.get_user(session, assigned_to)

    cards = [
        RechargeCard(
            code=code,
            points=points,
            status=status,
            valid_from=valid_from,
            valid_until=valid_until,
            category_id=category_id,
            assigned_to=assigned_to,
            created_by=actor.id,
        )
        for code in _unique_codes(session, count)
    ]
    session.add_all(cards)
    notification_service.log_activity(
        session,
        actor.id,
        "generate_recharge_cards",
        f"إنشاء {count} كرت شحن بقيمة {points} نقطة",
    )
    session.flush()
    logger.info("generated %d recharge cards worth %d points", count, points)
    return cards


def _redeemed_this_week(session: Session, user_id: UUID, now: datetime) -> int:
    stmt = select(func.count(RechargeCard.id)).where(
        RechargeCard.used_by == user_id,
        RechargeCard.used_at >= now - timedelta(days=WEEKLY_LIMIT_WINDOW_DAYS),
    )
    return session.execute(stmt).scalar_one()


def redeem_card(
    session: Session,
    *,
    user_id: UUID,
    code: str,
    now: Optional[datetime] = None,
) -> tuple[RechargeCard, int]:
    """Redeem a card for its points. Returns the card and the user's new balance.

    The card is claimed with a conditional update on ``is_used``, so of two
    concurrent redemptions of the same code exactly one succeeds.
    """

    now = as_naive_utc(now)
    user = user_service.get_user(session, user_id)

    code = normalize_code(code or "")
    if not code:
        raise RechargeRuleViolation("رمز الكرت مطلوب")

    card = session.execute(select(RechargeCard).where(RechargeCard.code == code)).scalar_one_or_none()
    if card is None:
        raise RechargeRuleViolation("رمز الكرت غير صحيح", status_code=404)
    if card.is_used:
        raise RechargeRuleViolation("تم استخدام هذا الكرت من قبل", status_code=409)
    if card.status != CardStatus.ACTIVE:
        raise RechargeRuleViolation("هذا الكرت غير نشط")
    if card.valid_from and card.valid_from > now:
        raise RechargeRuleViolation("هذا الكرت غير صالح للاستخدام بعد")
    if card.valid_until and card.valid_until <= now:
        raise RechargeRuleViolation("انتهت صلاحية هذا الكرت")
    if card.assigned_to is not None and card.assigned_to != user.id:
        raise RechargeRuleViolation("هذا الكرت مخصص لمستخدم آخر", status_code=403)

    limit = session.execute(
        select(CardUsageLimit).where(CardUsageLimit.role_id == user.role_id)
    ).scalar_one_or_none()
    if limit is not None and _redeemed_this_week(session, user.id, now) >= limit.weekly_limit:
        raise RechargeRuleViolation("لقد تجاوزت الحد الأسبوعي لاستخدام كروت الشحن", status_code=429)

    claim = session.execute(
        update(RechargeCard)
        .where(RechargeCard.id == card.id, RechargeCard.is_used.is_(False))
        .values(is_used=True, used_by=user.id, used_at=now)
        .execution_options(synchronize_session=False)
    )
    if claim.rowcount != 1:
        raise RechargeRuleViolation("تم استخدام هذا الكرت من قبل", status_code=409)
    session.refresh(card)

    ledger_service.post_transaction(
        session,
        user_id=user.id,
        points=card.points,
        is_positive=True,
        description=RECHARGE_CARD_DESCRIPTION,
        created_by=user.id,
    )
    notification_service.notify(
        session,
        user.id,
        "شحن رصيد",
        f"تم شحن رصيدك بـ {card.points} نقطة",
        type="recharge",
    )
    notification_service.log_activity(
        session,
        user.id,
        "redeem_card",
        f"شحن رصيد بكرت رقم {card.code} ({card.points} نقطة)",
    )
    badge_service.check_and_award_badges(session, user.id)
    session.flush()
    return card, ledger_service.get_balance(session, user.id)


def list_cards(
    session: Session,
    *,
    is_used: Optional[bool] = None,
    category_id: Optional[int] = None,
    limit: int = 50,
    offset: int = 0,
) -> Sequence[RechargeCard]:
    stmt = select(RechargeCard).order_by(RechargeCard.created_at.desc(), RechargeCard.id.desc())
    if is_used is not None:
        stmt = stmt.where(RechargeCard.is_used.is_(is_used))
    if category_id is not None:
        stmt = stmt.where(RechargeCard.category_id == category_id)
    return session.execute(stmt.offset(offset).limit(limit)).scalars().all()


def create_category(
    session: Session,
    *,
    actor_id: UUID,
    name: str,
    description: Optional[str] = None,
) -> CardCategory:
    _require_admin(session, actor_id)
    if session.execute(select(CardCategory.id).where(CardCategory.name == name)).first() is not None:
        raise RechargeRuleViolation("يوجد فئة بنفس الاسم", status_code=409)
    category = CardCategory(name=name, description=description)
    session.add(category)
    session.flush()
    return category


def list_categories(session: Session) -> Sequence[CardCategory]:
    return session.execute(select(CardCategory).order_by(CardCategory.name.asc())).scalars().all()


def list_limits(session: Session) -> Sequence[CardUsageLimit]:
    return session.execute(select(CardUsageLimit).order_by(CardUsageLimit.role_id.asc())).scalars().all()


def set_limit(session: Session, *, actor_id: UUID, role_id: int, weekly_limit: int) -> CardUsageLimit:
    """Create or update the weekly redemption limit for a role."""

    _require_admin(session, actor_id)
    if role_id not in {int(role) for role in Role}:
        raise RechargeRuleViolation("الدور غير معروف", status_code=404)
    if weekly_limit < 0:
        raise RechargeRuleViolation("الحد الأسبوعي يجب ألا يكون سالباً")

    limit = session.execute(select(CardUsageLimit).where(CardUsageLimit.role_id == role_id)).scalar_one_or_none()
    if limit is None:
        limit = CardUsageLimit(role_id=role_id, weekly_limit=weekly_limit)
        session.add(limit)
    else:
        limit.weekly_limit = weekly_limit
        limit.updated_at = utcnow()
    session.flush()
    return limit
