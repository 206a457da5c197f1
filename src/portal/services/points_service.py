"""Domain logic for awarding, deducting and transferring points."""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional, Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..core.constants import STAFF_ROLES, Role
from ..core.errors import RuleViolation
from ..models import PointCategory, PointsTransaction
from . import badge_service, deduction_service, ledger_service, notification_service, user_service


class PointsRuleViolation(RuleViolation):
    """Raised when business constraints on points are violated."""


def _ensure_category(session: Session, category_id: int) -> PointCategory:
    category = session.get(PointCategory, category_id)
    if category is None:
        raise PointsRuleViolation("لم يتم العثور على فئة النقاط", status_code=404)
    return category


def add_points(
    session: Session,
    *,
    actor_id: UUID,
    user_code: str,
    points: Optional[int] = None,
    is_positive: Optional[bool] = None,
    category_id: Optional[int] = None,
    description: Optional[str] = None,
    now: Optional[datetime] = None,
) -> tuple[Optional[PointsTransaction], int]:
    """Award or deduct points for a user identified by code.

    Returns the ledger entry (``None`` when an active deduction card consumed the
    whole award) and the user's balance afterwards.
    """

    actor = user_service.require_role(session, actor_id, STAFF_ROLES, "ليس لديك صلاحية لإضافة نقاط")
    user = user_service.get_user_by_code(session, user_code)

    if category_id is not None:
        category = _ensure_category(session, category_id)
        if points is None:
            points = category.default_points
        if is_positive is None:
            is_positive = category.is_positive

    if points is None or is_positive is None:
        raise PointsRuleViolation("جميع الحقول مطلوبة")
    if points <= 0:
        raise PointsRuleViolation("يجب أن تكون النقاط أكبر من صفر")

    verb = "إضافة" if is_positive else "خصم"
    description = description or f"{verb} نقاط"

    transaction: Optional[PointsTransaction] = None
    if is_positive:
        awarded = deduction_service.apply_deduction(session, user.id, points, now=now)
        if awarded < points:
            description = f"{description} (حسم {points - awarded} نقطة بسبب كرت الحسم)"
        if awarded > 0:
            transaction = ledger_service.post_transaction(
                session,
                user_id=user.id,
                points=awarded,
                is_positive=True,
                description=description,
                created_by=actor.id,
                category_id=category_id,
            )
            badge_service.check_and_award_badges(session, user.id)
        points = awarded
    else:
        deduction_service.process_negative_points(session, user.id, points, now=now)
        transaction = ledger_service.post_transaction(
            session,
            user_id=user.id,
            points=points,
            is_positive=False,
            description=description,
            created_by=actor.id,
            category_id=category_id,
        )

    notification_service.notify(
        session,
        user.id,
        f"{verb} نقاط",
        f"تم {verb} {points} نقطة ({description})",
        type="points",
    )
    notification_service.log_activity(
        session,
        actor.id,
        "add_points" if is_positive else "deduct_points",
        f"{verb} {points} نقطة للمستخدم {user.user_code}",
    )
    session.flush()
    return transaction, ledger_service.get_balance(session, user.id)


def batch_add_points(
    session: Session,
    *,
    actor_id: UUID,
    user_codes: Iterable[str],
    points: Optional[int] = None,
    is_positive: Optional[bool] = None,
    category_id: Optional[int] = None,
    description: Optional[str] = None,
) -> dict[str, object]:
    """Apply :func:`add_points` to each code; per-user rule failures are collected."""

    user_service.require_role(session, actor_id, STAFF_ROLES, "ليس لديك صلاحية لإضافة نقاط")

    processed: list[str] = []
    failed: dict[str, str] = {}
    for code in dict.fromkeys(c.strip() for c in user_codes if c and c.strip()):
        try:
            with session.begin_nested():
                add_points(
                    session,
                    actor_id=actor_id,
                    user_code=code,
                    points=points,
                    is_positive=is_positive,
                    category_id=category_id,
                    description=description,
                )
        except RuleViolation as exc:
            failed[code] = exc.detail
        else:
            processed.append(code)

    return {"processed": processed, "failed": failed}


def transfer_points(
    session: Session,
    *,
    sender_id: UUID,
    recipient_code: str,
    points: int,
    description: Optional[str] = None,
) -> tuple[PointsTransaction, PointsTransaction, int]:
    """Move points between users. Returns both ledger entries and the sender's balance."""

    if points <= 0:
        raise PointsRuleViolation("يجب أن تكون النقاط أكبر من صفر")

    sender = user_service.get_user(session, sender_id)
    recipient = user_service.get_user_by_code(session, recipient_code)
    if recipient.id == sender.id:
        raise PointsRuleViolation("لا يمكن تحويل النقاط لنفسك")

    balances = ledger_service.lock_balances(session, [sender.id, recipient.id])
    if balances[sender.id] < points:
        raise PointsRuleViolation("لا يوجد لديك رصيد كافي من النقاط")

    note = description or "تحويل نقاط"
    sent = ledger_service.post_transaction(
        session,
        user_id=sender.id,
        points=points,
        is_positive=False,
        description=f"{note}: إلى {recipient.user_code}",
        created_by=sender.id,
    )
    received = ledger_service.post_transaction(
        session,
        user_id=recipient.id,
        points=points,
        is_positive=True,
        description=f"{note}: من {sender.user_code}",
        created_by=sender.id,
    )

    badge_service.check_and_award_badges(session, recipient.id)
    notification_service.notify(
        session,
        recipient.id,
        "استلام نقاط",
        f"لقد استلمت {points} نقطة من {sender.full_name}",
        type="points",
    )
    notification_service.log_activity(
        session,
        sender.id,
        "transfer_points",
        f"تحويل {points} نقطة إلى {recipient.user_code}",
    )
    session.flush()
    return sent, received, ledger_service.get_balance(session, sender.id)


def create_category(
    session: Session,
    *,
    actor_id: UUID,
    name: str,
    default_points: int,
    is_positive: bool = True,
    is_mandatory: bool = False,
    description: Optional[str] = None,
) -> PointCategory:
    user_service.require_role(session, actor_id, [Role.ADMIN], "ليس لديك صلاحية لإدارة فئات النقاط")
    if default_points <= 0:
        raise PointsRuleViolation("يجب أن تكون النقاط أكبر من صفر")
    if session.execute(select(PointCategory.id).where(PointCategory.name == name)).first() is not None:
        raise PointsRuleViolation("يوجد فئة بنفس الاسم", status_code=409)

    category = PointCategory(
        name=name,
        description=description,
        default_points=default_points,
        is_positive=is_positive,
        is_mandatory=is_mandatory,
    )
    session.add(category)
    session.flush()
    return category


def list_categories(session: Session, *, is_positive: Optional[bool] = None) -> Sequence[PointCategory]:
    stmt = select(PointCategory).order_by(PointCategory.name.asc())
    if is_positive is not None:
        stmt = stmt.where(PointCategory.is_positive.is_(is_positive))
    return session.execute(stmt).scalars().all()
