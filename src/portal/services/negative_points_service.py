"""Outstanding negative points: recording, paying and mandatory deduction.

A negative points entry is a penalty owed by a user. It leaves the balance
untouched until it is paid, at which point a negative ledger row is posted.
Mandatory entries (no category, or a mandatory category) are paid in full and
may be deducted automatically; optional entries can be paid in parts.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional, Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session, joinedload

from ..core.constants import STAFF_ROLES
from ..core.errors import RuleViolation
from ..models import NegativePointsEntry, NegativePointsStatus, PointCategory
from ..utils.datetime import as_naive_utc
from . import ledger_service, notification_service, user_service

logger = logging.getLogger(__name__)


class NegativePointsRuleViolation(RuleViolation):
    """Raised when a negative points entry cannot be recorded or paid."""


def record_negative_points(
    session: Session,
    *,
    actor_id: UUID,
    user_code: str,
    points: Optional[int] = None,
    category_id: Optional[int] = None,
    reason: Optional[str] = None,
) -> NegativePointsEntry:
    """Record a pending penalty against the user with ``user_code``."""

    actor = user_service.require_role(session, actor_id, STAFF_ROLES, "ليس لديك صلاحية لتسجيل نقاط سلبية")
    user = user_service.get_user_by_code(session, user_code)

    category = None
    if category_id is not None:
        category = session.get(PointCategory, category_id)
        if category is None:
            raise NegativePointsRuleViolation("لم يتم العثور على فئة النقاط", status_code=404)
        if category.is_positive:
            raise NegativePointsRuleViolation("يجب اختيار فئة نقاط سلبية")
        if points is None:
            points = category.default_points

    if points is None or points <= 0:
        raise NegativePointsRuleViolation("يجب أن تكون النقاط أكبر من صفر")

    entry = NegativePointsEntry(
        user_id=user.id,
        category=category,
        points=points,
        reason=reason or (category.name if category is not None else "نقاط سلبية"),
        created_by=actor.id,
    )
    session.add(entry)
    notification_service.notify(
        session,
        user.id,
        "نقاط سلبية",
        f"تم تسجيل {points} نقطة سلبية عليك ({entry.reason})",
        type="negative_points",
    )
    notification_service.log_activity(
        session,
        actor.id,
        "record_negative_points",
        f"تسجيل {points} نقطة سلبية للمستخدم {user.user_code}",
    )
    session.flush()
    return entry


def list_negative_points(
    session: Session,
    user_id: UUID,
    *,
    status: Optional[NegativePointsStatus] = None,
) -> Sequence[NegativePointsEntry]:
    stmt = (
        select(NegativePointsEntry)
        .options(joinedload(NegativePointsEntry.category))
        .where(NegativePointsEntry.user_id == user_id)
        .order_by(NegativePointsEntry.created_at.desc(), NegativePointsEntry.id.desc())
    )
    if status is not None:
        stmt = stmt.where(NegativePointsEntry.status == status)
    return session.execute(stmt).scalars().all()


def negative_points_overview(session: Session, user_id: UUID) -> dict[str, object]:
    """All of a user's entries with the pending mandatory and optional totals."""

    user_service.get_user(session, user_id)
    entries = list_negative_points(session, user_id)
    pending = [entry for entry in entries if entry.status == NegativePointsStatus.PENDING]
    return {
        "entries": entries,
        "mandatory_total": sum(entry.points for entry in pending if entry.is_mandatory),
        "optional_total": sum(entry.points for entry in pending if not entry.is_mandatory),
    }


def _lock_entries(session: Session, *criteria) -> Sequence[NegativePointsEntry]:
    stmt = (
        select(NegativePointsEntry)
        .options(joinedload(NegativePointsEntry.category))
        .where(*criteria)
        .order_by(NegativePointsEntry.id.asc())
        .with_for_update(of=NegativePointsEntry)
    )
    return session.execute(stmt).scalars().all()


def pay_negative_points(
    session: Session,
    *,
    user_id: UUID,
    entry_id: int,
    amount: Optional[int] = None,
    now: Optional[datetime] = None,
) -> tuple[NegativePointsEntry, int, int]:
    """Pay an entry from the user's balance.

    ``amount`` below the entry's points pays part of an optional entry; the
    entry keeps the remainder and a separate paid entry records the part.
    Returns the entry, the points paid and the balance afterwards.
    """

    now = as_naive_utc(now)
    user = user_service.get_user(session, user_id)

    entries = _lock_entries(session, NegativePointsEntry.id == entry_id)
    entry = entries[0] if entries else None
    if entry is None or entry.user_id != user.id:
        raise NegativePointsRuleViolation("لم يتم العثور على النقاط السلبية المطلوبة", status_code=404)
    if entry.status != NegativePointsStatus.PENDING:
        raise NegativePointsRuleViolation("لا يمكن تسديد نقاط تم تسديدها أو إلغاؤها مسبقاً", status_code=409)

    partial = amount is not None and amount < entry.points
    if partial and amount <= 0:
        raise NegativePointsRuleViolation("يجب أن يكون مبلغ التسديد أكبر من صفر")
    if partial and entry.is_mandatory:
        raise NegativePointsRuleViolation("لا يمكن تسديد النقاط السلبية الإجبارية جزئياً")
    to_pay = amount if partial else entry.points

    available = ledger_service.lock_balance(session, user.id)
    if available < to_pay:
        raise NegativePointsRuleViolation(
            f"رصيد النقاط غير كافٍ. لديك {available} نقطة وتحتاج {to_pay} نقطة."
        )

    if partial:
        description = f"تسديد جزئي ({to_pay} من {entry.points}): {entry.reason}"
    else:
        description = f"تسديد نقاط سلبية: {entry.reason}"
    ledger_service.post_transaction(
        session,
        user_id=user.id,
        points=to_pay,
        is_positive=False,
        description=description,
        created_by=user.id,
        category_id=entry.category_id,
    )

    if partial:
        session.add(
            NegativePointsEntry(
                user_id=user.id,
                category_id=entry.category_id,
                points=to_pay,
                reason=description,
                status=NegativePointsStatus.PAID,
                created_by=user.id,
                paid_at=now,
            )
        )
        entry.points -= to_pay
    else:
        entry.status = NegativePointsStatus.PAID
        entry.paid_at = now

    notification_service.log_activity(session, user.id, "pay_negative_points", description)
    session.flush()
    return entry, to_pay, ledger_service.get_balance(session, user.id)


def process_mandatory_negative_points(
    session: Session,
    user_id: UUID,
    *,
    now: Optional[datetime] = None,
) -> dict[str, int]:
    """Deduct every pending mandatory entry of the user, even into a negative balance."""

    now = as_naive_utc(now)
    user = user_service.get_user(session, user_id)

    pending = _lock_entries(
        session,
        NegativePointsEntry.user_id == user.id,
        NegativePointsEntry.status == NegativePointsStatus.PENDING,
    )
    processed = 0
    total = 0
    for entry in pending:
        if not entry.is_mandatory:
            continue
        ledger_service.post_transaction(
            session,
            user_id=user.id,
            points=entry.points,
            is_positive=False,
            description=f"خصم تلقائي للنقاط السلبية الإجبارية: {entry.reason}",
            created_by=entry.created_by,
            category_id=entry.category_id,
        )
        entry.status = NegativePointsStatus.PAID
        entry.paid_at = now
        entry.auto_processed = True
        processed += 1
        total += entry.points

    if processed:
        notification_service.notify(
            session,
            user.id,
            "خصم نقاط سلبية إجبارية",
            f"تم خصم {total} نقطة من رصيدك لتسديد النقاط السلبية الإجبارية",
            type="negative_points",
        )
        logger.info("auto-deducted %d mandatory entries (%d points) for %s", processed, total, user.id)
    session.flush()
    return {
        "processed_entries": processed,
        "total_deducted": total,
        "balance": ledger_service.get_balance(session, user.id),
    }


def cancel_negative_points(session: Session, *, actor_id: UUID, entry_id: int) -> NegativePointsEntry:
    actor = user_service.require_role(session, actor_id, STAFF_ROLES, "ليس لديك صلاحية لإلغاء النقاط السلبية")
    entries = _lock_entries(session, NegativePointsEntry.id == entry_id)
    if not entries:
        raise NegativePointsRuleViolation("لم يتم العثور على النقاط السلبية المطلوبة", status_code=404)
    entry = entries[0]
    if entry.status != NegativePointsStatus.PENDING:
        raise NegativePointsRuleViolation("لا يمكن إلغاء نقاط تم تسديدها أو إلغاؤها مسبقاً", status_code=409)

    entry.status = NegativePointsStatus.CANCELLED
    notification_service.log_activity(
        session,
        actor.id,
        "cancel_negative_points",
        f"إلغاء {entry.points} نقطة سلبية (رقم {entry.id})",
    )
    session.flush()
    return entry
