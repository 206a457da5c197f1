"""Points ledger primitives and cached-balance reconciliation.

Every write to ``points_transactions`` goes through :func:`post_transaction`,
which adjusts ``student_points`` in the same transaction, so the cache can only
drift through writes made outside this module. :func:`sync_user_balance` and
:func:`reconcile_all_balances` repair such drift.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable, Optional, Sequence
from uuid import UUID

from sqlalchemy import case, func, select
from sqlalchemy.orm import Session

from ..core.errors import RuleViolation
from ..models import PointsTransaction, StudentPoints
from ..utils.datetime import utcnow

logger = logging.getLogger(__name__)

_signed_points = case(
    (PointsTransaction.is_positive.is_(True), PointsTransaction.points),
    else_=-PointsTransaction.points,
)


class LedgerRuleViolation(RuleViolation):
    """Raised when a ledger entry is rejected."""


def calculate_balance(session: Session, user_id: UUID) -> int:
    """Return the balance defined by the ledger: positives minus negatives."""

    session.flush()
    stmt = select(func.coalesce(func.sum(_signed_points), 0)).where(PointsTransaction.user_id == user_id)
    return int(session.execute(stmt).scalar_one())


def _lock_cache(session: Session, user_id: UUID) -> Optional[StudentPoints]:
    stmt = select(StudentPoints).where(StudentPoints.student_id == user_id).with_for_update()
    return session.execute(stmt).scalar_one_or_none()


def post_transaction(
    session: Session,
    *,
    user_id: UUID,
    points: int,
    is_positive: bool,
    description: Optional[str] = None,
    created_by: Optional[UUID] = None,
    category_id: Optional[int] = None,
    created_at: Optional[datetime] = None,
) -> PointsTransaction:
    """Append a ledger entry and move the cached balance by the same amount."""

    if points <= 0:
        raise LedgerRuleViolation("يجب أن تكون النقاط أكبر من صفر")

    cache = _lock_cache(session, user_id)
    if cache is None:
        cache = StudentPoints(student_id=user_id, points=calculate_balance(session, user_id))
        session.add(cache)

    transaction = PointsTransaction(
        user_id=user_id,
        points=points,
        is_positive=is_positive,
        description=description,
        created_by=created_by,
        category_id=category_id,
    )
    if created_at is not None:
        transaction.created_at = created_at
    session.add(transaction)

    cache.points += transaction.signed_points
    cache.updated_at = utcnow()
    session.flush()
    return transaction


def get_balance(session: Session, user_id: UUID) -> int:
    """Return the cached balance, seeding the cache from the ledger when missing."""

    cache = session.get(StudentPoints, user_id)
    if cache is not None:
        return cache.points

    balance = calculate_balance(session, user_id)
    session.add(StudentPoints(student_id=user_id, points=balance))
    session.flush()
    return balance


def sync_user_balance(session: Session, user_id: UUID) -> tuple[int, bool]:
    """Overwrite the cached balance with the ledger sum.

    Returns the balance and whether the cache row changed.
    """

    balance = calculate_balance(session, user_id)
    cache = _lock_cache(session, user_id)
    if cache is None:
        session.add(StudentPoints(student_id=user_id, points=balance))
        session.flush()
        logger.info("created points cache for %s with %s points", user_id, balance)
        return balance, True

    if cache.points == balance:
        return balance, False

    logger.info("corrected points cache for %s: %s -> %s", user_id, cache.points, balance)
    cache.points = balance
    cache.updated_at = utcnow()
    session.flush()
    return balance, True


def reconcile_all_balances(session: Session) -> dict[str, int]:
    """Repair the cache for every user with ledger entries or a cache row.

    Returns summary statistics useful for logging/testing.
    """

    session.flush()
    totals_stmt = select(PointsTransaction.user_id, func.sum(_signed_points)).group_by(PointsTransaction.user_id)
    totals = {user_id: int(total or 0) for user_id, total in session.execute(totals_stmt).all()}

    caches = {
        cache.student_id: cache
        for cache in session.execute(select(StudentPoints).with_for_update()).scalars().all()
    }

    summary = {"users_checked": 0, "balances_corrected": 0}
    now = utcnow()
    for user_id in set(totals) | set(caches):
        summary["users_checked"] += 1
        balance = totals.get(user_id, 0)
        cache = caches.get(user_id)
        if cache is None:
            session.add(StudentPoints(student_id=user_id, points=balance, updated_at=now))
        elif cache.points != balance:
            logger.info("corrected points cache for %s: %s -> %s", user_id, cache.points, balance)
            cache.points = balance
            cache.updated_at = now
        else:
            continue
        summary["balances_corrected"] += 1

    session.flush()
    return summary


def list_transactions(
    session: Session,
    *,
    user_id: UUID,
    limit: int = 50,
    offset: int = 0,
) -> Sequence[PointsTransaction]:
    """Return a user's ledger entries, newest first."""

    stmt = (
        select(PointsTransaction)
        .where(PointsTransaction.user_id == user_id)
        .order_by(PointsTransaction.created_at.desc(), PointsTransaction.id.desc())
        .offset(offset)
        .limit(limit)
    )
    return session.execute(stmt).scalars().all()


def points_summary(session: Session, user_id: UUID) -> dict[str, int]:
    """Totals of positive and negative points alongside the cached balance."""

    session.flush()
    positive = func.coalesce(
        func.sum(case((PointsTransaction.is_positive.is_(True), PointsTransaction.points), else_=0)), 0
    )
    negative = func.coalesce(
        func.sum(case((PointsTransaction.is_positive.is_(False), PointsTransaction.points), else_=0)), 0
    )
    stmt = select(positive, negative, func.count(PointsTransaction.id)).where(PointsTransaction.user_id == user_id)
    positive_total, negative_total, count = session.execute(stmt).one()
    return {
        "positive_points": int(positive_total),
        "negative_points": int(negative_total),
        "balance": get_balance(session, user_id),
        "transactions_count": int(count),
    }


def lock_balance(session: Session, user_id: UUID) -> int:
    """Lock the user's cache row for the rest of the transaction and return the balance."""

    cache = _lock_cache(session, user_id)
    if cache is None:
        cache = StudentPoints(student_id=user_id, points=calculate_balance(session, user_id))
        session.add(cache)
        session.flush()
    return cache.points


def lock_balances(session: Session, user_ids: Iterable[UUID]) -> dict[UUID, int]:
    """Lock several cache rows in ascending user id order and return their balances.

    Two transactions locking the same pair of users always take the locks in
    the same order, so they queue instead of deadlocking.
    """

    return {user_id: lock_balance(session, user_id) for user_id in sorted(set(user_ids))}
