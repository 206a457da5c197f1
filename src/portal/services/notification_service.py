"""Notifications and activity log records."""

from __future__ import annotations

from typing import Optional, Sequence
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from ..core.errors import RuleViolation
from ..models import ActivityLog, Notification


class NotificationRuleViolation(RuleViolation):
    """Raised when a notification cannot be accessed."""


def notify(
    session: Session,
    user_id: UUID,
    title: str,
    content: str,
    *,
    type: str = "general",
) -> Notification:
    notification = Notification(user_id=user_id, title=title, content=content, type=type)
    session.add(notification)
    return notification


def log_activity(session: Session, user_id: Optional[UUID], action_type: str, description: str) -> ActivityLog:
    entry = ActivityLog(user_id=user_id, action_type=action_type, description=description)
    session.add(entry)
    return entry


def list_notifications(
    session: Session,
    *,
    user_id: UUID,
    unread_only: bool = False,
    limit: int = 50,
    offset: int = 0,
) -> Sequence[Notification]:
    """Return a user's notifications, newest first."""

    stmt = (
        select(Notification)
        .where(Notification.user_id == user_id)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .offset(offset)
        .limit(limit)
    )
    if unread_only:
        stmt = stmt.where(Notification.is_read.is_(False))
    return session.execute(stmt).scalars().all()


def unread_count(session: Session, user_id: UUID) -> int:
    stmt = select(func.count(Notification.id)).where(
        Notification.user_id == user_id,
        Notification.is_read.is_(False),
    )
    return session.execute(stmt).scalar_one()


def _ensure_own(session: Session, notification_id: int, user_id: UUID) -> Notification:
    notification = session.get(Notification, notification_id)
    if notification is None or notification.user_id != user_id:
        raise NotificationRuleViolation("لم يتم العثور على الإشعار", status_code=404)
    return notification


def mark_read(session: Session, *, notification_id: int, user_id: UUID) -> Notification:
    notification = _ensure_own(session, notification_id, user_id)
    notification.is_read = True
    session.flush()
    return notification


def mark_all_read(session: Session, *, user_id: UUID) -> int:
    """Mark every unread notification of the user as read; return how many changed."""

    result = session.execute(
        update(Notification)
        .where(Notification.user_id == user_id, Notification.is_read.is_(False))
        .values(is_read=True)
    )
    return result.rowcount


def delete_notification(session: Session, *, notification_id: int, user_id: UUID) -> None:
    notification = _ensure_own(session, notification_id, user_id)
    session.delete(notification)
    session.flush()
