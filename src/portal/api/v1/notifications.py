"""Notification endpoints."""

from __future__ import annotations

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...core.errors import RuleViolation
from ...schemas import NotificationRead, UnreadCount
from ...services import notification_service

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=List[NotificationRead], summary="List a user's notifications")
def list_notifications(
    *,
    user_id: UUID = Query(...),
    unread_only: bool = Query(False),
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
) -> List[NotificationRead]:
    return list(
        notification_service.list_notifications(
            db,
            user_id=user_id,
            unread_only=unread_only,
            limit=limit,
            offset=offset,
        )
    )


@router.get("/unread-count", response_model=UnreadCount, summary="Count unread notifications")
def unread_count(user_id: UUID = Query(...), db: Session = Depends(get_db)) -> UnreadCount:
    return UnreadCount(user_id=user_id, unread=notification_service.unread_count(db, user_id))


@router.post("/read-all", response_model=UnreadCount, summary="Mark all notifications read")
def mark_all_read(user_id: UUID = Query(...), db: Session = Depends(get_db)) -> UnreadCount:
    notification_service.mark_all_read(db, user_id=user_id)
    db.commit()
    return UnreadCount(user_id=user_id, unread=0)


@router.post("/{notification_id}/read", response_model=NotificationRead, summary="Mark a notification read")
def mark_read(notification_id: int, user_id: UUID = Query(...), db: Session = Depends(get_db)) -> NotificationRead:
    try:
        notification = notification_service.mark_read(db, notification_id=notification_id, user_id=user_id)
        db.commit()
        db.refresh(notification)
        return notification
    except RuleViolation as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc


@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a notification")
def delete_notification(notification_id: int, user_id: UUID = Query(...), db: Session = Depends(get_db)) -> None:
    try:
        notification_service.delete_notification(db, notification_id=notification_id, user_id=user_id)
        db.commit()
    except RuleViolation as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc
