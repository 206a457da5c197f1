"""Badge endpoints."""

from __future__ import annotations

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...core.errors import RuleViolation
from ...schemas import BadgeCreate, BadgeRead, UserBadgeRead
from ...services import badge_service

router = APIRouter(prefix="/badges", tags=["badges"])


@router.get("", response_model=List[BadgeRead], summary="List badges")
def list_badges(db: Session = Depends(get_db)) -> List[BadgeRead]:
    return list(badge_service.list_badges(db))


@router.post("", response_model=BadgeRead, status_code=status.HTTP_201_CREATED, summary="Create a badge")
def create_badge(payload: BadgeCreate, db: Session = Depends(get_db)) -> BadgeRead:
    try:
        badge = badge_service.create_badge(db, **payload.model_dump())
        db.commit()
        db.refresh(badge)
        return badge
    except RuleViolation as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc


@router.get("/users/{user_id}", response_model=List[UserBadgeRead], summary="Badges held by a user")
def list_user_badges(user_id: UUID, db: Session = Depends(get_db)) -> List[UserBadgeRead]:
    return list(badge_service.list_user_badges(db, user_id))


@router.post("/users/{user_id}/check", response_model=List[BadgeRead], summary="Award any newly earned badges")
def check_badges(user_id: UUID, db: Session = Depends(get_db)) -> List[BadgeRead]:
    awarded = badge_service.check_and_award_badges(db, user_id)
    db.commit()
    return [BadgeRead.model_validate(badge) for badge in awarded]
