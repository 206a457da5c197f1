"""Endpoints for deduction card tiers and user activations."""

from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...core.errors import RuleViolation
from ...schemas import DeductionCardCreate, DeductionCardRead, DeductionCardUpdate, UserDeductionCardRead
from ...services import deduction_service

router = APIRouter(prefix="/deduction-cards", tags=["deduction-cards"])


@router.get("", response_model=List[DeductionCardRead], summary="List deduction card tiers")
def list_tiers(
    include_inactive: bool = Query(False),
    db: Session = Depends(get_db),
) -> List[DeductionCardRead]:
    return list(deduction_service.list_tiers(db, include_inactive=include_inactive))


@router.post(
    "",
    response_model=DeductionCardRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create a deduction card tier",
)
def create_tier(payload: DeductionCardCreate, db: Session = Depends(get_db)) -> DeductionCardRead:
    """Example request body::

        {
            "actor_id": "dddddddd-dddd-dddd-dddd-dddddddddddd",
            "name": "الكرت الأصفر",
            "negative_points_threshold": 20,
            "deduction_percentage": 25,
            "active_duration_days": 7
        }
    """

    try:
        tier = deduction_service.create_tier(db, **payload.model_dump())
        db.commit()
        db.refresh(tier)
        return tier
    except RuleViolation as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc


@router.patch("/{tier_id}", response_model=DeductionCardRead, summary="Update a deduction card tier")
def update_tier(tier_id: int, payload: DeductionCardUpdate, db: Session = Depends(get_db)) -> DeductionCardRead:
    changes = payload.model_dump(exclude={"actor_id"}, exclude_unset=True)
    try:
        tier = deduction_service.update_tier(db, actor_id=payload.actor_id, tier_id=tier_id, **changes)
        db.commit()
        db.refresh(tier)
        return tier
    except RuleViolation as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc


@router.get("/users/{user_id}", response_model=List[UserDeductionCardRead], summary="A user's card history")
def list_user_cards(user_id: UUID, db: Session = Depends(get_db)) -> List[UserDeductionCardRead]:
    return list(deduction_service.list_user_cards(db, user_id))


@router.get(
    "/users/{user_id}/active",
    response_model=Optional[UserDeductionCardRead],
    summary="A user's active deduction card",
)
def get_active_card(user_id: UUID, db: Session = Depends(get_db)) -> Optional[UserDeductionCardRead]:
    return deduction_service.get_active_card(db, user_id)
