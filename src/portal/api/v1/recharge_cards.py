"""Endpoints for recharge cards."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...core.errors import RuleViolation
from ...schemas import (
    CardCategoryCreate,
    CardCategoryRead,
    CardUsageLimitRead,
    CardUsageLimitUpdate,
    RechargeCardBatchCreate,
    RechargeCardRead,
    RechargeReceipt,
    RechargeRedeem,
)
from ...services import recharge_service

router = APIRouter(prefix="/recharge-cards", tags=["recharge-cards"])


@router.post(
    "",
    response_model=List[RechargeCardRead],
    status_code=status.HTTP_201_CREATED,
    summary="Generate a batch of recharge cards",
)
def generate_cards(payload: RechargeCardBatchCreate, db: Session = Depends(get_db)) -> List[RechargeCardRead]:
    try:
        cards = recharge_service.generate_cards(
            db,
            actor_id=payload.actor_id,
            count=payload.count,
            points=payload.points,
            category_id=payload.category_id,
            valid_from=payload.valid_from,
            valid_until=payload.valid_until,
            status=payload.status,
            assigned_to=payload.assigned_to,
        )
        db.commit()
        return [RechargeCardRead.model_validate(card) for card in cards]
    except RuleViolation as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc


@router.get("", response_model=List[RechargeCardRead], summary="List recharge cards")
def list_cards(
    is_used: Optional[bool] = Query(None),
    category_id: Optional[int] = Query(None),
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
) -> List[RechargeCardRead]:
    return list(recharge_service.list_cards(db, is_used=is_used, category_id=category_id, limit=limit, offset=offset))


@router.post(
    "/redeem",
    response_model=RechargeReceipt,
    summary="Redeem a recharge card",
    responses={
        200: {
            "description": "Card redeemed and points credited",
            "content": {
                "application/json": {
                    "example": {
                        "card": {
                            "id": 41,
                            "code": "K7Q2M9X4B1ZP",
                            "points": 50,
                            "is_used": True,
                            "used_by": "bbbbbbbb-bbbb-bbbb-bbbb-bbbbbbbbbbbb",
                            "used_at": "2025-11-12T14:30:00",
                            "status": "active",
                            "valid_from": "2025-11-01T00:00:00",
                            "valid_until": None,
                            "category_id": 2,
                            "assigned_to": None,
                            "created_at": "2025-11-01T09:00:00",
                        },
                        "points_added": 50,
                        "balance": 185,
                    }
                }
            },
        },
        404: {"description": "Unknown card code"},
        409: {"description": "Card already used"},
        429: {"description": "Weekly redemption limit reached"},
    },
)
def redeem_card(payload: RechargeRedeem, db: Session = Depends(get_db)) -> RechargeReceipt:
    """Redeem a card code for points.

    Example request body::

        {
            "user_id": "bbbbbbbb-bbbb-bbbb-bbbb-bbbbbbbbbbbb",
            "code": "K7Q2M9X4B1ZP"
        }
    """

    try:
        card, balance = recharge_service.redeem_card(db, user_id=payload.user_id, code=payload.code)
        db.commit()
        return RechargeReceipt(card=RechargeCardRead.model_validate(card), points_added=card.points, balance=balance)
    except RuleViolation as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc


@router.get("/categories", response_model=List[CardCategoryRead], summary="List card categories")
def list_categories(db: Session = Depends(get_db)) -> List[CardCategoryRead]:
    return list(recharge_service.list_categories(db))


@router.post(
    "/categories",
    response_model=CardCategoryRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create a card category",
)
def create_category(payload: CardCategoryCreate, db: Session = Depends(get_db)) -> CardCategoryRead:
    try:
        category = recharge_service.create_category(
            db,
            actor_id=payload.actor_id,
            name=payload.name,
            description=payload.description,
        )
        db.commit()
        db.refresh(category)
        return category
    except RuleViolation as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc


@router.get("/limits", response_model=List[CardUsageLimitRead], summary="Weekly redemption limits per role")
def list_limits(db: Session = Depends(get_db)) -> List[CardUsageLimitRead]:
    return list(recharge_service.list_limits(db))


@router.put("/limits/{role_id}", response_model=CardUsageLimitRead, summary="Set a role's weekly limit")
def set_limit(role_id: int, payload: CardUsageLimitUpdate, db: Session = Depends(get_db)) -> CardUsageLimitRead:
    try:
        limit = recharge_service.set_limit(
            db,
            actor_id=payload.actor_id,
            role_id=role_id,
            weekly_limit=payload.weekly_limit,
        )
        db.commit()
        db.refresh(limit)
        return limit
    except RuleViolation as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc
