"""Endpoints for awarding, deducting and transferring points."""

from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...core.errors import RuleViolation
from ...schemas import (
    BatchAwardCreate,
    BatchAwardResult,
    PointCategoryCreate,
    PointCategoryRead,
    PointsAwardCreate,
    PointsAwardReceipt,
    PointsSummary,
    TransactionRead,
    TransferCreate,
    TransferReceipt,
)
from ...services import ledger_service, points_service, user_service

router = APIRouter(prefix="/points", tags=["points"])


@router.post(
    "/awards",
    response_model=PointsAwardReceipt,
    status_code=status.HTTP_201_CREATED,
    summary="Award or deduct points",
    responses={
        201: {
            "description": "Ledger entry posted",
            "content": {
                "application/json": {
                    "example": {
                        "transaction": {
                            "id": 812,
                            "user_id": "bbbbbbbb-bbbb-bbbb-bbbb-bbbbbbbbbbbb",
                            "category_id": 3,
                            "points": 8,
                            "is_positive": True,
                            "description": "مشاركة صفية (حسم 2 نقطة بسبب كرت الحسم)",
                            "created_by": "aaaaaaaa-aaaa-aaaa-aaaa-aaaaaaaaaaaa",
                            "created_at": "2025-11-12T10:15:30",
                        },
                        "balance": 148,
                    }
                }
            },
        },
        400: {"description": "Business rule violation"},
        403: {"description": "Actor is not staff"},
        404: {"description": "User or category not found"},
    },
)
def award_points(payload: PointsAwardCreate, db: Session = Depends(get_db)) -> PointsAwardReceipt:
    """Post a positive or negative ledger entry for a user.

    Positive awards are reduced by an active deduction card; negative entries
    may activate or upgrade one.

    Example request body::

        {
            "actor_id": "aaaaaaaa-aaaa-aaaa-aaaa-aaaaaaaaaaaa",
            "user_code": "S1002",
            "category_id": 3
        }
    """

    try:
        transaction, balance = points_service.add_points(
            db,
            actor_id=payload.actor_id,
            user_code=payload.user_code,
            points=payload.points,
            is_positive=payload.is_positive,
            category_id=payload.category_id,
            description=payload.description,
        )
        db.commit()
        return PointsAwardReceipt(
            transaction=TransactionRead.model_validate(transaction) if transaction else None,
            balance=balance,
        )
    except RuleViolation as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc


@router.post("/awards/batch", response_model=BatchAwardResult, summary="Award points to many users")
def batch_award_points(payload: BatchAwardCreate, db: Session = Depends(get_db)) -> BatchAwardResult:
    try:
        result = points_service.batch_add_points(
            db,
            actor_id=payload.actor_id,
            user_codes=payload.user_codes,
            points=payload.points,
            is_positive=payload.is_positive,
            category_id=payload.category_id,
            description=payload.description,
        )
        db.commit()
        return BatchAwardResult(**result)
    except RuleViolation as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc


@router.post(
    "/transfers",
    response_model=TransferReceipt,
    status_code=status.HTTP_201_CREATED,
    summary="Transfer points to another user",
    responses={
        400: {"description": "Business rule violation"},
        404: {"description": "Sender or recipient not found"},
    },
)
def transfer_points(payload: TransferCreate, db: Session = Depends(get_db)) -> TransferReceipt:
    """Move points from the sender to the user with ``recipient_code``.

    Example request body::

        {
            "sender_id": "aaaaaaaa-aaaa-aaaa-aaaa-aaaaaaaaaaaa",
            "recipient_code": "S1002",
            "points": 20,
            "description": "شكراً على المساعدة"
        }
    """

    try:
        sent, received, balance = points_service.transfer_points(
            db,
            sender_id=payload.sender_id,
            recipient_code=payload.recipient_code,
            points=payload.points,
            description=payload.description,
        )
        db.commit()
        return TransferReceipt(
            sent=TransactionRead.model_validate(sent),
            received=TransactionRead.model_validate(received),
            balance=balance,
        )
    except RuleViolation as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc


@router.get("/categories", response_model=List[PointCategoryRead], summary="List point categories")
def list_categories(
    is_positive: Optional[bool] = Query(None, description="Filter by sign"),
    db: Session = Depends(get_db),
) -> List[PointCategoryRead]:
    return list(points_service.list_categories(db, is_positive=is_positive))


@router.post(
    "/categories",
    response_model=PointCategoryRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create a point category",
)
def create_category(payload: PointCategoryCreate, db: Session = Depends(get_db)) -> PointCategoryRead:
    try:
        category = points_service.create_category(
            db,
            actor_id=payload.actor_id,
            name=payload.name,
            description=payload.description,
            default_points=payload.default_points,
            is_positive=payload.is_positive,
            is_mandatory=payload.is_mandatory,
        )
        db.commit()
        db.refresh(category)
        return category
    except RuleViolation as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc


@router.get("/{user_id}/transactions", response_model=List[TransactionRead], summary="List a user's ledger")
def list_transactions(
    user_id: UUID,
    limit: int = Query(50, ge=1, le=100, description="Maximum items to return"),
    offset: int = Query(0, ge=0, description="Items to skip for pagination"),
    db: Session = Depends(get_db),
) -> List[TransactionRead]:
    return list(ledger_service.list_transactions(db, user_id=user_id, limit=limit, offset=offset))


@router.get("/{user_id}/summary", response_model=PointsSummary, summary="Balance and ledger totals")
def points_summary(user_id: UUID, db: Session = Depends(get_db)) -> PointsSummary:
    try:
        user_service.get_user(db, user_id)
        summary = ledger_service.points_summary(db, user_id)
        db.commit()
        return PointsSummary(user_id=user_id, **summary)
    except RuleViolation as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc
