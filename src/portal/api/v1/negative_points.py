"""Endpoints for recording and paying outstanding negative points."""

from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...core.errors import RuleViolation
from ...models import NegativePointsStatus
from ...schemas import (
    MandatoryDeductionSummary,
    NegativePaymentReceipt,
    NegativePointsCancel,
    NegativePointsCreate,
    NegativePointsOverview,
    NegativePointsPay,
    NegativePointsRead,
)
from ...services import negative_points_service

router = APIRouter(prefix="/negative-points", tags=["negative-points"])


@router.post(
    "",
    response_model=NegativePointsRead,
    status_code=status.HTTP_201_CREATED,
    summary="Record negative points owed by a user",
)
def record_negative_points(payload: NegativePointsCreate, db: Session = Depends(get_db)) -> NegativePointsRead:
    """Example request body::

        {
            "actor_id": "aaaaaaaa-aaaa-aaaa-aaaa-aaaaaaaaaaaa",
            "user_code": "S1002",
            "category_id": 7,
            "reason": "تأخر عن الطابور"
        }
    """

    try:
        entry = negative_points_service.record_negative_points(
            db,
            actor_id=payload.actor_id,
            user_code=payload.user_code,
            points=payload.points,
            category_id=payload.category_id,
            reason=payload.reason,
        )
        db.commit()
        db.refresh(entry)
        return NegativePointsRead.model_validate(entry)
    except RuleViolation as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc


@router.get("/users/{user_id}", response_model=NegativePointsOverview, summary="A user's negative points")
def negative_points_overview(user_id: UUID, db: Session = Depends(get_db)) -> NegativePointsOverview:
    try:
        overview = negative_points_service.negative_points_overview(db, user_id)
    except RuleViolation as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc
    return NegativePointsOverview(
        user_id=user_id,
        entries=[NegativePointsRead.model_validate(entry) for entry in overview["entries"]],
        mandatory_total=overview["mandatory_total"],
        optional_total=overview["optional_total"],
    )


@router.get("/users/{user_id}/entries", response_model=List[NegativePointsRead], summary="Filter entries by status")
def list_entries(
    user_id: UUID,
    status_filter: Optional[NegativePointsStatus] = Query(None, alias="status"),
    db: Session = Depends(get_db),
) -> List[NegativePointsRead]:
    entries = negative_points_service.list_negative_points(db, user_id, status=status_filter)
    return [NegativePointsRead.model_validate(entry) for entry in entries]


@router.post(
    "/users/{user_id}/process-mandatory",
    response_model=MandatoryDeductionSummary,
    summary="Deduct all pending mandatory negative points",
)
def process_mandatory(user_id: UUID, db: Session = Depends(get_db)) -> MandatoryDeductionSummary:
    try:
        summary = negative_points_service.process_mandatory_negative_points(db, user_id)
        db.commit()
        return MandatoryDeductionSummary(user_id=user_id, **summary)
    except RuleViolation as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc


@router.post(
    "/{entry_id}/pay",
    response_model=NegativePaymentReceipt,
    summary="Pay negative points from the balance",
    responses={
        400: {"description": "Insufficient balance or partial payment of a mandatory entry"},
        404: {"description": "Entry not found for this user"},
        409: {"description": "Entry already paid or cancelled"},
    },
)
def pay_negative_points(entry_id: int, payload: NegativePointsPay, db: Session = Depends(get_db)) -> NegativePaymentReceipt:
    """Example request body for a partial payment::

        {
            "user_id": "bbbbbbbb-bbbb-bbbb-bbbb-bbbbbbbbbbbb",
            "amount": 3
        }
    """

    try:
        entry, paid, balance = negative_points_service.pay_negative_points(
            db,
            user_id=payload.user_id,
            entry_id=entry_id,
            amount=payload.amount,
        )
        db.commit()
        return NegativePaymentReceipt(
            entry=NegativePointsRead.model_validate(entry),
            paid_points=paid,
            balance=balance,
        )
    except RuleViolation as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc


@router.post("/{entry_id}/cancel", response_model=NegativePointsRead, summary="Cancel a pending entry")
def cancel_negative_points(
    entry_id: int,
    payload: NegativePointsCancel,
    db: Session = Depends(get_db),
) -> NegativePointsRead:
    try:
        entry = negative_points_service.cancel_negative_points(db, actor_id=payload.actor_id, entry_id=entry_id)
        db.commit()
        db.refresh(entry)
        return NegativePointsRead.model_validate(entry)
    except RuleViolation as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc
