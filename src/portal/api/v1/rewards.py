"""Endpoints for the reward catalogue and reward redemptions."""

from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...core.errors import RuleViolation
from ...models import RedemptionStatus
from ...schemas import (
    RedemptionRead,
    RedemptionReceipt,
    RedemptionStatusUpdate,
    RewardCreate,
    RewardRead,
    RewardRedeem,
    RewardUpdate,
)
from ...services import reward_service

router = APIRouter(prefix="/rewards", tags=["rewards"])


@router.get("/redemptions", response_model=List[RedemptionRead], summary="List reward redemptions")
def list_redemptions(
    *,
    user_id: Optional[UUID] = Query(None, description="Filter by user UUID"),
    status_filter: Optional[RedemptionStatus] = Query(None, alias="status"),
    limit: int = Query(50, ge=1, le=100, description="Maximum items to return"),
    offset: int = Query(0, ge=0, description="Items to skip for pagination"),
    db: Session = Depends(get_db),
) -> List[RedemptionRead]:
    redemptions = reward_service.list_redemptions(
        db,
        user_id=user_id,
        status=status_filter,
        limit=limit,
        offset=offset,
    )
    return list(redemptions)


@router.patch(
    "/redemptions/{redemption_id}",
    response_model=RedemptionRead,
    summary="Approve, reject or deliver a redemption",
)
def update_redemption_status(
    redemption_id: int,
    payload: RedemptionStatusUpdate,
    db: Session = Depends(get_db),
) -> RedemptionRead:
    try:
        redemption = reward_service.update_redemption_status(
            db,
            actor_id=payload.actor_id,
            redemption_id=redemption_id,
            status=payload.status,
            admin_notes=payload.admin_notes,
        )
        db.commit()
        db.refresh(redemption)
        return redemption
    except RuleViolation as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc


@router.get("", response_model=List[RewardRead], summary="Rewards available to a user")
def list_rewards(
    user_id: UUID = Query(..., description="User browsing the catalogue"),
    db: Session = Depends(get_db),
) -> List[RewardRead]:
    try:
        return list(reward_service.list_rewards_for_user(db, user_id))
    except RuleViolation as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc


@router.post("", response_model=RewardRead, status_code=status.HTTP_201_CREATED, summary="Create a reward")
def create_reward(payload: RewardCreate, db: Session = Depends(get_db)) -> RewardRead:
    try:
        reward = reward_service.create_reward(db, **payload.model_dump())
        db.commit()
        db.refresh(reward)
        return reward
    except RuleViolation as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc


@router.patch("/{reward_id}", response_model=RewardRead, summary="Update a reward")
def update_reward(reward_id: int, payload: RewardUpdate, db: Session = Depends(get_db)) -> RewardRead:
    changes = payload.model_dump(exclude={"actor_id"}, exclude_unset=True)
    try:
        reward = reward_service.update_reward(db, actor_id=payload.actor_id, reward_id=reward_id, **changes)
        db.commit()
        db.refresh(reward)
        return reward
    except RuleViolation as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc


@router.delete("/{reward_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete an unredeemed reward")
def delete_reward(
    reward_id: int,
    actor_id: UUID = Query(...),
    db: Session = Depends(get_db),
) -> None:
    try:
        reward_service.delete_reward(db, actor_id=actor_id, reward_id=reward_id)
        db.commit()
    except RuleViolation as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc


@router.post(
    "/{reward_id}/redeem",
    response_model=RedemptionReceipt,
    status_code=status.HTTP_201_CREATED,
    summary="Redeem points for a reward",
    responses={
        201: {
            "description": "Redemption completed",
            "content": {
                "application/json": {
                    "example": {
                        "redemption": {
                            "id": 88,
                            "user_id": "bbbbbbbb-bbbb-bbbb-bbbb-bbbbbbbbbbbb",
                            "reward": {
                                "id": 5,
                                "name": "قسيمة مكتبة",
                                "description": None,
                                "points_cost": 40,
                                "available_quantity": 11,
                                "role_id": 1,
                                "auto_approve": False,
                                "is_active": True,
                                "image_url": None,
                            },
                            "status": "pending",
                            "redemption_code": "K7QM9XRB4HZP",
                            "redeemed_value": 40,
                            "admin_notes": None,
                            "redeemed_at": "2025-11-12T14:30:00",
                            "delivered_at": None,
                        },
                        "available_balance": 35,
                    }
                }
            },
        },
        400: {"description": "Business rule violation"},
        404: {"description": "User or reward not found"},
        409: {"description": "Out of stock"},
    },
)
def redeem_reward(reward_id: int, payload: RewardRedeem, db: Session = Depends(get_db)) -> RedemptionReceipt:
    """Spend points on a reward.

    Example request body::

        {
            "user_id": "bbbbbbbb-bbbb-bbbb-bbbb-bbbbbbbbbbbb"
        }
    """

    try:
        redemption, remaining_balance = reward_service.redeem_reward(
            db,
            user_id=payload.user_id,
            reward_id=reward_id,
        )
        db.commit()
        db.refresh(redemption)
        return RedemptionReceipt(
            redemption=RedemptionRead.model_validate(redemption),
            available_balance=remaining_balance,
        )
    except RuleViolation as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc
