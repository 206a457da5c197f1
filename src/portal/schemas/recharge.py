"""Pydantic schemas for recharge cards."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from ..models import CardStatus


class RechargeCardRead(BaseModel):
    id: int
    code: str
    points: int
    is_used: bool
    used_by: Optional[UUID]
    used_at: Optional[datetime]
    status: CardStatus
    valid_from: datetime
    valid_until: Optional[datetime]
    category_id: Optional[int]
    assigned_to: Optional[UUID]
    created_at: datetime

    class Config:
        from_attributes = True


class RechargeCardBatchCreate(BaseModel):
    """Request body for generating a batch of cards."""

    actor_id: UUID
    count: int = Field(..., gt=0)
    points: int = Field(..., gt=0)
    category_id: Optional[int] = None
    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None
    status: CardStatus = CardStatus.ACTIVE
    assigned_to: Optional[UUID] = None


class RechargeRedeem(BaseModel):
    user_id: UUID
    code: str = Field(..., min_length=1, max_length=64)


class RechargeReceipt(BaseModel):
    card: RechargeCardRead
    points_added: int
    balance: int


class CardCategoryCreate(BaseModel):
    actor_id: UUID
    name: str = Field(..., min_length=1)
    description: Optional[str] = None


class CardCategoryRead(BaseModel):
    id: int
    name: str
    description: Optional[str]

    class Config:
        from_attributes = True


class CardUsageLimitUpdate(BaseModel):
    actor_id: UUID
    weekly_limit: int = Field(..., ge=0)


class CardUsageLimitRead(BaseModel):
    id: int
    role_id: int
    weekly_limit: int
    updated_at: datetime

    class Config:
        from_attributes = True
