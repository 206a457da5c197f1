"""Pydantic schemas for rewards and reward redemptions."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from ..models import RedemptionStatus


class RewardCreate(BaseModel):
    """Incoming payload for adding a reward to the catalogue."""

    actor_id: UUID
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    points_cost: int = Field(..., gt=0)
    available_quantity: int = Field(..., ge=0)
    role_id: Optional[int] = Field(None, ge=0, le=4)
    auto_approve: bool = False
    image_url: Optional[str] = None


class RewardUpdate(BaseModel):
    actor_id: UUID
    name: Optional[str] = None
    description: Optional[str] = None
    points_cost: Optional[int] = Field(None, gt=0)
    available_quantity: Optional[int] = Field(None, ge=0)
    role_id: Optional[int] = Field(None, ge=0, le=4)
    auto_approve: Optional[bool] = None
    is_active: Optional[bool] = None
    image_url: Optional[str] = None


class RewardRead(BaseModel):
    id: int
    name: str
    description: Optional[str]
    points_cost: int
    available_quantity: int
    role_id: Optional[int]
    auto_approve: bool
    is_active: bool
    image_url: Optional[str]

    class Config:
        from_attributes = True


class RewardRedeem(BaseModel):
    """Incoming payload for redeeming a reward."""

    user_id: UUID


class RedemptionRead(BaseModel):
    """Represents a reward redemption record."""

    id: int
    user_id: UUID
    reward: RewardRead
    status: RedemptionStatus
    redemption_code: str
    redeemed_value: int
    admin_notes: Optional[str]
    redeemed_at: datetime
    delivered_at: Optional[datetime]

    class Config:
        from_attributes = True


class RedemptionReceipt(BaseModel):
    """Response returned after processing a redemption."""

    redemption: RedemptionRead
    available_balance: int = Field(..., description="Balance after this redemption.")


class RedemptionStatusUpdate(BaseModel):
    actor_id: UUID
    status: RedemptionStatus
    admin_notes: Optional[str] = Field(None, max_length=500)
