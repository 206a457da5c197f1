"""Pydantic schemas for outstanding negative points."""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from ..models import NegativePointsStatus


class NegativePointsCreate(BaseModel):
    """Request body for recording a penalty against a user."""

    actor_id: UUID
    user_code: str
    points: Optional[int] = Field(None, gt=0, description="Defaults to the category's points.")
    category_id: Optional[int] = None
    reason: Optional[str] = Field(None, max_length=280)


class NegativePointsRead(BaseModel):
    id: int
    user_id: UUID
    category_id: Optional[int]
    points: int
    reason: str
    status: NegativePointsStatus
    is_mandatory: bool
    auto_processed: bool
    created_at: datetime
    paid_at: Optional[datetime]

    class Config:
        from_attributes = True


class NegativePointsOverview(BaseModel):
    user_id: UUID
    entries: List[NegativePointsRead]
    mandatory_total: int = Field(..., description="Pending points that must be paid in full.")
    optional_total: int = Field(..., description="Pending points that may be paid in parts.")


class NegativePointsPay(BaseModel):
    user_id: UUID
    amount: Optional[int] = Field(None, gt=0, description="Partial amount; optional entries only.")


class NegativePaymentReceipt(BaseModel):
    entry: NegativePointsRead
    paid_points: int
    balance: int


class MandatoryDeductionSummary(BaseModel):
    user_id: UUID
    processed_entries: int
    total_deducted: int
    balance: int


class NegativePointsCancel(BaseModel):
    actor_id: UUID
