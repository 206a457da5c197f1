"""Pydantic schemas for the points ledger."""

from datetime import datetime
from typing import Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class TransactionRead(BaseModel):
    """A ledger entry."""

    id: int
    user_id: UUID
    category_id: Optional[int]
    points: int
    is_positive: bool
    description: Optional[str]
    created_by: Optional[UUID]
    created_at: datetime

    class Config:
        from_attributes = True


class PointsAwardCreate(BaseModel):
    """Request body for awarding or deducting points."""

    actor_id: UUID
    user_code: str
    points: Optional[int] = Field(None, gt=0, description="Defaults to the category's points.")
    is_positive: Optional[bool] = Field(None, description="Defaults to the category's sign.")
    category_id: Optional[int] = None
    description: Optional[str] = Field(None, max_length=280)


class PointsAwardReceipt(BaseModel):
    """Response returned after awarding or deducting points."""

    transaction: Optional[TransactionRead]
    balance: int


class BatchAwardCreate(BaseModel):
    actor_id: UUID
    user_codes: List[str] = Field(..., min_length=1, max_length=500)
    points: Optional[int] = Field(None, gt=0)
    is_positive: Optional[bool] = None
    category_id: Optional[int] = None
    description: Optional[str] = Field(None, max_length=280)


class BatchAwardResult(BaseModel):
    processed: List[str]
    failed: Dict[str, str]


class TransferCreate(BaseModel):
    """Request body for transferring points to another user."""

    sender_id: UUID
    recipient_code: str
    points: int = Field(..., gt=0)
    description: Optional[str] = Field(None, max_length=280)


class TransferReceipt(BaseModel):
    sent: TransactionRead
    received: TransactionRead
    balance: int = Field(..., description="Sender balance after the transfer.")


class PointsSummary(BaseModel):
    user_id: UUID
    positive_points: int
    negative_points: int
    balance: int
    transactions_count: int


class BalanceSync(BaseModel):
    user_id: UUID
    points: int
    changed: bool


class ReconcileSummary(BaseModel):
    users_checked: int
    balances_corrected: int


class PointCategoryCreate(BaseModel):
    actor_id: UUID
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    default_points: int = Field(..., gt=0)
    is_positive: bool = True
    is_mandatory: bool = False


class PointCategoryRead(BaseModel):
    id: int
    name: str
    description: Optional[str]
    default_points: int
    is_positive: bool
    is_mandatory: bool

    class Config:
        from_attributes = True
