"""Pydantic schemas for deduction cards."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


class DeductionCardCreate(BaseModel):
    actor_id: UUID
    name: str = Field(..., min_length=1)
    color: str = "#ef4444"
    description: Optional[str] = None
    negative_points_threshold: int = Field(..., gt=0)
    deduction_percentage: int = Field(..., ge=0, le=100)
    active_duration_days: int = Field(0, ge=0)
    active_duration_hours: int = Field(0, ge=0)
    is_active: bool = True


class DeductionCardUpdate(BaseModel):
    actor_id: UUID
    name: Optional[str] = None
    color: Optional[str] = None
    description: Optional[str] = None
    negative_points_threshold: Optional[int] = Field(None, gt=0)
    deduction_percentage: Optional[int] = Field(None, ge=0, le=100)
    active_duration_days: Optional[int] = Field(None, ge=0)
    active_duration_hours: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = None


class DeductionCardRead(BaseModel):
    id: int
    name: str
    color: str
    description: Optional[str]
    negative_points_threshold: int
    deduction_percentage: int
    active_duration_days: int
    active_duration_hours: int
    is_active: bool

    class Config:
        from_attributes = True


class UserDeductionCardRead(BaseModel):
    id: int
    user_id: UUID
    deduction_card: DeductionCardRead
    negative_points_count: int
    activated_at: datetime
    expires_at: datetime
    is_active: bool

    class Config:
        from_attributes = True
