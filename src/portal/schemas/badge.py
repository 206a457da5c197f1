"""Pydantic schemas for badges."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


class BadgeCreate(BaseModel):
    actor_id: UUID
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    image_url: Optional[str] = None
    min_points: int = Field(..., ge=0)


class BadgeRead(BaseModel):
    id: int
    name: str
    description: Optional[str]
    image_url: Optional[str]
    min_points: int

    class Config:
        from_attributes = True


class UserBadgeRead(BaseModel):
    id: int
    badge: BadgeRead
    awarded_at: datetime

    class Config:
        from_attributes = True
