"""Pydantic schemas for portal users."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class UserSummary(BaseModel):
    """Lightweight projection of user details."""

    id: UUID
    user_code: str
    full_name: str
    role_id: int

    class Config:
        from_attributes = True


class UserCreate(BaseModel):
    """Request body for registering a user."""

    user_code: str = Field(..., min_length=1, max_length=32)
    full_name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)
    role_id: int = Field(1, ge=1, le=4, description="1 student, 2 parent, 3 teacher, 4 admin.")


class UserRead(UserSummary):
    email: str
    created_at: datetime
