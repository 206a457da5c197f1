"""Reward catalogue and reward redemption models."""

import enum
from datetime import datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Enum as SAEnum,
    ForeignKey,
    Integer,
    String,
    Uuid,
)
from sqlalchemy.orm import relationship

from ..core.database import Base


class RedemptionStatus(str, enum.Enum):
    """Possible reward redemption states."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    DELIVERED = "delivered"


class Reward(Base):
    """Item a user can buy with points."""

    __tablename__ = "rewards"
    __table_args__ = (
        CheckConstraint("points_cost > 0", name="rewards_points_cost_positive"),
        CheckConstraint("available_quantity >= 0", name="rewards_quantity_non_negative"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False)
    description = Column(String)
    points_cost = Column(Integer, nullable=False)
    available_quantity = Column(Integer, nullable=False, default=0)
    role_id = Column(Integer)
    auto_approve = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=True)
    image_url = Column(String)
    created_by = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"))
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    redemptions = relationship("UserReward", back_populates="reward")


class UserReward(Base):
    """A user's redemption of a reward."""

    __tablename__ = "user_rewards"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    reward_id = Column(Integer, ForeignKey("rewards.id", ondelete="RESTRICT"), nullable=False)
    status = Column(
        SAEnum(RedemptionStatus, name="redemption_status", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=RedemptionStatus.PENDING,
    )
    redemption_code = Column(String(12), nullable=False, unique=True)
    redeemed_value = Column(Integer, nullable=False)
    admin_notes = Column(String)
    redeemed_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    delivered_at = Column(DateTime)

    reward = relationship("Reward", back_populates="redemptions")
    user = relationship("User")
