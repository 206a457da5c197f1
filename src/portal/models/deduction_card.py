"""Deduction card tiers and their per-user activations."""

from datetime import datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Uuid,
    text,
)
from sqlalchemy.orm import relationship

from ..core.database import Base


class DeductionCard(Base):
    """Penalty tier reached by accumulating negative points."""

    __tablename__ = "deduction_cards"
    __table_args__ = (
        CheckConstraint("negative_points_threshold > 0", name="deduction_cards_threshold_positive"),
        CheckConstraint(
            "deduction_percentage >= 0 AND deduction_percentage <= 100",
            name="deduction_cards_percentage_range",
        ),
        CheckConstraint(
            "active_duration_days >= 0 AND active_duration_hours >= 0",
            name="deduction_cards_duration_non_negative",
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False)
    color = Column(String, nullable=False, default="#ef4444")
    description = Column(String)
    negative_points_threshold = Column(Integer, nullable=False)
    deduction_percentage = Column(Integer, nullable=False)
    active_duration_days = Column(Integer, nullable=False, default=0)
    active_duration_hours = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    activations = relationship("UserDeductionCard", back_populates="deduction_card")


class UserDeductionCard(Base):
    """Activation of a deduction card for a user. One active row per user."""

    __tablename__ = "user_deduction_cards"
    __table_args__ = (
        Index(
            "uq_user_deduction_cards_one_active",
            "user_id",
            unique=True,
            postgresql_where=text("is_active"),
            sqlite_where=text("is_active = 1"),
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    deduction_card_id = Column(Integer, ForeignKey("deduction_cards.id", ondelete="CASCADE"), nullable=False)
    negative_points_count = Column(Integer, nullable=False, default=0)
    activated_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    expires_at = Column(DateTime, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)

    user = relationship("User", back_populates="deduction_cards")
    deduction_card = relationship("DeductionCard", back_populates="activations")
