"""Recharge card models."""

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


class CardStatus(str, enum.Enum):
    """Administrative state of a recharge card."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    EXPIRED = "expired"


class CardCategory(Base):
    """Grouping for batches of recharge cards."""

    __tablename__ = "card_categories"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False, unique=True)
    description = Column(String)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    cards = relationship("RechargeCard", back_populates="category")


class RechargeCard(Base):
    """Single-use code that credits points when redeemed."""

    __tablename__ = "recharge_cards"
    __table_args__ = (
        CheckConstraint("points > 0", name="recharge_cards_points_positive"),
        CheckConstraint(
            "valid_until IS NULL OR valid_until > valid_from",
            name="recharge_cards_validity_range",
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    code = Column(String(32), nullable=False, unique=True, index=True)
    points = Column(Integer, nullable=False)
    is_used = Column(Boolean, nullable=False, default=False)
    used_by = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"))
    used_at = Column(DateTime)
    status = Column(
        SAEnum(CardStatus, name="recharge_card_status", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=CardStatus.ACTIVE,
    )
    valid_from = Column(DateTime, default=datetime.utcnow, nullable=False)
    valid_until = Column(DateTime)
    category_id = Column(Integer, ForeignKey("card_categories.id", ondelete="SET NULL"))
    assigned_to = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"))
    created_by = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"))
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    category = relationship("CardCategory", back_populates="cards")


class CardUsageLimit(Base):
    """Maximum recharge cards a role may redeem per trailing week."""

    __tablename__ = "card_usage_limits"
    __table_args__ = (
        CheckConstraint("weekly_limit >= 0", name="card_usage_limits_non_negative"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    role_id = Column(Integer, nullable=False, unique=True)
    weekly_limit = Column(Integer, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=False)
