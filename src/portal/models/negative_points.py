"""Outstanding negative points a student settles from their balance."""

import enum
from datetime import datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Enum as SAEnum,
    ForeignKey,
    Index,
    Integer,
    String,
    Uuid,
)
from sqlalchemy.orm import relationship

from ..core.database import Base


class NegativePointsStatus(str, enum.Enum):
    """Lifecycle of a negative points entry."""

    PENDING = "pending"
    PAID = "paid"
    CANCELLED = "cancelled"


class NegativePointsEntry(Base):
    """Penalty recorded against a user and paid later from their balance.

    Entries without a category, or whose category is mandatory, are deducted
    in full; optional entries may be paid in parts.
    """

    __tablename__ = "negative_points"
    __table_args__ = (
        CheckConstraint("points > 0", name="negative_points_points_positive"),
        Index("ix_negative_points_user_status", "user_id", "status"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    category_id = Column(Integer, ForeignKey("point_categories.id", ondelete="SET NULL"))
    points = Column(Integer, nullable=False)
    reason = Column(String, nullable=False)
    status = Column(
        SAEnum(NegativePointsStatus, name="negative_points_status", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=NegativePointsStatus.PENDING,
    )
    auto_processed = Column(Boolean, nullable=False, default=False)
    created_by = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"))
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    paid_at = Column(DateTime)

    category = relationship("PointCategory")

    @property
    def is_mandatory(self) -> bool:
        return self.category is None or bool(self.category.is_mandatory)
