"""Points ledger models: categories, signed transactions and the cached balance."""

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
)
from sqlalchemy.orm import relationship

from ..core.database import Base


class PointCategory(Base):
    """Named reason for awarding or deducting points, with a default amount."""

    __tablename__ = "point_categories"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False, unique=True)
    description = Column(String)
    default_points = Column(Integer, nullable=False, default=1)
    is_positive = Column(Boolean, nullable=False, default=True)
    is_mandatory = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    transactions = relationship("PointsTransaction", back_populates="category")


class PointsTransaction(Base):
    """Append-only ledger entry. ``points`` is a magnitude; the sign is ``is_positive``."""

    __tablename__ = "points_transactions"
    __table_args__ = (
        CheckConstraint("points > 0", name="points_transactions_points_positive"),
        Index("ix_points_transactions_user_created", "user_id", "created_at"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    category_id = Column(Integer, ForeignKey("point_categories.id", ondelete="SET NULL"))
    points = Column(Integer, nullable=False)
    is_positive = Column(Boolean, nullable=False, default=True)
    description = Column(String)
    created_by = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"))
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    user = relationship("User", foreign_keys=[user_id], back_populates="transactions")
    category = relationship("PointCategory", back_populates="transactions")

    @property
    def signed_points(self) -> int:
        return self.points if self.is_positive else -self.points


class StudentPoints(Base):
    """Cached balance; must equal the signed sum of the user's transactions."""

    __tablename__ = "student_points"

    student_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    points = Column(Integer, nullable=False, default=0)
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    student = relationship("User", back_populates="points_cache")
