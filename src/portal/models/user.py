"""Portal user model."""

import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, String, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship

from ..core.database import Base


class User(Base):
    """Student, parent, teacher or admin account."""

    __tablename__ = "users"
    __table_args__ = (
        UniqueConstraint("user_code", name="users_user_code_unique"),
        UniqueConstraint("email", name="users_email_unique"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_code = Column(String, nullable=False)
    full_name = Column(String, nullable=False)
    email = Column(String, nullable=False)
    role_id = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    transactions = relationship(
        "PointsTransaction",
        foreign_keys="PointsTransaction.user_id",
        back_populates="user",
    )
    points_cache = relationship("StudentPoints", back_populates="student", uselist=False)
    deduction_cards = relationship("UserDeductionCard", back_populates="user")
    badges = relationship("UserBadge", back_populates="user")
    notifications = relationship("Notification", back_populates="user")
