"""SQLAlchemy models for the school portal."""

from .badge import Badge, UserBadge
from .deduction_card import DeductionCard, UserDeductionCard
from .negative_points import NegativePointsEntry, NegativePointsStatus
from .notification import ActivityLog, Notification
from .points import PointCategory, PointsTransaction, StudentPoints
from .recharge_card import CardCategory, CardStatus, CardUsageLimit, RechargeCard
from .reward import RedemptionStatus, Reward, UserReward
from .user import User

__all__ = [
    "ActivityLog",
    "Badge",
    "CardCategory",
    "CardStatus",
    "CardUsageLimit",
    "DeductionCard",
    "NegativePointsEntry",
    "NegativePointsStatus",
    "Notification",
    "PointCategory",
    "PointsTransaction",
    "RechargeCard",
    "RedemptionStatus",
    "Reward",
    "StudentPoints",
    "User",
    "UserBadge",
    "UserDeductionCard",
    "UserReward",
]
