"""Public schema exports."""

from .badge import BadgeCreate, BadgeRead, UserBadgeRead
from .deduction import DeductionCardCreate, DeductionCardRead, DeductionCardUpdate, UserDeductionCardRead
from .leaderboard import LeaderboardEntry
from .negative_points import (
    MandatoryDeductionSummary,
    NegativePaymentReceipt,
    NegativePointsCancel,
    NegativePointsCreate,
    NegativePointsOverview,
    NegativePointsPay,
    NegativePointsRead,
)
from .notification import NotificationRead, UnreadCount
from .points import (
    BalanceSync,
    BatchAwardCreate,
    BatchAwardResult,
    PointCategoryCreate,
    PointCategoryRead,
    PointsAwardCreate,
    PointsAwardReceipt,
    PointsSummary,
    ReconcileSummary,
    TransactionRead,
    TransferCreate,
    TransferReceipt,
)
from .recharge import (
    CardCategoryCreate,
    CardCategoryRead,
    CardUsageLimitRead,
    CardUsageLimitUpdate,
    RechargeCardBatchCreate,
    RechargeCardRead,
    RechargeReceipt,
    RechargeRedeem,
)
from .reward import (
    RedemptionRead,
    RedemptionReceipt,
    RedemptionStatusUpdate,
    RewardCreate,
    RewardRead,
    RewardRedeem,
    RewardUpdate,
)
from .user import UserCreate, UserRead, UserSummary

__all__ = [
	"BadgeCreate",
	"BadgeRead",
	"BalanceSync",
	"BatchAwardCreate",
	"BatchAwardResult",
	"CardCategoryCreate",
	"CardCategoryRead",
	"CardUsageLimitRead",
	"CardUsageLimitUpdate",
	"DeductionCardCreate",
	"DeductionCardRead",
	"DeductionCardUpdate",
	"LeaderboardEntry",
	"MandatoryDeductionSummary",
	"NegativePaymentReceipt",
	"NegativePointsCancel",
	"NegativePointsCreate",
	"NegativePointsOverview",
	"NegativePointsPay",
	"NegativePointsRead",
	"NotificationRead",
	"PointCategoryCreate",
	"PointCategoryRead",
	"PointsAwardCreate",
	"PointsAwardReceipt",
	"PointsSummary",
	"RechargeCardBatchCreate",
	"RechargeCardRead",
	"RechargeReceipt",
	"RechargeRedeem",
	"ReconcileSummary",
	"RedemptionRead",
	"RedemptionReceipt",
	"RedemptionStatusUpdate",
	"RewardCreate",
	"RewardRead",
	"RewardRedeem",
	"RewardUpdate",
	"TransactionRead",
	"TransferCreate",
	"TransferReceipt",
	"UnreadCount",
	"UserBadgeRead",
	"UserCreate",
	"UserDeductionCardRead",
	"UserRead",
	"UserSummary",
]
