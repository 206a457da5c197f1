"""Service layer exports."""

from . import (
	badge_service,
	deduction_service,
	leaderboard_service,
	ledger_service,
	negative_points_service,
	notification_service,
	points_service,
	recharge_service,
	reward_service,
	user_service,
)

__all__ = [
	"badge_service",
	"deduction_service",
	"leaderboard_service",
	"ledger_service",
	"negative_points_service",
	"notification_service",
	"points_service",
	"recharge_service",
	"reward_service",
	"user_service",
]
