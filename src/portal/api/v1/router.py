"""Primary API router definition."""

from fastapi import APIRouter

from . import (
    badges,
    deduction_cards,
    leaderboard,
    maintenance,
    negative_points,
    notifications,
    points,
    recharge_cards,
    rewards,
    users,
)

api_router = APIRouter()

api_router.include_router(users.router)
api_router.include_router(points.router)
api_router.include_router(recharge_cards.router)
api_router.include_router(deduction_cards.router)
api_router.include_router(negative_points.router)
api_router.include_router(rewards.router)
api_router.include_router(badges.router)
api_router.include_router(notifications.router)
api_router.include_router(leaderboard.router)
api_router.include_router(maintenance.router)


@api_router.get("/health", tags=["health"])
async def healthcheck() -> dict[str, str]:
    """Basic liveness check endpoint."""
    return {"status": "ok"}
