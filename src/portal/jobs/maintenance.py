"""Background scheduler for ledger reconciliation and deduction-card expiry."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from fastapi import FastAPI
from sqlalchemy.orm import Session

from ..core.config import get_settings
from ..core.database import SessionLocal
from ..services import deduction_service, ledger_service
from ..utils.datetime import utcnow

logger = logging.getLogger(__name__)

_scheduler = AsyncIOScheduler(timezone="UTC")


def _run_in_session(name: str, work: Callable[[Session], object]):
    session = SessionLocal()
    try:
        result = work(session)
        session.commit()
        logger.info("%s completed: %s", name, result)
        return result
    except Exception:  # pragma: no cover - safeguard for background job
        session.rollback()
        logger.exception("%s job failed", name)
        raise
    finally:
        session.close()


async def _reconcile_balances() -> None:
    _run_in_session("balance reconciliation", ledger_service.reconcile_all_balances)


async def _expire_deduction_cards() -> None:
    _run_in_session(
        "deduction card expiry",
        lambda session: {"expired": deduction_service.expire_cards(session, now=utcnow())},
    )


def register_scheduler(app: FastAPI) -> None:
    """Attach APScheduler lifecycle hooks to the FastAPI app."""

    settings = get_settings()
    if not settings.scheduler_enabled:
        logger.info("maintenance scheduler disabled")
        return

    if _scheduler.get_job("reconcile_balances") is None:
        _scheduler.add_job(
            _reconcile_balances,
            "cron",
            hour=settings.reconcile_hour,
            minute=15,
            id="reconcile_balances",
            misfire_grace_time=3600,
        )
        _scheduler.add_job(
            _expire_deduction_cards,
            "cron",
            minute=0,
            id="expire_deduction_cards",
            misfire_grace_time=600,
        )

    @app.on_event("startup")
    async def start_scheduler() -> None:
        if not _scheduler.running:
            _scheduler.start()
            logger.info("maintenance scheduler started")

    @app.on_event("shutdown")
    async def shutdown_scheduler() -> None:
        if _scheduler.running:
            _scheduler.shutdown(wait=False)
            logger.info("maintenance scheduler stopped")


def run_reconcile_once() -> dict[str, int]:
    """Run the reconciliation synchronously, e.g. from a shell during an incident."""

    return _run_in_session("balance reconciliation", ledger_service.reconcile_all_balances)


def run_expiry_once(now: datetime | None = None) -> int:
    """Run the deduction-card expiry synchronously."""

    return _run_in_session(
        "deduction card expiry",
        lambda session: deduction_service.expire_cards(session, now=now),
    )
