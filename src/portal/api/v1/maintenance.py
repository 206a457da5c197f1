"""Service-role endpoints for ledger repair and card expiry."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...core.errors import RuleViolation
from ...core.security import require_service_role
from ...schemas import BalanceSync, ReconcileSummary
from ...services import deduction_service, ledger_service, user_service

router = APIRouter(prefix="/maintenance", tags=["maintenance"], dependencies=[Depends(require_service_role)])


@router.post("/balances/reconcile", response_model=ReconcileSummary, summary="Recalculate every cached balance")
def reconcile_balances(db: Session = Depends(get_db)) -> ReconcileSummary:
    summary = ledger_service.reconcile_all_balances(db)
    db.commit()
    return ReconcileSummary(**summary)


@router.post("/balances/{user_id}/sync", response_model=BalanceSync, summary="Recalculate one cached balance")
def sync_balance(user_id: UUID, db: Session = Depends(get_db)) -> BalanceSync:
    try:
        user_service.get_user(db, user_id)
        points, changed = ledger_service.sync_user_balance(db, user_id)
        db.commit()
        return BalanceSync(user_id=user_id, points=points, changed=changed)
    except RuleViolation as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc


@router.post("/deduction-cards/expire", summary="Deactivate expired deduction cards")
def expire_deduction_cards(db: Session = Depends(get_db)) -> dict[str, int]:
    expired = deduction_service.expire_cards(db)
    db.commit()
    return {"expired": expired}
