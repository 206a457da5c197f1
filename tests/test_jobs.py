from datetime import timedelta

from fastapi import FastAPI

from portal.core.constants import Role
from portal.jobs import maintenance
from portal.models import StudentPoints
from portal.services import deduction_service, ledger_service, user_service
from portal.utils.datetime import utcnow


def test_scheduler_not_registered_when_disabled():
    maintenance.register_scheduler(FastAPI())

    assert maintenance._scheduler.get_jobs() == []


def test_run_reconcile_once_commits_corrections(monkeypatch, session_factory):
    with session_factory() as db:
        user = user_service.create_user(db, user_code="S001", full_name="ليان", email="s1@school.test")
        ledger_service.post_transaction(db, user_id=user.id, points=20, is_positive=True)
        db.get(StudentPoints, user.id).points = 3
        db.commit()
        user_id = user.id
    monkeypatch.setattr(maintenance, "SessionLocal", session_factory)

    assert maintenance.run_reconcile_once() == {"users_checked": 1, "balances_corrected": 1}

    with session_factory() as db:
        assert db.get(StudentPoints, user_id).points == 20


def test_run_expiry_once(monkeypatch, session_factory):
    now = utcnow()
    with session_factory() as db:
        admin = user_service.create_user(
            db, user_code="A001", full_name="مدير", email="a@school.test", role_id=Role.ADMIN
        )
        student = user_service.create_user(db, user_code="S001", full_name="ليان", email="s1@school.test")
        deduction_service.create_tier(
            db,
            actor_id=admin.id,
            name="الكرت الأصفر",
            negative_points_threshold=10,
            deduction_percentage=20,
            active_duration_hours=6,
        )
        deduction_service.process_negative_points(db, student.id, 10, now=now - timedelta(days=1))
        db.commit()
    monkeypatch.setattr(maintenance, "SessionLocal", session_factory)

    assert maintenance.run_expiry_once(now) == 1
