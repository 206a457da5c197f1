import pytest

from portal.core.errors import RuleViolation
from portal.models import ActivityLog, Notification
from portal.services import badge_service, deduction_service, ledger_service, points_service, reward_service
from portal.utils.datetime import utcnow


def test_teacher_awards_points(session, teacher, student):
    transaction, balance = points_service.add_points(
        session, actor_id=teacher.id, user_code="S001", points=15, is_positive=True, description="مشاركة صفية"
    )

    assert transaction.points == 15
    assert transaction.created_by == teacher.id
    assert balance == 15
    assert session.query(Notification).filter_by(user_id=student.id, type="points").count() == 1
    assert session.query(ActivityLog).filter_by(user_id=teacher.id, action_type="add_points").count() == 1


def test_student_cannot_award_points(session, student, other_student):
    with pytest.raises(RuleViolation) as excinfo:
        points_service.add_points(session, actor_id=student.id, user_code="S002", points=5, is_positive=True)
    assert excinfo.value.status_code == 403


def test_unknown_user_code(session, teacher):
    with pytest.raises(RuleViolation) as excinfo:
        points_service.add_points(session, actor_id=teacher.id, user_code="NOPE", points=5, is_positive=True)
    assert excinfo.value.status_code == 404


def test_points_required_without_category(session, teacher, student):
    with pytest.raises(RuleViolation) as excinfo:
        points_service.add_points(session, actor_id=teacher.id, user_code="S001", is_positive=True)
    assert excinfo.value.status_code == 400


def test_category_supplies_defaults(session, admin, teacher, student):
    category = points_service.create_category(
        session, actor_id=admin.id, name="تأخر صباحي", default_points=5, is_positive=False
    )

    transaction, balance = points_service.add_points(
        session, actor_id=teacher.id, user_code="S001", category_id=category.id
    )

    assert transaction.is_positive is False
    assert transaction.points == 5
    assert transaction.category_id == category.id
    assert balance == -5


def test_active_card_reduces_award(session, teacher, student, tiers):
    now = utcnow()
    points_service.add_points(session, actor_id=teacher.id, user_code="S001", points=25, is_positive=False, now=now)
    assert deduction_service.get_active_card(session, student.id) is not None

    transaction, balance = points_service.add_points(
        session, actor_id=teacher.id, user_code="S001", points=10, is_positive=True, description="واجب", now=now
    )

    assert transaction.points == 8
    assert "حسم 2" in transaction.description
    assert balance == -17


def test_full_deduction_posts_nothing(session, admin, teacher, student):
    deduction_service.create_tier(
        session,
        actor_id=admin.id,
        name="كرت الإيقاف",
        negative_points_threshold=5,
        deduction_percentage=100,
        active_duration_hours=12,
    )
    now = utcnow()
    points_service.add_points(session, actor_id=teacher.id, user_code="S001", points=5, is_positive=False, now=now)

    transaction, balance = points_service.add_points(
        session, actor_id=teacher.id, user_code="S001", points=10, is_positive=True, now=now
    )

    assert transaction is None
    assert balance == -5
    assert len(ledger_service.list_transactions(session, user_id=student.id)) == 1


def test_award_grants_badges(session, admin, teacher, student):
    badge_service.create_badge(session, actor_id=admin.id, name="نجم الصف", min_points=50)

    points_service.add_points(session, actor_id=teacher.id, user_code="S001", points=60, is_positive=True)

    badges = badge_service.list_user_badges(session, student.id)
    assert [held.badge.name for held in badges] == ["نجم الصف"]


def test_batch_collects_failures(session, teacher, student, other_student):
    result = points_service.batch_add_points(
        session,
        actor_id=teacher.id,
        user_codes=["S001", "NOPE", "S001", " ", "S002"],
        points=5,
        is_positive=True,
    )

    assert result["processed"] == ["S001", "S002"]
    assert list(result["failed"]) == ["NOPE"]
    assert ledger_service.get_balance(session, student.id) == 5
    assert ledger_service.get_balance(session, other_student.id) == 5


def test_transfer_moves_points(session, student, other_student):
    ledger_service.post_transaction(session, user_id=student.id, points=30, is_positive=True)

    sent, received, balance = points_service.transfer_points(
        session, sender_id=student.id, recipient_code="S002", points=10
    )

    assert sent.is_positive is False and sent.points == 10
    assert received.is_positive is True and received.user_id == other_student.id
    assert balance == 20
    assert ledger_service.get_balance(session, other_student.id) == 10


def test_transfer_requires_balance(session, student, other_student):
    ledger_service.post_transaction(session, user_id=student.id, points=5, is_positive=True)

    with pytest.raises(RuleViolation):
        points_service.transfer_points(session, sender_id=student.id, recipient_code="S002", points=10)
    assert ledger_service.get_balance(session, student.id) == 5


def test_transfer_to_self_rejected(session, student):
    ledger_service.post_transaction(session, user_id=student.id, points=5, is_positive=True)

    with pytest.raises(RuleViolation):
        points_service.transfer_points(session, sender_id=student.id, recipient_code="S001", points=1)


def test_duplicate_category_name(session, admin):
    points_service.create_category(session, actor_id=admin.id, name="مشاركة", default_points=2)

    with pytest.raises(RuleViolation) as excinfo:
        points_service.create_category(session, actor_id=admin.id, name="مشاركة", default_points=3)
    assert excinfo.value.status_code == 409


def test_deduction_failure_does_not_block_negative_entry(monkeypatch, session, teacher, student, tiers):
    def broken_tiers(*args, **kwargs):
        raise ValueError("tier lookup failed")

    monkeypatch.setattr(deduction_service, "list_tiers", broken_tiers)

    transaction, balance = points_service.add_points(
        session, actor_id=teacher.id, user_code="S001", points=5, is_positive=False
    )

    assert transaction is not None and transaction.points == 5
    assert balance == -5
    assert ledger_service.calculate_balance(session, student.id) == -5


def test_badge_failure_does_not_block_award(monkeypatch, session, teacher, student):
    def broken_award(*args, **kwargs):
        raise TypeError("bad badge row")

    monkeypatch.setattr(badge_service, "_award_new_badges", broken_award)

    transaction, balance = points_service.add_points(
        session, actor_id=teacher.id, user_code="S001", points=7, is_positive=True
    )

    assert transaction.points == 7
    assert balance == 7


def test_transfer_locks_balances_in_user_id_order(monkeypatch, session, student, other_student):
    ledger_service.post_transaction(session, user_id=student.id, points=20, is_positive=True)
    ledger_service.post_transaction(session, user_id=other_student.id, points=20, is_positive=True)
    locked = []
    lock_cache = ledger_service._lock_cache

    def recording_lock(db, user_id):
        locked.append(user_id)
        return lock_cache(db, user_id)

    monkeypatch.setattr(ledger_service, "_lock_cache", recording_lock)
    expected = sorted([student.id, other_student.id])

    points_service.transfer_points(session, sender_id=student.id, recipient_code="S002", points=5)
    assert locked[:2] == expected

    locked.clear()
    points_service.transfer_points(session, sender_id=other_student.id, recipient_code="S001", points=5)
    assert locked[:2] == expected
    assert ledger_service.get_balance(session, student.id) == 20


def test_active_card_leaves_transfers_and_reward_costs_whole(session, admin, teacher, student, other_student, tiers):
    points_service.add_points(session, actor_id=teacher.id, user_code="S001", points=25, is_positive=False)
    assert deduction_service.get_active_card(session, student.id) is not None
    ledger_service.post_transaction(session, user_id=other_student.id, points=30, is_positive=True)

    _, received, _ = points_service.transfer_points(
        session, sender_id=other_student.id, recipient_code="S001", points=10
    )
    assert received.points == 10
    assert ledger_service.get_balance(session, student.id) == -15

    ledger_service.post_transaction(session, user_id=student.id, points=100, is_positive=True)
    reward = reward_service.create_reward(
        session, actor_id=admin.id, name="قسيمة مقصف", points_cost=40, available_quantity=1
    )
    redemption, balance = reward_service.redeem_reward(session, user_id=student.id, reward_id=reward.id)

    assert redemption.redeemed_value == 40
    assert balance == 45
