from datetime import timedelta

import pytest

from portal.core.errors import RuleViolation
from portal.models import Notification, UserDeductionCard
from portal.services import deduction_service, ledger_service
from portal.services.deduction_service import DeductionRuleViolation
from portal.utils.datetime import utcnow


def deduct(session, user, points, now):
    """Record a negative entry the way the points service does."""

    activation = deduction_service.process_negative_points(session, user.id, points, now=now)
    ledger_service.post_transaction(session, user_id=user.id, points=points, is_positive=False, created_at=now)
    return activation


def active_cards(session, user):
    return (
        session.query(UserDeductionCard)
        .filter(UserDeductionCard.user_id == user.id, UserDeductionCard.is_active.is_(True))
        .all()
    )


def test_below_threshold_activates_nothing(session, student, tiers):
    assert deduct(session, student, 10, utcnow()) is None
    assert deduction_service.get_active_card(session, student.id) is None


def test_crossing_threshold_activates_tier(session, student, tiers):
    yellow, _ = tiers
    now = utcnow()
    deduct(session, student, 15, now)

    activation = deduct(session, student, 10, now)

    assert activation is not None
    assert activation.deduction_card_id == yellow.id
    assert activation.negative_points_count == 25
    assert activation.expires_at == now + timedelta(days=7)
    notification = session.query(Notification).filter_by(user_id=student.id, type="deduction_card").one()
    assert "الكرت الأصفر" in notification.content


def test_new_points_counted_once(session, student, tiers):
    now = utcnow()
    deduct(session, student, 10, now)

    # 10 already posted + 10 new = 20, exactly the yellow threshold.
    activation = deduct(session, student, 10, now)

    assert activation is not None
    assert activation.negative_points_count == 20


def test_escalates_to_next_tier_and_keeps_one_active(session, student, tiers):
    yellow, red = tiers
    now = utcnow()
    deduct(session, student, 25, now)

    activation = deduct(session, student, 30, now + timedelta(hours=1))

    assert activation.deduction_card_id == red.id
    cards = active_cards(session, student)
    assert len(cards) == 1
    assert cards[0].deduction_card_id == red.id


def test_unexpired_card_does_not_reactivate_same_tier(session, student, tiers):
    now = utcnow()
    deduct(session, student, 25, now)

    assert deduct(session, student, 5, now + timedelta(hours=1)) is None
    assert len(session.query(UserDeductionCard).filter_by(user_id=student.id).all()) == 1


def test_escalation_moves_one_tier_at_a_time(session, admin, student, tiers):
    yellow, red = tiers
    deduction_service.create_tier(
        session,
        actor_id=admin.id,
        name="الكرت الأسود",
        negative_points_threshold=100,
        deduction_percentage=100,
        active_duration_days=30,
    )
    now = utcnow()
    deduct(session, student, 25, now)

    activation = deduct(session, student, 90, now + timedelta(hours=1))

    assert activation.deduction_card_id == red.id


def test_expired_card_is_replaced_by_highest_crossed_tier(session, student, tiers):
    _, red = tiers
    start = utcnow() - timedelta(days=10)
    deduct(session, student, 25, start)

    activation = deduct(session, student, 30, start + timedelta(days=8))

    assert activation.deduction_card_id == red.id
    assert len(active_cards(session, student)) == 1


def test_window_excludes_old_negative_points(session, student, tiers):
    now = utcnow()
    ledger_service.post_transaction(
        session, user_id=student.id, points=40, is_positive=False, created_at=now - timedelta(days=31)
    )

    assert deduct(session, student, 5, now) is None


def test_no_tiers_means_no_activation(session, student):
    assert deduct(session, student, 500, utcnow()) is None


def test_apply_deduction_rounds_half_up(session, student, tiers):
    now = utcnow()
    deduct(session, student, 25, now)

    assert deduction_service.apply_deduction(session, student.id, 10, now=now) == 8
    assert deduction_service.apply_deduction(session, student.id, 4, now=now) == 3


def test_apply_deduction_without_card_passes_value(session, student, tiers):
    assert deduction_service.apply_deduction(session, student.id, 10, now=utcnow()) == 10


def test_apply_deduction_deactivates_expired_card(session, student, tiers):
    now = utcnow()
    deduct(session, student, 25, now)

    later = now + timedelta(days=7, seconds=1)
    assert deduction_service.apply_deduction(session, student.id, 10, now=later) == 10
    assert deduction_service.get_active_card(session, student.id) is None


def test_expire_cards_closes_only_expired(session, student, other_student, tiers):
    now = utcnow()
    deduct(session, student, 25, now - timedelta(days=8))
    deduct(session, other_student, 25, now)

    assert deduction_service.expire_cards(session, now=now) == 1
    assert deduction_service.get_active_card(session, student.id) is None
    assert deduction_service.get_active_card(session, other_student.id) is not None


def test_create_tier_requires_admin(session, teacher):
    with pytest.raises(RuleViolation) as excinfo:
        deduction_service.create_tier(
            session,
            actor_id=teacher.id,
            name="x",
            negative_points_threshold=10,
            deduction_percentage=10,
            active_duration_days=1,
        )
    assert excinfo.value.status_code == 403


def test_create_tier_rejects_zero_duration(session, admin):
    with pytest.raises(DeductionRuleViolation):
        deduction_service.create_tier(
            session,
            actor_id=admin.id,
            name="x",
            negative_points_threshold=10,
            deduction_percentage=10,
        )


def test_update_tier_validates_percentage(session, admin, tiers):
    yellow, _ = tiers
    with pytest.raises(DeductionRuleViolation):
        deduction_service.update_tier(session, actor_id=admin.id, tier_id=yellow.id, deduction_percentage=150)
