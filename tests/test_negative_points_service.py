import pytest

from portal.core.errors import RuleViolation
from portal.models import NegativePointsStatus, Notification
from portal.services import ledger_service, negative_points_service, points_service


@pytest.fixture
def categories(session, admin):
    mandatory = points_service.create_category(
        session, actor_id=admin.id, name="مخالفة سلوكية", default_points=10, is_positive=False, is_mandatory=True
    )
    optional = points_service.create_category(
        session, actor_id=admin.id, name="نسيان الواجب", default_points=6, is_positive=False
    )
    return mandatory, optional


def record(session, teacher, **kwargs):
    return negative_points_service.record_negative_points(session, actor_id=teacher.id, user_code="S001", **kwargs)


def test_recording_leaves_balance_untouched(session, teacher, student, categories):
    _, optional = categories
    ledger_service.post_transaction(session, user_id=student.id, points=20, is_positive=True)

    entry = record(session, teacher, category_id=optional.id)

    assert entry.status == NegativePointsStatus.PENDING
    assert entry.points == 6
    assert entry.reason == "نسيان الواجب"
    assert entry.is_mandatory is False
    assert ledger_service.get_balance(session, student.id) == 20
    assert session.query(Notification).filter_by(user_id=student.id, type="negative_points").count() == 1


def test_positive_category_rejected(session, admin, teacher, student):
    bonus = points_service.create_category(session, actor_id=admin.id, name="مشاركة", default_points=3)

    with pytest.raises(RuleViolation):
        record(session, teacher, category_id=bonus.id)


def test_student_cannot_record(session, student, other_student):
    with pytest.raises(RuleViolation) as excinfo:
        negative_points_service.record_negative_points(
            session, actor_id=other_student.id, user_code="S001", points=3
        )
    assert excinfo.value.status_code == 403


def test_overview_splits_mandatory_and_optional(session, teacher, student, categories):
    mandatory, optional = categories
    record(session, teacher, category_id=mandatory.id)
    record(session, teacher, category_id=optional.id)
    record(session, teacher, points=4, reason="بدون فئة")

    overview = negative_points_service.negative_points_overview(session, student.id)

    assert overview["mandatory_total"] == 14
    assert overview["optional_total"] == 6
    assert len(overview["entries"]) == 3


def test_full_payment_posts_ledger_entry(session, teacher, student, categories):
    mandatory, _ = categories
    ledger_service.post_transaction(session, user_id=student.id, points=25, is_positive=True)
    entry = record(session, teacher, category_id=mandatory.id)

    paid_entry, paid, balance = negative_points_service.pay_negative_points(
        session, user_id=student.id, entry_id=entry.id
    )

    assert paid == 10
    assert balance == 15
    assert paid_entry.status == NegativePointsStatus.PAID
    assert paid_entry.paid_at is not None
    assert ledger_service.calculate_balance(session, student.id) == 15

    with pytest.raises(RuleViolation) as excinfo:
        negative_points_service.pay_negative_points(session, user_id=student.id, entry_id=entry.id)
    assert excinfo.value.status_code == 409


def test_partial_payment_of_optional_entry(session, teacher, student, categories):
    _, optional = categories
    ledger_service.post_transaction(session, user_id=student.id, points=10, is_positive=True)
    entry = record(session, teacher, category_id=optional.id)

    remaining, paid, balance = negative_points_service.pay_negative_points(
        session, user_id=student.id, entry_id=entry.id, amount=4
    )

    assert paid == 4
    assert balance == 6
    assert remaining.status == NegativePointsStatus.PENDING
    assert remaining.points == 2
    paid_parts = negative_points_service.list_negative_points(
        session, student.id, status=NegativePointsStatus.PAID
    )
    assert [part.points for part in paid_parts] == [4]


def test_partial_payment_of_mandatory_entry_rejected(session, teacher, student, categories):
    mandatory, _ = categories
    ledger_service.post_transaction(session, user_id=student.id, points=30, is_positive=True)
    entry = record(session, teacher, category_id=mandatory.id)

    with pytest.raises(RuleViolation):
        negative_points_service.pay_negative_points(session, user_id=student.id, entry_id=entry.id, amount=5)
    assert ledger_service.get_balance(session, student.id) == 30


def test_payment_needs_balance(session, teacher, student, categories):
    _, optional = categories
    ledger_service.post_transaction(session, user_id=student.id, points=3, is_positive=True)
    entry = record(session, teacher, category_id=optional.id)

    with pytest.raises(RuleViolation) as excinfo:
        negative_points_service.pay_negative_points(session, user_id=student.id, entry_id=entry.id)
    assert excinfo.value.status_code == 400
    assert ledger_service.get_balance(session, student.id) == 3


def test_cannot_pay_someone_elses_entry(session, teacher, student, other_student):
    entry = record(session, teacher, points=2)

    with pytest.raises(RuleViolation) as excinfo:
        negative_points_service.pay_negative_points(session, user_id=other_student.id, entry_id=entry.id)
    assert excinfo.value.status_code == 404


def test_mandatory_entries_deducted_automatically(session, teacher, student, categories):
    mandatory, optional = categories
    ledger_service.post_transaction(session, user_id=student.id, points=5, is_positive=True)
    forced = record(session, teacher, category_id=mandatory.id)
    uncategorised = record(session, teacher, points=3)
    voluntary = record(session, teacher, category_id=optional.id)

    summary = negative_points_service.process_mandatory_negative_points(session, student.id)

    assert summary == {"processed_entries": 2, "total_deducted": 13, "balance": -8}
    assert forced.status == NegativePointsStatus.PAID and forced.auto_processed is True
    assert uncategorised.status == NegativePointsStatus.PAID
    assert voluntary.status == NegativePointsStatus.PENDING
    assert ledger_service.calculate_balance(session, student.id) == -8


def test_cancelled_entry_cannot_be_paid(session, teacher, student):
    entry = record(session, teacher, points=2)

    negative_points_service.cancel_negative_points(session, actor_id=teacher.id, entry_id=entry.id)

    assert entry.status == NegativePointsStatus.CANCELLED
    with pytest.raises(RuleViolation) as excinfo:
        negative_points_service.pay_negative_points(session, user_id=student.id, entry_id=entry.id)
    assert excinfo.value.status_code == 409
