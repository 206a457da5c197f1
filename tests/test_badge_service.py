import pytest

from portal.core.errors import RuleViolation
from portal.models import Notification
from portal.services import badge_service, ledger_service


def test_awards_each_qualifying_badge_once(session, admin, student):
    badge_service.create_badge(session, actor_id=admin.id, name="بداية موفقة", min_points=10)
    badge_service.create_badge(session, actor_id=admin.id, name="متميز", min_points=50)
    badge_service.create_badge(session, actor_id=admin.id, name="أسطورة", min_points=500)
    ledger_service.post_transaction(session, user_id=student.id, points=60, is_positive=True)

    awarded = badge_service.check_and_award_badges(session, student.id)

    assert [badge.name for badge in awarded] == ["بداية موفقة", "متميز"]
    assert badge_service.check_and_award_badges(session, student.id) == []
    assert session.query(Notification).filter_by(user_id=student.id, type="badge").count() == 2


def test_badges_are_kept_when_balance_drops(session, admin, student):
    badge_service.create_badge(session, actor_id=admin.id, name="متميز", min_points=50)
    ledger_service.post_transaction(session, user_id=student.id, points=60, is_positive=True)
    badge_service.check_and_award_badges(session, student.id)
    ledger_service.post_transaction(session, user_id=student.id, points=40, is_positive=False)

    assert badge_service.check_and_award_badges(session, student.id) == []
    assert len(badge_service.list_user_badges(session, student.id)) == 1


def test_duplicate_badge_name(session, admin):
    badge_service.create_badge(session, actor_id=admin.id, name="متميز", min_points=50)

    with pytest.raises(RuleViolation) as excinfo:
        badge_service.create_badge(session, actor_id=admin.id, name="متميز", min_points=80)
    assert excinfo.value.status_code == 409
