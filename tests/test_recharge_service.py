from datetime import timedelta

import pytest
from sqlalchemy import update

from portal.core.constants import RECHARGE_CARD_DESCRIPTION, Role
from portal.core.errors import RuleViolation
from portal.models import CardStatus, Notification, RechargeCard
from portal.services import ledger_service, recharge_service
from portal.utils.datetime import utcnow


def make_card(session, admin, **kwargs):
    kwargs.setdefault("points", 50)
    (card,) = recharge_service.generate_cards(session, actor_id=admin.id, count=1, **kwargs)
    return card


def test_generate_cards_creates_unique_unused_codes(session, admin):
    cards = recharge_service.generate_cards(session, actor_id=admin.id, count=5, points=20)

    codes = {card.code for card in cards}
    assert len(codes) == 5
    assert all(len(code) == 12 and code.isalnum() and code == code.upper() for code in codes)
    assert not any(card.is_used for card in cards)


def test_generate_cards_requires_admin(session, teacher):
    with pytest.raises(RuleViolation) as excinfo:
        recharge_service.generate_cards(session, actor_id=teacher.id, count=1, points=10)
    assert excinfo.value.status_code == 403


def test_generate_cards_rejects_oversized_batch(session, admin):
    with pytest.raises(RuleViolation):
        recharge_service.generate_cards(session, actor_id=admin.id, count=1001, points=10)


def test_generate_cards_rejects_inverted_validity(session, admin):
    now = utcnow()
    with pytest.raises(RuleViolation):
        recharge_service.generate_cards(
            session, actor_id=admin.id, count=1, points=10, valid_from=now, valid_until=now - timedelta(days=1)
        )


def test_redeem_credits_points_once(session, admin, student):
    card = make_card(session, admin)
    messy_code = f" {card.code[:4].lower()}-{card.code[4:]} "

    redeemed, balance = recharge_service.redeem_card(session, user_id=student.id, code=messy_code)

    assert redeemed.is_used is True
    assert redeemed.used_by == student.id
    assert balance == 50
    entry = ledger_service.list_transactions(session, user_id=student.id)[0]
    assert entry.description == RECHARGE_CARD_DESCRIPTION
    assert session.query(Notification).filter_by(user_id=student.id, type="recharge").count() == 1

    with pytest.raises(RuleViolation) as excinfo:
        recharge_service.redeem_card(session, user_id=student.id, code=card.code)
    assert excinfo.value.status_code == 409
    assert ledger_service.get_balance(session, student.id) == 50


def test_redeem_unknown_code(session, student):
    with pytest.raises(RuleViolation) as excinfo:
        recharge_service.redeem_card(session, user_id=student.id, code="ZZZZZZZZZZZZ")
    assert excinfo.value.status_code == 404


def test_redeem_inactive_card(session, admin, student):
    card = make_card(session, admin, status=CardStatus.INACTIVE)

    with pytest.raises(RuleViolation) as excinfo:
        recharge_service.redeem_card(session, user_id=student.id, code=card.code)
    assert excinfo.value.status_code == 400


def test_redeem_outside_validity_window(session, admin, student):
    now = utcnow()
    future = make_card(session, admin, valid_from=now + timedelta(days=1))
    past = make_card(session, admin, valid_from=now - timedelta(days=10), valid_until=now - timedelta(days=1))

    for card in (future, past):
        with pytest.raises(RuleViolation) as excinfo:
            recharge_service.redeem_card(session, user_id=student.id, code=card.code, now=now)
        assert excinfo.value.status_code == 400
    assert ledger_service.get_balance(session, student.id) == 0


def test_redeem_card_assigned_to_someone_else(session, admin, student, other_student):
    card = make_card(session, admin, assigned_to=other_student.id)

    with pytest.raises(RuleViolation) as excinfo:
        recharge_service.redeem_card(session, user_id=student.id, code=card.code)
    assert excinfo.value.status_code == 403

    _, balance = recharge_service.redeem_card(session, user_id=other_student.id, code=card.code)
    assert balance == 50


def test_weekly_limit_per_role(session, admin, student):
    recharge_service.set_limit(session, actor_id=admin.id, role_id=Role.STUDENT, weekly_limit=1)
    first = make_card(session, admin)
    second = make_card(session, admin)
    now = utcnow()

    recharge_service.redeem_card(session, user_id=student.id, code=first.code, now=now)
    with pytest.raises(RuleViolation) as excinfo:
        recharge_service.redeem_card(session, user_id=student.id, code=second.code, now=now)
    assert excinfo.value.status_code == 429

    _, balance = recharge_service.redeem_card(
        session, user_id=student.id, code=second.code, now=now + timedelta(days=8)
    )
    assert balance == 100


def test_concurrent_claim_loses_conditional_update(session, admin, student):
    card = make_card(session, admin)
    # Another transaction claims the card after this session loaded it.
    session.execute(
        update(RechargeCard)
        .where(RechargeCard.id == card.id)
        .values(is_used=True)
        .execution_options(synchronize_session=False)
    )
    assert card.is_used is False

    with pytest.raises(RuleViolation) as excinfo:
        recharge_service.redeem_card(session, user_id=student.id, code=card.code)
    assert excinfo.value.status_code == 409
    assert ledger_service.get_balance(session, student.id) == 0


def test_set_limit_updates_existing_row(session, admin):
    recharge_service.set_limit(session, actor_id=admin.id, role_id=Role.STUDENT, weekly_limit=3)
    recharge_service.set_limit(session, actor_id=admin.id, role_id=Role.STUDENT, weekly_limit=5)

    limits = recharge_service.list_limits(session)
    assert [(limit.role_id, limit.weekly_limit) for limit in limits] == [(1, 5)]
