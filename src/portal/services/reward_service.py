"""Domain logic for the reward catalogue and reward redemptions."""

from __future__ import annotations

from typing import Optional, Sequence
from uuid import UUID

from sqlalchemy import or_, select, update
from sqlalchemy.orm import Session, joinedload

from ..core.constants import REDEMPTION_CODE_LENGTH, Role
from ..core.errors import RuleViolation
from ..models import RedemptionStatus, Reward, UserReward
from ..utils.codes import REDEMPTION_ALPHABET, random_code
from ..utils.datetime import utcnow
from . import ledger_service, notification_service, user_service


class RewardRuleViolation(RuleViolation):
    """Raised when reward rules are violated."""


_STATUS_MESSAGES = {
    RedemptionStatus.APPROVED: (
        "تمت الموافقة على طلب المكافأة",
        'تمت الموافقة على طلب استبدال المكافأة "{name}". سيتم تسليم المكافأة قريباً.',
    ),
    RedemptionStatus.REJECTED: (
        "تم رفض طلب المكافأة",
        'تم رفض طلب استبدال المكافأة "{name}" وتمت إعادة {value} نقطة إلى رصيدك.',
    ),
    RedemptionStatus.DELIVERED: (
        "تم تسليم المكافأة",
        'تم تسليم المكافأة "{name}" بنجاح.',
    ),
}

# Allowed moves between redemption states.
_TRANSITIONS = {
    RedemptionStatus.PENDING: {RedemptionStatus.APPROVED, RedemptionStatus.REJECTED, RedemptionStatus.DELIVERED},
    RedemptionStatus.APPROVED: {RedemptionStatus.REJECTED, RedemptionStatus.DELIVERED},
    RedemptionStatus.REJECTED: set(),
    RedemptionStatus.DELIVERED: set(),
}


def _require_admin(session: Session, actor_id: UUID):
    return user_service.require_role(session, actor_id, [Role.ADMIN], "ليس لديك صلاحية لإدارة المكافآت")


def _ensure_reward(session: Session, reward_id: int) -> Reward:
    reward = session.get(Reward, reward_id)
    if reward is None:
        raise RewardRuleViolation("لم يتم العثور على المكافأة", status_code=404)
    return reward


def create_reward(
    session: Session,
    *,
    actor_id: UUID,
    name: str,
    points_cost: int,
    available_quantity: int,
    description: Optional[str] = None,
    role_id: Optional[int] = None,
    auto_approve: bool = False,
    image_url: Optional[str] = None,
) -> Reward:
    actor = _require_admin(session, actor_id)
    if not name or points_cost <= 0 or available_quantity < 0:
        raise RewardRuleViolation("جميع الحقول المطلوبة غير صالحة")

    reward = Reward(
        name=name,
        description=description,
        points_cost=points_cost,
        available_quantity=available_quantity,
        role_id=role_id,
        auto_approve=auto_approve,
        image_url=image_url,
        created_by=actor.id,
    )
    session.add(reward)
    notification_service.log_activity(session, actor.id, "create_reward", f"إنشاء مكافأة جديدة: {name}")
    session.flush()
    return reward


def update_reward(session: Session, *, actor_id: UUID, reward_id: int, **changes) -> Reward:
    """Apply partial changes to a reward. ``None`` values are ignored."""

    actor = _require_admin(session, actor_id)
    reward = _ensure_reward(session, reward_id)

    for field, value in changes.items():
        if value is not None:
            setattr(reward, field, value)
    if reward.points_cost <= 0 or reward.available_quantity < 0:
        raise RewardRuleViolation("جميع الحقول المطلوبة غير صالحة")
    reward.updated_at = utcnow()

    notification_service.log_activity(session, actor.id, "update_reward", f"تعديل مكافأة: {reward.name}")
    session.flush()
    return reward


def delete_reward(session: Session, *, actor_id: UUID, reward_id: int) -> None:
    """Delete a reward that has never been redeemed."""

    actor = _require_admin(session, actor_id)
    reward = _ensure_reward(session, reward_id)

    used_stmt = select(UserReward.id).where(UserReward.reward_id == reward.id).limit(1)
    if session.execute(used_stmt).first() is not None:
        raise RewardRuleViolation(
            "لا يمكن حذف هذه المكافأة لأنها مستخدمة في عمليات استبدال",
            status_code=409,
        )

    notification_service.log_activity(session, actor.id, "delete_reward", f"حذف مكافأة: {reward.name}")
    session.delete(reward)
    session.flush()


def list_rewards_for_user(session: Session, user_id: UUID) -> Sequence[Reward]:
    """Active, in-stock rewards open to the user's role, cheapest first."""

    user = user_service.get_user(session, user_id)
    stmt = (
        select(Reward)
        .where(
            Reward.is_active.is_(True),
            Reward.available_quantity > 0,
            or_(Reward.role_id.is_(None), Reward.role_id == 0, Reward.role_id == user.role_id),
        )
        .order_by(Reward.points_cost.asc(), Reward.id.asc())
    )
    return session.execute(stmt).scalars().all()


def _unique_redemption_code(session: Session) -> str:
    while True:
        code = random_code(REDEMPTION_CODE_LENGTH, REDEMPTION_ALPHABET)
        taken = session.execute(select(UserReward.id).where(UserReward.redemption_code == code)).first()
        if taken is None:
            return code


def redeem_reward(session: Session, *, user_id: UUID, reward_id: int) -> tuple[UserReward, int]:
    """Buy a reward with points. Returns the redemption record and remaining balance."""

    user = user_service.get_user(session, user_id)
    reward = _ensure_reward(session, reward_id)

    if not reward.is_active:
        raise RewardRuleViolation("هذه المكافأة غير متاحة حالياً")
    if reward.role_id not in (None, 0, user.role_id):
        raise RewardRuleViolation("هذه المكافأة غير متاحة لدورك", status_code=403)

    available = ledger_service.lock_balance(session, user.id)
    if available < reward.points_cost:
        raise RewardRuleViolation("ليس لديك نقاط كافية لاستبدال هذه المكافأة")

    stock = session.execute(
        update(Reward)
        .where(Reward.id == reward.id, Reward.available_quantity > 0)
        .values(available_quantity=Reward.available_quantity - 1)
        .execution_options(synchronize_session=False)
    )
    if stock.rowcount != 1:
        raise RewardRuleViolation("نفدت الكمية المتاحة من هذه المكافأة", status_code=409)
    session.refresh(reward)

    cost = reward.points_cost
    ledger_service.post_transaction(
        session,
        user_id=user.id,
        points=cost,
        is_positive=False,
        description=f"استبدال مكافأة: {reward.name}",
        created_by=user.id,
    )

    redemption = UserReward(
        user_id=user.id,
        reward=reward,
        status=RedemptionStatus.APPROVED if reward.auto_approve else RedemptionStatus.PENDING,
        redemption_code=_unique_redemption_code(session),
        redeemed_value=cost,
    )
    session.add(redemption)
    session.flush()

    notification_service.notify(
        session,
        user.id,
        "استبدال مكافأة",
        f"لقد قمت باستبدال مكافأة: {reward.name} مقابل {cost} نقطة. "
        f"رمز الاستبدال الخاص بك: {redemption.redemption_code}",
        type="reward",
    )
    notification_service.log_activity(
        session,
        user.id,
        "redeem_reward",
        f"استبدال مكافأة {reward.name} مقابل {cost} نقطة",
    )
    session.flush()
    session.refresh(redemption)
    return redemption, ledger_service.get_balance(session, user.id)


def update_redemption_status(
    session: Session,
    *,
    actor_id: UUID,
    redemption_id: int,
    status: RedemptionStatus,
    admin_notes: Optional[str] = None,
) -> UserReward:
    """Approve, reject or deliver a redemption. Rejection refunds the points and stock."""

    actor = _require_admin(session, actor_id)
    redemption = session.execute(
        select(UserReward).options(joinedload(UserReward.reward)).where(UserReward.id == redemption_id)
    ).scalar_one_or_none()
    if redemption is None:
        raise RewardRuleViolation("لم يتم العثور على طلب الاستبدال", status_code=404)

    status = RedemptionStatus(status)
    if status not in _TRANSITIONS[redemption.status]:
        raise RewardRuleViolation(
            f"لا يمكن تغيير حالة الطلب من {redemption.status.value} إلى {status.value}",
            status_code=409,
        )

    redemption.status = status
    redemption.admin_notes = admin_notes
    if status == RedemptionStatus.DELIVERED:
        redemption.delivered_at = utcnow()
    elif status == RedemptionStatus.REJECTED:
        ledger_service.post_transaction(
            session,
            user_id=redemption.user_id,
            points=redemption.redeemed_value,
            is_positive=True,
            description=f"استرجاع نقاط مكافأة مرفوضة: {redemption.reward.name}",
            created_by=actor.id,
        )
        session.execute(
            update(Reward)
            .where(Reward.id == redemption.reward_id)
            .values(available_quantity=Reward.available_quantity + 1)
            .execution_options(synchronize_session=False)
        )
        session.refresh(redemption.reward)

    title, template = _STATUS_MESSAGES[status]
    content = template.format(name=redemption.reward.name, value=redemption.redeemed_value)
    if status == RedemptionStatus.REJECTED and admin_notes:
        content += f" ملاحظات: {admin_notes}"
    notification_service.notify(session, redemption.user_id, title, content, type="reward")
    notification_service.log_activity(
        session,
        actor.id,
        f"{status.value}_reward_redemption",
        f'تم تغيير حالة طلب استبدال المكافأة "{redemption.reward.name}" إلى: {status.value}',
    )
    session.flush()
    return redemption


def list_redemptions(
    session: Session,
    *,
    user_id: Optional[UUID] = None,
    status: Optional[RedemptionStatus] = None,
    limit: int = 50,
    offset: int = 0,
) -> Sequence[UserReward]:
    stmt = (
        select(UserReward)
        .options(joinedload(UserReward.reward))
        .order_by(UserReward.redeemed_at.desc(), UserReward.id.desc())
        .offset(offset)
        .limit(limit)
    )
    if user_id:
        stmt = stmt.where(UserReward.user_id == user_id)
    if status:
        stmt = stmt.where(UserReward.status == status)
    return session.execute(stmt).scalars().all()
