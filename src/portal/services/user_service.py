"""User lookups and role checks shared by the other services."""

from __future__ import annotations

from typing import Iterable, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..core.constants import Role
from ..core.errors import RuleViolation
from ..models import User


class UserRuleViolation(RuleViolation):
    """Raised when a user is missing or lacks the required role."""


def get_user(session: Session, user_id: UUID) -> User:
    user = session.get(User, user_id)
    if user is None:
        raise UserRuleViolation("لم يتم العثور على المستخدم", status_code=404)
    return user


def get_user_by_code(session: Session, user_code: str) -> User:
    stmt = select(User).where(User.user_code == user_code.strip())
    user = session.execute(stmt).scalar_one_or_none()
    if user is None:
        raise UserRuleViolation("لم يتم العثور على المستخدم", status_code=404)
    return user


def require_role(session: Session, user_id: UUID, roles: Iterable[Role], detail: str) -> User:
    """Return the user if their role is one of ``roles``; raise 403 otherwise."""

    user = get_user(session, user_id)
    if user.role_id not in {int(role) for role in roles}:
        raise UserRuleViolation(detail, status_code=403)
    return user


def create_user(
    session: Session,
    *,
    user_code: str,
    full_name: str,
    email: str,
    role_id: int = Role.STUDENT,
    user_id: Optional[UUID] = None,
) -> User:
    """Insert a user, rejecting duplicate codes or emails."""

    duplicate_stmt = select(User.id).where((User.user_code == user_code) | (User.email == email))
    if session.execute(duplicate_stmt).first() is not None:
        raise UserRuleViolation("رمز المستخدم أو البريد الإلكتروني مستخدم مسبقاً", status_code=409)

    user = User(user_code=user_code, full_name=full_name, email=email, role_id=int(role_id))
    if user_id is not None:
        user.id = user_id
    session.add(user)
    session.flush()
    return user
