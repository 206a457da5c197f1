"""Role identifiers and shared status values."""

import enum


class Role(int, enum.Enum):
    """Portal roles as stored in ``users.role_id``."""

    STUDENT = 1
    PARENT = 2
    TEACHER = 3
    ADMIN = 4


STAFF_ROLES = (Role.TEACHER, Role.ADMIN)

RECHARGE_CARD_DESCRIPTION = "استخدام بطاقة شحن"
CARD_CODE_LENGTH = 12
REDEMPTION_CODE_LENGTH = 12
WEEKLY_LIMIT_WINDOW_DAYS = 7
