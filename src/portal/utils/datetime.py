"""Date-time helpers for ledger windows and card lifetimes.

Timestamps are stored as naive UTC, matching the ``datetime.utcnow`` column
defaults on the models.
"""

from datetime import datetime, timedelta, timezone


def utcnow() -> datetime:
    """Return the current time as naive UTC."""

    return datetime.now(timezone.utc).replace(tzinfo=None)


def as_naive_utc(value: datetime | None) -> datetime:
    """Normalise an optional timestamp to naive UTC, defaulting to now."""

    if value is None:
        return utcnow()
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def window_start(now: datetime, days: int) -> datetime:
    """Return the start of a trailing window of ``days`` ending at ``now``."""

    return now - timedelta(days=days)


def card_expiry(activated_at: datetime, days: int, hours: int) -> datetime:
    """Expiry of a deduction card activated at ``activated_at``."""

    return activated_at + timedelta(days=days or 0, hours=hours or 0)
