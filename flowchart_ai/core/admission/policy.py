"""
Quota policies and window arithmetic.

Policies are selected per identity class at evaluation time. Calendar-month
windows are computed in UTC.

Dependencies: flowchart_ai.configs
System role: Quota policy table for the admission controller
"""

from datetime import datetime, timezone

from flowchart_ai.configs.quota import QuotaSettings
from flowchart_ai.models.usage import IdentityClass, QuotaPolicy, WindowKind

EVER_WINDOW_KEY = "ever"


def policy_table(settings: QuotaSettings) -> dict[IdentityClass, QuotaPolicy]:
    return {
        IdentityClass.ANONYMOUS: QuotaPolicy(window_kind=WindowKind.EVER, limit=settings.anonymous_limit),
        IdentityClass.AUTHENTICATED_FREE: QuotaPolicy(
            window_kind=WindowKind.CALENDAR_MONTH, limit=settings.free_limit
        ),
        IdentityClass.AUTHENTICATED_SUBSCRIBER: QuotaPolicy(
            window_kind=WindowKind.CALENDAR_MONTH, limit=settings.subscriber_limit
        ),
    }


def as_utc(moment: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def month_start(moment: datetime) -> datetime:
    """First instant of the calendar month containing moment."""
    moment = as_utc(moment)
    return moment.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def next_month_start(moment: datetime) -> datetime:
    start = month_start(moment)
    if start.month == 12:
        return start.replace(year=start.year + 1, month=1)
    return start.replace(month=start.month + 1)


def day_start(moment: datetime) -> datetime:
    return as_utc(moment).replace(hour=0, minute=0, second=0, microsecond=0)


def window_start(policy: QuotaPolicy, now: datetime) -> datetime | None:
    """Lower bound of the counting window, None for "ever"."""
    if policy.window_kind == WindowKind.CALENDAR_MONTH:
        return month_start(now)
    return None


def window_resets_at(policy: QuotaPolicy, now: datetime) -> datetime | None:
    if policy.window_kind == WindowKind.CALENDAR_MONTH:
        return next_month_start(now)
    return None


def window_key(policy: QuotaPolicy, now: datetime) -> str:
    """Ledger bucket the slot constraint is scoped to ("ever" or "YYYY-MM")."""
    if policy.window_kind == WindowKind.CALENDAR_MONTH:
        return month_start(now).strftime("%Y-%m")
    return EVER_WINDOW_KEY
