"""
Digest periods: named reporting windows over which analyses are aggregated
"""

from datetime import datetime, timedelta
from typing import Optional

PERIOD_LABELS = {
    'today': 'Today',
    'week': 'This Week',
    'month': 'This Month'
}


def local_now() -> datetime:
    """Current time in the local timezone, timezone-aware"""
    return datetime.now().astimezone()


def validate_period(period: str) -> str:
    if period not in PERIOD_LABELS:
        raise ValueError(f"Unknown period: {period} (expected one of {', '.join(PERIOD_LABELS)})")
    return period


def period_label(period: str) -> str:
    return PERIOD_LABELS[validate_period(period)]


def period_start(period: str, now: Optional[datetime] = None) -> datetime:
    """
    Start of the reporting window in the timezone of now

    today starts at midnight, week on Monday at midnight, month on the 1st.
    """
    validate_period(period)
    now = now or local_now()
    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)

    if period == 'today':
        return midnight
    if period == 'week':
        return midnight - timedelta(days=midnight.weekday())
    return midnight.replace(day=1)
