"""Calendar helpers for the monthly heroes leaderboard."""

from __future__ import annotations

import calendar
from datetime import date, datetime, time, timedelta, timezone
from typing import Tuple

REVEAL_WINDOW_DAYS = 5
FRIDAY = calendar.FRIDAY


def last_day_of_month(day: date) -> date:
    return day.replace(day=calendar.monthrange(day.year, day.month)[1])


def month_bounds(day: date) -> Tuple[date, date]:
    """Return (first day of the month, first day of the following month)."""
    return day.replace(day=1), last_day_of_month(day) + timedelta(days=1)


def heroes_leaderboard_available_from(day: date) -> date:
    return last_day_of_month(day) - timedelta(days=REVEAL_WINDOW_DAYS)


def is_allowed_to_reveal_heroes_leaderboard(day: date) -> bool:
    """True strictly after the opening date and up to the last day of the month."""
    first_day_of_next_month = last_day_of_month(day) + timedelta(days=1)
    return heroes_leaderboard_available_from(day) < day < first_day_of_next_month


def last_friday_at_ten(day: date, hour: int = 10) -> datetime:
    """Last Friday of ``day``'s month at ``hour``:00 UTC."""
    last_day = last_day_of_month(day)
    offset = (last_day.weekday() - FRIDAY) % 7
    last_friday = last_day - timedelta(days=offset)
    return datetime.combine(last_friday, time(hour=hour), tzinfo=timezone.utc)


def to_epoch_seconds(moment: datetime) -> int:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return int(moment.timestamp())
