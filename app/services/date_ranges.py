# app/services/date_ranges.py
#
# Date Range Utilities
# Maps a named period (daily/weekly/monthly/yearly/custom) plus a reference
# instant to a closed [start, end] interval in local (naive) time.
#
# Two variants exist on purpose:
#   - full_period_range:    runs to the natural end of the calendar period (reports)
#   - current_period_range: runs to the end of the reference day ("so far", quick summaries)

import calendar
from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import NamedTuple, Optional

from app.errors import ValidationError


class Period(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"
    CUSTOM = "custom"


class DateRange(NamedTuple):
    start: datetime
    end: datetime

    def contains(self, instant: datetime) -> bool:
        return self.start <= instant <= self.end


def naive_local(value: Optional[datetime]) -> Optional[datetime]:
    """Aware instants are converted to local wall time; naive ones pass through."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


# ---- Day helpers ----

def start_of_day(d: date) -> datetime:
    return datetime.combine(d, time.min)


def end_of_day(d: date) -> datetime:
    return datetime.combine(d, time.max)


def _as_day(reference: datetime | date) -> date:
    if isinstance(reference, datetime):
        return reference.date()
    return reference


def _week_start(day: date) -> date:
    # Week origin is Sunday. date.weekday(): Monday=0 ... Sunday=6
    return day - timedelta(days=(day.weekday() + 1) % 7)


def _shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def _month_bounds(year: int, month: int) -> tuple[date, date]:
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def _coerce_period(period: Period | str) -> Period:
    try:
        return Period(period)
    except ValueError:
        raise ValidationError(f"Unknown period: {period!r}", field="period", value=period)


# ---- Ranges ----

def full_period_range(period: Period | str, reference: datetime | date) -> DateRange:
    """
    Closed range covering the whole calendar period that contains `reference`.
    """
    period = _coerce_period(period)
    day = _as_day(reference)

    if period == Period.DAILY:
        first, last = day, day
    elif period == Period.WEEKLY:
        first = _week_start(day)
        last = first + timedelta(days=6)
    elif period == Period.MONTHLY:
        first, last = _month_bounds(day.year, day.month)
    elif period == Period.YEARLY:
        first, last = date(day.year, 1, 1), date(day.year, 12, 31)
    else:
        raise ValidationError("Custom periods need an explicit range", field="period", value=period.value)

    return DateRange(start_of_day(first), end_of_day(last))


def current_period_range(period: Period | str, reference: datetime | date) -> DateRange:
    """
    Same start as the full range, but ends with the reference day ("now").
    """
    full = full_period_range(period, reference)
    return DateRange(full.start, end_of_day(_as_day(reference)))


def resolve_range(
    period: Period | str,
    reference: datetime | date,
    custom: Optional[DateRange] = None,
    full: bool = True,
) -> DateRange:
    """
    Resolve a period to its date range.

    custom: required (and returned unchanged) for Period.CUSTOM; ignored otherwise.
    full:   pick the full calendar period (True) or the "so far" variant (False).
    """
    period = _coerce_period(period)

    if period == Period.CUSTOM:
        if custom is None:
            raise ValidationError("Custom period requires start and end", field="custom")
        start, end = custom
        if start > end:
            raise ValidationError("Custom range start is after its end", field="custom", value=(start, end))
        return DateRange(start, end)

    if full:
        return full_period_range(period, reference)
    return current_period_range(period, reference)


def resolve_previous_range(period: Period | str, reference: datetime | date) -> Optional[DateRange]:
    """
    The full range one unit before the one containing `reference`
    (one day, one week, one calendar month or one calendar year).
    Custom ranges have no previous equivalent.
    """
    period = _coerce_period(period)
    day = _as_day(reference)

    if period == Period.DAILY:
        return full_period_range(period, day - timedelta(days=1))
    if period == Period.WEEKLY:
        return full_period_range(period, day - timedelta(days=7))
    if period == Period.MONTHLY:
        year, month = _shift_month(day.year, day.month, -1)
        return full_period_range(period, date(year, month, 1))
    if period == Period.YEARLY:
        return full_period_range(period, date(day.year - 1, 1, 1))
    return None


def last_month_range(reference: datetime | date) -> DateRange:
    """Previous calendar month, used as the comparison window of quick summaries."""
    return resolve_previous_range(Period.MONTHLY, reference)


# ---- Labels ----

def period_label(period: Period | str, start: datetime | date) -> str:
    """
    Short display label for the period starting at `start`.
    """
    period = _coerce_period(period)
    day = _as_day(start)

    if period == Period.DAILY:
        return day.isoformat()
    if period == Period.WEEKLY:
        week_end = day + timedelta(days=6)
        return f"{day.day} - {week_end.day} {day.strftime('%b')}"
    if period == Period.MONTHLY:
        return day.strftime("%B %Y")
    if period == Period.YEARLY:
        return f"{day.year:04d}"
    return "Custom period"
