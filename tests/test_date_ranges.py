from datetime import date, datetime, time, timedelta, timezone

import pytest

from app.errors import ValidationError
from app.services.date_ranges import (
    DateRange,
    Period,
    current_period_range,
    full_period_range,
    last_month_range,
    naive_local,
    period_label,
    resolve_previous_range,
    resolve_range,
)


REFERENCE = datetime(2024, 3, 15, 14, 30)


def test_full_monthly_range_covers_whole_month():
    r = full_period_range(Period.MONTHLY, REFERENCE)
    assert r.start == datetime(2024, 3, 1, 0, 0)
    assert r.end.date() == date(2024, 3, 31)
    assert r.end.time() == time.max


def test_current_range_ends_with_reference_day():
    r = current_period_range(Period.MONTHLY, REFERENCE)
    assert r.start == datetime(2024, 3, 1)
    assert r.end == datetime.combine(date(2024, 3, 15), time.max)


def test_every_range_is_ordered():
    for period in (Period.DAILY, Period.WEEKLY, Period.MONTHLY, Period.YEARLY):
        for full in (True, False):
            r = resolve_range(period, REFERENCE, full=full)
            assert r.start <= r.end


def test_week_starts_on_sunday():
    # 2024-03-15 is a Friday
    r = full_period_range(Period.WEEKLY, REFERENCE)
    assert r.start == datetime(2024, 3, 10)
    assert r.start.weekday() == 6
    assert r.end.date() == date(2024, 3, 16)


def test_sunday_reference_starts_its_own_week():
    r = full_period_range(Period.WEEKLY, date(2024, 3, 10))
    assert r.start.date() == date(2024, 3, 10)


def test_previous_month_does_not_overlap_current():
    current = full_period_range(Period.MONTHLY, REFERENCE)
    previous = resolve_previous_range(Period.MONTHLY, REFERENCE)
    assert previous.end < current.start
    assert previous.start == datetime(2024, 2, 1)
    assert previous.end.date() == date(2024, 2, 29)


def test_previous_month_from_month_end_skips_no_month():
    # Shifting 31 March by one month must land in February, not March 2nd
    previous = resolve_previous_range(Period.MONTHLY, datetime(2024, 3, 31, 23, 0))
    assert previous.start.date() == date(2024, 2, 1)
    assert previous.end.date() == date(2024, 2, 29)


def test_previous_month_crosses_year():
    previous = resolve_previous_range(Period.MONTHLY, date(2024, 1, 10))
    assert previous.start.date() == date(2023, 12, 1)
    assert previous.end.date() == date(2023, 12, 31)


def test_leap_year_has_366_days():
    r = full_period_range(Period.YEARLY, date(2024, 6, 1))
    assert (r.end.date() - r.start.date()).days + 1 == 366


def test_previous_day_and_week():
    day = resolve_previous_range(Period.DAILY, REFERENCE)
    assert day.start.date() == date(2024, 3, 14)
    week = resolve_previous_range(Period.WEEKLY, REFERENCE)
    assert week.start.date() == date(2024, 3, 3)
    assert week.end.date() == date(2024, 3, 9)


def test_last_month_range_matches_previous_monthly():
    assert last_month_range(REFERENCE) == resolve_previous_range(Period.MONTHLY, REFERENCE)


def test_custom_range_is_returned_unchanged():
    custom = DateRange(datetime(2024, 1, 5), datetime(2024, 2, 10, 12))
    assert resolve_range(Period.CUSTOM, REFERENCE, custom=custom) == custom
    assert resolve_previous_range(Period.CUSTOM, REFERENCE) is None


def test_custom_range_requires_bounds():
    with pytest.raises(ValidationError):
        resolve_range(Period.CUSTOM, REFERENCE)


def test_custom_range_rejects_reversed_bounds():
    with pytest.raises(ValidationError):
        resolve_range(Period.CUSTOM, REFERENCE, custom=DateRange(datetime(2024, 2, 1), datetime(2024, 1, 1)))


def test_unknown_period_is_rejected():
    with pytest.raises(ValidationError):
        resolve_range("fortnightly", REFERENCE)


def test_contains_is_inclusive():
    r = full_period_range(Period.DAILY, REFERENCE)
    assert r.contains(datetime(2024, 3, 15, 0, 0))
    assert r.contains(datetime.combine(date(2024, 3, 15), time.max))
    assert not r.contains(datetime(2024, 3, 16, 0, 0))


def test_period_labels():
    assert period_label(Period.MONTHLY, date(2024, 3, 1)) == "March 2024"
    assert period_label(Period.YEARLY, date(2024, 1, 1)) == "2024"
    assert period_label(Period.DAILY, date(2024, 3, 15)) == "2024-03-15"
    assert period_label(Period.WEEKLY, date(2024, 3, 10)) == "10 - 16 Mar"


def test_naive_local_converts_aware_instants():
    aware = datetime(2024, 3, 15, 12, 0, tzinfo=timezone(timedelta(hours=3)))
    local = naive_local(aware)
    assert local.tzinfo is None
    assert local == aware.astimezone().replace(tzinfo=None)
    assert naive_local(REFERENCE) is REFERENCE
    assert naive_local(None) is None
