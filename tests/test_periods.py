"""
Unit tests for billing period framing.
"""
from datetime import datetime, timedelta, timezone

from app.core.periods import (
    billing_period_for,
    months_before,
    next_period,
    previous_period,
    to_naive_utc,
)


def test_period_bounds_mid_month():
    """Period spans the whole calendar month."""
    period = billing_period_for(datetime(2026, 10, 16, 14, 30))

    assert period.start == datetime(2026, 10, 1)
    assert period.end == datetime(2026, 10, 31, 23, 59, 59, 999999)
    assert period.key == "2026-10"


def test_period_end_is_inclusive_and_adjacent_to_next_start():
    """The instant after the end is the next period's start."""
    period = billing_period_for(datetime(2026, 2, 10))

    assert period.end + timedelta(microseconds=1) == datetime(2026, 3, 1)
    assert period.contains(period.end)
    assert not period.contains(datetime(2026, 3, 1))


def test_first_and_last_instant_map_to_same_period():
    first = billing_period_for(datetime(2026, 5, 1, 0, 0, 0))
    last = billing_period_for(datetime(2026, 5, 31, 23, 59, 59, 999999))

    assert first == last


def test_december_rolls_over_to_next_year():
    period = billing_period_for(datetime(2026, 12, 31, 23, 0))

    assert period.key == "2026-12"
    assert period.end == datetime(2026, 12, 31, 23, 59, 59, 999999)
    assert next_period(period).key == "2027-01"


def test_leap_february():
    period = billing_period_for(datetime(2028, 2, 29, 12, 0))

    assert period.end == datetime(2028, 2, 29, 23, 59, 59, 999999)


def test_aware_moment_is_converted_to_utc():
    """23:30 on Oct 31 at UTC-05:00 is already November in UTC."""
    moment = datetime(2026, 10, 31, 23, 30, tzinfo=timezone(timedelta(hours=-5)))

    period = billing_period_for(moment)

    assert period.key == "2026-11"
    assert period.start.tzinfo is None


def test_to_naive_utc_keeps_naive_values():
    moment = datetime(2026, 1, 1, 12, 0)
    assert to_naive_utc(moment) == moment


def test_previous_period_and_months_before():
    period = billing_period_for(datetime(2026, 1, 15))

    assert previous_period(period).key == "2025-12"
    assert months_before(period, 12).key == "2025-01"
    assert months_before(period, 0) == period


def test_default_moment_is_now():
    period = billing_period_for()
    assert period.contains(datetime.now(timezone.utc))
