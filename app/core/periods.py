"""
Billing period framing.

Every component that needs a period (entitlement checks, usage recording,
usage summaries, retention) derives it from billing_period_for().
"""
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional


@dataclass(frozen=True)
class BillingPeriod:
    """A calendar-month accounting window in naive UTC."""
    start: datetime  # first instant of the month
    end: datetime  # last representable instant of the month (inclusive)
    key: str  # "YYYY-MM"

    def contains(self, moment: datetime) -> bool:
        return self.start <= to_naive_utc(moment) <= self.end


def utcnow() -> datetime:
    """Current time as naive UTC."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(moment: datetime) -> datetime:
    """Convert aware datetimes to naive UTC; naive values are assumed UTC."""
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc).replace(tzinfo=None)
    return moment


def _first_of_next_month(start: datetime) -> datetime:
    if start.month == 12:
        return start.replace(year=start.year + 1, month=1)
    return start.replace(month=start.month + 1)


def billing_period_for(moment: Optional[datetime] = None) -> BillingPeriod:
    """
    Get the billing period containing a moment.

    Args:
        moment: Point in time (defaults to now). Aware values are converted to UTC.

    Returns:
        BillingPeriod with start = first instant of the month and
        end = first instant of next month minus one microsecond
    """
    if moment is None:
        moment = utcnow()
    moment = to_naive_utc(moment)

    start = datetime(moment.year, moment.month, 1)
    end = _first_of_next_month(start) - timedelta(microseconds=1)
    return BillingPeriod(start=start, end=end, key=start.strftime("%Y-%m"))


def next_period(period: BillingPeriod) -> BillingPeriod:
    return billing_period_for(period.end + timedelta(microseconds=1))


def previous_period(period: BillingPeriod) -> BillingPeriod:
    return billing_period_for(period.start - timedelta(microseconds=1))


def months_before(period: BillingPeriod, months: int) -> BillingPeriod:
    """Get the period that starts `months` calendar months before `period`."""
    for _ in range(months):
        period = previous_period(period)
    return period
