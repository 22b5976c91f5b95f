import math
from datetime import date, datetime, time, timedelta

SECONDS_PER_DAY = 86400


def as_datetime(value):
    """Promote a date to a midnight datetime; datetimes pass through unchanged."""
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time())
    raise TypeError(f"Expected a date or datetime, got {type(value).__name__}")


def day_span(start, end):
    """Whole calendar days between two moments, rounded up."""
    seconds = (end - start).total_seconds()
    return math.ceil(seconds / SECONDS_PER_DAY)


def start_of_day(value=None):
    """Midnight of the given moment (today when omitted)."""
    if value is None:
        value = datetime.now()
    return datetime.combine(as_datetime(value).date(), time())


def iter_days(start, days):
    """Yield `days` consecutive calendar dates beginning at `start`."""
    first = as_datetime(start).date()
    for offset in range(days):
        yield first + timedelta(days=offset)
