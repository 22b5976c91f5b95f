import logging
from datetime import datetime, timedelta

from daritana_scheduling.domain.calendar import GanttConfig, Holiday, default_holidays
from daritana_scheduling.utils.dates import as_datetime, iter_days

logger = logging.getLogger(__name__)


class HolidayCalendar:
    """
    Non-working dates plus the working-week policy from a GanttConfig.

    The holiday list is mirrored into `config.holidays` so renderers see the
    same dates the scheduler does.
    """

    def __init__(self, holidays=None, config=None):
        self.holidays = list(holidays) if holidays is not None else default_holidays()
        self.config = config or GanttConfig()
        self.config.holidays = list(self.holidays)

    def add_holiday(self, holiday: Holiday) -> Holiday:
        """Append a holiday to both lists. Duplicate dates are not checked."""
        self.holidays.append(holiday)
        self.config.holidays.append(holiday)
        logger.debug("Added holiday %s on %s", holiday.name, holiday.date)
        return holiday

    def remove_holiday(self, day) -> int:
        """Remove every holiday falling on `day` from both lists; returns how many."""
        target = as_datetime(day).date()
        before = len(self.holidays)
        self.holidays = [h for h in self.holidays if h.date != target]
        self.config.holidays = [h for h in self.config.holidays if h.date != target]
        removed = before - len(self.holidays)
        logger.debug("Removed %d holiday(s) on %s", removed, target)
        return removed

    def update_gantt_config(self, **changes) -> GanttConfig:
        """Apply a partial config update; a holiday list replaces both lists."""
        self.config.update(**changes)
        if "holidays" in changes:
            self.holidays = list(self.config.holidays)
        return self.config

    def holiday_dates(self):
        return {holiday.date for holiday in self.holidays}

    def holidays_between(self, start, end):
        """Holidays with start <= date < end, in date order."""
        first = as_datetime(start).date()
        last = as_datetime(end).date()
        return sorted(
            (h for h in self.holidays if first <= h.date < last), key=lambda h: h.date
        )

    def is_working_day(self, day) -> bool:
        day = as_datetime(day).date()
        return (
            day.isoweekday() in self.config.working_days
            and day not in self.holiday_dates()
        )

    def count_working_days(self, start, days: int) -> int:
        """Working days among the `days` calendar days beginning at `start`."""
        holidays = self.holiday_dates()
        return sum(
            1
            for day in iter_days(start, days)
            if day.isoweekday() in self.config.working_days and day not in holidays
        )

    def add_working_days(self, start, days: int) -> datetime:
        """
        The start of the working day that follows `days` working days of
        work beginning at `start`.

        Non-working days at the start are skipped first, so a zero-day span
        beginning on a holiday ends on the next working day.
        """
        current = as_datetime(start)
        holidays = self.holiday_dates()

        def working(moment):
            return (
                moment.isoweekday() in self.config.working_days
                and moment.date() not in holidays
            )

        while not working(current):
            current += timedelta(days=1)

        remaining = days
        while remaining > 0:
            current += timedelta(days=1)
            if working(current):
                remaining -= 1
        return current
