import unittest
from datetime import date, datetime

from daritana_scheduling.domain.calendar import (
    MALAYSIAN_PUBLIC_HOLIDAYS,
    GanttConfig,
    Holiday,
    HolidayError,
)
from daritana_scheduling.errors import ConfigError, ValidationError
from daritana_scheduling.services.calendar import HolidayCalendar


class TestHoliday(unittest.TestCase):
    def test_holiday(self):
        holiday = Holiday(datetime(2025, 8, 31, 15), "Merdeka Day")
        self.assertEqual(holiday.date, date(2025, 8, 31))
        self.assertEqual(holiday.type, "federal")
        self.assertEqual(holiday, Holiday(date(2025, 8, 31), "Merdeka Day", "federal"))

    def test_validation(self):
        with self.assertRaises(HolidayError):
            Holiday("2025-08-31", "Merdeka Day")
        with self.assertRaises(HolidayError):
            Holiday(date(2025, 8, 31), "")
        with self.assertRaises(HolidayError):
            Holiday(date(2025, 8, 31), "Merdeka Day", "national")


class TestHolidayCalendar(unittest.TestCase):
    def test_seeded_with_malaysian_holidays(self):
        calendar = HolidayCalendar()
        self.assertEqual(len(calendar.holidays), len(MALAYSIAN_PUBLIC_HOLIDAYS))
        self.assertIn(date(2025, 8, 31), calendar.holiday_dates())
        self.assertEqual(calendar.config.holidays, calendar.holidays)
        self.assertIsNot(calendar.config.holidays, calendar.holidays)

    def test_add_holiday_updates_both_lists(self):
        calendar = HolidayCalendar(holidays=[])
        retreat = Holiday(date(2025, 4, 18), "Company Retreat", "company")
        calendar.add_holiday(retreat)

        self.assertIn(retreat, calendar.holidays)
        self.assertIn(retreat, calendar.config.holidays)

    def test_remove_holiday_by_date(self):
        calendar = HolidayCalendar()
        removed = calendar.remove_holiday(date(2025, 5, 1))

        self.assertEqual(removed, 1)
        self.assertNotIn(date(2025, 5, 1), calendar.holiday_dates())
        self.assertNotIn(date(2025, 5, 1), {h.date for h in calendar.config.holidays})
        self.assertEqual(calendar.remove_holiday(date(2025, 5, 2)), 0)

    def test_working_days(self):
        calendar = HolidayCalendar()
        self.assertTrue(calendar.is_working_day(date(2025, 4, 7)))  # Monday
        self.assertFalse(calendar.is_working_day(date(2025, 4, 5)))  # Saturday
        self.assertFalse(calendar.is_working_day(date(2025, 5, 1)))  # Labour Day

    def test_count_working_days(self):
        calendar = HolidayCalendar()
        # Mon 28 Apr to Sun 4 May, with Labour Day on Thursday
        self.assertEqual(calendar.count_working_days(date(2025, 4, 28), 7), 4)
        self.assertEqual(calendar.count_working_days(date(2025, 4, 28), 0), 0)

    def test_add_working_days(self):
        calendar = HolidayCalendar(holidays=[])
        monday = datetime(2025, 4, 7)
        self.assertEqual(calendar.add_working_days(monday, 5), datetime(2025, 4, 14))
        self.assertEqual(calendar.add_working_days(monday, 0), monday)
        # Saturday start rolls to Monday first
        self.assertEqual(
            calendar.add_working_days(datetime(2025, 4, 5), 1), datetime(2025, 4, 8)
        )

    def test_six_day_week(self):
        calendar = HolidayCalendar(holidays=[])
        calendar.update_gantt_config(working_days=[1, 2, 3, 4, 5, 6])
        self.assertTrue(calendar.is_working_day(date(2025, 4, 5)))
        self.assertEqual(calendar.count_working_days(date(2025, 4, 7), 7), 6)

    def test_holidays_between(self):
        calendar = HolidayCalendar()
        names = [h.name for h in calendar.holidays_between(date(2025, 8, 1), date(2025, 9, 16))]
        self.assertEqual(names, ["Merdeka Day", "Maulidur Rasul"])

    def test_update_holidays_replaces_both_lists(self):
        calendar = HolidayCalendar()
        only = Holiday(date(2025, 4, 18), "Company Retreat", "company")
        calendar.update_gantt_config(holidays=[only])

        self.assertEqual(calendar.holidays, [only])
        self.assertEqual(calendar.config.holidays, [only])


class TestGanttConfig(unittest.TestCase):
    def test_defaults(self):
        config = GanttConfig()
        self.assertEqual(config.view_mode, "week")
        self.assertEqual(config.working_days, [1, 2, 3, 4, 5])
        self.assertEqual(config.working_hours, {"start": "08:00", "end": "17:00"})
        self.assertTrue(config.show_critical_path)

    def test_partial_update(self):
        config = GanttConfig()
        config.update(view_mode="month", show_progress=False)
        self.assertEqual(config.view_mode, "month")
        self.assertFalse(config.show_progress)
        self.assertTrue(config.show_dependencies)

    def test_invalid_update_changes_nothing(self):
        config = GanttConfig()
        with self.assertRaises(ConfigError):
            config.update(view_mode="day", working_days=[0, 8])
        self.assertEqual(config.view_mode, "week")

    def test_invalid_values(self):
        config = GanttConfig()
        bad_changes = [
            {"view_mode": "fortnight"},
            {"show_milestones": "yes"},
            {"working_days": []},
            {"working_hours": {"start": "17:00", "end": "08:00"}},
            {"working_hours": {"start": "8am", "end": "17:00"}},
            {"holidays": ["2025-01-01"]},
            {"colour": "red"},
        ]
        for changes in bad_changes:
            with self.subTest(changes=changes):
                with self.assertRaises(ConfigError):
                    config.update(**changes)

    def test_config_errors_are_validation_errors(self):
        with self.assertRaises(ValidationError):
            GanttConfig(view_mode="fortnight")


if __name__ == "__main__":
    unittest.main()
