import re
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from daritana_scheduling.errors import ConfigError, ValidationError
from daritana_scheduling.utils.dates import as_datetime


class HolidayType(Enum):
    FEDERAL = "federal"
    STATE = "state"
    COMPANY = "company"


class HolidayError(ValidationError):
    """Exception raised for errors in the Holiday class."""

    pass


class Holiday:
    """A single non-working calendar date."""

    def __init__(
        self, date: Union[date, datetime], name: str, type: str = "federal"
    ):
        try:
            self.date = as_datetime(date).date()
        except TypeError:
            raise HolidayError("Holiday date must be a date or datetime object")

        if not name or not isinstance(name, str):
            raise HolidayError("Holiday name must be a non-empty string")
        self.name = name

        try:
            self._type = HolidayType(type)
        except ValueError:
            valid_types = [t.value for t in HolidayType]
            raise HolidayError(f"Invalid holiday type: {type}. Must be one of {valid_types}")

    @property
    def type(self) -> str:
        return self._type.value

    def to_dict(self) -> Dict[str, Any]:
        return {"date": self.date, "name": self.name, "type": self.type}

    def __eq__(self, other):
        if not isinstance(other, Holiday):
            return NotImplemented
        return (self.date, self.name, self.type) == (other.date, other.name, other.type)

    def __hash__(self):
        return hash((self.date, self.name, self.type))

    def __repr__(self) -> str:
        return f"Holiday({self.date:%Y-%m-%d}, {self.name}, {self.type})"


# Gazetted 2025 dates; lunar holidays shift every year
MALAYSIAN_PUBLIC_HOLIDAYS = [
    (date(2025, 1, 1), "New Year's Day", "federal"),
    (date(2025, 1, 29), "Chinese New Year", "federal"),
    (date(2025, 1, 30), "Chinese New Year (Second Day)", "federal"),
    (date(2025, 2, 11), "Thaipusam", "state"),
    (date(2025, 3, 18), "Nuzul Al-Quran", "state"),
    (date(2025, 3, 31), "Hari Raya Aidilfitri", "federal"),
    (date(2025, 4, 1), "Hari Raya Aidilfitri (Second Day)", "federal"),
    (date(2025, 5, 1), "Labour Day", "federal"),
    (date(2025, 5, 12), "Wesak Day", "federal"),
    (date(2025, 6, 2), "Birthday of SPB Yang di-Pertuan Agong", "federal"),
    (date(2025, 6, 7), "Hari Raya Haji", "federal"),
    (date(2025, 6, 27), "Awal Muharram", "federal"),
    (date(2025, 8, 31), "Merdeka Day", "federal"),
    (date(2025, 9, 5), "Maulidur Rasul", "federal"),
    (date(2025, 9, 16), "Malaysia Day", "federal"),
    (date(2025, 10, 20), "Deepavali", "federal"),
    (date(2025, 12, 25), "Christmas Day", "federal"),
]


def default_holidays() -> List[Holiday]:
    """Fresh Holiday objects for the seeded Malaysian public holiday table."""
    return [Holiday(day, name, kind) for day, name, kind in MALAYSIAN_PUBLIC_HOLIDAYS]


VIEW_MODES = ("day", "week", "month", "quarter", "year")
_TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


class GanttConfig:
    """
    Rendering and working-time policy for Gantt charts.

    `working_days` uses ISO weekday numbers (Monday is 1, Sunday is 7).
    """

    def __init__(
        self,
        view_mode: str = "week",
        show_dependencies: bool = True,
        show_critical_path: bool = True,
        show_milestones: bool = True,
        show_resource_names: bool = True,
        show_progress: bool = True,
        working_days: Optional[List[int]] = None,
        holidays: Optional[List[Holiday]] = None,
        working_hours: Optional[Dict[str, str]] = None,
    ):
        self.view_mode = "week"
        self.show_dependencies = True
        self.show_critical_path = True
        self.show_milestones = True
        self.show_resource_names = True
        self.show_progress = True
        self.working_days = [1, 2, 3, 4, 5]
        self.holidays = []
        self.working_hours = {"start": "08:00", "end": "17:00"}

        self.update(
            view_mode=view_mode,
            show_dependencies=show_dependencies,
            show_critical_path=show_critical_path,
            show_milestones=show_milestones,
            show_resource_names=show_resource_names,
            show_progress=show_progress,
            working_days=working_days if working_days is not None else [1, 2, 3, 4, 5],
            holidays=holidays or [],
            working_hours=working_hours or {"start": "08:00", "end": "17:00"},
        )

    def update(self, **changes) -> "GanttConfig":
        """
        Apply a partial update. Every change is validated before any is applied.

        Raises:
            ConfigError: On unknown keys or invalid values
        """
        unknown = set(changes) - set(self.to_dict())
        if unknown:
            raise ConfigError(f"Unknown Gantt config option(s): {sorted(unknown)}")

        validated = {}
        for key, value in changes.items():
            validated[key] = getattr(self, f"_validate_{key}", self._validate_flag)(
                key, value
            )

        for key, value in validated.items():
            setattr(self, key, value)
        return self

    @staticmethod
    def _validate_flag(key, value):
        if not isinstance(value, bool):
            raise ConfigError(f"{key} must be a boolean")
        return value

    @staticmethod
    def _validate_view_mode(key, value):
        if value not in VIEW_MODES:
            raise ConfigError(f"view_mode must be one of {list(VIEW_MODES)}")
        return value

    @staticmethod
    def _validate_working_days(key, value):
        if not isinstance(value, (list, tuple, set)) or not value:
            raise ConfigError("working_days must be a non-empty list of ISO weekdays")
        days = sorted(set(value))
        if any(not isinstance(day, int) or not 1 <= day <= 7 for day in days):
            raise ConfigError("working_days entries must be integers from 1 to 7")
        return days

    @staticmethod
    def _validate_holidays(key, value):
        if not isinstance(value, (list, tuple)):
            raise ConfigError("holidays must be a list")
        if any(not isinstance(holiday, Holiday) for holiday in value):
            raise ConfigError("holidays must contain Holiday objects")
        return list(value)

    @staticmethod
    def _validate_working_hours(key, value):
        if not isinstance(value, dict) or set(value) != {"start", "end"}:
            raise ConfigError("working_hours must have exactly 'start' and 'end'")
        for bound in ("start", "end"):
            if not isinstance(value[bound], str) or not _TIME_PATTERN.match(value[bound]):
                raise ConfigError(f"working_hours {bound} must be HH:MM")
        if value["end"] <= value["start"]:
            raise ConfigError("working_hours end must be after start")
        return dict(value)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "view_mode": self.view_mode,
            "show_dependencies": self.show_dependencies,
            "show_critical_path": self.show_critical_path,
            "show_milestones": self.show_milestones,
            "show_resource_names": self.show_resource_names,
            "show_progress": self.show_progress,
            "working_days": list(self.working_days),
            "holidays": list(self.holidays),
            "working_hours": dict(self.working_hours),
        }

    def __repr__(self) -> str:
        return (
            f"GanttConfig(view_mode={self.view_mode}, working_days={self.working_days}, "
            f"holidays={len(self.holidays)})"
        )
