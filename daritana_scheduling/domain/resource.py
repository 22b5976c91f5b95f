from datetime import date, datetime
from typing import Any, Dict, List, Optional, Union

from daritana_scheduling.errors import ValidationError
from daritana_scheduling.utils.dates import as_datetime, day_span


class ResourceError(ValidationError):
    """Exception raised for invalid resource constraints or allocations."""

    pass


def _coerce_date(value, label):
    try:
        return as_datetime(value)
    except TypeError:
        raise ResourceError(f"{label} must be a date or datetime object")


class AvailabilityPeriod:
    """
    A window [start_date, end_date) during which a resource offers only
    `availability` percent of its normal capacity (leave, site closure, etc.).
    """

    def __init__(
        self,
        start_date: Union[date, datetime],
        end_date: Union[date, datetime],
        availability: float,
    ):
        self.start_date = _coerce_date(start_date, "Availability start")
        self.end_date = _coerce_date(end_date, "Availability end")
        if self.end_date <= self.start_date:
            raise ResourceError("Availability period must end after it starts")
        if not isinstance(availability, (int, float)) or not 0 <= availability <= 100:
            raise ResourceError("Availability must be a percentage between 0 and 100")
        self.availability = float(availability)

    def covers(self, moment: datetime) -> bool:
        return self.start_date <= moment < self.end_date

    def __repr__(self) -> str:
        return (
            f"AvailabilityPeriod({self.start_date:%Y-%m-%d}..{self.end_date:%Y-%m-%d}, "
            f"{self.availability:g}%)"
        )


class ResourceConstraint:
    """
    A shared resource (person, crew, equipment) and the tasks competing for it.

    Args:
        resource_id: Identifier matching the keys of Task.resource_allocations
        task_ids: Competing tasks; when empty every task assigned to the
            resource competes
        max_allocation: Total percent the resource can give at once
        availability: Optional reduced-availability periods
    """

    def __init__(
        self,
        resource_id: str,
        task_ids: Optional[List] = None,
        max_allocation: float = 100.0,
        availability: Optional[List[AvailabilityPeriod]] = None,
    ):
        if resource_id is None or str(resource_id).strip() == "":
            raise ResourceError("Resource ID cannot be None or empty")
        self.resource_id = resource_id

        if task_ids is not None and not isinstance(task_ids, (list, tuple)):
            raise ResourceError("Constraint task IDs must be a list")
        self.task_ids = list(task_ids) if task_ids else []

        if not isinstance(max_allocation, (int, float)) or max_allocation <= 0:
            raise ResourceError("Maximum allocation must be a positive number")
        self.max_allocation = float(max_allocation)

        self.availability = list(availability) if availability else []

    def capacity_at(self, moment: datetime) -> float:
        """Capacity in percent at a moment; the most restrictive period wins."""
        capacity = self.max_allocation
        for period in self.availability:
            if period.covers(moment):
                capacity = min(capacity, self.max_allocation * period.availability / 100)
        return capacity

    def boundaries(self) -> List[datetime]:
        """Moments where capacity may change."""
        points = []
        for period in self.availability:
            points.extend([period.start_date, period.end_date])
        return points

    def competing_tasks(self, tasks: Dict) -> List:
        """Tasks that compete for this resource, in input order."""
        if self.task_ids:
            return [tasks[task_id] for task_id in self.task_ids if task_id in tasks]
        return [
            task for task in tasks.values() if task.get_allocation(self.resource_id) > 0
        ]

    def __repr__(self) -> str:
        return (
            f"ResourceConstraint(resource={self.resource_id}, "
            f"tasks={self.task_ids}, max={self.max_allocation:g}%)"
        )


class LevelingResult:
    """Proposed window for one task after resource leveling."""

    def __init__(
        self,
        task_id,
        resource_id,
        original_start: datetime,
        original_end: datetime,
        leveled_start: datetime,
        leveled_end: datetime,
        reason: str,
        total_float: Optional[int] = None,
        is_critical: Optional[bool] = None,
    ):
        self.task_id = task_id
        self.resource_id = resource_id
        self.original_start = original_start
        self.original_end = original_end
        self.leveled_start = leveled_start
        self.leveled_end = leveled_end
        self.reason = reason
        self.total_float = total_float
        self.is_critical = is_critical

    @property
    def shift_days(self) -> int:
        return day_span(self.original_start, self.leveled_start)

    @property
    def is_shifted(self) -> bool:
        return self.leveled_start != self.original_start

    def to_dict(self) -> Dict[str, Any]:
        return {
            "task_id": self.task_id,
            "resource_id": self.resource_id,
            "original_start": self.original_start,
            "original_end": self.original_end,
            "leveled_start": self.leveled_start,
            "leveled_end": self.leveled_end,
            "shift_days": self.shift_days,
            "reason": self.reason,
            "float": self.total_float,
            "is_critical": self.is_critical,
        }

    def __repr__(self) -> str:
        return (
            f"LevelingResult(task={self.task_id}, resource={self.resource_id}, "
            f"shift={self.shift_days}d, reason={self.reason!r})"
        )


class ResourceConflict:
    """An interval in which a resource is allocated beyond its capacity."""

    def __init__(
        self,
        resource_id,
        task_ids: List,
        start_date: datetime,
        end_date: datetime,
        total_allocation: float,
        capacity: float,
    ):
        self.resource_id = resource_id
        self.task_ids = list(task_ids)
        self.start_date = start_date
        self.end_date = end_date
        self.total_allocation = total_allocation
        self.capacity = capacity

    @property
    def overallocation(self) -> float:
        return self.total_allocation - self.capacity

    def to_dict(self) -> Dict[str, Any]:
        return {
            "resource_id": self.resource_id,
            "task_ids": self.task_ids.copy(),
            "start_date": self.start_date,
            "end_date": self.end_date,
            "total_allocation": self.total_allocation,
            "capacity": self.capacity,
        }

    def __repr__(self) -> str:
        return (
            f"ResourceConflict(resource={self.resource_id}, tasks={self.task_ids}, "
            f"{self.start_date:%Y-%m-%d}..{self.end_date:%Y-%m-%d}, "
            f"{self.total_allocation:g}%/{self.capacity:g}%)"
        )
