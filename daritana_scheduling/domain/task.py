from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from daritana_scheduling.errors import ValidationError
from daritana_scheduling.utils.dates import as_datetime, day_span


class TaskStatus(Enum):
    """
    Enum representing the possible status values of a project timeline task.
    """

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    OVERDUE = "overdue"
    DELAYED = "delayed"
    CANCELLED = "cancelled"


class TaskPriority(Enum):
    """
    Enum representing task priority, used to break ties during resource leveling.
    """

    URGENT = "urgent"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


# Lower rank wins when two tasks compete for the same resource
PRIORITY_RANK = {
    TaskPriority.URGENT: 0,
    TaskPriority.HIGH: 1,
    TaskPriority.MEDIUM: 2,
    TaskPriority.LOW: 3,
}

FULL_ALLOCATION = 100.0


class TaskError(ValidationError):
    """Exception raised for errors in the Task class."""

    pass


class Task:
    """
    Represents one scheduled unit of work on a project timeline.

    A task has a planned window, dependency references in both directions,
    resource allocations (in percent) and progress tracking. Scheduling never
    mutates a task; critical path results are held in separate records.
    """

    def __init__(
        self,
        id: str,
        title: str,
        start_date: Union[date, datetime],
        end_date: Union[date, datetime],
        project_id: Optional[str] = None,
        dependencies: Optional[List] = None,
        successors: Optional[List] = None,
        resources: Optional[Union[List[str], str, Dict[str, float]]] = None,
        description: str = "",
        status: str = "pending",
        priority: str = "medium",
        progress: float = 0,
        category: Optional[str] = None,
        actual_start_date: Optional[Union[date, datetime]] = None,
        actual_end_date: Optional[Union[date, datetime]] = None,
    ):
        """
        Initialize a new Task.

        Args:
            id: Unique identifier for the task
            title: Display title of the task
            start_date: Planned start (dates are promoted to midnight)
            end_date: Planned end, must not precede the start
            project_id: Owning project
            dependencies: IDs of predecessor tasks
            successors: IDs of successor tasks
            resources: A resource ID, a list of IDs (100% each) or a
                mapping of resource ID to allocation percentage
            description: Free-text description
            status: One of the TaskStatus values
            priority: One of the TaskPriority values
            progress: Percent complete (0-100)
            category: Work category, e.g. "design" or "construction"
            actual_start_date: Recorded start, if the task has begun
            actual_end_date: Recorded end, if the task has finished

        Raises:
            TaskError: If any input validation fails
        """
        if id is None or str(id).strip() == "":
            raise TaskError("Task ID cannot be None or empty")
        self.id = id

        if not title or not isinstance(title, str):
            raise TaskError("Task title must be a non-empty string")
        self.title = title

        self.start_date = self._coerce_date(start_date, "Start date")
        self.end_date = self._coerce_date(end_date, "End date")
        if self.end_date < self.start_date:
            raise TaskError(
                f"Task {self.id} ends ({self.end_date:%Y-%m-%d}) before it starts "
                f"({self.start_date:%Y-%m-%d})"
            )

        self.actual_start_date = (
            self._coerce_date(actual_start_date, "Actual start date")
            if actual_start_date is not None
            else None
        )
        self.actual_end_date = (
            self._coerce_date(actual_end_date, "Actual end date")
            if actual_end_date is not None
            else None
        )

        self.project_id = project_id
        self.dependencies = self._coerce_id_list(dependencies, "Dependencies")
        self.successors = self._coerce_id_list(successors, "Successors")

        # Dictionary of {resource_id: allocation_percent}
        self.resource_allocations = self._coerce_resources(resources)

        self.description = description
        self.category = category
        self.status = status
        self.priority = priority

        if not isinstance(progress, (int, float)) or not 0 <= progress <= 100:
            raise TaskError("Progress must be a number between 0 and 100")
        self.progress = float(progress)

    @staticmethod
    def _coerce_date(value, label):
        try:
            return as_datetime(value)
        except TypeError:
            raise TaskError(f"{label} must be a date or datetime object")

    @staticmethod
    def _coerce_id_list(values, label):
        if not values:
            return []
        if not isinstance(values, (list, tuple)):
            raise TaskError(f"{label} must be a list")
        return list(values)

    @staticmethod
    def _coerce_resources(resources):
        if not resources:
            return {}
        if isinstance(resources, str):
            return {resources: FULL_ALLOCATION}
        if isinstance(resources, (list, tuple)):
            return {resource_id: FULL_ALLOCATION for resource_id in resources}
        if isinstance(resources, dict):
            allocations = {}
            for resource_id, allocation in resources.items():
                if not isinstance(allocation, (int, float)) or allocation < 0:
                    raise TaskError(
                        f"Allocation for resource {resource_id} must be a non-negative number"
                    )
                allocations[resource_id] = float(allocation)
            return allocations
        raise TaskError(
            f"Resources must be a string, list or dict, got {type(resources).__name__}"
        )

    @property
    def resources(self):
        """Resource IDs assigned to this task."""
        return list(self.resource_allocations.keys())

    @property
    def status(self) -> str:
        """Get the current status of the task."""
        return self._status.value

    @status.setter
    def status(self, value: str):
        """Set the status of the task."""
        try:
            self._status = TaskStatus(value)
        except ValueError:
            valid_statuses = [s.value for s in TaskStatus]
            raise TaskError(f"Invalid status: {value}. Must be one of {valid_statuses}")

    @property
    def priority(self) -> str:
        """Get the priority of the task."""
        return self._priority.value

    @priority.setter
    def priority(self, value: str):
        try:
            self._priority = TaskPriority(value)
        except ValueError:
            valid_priorities = [p.value for p in TaskPriority]
            raise TaskError(
                f"Invalid priority: {value}. Must be one of {valid_priorities}"
            )

    @property
    def priority_rank(self) -> int:
        return PRIORITY_RANK[self._priority]

    @property
    def duration(self) -> int:
        """Planned duration in whole calendar days, rounded up."""
        return day_span(self.start_date, self.end_date)

    def get_allocation(self, resource_id) -> float:
        """Percentage of the given resource this task consumes (0 if unassigned)."""
        return self.resource_allocations.get(resource_id, 0.0)

    def copy_with_window(self, start_date, end_date) -> "Task":
        """Return a copy of this task moved to a new planned window."""
        data = self.to_dict()
        data["start_date"] = start_date
        data["end_date"] = end_date
        return Task.from_dict(data)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert task to a dictionary representation.

        Returns:
            dict: Dictionary representation of the task
        """
        result = {
            "id": self.id,
            "project_id": self.project_id,
            "title": self.title,
            "description": self.description,
            "start_date": self.start_date,
            "end_date": self.end_date,
            "duration": self.duration,
            "dependencies": self.dependencies.copy(),
            "successors": self.successors.copy(),
            "resources": self.resource_allocations.copy(),
            "status": self.status,
            "priority": self.priority,
            "progress": self.progress,
            "category": self.category,
        }

        for attr in ["actual_start_date", "actual_end_date"]:
            if getattr(self, attr) is not None:
                result[attr] = getattr(self, attr)

        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Task":
        """
        Create a task from a dictionary representation.

        Args:
            data: Dictionary representation of the task

        Returns:
            Task: New task instance
        """
        return cls(
            id=data["id"],
            title=data["title"],
            start_date=data["start_date"],
            end_date=data["end_date"],
            project_id=data.get("project_id"),
            dependencies=data.get("dependencies"),
            successors=data.get("successors"),
            resources=data.get("resources"),
            description=data.get("description", ""),
            status=data.get("status", "pending"),
            priority=data.get("priority", "medium"),
            progress=data.get("progress", 0),
            category=data.get("category"),
            actual_start_date=data.get("actual_start_date"),
            actual_end_date=data.get("actual_end_date"),
        )

    def __repr__(self) -> str:
        return (
            f"Task(id={self.id}, title={self.title}, "
            f"start={self.start_date:%Y-%m-%d}, end={self.end_date:%Y-%m-%d})"
        )
