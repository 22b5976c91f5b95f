from datetime import datetime
from typing import Any, Dict, List, Optional


class ScheduledTask:
    """
    Derived CPM view of one task. All offsets are whole days from project start.
    """

    def __init__(self, task, duration: int):
        self.task = task
        self.task_id = task.id
        self.duration = duration
        self.early_start = 0
        self.early_finish = 0
        self.late_start = 0
        self.late_finish = 0

    @property
    def total_float(self) -> int:
        """Days the task can slip without delaying the project."""
        return self.late_start - self.early_start

    @property
    def is_critical(self) -> bool:
        return self.total_float == 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "task_id": self.task_id,
            "duration": self.duration,
            "early_start": self.early_start,
            "early_finish": self.early_finish,
            "late_start": self.late_start,
            "late_finish": self.late_finish,
            "float": self.total_float,
            "is_critical": self.is_critical,
        }

    def __repr__(self) -> str:
        return (
            f"ScheduledTask(id={self.task_id}, ES={self.early_start}, "
            f"EF={self.early_finish}, LS={self.late_start}, "
            f"LF={self.late_finish}, float={self.total_float})"
        )


class CriticalPath:
    """
    Snapshot of a project's critical path as of `last_calculated`.

    `tasks` lists the zero-float task IDs in dependency order. `schedule`
    holds the full early/late view for every task in the project.
    """

    def __init__(
        self,
        project_id: str,
        tasks: List,
        total_duration: int,
        start_date: datetime,
        end_date: datetime,
        buffer: int,
        last_calculated: datetime,
        schedule: Optional[Dict[Any, ScheduledTask]] = None,
    ):
        self.project_id = project_id
        self.tasks = list(tasks)
        self.total_duration = total_duration
        self.start_date = start_date
        self.end_date = end_date
        self.buffer = buffer
        self.last_calculated = last_calculated
        self.schedule = schedule or {}
        # Assigned by the cache on store
        self.version = 0

    def is_critical(self, task_id) -> bool:
        return task_id in self.tasks

    def get_float(self, task_id) -> int:
        """Total float of a task, raising KeyError for IDs outside the project."""
        return self.schedule[task_id].total_float

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert the critical path to a dictionary representation.

        Returns:
            dict: Dictionary representation of the critical path
        """
        return {
            "project_id": self.project_id,
            "tasks": self.tasks.copy(),
            "total_duration": self.total_duration,
            "start_date": self.start_date,
            "end_date": self.end_date,
            "buffer": self.buffer,
            "last_calculated": self.last_calculated,
            "version": self.version,
            "schedule": {
                task_id: record.to_dict() for task_id, record in self.schedule.items()
            },
        }

    def __repr__(self) -> str:
        tasks_str = ", ".join(str(t) for t in self.tasks)
        return (
            f"CriticalPath(project={self.project_id}, tasks=[{tasks_str}], "
            f"duration={self.total_duration}, buffer={self.buffer})"
        )
