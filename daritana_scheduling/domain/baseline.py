from datetime import datetime
from typing import Any, Dict, List, Optional

from daritana_scheduling.errors import ValidationError
from daritana_scheduling.utils.dates import day_span


class BaselineError(ValidationError):
    """Exception raised for errors in baselines."""

    pass


class BaselineTask:
    """Planned window and status of one task at the time a baseline was taken."""

    def __init__(self, task_id, title: str, start_date: datetime, end_date: datetime,
                 status: str):
        self.task_id = task_id
        self.title = title
        self.start_date = start_date
        self.end_date = end_date
        self.status = status

    @classmethod
    def from_task(cls, task) -> "BaselineTask":
        return cls(task.id, task.title, task.start_date, task.end_date, task.status)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "task_id": self.task_id,
            "title": self.title,
            "start_date": self.start_date,
            "end_date": self.end_date,
            "status": self.status,
        }


class TaskVariance:
    """
    Difference between a task's baseline window and its current window.

    Either side may be missing: a task added after the baseline has no
    baseline dates, and a task removed since has no current dates.
    Variances are in whole days, positive when the task is later.
    """

    def __init__(
        self,
        task_id,
        baseline_start: Optional[datetime],
        baseline_end: Optional[datetime],
        current_start: Optional[datetime],
        current_end: Optional[datetime],
    ):
        self.task_id = task_id
        self.baseline_start = baseline_start
        self.baseline_end = baseline_end
        self.current_start = current_start
        self.current_end = current_end

    @property
    def is_added(self) -> bool:
        return self.baseline_start is None

    @property
    def is_removed(self) -> bool:
        return self.current_start is None

    @property
    def start_variance(self) -> Optional[int]:
        if self.is_added or self.is_removed:
            return None
        return day_span(self.baseline_start, self.current_start)

    @property
    def finish_variance(self) -> Optional[int]:
        if self.is_added or self.is_removed:
            return None
        return day_span(self.baseline_end, self.current_end)

    @property
    def is_slipped(self) -> bool:
        return bool(self.finish_variance and self.finish_variance > 0)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "task_id": self.task_id,
            "baseline_start": self.baseline_start,
            "baseline_end": self.baseline_end,
            "current_start": self.current_start,
            "current_end": self.current_end,
            "start_variance": self.start_variance,
            "finish_variance": self.finish_variance,
        }

    def __repr__(self) -> str:
        return (
            f"TaskVariance(task={self.task_id}, start={self.start_variance}, "
            f"finish={self.finish_variance})"
        )


class Baseline:
    """
    Named snapshot of a project's schedule, kept for later comparison.

    Args:
        id: Unique identifier for the baseline
        project_id: Project the snapshot was taken from
        name: Display name, must not be empty
        baseline_date: When the snapshot was taken
        start_date: Project start at that time
        end_date: Project end at that time
        tasks: BaselineTask snapshots
        description: Optional notes
    """

    def __init__(
        self,
        id: str,
        project_id: str,
        name: str,
        baseline_date: datetime,
        start_date: datetime,
        end_date: datetime,
        tasks: List[BaselineTask],
        description: Optional[str] = None,
    ):
        if id is None or str(id).strip() == "":
            raise BaselineError("Baseline ID cannot be None or empty")
        self.id = id

        if not isinstance(name, str) or not name.strip():
            raise BaselineError("Baseline name must be a non-empty string")
        self.name = name.strip()

        self.project_id = project_id
        self.description = description
        self.baseline_date = baseline_date
        self.start_date = start_date
        self.end_date = end_date
        self.tasks = {task.task_id: task for task in tasks}

    def get_task(self, task_id) -> Optional[BaselineTask]:
        return self.tasks.get(task_id)

    def compare(self, tasks) -> List[TaskVariance]:
        """
        Variance of each current task against this baseline.

        Current tasks come first in the order given, then tasks that only
        exist in the baseline.
        """
        variances = []
        seen = set()
        for task in tasks:
            seen.add(task.id)
            snapshot = self.tasks.get(task.id)
            variances.append(
                TaskVariance(
                    task.id,
                    snapshot.start_date if snapshot else None,
                    snapshot.end_date if snapshot else None,
                    task.start_date,
                    task.end_date,
                )
            )

        for task_id, snapshot in self.tasks.items():
            if task_id not in seen:
                variances.append(
                    TaskVariance(task_id, snapshot.start_date, snapshot.end_date, None, None)
                )
        return variances

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "project_id": self.project_id,
            "name": self.name,
            "description": self.description,
            "baseline_date": self.baseline_date,
            "start_date": self.start_date,
            "end_date": self.end_date,
            "tasks": [task.to_dict() for task in self.tasks.values()],
        }

    def __repr__(self) -> str:
        return (
            f"Baseline(id={self.id}, name={self.name}, "
            f"{self.start_date:%Y-%m-%d}..{self.end_date:%Y-%m-%d}, tasks={len(self.tasks)})"
        )
