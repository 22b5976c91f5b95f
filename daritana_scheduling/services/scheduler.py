import logging
from datetime import datetime

from daritana_scheduling.domain.baseline import Baseline, BaselineError, BaselineTask
from daritana_scheduling.domain.calendar import GanttConfig
from daritana_scheduling.errors import ValidationError
from daritana_scheduling.services.calendar import HolidayCalendar
from daritana_scheduling.services.critical_path import (
    DEFAULT_BUFFER_RATIO,
    CriticalPathCache,
    calculate_critical_path,
    validate_buffer_ratio,
)
from daritana_scheduling.services.milestones import generate_milestones
from daritana_scheduling.services.resource_leveling import (
    apply_leveling,
    check_resource_conflicts,
    perform_resource_leveling,
)

logger = logging.getLogger(__name__)


class ProjectScheduler:
    def __init__(
        self,
        buffer_ratio=DEFAULT_BUFFER_RATIO,
        strict_dependencies=True,
        use_working_calendar=False,
        holidays=None,
        gantt_config=None,
    ):
        self.buffer_ratio = validate_buffer_ratio(buffer_ratio)
        # Reject dependencies on unknown tasks instead of ignoring them
        self.strict_dependencies = strict_dependencies
        # Count durations in working days (weekdays minus holidays)
        self.use_working_calendar = use_working_calendar

        self.projects = {}  # {project_id: {task_id: Task}}
        self.milestones = {}  # {project_id: [Milestone]}
        self.baselines = {}  # {project_id: [Baseline]}
        self.critical_paths = CriticalPathCache()
        self.calendar = HolidayCalendar(holidays, gantt_config or GanttConfig())

    @property
    def gantt_config(self):
        return self.calendar.config

    @property
    def holidays(self):
        return self.calendar.holidays

    def add_task(self, project_id, task):
        """Add a task to a project, replacing any task with the same ID"""
        self.projects.setdefault(project_id, {})[task.id] = task
        return self

    def set_tasks(self, project_id, tasks):
        """Replace a project's task list"""
        self.projects[project_id] = {}
        for task in tasks:
            self.add_task(project_id, task)
        return self

    def get_tasks(self, project_id):
        return list(self.projects.get(project_id, {}).values())

    def _calendar_for_math(self):
        return self.calendar if self.use_working_calendar else None

    def calculate_critical_path(self, project_id, tasks=None):
        """
        Compute and cache the critical path for a project.

        When `tasks` is given it becomes the project's task list first.
        """
        if tasks is not None:
            self.set_tasks(project_id, tasks)

        result = calculate_critical_path(
            project_id,
            self.get_tasks(project_id),
            buffer_ratio=self.buffer_ratio,
            strict=self.strict_dependencies,
            calendar=self._calendar_for_math(),
        )
        return self.critical_paths.store(result)

    def get_critical_path(self, project_id):
        """Last computed critical path for the project, or None"""
        return self.critical_paths.get(project_id)

    def ensure_critical_path(self, project_id):
        """
        Cached critical path, recomputed first when it is missing or was
        calculated for a different set of tasks.
        """
        cached = self.get_critical_path(project_id)
        task_ids = set(self.projects.get(project_id, {}))
        if cached is None or set(cached.schedule) != task_ids:
            return self.calculate_critical_path(project_id)
        return cached

    def perform_resource_leveling(self, project_id, constraints):
        """Propose leveled windows; the project's tasks are left as they are"""
        return perform_resource_leveling(
            self.get_tasks(project_id),
            constraints,
            strict=self.strict_dependencies,
            calendar=self._calendar_for_math(),
        )

    def apply_leveling(self, project_id, results):
        """Move the project's tasks to their leveled windows and recompute"""
        self.set_tasks(project_id, apply_leveling(self.get_tasks(project_id), results))
        return self.calculate_critical_path(project_id)

    def check_resource_conflicts(self, project_id, constraints=None):
        return check_resource_conflicts(self.get_tasks(project_id), constraints)

    def generate_milestones(self, project_id, phase, today=None, strict=False):
        """Generate and remember the phase milestones for a project"""
        milestones = generate_milestones(project_id, phase, today=today, strict=strict)
        self.milestones[project_id] = milestones
        return milestones

    def create_baseline(self, project_id, name, description=None, now=None):
        """
        Snapshot the project's start, end and task windows under a name.

        Raises:
            ValidationError: If the project has no tasks or the name is empty
        """
        tasks = self.get_tasks(project_id)
        if not tasks:
            raise ValidationError(f"Project {project_id} has no tasks to baseline")

        critical_path = self.ensure_critical_path(project_id)
        baselines = self.baselines.setdefault(project_id, [])
        baseline = Baseline(
            id=f"{project_id}-baseline-{len(baselines) + 1}",
            project_id=project_id,
            name=name,
            description=description,
            baseline_date=now or datetime.now(),
            start_date=critical_path.start_date,
            end_date=critical_path.end_date,
            tasks=[BaselineTask.from_task(task) for task in tasks],
        )
        baselines.append(baseline)
        logger.info("Baseline %s taken for project %s", baseline.id, project_id)
        return baseline

    def get_baseline(self, project_id, baseline_id=None):
        """A baseline by ID, or the latest one; None when there is none."""
        baselines = self.baselines.get(project_id, [])
        if baseline_id is None:
            return baselines[-1] if baselines else None
        return next((b for b in baselines if b.id == baseline_id), None)

    def compare_to_baseline(self, project_id, baseline_id=None):
        """TaskVariances of the current tasks against a baseline (latest by default)"""
        baseline = self.get_baseline(project_id, baseline_id)
        if baseline is None:
            raise BaselineError(
                f"Project {project_id} has no baseline {baseline_id or ''}".rstrip()
            )
        return baseline.compare(self.get_tasks(project_id))

    def add_holiday(self, holiday):
        self.calendar.add_holiday(holiday)
        return self

    def remove_holiday(self, day):
        return self.calendar.remove_holiday(day)

    def update_gantt_config(self, **changes):
        return self.calendar.update_gantt_config(**changes)

    def schedule(self, project_id, constraints=None):
        """Run the critical path calculation and conflict check for a project."""
        critical_path = self.calculate_critical_path(project_id)
        conflicts = self.check_resource_conflicts(project_id, constraints)

        if conflicts:
            logger.warning(
                "Project %s has %d resource conflict(s)", project_id, len(conflicts)
            )

        return {
            "tasks": self.get_tasks(project_id),
            "critical_path": critical_path,
            "conflicts": conflicts,
        }
