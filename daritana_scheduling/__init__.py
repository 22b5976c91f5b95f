"""
Daritana Scheduling
===================

Critical Path Method scheduling for architecture and construction projects.

Available modules:
- services.critical_path: forward/backward pass and the per-project cache
- services.resource_leveling: conflict detection and greedy leveling
- services.milestones: phase milestone checklists
- services.calendar: Malaysian holiday and working-day policy
- services.scheduler: ProjectScheduler, tying the above together and
  keeping named baselines
- visualization: Gantt, resource and network charts
"""

from daritana_scheduling.domain.baseline import (
    Baseline,
    BaselineError,
    BaselineTask,
    TaskVariance,
)
from daritana_scheduling.domain.calendar import GanttConfig, Holiday
from daritana_scheduling.domain.critical_path import CriticalPath, ScheduledTask
from daritana_scheduling.domain.milestone import Milestone
from daritana_scheduling.domain.resource import (
    AvailabilityPeriod,
    LevelingResult,
    ResourceConflict,
    ResourceConstraint,
)
from daritana_scheduling.domain.task import Task
from daritana_scheduling.errors import (
    ConfigError,
    CycleDetectedError,
    SchedulingError,
    UnknownPhaseError,
    ValidationError,
)
from daritana_scheduling.services.calendar import HolidayCalendar
from daritana_scheduling.services.critical_path import (
    CriticalPathCache,
    calculate_critical_path,
)
from daritana_scheduling.services.milestones import generate_milestones
from daritana_scheduling.services.resource_leveling import (
    apply_leveling,
    check_resource_conflicts,
    perform_resource_leveling,
)
from daritana_scheduling.services.scheduler import ProjectScheduler

__version__ = "0.1.0"

__all__ = [
    "AvailabilityPeriod",
    "Baseline",
    "BaselineError",
    "BaselineTask",
    "ConfigError",
    "CriticalPath",
    "CriticalPathCache",
    "CycleDetectedError",
    "GanttConfig",
    "Holiday",
    "HolidayCalendar",
    "LevelingResult",
    "Milestone",
    "ProjectScheduler",
    "ResourceConflict",
    "ResourceConstraint",
    "ScheduledTask",
    "SchedulingError",
    "Task",
    "TaskVariance",
    "UnknownPhaseError",
    "ValidationError",
    "apply_leveling",
    "calculate_critical_path",
    "check_resource_conflicts",
    "generate_milestones",
    "perform_resource_leveling",
]
