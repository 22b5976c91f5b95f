import logging
import math
import threading
from datetime import datetime, timedelta
from fractions import Fraction

from daritana_scheduling.domain.critical_path import CriticalPath
from daritana_scheduling.errors import ValidationError
from daritana_scheduling.utils.graph import (
    backward_pass,
    build_dependency_graph,
    find_critical_path,
    forward_pass,
    get_records,
    schedule_order,
)

logger = logging.getLogger(__name__)

DEFAULT_BUFFER_RATIO = 0.1


def validate_buffer_ratio(buffer_ratio):
    """Return the ratio if it is a non-negative number, else raise ValidationError."""
    if (
        isinstance(buffer_ratio, bool)
        or not isinstance(buffer_ratio, (int, float))
        or not math.isfinite(buffer_ratio)
        or buffer_ratio < 0
    ):
        raise ValidationError(
            f"Buffer ratio must be a non-negative number, got {buffer_ratio!r}"
        )
    return buffer_ratio


def calculate_buffer(total_duration, buffer_ratio=DEFAULT_BUFFER_RATIO):
    """Schedule buffer in whole days: ratio of the duration, rounded up."""
    validate_buffer_ratio(buffer_ratio)
    # Exact arithmetic: 30 days at 10% must give 3, not 4
    return math.ceil(total_duration * Fraction(str(buffer_ratio)))


def run_cpm(tasks, strict=True, calendar=None, extra_edges=None):
    """
    Build the dependency graph and run the forward and backward passes.

    Returns:
        tuple: (graph, order, project_duration)
    """
    duration_fn = None
    if calendar is not None:
        duration_fn = lambda task: calendar.count_working_days(
            task.start_date, task.duration
        )

    graph = build_dependency_graph(
        tasks, strict=strict, extra_edges=extra_edges, duration_fn=duration_fn
    )
    order = schedule_order(graph)
    project_duration = forward_pass(graph, order)
    backward_pass(graph, project_duration, order)
    return graph, order, project_duration


def calculate_critical_path(
    project_id,
    tasks,
    buffer_ratio=DEFAULT_BUFFER_RATIO,
    strict=True,
    calendar=None,
    extra_edges=None,
    now=None,
):
    """
    Compute the critical path of a project with the two-pass Critical Path Method.

    Args:
        project_id: Project the tasks belong to
        tasks: Sequence (or dict) of Task objects; they are not modified
        buffer_ratio: Fraction of the total duration reserved as buffer
        strict: Reject dependencies on tasks outside the list
        calendar: Optional HolidayCalendar; when given, durations count
            working days only and the end date skips non-working days
        extra_edges: Additional (predecessor, successor) sequencing pairs
        now: Timestamp to record as `last_calculated`

    Returns:
        CriticalPath: Fresh result for the project

    Raises:
        ValidationError: Empty list, bad dates or dangling references
        CycleDetectedError: If the dependency graph has a cycle
    """
    graph, order, total_duration = run_cpm(
        tasks, strict=strict, calendar=calendar, extra_edges=extra_edges
    )

    start_date = min(graph.nodes[task_id]["task"].start_date for task_id in order)
    if calendar is not None:
        end_date = calendar.add_working_days(start_date, total_duration)
    else:
        end_date = start_date + timedelta(days=total_duration)

    critical_tasks = find_critical_path(graph, order)

    result = CriticalPath(
        project_id=project_id,
        tasks=critical_tasks,
        total_duration=total_duration,
        start_date=start_date,
        end_date=end_date,
        buffer=calculate_buffer(total_duration, buffer_ratio),
        last_calculated=now or datetime.now(),
        schedule=get_records(graph),
    )

    logger.info(
        "Project %s: %d of %d tasks critical, duration %d days",
        project_id,
        len(critical_tasks),
        len(order),
        total_duration,
    )
    return result


class CriticalPathCache:
    """
    Last computed CriticalPath per project.

    Each store overwrites the previous result and stamps it with a version
    one higher than the last version seen for that project.
    """

    def __init__(self):
        self._results = {}
        self._versions = {}
        self._lock = threading.Lock()

    def store(self, result: CriticalPath) -> CriticalPath:
        with self._lock:
            version = self._versions.get(result.project_id, 0) + 1
            self._versions[result.project_id] = version
            result.version = version
            self._results[result.project_id] = result
        return result

    def get(self, project_id, default=None):
        with self._lock:
            return self._results.get(project_id, default)

    def invalidate(self, project_id) -> bool:
        """Drop the cached result; the version counter keeps counting."""
        with self._lock:
            return self._results.pop(project_id, None) is not None

    def clear(self):
        with self._lock:
            self._results.clear()

    def __contains__(self, project_id):
        with self._lock:
            return project_id in self._results

    def __len__(self):
        with self._lock:
            return len(self._results)
