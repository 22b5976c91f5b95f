"""
Project file loading.

A project file is YAML of the form::

    project:
      id: bungalow-01
      name: Bungalow at Bukit Damansara
      phase: construction
    tasks:
      - id: T1
        title: Site clearance
        start: 2025-04-01
        end: 2025-04-08
        resources: {crew-a: 100}
      - id: T2
        title: Piling
        start: 2025-04-08
        end: 2025-04-22
        dependencies: [T1]
    constraints:
      - resource: crew-a
        max_allocation: 100
        tasks: [T1, T3]
        availability:
          - {start: 2025-04-28, end: 2025-05-02, availability: 50}
    holidays:
      - {date: 2025-04-18, name: Company Retreat, type: company}
"""

from contextlib import contextmanager
from datetime import date, datetime

import yaml

from daritana_scheduling.domain.calendar import Holiday
from daritana_scheduling.domain.resource import AvailabilityPeriod, ResourceConstraint
from daritana_scheduling.domain.task import Task
from daritana_scheduling.errors import ValidationError

TASK_KEYS = {
    "id",
    "title",
    "start",
    "end",
    "description",
    "dependencies",
    "successors",
    "resources",
    "status",
    "priority",
    "progress",
    "category",
    "actual_start",
    "actual_end",
}
CONSTRAINT_KEYS = {"resource", "tasks", "max_allocation", "availability"}


class ProjectFile:
    """Everything read from one project file."""

    def __init__(self, project_id, name, phase, tasks, constraints, holidays):
        self.project_id = project_id
        self.name = name
        self.phase = phase
        self.tasks = tasks
        self.constraints = constraints
        self.holidays = holidays


def load_project(path):
    """Load a project file from disk (no scheduling)."""
    with open(path, "r", encoding="utf-8") as fh:
        raw = yaml.safe_load(fh)
    return parse_project(raw)


def parse_project(data):
    """Build a ProjectFile from already-parsed YAML data."""
    if not isinstance(data, dict):
        raise ValidationError("root: expected mapping at top level")

    project = data.get("project")
    if not isinstance(project, dict):
        raise ValidationError("root: missing required mapping 'project'")
    project_id = _require(project, "id", "project")
    name = project.get("name", str(project_id))
    phase = project.get("phase")

    tasks_raw = _list(data, "tasks", "root", required=True)
    tasks = [
        _parse_task(item, f"tasks[{i}]", project_id) for i, item in enumerate(tasks_raw)
    ]

    constraints = [
        _parse_constraint(item, f"constraints[{i}]")
        for i, item in enumerate(_list(data, "constraints", "root"))
    ]
    holidays = [
        _parse_holiday(item, f"holidays[{i}]")
        for i, item in enumerate(_list(data, "holidays", "root"))
    ]

    return ProjectFile(project_id, name, phase, tasks, constraints, holidays)


def _require(mapping, key, path):
    value = mapping.get(key)
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError(f"{path}: missing required field '{key}'")
    return value


def _list(mapping, key, path, required=False):
    value = mapping.get(key)
    if value is None:
        if required:
            raise ValidationError(f"{path}: missing required field '{key}'")
        return []
    if not isinstance(value, list):
        raise ValidationError(f"{path}.{key}: expected list")
    return value


def _date(mapping, key, path, required=True):
    value = mapping.get(key)
    if value is None and not required:
        return None
    if isinstance(value, (date, datetime)):
        return value
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value)
        except ValueError:
            pass
    raise ValidationError(f"{path}.{key}: expected a YYYY-MM-DD date, got {value!r}")


def _check_keys(mapping, allowed, path):
    if not isinstance(mapping, dict):
        raise ValidationError(f"{path}: expected mapping")
    extra = set(mapping) - allowed
    if extra:
        raise ValidationError(f"{path}: unknown field(s) {sorted(extra)}")


@contextmanager
def _located(path):
    """Prefix domain validation errors with the YAML path they came from."""
    try:
        yield
    except ValidationError as exc:
        if str(exc).startswith(path):
            raise
        raise ValidationError(f"{path}: {exc}") from exc


def _parse_task(data, path, project_id):
    _check_keys(data, TASK_KEYS, path)
    with _located(path):
        return Task(
            id=_require(data, "id", path),
            title=_require(data, "title", path),
            start_date=_date(data, "start", path),
            end_date=_date(data, "end", path),
            project_id=project_id,
            dependencies=data.get("dependencies"),
            successors=data.get("successors"),
            resources=data.get("resources"),
            description=data.get("description", ""),
            status=data.get("status", "pending"),
            priority=data.get("priority", "medium"),
            progress=data.get("progress", 0),
            category=data.get("category"),
            actual_start_date=_date(data, "actual_start", path, required=False),
            actual_end_date=_date(data, "actual_end", path, required=False),
        )


def _parse_constraint(data, path):
    _check_keys(data, CONSTRAINT_KEYS, path)
    periods = []
    for i, item in enumerate(_list(data, "availability", path)):
        item_path = f"{path}.availability[{i}]"
        _check_keys(item, {"start", "end", "availability"}, item_path)
        with _located(item_path):
            periods.append(
                AvailabilityPeriod(
                    _date(item, "start", item_path),
                    _date(item, "end", item_path),
                    _require(item, "availability", item_path),
                )
            )

    with _located(path):
        return ResourceConstraint(
            resource_id=_require(data, "resource", path),
            task_ids=data.get("tasks"),
            max_allocation=data.get("max_allocation", 100),
            availability=periods,
        )


def _parse_holiday(data, path):
    _check_keys(data, {"date", "name", "type"}, path)
    with _located(path):
        return Holiday(
            _date(data, "date", path),
            _require(data, "name", path),
            data.get("type", "federal"),
        )
