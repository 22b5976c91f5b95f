import logging

import networkx as nx

from daritana_scheduling.domain.resource import (
    LevelingResult,
    ResourceConflict,
    ResourceConstraint,
)
from daritana_scheduling.errors import ValidationError
from daritana_scheduling.services.critical_path import run_cpm
from daritana_scheduling.utils.dates import day_span
from daritana_scheduling.utils.graph import get_records

logger = logging.getLogger(__name__)

# Tolerance for summed percentages such as 3 x 33.3
EPSILON = 1e-9


def _index_tasks(tasks):
    if isinstance(tasks, dict):
        return dict(tasks)
    return {task.id: task for task in tasks}


def check_resource_conflicts(tasks, constraints=None):
    """
    Find every interval where a resource is allocated beyond its capacity.

    Args:
        tasks: Sequence (or dict) of Task objects
        constraints: Optional ResourceConstraints overriding the default
            100% capacity of the resources they name

    Returns:
        list: ResourceConflict per contiguous interval with the same
        over-allocated set of tasks, ordered by resource then time
    """
    indexed = _index_tasks(tasks)
    by_resource = {c.resource_id: c for c in constraints or []}

    resource_ids = sorted(
        {resource_id for task in indexed.values() for resource_id in task.resources},
        key=str,
    )

    conflicts = []
    for resource_id in resource_ids:
        constraint = by_resource.get(resource_id) or ResourceConstraint(resource_id)
        windows = [
            (task.start_date, task.end_date, task.get_allocation(resource_id), task.id)
            for task in indexed.values()
            if task.get_allocation(resource_id) > 0 and task.end_date > task.start_date
        ]
        conflicts.extend(_sweep_conflicts(resource_id, windows, constraint))

    if conflicts:
        logger.info("Found %d resource conflict(s)", len(conflicts))
    return conflicts


def _sweep_conflicts(resource_id, windows, constraint):
    points = {moment for start, end, _, _ in windows for moment in (start, end)}
    points.update(constraint.boundaries())
    points = sorted(points)

    conflicts = []
    current = None
    for segment_start, segment_end in zip(points, points[1:]):
        active = [w for w in windows if w[0] <= segment_start < w[1]]
        total = sum(w[2] for w in active)
        capacity = constraint.capacity_at(segment_start)

        if not active or total - capacity <= EPSILON:
            current = None
            continue

        task_ids = [w[3] for w in active]
        if (
            current is not None
            and current.task_ids == task_ids
            and current.capacity == capacity
            and current.end_date == segment_start
        ):
            current.end_date = segment_end
            continue

        current = ResourceConflict(
            resource_id, task_ids, segment_start, segment_end, total, capacity
        )
        conflicts.append(current)

    return conflicts


def _placement_order(graph, task_ids, records):
    """
    Competing tasks, highest priority first: least float, then task
    priority, then earliest start. Dependency ancestors always come first.
    """

    def priority(task_id):
        task = graph.nodes[task_id]["task"]
        return (
            records[task_id].total_float,
            task.priority_rank,
            task.start_date,
            str(task_id),
        )

    precedence = nx.DiGraph()
    precedence.add_nodes_from(task_ids)
    members = set(task_ids)
    for task_id in task_ids:
        for descendant in nx.descendants(graph, task_id) & members:
            precedence.add_edge(task_id, descendant)

    return list(nx.lexicographical_topological_sort(precedence, key=priority))


def _fits(start, end, allocation, placed, constraint):
    # Usage and capacity are piecewise constant; checking where either can rise suffices
    moments = {start}
    moments.update(s for s, _, _, _ in placed if start < s < end)
    moments.update(b for b in constraint.boundaries() if start < b < end)

    for moment in moments:
        used = sum(a for s, e, a, _ in placed if s <= moment < e)
        if used + allocation - constraint.capacity_at(moment) > EPSILON:
            return False
    return True


def _follow_predecessors(order, graph, indexed, windows, pushed_by):
    """
    Move tasks so none starts before a shifted predecessor finishes.

    Only shifts propagate; dependencies the original dates already break
    are left alone. `pushed_by` records the predecessors behind each push.
    """
    shifted = {
        task_id for task_id in order if windows[task_id][0] != indexed[task_id].start_date
    }

    for task_id in order:
        start, end = windows[task_id]
        moved_preds = [
            pred
            for pred in graph.predecessors(task_id)
            if pred in shifted and windows[pred][1] > start
        ]
        if not moved_preds:
            continue

        latest = max(windows[pred][1] for pred in moved_preds)
        windows[task_id] = (latest, latest + (end - start))
        shifted.add(task_id)
        pushed_by[task_id] = moved_preds


def _follow_reason(pushed_by, task_id):
    return (
        "Follows leveled predecessor(s) "
        f"{', '.join(str(p) for p in pushed_by[task_id])}"
    )


def _level_constraint(constraint, indexed, graph, order, records, windows, pushed_by,
                      resource_edges):
    resource_id = constraint.resource_id
    competing = [task.id for task in constraint.competing_tasks(indexed)]
    placed = []
    results = []

    for task_id in _placement_order(graph, competing, records):
        # Ancestors are already placed, so this window is final before the search
        _follow_predecessors(order, graph, indexed, windows, pushed_by)

        task = indexed[task_id]
        start, end = windows[task_id]
        span = end - start
        allocation = task.get_allocation(resource_id)
        followed = start != task.start_date and task_id in pushed_by

        if allocation <= 0 or span.total_seconds() <= 0:
            reason = f"No demand on {resource_id}"
            leveled_start = start
        elif allocation - constraint.max_allocation > EPSILON:
            logger.warning(
                "Task %s needs %g%% of %s but only %g%% exists; leaving it in place",
                task_id,
                allocation,
                resource_id,
                constraint.max_allocation,
            )
            reason = (
                f"Allocation {allocation:g}% exceeds {resource_id} capacity "
                f"of {constraint.max_allocation:g}%; cannot be leveled"
            )
            leveled_start = start
            placed.append((start, end, allocation, task_id))
        else:
            candidates = {start}
            candidates.update(e for _, e, _, _ in placed if e > start)
            candidates.update(b for b in constraint.boundaries() if b > start)
            leveled_start = next(
                candidate
                for candidate in sorted(candidates)
                if _fits(candidate, candidate + span, allocation, placed, constraint)
            )

            blockers = [
                other_id
                for s, e, _, other_id in placed
                if s < end and start < e and e <= leveled_start
            ]
            if leveled_start == start:
                reason = (
                    _follow_reason(pushed_by, task_id)
                    if followed
                    else f"No over-allocation on {resource_id}"
                )
            elif blockers:
                reason = (
                    f"Delayed {day_span(start, leveled_start)} day(s) to avoid "
                    f"over-allocating {resource_id} with "
                    f"{', '.join(str(b) for b in blockers)}"
                )
            else:
                reason = (
                    f"Delayed {day_span(start, leveled_start)} day(s) until "
                    f"{resource_id} is available"
                )
            resource_edges.extend((blocker, task_id) for blocker in blockers)
            placed.append((leveled_start, leveled_start + span, allocation, task_id))

        windows[task_id] = (leveled_start, leveled_start + span)
        results.append(
            LevelingResult(
                task_id=task_id,
                resource_id=resource_id,
                original_start=task.start_date,
                original_end=task.end_date,
                leveled_start=leveled_start,
                leveled_end=leveled_start + span,
                reason=reason,
            )
        )

    return results


def _push_dependents(order, graph, indexed, windows, pushed_by, results):
    """Results for tasks whose final window comes from a predecessor push."""
    _follow_predecessors(order, graph, indexed, windows, pushed_by)

    last_window = {}
    for result in results:
        last_window[result.task_id] = (result.leveled_start, result.leveled_end)

    pushed = []
    for task_id in order:
        if task_id not in pushed_by or last_window.get(task_id) == windows[task_id]:
            continue
        task = indexed[task_id]
        start, end = windows[task_id]
        pushed.append(
            LevelingResult(
                task_id=task_id,
                resource_id=None,
                original_start=task.start_date,
                original_end=task.end_date,
                leveled_start=start,
                leveled_end=end,
                reason=_follow_reason(pushed_by, task_id),
            )
        )

    return pushed


def perform_resource_leveling(tasks, constraints, strict=True, calendar=None):
    """
    Resolve resource over-allocation by delaying lower-priority tasks.

    For each constraint the competing tasks are placed greedily in
    priority order, each at the earliest start (no earlier than its own)
    where it fits within the resource's capacity. Dependents of moved
    tasks are pushed after them before they are placed themselves, so a
    push never reopens an over-allocation on the resource being leveled.
    The critical path is then recomputed with the new resource sequencing
    to report each task's float.

    Args:
        tasks: Sequence (or dict) of Task objects; they are not modified
        constraints: ResourceConstraints to satisfy, applied in order
        strict: Reject unknown task IDs in dependencies and constraints
        calendar: Optional HolidayCalendar for working-day float

    Returns:
        list: LevelingResult per competing task per constraint, then one
        per pushed dependent; the last result for a task is its final window
    """
    indexed = _index_tasks(tasks)
    constraints = list(constraints or [])
    if not constraints:
        return []

    if strict:
        for constraint in constraints:
            unknown = [tid for tid in constraint.task_ids if tid not in indexed]
            if unknown:
                raise ValidationError(
                    f"Constraint on {constraint.resource_id} names unknown task(s): {unknown}"
                )

    graph, order, _ = run_cpm(indexed, strict=strict, calendar=calendar)
    records = get_records(graph)
    windows = {task_id: (task.start_date, task.end_date) for task_id, task in indexed.items()}

    results = []
    resource_edges = []
    pushed_by = {}
    for constraint in constraints:
        results.extend(
            _level_constraint(
                constraint, indexed, graph, order, records, windows, pushed_by,
                resource_edges,
            )
        )
    results.extend(_push_dependents(order, graph, indexed, windows, pushed_by, results))

    leveled_tasks = [
        task.copy_with_window(*windows[task_id])
        if windows[task_id] != (task.start_date, task.end_date)
        else task
        for task_id, task in indexed.items()
    ]
    leveled_graph, _, _ = run_cpm(
        leveled_tasks, strict=strict, calendar=calendar, extra_edges=resource_edges
    )
    for result in results:
        record = leveled_graph.nodes[result.task_id]["record"]
        result.total_float = record.total_float
        result.is_critical = record.is_critical

    logger.info(
        "Leveled %d constraint(s): %d task(s) moved",
        len(constraints),
        len({r.task_id for r in results if r.is_shifted}),
    )
    return results


def apply_leveling(tasks, results):
    """
    Return copies of the tasks moved to their final leveled windows.

    Tasks without a shifted result are returned unchanged, in input order.
    """
    final = {}
    for result in results:
        final[result.task_id] = result

    task_list = list(tasks.values()) if isinstance(tasks, dict) else list(tasks)
    leveled = []
    for task in task_list:
        result = final.get(task.id)
        if result is not None and result.is_shifted:
            leveled.append(task.copy_with_window(result.leveled_start, result.leveled_end))
        else:
            leveled.append(task)
    return leveled
