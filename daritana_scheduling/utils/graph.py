import logging

import networkx as nx

from daritana_scheduling.domain.critical_path import ScheduledTask
from daritana_scheduling.errors import CycleDetectedError, ValidationError

logger = logging.getLogger(__name__)


def _index_tasks(tasks):
    if isinstance(tasks, dict):
        tasks = list(tasks.values())
    else:
        tasks = list(tasks or [])

    if not tasks:
        raise ValidationError("Task list is empty")

    indexed = {}
    for task in tasks:
        if task.id in indexed:
            raise ValidationError(f"Duplicate task ID: {task.id}")
        indexed[task.id] = task
    return indexed


def build_dependency_graph(tasks, strict=True, extra_edges=None, duration_fn=None):
    """
    Build a directed graph representing task dependencies.

    Args:
        tasks: Sequence (or dict) of Task objects
        strict: Reject references to tasks outside the input; when False
            they are ignored
        extra_edges: (predecessor, successor) pairs sequencing tasks on a
            shared resource; an edge that would close a cycle is skipped
        duration_fn: Maps a task to its duration in days (Task.duration
            when omitted)

    Returns:
        nx.DiGraph whose nodes carry the `task` and a zero-initialised
        ScheduledTask `record`

    Raises:
        ValidationError: Empty input, duplicate IDs or (strict) dangling references
        CycleDetectedError: If the dependencies contain a cycle
    """
    indexed = _index_tasks(tasks)
    duration_fn = duration_fn or (lambda task: task.duration)

    G = nx.DiGraph()

    # Add task nodes
    for task_id, task in indexed.items():
        G.add_node(task_id, task=task, record=ScheduledTask(task, duration_fn(task)))

    # Add dependency edges from both directions of reference
    for task_id, task in indexed.items():
        links = [(dep_id, task_id) for dep_id in task.dependencies]
        links += [(task_id, succ_id) for succ_id in task.successors]
        for pred_id, succ_id in links:
            missing = pred_id if pred_id not in indexed else succ_id
            if pred_id in indexed and succ_id in indexed:
                G.add_edge(pred_id, succ_id, type="dependency")
            elif strict:
                raise ValidationError(
                    f"Task {task_id} references unknown task {missing}"
                )
            else:
                logger.debug("Ignoring dangling reference %s on task %s", missing, task_id)

    # Check for cycles
    if not nx.is_directed_acyclic_graph(G):
        cycle = [u for u, _ in nx.find_cycle(G)]
        raise CycleDetectedError(cycle + cycle[:1])

    for pred_id, succ_id in extra_edges or []:
        if pred_id not in G or succ_id not in G or G.has_edge(pred_id, succ_id):
            continue
        if nx.has_path(G, succ_id, pred_id):
            logger.debug("Skipping resource edge %s -> %s (would cycle)", pred_id, succ_id)
            continue
        G.add_edge(pred_id, succ_id, type="resource")

    return G


def schedule_order(graph):
    """Topological order; ties go to the earlier start date, then the lower ID."""

    def sort_key(task_id):
        return (graph.nodes[task_id]["task"].start_date, str(task_id))

    return list(nx.lexicographical_topological_sort(graph, key=sort_key))


def forward_pass(graph, order=None):
    """Calculate early start and early finish times"""
    order = order or schedule_order(graph)

    for task_id in order:
        record = graph.nodes[task_id]["record"]
        record.early_start = max(
            (graph.nodes[pred]["record"].early_finish for pred in graph.predecessors(task_id)),
            default=0,
        )
        record.early_finish = record.early_start + record.duration

    return max(graph.nodes[task_id]["record"].early_finish for task_id in order)


def backward_pass(graph, project_duration, order=None):
    """Calculate late start and late finish times"""
    order = order or schedule_order(graph)

    for task_id in reversed(order):
        record = graph.nodes[task_id]["record"]
        record.late_finish = min(
            (graph.nodes[succ]["record"].late_start for succ in graph.successors(task_id)),
            default=project_duration,
        )
        record.late_start = record.late_finish - record.duration

    return graph


def find_critical_path(graph, order=None):
    """Zero-float task IDs, in schedule order"""
    order = order or schedule_order(graph)
    return [task_id for task_id in order if graph.nodes[task_id]["record"].is_critical]


def get_records(graph):
    """Mapping of task ID to its ScheduledTask record."""
    return {task_id: data["record"] for task_id, data in graph.nodes(data=True)}
