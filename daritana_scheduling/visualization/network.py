import logging

import matplotlib.pyplot as plt
import networkx as nx
from matplotlib.lines import Line2D
from matplotlib.patches import Patch

from daritana_scheduling.utils.graph import build_dependency_graph

logger = logging.getLogger(__name__)


def _layered_layout(G, schedule):
    """Columns by early start so the network reads left to right in time."""
    for node in G.nodes():
        G.nodes[node]["layer"] = schedule[node].early_start if node in schedule else 0
    return nx.multipartite_layout(G, subset_key="layer")


def create_network_diagram(scheduler, project_id, filename=None, show=True, layout="layered"):
    """
    Visualize the task dependency network with the critical path highlighted.

    Args:
        scheduler: The ProjectScheduler instance
        project_id: Project to draw
        filename: Optional filename to save the diagram
        show: Whether to display the diagram (default: True)
        layout: Network layout type ('layered', 'spring', 'circular' or 'shell')

    Returns:
        The matplotlib figure, or None when the project has no tasks
    """
    tasks = scheduler.get_tasks(project_id)
    if not tasks:
        logger.warning("Project %s has no tasks to draw", project_id)
        return None

    critical_path = scheduler.ensure_critical_path(project_id)
    schedule = critical_path.schedule

    G = build_dependency_graph(tasks, strict=scheduler.strict_dependencies)

    fig = plt.figure(figsize=(12, 8))

    # Node colours by criticality
    node_colors = [
        "red" if critical_path.is_critical(node) else "skyblue" for node in G.nodes()
    ]

    # Edge colours: critical when both ends are critical and the link is tight
    edge_colors = []
    edge_widths = []
    for u, v in G.edges():
        is_critical_edge = (
            critical_path.is_critical(u)
            and critical_path.is_critical(v)
            and schedule[u].early_finish == schedule[v].early_start
        )
        edge_colors.append("red" if is_critical_edge else "gray")
        edge_widths.append(2.5 if is_critical_edge else 1.0)

    # Choose layout algorithm
    if layout == "spring":
        pos = nx.spring_layout(G, seed=42)
    elif layout == "circular":
        pos = nx.circular_layout(G)
    elif layout == "shell":
        pos = nx.shell_layout(G)
    else:
        pos = _layered_layout(G, schedule)

    nx.draw_networkx_nodes(
        G, pos, node_color=node_colors, node_size=700, edgecolors="black"
    )
    nx.draw_networkx_edges(
        G,
        pos,
        edge_color=edge_colors,
        width=edge_widths,
        arrowsize=15,
        arrowstyle="-|>",
        node_size=700,
    )

    # Label each node with its CPM figures
    labels = {}
    for node in G.nodes():
        record = schedule.get(node)
        if record is None:
            labels[node] = str(node)
            continue
        labels[node] = (
            f"{node}\nES {record.early_start} EF {record.early_finish}"
            f"\nfloat {record.total_float}"
        )

    bbox_props = dict(boxstyle="round,pad=0.3", fc="white", ec="gray", alpha=0.8)
    for node, label in labels.items():
        x, y = pos[node]
        plt.text(x, y - 0.08, label, ha="center", va="top", bbox=bbox_props, fontsize=8)

    legend_elements = [
        Patch(facecolor="red", edgecolor="black", label="Critical Task"),
        Patch(facecolor="skyblue", edgecolor="black", label="Task with Float"),
        Line2D([0], [0], color="red", lw=2.5, label="Critical Path"),
    ]
    plt.legend(handles=legend_elements, loc="best", fontsize=10)

    plt.title(
        f"Project {project_id} Network ({critical_path.total_duration} days)",
        fontsize=14,
    )
    plt.axis("off")
    plt.tight_layout()

    # Save if filename provided
    if filename:
        fig.savefig(filename, dpi=150, bbox_inches="tight")
        logger.info("Network diagram saved to %s", filename)

    # Show if requested
    if show:
        plt.show()

    return fig
