import logging
from datetime import timedelta

import matplotlib.dates as mdates
import matplotlib.pyplot as plt
from matplotlib.lines import Line2D
from matplotlib.patches import Patch

from daritana_scheduling.utils.dates import as_datetime, iter_days

logger = logging.getLogger(__name__)

# Tick locator and label format per Gantt view mode
VIEW_MODE_AXES = {
    "day": (lambda: mdates.DayLocator(), "%d %b"),
    "week": (lambda: mdates.WeekdayLocator(byweekday=mdates.MO), "%d %b"),
    "month": (lambda: mdates.MonthLocator(), "%b %Y"),
    "quarter": (lambda: mdates.MonthLocator(bymonth=(1, 4, 7, 10)), "%b %Y"),
    "year": (lambda: mdates.YearLocator(), "%Y"),
}


def _format_date_axis(ax, view_mode):
    locator_factory, fmt = VIEW_MODE_AXES.get(view_mode, VIEW_MODE_AXES["week"])
    ax.xaxis.set_major_locator(locator_factory())
    ax.xaxis.set_major_formatter(mdates.DateFormatter(fmt))
    ax.figure.autofmt_xdate(rotation=45)


def _shade_non_working_time(ax, scheduler, first_day, last_day):
    """Grey out holidays, plus weekends/off days when viewing by day."""
    config = scheduler.gantt_config
    span = (last_day - first_day).days + 1
    holiday_dates = {holiday.date for holiday in config.holidays}

    for day in iter_days(first_day, span):
        off_day = config.view_mode == "day" and day.isoweekday() not in config.working_days
        if day in holiday_dates or off_day:
            left = mdates.date2num(as_datetime(day))
            ax.axvspan(
                left,
                left + 1,
                color="lightgray" if day in holiday_dates else "whitesmoke",
                alpha=0.6,
                zorder=0,
            )


def _save_and_show(fig, filename, show):
    plt.tight_layout()

    # Save if filename provided
    if filename:
        fig.savefig(filename, dpi=150, bbox_inches="tight")
        logger.info("Chart saved to %s", filename)

    # Show if requested
    if show:
        plt.show()

    return fig


def create_gantt_chart(scheduler, project_id, filename=None, show=True):
    """
    Create a Gantt chart of a project's schedule following the scheduler's
    GanttConfig.

    Args:
        scheduler: The ProjectScheduler instance
        project_id: Project to draw
        filename: Optional filename to save the chart
        show: Whether to display the chart (default: True)

    Returns:
        The matplotlib figure, or None when the project has no tasks
    """
    config = scheduler.gantt_config
    tasks = scheduler.get_tasks(project_id)
    if not tasks:
        logger.warning("Project %s has no tasks to chart", project_id)
        return None

    critical_path = scheduler.ensure_critical_path(project_id)
    milestones = (
        scheduler.milestones.get(project_id, []) if config.show_milestones else []
    )

    fig, ax = plt.subplots(figsize=(14, 8))

    # Sort tasks by start date
    sorted_tasks = sorted(tasks, key=lambda t: (t.start_date, str(t.id)))
    rows = {task.id: i for i, task in enumerate(sorted_tasks)}
    by_id = {task.id: task for task in sorted_tasks}

    # Plot each task
    for i, task in enumerate(sorted_tasks):
        left = mdates.date2num(task.start_date)
        width = (task.end_date - task.start_date).total_seconds() / 86400
        if width <= 0:
            width = 0.5  # Keep zero-length tasks visible

        is_critical = config.show_critical_path and critical_path.is_critical(task.id)
        color = "red" if is_critical else "steelblue"
        ax.barh(i, width, left=left, color=color, alpha=0.6, edgecolor="black")

        if config.show_progress and task.progress > 0:
            ax.barh(
                i,
                width * task.progress / 100,
                left=left,
                height=0.35,
                color="green",
                alpha=0.9,
            )

        label = f"{task.id}: {task.title}"
        if config.show_resource_names and task.resources:
            label += f" [{', '.join(str(r) for r in task.resources)}]"
        ax.text(left + width / 2, i, label, ha="center", va="center", fontsize=8)

    # Draw finish-to-start arrows
    if config.show_dependencies:
        for task in sorted_tasks:
            for dep_id in task.dependencies:
                if dep_id not in by_id:
                    continue
                ax.annotate(
                    "",
                    xy=(mdates.date2num(task.start_date), rows[task.id]),
                    xytext=(mdates.date2num(by_id[dep_id].end_date), rows[dep_id]),
                    arrowprops=dict(arrowstyle="->", color="dimgray", lw=1),
                )

    # Milestones go below the tasks as diamonds
    for offset, milestone in enumerate(milestones):
        row = len(sorted_tasks) + offset
        ax.scatter(
            mdates.date2num(milestone.date),
            row,
            marker="D",
            s=90,
            color="gold" if milestone.payment_linked else "mediumpurple",
            edgecolors="black",
            zorder=3,
        )
        ax.text(
            mdates.date2num(milestone.date) + 1,
            row,
            milestone.name,
            va="center",
            fontsize=8,
        )

    first_day = min(task.start_date for task in sorted_tasks)
    last_day = max(
        [task.end_date for task in sorted_tasks] + [m.date for m in milestones]
    )
    _shade_non_working_time(ax, scheduler, first_day, last_day)

    # Set up the axes
    ax.set_yticks(range(len(sorted_tasks) + len(milestones)))
    ax.set_yticklabels(
        [task.title for task in sorted_tasks] + [m.name for m in milestones]
    )
    ax.invert_yaxis()
    ax.set_xlim(
        mdates.date2num(first_day - timedelta(days=1)),
        mdates.date2num(last_day + timedelta(days=2)),
    )
    _format_date_axis(ax, config.view_mode)

    ax.set_title(
        f"Project {project_id} Schedule "
        f"({critical_path.total_duration} days + {critical_path.buffer} days buffer)"
    )
    ax.grid(axis="x", alpha=0.3)

    legend_elements = [
        Patch(facecolor="red", alpha=0.6, label="Critical Task"),
        Patch(facecolor="steelblue", alpha=0.6, label="Task with Float"),
        Patch(facecolor="green", alpha=0.9, label="Progress"),
        Patch(facecolor="lightgray", alpha=0.6, label="Holiday"),
        Line2D(
            [0], [0], marker="D", color="w", markerfacecolor="gold",
            markeredgecolor="black", label="Payment Milestone",
        ),
    ]
    ax.legend(handles=legend_elements, loc="upper right", fontsize=8)

    return _save_and_show(fig, filename, show)


def create_resource_gantt(scheduler, project_id, constraints=None, filename=None, show=True):
    """
    Create a Gantt chart with one row per resource, hatching over-allocation.

    Args:
        scheduler: The ProjectScheduler instance
        project_id: Project to draw
        constraints: Optional ResourceConstraints used to find conflicts
        filename: Optional filename to save the chart
        show: Whether to display the chart (default: True)

    Returns:
        The matplotlib figure, or None when no task uses a resource
    """
    tasks = scheduler.get_tasks(project_id)
    all_resources = sorted(
        {resource for task in tasks for resource in task.resources}, key=str
    )
    if not all_resources:
        logger.warning("Project %s has no resource assignments to chart", project_id)
        return None

    resource_to_row = {resource: i for i, resource in enumerate(all_resources)}
    conflicts = scheduler.check_resource_conflicts(project_id, constraints)

    fig, ax = plt.subplots(figsize=(14, 6))

    for task in tasks:
        left = mdates.date2num(task.start_date)
        width = max((task.end_date - task.start_date).total_seconds() / 86400, 0.5)
        for resource in task.resources:
            allocation = task.get_allocation(resource)
            ax.barh(
                resource_to_row[resource],
                width,
                left=left,
                height=0.6 * min(allocation, 100) / 100,
                color="steelblue",
                alpha=0.5,
                edgecolor="black",
            )
            ax.text(
                left + width / 2,
                resource_to_row[resource],
                f"{task.id} ({allocation:g}%)",
                ha="center",
                va="center",
                fontsize=8,
            )

    for conflict in conflicts:
        left = mdates.date2num(conflict.start_date)
        width = (conflict.end_date - conflict.start_date).total_seconds() / 86400
        ax.barh(
            resource_to_row[conflict.resource_id],
            width,
            left=left,
            height=0.8,
            color="none",
            edgecolor="red",
            hatch="///",
        )

    ax.set_yticks(range(len(all_resources)))
    ax.set_yticklabels([str(resource) for resource in all_resources])
    _format_date_axis(ax, scheduler.gantt_config.view_mode)
    ax.set_title(f"Resource Allocation for Project {project_id}")
    ax.grid(axis="x", alpha=0.3)

    legend_elements = [
        Patch(facecolor="steelblue", alpha=0.5, label="Assignment"),
        Patch(facecolor="none", edgecolor="red", hatch="///", label="Over-allocation"),
    ]
    ax.legend(handles=legend_elements, loc="upper right")

    return _save_and_show(fig, filename, show)
