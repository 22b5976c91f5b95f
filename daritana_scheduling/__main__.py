"""
Daritana Scheduling
===================

Command-line critical path report for a YAML project file.
"""

import argparse
import logging
import sys

import yaml

from daritana_scheduling.errors import SchedulingError
from daritana_scheduling.services.milestones import PROJECT_PHASES
from daritana_scheduling.services.scheduler import ProjectScheduler
from daritana_scheduling.utils.loader import load_project

logger = logging.getLogger("daritana_scheduling")


def configure_logging(level="WARNING"):
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )
    # Keep matplotlib's font discovery chatter out of debug runs
    logging.getLogger("matplotlib").setLevel(logging.WARNING)


def _build_parser():
    parser = argparse.ArgumentParser(
        prog="python -m daritana_scheduling",
        description="Critical path scheduling for Daritana projects",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("project", nargs="?", help="Path to project YAML")
    parser.add_argument(
        "--example", action="store_true", help="Run the example project"
    )
    parser.add_argument(
        "--level", action="store_true", help="Propose resource leveling"
    )
    parser.add_argument(
        "--milestones",
        choices=PROJECT_PHASES,
        help="Generate milestones for this phase (defaults to the file's phase)",
    )
    parser.add_argument(
        "--working-calendar",
        action="store_true",
        help="Count durations in working days, skipping weekends and holidays",
    )
    parser.add_argument("--gantt", help="Output filename for the Gantt chart")
    parser.add_argument("--resources", help="Output filename for the resource chart")
    parser.add_argument("--network", help="Output filename for the network diagram")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity",
    )
    return parser


def _print_report(scheduler, project, conflicts, leveling, milestones):
    critical_path = scheduler.get_critical_path(project.project_id)

    print(f"Project: {project.name} ({project.project_id})")
    print(f"  Start:    {critical_path.start_date:%Y-%m-%d}")
    print(f"  End:      {critical_path.end_date:%Y-%m-%d}")
    print(f"  Duration: {critical_path.total_duration} days "
          f"(+{critical_path.buffer} days buffer)")
    print(f"  Critical: {' -> '.join(str(t) for t in critical_path.tasks)}")

    print("\nTask      ES    EF    LS    LF  Float")
    for task_id, record in critical_path.schedule.items():
        flag = " *" if record.is_critical else ""
        print(f"{str(task_id):<8}{record.early_start:>4}{record.early_finish:>6}"
              f"{record.late_start:>6}{record.late_finish:>6}{record.total_float:>7}{flag}")

    if conflicts:
        print("\nResource conflicts:")
        for conflict in conflicts:
            print(f"  {conflict.resource_id}: {', '.join(str(t) for t in conflict.task_ids)} "
                  f"{conflict.start_date:%Y-%m-%d}..{conflict.end_date:%Y-%m-%d} "
                  f"{conflict.total_allocation:g}% > {conflict.capacity:g}%")

    if leveling:
        print("\nLeveling proposals:")
        for result in leveling:
            if result.is_shifted:
                print(f"  {result.task_id}: {result.leveled_start:%Y-%m-%d} -> "
                      f"{result.leveled_end:%Y-%m-%d} (float {result.total_float}) "
                      f"{result.reason}")

    if milestones:
        print("\nMilestones:")
        for milestone in milestones:
            payment = " [payment]" if milestone.payment_linked else ""
            print(f"  {milestone.date:%Y-%m-%d} {milestone.name}{payment}")


def _render_charts(args, scheduler, project):
    # Imported lazily so report-only runs never load matplotlib
    from daritana_scheduling.visualization.gantt import (
        create_gantt_chart,
        create_resource_gantt,
    )
    from daritana_scheduling.visualization.network import create_network_diagram

    if args.gantt:
        create_gantt_chart(scheduler, project.project_id, filename=args.gantt, show=False)
    if args.resources:
        create_resource_gantt(
            scheduler,
            project.project_id,
            constraints=project.constraints,
            filename=args.resources,
            show=False,
        )
    if args.network:
        create_network_diagram(
            scheduler, project.project_id, filename=args.network, show=False
        )


def main(argv=None):
    parser = _build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    if args.example:
        from daritana_scheduling.examples.simple_project import create_sample_project

        print("Running example project...")
        create_sample_project(args.gantt)
        return 0

    if not args.project:
        parser.print_help()
        return 1

    try:
        project = load_project(args.project)
    except FileNotFoundError:
        print(f"Error: project file not found: {args.project}", file=sys.stderr)
        return 1
    except (yaml.YAMLError, SchedulingError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2
    except Exception as exc:  # Unexpected
        logger.debug("Project load failed", exc_info=True)
        print(f"Unexpected error while loading project: {exc}", file=sys.stderr)
        return 1

    scheduler = ProjectScheduler(use_working_calendar=args.working_calendar)
    for holiday in project.holidays:
        scheduler.add_holiday(holiday)
    scheduler.set_tasks(project.project_id, project.tasks)

    try:
        result = scheduler.schedule(project.project_id, project.constraints)
        leveling = []
        if args.level and project.constraints:
            leveling = scheduler.perform_resource_leveling(
                project.project_id, project.constraints
            )
    except SchedulingError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2
    except Exception as exc:
        logger.debug("Scheduling failed", exc_info=True)
        print(f"Unexpected error while scheduling: {exc}", file=sys.stderr)
        return 1

    phase = args.milestones or project.phase
    milestones = scheduler.generate_milestones(project.project_id, phase) if phase else []

    _print_report(scheduler, project, result["conflicts"], leveling, milestones)

    if args.gantt or args.resources or args.network:
        try:
            _render_charts(args, scheduler, project)
        except Exception as exc:
            logger.debug("Rendering failed", exc_info=True)
            print(f"Unexpected error while rendering: {exc}", file=sys.stderr)
            return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
