from datetime import datetime

from daritana_scheduling.domain.resource import ResourceConstraint
from daritana_scheduling.domain.task import Task
from daritana_scheduling.services.scheduler import ProjectScheduler
from daritana_scheduling.visualization.gantt import create_gantt_chart

PROJECT_ID = "bungalow-01"


def create_sample_tasks():
    return [
        Task("T1", "Site Clearance & Hoarding", datetime(2025, 4, 1), datetime(2025, 4, 8),
             resources={"crew-a": 100}, category="site_work"),
        Task("T2", "Piling", datetime(2025, 4, 8), datetime(2025, 4, 22),
             dependencies=["T1"], resources={"piling-rig": 100}, category="construction"),
        Task("T3", "Pile Caps & Ground Beams", datetime(2025, 4, 22), datetime(2025, 5, 6),
             dependencies=["T2"], resources={"crew-a": 100}, category="construction"),
        Task("T4", "M&E Sleeve Prefabrication", datetime(2025, 4, 2), datetime(2025, 4, 16),
             resources={"mep-sub": 100, "crew-a": 50}, category="procurement"),
        Task("T5", "Superstructure", datetime(2025, 5, 6), datetime(2025, 6, 17),
             dependencies=["T3", "T4"], resources={"crew-a": 100}, category="construction",
             priority="high"),
        Task("T6", "Roofing", datetime(2025, 6, 17), datetime(2025, 7, 1),
             dependencies=["T5"], resources=["roofing-sub"], category="construction"),
        Task("T7", "Facade Design Approval", datetime(2025, 4, 1), datetime(2025, 5, 20),
             successors=["T8"], category="approval", progress=40),
        Task("T8", "Facade Installation", datetime(2025, 6, 17), datetime(2025, 7, 8),
             dependencies=["T5"], resources=["facade-sub"], category="construction"),
        Task("T9", "Practical Completion Inspection", datetime(2025, 7, 8), datetime(2025, 7, 10),
             dependencies=["T6", "T8"], category="client"),
    ]


def create_sample_project(output=None, show=False):
    # Create the scheduler
    scheduler = ProjectScheduler()
    scheduler.set_tasks(PROJECT_ID, create_sample_tasks())

    # Run the critical path calculation
    critical_path = scheduler.calculate_critical_path(PROJECT_ID)
    scheduler.generate_milestones(PROJECT_ID, "construction", today=datetime(2025, 4, 1))

    constraints = [ResourceConstraint("crew-a", max_allocation=100)]
    conflicts = scheduler.check_resource_conflicts(PROJECT_ID, constraints)
    leveling = scheduler.perform_resource_leveling(PROJECT_ID, constraints)

    # Create visualization
    if output:
        create_gantt_chart(scheduler, PROJECT_ID, filename=output, show=show)

    # Print report
    print("Project Schedule Report")
    print("=======================")
    print(f"Project Start Date: {critical_path.start_date:%Y-%m-%d}")
    print(f"Project End Date: {critical_path.end_date:%Y-%m-%d}")
    print(f"Project Duration: {critical_path.total_duration} days "
          f"(+{critical_path.buffer} days buffer)")

    print("\nCritical Path:")
    for task_id in critical_path.tasks:
        record = critical_path.schedule[task_id]
        print(f"  {task_id}: {record.task.title} - Duration: {record.duration} days")

    print("\nFloat:")
    for task_id, record in critical_path.schedule.items():
        print(f"  {task_id}: ES {record.early_start}, LS {record.late_start}, "
              f"float {record.total_float}")

    print("\nResource Conflicts:")
    for conflict in conflicts:
        print(f"  {conflict.resource_id}: {', '.join(conflict.task_ids)} "
              f"{conflict.start_date:%Y-%m-%d}..{conflict.end_date:%Y-%m-%d} "
              f"({conflict.total_allocation:g}% of {conflict.capacity:g}%)")

    print("\nLeveling Proposals:")
    for result in leveling:
        if result.is_shifted:
            print(f"  {result.task_id}: {result.leveled_start:%Y-%m-%d} - {result.reason}")

    print("\nMilestones:")
    for milestone in scheduler.milestones[PROJECT_ID]:
        payment = " [payment]" if milestone.payment_linked else ""
        print(f"  {milestone.date:%Y-%m-%d} {milestone.name}{payment}")

    return scheduler


if __name__ == "__main__":
    create_sample_project("daritana_gantt_example.png")
