from datetime import date

from cpmengine.domain.dependency import Dependency
from cpmengine.domain.task import Task
from cpmengine.services.conflicts import scan_conflicts, summarize_conflicts
from cpmengine.services.monte_carlo import MonteCarloSimulator
from cpmengine.services.priority import rank_tasks
from cpmengine.services.scheduler import CPMScheduler
from cpmengine.visualization.gantt import create_gantt_chart

PROJECT_ID = "website-relaunch"
START_DATE = date(2025, 4, 1)


def build_sample_tasks():
    """Tasks and dependencies of a small website relaunch project."""
    tasks = [
        Task(
            "T1",
            "Requirements",
            wbs="1.1",
            project_id=PROJECT_ID,
            start_date="2025-04-01",
            end_date="2025-04-08",
            duration=5,
            progress=100,
            status="completed",
            resource_id="analyst",
        ),
        Task(
            "T2",
            "Design",
            wbs="1.2",
            project_id=PROJECT_ID,
            start_date="2025-04-08",
            end_date="2025-04-18",
            duration=8,
            progress=40,
            status="in-progress",
            resource_id="designer",
            use_pert=True,
            optimistic_duration=6,
            most_likely_duration=8,
            pessimistic_duration=14,
        ),
        Task(
            "T3",
            "Backend",
            wbs="2.1",
            project_id=PROJECT_ID,
            start_date="2025-04-18",
            end_date="2025-05-09",
            duration=15,
            resource_id="developer",
            use_pert=True,
            optimistic_duration=10,
            most_likely_duration=15,
            pessimistic_duration=25,
            priority_business=5,
        ),
        Task(
            "T4",
            "Frontend",
            wbs="2.2",
            project_id=PROJECT_ID,
            start_date="2025-04-21",
            end_date="2025-05-05",
            duration=10,
            resource_id="developer",
            capacity_percent=60,
        ),
        Task(
            "T5",
            "Content migration",
            wbs="2.3",
            project_id=PROJECT_ID,
            start_date="2025-04-19",
            end_date="2025-04-25",
            duration=5,
            resource_id="editor",
        ),
        Task(
            "T6",
            "Launch",
            wbs="3.1",
            project_id=PROJECT_ID,
            start_date="2025-05-09",
            end_date="2025-05-12",
            duration=1,
            is_milestone=True,
            sla_critical=True,
            client_importance=5,
        ),
    ]
    dependencies = [
        Dependency("T1", "T2"),
        Dependency("T2", "T3"),
        Dependency("T2", "T4", "SS", 3),
        Dependency("T2", "T5"),
        Dependency("T3", "T6"),
        Dependency("T4", "T6", "FF", 0),
        Dependency("T5", "T6"),
    ]
    return tasks, dependencies


def create_sample_project(output="schedule_gantt.png", iterations=1000, seed=None):
    tasks, dependencies = build_sample_tasks()

    result = CPMScheduler().schedule(tasks, dependencies, START_DATE)
    simulation = MonteCarloSimulator(iterations=iterations, seed=seed).simulate(tasks)
    conflicts = scan_conflicts(PROJECT_ID, tasks, dependencies)

    if output:
        create_gantt_chart(result, output)

    print("Project Schedule Report")
    print("=======================")
    print(f"Project Start Date: {result.project_start.isoformat()}")
    print(f"Projected Completion: {result.project_end.isoformat()}")
    print(f"P50 / P80: {simulation.p50.isoformat()} / {simulation.p80.isoformat()}")

    print("\nTasks:")
    for task in result.tasks:
        marker = "*" if task.is_critical else " "
        print(
            f" {marker} {task.wbs:<5} {task.name:<20} "
            f"ES {task.early_start} EF {task.early_finish} "
            f"LS {task.late_start} LF {task.late_finish} slack {task.slack}"
        )

    print(f"\nCritical Path: {' -> '.join(result.critical_path)}")

    if result.bottlenecks:
        print("\nBottlenecks:")
        for bottleneck in result.bottlenecks:
            print(f"  {bottleneck.task_id}: {bottleneck.reason}")

    summary = summarize_conflicts(conflicts)
    print(f"\nConflicts: {summary['total']}")
    for conflict_type, count in sorted(summary["by_type"].items()):
        print(f"  {conflict_type}: {count}")

    print("\nPriorities:")
    for priority in rank_tasks(tasks, today=START_DATE):
        print(f"  {priority.task_id}: {priority.score}")

    return result, simulation, conflicts


if __name__ == "__main__":
    create_sample_project()
