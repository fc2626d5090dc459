import logging
from collections import Counter

from cpmengine.domain.conflict import (
    ConflictFinding,
    ConflictStatus,
    ConflictType,
    Severity,
)
from cpmengine.utils.records import dependencies_from_records, tasks_from_records
from cpmengine.utils.working_days import daterange, is_working_day

logger = logging.getLogger(__name__)

FULL_CAPACITY = 100
HIGH_CAPACITY_THRESHOLD = 150

DAY_NAMES = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)


def dates_overlap(start1, end1, start2, end2):
    """Half-open interval overlap test."""
    return start1 < end2 and start2 < end1


def _dated(tasks, purpose):
    """Tasks with both dates; the others are reported and left out."""
    dated = []
    for task in tasks:
        if task.has_dates:
            dated.append(task)
        else:
            logger.warning("Task %s has no dates, skipped for %s", task.id, purpose)
    return dated


def _active_with_resource(tasks, purpose):
    return [
        task
        for task in _dated(tasks, purpose)
        if not task.is_completed and task.resource_id
    ]


def detect_resource_conflicts(project_id, tasks):
    """
    Find pairs of open tasks that use the same resource on overlapping dates.

    Args:
        project_id: Project the findings belong to
        tasks: Tasks to scan

    Returns:
        list: ConflictFinding objects of type resource
    """
    findings = []
    active = _active_with_resource(tasks, "resource conflicts")

    for i, task_a in enumerate(active):
        for task_b in active[i + 1 :]:
            if task_a.resource_id != task_b.resource_id:
                continue
            if not dates_overlap(
                task_a.start_date, task_a.end_date, task_b.start_date, task_b.end_date
            ):
                continue

            findings.append(
                ConflictFinding(
                    project_id=project_id,
                    task_a_id=task_a.id,
                    task_b_id=task_b.id,
                    conflict_type=ConflictType.RESOURCE,
                    severity=Severity.HIGH,
                    details={
                        "resource_id": task_a.resource_id,
                        "overlap_start": max(
                            task_a.start_date, task_b.start_date
                        ).isoformat(),
                        "overlap_end": min(task_a.end_date, task_b.end_date).isoformat(),
                    },
                )
            )

    return findings


def detect_capacity_conflicts(project_id, tasks):
    """
    Find days on which a resource is booked above 100% of its capacity.

    Every day from start to end (inclusive) of each open task counts. When the
    summed capacity of a resource on a day exceeds 100, every task active that
    day gets a finding: high above 150%, medium otherwise.
    """
    findings = []
    by_resource = {}
    for task in _active_with_resource(tasks, "capacity conflicts"):
        by_resource.setdefault(task.resource_id, []).append(task)

    for resource_id, resource_tasks in by_resource.items():
        by_day = {}
        for task in resource_tasks:
            for day in daterange(task.start_date, task.end_date):
                by_day.setdefault(day, []).append(task)

        for day in sorted(by_day):
            day_tasks = by_day[day]
            total = sum(t.effective_capacity for t in day_tasks)
            if total <= FULL_CAPACITY:
                continue

            severity = Severity.HIGH if total > HIGH_CAPACITY_THRESHOLD else Severity.MEDIUM
            for task in day_tasks:
                findings.append(
                    ConflictFinding(
                        project_id=project_id,
                        task_a_id=task.id,
                        conflict_type=ConflictType.CAPACITY,
                        severity=severity,
                        details={
                            "resource_id": resource_id,
                            "date": day.isoformat(),
                            "total_capacity": total,
                            "other_tasks": [
                                {
                                    "id": other.id,
                                    "name": other.name,
                                    "capacity": other.effective_capacity,
                                }
                                for other in day_tasks
                                if other.id != task.id
                            ],
                        },
                    )
                )

    return findings


def detect_dependency_conflicts(project_id, tasks, dependencies):
    """
    Find successors planned to start before their predecessor ends.

    The finding references the successor as task A and the predecessor as
    task B. ``days_violation`` is the number of calendar days of overlap.
    """
    findings = []
    by_id = {task.id: task for task in _dated(tasks, "dependency conflicts")}

    for dep in dependencies:
        predecessor = by_id.get(dep.predecessor_id)
        successor = by_id.get(dep.successor_id)
        if predecessor is None or successor is None:
            continue

        if successor.start_date < predecessor.end_date:
            findings.append(
                ConflictFinding(
                    project_id=project_id,
                    task_a_id=successor.id,
                    task_b_id=predecessor.id,
                    conflict_type=ConflictType.DEPENDENCY,
                    severity=Severity.HIGH,
                    details={
                        "dependency_type": dep.type_code,
                        "lag_days": dep.lag_days,
                        "predecessor_end": predecessor.end_date.isoformat(),
                        "successor_start": successor.start_date.isoformat(),
                        "days_violation": (
                            predecessor.end_date - successor.start_date
                        ).days,
                    },
                )
            )

    return findings


def detect_calendar_conflicts(project_id, tasks, is_working_day=is_working_day):
    """Find tasks that start on a non-working day."""
    findings = []
    for task in tasks:
        if task.start_date is None:
            logger.warning("Task %s has no start date, skipped for calendar conflicts", task.id)
            continue
        if is_working_day(task.start_date):
            continue

        day_name = DAY_NAMES[task.start_date.weekday()]
        findings.append(
            ConflictFinding(
                project_id=project_id,
                task_a_id=task.id,
                conflict_type=ConflictType.CALENDAR,
                severity=Severity.LOW,
                details={
                    "issue": f"Task starts on a non-working day ({day_name})",
                    "date": task.start_date.isoformat(),
                    "day": day_name,
                },
            )
        )
    return findings


def scan_conflicts(project_id, tasks, dependencies=(), is_working_day=is_working_day):
    """
    Run every conflict check and return the full set of findings.

    The result is meant to replace all previously stored findings of the
    project. A task may appear in several categories. Task and dependency
    records given as dicts are converted first; malformed ones are logged
    and skipped.
    """
    tasks, _ = tasks_from_records(tasks)
    dependencies, _ = dependencies_from_records(dependencies)
    findings = (
        detect_resource_conflicts(project_id, tasks)
        + detect_capacity_conflicts(project_id, tasks)
        + detect_dependency_conflicts(project_id, tasks, dependencies)
        + detect_calendar_conflicts(project_id, tasks, is_working_day)
    )
    logger.info("Project %s: %d conflicts detected", project_id, len(findings))
    return findings


def summarize_conflicts(findings):
    """
    Count findings by type, severity and status.

    Returns:
        dict: {"total": n, "by_type": {...}, "by_severity": {...}, "open": n}
    """
    return {
        "total": len(findings),
        "by_type": dict(Counter(f.conflict_type.value for f in findings)),
        "by_severity": dict(Counter(f.severity.value for f in findings)),
        "open": sum(1 for f in findings if f.status == ConflictStatus.OPEN),
    }


def detect_cross_project_overlaps(tasks, project_names=None):
    """
    Find open tasks of different projects whose dates overlap.

    Args:
        tasks: Tasks from several projects (``project_id`` set)
        project_names: Optional {project_id: name} used in the report

    Returns:
        list: One entry per task with overlaps, critical tasks first, then by
        number of overlapping tasks::

            {"task": Task, "project_name": str,
             "overlapping_tasks": [{"task": Task, "project_name": str, "days_overlap": int}]}
    """
    project_names = project_names or {}
    active = sorted(
        (t for t in _dated(tasks, "cross-project analysis") if not t.is_completed),
        key=lambda t: t.start_date,
    )

    report = []
    for i, task_a in enumerate(active):
        overlapping = []
        for task_b in active[i + 1 :]:
            if task_a.project_id == task_b.project_id:
                continue
            if not dates_overlap(
                task_a.start_date, task_a.end_date, task_b.start_date, task_b.end_date
            ):
                continue
            overlap_start = max(task_a.start_date, task_b.start_date)
            overlap_end = min(task_a.end_date, task_b.end_date)
            overlapping.append(
                {
                    "task": task_b,
                    "project_name": project_names.get(task_b.project_id, task_b.project_id),
                    "days_overlap": (overlap_end - overlap_start).days,
                }
            )

        if overlapping:
            report.append(
                {
                    "task": task_a,
                    "project_name": project_names.get(task_a.project_id, task_a.project_id),
                    "overlapping_tasks": overlapping,
                }
            )

    report.sort(
        key=lambda entry: (not entry["task"].is_critical, -len(entry["overlapping_tasks"]))
    )
    return report
