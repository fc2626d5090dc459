"""
Conversion of plain records (dicts as delivered by the data-access layer)
into domain objects.
"""

import logging

from cpmengine.domain.dependency import Dependency, DependencyError
from cpmengine.domain.task import Task, TaskError, TaskStatus
from cpmengine.utils.working_days import (
    add_working_days,
    is_working_day,
    to_date,
    working_days_between,
)

logger = logging.getLogger(__name__)

TASK_FIELDS = (
    "wbs",
    "project_id",
    "parent_id",
    "use_pert",
    "optimistic_duration",
    "most_likely_duration",
    "pessimistic_duration",
    "resource_id",
    "capacity_percent",
    "priority_business",
    "sla_critical",
    "is_milestone",
    "client_importance",
    "is_critical",
)


def complete_schedule(start_date=None, end_date=None, duration=None, is_working_day=is_working_day):
    """
    Fill in the missing value of (start, end, duration) from the other two.

    Args:
        start_date: Start date or None
        end_date: End date or None
        duration: Duration in working days or None
        is_working_day: Predicate used for the working day arithmetic

    Returns:
        tuple: (start_date, end_date, duration)

    Raises:
        ValueError: If fewer than two of the three values are given
    """
    start = to_date(start_date) if start_date else None
    end = to_date(end_date) if end_date else None
    provided = sum(value is not None for value in (start, end, duration))

    if provided < 2:
        raise ValueError(
            "At least two of start date, end date and duration are required"
        )

    if start is not None and end is not None:
        derived = working_days_between(start, end, is_working_day)
        return start, end, max(1, derived)

    duration = int(duration)
    if start is not None:
        return start, add_working_days(start, duration, is_working_day), duration

    return add_working_days(end, -duration, is_working_day), end, duration


def infer_status(progress):
    """Derive a task status from its progress percentage."""
    if progress >= 100:
        return TaskStatus.COMPLETED
    if progress > 0:
        return TaskStatus.IN_PROGRESS
    return TaskStatus.NOT_STARTED


def task_from_record(record):
    """
    Build a Task from a record.

    Requires ``id`` and ``name`` plus two of ``start_date``, ``end_date`` and
    ``duration``. A missing status is inferred from ``progress``.

    Raises:
        TaskError: If the record is not a valid task
    """
    if not isinstance(record, dict):
        raise TaskError(f"Task record must be a mapping, got {type(record).__name__}")

    try:
        start, end, duration = complete_schedule(
            record.get("start_date"), record.get("end_date"), record.get("duration")
        )
    except (ValueError, TypeError) as e:
        raise TaskError(f"Task {record.get('id')}: {e}")

    progress = record.get("progress") or 0
    if isinstance(progress, bool) or not isinstance(progress, (int, float)):
        raise TaskError(f"Task {record.get('id')}: progress must be a number")
    status = record.get("status")
    if not status:
        status = infer_status(progress)

    kwargs = {field: record[field] for field in TASK_FIELDS if record.get(field) is not None}

    return Task(
        id=record.get("id"),
        name=record.get("name"),
        start_date=start,
        end_date=end,
        duration=duration,
        progress=progress,
        status=status,
        **kwargs,
    )


def dependency_from_record(record):
    """Build a Dependency from a record; type defaults to FS and lag to 0."""
    if not isinstance(record, dict):
        raise DependencyError(
            f"Dependency record must be a mapping, got {type(record).__name__}"
        )
    return Dependency(
        predecessor_id=record.get("predecessor_id"),
        successor_id=record.get("successor_id"),
        dependency_type=record.get("dependency_type") or "FS",
        lag_days=record.get("lag_days") or 0,
        id=record.get("id"),
    )


def tasks_from_records(records):
    """
    Convert a batch of task records, collecting errors instead of aborting.

    Task objects in the batch are passed through unchanged.

    Returns:
        tuple: (list of Task, list of (index, message))
    """
    tasks = []
    errors = []
    for index, record in enumerate(records):
        if isinstance(record, Task):
            tasks.append(record)
            continue
        try:
            tasks.append(task_from_record(record))
        except (TaskError, TypeError, ValueError) as e:
            logger.warning("Invalid task record #%d: %s", index, e)
            errors.append((index, str(e)))
    return tasks, errors


def dependencies_from_records(records):
    """
    Convert a batch of dependency records, collecting errors instead of aborting.

    Dependency objects in the batch are passed through unchanged.

    Returns:
        tuple: (list of Dependency, list of (index, message))
    """
    dependencies = []
    errors = []
    for index, record in enumerate(records):
        if isinstance(record, Dependency):
            dependencies.append(record)
            continue
        try:
            dependencies.append(dependency_from_record(record))
        except (DependencyError, TypeError) as e:
            logger.warning("Invalid dependency record #%d: %s", index, e)
            errors.append((index, str(e)))
    return dependencies, errors
