import re
from datetime import date
from enum import Enum
from typing import Any, Dict, Optional, Union

from cpmengine.services.duration import round_half_up
from cpmengine.utils.working_days import to_date


WBS_PATTERN = re.compile(r"^\d+(\.\d+)*$")

DEFAULT_CAPACITY_PERCENT = 100


class TaskStatus(Enum):
    """
    Enum representing the possible status values of a task.
    """

    NOT_STARTED = "not-started"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


class TaskError(Exception):
    """Exception raised for errors in the Task class."""

    pass


class Task:
    """
    Represents a task in a project schedule.

    A task carries its planned dates and duration, optional PERT estimates,
    classification fields used for conflict detection and prioritisation,
    and the CPM fields computed by the scheduler (early/late dates, slack).
    """

    def __init__(
        self,
        id: str,
        name: str,
        duration: int = 1,
        start_date: Optional[Union[date, str]] = None,
        end_date: Optional[Union[date, str]] = None,
        progress: int = 0,
        status: Union[str, TaskStatus] = TaskStatus.NOT_STARTED,
        wbs: Optional[str] = None,
        project_id: Optional[str] = None,
        parent_id: Optional[str] = None,
        use_pert: bool = False,
        optimistic_duration: Optional[float] = None,
        most_likely_duration: Optional[float] = None,
        pessimistic_duration: Optional[float] = None,
        resource_id: Optional[str] = None,
        capacity_percent: Optional[float] = None,
        priority_business: Optional[int] = None,
        sla_critical: bool = False,
        is_milestone: bool = False,
        client_importance: Optional[int] = None,
        is_critical: bool = False,
    ):
        """
        Initialize a new Task.

        Args:
            id: Unique identifier for the task
            name: Human readable name
            duration: Duration in working days (at least 1)
            start_date: Planned start (date or ISO string)
            end_date: Planned end (date or ISO string)
            progress: Completion percentage 0-100
            status: One of "not-started", "in-progress", "completed"
            wbs: Dotted-decimal WBS code, e.g. "1.2.3"
            project_id: Owning project
            parent_id: Parent task in the WBS tree
            use_pert: Whether the PERT estimates drive the duration
            optimistic_duration: PERT optimistic estimate
            most_likely_duration: PERT most likely estimate
            pessimistic_duration: PERT pessimistic estimate
            resource_id: Assigned resource
            capacity_percent: Share of the resource used (defaults to 100)
            priority_business: Business priority 1-5
            sla_critical: Whether the task is bound by an SLA
            is_milestone: Whether the task is a milestone
            client_importance: Client importance 1-5
            is_critical: Manual criticality flag, overwritten by a CPM run

        Raises:
            TaskError: If any input validation fails
        """
        if id is None or str(id).strip() == "":
            raise TaskError("Task ID cannot be None or empty")
        self.id = id

        if not name or not isinstance(name, str):
            raise TaskError("Task name must be a non-empty string")
        self.name = name

        if wbs is not None and not WBS_PATTERN.match(str(wbs)):
            raise TaskError(f"Invalid WBS code: {wbs}")
        self.wbs = wbs

        self.project_id = project_id
        self.parent_id = parent_id

        # Schedule
        try:
            self.start_date = to_date(start_date) if start_date else None
            self.end_date = to_date(end_date) if end_date else None
        except ValueError as e:
            raise TaskError(f"Task {id}: {e}")

        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise TaskError(f"Task {id}: end date is before start date")

        if isinstance(duration, bool) or not isinstance(duration, (int, float)):
            raise TaskError("Duration must be a number")
        self.duration = max(1, round_half_up(duration))

        if (
            isinstance(progress, bool)
            or not isinstance(progress, (int, float))
            or progress < 0
            or progress > 100
        ):
            raise TaskError("Progress must be a number between 0 and 100")
        self.progress = int(progress)

        self._status = TaskStatus.NOT_STARTED
        self.status = status

        # PERT estimates
        self.use_pert = bool(use_pert)
        for label, value in (
            ("Optimistic", optimistic_duration),
            ("Most likely", most_likely_duration),
            ("Pessimistic", pessimistic_duration),
        ):
            if value is not None and (
                not isinstance(value, (int, float)) or value <= 0
            ):
                raise TaskError(f"{label} duration must be a positive number")
        self.optimistic_duration = optimistic_duration
        self.most_likely_duration = most_likely_duration
        self.pessimistic_duration = pessimistic_duration

        # Classification
        self.resource_id = resource_id
        if capacity_percent is not None and (
            not isinstance(capacity_percent, (int, float)) or capacity_percent < 0
        ):
            raise TaskError("Capacity percent must be a non-negative number")
        self.capacity_percent = capacity_percent

        self.priority_business = self._validate_scale(
            "Business priority", priority_business
        )
        self.client_importance = self._validate_scale(
            "Client importance", client_importance
        )
        self.sla_critical = bool(sla_critical)
        self.is_milestone = bool(is_milestone)
        self.is_critical = bool(is_critical)

        # CPM attributes
        self.early_start = None
        self.early_finish = None
        self.late_start = None
        self.late_finish = None
        self.slack = None

    @staticmethod
    def _validate_scale(label, value):
        if value is None:
            return None
        if isinstance(value, bool) or not isinstance(value, int) or not 1 <= value <= 5:
            raise TaskError(f"{label} must be an integer between 1 and 5")
        return value

    @property
    def status(self) -> str:
        """Get the current status of the task."""
        return self._status.value

    @status.setter
    def status(self, value):
        """Set the status of the task."""
        if isinstance(value, TaskStatus):
            self._status = value
            return
        try:
            self._status = TaskStatus(value)
        except ValueError:
            valid_statuses = [s.value for s in TaskStatus]
            raise TaskError(f"Invalid status: {value}. Must be one of {valid_statuses}")

    @property
    def is_completed(self) -> bool:
        return self._status == TaskStatus.COMPLETED

    @property
    def has_dates(self) -> bool:
        return self.start_date is not None and self.end_date is not None

    @property
    def has_pert_estimates(self) -> bool:
        """True when PERT is enabled and all three estimates are present."""
        return (
            self.use_pert
            and self.optimistic_duration is not None
            and self.most_likely_duration is not None
            and self.pessimistic_duration is not None
        )

    @property
    def effective_capacity(self) -> float:
        if self.capacity_percent is None:
            return DEFAULT_CAPACITY_PERCENT
        return self.capacity_percent

    def reset_schedule(self) -> "Task":
        """
        Clear the CPM derived fields.

        Returns:
            self: For method chaining
        """
        self.early_start = None
        self.early_finish = None
        self.late_start = None
        self.late_finish = None
        self.slack = None
        return self

    def schedule_fields(self) -> Dict[str, Any]:
        """
        Return the CPM derived fields as a dictionary of ISO strings.

        This is the payload written back to storage after a scheduling run.
        """
        return {
            "early_start": _iso(self.early_start),
            "early_finish": _iso(self.early_finish),
            "late_start": _iso(self.late_start),
            "late_finish": _iso(self.late_finish),
            "slack": self.slack,
            "is_critical": self.is_critical,
        }

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "project_id": self.project_id,
            "wbs": self.wbs,
            "name": self.name,
            "parent_id": self.parent_id,
            "start_date": _iso(self.start_date),
            "end_date": _iso(self.end_date),
            "duration": self.duration,
            "progress": self.progress,
            "status": self.status,
            "use_pert": self.use_pert,
            "optimistic_duration": self.optimistic_duration,
            "most_likely_duration": self.most_likely_duration,
            "pessimistic_duration": self.pessimistic_duration,
            "resource_id": self.resource_id,
            "capacity_percent": self.capacity_percent,
            "priority_business": self.priority_business,
            "sla_critical": self.sla_critical,
            "is_milestone": self.is_milestone,
            "client_importance": self.client_importance,
        }
        data.update(self.schedule_fields())
        return data

    def __repr__(self):
        return f"Task(id={self.id!r}, name={self.name!r}, status={self.status!r})"


def _iso(value):
    return value.isoformat() if value is not None else None
