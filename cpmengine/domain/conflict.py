import uuid
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional


class ConflictType(Enum):
    RESOURCE = "resource"
    CAPACITY = "capacity"
    DEPENDENCY = "dependency"
    CALENDAR = "calendar"


class Severity(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ConflictStatus(Enum):
    OPEN = "open"
    RESOLVED = "resolved"
    IGNORED = "ignored"


class ConflictError(Exception):
    """Exception raised for errors in the ConflictFinding class."""

    pass


class ConflictFinding:
    """
    A scheduling violation found by a conflict scan.

    Findings are produced fresh on every scan. A finding is only changed
    afterwards through an explicit user action (resolve or ignore).
    """

    def __init__(
        self,
        project_id: Optional[str],
        task_a_id: str,
        conflict_type: ConflictType,
        severity: Severity,
        task_b_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        status: ConflictStatus = ConflictStatus.OPEN,
        id: Optional[str] = None,
        detected_at: Optional[datetime] = None,
    ):
        if task_a_id is None:
            raise ConflictError("A conflict must reference at least one task")
        if not isinstance(conflict_type, ConflictType):
            raise ConflictError(f"Invalid conflict type: {conflict_type}")
        if not isinstance(severity, Severity):
            raise ConflictError(f"Invalid severity: {severity}")
        if not isinstance(status, ConflictStatus):
            raise ConflictError(f"Invalid conflict status: {status}")

        self.id = id or str(uuid.uuid4())
        self.project_id = project_id
        self.task_a_id = task_a_id
        self.task_b_id = task_b_id
        self.conflict_type = conflict_type
        self.severity = severity
        self.details = dict(details) if details else {}
        self.status = status
        self.detected_at = detected_at or datetime.now()
        self.resolved_at = None
        self.resolution_action = None

    @property
    def is_open(self) -> bool:
        return self.status == ConflictStatus.OPEN

    def key(self):
        """Identity of the finding independent of id and timestamps."""
        return (
            self.conflict_type.value,
            self.task_a_id,
            self.task_b_id,
            tuple(sorted((k, repr(v)) for k, v in self.details.items())),
        )

    def resolve(self, action: str, resolved_at: Optional[datetime] = None):
        """
        Mark the finding as resolved.

        Args:
            action: Note describing how the conflict was resolved
            resolved_at: When it was resolved (defaults to now)

        Returns:
            self: For method chaining

        Raises:
            ConflictError: If the finding is already resolved or no note is given
        """
        if self.status == ConflictStatus.RESOLVED:
            raise ConflictError(f"Conflict {self.id} is already resolved")
        if not action or not isinstance(action, str):
            raise ConflictError("A resolution note is required")

        self.status = ConflictStatus.RESOLVED
        self.resolution_action = action
        self.resolved_at = resolved_at or datetime.now()
        return self

    def ignore(self, note: Optional[str] = None):
        """Mark the finding as ignored, optionally recording why."""
        if self.status == ConflictStatus.RESOLVED:
            raise ConflictError(f"Conflict {self.id} is already resolved")
        self.status = ConflictStatus.IGNORED
        if note:
            self.resolution_action = note
        return self

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "project_id": self.project_id,
            "task_a_id": self.task_a_id,
            "task_b_id": self.task_b_id,
            "conflict_type": self.conflict_type.value,
            "severity": self.severity.value,
            "details": dict(self.details),
            "status": self.status.value,
            "detected_at": self.detected_at.isoformat(),
            "resolved_at": self.resolved_at.isoformat() if self.resolved_at else None,
            "resolution_action": self.resolution_action,
        }

    def __repr__(self):
        return (
            f"ConflictFinding({self.conflict_type.value}, {self.severity.value}, "
            f"{self.task_a_id!r}, {self.task_b_id!r})"
        )
