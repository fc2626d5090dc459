"""
CPM Scheduling Engine
=====================

Scheduling core of the project management application.

Available modules:
- domain: Task, Dependency and ConflictFinding records
- services.duration: PERT and remaining duration estimation
- services.scheduler: Critical Path Method forward/backward pass
- services.monte_carlo: Completion date simulation
- services.conflicts: Resource, capacity, dependency and calendar conflicts
- services.priority: Task priority scoring
- services.metrics: Project dashboard figures
- utils.working_days: Working day arithmetic
"""

from cpmengine.domain.task import Task, TaskStatus, TaskError
from cpmengine.domain.dependency import Dependency, DependencyType, DependencyError
from cpmengine.domain.conflict import (
    ConflictFinding,
    ConflictType,
    ConflictStatus,
    ConflictError,
    Severity,
)
from cpmengine.services.duration import pert_duration, remaining_duration
from cpmengine.services.scheduler import CPMScheduler, ScheduleResult, schedule_project
from cpmengine.services.monte_carlo import MonteCarloSimulator, SimulationResult
from cpmengine.services.conflicts import scan_conflicts
from cpmengine.services.priority import calculate_task_priority, rank_tasks
from cpmengine.utils.working_days import add_working_days, working_days_between

__all__ = [
    "Task",
    "TaskStatus",
    "TaskError",
    "Dependency",
    "DependencyType",
    "DependencyError",
    "ConflictFinding",
    "ConflictType",
    "ConflictStatus",
    "ConflictError",
    "Severity",
    "pert_duration",
    "remaining_duration",
    "CPMScheduler",
    "ScheduleResult",
    "schedule_project",
    "MonteCarloSimulator",
    "SimulationResult",
    "scan_conflicts",
    "calculate_task_priority",
    "rank_tasks",
    "add_working_days",
    "working_days_between",
]
