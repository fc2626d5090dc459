import copy
import logging
from datetime import date
from typing import Any, Dict, List, Optional

from cpmengine.domain.dependency import Dependency, DependencyError, DependencyType
from cpmengine.domain.task import Task, TaskError
from cpmengine.services.duration import remaining_duration
from cpmengine.utils.graph import TaskGraph
from cpmengine.utils.records import dependency_from_record, task_from_record
from cpmengine.utils.working_days import (
    add_working_days,
    is_working_day,
    to_date,
    working_days_between,
)

logger = logging.getLogger(__name__)

DEFAULT_BOTTLENECK_THRESHOLD = 2


class Bottleneck:
    """A near-critical task: slack below the bottleneck threshold."""

    def __init__(self, task_id, slack, reason):
        self.task_id = task_id
        self.slack = slack
        self.reason = reason

    def to_dict(self):
        return {"task_id": self.task_id, "reason": self.reason}

    def __repr__(self):
        return f"Bottleneck({self.task_id!r}, slack={self.slack})"


class ScheduleResult:
    """
    Outcome of a CPM run.

    ``tasks`` are copies of the input tasks with the CPM fields filled in, in
    input order. ``diagnostics`` collects every degradation of the run
    (skipped tasks, dangling edges, cycles) so a degraded run can be told
    apart from a clean one.
    """

    def __init__(
        self,
        tasks: List[Task],
        project_start: date,
        project_end: date,
        critical_path: Optional[List[str]] = None,
        bottlenecks: Optional[List[Bottleneck]] = None,
        cycles: Optional[List[List[str]]] = None,
        diagnostics: Optional[List[str]] = None,
        skipped_tasks: Optional[List[Any]] = None,
    ):
        self.tasks = tasks
        self.project_start = project_start
        self.project_end = project_end
        self.critical_path = critical_path or []
        self.bottlenecks = bottlenecks or []
        self.cycles = cycles or []
        self.diagnostics = diagnostics or []
        self.skipped_tasks = skipped_tasks or []
        self._by_id = {task.id: task for task in tasks}

    @property
    def has_cycles(self) -> bool:
        return bool(self.cycles)

    @property
    def is_degraded(self) -> bool:
        return bool(self.diagnostics)

    def get(self, task_id) -> Optional[Task]:
        return self._by_id.get(task_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tasks": [task.to_dict() for task in self.tasks],
            "project_end_date": self.project_end.isoformat(),
            "critical_path": list(self.critical_path),
            "bottlenecks": [b.to_dict() for b in self.bottlenecks],
            "cycles": [list(c) for c in self.cycles],
            "diagnostics": list(self.diagnostics),
        }


class CPMScheduler:
    """
    Critical Path Method scheduler over working days.

    A run is a pure recomputation: topological sort, forward pass, project
    end, backward pass, critical path and bottleneck extraction. Input tasks
    are never modified.
    """

    def __init__(
        self,
        bottleneck_threshold=DEFAULT_BOTTLENECK_THRESHOLD,
        is_working_day=is_working_day,
        pin_sinks_to_project_end=False,
    ):
        """
        Args:
            bottleneck_threshold: Tasks with 0 <= slack < threshold are bottlenecks
            is_working_day: Predicate used for all working day arithmetic
            pin_sinks_to_project_end: Anchor tasks without successors to the
                project end instead of their own early finish
        """
        if bottleneck_threshold < 0:
            raise ValueError("Bottleneck threshold cannot be negative")
        self.bottleneck_threshold = bottleneck_threshold
        self.is_working_day = is_working_day
        self.pin_sinks_to_project_end = pin_sinks_to_project_end

    def _add(self, day, n):
        return add_working_days(day, n, self.is_working_day)

    def schedule(self, tasks, dependencies=(), project_start=None) -> ScheduleResult:
        """
        Run the full CPM calculation.

        Args:
            tasks: Task objects (or task records as dicts)
            dependencies: Dependency objects (or dependency records as dicts)
            project_start: Project start date (date or ISO string), defaults to today

        Returns:
            ScheduleResult: Scheduled copies of the tasks and the derived data
        """
        diagnostics = []
        project_start = to_date(project_start) if project_start else date.today()

        valid_tasks, skipped = self._prepare_tasks(tasks, diagnostics)
        edges = self._prepare_dependencies(dependencies, diagnostics)

        if not valid_tasks:
            return ScheduleResult(
                tasks=[],
                project_start=project_start,
                project_end=date.today(),
                diagnostics=diagnostics,
                skipped_tasks=skipped,
            )

        graph = TaskGraph(valid_tasks, edges)
        for dep in graph.dangling_edges:
            message = f"Skipped dependency {dep!r}: references an unknown task"
            logger.warning(message)
            diagnostics.append(message)

        order, cycles = graph.topological_order()
        for members in cycles:
            diagnostics.append(
                "Dependency cycle, dates for these tasks are not reliable: "
                + " -> ".join(str(t) for t in members)
            )

        early = self.forward_pass(graph, order, project_start)
        project_end = max(finish for _, finish in early.values())
        late = self.backward_pass(graph, order, early, project_end)

        scheduled = {}
        for task_id in order:
            task = graph.tasks[task_id]
            early_start, early_finish = early[task_id]
            late_start, late_finish = late[task_id]
            task.early_start = early_start
            task.early_finish = early_finish
            task.late_start = late_start
            task.late_finish = late_finish
            task.slack = working_days_between(
                early_start, late_start, self.is_working_day
            )
            task.is_critical = task.slack == 0
            scheduled[task_id] = task

        critical_path = [task_id for task_id in order if scheduled[task_id].is_critical]
        bottlenecks = [
            Bottleneck(
                task_id,
                scheduled[task_id].slack,
                f"Slack of only {scheduled[task_id].slack} working day(s)",
            )
            for task_id in order
            if 0 <= scheduled[task_id].slack < self.bottleneck_threshold
        ]

        logger.debug(
            "Scheduled %d tasks, project end %s, %d critical",
            len(scheduled),
            project_end,
            len(critical_path),
        )

        return ScheduleResult(
            tasks=[scheduled[t.id] for t in valid_tasks],
            project_start=project_start,
            project_end=project_end,
            critical_path=critical_path,
            bottlenecks=bottlenecks,
            cycles=cycles,
            diagnostics=diagnostics,
            skipped_tasks=skipped,
        )

    def _prepare_tasks(self, tasks, diagnostics):
        """Copy the input tasks, skipping malformed records and duplicate ids."""
        valid = []
        skipped = []
        seen = set()

        for index, item in enumerate(tasks):
            if isinstance(item, Task):
                task = copy.copy(item)
            else:
                try:
                    task = task_from_record(item)
                except (TaskError, ValueError, TypeError, KeyError) as e:
                    message = f"Skipped task record #{index}: {e}"
                    logger.warning(message)
                    diagnostics.append(message)
                    skipped.append((index, str(e)))
                    continue

            if task.id in seen:
                message = f"Skipped task {task.id}: duplicate id"
                logger.warning(message)
                diagnostics.append(message)
                skipped.append((index, "duplicate id"))
                continue

            seen.add(task.id)
            valid.append(task.reset_schedule())

        return valid, skipped

    def _prepare_dependencies(self, dependencies, diagnostics):
        edges = []
        for index, item in enumerate(dependencies):
            if isinstance(item, Dependency):
                edges.append(item)
                continue
            try:
                edges.append(dependency_from_record(item))
            except (DependencyError, TypeError, KeyError) as e:
                message = f"Skipped dependency record #{index}: {e}"
                logger.warning(message)
                diagnostics.append(message)
        return edges

    def forward_pass(self, graph, order, project_start, duration_of=remaining_duration):
        """
        Calculate early start and early finish dates.

        Args:
            graph: TaskGraph of the project
            order: Task ids in topological order
            project_start: Date tasks without predecessors start on
            duration_of: Function returning the working days to schedule for a task

        Returns:
            dict: {task_id: (early_start, early_finish)}
        """
        early = {}

        for task_id in order:
            duration = duration_of(graph.tasks[task_id])
            start = project_start

            for dep in graph.predecessors_of(task_id):
                if dep.predecessor_id not in early:
                    # Predecessor inside the same cycle, not scheduled yet
                    continue
                pred_start, pred_finish = early[dep.predecessor_id]
                candidate = self._start_candidate(dep, pred_start, pred_finish, duration)
                if candidate > start:
                    start = candidate

            early[task_id] = (start, self._add(start, duration))

        return early

    def _start_candidate(self, dep, pred_start, pred_finish, duration):
        """Earliest start a dependency allows for its successor."""
        lag = dep.lag_days
        kind = dep.dependency_type
        if kind == DependencyType.FINISH_TO_START:
            return self._add(pred_finish, lag)
        if kind == DependencyType.START_TO_START:
            return self._add(pred_start, lag)
        if kind == DependencyType.FINISH_TO_FINISH:
            return self._add(self._add(pred_finish, lag), -duration)
        # Start-to-finish
        return self._add(self._add(pred_start, lag), -duration)

    def backward_pass(
        self, graph, order, early, project_end, duration_of=remaining_duration
    ):
        """
        Calculate late start and late finish dates.

        Returns:
            dict: {task_id: (late_start, late_finish)}
        """
        late = {}

        for task_id in reversed(order):
            duration = duration_of(graph.tasks[task_id])
            outgoing = graph.successors_of(task_id)

            if not outgoing:
                if self.pin_sinks_to_project_end:
                    finish = project_end
                else:
                    finish = early[task_id][1]
            else:
                candidates = [
                    self._finish_candidate(dep, *late[dep.successor_id], duration)
                    for dep in outgoing
                    if dep.successor_id in late
                ]
                # Only successors inside the same cycle: keep the early finish
                finish = min(candidates) if candidates else early[task_id][1]
                # Start-side edges can allow a finish past the project end
                finish = min(finish, project_end)

            late[task_id] = (self._add(finish, -duration), finish)

        return late

    def _finish_candidate(self, dep, succ_start, succ_finish, duration):
        """Latest finish a dependency allows for its predecessor."""
        lag = dep.lag_days
        kind = dep.dependency_type
        if kind == DependencyType.FINISH_TO_START:
            return self._add(succ_start, -lag)
        if kind == DependencyType.START_TO_START:
            return self._add(self._add(succ_start, -lag), duration)
        if kind == DependencyType.FINISH_TO_FINISH:
            return self._add(succ_finish, -lag)
        # Start-to-finish
        return self._add(self._add(succ_finish, -lag), duration)


def schedule_project(tasks, dependencies=(), project_start=None, **kwargs):
    """Convenience wrapper: run a CPMScheduler configured with kwargs."""
    return CPMScheduler(**kwargs).schedule(tasks, dependencies, project_start)
