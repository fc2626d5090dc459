from datetime import date, timedelta

from cpmengine.domain.task import TaskStatus
from cpmengine.services.duration import round_half_up

UPCOMING_WINDOW_DAYS = 7
REPORT_LIMIT = 5


class ProjectStats:
    """Headline figures of a project computed from its current task state."""

    def __init__(self, **fields):
        self.total_tasks = fields.get("total_tasks", 0)
        self.completed_tasks = fields.get("completed_tasks", 0)
        self.in_progress_tasks = fields.get("in_progress_tasks", 0)
        self.not_started_tasks = fields.get("not_started_tasks", 0)
        self.delayed_tasks = fields.get("delayed_tasks", 0)
        self.completion_percentage = fields.get("completion_percentage", 0)
        self.average_delay = fields.get("average_delay", 0)
        self.critical_tasks = fields.get("critical_tasks", 0)
        self.upcoming_deadlines = fields.get("upcoming_deadlines", [])
        self.most_delayed_tasks = fields.get("most_delayed_tasks", [])

    def to_dict(self):
        return {
            "total_tasks": self.total_tasks,
            "completed_tasks": self.completed_tasks,
            "in_progress_tasks": self.in_progress_tasks,
            "not_started_tasks": self.not_started_tasks,
            "delayed_tasks": self.delayed_tasks,
            "completion_percentage": self.completion_percentage,
            "average_delay": self.average_delay,
            "critical_tasks": self.critical_tasks,
            "upcoming_deadlines": [t.id for t in self.upcoming_deadlines],
            "most_delayed_tasks": [t.id for t in self.most_delayed_tasks],
        }


def task_delay(task, today=None):
    """Calendar days an open task is past its end date; 0 when on time or done."""
    if task.is_completed or task.end_date is None:
        return 0
    today = today or date.today()
    return max(0, (today - task.end_date).days)


def project_stats(tasks, today=None):
    """
    Compute the project dashboard figures.

    Args:
        tasks: Tasks of the project
        today: Reference date (defaults to today)

    Returns:
        ProjectStats
    """
    today = today or date.today()
    tasks = list(tasks)
    total = len(tasks)
    if not total:
        return ProjectStats()

    def count(status):
        return sum(1 for t in tasks if t.status == status.value)

    delays = {t.id: task_delay(t, today) for t in tasks}
    delayed = [t for t in tasks if delays[t.id] > 0]

    horizon = today + timedelta(days=UPCOMING_WINDOW_DAYS)
    upcoming = sorted(
        (
            t
            for t in tasks
            if not t.is_completed and t.end_date and today <= t.end_date <= horizon
        ),
        key=lambda t: t.end_date,
    )

    return ProjectStats(
        total_tasks=total,
        completed_tasks=count(TaskStatus.COMPLETED),
        in_progress_tasks=count(TaskStatus.IN_PROGRESS),
        not_started_tasks=count(TaskStatus.NOT_STARTED),
        delayed_tasks=len(delayed),
        completion_percentage=round_half_up(sum(t.progress for t in tasks) / total),
        average_delay=round_half_up(sum(delays.values()) / total),
        critical_tasks=sum(1 for t in tasks if t.is_critical or t.sla_critical),
        upcoming_deadlines=upcoming[:REPORT_LIMIT],
        most_delayed_tasks=sorted(delayed, key=lambda t: delays[t.id], reverse=True)[
            :REPORT_LIMIT
        ],
    )
