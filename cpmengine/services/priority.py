from datetime import date

from cpmengine.services.duration import round_half_up

WEIGHT_BUSINESS = 30
WEIGHT_SLA = 25
WEIGHT_MILESTONE = 20
WEIGHT_DEADLINE = 15
WEIGHT_CLIENT = 10

DEFAULT_SCALE_VALUE = 3
DEADLINE_HORIZON_DAYS = 7


class TaskPriority:
    """Priority score of a task (0-100) with its per-factor breakdown."""

    def __init__(self, task_id, score, reasons):
        self.task_id = task_id
        self.score = score
        self.reasons = reasons

    def to_dict(self):
        return {"task_id": self.task_id, "score": self.score, "reasons": dict(self.reasons)}

    def __repr__(self):
        return f"TaskPriority({self.task_id!r}, score={self.score})"


def _normalize(value, low, high):
    return (value - low) / (high - low)


def deadline_proximity(end_date, today=None):
    """
    Urgency of a deadline between 0 and 1.

    Overdue tasks score 1, deadlines more than a week away score 0, and the
    week in between scales linearly.
    """
    if end_date is None:
        return 0.0
    today = today or date.today()
    days_to_deadline = (end_date - today).days

    if days_to_deadline < 0:
        return 1.0
    if days_to_deadline > DEADLINE_HORIZON_DAYS:
        return 0.0
    return (DEADLINE_HORIZON_DAYS - days_to_deadline) / DEADLINE_HORIZON_DAYS


def calculate_task_priority(task, today=None):
    """
    Score a task from its business priority, SLA, milestone flag, deadline
    proximity and client importance.

    Missing 1-5 scale values count as 3.
    """
    business = (
        _normalize(task.priority_business or DEFAULT_SCALE_VALUE, 1, 5) * WEIGHT_BUSINESS
    )
    sla = WEIGHT_SLA if task.sla_critical else 0
    milestone = WEIGHT_MILESTONE if task.is_milestone else 0
    deadline = deadline_proximity(task.end_date, today) * WEIGHT_DEADLINE
    client = (
        _normalize(task.client_importance or DEFAULT_SCALE_VALUE, 1, 5) * WEIGHT_CLIENT
    )

    total = business + sla + milestone + deadline + client

    return TaskPriority(
        task_id=task.id,
        score=round_half_up(total),
        reasons={
            "business": round_half_up(business),
            "sla": round_half_up(sla),
            "milestone": round_half_up(milestone),
            "deadline": round_half_up(deadline),
            "client": round_half_up(client),
        },
    )


def rank_tasks(tasks, today=None):
    """Priorities of all tasks, highest score first."""
    priorities = [calculate_task_priority(task, today) for task in tasks]
    return sorted(priorities, key=lambda p: p.score, reverse=True)
