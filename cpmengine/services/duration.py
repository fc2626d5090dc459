import math


def round_half_up(value):
    """Round to the nearest integer, halves away from zero (2.5 -> 3)."""
    if value < 0:
        return -math.floor(-value + 0.5)
    return math.floor(value + 0.5)


def pert_duration(task):
    """
    Effective duration of a task in working days.

    PERT tasks use the weighted average (O + 4M + P) / 6, every other task
    uses its fixed duration.
    """
    if task.has_pert_estimates:
        return round_half_up(
            (
                task.optimistic_duration
                + 4 * task.most_likely_duration
                + task.pessimistic_duration
            )
            / 6
        )
    return task.duration


def remaining_duration(task):
    """
    Working days still to be scheduled for a task given its progress.

    A task at 100% progress contributes zero remaining duration.
    """
    return max(0, round_half_up(pert_duration(task) * (1 - task.progress / 100)))


def pert_standard_deviation(task):
    """Standard deviation (P - O) / 6 of a PERT task, 0.0 otherwise."""
    if not task.has_pert_estimates:
        return 0.0
    return abs(task.pessimistic_duration - task.optimistic_duration) / 6
