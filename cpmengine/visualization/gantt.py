from datetime import datetime, time

import matplotlib.pyplot as plt
import matplotlib.dates as mdates
from matplotlib.patches import Patch


def _num(day):
    return mdates.date2num(datetime.combine(day, time()))


def create_gantt_chart(result, filename=None, show=False):
    """
    Create a Gantt chart of a CPM schedule.

    Bars run from early start to early finish. Critical tasks are red,
    bottlenecks orange and the remaining tasks blue; the late window of a
    task with slack is drawn as a light outline.

    Args:
        result: ScheduleResult from CPMScheduler.schedule
        filename: Optional filename to save the chart
        show: Whether to display the chart (default: False)

    Returns:
        The matplotlib figure
    """
    bottleneck_ids = {b.task_id for b in result.bottlenecks}
    tasks = sorted(
        (t for t in result.tasks if t.early_start is not None),
        key=lambda t: (t.early_start, t.early_finish),
    )

    fig, ax = plt.subplots(figsize=(14, max(4, 0.5 * len(tasks) + 2)))

    for i, task in enumerate(tasks):
        start = _num(task.early_start)
        # Zero-length bars (finished work) stay visible
        width = max((task.early_finish - task.early_start).days, 0.2)

        if task.is_critical:
            color = "red"
        elif task.id in bottleneck_ids:
            color = "orange"
        else:
            color = "blue"

        if task.slack and task.slack > 0:
            late_start = _num(task.late_start)
            late_width = max((task.late_finish - task.late_start).days, 0.2)
            ax.barh(
                i,
                late_width,
                left=late_start,
                color="none",
                edgecolor="grey",
                linestyle="--",
            )

        ax.barh(i, width, left=start, color=color, alpha=0.7)

        if task.progress:
            ax.text(
                start + width / 2,
                i,
                f"{task.progress}%",
                ha="center",
                va="center",
                color="black",
                fontsize=8,
            )

    ax.set_yticks(range(len(tasks)))
    ax.set_yticklabels([task.wbs or task.name for task in tasks])
    ax.invert_yaxis()

    ax.xaxis.set_major_formatter(mdates.DateFormatter("%Y-%m-%d"))
    fig.autofmt_xdate()

    ax.axvline(
        x=_num(result.project_end), color="black", linestyle="--", linewidth=2
    )
    ax.set_title(
        f"Project Schedule ({result.project_start.isoformat()} to "
        f"{result.project_end.isoformat()})"
    )
    ax.grid(axis="x", alpha=0.3)

    legend_elements = [
        Patch(facecolor="red", alpha=0.7, label="Critical Task"),
        Patch(facecolor="orange", alpha=0.7, label="Bottleneck"),
        Patch(facecolor="blue", alpha=0.7, label="Task"),
        Patch(facecolor="none", edgecolor="grey", linestyle="--", label="Late Window"),
    ]
    ax.legend(handles=legend_elements, loc="upper right")

    plt.tight_layout()

    if filename:
        plt.savefig(filename, dpi=150, bbox_inches="tight")

    if show:
        plt.show()

    return fig


def create_simulation_histogram(simulation, filename=None, show=False):
    """
    Plot the distribution of simulated project end dates.

    Args:
        simulation: SimulationResult from MonteCarloSimulator.simulate
        filename: Optional filename to save the chart
        show: Whether to display the chart (default: False)

    Returns:
        The matplotlib figure
    """
    fig, ax = plt.subplots(figsize=(10, 5))

    dates = simulation.dates()
    if not dates:
        ax.text(0.5, 0.5, "No simulation data", ha="center", va="center")
    else:
        values = [_num(d) for d in dates]
        bins = max(1, min(50, len(set(dates))))
        ax.hist(values, bins=bins, color="steelblue", alpha=0.7)

        colors = ["green", "orange", "red", "purple"]
        for i, q in enumerate(simulation.percentiles):
            day = simulation.percentile(q)
            ax.axvline(
                x=_num(day),
                color=colors[i % len(colors)],
                linestyle="--",
                linewidth=2,
                label=f"P{round(q * 100)}: {day.isoformat()}",
            )
        ax.legend(loc="upper right")
        ax.xaxis.set_major_formatter(mdates.DateFormatter("%Y-%m-%d"))
        fig.autofmt_xdate()

    ax.set_title(f"Simulated Completion Dates ({simulation.iterations} iterations)")
    ax.set_ylabel("Iterations")
    ax.grid(axis="y", alpha=0.3)

    plt.tight_layout()

    if filename:
        plt.savefig(filename, dpi=150, bbox_inches="tight")

    if show:
        plt.show()

    return fig
