import logging
import math
from datetime import date, datetime, timezone

import numpy as np

from cpmengine.services.duration import remaining_duration, round_half_up
from cpmengine.services.scheduler import CPMScheduler
from cpmengine.utils.graph import TaskGraph
from cpmengine.utils.records import dependencies_from_records, tasks_from_records
from cpmengine.utils.working_days import add_working_days, is_working_day, to_date

logger = logging.getLogger(__name__)

DEFAULT_ITERATIONS = 1000
DEFAULT_PERCENTILES = (0.5, 0.8)

SECONDS_PER_DAY = 86400


def sample_triangular(optimistic, most_likely, pessimistic, r):
    """
    Draw a duration from the triangular approximation used for PERT tasks.

    Args:
        optimistic: Optimistic estimate (o)
        most_likely: Most likely estimate (m)
        pessimistic: Pessimistic estimate (p)
        r: Uniform random number in [0, 1)

    Returns:
        float: Sampled duration, within [o, p]
    """
    o, m, p = optimistic, most_likely, pessimistic
    spread = p - o
    if spread <= 0:
        return m

    # sqrt(r * 2 * (m - o) * (p - o) / (p - o)) on the rising side, mirrored
    # on the falling side
    if r < 0.5:
        value = o + math.sqrt(max(0.0, r * 2 * (m - o)))
    else:
        value = p - math.sqrt(max(0.0, (1 - r) * 2 * (p - m)))

    return min(max(value, o), p)


def _to_epoch(day):
    return int(datetime(day.year, day.month, day.day, tzinfo=timezone.utc).timestamp())


def _from_epoch(seconds):
    return datetime.fromtimestamp(int(seconds), tz=timezone.utc).date()


class SimulationResult:
    """
    Simulated project end dates and the percentiles read from them.

    ``end_dates`` holds one epoch timestamp (seconds, UTC midnight) per
    iteration, sorted ascending.
    """

    def __init__(self, end_dates, percentiles=DEFAULT_PERCENTILES, fallback=None):
        self.end_dates = np.sort(np.asarray(end_dates, dtype=np.int64))
        self.iterations = len(self.end_dates)
        self.percentiles = tuple(percentiles)
        self._fallback = fallback or date.today()

    def percentile(self, q):
        """Date at index floor(iterations * q) of the sorted results."""
        if not 0 < q <= 1:
            raise ValueError("Percentile must be in (0, 1]")
        if self.iterations == 0:
            return self._fallback
        index = min(int(math.floor(self.iterations * q)), self.iterations - 1)
        return _from_epoch(self.end_dates[index])

    @property
    def p50(self):
        return self.percentile(0.5)

    @property
    def p80(self):
        return self.percentile(0.8)

    def dates(self):
        """All simulated end dates as date objects."""
        return [_from_epoch(v) for v in self.end_dates]

    def to_dict(self):
        data = {"p50": self.p50.isoformat(), "p80": self.p80.isoformat()}
        for q in self.percentiles:
            data[f"p{round_half_up(q * 100)}"] = self.percentile(q).isoformat()
        return data


class MonteCarloSimulator:
    """
    Monte Carlo estimation of the project completion date.

    By default each iteration samples the PERT tasks, moves their end date to
    ``start_date + sampled working days`` and takes the latest end date over
    all tasks; dependency chains are not propagated. Passing dependencies to
    ``simulate`` re-runs the CPM forward pass with the sampled durations on
    every iteration instead.
    """

    def __init__(
        self,
        iterations=DEFAULT_ITERATIONS,
        percentiles=DEFAULT_PERCENTILES,
        rng=None,
        seed=None,
        is_working_day=is_working_day,
    ):
        """
        Args:
            iterations: Number of simulation runs
            percentiles: Percentiles reported by SimulationResult.to_dict
            rng: numpy Generator supplying the uniform draws
            seed: Seed for a new Generator when rng is not given
            is_working_day: Predicate used for the working day arithmetic
        """
        if not isinstance(iterations, int) or iterations < 1:
            raise ValueError("Iterations must be a positive integer")
        for q in percentiles:
            if not 0 < q <= 1:
                raise ValueError(f"Percentile {q} must be in (0, 1]")

        self.iterations = iterations
        self.percentiles = tuple(percentiles)
        self.rng = rng if rng is not None else np.random.default_rng(seed)
        self.is_working_day = is_working_day

    def sample_durations(self, tasks):
        """
        Sample one duration per PERT task.

        Returns:
            dict: {task_id: sampled working days}
        """
        samples = {}
        for task in tasks:
            if not task.has_pert_estimates:
                continue
            r = float(self.rng.random())
            value = sample_triangular(
                task.optimistic_duration,
                task.most_likely_duration,
                task.pessimistic_duration,
                r,
            )
            samples[task.id] = max(0, round_half_up(value))
        return samples

    def simulate(self, tasks, dependencies=None, project_start=None):
        """
        Run the simulation.

        Args:
            tasks: Task objects (or task records as dicts)
            dependencies: Optional dependency edges (or records); enables
                forward pass propagation
            project_start: Project start used with dependencies (defaults to today)

        Returns:
            SimulationResult
        """
        # Malformed records are logged and left out
        tasks, _ = tasks_from_records(tasks)
        if not tasks:
            return SimulationResult([], self.percentiles)

        if dependencies is not None:
            dependencies, _ = dependencies_from_records(dependencies)
            return self._simulate_network(tasks, dependencies, project_start)
        return self._simulate_end_dates(tasks)

    def _simulate_end_dates(self, tasks):
        dated = []
        for task in tasks:
            if task.has_dates:
                dated.append(task)
            else:
                logger.warning("Task %s has no dates, left out of the simulation", task.id)

        if not dated:
            return SimulationResult([], self.percentiles)

        shifted = {}

        def end_of(task, sampled):
            key = (task.start_date, sampled)
            if key not in shifted:
                shifted[key] = add_working_days(
                    task.start_date, sampled, self.is_working_day
                )
            return shifted[key]

        results = np.empty(self.iterations, dtype=np.int64)
        for i in range(self.iterations):
            samples = self.sample_durations(dated)
            latest = max(
                end_of(task, samples[task.id]) if task.id in samples else task.end_date
                for task in dated
            )
            results[i] = _to_epoch(latest)

        return SimulationResult(results, self.percentiles)

    def _simulate_network(self, tasks, dependencies, project_start):
        project_start = to_date(project_start) if project_start else date.today()
        scheduler = CPMScheduler(is_working_day=self.is_working_day)
        graph = TaskGraph(tasks, dependencies)
        order, _ = graph.topological_order()

        results = np.empty(self.iterations, dtype=np.int64)
        for i in range(self.iterations):
            samples = self.sample_durations(tasks)

            def duration_of(task):
                if task.id in samples:
                    return max(
                        0, round_half_up(samples[task.id] * (1 - task.progress / 100))
                    )
                return remaining_duration(task)

            early = scheduler.forward_pass(graph, order, project_start, duration_of)
            results[i] = _to_epoch(max(finish for _, finish in early.values()))

        return SimulationResult(results, self.percentiles)


def run_monte_carlo(tasks, iterations=DEFAULT_ITERATIONS, seed=None):
    """Convenience wrapper returning {"p50": iso, "p80": iso}."""
    return MonteCarloSimulator(iterations=iterations, seed=seed).simulate(tasks).to_dict()
