import unittest
from datetime import date

import numpy as np

from cpmengine.domain.dependency import Dependency
from cpmengine.domain.task import Task
from cpmengine.services.monte_carlo import (
    MonteCarloSimulator,
    SimulationResult,
    run_monte_carlo,
    sample_triangular,
)
from cpmengine.utils.working_days import add_working_days


class FixedRandom:
    """Stand-in generator returning the same uniform draw every time."""

    def __init__(self, value):
        self.value = value

    def random(self):
        return self.value


def pert_task(task_id="P", o=2, m=4, p=8, start="2025-04-01", end="2025-04-07"):
    return Task(
        task_id,
        f"PERT {task_id}",
        start_date=start,
        end_date=end,
        duration=m,
        use_pert=True,
        optimistic_duration=o,
        most_likely_duration=m,
        pessimistic_duration=p,
    )


class TriangularSamplerTestCase(unittest.TestCase):
    """Test cases for the triangular approximation."""

    def test_known_values(self):
        self.assertEqual(sample_triangular(2, 4, 8, 0.0), 2)
        self.assertAlmostEqual(sample_triangular(2, 4, 8, 0.25), 3.0)
        self.assertAlmostEqual(sample_triangular(2, 4, 8, 0.5), 6.0)
        self.assertAlmostEqual(sample_triangular(2, 4, 8, 0.75), 8 - 2 ** 0.5)

    def test_zero_spread(self):
        self.assertEqual(sample_triangular(5, 5, 5, 0.3), 5)
        self.assertEqual(sample_triangular(5, 5, 5, 0.9), 5)

    def test_stays_within_bounds(self):
        for r in np.linspace(0, 0.999, 50):
            value = sample_triangular(1, 1, 1.5, r)
            self.assertGreaterEqual(value, 1)
            self.assertLessEqual(value, 1.5)

            value = sample_triangular(3, 10, 12, r)
            self.assertGreaterEqual(value, 3)
            self.assertLessEqual(value, 12)


class MonteCarloTestCase(unittest.TestCase):
    """Test cases for the completion date simulation."""

    def setUp(self):
        self.start = date(2025, 4, 1)

    def test_no_pert_tasks(self):
        tasks = [
            Task("A", "A", start_date="2025-04-01", end_date="2025-04-10"),
            Task("B", "B", start_date="2025-04-03", end_date="2025-04-18"),
        ]
        result = MonteCarloSimulator(iterations=200, seed=1).simulate(tasks)
        self.assertEqual(result.iterations, 200)
        self.assertEqual(result.p50, date(2025, 4, 18))
        self.assertEqual(result.p80, date(2025, 4, 18))

    def test_no_tasks(self):
        result = MonteCarloSimulator(iterations=10).simulate([])
        self.assertEqual(result.p50, date.today())
        self.assertEqual(result.p80, date.today())
        self.assertEqual(result.iterations, 0)

    def test_undated_tasks_left_out(self):
        with self.assertLogs("cpmengine.services.monte_carlo", level="WARNING"):
            result = MonteCarloSimulator(iterations=10).simulate([Task("A", "Undated")])
        self.assertEqual(result.p50, date.today())

    def test_fixed_draws(self):
        tasks = [pert_task(), Task("F", "Fixed", start_date="2025-04-01", end_date="2025-04-02")]

        low = MonteCarloSimulator(iterations=5, rng=FixedRandom(0.0)).simulate(tasks)
        self.assertEqual(low.p50, add_working_days(self.start, 2))

        high = MonteCarloSimulator(iterations=5, rng=FixedRandom(0.999999)).simulate(tasks)
        self.assertEqual(high.p80, date(2025, 4, 11))

    def test_seeded_runs_are_reproducible(self):
        tasks = [pert_task("P1"), pert_task("P2", 3, 5, 15)]
        first = MonteCarloSimulator(iterations=300, seed=42).simulate(tasks)
        second = MonteCarloSimulator(iterations=300, seed=42).simulate(tasks)
        self.assertTrue(np.array_equal(first.end_dates, second.end_dates))

    def test_results_within_estimate_range(self):
        tasks = [pert_task()]
        result = MonteCarloSimulator(iterations=500, rng=np.random.default_rng(7)).simulate(tasks)

        earliest = add_working_days(self.start, 2)
        latest = add_working_days(self.start, 8)
        dates = result.dates()
        self.assertEqual(dates, sorted(dates))
        self.assertGreaterEqual(min(dates), earliest)
        self.assertLessEqual(max(dates), latest)
        self.assertLessEqual(result.p50, result.p80)

    def test_percentile_index(self):
        result = MonteCarloSimulator(iterations=1000, seed=3).simulate([pert_task()])
        dates = result.dates()
        self.assertEqual(result.percentile(0.5), dates[500])
        self.assertEqual(result.percentile(0.8), dates[800])
        self.assertEqual(result.percentile(1.0), dates[-1])

        with self.assertRaises(ValueError):
            result.percentile(0)

    def test_network_propagation(self):
        tasks = [
            pert_task("A"),
            Task("B", "Fixed follow up", start_date="2025-04-07", end_date="2025-04-10", duration=3),
        ]
        simulator = MonteCarloSimulator(iterations=5, rng=FixedRandom(0.0))
        result = simulator.simulate(tasks, [Dependency("A", "B")], project_start=self.start)
        # A takes 2 days (Apr 3), B three more
        self.assertEqual(result.p50, date(2025, 4, 8))

    def test_task_records_accepted(self):
        records = [
            {"id": "A", "name": "A", "start_date": "2025-04-01", "end_date": "2025-04-10"},
            {"id": "X", "name": "Broken"},
        ]
        with self.assertLogs("cpmengine.utils.records", level="WARNING"):
            result = MonteCarloSimulator(iterations=10, seed=1).simulate(records)
        self.assertEqual(result.p50, date(2025, 4, 10))

    def test_network_from_records(self):
        records = [
            {
                "id": "A",
                "name": "A",
                "start_date": "2025-04-01",
                "duration": 4,
                "use_pert": True,
                "optimistic_duration": 2,
                "most_likely_duration": 4,
                "pessimistic_duration": 8,
            },
            {"id": "B", "name": "B", "start_date": "2025-04-07", "duration": 3},
        ]
        dependencies = [{"predecessor_id": "A", "successor_id": "B"}]
        simulator = MonteCarloSimulator(iterations=5, rng=FixedRandom(0.0))
        result = simulator.simulate(records, dependencies, project_start=self.start)
        self.assertEqual(result.p50, date(2025, 4, 8))

    def test_invalid_configuration(self):
        with self.assertRaises(ValueError):
            MonteCarloSimulator(iterations=0)
        with self.assertRaises(ValueError):
            MonteCarloSimulator(percentiles=(0.5, 1.5))

    def test_to_dict(self):
        result = SimulationResult([], fallback=self.start)
        self.assertEqual(result.to_dict(), {"p50": "2025-04-01", "p80": "2025-04-01"})

        data = run_monte_carlo([pert_task()], iterations=50, seed=11)
        self.assertEqual(set(data), {"p50", "p80"})
        self.assertLessEqual(data["p50"], data["p80"])


if __name__ == "__main__":
    unittest.main()
