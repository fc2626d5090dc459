"""
Tests for the schedule charts.
Charts are rendered with the non-interactive Agg backend and written to a
temporary directory.
"""

import os
import tempfile
import unittest
from datetime import date

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt

from cpmengine.domain.dependency import Dependency
from cpmengine.domain.task import Task
from cpmengine.services.monte_carlo import MonteCarloSimulator
from cpmengine.services.scheduler import CPMScheduler
from cpmengine.visualization.gantt import (
    create_gantt_chart,
    create_simulation_histogram,
)


class VisualizationTestCase(unittest.TestCase):
    """Test cases for the Gantt chart and simulation histogram."""

    def setUp(self):
        self.tasks = [
            Task("A", "Analysis", wbs="1", duration=3, progress=100),
            Task("B", "Build", wbs="2", duration=5, progress=20),
            Task("C", "Docs", wbs="3", duration=1),
            Task("D", "Release", wbs="4", duration=1),
        ]
        self.dependencies = [
            Dependency("A", "B"),
            Dependency("A", "C"),
            Dependency("B", "D"),
            Dependency("C", "D"),
        ]
        self.result = CPMScheduler().schedule(self.tasks, self.dependencies, date(2025, 4, 1))
        self.tmpdir = tempfile.TemporaryDirectory()

    def tearDown(self):
        plt.close("all")
        self.tmpdir.cleanup()

    def test_gantt_chart(self):
        filename = os.path.join(self.tmpdir.name, "gantt.png")
        fig = create_gantt_chart(self.result, filename)

        self.assertTrue(os.path.exists(filename))
        ax = fig.axes[0]
        self.assertEqual(len(ax.get_yticks()), len(self.tasks))
        self.assertIn("2025-04-01", ax.get_title())

    def test_gantt_chart_without_file(self):
        fig = create_gantt_chart(self.result)
        self.assertIsNotNone(fig)

    def test_simulation_histogram(self):
        tasks = [
            Task(
                "P",
                "PERT",
                start_date="2025-04-01",
                end_date="2025-04-07",
                use_pert=True,
                optimistic_duration=2,
                most_likely_duration=4,
                pessimistic_duration=10,
            )
        ]
        simulation = MonteCarloSimulator(iterations=200, seed=5).simulate(tasks)
        filename = os.path.join(self.tmpdir.name, "histogram.png")
        create_simulation_histogram(simulation, filename)
        self.assertTrue(os.path.exists(filename))

    def test_empty_simulation_histogram(self):
        simulation = MonteCarloSimulator(iterations=10).simulate([])
        fig = create_simulation_histogram(simulation)
        self.assertIn("0 iterations", fig.axes[0].get_title())


if __name__ == "__main__":
    unittest.main()
