"""
End-to-end tests over the example project: schedule, simulation, conflict
scan and the command line entry point.
"""

import contextlib
import io
import os
import tempfile
import unittest
from datetime import date

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt

from cpmengine.__main__ import main
from cpmengine.domain.conflict import ConflictType
from cpmengine.examples.simple_project import build_sample_tasks, create_sample_project
from cpmengine.services.metrics import project_stats


class SampleProjectTestCase(unittest.TestCase):
    """Run the example project end to end."""

    def setUp(self):
        with contextlib.redirect_stdout(io.StringIO()):
            self.result, self.simulation, self.conflicts = create_sample_project(
                output=None, iterations=200, seed=1
            )

    def tearDown(self):
        plt.close("all")

    def test_schedule(self):
        self.assertFalse(self.result.is_degraded)
        self.assertEqual(self.result.critical_path, ["T1", "T2", "T3", "T6"])
        self.assertEqual(self.result.project_end, date(2025, 5, 1))

        t4 = self.result.get("T4")
        self.assertEqual(t4.early_start, date(2025, 4, 4))
        self.assertGreater(t4.slack, 0)

    def test_simulation(self):
        self.assertEqual(self.simulation.iterations, 200)
        self.assertLessEqual(self.simulation.p50, self.simulation.p80)
        # T6 is the latest planned end and has no PERT estimates
        self.assertGreaterEqual(self.simulation.p50, date(2025, 5, 12))

    def test_conflicts(self):
        by_type = {}
        for finding in self.conflicts:
            by_type.setdefault(finding.conflict_type, []).append(finding)

        resource = by_type[ConflictType.RESOURCE]
        self.assertEqual(len(resource), 1)
        self.assertEqual({resource[0].task_a_id, resource[0].task_b_id}, {"T3", "T4"})

        calendar = by_type[ConflictType.CALENDAR]
        self.assertEqual([f.task_a_id for f in calendar], ["T5"])

        self.assertTrue(by_type[ConflictType.CAPACITY])
        self.assertNotIn(ConflictType.DEPENDENCY, by_type)

    def test_stats(self):
        tasks, _ = build_sample_tasks()
        stats = project_stats(tasks, today=date(2025, 4, 1))
        self.assertEqual(stats.total_tasks, 6)
        self.assertEqual(stats.completed_tasks, 1)


class CommandLineTestCase(unittest.TestCase):
    """Test the command line entry point."""

    def tearDown(self):
        plt.close("all")

    def test_no_arguments_prints_help(self):
        with contextlib.redirect_stdout(io.StringIO()) as out:
            self.assertEqual(main([]), 1)
        self.assertIn("--example", out.getvalue())

    def test_zero_iterations_rejected(self):
        with contextlib.redirect_stderr(io.StringIO()) as err:
            with self.assertRaises(SystemExit) as cm:
                main(["--example", "--iterations", "0"])
        self.assertEqual(cm.exception.code, 2)
        self.assertIn("--iterations", err.getvalue())

    def test_run_example(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            output = os.path.join(tmpdir, "gantt.png")
            with contextlib.redirect_stdout(io.StringIO()) as out:
                code = main(["--example", "--output", output, "--iterations", "50", "--seed", "3"])
            self.assertEqual(code, 0)
            self.assertTrue(os.path.exists(output))
            self.assertIn("Critical Path: T1 -> T2 -> T3 -> T6", out.getvalue())


if __name__ == "__main__":
    unittest.main()
