import unittest

from cpmengine.domain.dependency import Dependency
from cpmengine.domain.task import Task
from cpmengine.utils.graph import TaskGraph


class TaskGraphTestCase(unittest.TestCase):
    """Test cases for the dependency graph."""

    def setUp(self):
        # Added in reverse of the dependency order
        self.tasks = [Task(t, f"Task {t}") for t in ("D", "C", "B", "A")]
        self.dependencies = [
            Dependency("A", "B"),
            Dependency("B", "C"),
            Dependency("A", "D", "SS", 2),
        ]
        self.graph = TaskGraph(self.tasks, self.dependencies)

    def test_edges_lookup(self):
        self.assertEqual(len(self.graph), 4)
        self.assertIn("A", self.graph)
        self.assertNotIn("Z", self.graph)

        self.assertEqual([d.successor_id for d in self.graph.successors_of("A")], ["B", "D"])
        self.assertEqual([d.predecessor_id for d in self.graph.predecessors_of("C")], ["B"])
        self.assertEqual(self.graph.predecessors_of("A"), [])
        self.assertEqual(self.graph.successors_of("Z"), [])

    def test_lookup_returns_copies(self):
        self.graph.successors_of("A").clear()
        self.assertEqual(len(self.graph.successors_of("A")), 2)

    def test_topological_order(self):
        order, cycles = self.graph.topological_order()
        self.assertEqual(cycles, [])
        self.assertEqual(sorted(order), ["A", "B", "C", "D"])
        self.assertLess(order.index("A"), order.index("B"))
        self.assertLess(order.index("B"), order.index("C"))
        self.assertLess(order.index("A"), order.index("D"))

    def test_parallel_edges_kept(self):
        graph = TaskGraph(
            [Task("A", "A"), Task("B", "B")],
            [Dependency("A", "B", "FS"), Dependency("A", "B", "SS", 1)],
        )
        types = [d.type_code for d in graph.predecessors_of("B")]
        self.assertEqual(types, ["FS", "SS"])

    def test_dangling_edges(self):
        graph = TaskGraph([Task("A", "A")], [Dependency("A", "Z"), Dependency("Y", "A")])
        self.assertEqual(len(graph.dangling_edges), 2)
        self.assertEqual(graph.successors_of("A"), [])

    def test_cycles_reported(self):
        tasks = [Task("A", "A"), Task("B", "B"), Task("C", "C")]
        dependencies = [
            Dependency("A", "B"),
            Dependency("B", "A"),
            Dependency("B", "C"),
        ]
        graph = TaskGraph(tasks, dependencies)

        self.assertEqual(graph.find_cycles(), [["A", "B"]])

        with self.assertLogs("cpmengine.utils.graph", level="WARNING"):
            order, cycles = graph.topological_order()
        self.assertEqual(cycles, [["A", "B"]])
        self.assertEqual(order, ["A", "B", "C"])

    def test_tasks_dict_accepted(self):
        graph = TaskGraph({t.id: t for t in self.tasks}, self.dependencies)
        self.assertEqual(list(graph.tasks), ["D", "C", "B", "A"])


if __name__ == "__main__":
    unittest.main()
