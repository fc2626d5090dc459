import logging

import networkx as nx

logger = logging.getLogger(__name__)


class TaskGraph:
    """
    Directed dependency graph over the tasks of one project scope.

    Nodes are task ids. The Dependency records are kept per node so that two
    tasks linked by more than one relationship type keep every edge, while
    the networkx graph only records the precedence structure.
    """

    def __init__(self, tasks, dependencies=()):
        """
        Build the graph.

        Args:
            tasks: Iterable of Task objects, or a dict keyed by task id
            dependencies: Iterable of Dependency edges
        """
        if isinstance(tasks, dict):
            tasks = tasks.values()

        self.tasks = {}
        self.graph = nx.DiGraph()
        self.dangling_edges = []
        self._incoming = {}
        self._outgoing = {}

        for task in tasks:
            self.tasks[task.id] = task
            self.graph.add_node(task.id, task=task)
            self._incoming[task.id] = []
            self._outgoing[task.id] = []

        for dep in dependencies:
            if dep.predecessor_id in self.tasks and dep.successor_id in self.tasks:
                self.graph.add_edge(dep.predecessor_id, dep.successor_id)
                self._incoming[dep.successor_id].append(dep)
                self._outgoing[dep.predecessor_id].append(dep)
            else:
                self.dangling_edges.append(dep)

    def __len__(self):
        return len(self.tasks)

    def __contains__(self, task_id):
        return task_id in self.tasks

    def predecessors_of(self, task_id):
        """Return the edges for which the task is the successor."""
        return list(self._incoming.get(task_id, []))

    def successors_of(self, task_id):
        """Return the edges for which the task is the predecessor."""
        return list(self._outgoing.get(task_id, []))

    def _positions(self):
        return {task_id: i for i, task_id in enumerate(self.tasks)}

    def find_cycles(self):
        """
        Return every cyclic group of tasks.

        Each group is a strongly connected component with more than one task.
        Members are listed in the order the tasks were added.
        """
        position = self._positions()
        cycles = [
            sorted(component, key=position.get)
            for component in nx.strongly_connected_components(self.graph)
            if len(component) > 1
        ]
        cycles.sort(key=lambda members: position[members[0]])
        return cycles

    def topological_order(self):
        """
        Order the tasks so that predecessors come before successors.

        Cycles do not stop the ordering: the graph is condensed into its
        strongly connected components, the components are sorted
        topologically and the members of a cyclic component are emitted in
        input order. The cyclic groups are returned alongside the order so
        callers can report them.

        Returns:
            tuple: (list of task ids, list of cyclic groups)
        """
        position = self._positions()
        condensed = nx.condensation(self.graph)
        members = nx.get_node_attributes(condensed, "members")
        first_position = {
            component: min(position[n] for n in nodes)
            for component, nodes in members.items()
        }

        order = []
        for component in nx.lexicographical_topological_sort(
            condensed, key=first_position.get
        ):
            order.extend(sorted(members[component], key=position.get))

        cycles = self.find_cycles()
        if cycles:
            logger.warning(
                "Dependency graph contains %d cycle(s): %s",
                len(cycles),
                "; ".join(" -> ".join(str(t) for t in c) for c in cycles),
            )

        return order, cycles
