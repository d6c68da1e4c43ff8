from __future__ import annotations

from collections import defaultdict
from collections.abc import Callable, Hashable, Iterable
from typing import Any

"""Cycle detection over a task dependency graph.

Edges point predecessor -> successor (the predecessor must finish before the
successor starts). The graph is supplied as a successor lookup so the same
detector works over an in-memory edge list (validation) and over the store
(single dependency creation).

All traversals use explicit stacks; a visited set bounds each search to the
edges reachable from its start node.
"""

__all__ = [
    "CycleDetector",
]

Node = Hashable


class CycleDetector:
    """Reachability queries over predecessor -> successor edges."""

    def __init__(self, successors: Callable[[Any], Iterable[Any]], nodes: Iterable[Any] | None = None) -> None:
        self._successors = successors
        self._nodes: list[Any] = list(nodes) if nodes is not None else []

    @classmethod
    def from_edges(cls, edges: Iterable[tuple[Any, Any]]) -> CycleDetector:
        """Build a detector from (predecessor, successor) pairs."""
        graph: dict[Any, list[Any]] = defaultdict(list)
        nodes: dict[Any, None] = {}
        for predecessor, successor in edges:
            graph[predecessor].append(successor)
            nodes.setdefault(predecessor)
            nodes.setdefault(successor)
        return cls(lambda node: graph.get(node, ()), nodes=nodes.keys())

    @staticmethod
    def _require(*nodes: Any) -> None:
        if any(n is None for n in nodes):
            raise ValueError("Task identifiers cannot be None")

    def _find_path(self, start: Any, target: Any) -> list[Any] | None:
        """Return one path start -> ... -> target (both inclusive), or None."""
        if start == target:
            return [start]
        visited = {start}
        path = [start]
        pending = [iter(list(self._successors(start)))]
        while pending:
            for nxt in pending[-1]:
                if nxt == target:
                    return path + [nxt]
                if nxt not in visited:
                    visited.add(nxt)
                    path.append(nxt)
                    pending.append(iter(list(self._successors(nxt))))
                    break
            else:
                # dead end: backtrack
                pending.pop()
                path.pop()
        return None

    def has_path(self, start: Any, target: Any) -> bool:
        self._require(start, target)
        return self._find_path(start, target) is not None

    def would_create_cycle(self, successor: Any, predecessor: Any) -> bool:
        """True if adding edge predecessor -> successor would close a loop.

        That is the case for a self edge, or when successor already reaches
        predecessor.
        """
        self._require(successor, predecessor)
        if successor == predecessor:
            return True
        return self._find_path(successor, predecessor) is not None

    def cycle_chain(self, successor: Any, predecessor: Any) -> list[Any]:
        """Concrete cycle the edge predecessor -> successor would close.

        Returned as [predecessor, successor, ..., predecessor]; [node] for a
        self edge; empty list when no cycle would be formed.
        """
        self._require(successor, predecessor)
        if successor == predecessor:
            return [successor]
        path = self._find_path(successor, predecessor)
        if path is None:
            return []
        return [predecessor] + path

    def detect_all_cycles(self, nodes: Iterable[Any] | None = None) -> set[Any]:
        """Every node that lies on at least one cycle.

        Depth-first search tracking the current recursion stack (Tarjan's
        strongly connected components): a component of more than one node, or
        a node with an edge to itself, is cycle-involved.
        """
        roots = list(nodes) if nodes is not None else list(self._nodes)
        self._require(*roots)

        index: dict[Any, int] = {}
        low: dict[Any, int] = {}
        stack: list[Any] = []
        on_stack: set[Any] = set()
        self_loops: set[Any] = set()
        involved: set[Any] = set()
        counter = 0

        for root in roots:
            if root in index:
                continue
            index[root] = low[root] = counter
            counter += 1
            stack.append(root)
            on_stack.add(root)
            work = [(root, iter(list(self._successors(root))))]

            while work:
                node, children = work[-1]
                descended = False
                for child in children:
                    if child not in index:
                        index[child] = low[child] = counter
                        counter += 1
                        stack.append(child)
                        on_stack.add(child)
                        work.append((child, iter(list(self._successors(child)))))
                        descended = True
                        break
                    if child in on_stack:
                        # back edge into the recursion stack
                        low[node] = min(low[node], index[child])
                        if child == node:
                            self_loops.add(node)
                if descended:
                    continue

                work.pop()
                if work:
                    parent = work[-1][0]
                    low[parent] = min(low[parent], low[node])
                if low[node] == index[node]:
                    component = []
                    while True:
                        member = stack.pop()
                        on_stack.discard(member)
                        component.append(member)
                        if member == node:
                            break
                    if len(component) > 1 or node in self_loops:
                        involved.update(component)

        return involved
