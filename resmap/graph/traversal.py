"""Undirected traversal over a built graph.

The adjacency index is built once per graph. Each traversal touches every
incident edge of a visited node once, so an edge is looked at no more than
twice (once from each endpoint).
"""

from __future__ import annotations

from collections import defaultdict, deque

from resmap.graph.models import Graph, TraversalResult


class Adjacency:
    """node id -> [(edge id, neighbour id), ...] in edge order."""

    def __init__(self, graph: Graph) -> None:
        self._incident: defaultdict[str, list[tuple[str, str]]] = defaultdict(list)
        self._node_ids = frozenset(n.id for n in graph.nodes)
        for edge in graph.edges:
            self._incident[edge.source].append((edge.id, edge.target))
            if edge.target != edge.source:
                self._incident[edge.target].append((edge.id, edge.source))

    def __contains__(self, node_id: str) -> bool:
        return node_id in self._node_ids

    def incident(self, node_id: str) -> list[tuple[str, str]]:
        return self._incident.get(node_id, [])

    def connected_component(self, start: str) -> TraversalResult:
        """Every node reachable from *start* and every edge touched on the way.

        Edges between two already-visited nodes are still recorded.
        """
        if start not in self:
            return TraversalResult()
        visited = {start}
        edges: set[str] = set()
        depth = {start: 0}
        queue = deque([start])
        while queue:
            current = queue.popleft()
            for edge_id, neighbour in self.incident(current):
                edges.add(edge_id)
                if neighbour not in visited:
                    visited.add(neighbour)
                    depth[neighbour] = depth[current] + 1
                    queue.append(neighbour)
        return TraversalResult(
            node_ids=frozenset(visited),
            edge_ids=frozenset(edges),
            depth_reached=max(depth.values()),
        )

    def neighbourhood(self, center: str) -> TraversalResult:
        """*center*, its direct neighbours, and the edges incident to it."""
        if center not in self:
            return TraversalResult()
        nodes = {center}
        edges: set[str] = set()
        for edge_id, neighbour in self.incident(center):
            edges.add(edge_id)
            nodes.add(neighbour)
        return TraversalResult(
            node_ids=frozenset(nodes),
            edge_ids=frozenset(edges),
            depth_reached=1 if edges else 0,
        )
