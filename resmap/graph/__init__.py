"""Resource dependency graph construction and traversal.

Turns a relational inventory snapshot (servers, services, credentials,
domains, dependencies) into a positioned node/edge graph, in either the
grouped layout (per-server group nodes) or the flat layout (one globally
deduplicated node per entity).
"""

from resmap.graph.builder import (
    FlatLayout,
    GroupedLayout,
    LayoutStrategy,
    UnknownLayoutError,
    build_graph,
    resolve_layout,
)
from resmap.graph.filtering import SnapshotStats, filter_snapshot, snapshot_stats
from resmap.graph.models import (
    EdgeStyle,
    Graph,
    GraphEdge,
    GraphNode,
    GroupType,
    NodeKind,
    Position,
    RelationKind,
    TraversalResult,
)
from resmap.graph.traversal import Adjacency

__all__ = [
    "Adjacency",
    "EdgeStyle",
    "FlatLayout",
    "Graph",
    "GraphEdge",
    "GraphNode",
    "GroupType",
    "GroupedLayout",
    "LayoutStrategy",
    "NodeKind",
    "Position",
    "RelationKind",
    "SnapshotStats",
    "TraversalResult",
    "UnknownLayoutError",
    "build_graph",
    "filter_snapshot",
    "resolve_layout",
    "snapshot_stats",
]
