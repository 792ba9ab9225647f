"""Data structures for the resource dependency graph."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from functools import cached_property
from typing import Any


class NodeKind(StrEnum):
    """Kinds of node the builder emits. Closed set; see palette.NODE_COLORS."""

    SERVER = "server"
    SERVICE = "service"
    CREDENTIAL = "credential"
    DOMAIN = "domain"
    EXTERNAL_SERVICE = "external-service"
    GROUP = "group"


class RelationKind(StrEnum):
    """Types of relationships between inventory resources."""

    HOSTS = "hosts"  # server -> service (or services group)
    CREDENTIAL = "credential"
    DOMAIN = "domain"
    INTERNAL_DEPENDENCY = "internal_dependency"
    EXTERNAL_DEPENDENCY = "external_dependency"


class GroupType(StrEnum):
    """What a synthetic group node contains (grouped layout only)."""

    SERVICES = "services"
    DEPENDENCIES = "dependencies"
    CREDENTIALS = "credentials"
    DOMAINS = "domains"


@dataclass(frozen=True)
class Position:
    x: float
    y: float


@dataclass(frozen=True)
class EdgeStyle:
    """Base visual weight of an edge, before any highlighting."""

    color: str
    width: float = 2
    dashed: bool = False
    opacity: float = 1.0


@dataclass(frozen=True)
class GraphNode:
    """A positioned node. Positions of grouped children are parent-relative."""

    id: str
    kind: NodeKind
    position: Position
    payload: dict[str, Any] = field(default_factory=dict, hash=False, compare=True)
    parent_group_id: str | None = None
    width: float | None = None
    height: float | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "kind": self.kind.value,
            "position": {"x": self.position.x, "y": self.position.y},
            "payload": dict(self.payload),
            "parent_group_id": self.parent_group_id,
            "width": self.width,
            "height": self.height,
        }


@dataclass(frozen=True)
class GraphEdge:
    """A directed, styled edge between two node ids."""

    id: str
    source: str
    target: str
    source_handle: str
    target_handle: str
    relation: RelationKind
    style: EdgeStyle

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "source": self.source,
            "target": self.target,
            "source_handle": self.source_handle,
            "target_handle": self.target_handle,
            "relation": self.relation.value,
            "style": {
                "color": self.style.color,
                "width": self.style.width,
                "dashed": self.style.dashed,
                "opacity": self.style.opacity,
            },
        }


@dataclass(frozen=True)
class Graph:
    """Immutable output of one build. Rebuilt in full on every snapshot change."""

    nodes: tuple[GraphNode, ...] = ()
    edges: tuple[GraphEdge, ...] = ()

    @cached_property
    def _nodes_by_id(self) -> dict[str, GraphNode]:
        return {n.id: n for n in self.nodes}

    def node(self, node_id: str) -> GraphNode | None:
        return self._nodes_by_id.get(node_id)

    def has_node(self, node_id: str) -> bool:
        return node_id in self._nodes_by_id

    @property
    def node_count(self) -> int:
        return len(self.nodes)

    @property
    def edge_count(self) -> int:
        return len(self.edges)

    def nodes_of_kind(self, kind: NodeKind) -> list[GraphNode]:
        return [n for n in self.nodes if n.kind is kind]

    def to_dict(self) -> dict[str, Any]:
        return {
            "nodes": [n.to_dict() for n in self.nodes],
            "edges": [e.to_dict() for e in self.edges],
        }


@dataclass(frozen=True)
class TraversalResult:
    """Result of a graph traversal query."""

    node_ids: frozenset[str] = frozenset()
    edge_ids: frozenset[str] = frozenset()
    depth_reached: int = 0
