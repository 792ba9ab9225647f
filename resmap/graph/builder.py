"""Graph builder: relational snapshot -> positioned, deduplicated graph.

Two layout strategies implement the same contract:

* ``GroupedLayout`` (default) nests the services of each server in a
  "Services" group node and summarizes aggregated dependencies, credentials
  and domains in one group node per kind. Entities are instantiated per
  server scope: a credential used on two servers appears once under each.
* ``FlatLayout`` draws every entity as its own node and deduplicates
  globally: a service, credential or domain reachable from several servers
  is a single node with several incoming edges.

Both strategies run a single pass over the snapshot with a fresh
``_GraphAccumulator``; nothing is cached between builds.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

import structlog

from resmap.graph.aggregation import (
    ServerResources,
    aggregate,
    resolve_credential,
    resolve_domain,
    resolve_service_ref,
    service_ref_label,
    valid_dependencies,
)
from resmap.graph.handles import HandleAllocator, edge_id
from resmap.graph.models import (
    EdgeStyle,
    Graph,
    GraphEdge,
    GraphNode,
    GroupType,
    NodeKind,
    Position,
    RelationKind,
)
from resmap.graph.palette import (
    GROUP_COLORS,
    GROUP_EDGE_STYLES,
    GROUP_LABELS,
    RELATION_STYLES,
    resource_url,
)
from resmap.models.config import LayoutConfig
from resmap.models.snapshot import (
    Credential,
    Dependency,
    Domain,
    Server,
    Service,
    ServiceRef,
    Snapshot,
    Tag,
)

_log = structlog.get_logger(component="graph.builder")

_GROUP_RELATIONS: dict[GroupType, RelationKind] = {
    GroupType.SERVICES: RelationKind.HOSTS,
    GroupType.DEPENDENCIES: RelationKind.INTERNAL_DEPENDENCY,
    GroupType.CREDENTIALS: RelationKind.CREDENTIAL,
    GroupType.DOMAINS: RelationKind.DOMAIN,
}


class UnknownLayoutError(ValueError):
    """Raised when a layout name does not match a registered strategy."""


# ---------------------------------------------------------------------------
# Per-build state
# ---------------------------------------------------------------------------


class _GraphAccumulator:
    """Nodes, edges and handle counts for a single build."""

    def __init__(self) -> None:
        self._nodes: dict[str, GraphNode] = {}
        self._edges: list[GraphEdge] = []
        self._handles = HandleAllocator()

    def __contains__(self, node_id: str) -> bool:
        return node_id in self._nodes

    def add_node(self, node: GraphNode) -> GraphNode:
        """Add *node* unless its id is taken; return the node stored under that id."""
        existing = self._nodes.get(node.id)
        if existing is not None:
            return existing
        self._nodes[node.id] = node
        return node

    def position_of(self, node_id: str) -> Position | None:
        node = self._nodes.get(node_id)
        return node.position if node is not None else None

    def connect(self, source: str, target: str, relation: RelationKind, style: EdgeStyle) -> GraphEdge:
        assignment = self._handles.assign(source, target)
        edge = GraphEdge(
            id=edge_id(source, target, assignment.ordinal),
            source=source,
            target=target,
            source_handle=assignment.source_handle,
            target_handle=assignment.target_handle,
            relation=relation,
            style=style,
        )
        self._edges.append(edge)
        return edge

    def finish(self) -> Graph:
        # Hosts need parents before children; sorted() is stable.
        nodes = sorted(self._nodes.values(), key=lambda n: n.parent_group_id is not None)
        return Graph(nodes=tuple(nodes), edges=tuple(self._edges))


# ---------------------------------------------------------------------------
# Payloads
# ---------------------------------------------------------------------------


def _tags(tags: tuple[Tag, ...]) -> list[dict[str, Any]]:
    return [{"id": t.id, "name": t.name, "value": t.value, "color": t.color} for t in tags]


def _payload(kind: NodeKind, entity_id: int | None, label: str, **extra: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "label": label,
        "resource_id": entity_id,
        "resource_type": kind.value,
        "resource_url": resource_url(kind, entity_id),
    }
    payload.update({k: v for k, v in extra.items() if v is not None and v != []})
    return payload


def _server_payload(server: Server) -> dict[str, Any]:
    return _payload(
        NodeKind.SERVER,
        server.id,
        server.name,
        server_type=server.type or None,
        tags=_tags(server.tags),
    )


def _service_payload(service: Service) -> dict[str, Any]:
    return _payload(
        NodeKind.SERVICE,
        service.id,
        service.label,
        port=service.port,
        tags=_tags(service.tags),
    )


def _service_ref_payload(ref: ServiceRef) -> dict[str, Any]:
    return _payload(NodeKind.SERVICE, ref.id, service_ref_label(ref), port=ref.port)


def _external_payload(dep: Dependency) -> dict[str, Any]:
    return _payload(
        NodeKind.EXTERNAL_SERVICE,
        dep.id,
        dep.external_service_name or "Unknown External Service",
        service_type=dep.external_service_type or None,
        url=dep.external_service_url or None,
    )


def _credential_payload(cred: Credential) -> dict[str, Any]:
    return _payload(NodeKind.CREDENTIAL, cred.id, cred.name, service_type=cred.type or None)


def _domain_payload(dom: Domain) -> dict[str, Any]:
    return _payload(NodeKind.DOMAIN, dom.id, dom.name)


def _dependency_target(snapshot: Snapshot, dep: Dependency) -> tuple[NodeKind, str, int, dict[str, Any]]:
    """(kind, id prefix, entity id, payload) of a dependency's target node.

    The layout decides the scope part of the node id.
    """
    if dep.dependency_service is not None:
        ref = resolve_service_ref(snapshot, dep.dependency_service)
        return NodeKind.SERVICE, "service", ref.id, _service_ref_payload(ref)
    return NodeKind.EXTERNAL_SERVICE, "external", dep.id, _external_payload(dep)


def _first_by_id(items: tuple[Any, ...]) -> list[Any]:
    seen: dict[int, Any] = {}
    for item in items:
        seen.setdefault(item.id, item)
    return list(seen.values())


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------


class LayoutStrategy(ABC):
    """Turns a snapshot into a positioned graph."""

    name: str = ""

    @abstractmethod
    def layout(self, snapshot: Snapshot, geometry: LayoutConfig) -> Graph:
        """Build the graph for *snapshot*. Must not raise for a well-typed snapshot."""


class GroupedLayout(LayoutStrategy):
    """Server -> Services group -> stacked resource groups, per-server scope."""

    name = "grouped"

    def layout(self, snapshot: Snapshot, geometry: LayoutConfig) -> Graph:
        acc = _GraphAccumulator()
        current_y = 0.0
        for resources in aggregate(snapshot):
            if not resources.has_resources:
                continue
            row_height = self._place_server(acc, snapshot, resources, current_y, geometry)
            current_y += row_height + geometry.server_spacing
        return acc.finish()

    def _place_server(
        self,
        acc: _GraphAccumulator,
        snapshot: Snapshot,
        resources: ServerResources,
        server_y: float,
        g: LayoutConfig,
    ) -> float:
        """Place one server row and return its height."""
        server = resources.server
        server_node_id = f"server-{server.id}"
        acc.add_node(
            GraphNode(
                id=server_node_id,
                kind=NodeKind.SERVER,
                position=Position(g.server_x, server_y),
                payload=_server_payload(server),
            )
        )

        services_group_id: str | None = None
        services_height = 0.0
        if resources.services:
            services_group_id = f"services-group-{server.id}"
            services_height = self._place_group(
                acc,
                group_id=services_group_id,
                group_type=GroupType.SERVICES,
                position=Position(g.services_x, server_y),
                children=[
                    (NodeKind.SERVICE, f"service-{server.id}-{svc.id}", _service_payload(svc))
                    for svc in resources.services
                ],
                child_height=g.service_node_height,
                child_spacing=g.service_spacing,
                g=g,
            )
            acc.connect(
                server_node_id,
                services_group_id,
                _GROUP_RELATIONS[GroupType.SERVICES],
                GROUP_EDGE_STYLES[GroupType.SERVICES],
            )

        hub = services_group_id or server_node_id
        offset = 0.0
        resource_groups: list[tuple[GroupType, str, list[tuple[NodeKind, str, dict[str, Any]]]]] = [
            (
                GroupType.DEPENDENCIES,
                f"deps-group-{server.id}",
                [
                    (kind, f"dep-{prefix}-{server.id}-{entity_id}", payload)
                    for kind, prefix, entity_id, payload in (
                        _dependency_target(snapshot, d) for d in resources.dependencies
                    )
                ],
            ),
            (
                GroupType.CREDENTIALS,
                f"creds-group-{server.id}",
                [
                    (NodeKind.CREDENTIAL, f"cred-{server.id}-{c.id}", _credential_payload(resolve_credential(snapshot, c)))
                    for c in resources.credentials
                ],
            ),
            (
                GroupType.DOMAINS,
                f"domains-group-{server.id}",
                [
                    (NodeKind.DOMAIN, f"domain-{server.id}-{d.id}", _domain_payload(resolve_domain(snapshot, d)))
                    for d in resources.domains
                ],
            ),
        ]
        for group_type, group_id, children in resource_groups:
            if not children:
                continue
            height = self._place_group(
                acc,
                group_id=group_id,
                group_type=group_type,
                position=Position(g.resources_x, server_y + offset),
                children=children,
                child_height=g.resource_node_height,
                child_spacing=g.resource_spacing,
                g=g,
            )
            acc.connect(hub, group_id, _GROUP_RELATIONS[group_type], GROUP_EDGE_STYLES[group_type])
            offset += height + g.group_spacing

        return max(services_height, offset - g.group_spacing if offset > 0 else 0.0)

    @staticmethod
    def _place_group(
        acc: _GraphAccumulator,
        *,
        group_id: str,
        group_type: GroupType,
        position: Position,
        children: list[tuple[NodeKind, str, dict[str, Any]]],
        child_height: float,
        child_spacing: float,
        g: LayoutConfig,
    ) -> float:
        """Add a group node sized to fit *children* plus the children; return its height."""
        height = (
            g.group_header_height
            + g.group_padding
            + len(children) * (child_height + child_spacing)
            - child_spacing
            + g.group_padding
        )
        acc.add_node(
            GraphNode(
                id=group_id,
                kind=NodeKind.GROUP,
                position=position,
                payload={
                    "label": GROUP_LABELS[group_type],
                    "group_type": group_type.value,
                    "child_count": len(children),
                    "color": GROUP_COLORS[group_type],
                },
                width=g.group_width,
                height=height,
            )
        )
        for idx, (kind, node_id, payload) in enumerate(children):
            acc.add_node(
                GraphNode(
                    id=node_id,
                    kind=kind,
                    position=Position(
                        g.group_padding,
                        g.group_header_height + g.group_padding + idx * (child_height + child_spacing),
                    ),
                    payload=payload,
                    parent_group_id=group_id,
                )
            )
        return height


class FlatLayout(LayoutStrategy):
    """One node per entity, globally deduplicated, three columns."""

    name = "flat"

    def layout(self, snapshot: Snapshot, geometry: LayoutConfig) -> Graph:
        build = _FlatBuild(snapshot, geometry)
        visible = [r for r in aggregate(snapshot) if r.has_resources]

        # Servers and their services first, so a service that is also a
        # dependency target sits in the services column.
        for row, resources in enumerate(visible):
            build.place_server(resources.server, row)
            for service in resources.services:
                build.place_service(resources.server, service)

        wired: set[int] = set()
        for resources in visible:
            server = resources.server
            build.wire_resources(f"server-{server.id}", server.credentials, server.domains)
            for service in resources.services:
                if service.id in wired:
                    continue
                wired.add(service.id)
                build.wire_resources(f"service-{service.id}", service.credentials, service.domains)
                for dep in valid_dependencies(service):
                    build.wire_dependency(service, dep)

        return build.acc.finish()


class _FlatBuild:
    """Column cursors and placement for one flat build; first placement wins."""

    def __init__(self, snapshot: Snapshot, geometry: LayoutConfig) -> None:
        self.acc = _GraphAccumulator()
        self._snapshot = snapshot
        self._g = geometry
        self._cursors: dict[float, float] = {}

    def _place(self, node_id: str, kind: NodeKind, payload: dict[str, Any], x: float) -> None:
        if node_id in self.acc:
            return
        y = self._cursors.get(x, 0.0)
        self.acc.add_node(GraphNode(id=node_id, kind=kind, position=Position(x, y), payload=payload))
        self._cursors[x] = y + self._g.flat_row_pitch

    def place_server(self, server: Server, row: int) -> None:
        self.acc.add_node(
            GraphNode(
                id=f"server-{server.id}",
                kind=NodeKind.SERVER,
                position=Position(self._g.server_x, row * self._g.server_spacing),
                payload=_server_payload(server),
            )
        )

    def place_service(self, server: Server, service: Service) -> None:
        node_id = f"service-{service.id}"
        self._place(node_id, NodeKind.SERVICE, _service_payload(service), self._g.services_x)
        self.acc.connect(f"server-{server.id}", node_id, RelationKind.HOSTS, RELATION_STYLES[RelationKind.HOSTS])

    def wire_resources(
        self,
        owner_id: str,
        credentials: tuple[Credential, ...],
        domains: tuple[Domain, ...],
    ) -> None:
        for ref in _first_by_id(credentials):
            cred = resolve_credential(self._snapshot, ref)
            node_id = f"credential-{cred.id}"
            self._place(node_id, NodeKind.CREDENTIAL, _credential_payload(cred), self._g.resources_x)
            self.acc.connect(owner_id, node_id, RelationKind.CREDENTIAL, RELATION_STYLES[RelationKind.CREDENTIAL])
        for ref in _first_by_id(domains):
            dom = resolve_domain(self._snapshot, ref)
            node_id = f"domain-{dom.id}"
            self._place(node_id, NodeKind.DOMAIN, _domain_payload(dom), self._g.resources_x)
            self.acc.connect(owner_id, node_id, RelationKind.DOMAIN, RELATION_STYLES[RelationKind.DOMAIN])

    def wire_dependency(self, service: Service, dep: Dependency) -> None:
        # Each record is its own edge: two records naming the same target
        # become parallel edges on distinct handle slots.
        kind, prefix, entity_id, payload = _dependency_target(self._snapshot, dep)
        node_id = f"{prefix}-{entity_id}"
        self._place(node_id, kind, payload, self._g.resources_x)
        relation = RelationKind.INTERNAL_DEPENDENCY if dep.is_internal else RelationKind.EXTERNAL_DEPENDENCY
        self.acc.connect(f"service-{service.id}", node_id, relation, RELATION_STYLES[relation])


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

LAYOUTS: dict[str, LayoutStrategy] = {
    GroupedLayout.name: GroupedLayout(),
    FlatLayout.name: FlatLayout(),
}


def resolve_layout(layout: str | LayoutStrategy) -> LayoutStrategy:
    if isinstance(layout, LayoutStrategy):
        return layout
    strategy = LAYOUTS.get(str(layout).lower())
    if strategy is None:
        raise UnknownLayoutError(f"Unknown layout: {layout}. Must be one of {sorted(LAYOUTS)}")
    return strategy


def build_graph(
    snapshot: Snapshot,
    layout: str | LayoutStrategy = "grouped",
    geometry: LayoutConfig | None = None,
) -> Graph:
    """Build the positioned graph for *snapshot*.

    Deterministic: the same snapshot always yields the same nodes and edges in
    the same order. Total over well-typed snapshots; an empty snapshot gives
    an empty graph.

    Raises:
        UnknownLayoutError: if *layout* names no registered strategy.
    """
    strategy = resolve_layout(layout)
    graph = strategy.layout(snapshot, geometry or LayoutConfig())
    _log.debug(
        "graph_built",
        layout=strategy.name,
        servers=len(snapshot.servers),
        nodes=graph.node_count,
        edges=graph.edge_count,
    )
    return graph
