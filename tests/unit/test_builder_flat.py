"""Tests for the flat layout: one globally deduplicated node per entity."""

from __future__ import annotations

from resmap.graph.builder import FlatLayout, build_graph
from resmap.graph.models import Graph, NodeKind, Position, RelationKind
from resmap.graph.palette import NEUTRAL_GRAY, NODE_COLORS
from resmap.models.config import LayoutConfig
from resmap.models.snapshot import Credential, Dependency, Domain, Server, Service, ServiceRef, Snapshot


def _make_snapshot() -> Snapshot:
    return Snapshot(
        servers=(Server(id=1, credentials=(Credential(id=10),)), Server(id=2), Server(id=3)),
        services=(
            Service(
                id=100,
                name="nginx",
                server_ids=(1, 2),
                credentials=(Credential(id=10), Credential(id=11)),
                domains=(Domain(id=20),),
                dependencies=(
                    Dependency(id=1000, dependency_service=ServiceRef(id=101)),
                    Dependency(id=1001, dependency_service=ServiceRef(id=101)),
                    Dependency(id=1002, external_service_name="S3", external_service_type="storage"),
                    Dependency(id=1003, dependency_service=ServiceRef(id=200)),
                    Dependency(id=1004),
                ),
            ),
            Service(id=101, name="api", server_ids=(1,), credentials=(Credential(id=11),)),
            Service(id=200, name="batch", port=9000),
        ),
    )


def _build() -> Graph:
    return build_graph(_make_snapshot(), layout="flat")


class TestFlatNodes:
    def test_nodes_are_globally_deduplicated(self) -> None:
        graph = _build()
        assert [n.id for n in graph.nodes] == [
            "server-1",
            "service-100",
            "service-101",
            "server-2",
            "credential-10",
            "credential-11",
            "domain-20",
            "external-1002",
            "service-200",
        ]

    def test_no_group_nodes_and_no_parents(self) -> None:
        graph = _build()
        assert graph.nodes_of_kind(NodeKind.GROUP) == []
        assert all(n.parent_group_id is None for n in graph.nodes)

    def test_server_without_relationships_is_omitted(self) -> None:
        assert not _build().has_node("server-3")

    def test_dependency_target_outside_any_server_gets_resource_column(self) -> None:
        node = _build().node("service-200")
        assert node is not None
        assert node.position.x == 650
        assert node.payload["label"] == "batch:9000"

    def test_external_payload(self) -> None:
        node = _build().node("external-1002")
        assert node is not None
        assert node.kind is NodeKind.EXTERNAL_SERVICE
        assert node.payload["service_type"] == "storage"


class TestFlatPositions:
    def test_columns_and_first_placement_wins(self) -> None:
        graph = _build()

        def pos(node_id: str) -> Position:
            node = graph.node(node_id)
            assert node is not None
            return node.position

        assert pos("server-1") == Position(0, 0)
        assert pos("server-2") == Position(0, 400)
        assert pos("service-100") == Position(300, 0)
        assert pos("service-101") == Position(300, 100)
        assert pos("credential-10") == Position(650, 0)
        assert pos("credential-11") == Position(650, 100)
        assert pos("domain-20") == Position(650, 200)
        assert pos("external-1002") == Position(650, 300)
        assert pos("service-200") == Position(650, 400)


class TestFlatEdges:
    def test_edges_in_build_order(self) -> None:
        graph = _build()
        assert [e.id for e in graph.edges] == [
            "edge-server-1-service-100",
            "edge-server-1-service-101",
            "edge-server-2-service-100",
            "edge-server-1-credential-10",
            "edge-service-100-credential-10",
            "edge-service-100-credential-11",
            "edge-service-100-domain-20",
            "edge-service-100-service-101",
            "edge-service-100-service-101#1",
            "edge-service-100-external-1002",
            "edge-service-100-service-200",
            "edge-service-101-credential-11",
        ]

    def test_shared_service_has_one_hosts_edge_per_server(self) -> None:
        hosts = [e for e in _build().edges if e.target == "service-100" and e.relation is RelationKind.HOSTS]
        assert [e.source for e in hosts] == ["server-1", "server-2"]

    def test_parallel_dependency_edges_use_distinct_slots(self) -> None:
        parallel = [e for e in _build().edges if e.source == "service-100" and e.target == "service-101"]
        assert [e.source_handle for e in parallel] == ["right-center", "right-top"]
        assert [e.target_handle for e in parallel] == ["left-center", "left-top"]

    def test_relation_styles(self) -> None:
        edges = {e.id: e for e in _build().edges}
        hosts = edges["edge-server-1-service-100"].style
        assert hosts.color == NEUTRAL_GRAY and not hosts.dashed
        cred = edges["edge-service-100-credential-11"].style
        assert cred.color == NODE_COLORS[NodeKind.CREDENTIAL] and not cred.dashed
        domain = edges["edge-service-100-domain-20"].style
        assert domain.color == NODE_COLORS[NodeKind.DOMAIN] and not domain.dashed
        internal = edges["edge-service-100-service-101"]
        assert internal.relation is RelationKind.INTERNAL_DEPENDENCY
        assert internal.style.color == NODE_COLORS[NodeKind.SERVICE] and internal.style.dashed
        external = edges["edge-service-100-external-1002"]
        assert external.relation is RelationKind.EXTERNAL_DEPENDENCY
        assert external.style.color == NODE_COLORS[NodeKind.EXTERNAL_SERVICE] and external.style.dashed

    def test_invalid_dependency_produces_no_edge(self) -> None:
        assert not any("1004" in e.id for e in _build().edges)


class TestFlatEdgeCases:
    def test_empty_snapshot(self) -> None:
        graph = FlatLayout().layout(Snapshot(), LayoutConfig())
        assert graph.node_count == 0

    def test_credential_shared_by_two_services_is_one_node(self) -> None:
        shared = Credential(id=10)
        snapshot = Snapshot(
            servers=(Server(id=1),),
            services=(
                Service(id=100, server_ids=(1,), credentials=(shared,)),
                Service(id=101, server_ids=(1,), credentials=(shared,)),
            ),
        )
        graph = build_graph(snapshot, layout="flat")
        assert [n.id for n in graph.nodes_of_kind(NodeKind.CREDENTIAL)] == ["credential-10"]
        assert sum(1 for e in graph.edges if e.target == "credential-10") == 2
