"""Tests for per-server resource aggregation."""

from __future__ import annotations

from resmap.graph.aggregation import (
    aggregate,
    aggregate_server,
    dependency_key,
    resolve_credential,
    resolve_service_ref,
    service_ref_label,
    valid_dependencies,
)
from resmap.models.snapshot import Credential, Dependency, Domain, Server, Service, ServiceRef, Snapshot


def _make_snapshot() -> Snapshot:
    shared_cred = Credential(id=10, name="deploy-key")
    return Snapshot(
        servers=(
            Server(id=1, name="web-01", credentials=(shared_cred,), domains=(Domain(id=20),)),
            Server(id=2, name="empty"),
        ),
        services=(
            Service(
                id=100,
                name="nginx",
                server_ids=(1,),
                credentials=(shared_cred, Credential(id=11)),
                domains=(Domain(id=20), Domain(id=21)),
                dependencies=(
                    Dependency(id=1000, dependency_service=ServiceRef(id=101)),
                    Dependency(id=1001, external_service_name="Stripe"),
                    Dependency(id=1002),
                ),
            ),
            Service(
                id=101,
                name="api",
                port=8080,
                server_ids=(1,),
                credentials=(Credential(id=11),),
                dependencies=(
                    Dependency(id=1003, dependency_service=ServiceRef(id=101)),
                    Dependency(id=1004, external_service_name=""),
                ),
            ),
        ),
        credentials=(Credential(id=10, name="deploy-key", type="ssh"), Credential(id=11, name="db")),
    )


class TestAggregateServer:
    def test_union_is_deduplicated_in_first_seen_order(self) -> None:
        snapshot = _make_snapshot()
        resources = aggregate_server(snapshot, snapshot.servers[0])
        assert [s.id for s in resources.services] == [100, 101]
        assert [c.id for c in resources.credentials] == [10, 11]
        assert [d.id for d in resources.domains] == [20, 21]

    def test_internal_dependencies_collapse_on_target(self) -> None:
        snapshot = _make_snapshot()
        resources = aggregate_server(snapshot, snapshot.servers[0])
        assert [d.id for d in resources.dependencies] == [1000, 1001]

    def test_invalid_dependencies_are_dropped_and_counted(self) -> None:
        snapshot = _make_snapshot()
        resources = aggregate_server(snapshot, snapshot.servers[0])
        assert resources.dropped_dependencies == 2
        assert all(d.is_valid for d in resources.dependencies)

    def test_valid_dependencies_keeps_internal_and_named_external(self) -> None:
        nginx, api = _make_snapshot().services
        assert [d.id for d in valid_dependencies(nginx)] == [1000, 1001]
        assert [d.id for d in valid_dependencies(api)] == [1003]

    def test_server_without_relationships_has_no_resources(self) -> None:
        snapshot = _make_snapshot()
        assert not aggregate_server(snapshot, snapshot.servers[1]).has_resources

    def test_server_owning_only_a_credential_has_resources(self) -> None:
        snapshot = Snapshot(servers=(Server(id=1, credentials=(Credential(id=5),)),))
        assert aggregate_server(snapshot, snapshot.servers[0]).has_resources

    def test_aggregate_covers_every_server_in_order(self) -> None:
        assert [r.server.id for r in aggregate(_make_snapshot())] == [1, 2]


class TestResolution:
    def test_dependency_key(self) -> None:
        assert dependency_key(Dependency(id=1, dependency_service=ServiceRef(id=7))) == ("service", 7)
        assert dependency_key(Dependency(id=3, external_service_name="S3")) == ("external", 3)

    def test_credential_prefers_top_level_record(self) -> None:
        snapshot = _make_snapshot()
        assert resolve_credential(snapshot, Credential(id=10)).type == "ssh"
        assert resolve_credential(snapshot, Credential(id=99, name="x")).name == "x"

    def test_bare_service_ref_is_filled_from_snapshot(self) -> None:
        ref = resolve_service_ref(_make_snapshot(), ServiceRef(id=101))
        assert ref == ServiceRef(id=101, name="api", port=8080)

    def test_unknown_service_ref_is_kept(self) -> None:
        assert resolve_service_ref(_make_snapshot(), ServiceRef(id=404)) == ServiceRef(id=404)

    def test_service_ref_label(self) -> None:
        assert service_ref_label(ServiceRef(id=1, name="api", port=80)) == "api:80"
        assert service_ref_label(ServiceRef(id=1, name="api")) == "api"
        assert service_ref_label(ServiceRef(id=404)) == "service #404"
