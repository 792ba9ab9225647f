"""Per-server aggregation of child resources.

For each server the builder needs the union of credentials, domains and
dependencies reachable through the server itself and through every service
attached to it, deduplicated by resource identity within that union.
Dependency records that name neither an internal service nor an external
service are filtered out here and never reach the builder.
"""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from resmap.models.snapshot import (
    Credential,
    Dependency,
    Domain,
    Server,
    Service,
    ServiceRef,
    Snapshot,
)

_log = structlog.get_logger(component="graph.aggregation")


@dataclass(frozen=True)
class ServerResources:
    """Everything drawn for one server, in first-seen order."""

    server: Server
    services: tuple[Service, ...] = ()
    credentials: tuple[Credential, ...] = ()
    domains: tuple[Domain, ...] = ()
    dependencies: tuple[Dependency, ...] = ()
    dropped_dependencies: int = 0

    @property
    def has_resources(self) -> bool:
        return bool(self.services or self.credentials or self.domains)


def valid_dependencies(service: Service) -> list[Dependency]:
    """The service's dependency records, minus those with no target."""
    return [dep for dep in service.dependencies if dep.is_valid]


def dependency_key(dep: Dependency) -> tuple[str, int]:
    """Identity used to dedup dependencies within one server's union.

    Internal dependencies collapse on the target service; external ones have
    no identity beyond their own record.
    """
    if dep.dependency_service is not None:
        return ("service", dep.dependency_service.id)
    return ("external", dep.id)


def resolve_credential(snapshot: Snapshot, ref: Credential) -> Credential:
    """Prefer the top-level credential record; fall back to the embedded one."""
    return snapshot.credential(ref.id) or ref


def resolve_domain(snapshot: Snapshot, ref: Domain) -> Domain:
    return snapshot.domain(ref.id) or ref


def resolve_service_ref(snapshot: Snapshot, ref: ServiceRef) -> ServiceRef:
    """Fill in name and port of a bare foreign-key reference from the snapshot."""
    if ref.name:
        return ref
    service = snapshot.service(ref.id)
    if service is None:
        return ref
    return ServiceRef(id=service.id, name=service.name, port=service.port)


def service_ref_label(ref: ServiceRef) -> str:
    if not ref.name:
        return f"service #{ref.id}"
    return f"{ref.name}:{ref.port}" if ref.port is not None else ref.name


def aggregate_server(snapshot: Snapshot, server: Server) -> ServerResources:
    """Compute the deduplicated resource union for *server*."""
    services = snapshot.services_for_server(server)

    credentials: dict[int, Credential] = {}
    domains: dict[int, Domain] = {}
    dependencies: dict[tuple[str, int], Dependency] = {}
    dropped = 0

    for cred in server.credentials:
        credentials.setdefault(cred.id, cred)
    for dom in server.domains:
        domains.setdefault(dom.id, dom)

    for service in services:
        for cred in service.credentials:
            credentials.setdefault(cred.id, cred)
        for dom in service.domains:
            domains.setdefault(dom.id, dom)
        valid = valid_dependencies(service)
        dropped += len(service.dependencies) - len(valid)
        for dep in valid:
            dependencies.setdefault(dependency_key(dep), dep)

    if dropped:
        _log.debug("invalid_dependencies_dropped", server_id=server.id, count=dropped)

    return ServerResources(
        server=server,
        services=tuple(services),
        credentials=tuple(credentials.values()),
        domains=tuple(domains.values()),
        dependencies=tuple(dependencies.values()),
        dropped_dependencies=dropped,
    )


def aggregate(snapshot: Snapshot) -> list[ServerResources]:
    """Aggregate every server of the snapshot, in snapshot order."""
    return [aggregate_server(snapshot, server) for server in snapshot.servers]
