"""Server filter and summary counts over a snapshot."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, replace

from resmap.models.snapshot import Snapshot


@dataclass(frozen=True)
class SnapshotStats:
    servers: int = 0
    services: int = 0
    credentials: int = 0
    domains: int = 0

    @property
    def is_empty(self) -> bool:
        return not (self.servers or self.services or self.credentials or self.domains)


def snapshot_stats(snapshot: Snapshot) -> SnapshotStats:
    return SnapshotStats(
        servers=len(snapshot.servers),
        services=len(snapshot.services),
        credentials=len(snapshot.credentials),
        domains=len(snapshot.domains),
    )


def filter_snapshot(snapshot: Snapshot, server_ids: Iterable[int]) -> Snapshot:
    """Restrict *snapshot* to the selected servers.

    Keeps the selected servers, the services attached to any of them, and the
    credentials and domains used by a kept server or a kept service. An empty
    selection means "no filter" and returns the snapshot unchanged.
    """
    selected = set(server_ids)
    if not selected:
        return snapshot

    servers = tuple(s for s in snapshot.servers if s.id in selected)
    kept_services: dict[int, None] = {}
    for server in servers:
        for service in snapshot.services_for_server(server):
            kept_services[service.id] = None
    services = tuple(s for s in snapshot.services if s.id in kept_services)

    credential_ids = {c.id for s in servers for c in s.credentials} | {
        c.id for s in services for c in s.credentials
    }
    domain_ids = {d.id for s in servers for d in s.domains} | {d.id for s in services for d in s.domains}

    return replace(
        snapshot,
        servers=servers,
        services=services,
        credentials=tuple(c for c in snapshot.credentials if c.id in credential_ids),
        domains=tuple(d for d in snapshot.domains if d.id in domain_ids),
    )
