"""Relational snapshot of the inventory, as served by the resource-map endpoint.

The snapshot is the single read-only input of the graph builder. It is parsed
once from the JSON payload (``Snapshot.from_dict``) and never mutated; every
rebuild of the graph starts from a fresh snapshot.

Association records in the payload come wrapped (``{"credential": {...}}``)
the way the ORM include produces them; unwrapped records are accepted too.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from functools import cached_property
from typing import Any


class SnapshotError(ValueError):
    """Raised when a snapshot payload cannot be interpreted."""


@dataclass(frozen=True)
class Tag:
    """A key/value label attached to a server or service."""

    id: int
    name: str
    value: str | None = None
    color: str | None = None


@dataclass(frozen=True)
class Credential:
    id: int
    name: str = ""
    type: str = ""


@dataclass(frozen=True)
class Domain:
    id: int
    name: str = ""


@dataclass(frozen=True)
class ServiceRef:
    """Minimal reference to a service, as embedded in a dependency record."""

    id: int
    name: str = ""
    port: int | None = None


@dataclass(frozen=True)
class Dependency:
    """A dependency edge declared by a service.

    Exactly one of ``dependency_service`` (internal) or
    ``external_service_name`` (external) is expected to be populated. Records
    with neither are invalid and are dropped during aggregation.
    """

    id: int
    dependency_service: ServiceRef | None = None
    external_service_name: str | None = None
    external_service_type: str | None = None
    external_service_url: str | None = None

    @property
    def is_internal(self) -> bool:
        return self.dependency_service is not None

    @property
    def is_external(self) -> bool:
        return not self.is_internal and bool(self.external_service_name and self.external_service_name.strip())

    @property
    def is_valid(self) -> bool:
        return self.is_internal or self.is_external


@dataclass(frozen=True)
class Server:
    id: int
    name: str = ""
    type: str = ""
    credentials: tuple[Credential, ...] = ()
    domains: tuple[Domain, ...] = ()
    tags: tuple[Tag, ...] = ()
    # Legacy back-reference: services listed on the server side.
    service_ids: tuple[int, ...] = ()


@dataclass(frozen=True)
class Service:
    id: int
    name: str = ""
    port: int | None = None
    server_ids: tuple[int, ...] = ()
    credentials: tuple[Credential, ...] = ()
    domains: tuple[Domain, ...] = ()
    dependencies: tuple[Dependency, ...] = ()
    tags: tuple[Tag, ...] = ()

    @property
    def label(self) -> str:
        return f"{self.name}:{self.port}" if self.port is not None else self.name


@dataclass(frozen=True)
class Snapshot:
    """Full relational read of servers, services, credentials and domains."""

    servers: tuple[Server, ...] = ()
    services: tuple[Service, ...] = ()
    credentials: tuple[Credential, ...] = ()
    domains: tuple[Domain, ...] = ()

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    @cached_property
    def _services_by_id(self) -> dict[int, Service]:
        return {s.id: s for s in self.services}

    @cached_property
    def _credentials_by_id(self) -> dict[int, Credential]:
        return {c.id: c for c in self.credentials}

    @cached_property
    def _domains_by_id(self) -> dict[int, Domain]:
        return {d.id: d for d in self.domains}

    def service(self, service_id: int) -> Service | None:
        return self._services_by_id.get(service_id)

    def credential(self, credential_id: int) -> Credential | None:
        return self._credentials_by_id.get(credential_id)

    def domain(self, domain_id: int) -> Domain | None:
        return self._domains_by_id.get(domain_id)

    def services_for_server(self, server: Server) -> list[Service]:
        """Services attached to *server*, in snapshot order.

        A service is attached when it lists the server itself or when the
        server lists the service in its legacy ``services`` back-reference.
        """
        legacy = set(server.service_ids)
        return [s for s in self.services if server.id in s.server_ids or s.id in legacy]

    @property
    def is_empty(self) -> bool:
        return not (self.servers or self.services or self.credentials or self.domains)

    # ------------------------------------------------------------------
    # Parsing
    # ------------------------------------------------------------------

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> Snapshot:
        """Parse the resource-map JSON payload.

        Raises:
            SnapshotError: when the payload or one of its records is malformed.
        """
        if not isinstance(payload, Mapping):
            raise SnapshotError("snapshot payload must be an object")
        return cls(
            servers=tuple(_parse_server(o) for o in _records(payload, "servers", "snapshot")),
            services=tuple(_parse_service(o) for o in _records(payload, "services", "snapshot")),
            credentials=tuple(_parse_credential(o) for o in _records(payload, "credentials", "snapshot")),
            domains=tuple(_parse_domain(o) for o in _records(payload, "domains", "snapshot")),
        )


# ---------------------------------------------------------------------------
# Parsing helpers
# ---------------------------------------------------------------------------


def _records(obj: Mapping[str, Any], key: str, where: str) -> list[Mapping[str, Any]]:
    """Return the list under *key*; missing or null means empty."""
    value = obj.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise SnapshotError(f"{where}.{key} must be a list")
    for item in value:
        if item is not None and not isinstance(item, Mapping):
            raise SnapshotError(f"{where}.{key} entries must be objects")
    return [item for item in value if item is not None]


def _unwrap(items: Iterable[Mapping[str, Any]], wrapper: str) -> list[Mapping[str, Any]]:
    """Strip ORM join wrappers such as ``{"credential": {...}}``.

    A wrapper whose inner record is null is skipped, matching how the join
    table reports a deleted target.
    """
    out: list[Mapping[str, Any]] = []
    for item in items:
        if wrapper in item:
            inner = item[wrapper]
            if inner is None:
                continue
            if not isinstance(inner, Mapping):
                raise SnapshotError(f"{wrapper} reference must be an object")
            out.append(inner)
        else:
            out.append(item)
    return out


def _require_id(obj: Mapping[str, Any], where: str, key: str = "id") -> int:
    value = obj.get(key)
    if isinstance(value, bool) or not isinstance(value, int):
        raise SnapshotError(f"{where} requires an integer '{key}', got {value!r}")
    return value


def _opt_int(obj: Mapping[str, Any], key: str) -> int | None:
    value = obj.get(key)
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdecimal():
        return int(value)
    return None


def _opt_str(obj: Mapping[str, Any], key: str) -> str | None:
    value = obj.get(key)
    return None if value is None else str(value)


def _parse_tag(obj: Mapping[str, Any]) -> Tag:
    return Tag(
        id=_require_id(obj, "tag"),
        name=str(obj.get("name") or ""),
        value=_opt_str(obj, "value"),
        color=_opt_str(obj, "color"),
    )


def _parse_credential(obj: Mapping[str, Any]) -> Credential:
    return Credential(
        id=_require_id(obj, "credential"),
        name=str(obj.get("name") or ""),
        type=str(obj.get("type") or ""),
    )


def _parse_domain(obj: Mapping[str, Any]) -> Domain:
    return Domain(id=_require_id(obj, "domain"), name=str(obj.get("name") or ""))


def _parse_tags(obj: Mapping[str, Any], where: str) -> tuple[Tag, ...]:
    return tuple(_parse_tag(t) for t in _unwrap(_records(obj, "tags", where), "tag"))


def _parse_server(obj: Mapping[str, Any]) -> Server:
    server_id = _require_id(obj, "server")
    where = f"server[{server_id}]"
    return Server(
        id=server_id,
        name=str(obj.get("name") or ""),
        type=str(obj.get("type") or ""),
        credentials=tuple(_parse_credential(c) for c in _unwrap(_records(obj, "credentials", where), "credential")),
        domains=tuple(_parse_domain(d) for d in _unwrap(_records(obj, "domains", where), "domain")),
        tags=_parse_tags(obj, where),
        service_ids=tuple(
            _require_id(s, f"{where}.services") for s in _unwrap(_records(obj, "services", where), "service")
        ),
    )


def _parse_dependency(obj: Mapping[str, Any], where: str) -> Dependency:
    dep_id = _require_id(obj, where)
    target = obj.get("dependencyService")
    ref: ServiceRef | None = None
    target_id = _opt_int(target, "id") if isinstance(target, Mapping) else None
    if isinstance(target, Mapping) and target_id is not None:
        ref = ServiceRef(
            id=target_id,
            name=str(target.get("name") or ""),
            port=_opt_int(target, "port"),
        )
    elif target is None and (fk := _opt_int(obj, "dependencyServiceId")) is not None:
        # Only the foreign key was selected; name and port resolve from the snapshot.
        ref = ServiceRef(id=fk)
    return Dependency(
        id=dep_id,
        dependency_service=ref,
        external_service_name=_opt_str(obj, "externalServiceName"),
        external_service_type=_opt_str(obj, "externalServiceType"),
        external_service_url=_opt_str(obj, "externalServiceUrl"),
    )


def _parse_service(obj: Mapping[str, Any]) -> Service:
    service_id = _require_id(obj, "service")
    where = f"service[{service_id}]"

    server_ids: list[int] = [
        _require_id(s, f"{where}.servers") for s in _unwrap(_records(obj, "servers", where), "server")
    ]
    legacy = obj.get("server")
    if isinstance(legacy, Mapping):
        server_ids.append(_require_id(legacy, f"{where}.server"))
    legacy_id = _opt_int(obj, "serverId")
    if legacy_id is not None:
        server_ids.append(legacy_id)

    return Service(
        id=service_id,
        name=str(obj.get("name") or ""),
        port=_opt_int(obj, "port"),
        server_ids=tuple(dict.fromkeys(server_ids)),
        credentials=tuple(_parse_credential(c) for c in _unwrap(_records(obj, "credentials", where), "credential")),
        domains=tuple(_parse_domain(d) for d in _unwrap(_records(obj, "domains", where), "domain")),
        dependencies=tuple(
            _parse_dependency(d, f"{where}.dependency") for d in _records(obj, "dependencies", where)
        ),
        tags=_parse_tags(obj, where),
    )
