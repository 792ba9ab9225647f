"""Shared fixtures for resmap integration tests.

Provides payload factories shaped like the resource-map endpoint response
(ORM join wrappers included) so integration tests can exercise the full
pipeline: JSON payload -> Snapshot -> graph -> highlight -> render.
"""

from __future__ import annotations

from typing import Any

import pytest

from resmap.models.snapshot import Snapshot

# ---------------------------------------------------------------------------
# Payload factory helpers
# ---------------------------------------------------------------------------


def make_server(
    server_id: int,
    name: str | None = None,
    credential_ids: list[int] | None = None,
    domain_ids: list[int] | None = None,
    server_type: str = "vm",
) -> dict[str, Any]:
    """Create a server record with wrapped credential/domain joins."""
    return {
        "id": server_id,
        "name": name or f"server-{server_id:02d}",
        "type": server_type,
        "credentials": [{"credential": {"id": c, "name": f"cred-{c}"}} for c in credential_ids or []],
        "domains": [{"domain": {"id": d, "name": f"d{d}.example.com"}} for d in domain_ids or []],
        "tags": [],
    }


def make_service(
    service_id: int,
    server_ids: list[int],
    name: str | None = None,
    port: int | None = 8080,
    credential_ids: list[int] | None = None,
    domain_ids: list[int] | None = None,
    depends_on: list[int] | None = None,
    external: list[str] | None = None,
    dependency_id_base: int = 0,
) -> dict[str, Any]:
    """Create a service record. Dependency record ids are derived from *dependency_id_base*."""
    base = dependency_id_base or service_id * 100
    dependencies: list[dict[str, Any]] = [
        {"id": base + i, "dependencyService": {"id": target, "name": f"svc-{target}", "port": 8080}}
        for i, target in enumerate(depends_on or [])
    ]
    offset = len(dependencies)
    dependencies += [
        {"id": base + offset + i, "externalServiceName": ext, "externalServiceType": "saas"}
        for i, ext in enumerate(external or [])
    ]
    return {
        "id": service_id,
        "name": name or f"svc-{service_id}",
        "port": port,
        "servers": [{"server": {"id": s, "name": f"server-{s:02d}"}} for s in server_ids],
        "credentials": [{"credential": {"id": c, "name": f"cred-{c}"}} for c in credential_ids or []],
        "domains": [{"domain": {"id": d, "name": f"d{d}.example.com"}} for d in domain_ids or []],
        "dependencies": dependencies,
    }


def make_payload(
    servers: list[dict[str, Any]],
    services: list[dict[str, Any]],
) -> dict[str, Any]:
    """Assemble a full payload, deriving the top-level credential/domain lists."""
    credential_ids = sorted(
        {c["credential"]["id"] for record in servers + services for c in record["credentials"]}
    )
    domain_ids = sorted({d["domain"]["id"] for record in servers + services for d in record["domains"]})
    return {
        "servers": servers,
        "services": services,
        "credentials": [{"id": c, "name": f"cred-{c}", "type": "password"} for c in credential_ids],
        "domains": [{"id": d, "name": f"d{d}.example.com"} for d in domain_ids],
        "groups": [],
    }


def make_large_payload(server_count: int = 40, services_per_server: int = 5) -> dict[str, Any]:
    """A few hundred nodes: every service depends on the next and shares credentials."""
    servers = [make_server(s, credential_ids=[s % 7 + 1]) for s in range(1, server_count + 1)]
    services = []
    total = server_count * services_per_server
    for n in range(total):
        service_id = 1000 + n
        services.append(
            make_service(
                service_id,
                server_ids=[n // services_per_server + 1],
                credential_ids=[n % 11 + 1],
                domain_ids=[n % 13 + 1],
                depends_on=[1000 + (n + 1) % total],
                external=["Stripe"] if n % 4 == 0 else [],
            )
        )
    return make_payload(servers, services)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def shop_payload() -> dict[str, Any]:
    """Two servers, a shared service, shared credentials and a dependency chain.

    web-01 (cred 1) hosts frontend(100) and api(101); db-01 hosts postgres(200)
    and api(101) as well. frontend -> api -> postgres, api -> Stripe.
    A legacy server (3) owns nothing and is omitted from every layout.
    """
    servers = [
        make_server(1, "web-01", credential_ids=[1]),
        make_server(2, "db-01", domain_ids=[9]),
        make_server(3, "spare-01"),
    ]
    services = [
        make_service(100, [1], "frontend", 443, credential_ids=[2], domain_ids=[9], depends_on=[101]),
        make_service(101, [1, 2], "api", 8080, credential_ids=[2, 3], depends_on=[200], external=["Stripe"]),
        make_service(200, [2], "postgres", 5432, credential_ids=[3]),
    ]
    payload = make_payload(servers, services)
    # A dependency record with no target is dropped silently.
    payload["services"][0]["dependencies"].append({"id": 9999, "dependencyService": None, "externalServiceName": ""})
    return payload


@pytest.fixture()
def shop_snapshot(shop_payload: dict[str, Any]) -> Snapshot:
    return Snapshot.from_dict(shop_payload)
