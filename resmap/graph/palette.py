"""Fixed visual tables: node colors, relation edge styles and resource URLs.

Every table is keyed by a closed enum and covers all of its members; adding a
member without extending the table fails at import time.
"""

from __future__ import annotations

from resmap.graph.models import EdgeStyle, GroupType, NodeKind, RelationKind

NODE_COLORS: dict[NodeKind, str] = {
    NodeKind.SERVER: "#3b82f6",  # blue
    NodeKind.SERVICE: "#10b981",  # green
    NodeKind.CREDENTIAL: "#f59e0b",  # amber
    NodeKind.DOMAIN: "#8b5cf6",  # purple
    NodeKind.EXTERNAL_SERVICE: "#ec4899",  # pink
    NodeKind.GROUP: "#6b7280",  # gray
}

NEUTRAL_GRAY = "#94a3b8"
BASE_EDGE_WIDTH = 2

# Entity edges (flat layout).
RELATION_STYLES: dict[RelationKind, EdgeStyle] = {
    RelationKind.HOSTS: EdgeStyle(color=NEUTRAL_GRAY, width=BASE_EDGE_WIDTH),
    RelationKind.CREDENTIAL: EdgeStyle(color=NODE_COLORS[NodeKind.CREDENTIAL], width=BASE_EDGE_WIDTH),
    RelationKind.DOMAIN: EdgeStyle(color=NODE_COLORS[NodeKind.DOMAIN], width=BASE_EDGE_WIDTH),
    RelationKind.INTERNAL_DEPENDENCY: EdgeStyle(
        color=NODE_COLORS[NodeKind.SERVICE], width=BASE_EDGE_WIDTH, dashed=True
    ),
    RelationKind.EXTERNAL_DEPENDENCY: EdgeStyle(
        color=NODE_COLORS[NodeKind.EXTERNAL_SERVICE], width=BASE_EDGE_WIDTH, dashed=True
    ),
}

# Group-to-group edges (grouped layout): same hue as the summarized kind, dimmer.
GROUP_EDGE_STYLES: dict[GroupType, EdgeStyle] = {
    GroupType.SERVICES: EdgeStyle(color=NEUTRAL_GRAY, width=BASE_EDGE_WIDTH, opacity=0.7),
    GroupType.DEPENDENCIES: EdgeStyle(
        color=NODE_COLORS[NodeKind.SERVICE], width=BASE_EDGE_WIDTH, dashed=True, opacity=0.8
    ),
    GroupType.CREDENTIALS: EdgeStyle(color=NODE_COLORS[NodeKind.CREDENTIAL], width=BASE_EDGE_WIDTH, opacity=0.8),
    GroupType.DOMAINS: EdgeStyle(color=NODE_COLORS[NodeKind.DOMAIN], width=BASE_EDGE_WIDTH, opacity=0.8),
}

GROUP_LABELS: dict[GroupType, str] = {
    GroupType.SERVICES: "Services",
    GroupType.DEPENDENCIES: "Dependencies",
    GroupType.CREDENTIALS: "Credentials",
    GroupType.DOMAINS: "Domains",
}

# Services groups share the dependencies styling (green).
GROUP_COLORS: dict[GroupType, str] = {
    GroupType.SERVICES: NODE_COLORS[NodeKind.SERVICE],
    GroupType.DEPENDENCIES: NODE_COLORS[NodeKind.SERVICE],
    GroupType.CREDENTIALS: NODE_COLORS[NodeKind.CREDENTIAL],
    GroupType.DOMAINS: NODE_COLORS[NodeKind.DOMAIN],
}

_RESOURCE_URLS: dict[NodeKind, str | None] = {
    NodeKind.SERVER: "/servers?serverId={id}",
    NodeKind.SERVICE: "/services?serviceId={id}",
    NodeKind.CREDENTIAL: "/credentials?credentialId={id}",
    NodeKind.DOMAIN: "/domains",
    NodeKind.EXTERNAL_SERVICE: None,
    NodeKind.GROUP: None,
}


def resource_url(kind: NodeKind, entity_id: int | None) -> str:
    """Navigation link for a node; ``#`` when the kind has no detail page."""
    template = _RESOURCE_URLS[kind]
    if template is None or entity_id is None:
        return "#"
    return template.format(id=entity_id)


def node_color(kind: NodeKind) -> str:
    return NODE_COLORS[kind]


for _table, _enum in (
    (NODE_COLORS, NodeKind),
    (_RESOURCE_URLS, NodeKind),
    (RELATION_STYLES, RelationKind),
    (GROUP_EDGE_STYLES, GroupType),
    (GROUP_LABELS, GroupType),
    (GROUP_COLORS, GroupType),
):
    _missing = set(_enum) - set(_table)
    if _missing:
        raise RuntimeError(f"palette table for {_enum.__name__} is missing {sorted(_missing)}")
