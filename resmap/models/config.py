"""Configuration data structures."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class LayoutConfig:
    """Geometry of the grouped and flat layouts.

    All values are in canvas pixels. Child positions inside a group are
    relative to the group's top-left corner.
    """

    server_x: float = 0
    services_x: float = 300
    resources_x: float = 650
    server_spacing: float = 400
    service_node_height: float = 80
    service_spacing: float = 10
    resource_node_height: float = 60
    resource_spacing: float = 8
    group_padding: float = 12
    group_header_height: float = 42
    group_spacing: float = 30
    group_width: float = 280
    # Flat layout row pitch (one node per row in each column).
    flat_row_pitch: float = 100


@dataclass
class GraphConfig:
    """Graph construction defaults."""

    layout: str = "grouped"
    geometry: LayoutConfig = field(default_factory=LayoutConfig)


@dataclass
class SessionConfig:
    """Highlight session store configuration."""

    max_sessions: int = 256


@dataclass
class APIConfig:
    """REST API configuration."""

    host: str = "0.0.0.0"
    port: int = 8080


@dataclass
class LogConfig:
    """Logging configuration."""

    level: str = "info"
    renderer: str = "json"


@dataclass
class ResMapConfig:
    """Top-level resmap configuration."""

    graph: GraphConfig = field(default_factory=GraphConfig)
    sessions: SessionConfig = field(default_factory=SessionConfig)
    api: APIConfig = field(default_factory=APIConfig)
    log: LogConfig = field(default_factory=LogConfig)
