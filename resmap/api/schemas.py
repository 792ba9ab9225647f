"""Request / response models for the resmap REST API."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    error: str
    detail: str


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str
    sessions: int = 0


class GraphRequest(BaseModel):
    """A snapshot as returned by the resource-map endpoint, plus build options."""

    snapshot: dict[str, Any] = Field(default_factory=dict)
    layout: Literal["grouped", "flat"] | None = Field(
        None, description="Layout strategy; defaults to the configured layout"
    )
    server_ids: list[int] = Field(default_factory=list, description="Only draw these servers (empty = all)")


class PositionModel(BaseModel):
    x: float
    y: float


class NodeModel(BaseModel):
    id: str
    kind: str
    position: PositionModel
    payload: dict[str, Any] = Field(default_factory=dict)
    parent_group_id: str | None = None
    width: float | None = None
    height: float | None = None


class EdgeStyleModel(BaseModel):
    color: str
    width: float
    dashed: bool
    opacity: float


class EdgeModel(BaseModel):
    id: str
    source: str
    target: str
    source_handle: str
    target_handle: str
    relation: str
    style: EdgeStyleModel


class StatsModel(BaseModel):
    servers: int = 0
    services: int = 0
    credentials: int = 0
    domains: int = 0


class GraphResponse(BaseModel):
    layout: str
    nodes: list[NodeModel] = Field(default_factory=list)
    edges: list[EdgeModel] = Field(default_factory=list)
    stats: StatsModel = Field(default_factory=StatsModel)


class NodeRenderModel(BaseModel):
    active: bool


class EdgeRenderModel(BaseModel):
    width: float
    color: str
    opacity: float


class RenderModel(BaseModel):
    nodes: dict[str, NodeRenderModel] = Field(default_factory=dict)
    edges: dict[str, EdgeRenderModel] = Field(default_factory=dict)


class PointerEventRequest(BaseModel):
    type: Literal["click", "hover_enter", "hover_leave", "pane_click"]
    node_id: str | None = None


class HighlightResponse(BaseModel):
    session_id: str
    layout: str
    stats: StatsModel
    mode: str
    active_node_ids: list[str] = Field(default_factory=list)
    active_edge_ids: list[str] = Field(default_factory=list)
    render: RenderModel


class SessionResponse(BaseModel):
    session_id: str
    graph: GraphResponse
    render: RenderModel


class SessionDeletedResponse(BaseModel):
    session_id: str
    deleted: bool = True
