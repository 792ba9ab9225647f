"""Route handlers for /api/v1.

Handlers are ``async def`` so they all run on the event loop thread; the
session store and the highlight engines are therefore only ever touched by
one request at a time.
"""

from __future__ import annotations

from dataclasses import asdict

import structlog
from fastapi import APIRouter, Request

from resmap.api.errors import APIError
from resmap.api.schemas import (
    GraphRequest,
    GraphResponse,
    HealthResponse,
    HighlightResponse,
    PointerEventRequest,
    RenderModel,
    SessionDeletedResponse,
    SessionResponse,
    StatsModel,
)
from resmap.api.sessions import HighlightSession, HighlightSessionStore, SessionNotFoundError
from resmap.graph.builder import UnknownLayoutError, build_graph
from resmap.graph.filtering import SnapshotStats, filter_snapshot, snapshot_stats
from resmap.graph.models import Graph
from resmap.highlight.engine import PointerEvent, PointerEventType
from resmap.highlight.render import RenderInstructions
from resmap.models.config import ResMapConfig
from resmap.models.snapshot import Snapshot, SnapshotError

_log = structlog.get_logger(component="api.routes")

router = APIRouter()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _config(request: Request) -> ResMapConfig:
    config = getattr(request.app.state, "config", None)
    return config if config is not None else ResMapConfig()


def _store(request: Request) -> HighlightSessionStore:
    return request.app.state.sessions


def _build(request: Request, body: GraphRequest) -> tuple[Graph, str, SnapshotStats]:
    config = _config(request)
    layout = body.layout or config.graph.layout
    try:
        snapshot = filter_snapshot(Snapshot.from_dict(body.snapshot), body.server_ids)
        graph = build_graph(snapshot, layout=layout, geometry=config.graph.geometry)
    except SnapshotError as exc:
        raise APIError(400, "INVALID_SNAPSHOT", str(exc)) from exc
    except UnknownLayoutError as exc:
        raise APIError(400, "INVALID_LAYOUT", str(exc)) from exc
    return graph, layout, snapshot_stats(snapshot)


def _graph_response(graph: Graph, layout: str, stats: SnapshotStats) -> GraphResponse:
    payload = graph.to_dict()
    return GraphResponse.model_validate(
        {
            "layout": layout,
            "nodes": payload["nodes"],
            "edges": payload["edges"],
            "stats": StatsModel(**asdict(stats)),
        }
    )


def _render_model(render: RenderInstructions) -> RenderModel:
    return RenderModel.model_validate(render.to_dict())


def _highlight_response(session: HighlightSession) -> HighlightResponse:
    state = session.engine.state
    return HighlightResponse(
        session_id=session.session_id,
        layout=session.layout,
        stats=StatsModel(**asdict(session.stats)),
        mode=state.mode.value,
        active_node_ids=sorted(state.active_node_ids),
        active_edge_ids=sorted(state.active_edge_ids),
        render=_render_model(session.engine.render()),
    )


def _session(request: Request, session_id: str) -> HighlightSession:
    try:
        return _store(request).get(session_id)
    except SessionNotFoundError as exc:
        raise APIError(404, "SESSION_NOT_FOUND", f"No highlight session '{session_id}'.") from exc


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


@router.get("/health", response_model=HealthResponse)
async def health(request: Request) -> HealthResponse:
    from resmap import __version__

    return HealthResponse(version=__version__, sessions=len(_store(request)))


@router.post("/graph", response_model=GraphResponse)
async def graph(request: Request, body: GraphRequest) -> GraphResponse:
    """Build and return the positioned graph for a snapshot."""
    built, layout, stats = _build(request, body)
    return _graph_response(built, layout, stats)


@router.post("/sessions", response_model=SessionResponse, status_code=201)
async def create_session(request: Request, body: GraphRequest) -> SessionResponse:
    """Build a graph and open a highlight session over it."""
    built, layout, stats = _build(request, body)
    session = _store(request).create(built, layout, stats)
    _log.info(
        "session_created",
        session_id=session.session_id,
        layout=layout,
        nodes=built.node_count,
        edges=built.edge_count,
    )
    return SessionResponse(
        session_id=session.session_id,
        graph=_graph_response(built, layout, stats),
        render=_render_model(session.engine.render()),
    )


@router.get("/sessions/{session_id}", response_model=HighlightResponse)
async def get_session(request: Request, session_id: str) -> HighlightResponse:
    return _highlight_response(_session(request, session_id))


@router.post("/sessions/{session_id}/events", response_model=HighlightResponse)
async def post_event(request: Request, session_id: str, body: PointerEventRequest) -> HighlightResponse:
    """Apply one pointer event and return the resulting render instructions."""
    session = _session(request, session_id)
    try:
        session.engine.dispatch(PointerEvent(type=PointerEventType(body.type), node_id=body.node_id))
    except ValueError as exc:
        raise APIError(400, "INVALID_EVENT", str(exc)) from exc
    return _highlight_response(session)


@router.delete("/sessions/{session_id}", response_model=SessionDeletedResponse)
async def delete_session(request: Request, session_id: str) -> SessionDeletedResponse:
    try:
        _store(request).delete(session_id)
    except SessionNotFoundError as exc:
        raise APIError(404, "SESSION_NOT_FOUND", f"No highlight session '{session_id}'.") from exc
    return SessionDeletedResponse(session_id=session_id)
