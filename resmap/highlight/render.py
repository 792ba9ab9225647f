"""Render instructions derived from the highlight state.

``derive_render`` is a pure function of (graph, state); the rendering host
re-applies its output after every state change and never writes it back.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from resmap.graph.palette import node_color
from resmap.highlight.state import HighlightMode, HighlightState

if TYPE_CHECKING:
    from resmap.graph.models import Graph, GraphEdge

CLICK_WIDTH_BOOST = 2
HOVER_WIDTH_BOOST = 1
DIMMED_OPACITY = 0.5
ACTIVE_OPACITY = 1.0


@dataclass(frozen=True)
class NodeRender:
    active: bool = False


@dataclass(frozen=True)
class EdgeRender:
    width: float
    color: str
    opacity: float


@dataclass(frozen=True)
class RenderInstructions:
    nodes: dict[str, NodeRender] = field(default_factory=dict)
    edges: dict[str, EdgeRender] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "nodes": {node_id: {"active": r.active} for node_id, r in self.nodes.items()},
            "edges": {
                edge_id: {"width": r.width, "color": r.color, "opacity": r.opacity}
                for edge_id, r in self.edges.items()
            },
        }


def _edge_render(graph: Graph, edge: GraphEdge, state: HighlightState) -> EdgeRender:
    if state.mode is HighlightMode.NONE:
        return EdgeRender(width=edge.style.width, color=edge.style.color, opacity=ACTIVE_OPACITY)

    if edge.id in state.active_edge_ids:
        boost = CLICK_WIDTH_BOOST if state.mode is HighlightMode.CLICK else HOVER_WIDTH_BOOST
        source = graph.node(edge.source)
        color = node_color(source.kind) if source is not None else edge.style.color
        return EdgeRender(width=edge.style.width + boost, color=color, opacity=ACTIVE_OPACITY)

    return EdgeRender(width=edge.style.width, color=edge.style.color, opacity=DIMMED_OPACITY)


def derive_render(graph: Graph, state: HighlightState) -> RenderInstructions:
    """Per-node active flags and per-edge width/color/opacity for *state*."""
    return RenderInstructions(
        nodes={n.id: NodeRender(active=n.id in state.active_node_ids) for n in graph.nodes},
        edges={e.id: _edge_render(graph, e, state) for e in graph.edges},
    )
