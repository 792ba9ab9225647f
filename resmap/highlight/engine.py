"""Highlight engine: pointer events -> highlight state.

Click highlighting is transitive (the clicked node's whole connected
component) and sticky: hover events are ignored while it is active, and only
a pane click or another node click replaces it. Hover highlighting is local
(one hop) and disappears when the pointer leaves the node.

Events naming a node that is not in the current graph (a stale event racing
a snapshot rebuild) leave the state untouched.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

import structlog

from resmap.graph.models import Graph
from resmap.graph.traversal import Adjacency
from resmap.highlight.render import RenderInstructions, derive_render
from resmap.highlight.state import CLEARED, HighlightMode, HighlightState

_log = structlog.get_logger(component="highlight.engine")


class PointerEventType(StrEnum):
    CLICK = "click"
    HOVER_ENTER = "hover_enter"
    HOVER_LEAVE = "hover_leave"
    PANE_CLICK = "pane_click"


@dataclass(frozen=True)
class PointerEvent:
    type: PointerEventType
    node_id: str | None = None


class HighlightEngine:
    """Owns the highlight state for one graph.

    The rendering host reads ``state`` / ``render()`` and feeds events back;
    it never mutates the state directly.
    """

    def __init__(self, graph: Graph) -> None:
        self._graph = graph
        self._adjacency = Adjacency(graph)
        self._state = CLEARED

    @property
    def graph(self) -> Graph:
        return self._graph

    @property
    def state(self) -> HighlightState:
        return self._state

    @property
    def mode(self) -> HighlightMode:
        return self._state.mode

    def set_graph(self, graph: Graph) -> None:
        """Swap in a rebuilt graph. Highlighting does not survive a rebuild."""
        self._graph = graph
        self._adjacency = Adjacency(graph)
        if self._state.is_active:
            _log.debug("highlight_reset_on_rebuild", previous_mode=self._state.mode.value)
        self._state = CLEARED

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def on_node_click(self, node_id: str) -> HighlightState:
        if node_id not in self._adjacency:
            _log.debug("stale_node_event", pointer_event="click", node_id=node_id)
            return self._state
        component = self._adjacency.connected_component(node_id)
        self._state = HighlightState(
            mode=HighlightMode.CLICK,
            active_node_ids=component.node_ids,
            active_edge_ids=component.edge_ids,
            anchor_node_id=node_id,
        )
        return self._state

    def on_node_hover_enter(self, node_id: str) -> HighlightState:
        if self._state.mode is HighlightMode.CLICK:
            return self._state
        if self._state.mode is HighlightMode.HOVER and self._state.anchor_node_id == node_id:
            return self._state
        if node_id not in self._adjacency:
            _log.debug("stale_node_event", pointer_event="hover_enter", node_id=node_id)
            return self._state
        neighbourhood = self._adjacency.neighbourhood(node_id)
        self._state = HighlightState(
            mode=HighlightMode.HOVER,
            active_node_ids=neighbourhood.node_ids,
            active_edge_ids=neighbourhood.edge_ids,
            anchor_node_id=node_id,
        )
        return self._state

    def on_node_hover_leave(self) -> HighlightState:
        if self._state.mode is HighlightMode.HOVER:
            self._state = CLEARED
        return self._state

    def on_pane_click(self) -> HighlightState:
        self._state = CLEARED
        return self._state

    def dispatch(self, event: PointerEvent) -> HighlightState:
        """Route a host event to its handler.

        Raises:
            ValueError: if a node event carries no node id.
        """
        if event.type in (PointerEventType.CLICK, PointerEventType.HOVER_ENTER) and not event.node_id:
            raise ValueError(f"{event.type.value} event requires a node_id")
        match event.type:
            case PointerEventType.CLICK:
                return self.on_node_click(event.node_id)  # type: ignore[arg-type]
            case PointerEventType.HOVER_ENTER:
                return self.on_node_hover_enter(event.node_id)  # type: ignore[arg-type]
            case PointerEventType.HOVER_LEAVE:
                return self.on_node_hover_leave()
            case PointerEventType.PANE_CLICK:
                return self.on_pane_click()
        raise ValueError(f"Unknown pointer event: {event.type}")

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    def render(self) -> RenderInstructions:
        return derive_render(self._graph, self._state)
