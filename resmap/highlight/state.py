"""Highlight state: what the user is pointing at and what that lights up."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class HighlightMode(StrEnum):
    NONE = "none"
    CLICK = "click"  # transitive: the clicked node's whole connected component
    HOVER = "hover"  # local: the hovered node and its direct neighbours


@dataclass(frozen=True)
class HighlightState:
    """Derived highlight annotation. Never the source of truth for the graph."""

    mode: HighlightMode = HighlightMode.NONE
    active_node_ids: frozenset[str] = frozenset()
    active_edge_ids: frozenset[str] = frozenset()
    anchor_node_id: str | None = None  # the clicked or hovered node

    @property
    def is_active(self) -> bool:
        return self.mode is not HighlightMode.NONE


CLEARED = HighlightState()
