"""Click / hover highlighting over a built graph."""

from resmap.highlight.engine import HighlightEngine, PointerEvent, PointerEventType
from resmap.highlight.render import EdgeRender, NodeRender, RenderInstructions, derive_render
from resmap.highlight.state import CLEARED, HighlightMode, HighlightState

__all__ = [
    "CLEARED",
    "EdgeRender",
    "HighlightEngine",
    "HighlightMode",
    "HighlightState",
    "NodeRender",
    "PointerEvent",
    "PointerEventType",
    "RenderInstructions",
    "derive_render",
]
