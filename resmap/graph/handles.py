"""Connection-point (handle) assignment for parallel edges.

Edges leave a node on its right side and enter on its left side. Each side
exposes three slots. Edges between the same (source, target) pair rotate
through the slots in insertion order; the fourth and later parallel edges
wrap back to the first slot and overlap it visually. That overlap is a known
limitation of a three-slot node and is kept as is.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass

SOURCE_SIDE = "right"
TARGET_SIDE = "left"
SLOTS: tuple[str, ...] = ("center", "top", "bottom")


@dataclass(frozen=True)
class HandleAssignment:
    source_handle: str
    target_handle: str
    ordinal: int  # 0 for the first edge of a pair, 1 for the second, ...

    @property
    def slot(self) -> str:
        return SLOTS[self.ordinal % len(SLOTS)]


class HandleAllocator:
    """Per-build accumulator of edge counts keyed by (source, target).

    One allocator lives for exactly one ``build_graph`` call.
    """

    def __init__(self) -> None:
        self._counts: defaultdict[tuple[str, str], int] = defaultdict(int)

    def assign(self, source: str, target: str) -> HandleAssignment:
        ordinal = self._counts[(source, target)]
        self._counts[(source, target)] = ordinal + 1
        slot = SLOTS[ordinal % len(SLOTS)]
        return HandleAssignment(
            source_handle=f"{SOURCE_SIDE}-{slot}",
            target_handle=f"{TARGET_SIDE}-{slot}",
            ordinal=ordinal,
        )

    def count(self, source: str, target: str) -> int:
        return self._counts.get((source, target), 0)


def edge_id(source: str, target: str, ordinal: int = 0) -> str:
    """Unique edge id; parallel edges get a ``#n`` ordinal suffix."""
    base = f"edge-{source}-{target}"
    return base if ordinal == 0 else f"{base}#{ordinal}"
