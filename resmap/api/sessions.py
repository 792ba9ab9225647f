"""In-process store of highlight sessions.

One session = one built graph + one HighlightEngine, so that a browser tab can
stream pointer events and receive render instructions. The store is bounded;
the least recently used session is evicted once ``max_sessions`` is reached.
Handlers run on the event loop thread, so the store needs no locking.
"""

from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass
from uuid import uuid4

import structlog

from resmap.graph.filtering import SnapshotStats
from resmap.graph.models import Graph
from resmap.highlight.engine import HighlightEngine

_log = structlog.get_logger(component="api.sessions")


class SessionNotFoundError(KeyError):
    """Raised when a session id is unknown or has been evicted."""


@dataclass
class HighlightSession:
    session_id: str
    layout: str
    engine: HighlightEngine
    stats: SnapshotStats

    @property
    def graph(self) -> Graph:
        return self.engine.graph


class HighlightSessionStore:
    def __init__(self, max_sessions: int = 256) -> None:
        if max_sessions < 1:
            raise ValueError("max_sessions must be >= 1")
        self._max_sessions = max_sessions
        self._sessions: OrderedDict[str, HighlightSession] = OrderedDict()

    def __len__(self) -> int:
        return len(self._sessions)

    def create(self, graph: Graph, layout: str, stats: SnapshotStats) -> HighlightSession:
        session = HighlightSession(
            session_id=uuid4().hex,
            layout=layout,
            engine=HighlightEngine(graph),
            stats=stats,
        )
        self._sessions[session.session_id] = session
        while len(self._sessions) > self._max_sessions:
            evicted_id, _ = self._sessions.popitem(last=False)
            _log.info("session_evicted", session_id=evicted_id, limit=self._max_sessions)
        return session

    def get(self, session_id: str) -> HighlightSession:
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        self._sessions.move_to_end(session_id)
        return session

    def delete(self, session_id: str) -> None:
        if self._sessions.pop(session_id, None) is None:
            raise SessionNotFoundError(session_id)
