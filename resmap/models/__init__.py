"""Core data structures for resmap."""

from resmap.models.config import ResMapConfig
from resmap.models.snapshot import (
    Credential,
    Dependency,
    Domain,
    Server,
    Service,
    ServiceRef,
    Snapshot,
    SnapshotError,
    Tag,
)

__all__ = [
    "Credential",
    "Dependency",
    "Domain",
    "ResMapConfig",
    "Server",
    "Service",
    "ServiceRef",
    "Snapshot",
    "SnapshotError",
    "Tag",
]
