"""Host backends: the live editor bridge and offline board snapshots."""

from .bridge import BridgeClient, BridgeHost
from .host import HostDocument, ensure_capability
from .snapshot import SnapshotHost

__all__ = ["BridgeClient", "BridgeHost", "HostDocument", "SnapshotHost", "ensure_capability"]
