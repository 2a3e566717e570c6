"""Global host state for the MCP server.

Holds the host document the silkscreen tools operate on: the live editor
bridge by default, or a board snapshot when one has been loaded.
Thread-safe: all reads and writes go through a module-level lock.
"""

from __future__ import annotations

import os
import threading
from pathlib import Path
from typing import Any

from .backends.bridge import BridgeClient, BridgeHost
from .backends.snapshot import SnapshotHost
from .logging_config import create_logger

logger = create_logger(__name__)

_lock = threading.Lock()
_current_host: Any = None


def _host_from_environment() -> Any:
    snapshot = os.environ.get("JLCEDA_BOARD_SNAPSHOT")
    if snapshot:
        return SnapshotHost.load(Path(snapshot).expanduser())
    return BridgeHost(BridgeClient())


def get_host() -> Any:
    """Get the current host, creating one from the environment on first use.

    ``JLCEDA_BOARD_SNAPSHOT`` selects a snapshot file; otherwise the bridge
    gateway is used (the connection itself is opened lazily).
    """
    global _current_host
    with _lock:
        if _current_host is None:
            _current_host = _host_from_environment()
            logger.info("Using %s host", _current_host.name)
        return _current_host


def set_host(host: Any) -> Any:
    """Replace the current host. Returns the previous one (may be None)."""
    global _current_host
    with _lock:
        previous, _current_host = _current_host, host
    return previous


def has_host() -> bool:
    """Check if a host has been selected."""
    with _lock:
        return _current_host is not None


def reset() -> None:
    """Forget the current host (for testing)."""
    set_host(None)


def describe_host() -> dict[str, Any]:
    """Name and connection details of the current host, without creating one."""
    with _lock:
        host = _current_host
    if host is None:
        return {"host": None}
    info: dict[str, Any] = {"host": host.name}
    if isinstance(host, BridgeHost):
        info.update(host.describe())
    elif isinstance(host, SnapshotHost):
        info.update(
            {
                "path": str(host.path) if host.path else None,
                "read_only": host.read_only,
                "applied_moves": len(host.moves),
            }
        )
    return info
