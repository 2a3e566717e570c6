"""Host tools: choose between the live editor bridge and board snapshots."""

from __future__ import annotations

from typing import Any

from .. import state
from ..backends.bridge import BridgeClient, BridgeHost
from ..backends.snapshot import SnapshotHost
from ..exceptions import JlcedaMcpError
from ..logging_config import create_logger
from ..validation import validate_snapshot_path
from .registry import register_tool

logger = create_logger(__name__)


async def _close_previous(previous: Any) -> None:
    if isinstance(previous, BridgeHost):
        await previous.close()


async def _connect_bridge_handler(
    url: str | None = None,
    timeout: float | None = None,
) -> dict[str, Any]:
    """Connect to the editor bridge gateway and make it the current host.

    Args:
        url: Gateway WebSocket URL. Defaults to JLCEDA_GATEWAY_URL or the local gateway.
        timeout: Per-command timeout in seconds. Default: 60.
    """
    if timeout is not None and timeout <= 0:
        return {"error": f"timeout must be positive, got {timeout}"}
    host = BridgeHost(BridgeClient(url=url, timeout=timeout))
    try:
        pong = await host.ping()
    except JlcedaMcpError as exc:
        await host.close()
        return exc.to_dict()
    await _close_previous(state.set_host(host))
    return {"status": "connected", **host.describe(), "ping": pong}


async def _load_board_snapshot_handler(path: str, read_only: bool = False) -> dict[str, Any]:
    """Load a JSON board snapshot and make it the current host.

    Args:
        path: Path to the snapshot .json file.
        read_only: Refuse moves; auto_silkscreen then errors unless apply=false.
    """
    path_result = validate_snapshot_path(path)
    if not path_result.valid:
        return {"error": f"Invalid path: {path_result.error}"}
    try:
        host = SnapshotHost.load(path_result.value, read_only=read_only)
    except JlcedaMcpError as exc:
        return exc.to_dict()
    await _close_previous(state.set_host(host))
    data = host.to_dict()
    return {
        "status": "loaded",
        "path": str(host.path),
        "read_only": host.read_only,
        "silkscreens": len(data["silkscreens"]),
        "pads": len(data["pads"]),
        "vias": len(data["vias"]),
    }


async def _save_board_snapshot_handler(path: str | None = None) -> dict[str, Any]:
    """Write the current snapshot (with applied moves) back to disk.

    Args:
        path: Destination .json file. Defaults to the path it was loaded from.
    """
    host = state.get_host() if state.has_host() else None
    if not isinstance(host, SnapshotHost):
        return {"error": "Current host is not a board snapshot. Use load_board_snapshot first."}
    target = None
    if path is not None:
        path_result = validate_snapshot_path(path, must_exist=False)
        if not path_result.valid:
            return {"error": f"Invalid path: {path_result.error}"}
        target = path_result.value
    try:
        saved = host.save(target)
    except JlcedaMcpError as exc:
        return exc.to_dict()
    logger.info("Saved board snapshot to %s", saved)
    return {"status": "saved", "path": str(saved), "applied_moves": len(host.moves)}


async def _get_host_status_handler() -> dict[str, Any]:
    """Describe the current host without connecting to anything."""
    return state.describe_host()


# ── Registration ────────────────────────────────────────────────────

register_tool(
    name="connect_bridge",
    description="Connect to the editor bridge gateway and use the live board.",
    parameters={
        "url": {"type": "string", "description": "Gateway WebSocket URL (optional)."},
        "timeout": {"type": "number", "description": "Per-command timeout in seconds."},
    },
    handler=_connect_bridge_handler,
    category="host",
)

register_tool(
    name="load_board_snapshot",
    description="Load a JSON board snapshot and run silkscreen tools against it offline.",
    parameters={
        "path": {"type": "string", "description": "Path to the snapshot .json file."},
        "read_only": {
            "type": "boolean",
            "description": "Refuse moves; auto_silkscreen then needs apply=false. Default: false.",
        },
    },
    handler=_load_board_snapshot_handler,
    category="host",
)

register_tool(
    name="save_board_snapshot",
    description="Save the current board snapshot, including applied moves.",
    parameters={
        "path": {"type": "string", "description": "Destination .json file (optional)."},
    },
    handler=_save_board_snapshot_handler,
    category="host",
    mutates=True,
)

register_tool(
    name="get_host_status",
    description="Show which host (bridge or snapshot) the silkscreen tools use.",
    parameters={},
    handler=_get_host_status_handler,
    category="host",
)
