"""Editor bridge backend: JSON commands over a WebSocket gateway.

The editor-side bridge plugin and this client both connect to a gateway.
Each command is a JSON message::

    {"type": "command", "id": ..., "timestamp": ms,
     "payload": {"action": ..., "params": {...}}}

answered by a result correlated through ``payload.commandId``::

    {"type": "result", "payload": {"commandId": ..., "success": bool,
     "data": ..., "error": ..., "durationMs": ...}}

The connection is opened lazily on the first command and reopened on the
next command after a disconnect. A disconnect fails every pending command.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import time
import uuid
from collections.abc import Mapping
from typing import Any

import websockets
from websockets.exceptions import ConnectionClosed, WebSocketException

from ..algorithms.inventory import embedded_box
from ..constants import COMMAND_TIMEOUT_SECONDS, DEFAULT_GATEWAY_URL
from ..exceptions import BridgeConnectionError, BridgeError, BridgeTimeoutError

logger = logging.getLogger(__name__)


class BridgeClient:
    """Request/response client for the bridge gateway."""

    def __init__(self, url: str | None = None, timeout: float | None = None) -> None:
        self.url = url or self._detect_url()
        self.timeout = timeout if timeout is not None else self._detect_timeout()
        self._ws: Any = None
        self._reader: asyncio.Task[None] | None = None
        self._pending: dict[str, tuple[str, asyncio.Future[Any]]] = {}
        self._connect_lock = asyncio.Lock()

    # ── Configuration ───────────────────────────────────────────────

    @staticmethod
    def _detect_url() -> str:
        """Gateway URL from ``JLCEDA_GATEWAY_URL`` or ``GATEWAY_WS_URL``."""
        return (
            os.environ.get("JLCEDA_GATEWAY_URL")
            or os.environ.get("GATEWAY_WS_URL")
            or DEFAULT_GATEWAY_URL
        )

    @staticmethod
    def _detect_timeout() -> float:
        raw = os.environ.get("JLCEDA_COMMAND_TIMEOUT")
        if not raw:
            return COMMAND_TIMEOUT_SECONDS
        try:
            value = float(raw)
        except ValueError:
            logger.warning("Ignoring invalid JLCEDA_COMMAND_TIMEOUT=%r", raw)
            return COMMAND_TIMEOUT_SECONDS
        return value if value > 0 else COMMAND_TIMEOUT_SECONDS

    # ── Connection ──────────────────────────────────────────────────

    @property
    def is_connected(self) -> bool:
        return self._ws is not None

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    async def connect(self) -> None:
        """Open the gateway connection if it is not already open."""
        async with self._connect_lock:
            if self._ws is not None:
                return
            try:
                ws = await websockets.connect(self.url, open_timeout=self.timeout)
            except (OSError, TimeoutError, WebSocketException) as exc:
                raise BridgeConnectionError(
                    f"Cannot connect to bridge gateway at {self.url}: {exc}"
                ) from exc
            self._ws = ws
            self._reader = asyncio.create_task(self._read_loop(ws))
            logger.info("Connected to bridge gateway %s", self.url)

    async def close(self) -> None:
        """Close the connection and fail anything still pending."""
        ws, self._ws = self._ws, None
        self._fail_pending("Bridge connection closed")
        if ws is not None:
            await ws.close()
        if self._reader is not None:
            reader, self._reader = self._reader, None
            await asyncio.gather(reader, return_exceptions=True)

    async def _read_loop(self, ws: Any) -> None:
        try:
            async for raw in ws:
                self._handle_message(raw)
        except ConnectionClosed as exc:
            logger.info("Bridge gateway closed the connection: %s", exc)
        finally:
            self._handle_close(ws)

    def _handle_message(self, raw: str | bytes) -> None:
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8", errors="replace")
        try:
            message = json.loads(raw)
        except json.JSONDecodeError:
            logger.debug("Ignoring non-JSON bridge message")
            return
        if not isinstance(message, dict) or message.get("type") != "result":
            return
        payload = message.get("payload")
        if not isinstance(payload, dict):
            return

        entry = self._pending.pop(str(payload.get("commandId") or ""), None)
        if entry is None:
            return
        action, future = entry
        if future.done():
            return
        if payload.get("success"):
            future.set_result(payload.get("data"))
        else:
            error = payload.get("error") or "Bridge command failed"
            future.set_exception(BridgeError(str(error), action=action))

    def _handle_close(self, ws: Any) -> None:
        if self._ws is ws:
            self._ws = None
            self._fail_pending("Bridge disconnected")

    def _fail_pending(self, reason: str) -> None:
        pending, self._pending = self._pending, {}
        for action, future in pending.values():
            if not future.done():
                future.set_exception(BridgeConnectionError(reason, action=action))

    # ── Commands ────────────────────────────────────────────────────

    async def command(self, action: str, params: Mapping[str, Any] | None = None) -> Any:
        """Send one command and wait for its result data.

        Raises:
            BridgeConnectionError: The gateway is unreachable or dropped the connection.
            BridgeTimeoutError: No result arrived within ``timeout`` seconds.
            BridgeError: The bridge reported a failure.
        """
        if self._ws is None:
            await self.connect()
        ws = self._ws
        if ws is None:
            raise BridgeConnectionError("Bridge disconnected", action=action)

        command_id = str(uuid.uuid4())
        message = {
            "type": "command",
            "id": command_id,
            "timestamp": int(time.time() * 1000),
            "payload": {"action": action, "params": dict(params or {})},
        }
        future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        self._pending[command_id] = (action, future)
        try:
            await ws.send(json.dumps(message))
            return await asyncio.wait_for(future, self.timeout)
        except TimeoutError as exc:
            raise BridgeTimeoutError(
                f"Bridge command '{action}' timed out after {self.timeout:g}s",
                action=action,
            ) from exc
        except ConnectionClosed as exc:
            self._handle_close(ws)
            raise BridgeConnectionError(f"Bridge disconnected: {exc}", action=action) from exc
        finally:
            self._pending.pop(command_id, None)


def _rows(data: Any, key: str) -> list[Any]:
    """List payload of a bridge result: either the data itself or ``data[key]``."""
    if isinstance(data, list):
        return data
    if isinstance(data, Mapping) and isinstance(data.get(key), list):
        return list(data[key])
    return []


class BridgeHost:
    """``HostDocument`` backed by the live editor through the bridge.

    Bridge actions used (action -> result list key):
        get_silkscreens -> silkscreens, get_pads -> pads, get_vias -> vias,
        get_board_outline -> primitives, get_state -> components,
        get_selection -> primitiveIds, move_silkscreen, get_feature_support, ping.
    """

    name = "bridge"

    def __init__(self, client: BridgeClient | None = None) -> None:
        self.client = client or BridgeClient()
        self._features: dict[str, Any] | None = None

    async def ping(self) -> Any:
        return await self.client.command("ping")

    async def close(self) -> None:
        await self.client.close()

    def describe(self) -> dict[str, Any]:
        return {
            "url": self.client.url,
            "connected": self.client.is_connected,
            "timeout": self.client.timeout,
        }

    # ── HostDocument ────────────────────────────────────────────────

    async def list_silkscreen_records(self, layer: int | None = None) -> list[Any]:
        params = {"layer": layer} if layer is not None else {}
        return _rows(await self.client.command("get_silkscreens", params), "silkscreens")

    async def list_pads(self) -> list[Any]:
        return _rows(await self.client.command("get_pads", {"includeBBox": True}), "pads")

    async def list_vias(self) -> list[Any]:
        return _rows(await self.client.command("get_vias", {"includeBBox": True}), "vias")

    async def board_outline_geometry(self, layer: int) -> list[Any]:
        data = await self.client.command("get_board_outline", {"layer": layer})
        return _rows(data, "primitives")

    async def list_components(self) -> list[Any]:
        return _rows(await self.client.command("get_state"), "components")

    async def measure_bounding_box(self, record: Any) -> Mapping[str, Any] | None:
        # The bridge attaches measured boxes to the records it returns
        box = embedded_box(record)
        return box.to_dict() if box is not None else None

    async def move_primitive(
        self,
        primitive_id: str,
        x: float,
        y: float,
        rotation: float | None = None,
    ) -> dict[str, Any]:
        params: dict[str, Any] = {"primitiveId": primitive_id, "x": x, "y": y}
        if rotation is not None:
            params["rotation"] = rotation
        data = await self.client.command("move_silkscreen", params)
        applied = {"primitive_id": primitive_id, "x": x, "y": y, "rotation": rotation}
        if isinstance(data, Mapping):
            applied["response"] = dict(data)
        return applied

    async def selected_primitive_ids(self) -> list[str]:
        ids = _rows(await self.client.command("get_selection"), "primitiveIds")
        return [str(pid).strip() for pid in ids if isinstance(pid, str) and pid.strip()]

    async def feature_support(self) -> dict[str, Any]:
        if self._features is None:
            data = await self.client.command("get_feature_support")
            self._features = dict(data) if isinstance(data, Mapping) else {}
        return self._features
