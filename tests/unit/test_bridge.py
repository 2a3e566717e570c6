"""Tests for the WebSocket bridge client and bridge host.

No gateway is needed: a fake socket answers commands in-process.
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import Callable
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from websockets.exceptions import ConnectionClosed

from jlceda_mcp import silkscreen_ops
from jlceda_mcp.backends.bridge import BridgeClient, BridgeHost
from jlceda_mcp.backends.host import HostDocument
from jlceda_mcp.constants import COMMAND_TIMEOUT_SECONDS, DEFAULT_GATEWAY_URL
from jlceda_mcp.exceptions import BridgeConnectionError, BridgeError, BridgeTimeoutError

# ── Helpers ─────────────────────────────────────────────────────────

Responder = Callable[[dict[str, Any]], "dict[str, Any] | None"]


def _result(command: dict[str, Any], data: Any = None, success: bool = True, error: str = "") -> dict[str, Any]:
    payload: dict[str, Any] = {
        "commandId": command["id"],
        "success": success,
        "data": data,
        "durationMs": 1,
    }
    if error:
        payload["error"] = error
    return {"type": "result", "id": "r-1", "timestamp": 0, "payload": payload}


class _FakeSocket:
    """Stands in for a websockets connection; replies via the client's message handler."""

    def __init__(self, client: BridgeClient, responder: Responder) -> None:
        self.client = client
        self.responder = responder
        self.sent: list[dict[str, Any]] = []
        self.closed = False

    async def send(self, raw: str) -> None:
        message = json.loads(raw)
        self.sent.append(message)
        reply = self.responder(message)
        if reply is not None:
            asyncio.get_running_loop().call_soon(self.client._handle_message, json.dumps(reply))

    async def close(self) -> None:
        self.closed = True


def _client(responder: Responder, timeout: float = 5.0) -> tuple[BridgeClient, _FakeSocket]:
    client = BridgeClient(url="ws://gateway.test/ws/bridge", timeout=timeout)
    socket = _FakeSocket(client, responder)
    client._ws = socket
    return client, socket


# ── BridgeClient ────────────────────────────────────────────────────


class TestBridgeClientConfig:
    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("JLCEDA_GATEWAY_URL", raising=False)
        monkeypatch.delenv("GATEWAY_WS_URL", raising=False)
        monkeypatch.delenv("JLCEDA_COMMAND_TIMEOUT", raising=False)
        client = BridgeClient()
        assert client.url == DEFAULT_GATEWAY_URL
        assert client.timeout == COMMAND_TIMEOUT_SECONDS
        assert client.is_connected is False

    def test_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("JLCEDA_GATEWAY_URL", raising=False)
        monkeypatch.setenv("GATEWAY_WS_URL", "ws://legacy:1/ws")
        monkeypatch.setenv("JLCEDA_COMMAND_TIMEOUT", "5")
        client = BridgeClient()
        assert client.url == "ws://legacy:1/ws"
        assert client.timeout == 5.0

        monkeypatch.setenv("JLCEDA_GATEWAY_URL", "ws://primary:2/ws")
        assert BridgeClient().url == "ws://primary:2/ws"

    def test_invalid_timeout_ignored(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("JLCEDA_COMMAND_TIMEOUT", "soon")
        assert BridgeClient().timeout == COMMAND_TIMEOUT_SECONDS
        monkeypatch.setenv("JLCEDA_COMMAND_TIMEOUT", "-1")
        assert BridgeClient().timeout == COMMAND_TIMEOUT_SECONDS


class TestBridgeClientCommands:
    def test_command_envelope_and_result(self) -> None:
        client, socket = _client(lambda cmd: _result(cmd, {"message": "pong"}))
        data = asyncio.run(client.command("ping", {"a": 1}))
        assert data == {"message": "pong"}

        sent = socket.sent[0]
        assert sent["type"] == "command"
        assert sent["payload"] == {"action": "ping", "params": {"a": 1}}
        assert isinstance(sent["id"], str) and sent["id"]
        assert isinstance(sent["timestamp"], int)
        assert client.pending_count == 0

    def test_failed_command(self) -> None:
        client, _ = _client(lambda cmd: _result(cmd, success=False, error="no board open"))
        with pytest.raises(BridgeError, match="no board open") as exc_info:
            asyncio.run(client.command("get_silkscreens"))
        assert exc_info.value.action == "get_silkscreens"

    def test_failed_command_without_message(self) -> None:
        client, _ = _client(lambda cmd: _result(cmd, success=False))
        with pytest.raises(BridgeError, match="Bridge command failed"):
            asyncio.run(client.command("ping"))

    def test_timeout(self) -> None:
        client, _ = _client(lambda cmd: None, timeout=0.05)
        with pytest.raises(BridgeTimeoutError, match="timed out") as exc_info:
            asyncio.run(client.command("get_pads"))
        assert exc_info.value.to_dict()["error_code"] == "BRIDGE_TIMEOUT"
        assert client.pending_count == 0

    def test_disconnect_fails_pending(self) -> None:
        client, socket = _client(lambda cmd: None)

        async def scenario() -> None:
            task = asyncio.create_task(client.command("get_vias"))
            await asyncio.sleep(0)
            assert client.pending_count == 1
            client._handle_close(socket)
            await task

        with pytest.raises(BridgeConnectionError, match="disconnected"):
            asyncio.run(scenario())
        assert client.is_connected is False

    def test_unrelated_and_malformed_messages_ignored(self) -> None:
        def responder(cmd: dict[str, Any]) -> dict[str, Any]:
            client._handle_message("not json")
            client._handle_message(b'{"type": "event"}')
            client._handle_message(json.dumps({"type": "result", "payload": {"commandId": "other"}}))
            return _result(cmd, [1, 2])

        client, _ = _client(responder)
        assert asyncio.run(client.command("get_pads")) == [1, 2]

    def test_connect_failure(self) -> None:
        client = BridgeClient(url="ws://127.0.0.1:1/ws/bridge", timeout=1)
        with patch(
            "jlceda_mcp.backends.bridge.websockets.connect",
            new=AsyncMock(side_effect=OSError("connection refused")),
        ):
            with pytest.raises(BridgeConnectionError, match="Cannot connect"):
                asyncio.run(client.command("ping"))
        assert client.is_connected is False

    def test_close(self) -> None:
        client, socket = _client(lambda cmd: None)
        asyncio.run(client.close())
        assert socket.closed is True
        assert client.is_connected is False

    def test_closed_socket_on_send(self) -> None:
        client, socket = _client(lambda cmd: None)
        socket.send = AsyncMock(side_effect=ConnectionClosed(None, None))
        with pytest.raises(BridgeConnectionError, match="disconnected") as exc_info:
            asyncio.run(client.command("get_pads"))
        assert exc_info.value.action == "get_pads"
        assert client.is_connected is False
        assert client.pending_count == 0


# ── BridgeHost ──────────────────────────────────────────────────────


def _host(responses: dict[str, Any]) -> tuple[BridgeHost, MagicMock]:
    client = MagicMock(spec=BridgeClient)
    client.url = "ws://gateway.test/ws/bridge"
    client.timeout = 60.0
    client.is_connected = True
    client.command = AsyncMock(side_effect=lambda action, params=None: responses.get(action))
    return BridgeHost(client), client


class TestBridgeHost:
    def test_is_host_document(self) -> None:
        host, _ = _host({})
        assert isinstance(host, HostDocument)

    def test_unwraps_list_payloads(self) -> None:
        host, client = _host(
            {
                "get_silkscreens": {"totalSilkscreens": 1, "silkscreens": [{"primitiveId": "S1"}]},
                "get_pads": {"totalPads": 1, "pads": [{"primitiveId": "P1"}]},
                "get_vias": [{"primitiveId": "V1"}],
                "get_board_outline": {"primitives": []},
                "get_state": {"components": [{"primitiveId": "U1"}], "nets": []},
            }
        )
        assert asyncio.run(host.list_silkscreen_records(3)) == [{"primitiveId": "S1"}]
        client.command.assert_awaited_with("get_silkscreens", {"layer": 3})
        assert asyncio.run(host.list_pads()) == [{"primitiveId": "P1"}]
        client.command.assert_awaited_with("get_pads", {"includeBBox": True})
        assert asyncio.run(host.list_vias()) == [{"primitiveId": "V1"}]
        assert asyncio.run(host.board_outline_geometry(11)) == []
        assert asyncio.run(host.list_components()) == [{"primitiveId": "U1"}]

    def test_unexpected_payload_is_empty(self) -> None:
        host, _ = _host({"get_pads": "oops"})
        assert asyncio.run(host.list_pads()) == []

    def test_move_params(self) -> None:
        host, client = _host({"move_silkscreen": {"primitiveId": "S1", "x": 1, "y": 2}})
        applied = asyncio.run(host.move_primitive("S1", 1.0, 2.0))
        client.command.assert_awaited_with("move_silkscreen", {"primitiveId": "S1", "x": 1.0, "y": 2.0})
        assert applied["primitive_id"] == "S1"
        assert applied["rotation"] is None

        asyncio.run(host.move_primitive("S1", 1.0, 2.0, 90.0))
        client.command.assert_awaited_with(
            "move_silkscreen", {"primitiveId": "S1", "x": 1.0, "y": 2.0, "rotation": 90.0}
        )

    def test_selection(self) -> None:
        host, _ = _host({"get_selection": {"primitiveIds": ["S1", " ", 7, " S2 "]}})
        assert asyncio.run(host.selected_primitive_ids()) == ["S1", "S2"]

    def test_feature_support_cached(self) -> None:
        host, client = _host({"get_feature_support": {"silkscreen": {"modify": True}}})
        asyncio.run(host.feature_support())
        asyncio.run(host.feature_support())
        assert client.command.await_count == 1

    def test_measure_uses_attached_box(self) -> None:
        host, client = _host({})
        record = {"bbox": {"minX": 0, "minY": 0, "maxX": 2, "maxY": 1}}
        assert asyncio.run(host.measure_bounding_box(record)) == {
            "min_x": 0,
            "min_y": 0,
            "max_x": 2,
            "max_y": 1,
        }
        client.command.assert_not_awaited()

    def test_describe(self) -> None:
        host, _ = _host({})
        assert host.describe() == {
            "url": "ws://gateway.test/ws/bridge",
            "connected": True,
            "timeout": 60.0,
        }


class TestBridgeHostInspection:
    def test_failed_via_query_reads_as_empty(self) -> None:
        rows = {
            "get_silkscreens": [{"primitiveId": "S1", "text": "R1", "x": 100, "y": 100, "layer": 3}],
            "get_pads": [{"primitiveId": "P1", "x": 100, "y": 100, "diameter": 20}],
        }

        def responder(cmd: dict[str, Any]) -> dict[str, Any]:
            action = cmd["payload"]["action"]
            if action == "get_vias":
                return _result(cmd, success=False, error="unknown action")
            return _result(cmd, rows.get(action, []))

        client, socket = _client(responder)
        result = asyncio.run(silkscreen_ops.evaluate_silkscreens(BridgeHost(client)))

        assert result["total_silkscreens"] == 1
        assert result["conflicted_silkscreens"] == 1
        assert result["board_box"] is None
        assert "get_vias" in [sent["payload"]["action"] for sent in socket.sent]
