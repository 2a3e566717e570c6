"""Tests for the silkscreen and host MCP tool handlers."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, patch

import pytest

from jlceda_mcp import state
from jlceda_mcp.backends.bridge import BridgeHost
from jlceda_mcp.backends.snapshot import SnapshotHost
from jlceda_mcp.exceptions import BridgeConnectionError
from jlceda_mcp.tools import TOOL_REGISTRY


def _board() -> dict[str, Any]:
    return {
        "silkscreens": [
            {"primitiveId": "S1", "text": "ABCDEF", "x": 100, "y": 100, "fontSize": 10, "layer": 3},
            {"primitiveId": "S2", "text": "U2", "x": 600, "y": 600, "fontSize": 10, "layer": 3},
        ],
        "pads": [{"primitiveId": "P1", "x": 105, "y": 100, "diameter": 20}],
        "outline": [
            {"startX": 0, "startY": 0, "endX": 1000, "endY": 1000, "layer": 11},
        ],
    }


def _call(tool: str, **kwargs: Any) -> dict[str, Any]:
    return asyncio.run(TOOL_REGISTRY[tool].handler(**kwargs))


@pytest.fixture(autouse=True)
def _snapshot_host():
    host = SnapshotHost(_board())
    state.set_host(host)
    yield host
    state.reset()


# ── Silkscreen tools ────────────────────────────────────────────────


class TestSilkscreenTools:
    def test_get_silkscreens(self) -> None:
        result = _call("get_silkscreens", only_conflicted=True)
        assert result["returned_silkscreens"] == 1
        assert result["conflict_summary"]["by_type"] == {"overlap_pad": 1}

    def test_evaluate(self) -> None:
        result = _call("evaluate_silkscreens")
        assert result["conflicted_silkscreens"] == 1
        assert result["board_box"]["max_x"] == 1000

    def test_move(self, _snapshot_host: SnapshotHost) -> None:
        result = _call("move_silkscreen", primitive_id="S2", x=5, y=6)
        assert result["status"] == "moved"
        assert result["primitive_id"] == "S2"
        assert len(_snapshot_host.moves) == 1

    def test_move_invalid_returns_error(self) -> None:
        result = _call("move_silkscreen", primitive_id="  ", x=5, y=6)
        assert result["error_code"] == "VALIDATION_ERROR"
        assert result["field"] == "primitive_id"

    def test_move_unknown_returns_error(self) -> None:
        result = _call("move_silkscreen", primitive_id="S9", x=5, y=6)
        assert result["error_code"] == "BACKEND_ERROR"
        assert result["backend_name"] == "snapshot"

    def test_auto_preview_then_apply(self, _snapshot_host: SnapshotHost) -> None:
        preview = _call("auto_silkscreen", apply=False)
        assert preview["applied"] is False
        assert preview["moved"] == 1
        assert _snapshot_host.moves == []

        applied = _call("auto_silkscreen", max_moves=5, try_angles=[0, 90])
        assert applied["applied"] is True
        assert applied["moved"] == 1
        assert _call("evaluate_silkscreens")["conflicted_silkscreens"] == 0

    def test_auto_on_read_only_host_returns_error(self) -> None:
        state.set_host(SnapshotHost(_board(), read_only=True))
        result = _call("auto_silkscreen")
        assert result["error_code"] == "CAPABILITY_MISSING"
        assert result["capability"] == "move_primitive"

    def test_features(self) -> None:
        result = _call("get_silkscreen_features")
        assert result["host"] == "snapshot"
        assert result["silkscreen"]["auto"] is True


# ── Host tools ──────────────────────────────────────────────────────


class TestSnapshotTools:
    def test_load_and_save(self, tmp_path: Path) -> None:
        path = tmp_path / "board.json"
        path.write_text(json.dumps(_board()), encoding="utf-8")

        loaded = _call("load_board_snapshot", path=str(path))
        assert loaded["status"] == "loaded"
        assert (loaded["silkscreens"], loaded["pads"], loaded["vias"]) == (2, 1, 0)
        assert state.describe_host()["path"] == str(path)

        _call("auto_silkscreen")
        out = tmp_path / "fixed.json"
        saved = _call("save_board_snapshot", path=str(out))
        assert saved == {"status": "saved", "path": str(out), "applied_moves": 1}
        fixed = json.loads(out.read_text(encoding="utf-8"))
        assert fixed["silkscreens"][0]["rotation"] == 90.0

    def test_load_invalid_path(self, tmp_path: Path) -> None:
        result = _call("load_board_snapshot", path=str(tmp_path / "board.txt"))
        assert result["error"].startswith("Invalid path")
        result = _call("load_board_snapshot", path=str(tmp_path / "missing.json"))
        assert "not found" in result["error"]

    def test_load_bad_json(self, tmp_path: Path) -> None:
        path = tmp_path / "board.json"
        path.write_text("[1, 2]", encoding="utf-8")
        result = _call("load_board_snapshot", path=str(path))
        assert result["error_code"] == "SNAPSHOT_ERROR"

    def test_read_only_snapshot_previews_only(self, tmp_path: Path) -> None:
        path = tmp_path / "board.json"
        path.write_text(json.dumps(_board()), encoding="utf-8")
        _call("load_board_snapshot", path=str(path), read_only=True)

        applied = _call("auto_silkscreen")
        assert applied["error_code"] == "CAPABILITY_MISSING"
        preview = _call("auto_silkscreen", apply=False)
        assert preview["applied"] is False
        assert preview["moved"] == 1

    def test_save_requires_snapshot_host(self) -> None:
        state.set_host(BridgeHost())
        result = _call("save_board_snapshot")
        assert "not a board snapshot" in result["error"]

    def test_save_without_path_on_unsaved_snapshot(self) -> None:
        result = _call("save_board_snapshot")
        assert result["error_code"] == "SNAPSHOT_ERROR"

    def test_host_status(self) -> None:
        status = _call("get_host_status")
        assert status == {"host": "snapshot", "path": None, "read_only": False, "applied_moves": 0}


class TestConnectBridge:
    def test_rejects_bad_timeout(self) -> None:
        assert "error" in _call("connect_bridge", timeout=0)

    def test_connect_failure_keeps_current_host(self, _snapshot_host: SnapshotHost) -> None:
        with (
            patch.object(BridgeHost, "ping", new=AsyncMock(side_effect=BridgeConnectionError("refused"))),
            patch.object(BridgeHost, "close", new=AsyncMock()),
        ):
            result = _call("connect_bridge", url="ws://127.0.0.1:1/ws/bridge")
        assert result["error_code"] == "BRIDGE_CONNECTION_ERROR"
        assert state.get_host() is _snapshot_host

    def test_connect_success(self) -> None:
        with patch.object(BridgeHost, "ping", new=AsyncMock(return_value={"message": "pong"})):
            result = _call("connect_bridge", url="ws://gateway.test/ws/bridge", timeout=5)
        assert result["status"] == "connected"
        assert result["url"] == "ws://gateway.test/ws/bridge"
        assert result["timeout"] == 5
        assert result["ping"] == {"message": "pong"}
        assert state.describe_host()["host"] == "bridge"
