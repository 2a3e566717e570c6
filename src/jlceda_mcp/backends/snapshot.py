"""Offline host backed by a JSON board snapshot.

A snapshot is a JSON object with optional ``silkscreens``, ``pads``,
``vias``, ``outline``, ``components`` and ``selected`` lists, using the same
record shapes the editor bridge returns. Moves are applied to the in-memory
records and can be written back with ``save()``. Useful for previewing an
auto-placement run without a live editor, and in tests.
"""

from __future__ import annotations

import copy
import json
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from ..algorithms.inventory import embedded_box, record_identity
from ..exceptions import BackendError, SnapshotError

logger = logging.getLogger(__name__)

_SECTIONS = ("silkscreens", "pads", "vias", "outline", "components", "selected")


class SnapshotHost:
    """In-memory ``HostDocument`` over snapshot records."""

    name = "snapshot"

    def __init__(
        self,
        data: Mapping[str, Any] | None = None,
        path: str | Path | None = None,
        read_only: bool = False,
    ) -> None:
        raw = dict(data or {})
        self._data: dict[str, list[Any]] = {
            section: list(raw.get(section) or []) for section in _SECTIONS
        }
        self.path = Path(path) if path is not None else None
        self.read_only = read_only
        self.moves: list[dict[str, Any]] = []

    @classmethod
    def load(cls, path: str | Path, read_only: bool = False) -> SnapshotHost:
        """Load a snapshot file."""
        snapshot_path = Path(path)
        try:
            data = json.loads(snapshot_path.read_text(encoding="utf-8"))
        except FileNotFoundError as exc:
            raise SnapshotError(f"Snapshot not found: {snapshot_path}", path=str(path)) from exc
        except (OSError, json.JSONDecodeError) as exc:
            raise SnapshotError(f"Cannot read snapshot {snapshot_path}: {exc}", path=str(path)) from exc
        if not isinstance(data, dict):
            raise SnapshotError("Snapshot root must be a JSON object", path=str(path))
        logger.info("Loaded board snapshot %s", snapshot_path)
        return cls(data, path=snapshot_path, read_only=read_only)

    def save(self, path: str | Path | None = None) -> Path:
        """Write the current records (including applied moves) as JSON."""
        target = Path(path) if path is not None else self.path
        if target is None:
            raise SnapshotError("No snapshot path given")
        try:
            target.write_text(json.dumps(self._data, indent=2), encoding="utf-8")
        except OSError as exc:
            raise SnapshotError(f"Cannot write snapshot {target}: {exc}", path=str(target)) from exc
        return target

    def to_dict(self) -> dict[str, Any]:
        return copy.deepcopy(self._data)

    # ── HostDocument ────────────────────────────────────────────────

    async def list_silkscreen_records(self, layer: int | None = None) -> list[Any]:
        rows = self._data["silkscreens"]
        if layer is not None:
            rows = [r for r in rows if isinstance(r, Mapping) and r.get("layer") == layer]
        return copy.deepcopy(rows)

    async def list_pads(self) -> list[Any]:
        return copy.deepcopy(self._data["pads"])

    async def list_vias(self) -> list[Any]:
        return copy.deepcopy(self._data["vias"])

    async def board_outline_geometry(self, layer: int) -> list[Any]:
        return [
            copy.deepcopy(r)
            for r in self._data["outline"]
            if not isinstance(r, Mapping) or r.get("layer", layer) == layer
        ]

    async def list_components(self) -> list[Any]:
        return copy.deepcopy(self._data["components"])

    async def measure_bounding_box(self, record: Any) -> Mapping[str, Any] | None:
        box = embedded_box(record)
        return box.to_dict() if box is not None else None

    async def move_primitive(
        self,
        primitive_id: str,
        x: float,
        y: float,
        rotation: float | None = None,
    ) -> dict[str, Any]:
        if self.read_only:
            raise BackendError("Snapshot is read-only", backend_name=self.name)
        for record in self._data["silkscreens"]:
            if record_identity(record) != primitive_id:
                continue
            record["x"] = x
            record["y"] = y
            if rotation is not None:
                record["rotation"] = rotation
            # The stored box no longer matches the new position
            record.pop("bbox", None)
            applied = {"primitive_id": primitive_id, "x": x, "y": y, "rotation": rotation}
            self.moves.append(applied)
            return applied
        raise BackendError(f"Silkscreen {primitive_id!r} not found in snapshot", backend_name=self.name)

    async def selected_primitive_ids(self) -> list[str]:
        return [str(pid) for pid in self._data["selected"] if str(pid).strip()]

    async def feature_support(self) -> dict[str, Any]:
        writable = not self.read_only
        return {"silkscreen": {"query": True, "modify": writable, "auto": writable}}
