"""Shared dataclasses for silkscreen conflict detection and placement."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

ConflictType = Literal["out_of_board", "overlap_pad", "overlap_via", "overlap_silkscreen"]
ObstacleKind = Literal["pad", "via"]


@dataclass(frozen=True)
class Box:
    """Axis-aligned bounding box in editor units."""

    min_x: float
    min_y: float
    max_x: float
    max_y: float

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y

    @property
    def center(self) -> tuple[float, float]:
        return ((self.min_x + self.max_x) / 2, (self.min_y + self.max_y) / 2)

    def to_dict(self) -> dict[str, Any]:
        return {
            "min_x": round(self.min_x, 4),
            "min_y": round(self.min_y, 4),
            "max_x": round(self.max_x, 4),
            "max_y": round(self.max_y, 4),
        }


@dataclass(frozen=True)
class Conflict:
    """A geometric violation owned by one silkscreen label."""

    type: ConflictType
    target_id: str
    description: str
    net: str | None = None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "type": self.type,
            "target_id": self.target_id,
            "description": self.description,
        }
        if self.net is not None:
            d["net"] = self.net
        return d


@dataclass
class SilkscreenItem:
    """A silkscreen text label read from the live document."""

    primitive_id: str
    text: str
    x: float
    y: float
    rotation: float  # normalized to (-180, 180]
    font_size: float
    bbox: Box
    parent_primitive_id: str = ""
    layer: int | None = None
    locked: bool = False
    selected: bool = False
    measured: bool = False  # bbox came from the host rather than the text heuristic
    conflicts: list[Conflict] = field(default_factory=list)

    @property
    def width(self) -> float:
        return self.bbox.width

    @property
    def height(self) -> float:
        return self.bbox.height

    @property
    def conflict_count(self) -> int:
        return len(self.conflicts)

    def to_dict(self, include_conflicts: bool = False) -> dict[str, Any]:
        d: dict[str, Any] = {
            "primitive_id": self.primitive_id,
            "text": self.text,
            "x": self.x,
            "y": self.y,
            "rotation": self.rotation,
            "font_size": self.font_size,
            "parent_primitive_id": self.parent_primitive_id,
            "layer": self.layer,
            "locked": self.locked,
            "selected": self.selected,
            "bbox": self.bbox.to_dict(),
            "measured": self.measured,
            "width": round(self.width, 4),
            "height": round(self.height, 4),
        }
        if include_conflicts:
            d["has_conflict"] = bool(self.conflicts)
            d["conflicts"] = [c.to_dict() for c in self.conflicts]
            d["conflict_count"] = self.conflict_count
        return d


@dataclass(frozen=True)
class Obstacle:
    """A pad or via that labels must not overlap."""

    primitive_id: str
    kind: ObstacleKind
    box: Box
    net: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "primitive_id": self.primitive_id,
            "kind": self.kind,
            "net": self.net,
            "box": self.box.to_dict(),
        }


@dataclass
class ConflictReport:
    """Output of the conflict detector."""

    per_item: dict[str, list[Conflict]] = field(default_factory=dict)
    total_conflicts: int = 0
    by_type: dict[str, int] = field(default_factory=dict)
    board_box: Box | None = None

    def add(self, owner_id: str, conflict: Conflict) -> None:
        self.per_item.setdefault(owner_id, []).append(conflict)
        self.by_type[conflict.type] = self.by_type.get(conflict.type, 0) + 1
        self.total_conflicts += 1

    def conflicts_for(self, primitive_id: str) -> list[Conflict]:
        return list(self.per_item.get(primitive_id, []))

    def summary(self) -> dict[str, Any]:
        return {"total_conflicts": self.total_conflicts, "by_type": dict(self.by_type)}


@dataclass
class PlacementCandidate:
    """A scored position considered for one label."""

    x: float
    y: float
    rotation: float
    score: int
    distance: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {"x": self.x, "y": self.y, "rotation": self.rotation, "score": self.score}


@dataclass
class AutoSilkscreenResult:
    """Result of one auto-placement run.

    ``moved`` and ``improved`` currently always match: every committed move
    strictly lowers the label's score. Both are reported so callers keep
    working if a future policy commits non-improving moves.
    """

    total: int = 0
    moved: int = 0
    improved: int = 0
    skipped: int = 0
    failed: int = 0
    details: list[dict[str, Any]] = field(default_factory=list)
    boxes: dict[str, Box] = field(default_factory=dict)  # final label boxes, not serialized

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "moved": self.moved,
            "improved": self.improved,
            "skipped": self.skipped,
            "failed": self.failed,
            "details": self.details,
        }
