"""Inventory builders: typed silkscreen items and obstacles from host records.

Host records arrive as JSON objects from the editor bridge (or as objects
exposing getters). Field names vary between editor versions, so every field
is read through a small adapter table: an ordered tuple of source names and
one extractor, resolved once per record. Records without an identity or a
usable position are dropped rather than treated as errors.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from ..constants import DEFAULT_FONT_SIZE, DEFAULT_OBSTACLE_DIAMETER, MIN_OBSTACLE_SIZE
from ..logging_config import create_logger
from .geometry import (
    box_from_center,
    box_from_mapping,
    estimate_text_box,
    merge_boxes,
    normalize_angle,
    to_finite,
)
from .types import Box, Obstacle, ObstacleKind, SilkscreenItem

logger = create_logger(__name__)


# ── Extractors ──────────────────────────────────────────────────────


def as_text(raw: Any) -> str | None:
    """Non-empty stripped string, or None."""
    if raw is None:
        return None
    text = (raw if isinstance(raw, str) else str(raw)).strip()
    return text or None


def as_number(raw: Any) -> float | None:
    """Finite float, or None."""
    if raw is None or raw == "":
        return None
    value = to_finite(raw, math.nan)
    return value if math.isfinite(value) else None


def as_flag(raw: Any) -> bool | None:
    if raw is None:
        return None
    if isinstance(raw, str):
        return raw.strip().lower() in ("1", "true", "yes", "on")
    return bool(raw)


def as_layer(raw: Any) -> int | None:
    value = as_number(raw)
    return int(value) if value is not None else None


# ── Field adapters ──────────────────────────────────────────────────


def _read_source(record: Any, source: str) -> Any:
    """Read one named source: a mapping key, an attribute, or a no-arg getter."""
    if isinstance(record, Mapping):
        return record.get(source)
    attr = getattr(record, source, None)
    if callable(attr):
        try:
            return attr()
        except (AttributeError, TypeError, ValueError):
            return None
    return attr


@dataclass(frozen=True)
class FieldAdapter:
    """One logical field and the ordered host names it may appear under."""

    name: str
    sources: tuple[str, ...]
    extract: Callable[[Any], Any]

    def resolve(self, record: Any) -> Any:
        for source in self.sources:
            value = self.extract(_read_source(record, source))
            if value is not None:
                return value
        return None


def read_fields(record: Any, adapters: Iterable[FieldAdapter]) -> dict[str, Any]:
    """Resolve every adapter against ``record`` (missing fields are None)."""
    return {adapter.name: adapter.resolve(record) for adapter in adapters}


_IDENTITY = FieldAdapter("primitive_id", ("primitiveId", "primitive_id", "id"), as_text)
_CENTER_X = FieldAdapter("x", ("x", "centerX", "center_x", "posX"), as_number)
_CENTER_Y = FieldAdapter("y", ("y", "centerY", "center_y", "posY"), as_number)
_NET = FieldAdapter("net", ("net", "netName", "net_name"), as_text)

SILKSCREEN_FIELDS: tuple[FieldAdapter, ...] = (
    _IDENTITY,
    FieldAdapter("text", ("text", "content"), as_text),
    _CENTER_X,
    _CENTER_Y,
    FieldAdapter("rotation", ("rotation", "angle"), as_number),
    FieldAdapter("font_size", ("fontSize", "font_size"), as_number),
    FieldAdapter(
        "parent_primitive_id",
        ("parentPrimitiveId", "belongPrimitiveId", "parent_primitive_id"),
        as_text,
    ),
    FieldAdapter("layer", ("layer",), as_layer),
    FieldAdapter("locked", ("primitiveLock", "locked"), as_flag),
)

PAD_FIELDS: tuple[FieldAdapter, ...] = (
    _IDENTITY,
    _NET,
    _CENTER_X,
    _CENTER_Y,
    FieldAdapter("diameter", ("diameter", "padDiameter", "pad_diameter"), as_number),
)

VIA_FIELDS: tuple[FieldAdapter, ...] = (
    _IDENTITY,
    _NET,
    _CENTER_X,
    _CENTER_Y,
    FieldAdapter("diameter", ("diameter",), as_number),
)

OUTLINE_FIELDS: tuple[FieldAdapter, ...] = (
    FieldAdapter("start_x", ("startX", "start_x", "x1"), as_number),
    FieldAdapter("start_y", ("startY", "start_y", "y1"), as_number),
    FieldAdapter("end_x", ("endX", "end_x", "x2"), as_number),
    FieldAdapter("end_y", ("endY", "end_y", "y2"), as_number),
)

COMPONENT_FIELDS: tuple[FieldAdapter, ...] = (
    _CENTER_X,
    _CENTER_Y,
    FieldAdapter("width", ("width",), as_number),
    FieldAdapter("height", ("height",), as_number),
)


def record_identity(record: Any) -> str:
    """Primitive id of a host record, or ``""``."""
    return _IDENTITY.resolve(record) or ""


def embedded_box(record: Any) -> Box | None:
    """Bounding box the host already attached to a record, if any."""
    return box_from_mapping(_read_source(record, "bbox"))


# ── Builders ────────────────────────────────────────────────────────


def build_silkscreen_item(
    record: Any,
    measured: Mapping[str, Any] | Box | None = None,
    selected: frozenset[str] | set[str] = frozenset(),
) -> SilkscreenItem | None:
    """Build a silkscreen item, or None for a record without id or position."""
    fields = read_fields(record, SILKSCREEN_FIELDS)
    primitive_id = fields["primitive_id"]
    x, y = fields["x"], fields["y"]
    if not primitive_id or x is None or y is None:
        logger.debug("Dropping silkscreen record without id/position: %r", primitive_id)
        return None

    text = fields["text"] or ""
    rotation = normalize_angle(fields["rotation"] or 0.0)
    font_size = fields["font_size"] if fields["font_size"] is not None else DEFAULT_FONT_SIZE

    bbox = box_from_mapping(measured)
    is_measured = bbox is not None
    if bbox is None:
        bbox = estimate_text_box(x, y, text, font_size, rotation)

    return SilkscreenItem(
        primitive_id=primitive_id,
        text=text,
        x=x,
        y=y,
        rotation=rotation,
        font_size=font_size,
        bbox=bbox,
        parent_primitive_id=fields["parent_primitive_id"] or "",
        layer=fields["layer"],
        locked=bool(fields["locked"]),
        selected=primitive_id in selected,
        measured=is_measured,
    )


def build_obstacle(
    record: Any,
    kind: ObstacleKind,
    measured: Mapping[str, Any] | Box | None = None,
) -> Obstacle | None:
    """Build a pad or via obstacle, or None when no id or box can be derived."""
    fields = read_fields(record, PAD_FIELDS if kind == "pad" else VIA_FIELDS)
    primitive_id = fields["primitive_id"]
    if not primitive_id:
        return None

    box = box_from_mapping(measured)
    if box is None:
        x, y = fields["x"], fields["y"]
        if x is None or y is None:
            logger.debug("Dropping %s %s without position", kind, primitive_id)
            return None
        diameter = fields["diameter"]
        if diameter is None:
            diameter = DEFAULT_OBSTACLE_DIAMETER
        size = max(MIN_OBSTACLE_SIZE, diameter)
        box = box_from_center(x, y, size, size)

    return Obstacle(primitive_id=primitive_id, kind=kind, box=box, net=fields["net"] or "")


def outline_primitive_box(
    record: Any,
    measured: Mapping[str, Any] | Box | None = None,
) -> Box | None:
    """Box of one board-outline line/arc/polyline primitive."""
    box = box_from_mapping(measured)
    if box is not None:
        return box
    f = read_fields(record, OUTLINE_FIELDS)
    if None in (f["start_x"], f["start_y"], f["end_x"], f["end_y"]):
        return None
    return Box(
        min(f["start_x"], f["end_x"]),
        min(f["start_y"], f["end_y"]),
        max(f["start_x"], f["end_x"]),
        max(f["start_y"], f["end_y"]),
    )


def component_bounds(records: Iterable[Any]) -> Box | None:
    """Union of component footprints, each taken as center +/- half its size."""
    boxes = []
    for record in records:
        f = read_fields(record, COMPONENT_FIELDS)
        if f["x"] is None or f["y"] is None:
            continue
        boxes.append(box_from_center(f["x"], f["y"], f["width"] or 0.0, f["height"] or 0.0))
    return merge_boxes(boxes)


def clamp_limit(limit: Any, default: int) -> int:
    """Caller-supplied collection cap: a positive integer, else ``default``."""
    value = as_number(limit)
    if value is None:
        return default
    return max(1, math.floor(value))
