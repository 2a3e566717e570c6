"""Axis-aligned box geometry for silkscreen collision checks.

Every shape here is a rectangle aligned with the board axes. Rotated labels
are handled only by swapping width and height near +/-90 degrees.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from typing import Any

from ..constants import (
    DEFAULT_FONT_SIZE,
    MIN_LABEL_SIZE,
    TEXT_CHAR_WIDTH_FACTOR,
    TEXT_MIN_WIDTH_FACTOR,
    VERTICAL_TOLERANCE_DEG,
)
from .types import Box


def to_finite(value: Any, fallback: float = 0.0) -> float:
    """Coerce ``value`` to a finite float, or return ``fallback``."""
    if isinstance(value, bool):
        return float(value)
    try:
        num = float(value)
    except (TypeError, ValueError):
        return fallback
    return num if math.isfinite(num) else fallback


def box_from_center(x: float, y: float, width: float, height: float) -> Box:
    """Build a box centered on (x, y). Negative sizes collapse to a point."""
    half_w = max(0.0, to_finite(width) / 2)
    half_h = max(0.0, to_finite(height) / 2)
    return Box(x - half_w, y - half_h, x + half_w, y + half_h)


def normalize_angle(angle: float) -> float:
    """Fold an angle into the half-open range (-180, 180]."""
    value = to_finite(angle, 0.0)
    if abs(value) >= 720:
        # fmod is exact, so this only bounds the loops below
        value = math.fmod(value, 360.0)
    while value > 180:
        value -= 360
    while value <= -180:
        value += 360
    return value


def is_vertical_angle(angle: float) -> bool:
    """True when the angle is within the vertical tolerance band of +/-90.

    The band is half-open like the angle range: 110 counts as vertical, 70 does not.
    """
    offset = abs(normalize_angle(angle)) - 90
    return -VERTICAL_TOLERANCE_DEG < offset <= VERTICAL_TOLERANCE_DEG


def box_intersects(a: Box, b: Box, tolerance: float = 0.0) -> bool:
    """True unless the boxes are separated on some axis by more than ``tolerance``."""
    t = max(0.0, to_finite(tolerance, 0.0))
    if a.max_x < b.min_x - t:
        return False
    if a.min_x > b.max_x + t:
        return False
    if a.max_y < b.min_y - t:
        return False
    if a.min_y > b.max_y + t:
        return False
    return True


def box_inside(inner: Box, outer: Box, margin: float = 0.0) -> bool:
    """True when ``inner`` lies within ``outer`` grown by ``margin``."""
    m = max(0.0, to_finite(margin, 0.0))
    return (
        inner.min_x >= outer.min_x - m
        and inner.min_y >= outer.min_y - m
        and inner.max_x <= outer.max_x + m
        and inner.max_y <= outer.max_y + m
    )


def estimate_text_box(
    x: float,
    y: float,
    text: str,
    font_size: float,
    rotation: float = 0.0,
) -> Box:
    """Estimate a label's footprint from its text length and font size.

    This is a calibrated approximation, not glyph metrics: each character is
    taken as 0.6 of the font size wide, with a floor of 0.8 font sizes, and
    the line height is the font size. Prefer a host-measured box when one is
    available.
    """
    size = to_finite(font_size, DEFAULT_FONT_SIZE)
    length = max(len(text or ""), 1)
    width = max(size * length * TEXT_CHAR_WIDTH_FACTOR, size * TEXT_MIN_WIDTH_FACTOR)
    height = max(size, 1.0)
    if is_vertical_angle(rotation):
        width, height = height, width
    return box_from_center(x, y, width, height)


def rotated_box(x: float, y: float, base_width: float, base_height: float, rotation: float) -> Box:
    """Box of a label with unrotated extents placed at (x, y) and ``rotation``."""
    w = max(MIN_LABEL_SIZE, base_width)
    h = max(MIN_LABEL_SIZE, base_height)
    if is_vertical_angle(rotation):
        w, h = h, w
    return box_from_center(x, y, w, h)


_BOX_KEYS = (
    ("minX", "minY", "maxX", "maxY"),
    ("min_x", "min_y", "max_x", "max_y"),
)


def box_from_mapping(raw: Mapping[str, Any] | Box | None) -> Box | None:
    """Parse a host bounding box; ``None`` unless all four edges are finite."""
    if raw is None:
        return None
    if isinstance(raw, Box):
        return raw
    if not isinstance(raw, Mapping):
        return None
    for keys in _BOX_KEYS:
        if not all(k in raw for k in keys):
            continue
        edges = [to_finite(raw[k], math.nan) for k in keys]
        if not all(math.isfinite(e) for e in edges):
            return None
        min_x, min_y, max_x, max_y = edges
        # Hosts with a flipped y axis report maxY < minY
        return Box(min(min_x, max_x), min(min_y, max_y), max(min_x, max_x), max(min_y, max_y))
    return None


def merge_boxes(boxes: Iterable[Box]) -> Box | None:
    """Union of ``boxes``, or ``None`` when there are none."""
    merged: Box | None = None
    for box in boxes:
        if merged is None:
            merged = box
            continue
        merged = Box(
            min(merged.min_x, box.min_x),
            min(merged.min_y, box.min_y),
            max(merged.max_x, box.max_x),
            max(merged.max_y, box.max_y),
        )
    return merged


def distance(x1: float, y1: float, x2: float, y2: float) -> float:
    return math.hypot(x2 - x1, y2 - y1)
