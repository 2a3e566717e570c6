"""Silkscreen conflict detection and auto-placement, pure Python with no dependencies."""

from .conflicts import annotate_items, detect_conflicts
from .geometry import (
    box_from_center,
    box_inside,
    box_intersects,
    estimate_text_box,
    is_vertical_angle,
    normalize_angle,
)
from .inventory import build_obstacle, build_silkscreen_item
from .silkscreen import (
    AutoSilkscreenOptions,
    auto_place_silkscreens,
    evaluate_score,
    find_best_position,
)
from .types import (
    AutoSilkscreenResult,
    Box,
    Conflict,
    ConflictReport,
    Obstacle,
    SilkscreenItem,
)

__all__ = [
    "AutoSilkscreenOptions",
    "AutoSilkscreenResult",
    "Box",
    "Conflict",
    "ConflictReport",
    "Obstacle",
    "SilkscreenItem",
    "annotate_items",
    "auto_place_silkscreens",
    "box_from_center",
    "box_inside",
    "box_intersects",
    "build_obstacle",
    "build_silkscreen_item",
    "detect_conflicts",
    "estimate_text_box",
    "evaluate_score",
    "find_best_position",
    "is_vertical_angle",
    "normalize_angle",
]
