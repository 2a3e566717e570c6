"""Greedy silkscreen auto-placement.

Relocates conflicting labels one at a time, worst offenders first:
1. Candidates: rings of radius 0, step, 2*step, ... in eight compass
   directions plus the current spot, each tried at the current rotation
   and every configured angle
2. Scoring: weighted count of pads, vias and other labels hit, plus a
   flat penalty for leaving the board
3. Commit: the best candidate is applied only when it strictly lowers the
   label's score; ties go to the smaller displacement

Label boxes live in an explicit ``dict[str, Box]`` that is copied in and
returned with the result, so later labels are scored against earlier commits
without any module state. The search stops at the first clean spot within one
step of the origin, so placement is good but not globally optimal.
"""

from __future__ import annotations

import math
from collections.abc import Awaitable, Callable, Iterator, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from ..constants import (
    BOARD_MARGIN,
    CONFLICT_TOLERANCE,
    DEFAULT_MAX_MOVES,
    DEFAULT_MAX_RADIUS,
    DEFAULT_STEP,
    DEFAULT_TRY_ANGLES,
    MIN_STEP,
    SCORE_OUT_OF_BOARD,
    SCORE_PAD_OVERLAP,
    SCORE_SILKSCREEN_OVERLAP,
    SCORE_VIA_OVERLAP,
    SEARCH_DIRECTIONS,
)
from ..exceptions import BackendError
from ..logging_config import create_logger
from .geometry import (
    box_inside,
    box_intersects,
    distance,
    is_vertical_angle,
    normalize_angle,
    rotated_box,
    to_finite,
)
from .types import AutoSilkscreenResult, Box, Obstacle, PlacementCandidate, SilkscreenItem

logger = create_logger(__name__)

MoveFn = Callable[[str, float, float, float], Awaitable[Any]]
"""Async ``(primitive_id, x, y, rotation)`` mutation issued for each commit."""


@dataclass(frozen=True)
class AutoSilkscreenOptions:
    """Search budget for one auto-placement run."""

    max_moves: int = DEFAULT_MAX_MOVES
    step: float = DEFAULT_STEP
    max_radius: float = DEFAULT_MAX_RADIUS
    try_angles: tuple[float, ...] = DEFAULT_TRY_ANGLES
    only_conflicted: bool = False

    @classmethod
    def from_params(
        cls,
        max_moves: Any = None,
        step: Any = None,
        max_radius: Any = None,
        try_angles: Sequence[Any] | None = None,
        only_conflicted: bool = False,
    ) -> AutoSilkscreenOptions:
        """Build options from loose tool input, applying defaults and floors.

        Missing or non-finite values fall back to defaults; ``step`` is at
        least 2 and ``max_radius`` at least ``step``.
        """
        moves = max(1, math.floor(to_finite(max_moves, DEFAULT_MAX_MOVES)))
        step_value = max(MIN_STEP, to_finite(step, DEFAULT_STEP))
        radius = max(step_value, to_finite(max_radius, DEFAULT_MAX_RADIUS))
        if try_angles:
            angles = tuple(normalize_angle(to_finite(a, 0.0)) for a in try_angles)
        else:
            angles = DEFAULT_TRY_ANGLES
        return cls(
            max_moves=moves,
            step=step_value,
            max_radius=radius,
            try_angles=angles,
            only_conflicted=bool(only_conflicted),
        )


def label_extents(item: SilkscreenItem) -> tuple[float, float]:
    """Unrotated (width, height) of a label, undoing the vertical swap of its bbox."""
    if is_vertical_angle(item.rotation):
        return (item.height, item.width)
    return (item.width, item.height)


def evaluate_score(
    self_id: str,
    candidate: Box,
    boxes: Mapping[str, Box],
    pads: Sequence[Obstacle],
    vias: Sequence[Obstacle],
    board_box: Box | None,
) -> int:
    """Conflict score of a candidate box (lower is better, 0 is clean)."""
    score = 0
    for pad in pads:
        if box_intersects(candidate, pad.box, CONFLICT_TOLERANCE):
            score += SCORE_PAD_OVERLAP
    for via in vias:
        if box_intersects(candidate, via.box, CONFLICT_TOLERANCE):
            score += SCORE_VIA_OVERLAP
    for other_id, other_box in boxes.items():
        if other_id == self_id:
            continue
        if box_intersects(candidate, other_box, CONFLICT_TOLERANCE):
            score += SCORE_SILKSCREEN_OVERLAP
    if board_box is not None and not box_inside(candidate, board_box, BOARD_MARGIN):
        score += SCORE_OUT_OF_BOARD
    return score


def iter_candidate_positions(
    x: float,
    y: float,
    rotations: Sequence[float],
    step: float,
    max_radius: float,
) -> Iterator[tuple[float, float, float]]:
    """Yield (x, y, rotation) candidates ring by ring, nearest ring first."""
    rings = math.floor(max_radius / step + 1e-9)
    for ring in range(rings + 1):
        radius = ring * step
        for dx, dy in SEARCH_DIRECTIONS:
            cx = round(x + dx * radius, 3)
            cy = round(y + dy * radius, 3)
            for rotation in rotations:
                yield cx, cy, rotation


def find_best_position(
    item: SilkscreenItem,
    boxes: Mapping[str, Box],
    pads: Sequence[Obstacle],
    vias: Sequence[Obstacle],
    board_box: Box | None,
    options: AutoSilkscreenOptions,
) -> tuple[PlacementCandidate, PlacementCandidate]:
    """Score a label where it stands and search for a better spot.

    Returns:
        (original, best). ``best`` is ``original`` when nothing scored lower
        or scored equal at a smaller displacement.
    """
    base_w, base_h = label_extents(item)
    pid = item.primitive_id

    original_box = rotated_box(item.x, item.y, base_w, base_h, item.rotation)
    original = PlacementCandidate(
        x=item.x,
        y=item.y,
        rotation=item.rotation,
        score=evaluate_score(pid, original_box, boxes, pads, vias, board_box),
    )
    best = original

    rotations = list(dict.fromkeys([item.rotation, *options.try_angles]))
    for cx, cy, rotation in iter_candidate_positions(
        item.x, item.y, rotations, options.step, options.max_radius
    ):
        box = rotated_box(cx, cy, base_w, base_h, rotation)
        score = evaluate_score(pid, box, boxes, pads, vias, board_box)
        moved_by = distance(item.x, item.y, cx, cy)
        if score < best.score or (score == best.score and moved_by < best.distance):
            best = PlacementCandidate(cx, cy, rotation, score, moved_by)
        # A clean spot within one step ends the whole search, not just this
        # ring; later directions can only be closer by coordinate rounding
        if best.score == 0 and best.distance <= options.step:
            break

    return original, best


async def auto_place_silkscreens(
    items: Sequence[SilkscreenItem],
    pads: Sequence[Obstacle],
    vias: Sequence[Obstacle],
    board_box: Box | None,
    move: MoveFn,
    options: AutoSilkscreenOptions | None = None,
    boxes: Mapping[str, Box] | None = None,
) -> AutoSilkscreenResult:
    """Relocate conflicting labels to strictly better positions.

    Args:
        items: Labels annotated with their current conflicts.
        pads: Pad obstacles.
        vias: Via obstacles.
        board_box: Board bounds, or None to skip the out-of-board penalty.
        move: Awaited once per committed move, in processing order.
        options: Search budget. Defaults to ``AutoSilkscreenOptions()``.
        boxes: Starting label boxes by id. Defaults to each item's bbox.
            The mapping is copied; the updated copy is ``result.boxes``.

    Returns:
        AutoSilkscreenResult with counters, per-label details and final boxes.

    A move that fails with a ``BackendError`` is logged and recorded as a
    skipped detail with ``reason="move_failed"``; the label keeps its old box
    and the run continues with the next label.
    """
    opts = options or AutoSilkscreenOptions()
    placed: dict[str, Box] = (
        dict(boxes)
        if boxes is not None
        else {item.primitive_id: item.bbox for item in items if item.primitive_id}
    )

    # Stable: equal conflict counts keep document order
    ordered = sorted(items, key=lambda item: item.conflict_count, reverse=True)
    result = AutoSilkscreenResult(total=len(ordered), boxes=placed)

    for item in ordered:
        if result.moved >= opts.max_moves:
            break

        pid = item.primitive_id
        if not pid or item.locked:
            result.skipped += 1
            if pid:
                result.details.append(
                    {
                        "primitive_id": pid,
                        "from": {"x": item.x, "y": item.y, "rotation": item.rotation},
                        "skipped": True,
                        "reason": "locked",
                    }
                )
            continue

        original, best = find_best_position(item, placed, pads, vias, board_box, opts)

        if best.score >= original.score:
            result.skipped += 1
            result.details.append(
                {
                    "primitive_id": pid,
                    "from": original.to_dict(),
                    "skipped": True,
                    "reason": "no_improvement",
                }
            )
            continue

        try:
            await move(pid, best.x, best.y, best.rotation)
        except BackendError as exc:
            logger.warning("Move of silkscreen %s failed: %s", pid, exc)
            result.skipped += 1
            result.failed += 1
            result.details.append(
                {
                    "primitive_id": pid,
                    "from": original.to_dict(),
                    "skipped": True,
                    "reason": "move_failed",
                    "error": str(exc),
                }
            )
            continue

        base_w, base_h = label_extents(item)
        placed[pid] = rotated_box(best.x, best.y, base_w, base_h, best.rotation)
        result.moved += 1
        result.improved += 1
        result.details.append(
            {"primitive_id": pid, "from": original.to_dict(), "to": best.to_dict()}
        )
        logger.info(
            "Moved silkscreen %s to (%.3f, %.3f) rot %.1f, score %d -> %d",
            pid,
            best.x,
            best.y,
            best.rotation,
            original.score,
            best.score,
        )

    return result
