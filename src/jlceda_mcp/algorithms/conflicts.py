"""Silkscreen conflict detector.

Pairwise box comparison of labels against the board outline, pads, vias and
each other. Cost is O(N*P + N*V + N^2) for N labels; label counts are small
next to obstacle counts, so no spatial index is used.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import replace

from ..constants import BOARD_MARGIN, BOARD_TARGET_ID, CONFLICT_TOLERANCE
from .geometry import box_inside, box_intersects
from .types import Box, Conflict, ConflictReport, Obstacle, SilkscreenItem


def detect_conflicts(
    items: Sequence[SilkscreenItem],
    pads: Sequence[Obstacle],
    vias: Sequence[Obstacle],
    board_box: Box | None = None,
) -> ConflictReport:
    """Find every conflict of every label.

    Args:
        items: Labels with their current boxes.
        pads: Pad obstacles.
        vias: Via obstacles.
        board_box: Board outline bounds; the out-of-board check is skipped when None.

    Returns:
        ConflictReport keyed by label id. Label/label overlaps are recorded
        on both labels.
    """
    report = ConflictReport(board_box=board_box)

    for item in items:
        if not item.primitive_id:
            continue

        if board_box is not None and not box_inside(item.bbox, board_box, BOARD_MARGIN):
            report.add(
                item.primitive_id,
                Conflict("out_of_board", BOARD_TARGET_ID, "silkscreen out of board"),
            )

        for pad in pads:
            if box_intersects(item.bbox, pad.box, CONFLICT_TOLERANCE):
                report.add(
                    item.primitive_id,
                    Conflict("overlap_pad", pad.primitive_id, "silkscreen overlaps pad", pad.net),
                )

        for via in vias:
            if box_intersects(item.bbox, via.box, CONFLICT_TOLERANCE):
                report.add(
                    item.primitive_id,
                    Conflict("overlap_via", via.primitive_id, "silkscreen overlaps via", via.net),
                )

    for i, a in enumerate(items):
        if not a.primitive_id:
            continue
        for b in items[i + 1 :]:
            if not b.primitive_id or not box_intersects(a.bbox, b.bbox, CONFLICT_TOLERANCE):
                continue
            description = "silkscreen overlaps silkscreen"
            report.add(a.primitive_id, Conflict("overlap_silkscreen", b.primitive_id, description))
            report.add(b.primitive_id, Conflict("overlap_silkscreen", a.primitive_id, description))

    return report


def annotate_items(
    items: Sequence[SilkscreenItem],
    report: ConflictReport,
) -> list[SilkscreenItem]:
    """Copies of ``items`` carrying their conflict lists from ``report``."""
    return [replace(item, conflicts=report.conflicts_for(item.primitive_id)) for item in items]
