"""Silkscreen tools: inspect, move and auto-place silkscreen text labels."""

from __future__ import annotations

from typing import Any

from .. import silkscreen_ops, state
from ..algorithms.silkscreen import AutoSilkscreenOptions
from ..exceptions import JlcedaMcpError
from ..logging_config import create_logger
from .registry import register_tool

logger = create_logger(__name__)


# ── Handlers ────────────────────────────────────────────────────────


async def _get_silkscreens_handler(
    include_conflicts: bool = False,
    only_conflicted: bool = False,
    limit: int = 20000,
    layer: int | None = None,
) -> dict[str, Any]:
    """List silkscreen labels of the current board.

    Args:
        include_conflicts: Attach conflicts, a conflict summary and the board box.
        only_conflicted: Return only labels that have conflicts (implies include_conflicts).
        limit: Maximum number of labels to collect.
        layer: Restrict to one layer id (3 = top silkscreen, 4 = bottom).
    """
    try:
        return await silkscreen_ops.get_silkscreens(
            state.get_host(),
            include_conflicts=include_conflicts,
            only_conflicted=only_conflicted,
            limit=limit,
            layer=layer,
        )
    except JlcedaMcpError as exc:
        return exc.to_dict()


async def _evaluate_silkscreens_handler(layer: int | None = None) -> dict[str, Any]:
    """Count silkscreen conflicts by type without listing labels."""
    try:
        return await silkscreen_ops.evaluate_silkscreens(state.get_host(), layer=layer)
    except JlcedaMcpError as exc:
        return exc.to_dict()


async def _move_silkscreen_handler(
    primitive_id: str,
    x: float,
    y: float,
    rotation: float | None = None,
) -> dict[str, Any]:
    """Move a silkscreen label to an absolute position.

    Args:
        primitive_id: Editor primitive id of the label.
        x: New X position (editor units).
        y: New Y position (editor units).
        rotation: New rotation in degrees. Keeps the current rotation when omitted.
    """
    try:
        moved = await silkscreen_ops.move_silkscreen(
            state.get_host(), primitive_id, x, y, rotation
        )
        return {"status": "moved", **moved}
    except JlcedaMcpError as exc:
        return exc.to_dict()


async def _auto_silkscreen_handler(
    max_moves: int = 80,
    step: float = 12.0,
    max_radius: float = 96.0,
    try_angles: list[float] | None = None,
    only_conflicted: bool = False,
    apply: bool = True,
) -> dict[str, Any]:
    """Relocate conflicting silkscreen labels to nearby conflict-free spots.

    Args:
        max_moves: Stop after this many committed moves.
        step: Search ring spacing (minimum 2).
        max_radius: Largest search radius (at least ``step``).
        try_angles: Rotations to try besides the current one. Default: 0, 90, 180, -90.
        only_conflicted: Only consider labels that currently have conflicts.
        apply: False previews the moves without changing the board.
    """
    options = AutoSilkscreenOptions.from_params(
        max_moves=max_moves,
        step=step,
        max_radius=max_radius,
        try_angles=try_angles,
        only_conflicted=only_conflicted,
    )
    try:
        return await silkscreen_ops.auto_silkscreen(state.get_host(), options, apply=apply)
    except JlcedaMcpError as exc:
        logger.warning("auto_silkscreen failed: %s", exc)
        return exc.to_dict()


async def _get_silkscreen_features_handler() -> dict[str, Any]:
    """Report which silkscreen operations the current host supports."""
    try:
        return await silkscreen_ops.feature_support(state.get_host())
    except JlcedaMcpError as exc:
        return exc.to_dict()


# ── Registration ────────────────────────────────────────────────────

register_tool(
    name="get_silkscreens",
    description=(
        "List silkscreen text labels on the board, optionally with their "
        "conflicts against pads, vias, other labels and the board outline."
    ),
    parameters={
        "include_conflicts": {
            "type": "boolean",
            "description": "Attach per-label conflicts and a summary. Default: false.",
        },
        "only_conflicted": {
            "type": "boolean",
            "description": "Return only conflicting labels (implies include_conflicts).",
        },
        "limit": {"type": "integer", "description": "Maximum labels to collect. Default: 20000."},
        "layer": {
            "type": "integer",
            "description": "Layer id to read (3 = top silkscreen, 4 = bottom). Default: both.",
        },
    },
    handler=_get_silkscreens_handler,
    category="silkscreen",
)

register_tool(
    name="evaluate_silkscreens",
    description="Summarize silkscreen conflicts on the board by type.",
    parameters={
        "layer": {"type": "integer", "description": "Layer id to read. Default: both."},
    },
    handler=_evaluate_silkscreens_handler,
    category="silkscreen",
)

register_tool(
    name="move_silkscreen",
    description="Move one silkscreen label to an absolute position and optional rotation.",
    parameters={
        "primitive_id": {"type": "string", "description": "Primitive id of the label."},
        "x": {"type": "number", "description": "New X position."},
        "y": {"type": "number", "description": "New Y position."},
        "rotation": {"type": "number", "description": "New rotation in degrees (optional)."},
    },
    handler=_move_silkscreen_handler,
    category="silkscreen",
    mutates=True,
)

register_tool(
    name="auto_silkscreen",
    description=(
        "Greedily move conflicting silkscreen labels to nearby positions with "
        "fewer conflicts. Set apply=false to preview the moves."
    ),
    parameters={
        "max_moves": {"type": "integer", "description": "Maximum moves. Default: 80."},
        "step": {"type": "number", "description": "Search ring spacing. Default: 12."},
        "max_radius": {"type": "number", "description": "Largest search radius. Default: 96."},
        "try_angles": {
            "type": "array",
            "items": {"type": "number"},
            "description": "Rotations to try in degrees. Default: [0, 90, 180, -90].",
        },
        "only_conflicted": {
            "type": "boolean",
            "description": "Only move labels that currently have conflicts.",
        },
        "apply": {
            "type": "boolean",
            "description": "Send moves to the editor. Default: true; false previews.",
        },
    },
    handler=_auto_silkscreen_handler,
    category="silkscreen",
    mutates=True,
)

register_tool(
    name="get_silkscreen_features",
    description="Report whether the current host can query, move and auto-place silkscreens.",
    parameters={},
    handler=_get_silkscreen_features_handler,
    category="silkscreen",
)
