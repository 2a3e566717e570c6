"""Silkscreen operations over a host document.

Reads labels, pads, vias and the board outline from a ``HostDocument``,
runs the conflict detector and the placement optimizer, and shapes the
results as JSON-ready dicts for the tool layer.

Any failed read after the label list (selection, pads, vias, outline,
components, measurements) is logged and treated as empty so the rest of
the inspection still runs. Transport failures on the label read itself
(gateway unreachable, command timeout) propagate, since there is nothing
to report without labels.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from .algorithms.conflicts import annotate_items, detect_conflicts
from .algorithms.geometry import merge_boxes, normalize_angle
from .algorithms.inventory import (
    build_obstacle,
    build_silkscreen_item,
    clamp_limit,
    component_bounds,
    outline_primitive_box,
    record_identity,
)
from .algorithms.silkscreen import AutoSilkscreenOptions, auto_place_silkscreens
from .algorithms.types import (
    AutoSilkscreenResult,
    Box,
    ConflictReport,
    Obstacle,
    ObstacleKind,
    SilkscreenItem,
)
from .backends.host import ensure_capability
from .constants import (
    BOARD_OUTLINE_LAYER,
    DEFAULT_OBSTACLE_LIMIT,
    DEFAULT_SILKSCREEN_LIMIT,
    SILKSCREEN_LAYERS,
)
from .exceptions import BackendError, BridgeConnectionError, BridgeTimeoutError, ValidationError
from .logging_config import create_logger, request_context
from .validation import validate_angle, validate_coordinate_pair, validate_primitive_id

logger = create_logger(__name__)

_TRANSPORT_ERRORS = (BridgeConnectionError, BridgeTimeoutError)


@dataclass
class BoardInspection:
    """Labels annotated with conflicts, plus the obstacles they were checked against."""

    items: list[SilkscreenItem]
    pads: list[Obstacle] = field(default_factory=list)
    vias: list[Obstacle] = field(default_factory=list)
    board_box: Box | None = None
    report: ConflictReport = field(default_factory=ConflictReport)

    @property
    def conflicted(self) -> list[SilkscreenItem]:
        return [item for item in self.items if item.conflicts]


# ── Host reads ──────────────────────────────────────────────────────


async def _read_list(host: Any, method: str, *args: Any, strict: bool = False) -> list[Any]:
    """Call a host list method; a failed call reads as empty.

    With ``strict``, transport failures propagate instead.
    """
    fn = getattr(host, method, None)
    if not callable(fn):
        return []
    try:
        rows = await fn(*args)
    except _TRANSPORT_ERRORS:
        if strict:
            raise
        logger.warning("Host read %s%r got no answer, treating as empty", method, args)
        return []
    except BackendError as exc:
        logger.warning("Host read %s%r failed: %s", method, args, exc)
        return []
    return list(rows) if isinstance(rows, (list, tuple)) else []


async def _measure(host: Any, record: Any) -> Any:
    fn = getattr(host, "measure_bounding_box", None)
    if not callable(fn):
        return None
    try:
        return await fn(record)
    except BackendError as exc:
        logger.debug("Measuring %s failed: %s", record_identity(record) or "record", exc)
        return None


async def _silkscreen_records(host: Any, layer: int | None) -> list[Any]:
    # Labels are the first read; if the host is unreachable here, stop
    if layer is not None:
        return await _read_list(host, "list_silkscreen_records", layer, strict=True)

    by_id: dict[str, Any] = {}
    for silk_layer in SILKSCREEN_LAYERS:
        for record in await _read_list(host, "list_silkscreen_records", silk_layer, strict=True):
            pid = record_identity(record)
            if pid:
                by_id[pid] = record
    if not by_id:
        # Hosts that do not filter by layer
        for record in await _read_list(host, "list_silkscreen_records", strict=True):
            pid = record_identity(record)
            if pid:
                by_id[pid] = record
    return list(by_id.values())


async def collect_silkscreens(
    host: Any,
    layer: int | None = None,
    limit: Any = DEFAULT_SILKSCREEN_LIMIT,
) -> list[SilkscreenItem]:
    """Read silkscreen labels, with the host's selection merged in.

    Records without an id or position are dropped. Collection stops once
    ``limit`` items have been built.
    """
    records = await _silkscreen_records(host, layer)
    selected = {str(pid) for pid in await _read_list(host, "selected_primitive_ids")}
    cap = clamp_limit(limit, DEFAULT_SILKSCREEN_LIMIT)

    items: list[SilkscreenItem] = []
    for record in records:
        item = build_silkscreen_item(record, await _measure(host, record), selected)
        if item is None:
            continue
        items.append(item)
        if len(items) >= cap:
            break
    logger.debug("Collected %d silkscreens from %d records", len(items), len(records))
    return items


async def collect_obstacles(
    host: Any,
    kind: ObstacleKind,
    limit: Any = DEFAULT_OBSTACLE_LIMIT,
) -> list[Obstacle]:
    """Read pads or vias as obstacles."""
    records = await _read_list(host, "list_pads" if kind == "pad" else "list_vias")
    cap = clamp_limit(limit, DEFAULT_OBSTACLE_LIMIT)

    obstacles: list[Obstacle] = []
    for record in records:
        obstacle = build_obstacle(record, kind, await _measure(host, record))
        if obstacle is None:
            continue
        obstacles.append(obstacle)
        if len(obstacles) >= cap:
            break
    return obstacles


async def resolve_board_box(host: Any) -> Box | None:
    """Board bounds: the board outline, else component bounds, else None."""
    boxes = []
    for record in await _read_list(host, "board_outline_geometry", BOARD_OUTLINE_LAYER):
        box = outline_primitive_box(record, await _measure(host, record))
        if box is not None:
            boxes.append(box)
    board_box = merge_boxes(boxes)
    if board_box is not None:
        return board_box

    board_box = component_bounds(await _read_list(host, "list_components"))
    if board_box is None:
        logger.info("No board outline or components; out-of-board checks disabled")
    return board_box


async def inspect_board(host: Any, items: Sequence[SilkscreenItem]) -> BoardInspection:
    """Read obstacles and the board box, then annotate ``items`` with conflicts."""
    pads = await collect_obstacles(host, "pad")
    vias = await collect_obstacles(host, "via")
    board_box = await resolve_board_box(host)
    report = detect_conflicts(items, pads, vias, board_box)
    return BoardInspection(
        items=annotate_items(items, report),
        pads=pads,
        vias=vias,
        board_box=board_box,
        report=report,
    )


# ── Operations ──────────────────────────────────────────────────────


async def get_silkscreens(
    host: Any,
    include_conflicts: bool = False,
    only_conflicted: bool = False,
    limit: Any = DEFAULT_SILKSCREEN_LIMIT,
    layer: int | None = None,
) -> dict[str, Any]:
    """List silkscreen labels, optionally with their conflicts.

    ``only_conflicted`` implies ``include_conflicts``.
    """
    items = await collect_silkscreens(host, layer=layer, limit=limit)
    if not (include_conflicts or only_conflicted):
        return {
            "total_silkscreens": len(items),
            "returned_silkscreens": len(items),
            "silkscreens": [item.to_dict() for item in items],
        }

    inspection = await inspect_board(host, items)
    output = inspection.conflicted if only_conflicted else inspection.items
    return {
        "total_silkscreens": len(items),
        "returned_silkscreens": len(output),
        "conflict_summary": inspection.report.summary(),
        "board_box": inspection.board_box.to_dict() if inspection.board_box else None,
        "silkscreens": [item.to_dict(include_conflicts=True) for item in output],
    }


async def evaluate_silkscreens(host: Any, layer: int | None = None) -> dict[str, Any]:
    """Conflict summary of the whole board, without per-label listings."""
    items = await collect_silkscreens(host, layer=layer)
    inspection = await inspect_board(host, items)
    return {
        "total_silkscreens": len(items),
        "conflicted_silkscreens": len(inspection.conflicted),
        "conflict_summary": inspection.report.summary(),
        "board_box": inspection.board_box.to_dict() if inspection.board_box else None,
    }


async def move_silkscreen(
    host: Any,
    primitive_id: str,
    x: float,
    y: float,
    rotation: float | None = None,
) -> dict[str, Any]:
    """Move one label to an absolute position, optionally rotating it.

    Raises:
        ValidationError: Empty id or non-finite coordinate/rotation.
        CapabilityMissingError: The host cannot modify silkscreens.
    """
    pid_result = validate_primitive_id(primitive_id)
    if not pid_result.valid:
        raise ValidationError(pid_result.error or "Invalid primitive id", field="primitive_id")
    coord_result = validate_coordinate_pair(x, y)
    if not coord_result.valid:
        raise ValidationError(f"Invalid coordinates: {coord_result.error}", field="x/y")
    new_rotation = None
    if rotation is not None:
        angle_result = validate_angle(rotation, "rotation")
        if not angle_result.valid:
            raise ValidationError(angle_result.error or "Invalid rotation", field="rotation")
        new_rotation = normalize_angle(angle_result.value)

    await ensure_capability(host, "move_primitive")
    new_x, new_y = coord_result.value
    await host.move_primitive(pid_result.value, new_x, new_y, new_rotation)
    logger.info("Moved silkscreen %s to (%.3f, %.3f)", pid_result.value, new_x, new_y)
    return {"primitive_id": pid_result.value, "x": new_x, "y": new_y, "rotation": new_rotation}


async def auto_silkscreen(
    host: Any,
    options: AutoSilkscreenOptions | None = None,
    apply: bool = True,
) -> dict[str, Any]:
    """Detect conflicts and greedily relocate conflicting labels.

    Args:
        host: The document to read (and, when ``apply`` is true, modify).
        options: Search budget; ``only_conflicted`` restricts the run to
            labels that currently have conflicts.
        apply: False plans the same moves without sending them to the host.

    Returns:
        ``AutoSilkscreenResult.to_dict()`` plus ``applied``.

    Raises:
        CapabilityMissingError: ``apply`` is true and the host cannot move labels.
    """
    opts = options or AutoSilkscreenOptions()
    if apply:
        await ensure_capability(host, "move_primitive")
    with request_context():
        return await _run_auto_silkscreen(host, opts, apply)


async def _run_auto_silkscreen(
    host: Any,
    opts: AutoSilkscreenOptions,
    apply: bool,
) -> dict[str, Any]:
    items = await collect_silkscreens(host)
    if not items:
        return {"applied": apply, **AutoSilkscreenResult().to_dict()}

    inspection = await inspect_board(host, items)
    candidates = inspection.conflicted if opts.only_conflicted else inspection.items
    if not candidates:
        return {"applied": apply, **AutoSilkscreenResult().to_dict()}

    async def preview_move(primitive_id: str, x: float, y: float, rotation: float) -> None:
        logger.debug("Planned move %s -> (%.3f, %.3f) rot %.1f", primitive_id, x, y, rotation)

    async def host_move(primitive_id: str, x: float, y: float, rotation: float) -> None:
        await host.move_primitive(primitive_id, x, y, rotation)

    # Every label keeps blocking space, including ones filtered out of the run
    boxes = {item.primitive_id: item.bbox for item in inspection.items}
    result = await auto_place_silkscreens(
        candidates,
        inspection.pads,
        inspection.vias,
        inspection.board_box,
        host_move if apply else preview_move,
        opts,
        boxes=boxes,
    )
    logger.info(
        "Auto silkscreen %s: %d/%d moved, %d skipped, %d failed",
        "applied" if apply else "preview",
        result.moved,
        result.total,
        result.skipped,
        result.failed,
    )
    return {"applied": apply, **result.to_dict()}


async def feature_support(host: Any) -> dict[str, Any]:
    """Silkscreen capability flags of the host: query, modify and auto."""
    flags = {
        "query": callable(getattr(host, "list_silkscreen_records", None)),
        "modify": callable(getattr(host, "move_primitive", None)),
    }
    report_fn = getattr(host, "feature_support", None)
    if callable(report_fn):
        try:
            report = await report_fn()
        except _TRANSPORT_ERRORS:
            raise
        except BackendError as exc:
            logger.warning("Feature report failed: %s", exc)
            report = {}
        group = report.get("silkscreen") if isinstance(report, dict) else None
        if isinstance(group, dict):
            for key in ("query", "modify", "auto"):
                if key in group:
                    flags[key] = flags.get(key, True) and bool(group[key])
    flags.setdefault("auto", flags["modify"])
    return {"silkscreen": flags, "host": getattr(host, "name", type(host).__name__)}
