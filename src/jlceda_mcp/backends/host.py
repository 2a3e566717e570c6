"""Host document protocol: what the silkscreen engine needs from the editor.

The engine only reads geometry and issues moves; everything about how the
live document is reached (WebSocket bridge, offline snapshot) stays behind
this protocol.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol, runtime_checkable

from ..exceptions import CapabilityMissingError

# Host method -> (feature group, flag) in the host's feature-support report
CAPABILITY_FEATURES: dict[str, tuple[str, str]] = {
    "list_silkscreen_records": ("silkscreen", "query"),
    "move_primitive": ("silkscreen", "modify"),
}


@runtime_checkable
class HostDocument(Protocol):
    """Async view of a live PCB document."""

    name: str

    async def list_silkscreen_records(self, layer: int | None = None) -> list[Any]:
        """Raw silkscreen text records, optionally restricted to one layer."""
        ...

    async def list_pads(self) -> list[Any]:
        ...

    async def list_vias(self) -> list[Any]:
        ...

    async def board_outline_geometry(self, layer: int) -> list[Any]:
        """Line/arc/polyline primitives on the board outline layer."""
        ...

    async def list_components(self) -> list[Any]:
        ...

    async def measure_bounding_box(self, record: Any) -> Mapping[str, Any] | None:
        """Exact box of a primitive, or None when the host cannot measure it."""
        ...

    async def move_primitive(
        self,
        primitive_id: str,
        x: float,
        y: float,
        rotation: float | None = None,
    ) -> dict[str, Any]:
        """Move a primitive. Repeating a call with the same values is a no-op move."""
        ...

    async def selected_primitive_ids(self) -> list[str]:
        ...

    async def feature_support(self) -> dict[str, Any]:
        ...


async def ensure_capability(host: Any, capability: str) -> None:
    """Raise ``CapabilityMissingError`` if ``host`` cannot perform ``capability``.

    A capability is missing when the host has no such method, or when its
    feature-support report explicitly disables it. Unknown flags count as
    supported.
    """
    host_name = getattr(host, "name", type(host).__name__)
    if not callable(getattr(host, capability, None)):
        raise CapabilityMissingError(
            f"Host {host_name!r} does not provide {capability}",
            capability=capability,
            backend_name=host_name,
        )

    feature = CAPABILITY_FEATURES.get(capability)
    report_fn = getattr(host, "feature_support", None)
    if feature is None or not callable(report_fn):
        return

    report = await report_fn()
    group = report.get(feature[0]) if isinstance(report, Mapping) else None
    flag = group.get(feature[1]) if isinstance(group, Mapping) else None
    if flag is False:
        raise CapabilityMissingError(
            f"Current editor does not support {feature[0]} {feature[1]}",
            capability=capability,
            backend_name=host_name,
        )
