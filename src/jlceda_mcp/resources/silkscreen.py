"""MCP Resources: read-only silkscreen state exposed to LLMs."""

from __future__ import annotations

import json

from fastmcp import FastMCP

from ..exceptions import JlcedaMcpError


def register_silkscreen_resources(mcp: FastMCP) -> None:
    """Register silkscreen-related MCP resources."""

    @mcp.resource("jlceda://silkscreen/summary")
    async def silkscreen_summary() -> str:
        """Conflict summary of the current board's silkscreen labels.

        Includes label counts, conflicts by type and the board bounds.
        """
        from .. import silkscreen_ops, state

        try:
            summary = await silkscreen_ops.evaluate_silkscreens(state.get_host())
        except JlcedaMcpError as exc:
            return json.dumps(exc.to_dict())
        return json.dumps({**summary, "host": state.describe_host()}, indent=2)
