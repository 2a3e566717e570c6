"""MCP Prompt templates: conversation starters for silkscreen cleanup.

Prompts give the LLM a methodology for using the silkscreen tools in a
sensible order.
"""

from __future__ import annotations

from fastmcp import FastMCP


def register_prompts(mcp: FastMCP) -> None:
    """Register prompt templates with the MCP server."""

    @mcp.prompt()
    def silkscreen_cleanup(max_moves: int = 80) -> str:
        """Clean up overlapping silkscreen labels on the current board.

        Walks through evaluation, a preview run, applying moves and
        verifying the result.
        """
        from .. import state

        host = state.describe_host().get("host") or "not selected yet (defaults to the bridge)"
        return (
            f"Please clean up the silkscreen on the current PCB (host: {host}).\n\n"
            f"Steps:\n"
            f"1. Call evaluate_silkscreens to see how many labels conflict and how "
            f"(overlap_pad, overlap_via, overlap_silkscreen, out_of_board)\n"
            f"2. Call get_silkscreens with only_conflicted=true to inspect the worst labels\n"
            f"3. Call auto_silkscreen with apply=false and max_moves={max_moves} to preview\n"
            f"4. If the preview looks reasonable, run auto_silkscreen with apply=true\n"
            f"5. Call evaluate_silkscreens again and report the before/after counts\n\n"
            f"Locked labels are never moved. For labels the optimizer skips, "
            f"suggest manual positions and use move_silkscreen only after I confirm."
        )
