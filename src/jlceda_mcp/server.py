"""JLCEDA MCP Server: entry point."""

from __future__ import annotations

from fastmcp import FastMCP

from .logging_config import setup_logging
from .prompts import register_prompts
from .resources import register_silkscreen_resources
from .tools import TOOL_REGISTRY


def create_server() -> FastMCP:
    """Create and configure the JLCEDA MCP server."""
    mcp = FastMCP("jlceda-mcp")

    # Every registered tool is exposed directly
    for spec in TOOL_REGISTRY.values():
        mcp.tool(spec.handler, name=spec.name, description=spec.description, tags=spec.tags)

    # Register MCP resources (read-only silkscreen state)
    register_silkscreen_resources(mcp)

    # Register MCP prompt templates
    register_prompts(mcp)

    return mcp


def main() -> None:
    """CLI entry point."""
    setup_logging()
    server = create_server()
    server.run()


if __name__ == "__main__":
    main()
