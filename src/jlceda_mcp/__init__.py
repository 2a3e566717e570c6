"""JLCEDA MCP: silkscreen conflict detection and auto-placement for the JLCEDA PCB editor."""

__version__ = "0.1.0"
