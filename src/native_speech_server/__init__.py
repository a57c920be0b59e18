"""Native speech server: the host speech engine over HTTP and MCP."""

__version__ = "0.1.0"
