"""Integration layer: configuration, persistence backends, session and MCP server."""
