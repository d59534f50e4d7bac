"""MCP tool domains."""
