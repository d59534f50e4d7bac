"""
MCP tool name checks run once at start-up.
"""
from __future__ import annotations

import re
from collections.abc import Iterable
from typing import Any

from .observability import get_logger

# Letters, digits, underscores and hyphens, 1-64 characters
MCP_TOOL_NAME_REGEX = re.compile(r"^[a-zA-Z0-9_-]{1,64}$")

logger = get_logger("gcs-mcp.validation")


def validate_tool_name(name: Any) -> bool:
    if not isinstance(name, str):
        return False
    return MCP_TOOL_NAME_REGEX.match(name) is not None


def validate_tools(tools: Iterable[Any], server_name: str = "unknown") -> list[str]:
    """
    Validate tool objects (FastMCP tools or catalog dicts).

    Returns:
        One message per invalid or duplicated tool; empty when all are valid
    """
    errors: list[str] = []
    seen: set[str] = set()

    for tool in tools:
        if isinstance(tool, dict):
            name = tool.get("name", "")
        else:
            name = getattr(tool, "name", "")

        if not name:
            errors.append(f"Tool missing name in {server_name}")
            continue
        if not validate_tool_name(name):
            errors.append(f"Tool name '{name}' in {server_name} violates MCP regex ^[a-zA-Z0-9_-]{{1,64}}$")
            continue
        if name in seen:
            errors.append(f"Duplicate tool name '{name}' in {server_name}")
        seen.add(name)

    return errors


def validate_and_log_tools(tools: list[Any], server_name: str = "unknown") -> bool:
    """Validate tools and log the outcome; True when every tool passes."""
    errors = validate_tools(tools, server_name)

    if errors:
        logger.error("MCP tool validation failed", server=server_name, errors=errors)
        return False

    logger.info("MCP tool validation passed", server=server_name, tools=len(tools))
    return True
