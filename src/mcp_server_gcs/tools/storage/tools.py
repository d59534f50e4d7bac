"""
Cloud Storage tool registration for FastMCP.

Every tool function forwards its arguments to the ``ToolDispatcher`` in a
worker thread (the storage SDK is blocking) and returns the envelope text.
Parameters are all optional at the Python level so that argument errors are
reported by the dispatcher as ``invalid_arguments`` envelopes; the input
schema advertised to clients comes from the catalog.
"""
from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

from fastmcp import FastMCP
from fastmcp.tools import Tool

from .catalog import TOOL_CATALOG
from .dispatcher import ToolDispatcher, ToolName

ToolHandler = Callable[..., Awaitable[str]]


def make_tool_handlers(dispatcher: ToolDispatcher) -> dict[str, ToolHandler]:
    """Build one async handler per tool, keyed by tool name."""

    async def call(tool: ToolName, **arguments: Any) -> str:
        provided = {key: value for key, value in arguments.items() if value is not None}
        envelope = await asyncio.to_thread(dispatcher.dispatch, tool.value, provided)
        return envelope.to_text()

    async def list_buckets(project: str | None = None) -> str:
        """List all Cloud Storage buckets in a project."""
        return await call(ToolName.LIST_BUCKETS, project=project)

    async def get_bucket(project: str | None = None, bucket: str | None = None) -> str:
        """Get details of a specific Cloud Storage bucket."""
        return await call(ToolName.GET_BUCKET, project=project, bucket=bucket)

    async def list_files(
        project: str | None = None,
        bucket: str | None = None,
        prefix: str | None = None,
        delimiter: str | None = None,
    ) -> str:
        """List files in a Cloud Storage bucket."""
        return await call(
            ToolName.LIST_FILES, project=project, bucket=bucket, prefix=prefix, delimiter=delimiter
        )

    async def get_file(
        project: str | None = None, bucket: str | None = None, file: str | None = None
    ) -> str:
        """Get details of a specific file in a Cloud Storage bucket."""
        return await call(ToolName.GET_FILE, project=project, bucket=bucket, file=file)

    async def upload_file(
        project: str | None = None,
        bucket: str | None = None,
        destination: str | None = None,
        content: str | None = None,
        contentType: str | None = None,
    ) -> str:
        """Upload a file to a Cloud Storage bucket."""
        return await call(
            ToolName.UPLOAD_FILE,
            project=project,
            bucket=bucket,
            destination=destination,
            content=content,
            contentType=contentType,
        )

    async def download_file(
        project: str | None = None, bucket: str | None = None, file: str | None = None
    ) -> str:
        """Download a file from a Cloud Storage bucket."""
        return await call(ToolName.DOWNLOAD_FILE, project=project, bucket=bucket, file=file)

    async def delete_file(
        project: str | None = None, bucket: str | None = None, file: str | None = None
    ) -> str:
        """Delete a file from a Cloud Storage bucket."""
        return await call(ToolName.DELETE_FILE, project=project, bucket=bucket, file=file)

    async def list_projects() -> str:
        """List all available projects that have been configured."""
        return await call(ToolName.LIST_PROJECTS)

    async def healthcheck() -> str:
        """Lightweight readiness/liveness check."""
        return await call(ToolName.HEALTHCHECK)

    return {
        ToolName.LIST_BUCKETS.value: list_buckets,
        ToolName.GET_BUCKET.value: get_bucket,
        ToolName.LIST_FILES.value: list_files,
        ToolName.GET_FILE.value: get_file,
        ToolName.UPLOAD_FILE.value: upload_file,
        ToolName.DOWNLOAD_FILE.value: download_file,
        ToolName.DELETE_FILE.value: delete_file,
        ToolName.LIST_PROJECTS.value: list_projects,
        ToolName.HEALTHCHECK.value: healthcheck,
    }


def build_tools(dispatcher: ToolDispatcher) -> list[Tool]:
    """Create FastMCP tools in catalog order, advertising the catalog's input schemas."""
    handlers = make_tool_handlers(dispatcher)
    tools: list[Tool] = []
    for descriptor in TOOL_CATALOG:
        tool = Tool.from_function(
            handlers[descriptor.name],
            name=descriptor.name,
            description=descriptor.description,
            annotations={"title": descriptor.title, **descriptor.annotations},
        )
        tools.append(tool.model_copy(update={"parameters": descriptor.input_schema}))
    return tools


def register_storage_tools(mcp: FastMCP, dispatcher: ToolDispatcher) -> list[Tool]:
    """Register all Cloud Storage tools with the MCP server."""
    tools = build_tools(dispatcher)
    for tool in tools:
        mcp.add_tool(tool)
    return tools
