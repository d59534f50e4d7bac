"""
Tool dispatcher: (tool name, raw arguments) -> ResultEnvelope.

One pass per call: look the tool up, validate arguments (defaulting the
project), resolve the project's client from the registry, run the adapter,
wrap the result. Every failure below this layer becomes an error envelope;
``dispatch`` never raises.
"""
from __future__ import annotations

import os
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel

from mcp_server_gcs.core.errors import (
    ErrorCategory,
    StorageToolError,
    ToolError,
    UnknownToolError,
    handle_storage_error,
)
from mcp_server_gcs.core.formatters import ResultEnvelope
from mcp_server_gcs.core.observability import check_observability_health, get_logger, observe_tool
from mcp_server_gcs.core.registry import TenantRegistry

from . import adapters
from .catalog import TOOL_CATALOG
from .models import (
    parse_bucket_args,
    parse_empty_args,
    parse_file_args,
    parse_list_files_args,
    parse_project_args,
    parse_upload_args,
)

logger = get_logger("gcs-mcp.dispatcher")


class ToolName(str, Enum):
    """Closed set of tools served by this server."""
    LIST_BUCKETS = "listBuckets"
    GET_BUCKET = "getBucket"
    LIST_FILES = "listFiles"
    GET_FILE = "getFile"
    UPLOAD_FILE = "uploadFile"
    DOWNLOAD_FILE = "downloadFile"
    DELETE_FILE = "deleteFile"
    LIST_PROJECTS = "listProjects"
    HEALTHCHECK = "healthcheck"


@dataclass(frozen=True)
class Route:
    """How one tool is parsed and executed.

    ``operation`` is None for tools that only introspect the server and
    never touch a project.
    """

    parse: Callable[[Mapping[str, Any] | None, str | None], BaseModel]
    operation: Callable[[Any, Any], Any] | None
    failure_label: str = "Internal server error"


ROUTES: dict[ToolName, Route] = {
    ToolName.LIST_BUCKETS: Route(parse_project_args, adapters.list_buckets, "Failed to list buckets"),
    ToolName.GET_BUCKET: Route(parse_bucket_args, adapters.get_bucket, "Bucket not found or access denied"),
    ToolName.LIST_FILES: Route(parse_list_files_args, adapters.list_files, "Failed to list files"),
    ToolName.GET_FILE: Route(parse_file_args, adapters.get_file, "File not found or access denied"),
    ToolName.UPLOAD_FILE: Route(parse_upload_args, adapters.upload_file, "Failed to upload file"),
    ToolName.DOWNLOAD_FILE: Route(parse_file_args, adapters.download_file, "Failed to download file"),
    ToolName.DELETE_FILE: Route(parse_file_args, adapters.delete_file, "Failed to delete file"),
    ToolName.LIST_PROJECTS: Route(parse_empty_args, None),
    ToolName.HEALTHCHECK: Route(parse_empty_args, None),
}

if set(ROUTES) != set(ToolName):
    raise RuntimeError(f"Tools without a route: {sorted(set(ToolName) - set(ROUTES))}")

_TOOL_NAMES = frozenset(t.value for t in ToolName)

if {d.name for d in TOOL_CATALOG} != _TOOL_NAMES:
    raise RuntimeError("Tool catalog and ToolName are out of sync")


class ToolDispatcher:
    """Routes tool calls against a sealed tenant registry."""

    def __init__(
        self,
        registry: TenantRegistry,
        *,
        projects_env: str | None = None,
        server_name: str = "cloudstorage",
    ) -> None:
        self._registry = registry
        self._projects_env = projects_env
        self._server_name = server_name

    @property
    def registry(self) -> TenantRegistry:
        return self._registry

    def dispatch(self, name: str, arguments: Mapping[str, Any] | None = None) -> ResultEnvelope:
        """Run one tool call; always returns an envelope."""
        metric_name = name if isinstance(name, str) and name in _TOOL_NAMES else "unknown"
        with observe_tool(metric_name, arguments if isinstance(arguments, Mapping) else None) as ctx:
            envelope = self._dispatch(name, arguments)
            ctx.record(envelope.outcome, envelope.error.message if envelope.error else None)
        return envelope

    def _dispatch(self, name: str, arguments: Mapping[str, Any] | None) -> ResultEnvelope:
        try:
            tool = self._lookup(name)
            route = ROUTES[tool]
            params = route.parse(arguments, self._registry.default_project)
            if route.operation is None:
                return ResultEnvelope.success(self._introspect(tool))
            client = self._registry.resolve(params.project)
        except StorageToolError as e:
            return ResultEnvelope.failure(e.to_tool_error())
        except Exception as e:
            logger.exception("Unexpected dispatcher failure", tool=name)
            return ResultEnvelope.failure(
                ToolError(ErrorCategory.INTERNAL, "Internal server error", str(e))
            )

        try:
            return ResultEnvelope.success(route.operation(client, params))
        except Exception as e:
            logger.warning(
                "Storage operation failed",
                tool=tool.value,
                project=params.project,
                error_type=type(e).__name__,
                error=str(e),
            )
            return ResultEnvelope.failure(handle_storage_error(e, route.failure_label))

    @staticmethod
    def _lookup(name: str) -> ToolName:
        try:
            return ToolName(name)
        except (ValueError, TypeError):
            raise UnknownToolError(str(name)) from None

    # ------------------------------------------------------------------
    # Project-independent tools
    # ------------------------------------------------------------------

    def _introspect(self, tool: ToolName) -> dict[str, Any]:
        if tool is ToolName.LIST_PROJECTS:
            return self.list_projects()
        if tool is ToolName.HEALTHCHECK:
            return self.healthcheck()
        raise RuntimeError(f"{tool.value} is not an introspection tool")

    def list_projects(self) -> dict[str, Any]:
        snapshot = self._registry.snapshot()
        return {
            "projects": list(snapshot.configured),
            "defaultProject": snapshot.default,
            "initializedProjects": list(snapshot.registered),
            "currentEnv": self._projects_env or "Not set",
        }

    def healthcheck(self) -> dict[str, Any]:
        observability = check_observability_health()
        return {
            "status": "ok",
            "server": self._server_name,
            "pid": os.getpid(),
            "registeredProjects": len(self._registry),
            "uptimeSeconds": observability["uptime_seconds"],
            "observability": {
                "tracing": observability["tracing"],
                "logging": observability["logging"],
            },
        }
