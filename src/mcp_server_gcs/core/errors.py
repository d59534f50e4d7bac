"""
Structured error handling for Cloud Storage MCP operations.

Lower layers (argument parsing, tenant resolution, storage adapters) raise
the exceptions defined here; the tool dispatcher is the single place that
turns them into ``ToolError`` payloads with actionable suggestions.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from google.api_core import exceptions as gapi_exceptions


class ErrorCategory(str, Enum):
    """Error categories reported in the result envelope."""
    INVALID_ARGUMENTS = "invalid_arguments"
    UNCONFIGURED_TENANT = "unconfigured_tenant"
    UNKNOWN_TOOL = "unknown_tool"
    NOT_FOUND = "not_found"
    BACKEND_OPERATION_FAILED = "backend_operation_failed"
    INTERNAL = "internal"


@dataclass
class ToolError:
    """Structured tool error with actionable suggestions."""

    category: ErrorCategory
    error: str
    message: str
    suggestion: str | None = None
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Format error as structured dictionary."""
        out: dict[str, Any] = {
            "error": self.error,
            "category": self.category.value,
            "message": self.message,
        }
        if self.suggestion:
            out["suggestion"] = self.suggestion
        if self.details:
            out["details"] = self.details
        return out

    def to_json(self) -> str:
        """Format error as JSON string."""
        return json.dumps(self.to_dict(), indent=2, default=str)


# =============================================================================
# Exceptions raised below the dispatcher
# =============================================================================

class StorageToolError(Exception):
    """Base class for failures that map onto a result-envelope category."""

    category: ErrorCategory = ErrorCategory.INTERNAL
    label: str = "Internal server error"
    suggestion: str | None = None

    def details(self) -> dict[str, Any]:
        return {}

    def to_tool_error(self, label: str | None = None) -> ToolError:
        return ToolError(
            category=self.category,
            error=label or self.label,
            message=str(self),
            suggestion=self.suggestion,
            details=self.details(),
        )


@dataclass(frozen=True)
class FieldIssue:
    """One violated constraint on one argument field."""

    path: str
    constraint: str

    def __str__(self) -> str:
        return f"{self.path}: {self.constraint}"


class InvalidArgumentsError(StorageToolError):
    """Tool arguments failed schema validation."""

    category = ErrorCategory.INVALID_ARGUMENTS
    label = "Invalid arguments"
    suggestion = "Check the tool's input schema for required fields and their types."

    def __init__(self, issues: list[FieldIssue]):
        self.issues = list(issues)
        super().__init__(", ".join(str(issue) for issue in self.issues))

    @property
    def fields(self) -> list[str]:
        return [issue.path for issue in self.issues]

    def details(self) -> dict[str, Any]:
        return {"fields": self.fields}


class UnconfiguredTenantError(StorageToolError):
    """No usable storage client exists for the requested project."""

    category = ErrorCategory.UNCONFIGURED_TENANT
    label = "Project not available"

    NOT_CONFIGURED = "not_configured"
    INITIALIZATION_FAILED = "initialization_failed"

    def __init__(self, project: str, reason: str, cause: str | None = None):
        self.project = project
        self.reason = reason
        self.cause = cause
        if reason == self.INITIALIZATION_FAILED:
            message = f"No Storage client initialized for project: {project} (initialization failed"
            message += f": {cause})" if cause else ")"
            self.suggestion = f"Check the service-account key for '{project}' and restart the server."
        else:
            message = f"Project {project} is not configured"
            self.suggestion = "Use listProjects to see configured projects or add it to GOOGLE_CLOUD_PROJECTS."
        super().__init__(message)

    def details(self) -> dict[str, Any]:
        return {"project": self.project, "reason": self.reason}


class UnknownToolError(StorageToolError):
    """The tool name is not part of the catalog."""

    category = ErrorCategory.UNKNOWN_TOOL
    label = "Unknown tool"
    suggestion = "List the server's tools to see the supported names."

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unknown tool: {name}")

    def details(self) -> dict[str, Any]:
        return {"tool": self.name}


class ObjectNotFoundError(StorageToolError):
    """The backend confirmed that the object does not exist."""

    category = ErrorCategory.NOT_FOUND
    label = "File not found"
    suggestion = "Verify the file path with listFiles."

    def __init__(self, bucket: str, name: str):
        self.bucket = bucket
        self.name = name
        super().__init__(f"File {name} does not exist in bucket {bucket}")

    def details(self) -> dict[str, Any]:
        return {"bucket": self.bucket, "file": self.name}


class StartupError(RuntimeError):
    """Fatal start-up condition; the process must exit non-zero."""


# =============================================================================
# Backend error translation
# =============================================================================

# status_code -> suggestion
SUGGESTIONS: dict[int, str] = {
    400: "Check the bucket and object names match Cloud Storage naming rules.",
    401: "Verify the service-account key is valid and not revoked.",
    403: "Ensure the service account has the required IAM role on the bucket or project.",
    404: "Verify the bucket or object name and that it belongs to the selected project.",
    409: "The resource already exists or is being modified concurrently.",
    412: "A precondition failed; re-read the object metadata and try again.",
    429: "Rate limit exceeded; wait before calling again.",
    500: "Cloud Storage returned a server error; try again later.",
    503: "Cloud Storage is temporarily unavailable; try again later.",
}


def handle_storage_error(e: Exception, label: str) -> ToolError:
    """
    Convert a backend exception into a structured tool error.

    Args:
        e: The exception raised by the adapter or the storage SDK
        label: Operation-specific error label (e.g. "Failed to list buckets")

    Returns:
        ToolError in the backend_operation_failed category carrying the raw message
    """
    if isinstance(e, StorageToolError):
        return e.to_tool_error(label)

    if isinstance(e, gapi_exceptions.GoogleAPICallError):
        code = getattr(e, "code", None)
        status = int(code) if code is not None else None
        details: dict[str, Any] = {"status": status}
        if getattr(e, "reason", None):
            details["reason"] = e.reason
        return ToolError(
            category=ErrorCategory.BACKEND_OPERATION_FAILED,
            error=label,
            message=e.message or str(e),
            suggestion=SUGGESTIONS.get(status) if status is not None else None,
            details=details,
        )

    return ToolError(
        category=ErrorCategory.BACKEND_OPERATION_FAILED,
        error=label,
        message=str(e),
        details={"exception": type(e).__name__},
    )
