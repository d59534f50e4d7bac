"""
Static tool catalog advertised to MCP clients.

Data only: names, descriptions, JSON-Schema input shapes and MCP tool
annotations. The dispatcher owns behavior.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

_PROJECT = {
    "type": "string",
    "description": "Google Cloud project ID (defaults to first project from GOOGLE_CLOUD_PROJECTS env var)",
}
_BUCKET = {"type": "string", "description": "Name of the bucket"}
_FILE = {"type": "string", "description": "Path to the file in the bucket"}

_READ_ONLY = {"readOnlyHint": True, "destructiveHint": False, "idempotentHint": True, "openWorldHint": True}
_LOCAL_READ_ONLY = {**_READ_ONLY, "openWorldHint": False}


@dataclass(frozen=True)
class ToolDescriptor:
    """One discoverable tool."""

    name: str
    title: str
    description: str
    properties: dict[str, Any] = field(default_factory=dict)
    required: tuple[str, ...] = ()
    annotations: dict[str, Any] = field(default_factory=dict)

    @property
    def input_schema(self) -> dict[str, Any]:
        schema: dict[str, Any] = {"type": "object", "properties": dict(self.properties)}
        if self.required:
            schema["required"] = list(self.required)
        return schema

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema,
        }


TOOL_CATALOG: tuple[ToolDescriptor, ...] = (
    ToolDescriptor(
        name="listBuckets",
        title="List Buckets",
        description="List all Cloud Storage buckets in a project",
        properties={"project": _PROJECT},
        annotations=_READ_ONLY,
    ),
    ToolDescriptor(
        name="getBucket",
        title="Get Bucket",
        description="Get details of a specific Cloud Storage bucket",
        properties={"project": _PROJECT, "bucket": _BUCKET},
        required=("bucket",),
        annotations=_READ_ONLY,
    ),
    ToolDescriptor(
        name="listFiles",
        title="List Files",
        description="List files in a Cloud Storage bucket",
        properties={
            "project": _PROJECT,
            "bucket": _BUCKET,
            "prefix": {"type": "string", "description": "Filter files by prefix (folder path)"},
            "delimiter": {
                "type": "string",
                "description": "Delimiter to use (e.g., '/' to get files in a specific folder)",
            },
        },
        required=("bucket",),
        annotations=_READ_ONLY,
    ),
    ToolDescriptor(
        name="getFile",
        title="Get File",
        description="Get details of a specific file in a Cloud Storage bucket",
        properties={"project": _PROJECT, "bucket": _BUCKET, "file": _FILE},
        required=("bucket", "file"),
        annotations=_READ_ONLY,
    ),
    ToolDescriptor(
        name="uploadFile",
        title="Upload File",
        description="Upload a file to a Cloud Storage bucket",
        properties={
            "project": _PROJECT,
            "bucket": _BUCKET,
            "destination": {"type": "string", "description": "Destination path/filename in the bucket"},
            "content": {
                "type": "string",
                "description": "Content to upload (base64 encoded for binary files)",
            },
            "contentType": {"type": "string", "description": "MIME type of the content"},
        },
        required=("bucket", "destination", "content"),
        annotations={"readOnlyHint": False, "destructiveHint": True, "idempotentHint": True, "openWorldHint": True},
    ),
    ToolDescriptor(
        name="downloadFile",
        title="Download File",
        description="Download a file from a Cloud Storage bucket",
        properties={"project": _PROJECT, "bucket": _BUCKET, "file": _FILE},
        required=("bucket", "file"),
        annotations=_READ_ONLY,
    ),
    ToolDescriptor(
        name="deleteFile",
        title="Delete File",
        description="Delete a file from a Cloud Storage bucket",
        properties={
            "project": _PROJECT,
            "bucket": _BUCKET,
            "file": {"type": "string", "description": "Path to the file in the bucket to delete"},
        },
        required=("bucket", "file"),
        annotations={"readOnlyHint": False, "destructiveHint": True, "idempotentHint": False, "openWorldHint": True},
    ),
    ToolDescriptor(
        name="listProjects",
        title="List Projects",
        description="List all available projects that have been configured",
        annotations=_LOCAL_READ_ONLY,
    ),
    ToolDescriptor(
        name="healthcheck",
        title="Health Check",
        description="Lightweight readiness/liveness check for the Cloud Storage server",
        annotations=_LOCAL_READ_ONLY,
    ),
)


def get_tool_catalog() -> list[dict[str, Any]]:
    """Catalog in MCP ``tools/list`` shape."""
    return [descriptor.to_dict() for descriptor in TOOL_CATALOG]


def get_descriptor(name: str) -> ToolDescriptor:
    for descriptor in TOOL_CATALOG:
        if descriptor.name == name:
            return descriptor
    raise KeyError(name)
