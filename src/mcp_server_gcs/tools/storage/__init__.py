"""
Cloud Storage domain tools.

Bucket listing and inspection, object listing, metadata, upload, download
and delete, plus project introspection.
"""
from __future__ import annotations

from .catalog import TOOL_CATALOG, ToolDescriptor, get_tool_catalog
from .dispatcher import ToolDispatcher, ToolName
from .models import (
    BucketInput,
    EmptyInput,
    FileInput,
    ListFilesInput,
    ProjectInput,
    UploadFileInput,
)
from .tools import build_tools, register_storage_tools

__all__ = [
    # Registration
    "register_storage_tools",
    "build_tools",

    # Dispatch
    "ToolDispatcher",
    "ToolName",

    # Catalog
    "TOOL_CATALOG",
    "ToolDescriptor",
    "get_tool_catalog",

    # Input models
    "EmptyInput",
    "ProjectInput",
    "BucketInput",
    "FileInput",
    "UploadFileInput",
    "ListFilesInput",
]
