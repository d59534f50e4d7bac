"""
Core infrastructure modules for the Cloud Storage MCP Server.

This package contains:
- errors: Error categories, exceptions and backend error translation
- formatters: Result envelope and JSON serialization
- observability: structlog logging, OpenTelemetry tracing, Prometheus metrics
- registry: Per-project storage clients, sealed after start-up
- validation: MCP tool name checks
"""

from .errors import (
    ErrorCategory,
    InvalidArgumentsError,
    ObjectNotFoundError,
    StartupError,
    StorageToolError,
    ToolError,
    UnconfiguredTenantError,
    UnknownToolError,
    handle_storage_error,
)
from .formatters import ResultEnvelope, safe_serialize
from .observability import (
    check_observability_health,
    get_logger,
    init_observability,
    observe_tool,
)
from .registry import TenantRegistry, build_registry

__all__ = [
    # Errors
    "ErrorCategory",
    "ToolError",
    "StorageToolError",
    "InvalidArgumentsError",
    "UnconfiguredTenantError",
    "UnknownToolError",
    "ObjectNotFoundError",
    "StartupError",
    "handle_storage_error",
    # Formatters
    "ResultEnvelope",
    "safe_serialize",
    # Observability
    "get_logger",
    "init_observability",
    "check_observability_health",
    "observe_tool",
    # Registry
    "TenantRegistry",
    "build_registry",
]
