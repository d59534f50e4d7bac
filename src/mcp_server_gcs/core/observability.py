"""
Observability for the Cloud Storage MCP server - logging, tracing, metrics.

Provides:
- Structured logging with structlog (always to stderr; stdout carries stdio JSON-RPC)
- Optional OpenTelemetry tracing exported over OTLP/HTTP
- Prometheus tool-call counters and duration histograms

Environment Variables:
- OTEL_SDK_DISABLED: Disable tracing if 'true'
- OTEL_EXPORTER_OTLP_ENDPOINT: OTLP/HTTP collector endpoint
- OTEL_EXPORTER_OTLP_HEADERS: Extra exporter headers (k1=v1,k2=v2)
- METRICS_PORT: Prometheus exporter port
"""
from __future__ import annotations

import logging
import sys
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass, field
from time import perf_counter
from typing import Any

import structlog
from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode
from prometheus_client import Counter, Histogram

# Global state
_tracer: Any | None = None
_start_time: float = perf_counter()

SERVER_LABEL = "cloudstorage"

TOOL_CALLS = Counter(
    "mcp_tool_calls_total",
    "Total MCP tool calls",
    ["server", "tool", "outcome"],
)
TOOL_DURATION = Histogram(
    "mcp_tool_duration_seconds",
    "MCP tool duration (s)",
    ["server", "tool"],
)


def get_uptime_seconds() -> float:
    """Get server uptime in seconds."""
    return perf_counter() - _start_time


# ============================================================================
# Structured Logging with structlog
# ============================================================================

def configure_logging(level: str = "INFO", json_format: bool = False) -> None:
    """Configure structured logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        json_format: If True, output JSON; otherwise console format
    """
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if json_format:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level.upper(), logging.INFO)
        ),
        context_class=dict,
        # stdout is reserved for the stdio transport
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, level.upper(), logging.INFO),
    )


def get_logger(name: str = "gcs-mcp") -> structlog.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)


# ============================================================================
# OpenTelemetry Tracing
# ============================================================================

def init_tracing(
    service_name: str = "cloudstorage",
    service_version: str = "1.0.0",
    *,
    endpoint: str | None = None,
    headers: dict[str, str] | None = None,
    enabled: bool = True,
) -> Any | None:
    """Initialize OpenTelemetry tracing with an OTLP/HTTP exporter.

    Tracing stays off unless an endpoint is configured. Calling this again
    after a provider is installed just returns a tracer.

    Returns:
        Tracer instance or None if disabled
    """
    global _tracer

    if not enabled:
        get_logger().info("OpenTelemetry tracing disabled via OTEL_SDK_DISABLED")
        return None

    if not endpoint:
        get_logger().info(
            "OTLP endpoint not configured",
            hint="Set OTEL_EXPORTER_OTLP_ENDPOINT to export traces"
        )
        return None

    from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
    from opentelemetry.sdk.resources import SERVICE_NAME, SERVICE_VERSION, Resource
    from opentelemetry.sdk.trace import TracerProvider
    from opentelemetry.sdk.trace.export import BatchSpanProcessor

    if isinstance(trace.get_tracer_provider(), TracerProvider):
        _tracer = trace.get_tracer(service_name)
        return _tracer

    try:
        resource = Resource.create({
            SERVICE_NAME: service_name,
            SERVICE_VERSION: service_version,
            "cloud.provider": "gcp",
        })
        provider = TracerProvider(resource=resource)
        provider.add_span_processor(
            BatchSpanProcessor(OTLPSpanExporter(endpoint=endpoint, headers=headers or None))
        )
        trace.set_tracer_provider(provider)
        _tracer = trace.get_tracer(service_name)

        get_logger().info(
            "OpenTelemetry tracing initialized",
            service=service_name,
            version=service_version,
            endpoint=endpoint,
        )
        return _tracer
    except Exception as e:
        get_logger().warning("Failed to initialize OpenTelemetry", error=str(e))
        return None


def get_tracer() -> Any | None:
    """Get the global tracer instance."""
    return _tracer


# ============================================================================
# Tool Execution Context
# ============================================================================

@dataclass
class ToolExecutionContext:
    """Context for one tool call with logging, tracing and metrics."""

    tool_name: str
    params: dict[str, Any] = field(default_factory=dict)
    start_time: float = field(default_factory=perf_counter)
    span: Any | None = None
    outcome: str | None = None
    logger: Any = None

    def __post_init__(self):
        if self.logger is None:
            self.logger = get_logger("gcs-mcp.tools")

    @property
    def duration_ms(self) -> float:
        """Get elapsed time in milliseconds."""
        return (perf_counter() - self.start_time) * 1000

    def record(self, outcome: str, message: str | None = None) -> None:
        """Record the envelope outcome (``success`` or an error category)."""
        self.outcome = outcome
        if outcome == "success":
            self.logger.info(
                f"Completed {self.tool_name}",
                tool=self.tool_name,
                duration_ms=round(self.duration_ms, 2),
            )
            if self.span is not None:
                self.span.set_status(Status(StatusCode.OK))
        else:
            self.logger.warning(
                f"Failed {self.tool_name}",
                tool=self.tool_name,
                outcome=outcome,
                duration_ms=round(self.duration_ms, 2),
                error_message=message,
            )
            if self.span is not None:
                self.span.set_attribute("mcp.tool.outcome", outcome)
                self.span.set_status(Status(StatusCode.ERROR, message or outcome))


@contextmanager
def observe_tool(
    tool_name: str,
    params: Mapping[str, Any] | None = None,
) -> Iterator[ToolExecutionContext]:
    """Context manager for unified tool observability.

    Example:
        with observe_tool("listBuckets", arguments) as ctx:
            envelope = run()
            ctx.record(envelope.outcome)
    """
    ctx = ToolExecutionContext(
        tool_name=tool_name,
        params=sanitize_params(params or {}),
    )

    tracer = get_tracer()
    if tracer is not None:
        ctx.span = tracer.start_span(
            tool_name,
            kind=trace.SpanKind.SERVER,
            attributes={"mcp.server.name": SERVER_LABEL, "mcp.tool.name": tool_name},
        )

    ctx.logger.info(f"Starting {tool_name}", tool=tool_name, params=ctx.params)

    try:
        yield ctx
    except Exception as e:
        ctx.outcome = "exception"
        if ctx.span is not None:
            ctx.span.record_exception(e)
            ctx.span.set_status(Status(StatusCode.ERROR, str(e)))
        raise
    finally:
        TOOL_DURATION.labels(SERVER_LABEL, tool_name).observe(
            max(0.0, perf_counter() - ctx.start_time)
        )
        TOOL_CALLS.labels(SERVER_LABEL, tool_name, ctx.outcome or "unknown").inc()
        if ctx.span is not None:
            ctx.span.end()


# ============================================================================
# Utility Functions
# ============================================================================

_SENSITIVE_KEYS = {"password", "private_key", "token", "secret", "credential"}
_MAX_LOGGED_LENGTH = 100


def sanitize_params(params: Mapping[str, Any]) -> dict[str, Any]:
    """Remove or mask sensitive data from parameters before logging.

    Upload content is replaced by its length.
    """
    if not isinstance(params, Mapping):
        return {"arguments": type(params).__name__}

    sanitized: dict[str, Any] = {}
    for key, value in params.items():
        key = str(key)
        if any(s in key.lower() for s in _SENSITIVE_KEYS):
            sanitized[key] = "[REDACTED]"
        elif key == "content" and isinstance(value, str):
            sanitized[key] = f"<{len(value)} chars>"
        elif isinstance(value, str) and len(value) > _MAX_LOGGED_LENGTH:
            sanitized[key] = f"{value[:_MAX_LOGGED_LENGTH]}..."
        else:
            sanitized[key] = value
    return sanitized


def check_observability_health() -> dict[str, Any]:
    """Health status for tracing and logging."""
    return {
        "tracing": {"enabled": _tracer is not None},
        "logging": {"enabled": True, "provider": "structlog"},
        "uptime_seconds": round(get_uptime_seconds(), 2),
    }


def start_metrics_server(port: int | None) -> bool:
    """Expose Prometheus metrics over HTTP; returns False when disabled or failing."""
    if not port:
        return False
    from prometheus_client import start_http_server

    try:
        start_http_server(port)
    except OSError as e:
        get_logger().warning("Prometheus exporter not started", port=port, error=str(e))
        return False
    get_logger().info("Prometheus exporter started", port=port)
    return True


# ============================================================================
# Module Initialization
# ============================================================================

def init_observability(
    service_name: str = "cloudstorage",
    service_version: str = "1.0.0",
    log_level: str = "INFO",
    json_logs: bool = False,
    *,
    tracing_enabled: bool = True,
    otlp_endpoint: str | None = None,
    otlp_headers: dict[str, str] | None = None,
) -> None:
    """Initialize logging first, then (optionally) tracing."""
    configure_logging(level=log_level, json_format=json_logs)

    init_tracing(
        service_name=service_name,
        service_version=service_version,
        endpoint=otlp_endpoint,
        headers=otlp_headers,
        enabled=tracing_enabled,
    )

    get_logger().info(
        "Observability initialized",
        service=service_name,
        version=service_version,
        log_level=log_level,
    )
