"""
Cloud Storage MCP Server - Main Entry Point

Start-up runs in a fixed order:
1. Load configuration and initialize observability
2. Build and seal the tenant registry (one client per project key)
3. Register the tool catalog with FastMCP
4. Serve over stdio (default) or streamable HTTP

Environment Variables:
- GOOGLE_CLOUD_PROJECTS: Comma-separated project IDs; the first is the default
- GCS_MCP_KEYS_DIR: Directory holding <project>.json service-account keys
- GCS_MCP_NAME: Server name (default: cloudstorage)
- GCS_MCP_TRANSPORT: Transport mode (stdio, streamable_http)
- GCS_MCP_PORT: HTTP port if using streamable_http
- GCS_MCP_LOG_LEVEL: Logging level
- METRICS_PORT: Prometheus exporter port (disabled when unset)
"""
from __future__ import annotations

import sys

from fastmcp import FastMCP

from mcp_server_gcs.config import AppConfig, TransportType, get_config
from mcp_server_gcs.core.errors import StartupError
from mcp_server_gcs.core.observability import get_logger, init_observability, start_metrics_server
from mcp_server_gcs.core.registry import ClientFactory, build_registry, create_storage_client
from mcp_server_gcs.core.validation import validate_and_log_tools
from mcp_server_gcs.tools.storage import ToolDispatcher, register_storage_tools

logger = get_logger("gcs-mcp.server")

INSTRUCTIONS = """Google Cloud Storage MCP Server for one or more projects.

Use `listProjects` to see which projects are configured and initialized.
Omit `project` on any tool to use the default (first configured) project.
"""


def create_server(
    config: AppConfig | None = None,
    client_factory: ClientFactory = create_storage_client,
) -> FastMCP:
    """
    Build a ready-to-run server.

    Raises:
        StartupError: if no project could be initialized or a tool name is invalid
    """
    config = config or get_config()

    init_observability(
        service_name=config.server.name,
        service_version=config.server.version,
        log_level=config.server.log_level,
        json_logs=config.server.json_logs,
        tracing_enabled=config.observability.tracing_enabled,
        otlp_endpoint=config.observability.otlp_endpoint,
        otlp_headers=config.observability.otlp_headers,
    )

    logger.info(
        "Starting Cloud Storage MCP Server",
        version=config.server.version,
        projects=config.storage.projects,
        keys_dir=str(config.storage.keys_dir),
    )

    registry = build_registry(config.storage.projects, config.storage.keys_dir, client_factory)
    if len(registry) == 0:
        raise StartupError(
            "No Cloud Storage clients were initialized. Check GOOGLE_CLOUD_PROJECTS "
            f"and the key files in {config.storage.keys_dir}"
        )

    dispatcher = ToolDispatcher(
        registry,
        projects_env=config.storage.projects_env,
        server_name=config.server.name,
    )

    mcp = FastMCP(name=config.server.name, instructions=INSTRUCTIONS)
    tools = register_storage_tools(mcp, dispatcher)
    if not validate_and_log_tools(tools, config.server.name):
        raise StartupError("Tool catalog contains invalid tool names")

    logger.info(
        "Cloud Storage MCP Server ready",
        initialized_projects=list(registry.registered),
        failed_projects=sorted(registry.failures),
        tools=len(tools),
    )
    return mcp


def main() -> None:
    """Entry point supporting multiple transports."""
    try:
        config = get_config()
    except ValueError as e:
        # Bad transport or port values; pydantic ValidationError is a ValueError too
        logger.error("Invalid configuration", error=str(e))
        sys.exit(1)

    try:
        mcp = create_server(config)
    except StartupError as e:
        logger.error("Failed to start server", error=str(e))
        sys.exit(1)

    start_metrics_server(config.server.metrics_port)

    try:
        if config.server.transport == TransportType.STREAMABLE_HTTP:
            logger.info("Starting HTTP server", port=config.server.port)
            mcp.run(transport="streamable-http", port=config.server.port)
        else:
            logger.info("Starting stdio server")
            mcp.run()
    except Exception as e:
        logger.exception("Server terminated with an error", error=str(e))
        sys.exit(1)


if __name__ == "__main__":
    main()
