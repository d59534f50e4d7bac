"""
Cloud Storage MCP Server Configuration

Handles environment variables, project list parsing, and server settings.
All values are sourced from environment variables (optionally via .env).
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

PROJECTS_ENV_VAR = "GOOGLE_CLOUD_PROJECTS"

# src/mcp_server_gcs/config.py -> repository root
_REPO_ROOT = Path(__file__).resolve().parents[2]
DEFAULT_KEYS_DIR = _REPO_ROOT / "keys"


class TransportType(str, Enum):
    """MCP transport types."""
    STDIO = "stdio"
    STREAMABLE_HTTP = "streamable_http"


class ServerConfig(BaseModel):
    """MCP Server configuration."""
    name: str = Field(default="cloudstorage", description="Server name")
    version: str = Field(default="1.0.0", description="Server version")
    transport: TransportType = Field(
        default=TransportType.STDIO,
        description="Transport: stdio or streamable_http"
    )
    port: int = Field(default=8000, description="HTTP port if using streamable_http")
    log_level: str = Field(default="INFO", description="Logging level")
    json_logs: bool = Field(default=False, description="Render logs as JSON lines")
    metrics_port: int | None = Field(
        default=None,
        description="Prometheus exporter port (disabled when unset or <= 0)"
    )

    @field_validator("metrics_port")
    @classmethod
    def disable_non_positive_port(cls, v: int | None) -> int | None:
        if v is not None and v <= 0:
            return None
        return v


class StorageConfig(BaseModel):
    """Tenant (project) configuration for the storage backend."""
    projects_env: str | None = Field(
        default=None,
        description="Raw GOOGLE_CLOUD_PROJECTS value as found in the environment"
    )
    projects: list[str] = Field(
        default_factory=list,
        description="Ordered, de-duplicated project IDs; the first one is the default"
    )
    keys_dir: Path = Field(
        default=DEFAULT_KEYS_DIR,
        description="Directory holding one <project>.json service-account key per project"
    )

    @field_validator("keys_dir", mode="before")
    @classmethod
    def expand_path(cls, v: str | Path) -> Path:
        return Path(v).expanduser()

    @property
    def default_project(self) -> str | None:
        return self.projects[0] if self.projects else None


class ObservabilityConfig(BaseModel):
    """Tracing configuration (OTLP over HTTP)."""
    tracing_enabled: bool = Field(default=True, description="Master switch for tracing")
    otlp_endpoint: str | None = Field(default=None, description="OTLP/HTTP collector endpoint")
    otlp_headers: dict[str, str] = Field(default_factory=dict, description="Extra exporter headers")


@dataclass
class AppConfig:
    """Application configuration container."""
    server: ServerConfig = field(default_factory=ServerConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    observability: ObservabilityConfig = field(default_factory=ObservabilityConfig)

    @classmethod
    def from_env(cls) -> AppConfig:
        """Load configuration from environment variables.

        Environment variables referenced:
        - GOOGLE_CLOUD_PROJECTS: comma-separated project IDs
        - GCS_MCP_KEYS_DIR: directory with <project>.json service-account keys
        - GCS_MCP_NAME, GCS_MCP_TRANSPORT, GCS_MCP_PORT
        - GCS_MCP_LOG_LEVEL, GCS_MCP_JSON_LOGS
        - METRICS_PORT
        - OTEL_SDK_DISABLED, OTEL_EXPORTER_OTLP_ENDPOINT, OTEL_EXPORTER_OTLP_HEADERS
        """
        load_dotenv()

        raw_projects = os.getenv(PROJECTS_ENV_VAR)
        metrics_port = os.getenv("METRICS_PORT")

        return cls(
            server=ServerConfig(
                name=os.getenv("GCS_MCP_NAME", "cloudstorage"),
                transport=TransportType(os.getenv("GCS_MCP_TRANSPORT", "stdio")),
                port=int(os.getenv("GCS_MCP_PORT", "8000")),
                log_level=os.getenv("GCS_MCP_LOG_LEVEL", "INFO"),
                json_logs=os.getenv("GCS_MCP_JSON_LOGS", "false").lower() == "true",
                metrics_port=int(metrics_port) if metrics_port else None,
            ),
            storage=StorageConfig(
                projects_env=raw_projects,
                projects=parse_project_list(raw_projects),
                keys_dir=os.getenv("GCS_MCP_KEYS_DIR", str(DEFAULT_KEYS_DIR)),
            ),
            observability=ObservabilityConfig(
                tracing_enabled=os.getenv("OTEL_SDK_DISABLED", "false").lower() != "true",
                otlp_endpoint=os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT"),
                otlp_headers=parse_headers(os.getenv("OTEL_EXPORTER_OTLP_HEADERS")),
            ),
        )


def parse_project_list(raw: str | None) -> list[str]:
    """Split a comma-separated project list, trimming entries and dropping blanks.

    Order is preserved and later duplicates are dropped, so the first entry
    stays the default project.
    """
    if not raw:
        return []
    projects: list[str] = []
    for part in raw.split(","):
        project = part.strip()
        if project and project not in projects:
            projects.append(project)
    return projects


def parse_headers(raw: str | None) -> dict[str, str]:
    """Parse ``k1=v1,k2=v2`` exporter headers."""
    headers: dict[str, str] = {}
    if not raw:
        return headers
    for part in raw.split(","):
        if "=" in part:
            k, v = part.split("=", 1)
            headers[k.strip()] = v.strip()
    return headers


# Global config instance (lazy-loaded)
_config: AppConfig | None = None


def get_config() -> AppConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = AppConfig.from_env()
    return _config


def reset_config() -> None:
    """Reset the global configuration (useful for testing)."""
    global _config
    _config = None
