"""
Tenant registry: one Cloud Storage client per configured project.

The registry is filled once during start-up (configure, then register each
project whose client could be built) and then sealed. After sealing it is
read-only, so concurrent ``resolve`` calls need no locking.
"""
from __future__ import annotations

import json
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Any

from .errors import UnconfiguredTenantError
from .observability import get_logger

logger = get_logger("gcs-mcp.registry")


class CredentialsNotFoundError(FileNotFoundError):
    """No service-account key file exists for a project."""


class CredentialsInvalidError(ValueError):
    """The service-account key file could not be read or parsed."""


@dataclass(frozen=True)
class RegistrySnapshot:
    """Read-only view used by the listProjects tool."""

    configured: tuple[str, ...]
    default: str | None
    registered: tuple[str, ...]


class TenantRegistry:
    """Holds the configured project IDs and their storage clients."""

    def __init__(self) -> None:
        self._configured: tuple[str, ...] = ()
        self._handles: dict[str, Any] = {}
        self._failures: dict[str, str] = {}
        self._sealed = False

    # ------------------------------------------------------------------
    # Start-up (mutating) API
    # ------------------------------------------------------------------

    def configure(self, identifiers: Iterable[str]) -> None:
        """Record the configured project IDs in order; the first is the default."""
        self._ensure_open()
        self._configured = tuple(identifiers)
        self._handles = {}
        self._failures = {}

    def register(self, identifier: str, handle: Any) -> None:
        """Attach a ready client to a configured project."""
        self._ensure_open()
        if identifier not in self._configured:
            raise ValueError(f"Project {identifier!r} is not in the configured project list")
        self._handles[identifier] = handle
        self._failures.pop(identifier, None)

    def mark_failed(self, identifier: str, reason: str) -> None:
        """Remember why a configured project could not be initialized."""
        self._ensure_open()
        if identifier in self._configured and identifier not in self._handles:
            self._failures[identifier] = reason

    def seal(self) -> TenantRegistry:
        """Freeze the registry; later mutation attempts raise RuntimeError."""
        self._handles = MappingProxyType(dict(self._handles))
        self._failures = MappingProxyType(dict(self._failures))
        self._sealed = True
        return self

    def _ensure_open(self) -> None:
        if self._sealed:
            raise RuntimeError("Tenant registry is sealed; it cannot be changed after start-up")

    # ------------------------------------------------------------------
    # Read API
    # ------------------------------------------------------------------

    @property
    def sealed(self) -> bool:
        return self._sealed

    @property
    def default_project(self) -> str | None:
        return self._configured[0] if self._configured else None

    @property
    def configured(self) -> tuple[str, ...]:
        return self._configured

    @property
    def registered(self) -> tuple[str, ...]:
        return tuple(p for p in self._configured if p in self._handles)

    @property
    def failures(self) -> Mapping[str, str]:
        return MappingProxyType(dict(self._failures))

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._handles

    def __len__(self) -> int:
        return len(self._handles)

    def resolve(self, identifier: str) -> Any:
        """Return the client for ``identifier`` or raise UnconfiguredTenantError."""
        try:
            return self._handles[identifier]
        except KeyError:
            pass
        if identifier in self._configured:
            raise UnconfiguredTenantError(
                identifier,
                UnconfiguredTenantError.INITIALIZATION_FAILED,
                self._failures.get(identifier),
            )
        raise UnconfiguredTenantError(identifier, UnconfiguredTenantError.NOT_CONFIGURED)

    def snapshot(self) -> RegistrySnapshot:
        return RegistrySnapshot(
            configured=self._configured,
            default=self.default_project,
            registered=self.registered,
        )


# =============================================================================
# Credentials and client construction
# =============================================================================

def credentials_path(keys_dir: Path, project: str) -> Path:
    return Path(keys_dir) / f"{project}.json"


def load_service_account_info(keys_dir: Path, project: str) -> dict[str, Any]:
    """Read ``<keys_dir>/<project>.json``.

    Raises:
        CredentialsNotFoundError: if the file does not exist
        CredentialsInvalidError: if it is unreadable or not a JSON object
    """
    path = credentials_path(keys_dir, project)
    if not path.is_file():
        raise CredentialsNotFoundError(f"No credentials file found for project {project} at {path}")
    try:
        info = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise CredentialsInvalidError(f"Cannot read credentials file {path}: {e}") from e
    if not isinstance(info, dict):
        raise CredentialsInvalidError(f"Credentials file {path} does not contain a JSON object")
    return info


def create_storage_client(project: str, info: dict[str, Any]) -> Any:
    """Build an authenticated Cloud Storage client scoped to ``project``."""
    from google.cloud import storage
    from google.oauth2 import service_account

    credentials = service_account.Credentials.from_service_account_info(info)
    return storage.Client(project=project, credentials=credentials)


ClientFactory = Callable[[str, dict[str, Any]], Any]


def build_registry(
    projects: Iterable[str],
    keys_dir: Path,
    client_factory: ClientFactory = create_storage_client,
) -> TenantRegistry:
    """Run the sequential start-up pass and return a sealed registry.

    A project whose key is missing or whose client cannot be built is logged
    and skipped; it never stops the other projects from initializing.
    """
    registry = TenantRegistry()
    registry.configure(projects)

    if not registry.configured:
        logger.warning(
            "GOOGLE_CLOUD_PROJECTS environment variable is not set",
            hint="Every tool that needs a project will fail until it is configured",
        )

    for project in registry.configured:
        try:
            info = load_service_account_info(keys_dir, project)
            client = client_factory(project, info)
        except CredentialsNotFoundError as e:
            logger.warning("Missing credentials", project=project, error=str(e))
            registry.mark_failed(project, str(e))
            continue
        except Exception as e:
            logger.error(
                "Error initializing Cloud Storage client",
                project=project,
                error_type=type(e).__name__,
                error=str(e),
            )
            registry.mark_failed(project, str(e))
            continue

        registry.register(project, client)
        logger.info("Cloud Storage client initialized", project=project)

    return registry.seal()
