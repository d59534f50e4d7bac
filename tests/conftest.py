"""
Pytest configuration and shared fixtures for Cloud Storage MCP Server tests.
"""
from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from types import SimpleNamespace
from typing import Any
from unittest.mock import MagicMock

import pytest

from mcp_server_gcs.core.registry import TenantRegistry
from mcp_server_gcs.tools.storage.dispatcher import ToolDispatcher

CREATED = datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc)
UPDATED = datetime(2024, 2, 1, 8, 0, tzinfo=timezone.utc)


def make_bucket(name: str = "bucket-a", **overrides: Any) -> SimpleNamespace:
    """Bucket double exposing the attributes the adapters read."""
    attrs = {
        "id": name,
        "name": name,
        "project_number": 123456789,
        "location": "US",
        "location_type": "multi-region",
        "storage_class": "STANDARD",
        "time_created": CREATED,
        "updated": UPDATED,
        "etag": "CAE=",
        "metageneration": 1,
        "versioning_enabled": False,
        "labels": {"env": "test"},
        "requester_pays": False,
        "default_event_based_hold": False,
        "retention_period": None,
        "_properties": {},
    }
    attrs.update(overrides)
    return SimpleNamespace(**attrs)


def make_blob(
    name: str = "docs/readme.txt",
    bucket: str = "bucket-a",
    *,
    data: bytes = b"hello",
    content_type: str | None = "text/plain",
    exists: bool = True,
    properties: dict[str, Any] | None = None,
) -> MagicMock:
    """Blob double; ``download_as_bytes`` returns ``data``."""
    blob = MagicMock(name=f"blob:{name}")
    blob.id = f"{bucket}/{name}/1"
    blob.name = name
    blob.bucket = SimpleNamespace(name=bucket)
    blob.size = len(data)
    blob.content_type = content_type
    blob.content_encoding = None
    blob.cache_control = None
    blob.storage_class = "STANDARD"
    blob.md5_hash = "XUFAKrxLKna5cZ2REBfFkg=="
    blob.crc32c = "mnG7TA=="
    blob.etag = "CKih16GjycICEAE="
    blob.generation = 1
    blob.metageneration = 1
    blob.time_created = CREATED
    blob.updated = UPDATED
    blob.metadata = None
    blob._properties = dict(properties or {})
    blob.exists.return_value = exists
    blob.download_as_bytes.return_value = data
    return blob


def make_client(blob: MagicMock | None = None, buckets: list[Any] | None = None) -> MagicMock:
    """Storage client double wired so ``client.bucket(b).blob(f)`` returns ``blob``."""
    client = MagicMock(name="storage-client")
    client.list_buckets.return_value = buckets if buckets is not None else [make_bucket()]
    client.get_bucket.side_effect = lambda name: make_bucket(name)
    client.list_blobs.return_value = [blob] if blob is not None else []
    if blob is not None:
        client.bucket.return_value.blob.return_value = blob
    return client


def make_registry(
    clients: dict[str, Any],
    configured: list[str] | None = None,
    failures: dict[str, str] | None = None,
) -> TenantRegistry:
    """Sealed registry with ``clients`` registered and ``failures`` marked."""
    registry = TenantRegistry()
    registry.configure(configured if configured is not None else list(clients))
    for project, client in clients.items():
        registry.register(project, client)
    for project, reason in (failures or {}).items():
        registry.mark_failed(project, reason)
    return registry.seal()


@pytest.fixture
def blob() -> MagicMock:
    return make_blob()


@pytest.fixture
def client(blob: MagicMock) -> MagicMock:
    return make_client(blob)


@pytest.fixture
def registry(client: MagicMock) -> TenantRegistry:
    """Two configured projects; only the first has a client."""
    return make_registry(
        {"proj-a": client},
        configured=["proj-a", "proj-b"],
        failures={"proj-b": "No credentials file found for project proj-b"},
    )


@pytest.fixture
def dispatcher(registry: TenantRegistry) -> ToolDispatcher:
    return ToolDispatcher(registry, projects_env="proj-a,proj-b", server_name="cloudstorage")


@pytest.fixture
def bucket_factory():
    return make_bucket


@pytest.fixture
def blob_factory():
    return make_blob


@pytest.fixture
def client_factory():
    return make_client


@pytest.fixture
def registry_factory():
    return make_registry


@pytest.fixture
def keys_dir(tmp_path: Path) -> Path:
    """Directory holding a syntactically valid key for ``proj-a`` only."""
    directory = tmp_path / "keys"
    directory.mkdir()
    (directory / "proj-a.json").write_text(
        json.dumps({"type": "service_account", "project_id": "proj-a", "client_email": "sa@proj-a.iam"}),
        encoding="utf-8",
    )
    return directory


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests (no external dependencies)")
    config.addinivalue_line("markers", "integration: Integration tests (require Cloud Storage access)")


def pytest_collection_modifyitems(config, items):
    """Add markers based on test location."""
    for item in items:
        if "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)
