import os
from pathlib import Path

import pytest

from mcp_server_gcs.config import AppConfig

_INTEGRATION_DIR = Path(__file__).resolve().parent


def pytest_collection_modifyitems(config, items):
    # The hook sees every collected item; only gate the ones in this directory
    if os.environ.get("GCS_INTEGRATION") == "1":
        return
    skip = pytest.mark.skip(reason="Set GCS_INTEGRATION=1 to run live Cloud Storage integration tests")
    for item in items:
        if _INTEGRATION_DIR in Path(str(item.fspath)).resolve().parents:
            item.add_marker(skip)


@pytest.fixture(scope="session")
def live_config() -> AppConfig:
    cfg = AppConfig.from_env()
    if not cfg.storage.projects:
        pytest.skip("GOOGLE_CLOUD_PROJECTS not set")
    return cfg


@pytest.fixture(scope="session")
def test_bucket() -> str:
    bucket = os.environ.get("TEST_GCS_BUCKET")
    if not bucket:
        pytest.skip("TEST_GCS_BUCKET not set")
    return bucket
