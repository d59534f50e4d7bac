"""
Tests for the tenant registry and start-up credential loading.
"""
from __future__ import annotations

import threading
from unittest.mock import MagicMock

import pytest

from mcp_server_gcs.core.errors import UnconfiguredTenantError
from mcp_server_gcs.core.registry import (
    CredentialsInvalidError,
    CredentialsNotFoundError,
    TenantRegistry,
    build_registry,
    credentials_path,
    load_service_account_info,
)


class TestTenantRegistry:
    """Tests for TenantRegistry."""

    def test_default_is_first_configured(self, registry_factory):
        reg = registry_factory({"b": object(), "a": object()}, configured=["b", "a"])
        assert reg.default_project == "b"

    def test_no_default_when_unconfigured(self):
        assert TenantRegistry().seal().default_project is None

    def test_registered_follows_configured_order(self, registry_factory):
        reg = registry_factory({"c": 1, "a": 2}, configured=["a", "b", "c"])
        assert reg.registered == ("a", "c")
        assert len(reg) == 2
        assert "a" in reg and "b" not in reg

    def test_register_requires_configured_project(self):
        reg = TenantRegistry()
        reg.configure(["a"])
        with pytest.raises(ValueError):
            reg.register("zzz", object())

    def test_sealed_registry_rejects_mutation(self, registry_factory):
        reg = registry_factory({"a": object()})
        assert reg.sealed
        with pytest.raises(RuntimeError):
            reg.register("a", object())
        with pytest.raises(RuntimeError):
            reg.configure(["x"])
        with pytest.raises(RuntimeError):
            reg.mark_failed("a", "late")

    def test_resolve_registered(self, registry_factory):
        client = object()
        assert registry_factory({"a": client}).resolve("a") is client

    def test_resolve_configured_but_failed(self, registry_factory):
        reg = registry_factory({}, configured=["a"], failures={"a": "missing key"})
        with pytest.raises(UnconfiguredTenantError) as exc:
            reg.resolve("a")
        assert exc.value.reason == UnconfiguredTenantError.INITIALIZATION_FAILED
        assert "missing key" in str(exc.value)

    def test_resolve_never_configured(self, registry_factory):
        reg = registry_factory({"a": object()})
        with pytest.raises(UnconfiguredTenantError) as exc:
            reg.resolve("other")
        assert exc.value.reason == UnconfiguredTenantError.NOT_CONFIGURED

    def test_snapshot(self, registry_factory):
        reg = registry_factory({"a": object()}, configured=["a", "b"])
        snap = reg.snapshot()
        assert snap.configured == ("a", "b")
        assert snap.default == "a"
        assert snap.registered == ("a",)

    def test_concurrent_resolve(self, registry_factory):
        clients = {f"p{i}": object() for i in range(8)}
        reg = registry_factory(clients)
        mismatches = []

        def worker(project):
            for _ in range(200):
                if reg.resolve(project) is not clients[project]:
                    mismatches.append(project)

        threads = [threading.Thread(target=worker, args=(p,)) for p in clients]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert mismatches == []


class TestLoadServiceAccountInfo:
    def test_path(self, tmp_path):
        assert credentials_path(tmp_path, "proj") == tmp_path / "proj.json"

    def test_reads_json(self, keys_dir):
        assert load_service_account_info(keys_dir, "proj-a")["project_id"] == "proj-a"

    def test_missing_file(self, keys_dir):
        with pytest.raises(CredentialsNotFoundError):
            load_service_account_info(keys_dir, "proj-b")

    def test_invalid_json(self, keys_dir):
        (keys_dir / "broken.json").write_text("{not json", encoding="utf-8")
        with pytest.raises(CredentialsInvalidError):
            load_service_account_info(keys_dir, "broken")

    def test_not_an_object(self, keys_dir):
        (keys_dir / "list.json").write_text("[1, 2]", encoding="utf-8")
        with pytest.raises(CredentialsInvalidError):
            load_service_account_info(keys_dir, "list")


class TestBuildRegistry:
    """Tests for the start-up pass."""

    def test_registers_projects_with_keys(self, keys_dir):
        factory = MagicMock(return_value="client-a")
        reg = build_registry(["proj-a", "proj-b"], keys_dir, factory)

        assert reg.sealed
        assert reg.configured == ("proj-a", "proj-b")
        assert reg.registered == ("proj-a",)
        assert reg.resolve("proj-a") == "client-a"
        assert "proj-b" in reg.failures
        factory.assert_called_once()
        assert factory.call_args.args[0] == "proj-a"

    def test_factory_failure_does_not_stop_other_projects(self, keys_dir):
        (keys_dir / "proj-c.json").write_text('{"type": "service_account"}', encoding="utf-8")

        def factory(project, info):
            if project == "proj-a":
                raise ValueError("malformed key")
            return f"client-{project}"

        reg = build_registry(["proj-a", "proj-c"], keys_dir, factory)
        assert reg.registered == ("proj-c",)
        assert reg.failures["proj-a"] == "malformed key"
        with pytest.raises(UnconfiguredTenantError):
            reg.resolve("proj-a")

    def test_empty_configuration(self, keys_dir):
        reg = build_registry([], keys_dir, MagicMock())
        assert len(reg) == 0
        assert reg.default_project is None
