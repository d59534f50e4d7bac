"""
Tests for observability helpers.
"""
from __future__ import annotations

import pytest

from mcp_server_gcs.core.observability import (
    TOOL_CALLS,
    check_observability_health,
    observe_tool,
    sanitize_params,
    start_metrics_server,
)


def _calls(tool: str, outcome: str) -> float:
    return TOOL_CALLS.labels("cloudstorage", tool, outcome)._value.get()


class TestSanitizeParams:
    def test_redacts_sensitive_keys(self):
        assert sanitize_params({"private_key": "abc", "token": "t"}) == {
            "private_key": "[REDACTED]",
            "token": "[REDACTED]",
        }

    def test_content_replaced_by_length(self):
        assert sanitize_params({"content": "aGVsbG8="}) == {"content": "<8 chars>"}

    def test_long_strings_truncated(self):
        out = sanitize_params({"prefix": "x" * 150})
        assert out["prefix"] == "x" * 100 + "..."

    def test_other_values_untouched(self):
        assert sanitize_params({"bucket": "b", "n": 1}) == {"bucket": "b", "n": 1}


class TestObserveTool:
    """Tests for the observe_tool context manager."""

    def test_records_outcome(self):
        before = _calls("obs-test-ok", "success")
        with observe_tool("obs-test-ok", {"bucket": "b"}) as ctx:
            ctx.record("success")
        assert _calls("obs-test-ok", "success") == before + 1

    def test_error_category_outcome(self):
        before = _calls("obs-test-err", "not_found")
        with observe_tool("obs-test-err") as ctx:
            ctx.record("not_found", "gone")
        assert _calls("obs-test-err", "not_found") == before + 1

    def test_exception_is_counted_and_reraised(self):
        before = _calls("obs-test-exc", "exception")
        with pytest.raises(KeyError):
            with observe_tool("obs-test-exc"):
                raise KeyError("boom")
        assert _calls("obs-test-exc", "exception") == before + 1

    def test_unrecorded_outcome_is_unknown(self):
        before = _calls("obs-test-none", "unknown")
        with observe_tool("obs-test-none"):
            pass
        assert _calls("obs-test-none", "unknown") == before + 1


class TestHealth:
    def test_health_shape(self):
        health = check_observability_health()
        assert health["logging"]["provider"] == "structlog"
        assert "enabled" in health["tracing"]
        assert health["uptime_seconds"] >= 0

    def test_metrics_server_disabled_without_port(self):
        assert start_metrics_server(None) is False
        assert start_metrics_server(0) is False
