"""
Result envelope and JSON serialization for tool responses.

Every tool call produces exactly one ``ResultEnvelope``: either a success
payload or a ``ToolError``. The envelope is rendered as indented JSON text,
which is what MCP clients receive.
"""
from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any

from .errors import ErrorCategory, ToolError


def safe_serialize(obj: Any) -> Any:
    """Convert SDK objects and other complex types into JSON-safe values."""
    if obj is None or isinstance(obj, (str, int, float, bool)):
        return obj

    if isinstance(obj, (datetime, date)):
        return obj.isoformat()

    if isinstance(obj, bytes):
        return obj.decode("utf-8", errors="replace")

    if isinstance(obj, Mapping):
        return {str(key): safe_serialize(value) for key, value in obj.items()}

    if isinstance(obj, (list, tuple, set, frozenset)):
        return [safe_serialize(item) for item in obj]

    if hasattr(obj, "to_api_repr"):
        return safe_serialize(obj.to_api_repr())

    return str(obj)


@dataclass(frozen=True)
class ResultEnvelope:
    """Uniform tool result: exactly one of ``data`` or ``error`` is meaningful."""

    data: Any = None
    error: ToolError | None = None

    @classmethod
    def success(cls, data: Any) -> ResultEnvelope:
        return cls(data=safe_serialize(data))

    @classmethod
    def failure(cls, error: ToolError) -> ResultEnvelope:
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def outcome(self) -> str:
        """Metric label: ``success`` or the error category."""
        return "success" if self.error is None else self.error.category.value

    @property
    def category(self) -> ErrorCategory | None:
        return None if self.error is None else self.error.category

    def to_dict(self) -> Any:
        if self.error is not None:
            return self.error.to_dict()
        return self.data

    def to_text(self) -> str:
        """Render the envelope as the JSON text returned to MCP clients."""
        return json.dumps(self.to_dict(), indent=2, default=str)
