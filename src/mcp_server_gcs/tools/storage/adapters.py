"""
Cloud Storage backend adapters.

Each adapter takes a project-scoped ``google.cloud.storage.Client`` and the
validated input model, makes the backend call(s), and returns a JSON-safe
payload. Adapters never catch backend errors; the dispatcher does.
"""
from __future__ import annotations

import base64
import re
from typing import Any

from mcp_server_gcs.core.errors import ObjectNotFoundError
from mcp_server_gcs.core.formatters import safe_serialize

from .models import (
    BucketInput,
    FileInput,
    ListFilesInput,
    ProjectInput,
    UploadFileInput,
)

# Standard alphabet, length a multiple of 4, "=" only as trailing padding
_BASE64_RE = re.compile(
    r"^(?:[A-Za-z0-9+/]{4})*(?:[A-Za-z0-9+/]{2}==|[A-Za-z0-9+/]{3}=)?$"
)

_TEXT_MARKERS = ("json", "xml", "javascript", "html")


# =============================================================================
# Content encoding helpers
# =============================================================================

def is_base64(content: str) -> bool:
    """True when ``content`` is non-empty, canonical base64 text."""
    return bool(content) and _BASE64_RE.match(content) is not None


def decode_upload_content(content: str) -> bytes:
    """Return the bytes to store for an upload.

    Valid base64 is decoded; anything else is stored as its UTF-8 text.
    """
    if is_base64(content):
        return base64.b64decode(content, validate=True)
    return content.encode("utf-8")


def is_text_content_type(content_type: str | None) -> bool:
    """Text-like content types are returned as UTF-8, everything else as base64."""
    if not content_type:
        return False
    lowered = content_type.lower()
    return lowered.startswith("text/") or any(marker in lowered for marker in _TEXT_MARKERS)


# =============================================================================
# Metadata shaping
# =============================================================================

def _resource(obj: Any) -> dict[str, Any]:
    """Full API resource held by an SDK bucket or blob (camelCase keys)."""
    return safe_serialize(dict(getattr(obj, "_properties", None) or {}))


def _bucket_metadata(bucket: Any) -> dict[str, Any]:
    metadata = {
        "id": bucket.id,
        "name": bucket.name,
        "projectNumber": bucket.project_number,
        "location": bucket.location,
        "locationType": bucket.location_type,
        "storageClass": bucket.storage_class,
        "timeCreated": safe_serialize(bucket.time_created),
        "updated": safe_serialize(getattr(bucket, "updated", None)),
        "etag": bucket.etag,
        "metageneration": bucket.metageneration,
        "versioning": {"enabled": bool(bucket.versioning_enabled)},
        "labels": safe_serialize(bucket.labels or {}),
        "requesterPays": bool(bucket.requester_pays),
        "defaultEventBasedHold": bool(bucket.default_event_based_hold),
        "retentionPeriod": bucket.retention_period,
    }
    # Everything the backend returned, e.g. lifecycle, iamConfiguration, cors
    metadata.update(_resource(bucket))
    return metadata


def _blob_metadata(blob: Any) -> dict[str, Any]:
    metadata = {
        "id": blob.id,
        "name": blob.name,
        "bucket": blob.bucket.name if blob.bucket is not None else None,
        "size": blob.size,
        "contentType": blob.content_type,
        "contentEncoding": blob.content_encoding,
        "cacheControl": blob.cache_control,
        "storageClass": blob.storage_class,
        "md5Hash": blob.md5_hash,
        "crc32c": blob.crc32c,
        "etag": blob.etag,
        "generation": blob.generation,
        "metageneration": blob.metageneration,
        "timeCreated": safe_serialize(blob.time_created),
        "updated": safe_serialize(blob.updated),
        "metadata": safe_serialize(blob.metadata or {}),
    }
    # Everything the backend returned, e.g. mediaLink, kmsKeyName, customTime
    metadata.update(_resource(blob))
    return metadata


# =============================================================================
# Adapters
# =============================================================================

def list_buckets(client: Any, params: ProjectInput) -> list[dict[str, Any]]:
    """List all buckets in the project."""
    return [
        {
            "name": bucket.name,
            "id": bucket.id,
            "location": bucket.location,
            "storageClass": bucket.storage_class,
            "created": safe_serialize(bucket.time_created),
        }
        for bucket in client.list_buckets()
    ]


def get_bucket(client: Any, params: BucketInput) -> dict[str, Any]:
    """Fetch bucket metadata; NotFound/Forbidden propagate to the dispatcher."""
    return _bucket_metadata(client.get_bucket(params.bucket))


def list_files(client: Any, params: ListFilesInput) -> list[dict[str, Any]]:
    """List objects, passing prefix/delimiter only when they were supplied."""
    options: dict[str, Any] = {}
    if params.prefix is not None:
        options["prefix"] = params.prefix
    if params.delimiter is not None:
        options["delimiter"] = params.delimiter

    return [
        {
            "name": blob.name,
            "size": blob.size,
            "contentType": blob.content_type,
            "updated": safe_serialize(blob.updated),
            "created": safe_serialize(blob.time_created),
        }
        for blob in client.list_blobs(params.bucket, **options)
    ]


def get_file(client: Any, params: FileInput) -> dict[str, Any]:
    """Fetch object metadata."""
    blob = client.bucket(params.bucket).blob(params.file)
    blob.reload()
    return _blob_metadata(blob)


def upload_file(client: Any, params: UploadFileInput) -> dict[str, Any]:
    """Upload content (base64 or plain text) and return the stored metadata."""
    blob = client.bucket(params.bucket).blob(params.destination)
    data = decode_upload_content(params.content)

    options: dict[str, Any] = {}
    if params.content_type:
        options["content_type"] = params.content_type

    blob.upload_from_string(data, **options)
    blob.reload()

    return {
        "success": True,
        "message": f"File uploaded successfully to {params.bucket}/{params.destination}",
        "metadata": _blob_metadata(blob),
    }


def download_file(client: Any, params: FileInput) -> dict[str, Any]:
    """Download an object, returning text for text-like types and base64 otherwise."""
    blob = client.bucket(params.bucket).blob(params.file)
    if not blob.exists():
        raise ObjectNotFoundError(params.bucket, params.file)

    blob.reload()
    raw = blob.download_as_bytes()

    if is_text_content_type(blob.content_type):
        content, encoding = raw.decode("utf-8", errors="replace"), "utf-8"
    else:
        content, encoding = base64.b64encode(raw).decode("ascii"), "base64"

    return {
        "name": params.file,
        "contentType": blob.content_type,
        "size": blob.size,
        "content": content,
        "encoding": encoding,
    }


def delete_file(client: Any, params: FileInput) -> dict[str, Any]:
    """Delete an object after confirming it exists."""
    blob = client.bucket(params.bucket).blob(params.file)
    if not blob.exists():
        raise ObjectNotFoundError(params.bucket, params.file)

    blob.delete()
    return {
        "success": True,
        "message": f"File {params.file} deleted successfully from bucket {params.bucket}",
    }
