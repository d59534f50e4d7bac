"""
Pydantic input models for the Cloud Storage tools.

One model per argument shape. Unknown fields are ignored so newer clients
can send extra keys. The ``parse_*`` functions are the only entry points
used by the dispatcher: they apply the default-project rule explicitly and
turn pydantic errors into ``InvalidArgumentsError``.
"""
from __future__ import annotations

from collections.abc import Mapping
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_core import PydanticCustomError

from mcp_server_gcs.core.errors import FieldIssue, InvalidArgumentsError

PROJECT_REQUIRED_MESSAGE = (
    "Project ID is required. Provide it in the request or set "
    "GOOGLE_CLOUD_PROJECTS environment variable."
)


# =============================================================================
# Input Models
# =============================================================================

class EmptyInput(BaseModel):
    """Input for tools that take no arguments."""
    model_config = ConfigDict(extra="ignore", frozen=True)


class ProjectInput(BaseModel):
    """Input scoped to one project."""
    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)

    project: str = Field(
        description="Google Cloud project ID (defaults to first project from GOOGLE_CLOUD_PROJECTS env var)"
    )

    @field_validator("project")
    @classmethod
    def project_must_be_set(cls, v: str) -> str:
        if not v:
            raise PydanticCustomError("project_required", PROJECT_REQUIRED_MESSAGE)
        return v


class BucketInput(ProjectInput):
    """Input for tools that address one bucket."""
    bucket: str = Field(min_length=1, description="Name of the bucket")


class FileInput(BucketInput):
    """Input for tools that address one object."""
    file: str = Field(min_length=1, description="Path to the file in the bucket")


class UploadFileInput(BucketInput):
    """Input for uploading an object."""
    destination: str = Field(min_length=1, description="Destination path/filename in the bucket")
    content: str = Field(min_length=1, description="Content to upload (base64 encoded for binary files)")
    content_type: str | None = Field(
        default=None,
        alias="contentType",
        description="MIME type of the content"
    )


class ListFilesInput(BucketInput):
    """Input for listing objects."""
    prefix: str | None = Field(default=None, description="Filter files by prefix (folder path)")
    delimiter: str | None = Field(
        default=None,
        description="Delimiter to use (e.g., '/' to get files in a specific folder)"
    )


# =============================================================================
# Parsing
# =============================================================================

M = TypeVar("M", bound=BaseModel)

_CONSTRAINTS = {
    "missing": "required, got missing",
    "string_too_short": "required, got empty",
    "string_type": "expected a string",
}


def _issues_from(exc: ValidationError) -> list[FieldIssue]:
    issues = []
    for err in exc.errors():
        path = ".".join(str(part) for part in err["loc"]) or "(root)"
        issues.append(FieldIssue(path, _CONSTRAINTS.get(err["type"], err["msg"])))
    return issues


def parse_input(
    model: type[M],
    arguments: Mapping[str, Any] | None,
    default_project: str | None = None,
) -> M:
    """Validate raw tool arguments against ``model``.

    An omitted, null or empty ``project`` is replaced by ``default_project``
    for project-scoped models; if that is also empty the project field is
    reported as invalid.

    Raises:
        InvalidArgumentsError: on any violated constraint
    """
    if arguments is None:
        arguments = {}
    if not isinstance(arguments, Mapping):
        raise InvalidArgumentsError([FieldIssue("(root)", "expected an object of arguments")])

    data = dict(arguments)
    if issubclass(model, ProjectInput) and data.get("project") in (None, ""):
        data["project"] = default_project or ""

    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise InvalidArgumentsError(_issues_from(exc)) from exc


def parse_project_args(arguments: Mapping[str, Any] | None, default_project: str | None) -> ProjectInput:
    return parse_input(ProjectInput, arguments, default_project)


def parse_bucket_args(arguments: Mapping[str, Any] | None, default_project: str | None) -> BucketInput:
    return parse_input(BucketInput, arguments, default_project)


def parse_file_args(arguments: Mapping[str, Any] | None, default_project: str | None) -> FileInput:
    return parse_input(FileInput, arguments, default_project)


def parse_upload_args(arguments: Mapping[str, Any] | None, default_project: str | None) -> UploadFileInput:
    return parse_input(UploadFileInput, arguments, default_project)


def parse_list_files_args(arguments: Mapping[str, Any] | None, default_project: str | None) -> ListFilesInput:
    return parse_input(ListFilesInput, arguments, default_project)


def parse_empty_args(arguments: Mapping[str, Any] | None, default_project: str | None = None) -> EmptyInput:
    return parse_input(EmptyInput, arguments, default_project)
