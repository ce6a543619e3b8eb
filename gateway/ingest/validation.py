"""Explicit validation of incoming ingest requests.

Runs before the ingest service is touched and reports every problem at once
as a structured result instead of raising.
"""
from __future__ import annotations

import os
from datetime import datetime
from typing import Any, List, Optional

from pydantic import ValidationError

from gateway.ingest.models import (
    MAX_UPLOAD_SIZE,
    IngestRequest,
    IngestValidationResult,
    ValidationIssue,
)
from gateway.metacard_store.models import METACARD_MEDIA_TYPE

ATTACHMENT_OPEN_FAILED = "Could not open attachment"


def parse_offset_datetime(value: str) -> datetime:
    """Parse an RFC-3339 date-time; the UTC offset is mandatory."""
    text = value.strip()
    if not text or "T" not in text.upper() and " " not in text:
        raise ValueError(f"not a date-time: {value!r}")
    if text[-1] in "zZ":
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None or parsed.utcoffset() is None:
        raise ValueError(f"date-time has no offset: {value!r}")
    return parsed


def check_size(field: str, size: Optional[int], issues: List[ValidationIssue]) -> None:
    if size is None:
        issues.append(ValidationIssue(field=field, message="size is unknown"))
    elif size < 1 or size > MAX_UPLOAD_SIZE:
        issues.append(
            ValidationIssue(field=field, message=f"size must be between 1 and {MAX_UPLOAD_SIZE} bytes")
        )


def upload_size(upload: Any) -> int:
    """Size of an uploaded part; falls back to measuring the spooled file."""
    size = getattr(upload, "size", None)
    if size is not None:
        return size
    fileobj = upload.file
    position = fileobj.tell()
    end = fileobj.seek(0, os.SEEK_END)
    fileobj.seek(position)
    return end


def _blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def validate_ingest_form(
    file: Any,
    metacard: Any,
    correlation_id: Optional[str],
    accept_version: Optional[str],
    last_modified: Optional[str],
) -> IngestValidationResult:
    """Validate the parts and headers of ``POST /ingest``.

    ``file`` and ``metacard`` are upload objects exposing ``filename``,
    ``content_type``, ``size`` and a binary ``file``.
    """
    issues: List[ValidationIssue] = []

    if _blank(accept_version):
        issues.append(ValidationIssue(field="Accept-Version", message="header is required"))

    parsed_last_modified = None
    if _blank(last_modified):
        issues.append(ValidationIssue(field="Last-Modified", message="header is required"))
    else:
        try:
            parsed_last_modified = parse_offset_datetime(last_modified)
        except ValueError:
            issues.append(
                ValidationIssue(
                    field="Last-Modified",
                    message="must be an RFC-3339 date-time with a UTC offset",
                )
            )

    if _blank(correlation_id):
        issues.append(ValidationIssue(field="correlationId", message="is required"))

    file_size = metacard_size = None
    if file is None:
        issues.append(ValidationIssue(field="file", message="part is required"))
    else:
        if _blank(file.filename):
            issues.append(ValidationIssue(field="file", message="filename is required"))
        if _blank(file.content_type):
            issues.append(ValidationIssue(field="file", message="content type is required"))
        try:
            file_size = upload_size(file)
        except (OSError, ValueError):
            issues.append(ValidationIssue(field="file", message=ATTACHMENT_OPEN_FAILED))
        else:
            check_size("file", file_size, issues)

    if metacard is None:
        issues.append(ValidationIssue(field="metacard", message="part is required"))
    else:
        try:
            metacard_size = upload_size(metacard)
        except (OSError, ValueError):
            issues.append(ValidationIssue(field="metacard", message=ATTACHMENT_OPEN_FAILED))
        else:
            check_size("metacard", metacard_size, issues)

    if issues:
        return IngestValidationResult(issues=issues)

    try:
        request = IngestRequest(
            file_size=file_size,
            file_media_type=file.content_type,
            file_stream=file.file,
            file_name=file.filename,
            metacard_size=metacard_size,
            metacard_media_type=metacard.content_type or METACARD_MEDIA_TYPE,
            metacard_stream=metacard.file,
            last_modified=parsed_last_modified,
            correlation_id=correlation_id,
            accept_version=accept_version,
        )
    except ValidationError as exc:
        return IngestValidationResult(
            issues=[
                ValidationIssue(field=".".join(str(p) for p in err["loc"]), message=err["msg"])
                for err in exc.errors()
            ]
        )
    return IngestValidationResult(request=request)
