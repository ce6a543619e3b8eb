"""Ingest data models (Pydantic)."""
from __future__ import annotations

from typing import Any, List, Optional

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field, field_validator

from gateway.metacard_store.models import METACARD_MEDIA_TYPE

# 10 GiB
MAX_UPLOAD_SIZE = 10737418240


class IngestRequest(BaseModel):
    """
    One ingest call, as handed from the HTTP layer to the ingest service.

    The streams are read exactly once, front to back, and closed afterwards
    whatever the outcome.
    """
    model_config = ConfigDict(arbitrary_types_allowed=True)

    file_size: int = Field(..., ge=1, le=MAX_UPLOAD_SIZE)
    file_media_type: str
    file_stream: Any = Field(..., exclude=True)
    file_name: str
    metacard_size: int = Field(..., ge=1, le=MAX_UPLOAD_SIZE)
    metacard_media_type: str = METACARD_MEDIA_TYPE
    metacard_stream: Any = Field(..., exclude=True)
    last_modified: AwareDatetime
    correlation_id: str
    accept_version: str

    @field_validator("file_media_type", "file_name", "correlation_id", "accept_version")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("must not be blank")
        return value


class ValidationIssue(BaseModel):
    field: str
    message: str


class IngestValidationResult(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    request: Optional[IngestRequest] = None
    issues: List[ValidationIssue] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.request is not None and not self.issues
