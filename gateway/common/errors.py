"""Error kinds raised by the ingest pipeline.

Each kind is raised where the failure is detected and travels unchanged to the
HTTP layer, which is the only place that turns it into a status code.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional


class IngestError(RuntimeError):
    """Base class for ingest pipeline failures."""


class IngestValidationError(IngestError):
    """Request input is missing or malformed; raised before any I/O."""

    def __init__(self, message: str, issues: Optional[List[Dict[str, Any]]] = None) -> None:
        super().__init__(message)
        self.issues = issues or []


class StoreError(IngestError):
    """The remote store service did not accept the file."""


class MetacardStoreError(IngestError):
    """The metacard could not be written to or read from the blob store."""


class MetacardNotFoundError(MetacardStoreError):
    """No metacard is stored under the requested key."""

    def __init__(self, key: str) -> None:
        super().__init__(f"No metacard stored under key {key}")
        self.key = key


class TransformError(IngestError):
    """The transform service did not accept the transform request."""
