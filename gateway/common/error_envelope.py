"""Canonical error envelope for all gateway responses.

Standardized structure:
{
  "error": {
    "code": "string",
    "message": "string",
    "http_status": 400,
    "resource_kind": "string | null",
    "details": {}
  }
}
"""
from __future__ import annotations

import logging
from typing import Any, Dict, NoReturn, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class ErrorDetail(BaseModel):
    """Canonical error detail structure."""
    code: str
    message: str
    http_status: int
    resource_kind: Optional[str] = None
    details: Dict[str, Any] = Field(default_factory=dict)


class ErrorEnvelope(BaseModel):
    """Top-level error envelope returned by all gateway endpoints."""
    error: ErrorDetail


def build_error_envelope(
    code: str,
    message: str,
    status_code: int = 400,
    resource_kind: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
) -> ErrorEnvelope:
    """Construct an ErrorEnvelope (without raising).

    Args mirror error_response; http_status mirrors status_code.
    """
    error_detail = ErrorDetail(
        code=code,
        message=message,
        http_status=status_code,
        resource_kind=resource_kind,
        details=details or {},
    )
    return ErrorEnvelope(error=error_detail)


def error_response(
    code: str,
    message: str,
    status_code: int = 400,
    resource_kind: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
) -> NoReturn:
    """Construct and raise a standardized error response.

    Args:
        code: Machine-readable error code (e.g., "ingest.store_failed")
        message: Human-readable error message
        status_code: HTTP status code (default 400)
        resource_kind: The resource type (ingest, metacard)
        details: Additional context dict

    Raises:
        HTTPException with canonical error envelope body
    """
    envelope = build_error_envelope(
        code=code,
        message=message,
        status_code=status_code,
        resource_kind=resource_kind,
        details=details,
    )
    raise HTTPException(status_code=status_code, detail=envelope.model_dump())


async def _http_exception_handler(request: Request, exc: HTTPException):
    # Pass through envelopes built by error_response
    detail = exc.detail
    if isinstance(detail, dict) and "error" in detail:
        return JSONResponse(content=detail, status_code=exc.status_code, headers=exc.headers)

    envelope = build_error_envelope(
        code="http.exception",
        message=str(detail) if detail else "HTTP exception",
        status_code=exc.status_code,
    )
    return JSONResponse(content=envelope.model_dump(), status_code=exc.status_code, headers=exc.headers)


async def _validation_exception_handler(request: Request, exc: RequestValidationError):
    envelope = build_error_envelope(
        code="validation.error",
        message="Validation failed",
        status_code=400,
        details={"errors": [{"loc": list(e.get("loc", ())), "msg": e.get("msg")} for e in exc.errors()]},
    )
    return JSONResponse(content=envelope.model_dump(), status_code=400)


async def _generic_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    envelope = build_error_envelope(
        code="internal.error",
        message="Internal server error",
        status_code=500,
    )
    return JSONResponse(content=envelope.model_dump(), status_code=500)


def register_error_handlers(target_app: FastAPI) -> None:
    target_app.add_exception_handler(HTTPException, _http_exception_handler)
    target_app.add_exception_handler(RequestValidationError, _validation_exception_handler)
    target_app.add_exception_handler(Exception, _generic_exception_handler)
