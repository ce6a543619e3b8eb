"""Ingest API routes.

Provides:
- POST /ingest: accept a file plus its metacard
- GET /{metacard_id}: stream a stored metacard back
"""
from __future__ import annotations

import logging
from typing import Iterator, NoReturn

from fastapi import APIRouter, Depends, File, Form, Header, Request, Response, UploadFile
from fastapi.responses import StreamingResponse

from gateway.common.error_envelope import error_response
from gateway.common.errors import (
    IngestError,
    IngestValidationError,
    MetacardNotFoundError,
    MetacardStoreError,
    StoreError,
    TransformError,
)
from gateway.common.streams import close_quietly
from gateway.ingest.service import IngestService
from gateway.ingest.validation import validate_ingest_form
from gateway.metacard_store.models import METACARD_MEDIA_TYPE, MetacardRetrieveResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["ingest"])

# Subclasses first; every pipeline failure is a server error
_INGEST_FAILURES = (
    (StoreError, "ingest.store_failed"),
    (MetacardStoreError, "ingest.metacard_store_failed"),
    (TransformError, "ingest.transform_failed"),
)


def get_ingest_service(request: Request) -> IngestService:
    service = getattr(request.app.state, "ingest_service", None)
    if service is None:
        raise RuntimeError("ingest service is not configured on this app")
    return service


def _raise_ingest_failure(exc: IngestError) -> NoReturn:
    if isinstance(exc, IngestValidationError):
        error_response(
            code="ingest.validation_failed",
            message=str(exc),
            status_code=400,
            resource_kind="ingest",
            details={"issues": exc.issues},
        )
    for kind, code in _INGEST_FAILURES:
        if isinstance(exc, kind):
            error_response(code=code, message=str(exc), status_code=500, resource_kind="ingest")
    error_response(code="ingest.failed", message=str(exc), status_code=500, resource_kind="ingest")


@router.post("/ingest", status_code=202, response_class=Response)
def ingest(
    file: UploadFile | None = File(None),
    metacard: UploadFile | None = File(None),
    correlation_id: str | None = Form(None, alias="correlationId"),
    accept_version: str | None = Header(None, alias="Accept-Version"),
    last_modified: str | None = Header(None, alias="Last-Modified"),
    service: IngestService = Depends(get_ingest_service),
) -> Response:
    """Ingest a file and its metacard; 202 with no body once the transform is requested."""
    try:
        result = validate_ingest_form(file, metacard, correlation_id, accept_version, last_modified)
        if not result.ok:
            logger.info("Rejected ingest request: %s", [i.model_dump() for i in result.issues])
            error_response(
                code="ingest.validation_failed",
                message="Invalid ingest request",
                status_code=400,
                resource_kind="ingest",
                details={"issues": [i.model_dump() for i in result.issues]},
            )

        req = result.request
        logger.info(
            "Ingest request received fileName=%s correlationId=%s lastModified=%s",
            req.file_name,
            req.correlation_id,
            req.last_modified.isoformat(),
        )
        try:
            service.ingest(
                file_size=req.file_size,
                media_type=req.file_media_type,
                file_stream=req.file_stream,
                file_name=req.file_name,
                metacard_size=req.metacard_size,
                metacard_stream=req.metacard_stream,
                metacard_media_type=req.metacard_media_type,
                correlation_id=req.correlation_id,
            )
        except IngestError as exc:
            logger.warning(
                "Ingest failed fileName=%s correlationId=%s: %s", req.file_name, req.correlation_id, exc
            )
            _raise_ingest_failure(exc)
    finally:
        close_quietly(file.file if file is not None else None, "file")
        close_quietly(metacard.file if metacard is not None else None, "metacard")

    return Response(status_code=202)


def _stream_and_close(response: MetacardRetrieveResponse) -> Iterator[bytes]:
    try:
        yield from response.iter_chunks()
    finally:
        response.close()


@router.get("/{metacard_id}")
def retrieve_metacard(
    metacard_id: str,
    service: IngestService = Depends(get_ingest_service),
):
    # Not-found stays a 500 like any other storage failure; only the code differs
    try:
        response = service.retrieve_metacard(metacard_id)
    except MetacardNotFoundError as exc:
        logger.warning("Unable to retrieve metacard id=%s: %s", metacard_id, exc)
        error_response(
            code="metacard.not_found",
            message="Unable to retrieve metacard",
            status_code=500,
            resource_kind="metacard",
            details={"id": metacard_id},
        )
    except MetacardStoreError as exc:
        logger.warning("Unable to retrieve metacard id=%s: %s", metacard_id, exc)
        error_response(
            code="metacard.retrieve_failed",
            message="Unable to retrieve metacard",
            status_code=500,
            resource_kind="metacard",
            details={"id": metacard_id},
        )

    try:
        streaming = StreamingResponse(_stream_and_close(response), media_type=METACARD_MEDIA_TYPE)
    except Exception:
        response.close()
        raise
    logger.info("Successfully retrieved metacard id=%s", metacard_id)
    return streaming
