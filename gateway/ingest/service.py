"""Ingest service: the store file → store metacard → request transform pipeline."""
from __future__ import annotations

import logging
import uuid
from typing import BinaryIO, Optional
from urllib.parse import urlsplit

from gateway.common.errors import IngestValidationError, MetacardStoreError
from gateway.common.streams import close_quietly
from gateway.ingest.models import MAX_UPLOAD_SIZE
from gateway.metacard_store.models import METACARD_MEDIA_TYPE, MetacardRetrieveResponse
from gateway.metacard_store.repository import MetacardStorageAdaptor
from gateway.remote.store_client import StoreClient
from gateway.remote.transform_client import TransformClient

logger = logging.getLogger(__name__)

INVALID_RETRIEVE_URL_REASON = "Unable to construct retrieve URI"

# Characters RFC 3986 refuses outside of percent-encoding
_ILLEGAL_URI_CHARS = frozenset(' "<>\\^`{|}')


def new_metacard_key() -> str:
    """128 random bits, hex without separators."""
    return uuid.uuid4().hex


def build_metacard_location(retrieve_endpoint: str, key: str) -> str:
    """Retrieve base URL + key, rejected unless it is an absolute URI."""
    location = retrieve_endpoint + key
    if any(ch in _ILLEGAL_URI_CHARS or ord(ch) < 0x21 or ord(ch) == 0x7F for ch in location):
        raise MetacardStoreError(INVALID_RETRIEVE_URL_REASON)
    try:
        parts = urlsplit(location)
        # ValueError on a malformed port
        parts.port
    except ValueError as exc:
        raise MetacardStoreError(INVALID_RETRIEVE_URL_REASON) from exc
    if not parts.scheme or not parts.netloc:
        raise MetacardStoreError(INVALID_RETRIEVE_URL_REASON)
    return location


def _check_ingest_args(
    file_size: int,
    media_type: str,
    file_name: str,
    metacard_size: int,
) -> None:
    issues = []
    for field, size in (("file", file_size), ("metacard", metacard_size)):
        if size is None or size < 1 or size > MAX_UPLOAD_SIZE:
            issues.append({"field": field, "message": f"size must be between 1 and {MAX_UPLOAD_SIZE} bytes"})
    if not media_type or not media_type.strip():
        issues.append({"field": "file", "message": "content type is required"})
    if not file_name or not file_name.strip():
        issues.append({"field": "file", "message": "filename is required"})
    if issues:
        raise IngestValidationError("Invalid ingest request", issues)


class IngestService:
    def __init__(
        self,
        store_client: StoreClient,
        metacard_adaptor: MetacardStorageAdaptor,
        retrieve_endpoint: str,
        transform_client: TransformClient,
    ) -> None:
        if not retrieve_endpoint:
            raise ValueError(
                "ENDPOINT_URL_RETRIEVE config missing. "
                "Set it to the base URL metacards are retrieved from."
            )
        self.store_client = store_client
        self.metacard_adaptor = metacard_adaptor
        self.retrieve_endpoint = retrieve_endpoint
        self.transform_client = transform_client

    def ingest(
        self,
        *,
        file_size: int,
        media_type: str,
        file_stream: BinaryIO,
        file_name: str,
        metacard_size: int,
        metacard_stream: BinaryIO,
        metacard_media_type: str = METACARD_MEDIA_TYPE,
        correlation_id: Optional[str] = None,
    ) -> None:
        """
        Store the file, store its metacard, then ask for a transform.

        Steps run strictly in order and the first failure aborts the rest.
        Nothing already stored is rolled back. Both streams are closed on
        every exit path.
        """
        try:
            _check_ingest_args(file_size, media_type, file_name, metacard_size)

            location = self.store_client.store(file_size, media_type, file_stream, file_name)

            key = new_metacard_key()
            # TODO verify the metacard part really is XML before storing it
            self.metacard_adaptor.store(metacard_size, metacard_media_type, metacard_stream, key)
            metacard_location = build_metacard_location(self.retrieve_endpoint, key)

            self.transform_client.request_transform(location, media_type, metacard_location)
        finally:
            close_quietly(file_stream, "file")
            close_quietly(metacard_stream, "metacard")

        logger.info(
            "Successfully submitted a transform request for %s correlationId=%s metacard=%s",
            file_name,
            correlation_id,
            key,
        )

    def retrieve_metacard(self, key: str) -> MetacardRetrieveResponse:
        return self.metacard_adaptor.retrieve(key)
