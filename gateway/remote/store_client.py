"""Client for the remote store service that keeps the primary file."""
from __future__ import annotations

import logging
from typing import BinaryIO

import httpx

from gateway.common.errors import StoreError

logger = logging.getLogger(__name__)


class StoreClient:
    """POSTs the file to the store endpoint; the response's Location is where it lives."""

    def __init__(self, http: httpx.Client, store_endpoint: str) -> None:
        self._http = http
        self.store_endpoint = store_endpoint

    def store(self, size: int, media_type: str, stream: BinaryIO, file_name: str) -> str:
        try:
            response = self._http.post(
                self.store_endpoint,
                data={"fileSize": str(size)},
                files={"file": (file_name, stream, media_type)},
            )
        except (httpx.HTTPError, OSError) as exc:
            raise StoreError(f"Unable to send {file_name} to the store service: {exc}") from exc

        if not response.is_success:
            raise StoreError(
                f"Store service rejected {file_name} with status {response.status_code}"
            )

        location = response.headers.get("Location")
        if not location:
            raise StoreError(f"Store service accepted {file_name} but returned no Location")

        logger.info("Stored file fileName=%s location=%s", file_name, location)
        return location
