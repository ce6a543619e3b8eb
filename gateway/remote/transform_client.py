"""Client for the remote transform service."""
from __future__ import annotations

import logging
from typing import Any, Dict

import httpx

from gateway.common.errors import TransformError

logger = logging.getLogger(__name__)


class TransformClient:
    def __init__(self, http: httpx.Client, transform_endpoint: str, api_version: str) -> None:
        self._http = http
        self.transform_endpoint = transform_endpoint
        self.api_version = api_version

    def request_transform(self, location: str, mime_type: str, metacard_location: str) -> Dict[str, Any]:
        """
        Tell the transform service that ``location`` is ready to be processed.

        Only 202 Accepted counts as success; every other status, and any
        transport failure, raises TransformError.
        """
        body = {
            "location": location,
            "mimeType": mime_type,
            "metacardLocation": metacard_location,
        }
        try:
            response = self._http.post(
                self.transform_endpoint,
                json=body,
                headers={"Accept-Version": self.api_version},
            )
        except httpx.HTTPError as exc:
            raise TransformError(f"Unable to reach the transform service: {exc}") from exc

        if response.status_code != httpx.codes.ACCEPTED:
            raise TransformError(
                f"Transform service returned status {response.status_code} for {location}"
            )

        try:
            ack = response.json()
        except ValueError:
            ack = {}
        logger.debug("Transform acknowledged location=%s ack=%s", location, ack)
        return ack if isinstance(ack, dict) else {"body": ack}
