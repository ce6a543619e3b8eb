"""Ingest pipeline: validation, service and HTTP routes."""
from gateway.ingest.service import INVALID_RETRIEVE_URL_REASON, IngestService

__all__ = ["INVALID_RETRIEVE_URL_REASON", "IngestService"]
