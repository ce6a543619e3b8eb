"""Metacard blob store."""
from gateway.metacard_store.models import METACARD_MEDIA_TYPE, MetacardRetrieveResponse
from gateway.metacard_store.repository import (
    InMemoryMetacardStorageAdaptor,
    MetacardStorageAdaptor,
    S3MetacardStorageAdaptor,
    create_s3_client,
)

__all__ = [
    "METACARD_MEDIA_TYPE",
    "MetacardRetrieveResponse",
    "MetacardStorageAdaptor",
    "S3MetacardStorageAdaptor",
    "InMemoryMetacardStorageAdaptor",
    "create_s3_client",
]
