"""Clients for the store and transform services."""
from gateway.remote.store_client import StoreClient
from gateway.remote.transform_client import TransformClient

__all__ = ["StoreClient", "TransformClient"]
