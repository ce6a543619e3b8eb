"""Runtime configuration helpers for the ingest gateway."""
from __future__ import annotations

import os
from typing import Optional

DEFAULT_S3_REGION = "local"
DEFAULT_LOG_LEVEL = "INFO"


def _get_env(name: str, default: Optional[str] = None) -> Optional[str]:
    value = os.getenv(name, default)
    if value is not None and not value.strip():
        return default
    return value


def get_store_endpoint() -> Optional[str]:
    return _get_env("ENDPOINT_URL_STORE")


def get_transform_endpoint() -> Optional[str]:
    return _get_env("ENDPOINT_URL_TRANSFORM")


def get_transform_api_version() -> Optional[str]:
    return _get_env("ENDPOINTS_TRANSFORM_VERSION")


def get_retrieve_endpoint() -> Optional[str]:
    return _get_env("ENDPOINT_URL_RETRIEVE")


def get_s3_endpoint() -> Optional[str]:
    return _get_env("S3_ENDPOINT")


def get_s3_region() -> str:
    return _get_env("S3_REGION") or _get_env("AWS_DEFAULT_REGION") or DEFAULT_S3_REGION


def get_s3_access_key() -> Optional[str]:
    return _get_env("S3_ACCESS_KEY")


def get_s3_secret_key() -> Optional[str]:
    return _get_env("S3_SECRET_KEY")


def get_s3_bucket() -> Optional[str]:
    return _get_env("S3_BUCKET")


def get_log_level() -> str:
    return (_get_env("LOG_LEVEL") or DEFAULT_LOG_LEVEL).upper()


def config_snapshot() -> dict:
    """Return a snapshot of the env-driven config (secrets excluded)."""
    return {
        "store_endpoint": get_store_endpoint(),
        "transform_endpoint": get_transform_endpoint(),
        "transform_api_version": get_transform_api_version(),
        "retrieve_endpoint": get_retrieve_endpoint(),
        "s3_endpoint": get_s3_endpoint(),
        "s3_region": get_s3_region(),
        "s3_bucket": get_s3_bucket(),
        "log_level": get_log_level(),
    }
