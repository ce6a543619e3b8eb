"""Start-up settings for the ingest gateway.

Built once at process start and handed to ``create_app``; nothing downstream
reads the environment.
"""
from __future__ import annotations

from dataclasses import dataclass, fields
from typing import List, Optional

from gateway.config import runtime_config


class ConfigError(RuntimeError):
    """Raised when required configuration is missing."""


@dataclass(frozen=True)
class GatewaySettings:
    store_endpoint: Optional[str]
    transform_endpoint: Optional[str]
    transform_api_version: Optional[str]
    retrieve_endpoint: Optional[str]
    s3_endpoint: Optional[str]
    s3_region: str
    s3_access_key: Optional[str]
    s3_secret_key: Optional[str]
    s3_bucket: Optional[str]
    log_level: str = runtime_config.DEFAULT_LOG_LEVEL

    @classmethod
    def from_env(cls) -> "GatewaySettings":
        return cls(
            store_endpoint=runtime_config.get_store_endpoint(),
            transform_endpoint=runtime_config.get_transform_endpoint(),
            transform_api_version=runtime_config.get_transform_api_version(),
            retrieve_endpoint=runtime_config.get_retrieve_endpoint(),
            s3_endpoint=runtime_config.get_s3_endpoint(),
            s3_region=runtime_config.get_s3_region(),
            s3_access_key=runtime_config.get_s3_access_key(),
            s3_secret_key=runtime_config.get_s3_secret_key(),
            s3_bucket=runtime_config.get_s3_bucket(),
            log_level=runtime_config.get_log_level(),
        )

    def missing(self, include_s3_credentials: bool = True) -> List[str]:
        """Names of required options that are unset."""
        optional = {"s3_endpoint", "log_level", "s3_region"}
        if not include_s3_credentials:
            optional |= {"s3_access_key", "s3_secret_key"}
        return [f.name for f in fields(self) if f.name not in optional and not getattr(self, f.name)]

    def require_complete(self, include_s3_credentials: bool = True) -> "GatewaySettings":
        missing = self.missing(include_s3_credentials=include_s3_credentials)
        if missing:
            raise ConfigError(f"missing gateway configuration: {', '.join(missing)}")
        return self
