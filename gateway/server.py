"""Application factory for the ingest gateway.

Everything is wired here, once, from an explicit GatewaySettings:
metacard adaptor, store client, transform client, then the ingest service.

Run with: uvicorn --factory gateway.server:create_app
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI

from gateway import __version__
from gateway.common.error_envelope import register_error_handlers
from gateway.common.health import router as health_router
from gateway.config.settings import GatewaySettings
from gateway.ingest.routes import router as ingest_router
from gateway.ingest.service import IngestService
from gateway.metacard_store.repository import (
    MetacardStorageAdaptor,
    S3MetacardStorageAdaptor,
    create_s3_client,
)
from gateway.remote.store_client import StoreClient
from gateway.remote.transform_client import TransformClient

logger = logging.getLogger(__name__)

HTTP_TIMEOUT_SECONDS = 30.0


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def build_ingest_service(
    settings: GatewaySettings,
    http: httpx.Client,
    metacard_adaptor: Optional[MetacardStorageAdaptor] = None,
) -> IngestService:
    if metacard_adaptor is None:
        s3 = create_s3_client(
            endpoint_url=settings.s3_endpoint,
            region=settings.s3_region,
            access_key=settings.s3_access_key,
            secret_key=settings.s3_secret_key,
        )
        metacard_adaptor = S3MetacardStorageAdaptor(s3, settings.s3_bucket)
    return IngestService(
        store_client=StoreClient(http, settings.store_endpoint),
        metacard_adaptor=metacard_adaptor,
        retrieve_endpoint=settings.retrieve_endpoint,
        transform_client=TransformClient(http, settings.transform_endpoint, settings.transform_api_version),
    )


def create_app(
    settings: Optional[GatewaySettings] = None,
    *,
    http: Optional[httpx.Client] = None,
    metacard_adaptor: Optional[MetacardStorageAdaptor] = None,
) -> FastAPI:
    """Build the gateway app.

    ``http`` and ``metacard_adaptor`` default to real network clients; tests
    pass in-memory ones.
    """
    if settings is None:
        settings = GatewaySettings.from_env()
        configure_logging(settings.log_level)
    settings.require_complete(include_s3_credentials=metacard_adaptor is None and bool(settings.s3_endpoint))

    owns_http = http is None
    if http is None:
        http = httpx.Client(timeout=HTTP_TIMEOUT_SECONDS)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        if owns_http:
            http.close()
        logger.info("Ingest gateway shut down")

    app = FastAPI(title="Metacard Ingest Gateway", version=__version__, lifespan=lifespan)
    register_error_handlers(app)
    app.state.settings = settings
    app.state.ingest_service = build_ingest_service(settings, http, metacard_adaptor)

    # Health first: GET /{metacard_id} would otherwise claim /health
    app.include_router(health_router)
    app.include_router(ingest_router)

    logger.info(
        "Ingest gateway ready store=%s transform=%s bucket=%s",
        settings.store_endpoint,
        settings.transform_endpoint,
        settings.s3_bucket,
    )
    return app
