"""Metacard storage adaptor interface and S3 implementation."""
from __future__ import annotations

import io
import logging
import threading
from typing import BinaryIO, Dict, Optional, Protocol, Tuple

import boto3
from boto3.exceptions import S3UploadFailedError
from boto3.s3.transfer import TransferConfig
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from gateway.common.errors import MetacardNotFoundError, MetacardStoreError
from gateway.common.streams import CHUNK_SIZE, CountingReader
from gateway.metacard_store.models import METACARD_MEDIA_TYPE, MetacardRetrieveResponse

logger = logging.getLogger(__name__)

_NOT_FOUND_CODES = {"NoSuchKey", "404", "NotFound"}


class MetacardStorageAdaptor(Protocol):
    """Abstract interface for metacard blob storage."""

    def store(self, size: int, media_type: str, stream: BinaryIO, key: str) -> None:
        """
        Store ``stream`` under ``key``.
        Raises MetacardStoreError if the stream can't be read, the backend
        rejects the write, or fewer/more than ``size`` bytes were written.
        """
        ...

    def retrieve(self, key: str) -> MetacardRetrieveResponse:
        """
        Fetch the metacard stored under ``key``.
        Raises MetacardNotFoundError when nothing is stored under ``key``.
        """
        ...


def _size_mismatch(key: str, declared: int, written: int) -> MetacardStoreError:
    return MetacardStoreError(
        f"Metacard {key} declared {declared} bytes but {written} bytes were written"
    )


def create_s3_client(
    endpoint_url: Optional[str] = None,
    region: Optional[str] = None,
    access_key: Optional[str] = None,
    secret_key: Optional[str] = None,
):
    """Build an S3 client; path-style addressing keeps MinIO-style endpoints working."""
    session = boto3.Session(
        aws_access_key_id=access_key,
        aws_secret_access_key=secret_key,
        region_name=region,
    )
    return session.client(
        "s3",
        endpoint_url=endpoint_url,
        config=Config(s3={"addressing_style": "path"}),
    )


class S3MetacardStorageAdaptor:
    """S3-backed metacard storage.

    The bucket must already exist; this adaptor never creates it.
    Uploads run single-threaded so the source stream has exactly one reader.
    """

    def __init__(self, client, bucket_name: Optional[str]) -> None:
        if not bucket_name:
            raise ValueError(
                "S3_BUCKET config missing. "
                "Set S3_BUCKET env var to the bucket metacards are stored in."
            )
        self.client = client
        self.bucket_name = bucket_name
        self._transfer_config = TransferConfig(use_threads=False)

    def store(self, size: int, media_type: str, stream: BinaryIO, key: str) -> None:
        reader = CountingReader(stream)
        try:
            self.client.upload_fileobj(
                reader,
                self.bucket_name,
                key,
                ExtraArgs={"ContentType": media_type},
                Config=self._transfer_config,
            )
        except OSError as exc:
            raise MetacardStoreError(f"Unable to read metacard {key}: {exc}") from exc
        except (BotoCoreError, ClientError, S3UploadFailedError) as exc:
            raise MetacardStoreError(f"Unable to store metacard {key}: {exc}") from exc

        if reader.bytes_read != size:
            # The object stays in the bucket as written
            raise _size_mismatch(key, size, reader.bytes_read)
        logger.info("Stored metacard key=%s bytes=%d bucket=%s", key, size, self.bucket_name)

    def retrieve(self, key: str) -> MetacardRetrieveResponse:
        try:
            response = self.client.get_object(Bucket=self.bucket_name, Key=key)
        except ClientError as exc:
            code = str(exc.response.get("Error", {}).get("Code", ""))
            if code in _NOT_FOUND_CODES:
                raise MetacardNotFoundError(key) from exc
            raise MetacardStoreError(f"Unable to retrieve metacard {key}: {exc}") from exc
        except BotoCoreError as exc:
            raise MetacardStoreError(f"Unable to retrieve metacard {key}: {exc}") from exc

        return MetacardRetrieveResponse(
            stream=response["Body"],
            media_type=response.get("ContentType") or METACARD_MEDIA_TYPE,
        )


class InMemoryMetacardStorageAdaptor:
    """In-memory metacard storage for dev runs and tests; same contract as S3."""

    def __init__(self) -> None:
        self.objects: Dict[str, Tuple[bytes, str]] = {}
        self._lock = threading.Lock()

    def store(self, size: int, media_type: str, stream: BinaryIO, key: str) -> None:
        buffer = bytearray()
        try:
            while True:
                chunk = stream.read(CHUNK_SIZE)
                if not chunk:
                    break
                buffer.extend(chunk)
        except OSError as exc:
            raise MetacardStoreError(f"Unable to read metacard {key}: {exc}") from exc

        with self._lock:
            self.objects[key] = (bytes(buffer), media_type)
        if len(buffer) != size:
            raise _size_mismatch(key, size, len(buffer))

    def retrieve(self, key: str) -> MetacardRetrieveResponse:
        with self._lock:
            stored = self.objects.get(key)
        if stored is None:
            raise MetacardNotFoundError(key)
        content, media_type = stored
        return MetacardRetrieveResponse(stream=io.BytesIO(content), media_type=media_type)
