"""Metacard store data models."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterator

from gateway.common.streams import CHUNK_SIZE, close_quietly

METACARD_MEDIA_TYPE = "application/xml"


@dataclass
class MetacardRetrieveResponse:
    """
    A stored metacard's bytes plus the media type recorded when it was stored.

    The backend owns the bytes; this response owns ``stream`` until the caller
    has read and closed it.
    """
    stream: Any
    media_type: str

    def read(self) -> bytes:
        return self.stream.read()

    def iter_chunks(self, chunk_size: int = CHUNK_SIZE) -> Iterator[bytes]:
        while True:
            chunk = self.stream.read(chunk_size)
            if not chunk:
                return
            yield chunk

    def close(self) -> None:
        close_quietly(self.stream, "metacard")

    def __enter__(self) -> "MetacardRetrieveResponse":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
