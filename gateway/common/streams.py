"""Helpers for byte streams handed between the HTTP layer and storage."""
from __future__ import annotations

import logging
from typing import Any, BinaryIO, Optional

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


def close_quietly(stream: Optional[Any], label: str) -> None:
    """Close ``stream``, logging (never raising) a failure to release it."""
    if stream is None:
        return
    try:
        stream.close()
    except Exception as exc:
        logger.warning("Unable to close %s stream: %s", label, exc)


class CountingReader:
    """Read-only wrapper recording how many bytes were pulled from ``raw``."""

    def __init__(self, raw: BinaryIO) -> None:
        self._raw = raw
        self.bytes_read = 0

    def read(self, size: int = -1) -> bytes:
        data = self._raw.read(size)
        self.bytes_read += len(data)
        return data

    def readable(self) -> bool:
        return True

    def seekable(self) -> bool:
        # Forces single forward pass in s3transfer
        return False

    def close(self) -> None:
        self._raw.close()
