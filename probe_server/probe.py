"""
Probe payloads and upload draining.

Protocol:
- Download: the server sends a fixed-size zero-filled body with an exact
  ``Content-Length``; the client times how long it takes to drain it.
- Upload: the client sends an arbitrary body; the server reads every byte
  before answering with the count, so the client's timer covers the whole
  transfer.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import AsyncIterator, Optional, Protocol

import aiohttp
from aiohttp.http_exceptions import HttpProcessingError

from throughput.constants import CHUNK_SIZE

LOGGER = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class ProbeError(Exception):
    """Base class for upload probe failures."""


class TransferError(ProbeError):
    """The request body was malformed or ended early."""


class InternalError(ProbeError):
    """Unexpected fault while processing the request body."""


# ---------------------------------------------------------------------------
# Data models
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ProbePayload:
    """Opaque download body.  Only its length matters."""

    data: bytes

    @property
    def content_length(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class UploadReceipt:
    received_bytes: int

    def to_dict(self) -> dict:
        return {"status": "success", "receivedBytes": self.received_bytes}


class BodyStream(Protocol):
    def iter_chunked(self, n: int) -> AsyncIterator[bytes]: ...


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------

def get_download_probe(size: int) -> ProbePayload:
    """Build a fresh zero-filled payload of exactly *size* bytes."""
    if size < 0:
        raise ValueError(f"Probe size must be >= 0, got {size}")
    return ProbePayload(bytes(size))


async def receive_upload_probe(
    stream: BodyStream,
    declared_length: Optional[int] = None,
    chunk_size: int = CHUNK_SIZE,
) -> UploadReceipt:
    """
    Drain *stream* to the end and return how many bytes arrived.

    Raises ``TransferError`` if the body breaks off or does not match
    *declared_length*, and ``InternalError`` for anything else.
    """
    received = 0

    try:
        async for chunk in stream.iter_chunked(chunk_size):
            received += len(chunk)
    except (
        aiohttp.ClientPayloadError,
        HttpProcessingError,
        asyncio.IncompleteReadError,
        ConnectionResetError,
    ) as exc:
        raise TransferError(f"Upload body ended after {received} bytes: {exc}") from exc
    except Exception as exc:
        raise InternalError(f"Failed to process upload: {exc}") from exc

    if declared_length is not None and received != declared_length:
        raise TransferError(
            f"Upload body truncated: declared {declared_length} bytes, received {received}"
        )

    LOGGER.debug("Upload probe: received %d bytes", received)
    return UploadReceipt(received)
