"""
Download probe measurement.

A single GET against the probe server's download endpoint.  The clock
starts before the request is issued and stops only once the body has been
drained, so the result covers the full transfer rather than the headers.
"""
from __future__ import annotations

import asyncio
import time

import aiohttp

from .constants import CHUNK_SIZE, DOWNLOAD_SIZE_BYTES
from .models import Direction, ErrorKind, MeasurementError, MeasurementResult


class DownloadTester:
    """
    Single-shot download tester.

    The payload size is known up front; bitrate is computed from it rather
    than from the ``Content-Length`` header.  A body that drains to a
    different byte count is treated as a failed transfer.
    """

    def __init__(self, size_bytes: int = DOWNLOAD_SIZE_BYTES) -> None:
        self.size_bytes = size_bytes

    async def measure(self, session: aiohttp.ClientSession, url: str) -> MeasurementResult:
        received = 0
        start_time = time.perf_counter()

        try:
            async with session.get(url, headers={"Cache-Control": "no-store"}) as resp:
                if resp.status != 200:
                    raise MeasurementError(
                        Direction.DOWNLOAD,
                        ErrorKind.NETWORK_FAILURE,
                        f"download probe returned HTTP {resp.status}",
                    )
                async for chunk in resp.content.iter_chunked(CHUNK_SIZE):
                    received += len(chunk)

        except asyncio.TimeoutError as exc:
            raise MeasurementError(
                Direction.DOWNLOAD, ErrorKind.TIMEOUT, "download probe timed out"
            ) from exc
        except (aiohttp.ClientError, OSError) as exc:
            raise MeasurementError(
                Direction.DOWNLOAD,
                ErrorKind.NETWORK_FAILURE,
                f"download probe failed: {exc}",
            ) from exc

        end_time = time.perf_counter()

        if received != self.size_bytes:
            raise MeasurementError(
                Direction.DOWNLOAD,
                ErrorKind.NETWORK_FAILURE,
                f"expected {self.size_bytes} bytes, received {received}",
            )

        return MeasurementResult.from_timing(
            Direction.DOWNLOAD, self.size_bytes, start_time, end_time
        )
