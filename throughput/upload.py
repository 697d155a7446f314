"""
Upload probe measurement.
Uses a single HTTP POST of a fixed-size body to measure upload speed.
"""
from __future__ import annotations

import asyncio
import json
import time

import aiohttp

from .constants import OCTET_STREAM, UPLOAD_SIZE_BYTES
from .models import Direction, ErrorKind, MeasurementError, MeasurementResult


def _error_message(text: str) -> str:
    """Pull ``message`` out of an error body, falling back to the raw text."""
    try:
        body = json.loads(text)
    except ValueError:
        return text.strip()[:200] or "no message"
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return "no message"


class UploadTester:
    """
    Single-shot upload tester.
    The timing window ends when the server's receipt arrives, not when the
    last byte leaves the socket.
    """

    HEADERS = {
        "Content-Type": OCTET_STREAM,
    }

    def __init__(self, size_bytes: int = UPLOAD_SIZE_BYTES):
        self.size_bytes = size_bytes

    def _build_payload(self) -> bytes:
        # Content is irrelevant to the measurement
        return bytes(self.size_bytes)

    async def measure(self, session: aiohttp.ClientSession, url: str) -> MeasurementResult:
        """Perform upload measurement."""
        payload = self._build_payload()
        start_time = time.perf_counter()

        try:
            async with session.post(url, data=payload, headers=self.HEADERS) as resp:
                if resp.status != 200:
                    text = await resp.text()
                    raise MeasurementError(
                        Direction.UPLOAD,
                        ErrorKind.NETWORK_FAILURE,
                        f"upload probe returned HTTP {resp.status}: {_error_message(text)}",
                    )
                body = await resp.json(content_type=None)
        except asyncio.TimeoutError as exc:
            raise MeasurementError(
                Direction.UPLOAD, ErrorKind.TIMEOUT, "upload probe timed out"
            ) from exc
        except (aiohttp.ClientError, OSError, ValueError) as exc:
            raise MeasurementError(
                Direction.UPLOAD,
                ErrorKind.NETWORK_FAILURE,
                f"upload probe failed: {exc}",
            ) from exc

        end_time = time.perf_counter()

        received = body.get("receivedBytes") if isinstance(body, dict) else None
        if received != self.size_bytes:
            raise MeasurementError(
                Direction.UPLOAD,
                ErrorKind.NETWORK_FAILURE,
                f"server confirmed {received} bytes, sent {self.size_bytes}",
            )

        return MeasurementResult.from_timing(
            Direction.UPLOAD, self.size_bytes, start_time, end_time
        )
