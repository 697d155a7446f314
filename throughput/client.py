"""
Probe-server client.

All HTTP work goes through a single ``aiohttp.ClientSession`` managed via
async-context-manager protocol
(``async with ThroughputClient(url) as client: ...``).
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import aiohttp

from .constants import (
    DEFAULT_BASE_URL,
    DEFAULT_TIMEOUT,
    DOWNLOAD_PATH,
    DOWNLOAD_SIZE_BYTES,
    HEALTH_PATH,
    UPLOAD_PATH,
    UPLOAD_SIZE_BYTES,
)
from .download import DownloadTester
from .models import MeasurementResult
from .upload import UploadTester

LOGGER = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Data models
# ---------------------------------------------------------------------------

@dataclass
class ProbeInfo:
    """What the probe server reports about itself."""

    status: str
    download_size_bytes: int

    @classmethod
    def from_dict(cls, data: dict) -> ProbeInfo:
        return cls(
            status=str(data.get("status", "")),
            download_size_bytes=int(data.get("downloadSizeBytes", 0)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status,
            "downloadSizeBytes": self.download_size_bytes,
        }


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------

class ThroughputClient:
    """Async context-manager running download and upload probes."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        download_size_bytes: int = DOWNLOAD_SIZE_BYTES,
        upload_size_bytes: int = UPLOAD_SIZE_BYTES,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.downloader = DownloadTester(size_bytes=download_size_bytes)
        self.uploader = UploadTester(size_bytes=upload_size_bytes)
        self._session: Optional[aiohttp.ClientSession] = None

    # -- Context manager ----------------------------------------------------

    async def __aenter__(self) -> ThroughputClient:
        self._session = aiohttp.ClientSession(
            timeout=aiohttp.ClientTimeout(total=self.timeout),
            headers={"Accept-Encoding": "identity"},
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        if self._session:
            await self._session.close()
            self._session = None

    # -- Derived URLs -------------------------------------------------------

    @property
    def download_url(self) -> str:
        return f"{self.base_url}{DOWNLOAD_PATH}"

    @property
    def upload_url(self) -> str:
        return f"{self.base_url}{UPLOAD_PATH}"

    @property
    def health_url(self) -> str:
        return f"{self.base_url}{HEALTH_PATH}"

    # -- Internal helpers ---------------------------------------------------

    def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            raise RuntimeError(
                "ThroughputClient must be used as an async context manager "
                "(async with ThroughputClient(url) as client: ...)"
            )
        return self._session

    # -- Public methods -----------------------------------------------------

    async def measure_download(self) -> MeasurementResult:
        """Time one download probe.  Raises ``MeasurementError`` on failure."""
        session = self._ensure_session()
        result = await self.downloader.measure(session, self.download_url)
        LOGGER.info(
            "Download: %d bytes in %.3fs (%.2f Mbps)",
            result.bytes_transferred, result.duration_seconds, result.bitrate_mbps,
        )
        return result

    async def measure_upload(self) -> MeasurementResult:
        """Time one upload probe.  Raises ``MeasurementError`` on failure."""
        session = self._ensure_session()
        result = await self.uploader.measure(session, self.upload_url)
        LOGGER.info(
            "Upload: %d bytes in %.3fs (%.2f Mbps)",
            result.bytes_transferred, result.duration_seconds, result.bitrate_mbps,
        )
        return result

    async def fetch_probe_info(self) -> ProbeInfo:
        """Read the probe server's health document."""
        session = self._ensure_session()

        async with session.get(self.health_url) as resp:
            resp.raise_for_status()
            data = await resp.json()

        info = ProbeInfo.from_dict(data)
        if info.download_size_bytes != self.downloader.size_bytes:
            LOGGER.warning(
                "Probe server serves %d-byte downloads, client expects %d",
                info.download_size_bytes, self.downloader.size_bytes,
            )
        return info
