"""
Rendering / navigation metrics reported alongside the throughput probes.

Reporters push ``(name, value)`` events into a ``MetricsChannel``; the
session controller drains the channel on its own task, independently of
the measurement sequence.
"""
from __future__ import annotations

import asyncio
import logging
import os
import platform
import time
from typing import Optional, Tuple

import aiohttp

from .constants import DEFAULT_TIMEOUT

LOGGER = logging.getLogger(__name__)

MetricEvent = Tuple[str, float]


class MetricsChannel:
    """Unbounded queue of metric events with an explicit end marker."""

    def __init__(self) -> None:
        self._queue: asyncio.Queue[Optional[MetricEvent]] = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def publish(self, name: str, value: float) -> None:
        if self._closed:
            raise RuntimeError("Cannot publish to a closed MetricsChannel")
        self._queue.put_nowait((name, value))

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            self._queue.put_nowait(None)

    async def get(self) -> Optional[MetricEvent]:
        """Next event, or ``None`` once the channel is closed and drained."""
        return await self._queue.get()


class NavigationTimingReporter:
    """
    Times a page load and reports it the way a browser's navigation
    timing entry would: ``TTFB`` when the response headers arrive and
    ``navigationTime`` when the body is done, both in milliseconds.
    """

    def __init__(self, channel: MetricsChannel, url: str, timeout: float = DEFAULT_TIMEOUT) -> None:
        self.channel = channel
        self.url = url
        self.timeout = timeout

    async def report(self) -> bool:
        """Publish navigation metrics.  Returns ``False`` if the page failed."""
        timeout = aiohttp.ClientTimeout(total=self.timeout)
        start = time.perf_counter()

        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.get(self.url) as resp:
                    ttfb_ms = (time.perf_counter() - start) * 1000
                    await resp.read()
                    navigation_ms = (time.perf_counter() - start) * 1000
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as exc:
            LOGGER.warning("Navigation timing for %s failed: %s", self.url, exc)
            return False

        self.channel.publish("TTFB", ttfb_ms)
        self.channel.publish("navigationTime", navigation_ms)
        return True


def describe_device() -> str:
    """One-line description of the machine running the benchmark."""
    system = f"{platform.system()} {platform.release()}".strip() or "unknown OS"
    runtime = f"{platform.python_implementation()} {platform.python_version()}"
    return f"{system}, {runtime}, CPU: {os.cpu_count() or 1} threads"
