"""
Throughput arithmetic and formatting helpers.

Pure functions -- no I/O, no side effects.
Everything here is deterministic and easy to unit-test.
"""
from __future__ import annotations

from typing import Optional

from .constants import MEBIBIT


# ---------------------------------------------------------------------------
# Bitrate
# ---------------------------------------------------------------------------

def calculate_bitrate(
    bytes_transferred: int,
    duration_seconds: float,
    divisor: int = MEBIBIT,
) -> float:
    """
    Bits per second over *duration_seconds*, divided by *divisor*.

    With the default divisor the result is Mbps on the 1024-based scale.
    A non-positive duration yields ``0.0``.
    """
    if bytes_transferred < 0:
        raise ValueError(f"bytes_transferred must be >= 0, got {bytes_transferred}")
    if duration_seconds <= 0:
        return 0.0
    return (bytes_transferred * 8) / duration_seconds / divisor


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------

def format_speed(speed_mbps: float) -> str:
    """Human-readable speed string."""
    if speed_mbps >= 1000:
        return f"{speed_mbps / 1000:.2f} Gbps"
    return f"{speed_mbps:.2f} Mbps"


def format_size(num_bytes: int) -> str:
    """Binary-prefixed size, e.g. ``10.0 MiB``."""
    if num_bytes >= 1024 * 1024:
        return f"{num_bytes / (1024 * 1024):.1f} MiB"
    if num_bytes >= 1024:
        return f"{num_bytes / 1024:.1f} KiB"
    return f"{num_bytes} B"


def format_milliseconds(value_ms: Optional[float]) -> Optional[str]:
    if value_ms is None:
        return None
    return f"{value_ms:.2f} ms"


def format_seconds(value_ms: Optional[float]) -> Optional[str]:
    """Render a millisecond value as seconds."""
    if value_ms is None:
        return None
    return f"{value_ms / 1000:.2f} s"
