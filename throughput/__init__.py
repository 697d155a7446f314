"""Throughput client library -- probes, timing, and session state."""

from .client import ProbeInfo, ThroughputClient
from .download import DownloadTester
from .models import (
    Direction,
    ErrorKind,
    MeasurementError,
    MeasurementResult,
    SessionState,
    SessionStatus,
)
from .session import SessionController
from .stats import calculate_bitrate, format_size, format_speed
from .upload import UploadTester
from .vitals import MetricsChannel, NavigationTimingReporter, describe_device

__all__ = [
    "Direction",
    "DownloadTester",
    "ErrorKind",
    "MeasurementError",
    "MeasurementResult",
    "MetricsChannel",
    "NavigationTimingReporter",
    "ProbeInfo",
    "SessionController",
    "SessionState",
    "SessionStatus",
    "ThroughputClient",
    "UploadTester",
    "calculate_bitrate",
    "describe_device",
    "format_size",
    "format_speed",
]
