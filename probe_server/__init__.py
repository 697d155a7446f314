"""Probe server -- download and upload endpoints for throughput measurement."""

from .app import create_app, run_server
from .probe import (
    InternalError,
    ProbeError,
    ProbePayload,
    TransferError,
    UploadReceipt,
    get_download_probe,
    receive_upload_probe,
)

__all__ = [
    "InternalError",
    "ProbeError",
    "ProbePayload",
    "TransferError",
    "UploadReceipt",
    "create_app",
    "get_download_probe",
    "receive_upload_probe",
    "run_server",
]
