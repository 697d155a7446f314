"""
Output formatting -- JSON document and plain text.
"""
from __future__ import annotations

from typing import Any, Dict, Optional

from throughput.models import MeasurementResult, SessionState


def create_result_json(state: SessionState) -> Dict[str, Any]:
    """Build the JSON document printed by ``--json``."""
    result = state.to_dict()
    result["download_mbps"] = _mbps(state.download)
    result["upload_mbps"] = _mbps(state.upload)
    return result


def _mbps(result: Optional[MeasurementResult]) -> Optional[float]:
    return round(result.bitrate_mbps, 2) if result is not None else None


# ---------------------------------------------------------------------------
# Plain-text helpers
# ---------------------------------------------------------------------------

def _speed_line(label: str, result: Optional[MeasurementResult], error: Optional[str]) -> str:
    if result is not None:
        return f"{label}: {result.bitrate_mbps:.2f} Mbps"
    if error:
        return f"{label}: Measuring... ({error})"
    return f"{label}: Measuring..."


def format_text_result(state: SessionState) -> str:
    sep = "=" * 50
    mid = "-" * 50
    lines = [
        sep,
        "ASTRACAT Bench Results",
        sep,
        f"Status: {state.status.value}" + (f" ({state.reason})" if state.reason else ""),
        f"Device: {state.device_info or 'unknown'}",
        mid,
        _speed_line("Download", state.download, state.errors.get("download")),
        _speed_line("Upload", state.upload, state.errors.get("upload")),
    ]

    if state.rendering_metrics:
        lines.append(mid)
        for name, value in sorted(state.rendering_metrics.items()):
            lines.append(f"{name}: {value:.2f}")

    lines.append(sep)
    return "\n".join(lines)
