"""
Measurement and session data models.

``MeasurementResult`` is derived per transfer and never persisted.
``SessionState`` is owned by the session controller; everything else
only ever sees snapshots of it.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from .stats import calculate_bitrate


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class Direction(str, Enum):
    DOWNLOAD = "download"
    UPLOAD = "upload"


class ErrorKind(str, Enum):
    NETWORK_FAILURE = "network_failure"
    TIMEOUT = "timeout"


class SessionStatus(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETE = "complete"
    FAILED = "failed"


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class MeasurementError(Exception):
    """A single probe transfer could not be measured."""

    def __init__(self, direction: Direction, kind: ErrorKind, message: str) -> None:
        super().__init__(message)
        self.direction = direction
        self.kind = kind

    def __repr__(self) -> str:
        return f"MeasurementError({self.direction.value}, {self.kind.value}, {str(self)!r})"


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

@dataclass
class MeasurementResult:
    """Outcome of one timed probe transfer."""

    direction: Direction
    bytes_transferred: int = 0
    duration_seconds: float = 0.0
    bitrate_mbps: float = 0.0
    started_at: float = 0.0     # time.perf_counter() at request start
    finished_at: float = 0.0    # time.perf_counter() once the body is done

    @classmethod
    def from_timing(
        cls,
        direction: Direction,
        bytes_transferred: int,
        started_at: float,
        finished_at: float,
    ) -> MeasurementResult:
        result = cls(
            direction=direction,
            bytes_transferred=bytes_transferred,
            duration_seconds=finished_at - started_at,
            started_at=started_at,
            finished_at=finished_at,
        )
        result.calculate()
        return result

    def calculate(self) -> None:
        """Derive bitrate from total bytes and wall-clock duration."""
        self.bitrate_mbps = calculate_bitrate(self.bytes_transferred, self.duration_seconds)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "direction": self.direction.value,
            "bytes": self.bytes_transferred,
            "duration_seconds": round(self.duration_seconds, 4),
            "bitrate_mbps": round(self.bitrate_mbps, 2),
        }


@dataclass
class SessionState:
    """Latest results of a session plus externally reported metrics."""

    status: SessionStatus = SessionStatus.IDLE
    reason: Optional[str] = None
    download: Optional[MeasurementResult] = None
    upload: Optional[MeasurementResult] = None
    errors: Dict[str, str] = field(default_factory=dict)
    rendering_metrics: Dict[str, float] = field(default_factory=dict)
    device_info: Optional[str] = None
    run_id: int = 0
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    @property
    def is_running(self) -> bool:
        return self.status is SessionStatus.RUNNING

    def result_for(self, direction: Direction) -> Optional[MeasurementResult]:
        return self.download if direction is Direction.DOWNLOAD else self.upload

    def snapshot(self) -> SessionState:
        # Results are replaced, never mutated, once stored; copying the
        # containers is enough to decouple readers.
        return replace(
            self,
            errors=dict(self.errors),
            rendering_metrics=dict(self.rendering_metrics),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "reason": self.reason,
            "run_id": self.run_id,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "download": self.download.to_dict() if self.download else None,
            "upload": self.upload.to_dict() if self.upload else None,
            "errors": dict(self.errors),
            "rendering_metrics": dict(self.rendering_metrics),
            "device_info": self.device_info,
        }
