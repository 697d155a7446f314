"""
Session controller -- runs the download/upload sequence and owns the
``SessionState`` every presentation layer reads.

State machine::

    IDLE / COMPLETE / FAILED  --run_session()-->  RUNNING
    RUNNING  --sequence finished-->     COMPLETE
    RUNNING  --unexpected exception-->  FAILED(reason)
    RUNNING  --cancel() / restart-->    IDLE

A failed probe is not a failed session: its result stays ``None`` and an
error message is attached, and the session still ends COMPLETE.

At most one run is active per controller.  A second ``run_session()``
while RUNNING is a logged no-op; ``run_session(restart=True)`` cancels the
active run and waits for it to stop before the new timing window opens.
"""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Awaitable, Callable, List, Optional, Protocol, Tuple

from .models import (
    Direction,
    MeasurementError,
    MeasurementResult,
    SessionState,
    SessionStatus,
)
from .vitals import MetricsChannel, describe_device

LOGGER = logging.getLogger(__name__)

Listener = Callable[[SessionState], None]


class ProbeClient(Protocol):
    async def measure_download(self) -> MeasurementResult: ...

    async def measure_upload(self) -> MeasurementResult: ...


class SessionController:
    """Single-flight owner of one benchmark session."""

    def __init__(
        self,
        client: ProbeClient,
        device_describer: Callable[[], str] = describe_device,
    ) -> None:
        self.client = client
        self._describe_device = device_describer
        self._state = SessionState()
        self._task: Optional[asyncio.Task] = None
        self._lock = asyncio.Lock()
        self._phase: Optional[Direction] = None
        self._initialized = False
        self._listeners: List[Listener] = []

    # -- Read side ----------------------------------------------------------

    @property
    def state(self) -> SessionState:
        """Snapshot of the current state; safe to call while RUNNING."""
        return self._state.snapshot()

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call *listener* with a snapshot after every change.  Returns an unsubscribe."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _notify(self) -> None:
        snapshot = self._state.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                LOGGER.exception("Session listener %r failed", listener)

    # -- Lifecycle ----------------------------------------------------------

    async def initialize(self) -> SessionState:
        """Fill in device info and run the first session.  Later calls are no-ops."""
        if self._initialized:
            return self.state
        self._initialized = True
        self._state.device_info = self._describe_device()
        self._notify()
        return await self.run_session()

    async def run_session(self, *, restart: bool = False) -> SessionState:
        """Run download then upload, returning the resulting state."""
        async with self._lock:
            if self.is_running:
                if not restart:
                    LOGGER.info("Session %d already running; trigger ignored", self._state.run_id)
                    return self.state
                LOGGER.info("Restarting session %d", self._state.run_id)
                await self._cancel_active()
            task = asyncio.create_task(self._run())
            self._task = task

        try:
            await asyncio.wait({task})
        except asyncio.CancelledError:
            task.cancel()
            await asyncio.wait({task})
            raise

        if task.cancelled():
            return self.state
        return task.result()

    async def cancel(self) -> SessionState:
        """Abort the active run, if any, and wait until it has stopped."""
        async with self._lock:
            await self._cancel_active()
        return self.state

    async def _cancel_active(self) -> None:
        task = self._task
        if task is None or task.done():
            return
        task.cancel()
        await asyncio.wait({task})

    # -- The measurement sequence -------------------------------------------

    async def _run(self) -> SessionState:
        phases: List[Tuple[Direction, Callable[[], Awaitable[MeasurementResult]]]] = [
            (Direction.DOWNLOAD, self.client.measure_download),
            (Direction.UPLOAD, self.client.measure_upload),
        ]

        try:
            self._begin()
            for direction, measure in phases:
                self._phase = direction
                try:
                    result = await measure()
                except MeasurementError as exc:
                    self._record_error(direction, f"Failed to measure {direction.value} speed: {exc}")
                else:
                    self._record_result(result)
            self._phase = None
            self._complete()
        except asyncio.CancelledError:
            self._abort()
            raise
        except Exception as exc:
            LOGGER.exception("Session %d failed", self._state.run_id)
            self._fail(str(exc) or type(exc).__name__)

        return self.state

    # -- Transitions --------------------------------------------------------

    def _begin(self) -> None:
        previous = self._state
        self._state = SessionState(
            status=SessionStatus.RUNNING,
            rendering_metrics=previous.rendering_metrics,
            device_info=previous.device_info,
            run_id=previous.run_id + 1,
            started_at=datetime.now(timezone.utc),
        )
        self._phase = None
        LOGGER.debug("Session %d started", self._state.run_id)
        self._notify()

    def _record_result(self, result: MeasurementResult) -> None:
        if result.direction is Direction.DOWNLOAD:
            self._state.download = result
        else:
            self._state.upload = result
        self._notify()

    def _record_error(self, direction: Direction, message: str) -> None:
        LOGGER.warning("Session %d: %s", self._state.run_id, message)
        self._state.errors[direction.value] = message
        self._notify()

    def _complete(self) -> None:
        self._state.status = SessionStatus.COMPLETE
        self._state.finished_at = datetime.now(timezone.utc)
        LOGGER.debug("Session %d complete", self._state.run_id)
        self._notify()

    def _fail(self, reason: str) -> None:
        self._phase = None
        self._state.status = SessionStatus.FAILED
        self._state.reason = reason
        self._state.finished_at = datetime.now(timezone.utc)
        self._notify()

    def _abort(self) -> None:
        if self._phase is not None:
            self._state.errors[self._phase.value] = "Measurement cancelled"
            self._phase = None
        self._state.status = SessionStatus.IDLE
        self._state.finished_at = datetime.now(timezone.utc)
        LOGGER.info("Session %d cancelled", self._state.run_id)
        self._notify()

    # -- Rendering metrics --------------------------------------------------

    def record_metric(self, name: str, value: float) -> None:
        """Store a reported metric under its lower-cased name.  Last write wins."""
        self._state.rendering_metrics[name.lower()] = float(value)
        self._notify()

    def start_metrics_consumer(self, channel: MetricsChannel) -> asyncio.Task:
        """Drain *channel* into the state on a separate task until it closes."""
        return asyncio.create_task(self._consume_metrics(channel))

    async def _consume_metrics(self, channel: MetricsChannel) -> None:
        while True:
            event = await channel.get()
            if event is None:
                break
            name, value = event
            self.record_metric(name, value)
