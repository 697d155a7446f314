"""
Rich-based live dashboard for a benchmark session.

All formatting helpers live in ``throughput.stats`` -- this module only
does presentation via the ``rich`` library.  It never touches the session
controller's state directly; it renders the snapshots it is handed.
"""
from __future__ import annotations

from typing import Callable, List, Optional, Tuple

from rich.console import Console, Group
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from throughput.models import MeasurementResult, SessionState, SessionStatus
from throughput.stats import format_milliseconds, format_seconds, format_speed

console = Console()

LOADING = "Loading..."
MEASURING = "Measuring..."


# ---------------------------------------------------------------------------
# Row definitions
# ---------------------------------------------------------------------------

def _format_cls(value: Optional[float]) -> Optional[str]:
    return f"{value:.3f}" if value is not None else None


# (label, lower-cased metric key, formatter)
METRIC_ROWS: List[Tuple[str, str, Callable[[Optional[float]], Optional[str]]]] = [
    ("First Contentful Paint (FCP)", "fcp", format_seconds),
    ("Largest Contentful Paint (LCP)", "lcp", format_seconds),
    ("Cumulative Layout Shift (CLS)", "cls", _format_cls),
    ("First Input Delay (FID)", "fid", format_milliseconds),
    ("Interaction to Next Paint (INP)", "inp", format_milliseconds),
    ("Time to First Byte (TTFB)", "ttfb", format_milliseconds),
    ("Navigation Time", "navigationtime", format_seconds),
]


def _speed_cell(result: Optional[MeasurementResult]) -> str:
    return format_speed(result.bitrate_mbps) if result is not None else MEASURING


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------

def render_session(state: SessionState) -> Panel:
    """Build the dashboard panel for one state snapshot."""
    table = Table(show_header=False, box=None, padding=(0, 1), expand=True)
    table.add_column(style="dim")
    table.add_column(justify="right", style="bold")

    for label, key, fmt in METRIC_ROWS:
        table.add_row(f"{label}:", fmt(state.rendering_metrics.get(key)) or LOADING)

    table.add_row("Download Speed:", f"[green]{_speed_cell(state.download)}[/green]")
    table.add_row("Upload Speed:", f"[blue]{_speed_cell(state.upload)}[/blue]")
    table.add_row("Device Info:", state.device_info or LOADING)

    parts: list = []
    for message in state.errors.values():
        parts.append(Text(message, style="red"))
    if state.status is SessionStatus.RUNNING:
        parts.append(Text("Running speed test...", style="yellow"))
    elif state.status is SessionStatus.FAILED:
        parts.append(Text(f"Session failed: {state.reason}", style="bold red"))
    parts.append(table)

    return Panel(
        Group(*parts),
        title="[bold]Performance Metrics[/bold]",
        subtitle=f"[dim]run {state.run_id} - {state.status.value}[/dim]",
        border_style="cyan",
    )


def print_header() -> None:
    console.print()
    console.print(
        Panel.fit(
            "[bold cyan]ASTRACAT Bench Speed Test[/bold cyan]\n"
            "[dim]Measure your connection speed and page performance[/dim]",
            border_style="cyan",
        )
    )
    console.print()


# ---------------------------------------------------------------------------
# Live display
# ---------------------------------------------------------------------------

class SessionDashboard:
    """Keeps a ``rich`` live panel in sync with session snapshots."""

    def __init__(self, target: Optional[Console] = None) -> None:
        self.live = Live(
            render_session(SessionState()),
            console=target if target is not None else console,
            refresh_per_second=8,
            transient=False,
        )
        self._started = False

    def start(self) -> None:
        self.live.start()
        self._started = True

    def update(self, state: SessionState) -> None:
        if not self._started:
            return
        self.live.update(render_session(state))

    def stop(self) -> None:
        if self._started:
            self.live.stop()
            self._started = False
