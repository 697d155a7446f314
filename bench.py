#!/usr/bin/env python3
"""
ASTRACAT Bench -- throughput and page-performance benchmark.

Usage::

    python bench.py --serve                   # start the probe server
    python bench.py --serve --port 9000 --download-size 20971520
    python bench.py                           # live dashboard against localhost
    python bench.py --url http://host:8080    # measure against another server
    python bench.py --simple                  # plain text
    python bench.py --json                    # JSON to stdout
    python bench.py --repeat 3 --interval 10  # re-run the session 3 times
"""
from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import Any, Dict, Optional

import aiohttp

from probe_server import run_server
from throughput.client import ThroughputClient
from throughput.config import config_path, load_config
from throughput.constants import (
    MAX_PAYLOAD_SIZE,
    MAX_TIMEOUT,
    MIN_PAYLOAD_SIZE,
    MIN_TIMEOUT,
)
from throughput.logging_setup import configure_logging
from throughput.session import SessionController
from throughput.vitals import MetricsChannel, NavigationTimingReporter
from ui.dashboard import SessionDashboard, console, print_header
from ui.output import create_result_json, format_text_result


# ---------------------------------------------------------------------------
# Parameter validation
# ---------------------------------------------------------------------------

def _validate(
    download_size: int,
    upload_size: int,
    timeout: float,
    repeat: int = 1,
    interval: float = 0.0,
) -> None:
    """Raise ``ValueError`` if any parameter is out of range."""
    if not MIN_PAYLOAD_SIZE <= download_size <= MAX_PAYLOAD_SIZE:
        raise ValueError(f"Download size must be between {MIN_PAYLOAD_SIZE} and {MAX_PAYLOAD_SIZE} bytes")
    if not MIN_PAYLOAD_SIZE <= upload_size <= MAX_PAYLOAD_SIZE:
        raise ValueError(f"Upload size must be between {MIN_PAYLOAD_SIZE} and {MAX_PAYLOAD_SIZE} bytes")
    if not MIN_TIMEOUT <= timeout <= MAX_TIMEOUT:
        raise ValueError(f"Timeout must be between {MIN_TIMEOUT} and {MAX_TIMEOUT} s")
    if repeat < 1:
        raise ValueError("Repeat must be >= 1")
    if interval < 0:
        raise ValueError("Interval must be >= 0")


# ---------------------------------------------------------------------------
# Core session runner
# ---------------------------------------------------------------------------

async def run_bench(
    *,
    base_url: str,
    download_size: int,
    upload_size: int,
    timeout: float,
    json_output: bool = False,
    simple: bool = False,
    repeat: int = 1,
    interval: float = 0.0,
    page_url: Optional[str] = None,
) -> Dict[str, Any]:
    """Run the session (auto-run once, then *repeat* - 1 manual re-runs)."""

    show_ui = not json_output and not simple

    if show_ui:
        print_header()

    async with ThroughputClient(
        base_url,
        download_size_bytes=download_size,
        upload_size_bytes=upload_size,
        timeout=timeout,
    ) as client:

        # -- Probe server check ---------------------------------------------
        try:
            await client.fetch_probe_info()
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as exc:
            if show_ui:
                console.print(f"[yellow]Probe server health check failed: {exc}[/yellow]")

        controller = SessionController(client)
        channel = MetricsChannel()
        consumer = controller.start_metrics_consumer(channel)
        reporter = NavigationTimingReporter(channel, page_url or client.health_url, timeout)

        dashboard = SessionDashboard() if show_ui else None
        if dashboard:
            controller.subscribe(dashboard.update)
            dashboard.start()

        try:
            # -- Page metrics, independent of the probes --------------------
            reporter_task = asyncio.create_task(reporter.report())

            # -- Run on load ------------------------------------------------
            await controller.initialize()

            # -- Manual re-runs ---------------------------------------------
            for _ in range(repeat - 1):
                if interval > 0:
                    await asyncio.sleep(interval)
                await controller.run_session()

            await reporter_task
        finally:
            channel.close()
            await consumer
            if dashboard:
                dashboard.stop()

    state = controller.state
    result_json = create_result_json(state)

    if json_output:
        print(json.dumps(result_json, indent=2))
    elif simple:
        print(format_text_result(state))

    return result_json


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

def main() -> None:
    config = load_config()

    parser = argparse.ArgumentParser(
        description="ASTRACAT Bench -- throughput and page-performance benchmark",
    )
    # Modes
    parser.add_argument("--serve", action="store_true", help="Run the probe server instead of the client")

    # Output modes
    parser.add_argument("--json", "-j", action="store_true", help="Output results as JSON")
    parser.add_argument("--simple", "-s", action="store_true", help="Simple output mode (no dashboard)")

    # Probe parameters
    parser.add_argument("--url", type=str, default=config["base_url"], metavar="URL", help="Probe server base URL")
    parser.add_argument("--download-size", type=int, default=config["download_size_bytes"], metavar="BYTES", help="Download probe size (default: 10 MiB)")
    parser.add_argument("--upload-size", type=int, default=config["upload_size_bytes"], metavar="BYTES", help="Upload probe size (default: 5 MiB)")
    parser.add_argument("--timeout", type=float, default=config["timeout"], metavar="SECS", help="Timeout per measurement phase (default: 60)")
    parser.add_argument("--page-url", type=str, default=None, metavar="URL", help="Page to time for TTFB / navigation metrics")

    # Repeat mode
    parser.add_argument("--repeat", type=int, default=1, metavar="N", help="Run the session N times (default: 1)")
    parser.add_argument("--interval", type=float, default=0.0, metavar="SECS", help="Seconds between repeated sessions (default: 0)")

    # Server
    parser.add_argument("--host", type=str, default=config["host"], help="Bind address for --serve")
    parser.add_argument("--port", type=int, default=config["port"], help="Port for --serve")

    parser.add_argument("--log-level", type=str, default=config["log_level"], metavar="LEVEL", help="Log level (default: WARNING)")

    args = parser.parse_args()

    configure_logging(args.log_level)

    # Validate
    try:
        _validate(
            download_size=args.download_size,
            upload_size=args.upload_size,
            timeout=args.timeout,
            repeat=args.repeat,
            interval=args.interval,
        )
    except ValueError as exc:
        console.print(f"[red]Error: {exc}[/red]")
        sys.exit(1)

    try:
        if args.serve:
            console.print(
                f"[bold cyan]Probe server[/bold cyan] on http://{args.host}:{args.port} "
                f"[dim](config: {config_path()})[/dim]"
            )
            asyncio.run(run_server(args.host, args.port, args.download_size))
            return

        asyncio.run(
            run_bench(
                base_url=args.url,
                download_size=args.download_size,
                upload_size=args.upload_size,
                timeout=args.timeout,
                json_output=args.json,
                simple=args.simple,
                repeat=args.repeat,
                interval=args.interval,
                page_url=args.page_url,
            )
        )

    except KeyboardInterrupt:
        console.print("\n[yellow]Cancelled by user[/yellow]")
        sys.exit(1)
    except Exception as exc:
        console.print(f"\n[red]Error: {exc}[/red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
