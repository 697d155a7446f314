"""aiohttp application factory and probe routes."""

from __future__ import annotations

import asyncio
import logging

from aiohttp import web

from throughput.constants import (
    DEFAULT_HOST,
    DEFAULT_PORT,
    DOWNLOAD_PATH,
    DOWNLOAD_SIZE_BYTES,
    HEALTH_PATH,
    LEGACY_DOWNLOAD_PATH,
    LEGACY_UPLOAD_PATH,
    OCTET_STREAM,
    UPLOAD_PATH,
)

from .probe import InternalError, TransferError, get_download_probe, receive_upload_probe

LOGGER = logging.getLogger(__name__)

DOWNLOAD_SIZE_KEY = web.AppKey("download_size_bytes", int)

NO_STORE = {"Cache-Control": "no-store"}


async def handle_download(request: web.Request) -> web.Response:
    payload = get_download_probe(request.app[DOWNLOAD_SIZE_KEY])
    LOGGER.debug("Download probe: sending %d bytes to %s", payload.content_length, request.remote)
    # A bytes body is sent with an exact Content-Length, never chunked
    return web.Response(body=payload.data, content_type=OCTET_STREAM, headers=NO_STORE)


async def handle_upload(request: web.Request) -> web.Response:
    try:
        receipt = await receive_upload_probe(request.content, request.content_length)
    except TransferError as exc:
        LOGGER.warning("Upload probe from %s failed: %s", request.remote, exc)
        return web.json_response({"status": "error", "message": str(exc)}, status=500)
    except InternalError:
        LOGGER.exception("Error processing upload from %s", request.remote)
        return web.json_response(
            {"status": "error", "message": "Failed to process upload"}, status=500
        )

    return web.json_response(receipt.to_dict())


async def handle_health(request: web.Request) -> web.Response:
    return web.json_response(
        {"status": "ok", "downloadSizeBytes": request.app[DOWNLOAD_SIZE_KEY]},
        headers=NO_STORE,
    )


def create_app(download_size_bytes: int = DOWNLOAD_SIZE_BYTES) -> web.Application:
    if download_size_bytes < 0:
        raise ValueError(f"download_size_bytes must be >= 0, got {download_size_bytes}")

    app = web.Application()
    app[DOWNLOAD_SIZE_KEY] = download_size_bytes
    app.router.add_get(DOWNLOAD_PATH, handle_download)
    app.router.add_post(UPLOAD_PATH, handle_upload)
    app.router.add_get(LEGACY_DOWNLOAD_PATH, handle_download)
    app.router.add_post(LEGACY_UPLOAD_PATH, handle_upload)
    app.router.add_get(HEALTH_PATH, handle_health)
    return app


async def run_server(
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
    download_size_bytes: int = DOWNLOAD_SIZE_BYTES,
) -> None:
    """Serve the probes until cancelled."""
    runner = web.AppRunner(create_app(download_size_bytes))
    await runner.setup()
    site = web.TCPSite(runner, host, port)
    await site.start()
    LOGGER.info("Probe server listening on %s:%d (download probe %d bytes)", host, port, download_size_bytes)

    try:
        await asyncio.Event().wait()
    finally:
        await runner.cleanup()
        LOGGER.info("Probe server stopped")
