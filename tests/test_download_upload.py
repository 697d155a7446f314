"""Tests for the download / upload testers against an in-process probe server."""

import asyncio
import unittest

from aiohttp import web
from aiohttp import test_utils

from probe_server import create_app
from throughput.client import ThroughputClient
from throughput.models import Direction, ErrorKind, MeasurementError

DOWNLOAD_SIZE = 256 * 1024
UPLOAD_SIZE = 128 * 1024


class _ServerTestCase(unittest.IsolatedAsyncioTestCase):
    """Starts *app* on a random local port for each test."""

    def make_app(self) -> web.Application:
        return create_app(DOWNLOAD_SIZE)

    async def asyncSetUp(self):
        self.server = test_utils.TestServer(self.make_app())
        await self.server.start_server()
        self.base_url = f"http://{self.server.host}:{self.server.port}"

    async def asyncTearDown(self):
        await self.server.close()

    def make_client(self, **kwargs) -> ThroughputClient:
        options = dict(
            download_size_bytes=DOWNLOAD_SIZE,
            upload_size_bytes=UPLOAD_SIZE,
            timeout=5.0,
        )
        options.update(kwargs)
        return ThroughputClient(self.base_url, **options)


class TestMeasureAgainstProbeServer(_ServerTestCase):
    async def test_download(self):
        async with self.make_client() as client:
            result = await client.measure_download()
        self.assertEqual(result.direction, Direction.DOWNLOAD)
        self.assertEqual(result.bytes_transferred, DOWNLOAD_SIZE)
        self.assertGreater(result.duration_seconds, 0)
        self.assertGreater(result.bitrate_mbps, 0)
        self.assertAlmostEqual(
            result.bitrate_mbps,
            DOWNLOAD_SIZE * 8 / result.duration_seconds / (1024 * 1024),
        )

    async def test_upload(self):
        async with self.make_client() as client:
            result = await client.measure_upload()
        self.assertEqual(result.direction, Direction.UPLOAD)
        self.assertEqual(result.bytes_transferred, UPLOAD_SIZE)
        self.assertGreater(result.bitrate_mbps, 0)
        self.assertLessEqual(result.started_at, result.finished_at)

    async def test_zero_byte_upload(self):
        async with self.make_client(upload_size_bytes=0) as client:
            result = await client.measure_upload()
        self.assertEqual(result.bytes_transferred, 0)
        self.assertEqual(result.bitrate_mbps, 0.0)

    async def test_size_mismatch_is_network_failure(self):
        async with self.make_client(download_size_bytes=DOWNLOAD_SIZE * 2) as client:
            with self.assertRaises(MeasurementError) as ctx:
                await client.measure_download()
        self.assertEqual(ctx.exception.kind, ErrorKind.NETWORK_FAILURE)
        self.assertIn("received", str(ctx.exception))

    async def test_fetch_probe_info(self):
        async with self.make_client() as client:
            info = await client.fetch_probe_info()
        self.assertEqual(info.status, "ok")
        self.assertEqual(info.download_size_bytes, DOWNLOAD_SIZE)

    async def test_requires_context_manager(self):
        client = self.make_client()
        with self.assertRaises(RuntimeError):
            await client.measure_download()


class TestServerErrors(_ServerTestCase):
    def make_app(self) -> web.Application:
        async def broken_download(request):
            return web.Response(status=503, text="unavailable")

        async def broken_upload(request):
            await request.read()
            return web.json_response(
                {"status": "error", "message": "Failed to process upload"}, status=500
            )

        app = web.Application()
        app.router.add_get("/probe/download", broken_download)
        app.router.add_post("/probe/upload", broken_upload)
        return app

    async def test_download_http_error(self):
        async with self.make_client() as client:
            with self.assertRaises(MeasurementError) as ctx:
                await client.measure_download()
        self.assertEqual(ctx.exception.kind, ErrorKind.NETWORK_FAILURE)
        self.assertEqual(ctx.exception.direction, Direction.DOWNLOAD)
        self.assertIn("503", str(ctx.exception))

    async def test_upload_server_error_message(self):
        async with self.make_client() as client:
            with self.assertRaises(MeasurementError) as ctx:
                await client.measure_upload()
        self.assertEqual(ctx.exception.kind, ErrorKind.NETWORK_FAILURE)
        self.assertIn("Failed to process upload", str(ctx.exception))


class TestSlowServer(_ServerTestCase):
    def make_app(self) -> web.Application:
        async def slow(request):
            await asyncio.sleep(0.5)
            return web.Response(body=bytes(DOWNLOAD_SIZE))

        app = web.Application()
        app.router.add_get("/probe/download", slow)
        return app

    async def test_timeout(self):
        async with self.make_client(timeout=0.1) as client:
            with self.assertRaises(MeasurementError) as ctx:
                await client.measure_download()
        self.assertEqual(ctx.exception.kind, ErrorKind.TIMEOUT)


class TestTruncatedDownload(unittest.IsolatedAsyncioTestCase):
    """The server declares a length, sends part of it, then drops the connection."""

    DECLARED = 100_000

    async def asyncSetUp(self):
        async def handle(reader, writer):
            await reader.readuntil(b"\r\n\r\n")
            writer.write(
                b"HTTP/1.1 200 OK\r\n"
                b"Content-Type: application/octet-stream\r\n"
                + f"Content-Length: {self.DECLARED}\r\n\r\n".encode()
                + bytes(10)
            )
            await writer.drain()
            writer.close()

        self.server = await asyncio.start_server(handle, "127.0.0.1", 0)
        port = self.server.sockets[0].getsockname()[1]
        self.base_url = f"http://127.0.0.1:{port}"

    async def asyncTearDown(self):
        self.server.close()
        await self.server.wait_closed()

    async def test_connection_dropped_mid_body(self):
        async with ThroughputClient(
            self.base_url, download_size_bytes=self.DECLARED, timeout=5.0
        ) as client:
            with self.assertRaises(MeasurementError) as ctx:
                await client.measure_download()
        self.assertEqual(ctx.exception.kind, ErrorKind.NETWORK_FAILURE)
        self.assertEqual(ctx.exception.direction, Direction.DOWNLOAD)


class TestUnreachableServer(unittest.IsolatedAsyncioTestCase):
    async def test_connection_refused(self):
        async with ThroughputClient("http://127.0.0.1:1", timeout=2.0) as client:
            with self.assertRaises(MeasurementError) as ctx:
                await client.measure_upload()
        self.assertEqual(ctx.exception.kind, ErrorKind.NETWORK_FAILURE)
        self.assertEqual(ctx.exception.direction, Direction.UPLOAD)


if __name__ == "__main__":
    unittest.main()
