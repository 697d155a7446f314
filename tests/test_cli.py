"""Tests for bench.py -- parameter validation and the session runner."""

import io
import json
import os
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from unittest import mock

from aiohttp import test_utils

from probe_server import create_app
from throughput.constants import (
    DEFAULT_TIMEOUT,
    DOWNLOAD_SIZE_BYTES,
    MAX_PAYLOAD_SIZE,
    MAX_TIMEOUT,
    MIN_TIMEOUT,
    UPLOAD_SIZE_BYTES,
)


class TestValidation(unittest.TestCase):
    """Test the _validate function from bench.py."""

    def _validate(self, **kwargs):
        # Import here to avoid triggering side effects at module level
        from bench import _validate
        defaults = {
            "download_size": DOWNLOAD_SIZE_BYTES,
            "upload_size": UPLOAD_SIZE_BYTES,
            "timeout": DEFAULT_TIMEOUT,
        }
        defaults.update(kwargs)
        return _validate(**defaults)

    def test_defaults_valid(self):
        self._validate()

    def test_zero_sizes_valid(self):
        self._validate(download_size=0, upload_size=0)

    def test_negative_download_size(self):
        with self.assertRaises(ValueError):
            self._validate(download_size=-1)

    def test_upload_size_too_high(self):
        with self.assertRaises(ValueError):
            self._validate(upload_size=MAX_PAYLOAD_SIZE + 1)

    def test_timeout_boundaries(self):
        self._validate(timeout=MIN_TIMEOUT)
        self._validate(timeout=MAX_TIMEOUT)
        with self.assertRaises(ValueError):
            self._validate(timeout=0)
        with self.assertRaises(ValueError):
            self._validate(timeout=MAX_TIMEOUT + 1)

    def test_repeat_must_be_positive(self):
        with self.assertRaises(ValueError):
            self._validate(repeat=0)

    def test_negative_interval(self):
        with self.assertRaises(ValueError):
            self._validate(interval=-1.0)


class TestConfigIsReadOnly(unittest.TestCase):
    def test_save_config_flag_rejected(self):
        from bench import main
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "config.json")
            with mock.patch("throughput.config._config_path", return_value=path), \
                    mock.patch("sys.argv", ["bench.py", "--save-config"]), \
                    redirect_stderr(io.StringIO()):
                with self.assertRaises(SystemExit) as ctx:
                    main()
            self.assertEqual(ctx.exception.code, 2)
            self.assertFalse(os.path.exists(path))


class TestRunBench(unittest.IsolatedAsyncioTestCase):
    SIZE = 64 * 1024

    async def asyncSetUp(self):
        self.server = test_utils.TestServer(create_app(self.SIZE))
        await self.server.start_server()
        self.base_url = f"http://{self.server.host}:{self.server.port}"

    async def asyncTearDown(self):
        await self.server.close()

    async def _run(self, **kwargs):
        from bench import run_bench
        options = dict(
            base_url=self.base_url,
            download_size=self.SIZE,
            upload_size=self.SIZE // 2,
            timeout=5.0,
            json_output=True,
        )
        options.update(kwargs)
        out = io.StringIO()
        with redirect_stdout(out):
            result = await run_bench(**options)
        return result, out.getvalue()

    async def test_json_output(self):
        result, printed = await self._run()
        self.assertEqual(json.loads(printed), result)
        self.assertEqual(result["status"], "complete")
        self.assertEqual(result["download"]["bytes"], self.SIZE)
        self.assertEqual(result["upload"]["bytes"], self.SIZE // 2)
        self.assertIn("ttfb", result["rendering_metrics"])
        self.assertIn("navigationtime", result["rendering_metrics"])
        self.assertIsNotNone(result["device_info"])

    async def test_repeat_reruns_session(self):
        result, _ = await self._run(repeat=2)
        self.assertEqual(result["run_id"], 2)

    async def test_simple_output(self):
        _, printed = await self._run(json_output=False, simple=True)
        self.assertIn("ASTRACAT Bench Results", printed)
        self.assertIn("Download:", printed)

    async def test_unreachable_server_still_completes(self):
        result, _ = await self._run(base_url="http://127.0.0.1:1", timeout=2.0)
        self.assertEqual(result["status"], "complete")
        self.assertIsNone(result["download"])
        self.assertIsNone(result["upload"])
        self.assertIn("download", result["errors"])
        self.assertEqual(result["rendering_metrics"], {})


if __name__ == "__main__":
    unittest.main()
