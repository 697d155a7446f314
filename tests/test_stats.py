"""Unit tests for throughput.stats and throughput.models -- pure arithmetic."""

import unittest

from throughput.constants import DECIMAL_MEGABIT
from throughput.models import Direction, MeasurementResult
from throughput.stats import (
    calculate_bitrate,
    format_milliseconds,
    format_seconds,
    format_size,
    format_speed,
)


class TestCalculateBitrate(unittest.TestCase):
    def test_download_scenario(self):
        # 10 MiB in 2 s on the 1024-based scale
        self.assertAlmostEqual(calculate_bitrate(10_485_760, 2.0), 40.0)

    def test_upload_scenario(self):
        self.assertAlmostEqual(calculate_bitrate(5_242_880, 1.0), 40.0)

    def test_decimal_divisor(self):
        self.assertAlmostEqual(
            calculate_bitrate(10_485_760, 2.0, divisor=DECIMAL_MEGABIT), 41.94304
        )

    def test_doubling_duration_halves_bitrate(self):
        for size in (1, 1024, 5_242_880, 10_485_760):
            for seconds in (0.1, 1.0, 3.7):
                fast = calculate_bitrate(size, seconds)
                slow = calculate_bitrate(size, seconds * 2)
                self.assertAlmostEqual(slow, fast / 2)

    def test_zero_bytes(self):
        self.assertEqual(calculate_bitrate(0, 1.0), 0.0)

    def test_zero_duration(self):
        self.assertEqual(calculate_bitrate(100, 0.0), 0.0)

    def test_negative_bytes_rejected(self):
        with self.assertRaises(ValueError):
            calculate_bitrate(-1, 1.0)


class TestMeasurementResult(unittest.TestCase):
    def test_from_timing(self):
        r = MeasurementResult.from_timing(Direction.DOWNLOAD, 10_485_760, 100.0, 102.0)
        self.assertAlmostEqual(r.duration_seconds, 2.0)
        self.assertAlmostEqual(r.bitrate_mbps, 40.0)
        self.assertEqual(r.started_at, 100.0)
        self.assertEqual(r.finished_at, 102.0)

    def test_to_dict(self):
        r = MeasurementResult.from_timing(Direction.UPLOAD, 5_242_880, 0.0, 1.0)
        d = r.to_dict()
        self.assertEqual(d["direction"], "upload")
        self.assertEqual(d["bytes"], 5_242_880)
        self.assertEqual(d["bitrate_mbps"], 40.0)


class TestFormatting(unittest.TestCase):
    def test_format_speed_mbps(self):
        self.assertEqual(format_speed(41.943), "41.94 Mbps")

    def test_format_speed_gbps(self):
        self.assertEqual(format_speed(1500.0), "1.50 Gbps")

    def test_format_size(self):
        self.assertEqual(format_size(10 * 1024 * 1024), "10.0 MiB")
        self.assertEqual(format_size(2048), "2.0 KiB")
        self.assertEqual(format_size(12), "12 B")

    def test_format_seconds(self):
        self.assertEqual(format_seconds(1234.0), "1.23 s")
        self.assertIsNone(format_seconds(None))

    def test_format_milliseconds(self):
        self.assertEqual(format_milliseconds(12.345), "12.35 ms")
        self.assertIsNone(format_milliseconds(None))


if __name__ == "__main__":
    unittest.main()
