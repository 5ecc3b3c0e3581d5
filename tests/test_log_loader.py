import pathlib
import sys
import tempfile
import unittest

import numpy as np

# Ensure src/ is on path for direct test execution
ROOT = pathlib.Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from sensehar.dataio.csv_writer import feature_rows, write_rows  # noqa: E402
from sensehar.dataio.log_loader import (  # noqa: E402
    load_csv,
    load_samples,
    merge_logs,
    samples_from_array,
)


class LogLoaderTest(unittest.TestCase):
    def test_load_csv_without_header(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = pathlib.Path(tmpdir) / "no_header.csv"
            path.write_text("1,2,3\n4,5,6\n", encoding="utf-8")

            data = load_csv(path)

            np.testing.assert_array_equal(data, np.array([[1, 2, 3], [4, 5, 6]]))

    def test_load_csv_with_header(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = pathlib.Path(tmpdir) / "with_header.csv"
            path.write_text("t,ax,ay,az\n0.0,0,0,9.81\n0.02,0,0,9.8\n", encoding="utf-8")

            samples = load_samples(path)

            self.assertEqual(len(samples), 2)
            self.assertAlmostEqual(samples[1].timestamp, 0.02)
            self.assertFalse(samples[0].has_gyro)

    def test_samples_sorted_and_gyro_detected(self):
        rows = np.array(
            [
                [0.04, 0, 0, 1, 0.1, 0.2, 0.3],
                [0.00, 0, 0, 1, 0.0, 0.0, 0.0],
                [0.02, 0, 0, 1, 0.0, 0.0, 0.0],
            ]
        )
        samples = samples_from_array(rows)
        self.assertEqual([s.timestamp for s in samples], [0.0, 0.02, 0.04])
        self.assertTrue(samples[-1].has_gyro)
        self.assertEqual(samples[-1].gz, 0.3)

    def test_samples_from_array_requires_four_columns(self):
        with self.assertRaises(ValueError):
            samples_from_array(np.zeros((2, 3)))

    def test_jsonl_skips_bad_lines(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = pathlib.Path(tmpdir) / "log.jsonl"
            path.write_text(
                '{"t_s": 0.02, "ax": 0, "ay": 0, "az": 9.81}\n'
                "not json at all\n"
                '{"timestamp_ns": 0, "ax": 0, "ay": 0, "az": 9.81}\n'
                "\n",
                encoding="utf-8",
            )

            samples = load_samples(path)

            self.assertEqual([s.timestamp for s in samples], [0.0, 0.02])

    def test_merge_logs_orders_by_time(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            a = pathlib.Path(tmpdir) / "a.csv"
            b = pathlib.Path(tmpdir) / "b.csv"
            a.write_text("0.0,0,0,1\n0.2,0,0,1\n", encoding="utf-8")
            b.write_text("0.1,0,0,1\n", encoding="utf-8")

            merged = merge_logs([a, b])

            self.assertEqual([s.timestamp for s in merged], [0.0, 0.1, 0.2])

    def test_write_feature_rows(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = pathlib.Path(tmpdir) / "out" / "features.csv"
            rows = feature_rows([(1.5, {"b": 2.0, "a": 1.0})], ("a", "b", "c"))

            write_rows(path, ["window_end", "a", "b", "c"], rows)

            lines = path.read_text(encoding="utf-8").splitlines()
            self.assertEqual(lines, ["window_end,a,b,c", "1.5,1.0,2.0,0.0"])


if __name__ == "__main__":
    unittest.main()
