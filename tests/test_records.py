"""Tests for calibench.records — the tab-separated output format."""

from __future__ import annotations

import tempfile
import unittest
from pathlib import Path

from bench_test_helpers import make_series

from calibench.records import (
    OUTPUT_HEADER,
    OutputFormatError,
    Record,
    format_record,
    parse_records,
    read_output,
)
from calibench.timing import Duration


class TestFormatRecord(unittest.TestCase):
    """Tests for format_record()."""

    def test_record(self) -> None:
        line = format_record("sort", make_series([100, 200, 300]))
        self.assertEqual(line, "sort\t200ns\t17.32ns\n")

    def test_single_sample(self) -> None:
        self.assertEqual(format_record("once", make_series([1_500])), "once\t1.5µs\tN/A\n")

    def test_name_with_tab_and_newline(self) -> None:
        line = format_record("a\tb\nc", make_series([10, 10]))
        self.assertEqual(line.count("\t"), 2)
        self.assertTrue(line.startswith("a b c\t"))


class TestParseRecords(unittest.TestCase):
    """Tests for parse_records() and read_output()."""

    def test_header_constant(self) -> None:
        self.assertEqual(OUTPUT_HEADER, "name\tmean\tstddev\n")

    def test_header_only(self) -> None:
        self.assertEqual(parse_records(OUTPUT_HEADER), [])

    def test_parse(self) -> None:
        text = OUTPUT_HEADER + "sort\t12.5µs\t111.80ns\nonce\t2ms\tN/A\n"
        records = parse_records(text)
        self.assertEqual(
            records,
            [
                Record(name="sort", mean=Duration(12_500), stddev_ns=111.8),
                Record(name="once", mean=Duration(2_000_000), stddev_ns=None),
            ],
        )

    def test_blank_lines_skipped(self) -> None:
        records = parse_records(OUTPUT_HEADER + "\nsort\t1ms\t1.00ns\n\n")
        self.assertEqual(len(records), 1)

    def test_missing_header(self) -> None:
        with self.assertRaises(OutputFormatError):
            parse_records("sort\t1ms\t1.00ns\n")

    def test_wrong_field_count(self) -> None:
        with self.assertRaises(OutputFormatError) as cm:
            parse_records(OUTPUT_HEADER + "sort\t1ms\n")
        self.assertIn("Line 2", str(cm.exception))

    def test_bad_mean(self) -> None:
        with self.assertRaises(OutputFormatError):
            parse_records(OUTPUT_HEADER + "sort\tfast\t1.00ns\n")

    def test_bad_stddev(self) -> None:
        for stddev in ("1.00", "xns"):
            with self.subTest(stddev=stddev):
                with self.assertRaises(OutputFormatError):
                    parse_records(OUTPUT_HEADER + f"sort\t1ms\t{stddev}\n")

    def test_format_error_is_value_error(self) -> None:
        with self.assertRaises(ValueError):
            parse_records("")

    def test_read_output(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "out.tsv"
            path.write_text(
                OUTPUT_HEADER + format_record("x", make_series([5, 5])), encoding="utf-8"
            )
            records = read_output(path)
            self.assertEqual(records[0].name, "x")
            self.assertEqual(records[0].mean, Duration(5))
