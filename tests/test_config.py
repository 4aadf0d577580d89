"""Tests for calibench.config — bencher configuration and YAML profiles."""

from __future__ import annotations

import tempfile
import unittest
from pathlib import Path

from calibench.config import (
    BenchmarkDef,
    BencherConfig,
    config_from_profile,
    load_profile,
    validate_config,
)


# ---------------------------------------------------------------------------
# BencherConfig and validation
# ---------------------------------------------------------------------------


class TestBencherConfig(unittest.TestCase):
    """Tests for BencherConfig defaults."""

    def test_defaults(self) -> None:
        config = BencherConfig()
        self.assertEqual(config.iterations, 100)
        self.assertEqual(config.max_iterations, 10_000)
        self.assertAlmostEqual(config.convergence_threshold, 0.01)
        self.assertEqual(config.calibration_rounds, 1000)
        self.assertIsNone(config.output)
        self.assertFalse(config.adaptive)

    def test_adaptive(self) -> None:
        self.assertTrue(BencherConfig(iterations=0).adaptive)


class TestValidateConfig(unittest.TestCase):
    """Tests for validate_config()."""

    def test_valid(self) -> None:
        self.assertEqual(validate_config(BencherConfig()), [])

    def test_negative_iterations(self) -> None:
        errors = validate_config(BencherConfig(iterations=-1))
        self.assertEqual([e.field for e in errors], ["iterations"])

    def test_zero_max_iterations(self) -> None:
        errors = validate_config(BencherConfig(max_iterations=0))
        self.assertEqual([e.field for e in errors], ["max_iterations"])
        self.assertEqual(errors[0].severity, "error")

    def test_adaptive_cap_of_one_warns(self) -> None:
        errors = validate_config(BencherConfig(iterations=0, max_iterations=1))
        self.assertEqual(len(errors), 1)
        self.assertEqual(errors[0].severity, "warning")

    def test_threshold_out_of_range(self) -> None:
        for threshold in (0.0, -0.1, 1.0, 5.0):
            with self.subTest(threshold=threshold):
                errors = validate_config(BencherConfig(convergence_threshold=threshold))
                self.assertEqual([e.field for e in errors], ["convergence_threshold"])

    def test_zero_calibration_rounds(self) -> None:
        errors = validate_config(BencherConfig(calibration_rounds=0))
        self.assertEqual([e.field for e in errors], ["calibration_rounds"])

    def test_output_is_directory(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            errors = validate_config(BencherConfig(output=Path(tmp)))
        self.assertEqual([e.field for e in errors], ["output"])

    def test_benchmark_without_statement(self) -> None:
        config = BencherConfig(benchmarks=[BenchmarkDef(name="empty", stmt="  ")])
        errors = validate_config(config)
        self.assertEqual([e.field for e in errors], ["benchmarks.empty"])

    def test_benchmark_without_name(self) -> None:
        config = BencherConfig(benchmarks=[BenchmarkDef(name="", stmt="pass")])
        errors = validate_config(config)
        self.assertEqual([e.field for e in errors], ["benchmarks"])


# ---------------------------------------------------------------------------
# YAML profiles
# ---------------------------------------------------------------------------


PROFILE = """\
iterations: 0
max_iterations: 500
output: results.tsv
compare: true
setup: |
  data = list(range(100))
benchmarks:
  - name: sorted
    stmt: sorted(data)
  - stmt: data.copy().sort()
  - len(data)
"""


class TestLoadProfile(unittest.TestCase):
    """Tests for load_profile()."""

    def _write(self, text: str) -> Path:
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        path = Path(tmp.name) / "profile.yaml"
        path.write_text(text)
        return path

    def test_load(self) -> None:
        data = load_profile(self._write(PROFILE))
        self.assertEqual(data["iterations"], 0)
        self.assertEqual(len(data["benchmarks"]), 3)

    def test_load_empty(self) -> None:
        self.assertEqual(load_profile(self._write("")), {})

    def test_load_not_mapping(self) -> None:
        with self.assertRaises(ValueError):
            load_profile(self._write("- a\n- b\n"))

    def test_load_missing(self) -> None:
        with self.assertRaises(FileNotFoundError):
            load_profile(Path("/nonexistent/profile.yaml"))


class TestConfigFromProfile(unittest.TestCase):
    """Tests for config_from_profile()."""

    def test_profile_values(self) -> None:
        import yaml

        config = config_from_profile(yaml.safe_load(PROFILE))
        self.assertTrue(config.adaptive)
        self.assertEqual(config.max_iterations, 500)
        self.assertEqual(config.output, Path("results.tsv"))
        self.assertTrue(config.compare)
        self.assertIn("data = list(range(100))", config.setup)
        self.assertEqual(
            config.benchmarks,
            [
                BenchmarkDef(name="sorted", stmt="sorted(data)"),
                BenchmarkDef(name="data.copy().sort()", stmt="data.copy().sort()"),
                BenchmarkDef(name="len(data)", stmt="len(data)"),
            ],
        )

    def test_empty_profile_uses_defaults(self) -> None:
        config = config_from_profile({})
        self.assertEqual(config.iterations, 100)
        self.assertEqual(config.benchmarks, [])

    def test_null_profile_value_uses_default(self) -> None:
        config = config_from_profile({"iterations": None, "max_iterations": None})
        self.assertEqual(config.iterations, 100)
        self.assertEqual(config.max_iterations, 10_000)

    def test_cli_overrides(self) -> None:
        config = config_from_profile(
            {"iterations": 0, "max_iterations": 500},
            cli_overrides={"iterations": 20, "max_iterations": None, "output": Path("x.tsv")},
        )
        self.assertEqual(config.iterations, 20)
        self.assertEqual(config.max_iterations, 500)
        self.assertEqual(config.output, Path("x.tsv"))

    def test_cli_zero_iterations_overrides(self) -> None:
        config = config_from_profile({"iterations": 50}, cli_overrides={"iterations": 0})
        self.assertEqual(config.iterations, 0)

    def test_benchmarks_not_list(self) -> None:
        with self.assertRaises(ValueError):
            config_from_profile({"benchmarks": {"a": "pass"}})

    def test_benchmark_entry_not_mapping(self) -> None:
        with self.assertRaises(ValueError):
            config_from_profile({"benchmarks": [42]})
