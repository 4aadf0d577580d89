"""Bencher configuration and YAML profile loading.

Handles:
- Loading benchmark profiles from YAML files.
- Merging CLI options with profile defaults.
- Validating the final configuration before a Bencher is built.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from calibench.bencher import (
    DEFAULT_CALIBRATION_ROUNDS,
    DEFAULT_CONVERGENCE_THRESHOLD,
    DEFAULT_ITERATIONS,
    DEFAULT_MAX_ITERATIONS,
)


# ---------------------------------------------------------------------------
# BencherConfig
# ---------------------------------------------------------------------------


@dataclass
class BenchmarkDef:
    """A named statement from a profile's ``benchmarks`` list."""

    name: str
    stmt: str


@dataclass
class BencherConfig:
    """Resolved configuration for a Bencher."""

    iterations: int = DEFAULT_ITERATIONS  # 0 = adaptive
    max_iterations: int = DEFAULT_MAX_ITERATIONS
    convergence_threshold: float = DEFAULT_CONVERGENCE_THRESHOLD
    calibration_rounds: int = DEFAULT_CALIBRATION_ROUNDS
    output: Path | None = None

    # Only used by the CLI.
    setup: str = ""
    benchmarks: list[BenchmarkDef] = field(default_factory=list)
    compare: bool = False

    @property
    def adaptive(self) -> bool:
        return self.iterations == 0


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


@dataclass
class ValidationError:
    """A single configuration validation error."""

    field: str
    message: str
    severity: str = "error"  # "error" or "warning"


def validate_config(config: BencherConfig) -> list[ValidationError]:
    """Validate a bencher configuration.

    Returns a list of validation errors.  Empty list means valid.
    """
    errors: list[ValidationError] = []

    if config.iterations < 0:
        errors.append(
            ValidationError(
                field="iterations",
                message=f"Iterations cannot be negative (got {config.iterations}).",
            )
        )

    if config.max_iterations < 1:
        errors.append(
            ValidationError(
                field="max_iterations",
                message=f"Maximum iterations must be at least 1 (got {config.max_iterations}).",
            )
        )
    elif config.adaptive and config.max_iterations < 2:
        errors.append(
            ValidationError(
                field="max_iterations",
                message=(
                    "Adaptive mode needs at least 2 samples to converge; "
                    "every benchmark will stop at the cap."
                ),
                severity="warning",
            )
        )

    if not 0 < config.convergence_threshold < 1:
        errors.append(
            ValidationError(
                field="convergence_threshold",
                message=(
                    f"Convergence threshold must be between 0 and 1 "
                    f"(got {config.convergence_threshold})."
                ),
            )
        )

    if config.calibration_rounds < 1:
        errors.append(
            ValidationError(
                field="calibration_rounds",
                message=(
                    f"Calibration rounds must be at least 1 (got {config.calibration_rounds})."
                ),
            )
        )

    if config.output is not None and config.output.is_dir():
        errors.append(
            ValidationError(
                field="output",
                message=f"Output path is a directory: {config.output}",
            )
        )

    for bench in config.benchmarks:
        if not bench.name or not bench.name.strip():
            errors.append(
                ValidationError(field="benchmarks", message="Benchmark names must be non-empty.")
            )
        if not bench.stmt or not bench.stmt.strip():
            errors.append(
                ValidationError(
                    field=f"benchmarks.{bench.name}",
                    message=f"Benchmark '{bench.name}' has no statement.",
                )
            )

    return errors


# ---------------------------------------------------------------------------
# YAML profile loading
# ---------------------------------------------------------------------------


def load_profile(profile_path: Path) -> dict[str, Any]:
    """Load a bencher profile from a YAML file.

    Profile format::

        iterations: 0          # adaptive
        max_iterations: 5000
        convergence_threshold: 0.01
        output: results.tsv
        compare: true
        setup: |
          data = list(range(1000))
        benchmarks:
          - name: sorted
            stmt: sorted(data)
          - name: list.sort
            stmt: data.copy().sort()

    Returns:
        The parsed YAML as a dict.
    """
    import yaml

    if not profile_path.exists():
        raise FileNotFoundError(f"Profile not found: {profile_path}")

    text = profile_path.read_text()
    data = yaml.safe_load(text)

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Profile must be a YAML mapping, got {type(data).__name__}")

    return data


def config_from_profile(
    profile_data: dict[str, Any],
    *,
    cli_overrides: dict[str, Any] | None = None,
) -> BencherConfig:
    """Build a BencherConfig from a parsed YAML profile.

    CLI overrides take precedence over profile values.  An override of
    ``None`` means the option was not given; a profile key set to ``null``
    falls back to the default.

    Args:
        profile_data: Parsed YAML profile dict.
        cli_overrides: Dict of CLI option values.  Keys match
            BencherConfig field names.

    Returns:
        BencherConfig with settings and benchmarks populated.
    """
    cli = {k: v for k, v in (cli_overrides or {}).items() if v is not None}

    def _pick(key: str, default: Any) -> Any:
        if key in cli:
            return cli[key]
        value = profile_data.get(key)
        return default if value is None else value

    output = _pick("output", None)

    config = BencherConfig(
        iterations=int(_pick("iterations", DEFAULT_ITERATIONS)),
        max_iterations=int(_pick("max_iterations", DEFAULT_MAX_ITERATIONS)),
        convergence_threshold=float(
            _pick("convergence_threshold", DEFAULT_CONVERGENCE_THRESHOLD)
        ),
        calibration_rounds=int(_pick("calibration_rounds", DEFAULT_CALIBRATION_ROUNDS)),
        output=Path(output) if output else None,
        setup=_pick("setup", "") or "",
        compare=bool(_pick("compare", False)),
    )

    benchmarks_data = profile_data.get("benchmarks", [])
    if not isinstance(benchmarks_data, list):
        raise ValueError("Profile 'benchmarks' must be a list of {name, stmt} mappings")

    for i, entry in enumerate(benchmarks_data):
        if isinstance(entry, str):
            config.benchmarks.append(BenchmarkDef(name=entry, stmt=entry))
            continue
        if not isinstance(entry, dict):
            raise ValueError(f"Benchmark #{i + 1} must be a mapping, got {type(entry).__name__}")
        stmt = str(entry.get("stmt", ""))
        config.benchmarks.append(BenchmarkDef(name=str(entry.get("name") or stmt), stmt=stmt))

    return config
