"""Benchmark execution engine.

Runs a zero-argument callable repeatedly on the calling thread and
collects one sample per call.  Two iteration policies:

- Fixed (``iterations > 0``): run exactly ``iterations`` times.
- Adaptive (``iterations == 0``): run until the coefficient of variation
  of the collected samples drops below the convergence threshold, or
  until ``max_iterations`` samples have been taken.

Every sample has the calibration offset (the measured cost of reading
the clock twice) subtracted, unless that would make it negative.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, TextIO

import click

from calibench.display import (
    format_difference,
    format_heading,
    format_iterations,
    format_result,
    format_settings,
)
from calibench.logging import get_logger
from calibench.records import OUTPUT_HEADER, format_record
from calibench.series import DurationDifference, SampleSeries
from calibench.timing import Clock, Duration, default_clock, measure

if TYPE_CHECKING:
    from calibench.config import BencherConfig

log = get_logger("bencher")

DEFAULT_ITERATIONS = 100
DEFAULT_MAX_ITERATIONS = 10_000
DEFAULT_CONVERGENCE_THRESHOLD = 0.01
DEFAULT_CALIBRATION_ROUNDS = 1000

Echo = Callable[[str], Any]


class Bencher:
    """Times callables and keeps the history of finished series.

    Usage::

        bencher = Bencher()
        bencher.bench("list", lambda: list(range(100)))
        bencher.bench("tuple", lambda: tuple(range(100))).compare()

    Args:
        iterations: Samples per benchmark; 0 selects adaptive mode.
        max_iterations: Upper bound on samples in adaptive mode.
        convergence_threshold: Adaptive mode stops once the coefficient
            of variation falls below this value.
        calibration_rounds: Number of empty measurements averaged into
            the calibration offset.
        clock: Monotonic nanosecond counter.
        echo: Receives each console line; defaults to ``click.echo``.
    """

    def __init__(
        self,
        *,
        iterations: int = DEFAULT_ITERATIONS,
        max_iterations: int = DEFAULT_MAX_ITERATIONS,
        convergence_threshold: float = DEFAULT_CONVERGENCE_THRESHOLD,
        calibration_rounds: int = DEFAULT_CALIBRATION_ROUNDS,
        clock: Clock = default_clock,
        echo: Echo | None = None,
    ) -> None:
        if calibration_rounds < 1:
            raise ValueError(f"calibration_rounds must be at least 1 (got {calibration_rounds})")
        if convergence_threshold <= 0:
            raise ValueError(
                f"convergence_threshold must be positive (got {convergence_threshold})"
            )

        self._clock = clock
        self._echo: Echo = echo or click.echo
        self._iterations = 0
        self._max_iterations = 1
        self._threshold = convergence_threshold
        self._history: list[tuple[str, SampleSeries]] = []
        self._sink: TextIO | None = None
        self._owns_sink = False

        self.set_iterations(iterations)
        self.set_max_iterations(max_iterations)
        self._calibration = self._calibrate(calibration_rounds)
        log.debug("Calibration offset: %s (%d rounds)", self._calibration, calibration_rounds)

    @classmethod
    def from_config(cls, config: BencherConfig, **kwargs: Any) -> Bencher:
        """Build a Bencher from a validated :class:`BencherConfig`.

        Extra keyword arguments (``clock``, ``echo``) are passed through.

        Raises:
            ValueError: If the configuration has fatal validation errors.
        """
        from calibench.config import validate_config

        errors = validate_config(config)
        for w in (e for e in errors if e.severity == "warning"):
            log.warning("Config warning: %s: %s", w.field, w.message)
        fatal = [e for e in errors if e.severity == "error"]
        if fatal:
            messages = [f"  {e.field}: {e.message}" for e in fatal]
            raise ValueError("Invalid bencher configuration:\n" + "\n".join(messages))

        bencher = cls(
            iterations=config.iterations,
            max_iterations=config.max_iterations,
            convergence_threshold=config.convergence_threshold,
            calibration_rounds=config.calibration_rounds,
            **kwargs,
        )
        if config.output is not None:
            bencher.write_output_to(config.output)
        return bencher

    # -- settings -----------------------------------------------------------

    @property
    def calibration(self) -> Duration:
        """Average cost of two consecutive clock reads."""
        return self._calibration

    @property
    def iterations(self) -> int:
        return self._iterations

    @property
    def max_iterations(self) -> int:
        return self._max_iterations

    @property
    def adaptive(self) -> bool:
        return self._iterations == 0

    def set_iterations(self, iterations: int) -> Bencher:
        """Set the samples per benchmark; 0 enables adaptive mode."""
        if iterations < 0:
            raise ValueError(f"iterations cannot be negative (got {iterations})")
        self._iterations = iterations
        return self

    def set_max_iterations(self, iterations: int) -> Bencher:
        """Set the adaptive-mode sample cap."""
        if iterations < 1:
            raise ValueError(f"max_iterations must be at least 1 (got {iterations})")
        self._max_iterations = iterations
        return self

    # -- history ------------------------------------------------------------

    @property
    def history(self) -> list[tuple[str, SampleSeries]]:
        """Finished benchmarks as ``(name, series)`` in execution order."""
        return list(self._history)

    @property
    def last(self) -> SampleSeries | None:
        return self._history[-1][1] if self._history else None

    # -- measurement --------------------------------------------------------

    def _calibrate(self, rounds: int) -> Duration:
        clock = self._clock
        samples = SampleSeries()
        for _ in range(rounds):
            start = clock()
            samples.push(Duration(clock() - start))
        return samples.mean()

    def _sample(self, operation: Callable[[], Any]) -> Duration:
        raw = measure(operation, self._clock)
        if raw > self._calibration:
            return raw - self._calibration
        return raw

    def bench(self, name: str, operation: Callable[[], Any]) -> Bencher:
        """Benchmark *operation* and record the result under *name*.

        The result line goes to the console, a record goes to the output
        sink if one is attached, and the series is appended to the
        history.  Exceptions raised by *operation* propagate and nothing
        is recorded.
        """
        self._echo(format_heading(name))
        series = SampleSeries()

        if self.adaptive:
            converged = False
            while len(series) < self._max_iterations:
                series.push(self._sample(operation))
                if len(series) >= 2 and series.coefficient_of_variation() < self._threshold:
                    converged = True
                    break
            log.debug(
                "%s: %s after %d samples",
                name,
                "converged" if converged else "hit iteration cap",
                len(series),
            )
            self._echo(format_iterations(len(series)))
        else:
            for _ in range(self._iterations):
                series.push(self._sample(operation))

        self._echo(format_result(series))
        self._history.append((name, series))
        self._write_record(name, series)
        return self

    # -- comparison ---------------------------------------------------------

    def difference(self) -> DurationDifference | None:
        """Difference between the last and second-to-last benchmarks.

        Returns None if fewer than two benchmarks have run.
        """
        if len(self._history) < 2:
            return None
        return DurationDifference.between(self._history[-1][1], self._history[-2][1])

    def compare(self) -> Bencher:
        """Print the difference between the two most recent benchmarks."""
        diff = self.difference()
        if diff is not None:
            self._echo(format_difference(diff))
        return self

    def print_settings(self) -> Bencher:
        for line in format_settings(self._calibration, self._iterations, self._max_iterations):
            self._echo(line)
        return self

    # -- output sink --------------------------------------------------------

    def write_output_to(self, sink: TextIO | str | Path) -> Bencher:
        """Attach a sink that receives one record per benchmark.

        A path is opened in append mode and closed by :meth:`close`.  The
        head marker is written when the sink is empty.
        """
        self.close()
        if isinstance(sink, (str, Path)):
            self._sink = open(sink, "a", encoding="utf-8")  # noqa: SIM115
            self._owns_sink = True
        else:
            self._sink = sink
            self._owns_sink = False

        if _at_start(self._sink):
            self._sink.write(OUTPUT_HEADER)
        return self

    def _write_record(self, name: str, series: SampleSeries) -> None:
        if self._sink is None:
            return
        try:
            self._sink.write(format_record(name, series))
        except (OSError, ValueError) as exc:
            log.warning("Could not write record for %r: %s", name, exc)

    def flush(self) -> None:
        """Flush the attached sink.

        Raises:
            OSError: If the underlying sink fails.
        """
        if self._sink is not None:
            self._sink.flush()

    def close(self) -> None:
        """Flush and detach the sink, closing it if it was opened by path."""
        if self._sink is None:
            return
        sink, owned = self._sink, self._owns_sink
        self._sink = None
        self._owns_sink = False
        try:
            sink.flush()
        finally:
            if owned:
                sink.close()

    def __enter__(self) -> Bencher:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def _at_start(sink: TextIO) -> bool:
    """True if nothing has been written to *sink* yet, or it cannot tell."""
    try:
        return not sink.seekable() or sink.tell() == 0
    except (OSError, ValueError):
        return True
