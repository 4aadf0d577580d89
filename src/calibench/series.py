"""Sample series and the statistics derived from them.

A :class:`SampleSeries` holds the durations measured for one named
benchmark.  The dispersion figure reported for a series is
``sqrt(sum_ns / (n - 1))``: a function of the total elapsed time and the
sample count, not of the spread of the individual samples.  Adaptive
iteration control and the displayed percentages depend on this exact
definition, so it must not be replaced with the textbook estimator.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Iterator

from calibench.timing import ZERO, Duration


class EmptySeriesError(ValueError):
    """Raised when a statistic is requested from a series with too few samples."""


class DegenerateSeriesError(EmptySeriesError):
    """Raised when a dispersion statistic is requested from a single sample."""


# ---------------------------------------------------------------------------
# SampleSeries
# ---------------------------------------------------------------------------


class SampleSeries:
    """An ordered, growable collection of measured durations."""

    def __init__(self, samples: Iterable[Duration] | None = None) -> None:
        self._samples: list[Duration] = list(samples) if samples is not None else []
        self._total_ns = sum(d.nanos for d in self._samples)

    def push(self, sample: Duration) -> SampleSeries:
        """Append one sample."""
        self._samples.append(sample)
        self._total_ns += sample.nanos
        return self

    def append(self, other: SampleSeries) -> SampleSeries:
        """Copy the samples of *other* onto the end of this series."""
        added = list(other)
        self._samples.extend(added)
        self._total_ns += sum(d.nanos for d in added)
        return self

    def __len__(self) -> int:
        return len(self._samples)

    def __iter__(self) -> Iterator[Duration]:
        return iter(self._samples)

    def __getitem__(self, index: int) -> Duration:
        return self._samples[index]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SampleSeries):
            return NotImplemented
        return self._samples == other._samples

    def __repr__(self) -> str:
        return f"SampleSeries({len(self._samples)} samples)"

    # -- statistics ---------------------------------------------------------

    def sum(self) -> Duration:
        """Total elapsed time across all samples (exact, kept as a running sum)."""
        return Duration(self._total_ns)

    def mean(self) -> Duration:
        """Average sample duration, truncated to whole nanoseconds.

        Raises:
            EmptySeriesError: If the series has no samples.
        """
        if not self._samples:
            raise EmptySeriesError("Cannot compute the mean of an empty series")
        return self.sum() // len(self._samples)

    def standard_deviation(self) -> float:
        """Return ``sqrt(sum_ns / (n - 1))`` in nanoseconds.

        Raises:
            EmptySeriesError: If the series has no samples.
            DegenerateSeriesError: If the series has exactly one sample.
        """
        n = len(self._samples)
        if n == 0:
            raise EmptySeriesError("Cannot compute the deviation of an empty series")
        if n == 1:
            raise DegenerateSeriesError("Cannot compute the deviation of a single sample")
        return math.sqrt(self.sum().nanos / (n - 1))

    def coefficient_of_variation(self) -> float:
        """Deviation divided by the mean in nanoseconds (``inf`` for a zero mean)."""
        stdev = self.standard_deviation()
        mean_ns = self.mean().nanos
        if mean_ns == 0:
            return float("inf")
        return stdev / mean_ns

    def compare(self, other: SampleSeries) -> DurationDifference:
        """Compare the means of this series and *other*."""
        return DurationDifference.between(self, other)

    def __str__(self) -> str:
        if not self._samples:
            return "no samples"
        mean = self.mean()
        if len(self._samples) < 2:
            return f"{mean} (±N/A)"
        stdev = self.standard_deviation()
        pct = stdev / mean.nanos * 100 if mean.nanos else float("inf")
        return f"{mean} (±{stdev:.2f}ns ~ {pct:.2f}%)"


# ---------------------------------------------------------------------------
# DurationDifference
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DurationDifference:
    """Signed difference between the means of two series."""

    magnitude: Duration = ZERO
    positive: bool = False

    @classmethod
    def between(cls, left: SampleSeries, right: SampleSeries) -> DurationDifference:
        """Return ``mean(left) - mean(right)`` as magnitude and sign.

        ``positive`` is True only when the left mean is strictly larger;
        equal means produce a negative zero difference.
        """
        left_mean = left.mean()
        right_mean = right.mean()
        if left_mean > right_mean:
            return cls(magnitude=left_mean - right_mean, positive=True)
        return cls(magnitude=right_mean - left_mean, positive=False)

    def __str__(self) -> str:
        return f"{'+' if self.positive else '-'}{self.magnitude}"
