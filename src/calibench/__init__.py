"""calibench: a lightweight, self-calibrating micro-benchmark timer."""

from calibench.bencher import Bencher
from calibench.records import OUTPUT_HEADER
from calibench.series import (
    DegenerateSeriesError,
    DurationDifference,
    EmptySeriesError,
    SampleSeries,
)
from calibench.timing import Duration

__version__ = "0.1.0"

__all__ = [
    "OUTPUT_HEADER",
    "Bencher",
    "DegenerateSeriesError",
    "Duration",
    "DurationDifference",
    "EmptySeriesError",
    "SampleSeries",
    "__version__",
]
