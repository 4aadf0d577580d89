"""Time values and the clock used to take measurements.

Durations are stored as whole nanoseconds so that sums over a series are
exact.  The clock is any zero-argument callable returning a monotonic
nanosecond counter; ``time.perf_counter_ns`` is the default.
"""

from __future__ import annotations

import re
import time
from dataclasses import dataclass
from typing import Any, Callable

Clock = Callable[[], int]

default_clock: Clock = time.perf_counter_ns

# Largest unit first; each entry is (nanoseconds per unit, suffix).
_UNITS: tuple[tuple[int, str], ...] = (
    (1_000_000_000, "s"),
    (1_000_000, "ms"),
    (1_000, "µs"),
)

_DURATION_RE = re.compile(r"^(\d+)(?:\.(\d+))?(ns|µs|us|ms|s)$")

_SCALES: dict[str, int] = {
    "s": 1_000_000_000,
    "ms": 1_000_000,
    "µs": 1_000,
    "us": 1_000,
    "ns": 1,
}


# ---------------------------------------------------------------------------
# Duration
# ---------------------------------------------------------------------------


@dataclass(frozen=True, order=True)
class Duration:
    """A non-negative span of time with nanosecond resolution."""

    nanos: int = 0

    def __post_init__(self) -> None:
        if not isinstance(self.nanos, int):
            raise TypeError(f"Duration nanos must be an int, got {type(self.nanos).__name__}")
        if self.nanos < 0:
            raise ValueError(f"Duration cannot be negative (got {self.nanos}ns)")

    @classmethod
    def from_seconds(cls, seconds: float) -> Duration:
        return cls(round(seconds * 1_000_000_000))

    @classmethod
    def from_millis(cls, millis: float) -> Duration:
        return cls(round(millis * 1_000_000))

    @classmethod
    def from_micros(cls, micros: float) -> Duration:
        return cls(round(micros * 1_000))

    @classmethod
    def parse(cls, text: str) -> Duration:
        """Parse the text produced by ``str(Duration)``.

        Accepts ``us`` as an ASCII alias for ``µs``.

        Raises:
            ValueError: If *text* is not a duration, or has more
                fractional digits than nanosecond resolution allows.
        """
        match = _DURATION_RE.match(text.strip())
        if match is None:
            raise ValueError(f"Invalid duration: {text!r}")
        whole, frac, unit = match.groups()
        scale = _SCALES[unit]
        nanos = int(whole) * scale
        if frac:
            width = len(str(scale)) - 1
            if len(frac) > width:
                raise ValueError(f"Duration {text!r} is finer than nanosecond resolution")
            nanos += int(frac.ljust(width, "0"))
        return cls(nanos)

    def as_seconds(self) -> float:
        """Return the duration as floating-point seconds."""
        return self.nanos / 1_000_000_000

    def saturating_sub(self, other: Duration) -> Duration:
        """Subtract *other*, clamping at zero instead of raising."""
        return Duration(max(self.nanos - other.nanos, 0))

    def __add__(self, other: Any) -> Duration:
        if not isinstance(other, Duration):
            return NotImplemented
        return Duration(self.nanos + other.nanos)

    def __sub__(self, other: Any) -> Duration:
        if not isinstance(other, Duration):
            return NotImplemented
        if other.nanos > self.nanos:
            raise ValueError(f"Duration subtraction underflow: {self} - {other}")
        return Duration(self.nanos - other.nanos)

    def __floordiv__(self, count: Any) -> Duration:
        if not isinstance(count, int) or isinstance(count, bool):
            return NotImplemented
        if count <= 0:
            raise ZeroDivisionError(f"Cannot divide a duration by {count}")
        return Duration(self.nanos // count)

    def __bool__(self) -> bool:
        return self.nanos != 0

    def __str__(self) -> str:
        for scale, suffix in _UNITS:
            if self.nanos >= scale:
                whole, frac = divmod(self.nanos, scale)
                digits = f"{frac:0{len(str(scale)) - 1}d}".rstrip("0")
                return f"{whole}.{digits}{suffix}" if digits else f"{whole}{suffix}"
        return f"{self.nanos}ns"


ZERO = Duration(0)


# ---------------------------------------------------------------------------
# Measurement
# ---------------------------------------------------------------------------


def measure(operation: Callable[[], Any], clock: Clock = default_clock) -> Duration:
    """Run *operation* once and return the elapsed time.

    The return value of *operation* is discarded.  Exceptions raised by
    *operation* propagate unchanged.
    """
    start = clock()
    operation()
    return Duration(clock() - start)
