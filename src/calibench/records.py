"""Tab-separated benchmark output files.

File format::

    name<TAB>mean<TAB>stddev
    sort 1k<TAB>12.5µs<TAB>111.80ns
    sort 10k<TAB>131.2µs<TAB>362.22ns

The first line is :data:`OUTPUT_HEADER`; consumers check for it before
trusting the rest of the file.  Each ``bench`` call appends one record.
The mean column uses the ``str(Duration)`` form and the stddev column is
the series deviation in nanoseconds with two decimals, or ``N/A`` when
the series had a single sample.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from calibench.series import SampleSeries
from calibench.timing import Duration

OUTPUT_HEADER = "name\tmean\tstddev\n"

_NOT_AVAILABLE = "N/A"


class OutputFormatError(ValueError):
    """Raised when an output file does not follow the record format."""


@dataclass
class Record:
    """One parsed line of an output file."""

    name: str
    mean: Duration
    stddev_ns: float | None  # None when written from a single sample


def format_record(name: str, series: SampleSeries) -> str:
    """Format one output line for a finished series.

    Tabs and newlines in *name* are replaced with spaces so the record
    stays on one line.
    """
    clean_name = name.replace("\t", " ").replace("\n", " ")
    if len(series) >= 2:
        stddev = f"{series.standard_deviation():.2f}ns"
    else:
        stddev = _NOT_AVAILABLE
    return f"{clean_name}\t{series.mean()}\t{stddev}\n"


def parse_records(text: str) -> list[Record]:
    """Parse the contents of an output file.

    Raises:
        OutputFormatError: If the head marker is missing or a line is
            malformed.
    """
    if not text.startswith(OUTPUT_HEADER):
        raise OutputFormatError("Missing output header; not a calibench output file")

    records: list[Record] = []
    body = text[len(OUTPUT_HEADER) :]
    for lineno, line in enumerate(body.splitlines(), start=2):
        if not line.strip():
            continue
        parts = line.split("\t")
        if len(parts) != 3:
            raise OutputFormatError(
                f"Line {lineno}: expected 3 tab-separated fields, got {len(parts)}"
            )
        name, mean_text, stddev_text = parts
        try:
            mean = Duration.parse(mean_text)
        except ValueError as exc:
            raise OutputFormatError(f"Line {lineno}: {exc}") from exc

        stddev: float | None
        if stddev_text == _NOT_AVAILABLE:
            stddev = None
        elif stddev_text.endswith("ns"):
            try:
                stddev = float(stddev_text[:-2])
            except ValueError as exc:
                raise OutputFormatError(f"Line {lineno}: invalid stddev {stddev_text!r}") from exc
        else:
            raise OutputFormatError(f"Line {lineno}: invalid stddev {stddev_text!r}")

        records.append(Record(name=name, mean=mean, stddev_ns=stddev))

    return records


def read_output(path: Path) -> list[Record]:
    """Read and parse an output file."""
    return parse_records(path.read_text(encoding="utf-8"))
