"""Console formatting for benchmark output.

All styling lives here; the bencher only hands finished lines to its
echo callable.  ``click.echo`` strips the ANSI codes when the output is
not a terminal.
"""

from __future__ import annotations

import click

from calibench.records import Record
from calibench.series import DurationDifference, SampleSeries
from calibench.timing import Duration


# ---------------------------------------------------------------------------
# Benchmark lines
# ---------------------------------------------------------------------------


def format_heading(name: str) -> str:
    """Format the line printed before a benchmark starts."""
    return "\n" + click.style(name, fg="bright_blue", bold=True)


def format_iterations(count: int) -> str:
    """Format the adaptive-mode iteration count."""
    noun = "iteration" if count == 1 else "iterations"
    return click.style(f"After {count} {noun}", dim=True)


def format_result(series: SampleSeries) -> str:
    return f"Result: {series}"


def format_difference(diff: DurationDifference) -> str:
    return f"Difference: {diff}"


def format_settings(
    calibration: Duration,
    iterations: int,
    max_iterations: int,
) -> list[str]:
    """Format the bencher settings block.

    Args:
        calibration: The calibration offset subtracted from samples.
        iterations: Configured iteration count; 0 means adaptive.
        max_iterations: Adaptive-mode cap, shown only when adaptive.

    Returns:
        The lines to print, in order.
    """
    lines = [
        "\n" + click.style("Benchmarking Settings", fg="green", underline=True),
        f"Benchmarking accuracy delay:\t {calibration}",
        f"Number of iterations:\t {iterations if iterations > 0 else 'auto'}",
    ]
    if iterations == 0:
        lines.append(f"Maximum number of iterations: {max_iterations}")
    return lines


# ---------------------------------------------------------------------------
# Output file tables
# ---------------------------------------------------------------------------


def format_table(
    headers: list[str],
    rows: list[list[str]],
    *,
    alignments: list[str] | None = None,
    indent: int = 2,
) -> str:
    """Format rows as an aligned text table.

    Args:
        headers: Column header strings.
        rows: List of rows, each a list of cell strings.
        alignments: Per-column alignment, ``'l'`` or ``'r'``.
        indent: Number of leading spaces per line.
    """
    if not headers:
        return ""

    ncols = len(headers)
    aligns = list(alignments or [])
    aligns += ["l"] * (ncols - len(aligns))

    padded = [(list(row) + [""] * ncols)[:ncols] for row in rows]
    widths = [len(h) for h in headers]
    for row in padded:
        for ci, cell in enumerate(row):
            widths[ci] = max(widths[ci], len(cell))

    def _cell(text: str, ci: int) -> str:
        return text.rjust(widths[ci]) if aligns[ci] == "r" else text.ljust(widths[ci])

    prefix = " " * indent
    lines = [prefix + "  ".join(_cell(h, i) for i, h in enumerate(headers)).rstrip()]
    lines.append(prefix + "─" * (sum(widths) + 2 * (ncols - 1)))
    for row in padded:
        lines.append(prefix + "  ".join(_cell(c, i) for i, c in enumerate(row)).rstrip())
    return "\n".join(lines)


def format_records(records: list[Record]) -> str:
    """Format parsed output records for ``calibench show``."""
    if not records:
        return "No benchmark records."

    rows: list[list[str]] = []
    for r in records:
        if r.stddev_ns is None or r.mean.nanos == 0:
            stddev = "N/A" if r.stddev_ns is None else f"{r.stddev_ns:.2f}ns"
            pct = "N/A"
        else:
            stddev = f"{r.stddev_ns:.2f}ns"
            pct = f"{r.stddev_ns / r.mean.nanos * 100:.2f}%"
        rows.append([r.name, str(r.mean), stddev, pct])

    return format_table(
        ["Benchmark", "Mean", "±", "CV"],
        rows,
        alignments=["l", "r", "r", "r"],
    )
