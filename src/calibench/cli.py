"""Command-line interface for calibench.

Subcommands:
    calibench run        Benchmark Python statements
    calibench show       Display a tab-separated output file
    calibench settings   Print calibration and iteration settings
"""

from __future__ import annotations

import textwrap
from pathlib import Path
from typing import Any, Callable, Generator

import click
import yaml

from calibench import __version__
from calibench.bencher import Bencher
from calibench.config import BenchmarkDef, config_from_profile, load_profile
from calibench.display import format_records
from calibench.logging import get_logger, setup_logging
from calibench.records import OutputFormatError, read_output

log = get_logger("cli")


@click.group()
@click.version_option(version=__version__)
def main() -> None:
    """calibench — time small pieces of Python code."""


# ---------------------------------------------------------------------------
# Statement compilation
# ---------------------------------------------------------------------------


def compile_statement(
    stmt: str,
    namespace: dict[str, Any],
    setup: str = "",
) -> Callable[[], None]:
    """Compile *stmt* into a zero-argument callable, the way timeit does.

    *setup* and *stmt* are placed in one generator function whose globals
    are *namespace*: the setup runs once, then each call of the returned
    callable resumes the generator and executes *stmt* once more.  Names
    bound by the setup or by the statement are locals of that frame, so
    ``-s "x = 0" "x += 1"`` behaves as it does under ``python -m timeit``.

    Raises:
        SyntaxError: If *stmt* or *setup* is not valid Python.
    """
    source = (
        "def _calibench_inner():\n"
        + _body(setup or "pass", 4)
        + "    while True:\n"
        + "        yield\n"
        + _body(stmt, 8)
    )
    code = compile(source, "<calibench>", "exec")
    local: dict[str, Any] = {}
    exec(code, namespace, local)  # noqa: S102
    gen: Generator[None, None, None] = local["_calibench_inner"]()
    next(gen)
    return gen.__next__


def _body(code: str, indent: int) -> str:
    return textwrap.indent(textwrap.dedent(code).rstrip() + "\n", " " * indent)


# ---------------------------------------------------------------------------
# run
# ---------------------------------------------------------------------------


@main.command()
@click.argument("statements", nargs=-1)
@click.option("-s", "--setup", type=str, default=None, help="Code run once before benchmarking.")
@click.option(
    "--name",
    "names",
    type=str,
    multiple=True,
    help="Name for the matching statement (repeatable, in order).",
)
@click.option(
    "-n",
    "--iterations",
    type=int,
    default=None,
    help="Samples per benchmark (default: 100, 0 = adaptive).",
)
@click.option("--auto", is_flag=True, help="Adaptive mode; same as --iterations 0.")
@click.option(
    "--max-iterations",
    type=int,
    default=None,
    help="Sample cap in adaptive mode (default: 10000).",
)
@click.option(
    "--profile",
    "profile_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="YAML profile with settings and benchmarks.",
)
@click.option(
    "-o",
    "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Append tab-separated records to this file.",
)
@click.option(
    "--compare/--no-compare",
    default=None,
    help="Print the difference to the previous benchmark after each one.",
)
@click.option("--settings", "show_settings", is_flag=True, help="Print settings first.")
@click.option("-v", "--verbose", is_flag=True, help="Show debug output.")
@click.option("-q", "--quiet", is_flag=True, help="Only show warnings and errors.")
@click.option("--log-file", type=click.Path(path_type=Path), default=None)
def run(  # noqa: PLR0913
    statements: tuple[str, ...],
    setup: str | None,
    names: tuple[str, ...],
    iterations: int | None,
    auto: bool,
    max_iterations: int | None,
    profile_path: Path | None,
    output: Path | None,
    compare: bool | None,
    show_settings: bool,
    verbose: bool,
    quiet: bool,
    log_file: Path | None,
) -> None:
    """Benchmark each STATEMENT in turn."""
    setup_logging(verbose=verbose, quiet=quiet, log_file=log_file)

    if auto and iterations not in (None, 0):
        raise click.UsageError("--auto and --iterations are mutually exclusive")
    if len(names) > len(statements):
        raise click.UsageError("More --name options than statements")

    try:
        profile_data = load_profile(profile_path) if profile_path else {}
        config = config_from_profile(
            profile_data,
            cli_overrides={
                "iterations": 0 if auto else iterations,
                "max_iterations": max_iterations,
                "output": output,
                "setup": setup,
                "compare": compare,
            },
        )
    except (ValueError, TypeError) as exc:
        raise click.UsageError(str(exc)) from exc
    except yaml.YAMLError as exc:
        raise click.UsageError(f"Invalid profile {profile_path}: {exc}") from exc

    if statements:
        labels = list(names) + list(statements[len(names) :])
        config.benchmarks = [BenchmarkDef(name=n, stmt=s) for n, s in zip(labels, statements)]
    if not config.benchmarks:
        raise click.UsageError("No statements given and the profile defines no benchmarks.")

    namespace: dict[str, Any] = {"__name__": "__calibench__"}
    try:
        operations = [
            (b.name, compile_statement(b.stmt, namespace, config.setup))
            for b in config.benchmarks
        ]
    except SyntaxError as exc:
        raise click.UsageError(f"Invalid Python: {exc}") from exc

    try:
        bencher = Bencher.from_config(config)
    except ValueError as exc:
        raise click.UsageError(str(exc)) from exc
    except OSError as exc:
        raise click.ClickException(f"Cannot open output file: {exc}") from exc

    with bencher:
        if show_settings:
            bencher.print_settings()
        for name, operation in operations:
            bencher.bench(name, operation)
            if config.compare:
                bencher.compare()
        try:
            bencher.flush()
        except OSError as exc:
            raise click.ClickException(f"Could not write output: {exc}") from exc

    if config.output is not None:
        log.info("Results appended to %s", config.output)


# ---------------------------------------------------------------------------
# show
# ---------------------------------------------------------------------------


@main.command()
@click.argument("output_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def show(output_file: Path) -> None:
    """Display the records in a calibench OUTPUT_FILE."""
    try:
        records = read_output(output_file)
    except OutputFormatError as exc:
        raise click.ClickException(f"{output_file}: {exc}") from exc
    click.echo(format_records(records))


# ---------------------------------------------------------------------------
# settings
# ---------------------------------------------------------------------------


@main.command()
@click.option("-n", "--iterations", type=int, default=100, show_default=True)
@click.option("--max-iterations", type=int, default=10_000, show_default=True)
def settings(iterations: int, max_iterations: int) -> None:
    """Calibrate the clock and print the resulting settings."""
    try:
        bencher = Bencher(iterations=iterations, max_iterations=max_iterations)
    except ValueError as exc:
        raise click.UsageError(str(exc)) from exc
    bencher.print_settings()
