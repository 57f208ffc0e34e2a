from __future__ import annotations

import sys
from pathlib import Path
from typing import Callable, TypeVar

import typer

from .debug_log import close_search_debug_log, init_search_debug_log
from .display import format_alignment_table, sample_alignments
from .engine.search import SearchParams, SearchResult, run_search
from .engine.step import MIN_TPS
from .engine.verify import VerifyStrategy
from .errors import AlignmentError, InvalidInput, ZeroDelta
from .export import default_csv_name, write_csv, write_report
from .float_bits import Precision, float_format
from .resolve import parse_non_negative, resolve_displayed
from .settings import SearchSettings, load_settings
from .speeds import SPEED_LABELS, SpeedPreset, parse_speed

app = typer.Typer(add_completion=False)

_T = TypeVar("_T")


def _prompt_until(prompt: str, parse: Callable[[str], _T], *, default: str | None = None) -> _T:
    while True:
        raw = typer.prompt(prompt, default=default, show_default=False)
        try:
            return parse(str(raw))
        except (InvalidInput, ValueError) as exc:
            typer.echo(f"Invalid input. {exc}")


def _parse_tps(text: str, precision: Precision) -> float:
    fmt = float_format(precision)
    tps = fmt.parse(text) if text.strip() else float("nan")
    if not (tps >= fmt.round(MIN_TPS)):
        raise InvalidInput(f"tps must be at least {MIN_TPS}")
    return tps


def _parse_leniency(text: str, precision: Precision) -> float:
    if not text.strip():
        return 0.0
    return parse_non_negative(text, float_format(precision), name="leniency")


def _load_settings_or_exit(**overrides: object) -> SearchSettings:
    try:
        return load_settings(overrides)
    except InvalidInput as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from exc


def _echo_resolved(text: str, precision: Precision) -> None:
    resolved = resolve_displayed(text, float_format(precision))
    typer.echo(f"Your input: {resolved.text}")
    typer.echo(f"Rounded to float: {resolved.canonical:.10f}")
    typer.echo(f"Float range: [{resolved.range_min:.10f}, {resolved.range_max:.10f}]")


def _run_with_progress(params: SearchParams) -> SearchResult:
    with typer.progressbar(length=max(1, params.tick_ceiling), label="Calculating alignments", file=sys.stderr) as bar:
        state = {"done": 0}

        def _progress(ticks: int, max_ticks: int) -> None:
            if bar.length != max(1, max_ticks):
                bar.length = max(1, max_ticks)
            step = int(ticks) - state["done"]
            if step > 0:
                bar.update(step)
                state["done"] = int(ticks)

        return run_search(params, progress=_progress)


def _echo_result(result: SearchResult, *, display_limit: int) -> None:
    budget = result.budget
    if budget.capped:
        required = "an unbounded number of" if budget.required is None else f"{budget.required:,}"
        typer.echo(f"Note: Calculation would require {required} ticks.")
        typer.echo(f"Limiting to {budget.max_ticks:,} ticks for memory and performance.")
    typer.echo(f"Cache built in {result.cache_seconds * 1000.0:.2f} ms")
    total = result.cache_seconds + result.search_seconds
    typer.echo(
        f"Done in {total:.2f} sec (cache: {result.cache_seconds:.2f}s, search: {result.search_seconds:.2f}s)"
    )

    sampled = sample_alignments(result.alignments, display_limit)
    typer.echo("")
    typer.echo("Alignments:")
    for line in format_alignment_table(sampled.rows):
        typer.echo(line)
    if sampled.was_limited:
        typer.echo(f"\nNote: This list does not contain all {sampled.total:,} alignments.")
    if result.truncated_by_result_cap:
        typer.echo(f"Note: Result cap reached; only the first {len(result.alignments):,} alignments were kept.")


@app.command("search")
def cmd_search(
    target: str | None = typer.Argument(None, help="target x position as shown in-game (6 decimals)"),
    tps: str | None = typer.Option(None, "--tps", help="ticks per second"),
    speed: str | None = typer.Option(None, "--speed", help="last speed portal hit: 0.5x, 1x, 2x, 3x or 4x"),
    leniency: str | None = typer.Option(None, "--leniency", help="positional leniency (default: 0)"),
    precision: Precision | None = typer.Option(None, "--precision", help="float width used for the simulation"),
    strategy: VerifyStrategy | None = typer.Option(None, "--strategy", help="candidate verification strategy"),
    max_ticks: int | None = typer.Option(None, "--max-ticks", min=0, help="tick ceiling (default: 150000)"),
    max_results: int | None = typer.Option(None, "--max-results", min=0, help="stop after this many alignments"),
    display_limit: int | None = typer.Option(None, "--display-limit", min=2, help="rows shown in the terminal"),
    csv: bool | None = typer.Option(None, "--csv/--no-csv", help="export all alignments to CSV"),
    csv_path: Path | None = typer.Option(None, "--csv-path", help="CSV file path (implies --csv)"),
    json_path: Path | None = typer.Option(None, "--json-path", help="write a JSON report to this path"),
    log_file: Path | None = typer.Option(None, "--log-file", help="append search events to this file"),
) -> None:
    """Find every portal position and tick count that lands exactly on TARGET."""

    settings = _load_settings_or_exit(
        tick_ceiling=max_ticks,
        result_cap=max_results,
        display_limit=display_limit,
        precision=precision,
        strategy=strategy,
        log_file=log_file,
    )
    prec = settings.precision
    fmt = float_format(prec)
    init_search_debug_log(settings.log_file)
    try:
        try:
            if target is None:
                target = _prompt_until(
                    "Enter desired xpos (as shown in-game, 6 decimals)",
                    lambda raw: resolve_displayed(raw, fmt).text,
                )
            _echo_resolved(target, prec)
            typer.echo("\nThe 'float range' represents all real numbers that round to this float.\n")

            tps_value = (
                _parse_tps(tps, prec)
                if tps is not None
                else _prompt_until("Enter the TPS", lambda raw: _parse_tps(raw, prec))
            )
            leniency_value = (
                _parse_leniency(leniency, prec)
                if leniency is not None
                else _prompt_until(
                    "Enter positional leniency (leave blank for 0)",
                    lambda raw: _parse_leniency(raw, prec),
                    default="",
                )
            )
            speed_value = (
                parse_speed(speed)
                if speed is not None
                else _prompt_until("Enter the last speed portal hit (0.5x, 1x, 2x, 3x, or 4x)", parse_speed)
            )
            params = SearchParams(
                target=target,
                tps=tps_value,
                speed=speed_value,
                leniency=leniency_value,
                precision=prec,
                strategy=settings.strategy,
                tick_ceiling=settings.tick_ceiling,
                result_cap=settings.result_cap,
            )
        except (InvalidInput, ValueError) as exc:
            typer.echo(f"Invalid input: {exc}", err=True)
            raise typer.Exit(code=1) from exc

        try:
            result = _run_with_progress(params)
        except ZeroDelta as exc:
            typer.echo("TPS is too high - per-tick movement rounds to zero.", err=True)
            raise typer.Exit(code=1) from exc
        except AlignmentError as exc:
            typer.echo(f"search failed: {exc}", err=True)
            raise typer.Exit(code=1) from exc

        _echo_result(result, display_limit=settings.display_limit)

        if json_path is not None:
            written = write_report(result, json_path)
            typer.echo(f"JSON report written to: {written}")

        if not result.alignments:
            return
        export = csv
        if csv_path is not None:
            export = True
        elif export is None and sys.stdin.isatty():
            export = typer.confirm("\nExport to CSV?", default=False)
        if export:
            out = csv_path if csv_path is not None else settings.export_dir / default_csv_name()
            written = write_csv(result.alignments, out)
            typer.echo(f"\nCSV exported successfully to: {written}")
    finally:
        close_search_debug_log()


@app.command("resolve")
def cmd_resolve(
    target: str = typer.Argument(..., help="x position as shown in-game"),
    precision: Precision = typer.Option(Precision.SINGLE, "--precision", help="float width"),
) -> None:
    """Show the float a displayed position rounds to and its neighbours."""

    try:
        _echo_resolved(target, precision)
    except InvalidInput as exc:
        typer.echo(f"Invalid input: {exc}", err=True)
        raise typer.Exit(code=1) from exc


@app.command("speeds")
def cmd_speeds() -> None:
    """List the speed portal presets."""

    for preset in SpeedPreset:
        typer.echo(f"{SPEED_LABELS[preset]:>5}  {preset.name.lower():<10} {preset.units_per_second!r}")


def main(argv: list[str] | None = None) -> None:
    app(prog_name="gdalign", args=argv)


if __name__ == "__main__":
    main()
