"""Typer CLI entrypoint for Record Pipeline."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Annotated, Optional

import typer
import yaml
from rich import box
from rich.console import Console
from rich.table import Table

from . import __version__
from .config import ConfigRepository, PipelineConfig
from .engine import RunStatistics
from .engine.fetcher import AS_OF_FORMAT
from .errors import ConfigError, PipelineError
from .logging_conf import DETAILS_LOG, STATISTICS_LOG, configure_logging, tail_log
from .orchestrator import Orchestrator

app = typer.Typer(
    help="Normalize, deduplicate and submit payment records to a REST API.",
    no_args_is_help=True,
    rich_markup_mode=None,
)
config_app = typer.Typer(name="config", help="Configuration commands.", no_args_is_help=True)
log_app = typer.Typer(name="log", help="Run log commands.", no_args_is_help=True)
app.add_typer(config_app, name="config")
app.add_typer(log_app, name="log")

console = Console()


@dataclass
class AppState:
    repository: ConfigRepository
    verbose: bool = False


def build_state(verbose: bool) -> AppState:
    configure_logging(verbose=verbose)
    return AppState(repository=ConfigRepository(), verbose=verbose)


def _get_state(ctx: typer.Context) -> AppState:
    state = ctx.obj
    if state is None:
        state = build_state(verbose=False)
        ctx.obj = state
    return state


def _load_config(state: AppState, overrides: dict[str, Optional[str]] | None = None) -> PipelineConfig:
    try:
        return state.repository.load_config(overrides)
    except (OSError, ValueError, yaml.YAMLError) as exc:
        console.print(f"Invalid configuration in {state.repository.locator.config_path()}:", style="red")
        console.print(str(exc), markup=False, highlight=False)
        raise typer.Exit(code=1)


def _progress_default_enabled() -> bool:
    return bool(getattr(sys.stdout, "isatty", lambda: False)())


def _validate_as_of(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    try:
        datetime.strptime(value, AS_OF_FORMAT)
    except ValueError as exc:
        raise typer.BadParameter("expected MM/DD/YYYY, e.g. 08/04/2021") from exc
    return value


def _render_stats_table(stats: RunStatistics) -> Table:
    table = Table(title="Submission results", box=box.SIMPLE_HEAD)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green", justify="right")
    table.add_row("Initial records", str(stats.initial))
    table.add_row("After processing", str(stats.unique))
    table.add_row("Sent", str(stats.sent))
    table.add_row("Success", str(stats.success))
    table.add_row("Failures", str(stats.failure))
    if stats.skipped:
        table.add_row("Not encodable", str(stats.skipped))
    table.add_row("Success rate", stats.format_rate())
    return table


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging on the console."),
) -> None:
    ctx.obj = build_state(verbose)


@app.command("run", help="Download the data file, process it and submit every unique record.")
def run(
    ctx: typer.Context,
    source: Annotated[Optional[str], typer.Option("--source", help="URL of the data file to download.")] = None,
    api: Annotated[Optional[str], typer.Option("--api", help="API URL where records are posted.")] = None,
    key: Annotated[Optional[str], typer.Option("--key", help="Value of the X-API-KEY header.")] = None,
    file: Annotated[
        Optional[Path],
        typer.Option("--file", help="Process a local CSV file instead of downloading.", exists=True, dir_okay=False),
    ] = None,
    as_of: Annotated[
        Optional[str],
        typer.Option("--as-of", help="Import date to stamp on records (MM/DD/YYYY).", callback=_validate_as_of),
    ] = None,
    save: Annotated[bool, typer.Option("--save", help="Save source/api/key for later launches.")] = False,
    quiet: Annotated[bool, typer.Option("--quiet", help="Print a single summary line.")] = False,
) -> None:
    state = _get_state(ctx)
    config = _load_config(state, {"source_url": source, "api_url": api, "api_key": key})
    try:
        config.require_submission_target()
    except ConfigError as exc:
        console.print(f"{exc}. Pass --api and --key, or set RECORD_PIPELINE_API_URL and RECORD_PIPELINE_API_KEY.")
        raise typer.Exit(code=1)
    if save:
        path = state.repository.save_config(config)
        console.print(f"Settings saved to {path}", style="dim")

    orchestrator = Orchestrator(config, locator=state.repository.locator, verbose=state.verbose)
    progress_flag = _progress_default_enabled() and not quiet and config.enable_progress_bar
    try:
        report = orchestrator.run(progress_enabled=progress_flag, local_file=file, as_of=as_of)
    except PipelineError as exc:
        console.print(f"[ FAILURE ] {exc}. Check the run log for details.", style="red")
        raise typer.Exit(code=1)

    stats = report.stats
    if quiet:
        console.print(stats.summary_line(), soft_wrap=True)
        return
    if stats.initial == 0:
        console.print("The data file does not contain any record; nothing was submitted.", style="yellow")
    console.print(_render_stats_table(stats))
    console.print(f"Logs: {report.run_dir}", style="dim")


@app.command("version", help="Show the current version.")
def version() -> None:
    console.print(f"record-pipeline {__version__}")


@config_app.command("show", help="Show the resolved configuration.")
def config_show(ctx: typer.Context) -> None:
    state = _get_state(ctx)
    config = _load_config(state)
    table = Table(title="Configuration", box=box.SIMPLE_HEAD)
    table.add_column("Setting", style="cyan", no_wrap=True)
    table.add_column("Value", style="green", overflow="fold")
    for name, value in config.masked().items():
        table.add_row(name, str(value))
    console.print(table)


@log_app.command("list", help="List run directories.")
def log_list(ctx: typer.Context) -> None:
    state = _get_state(ctx)
    runs = state.repository.locator.run_dirs()
    if not runs:
        console.print("No run logs yet.", style="dim")
        return
    table = Table(box=box.SIMPLE_HEAD)
    table.add_column("Run", style="green")
    for path in runs:
        table.add_row(path.name)
    console.print(table)


@log_app.command("show", help="Show the latest lines of a run log.")
def log_show(
    ctx: typer.Context,
    run_name: Optional[str] = typer.Argument(None, help="Run directory name (defaults to the latest)."),
    tail: int = typer.Option(100, "--tail", help="Number of lines to show."),
    records: bool = typer.Option(False, "--records", help="Show the record disposition log."),
) -> None:
    state = _get_state(ctx)
    runs = state.repository.locator.run_dirs()
    if run_name:
        run_dir = state.repository.locator.logs_dir / run_name
    elif runs:
        run_dir = runs[-1]
    else:
        console.print("No run logs yet.", style="dim")
        return
    path = run_dir / (STATISTICS_LOG if records else DETAILS_LOG)
    lines = tail_log(path, tail)
    if not lines:
        console.print(f"No log content in {path}.", style="dim")
        return
    console.print(f"{run_dir.name} / {path.name} · last {len(lines)} lines", style="cyan")
    console.print("".join(lines), markup=False, highlight=False)


def cli() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover
    cli()
