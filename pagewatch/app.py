"""Typer CLI entrypoint for pagewatch."""

from __future__ import annotations

import sys
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Sequence, TextIO

import typer
from rich import box
from rich.console import Console
from rich.table import Table

from .config import ConfigLocator, ConfigRepository, SourceConfig, WatchConfig
from .daemon import Poller
from .engine import Extractor, PageExtractor, PageFetcher, Record, SeenStore, build_store
from .logging_conf import configure_logging
from .report import BaseReporter, CompositeReporter, ConsoleReporter, JsonLinesReporter
from .report.console import format_record

app = typer.Typer(
    help="Watch web pages and report items that were not seen before.",
    no_args_is_help=True,
    rich_markup_mode=None,
)

console = Console(highlight=False)

QUIT_COMMAND = "quit"


@dataclass
class CliOptions:
    config_path: Path | None = None
    verbose: bool = False


@dataclass
class AppState:
    repository: ConfigRepository
    config: WatchConfig
    store: SeenStore


def build_state(config_path: Path | None, verbose: bool) -> AppState:
    locator = ConfigLocator(config_path=config_path)
    locator.ensure_directories()
    configure_logging(verbose=verbose, log_dir=locator.logs_dir)
    repository = ConfigRepository(locator)
    config = repository.load()
    store = build_store(config.state_backend, repository.state_path(config))
    store.load()
    return AppState(repository=repository, config=config, store=store)


def build_extractor(config: WatchConfig) -> PageExtractor:
    return PageExtractor(PageFetcher(config))


def _get_state(ctx: typer.Context) -> AppState:
    state = ctx.obj
    if isinstance(state, AppState):
        return state
    options = state if isinstance(state, CliOptions) else CliOptions()
    try:
        state = build_state(options.config_path, options.verbose)
    except (FileNotFoundError, ValueError) as exc:
        # pydantic.ValidationError is a ValueError
        console.print(f"Cannot load configuration: {exc}", style="red", markup=False)
        raise typer.Exit(code=1)
    ctx.obj = state
    ctx.call_on_close(state.store.close)
    return state


def _close_extractor(extractor: Extractor) -> None:
    close = getattr(extractor, "close", None)
    if callable(close):
        close()


def read_commands(stream: TextIO, on_quit: Callable[[], None]) -> None:
    """Consume operator input until ``quit``; anything else is ignored.

    End of input leaves the daemon running.
    """
    for line in stream:
        if line.strip() == QUIT_COMMAND:
            on_quit()
            return


def _render_sources_table(sources: Sequence[SourceConfig]) -> Table:
    table = Table(title=f"Sources · {len(sources)} configured", box=box.SIMPLE_HEAD)
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Active", style="magenta")
    table.add_column("Mode", style="yellow")
    table.add_column("Fields", style="green")
    table.add_column("URL", overflow="fold")
    for source in sources:
        table.add_row(
            source.name,
            "yes" if source.active else "no",
            "browser" if source.use_browser else "http",
            ", ".join(f"{item.name}:{item.kind.value}" for item in source.contents) or "-",
            source.url,
        )
    return table


def _print_records(records: Sequence[Record]) -> None:
    for record in records:
        for line in format_record(record):
            console.print(line, markup=False, emoji=False, soft_wrap=True)
        console.print()


@app.callback()
def main(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Configuration file (JSON or YAML).", envvar="PAGEWATCH_CONFIG"
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging."),
) -> None:
    ctx.obj = CliOptions(config_path=config, verbose=verbose)


@app.command("run", help="Start watching; type 'quit' to stop.")
def run(
    ctx: typer.Context,
    once: bool = typer.Option(False, "--once", help="Run a single cycle and exit."),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Also append new records to this JSON-lines file."
    ),
) -> None:
    state = _get_state(ctx)
    reporters: list[BaseReporter] = [ConsoleReporter(console)]
    if output is not None:
        reporters.append(JsonLinesReporter(output))
    reporter = CompositeReporter(reporters)
    extractor = build_extractor(state.config)
    poller = Poller(state.config, extractor, state.store, reporter)
    try:
        if once:
            batch = poller.run_once()
            console.print(f"{len(batch)} new record(s).", style="dim")
            return
        console.print(
            f"Watching {len(state.config.active_sources())} source(s) every "
            f"{state.config.check_interval} minute(s). Type '{QUIT_COMMAND}' to stop.",
            style="dim",
        )
        reader = threading.Thread(
            target=read_commands, args=(sys.stdin, poller.stop), name="pagewatch-control", daemon=True
        )
        reader.start()
        try:
            poller.run_forever()
        except KeyboardInterrupt:
            poller.stop()
    finally:
        poller.close()
        _close_extractor(extractor)
        reporter.close()


@app.command("sources", help="List configured sources.")
def sources(ctx: typer.Context) -> None:
    state = _get_state(ctx)
    if not state.config.sources:
        console.print("No sources configured.", style="yellow")
        raise typer.Exit(code=0)
    console.print(_render_sources_table(state.config.sources))


@app.command("check", help="Extract one source now without touching the seen store.")
def check(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Source name."),
) -> None:
    state = _get_state(ctx)
    try:
        source = state.config.get_source(name)
    except KeyError:
        console.print(f"Unknown source `{name}`.", style="red", markup=False)
        raise typer.Exit(code=1)
    extractor = build_extractor(state.config)
    try:
        records = extractor.extract(source)
    except Exception as exc:  # noqa: BLE001
        console.print(f"Extraction failed: {exc}", style="red", markup=False)
        raise typer.Exit(code=1)
    finally:
        _close_extractor(extractor)
    _print_records(records)
    console.print(f"{len(records)} record(s) found.", style="dim")


@app.command("history", help="Show records already reported for a source.")
def history(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Source name."),
    limit: int = typer.Option(20, "--limit", "-n", min=1, help="Show the N most recent records."),
) -> None:
    state = _get_state(ctx)
    records = state.store.records(name)
    if not records:
        console.print(f"No records stored for `{name}`.", style="yellow", markup=False)
        raise typer.Exit(code=0)
    _print_records(records[-limit:])
    console.print(f"{min(limit, len(records))} of {len(records)} record(s).", style="dim")


@app.command("reset", help="Forget stored records for one source, or for all sources.")
def reset(
    ctx: typer.Context,
    name: Optional[str] = typer.Argument(None, help="Source name; omit to reset everything."),
    yes: bool = typer.Option(False, "--yes", help="Skip the confirmation prompt."),
) -> None:
    state = _get_state(ctx)
    target = f"`{name}`" if name else "all sources"
    if not yes and not typer.confirm(f"Forget stored records for {target}?", default=False):
        console.print("Cancelled.", style="yellow")
        raise typer.Exit(code=0)
    state.store.reset(name)
    state.store.persist()
    console.print(f"Stored records cleared for {target}.", style="green", markup=False)


def cli() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover
    cli()
