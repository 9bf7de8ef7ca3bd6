"""CLI interface for lokatranslator using Typer."""

from __future__ import annotations

import logging
import signal
from pathlib import Path
from threading import Event

import typer
from rich.console import Console
from rich.table import Table

from lokatranslator import __version__
from lokatranslator.config import Settings, load_settings
from lokatranslator.core.errors import ConfigError, ExtractionError, NavigationError, StoreError
from lokatranslator.core.models import PipelineOutcome
from lokatranslator.core.worklist import WorkList
from lokatranslator.log import setup_logging

app = typer.Typer(
    name="lokatranslator",
    help="Fill empty Lokalise translations with a Gemini model.",
    add_completion=False,
)
console = Console()
logger = logging.getLogger("lokatranslator")

_verbose = False
_quiet = False


def _print(msg: str, *, verbose_only: bool = False) -> None:
    """Print respecting --verbose/--quiet flags. Errors bypass --quiet."""
    if _quiet:
        return
    if verbose_only and not _verbose:
        return
    console.print(msg)


def _fail(msg: str) -> typer.Exit:
    console.print(f"[red]Error:[/red] {msg}")
    return typer.Exit(1)


def _load(env_file: Path | None, **overrides: object) -> Settings:
    try:
        settings = load_settings(env_file).with_overrides(**overrides)
        settings.validate()
    except ConfigError as e:
        raise _fail(str(e)) from None
    return settings


def _await_enter() -> None:
    console.input(
        "[bold]Log in using the browser window, then press ENTER here to continue...[/bold]"
    )


def _install_interrupt_handler(cancel_event: Event):
    """First Ctrl-C lets running projects finish, the second one aborts."""

    def handler(signum, frame):
        if cancel_event.is_set():
            raise KeyboardInterrupt
        cancel_event.set()
        console.print(
            "[yellow]Interrupted: finishing projects in progress. "
            "Press Ctrl-C again to abort.[/yellow]"
        )

    return signal.signal(signal.SIGINT, handler)


def _summary_table(outcomes: list[PipelineOutcome]) -> Table:
    table = Table(title="Run Summary")
    table.add_column("Project", style="bold")
    table.add_column("Result")
    table.add_column("Empty", justify="right")
    table.add_column("Filled", justify="right")
    table.add_column("Error")
    for o in outcomes:
        result = "[green]done[/green]" if o.success else "[red]failed[/red]"
        table.add_row(o.label, result, str(o.collected), str(o.filled), o.error or "")
    return table


def version_callback(value: bool) -> None:
    if value:
        console.print(f"lokatranslator {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v",
        help="Show debug output.",
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Only show warnings and errors.",
    ),
) -> None:
    """lokatranslator: fill empty Lokalise translations automatically."""
    global _verbose, _quiet
    _verbose = verbose
    _quiet = quiet


@app.command()
def run(
    env_file: Path | None = typer.Option(
        None, "--env-file", "-e", help="Read settings from this .env file.",
    ),
    input_file: Path | None = typer.Option(
        None, "--input", "-i", help="Work-list file (overrides INPUT_FILE).",
    ),
    concurrency: int | None = typer.Option(
        None, "--concurrency", "-c", help="Projects processed at once (overrides MAX_CONCURRENCY).",
    ),
    headless: bool = typer.Option(
        False, "--headless", help="Run the browser without a window (or set HEADLESS).",
    ),
    use_dummy: bool = typer.Option(
        False, "--dummy", help="Use the offline dummy backend (implies --dry-run).",
    ),
    dry_run: bool = typer.Option(
        False, "--dry-run", help="Collect and translate but don't type anything.",
    ),
    no_cache: bool = typer.Option(
        False, "--no-cache", help="Disable translation cache.",
    ),
    report: Path | None = typer.Option(
        None, "--report", "-r", help="Save report to file (json/md/csv).",
    ),
    log_dir: Path = typer.Option(
        Path("logs"), "--log-dir", help="Directory for run logs.",
    ),
) -> None:
    """Translate every project listed in the work-list."""
    from lokatranslator.browser.session import ensure_login, open_project
    from lokatranslator.notify.telegram import create_notifier
    from lokatranslator.orchestrator import Orchestrator
    from lokatranslator.pipeline import UnitPipeline, create_backend
    from lokatranslator.reporting.formatters import save_report
    from lokatranslator.reporting.report import RunReport
    from lokatranslator.translation.cache import TranslationCache

    log_path = setup_logging(log_dir, verbose=_verbose, quiet=_quiet, console=console)
    logger.info("lokatranslator %s started", __version__)
    _print(f"Log file: [dim]{log_path}[/dim]", verbose_only=True)

    settings = _load(env_file, input_file=input_file, max_concurrency=concurrency,
                     headless=headless or None)
    dry_run = dry_run or use_dummy

    try:
        backend = create_backend("dummy" if use_dummy else "gemini", settings)
    except ConfigError as e:
        raise _fail(str(e)) from None

    store = WorkList(settings.input_file)
    try:
        units = store.load()
    except StoreError as e:
        raise _fail(str(e)) from None

    if not units:
        console.print(f"[yellow]No projects listed in {settings.input_file}[/yellow]")
        raise typer.Exit()

    try:
        ensure_login(settings, _await_enter)
    except NavigationError as e:
        raise _fail(f"Login failed: {e}") from None

    console.print(
        f"Found [green]{len(units)}[/green] project(s), "
        f"[cyan]{settings.max_concurrency}[/cyan] worker(s)\n"
    )
    _print(f"Backend: [cyan]{backend.label}[/cyan]", verbose_only=True)

    cache = None if (no_cache or use_dummy) else TranslationCache()
    cancel_event = Event()
    pipeline = UnitPipeline(
        settings,
        backend,
        open_project,
        cache=cache,
        cancel_event=cancel_event,
        dry_run=dry_run,
    )
    orchestrator = Orchestrator(
        pipeline,
        store,
        create_notifier(settings.tg_bot_token, settings.chat_id),
        settings.max_concurrency,
        cancel_event=cancel_event,
        remove_on_success=not dry_run,
    )

    run_report = RunReport(
        input_file=str(settings.input_file),
        target_lang=settings.target_lang_id,
        backend=backend.label,
        concurrency=settings.max_concurrency,
        units_total=len(units),
    )

    previous = _install_interrupt_handler(cancel_event)
    try:
        run_report.outcomes = orchestrator.run(units)
    finally:
        signal.signal(signal.SIGINT, previous)
        if cache is not None:
            cache.close()
        backend.close()
    run_report.finish()

    console.print(_summary_table(run_report.outcomes))
    console.print(
        f"Succeeded: [green]{run_report.succeeded}[/green]  "
        f"Failed: [red]{run_report.failed}[/red]  "
        f"Not started: [yellow]{run_report.not_started}[/yellow]"
    )

    if report:
        save_report(run_report, report)
        _print(f"Report saved to [cyan]{report}[/cyan]")

    logger.info("All projects processed")


@app.command()
def login(
    env_file: Path | None = typer.Option(
        None, "--env-file", "-e", help="Read settings from this .env file.",
    ),
) -> None:
    """Log in interactively and save the browser session."""
    from lokatranslator.browser.session import ensure_login

    setup_logging(None, verbose=_verbose, quiet=_quiet, console=console)
    settings = _load(env_file)
    try:
        created = ensure_login(settings, _await_enter)
    except NavigationError as e:
        raise _fail(f"Login failed: {e}") from None

    if created:
        console.print(f"Session saved to [green]{settings.auth_state_file}[/green]")
    else:
        console.print(
            f"Session already exists at [cyan]{settings.auth_state_file}[/cyan]; "
            "delete it to log in again."
        )


@app.command()
def pending(
    env_file: Path | None = typer.Option(
        None, "--env-file", "-e", help="Read settings from this .env file.",
    ),
    input_file: Path | None = typer.Option(
        None, "--input", "-i", help="Work-list file (overrides INPUT_FILE).",
    ),
) -> None:
    """List the projects still waiting in the work-list."""
    settings = _load(env_file, input_file=input_file)
    try:
        units = WorkList(settings.input_file).load()
    except StoreError as e:
        raise _fail(str(e)) from None

    if not units:
        console.print(f"[yellow]No projects listed in {settings.input_file}[/yellow]")
        return

    table = Table(title=f"Pending projects ({len(units)})")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Project URL")
    for n, unit in enumerate(units, 1):
        table.add_row(str(n), unit)
    console.print(table)


@app.command()
def extract(
    file: Path = typer.Argument(
        ..., help="File holding a raw model response.",
    ),
) -> None:
    """Parse a saved model response and show the translations it contains."""
    from lokatranslator.translation.extractor import extract_translations

    if not file.is_file():
        raise _fail(f"File not found: {file}")

    try:
        items = extract_translations(file.read_text(encoding="utf-8"))
    except ExtractionError as e:
        raise _fail(str(e)) from None

    table = Table(title=f"Translations in {file.name}")
    table.add_column("ID", style="cyan")
    table.add_column("Translation")
    for item in items:
        table.add_row(item.id, item.translation)
    console.print(table)
    console.print(f"Total: [green]{len(items)}[/green]")


@app.command(name="cache-info")
def cache_info() -> None:
    """Show translation cache statistics."""
    from lokatranslator.translation.cache import TranslationCache

    cache = TranslationCache()
    count = cache.count()
    per_lang = cache.count_by_lang()
    cache.close()

    console.print(f"Cached translations: [green]{count}[/green]")
    for lang, n in per_lang.items():
        console.print(f"  language {lang}: {n}")
    console.print(f"Cache location: [dim]{cache.path}[/dim]")


@app.command(name="cache-clear")
def cache_clear() -> None:
    """Clear the translation cache."""
    from lokatranslator.translation.cache import TranslationCache

    cache = TranslationCache()
    deleted = cache.clear()
    console.print(f"Cleared [yellow]{deleted}[/yellow] cached translations.")
    cache.close()


if __name__ == "__main__":
    app()
