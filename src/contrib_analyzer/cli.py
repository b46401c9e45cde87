"""Typer CLI entry point for contrib-analyzer."""

from __future__ import annotations

import asyncio
from datetime import date
from pathlib import Path
from typing import TYPE_CHECKING, Annotated, Any

import httpx
import structlog
import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.progress import BarColumn, Progress, TextColumn, TimeElapsedColumn
from rich.table import Table

from contrib_analyzer import __version__
from contrib_analyzer.config import Settings, format_validation_error
from contrib_analyzer.events import Severity
from contrib_analyzer.logging import configure_logging, generate_run_id
from contrib_analyzer.models import Project, RunConfig
from contrib_analyzer.orchestrator import RunOrchestrator
from contrib_analyzer.source import PageFetcher

if TYPE_CHECKING:
    from contrib_analyzer.models import Report

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(
    name="contrib-analyzer",
    help="Contribution statistics for event participants across wiki projects.",
    no_args_is_help=True,
)

_SEVERITY_STYLES = {
    Severity.INFO: "cyan",
    Severity.SUCCESS: "green",
    Severity.WARNING: "yellow",
    Severity.ERROR: "red",
}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _load_settings(config_path: Path | None = None, **overrides: Any) -> Settings:
    """Load settings with error handling and user-friendly messages."""
    try:
        return Settings.load(config_path=config_path, **overrides)
    except ValidationError as exc:
        err_console.print(
            Panel(
                format_validation_error(exc),
                title="Configuration Error",
                border_style="red",
            )
        )
        raise typer.Exit(code=1) from exc


def _read_participants(names: list[str], path: Path | None) -> list[str]:
    """Merge ``--participant`` values with one-name-per-line file entries."""
    collected = list(names)
    if path is not None:
        for raw in path.read_text(encoding="utf-8").splitlines():
            name = raw.strip()
            if name and not name.startswith("#"):
                collected.append(name)
    return collected


def _create_progress() -> Progress:
    return Progress(
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
        TextColumn("[dim]{task.fields[detail]}"),
        TimeElapsedColumn(),
        console=console,
    )


def _display_report(report: Report, peak_hours: int) -> None:
    summary = report.summary
    console.print(
        Panel(
            f"Period: {summary.period.start} to {summary.period.end}\n"
            f"Contributions: {summary.total_contributions}  "
            f"Participants: {summary.total_participants}  "
            f"Projects: {summary.total_projects}  "
            f"API calls: {summary.total_api_calls}\n"
            f"Minor edits: {summary.total_minor}  New pages: {summary.total_new}",
            title="Contribution Analysis",
            border_style="blue",
        )
    )

    if report.top_contributors:
        table = Table(title="Top Contributors")
        table.add_column("#", style="cyan", justify="right", width=4)
        table.add_column("Participant")
        table.add_column("Total", justify="right")
        table.add_column("Minor", justify="right")
        table.add_column("New", justify="right")
        table.add_column("Projects", justify="right")
        for rank, view in enumerate(report.top_contributors, start=1):
            table.add_row(
                str(rank),
                view.username,
                str(view.total),
                str(view.minor),
                str(view.new),
                str(view.project_count),
            )
        console.print(table)

    if report.projects:
        table = Table(title="Projects")
        table.add_column("Project")
        table.add_column("Contributions", justify="right")
        table.add_column("Contributors", justify="right")
        table.add_column("Avg / contributor", justify="right")
        for view in report.projects:
            table.add_row(
                view.project,
                str(view.total_contributions),
                str(view.unique_contributors),
                f"{view.avg_per_contributor:.1f}",
            )
        console.print(table)

    peaks = report.peak_hours(peak_hours)
    if peaks:
        hours = ", ".join(f"{item.hour:02d}:00 ({item.count})" for item in peaks)
        console.print(f"[bold]Busiest hours (UTC):[/bold] {hours}")


async def _execute(config: RunConfig, settings: Settings) -> Report:
    with _create_progress() as progress:
        task = progress.add_task("Preparing...", total=100, detail="")

        def on_progress(percentage: int, message: str, detail: str) -> None:
            progress.update(
                task, completed=percentage, description=message, detail=detail
            )

        def on_status(message: str, severity: Severity) -> None:
            progress.console.print(f"[{_SEVERITY_STYLES[severity]}]{escape(message)}[/]")

        async with httpx.AsyncClient(timeout=settings.source.timeout) as client:
            fetcher = PageFetcher(settings.source, client=client)
            orchestrator = RunOrchestrator.from_config(
                config, fetcher, settings, progress=on_progress, status=on_status
            )
            return await orchestrator.run(
                config.participants, config.start_date, config.end_date
            )


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"contrib-analyzer {__version__}")
        raise typer.Exit()


@app.callback()
def _root(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            callback=_version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = None,
) -> None:
    """Contribution statistics for event participants across wiki projects."""


@app.command()
def run(
    start: Annotated[str, typer.Option("--start", help="First day, YYYY-MM-DD.")],
    end: Annotated[str, typer.Option("--end", help="Last day, YYYY-MM-DD.")],
    participant: Annotated[
        list[str] | None,
        typer.Option("--participant", "-p", help="Participant username (repeatable)."),
    ] = None,
    participants_file: Annotated[
        Path | None,
        typer.Option("--participants-file", help="File with one username per line."),
    ] = None,
    project: Annotated[
        list[str] | None,
        typer.Option(
            "--project", "-P", help="Project as domain[=Display name] (repeatable)."
        ),
    ] = None,
    limit: Annotated[
        str | None,
        typer.Option("--limit", help="Maximum contributions kept per participant."),
    ] = None,
    minor: Annotated[
        bool | None, typer.Option("--minor/--no-minor", help="Include minor edits.")
    ] = None,
    bot: Annotated[
        bool | None, typer.Option("--bot/--no-bot", help="Include bot edits.")
    ] = None,
    output: Annotated[
        Path | None, typer.Option("--output", "-o", help="Write the report as JSON.")
    ] = None,
    config: Annotated[
        Path | None, typer.Option("--config", "-c", help="YAML config file.")
    ] = None,
    log_level: Annotated[
        str | None, typer.Option("--log-level", help="Override the log level.")
    ] = None,
) -> None:
    """Fetch contributions for every participant and print the statistics."""
    settings = _load_settings(config)
    configure_logging(
        level=log_level or settings.logging.level,
        fmt=settings.logging.format,
        log_file=settings.logging.file,
        run_id=generate_run_id(),
    )

    names = _read_participants(participant or [], participants_file)
    if not names:
        err_console.print("[red]Add at least one participant first.[/red]")
        raise typer.Exit(code=1)
    if not project:
        err_console.print("[red]Select at least one project.[/red]")
        raise typer.Exit(code=1)

    try:
        run_config = RunConfig(
            participants=names,
            projects=[Project.parse(spec) for spec in project],
            start_date=date.fromisoformat(start),
            end_date=date.fromisoformat(end),
            contribution_limit=(
                limit if limit is not None else settings.run.contribution_limit
            ),
            include_minor=minor if minor is not None else settings.run.include_minor,
            include_bot=bot if bot is not None else settings.run.include_bot,
        )
    except ValueError as exc:
        err_console.print(f"[red]Invalid run configuration:[/red] {exc}")
        raise typer.Exit(code=1) from exc

    report = asyncio.run(_execute(run_config, settings))
    _display_report(report, settings.report.peak_hours)

    if output is not None:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(report.model_dump_json(indent=2), encoding="utf-8")
        console.print(f"[green]Report written to[/green] {output}")


def main() -> None:
    app()
