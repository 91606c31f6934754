"""Typer CLI entry point for async-digest."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Annotated, Any

import structlog
import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from async_digest import __version__
from async_digest.api.server import run_server
from async_digest.config import (
    Settings,
    describe_processing_mode,
    format_validation_error,
    select_processing_config,
)
from async_digest.digest import Decision, Digest
from async_digest.intake.classifier import partition_links
from async_digest.logging import configure_logging
from async_digest.orchestrator import GenerateResponse, generate_digest

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(
    name="async-digest",
    help="Turn chat threads and video walkthroughs into a structured digest.",
    no_args_is_help=True,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _load_settings(
    config_path: Path | None = None,
    **overrides: Any,
) -> Settings:
    """Load settings with error handling and user-friendly messages."""
    from pydantic import ValidationError

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


def _setup_logging(settings: Settings) -> None:
    configure_logging(
        level=settings.logging.level,
        fmt=settings.logging.format,
        log_file=settings.logging.file,
    )


def _decision_rows(table: Table, status: str, decisions: list[Decision]) -> None:
    for decision in decisions:
        table.add_row(
            status,
            decision.description,
            ", ".join(decision.participants) or "-",
        )


def _bullets(items: list[str]) -> str:
    return "\n".join(f"- {item}" for item in items)


def _display_digest(digest: Digest) -> None:
    """Render a digest as Rich panels and tables."""
    summary = digest.executive_summary
    console.print(
        Panel(
            f"[bold]What was discussed[/bold]\n{summary.what_was_discussed}\n\n"
            f"[bold]Why it matters[/bold]\n{summary.why_it_matters}\n\n"
            f"[bold]What changed[/bold]\n{summary.what_changed}",
            title="Executive Summary",
            border_style="blue",
        )
    )

    if digest.timeline:
        timeline = Table(title="Timeline", show_lines=True)
        timeline.add_column("When", style="cyan", no_wrap=True)
        timeline.add_column("Summary", style="white")
        timeline.add_column("Who", style="dim")
        timeline.add_column("Significance", justify="center")
        for event in digest.timeline:
            timeline.add_row(
                event.timestamp,
                event.summary,
                ", ".join(event.participants) or "-",
                event.significance.value,
            )
        console.print(timeline)

    decisions = digest.decisions
    if decisions.decided or decisions.pending or decisions.blocked:
        table = Table(title="Decisions", show_lines=True)
        table.add_column("Status", style="cyan", width=8)
        table.add_column("Description", style="white")
        table.add_column("Participants", style="dim")
        _decision_rows(table, "decided", decisions.decided)
        _decision_rows(table, "pending", decisions.pending)
        _decision_rows(table, "blocked", decisions.blocked)
        console.print(table)

    if digest.action_items:
        actions = Table(title="Action Items", show_lines=True)
        actions.add_column("Action", style="white")
        actions.add_column("Owner", style="cyan")
        actions.add_column("Status", style="dim")
        for item in digest.action_items:
            actions.add_row(item.action, item.owner or "unassigned", item.status.value)
        console.print(actions)

    if digest.topic_clusters:
        topics = Table(title="Topics")
        topics.add_column("Topic", style="cyan")
        topics.add_column("Entries", justify="right")
        topics.add_column("Summary", style="dim")
        for cluster in digest.topic_clusters:
            topics.add_row(cluster.topic, str(cluster.entries), cluster.summary)
        console.print(topics)

    for title, items in (
        ("Open Questions", digest.open_questions),
        ("Disagreements", digest.disagreements),
        ("Repeated Feedback", digest.repeated_feedback),
    ):
        if items:
            console.print(Panel(_bullets(items), title=title, border_style="dim"))


# ---------------------------------------------------------------------------
# Version callback
# ---------------------------------------------------------------------------


def _version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold]async-digest[/bold] {__version__}")
        raise typer.Exit


@app.callback()
def common(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit.",
            callback=_version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """async-digest global options."""


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.command()
def generate(
    links: Annotated[
        list[str],
        typer.Argument(help="Chat thread or video links to summarize."),
    ],
    config: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="Path to config YAML file."),
    ] = None,
    as_json: Annotated[
        bool,
        typer.Option("--json", help="Print the raw JSON response."),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose logging."),
    ] = False,
) -> None:
    """Generate a digest from the given links."""
    overrides: dict[str, Any] = {}
    if verbose:
        overrides["logging"] = {"level": "DEBUG"}

    settings = _load_settings(config, **overrides)
    _setup_logging(settings)

    response: GenerateResponse = asyncio.run(generate_digest(links, settings=settings))

    if as_json:
        payload = response.model_dump(mode="json", by_alias=True, exclude_none=True)
        typer.echo(json.dumps(payload, indent=2))
        if not response.success:
            raise typer.Exit(code=1)
        return

    if response.invalid_urls:
        err_console.print(
            "[yellow]Skipped unrecognized links:[/yellow] "
            + ", ".join(response.invalid_urls)
        )

    if not response.success or response.digest is None:
        err_console.print(f"[red]Error:[/red] {response.error}")
        raise typer.Exit(code=1)

    console.print(f"[dim]Processing mode:[/dim] [cyan]{response.mode.value}[/cyan]")
    _display_digest(response.digest)


@app.command()
def classify(
    links: Annotated[
        list[str],
        typer.Argument(help="Links to classify."),
    ],
) -> None:
    """Show how each link is recognized, without fetching anything."""
    partition = partition_links(links)

    table = Table(title="Links")
    table.add_column("Link", style="white")
    table.add_column("Type", style="cyan")
    table.add_column("Identifier", style="dim")
    for descriptor in partition.valid:
        table.add_row(
            descriptor.raw_url, descriptor.source_type.value, descriptor.identifier
        )
    for url in partition.invalid:
        table.add_row(url, "[red]unrecognized[/red]", "-")

    console.print(table)


@app.command()
def info(
    config: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="Path to config YAML file."),
    ] = None,
) -> None:
    """Show which processing mode the next request would use."""
    settings = _load_settings(config)
    env_var = settings.engine.credential_env_var
    processing = describe_processing_mode(
        select_processing_config(credential_env_var=env_var),
        credential_env_var=env_var,
    )
    console.print(
        Panel(
            f"Mode: [cyan]{processing.mode.value}[/cyan]\n"
            f"{processing.description}\n"
            f"Model: {settings.engine.model}",
            title="Processing",
            border_style="blue",
        )
    )


@app.command()
def serve(
    port: Annotated[
        int | None,
        typer.Option("--port", help="Port to bind the FastAPI server."),
    ] = None,
    host: Annotated[
        str | None,
        typer.Option("--host", help="Host/interface to bind the FastAPI server."),
    ] = None,
    config: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="Path to config YAML file."),
    ] = None,
) -> None:
    """Run the async-digest FastAPI server."""
    api_overrides: dict[str, Any] = {}
    if port is not None:
        api_overrides["port"] = port
    if host is not None:
        api_overrides["host"] = host

    overrides: dict[str, Any] = {"api": api_overrides} if api_overrides else {}
    settings = _load_settings(config, **overrides)
    _setup_logging(settings)
    logger.info("server_starting", host=settings.api.host, port=settings.api.port)
    run_server(settings)


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
