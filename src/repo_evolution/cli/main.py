"""Main CLI interface for repo-evolution."""

import json
import logging
from pathlib import Path
from typing import List, Optional

import click
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from repo_evolution import __version__
from repo_evolution.config import (
    DEFAULT_CONFIG_NAME,
    LayoutSettings,
    load_settings,
    write_default_settings,
)
from repo_evolution.core.continuity import ContinuityOrchestrator
from repo_evolution.core.git_history import read_git_history
from repo_evolution.core.timeline import (
    ON_ERROR_CHOICES,
    TimelineBuilder,
    layout_timeline,
)
from repo_evolution.data.demo import demo_timeline
from repo_evolution.errors import GitHistoryError, ReconstructionError
from repo_evolution.models.change import TimelineEntry
from repo_evolution.models.node import FileStatus
from repo_evolution.models.snapshot import Snapshot

console = Console()


def load_settings_or_exit(config_path: Optional[str]) -> LayoutSettings:
    """Load layout settings or exit with error message."""
    try:
        return load_settings(config_path)
    except ValueError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise click.Abort() from e


def run_pipeline(
    entries: List[TimelineEntry],
    settings: LayoutSettings,
    on_error: str = "skip",
    layout: bool = True,
) -> List[Snapshot]:
    """Rebuild snapshots for the entries and optionally lay them out."""
    builder = TimelineBuilder(settings)
    try:
        snapshots = builder.build(entries, on_error=on_error)
    except ReconstructionError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise click.Abort() from e

    for message in builder.skipped:
        console.print(f"[yellow]Skipped: {escape(message)}[/yellow]")

    if layout and snapshots:
        with console.status("[bold]Laying out snapshots...[/bold]"):
            layout_timeline(snapshots, ContinuityOrchestrator(settings))
    return snapshots


def render_summary(snapshots: List[Snapshot]) -> None:
    """Print one table row per snapshot."""
    if not snapshots:
        console.print("[yellow]No snapshots produced[/yellow]")
        return

    table = Table(title="Timeline")
    table.add_column("Step", style="cyan")
    table.add_column("Message")
    table.add_column("Author", style="magenta")
    table.add_column("Nodes", justify="right")
    table.add_column("Added", justify="right", style="green")
    table.add_column("Moved", justify="right", style="yellow")
    table.add_column("Deleted", justify="right", style="red")
    table.add_column("Warnings", justify="right")

    for snapshot in snapshots:
        table.add_row(
            snapshot.id[:12],
            snapshot.message.splitlines()[0] if snapshot.message else "",
            snapshot.author,
            str(len(snapshot.active_nodes)),
            str(snapshot.count_status(FileStatus.ADDED)),
            str(snapshot.count_status(FileStatus.MOVED)),
            str(snapshot.count_status(FileStatus.DELETED)),
            str(len(snapshot.warnings)),
        )

    console.print(table)


def write_output(snapshots: List[Snapshot], output: Optional[str]) -> None:
    if output is None:
        return
    payload = [snapshot.model_dump(mode="json") for snapshot in snapshots]
    Path(output).write_text(json.dumps(payload, indent=2))
    console.print(f"[green]✅ Wrote {len(snapshots)} snapshots to {output}[/green]")


config_option = click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Path to a JSON settings file",
)
output_option = click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, writable=True),
    default=None,
    help="Write snapshots as JSON to this file",
)
layout_option = click.option(
    "--no-layout",
    is_flag=True,
    help="Skip the force layout and only rebuild file state",
)


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
def main(verbose: bool):
    """repo-evolution - Rebuild a repository's file tree over time in 3D."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


@main.command()
@click.argument("timeline_file", type=click.Path(exists=True, dir_okay=False))
@config_option
@output_option
@layout_option
@click.option(
    "--on-error",
    type=click.Choice(ON_ERROR_CHOICES),
    default="skip",
    show_default=True,
    help="What to do with a step that has a malformed change record",
)
def replay(
    timeline_file: str,
    config_path: Optional[str],
    output: Optional[str],
    no_layout: bool,
    on_error: str,
):
    """Replay a JSON timeline of change records."""
    settings = load_settings_or_exit(config_path)

    try:
        raw = json.loads(Path(timeline_file).read_text())
    except json.JSONDecodeError as e:
        console.print(
            f"[red]Error: invalid JSON in {timeline_file}: {escape(str(e))}[/red]"
        )
        raise click.Abort() from e

    if not isinstance(raw, list):
        console.print("[red]Error: timeline must be a JSON list of steps[/red]")
        raise click.Abort()

    entries = []
    for index, item in enumerate(raw):
        try:
            entries.append(TimelineEntry.model_validate(item))
        except ValidationError as e:
            if on_error == "abort":
                console.print(
                    f"[red]Error: step {index} is invalid: {escape(str(e))}[/red]"
                )
                raise click.Abort() from e
            console.print(f"[yellow]Skipped step {index}: invalid entry[/yellow]")

    snapshots = run_pipeline(entries, settings, on_error=on_error, layout=not no_layout)
    render_summary(snapshots)
    write_output(snapshots, output)


@main.command("git")
@click.argument("repo_path", type=click.Path(exists=True, file_okay=False), default=".")
@click.option("--rev", default="HEAD", show_default=True, help="Revision to walk")
@click.option(
    "--max-count",
    type=click.IntRange(min=1),
    default=None,
    help="Only read the last N commits",
)
@config_option
@output_option
@layout_option
def git_history(
    repo_path: str,
    rev: str,
    max_count: Optional[int],
    config_path: Optional[str],
    output: Optional[str],
    no_layout: bool,
):
    """Replay the history of a local git repository."""
    settings = load_settings_or_exit(config_path)

    try:
        entries = read_git_history(repo_path, rev=rev, max_count=max_count)
    except GitHistoryError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise click.Abort() from e

    console.print(f"[bold]Repository:[/bold] {Path(repo_path).resolve()}")
    console.print(f"[bold]Commits:[/bold] {len(entries)}")

    snapshots = run_pipeline(entries, settings, layout=not no_layout)
    render_summary(snapshots)
    write_output(snapshots, output)


@main.command()
@output_option
@layout_option
def demo(output: Optional[str], no_layout: bool):
    """Replay the bundled demo timeline."""
    snapshots = run_pipeline(demo_timeline(), LayoutSettings(), layout=not no_layout)
    render_summary(snapshots)
    write_output(snapshots, output)


@main.command("init-config")
@click.argument("path", type=click.Path(dir_okay=False), default=DEFAULT_CONFIG_NAME)
def init_config(path: str):
    """Write a settings file with the default values."""
    try:
        written = write_default_settings(path)
    except ValueError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise click.Abort() from e
    console.print(f"[green]✅ Wrote default settings to {written}[/green]")


if __name__ == "__main__":
    main()
