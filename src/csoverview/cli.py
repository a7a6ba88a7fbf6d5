"""
csoverview CLI - Command Line Interface for CS2 match overviews

Provides commands for:
- Summarizing a demo's overview timeline
- Exporting the timeline to JSON for a renderer
"""

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from csoverview import __version__
from csoverview.core.config import OverviewConfig, get_config, load_config, set_config
from csoverview.map_data import get_map_metadata
from csoverview.match import Match, load_match
from csoverview.visualization.export import export_match

app = typer.Typer(
    name="csoverview",
    help="Frame-by-frame 2D overview timelines from CS2 demos",
    add_completion=False,
)
console = Console()

logger = logging.getLogger(__name__)


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        console.print(f"[bold blue]csoverview[/bold blue] v{__version__}")
        raise typer.Exit()


def setup_logging(config: OverviewConfig, verbose: bool = False) -> None:
    """Configure root logging from the logging section of the config."""
    level = logging.DEBUG if verbose else getattr(logging, str(config.logging.level).upper(), logging.INFO)
    logging.basicConfig(level=level, format=config.logging.format, filename=config.logging.file)
    logging.getLogger().setLevel(level)


@app.callback()
def main_callback(
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-V", help="Enable verbose output"),
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Configuration file (.yaml, .toml or .json)",
        exists=True,
        dir_okay=False,
    ),
) -> None:
    """csoverview - CS2 match overview timelines"""
    config = load_config(config_file)
    set_config(config)
    setup_logging(config, verbose)


def _build(
    demo_path: Path,
    framerate: Optional[float],
    tickrate: Optional[float],
    sample_rate: Optional[int],
) -> Match:
    """Build a match, preferring CLI options over configured fallbacks."""
    config = get_config()
    try:
        with console.status(f"Decoding {demo_path.name}..."):
            return load_match(
                demo_path,
                fallback_frame_rate=framerate if framerate is not None else config.parser.fallback_frame_rate,
                fallback_tick_rate=tickrate if tickrate is not None else config.parser.fallback_tick_rate,
                sample_rate=sample_rate if sample_rate is not None else config.parser.sample_rate,
                timeline=config.timeline,
            )
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e


@app.command()
def info(
    demo_path: Path = typer.Argument(
        ...,
        help="Path to the .dem file",
        exists=True,
        dir_okay=False,
        resolve_path=True,
    ),
    framerate: Optional[float] = typer.Option(
        None, "--framerate", help="Fallback frame rate (default: tick rate / sample rate)"
    ),
    tickrate: Optional[float] = typer.Option(
        None, "--tickrate", help="Fallback tick rate if the demo does not report one (default 64)"
    ),
    sample_rate: Optional[int] = typer.Option(
        None, "--sample-rate", help="Use every Nth tick as a frame (1 = every tick)"
    ),
) -> None:
    """
    Summarize a demo: map, rates, halves and rounds.
    """
    match = _build(demo_path, framerate, tickrate, sample_rate)
    metadata = get_map_metadata(match.map_name)

    console.print(f"\n[bold blue]csoverview[/bold blue] - {demo_path.name}\n")

    table = Table(show_header=False)
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="green")

    map_status = "" if metadata.is_known else " [yellow](no overview metadata)[/yellow]"
    table.add_row("Map", f"{match.map_name}{map_status}")
    table.add_row("Origin / Scale", f"({match.map_origin.x:g}, {match.map_origin.y:g}) / {match.map_scale:g}")
    table.add_row("Tick rate", f"{match.tick_rate:.2f}")
    table.add_row("Frame rate", f"{match.frame_rate:.2f} (rounded {match.frame_rate_rounded})")
    table.add_row("Frames", f"{len(match.states)} ({len(match.skipped_frames)} skipped)")
    table.add_row("Duration", f"{match.duration_seconds / 60:.1f} min")
    table.add_row("Halves", ", ".join(str(f) for f in match.half_starts) or "-")
    table.add_row("Rounds", str(len(match.round_starts)))

    if match.states:
        last = match.states[-1]
        score = (
            f"{last.team_counter_terrorists.clan_name or 'CT'} {last.team_counter_terrorists.score}"
            f" - {last.team_terrorists.score} {last.team_terrorists.clan_name or 'T'}"
        )
        table.add_row("Final score", score)

    console.print(table)


@app.command()
def export(
    demo_path: Path = typer.Argument(
        ...,
        help="Path to the .dem file",
        exists=True,
        dir_okay=False,
        resolve_path=True,
    ),
    output: Path = typer.Option(
        ...,
        "--output",
        "-o",
        help="Output file (.json, or .json.gz for gzip)",
    ),
    framerate: Optional[float] = typer.Option(
        None, "--framerate", help="Fallback frame rate (default: tick rate / sample rate)"
    ),
    tickrate: Optional[float] = typer.Option(
        None, "--tickrate", help="Fallback tick rate if the demo does not report one (default 64)"
    ),
    sample_rate: Optional[int] = typer.Option(
        None, "--sample-rate", help="Use every Nth tick as a frame (1 = every tick)"
    ),
    pretty: bool = typer.Option(False, "--pretty", help="Indent JSON output"),
) -> None:
    """
    Export the per-frame overview timeline to JSON.
    """
    match = _build(demo_path, framerate, tickrate, sample_rate)
    config = get_config()

    try:
        path = export_match(
            match,
            output,
            pretty=pretty or config.export.pretty,
            precision=config.export.coordinate_precision,
        )
    except ValueError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e

    console.print(f"[green]Exported {len(match.states)} frames to {path}[/green]")


def main() -> None:
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
