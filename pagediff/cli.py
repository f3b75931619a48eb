"""CLI entry point for page comparisons."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from pagediff.artifacts import ArtifactStore
from pagediff.errors import ComparisonError
from pagediff.imaging.bitmap import load_png, save_png
from pagediff.imaging.comparator import compare, mismatch_percentage
from pagediff.imaging.normalizer import normalize
from pagediff.models.config import ComparisonConfig
from pagediff.orchestrator import Orchestrator
from pagediff.reporter.json_report import report_to_dict

console = Console()

DEFAULT_CONFIG = "pagediff-config.json"


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def _load_config(path: str) -> ComparisonConfig:
    """Load the config file if present, otherwise fall back to defaults."""
    if Path(path).exists():
        return ComparisonConfig.load(path)
    if path != DEFAULT_CONFIG:
        console.print(f"[red]Config file not found: {path}[/red]")
        console.print("Run 'pagediff init' to create a default config.")
        sys.exit(1)
    return ComparisonConfig()


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """Visual regression comparison between original and upgraded pages"""
    setup_logging(verbose)


@cli.command("compare")
@click.argument("original_url")
@click.argument("upgraded_url")
@click.option("--config", "-c", default=DEFAULT_CONFIG, help="Config file path")
@click.option("--json", "as_json", is_flag=True, help="Print the full report as JSON")
def compare_cmd(original_url: str, upgraded_url: str, config: str, as_json: bool) -> None:
    """Capture ORIGINAL_URL and UPGRADED_URL and compare them."""
    cfg = _load_config(config)
    orchestrator = Orchestrator(cfg)
    try:
        report = orchestrator.run(original_url, upgraded_url)
    except ComparisonError as e:
        console.print(f"[red]Comparison failed:[/red] {e}")
        sys.exit(1)

    if as_json:
        click.echo(json.dumps(report_to_dict(report), indent=2))
        return

    console.print("\n[bold green]Comparison Complete[/bold green]")
    table = Table(title="Comparison Summary")
    table.add_column("Metric", style="bold")
    table.add_column("Value")
    table.add_row("Comparison ID", report.comparison_id)
    table.add_row("Duration", f"{report.duration_seconds}s")
    color = "green" if report.mismatch_percentage == 0 else "red"
    table.add_row("Pixel Mismatch", f"[{color}]{report.mismatch_percentage:.2f}%[/{color}]")
    table.add_row("Canvas", f"{report.width}x{report.height}")
    table.add_row("CSS Changed", str(len(report.resources.css)))
    table.add_row("JS Changed", str(len(report.resources.javascript)))
    table.add_row("Images Added", str(len(report.resources.images.added)))
    table.add_row("Images Removed", str(len(report.resources.images.removed)))
    console.print(table)

    console.print(f"  Diff image: [blue]{report.diff_image_url}[/blue]")
    console.print(f"  HTML diff: [blue]{report.html_diff_url}[/blue]")


@cli.command("diff-images")
@click.argument("original", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("upgraded", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--output", "-o", default="diff.png", type=click.Path(dir_okay=False, path_type=Path),
              help="Where to write the diff image")
@click.option("--config", "-c", default=DEFAULT_CONFIG, help="Config file path")
def diff_images_cmd(original: Path, upgraded: Path, output: Path, config: str) -> None:
    """Compare two local PNG files in-process."""
    pd = _load_config(config).pixel_diff
    a, b = normalize(load_png(original), load_png(upgraded), pd.max_dimension)
    diff, mismatched = compare(
        a, b, pd.threshold,
        chunk_rows=pd.chunk_rows,
        ignore_antialiasing=pd.ignore_antialiasing,
        alpha=pd.alpha,
        diff_color=pd.diff_color,
        diff_color_alt=pd.diff_color_alt,
        aa_color=pd.aa_color,
    )
    save_png(diff, output)
    pct = mismatch_percentage(mismatched, a.width, a.height)
    console.print(
        f"[green]Compared:[/green] {mismatched} of {a.width * a.height} pixels differ "
        f"({pct:.2f}%). Diff written to [blue]{output}[/blue]"
    )


@cli.command()
@click.option("--keep", "-k", type=int, default=None, help="Comparisons to keep (default: config retention)")
@click.option("--config", "-c", default=DEFAULT_CONFIG, help="Config file path")
def clean(keep: int | None, config: str) -> None:
    """Delete old comparison artifacts."""
    cfg = _load_config(config)
    store = ArtifactStore(Path(cfg.output_dir), cfg.artifact_url_prefix, cfg.retention_count)
    removed = store.prune(keep=keep)
    console.print(f"[green]Removed {len(removed)} old comparison(s)[/green]")


@cli.command()
@click.option("--output-dir", "-o", default="./uploads/screenshots", help="Artifact output directory")
def init(output_dir: str) -> None:
    """Create a default configuration file."""
    config_path = Path(DEFAULT_CONFIG)
    if config_path.exists():
        if not click.confirm(f"{DEFAULT_CONFIG} already exists. Overwrite?"):
            return

    cfg = ComparisonConfig(output_dir=output_dir)
    cfg.save(config_path)
    console.print(f"[green]Created {config_path}[/green]")
    console.print("\nYou can now customize this file and run:")
    console.print("  [blue]pagediff compare https://old.example.com https://new.example.com[/blue]")


if __name__ == "__main__":
    cli()
