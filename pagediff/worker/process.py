"""Isolated comparison worker — decodes, normalizes and diffs two screenshots.

Runs as its own OS process, one per comparison. Prints exactly one JSON line
on success; logs diagnostics to stderr and exits non-zero on failure.
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Optional

import click

from pagediff.imaging.bitmap import load_png, save_png
from pagediff.imaging.comparator import compare, mismatch_percentage
from pagediff.imaging.normalizer import normalize
from pagediff.models.comparison import ComparisonResult
from pagediff.models.config import PixelDiffConfig

logger = logging.getLogger("pagediff.worker")

DIFF_FILENAME = "diff.png"


class FileTooLargeError(Exception):
    """A screenshot exceeds the size cap and was not decoded."""


def check_file_size(path: Path, max_bytes: int) -> int:
    """Return the file size, or raise before any decoding happens."""
    size = path.stat().st_size
    if size > max_bytes:
        raise FileTooLargeError(
            f"Screenshot file too large: {path} is {size / (1024 * 1024):.1f}MB, "
            f"maximum size is {max_bytes / (1024 * 1024):.0f}MB"
        )
    return size


def artifact_url(url_prefix: str, filename: str) -> str:
    return f"{url_prefix.rstrip('/')}/{filename}"


def format_color(color: Optional[tuple[int, int, int]]) -> str:
    """Render a colour as the worker's `R,G,B` option value (`none` when unset)."""
    if color is None:
        return "none"
    return ",".join(str(c) for c in color)


def _parse_color(ctx, param, value):
    if value is None or value.strip().lower() == "none":
        if param.name != "diff_color_alt":
            raise click.BadParameter("a colour is required")
        return None
    try:
        channels = tuple(int(c) for c in value.split(","))
    except ValueError:
        raise click.BadParameter(f"expected R,G,B, got {value!r}") from None
    if len(channels) != 3:
        raise click.BadParameter(f"expected R,G,B, got {value!r}")
    return channels


def process_screenshots(
    original_path: Path,
    upgraded_path: Path,
    output_dir: Path,
    url_prefix: str,
    settings: PixelDiffConfig,
) -> ComparisonResult:
    """Compare two PNG screenshots and write the diff image to ``output_dir``."""
    max_bytes = settings.max_file_size_bytes
    sizes = {
        "original": check_file_size(original_path, max_bytes),
        "upgraded": check_file_size(upgraded_path, max_bytes),
    }
    logger.info("File sizes: %s", sizes)

    logger.info("Decoding original image...")
    original = load_png(original_path)
    logger.info("Original image: %dx%d", original.width, original.height)
    logger.info("Decoding upgraded image...")
    upgraded = load_png(upgraded_path)
    logger.info("Upgraded image: %dx%d", upgraded.width, upgraded.height)

    original, upgraded = normalize(original, upgraded, settings.max_dimension)
    width, height = original.size
    logger.info("Comparing on %dx%d canvas in %d-row chunks", width, height, settings.chunk_rows)

    diff, mismatched = compare(
        original,
        upgraded,
        settings.threshold,
        chunk_rows=settings.chunk_rows,
        ignore_antialiasing=settings.ignore_antialiasing,
        alpha=settings.alpha,
        diff_color=settings.diff_color,
        diff_color_alt=settings.diff_color_alt,
        aa_color=settings.aa_color,
    )
    del original, upgraded

    diff_path = output_dir / DIFF_FILENAME
    logger.info("Saving diff image to %s", diff_path)
    save_png(diff, diff_path)

    return ComparisonResult(
        mismatch_percentage=mismatch_percentage(mismatched, width, height),
        diff_image_url=artifact_url(url_prefix, DIFF_FILENAME),
        original_image_url=artifact_url(url_prefix, original_path.name),
        upgraded_image_url=artifact_url(url_prefix, upgraded_path.name),
        mismatched_pixels=mismatched,
        width=width,
        height=height,
    )


@click.command()
@click.argument("original", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("upgraded", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--output-dir", type=click.Path(file_okay=False, path_type=Path), default=None,
              help="Where to write diff.png (default: the original screenshot's directory)")
@click.option("--url-prefix", default="/uploads/screenshots", help="URL prefix for artifact links")
@click.option("--threshold", type=float, default=0.2, help="Colour distance threshold, 0-1")
@click.option("--chunk-rows", type=int, default=25, help="Rows per comparison strip")
@click.option("--max-dimension", type=int, default=5000, help="Downscale images larger than this")
@click.option("--max-file-size-mb", type=float, default=10.0, help="Reject larger PNG files")
@click.option("--alpha", type=float, default=0.5, help="Opacity of unchanged pixels in the diff")
@click.option("--ignore-antialiasing/--include-antialiasing", default=False,
              help="Do not count anti-aliased edge pixels as mismatches")
@click.option("--diff-color", default="255,0,0", callback=_parse_color,
              help="R,G,B colour for mismatched pixels")
@click.option("--diff-color-alt", default="0,0,255", callback=_parse_color,
              help="R,G,B colour where the upgraded pixel is darker, or 'none'")
@click.option("--aa-color", default="255,255,0", callback=_parse_color,
              help="R,G,B colour for forgiven anti-aliased pixels")
def main(
    original: Path,
    upgraded: Path,
    output_dir: Optional[Path],
    url_prefix: str,
    threshold: float,
    chunk_rows: int,
    max_dimension: int,
    max_file_size_mb: float,
    alpha: float,
    ignore_antialiasing: bool,
    diff_color: tuple[int, int, int],
    diff_color_alt: Optional[tuple[int, int, int]],
    aa_color: tuple[int, int, int],
) -> None:
    """Compare ORIGINAL and UPGRADED screenshots and print a JSON result."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    try:
        settings = PixelDiffConfig(
            threshold=threshold,
            chunk_rows=chunk_rows,
            max_dimension=max_dimension,
            max_file_size_mb=max_file_size_mb,
            alpha=alpha,
            ignore_antialiasing=ignore_antialiasing,
            diff_color=diff_color,
            diff_color_alt=diff_color_alt,
            aa_color=aa_color,
        )
        out_dir = output_dir or original.parent
        out_dir.mkdir(parents=True, exist_ok=True)
        result = process_screenshots(original, upgraded, out_dir, url_prefix, settings)
    except Exception as e:
        logger.error("Error processing screenshots: %s", e)
        sys.exit(1)

    sys.stdout.write(json.dumps(result.model_dump(by_alias=True)) + "\n")
    sys.stdout.flush()
    logger.info("Comparison completed successfully")


if __name__ == "__main__":
    main()
