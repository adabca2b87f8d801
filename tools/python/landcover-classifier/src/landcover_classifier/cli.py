"""
Land-Cover Classifier — CLI Entry Point
========================================
Installed as the ``geo-landcover`` command via ``pyproject.toml``.

Usage::

    geo-landcover \\
        --bands-dir data/landsat \\
        --study-area data/study_area.shp \\
        --training data/training_sites.shp \\
        --label-column class \\
        --output-dir output

Run ``geo-landcover --help`` for the full option list.
"""

from __future__ import annotations

import sys
from pathlib import Path

import click
import matplotlib.pyplot as plt

from landcover_classifier.bands import DEFAULT_BAND_PATTERN
from landcover_classifier.classifier import ClassifierConfig, LandCoverClassifier
from landcover_classifier.model import TreeConfig
from landcover_classifier.reflectance import (
    DEFAULT_SCALING,
    SCALING_PRESETS,
    ReflectanceScaling,
)
from shared.python.exceptions import LandCoverError


def _parse_band_list(raw: str) -> list[int] | None:
    """Parse ``"2,3,4,5"`` into ``[2, 3, 4, 5]``; empty → ``None``."""
    try:
        return [int(b.strip()) for b in raw.split(",") if b.strip()] or None
    except ValueError as exc:
        raise click.BadParameter(f"expected comma-separated integers, got {raw!r}") from exc


@click.command(
    name="geo-landcover",
    help="Classify a multispectral scene into land-cover classes with a decision tree.",
)
@click.option(
    "--bands-dir", "bands_dir",
    required=True,
    type=click.Path(exists=True, file_okay=False, dir_okay=True, path_type=Path),
    help="Directory with one raster file per spectral band.",
)
@click.option(
    "--study-area", "study_area",
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Polygon file of the study-area boundary.",
)
@click.option(
    "--training", "training",
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Polygon file of labelled training sites.",
)
@click.option(
    "--label-column", default="class", show_default=True,
    help="Training-site attribute holding the land-cover class.",
)
@click.option(
    "--output-dir", "-o", "output_dir",
    default="output", show_default=True,
    type=click.Path(file_okay=False, path_type=Path),
    help="Directory for output files.",
)
@click.option(
    "--band-pattern", default=DEFAULT_BAND_PATTERN, show_default=True,
    help="Regex whose first group is the band number in each file name.",
)
@click.option(
    "--bands", default="",
    help="Comma-separated band numbers to use. Omit to use every band found.",
)
@click.option(
    "--sensor",
    type=click.Choice(sorted(SCALING_PRESETS), case_sensitive=False),
    default=DEFAULT_SCALING, show_default=True,
    help="DN → reflectance rescaling preset.",
)
@click.option("--scale", type=float, default=None, help="Custom reflectance scale (overrides --sensor).")
@click.option("--offset", type=float, default=0.0, show_default=True, help="Custom reflectance offset, used with --scale.")
@click.option("--target-crs", default=None, help="Reproject the scene to this CRS, e.g. EPSG:32633.")
@click.option("--min-split", type=click.IntRange(min=2), default=20, show_default=True, help="Minimum samples in a node to try a split.")
@click.option("--min-bucket", type=click.IntRange(min=1), default=7, show_default=True, help="Minimum samples in a leaf.")
@click.option("--max-depth", type=click.IntRange(min=1), default=30, show_default=True, help="Maximum tree depth.")
@click.option("--cp", "complexity", type=click.FloatRange(min=0), default=0.01, show_default=True, help="Complexity parameter.")
@click.option("--no-map", is_flag=True, default=False, help="Skip writing the PNG map.")
@click.option("--verbose", "-v", is_flag=True, default=False, help="Enable debug logging.")
def main(
    bands_dir: Path,
    study_area: Path,
    training: Path,
    label_column: str,
    output_dir: Path,
    band_pattern: str,
    bands: str,
    sensor: str,
    scale: float | None,
    offset: float,
    target_crs: str | None,
    min_split: int,
    min_bucket: int,
    max_depth: int,
    complexity: float,
    no_map: bool,
    verbose: bool,
) -> None:
    """CLI entry point — wires Click options into LandCoverClassifier."""
    scaling: ReflectanceScaling | str = (
        ReflectanceScaling(scale=scale, offset=offset) if scale is not None else sensor
    )

    config = ClassifierConfig(
        label_column=label_column,
        band_pattern=band_pattern,
        bands=_parse_band_list(bands),
        scaling=scaling,
        target_crs=target_crs,
        tree=TreeConfig(
            min_split=min_split,
            min_bucket=min_bucket,
            max_depth=max_depth,
            complexity=complexity,
        ),
        write_map=not no_map,
    )

    tool = LandCoverClassifier(
        bands_dir, study_area, training, output_dir, config, verbose=verbose,
    )

    try:
        tool.run()
    except LandCoverError as exc:
        click.echo(f"Error: {exc.message}", err=True)
        sys.exit(1)
    finally:
        if tool.figure is not None:
            plt.close(tool.figure)

    click.echo(f"\nOutputs written to: {output_dir}")
    for kind, path in tool.outputs.items():
        click.echo(f"  {kind:<8} {path.name}")
    if tool.classified is not None:
        click.echo("\nPixels per class:")
        for label, n in tool.classified.class_counts().items():
            click.echo(f"  {label!s:<20} {n:,}")


if __name__ == "__main__":
    main()
