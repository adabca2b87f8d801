"""
export.py
=========
Save classification outputs to disk.

Supported formats
-----------------
GeoTIFF -- uint8 class codes with per-code label tags and a colour table
TXT     -- decision tree rules
CSV     -- pixel count and area per class
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence

import matplotlib.colors as mcolors
import rasterio
from rasterio.errors import RasterioIOError

from shared.python.exceptions import OutputWriteError

from .model import ClassifiedRaster, LandCoverTree

logger = logging.getLogger("landcover.export")


def write_classified_geotiff(
    classified: ClassifiedRaster,
    path: Path,
    palette: Sequence[str] | None = None,
) -> Path:
    """Write class codes as a single-band uint8 GeoTIFF.

    No-data is ``0``.  Each code's label is stored as a band tag
    ``class_<code>``; when *palette* is given a colour table is embedded so
    GIS viewers show the same colours as the rendered map.
    """
    path = Path(path)
    rows, cols = classified.shape
    profile = {
        "driver": "GTiff",
        "dtype": "uint8",
        "count": 1,
        "height": rows,
        "width": cols,
        "crs": classified.crs,
        "transform": classified.transform,
        "nodata": ClassifiedRaster.NODATA,
        "compress": "lzw",
    }
    tags = {f"class_{i + 1}": str(level) for i, level in enumerate(classified.levels)}

    try:
        with rasterio.open(path, "w", **profile) as dst:
            dst.write(classified.codes, 1)
            dst.set_band_description(1, "landcover")
            dst.update_tags(1, **tags)
            if palette:
                colormap = {ClassifiedRaster.NODATA: (0, 0, 0, 0)}
                for i, colour in enumerate(palette[:len(classified.levels)]):
                    r, g, b, a = mcolors.to_rgba(colour)
                    colormap[i + 1] = (round(r * 255), round(g * 255), round(b * 255), round(a * 255))
                dst.write_colormap(1, colormap)
    except (OSError, RasterioIOError) as exc:
        raise OutputWriteError(str(path), str(exc)) from exc

    logger.info("GeoTIFF written → %s", path)
    return path


def write_tree_rules(tree: LandCoverTree, path: Path) -> Path:
    """Write the fitted tree's text rules."""
    path = Path(path)
    try:
        path.write_text(tree.describe(), encoding="utf-8")
    except OSError as exc:
        raise OutputWriteError(str(path), str(exc)) from exc
    logger.info("Tree rules written → %s", path)
    return path


def write_class_summary(classified: ClassifiedRaster, path: Path) -> Path:
    """Write ``label, code, pixels, area`` per class as CSV."""
    path = Path(path)
    try:
        classified.summary().to_csv(path, index=False)
    except OSError as exc:
        raise OutputWriteError(str(path), str(exc)) from exc
    logger.info("Class summary written → %s", path)
    return path
