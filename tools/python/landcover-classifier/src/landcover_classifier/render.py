"""
render.py
=========
Thematic map of a classified scene: one flat colour per land-cover class
from a fixed palette, no-data left transparent, and a legend patch per
class.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence

import numpy as np
import matplotlib
matplotlib.use("Agg")  # non-interactive backend safe for headless execution
import matplotlib.pyplot as plt
from matplotlib.colors import BoundaryNorm, ListedColormap
from matplotlib.figure import Figure
from matplotlib.patches import Patch
from rasterio.plot import plotting_extent

from shared.python.exceptions import InputValidationError, OutputWriteError

from .model import ClassifiedRaster

logger = logging.getLogger("landcover.render")

# Colours are assigned to classes in level order (level 1 → first colour).
DEFAULT_PALETTE: tuple[str, ...] = (
    "#1a9850",  # green
    "#fee08b",  # pale yellow
    "#4575b4",  # blue
    "#d73027",  # red
)


class ClassMapRenderer:
    """Render a :class:`ClassifiedRaster` as a categorical map.

    Parameters
    ----------
    classified:
        Result of ``LandCoverTree.predict_raster()``.
    palette:
        One matplotlib colour per class, in level order.
    title:
        Figure title.
    """

    def __init__(
        self,
        classified: ClassifiedRaster,
        palette: Sequence[str] = DEFAULT_PALETTE,
        title: str = "Land-cover classification",
    ) -> None:
        if len(classified.levels) > len(palette):
            raise InputValidationError(
                f"{len(classified.levels)} land-cover classes but only "
                f"{len(palette)} palette colour(s)."
            )
        self.classified = classified
        self.palette = list(palette)
        self.title = title

    def legend_handles(self) -> list[Patch]:
        return [
            Patch(facecolor=self.palette[i], edgecolor="#333333", label=str(level))
            for i, level in enumerate(self.classified.levels)
        ]

    def figure(self, figsize=(10, 8)) -> Figure:
        """Return the map as a matplotlib figure."""
        c = self.classified
        n = len(c.levels)
        cmap = ListedColormap(self.palette[:n])
        norm = BoundaryNorm(np.arange(0.5, n + 1.5), cmap.N)
        data = np.ma.masked_equal(c.codes, ClassifiedRaster.NODATA)

        fig, ax = plt.subplots(figsize=figsize)
        ax.imshow(
            data,
            cmap=cmap,
            norm=norm,
            extent=plotting_extent(c.codes, c.transform),
            interpolation="nearest",
        )
        ax.legend(
            handles=self.legend_handles(),
            title="Land cover",
            loc="lower right",
            fontsize=9,
            framealpha=0.85,
        )
        units = c.crs.linear_units if c.crs is not None else "units"
        ax.set_xlabel(f"Easting ({units})")
        ax.set_ylabel(f"Northing ({units})")
        ax.set_title(self.title, fontsize=13, fontweight="bold")
        ax.ticklabel_format(useOffset=False, style="plain")
        fig.tight_layout()
        return fig

    def save(self, path: Path, dpi: int = 150, figure: Figure | None = None) -> Path:
        """Write the map as PNG.

        A figure passed in is saved as-is and left open; otherwise a new one
        is drawn and closed afterwards.
        """
        path = Path(path)
        fig = figure if figure is not None else self.figure()
        try:
            fig.savefig(str(path), dpi=dpi, bbox_inches="tight")
        except OSError as exc:
            raise OutputWriteError(str(path), str(exc)) from exc
        finally:
            if figure is None:
                plt.close(fig)
        logger.info("Map written → %s", path)
        return path
