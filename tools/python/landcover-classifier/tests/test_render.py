"""
Tests for the class map renderer.
"""

from __future__ import annotations

from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np
import pytest
from rasterio.crs import CRS
from rasterio.transform import from_origin

from landcover_classifier.model import ClassifiedRaster
from landcover_classifier.render import DEFAULT_PALETTE, ClassMapRenderer
from shared.python.exceptions import InputValidationError, OutputWriteError


@pytest.fixture()
def classified() -> ClassifiedRaster:
    codes = np.array([
        [0, 1, 1, 2],
        [1, 1, 2, 2],
        [3, 3, 4, 4],
        [3, 3, 4, 0],
    ], dtype=np.uint8)
    return ClassifiedRaster(
        codes=codes,
        levels=["agriculture", "forest", "urban", "water"],
        transform=from_origin(500_000, 4_200_000, 30, 30),
        crs=CRS.from_epsg(32633),
    )


def test_one_legend_patch_per_level(classified: ClassifiedRaster) -> None:
    handles = ClassMapRenderer(classified).legend_handles()
    assert [h.get_label() for h in handles] == classified.levels


def test_figure_has_legend_and_title(classified: ClassifiedRaster) -> None:
    fig = ClassMapRenderer(classified, title="Test scene").figure()
    try:
        ax = fig.axes[0]
        assert ax.get_title() == "Test scene"
        legend = ax.get_legend()
        assert [t.get_text() for t in legend.get_texts()] == classified.levels
        assert len(ax.images) == 1
    finally:
        plt.close(fig)


def test_image_extent_follows_transform(classified: ClassifiedRaster) -> None:
    fig = ClassMapRenderer(classified).figure()
    try:
        left, right, bottom, top = fig.axes[0].images[0].get_extent()
        assert (left, right) == (500_000, 500_120)
        assert (bottom, top) == (4_199_880, 4_200_000)
    finally:
        plt.close(fig)


def test_too_few_colours_raises(classified: ClassifiedRaster) -> None:
    with pytest.raises(InputValidationError, match="palette"):
        ClassMapRenderer(classified, palette=DEFAULT_PALETTE[:3])


def test_save_writes_png(tmp_path: Path, classified: ClassifiedRaster) -> None:
    out = ClassMapRenderer(classified).save(tmp_path / "map.png", dpi=50)
    assert out.exists()
    assert out.read_bytes()[:8] == b"\x89PNG\r\n\x1a\n"


def test_save_leaves_given_figure_open(tmp_path: Path, classified: ClassifiedRaster) -> None:
    renderer = ClassMapRenderer(classified)
    fig = renderer.figure()
    try:
        renderer.save(tmp_path / "map.png", dpi=50, figure=fig)
        assert plt.fignum_exists(fig.number)
    finally:
        plt.close(fig)


def test_save_to_missing_directory_raises(tmp_path: Path, classified: ClassifiedRaster) -> None:
    with pytest.raises(OutputWriteError):
        ClassMapRenderer(classified).save(tmp_path / "missing" / "map.png", dpi=50)
